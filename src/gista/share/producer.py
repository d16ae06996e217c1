"""Share-process side of the hand-off queue."""

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlsplit, urlunsplit

from gista.share.models import EntryKind, FailedAttachment, SharedEntry
from gista.share.store import SharedQueueStore
from gista.utils.logging import get_logger

logger = get_logger(__name__)

VALID_SCHEMES = ("http", "https")
MAX_URL_LENGTH = 2048

# Mobile host prefixes mapped to their desktop equivalent; first match wins.
MOBILE_HOST_PREFIXES = (
    ("m.", ""),
    ("en.m.", "en."),
    ("mobile.", ""),
)


class InvalidContentError(ValueError):
    """Raised when a shared attachment is not something Gista can queue."""


@dataclass(frozen=True)
class UrlAttachment:
    url: str


@dataclass(frozen=True)
class PdfAttachment:
    path: Path


@dataclass(frozen=True)
class TextAttachment:
    text: str


Attachment = UrlAttachment | PdfAttachment | TextAttachment


@dataclass
class ShareResult:
    """Outcome of one share action."""

    queued: list[SharedEntry] = field(default_factory=list)
    duplicates: int = 0
    failed: list[FailedAttachment] = field(default_factory=list)


def normalize_url(url: str) -> str:
    """Rewrite a mobile-site URL to its desktop equivalent.

    Only the host is touched: it is lowercased and a mobile prefix is dropped.
    Path, query and fragment are kept as shared.
    """
    url = url.strip()
    parts = urlsplit(url)
    host = parts.hostname
    if not host:
        return url
    for prefix, replacement in MOBILE_HOST_PREFIXES:
        if host.startswith(prefix):
            host = replacement + host[len(prefix) :]
            break

    if ":" in host:
        host = f"[{host}]"
    userinfo, at, _ = parts.netloc.rpartition("@")
    port = f":{parts.port}" if parts.port is not None else ""
    netloc = f"{userinfo}{at}{host}{port}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def validate_url(url: str) -> str:
    """Check a shared URL is an absolute http(s) URL of acceptable length.

    Raises:
        InvalidContentError: If the URL cannot be queued.
    """
    url = url.strip()
    if len(url) > MAX_URL_LENGTH:
        raise InvalidContentError(f"URL longer than {MAX_URL_LENGTH} characters")
    try:
        parts = urlsplit(url)
        parts.port  # raises ValueError on a malformed port
    except ValueError as e:
        raise InvalidContentError(f"malformed URL: {e}") from e
    if parts.scheme.lower() not in VALID_SCHEMES or not parts.netloc:
        raise InvalidContentError(f"unsupported URL: {url}")
    return url


def _describe(attachment: Attachment) -> str:
    if isinstance(attachment, UrlAttachment):
        return attachment.url
    if isinstance(attachment, PdfAttachment):
        return str(attachment.path)
    return attachment.text[:80]


class QueueProducer:
    """Normalizes captured content and appends it to the shared queue.

    URLs already submitted during this producer's lifetime are dropped. The
    seen set is per process, so the same link shared in a later session is
    queued again.
    """

    def __init__(
        self,
        store: SharedQueueStore,
        on_complete: Callable[[ShareResult], None] | None = None,
    ) -> None:
        self._store = store
        self._on_complete = on_complete
        self._seen_urls: set[str] = set()

    async def submit(self, attachment: Attachment) -> SharedEntry | None:
        """Queue one attachment.

        Returns:
            The queued entry, or None if it was a duplicate URL.

        Raises:
            InvalidContentError: If the attachment cannot be queued.
            StorageError: If the shared store cannot be written.
        """
        if isinstance(attachment, UrlAttachment):
            return await self._submit_url(attachment.url)
        if isinstance(attachment, PdfAttachment):
            return await self._submit_pdf(Path(attachment.path))
        if isinstance(attachment, TextAttachment):
            return await self._append(SharedEntry(kind=EntryKind.TEXT, content=attachment.text))
        raise InvalidContentError(f"unsupported attachment: {type(attachment).__name__}")

    async def submit_all(self, attachments: Sequence[Attachment]) -> ShareResult:
        """Queue every attachment of one share action, then signal completion.

        A failing attachment is recorded and does not stop the others.
        """
        logger.info("Processing share action", attachments=len(attachments))
        results = await asyncio.gather(
            *[self.submit(a) for a in attachments],
            return_exceptions=True,
        )

        share_result = ShareResult()
        for attachment, result in zip(attachments, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Attachment dropped",
                    attachment=_describe(attachment),
                    error=str(result),
                )
                share_result.failed.append(
                    FailedAttachment(description=_describe(attachment), reason=str(result))
                )
            elif result is None:
                share_result.duplicates += 1
            else:
                share_result.queued.append(result)

        logger.info(
            "Share action complete",
            queued=len(share_result.queued),
            duplicates=share_result.duplicates,
            failed=len(share_result.failed),
        )
        if self._on_complete is not None:
            self._on_complete(share_result)
        return share_result

    async def _submit_url(self, url: str) -> SharedEntry | None:
        normalized = normalize_url(validate_url(url))
        if normalized in self._seen_urls:
            logger.info("Duplicate URL ignored", url=normalized)
            return None
        # Claimed before the first await so concurrent attachments see it.
        self._seen_urls.add(normalized)
        try:
            return await self._append(SharedEntry(kind=EntryKind.URL, content=normalized))
        except BaseException:
            self._seen_urls.discard(normalized)
            raise

    async def _submit_pdf(self, path: Path) -> SharedEntry:
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise InvalidContentError(f"cannot read PDF {path.name}: {e}") from e
        shared_path = await asyncio.to_thread(self._store.write_file, data, path.name)
        entry = SharedEntry(
            kind=EntryKind.PDF,
            content=str(shared_path),
            filename=shared_path.name,
            size=len(data),
        )
        return await self._append(entry)

    async def _append(self, entry: SharedEntry) -> SharedEntry:
        await asyncio.to_thread(self._store.append, entry)
        return entry

