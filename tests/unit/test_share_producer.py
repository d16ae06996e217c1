"""Unit tests for the share-process queue producer."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from gista.share.models import EntryKind
from gista.share.producer import (
    MAX_URL_LENGTH,
    InvalidContentError,
    PdfAttachment,
    QueueProducer,
    ShareResult,
    TextAttachment,
    UrlAttachment,
    normalize_url,
    validate_url,
)
from gista.share.store import SharedQueueStore


class TestNormalizeUrl:
    """Tests for mobile URL normalization."""

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://m.example.com/a", "https://example.com/a"),
            ("https://en.m.wikipedia.org/wiki/X", "https://en.wikipedia.org/wiki/X"),
            ("https://mobile.twitter.com/u", "https://twitter.com/u"),
            ("https://example.com/m.html", "https://example.com/m.html"),
            ("  https://example.com  ", "https://example.com"),
            ("https://M.Example.com/a", "https://example.com/a"),
            ("https://m.example.com:8443/a?b=C#Top", "https://example.com:8443/a?b=C#Top"),
            (
                "https://example.com/share?u=https://m.other.com/a",
                "https://example.com/share?u=https://m.other.com/a",
            ),
            ("https://user@mobile.example.com/p", "https://user@example.com/p"),
        ],
    )
    def test_normalize(self, url: str, expected: str) -> None:
        """Mobile prefixes should map to the desktop host."""
        assert normalize_url(url) == expected


class TestValidateUrl:
    """Tests for URL validation."""

    @pytest.mark.parametrize(
        "url",
        [
            "ftp://example.com/file",
            "example.com",
            "https://",
            "javascript:alert(1)",
            "https://example.com:port/a",
        ],
    )
    def test_rejects(self, url: str) -> None:
        """Non-http(s) or host-less URLs should be rejected."""
        with pytest.raises(InvalidContentError):
            validate_url(url)

    def test_rejects_overlong(self) -> None:
        """URLs above the length limit should be rejected."""
        with pytest.raises(InvalidContentError):
            validate_url("https://example.com/" + "a" * MAX_URL_LENGTH)

    def test_accepts(self) -> None:
        """An ordinary https URL should pass unchanged."""
        assert validate_url("https://example.com/a?b=c") == "https://example.com/a?b=c"


class TestQueueProducer:
    """Tests for QueueProducer."""

    @pytest.fixture
    def store(self, tmp_path: Path) -> SharedQueueStore:
        """Create a store in a temporary shared directory."""
        return SharedQueueStore(tmp_path / "group")

    async def test_mobile_duplicate_queued_once(self, store: SharedQueueStore) -> None:
        """A mobile URL and its desktop form in one action should queue one entry."""
        producer = QueueProducer(store)

        result = await producer.submit_all(
            [UrlAttachment("https://m.example.com/a"), UrlAttachment("https://example.com/a")]
        )

        assert len(result.queued) == 1
        assert result.duplicates == 1
        assert [e.content for e in store.peek()] == ["https://example.com/a"]

    async def test_host_case_duplicate_queued_once(self, store: SharedQueueStore) -> None:
        """Host case should not defeat duplicate detection."""
        producer = QueueProducer(store)

        result = await producer.submit_all(
            [UrlAttachment("https://M.EXAMPLE.com/a"), UrlAttachment("https://example.com/a")]
        )

        assert result.duplicates == 1
        assert [e.content for e in store.peek()] == ["https://example.com/a"]

    async def test_duplicates_across_actions(self, store: SharedQueueStore) -> None:
        """A URL shared again by the same producer should be ignored."""
        producer = QueueProducer(store)

        first = await producer.submit(UrlAttachment("https://example.com/a"))
        second = await producer.submit(UrlAttachment("https://example.com/a"))

        assert first is not None
        assert second is None
        assert len(store.peek()) == 1

    async def test_failing_attachment_not_fatal(self, store: SharedQueueStore) -> None:
        """An invalid attachment should be recorded while the rest are queued."""
        on_complete = MagicMock()
        producer = QueueProducer(store, on_complete=on_complete)

        result = await producer.submit_all(
            [
                UrlAttachment("ftp://example.com/file"),
                TextAttachment("remember this"),
                UrlAttachment("https://example.com/b"),
            ]
        )

        assert len(result.failed) == 1
        assert result.failed[0].description == "ftp://example.com/file"
        assert {e.kind for e in result.queued} == {EntryKind.TEXT, EntryKind.URL}
        assert len(store.peek()) == 2
        on_complete.assert_called_once_with(result)

    async def test_completion_signalled_when_everything_fails(
        self, store: SharedQueueStore
    ) -> None:
        """Completion should still be signalled when nothing was queued."""
        on_complete = MagicMock()
        producer = QueueProducer(store, on_complete=on_complete)

        result = await producer.submit_all([UrlAttachment("not a url")])

        assert result.queued == []
        on_complete.assert_called_once()

    async def test_empty_action(self, store: SharedQueueStore) -> None:
        """An action without attachments should complete with an empty result."""
        on_complete = MagicMock()
        producer = QueueProducer(store, on_complete=on_complete)

        result = await producer.submit_all([])

        assert result == ShareResult()
        on_complete.assert_called_once_with(result)

    async def test_pdf_copied_to_shared_directory(
        self, store: SharedQueueStore, tmp_path: Path
    ) -> None:
        """A PDF should be copied into the shared directory and queued by path."""
        source = tmp_path / "paper.pdf"
        source.write_bytes(b"%PDF-1.7 content")
        producer = QueueProducer(store)

        entry = await producer.submit(PdfAttachment(source))

        assert entry is not None
        assert entry.kind is EntryKind.PDF
        assert entry.filename == "paper.pdf"
        assert entry.size == len(b"%PDF-1.7 content")
        assert Path(entry.content) == store.files_dir / "paper.pdf"
        assert Path(entry.content).read_bytes() == b"%PDF-1.7 content"
        assert store.peek() == [entry]

    async def test_same_named_pdfs_both_kept(
        self, store: SharedQueueStore, tmp_path: Path
    ) -> None:
        """Two PDFs with one base name in one action should point at separate files."""
        (tmp_path / "inbox").mkdir()
        (tmp_path / "downloads").mkdir()
        first = tmp_path / "inbox" / "report.pdf"
        second = tmp_path / "downloads" / "report.pdf"
        first.write_bytes(b"%PDF first")
        second.write_bytes(b"%PDF second")
        producer = QueueProducer(store)

        result = await producer.submit_all([PdfAttachment(first), PdfAttachment(second)])

        paths = {Path(e.content) for e in result.queued}
        assert len(paths) == 2
        assert {p.read_bytes() for p in paths} == {b"%PDF first", b"%PDF second"}
        assert {e.filename for e in result.queued} == {"report.pdf", "report (1).pdf"}

    async def test_missing_pdf_fails(self, store: SharedQueueStore, tmp_path: Path) -> None:
        """An unreadable PDF should be reported as invalid content."""
        producer = QueueProducer(store)

        with pytest.raises(InvalidContentError):
            await producer.submit(PdfAttachment(tmp_path / "gone.pdf"))
        assert store.peek() == []

    async def test_failed_append_releases_url(self, store: SharedQueueStore) -> None:
        """A URL whose append failed should be accepted on a later attempt."""
        producer = QueueProducer(store)
        real_append = store.append
        store.append = MagicMock(side_effect=OSError("disk full"))  # type: ignore[method-assign]

        with pytest.raises(OSError):
            await producer.submit(UrlAttachment("https://example.com/retry"))

        store.append = real_append  # type: ignore[method-assign]
        assert await producer.submit(UrlAttachment("https://example.com/retry")) is not None
