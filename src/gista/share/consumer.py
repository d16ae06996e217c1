"""Main-application side of the hand-off queue."""

import asyncio
import uuid
from collections.abc import Callable, Sequence
from typing import Protocol

from gista.share.models import EntryKind, PendingItem, SharedEntry
from gista.share.store import SharedQueueStore, StorageError
from gista.utils.logging import get_logger

logger = get_logger(__name__)

NEW_CONTENT_NOTIFICATION = "NewSharedContentReceived"


class ContentNotifier(Protocol):
    """Receives the "new content available" signal."""

    def notify_new_content(self, items: Sequence[PendingItem]) -> None: ...


class LoggingNotifier:
    """Notifier that only records the signal in the log."""

    def notify_new_content(self, items: Sequence[PendingItem]) -> None:
        logger.info(
            "New shared content available",
            notification=NEW_CONTENT_NOTIFICATION,
            count=len(items),
        )


class QueueConsumer:
    """Drains the shared queue into an in-memory collection of pending items.

    Call ``drain_pending`` when the application starts and whenever it comes
    back to the foreground.
    """

    def __init__(
        self,
        store: SharedQueueStore,
        notifier: ContentNotifier | None = None,
    ) -> None:
        self._store = store
        self._notifier = notifier or LoggingNotifier()
        self._pending: list[PendingItem] = []
        self._subscribers: list[Callable[[Sequence[PendingItem]], None]] = []
        self._draining = False

    @property
    def pending_items(self) -> list[PendingItem]:
        return list(self._pending)

    @property
    def is_draining(self) -> bool:
        return self._draining

    def subscribe(self, callback: Callable[[Sequence[PendingItem]], None]) -> None:
        """Register a callback invoked with each batch of newly added items."""
        self._subscribers.append(callback)

    def remove(self, item_id: uuid.UUID) -> PendingItem | None:
        """Drop a handled item from the pending collection."""
        for index, item in enumerate(self._pending):
            if item.id == item_id:
                return self._pending.pop(index)
        return None

    async def drain_pending(self) -> list[PendingItem]:
        """Move every queued entry into the pending collection.

        Returns:
            The items added by this drain. A call made while another drain is
            in flight returns an empty list.
        """
        if self._draining:
            logger.debug("Drain already in progress")
            return []
        self._draining = True
        try:
            entries = await asyncio.to_thread(self._store.drain_all)
            added = self._add_entries(entries)
        finally:
            self._draining = False

        if added:
            for callback in self._subscribers:
                callback(added)
            self._notifier.notify_new_content(added)
        return added

    def _add_entries(self, entries: Sequence[SharedEntry]) -> list[PendingItem]:
        known = {item.content for item in self._pending}
        added: list[PendingItem] = []
        for entry in entries:
            if entry.kind is EntryKind.PDF and entry.filename:
                entry = self._locate_pdf(entry)
            if entry.content in known:
                logger.info("Skipping already pending item", kind=entry.kind.value)
                continue
            known.add(entry.content)
            added.append(PendingItem(entry=entry))

        self._pending.extend(added)
        logger.info("Pending items updated", added=len(added), total=len(self._pending))
        return added

    def _locate_pdf(self, entry: SharedEntry) -> SharedEntry:
        """Point a PDF entry at its copy in the shared directory."""
        try:
            path = self._store.file_path(entry.filename or "")
        except StorageError as e:
            logger.warning("Shared PDF has an unusable name", filename=entry.filename, error=str(e))
            return entry
        return SharedEntry(
            kind=entry.kind,
            content=str(path),
            filename=entry.filename,
            size=entry.size,
        )
