"""Unit tests for the main-application queue consumer."""

import asyncio
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from gista.share.consumer import QueueConsumer
from gista.share.models import EntryKind, SharedEntry
from gista.share.store import SharedQueueStore


class TestQueueConsumer:
    """Tests for QueueConsumer."""

    @pytest.fixture
    def store(self, tmp_path: Path) -> SharedQueueStore:
        """Create a store in a temporary shared directory."""
        return SharedQueueStore(tmp_path / "group")

    async def test_drain_moves_entries(self, store: SharedQueueStore) -> None:
        """Drained entries should become pending items and leave the queue."""
        store.append(SharedEntry(kind=EntryKind.URL, content="https://example.com/a"))
        store.append(SharedEntry(kind=EntryKind.TEXT, content="note"))
        consumer = QueueConsumer(store, notifier=MagicMock())

        added = await consumer.drain_pending()

        assert [i.content for i in added] == ["https://example.com/a", "note"]
        assert [i.content for i in consumer.pending_items] == ["https://example.com/a", "note"]
        assert store.peek() == []

    async def test_empty_drain_is_silent(self, store: SharedQueueStore) -> None:
        """Draining nothing should not notify."""
        notifier = MagicMock()
        callback = MagicMock()
        consumer = QueueConsumer(store, notifier=notifier)
        consumer.subscribe(callback)

        assert await consumer.drain_pending() == []

        notifier.notify_new_content.assert_not_called()
        callback.assert_not_called()

    async def test_notifies_subscribers(self, store: SharedQueueStore) -> None:
        """New items should reach subscribers and the notifier once."""
        store.append(SharedEntry(kind=EntryKind.TEXT, content="note"))
        notifier = MagicMock()
        callback = MagicMock()
        consumer = QueueConsumer(store, notifier=notifier)
        consumer.subscribe(callback)

        added = await consumer.drain_pending()

        callback.assert_called_once_with(added)
        notifier.notify_new_content.assert_called_once_with(added)

    async def test_second_drain_ignored_while_running(self, store: SharedQueueStore) -> None:
        """A drain started while another is in flight should return nothing."""
        store.append(SharedEntry(kind=EntryKind.TEXT, content="note"))
        consumer = QueueConsumer(store, notifier=MagicMock())

        first, second = await asyncio.gather(consumer.drain_pending(), consumer.drain_pending())

        assert len(first) == 1
        assert second == []
        assert len(consumer.pending_items) == 1
        assert not consumer.is_draining

    async def test_already_pending_content_skipped(self, store: SharedQueueStore) -> None:
        """Content already held as pending should not be added twice."""
        consumer = QueueConsumer(store, notifier=MagicMock())
        store.append(SharedEntry(kind=EntryKind.URL, content="https://example.com/a"))
        await consumer.drain_pending()

        store.append(SharedEntry(kind=EntryKind.URL, content="https://example.com/a"))
        added = await consumer.drain_pending()

        assert added == []
        assert len(consumer.pending_items) == 1
        assert store.peek() == []

    async def test_pdf_pointed_at_shared_copy(self, store: SharedQueueStore) -> None:
        """PDF items should resolve to the file in the shared directory."""
        path = store.write_file(b"%PDF", "doc.pdf")
        store.append(
            SharedEntry(kind=EntryKind.PDF, content="/elsewhere/doc.pdf", filename="doc.pdf", size=4)
        )
        consumer = QueueConsumer(store, notifier=MagicMock())

        added = await consumer.drain_pending()

        assert added[0].content == str(path)
        assert added[0].filename == "doc.pdf"
        assert store.read_file(added[0].content) == b"%PDF"

    async def test_remove(self, store: SharedQueueStore) -> None:
        """Removing an item should drop it from the pending collection."""
        store.append(SharedEntry(kind=EntryKind.TEXT, content="note"))
        consumer = QueueConsumer(store, notifier=MagicMock())
        added = await consumer.drain_pending()

        removed = consumer.remove(added[0].id)

        assert removed == added[0]
        assert consumer.pending_items == []
        assert consumer.remove(added[0].id) is None

    async def test_default_notifier(self, store: SharedQueueStore) -> None:
        """Without a notifier the drain should still complete."""
        store.append(SharedEntry(kind=EntryKind.TEXT, content="note"))
        consumer = QueueConsumer(store)

        assert len(await consumer.drain_pending()) == 1
