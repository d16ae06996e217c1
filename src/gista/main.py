"""Command line entry point for Gista."""

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from pathlib import Path

from gista import __version__
from gista.config import get_settings
from gista.errors import GistaError
from gista.services.gista import GistaService
from gista.share.consumer import QueueConsumer
from gista.share.producer import (
    Attachment,
    PdfAttachment,
    QueueProducer,
    TextAttachment,
    UrlAttachment,
)
from gista.share.store import SharedQueueStore, StorageError
from gista.utils.logging import get_logger, setup_logging


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gista", description="Capture content for Gista and talk to its backend."
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    share = subparsers.add_parser("share", help="Queue content for the main application")
    share.add_argument("--url", action="append", default=[], help="URL to share")
    share.add_argument("--pdf", action="append", default=[], type=Path, help="PDF file to share")
    share.add_argument("--text", action="append", default=[], help="Text to share")

    subparsers.add_parser("drain", help="Move queued content into pending items")

    gists = subparsers.add_parser("gists", help="List a user's gists")
    gists.add_argument("user_id", help="Backend user id")

    return parser


async def _share(args: argparse.Namespace, store: SharedQueueStore) -> int:
    attachments: list[Attachment] = [
        *(UrlAttachment(u) for u in args.url),
        *(PdfAttachment(p) for p in args.pdf),
        *(TextAttachment(t) for t in args.text),
    ]
    producer = QueueProducer(store)
    result = await producer.submit_all(attachments)
    print(
        json.dumps(
            {
                "queued": [e.to_dict() for e in result.queued],
                "duplicates": result.duplicates,
                "failed": [{"attachment": f.description, "reason": f.reason} for f in result.failed],
            },
            indent=2,
        )
    )
    return 1 if result.failed and not result.queued else 0


async def _drain(store: SharedQueueStore) -> int:
    consumer = QueueConsumer(store)
    items = await consumer.drain_pending()
    print(json.dumps([item.to_dict() for item in items], indent=2))
    return 0


async def _gists(user_id: str) -> int:
    async with GistaService.from_settings(get_settings()) as service:
        gists = await service.fetch_gists(user_id)
    print(json.dumps([g.to_api() for g in gists], indent=2))
    return 0


async def run(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level, process="share" if args.command == "share" else "main")
    logger = get_logger(__name__)
    logger.info("Gista starting", version=__version__, command=args.command)

    try:
        if args.command == "gists":
            return await _gists(args.user_id)
        store = SharedQueueStore(settings.app_group_dir)
        if args.command == "share":
            return await _share(args, store)
        return await _drain(store)
    except (GistaError, StorageError) as e:
        logger.error("Command failed", command=args.command, error=str(e))
        print(f"error: {e}", file=sys.stderr)
        return 1


def main() -> None:
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
