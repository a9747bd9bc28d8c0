"""Operator entry point for retrying deletion of orphaned media."""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import dataclass

from src.cms.config import load_config
from src.cms.logging import configure_logging
from src.cms.media.media_store import ImageKitStore
from src.cms.media.orphan_cleanup import retry_orphan_deletions
from src.cms.media.orphan_repository import OrphanRepository


@dataclass(slots=True)
class OrphanCleanupSummary:
    pending: int
    removed: int
    failed: int
    dry_run: bool


def perform_cleanup(*, dry_run: bool, limit: int | None = None) -> OrphanCleanupSummary:
    """Retry recorded deletions and return summary counters."""
    config = load_config()
    orphan_repo = OrphanRepository(config.session_factory)

    if dry_run:
        pending = orphan_repo.list_pending(limit, retryable_only=True)
        return OrphanCleanupSummary(pending=len(pending), removed=0, failed=0, dry_run=True)

    store = ImageKitStore(config.media_store)
    sweep = asyncio.run(retry_orphan_deletions(orphan_repo, store, limit=limit))
    return OrphanCleanupSummary(
        pending=sweep.pending, removed=sweep.removed, failed=sweep.failed, dry_run=False
    )


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Retry deletion of orphaned remote media.")
    parser.add_argument("--dry-run", action="store_true", help="Only report pending orphans.")
    parser.add_argument("--limit", type=int, default=None, help="Process at most N orphans.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    configure_logging(json_output=False)
    try:
        summary = perform_cleanup(dry_run=args.dry_run, limit=args.limit)
    except Exception as exc:
        print(f"orphan cleanup failed: {exc}", file=sys.stderr)
        return 2

    if summary.dry_run:
        print(f"orphan cleanup dry-run, pending={summary.pending}", file=sys.stdout)
    else:
        print(
            f"orphan cleanup done, pending={summary.pending}, "
            f"removed={summary.removed}, failed={summary.failed}",
            file=sys.stdout,
        )
    return 1 if summary.failed else 0


if __name__ == "__main__":
    sys.exit(main())
