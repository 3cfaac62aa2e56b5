#!/usr/bin/env python3
"""Write the attachments of a decrypted backup directory to individual files."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from core.config import get_settings
from core.services import MediaDumpError, MediaDumpOrchestrator


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("backup_dir", help="Directory holding the decrypted database and attachment files")
    parser.add_argument("output_dir", help="Directory the attachments are written to")
    parser.add_argument(
        "--database",
        default=settings.export.database_filename,
        help=f"Database file name inside backup_dir (default: {settings.export.database_filename})",
    )
    parser.add_argument(
        "--thread",
        dest="threads",
        type=int,
        action="append",
        default=[],
        help="Only export attachments of this thread id (repeatable)",
    )
    parser.add_argument(
        "--date-range",
        dest="date_ranges",
        nargs=2,
        metavar=("START", "END"),
        action="append",
        default=[],
        help="Only export attachments received in this range, as YYYY-MM-DD[ HH:MM:SS] or epoch ms (repeatable)",
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        default=settings.export.overwrite,
        help="Clear output_dir first when it is not empty",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log queries and per-file progress")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    orchestrator = MediaDumpOrchestrator.from_backup_directory(Path(args.backup_dir), args.database)
    try:
        result = orchestrator.dump(
            Path(args.output_dir),
            thread_ids=args.threads,
            date_ranges=args.date_ranges,
            overwrite=args.overwrite,
        )
    except MediaDumpError as exc:
        logging.getLogger(__name__).error(str(exc))
        return 1
    print(f"Wrote {result.written} of {result.total} attachments ({result.filtered} filtered, {result.skipped} skipped)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
