#!/usr/bin/env python3
"""
Delete locally stored images older than a retention window.

Usage:
  .venv/bin/python scripts/cleanup_images.py [--hours 24] [--dir ./uploads/images]

Notes:
- Only applies to the local storage backend.
- Meant to be run from cron; exit code 0 unless the directory is unusable.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.core.config import settings  # noqa: E402
from app.infrastructure.adapters.blob_sink_local import LocalFileBlobSink  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description="Remove stored images older than N hours")
    parser.add_argument(
        "--hours", type=float, default=settings.cleanup_max_age_hours, help="Max age in hours"
    )
    parser.add_argument(
        "--dir", type=str, default=settings.upload_dir, help="Local upload directory"
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format=settings.log_format,
        datefmt=settings.log_date_format,
    )

    root = Path(args.dir)
    if root.exists() and not root.is_dir():
        print(f"Not a directory: {root}", file=sys.stderr)
        return 1

    removed = LocalFileBlobSink(root_dir=str(root)).cleanup_older_than(args.hours)
    print(f"removed={removed} dir={root} max_age_hours={args.hours}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
