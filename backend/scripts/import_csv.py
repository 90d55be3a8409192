#!/usr/bin/env python
"""
Import a Toggl detailed-report or Tempo timesheet CSV export.
Run with: cd backend; python scripts/import_csv.py path/to/toggl_export.csv [--timezone Europe/Brussels]
Uses DATABASE_URL from .env.
"""

import argparse
import logging
import os
import sys
from pathlib import Path

# Add app to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.config import BatchPolicy, settings
from app.database import SessionLocal
from app.services.csv_import import CsvImportService
from app.utils.log_setup import configure_logging

log = logging.getLogger("import_csv")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("path", type=Path, help="CSV file; the name decides the format (toggl/tempo)")
    parser.add_argument("--timezone", default="UTC", help="IANA timezone the export's wall-clock times are in")
    parser.add_argument(
        "--policy",
        choices=[p.value for p in BatchPolicy],
        default=BatchPolicy.BEST_EFFORT.value,
        help="all_or_nothing rolls back the whole file on the first failing row",
    )
    args = parser.parse_args(argv)

    configure_logging(settings.log_level)

    content = args.path.read_text(encoding="utf-8-sig")
    db = SessionLocal()
    try:
        result = CsvImportService(db, BatchPolicy(args.policy)).import_content(
            content, args.path.name, tz=args.timezone
        )
    except ValueError as e:
        log.error(str(e))
        return 2
    finally:
        db.close()

    print(f"{result.adapter}: parsed {result.parsed}, imported {result.imported} "
          f"(created {result.created}, updated {result.updated})")
    for error in result.errors:
        print(f"  error: {error}")
    return 1 if result.errors else 0


if __name__ == "__main__":
    sys.exit(main())
