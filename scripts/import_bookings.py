"""
Import one booking CSV export from the command line.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from app.parsers.base import StructuralParseError
from app.parsers.registry import UnknownSourceError, get_default_registry
from app.repositories.booking_storage import (
    BookingStorageError,
    SourceNotRegisteredError,
    SqlAlchemyBookingStorage,
)
from app.services.booking_import_service import BookingPersistenceError, get_booking_import_service
from db.session import SessionLocal


def main() -> int:
    parser = argparse.ArgumentParser(description="Import a booking CSV export.")
    parser.add_argument("path", type=Path, help="CSV file to import.")
    parser.add_argument(
        "--source",
        dest="source_id",
        required=True,
        choices=get_default_registry().list_sources(),
        help="Source the file was exported from.",
    )
    parser.add_argument(
        "--file-name",
        dest="file_name",
        default=None,
        help="Name recorded in the import log (defaults to the file name).",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    try:
        content = args.path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        print(f"Cannot read {args.path}: {exc}", file=sys.stderr)
        return 2

    service = get_booking_import_service()
    with SessionLocal() as db:
        try:
            report = service.ingest(
                source_id=args.source_id,
                file_name=args.file_name or args.path.name,
                raw_content=content,
                storage=SqlAlchemyBookingStorage(db),
            )
        except (UnknownSourceError, SourceNotRegisteredError) as exc:
            print(str(exc), file=sys.stderr)
            return 2
        except StructuralParseError as exc:
            print(json.dumps(exc.to_dict(), indent=2, ensure_ascii=False), file=sys.stderr)
            return 1
        except BookingPersistenceError as exc:
            print(json.dumps(asdict(exc.report), indent=2, ensure_ascii=False), file=sys.stderr)
            return 1
        except BookingStorageError as exc:
            print(f"Storage unavailable: {exc}", file=sys.stderr)
            return 1

    print(json.dumps(asdict(report), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
