#!/usr/bin/env python3
"""
Registration CSV export
Writes every registration, newest first, as CSV to a file or stdout.
"""

import argparse
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from event_registration.services.export_service import export_filename, load_registrations, to_csv  # noqa: E402
from event_registration.services.registration_service import RegistrationStore  # noqa: E402
from event_registration.services.storage_service import open_database  # noqa: E402
from event_registration.utils.config import load_settings  # noqa: E402


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Export event registrations to CSV")
    parser.add_argument("--db", help="SQLite database path (default: EVENT_REGISTRATION_DB)")
    parser.add_argument(
        "--output",
        help="Output file, '-' for stdout (default: event_registrations_<timestamp>.csv)",
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    db_path = args.db or load_settings().db_path

    with open_database(db_path) as db:
        rows, error_msg = load_registrations(RegistrationStore(db))

    if error_msg:
        print(f"❌ {error_msg}", file=sys.stderr)
        return 1

    content = to_csv(rows)
    if args.output == "-":
        sys.stdout.write(content)
        return 0

    output = Path(args.output or export_filename(datetime.now()))
    output.write_text(content, encoding="utf-8", newline="")
    print(f"✅ Exported {len(rows)} registrations to {output}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
