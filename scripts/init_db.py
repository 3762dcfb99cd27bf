#!/usr/bin/env python3
"""
Database setup
Creates the event and registration tables, indexes and the capacity trigger.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from event_registration.services.storage_service import open_database  # noqa: E402
from event_registration.utils.config import load_settings  # noqa: E402


def main():
    db_path = sys.argv[1] if len(sys.argv) > 1 else load_settings().db_path

    print(f"🔍 Initialising {db_path}...")
    with open_database(db_path) as db:
        columns = db.table_columns("event")

    if "max_attendees" in columns:
        print("   ✅ Capacity limits enforced by storage")
    else:
        print("   ⚠️  event.max_attendees missing: capacity limits disabled")
    print("✅ Database ready")
    return 0


if __name__ == "__main__":
    sys.exit(main())
