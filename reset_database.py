"""
Wipe every account, user, mark and subject, then rebuild the subject catalog.

Usage:
  python reset_database.py --yes
"""

import argparse
import sys

from dotenv import load_dotenv


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Delete all data and re-create the default subjects.")
    parser.add_argument("--yes", action="store_true", help="Confirm the destructive reset")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    if not args.yes:
        print("Refusing to reset without --yes. This deletes ALL accounts, users, marks and subjects.", file=sys.stderr)
        sys.exit(1)

    load_dotenv()
    import db

    try:
        print("🔄 Resetting database...")
        added = db.reset_database()
        print("✓ All accounts, users, marks and subjects deleted.")
        print(f"✓ Initialized {added} subjects.")
    except Exception as e:
        print(f"✗ Database reset failed: {e}", file=sys.stderr)
        sys.exit(1)
    return added


if __name__ == "__main__":
    main()
