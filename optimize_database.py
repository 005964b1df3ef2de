"""
Remove duplicate and orphaned records and fill in missing fields.

Usage:
  python optimize_database.py [--dry-run]
"""

import argparse
import sys

from dotenv import load_dotenv


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Clean up duplicate, orphaned and incomplete records.")
    parser.add_argument("--dry-run", action="store_true", help="Report what would change without writing")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    load_dotenv()
    from integrity import optimize_database

    try:
        print("🔧 Optimizing database..." + (" (dry run)" if args.dry_run else ""))
        results = optimize_database(dry_run=args.dry_run)
    except Exception as e:
        print(f"✗ Optimization failed: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"   Duplicates removed:     {results['duplicates_removed']}")
    print(f"   Null values fixed:      {results['null_values_fixed']}")
    print(f"   Inconsistencies fixed:  {results['inconsistencies_fixed']}")
    print(f"   Empty fields fixed:     {results['empty_fields_fixed']}")
    if args.dry_run:
        print("Dry run complete. No data written.")
    else:
        print("✓ Optimization complete.")
    return results


if __name__ == '__main__':
    main()
