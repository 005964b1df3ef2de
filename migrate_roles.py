"""
Fix stored user roles.

Usage:
  python migrate_roles.py [--file assignments.json] [--dry-run]

Every user record is re-checked: 'admin' becomes 'teacher', accounts with a
student-style email are forced to 'student', and students without a valid
grade get grade 1. An optional JSON file of explicit assignments, a list of
{"email", "role", "name", "grade"} objects, is applied first.
"""

import argparse
import json
import sys

from dotenv import load_dotenv


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Correct user roles and grades.")
    parser.add_argument("--file", help="JSON list of explicit {email, role, name, grade} assignments")
    parser.add_argument("--dry-run", action="store_true", help="Report changes without writing")
    return parser.parse_args(argv)


def load_assignments(path):
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, list) or not all(isinstance(item, dict) and item.get('email') for item in data):
        raise ValueError(f"{path} must contain a list of objects with an 'email' key.")
    return data


def apply_assignments(assignments, dry_run=False):
    """Write explicit role assignments. Returns (applied, missing emails)."""
    import db

    applied = 0
    missing = []
    for item in assignments:
        account = db.get_account_by_email(item['email'])
        if not account:
            missing.append(item['email'])
            continue
        record = db.get_user(account['uid']) or {'uid': account['uid'], 'email': account['email']}
        for key in ('role', 'name', 'grade'):
            if item.get(key) is not None:
                record[key] = item[key]
        if not dry_run:
            db.save_user(record)
        applied += 1
        print(f"   ✓ {item['email']}: role={db.normalize_user_record(record)['role']}")
    return applied, missing


def plan_role_fixes(users):
    """{uid: normalized record} for every user whose stored record would change."""
    import db

    changes = {}
    for uid, user in users.items():
        normalized = db.normalize_user_record(user)
        if normalized.get('role') != user.get('role') or normalized.get('grade') != user.get('grade'):
            changes[uid] = normalized
    return changes


def main(argv=None):
    args = parse_args(argv)
    load_dotenv()
    import db

    try:
        if args.file:
            print(f"📄 Applying assignments from {args.file}...")
            applied, missing = apply_assignments(load_assignments(args.file), dry_run=args.dry_run)
            print(f"   {applied} assignment(s) applied.")
            for email in missing:
                print(f"   ⚠️  No account for {email}")

        print("🔍 Checking stored roles...")
        users = db.get_all_users()
        changes = plan_role_fixes(users)
        for uid, record in changes.items():
            before = users[uid]
            print(f"   {record.get('email') or uid}: {before.get('role')}/{before.get('grade')} -> {record['role']}/{record.get('grade')}")
            if not args.dry_run:
                db.save_user(record)
    except Exception as e:
        print(f"✗ Role migration failed: {e}", file=sys.stderr)
        sys.exit(1)

    if args.dry_run:
        print(f"Dry run complete. {len(changes)} user(s) would change.")
    else:
        print(f"✓ {len(changes)} user(s) updated.")
    return changes


if __name__ == '__main__':
    main()
