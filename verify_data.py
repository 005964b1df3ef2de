"""
Print a summary of the stored data and any integrity problems.

Usage:
  python verify_data.py

Integrity problems are reported but do not fail the run; the exit code is 1
only when the database could not be read.
"""

import sys
from collections import Counter

from dotenv import load_dotenv


def collect_report():
    """Read the whole database and summarize it as a dict."""
    import db
    from integrity import find_integrity_issues

    accounts = db.list_accounts()
    users = db.get_all_users()
    subjects = db.get_all_subjects()
    marks = db.get_all_marks()

    students = [u for u in users.values() if u.get('role') == 'student']
    sample = None
    if students:
        first = sorted(students, key=lambda u: (u.get('grade') or 0, u.get('name') or ''))[0]
        first_marks = [m for m in marks.values() if m.get('student_id') == first['uid']]
        sample = {'student': first, 'mark_count': len(first_marks), 'mark': first_marks[0] if first_marks else None}

    return {
        'accounts': len(accounts),
        'users': len(users),
        'roles': Counter(u.get('role') for u in users.values()),
        'students_by_grade': Counter(u.get('grade') for u in students),
        'subjects': subjects,
        'marks': len(marks),
        'marks_by_grade': Counter(m.get('grade') for m in marks.values()),
        'marks_by_term': Counter(m.get('term') or '(none)' for m in marks.values()),
        'sample': sample,
        'issues': find_integrity_issues(users, marks, subjects),
    }


def print_report(report):
    print(f"\n👥 Accounts: {report['accounts']}  Users: {report['users']}")
    for role, count in sorted(report['roles'].items(), key=lambda item: str(item[0])):
        print(f"   {role}: {count}")

    print("\n📚 Students by grade:")
    for grade, count in sorted(report['students_by_grade'].items(), key=lambda item: item[0] or 0):
        print(f"   Grade {grade}: {count}")

    print(f"\n📖 Subjects: {len(report['subjects'])}")
    for subject_id, subject in report['subjects'].items():
        scope = f"Grade {subject['grade']}" if subject['grade'] else 'All grades'
        print(f"   {subject_id}: {subject['name']} ({'Active' if subject['active'] else 'Inactive'}, {scope})")

    print(f"\n📝 Marks: {report['marks']}")
    for grade, count in sorted(report['marks_by_grade'].items(), key=lambda item: item[0] or 0):
        print(f"   Grade {grade}: {count}")
    for term, count in sorted(report['marks_by_term'].items()):
        print(f"   {term}: {count}")

    sample = report['sample']
    if sample:
        student = sample['student']
        print(f"\n🔍 Sample student: {student.get('name')} (Grade {student.get('grade')}), {sample['mark_count']} marks")
        mark = sample['mark']
        if mark:
            subject = report['subjects'].get(mark.get('subject_id'))
            subject_label = subject['name'] if subject else 'Unknown Subject'
            print(f"   {mark.get('score')}/100 in {subject_label} ({mark.get('term')})")
            print(f"   Comment: {mark.get('comment') or '-'}")

    print("\n🔒 Integrity check:")
    for issue in report['issues']:
        print(f"   ⚠️  {issue}")
    if not report['issues']:
        print("   ✓ No data integrity issues found")

    if report['issues'] or report['accounts'] != report['users']:
        print(f"\n⚠️  {len(report['issues'])} issue(s); {report['accounts']} accounts vs {report['users']} users.")
    else:
        print("\n🎉 All data verified successfully.")


def main():
    load_dotenv()
    try:
        print("🔍 Verifying data...")
        report = collect_report()
    except Exception as e:
        print(f"✗ Verification failed: {e}", file=sys.stderr)
        sys.exit(1)
    print_report(report)
    return report


if __name__ == '__main__':
    main()
