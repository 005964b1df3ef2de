"""
Whole-database consistency sweep.

Reads every user, mark and subject into memory and works out which records to
delete or patch. Nothing stops bad data at write time, so this is the only
place orphaned and duplicate records get cleaned up.
"""

import logging
from datetime import datetime

import db


def empty_results():
    return {
        'duplicates_removed': 0,
        'null_values_fixed': 0,
        'inconsistencies_fixed': 0,
        'empty_fields_fixed': 0,
    }


def plan_optimization(users, marks, subjects, now_ms=None, current_year=None):
    """Decide the repairs for one snapshot of the database.

    Returns (plan, results). The plan holds user/mark deletions and per-record
    field updates; a deletion always wins over an update to the same record.
    """
    now_ms = now_ms if now_ms is not None else db.now_ms()
    current_year = current_year if current_year is not None else datetime.now().year
    results = empty_results()
    plan = {
        'delete_users': set(),
        'update_users': {},
        'delete_marks': set(),
        'update_marks': {},
    }

    processed_emails = {}
    for uid, user in users.items():
        if user.get('role') != 'student':
            continue
        email = (user.get('email') or '').strip().lower()
        if not email:
            plan['delete_users'].add(uid)
            results['inconsistencies_fixed'] += 1
            continue

        original_uid = processed_emails.get(email)
        if original_uid:
            plan['delete_users'].add(uid)
            results['duplicates_removed'] += 1
            for mark_id, mark in marks.items():
                if mark.get('student_id') == uid:
                    plan['update_marks'].setdefault(mark_id, {})['student_id'] = original_uid
                    results['inconsistencies_fixed'] += 1
            continue

        processed_emails[email] = uid
        if not user.get('name'):
            plan['update_users'].setdefault(uid, {})['name'] = email.split('@')[0]
            results['empty_fields_fixed'] += 1
        if not db.is_valid_grade(user.get('grade')):
            plan['update_users'].setdefault(uid, {})['grade'] = db.MIN_GRADE
            results['empty_fields_fixed'] += 1

    seen_marks = set()
    for mark_id, mark in marks.items():
        key = (mark.get('student_id'), mark.get('subject_id'), mark.get('timestamp'))
        if key in seen_marks:
            plan['delete_marks'].add(mark_id)
            results['duplicates_removed'] += 1
            continue
        seen_marks.add(key)

        if mark.get('score') is None:
            plan['update_marks'].setdefault(mark_id, {})['score'] = 0
            results['null_values_fixed'] += 1

        student = users.get(mark.get('student_id'))
        student_email = ((student or {}).get('email') or '').strip().lower()
        if not student or student_email not in processed_emails:
            plan['delete_marks'].add(mark_id)
            results['inconsistencies_fixed'] += 1
            continue

        if mark.get('subject_id') not in subjects:
            plan['delete_marks'].add(mark_id)
            results['inconsistencies_fixed'] += 1
            continue

        if not mark.get('timestamp'):
            plan['update_marks'].setdefault(mark_id, {})['timestamp'] = now_ms
            results['empty_fields_fixed'] += 1
        if not mark.get('term'):
            plan['update_marks'].setdefault(mark_id, {})['term'] = db.TERMS[0]
            results['empty_fields_fixed'] += 1
        if not mark.get('year'):
            plan['update_marks'].setdefault(mark_id, {})['year'] = current_year
            results['empty_fields_fixed'] += 1

    for uid in plan['delete_users']:
        plan['update_users'].pop(uid, None)
    for mark_id in plan['delete_marks']:
        plan['update_marks'].pop(mark_id, None)
    return plan, results


def apply_plan(plan):
    for uid in plan['delete_users']:
        db.delete_user(uid)
    for uid, fields in plan['update_users'].items():
        db.update_user(uid, fields)
    for mark_id in plan['delete_marks']:
        db.delete_mark(mark_id)
    for mark_id, fields in plan['update_marks'].items():
        db.update_mark(mark_id, fields, touch_timestamp=False)


def optimize_database(dry_run=False):
    """Run the sweep against the live database. Returns the counters."""
    users = db.get_all_users()
    marks = db.get_all_marks()
    subjects = db.get_all_subjects()
    plan, results = plan_optimization(users, marks, subjects)
    if not dry_run:
        apply_plan(plan)
        logging.info("Database optimization applied: %s", results)
    return results


def find_integrity_issues(users, marks, subjects):
    """Human-readable problems in one snapshot of the database."""
    issues = []
    students = [u for u in users.values() if u.get('role') == 'student']
    expected_marks = len(subjects) * len(db.TERMS)
    for student in students:
        count = sum(1 for m in marks.values() if m.get('student_id') == student['uid'])
        if count != expected_marks:
            issues.append(f"{student.get('name') or student['uid']} has {count} marks, expected {expected_marks}")

    for mark_id, mark in marks.items():
        student = users.get(mark.get('student_id'))
        if not student:
            issues.append(f"Mark {mark_id} references non-existent student {mark.get('student_id')}")
        elif student.get('role') != 'student':
            issues.append(f"Mark {mark_id} references {mark.get('student_id')} whose role is {student.get('role')}")
        if mark.get('subject_id') not in subjects:
            issues.append(f"Mark {mark_id} references non-existent subject {mark.get('subject_id')}")
        score = mark.get('score')
        if score is None:
            issues.append(f"Mark {mark_id} has no score")
        elif not db.MIN_SCORE <= score <= db.MAX_SCORE:
            issues.append(f"Mark {mark_id} has score {score:g} outside {db.MIN_SCORE}-{db.MAX_SCORE}")

    for uid, user in users.items():
        if user.get('role') == 'teacher' and db.is_student_email(user.get('email')):
            issues.append(f"User {uid} has a student email but teacher role")
    return issues
