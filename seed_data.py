"""
Populate the database with demo accounts, students and three terms of marks.

Usage:
  python seed_data.py

Creates an admin and a teacher account, five students in each of grades
1, 3, 5, 7, 9 and 11, and a mark for every subject in every term of
SEED_YEAR (default 2024). Accounts that already exist are left alone.
"""

import os
import random
import sys
from datetime import datetime

from dotenv import load_dotenv

GRADES = [1, 3, 5, 7, 9, 11]
STUDENTS_PER_GRADE = 5
DEFAULT_YEAR = 2024

ADMIN = {'email': 'admin@school.com', 'password': 'Admin@123', 'name': 'System Administrator'}
TEACHER = {'email': 'teacher@school.com', 'password': 'Teacher@123', 'name': 'John Teacher'}
STUDENT_PASSWORD = 'Student@123'

STUDENT_NAMES = {
    1: ['Amara Silva', 'Bimal Perera', 'Chamari Fernando', 'Dilshan Rajapaksa', 'Erandi Wickrama'],
    3: ['Fathima Hassan', 'Gayan Mendis', 'Hiruni Jayawardena', 'Isuru Bandara', 'Janaki Wijesinghe'],
    5: ['Kasun Rathnayake', 'Lakshmi Gunawardena', 'Mahesh Dissanayake', 'Nayomi Seneviratne', 'Osanda Kumara'],
    7: ['Priyanka Samaraweera', 'Qasim Ahmed', 'Rashini Karunaratne', 'Saman Liyanage', 'Tharushi Madushani'],
    9: ['Udara Pathirana', 'Vindya Herath', 'Wasantha Gunasekara', 'Ximena Rodrigo', 'Yasiru Tennakoon'],
    11: ['Zara Fonseka', 'Ashan Wijeratne', 'Bhagya Senanayake', 'Chathura Ranasinghe', 'Dinusha Amarasinghe'],
}

# Month each term's marks are dated in.
TERM_MONTHS = {'Term 1': 4, 'Term 2': 8, 'Term 3': 12}


def student_email(grade, index):
    return f'student.grade{grade}.{index}@school.com'


def student_name(grade, index):
    names = STUDENT_NAMES.get(grade) or []
    if index <= len(names):
        return names[index - 1]
    return f'Grade {grade} Student {index}'


def generate_random_mark(grade, rng=random):
    """Higher grades average a little lower."""
    base = 75 if grade <= 5 else 70 if grade <= 9 else 65
    score = round(base + (rng.random() - 0.5) * 25)
    return max(35, min(100, score))


def generate_comment(score):
    if score >= 90:
        return 'Excellent performance! Keep up the great work.'
    if score >= 80:
        return 'Very good work. Continue to strive for excellence.'
    if score >= 70:
        return 'Good effort. There is room for improvement.'
    if score >= 60:
        return 'Satisfactory work. Please focus more on studies.'
    if score >= 50:
        return 'Needs improvement. Additional support recommended.'
    return 'Requires immediate attention and extra help.'


def term_timestamp(year, term, offset):
    """Milliseconds inside the term's month; offset keeps marks distinct."""
    base = datetime(year, TERM_MONTHS.get(term, 1), 15).timestamp() * 1000
    return int(base) + offset


def ensure_user(email, password, name, role, grade=None, subjects=None):
    """Return (uid, created). Existing accounts are reused as-is."""
    import db

    account = db.get_account_by_email(email)
    if account:
        print(f"   ↷ {email} already exists, skipping")
        return account['uid'], False
    user, err = db.register_user(email, password, name, role=role, grade=grade, subjects=subjects)
    if err:
        raise RuntimeError(f"Could not create {email}: {err}")
    print(f"   ✓ Created {user['role']}: {name} ({email})")
    return user['uid'], True


def seed(year=DEFAULT_YEAR, grades=None, per_grade=STUDENTS_PER_GRADE, rng=None):
    """Create the demo data. Returns a summary dict."""
    import db

    rng = rng or random.Random()
    grades = GRADES if grades is None else grades

    db.init_db()
    db.initialize_subjects()
    subject_names = list(db.DEFAULT_SUBJECTS)

    print("\n👑 Creating staff accounts...")
    ensure_user(ADMIN['email'], ADMIN['password'], ADMIN['name'], 'teacher', subjects=subject_names)
    teacher_uid, _ = ensure_user(TEACHER['email'], TEACHER['password'], TEACHER['name'], 'teacher', subjects=subject_names)

    subject_ids = list(db.get_all_subjects())
    summary = {'students': 0, 'marks': 0, 'subjects': len(subject_ids)}
    offset = 0

    for grade in grades:
        print(f"\n📝 Grade {grade}...")
        for index in range(1, per_grade + 1):
            uid, created = ensure_user(
                student_email(grade, index), STUDENT_PASSWORD, student_name(grade, index), 'student', grade=grade,
            )
            if not created:
                continue
            summary['students'] += 1
            for subject_id in subject_ids:
                for term in db.TERMS:
                    score = generate_random_mark(grade, rng)
                    offset += 1
                    db.add_mark({
                        'student_id': uid,
                        'subject_id': subject_id,
                        'grade': grade,
                        'score': score,
                        'comment': generate_comment(score),
                        'teacher_id': teacher_uid,
                        'timestamp': term_timestamp(year, term, offset),
                        'year': year,
                        'term': term,
                    })
                    summary['marks'] += 1
    return summary


def main():
    load_dotenv()
    year = int(os.environ.get('SEED_YEAR') or DEFAULT_YEAR)

    try:
        print("🚀 Generating test data...")
        summary = seed(year=year)
    except Exception as e:
        print(f"✗ Test data generation failed: {e}", file=sys.stderr)
        sys.exit(1)

    print("\n🎉 Test data generation completed.")
    print(f"   Admin:    {ADMIN['email']} (password: {ADMIN['password']})")
    print(f"   Teacher:  {TEACHER['email']} (password: {TEACHER['password']})")
    print(f"   Students: {summary['students']} new across grades {', '.join(str(g) for g in GRADES)}")
    print(f"   Marks:    {summary['marks']} new for {year}")
    print(f"   Subjects: {summary['subjects']}")
    print(f"   Student login: student.grade[X].[1-{STUDENTS_PER_GRADE}]@school.com / {STUDENT_PASSWORD}")
    return summary


if __name__ == '__main__':
    main()
