"""
Data access for the student mark system.

Accounts (login credentials), users (profile records), subjects and marks are
kept in four flat tables with no foreign keys between them. Queries are
written with '?' placeholders and adapted for PostgreSQL when needed, so the
same code runs against a production PostgreSQL database and a local SQLite
file.
"""

import json
import logging
import math
import os
import secrets
import sqlite3
import time
from contextlib import contextmanager
from datetime import datetime

from dotenv import load_dotenv
from werkzeug.security import generate_password_hash, check_password_hash

load_dotenv()

DATABASE_URL = os.environ.get('DATABASE_URL', '').strip()
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL not found. Set it in .env")
if not DATABASE_URL.startswith(('postgres://', 'postgresql://', 'sqlite:///')):
    raise RuntimeError("DATABASE_URL must be a postgresql:// connection string or a sqlite:/// file path.")

USE_SQLITE = DATABASE_URL.startswith('sqlite:///')
SQLITE_PATH = DATABASE_URL[len('sqlite:///'):] if USE_SQLITE else ''

TERMS = ('Term 1', 'Term 2', 'Term 3')
ROLES = ('student', 'teacher')
STUDENT_EMAIL_MARKERS = ('student', 'pupil', 'grade')
MIN_GRADE = 1
MAX_GRADE = 13
MIN_SCORE = 0
MAX_SCORE = 100

DEFAULT_SUBJECTS = [
    'Sinhala',
    'English',
    'Mathematics',
    'Science',
    'History',
    'Buddhism',
    'Health & Physical Education',
    'Art',
    'Tamil',
]

# Lexicographically ordered so keys generated later sort later.
PUSH_CHARS = '-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz'

MARK_COLUMNS = ('student_id', 'subject_id', 'grade', 'score', 'comment', 'teacher_id', 'timestamp', 'year', 'term')

SCHEMA_STATEMENTS = [
    '''CREATE TABLE IF NOT EXISTS accounts (
           uid TEXT PRIMARY KEY,
           email TEXT UNIQUE NOT NULL,
           password_hash TEXT NOT NULL,
           created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
           last_login_at TIMESTAMP
       )''',
    '''CREATE TABLE IF NOT EXISTS users (
           uid TEXT PRIMARY KEY,
           email TEXT,
           name TEXT,
           role TEXT DEFAULT 'student',
           grade INTEGER,
           subjects TEXT
       )''',
    '''CREATE TABLE IF NOT EXISTS subjects (
           id TEXT PRIMARY KEY,
           name TEXT NOT NULL,
           grade INTEGER,
           active INTEGER DEFAULT 1
       )''',
    '''CREATE TABLE IF NOT EXISTS marks (
           id TEXT PRIMARY KEY,
           student_id TEXT,
           subject_id TEXT,
           grade INTEGER,
           score REAL,
           comment TEXT,
           teacher_id TEXT,
           timestamp BIGINT,
           year INTEGER,
           term TEXT
       )''',
    'CREATE INDEX IF NOT EXISTS idx_users_grade ON users(grade)',
    'CREATE INDEX IF NOT EXISTS idx_users_role ON users(role)',
    'CREATE INDEX IF NOT EXISTS idx_marks_student_id ON marks(student_id)',
    'CREATE INDEX IF NOT EXISTS idx_marks_subject_id ON marks(subject_id)',
    'CREATE INDEX IF NOT EXISTS idx_marks_grade ON marks(grade)',
]


def _adapt_query(query):
    if USE_SQLITE:
        return query
    return query.replace('?', '%s')


def db_execute(cursor, query, params=None):
    if params is None:
        return cursor.execute(_adapt_query(query))
    return cursor.execute(_adapt_query(query), params)


def get_db():
    """Create a DB connection for the configured backend."""
    if USE_SQLITE:
        conn = sqlite3.connect(SQLITE_PATH, timeout=10)
        conn.row_factory = sqlite3.Row
        return conn
    try:
        import psycopg2
        from psycopg2.extras import DictCursor
    except ImportError as exc:
        raise RuntimeError("PostgreSQL backend requires psycopg2-binary") from exc
    return psycopg2.connect(DATABASE_URL, cursor_factory=DictCursor, connect_timeout=10)


@contextmanager
def db_connection(commit=False):
    """Context manager for DB connections with optional commit."""
    conn = get_db()
    try:
        yield conn
        if commit:
            conn.commit()
    finally:
        conn.close()


def init_db():
    """Create the tables and indexes if they don't exist."""
    with db_connection(commit=True) as conn:
        c = conn.cursor()
        for statement in SCHEMA_STATEMENTS:
            db_execute(c, statement)
    logging.info("Database schema verified.")


def now_ms():
    return int(time.time() * 1000)


_last_push_time = 0
_last_rand_chars = []


def generate_push_id(timestamp_ms=None):
    """Return a 20-character, time-ordered record key.

    The first 8 characters encode the millisecond timestamp, the other 12 are
    random. Keys generated within the same millisecond increment the random
    part so they still sort in creation order.
    """
    global _last_push_time, _last_rand_chars
    now = now_ms() if timestamp_ms is None else int(timestamp_ms)
    duplicate_time = now == _last_push_time and len(_last_rand_chars) == 12
    _last_push_time = now

    time_chars = []
    for _ in range(8):
        time_chars.append(PUSH_CHARS[now % 64])
        now //= 64
    time_chars.reverse()

    if not duplicate_time:
        _last_rand_chars = [secrets.randbelow(64) for _ in range(12)]
    else:
        i = 11
        while i >= 0 and _last_rand_chars[i] == 63:
            _last_rand_chars[i] = 0
            i -= 1
        if i >= 0:
            _last_rand_chars[i] += 1
    return ''.join(time_chars) + ''.join(PUSH_CHARS[n] for n in _last_rand_chars)


def generate_uid():
    return secrets.token_urlsafe(21)[:28]


def safe_int(value, default=None):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def is_student_email(email):
    """True when an email address looks like it belongs to a student."""
    lowered = (email or '').strip().lower()
    return any(marker in lowered for marker in STUDENT_EMAIL_MARKERS)


def is_valid_grade(grade):
    grade = safe_int(grade)
    return grade is not None and MIN_GRADE <= grade <= MAX_GRADE


def normalize_user_record(user):
    """Return a copy of a user record that is safe to persist.

    Student-like emails never keep the teacher role, and every student ends up
    with a grade.
    """
    record = dict(user)
    role = (record.get('role') or 'student').strip().lower()
    if role == 'admin':
        role = 'teacher'
    if role not in ROLES:
        role = 'student'
    if role == 'teacher' and is_student_email(record.get('email')):
        logging.warning("User %s has a student email with teacher role; storing as student.", record.get('uid'))
        role = 'student'
    record['role'] = role
    if role == 'student' and not is_valid_grade(record.get('grade')):
        record['grade'] = MIN_GRADE
    return record


# ==================== ACCOUNTS ====================

def _account_from_row(row):
    return {
        'uid': row['uid'],
        'email': row['email'],
        'password_hash': row['password_hash'],
        'created_at': row['created_at'],
        'last_login_at': row['last_login_at'],
    }


def get_account(uid):
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(c, 'SELECT uid, email, password_hash, created_at, last_login_at FROM accounts WHERE uid = ?', (uid,))
        row = c.fetchone()
    return _account_from_row(row) if row else None


def get_account_by_email(email):
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(
            c,
            '''SELECT uid, email, password_hash, created_at, last_login_at
               FROM accounts
               WHERE LOWER(email) = LOWER(?)
               LIMIT 1''',
            ((email or '').strip(),),
        )
        row = c.fetchone()
    return _account_from_row(row) if row else None


def list_accounts():
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(c, 'SELECT uid, email, password_hash, created_at, last_login_at FROM accounts ORDER BY email')
        return [_account_from_row(row) for row in c.fetchall()]


def create_account(email, password):
    """Create login credentials. Returns (uid, error)."""
    email = (email or '').strip().lower()
    if not email or '@' not in email:
        return None, 'A valid email address is required.'
    if not password or len(password) < 6:
        return None, 'Password must be at least 6 characters.'
    if get_account_by_email(email):
        return None, 'An account with this email already exists.'
    uid = generate_uid()
    with db_connection(commit=True) as conn:
        c = conn.cursor()
        db_execute(
            c,
            'INSERT INTO accounts (uid, email, password_hash) VALUES (?, ?, ?)',
            (uid, email, generate_password_hash(password)),
        )
    logging.info("Account created: %s (%s)", email, uid)
    return uid, None


def authenticate(email, password):
    """Return the account for valid credentials, otherwise None."""
    account = get_account_by_email(email)
    if not account or not check_password_hash(account['password_hash'], password or ''):
        return None
    return account


def record_login(uid):
    with db_connection(commit=True) as conn:
        c = conn.cursor()
        db_execute(c, 'UPDATE accounts SET last_login_at = ? WHERE uid = ?', (datetime.now().isoformat(timespec='seconds'), uid))


def set_account_password(email, password):
    """Reset a password by email. Returns True when an account was updated."""
    with db_connection(commit=True) as conn:
        c = conn.cursor()
        db_execute(
            c,
            'UPDATE accounts SET password_hash = ? WHERE LOWER(email) = LOWER(?)',
            (generate_password_hash(password), (email or '').strip()),
        )
        return int(c.rowcount or 0) > 0


def delete_account(uid):
    with db_connection(commit=True) as conn:
        c = conn.cursor()
        db_execute(c, 'DELETE FROM accounts WHERE uid = ?', (uid,))


# ==================== USERS ====================

def _user_from_row(row):
    user = {
        'uid': row['uid'],
        'email': row['email'] or '',
        'name': row['name'] or '',
        'role': row['role'] or 'student',
    }
    if row['grade'] is not None:
        user['grade'] = int(row['grade'])
    if row['subjects']:
        user['subjects'] = json.loads(row['subjects'])
    return user


def get_user(uid):
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(c, 'SELECT uid, email, name, role, grade, subjects FROM users WHERE uid = ?', (uid,))
        row = c.fetchone()
    return _user_from_row(row) if row else None


def get_all_users():
    """All user records keyed by uid."""
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(c, 'SELECT uid, email, name, role, grade, subjects FROM users ORDER BY uid')
        return {row['uid']: _user_from_row(row) for row in c.fetchall()}


def save_user(user):
    """Insert or replace a user record."""
    record = normalize_user_record(user)
    subjects = record.get('subjects')
    with db_connection(commit=True) as conn:
        c = conn.cursor()
        db_execute(
            c,
            '''INSERT INTO users (uid, email, name, role, grade, subjects)
               VALUES (?, ?, ?, ?, ?, ?)
               ON CONFLICT(uid) DO UPDATE SET
                  email = excluded.email,
                  name = excluded.name,
                  role = excluded.role,
                  grade = excluded.grade,
                  subjects = excluded.subjects''',
            (
                record['uid'],
                (record.get('email') or '').strip().lower(),
                (record.get('name') or '').strip(),
                record['role'],
                safe_int(record.get('grade')),
                json.dumps(list(subjects)) if subjects else None,
            ),
        )
    return record


def update_user(uid, updates):
    """Merge fields into an existing user record. Returns the stored record or None."""
    existing = get_user(uid)
    if existing is None:
        return None
    merged = dict(existing)
    merged.update(updates)
    merged['uid'] = uid
    return save_user(merged)


def delete_user(uid):
    with db_connection(commit=True) as conn:
        c = conn.cursor()
        db_execute(c, 'DELETE FROM users WHERE uid = ?', (uid,))


def get_students_by_grade(grade):
    """Students of one grade as {id, name, email, grade}, sorted by name."""
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(
            c,
            '''SELECT uid, email, name, role, grade, subjects
               FROM users
               WHERE grade = ? AND role = ?''',
            (safe_int(grade), 'student'),
        )
        rows = c.fetchall()
    students = []
    for row in rows:
        user = _user_from_row(row)
        students.append({
            'id': user['uid'],
            'name': user['name'],
            'email': user['email'],
            'grade': user.get('grade'),
        })
    return sorted(students, key=lambda s: ((s['name'] or '').lower(), s['id']))


def register_user(email, password, name, role='student', grade=None, subjects=None):
    """Create an account and its user record. Returns (user, error).

    Student-like emails are always registered as students.
    """
    role = (role or 'student').strip().lower()
    if role not in ROLES:
        return None, 'Role must be student or teacher.'
    if is_student_email(email) and role != 'student':
        logging.warning("Signup: email %s suggests a student but role was %s; correcting.", email, role)
        role = 'student'
    if role == 'student':
        grade = safe_int(grade, MIN_GRADE)
        if not is_valid_grade(grade):
            return None, f'Grade must be between {MIN_GRADE} and {MAX_GRADE}.'

    uid, err = create_account(email, password)
    if err:
        return None, err

    user = {
        'uid': uid,
        'email': (email or '').strip().lower(),
        'name': (name or '').strip() or (email or '').split('@')[0],
        'role': role,
    }
    if role == 'student':
        user['grade'] = grade
    if subjects:
        user['subjects'] = list(subjects)
    return save_user(user), None


def delete_student(uid):
    """Delete a student's account and record, then every mark that references it.

    Returns the number of marks removed.
    """
    delete_account(uid)
    delete_user(uid)
    with db_connection(commit=True) as conn:
        c = conn.cursor()
        db_execute(c, 'DELETE FROM marks WHERE student_id = ?', (uid,))
        removed = int(c.rowcount or 0)
    logging.info("Student %s deleted with %d mark(s).", uid, removed)
    return removed


# ==================== SUBJECTS ====================

def _subject_from_row(row):
    return {
        'id': row['id'],
        'name': row['name'],
        'grade': int(row['grade']) if row['grade'] is not None else None,
        'active': bool(row['active'] if row['active'] is not None else 1),
    }


def get_all_subjects():
    """All subjects keyed by id."""
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(c, 'SELECT id, name, grade, active FROM subjects ORDER BY id')
        return {row['id']: _subject_from_row(row) for row in c.fetchall()}


def get_subject(subject_id):
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(c, 'SELECT id, name, grade, active FROM subjects WHERE id = ?', (subject_id,))
        row = c.fetchone()
    return _subject_from_row(row) if row else None


def get_subjects(grade, active_only=False):
    """Subjects available to a grade: its own plus the shared catalog.

    Every subject is reported with the requested grade.
    """
    grade = safe_int(grade)
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(
            c,
            'SELECT id, name, grade, active FROM subjects WHERE grade IS NULL OR grade = ?',
            (grade,),
        )
        rows = c.fetchall()
    subjects = []
    for row in rows:
        subject = _subject_from_row(row)
        if not subject['name']:
            continue
        if active_only and not subject['active']:
            continue
        subject['grade'] = grade
        subjects.append(subject)
    return sorted(subjects, key=lambda s: s['name'].lower())


def add_subject(name, grade=None, subject_id=None, active=True):
    subject = {
        'id': subject_id or generate_push_id(),
        'name': ' '.join((name or '').split()),
        'grade': safe_int(grade),
        'active': bool(active),
    }
    with db_connection(commit=True) as conn:
        c = conn.cursor()
        db_execute(
            c,
            'INSERT INTO subjects (id, name, grade, active) VALUES (?, ?, ?, ?)',
            (subject['id'], subject['name'], subject['grade'], 1 if subject['active'] else 0),
        )
    return subject


def update_subject(subject_id, updates):
    existing = get_subject(subject_id)
    if existing is None:
        return None
    merged = dict(existing)
    merged.update(updates)
    with db_connection(commit=True) as conn:
        c = conn.cursor()
        db_execute(
            c,
            'UPDATE subjects SET name = ?, grade = ?, active = ? WHERE id = ?',
            (' '.join((merged.get('name') or '').split()), safe_int(merged.get('grade')),
             1 if merged.get('active') else 0, subject_id),
        )
    merged['id'] = subject_id
    return merged


def delete_subject(subject_id):
    """Delete a subject and every mark recorded against it. Returns marks removed."""
    with db_connection(commit=True) as conn:
        c = conn.cursor()
        db_execute(c, 'DELETE FROM subjects WHERE id = ?', (subject_id,))
        db_execute(c, 'DELETE FROM marks WHERE subject_id = ?', (subject_id,))
        removed = int(c.rowcount or 0)
    logging.info("Subject %s deleted with %d mark(s).", subject_id, removed)
    return removed


def initialize_subjects():
    """Seed the shared subject catalog when it is empty. Returns subjects added."""
    if get_all_subjects():
        return 0
    for index, name in enumerate(DEFAULT_SUBJECTS, start=1):
        add_subject(name, subject_id=f'subject_{index}')
    logging.info("Subject catalog initialized with %d subjects.", len(DEFAULT_SUBJECTS))
    return len(DEFAULT_SUBJECTS)


# ==================== MARKS ====================

def _mark_from_row(row):
    return {
        'id': row['id'],
        'student_id': row['student_id'],
        'subject_id': row['subject_id'],
        'grade': int(row['grade']) if row['grade'] is not None else None,
        'score': float(row['score']) if row['score'] is not None else None,
        'comment': row['comment'] or '',
        'teacher_id': row['teacher_id'],
        'timestamp': int(row['timestamp']) if row['timestamp'] is not None else None,
        'year': int(row['year']) if row['year'] is not None else None,
        'term': row['term'],
    }


_MARK_SELECT = 'SELECT id, student_id, subject_id, grade, score, comment, teacher_id, timestamp, year, term FROM marks'


def _newest_first(marks):
    return sorted(marks, key=lambda m: m.get('timestamp') or 0, reverse=True)


def get_mark(mark_id):
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(c, _MARK_SELECT + ' WHERE id = ?', (mark_id,))
        row = c.fetchone()
    return _mark_from_row(row) if row else None


def get_student_marks(student_id):
    """A student's marks, newest first."""
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(c, _MARK_SELECT + ' WHERE student_id = ?', (student_id,))
        return _newest_first([_mark_from_row(row) for row in c.fetchall()])


def get_marks_for_grade(grade):
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(c, _MARK_SELECT + ' WHERE grade = ?', (safe_int(grade),))
        return _newest_first([_mark_from_row(row) for row in c.fetchall()])


def get_all_marks():
    """All marks keyed by id, in creation order."""
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(c, _MARK_SELECT + ' ORDER BY id')
        return {row['id']: _mark_from_row(row) for row in c.fetchall()}


def add_mark(mark_data):
    mark = {column: mark_data.get(column) for column in MARK_COLUMNS}
    mark['timestamp'] = mark_data.get('timestamp') or now_ms()
    mark['id'] = mark_data.get('id') or generate_push_id(mark['timestamp'])
    with db_connection(commit=True) as conn:
        c = conn.cursor()
        db_execute(
            c,
            f'''INSERT INTO marks (id, {", ".join(MARK_COLUMNS)})
                VALUES ({", ".join(["?"] * (len(MARK_COLUMNS) + 1))})''',
            tuple([mark['id']] + [mark[column] for column in MARK_COLUMNS]),
        )
    return mark


def update_mark(mark_id, updates, touch_timestamp=True):
    """Overwrite fields of a stored mark; refreshes its timestamp by default."""
    fields = {column: updates[column] for column in MARK_COLUMNS if column in updates}
    if touch_timestamp:
        fields['timestamp'] = now_ms()
    if not fields:
        return
    assignments = ', '.join(f'{column} = ?' for column in fields)
    with db_connection(commit=True) as conn:
        c = conn.cursor()
        db_execute(c, f'UPDATE marks SET {assignments} WHERE id = ?', tuple(fields.values()) + (mark_id,))


def delete_mark(mark_id):
    with db_connection(commit=True) as conn:
        c = conn.cursor()
        db_execute(c, 'DELETE FROM marks WHERE id = ?', (mark_id,))


def clear_marks():
    with db_connection(commit=True) as conn:
        c = conn.cursor()
        db_execute(c, 'DELETE FROM marks')
        return int(c.rowcount or 0)


def validate_mark_input(score, term, year):
    """Validate a mark submission. Returns (cleaned, error)."""
    try:
        score_val = float(score)
    except (TypeError, ValueError):
        return None, f'Score must be a number between {MIN_SCORE} and {MAX_SCORE}.'
    if not math.isfinite(score_val) or score_val < MIN_SCORE or score_val > MAX_SCORE:
        return None, f'Score must be between {MIN_SCORE} and {MAX_SCORE}.'
    if term not in TERMS:
        return None, f'Term must be one of: {", ".join(TERMS)}.'
    year_val = safe_int(year)
    if year_val is None or year_val < 1900:
        return None, 'Year is invalid.'
    return {'score': score_val, 'term': term, 'year': year_val}, None


def find_existing_mark(marks, student_id, subject_id, term, year):
    """The mark a new submission would replace, if any.

    Marks stored without a year match on subject and term alone.
    """
    for mark in marks:
        if mark.get('student_id') != student_id or mark.get('subject_id') != subject_id:
            continue
        if mark.get('term') != term:
            continue
        if mark.get('year') is not None and mark.get('year') != year:
            continue
        return mark
    return None


def upsert_mark(student_id, subject_id, grade, score, comment, term, year, teacher_id, existing_marks=None):
    """Create or overwrite the mark for (student, subject, term, year).

    Returns (mark, created, error). Nothing is written when the input is
    invalid. Two concurrent submissions are not coordinated: the later write
    wins.
    """
    clean, err = validate_mark_input(score, term, year)
    if err:
        return None, False, err
    if not student_id or not subject_id:
        return None, False, 'Student and subject are required.'

    if existing_marks is None:
        existing_marks = get_student_marks(student_id)
    existing = find_existing_mark(existing_marks, student_id, subject_id, clean['term'], clean['year'])

    mark_data = {
        'student_id': student_id,
        'subject_id': subject_id,
        'grade': safe_int(grade),
        'score': clean['score'],
        'comment': (comment or '').strip(),
        'teacher_id': teacher_id,
        'year': clean['year'],
        'term': clean['term'],
    }
    if existing:
        mark_data['timestamp'] = now_ms()
        update_mark(existing['id'], mark_data, touch_timestamp=False)
        mark = dict(existing)
        mark.update(mark_data)
        logging.info("Mark %s updated by %s (score %s).", existing['id'], teacher_id, clean['score'])
        return mark, False, None

    mark = add_mark(mark_data)
    logging.info("Mark %s added by %s (score %s).", mark['id'], teacher_id, clean['score'])
    return mark, True, None


# ==================== BULK ====================

def clear_all_data(keep_uid=None):
    """Remove marks, users and accounts, optionally keeping one account."""
    with db_connection(commit=True) as conn:
        c = conn.cursor()
        db_execute(c, 'DELETE FROM marks')
        if keep_uid:
            db_execute(c, 'DELETE FROM users WHERE uid <> ?', (keep_uid,))
            db_execute(c, 'DELETE FROM accounts WHERE uid <> ?', (keep_uid,))
        else:
            db_execute(c, 'DELETE FROM users')
            db_execute(c, 'DELETE FROM accounts')


def reset_database():
    """Drop every record and rebuild the default subject catalog."""
    init_db()
    with db_connection(commit=True) as conn:
        c = conn.cursor()
        for table in ('marks', 'users', 'accounts', 'subjects'):
            db_execute(c, f'DELETE FROM {table}')
    return initialize_subjects()


if __name__ == "__main__":
    init_db()
    print("✅ Database initialized successfully.")
