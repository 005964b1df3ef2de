"""Initial schema for the student mark system.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op


# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the accounts, users, subjects and marks tables."""

    # Login credentials; uid is shared with the users profile record.
    op.execute('''CREATE TABLE IF NOT EXISTS accounts (
                    uid TEXT PRIMARY KEY,
                    email TEXT UNIQUE NOT NULL,
                    password_hash TEXT NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    last_login_at TIMESTAMP
                )''')

    # Profiles; role is 'student' or 'teacher', grade only for students.
    op.execute('''CREATE TABLE IF NOT EXISTS users (
                    uid TEXT PRIMARY KEY,
                    email TEXT,
                    name TEXT,
                    role TEXT DEFAULT 'student',
                    grade INTEGER,
                    subjects TEXT
                )''')

    # NULL grade means the subject is shared by every grade.
    op.execute('''CREATE TABLE IF NOT EXISTS subjects (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    grade INTEGER,
                    active INTEGER DEFAULT 1
                )''')

    # No foreign keys: references are repaired by optimize_database.py.
    op.execute('''CREATE TABLE IF NOT EXISTS marks (
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
                )''')

    op.execute('CREATE INDEX IF NOT EXISTS idx_users_grade ON users(grade)')
    op.execute('CREATE INDEX IF NOT EXISTS idx_users_role ON users(role)')
    op.execute('CREATE INDEX IF NOT EXISTS idx_marks_student_id ON marks(student_id)')
    op.execute('CREATE INDEX IF NOT EXISTS idx_marks_subject_id ON marks(subject_id)')
    op.execute('CREATE INDEX IF NOT EXISTS idx_marks_grade ON marks(grade)')


def downgrade() -> None:
    """Drop all tables (destructive)."""
    op.execute('DROP TABLE IF EXISTS marks')
    op.execute('DROP TABLE IF EXISTS subjects')
    op.execute('DROP TABLE IF EXISTS users')
    op.execute('DROP TABLE IF EXISTS accounts')
