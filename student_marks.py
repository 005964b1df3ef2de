"""
Student Mark Management

Flask web application where teachers record per-subject, per-term marks for
students organized by grade, and students view their own marks and simple
analytics.
"""

from flask import Flask, render_template, request, redirect, url_for, session, flash, Response, jsonify, g
from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField, IntegerField, FloatField, TextAreaField, SelectField, validators
from flask_wtf.csrf import CSRFProtect, CSRFError

import os
import logging
from datetime import datetime, timedelta

from dotenv import load_dotenv

from db import (
    TERMS, MIN_GRADE, MAX_GRADE, DEFAULT_SUBJECTS,
    init_db, initialize_subjects, safe_int, is_student_email,
    get_account, authenticate, record_login,
    get_user, update_user, register_user, get_students_by_grade, delete_student,
    get_subject, get_subjects, add_subject, update_subject, delete_subject,
    get_student_marks, get_marks_for_grade, upsert_mark, clear_marks, clear_all_data,
)
from analytics import (
    LETTER_GRADES, student_overview, class_overview, term_wise_view, subject_wise_view,
    build_report_sections,
)
from integrity import optimize_database

load_dotenv()

app = Flask(__name__, template_folder='frontend/templates', static_folder='static')
ALLOW_INSECURE_DEFAULTS = os.environ.get('ALLOW_INSECURE_DEFAULTS', '').strip().lower() in ('1', 'true', 'yes')
secret_key = os.environ.get('SECRET_KEY')
if not secret_key:
    if ALLOW_INSECURE_DEFAULTS:
        # Explicitly opt-in fallback for local/dev only.
        secret_key = 'dev-secret-key-change-me'
    else:
        raise RuntimeError("SECRET_KEY is required in production. Set SECRET_KEY or enable ALLOW_INSECURE_DEFAULTS for local development.")
if not ALLOW_INSECURE_DEFAULTS and len(secret_key) < 32:
    raise RuntimeError("SECRET_KEY is too short. Use at least 32 characters in production.")
app.secret_key = secret_key
app.config['WTF_CSRF_TIME_LIMIT'] = None

SESSION_VALIDITY_HOURS = max(1, safe_int(os.environ.get('SESSION_VALIDITY_HOURS'), 12))
app.permanent_session_lifetime = timedelta(hours=SESSION_VALIDITY_HOURS)

csrf = CSRFProtect(app)

logging.basicConfig(filename=os.environ.get('LOG_FILE', 'app.log'), level=logging.INFO,
                    format='%(asctime)s - %(levelname)s - %(message)s')
if ALLOW_INSECURE_DEFAULTS:
    logging.warning("ALLOW_INSECURE_DEFAULTS is enabled. Development-only fallbacks may be active.")

# Initialize database (can be disabled when schema is managed by migrations).
RUN_STARTUP_DDL = os.environ.get('RUN_STARTUP_DDL', '1').strip().lower() in ('1', 'true', 'yes')
if RUN_STARTUP_DDL:
    init_db()
    initialize_subjects()
else:
    logging.warning("RUN_STARTUP_DDL is disabled. Ensure schema is already migrated before startup.")

SESSION_USER_KEY = 'sms_user_data'
SESSION_ROLE_KEY = 'sms_user_role'
SESSION_EXPIRY_KEY = 'sms_session_expiry'

GRADE_CHOICES = [(n, f'Grade {n}') for n in range(MIN_GRADE, MAX_GRADE + 1)]
VIEW_TYPES = ('term-wise', 'subject-wise')
EMAIL_PATTERN = r'^[^@\s]+@[^@\s]+\.[^@\s]+$'


# ==================== FORMS ====================

class LoginForm(FlaskForm):
    email = StringField('Email', [validators.InputRequired(), validators.Length(max=254)])
    password = PasswordField('Password', [validators.InputRequired()])


class SignupForm(FlaskForm):
    name = StringField('Full name', [validators.InputRequired(), validators.Length(max=120)])
    email = StringField('Email', [
        validators.InputRequired(),
        validators.Regexp(EMAIL_PATTERN, message='Enter a valid email address.'),
    ])
    password = PasswordField('Password', [validators.InputRequired(), validators.Length(min=6)])
    role = SelectField('Role', choices=[('student', 'Student'), ('teacher', 'Teacher')], default='student')
    grade = IntegerField('Grade', [validators.Optional(), validators.NumberRange(min=MIN_GRADE, max=MAX_GRADE)])


class StudentForm(FlaskForm):
    name = StringField('Full name', [validators.InputRequired(), validators.Length(max=120)])
    email = StringField('Email', [
        validators.InputRequired(),
        validators.Regexp(EMAIL_PATTERN, message='Enter a valid email address.'),
    ])
    password = PasswordField('Initial password', [validators.InputRequired(), validators.Length(min=6)])
    grade = IntegerField('Grade', [validators.InputRequired(), validators.NumberRange(min=MIN_GRADE, max=MAX_GRADE)])


class MarkForm(FlaskForm):
    subject_id = SelectField('Subject', [validators.InputRequired()], choices=[])
    score = FloatField('Score', [validators.InputRequired(), validators.NumberRange(min=0, max=100)])
    comment = TextAreaField('Comment', [validators.Optional(), validators.Length(max=500)])
    term = SelectField('Term', choices=[(t, t) for t in TERMS], default=TERMS[0])
    year = SelectField('Year', coerce=int, choices=[])


class SubjectForm(FlaskForm):
    name = StringField('Subject name', [validators.InputRequired(), validators.Length(max=80)])
    grade = IntegerField('Grade (blank for all grades)', [validators.Optional(), validators.NumberRange(min=MIN_GRADE, max=MAX_GRADE)])


def first_form_error(form):
    for field_name, errors in form.errors.items():
        if errors:
            label = getattr(form, field_name).label.text if hasattr(form, field_name) else field_name
            return f'{label}: {errors[0]}'
    return 'Please fill in all required fields.'


# ==================== SESSION ====================

def save_user_to_session(user):
    """Cache the logged-in user in the signed session cookie."""
    session.permanent = True
    session[SESSION_USER_KEY] = dict(user)
    session[SESSION_ROLE_KEY] = user.get('role')
    session[SESSION_EXPIRY_KEY] = (datetime.now() + timedelta(hours=SESSION_VALIDITY_HOURS)).isoformat()


def clear_user_from_session():
    for key in (SESSION_USER_KEY, SESSION_ROLE_KEY, SESSION_EXPIRY_KEY, 'grade'):
        session.pop(key, None)


def get_user_from_session():
    """Return the cached user, or None when missing, expired or inconsistent."""
    expiry_raw = session.get(SESSION_EXPIRY_KEY)
    if not expiry_raw:
        return None
    try:
        expiry = datetime.fromisoformat(expiry_raw)
    except (TypeError, ValueError):
        clear_user_from_session()
        return None
    if expiry < datetime.now():
        logging.info("Session expired.")
        clear_user_from_session()
        return None

    user = session.get(SESSION_USER_KEY)
    role = session.get(SESSION_ROLE_KEY)
    if not isinstance(user, dict) or not role:
        return None
    if user.get('role') != role:
        logging.error("Session role mismatch detected; clearing session.")
        clear_user_from_session()
        return None
    if not user.get('uid') or not user.get('email'):
        clear_user_from_session()
        return None
    return user


def fetch_user_data(account):
    """Profile record for an account, or a default derived from its email."""
    user = get_user(account['uid'])
    if user is not None:
        if not user.get('email'):
            user['email'] = account.get('email') or ''
        return user
    email = account.get('email') or ''
    likely_student = is_student_email(email)
    user = {
        'uid': account['uid'],
        'email': email,
        'name': email.split('@')[0] or 'Unknown User',
        'role': 'student' if likely_student else 'teacher',
    }
    if likely_student:
        user['grade'] = MIN_GRADE
    return user


def correct_user_role(user):
    """Force student-looking accounts off the teacher role. Returns (user, changed)."""
    if user.get('role') == 'teacher' and is_student_email(user.get('email')):
        corrected = dict(user)
        corrected['role'] = 'student'
        corrected['grade'] = user.get('grade') or MIN_GRADE
        return corrected, True
    return user, False


def resolve_account_user(account):
    """Fetch, correct and (when needed) persist the user behind an account."""
    user, changed = correct_user_role(fetch_user_data(account))
    if changed:
        logging.error("Student account %s had teacher role in database; fixing.", user['uid'])
        try:
            update_user(user['uid'], {'role': 'student', 'grade': user['grade']})
        except Exception:
            # The corrected role is still used for this session.
            logging.exception("Failed to persist corrected role for %s", user['uid'])
    return user


def reconcile_session_user():
    """Refresh the cached user against the database.

    Falls back to the cached copy when the database can't be reached.
    """
    cached = get_user_from_session()
    if not cached:
        return None
    uid = cached['uid']
    try:
        account = get_account(uid)
        if not account:
            logging.warning("Account %s no longer exists; clearing session.", uid)
            clear_user_from_session()
            return None
        user = resolve_account_user(account)
    except Exception:
        logging.exception("Could not refresh user %s; using cached session data.", uid)
        return cached
    save_user_to_session(user)
    return user


def current_user():
    return g.get('current_user')


def current_role():
    return (current_user() or {}).get('role')


def dashboard_for(user):
    if (user or {}).get('role') == 'teacher':
        return redirect(url_for('teacher_dashboard'))
    if (user or {}).get('role') == 'student':
        return redirect(url_for('student_dashboard'))
    return redirect(url_for('login'))


def selected_grade():
    """Grade the teacher is working on, remembered in the session."""
    grade = request.values.get('grade', type=int)
    if grade is None:
        grade = session.get('grade')
    if not grade or grade < MIN_GRADE or grade > MAX_GRADE:
        grade = MIN_GRADE
    session['grade'] = grade
    return grade


def available_years():
    year = datetime.now().year
    return [year - i for i in range(3)]


# ==================== ROUTES ====================

@app.errorhandler(CSRFError)
def csrf_error(error):
    """Handle CSRF token errors."""
    # Runs before load_current_user, so g.current_user is not set yet.
    if get_user_from_session():
        flash('Form token expired/invalid. Please retry your last action.', 'error')
        return redirect(request.referrer or url_for('home'))
    flash('Your session has expired. Please login again.', 'error')
    return redirect(url_for('login'))


@app.before_request
def load_current_user():
    """Reconcile the cached session user with the database on every request."""
    if (request.endpoint or '') in {'static', 'logout'}:
        return None
    g.current_user = reconcile_session_user()
    return None


@app.route('/')
def home():
    return dashboard_for(current_user())


@app.route('/login', methods=['GET', 'POST'])
def login():
    if current_user():
        return dashboard_for(current_user())
    form = LoginForm()
    if request.method == 'POST':
        if not form.validate_on_submit():
            flash('Please enter email and password.', 'error')
            return render_template('shared/login.html', form=form)
        email = form.email.data.strip().lower()
        try:
            account = authenticate(email, form.password.data)
            if not account:
                logging.warning("Failed login for %s", email)
                flash('Invalid email or password.', 'error')
                return render_template('shared/login.html', form=form)
            user = resolve_account_user(account)
            record_login(account['uid'])
        except Exception:
            logging.exception("Login error for %s", email)
            flash('Login failed. Please try again.', 'error')
            return render_template('shared/login.html', form=form)

        session.clear()
        save_user_to_session(user)
        logging.info("%s logged in as %s", email, user['role'])
        return dashboard_for(user)

    return render_template('shared/login.html', form=form)


@app.route('/signup', methods=['GET', 'POST'])
def signup():
    form = SignupForm()
    if request.method == 'POST':
        if not form.validate_on_submit():
            flash(first_form_error(form), 'error')
            return render_template('shared/signup.html', form=form)
        try:
            user, err = register_user(
                email=form.email.data,
                password=form.password.data,
                name=form.name.data,
                role=form.role.data,
                grade=form.grade.data,
            )
        except Exception:
            logging.exception("Signup error for %s", form.email.data)
            flash('Failed to create account.', 'error')
            return render_template('shared/signup.html', form=form)
        if err:
            flash(err, 'error')
            return render_template('shared/signup.html', form=form)

        session.clear()
        save_user_to_session(user)
        flash('Account created successfully!', 'success')
        return dashboard_for(user)

    return render_template('shared/signup.html', form=form)


@app.route('/logout')
def logout():
    session.clear()
    flash('Logged out successfully', 'success')
    return redirect(url_for('login'))


# ==================== TEACHER ROUTES ====================

@app.route('/teacher')
def teacher_dashboard():
    if current_role() != 'teacher':
        return redirect(url_for('login'))

    grade = selected_grade()
    try:
        students = get_students_by_grade(grade)
        subjects = get_subjects(grade)
        marks = get_marks_for_grade(grade)
    except Exception:
        logging.exception("Failed to load dashboard data for grade %s", grade)
        flash('Failed to load students and marks.', 'error')
        students, subjects, marks = [], [], []

    return render_template('teacher/teacher_dashboard.html',
                           teacher=current_user(),
                           grade=grade,
                           grades=GRADE_CHOICES,
                           students=students,
                           subjects=subjects,
                           stats=class_overview(marks, subjects, students))


@app.route('/teacher/stats.json')
def teacher_stats():
    if current_role() != 'teacher':
        return jsonify({'error': 'forbidden'}), 403
    grade = selected_grade()
    try:
        students = get_students_by_grade(grade)
        subjects = get_subjects(grade)
        marks = get_marks_for_grade(grade)
    except Exception:
        logging.exception("Failed to load stats for grade %s", grade)
        return jsonify({'error': 'Failed to load statistics.'}), 500
    return jsonify(dict(class_overview(marks, subjects, students), grade=grade))


@app.route('/teacher/students', methods=['GET', 'POST'])
def teacher_students():
    if current_role() != 'teacher':
        return redirect(url_for('login'))

    grade = selected_grade()
    form = StudentForm(grade=grade)
    if request.method == 'POST':
        if not form.validate_on_submit():
            flash(first_form_error(form), 'error')
            return redirect(url_for('teacher_students', grade=grade))
        if not is_student_email(form.email.data):
            logging.info("Adding student %s without a student-style email.", form.email.data)
        try:
            user, err = register_user(
                email=form.email.data,
                password=form.password.data,
                name=form.name.data,
                role='student',
                grade=form.grade.data,
            )
        except Exception:
            logging.exception("Failed to add student %s", form.email.data)
            flash('Failed to add student.', 'error')
            return redirect(url_for('teacher_students', grade=grade))
        if err:
            flash(err, 'error')
        else:
            flash(f"Student {user['name']} added to Grade {user['grade']}.", 'success')
        return redirect(url_for('teacher_students', grade=form.grade.data))

    try:
        students = get_students_by_grade(grade)
    except Exception:
        logging.exception("Failed to load students for grade %s", grade)
        flash('Failed to load students.', 'error')
        students = []
    return render_template('teacher/students.html', form=form, grade=grade, grades=GRADE_CHOICES, students=students)


@app.route('/teacher/students/delete', methods=['POST'])
def teacher_delete_student():
    if current_role() != 'teacher':
        return redirect(url_for('login'))

    student_id = request.form.get('student_id', '').strip()
    student = get_user(student_id) if student_id else None
    if not student or student.get('role') != 'student':
        flash('Student not found.', 'error')
        return redirect(url_for('teacher_students'))
    try:
        removed = delete_student(student_id)
    except Exception:
        logging.exception("Failed to delete student %s", student_id)
        flash('Failed to delete student.', 'error')
        return redirect(url_for('teacher_students'))
    flash(f"Student {student.get('email')} deleted with {removed} mark(s).", 'success')
    return redirect(url_for('teacher_students', grade=student.get('grade')))


@app.route('/teacher/marks', methods=['GET', 'POST'])
def teacher_mark_entry():
    if current_role() != 'teacher':
        return redirect(url_for('login'))

    student_id = request.values.get('student_id', '').strip()
    if not student_id:
        flash('No student selected.', 'error')
        return redirect(url_for('teacher_dashboard'))
    student = get_user(student_id)
    if not student or student.get('role') != 'student':
        flash('Student not found.', 'error')
        return redirect(url_for('teacher_dashboard'))

    grade = student.get('grade') or MIN_GRADE
    try:
        subjects = get_subjects(grade)
        existing_marks = get_student_marks(student_id)
    except Exception:
        logging.exception("Failed to load subjects and marks for %s", student_id)
        flash('Failed to load subjects and marks.', 'error')
        return redirect(url_for('teacher_dashboard'))

    form = MarkForm()
    form.subject_id.choices = [(s['id'], s['name']) for s in subjects if s['active']]
    form.year.choices = [(y, str(y)) for y in available_years()]
    if request.method == 'GET':
        form.year.data = available_years()[0]

    if request.method == 'POST':
        if not form.validate_on_submit():
            flash(first_form_error(form), 'error')
            return redirect(url_for('teacher_mark_entry', student_id=student_id))
        try:
            mark, created, err = upsert_mark(
                student_id=student_id,
                subject_id=form.subject_id.data,
                grade=grade,
                score=form.score.data,
                comment=form.comment.data,
                term=form.term.data,
                year=form.year.data,
                teacher_id=current_user()['uid'],
                existing_marks=existing_marks,
            )
        except Exception:
            logging.exception("Error saving mark for %s", student_id)
            flash('Failed to save mark.', 'error')
            return redirect(url_for('teacher_mark_entry', student_id=student_id))
        if err:
            flash(err, 'error')
        elif created:
            flash('Mark added successfully', 'success')
        else:
            flash('Mark updated successfully', 'success')
        return redirect(url_for('teacher_mark_entry', student_id=student_id))

    view_type = request.args.get('view', 'term-wise')
    if view_type not in VIEW_TYPES:
        view_type = 'term-wise'
    return render_template('teacher/mark_entry.html',
                           form=form,
                           student=student,
                           subjects=subjects,
                           marks=existing_marks,
                           view_type=view_type,
                           view_urls={v: url_for('teacher_mark_entry', student_id=student_id, view=v) for v in VIEW_TYPES},
                           term_view=term_wise_view(existing_marks, subjects),
                           subject_view=subject_wise_view(existing_marks, subjects))


@app.route('/teacher/subjects', methods=['GET', 'POST'])
def teacher_subjects():
    if current_role() != 'teacher':
        return redirect(url_for('login'))

    grade = selected_grade()
    form = SubjectForm()
    if request.method == 'POST':
        if not form.validate_on_submit():
            flash(first_form_error(form), 'error')
            return redirect(url_for('teacher_subjects', grade=grade))
        try:
            subject = add_subject(form.name.data, grade=form.grade.data)
        except Exception:
            logging.exception("Failed to add subject %s", form.name.data)
            flash('Failed to add subject.', 'error')
            return redirect(url_for('teacher_subjects', grade=grade))
        flash(f"Subject {subject['name']} added.", 'success')
        return redirect(url_for('teacher_subjects', grade=grade))

    subjects = get_subjects(grade)
    return render_template('teacher/subjects.html', form=form, grade=grade, grades=GRADE_CHOICES,
                           subjects=subjects, default_subjects=DEFAULT_SUBJECTS)


@app.route('/teacher/subjects/update', methods=['POST'])
def teacher_update_subject():
    if current_role() != 'teacher':
        return redirect(url_for('login'))

    subject_id = request.form.get('subject_id', '').strip()
    name = ' '.join(request.form.get('name', '').split())
    if not get_subject(subject_id):
        flash('Subject not found.', 'error')
        return redirect(url_for('teacher_subjects'))
    if not name:
        flash('Subject name is required.', 'error')
        return redirect(url_for('teacher_subjects'))
    try:
        update_subject(subject_id, {'name': name, 'active': request.form.get('active') == 'on'})
    except Exception:
        logging.exception("Failed to update subject %s", subject_id)
        flash('Failed to update subject.', 'error')
        return redirect(url_for('teacher_subjects'))
    flash('Subject updated successfully', 'success')
    return redirect(url_for('teacher_subjects'))


@app.route('/teacher/subjects/delete', methods=['POST'])
def teacher_delete_subject():
    if current_role() != 'teacher':
        return redirect(url_for('login'))

    subject_id = request.form.get('subject_id', '').strip()
    if not get_subject(subject_id):
        flash('Subject not found.', 'error')
        return redirect(url_for('teacher_subjects'))
    try:
        removed = delete_subject(subject_id)
    except Exception:
        logging.exception("Failed to delete subject %s", subject_id)
        flash('Failed to delete subject.', 'error')
        return redirect(url_for('teacher_subjects'))
    flash(f'Subject deleted successfully ({removed} mark(s) removed).', 'success')
    return redirect(url_for('teacher_subjects'))


@app.route('/teacher/report')
def teacher_report():
    if current_role() != 'teacher':
        return redirect(url_for('login'))

    grade = selected_grade()
    try:
        students = get_students_by_grade(grade)
        subjects = get_subjects(grade)
        marks = get_marks_for_grade(grade)
    except Exception:
        logging.exception("Failed to generate report for grade %s", grade)
        flash('Failed to generate report.', 'error')
        return redirect(url_for('teacher_dashboard'))

    html = render_template('teacher/grade_report.html',
                           grade=grade,
                           generated_on=datetime.now().strftime('%Y-%m-%d'),
                           letter_grades=LETTER_GRADES,
                           sections=build_report_sections(students, marks, subjects))
    return Response(
        html,
        mimetype='text/html',
        headers={'Content-Disposition': f'attachment; filename=grade_{grade}_report.html'},
    )


@app.route('/teacher/advanced')
def teacher_advanced():
    if current_role() != 'teacher':
        return redirect(url_for('login'))
    return render_template('teacher/advanced.html')


@app.route('/teacher/advanced/optimize', methods=['POST'])
def teacher_optimize():
    if current_role() != 'teacher':
        return redirect(url_for('login'))
    try:
        results = optimize_database()
    except Exception:
        logging.exception("Database optimization failed")
        flash('Failed to optimize database.', 'error')
        return redirect(url_for('teacher_advanced'))
    flash(
        'Database optimized: '
        f"{results['duplicates_removed']} duplicates removed, "
        f"{results['null_values_fixed']} null values fixed, "
        f"{results['inconsistencies_fixed']} inconsistencies fixed, "
        f"{results['empty_fields_fixed']} empty fields fixed.",
        'success',
    )
    return redirect(url_for('teacher_advanced'))


@app.route('/teacher/advanced/clear-marks', methods=['POST'])
def teacher_clear_marks():
    if current_role() != 'teacher':
        return redirect(url_for('login'))
    try:
        removed = clear_marks()
    except Exception:
        logging.exception("Failed to clear marks")
        flash('Failed to clear marks.', 'error')
        return redirect(url_for('teacher_advanced'))
    logging.warning("All marks cleared by %s (%d removed).", current_user()['uid'], removed)
    flash(f'All marks cleared ({removed} removed).', 'success')
    return redirect(url_for('teacher_advanced'))


@app.route('/teacher/advanced/clear-all', methods=['POST'])
def teacher_clear_all():
    if current_role() != 'teacher':
        return redirect(url_for('login'))
    uid = current_user()['uid']
    try:
        clear_all_data(keep_uid=uid)
    except Exception:
        logging.exception("Failed to clear data")
        flash('Failed to clear data.', 'error')
        return redirect(url_for('teacher_advanced'))
    logging.warning("All data cleared by %s.", uid)
    flash('All data cleared successfully', 'success')
    return redirect(url_for('teacher_advanced'))


# ==================== STUDENT ROUTES ====================

@app.route('/student')
def student_dashboard():
    if current_role() != 'student':
        return redirect(url_for('login'))

    student = current_user()
    grade = student.get('grade') or MIN_GRADE
    try:
        marks = get_student_marks(student['uid'])
        subjects = get_subjects(grade)
    except Exception:
        logging.exception("Failed to load marks for %s", student['uid'])
        flash('Failed to load your marks.', 'error')
        marks, subjects = [], []

    view_type = request.args.get('view', 'term-wise')
    if view_type not in VIEW_TYPES:
        view_type = 'term-wise'
    return render_template('student/student_dashboard.html',
                           student=student,
                           marks=marks,
                           subjects=subjects,
                           view_type=view_type,
                           view_urls={v: url_for('student_dashboard', view=v) for v in VIEW_TYPES},
                           term_view=term_wise_view(marks, subjects),
                           subject_view=subject_wise_view(marks, subjects),
                           stats=student_overview(marks, subjects))


@app.route('/student/stats.json')
def student_stats():
    if current_role() != 'student':
        return jsonify({'error': 'forbidden'}), 403
    student = current_user()
    try:
        marks = get_student_marks(student['uid'])
        subjects = get_subjects(student.get('grade') or MIN_GRADE)
    except Exception:
        logging.exception("Failed to load stats for student %s", student['uid'])
        return jsonify({'error': 'Failed to load statistics.'}), 500
    return jsonify(student_overview(marks, subjects))


if __name__ == '__main__':
    app.run(debug=os.environ.get('FLASK_DEBUG', '').strip().lower() in ('1', 'true', 'yes'))
