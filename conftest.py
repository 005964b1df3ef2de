import importlib
from datetime import datetime, timedelta

import pytest


@pytest.fixture
def db_module(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'marks.db'}")

    import db

    mod = importlib.reload(db)
    mod.init_db()
    return mod


@pytest.fixture
def app_module(monkeypatch, tmp_path, db_module):
    monkeypatch.setenv("SECRET_KEY", "x" * 40)
    monkeypatch.setenv("RUN_STARTUP_DDL", "0")
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "app.log"))
    monkeypatch.delenv("ALLOW_INSECURE_DEFAULTS", raising=False)

    import student_marks

    mod = importlib.reload(student_marks)
    mod.app.config["TESTING"] = True
    mod.app.config["WTF_CSRF_ENABLED"] = False
    return mod


@pytest.fixture
def client(app_module):
    return app_module.app.test_client()


@pytest.fixture
def login_as(client):
    """Put a user into the session cache the way a successful login does."""

    def _login(user, expires_in=timedelta(hours=12)):
        with client.session_transaction() as sess:
            sess["sms_user_data"] = dict(user)
            sess["sms_user_role"] = user["role"]
            sess["sms_session_expiry"] = (datetime.now() + expires_in).isoformat()

    return _login


@pytest.fixture
def teacher(db_module):
    user, err = db_module.register_user("teacher@school.com", "Teacher@123", "John Teacher", role="teacher")
    assert err is None
    return user


@pytest.fixture
def student(db_module):
    user, err = db_module.register_user("student.grade5.1@school.com", "Student@123", "Kasun Rathnayake", grade=5)
    assert err is None
    return user
