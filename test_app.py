import importlib
from datetime import datetime, timedelta

import pytest


def session_keys(client):
    with client.session_transaction() as sess:
        return dict(sess)


def test_missing_or_short_secret_key_is_rejected(app_module, monkeypatch):
    monkeypatch.delenv("SECRET_KEY", raising=False)
    with pytest.raises(RuntimeError):
        importlib.reload(app_module)

    monkeypatch.setenv("SECRET_KEY", "short")
    with pytest.raises(RuntimeError):
        importlib.reload(app_module)


def test_login_page_renders(client):
    resp = client.get("/login")
    assert resp.status_code == 200
    assert b"Sign in" in resp.data


def test_home_redirects_anonymous_user_to_login(client):
    resp = client.get("/")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/login")


def test_login_caches_user_in_session(client, teacher):
    resp = client.post("/login", data={"email": "Teacher@School.com", "password": "Teacher@123"})
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/teacher")

    sess = session_keys(client)
    assert sess["sms_user_role"] == "teacher"
    assert sess["sms_user_data"]["uid"] == teacher["uid"]
    assert datetime.fromisoformat(sess["sms_session_expiry"]) > datetime.now() + timedelta(hours=11)


def test_login_with_wrong_password(client, app_module, monkeypatch, teacher):
    m = app_module
    monkeypatch.setattr(m, "render_template", lambda *args, **kwargs: "OK")

    resp = client.post("/login", data={"email": "teacher@school.com", "password": "nope"})
    assert resp.status_code == 200
    sess = session_keys(client)
    assert "sms_user_data" not in sess
    assert ("error", "Invalid email or password.") in sess["_flashes"]


def test_login_corrects_teacher_role_stored_for_student_email(client, db_module):
    m = db_module
    uid, err = m.create_account("student.grade4.1@school.com", "Student@123")
    assert err is None
    # Bypass save_user normalization to simulate a bad legacy record.
    with m.db_connection(commit=True) as conn:
        c = conn.cursor()
        m.db_execute(
            c,
            "INSERT INTO users (uid, email, name, role) VALUES (?, ?, ?, ?)",
            (uid, "student.grade4.1@school.com", "Legacy", "teacher"),
        )

    resp = client.post("/login", data={"email": "student.grade4.1@school.com", "password": "Student@123"})
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/student")
    assert session_keys(client)["sms_user_role"] == "student"
    stored = m.get_user(uid)
    assert stored["role"] == "student"
    assert stored["grade"] == 1


def test_login_uses_corrected_role_when_saving_it_fails(client, app_module, db_module, monkeypatch):
    m = db_module
    uid, _ = m.create_account("student.grade6.2@school.com", "Student@123")
    with m.db_connection(commit=True) as conn:
        c = conn.cursor()
        m.db_execute(
            c,
            "INSERT INTO users (uid, email, name, role) VALUES (?, ?, ?, ?)",
            (uid, "student.grade6.2@school.com", "Legacy", "teacher"),
        )

    def fail_update(*args, **kwargs):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(app_module, "update_user", fail_update)

    resp = client.post("/login", data={"email": "student.grade6.2@school.com", "password": "Student@123"})
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/student")
    sess = session_keys(client)
    assert sess["sms_user_role"] == "student"
    assert sess["sms_user_data"]["grade"] == 1
    assert m.get_user(uid)["role"] == "teacher"


def test_login_without_profile_record_derives_user_from_email(client, db_module):
    uid, _ = db_module.create_account("pupil.nine@school.com", "secret1")

    resp = client.post("/login", data={"email": "pupil.nine@school.com", "password": "secret1"})
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/student")
    cached = session_keys(client)["sms_user_data"]
    assert cached == {"uid": uid, "email": "pupil.nine@school.com", "name": "pupil.nine", "role": "student", "grade": 1}


def test_signup_with_student_email_is_registered_as_student(client, db_module):
    resp = client.post(
        "/signup",
        data={
            "name": "New Kid",
            "email": "student.new@school.com",
            "password": "secret1",
            "role": "teacher",
            "grade": "",
        },
    )
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/student")
    account = db_module.get_account_by_email("student.new@school.com")
    assert db_module.get_user(account["uid"])["role"] == "student"


def test_signup_rejects_duplicate_email(client, app_module, monkeypatch, teacher):
    monkeypatch.setattr(app_module, "render_template", lambda *args, **kwargs: "OK")
    resp = client.post(
        "/signup",
        data={"name": "Again", "email": "teacher@school.com", "password": "secret1", "role": "teacher"},
    )
    assert resp.status_code == 200
    assert ("error", "An account with this email already exists.") in session_keys(client)["_flashes"]


def test_teacher_routes_reject_students(client, login_as, student):
    login_as(student)
    for path in ("/teacher", "/teacher/students", "/teacher/subjects", "/teacher/advanced", "/teacher/report"):
        resp = client.get(path)
        assert resp.status_code == 302
        assert resp.headers["Location"].endswith("/login")
    assert client.get("/teacher/stats.json").status_code == 403


def test_student_routes_reject_teachers(client, login_as, teacher):
    login_as(teacher)
    resp = client.get("/student")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/login")
    assert client.get("/student/stats.json").status_code == 403


def test_expired_session_is_cleared(client, login_as, teacher):
    login_as(teacher, expires_in=timedelta(hours=-1))
    resp = client.get("/teacher")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/login")
    assert "sms_user_data" not in session_keys(client)


def test_session_role_mismatch_is_cleared(client, teacher):
    with client.session_transaction() as sess:
        sess["sms_user_data"] = dict(teacher)
        sess["sms_user_role"] = "student"
        sess["sms_session_expiry"] = (datetime.now() + timedelta(hours=1)).isoformat()

    resp = client.get("/teacher")
    assert resp.status_code == 302
    assert "sms_user_role" not in session_keys(client)


def test_session_is_refreshed_from_database(client, db_module, login_as, teacher):
    login_as(teacher)
    db_module.update_user(teacher["uid"], {"role": "student", "grade": 4})

    resp = client.get("/teacher")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/login")
    sess = session_keys(client)
    assert sess["sms_user_role"] == "student"
    assert sess["sms_user_data"]["grade"] == 4


def test_cached_user_is_used_when_store_is_unavailable(client, app_module, monkeypatch, login_as, student):
    m = app_module
    captured = {}

    def broken_get_account(uid):
        raise RuntimeError("database unavailable")

    def fake_render(template, **kwargs):
        captured["template"] = template
        captured.update(kwargs)
        return "OK"

    monkeypatch.setattr(m, "get_account", broken_get_account)
    monkeypatch.setattr(m, "render_template", fake_render)
    login_as(student)

    resp = client.get("/student")
    assert resp.status_code == 200
    assert captured["template"] == "student/student_dashboard.html"
    assert captured["student"]["uid"] == student["uid"]


def test_deleted_account_logs_user_out(client, db_module, login_as, student):
    login_as(student)
    db_module.delete_student(student["uid"])

    resp = client.get("/student")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/login")
    assert "sms_user_data" not in session_keys(client)


def test_logout_clears_session(client, login_as, teacher):
    login_as(teacher)
    resp = client.get("/logout")
    assert resp.status_code == 302
    assert "sms_user_data" not in session_keys(client)


def post_mark(client, student_id, score, term="Term 1", subject_id="s1"):
    return client.post(
        f"/teacher/marks?student_id={student_id}",
        data={
            "subject_id": subject_id,
            "score": str(score),
            "comment": "",
            "term": term,
            "year": str(datetime.now().year),
        },
    )


def test_mark_entry_creates_then_updates_same_mark(client, db_module, login_as, teacher, student):
    db_module.add_subject("Mathematics", grade=5, subject_id="s1")
    login_as(teacher)

    resp = post_mark(client, student["uid"], 82)
    assert resp.status_code == 302
    marks = db_module.get_student_marks(student["uid"])
    assert len(marks) == 1
    assert marks[0]["score"] == 82
    assert marks[0]["teacher_id"] == teacher["uid"]
    assert marks[0]["grade"] == 5
    first_id = marks[0]["id"]

    post_mark(client, student["uid"], 90)
    marks = db_module.get_student_marks(student["uid"])
    assert [(mk["id"], mk["score"]) for mk in marks] == [(first_id, 90)]
    assert ("success", "Mark updated successfully") in session_keys(client)["_flashes"]


def test_mark_entry_rejects_out_of_range_score(client, db_module, login_as, teacher, student):
    db_module.add_subject("Mathematics", grade=5, subject_id="s1")
    login_as(teacher)

    resp = post_mark(client, student["uid"], 150)
    assert resp.status_code == 302
    assert db_module.get_student_marks(student["uid"]) == []
    flashes = session_keys(client)["_flashes"]
    assert flashes and flashes[0][0] == "error"


def test_mark_entry_unknown_student_redirects(client, login_as, teacher):
    login_as(teacher)
    resp = client.get("/teacher/marks?student_id=nobody")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/teacher")


def test_mark_entry_page_renders_both_views(client, db_module, login_as, teacher, student):
    db_module.add_subject("Mathematics", grade=5, subject_id="s1")
    db_module.upsert_mark(student["uid"], "s1", 5, 77, "Solid", "Term 2", 2024, teacher["uid"])
    login_as(teacher)

    for view in ("term-wise", "subject-wise"):
        resp = client.get(f"/teacher/marks?student_id={student['uid']}&view={view}")
        assert resp.status_code == 200
        assert b"Mathematics" in resp.data
        assert b"Solid" in resp.data


def test_teacher_dashboard_renders_grade_statistics(client, db_module, login_as, teacher, student):
    db_module.add_subject("Mathematics", grade=5, subject_id="s1")
    db_module.upsert_mark(student["uid"], "s1", 5, 40, "", "Term 1", 2024, teacher["uid"])
    login_as(teacher)

    resp = client.get("/teacher?grade=5")
    assert resp.status_code == 200
    assert b"Kasun Rathnayake" in resp.data
    assert b"Students needing attention" in resp.data


def test_teacher_stats_json(client, db_module, login_as, teacher, student):
    db_module.add_subject("Mathematics", grade=5, subject_id="s1")
    db_module.upsert_mark(student["uid"], "s1", 5, 80, "", "Term 1", 2024, teacher["uid"])
    login_as(teacher)

    data = client.get("/teacher/stats.json?grade=5").get_json()
    assert data["grade"] == 5
    assert data["student_count"] == 1
    assert data["class_average"] == 80
    assert data["high_performers"] == 1


def test_student_dashboard_and_stats(client, db_module, login_as, teacher, student):
    db_module.add_subject("Science", subject_id="sci")
    db_module.upsert_mark(student["uid"], "sci", 5, 64, "", "Term 1", 2024, teacher["uid"])
    login_as(student)

    resp = client.get("/student?view=subject-wise")
    assert resp.status_code == 200
    assert b"Science" in resp.data

    data = client.get("/student/stats.json").get_json()
    assert data["overall_average"] == 64
    assert data["radar"] == [{"subject": "Science", "score": 64}]


def test_stats_json_reports_store_errors(client, app_module, monkeypatch, login_as, teacher, student):
    def fail(*args, **kwargs):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(app_module, "get_marks_for_grade", fail)
    monkeypatch.setattr(app_module, "get_student_marks", fail)

    login_as(teacher)
    resp = client.get("/teacher/stats.json?grade=5")
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Failed to load statistics."}

    login_as(student)
    resp = client.get("/student/stats.json")
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Failed to load statistics."}


def test_add_student_route(client, db_module, login_as, teacher):
    login_as(teacher)
    resp = client.post(
        "/teacher/students",
        data={"name": "Gayan Mendis", "email": "student.grade3.2@school.com", "password": "Student@123", "grade": "3"},
    )
    assert resp.status_code == 302
    students = db_module.get_students_by_grade(3)
    assert [s["name"] for s in students] == ["Gayan Mendis"]


def test_delete_student_route_removes_marks(client, db_module, login_as, teacher, student):
    db_module.upsert_mark(student["uid"], "s1", 5, 60, "", "Term 1", 2024, teacher["uid"])
    login_as(teacher)

    resp = client.post("/teacher/students/delete", data={"student_id": student["uid"]})
    assert resp.status_code == 302
    assert db_module.get_user(student["uid"]) is None
    assert db_module.get_all_marks() == {}


def test_delete_student_route_refuses_teacher_accounts(client, db_module, login_as, teacher):
    login_as(teacher)
    client.post("/teacher/students/delete", data={"student_id": teacher["uid"]})
    assert db_module.get_user(teacher["uid"]) is not None


def test_subject_management_routes(client, db_module, login_as, teacher, student):
    login_as(teacher)

    resp = client.post("/teacher/subjects?grade=5", data={"name": "  Drama  Club ", "grade": ""})
    assert resp.status_code == 302
    subject = next(s for s in db_module.get_all_subjects().values() if s["name"] == "Drama Club")
    assert subject["grade"] is None

    client.post("/teacher/subjects/update", data={"subject_id": subject["id"], "name": "Drama"})
    updated = db_module.get_subject(subject["id"])
    assert updated["name"] == "Drama"
    assert updated["active"] is False

    db_module.upsert_mark(student["uid"], subject["id"], 5, 60, "", "Term 1", 2024, teacher["uid"])
    client.post("/teacher/subjects/delete", data={"subject_id": subject["id"]})
    assert db_module.get_subject(subject["id"]) is None
    assert db_module.get_all_marks() == {}


def test_subjects_page_renders(client, db_module, login_as, teacher):
    db_module.initialize_subjects()
    login_as(teacher)
    resp = client.get("/teacher/subjects?grade=7")
    assert resp.status_code == 200
    assert b"Health &amp; Physical Education" in resp.data


def test_report_download_is_html_attachment(client, db_module, login_as, teacher, student):
    db_module.add_subject("Mathematics", grade=5, subject_id="s1")
    db_module.upsert_mark(student["uid"], "s1", 5, 76, "Great", "Term 1", 2024, teacher["uid"])
    login_as(teacher)

    resp = client.get("/teacher/report?grade=5")
    assert resp.status_code == 200
    assert resp.headers["Content-Disposition"] == "attachment; filename=grade_5_report.html"
    assert resp.mimetype == "text/html"
    assert b"Kasun Rathnayake" in resp.data
    assert b"Great" in resp.data


def test_optimize_route_reports_counts(client, app_module, monkeypatch, login_as, teacher):
    m = app_module
    monkeypatch.setattr(
        m,
        "optimize_database",
        lambda: {"duplicates_removed": 2, "null_values_fixed": 1, "inconsistencies_fixed": 0, "empty_fields_fixed": 3},
    )
    login_as(teacher)

    resp = client.post("/teacher/advanced/optimize")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/teacher/advanced")
    category, message = session_keys(client)["_flashes"][0]
    assert category == "success"
    assert "2 duplicates removed" in message


def test_clear_marks_and_clear_all_routes(client, db_module, login_as, teacher, student):
    db_module.upsert_mark(student["uid"], "s1", 5, 60, "", "Term 1", 2024, teacher["uid"])
    login_as(teacher)

    client.post("/teacher/advanced/clear-marks")
    assert db_module.get_all_marks() == {}
    assert db_module.get_user(student["uid"]) is not None

    client.post("/teacher/advanced/clear-all")
    assert list(db_module.get_all_users()) == [teacher["uid"]]
    assert client.get("/teacher/advanced").status_code == 200


def test_csrf_failure_redirects_without_side_effects(client, app_module, db_module, login_as, teacher, student):
    app_module.app.config["WTF_CSRF_ENABLED"] = True
    db_module.upsert_mark(student["uid"], "s1", 5, 60, "", "Term 1", 2024, teacher["uid"])
    login_as(teacher)

    resp = client.post("/teacher/advanced/clear-marks", headers={"Referer": "http://localhost/teacher/advanced"})
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/teacher/advanced")
    assert len(db_module.get_all_marks()) == 1
    flashes = session_keys(client)["_flashes"]
    assert ("error", "Form token expired/invalid. Please retry your last action.") in flashes


def test_csrf_failure_without_session_redirects_to_login(client, app_module):
    app_module.app.config["WTF_CSRF_ENABLED"] = True

    resp = client.post("/teacher/advanced/clear-marks")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/login")
    flashes = session_keys(client)["_flashes"]
    assert ("error", "Your session has expired. Please login again.") in flashes
