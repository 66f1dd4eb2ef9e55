import pytest

from edutrack.models import Notification, Student, User
from edutrack.utils.demo_loader import DemoDataError, load_demo_data
from edutrack.utils.auth import verify_password
from tests.conftest import PASSWORD, auth_headers


def test_bundled_demo_data_loads(db):
    counts = load_demo_data(db)
    assert counts == {"users": 3, "students": 3, "grades": 11, "notifications": 2}

    teacher = db.query(User).filter(User.email == "teacher@demo.com").one()
    assert verify_password(PASSWORD, teacher.password_hash)
    an = db.query(Student).filter(Student.student_id == "SV001").one()
    assert an.teacher_id == teacher.id
    assert [g.subject for g in an.grades][:2] == ["Math", "English"]
    assert an.grades[0].date.year == 2024


def test_loading_twice_replaces_rows(db):
    load_demo_data(db)
    load_demo_data(db)
    assert db.query(User).count() == 3
    assert db.query(Notification).count() == 2


def test_demo_accounts_can_sign_in(client, db):
    load_demo_data(db)
    resp = client.post("/auth/login", json={"email": "parent@demo.com", "password": PASSWORD})
    assert resp.status_code == 200
    students = client.get("/students", headers=auth_headers(resp.json()["token"])).json()
    assert [s["studentId"] for s in students["students"]] == ["SV001", "SV002"]


def _write(tmp_path, text):
    path = tmp_path / "demo.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_student_must_belong_to_a_teacher(db, tmp_path):
    path = _write(tmp_path, """
users:
  - {email: p@x.com, password: secret1, name: P, role: parent}
students:
  - {name: A, studentId: S1, class: 1A, parentEmail: p@x.com, teacher: p@x.com}
""")
    with pytest.raises(DemoDataError):
        load_demo_data(db, path)


def test_bad_grade_is_rejected(db, tmp_path):
    path = _write(tmp_path, """
users:
  - {email: t@x.com, password: secret1, name: T, role: teacher}
students:
  - name: A
    studentId: S1
    class: 1A
    parentEmail: p@x.com
    teacher: t@x.com
    grades:
      - {subject: Math, score: 12}
""")
    with pytest.raises(DemoDataError):
        load_demo_data(db, path)


def test_non_mapping_fixture_is_rejected(db, tmp_path):
    with pytest.raises(DemoDataError):
        load_demo_data(db, _write(tmp_path, "- just\n- a list\n"))
