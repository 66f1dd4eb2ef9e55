from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List
from uuid import uuid4

import yaml
from sqlalchemy.orm import Session

from edutrack.models.notification import NOTIFICATION_TYPES, Notification
from edutrack.models.student import BEHAVIORS, GRADE_TYPES, Grade, Student
from edutrack.models.user import ROLES, User
from edutrack.utils.auth import get_password_hash, normalize_email


# Demo fixture shipped with the package
DEMO_DATA_PATH = Path(__file__).resolve().parents[1] / "demo_data.yaml"


class DemoDataError(Exception):
    """Raised when the demo fixture cannot be read or is malformed."""
    pass


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Reads YAML into a dict. Raises DemoDataError on failure."""
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except Exception as e:
        raise DemoDataError(f"Cannot read YAML {path}: {e}") from e
    if not isinstance(data, dict):
        raise DemoDataError(f"Demo data must be a mapping: {path}")
    return data


def _require(item: Dict[str, Any], fields: tuple, where: str) -> None:
    missing = [k for k in fields if item.get(k) in (None, "")]
    if missing:
        raise DemoDataError(f"{where}: missing fields: {', '.join(missing)}")


def _choice(value: Any, allowed: tuple, where: str) -> str:
    value = str(value).strip()
    if value not in allowed:
        raise DemoDataError(f"{where}: {value!r} must be one of {list(allowed)}")
    return value


def _hash_once(password: str) -> str:
    # bcrypt hashes are stored as given, anything else is treated as plaintext
    if password.startswith(("$2a$", "$2b$", "$2y$")):
        return password
    return get_password_hash(password)


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return datetime.fromisoformat(str(value))
    except ValueError as e:
        raise DemoDataError(f"Bad date: {value!r}") from e


def load_demo_data(db: Session, path: Path | None = None) -> Dict[str, int]:
    """
    Replaces every user, student and notification with the fixture content.
    Students refer to their teacher and notifications to their sender by
    email. Returns the number of rows created per kind.
    """
    data = _load_yaml(Path(path) if path else DEMO_DATA_PATH)
    users_raw: List[Dict[str, Any]] = data.get("users") or []
    students_raw: List[Dict[str, Any]] = data.get("students") or []
    notifications_raw: List[Dict[str, Any]] = data.get("notifications") or []

    db.query(Notification).delete()
    db.query(Grade).delete()
    db.query(Student).delete()
    db.query(User).delete()
    db.flush()

    by_email: Dict[str, User] = {}
    for i, raw in enumerate(users_raw):
        where = f"users[{i}]"
        _require(raw, ("email", "password", "name", "role"), where)
        email = normalize_email(raw["email"])
        if email in by_email:
            raise DemoDataError(f"{where}: duplicate email {email}")
        user = User(
            id=str(uuid4()),
            email=email,
            password_hash=_hash_once(str(raw["password"])),
            name=str(raw["name"]),
            role=_choice(raw["role"], ROLES, where),
            phone=str(raw.get("phone") or ""),
        )
        by_email[email] = user
        db.add(user)

    codes = set()
    grade_count = 0
    for i, raw in enumerate(students_raw):
        where = f"students[{i}]"
        _require(raw, ("name", "studentId", "class", "parentEmail", "teacher"), where)
        teacher = by_email.get(normalize_email(raw["teacher"]))
        if teacher is None or teacher.role != "teacher":
            raise DemoDataError(f"{where}: teacher {raw['teacher']!r} is not a teacher account")
        code = str(raw["studentId"])
        if code in codes:
            raise DemoDataError(f"{where}: duplicate studentId {code}")
        codes.add(code)

        attendance = int(raw.get("attendance", 0))
        if not 0 <= attendance <= 100:
            raise DemoDataError(f"{where}: attendance must be within 0..100")
        student = Student(
            id=str(uuid4()),
            name=str(raw["name"]),
            student_id=code,
            class_name=str(raw["class"]),
            parent_email=normalize_email(raw["parentEmail"]),
            attendance=attendance,
            behavior=_choice(raw.get("behavior", "good"), BEHAVIORS, where),
            notes=str(raw.get("notes") or ""),
            teacher_id=teacher.id,
        )
        for j, g in enumerate(raw.get("grades") or []):
            gwhere = f"{where}.grades[{j}]"
            _require(g, ("subject", "score"), gwhere)
            score = float(g["score"])
            if not 0 <= score <= 10:
                raise DemoDataError(f"{gwhere}: score must be within 0..10")
            grade = Grade(
                subject=str(g["subject"]),
                score=score,
                type=_choice(g.get("type", "homework"), GRADE_TYPES, gwhere),
            )
            if g.get("date") is not None:
                grade.date = _as_datetime(g["date"])
            student.grades.append(grade)
            grade_count += 1
        db.add(student)

    for i, raw in enumerate(notifications_raw):
        where = f"notifications[{i}]"
        _require(raw, ("title", "message", "recipientEmail", "sender"), where)
        sender = by_email.get(normalize_email(raw["sender"]))
        if sender is None:
            raise DemoDataError(f"{where}: unknown sender {raw['sender']!r}")
        db.add(Notification(
            id=str(uuid4()),
            title=str(raw["title"]),
            message=str(raw["message"]),
            type=_choice(raw.get("type", "general"), NOTIFICATION_TYPES, where),
            recipient_email=normalize_email(raw["recipientEmail"]),
            student_id=raw.get("studentId"),
            is_read=bool(raw.get("isRead", False)),
            sender_id=sender.id,
        ))

    db.commit()
    return {
        "users": len(by_email),
        "students": len(codes),
        "grades": grade_count,
        "notifications": len(notifications_raw),
    }


if __name__ == "__main__":
    # Local run: python -m edutrack.utils.demo_loader
    from edutrack.database import Base, SessionLocal, engine
    from edutrack import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        result = load_demo_data(db)
        print("Demo data loaded:", result)
    finally:
        db.close()
