"""
Access scoping for the roster and the notification inbox.

Everything here is pure: the functions look at an ``Actor`` and, for writes,
at the record being touched, and either return a scope describing which rows
the actor may see or raise ``AuthorizationError``. Turning a scope into a
query is the job of ``edutrack.utils.queries``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from edutrack.errors import AuthorizationError


@dataclass(frozen=True)
class Actor:
    """Authenticated identity a request runs as."""
    id: str
    email: str   # lowercase
    role: str    # teacher | parent | student

    @property
    def is_teacher(self) -> bool:
        return self.role == "teacher"


@dataclass(frozen=True)
class StudentScope:
    teacher_id: Optional[str] = None
    parent_email: Optional[str] = None
    search: Optional[str] = None
    class_name: Optional[str] = None
    empty: bool = False


@dataclass(frozen=True)
class NotificationScope:
    recipient_email: Optional[str] = None
    sender_id: Optional[str] = None


def _clean(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def student_list_scope(actor: Actor, search: Optional[str] = None, class_name: Optional[str] = None) -> StudentScope:
    """
    Teachers see the students they own, parents the students registered with
    their email. Search and class narrowing apply to both. Any other role
    sees nothing.
    """
    search, class_name = _clean(search), _clean(class_name)
    if actor.role == "teacher":
        return StudentScope(teacher_id=actor.id, search=search, class_name=class_name)
    if actor.role == "parent":
        return StudentScope(parent_email=actor.email, search=search, class_name=class_name)
    return StudentScope(empty=True)


def can_view_student(actor: Actor, teacher_id: str, parent_email: str) -> bool:
    if actor.role == "teacher":
        return actor.id == teacher_id
    if actor.role == "parent":
        return actor.email == (parent_email or "").lower()
    return False


def authorize_student_read(actor: Actor, teacher_id: str, parent_email: str, strict: bool) -> None:
    # without strict scoping any signed-in actor may open a record by id
    if strict and not can_view_student(actor, teacher_id, parent_email):
        raise AuthorizationError()


def authorize_student_create(actor: Actor) -> None:
    if not actor.is_teacher:
        raise AuthorizationError("Only teachers can perform this action")


def authorize_student_write(actor: Actor, teacher_id: str) -> None:
    """Update, delete and grade append are reserved to the owning teacher."""
    authorize_student_create(actor)
    if actor.id != teacher_id:
        raise AuthorizationError()


def inbox_scope(actor: Actor) -> NotificationScope:
    return NotificationScope(recipient_email=actor.email)


def sent_scope(actor: Actor) -> NotificationScope:
    return NotificationScope(sender_id=actor.id)


def authorize_mark_read(actor: Actor, recipient_email: str) -> None:
    if (recipient_email or "").lower() != actor.email:
        raise AuthorizationError()


def authorize_compose(actor: Actor, strict: bool) -> None:
    # recipients are never checked against registered accounts
    if strict and not actor.is_teacher:
        raise AuthorizationError("Only teachers can send notifications")
