from __future__ import annotations

import math
from typing import Any, Dict

from sqlalchemy import false, func, or_
from sqlalchemy.orm import Query

from edutrack.errors import ValidationError
from edutrack.models.notification import Notification
from edutrack.models.student import Student
from edutrack.utils.policy import NotificationScope, StudentScope


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def apply_student_scope(query: Query, scope: StudentScope) -> Query:
    if scope.empty:
        return query.filter(false())
    if scope.teacher_id is not None:
        query = query.filter(Student.teacher_id == scope.teacher_id)
    if scope.parent_email is not None:
        query = query.filter(func.lower(Student.parent_email) == scope.parent_email)
    if scope.search:
        # case-insensitive substring, name OR student code
        pattern = f"%{_escape_like(scope.search.lower())}%"
        query = query.filter(
            or_(
                func.lower(Student.name).like(pattern, escape="\\"),
                func.lower(Student.student_id).like(pattern, escape="\\"),
            )
        )
    if scope.class_name:
        query = query.filter(Student.class_name == scope.class_name)
    return query


def apply_notification_scope(query: Query, scope: NotificationScope) -> Query:
    if scope.recipient_email is not None:
        query = query.filter(Notification.recipient_email == scope.recipient_email)
    if scope.sender_id is not None:
        query = query.filter(Notification.sender_id == scope.sender_id)
    return query


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit)


def paginate(query: Query, page: int, limit: int) -> Dict[str, Any]:
    """
    Slices an already ordered query. ``current_page`` echoes the requested page
    even when it lies past the last one; such pages are simply empty.
    """
    if page < 1:
        raise ValidationError("page must be at least 1")
    if limit < 1:
        raise ValidationError("limit must be greater than 0")
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return {
        "items": items,
        "total": total,
        "total_pages": total_pages(total, limit),
        "current_page": page,
    }
