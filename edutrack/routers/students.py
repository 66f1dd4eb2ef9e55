from __future__ import annotations

import logging
from typing import Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from edutrack import config
from edutrack.database import get_db
from edutrack.errors import ConflictError, NotFoundError, ValidationError
from edutrack.models.notification import Notification
from edutrack.models.student import Grade, Student
from edutrack.schemas.student import (
    GradeCreate,
    GradeSummary,
    MessageOut,
    StudentCreate,
    StudentEnvelope,
    StudentList,
    StudentOut,
    StudentUpdate,
)
from edutrack.utils import policy
from edutrack.utils.auth import get_current_actor, normalize_email
from edutrack.utils.policy import Actor
from edutrack.utils.push import PushNotificationService, get_push_service, notify_best_effort
from edutrack.utils.queries import apply_student_scope, paginate
from edutrack.utils.scoring import compute_summary

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/students", tags=["Students"])


def _get_student(db: Session, student_pk: str) -> Student:
    student = db.get(Student, student_pk)
    if not student:
        raise NotFoundError("Student not found")
    return student


def _student_code_taken(db: Session, code: str, exclude_pk: Optional[str] = None) -> bool:
    q = db.query(Student.id).filter(Student.student_id == code)
    if exclude_pk:
        q = q.filter(Student.id != exclude_pk)
    return q.first() is not None


def _commit_unique(db: Session) -> None:
    # the unique index is the last word when two requests race on one code
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Student ID already exists")


def grade_notification(student: Student, grade: Grade, sender_id: str) -> Notification:
    return Notification(
        id=str(uuid4()),
        title="New grade",
        message=f"{student.name} received a new {grade.subject} grade: {grade.score:g}/10",
        type="grade_update",
        recipient_email=student.parent_email,
        student_id=student.student_id,
        is_read=False,
        sender_id=sender_id,
    )


def _notify_parent(db: Session, push: PushNotificationService, student: Student, grade: Grade, actor: Actor) -> None:
    """
    Runs after the grade is committed, in its own commit. A failure here is
    logged and dropped; the grade stays.
    """
    try:
        notification = grade_notification(student, grade, actor.id)
        db.add(notification)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Grade notification for student %s was not created", student.id)
        return
    notify_best_effort(
        push,
        [notification.recipient_email],
        notification.title,
        notification.message,
        {"notificationId": notification.id, "type": notification.type, "senderId": actor.id},
    )


@router.get("", response_model=StudentList)
def list_students(
    page: int = Query(1, ge=1),
    limit: int = Query(10, gt=0),
    search: str = "",
    class_name: str = Query("", alias="class"),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    scope = policy.student_list_scope(actor, search=search, class_name=class_name)
    query = apply_student_scope(db.query(Student), scope).order_by(Student.name.asc(), Student.id.asc())
    result = paginate(query, page, limit)
    return {
        "students": result["items"],
        "total_pages": result["total_pages"],
        "current_page": result["current_page"],
        "total": result["total"],
    }


@router.get("/{student_pk}", response_model=StudentOut)
def get_student(student_pk: str, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    student = _get_student(db, student_pk)
    policy.authorize_student_read(actor, student.teacher_id, student.parent_email, strict=config.STRICT_SCOPING)
    return student


@router.get("/{student_pk}/summary", response_model=GradeSummary)
def student_summary(student_pk: str, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    student = _get_student(db, student_pk)
    policy.authorize_student_read(actor, student.teacher_id, student.parent_email, strict=config.STRICT_SCOPING)
    summary = compute_summary(student.grades)
    summary["student_id"] = student.student_id
    return summary


@router.post("", response_model=StudentEnvelope, status_code=status.HTTP_201_CREATED)
def create_student(payload: StudentCreate, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    policy.authorize_student_create(actor)

    code = payload.student_id
    if _student_code_taken(db, code):
        raise ConflictError("Student ID already exists")

    student = Student(
        id=str(uuid4()),
        name=payload.name,
        student_id=code,
        class_name=payload.class_name,
        parent_email=normalize_email(payload.parent_email),
        attendance=payload.attendance,
        behavior=payload.behavior,
        notes=payload.notes,
        teacher_id=actor.id,    # never taken from the request
    )
    db.add(student)
    _commit_unique(db)
    db.refresh(student)
    logger.info("Teacher %s created student %s", actor.id, student.id)
    return {"message": "Student created successfully", "student": student}


@router.put("/{student_pk}", response_model=StudentEnvelope)
def update_student(
    student_pk: str,
    payload: StudentUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    student = _get_student(db, student_pk)
    policy.authorize_student_write(actor, student.teacher_id)

    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is None:
            name = StudentUpdate.model_fields[field].alias or field
            raise ValidationError(f"{name}: may not be null")

    if "student_id" in changes:
        if _student_code_taken(db, changes["student_id"], exclude_pk=student.id):
            raise ConflictError("Student ID already exists")
    if "parent_email" in changes:
        changes["parent_email"] = normalize_email(changes["parent_email"])

    for field, value in changes.items():
        setattr(student, field, value)
    _commit_unique(db)
    db.refresh(student)
    logger.info("Teacher %s updated student %s (%s)", actor.id, student.id, ", ".join(sorted(changes)))
    return {"message": "Student updated successfully", "student": student}


@router.post("/{student_pk}/grades", response_model=StudentEnvelope)
def add_grade(
    student_pk: str,
    payload: GradeCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    push: PushNotificationService = Depends(get_push_service),
):
    student = _get_student(db, student_pk)
    policy.authorize_student_write(actor, student.teacher_id)

    grade = Grade(subject=payload.subject, score=payload.score, type=payload.type)
    student.grades.append(grade)
    db.commit()
    db.refresh(student)
    logger.info("Teacher %s added a %s grade to student %s", actor.id, grade.subject, student.id)

    _notify_parent(db, push, student, grade, actor)
    return {"message": "Grade added successfully", "student": student}


@router.delete("/{student_pk}", response_model=MessageOut)
def delete_student(student_pk: str, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    student = _get_student(db, student_pk)
    policy.authorize_student_write(actor, student.teacher_id)

    db.delete(student)
    db.commit()
    logger.info("Teacher %s deleted student %s", actor.id, student_pk)
    return {"message": "Student deleted successfully"}
