import logging
from uuid import uuid4

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from edutrack import config
from edutrack.database import get_db
from edutrack.errors import NotFoundError
from edutrack.models.notification import Notification
from edutrack.schemas.notification import (
    NotificationCreate,
    NotificationEnvelope,
    NotificationList,
    UnreadCount,
)
from edutrack.utils import policy
from edutrack.utils.auth import get_current_actor, normalize_email
from edutrack.utils.policy import Actor, NotificationScope
from edutrack.utils.push import PushNotificationService, get_push_service, notify_best_effort
from edutrack.utils.queries import apply_notification_scope, paginate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/notifications", tags=["Notifications"])


def _list(db: Session, scope: NotificationScope, page: int, limit: int):
    query = apply_notification_scope(db.query(Notification), scope)
    query = query.order_by(Notification.created_at.desc(), Notification.id.asc())
    result = paginate(query, page, limit)
    return {
        "notifications": result["items"],
        "total_pages": result["total_pages"],
        "current_page": result["current_page"],
        "total": result["total"],
    }


@router.get("", response_model=NotificationList)
def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, gt=0),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return _list(db, policy.inbox_scope(actor), page, limit)


@router.get("/sent", response_model=NotificationList)
def sent_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, gt=0),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return _list(db, policy.sent_scope(actor), page, limit)


@router.get("/unread-count", response_model=UnreadCount)
def unread_count(db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    query = apply_notification_scope(db.query(Notification), policy.inbox_scope(actor))
    return {"count": query.filter(Notification.is_read.is_(False)).count()}


@router.put("/{notification_id}/read", response_model=NotificationEnvelope)
def mark_read(notification_id: str, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    notification = db.get(Notification, notification_id)
    if not notification:
        raise NotFoundError("Notification not found")
    policy.authorize_mark_read(actor, notification.recipient_email)

    if not notification.is_read:
        notification.is_read = True
        db.commit()
        db.refresh(notification)
    return {"message": "Notification marked as read", "notification": notification}


@router.post("", response_model=NotificationEnvelope, status_code=status.HTTP_201_CREATED)
def create_notification(
    payload: NotificationCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    push: PushNotificationService = Depends(get_push_service),
):
    policy.authorize_compose(actor, strict=config.STRICT_SCOPING)

    notification = Notification(
        id=str(uuid4()),
        title=payload.title,
        message=payload.message,
        type=payload.type,
        recipient_email=normalize_email(payload.recipient_email),
        student_id=payload.student_id,
        is_read=False,
        sender_id=actor.id,
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    logger.info("User %s sent a %s notification %s", actor.id, notification.type, notification.id)

    notify_best_effort(
        push,
        [notification.recipient_email],
        notification.title,
        notification.message,
        {"notificationId": notification.id, "type": notification.type, "senderId": actor.id},
    )
    return {"message": "Notification sent successfully", "notification": notification}
