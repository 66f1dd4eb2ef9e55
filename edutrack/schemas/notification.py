from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field

from edutrack.schemas.student import RequiredText

NotificationType = Literal["grade_update", "attendance", "general"]


class NotificationCreate(BaseModel):
    title: RequiredText
    message: RequiredText
    recipient_email: EmailStr = Field(alias="recipientEmail")
    type: NotificationType = "general"
    student_id: Optional[str] = Field(None, alias="studentId")

    class Config:
        extra = "forbid"
        populate_by_name = True


class NotificationOut(BaseModel):
    id: str
    title: str
    message: str
    type: NotificationType
    recipient_email: str = Field(alias="recipientEmail")
    student_id: Optional[str] = Field(None, alias="studentId")
    is_read: bool = Field(alias="isRead")
    sender_id: str = Field(alias="senderId")
    sender_name: Optional[str] = Field(None, alias="senderName")
    created_at: datetime = Field(alias="createdAt")

    class Config:
        from_attributes = True
        populate_by_name = True


class NotificationEnvelope(BaseModel):
    message: str
    notification: NotificationOut


class NotificationList(BaseModel):
    notifications: List[NotificationOut]
    total_pages: int = Field(alias="totalPages")
    current_page: int = Field(alias="currentPage")
    total: int

    class Config:
        populate_by_name = True


class UnreadCount(BaseModel):
    count: int
