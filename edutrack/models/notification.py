from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from edutrack.database import Base
from edutrack.models.user import utcnow

NOTIFICATION_TYPES = ("grade_update", "attendance", "general")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String, primary_key=True, index=True)
    title = Column(String, nullable=False)
    message = Column(String, nullable=False)
    type = Column(String, nullable=False, default="general")

    recipient_email = Column(String, nullable=False, index=True)
    student_id = Column(String, nullable=True)   # student code tag, not a foreign key
    is_read = Column(Boolean, nullable=False, default=False)

    sender_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    sender = relationship("User")

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def sender_name(self) -> str | None:
        return self.sender.name if self.sender else None
