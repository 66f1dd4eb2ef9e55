from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from edutrack.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


ROLES = ("teacher", "parent", "student")


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)  # always lowercase
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False)    # teacher | parent | student
    phone = Column(String, nullable=False, default="")
    push_token = Column(String, nullable=True)    # Expo device token, set by the app

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    students = relationship("Student", back_populates="teacher", cascade="all, delete-orphan")
