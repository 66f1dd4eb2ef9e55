from sqlalchemy import Column, String, Integer, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from edutrack.database import Base
from edutrack.models.user import utcnow

BEHAVIORS = ("excellent", "good", "average", "poor")
GRADE_TYPES = ("homework", "test", "exam", "project", "performance", "practical", "essay")


class Student(Base):
    __tablename__ = "students"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    student_id = Column(String, unique=True, index=True, nullable=False)
    class_name = Column("class", String, nullable=False, index=True)

    # weak reference to the parent account, matched by email only
    parent_email = Column(String, nullable=False, index=True)

    attendance = Column(Integer, nullable=False, default=0)       # 0..100
    behavior = Column(String, nullable=False, default="good")
    notes = Column(String, nullable=False, default="")

    teacher_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    teacher = relationship("User", back_populates="students")

    grades = relationship(
        "Grade",
        back_populates="student",
        order_by="Grade.id",
        cascade="all, delete-orphan",
    )

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class Grade(Base):
    __tablename__ = "grades"

    # autoincrement id keeps the append order of a student's grades
    id = Column(Integer, primary_key=True, autoincrement=True)
    student_pk = Column(String, ForeignKey("students.id"), nullable=False, index=True)
    student = relationship("Student", back_populates="grades")

    subject = Column(String, nullable=False)
    score = Column(Float, nullable=False)                 # 0..10
    type = Column(String, nullable=False, default="homework")
    date = Column(DateTime, default=utcnow, nullable=False)
