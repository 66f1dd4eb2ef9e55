from datetime import datetime
from typing import Annotated, Dict, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, StringConstraints

Behavior = Literal["excellent", "good", "average", "poor"]
GradeType = Literal["homework", "test", "exam", "project", "performance", "practical", "essay"]

# stripped before the length check, so "   " counts as missing
RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class GradeCreate(BaseModel):
    subject: RequiredText
    score: float = Field(ge=0, le=10)
    type: GradeType = "homework"

    class Config:
        extra = "forbid"


class GradeOut(BaseModel):
    id: int
    subject: str
    score: float
    type: GradeType
    date: datetime

    class Config:
        from_attributes = True


class StudentCreate(BaseModel):
    name: RequiredText
    student_id: RequiredText = Field(alias="studentId")
    class_name: RequiredText = Field(alias="class")
    parent_email: EmailStr = Field(alias="parentEmail")
    attendance: int = Field(0, ge=0, le=100)
    behavior: Behavior = "good"
    notes: str = ""

    class Config:
        extra = "forbid"
        populate_by_name = True


class StudentUpdate(BaseModel):
    """Partial update. Only the fields sent are applied; ownership and grades are not editable."""
    name: Optional[RequiredText] = None
    student_id: Optional[RequiredText] = Field(None, alias="studentId")
    class_name: Optional[RequiredText] = Field(None, alias="class")
    parent_email: Optional[EmailStr] = Field(None, alias="parentEmail")
    attendance: Optional[int] = Field(None, ge=0, le=100)
    behavior: Optional[Behavior] = None
    notes: Optional[str] = None

    class Config:
        extra = "forbid"
        populate_by_name = True


class StudentOut(BaseModel):
    id: str
    name: str
    student_id: str = Field(alias="studentId")
    class_name: str = Field(alias="class")
    parent_email: str = Field(alias="parentEmail")
    grades: List[GradeOut] = []
    attendance: int
    behavior: Behavior
    notes: str
    teacher_id: str = Field(alias="teacherId")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    class Config:
        from_attributes = True
        populate_by_name = True


class StudentEnvelope(BaseModel):
    message: str
    student: StudentOut


class StudentList(BaseModel):
    students: List[StudentOut]
    total_pages: int = Field(alias="totalPages")
    current_page: int = Field(alias="currentPage")
    total: int

    class Config:
        populate_by_name = True


class SubjectStats(BaseModel):
    count: int
    average: float


class GradeSummary(BaseModel):
    student_id: str = Field(alias="studentId")
    count: int
    average: Optional[float] = None
    highest: Optional[float] = None
    lowest: Optional[float] = None
    band: Optional[Literal["good", "fair", "weak"]] = None
    subjects: Dict[str, SubjectStats] = {}

    class Config:
        populate_by_name = True


class MessageOut(BaseModel):
    message: str
