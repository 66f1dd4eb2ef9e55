from edutrack.models.user import User
from edutrack.models.student import Student, Grade
from edutrack.models.notification import Notification

__all__ = ["User", "Student", "Grade", "Notification"]
