# src/SOAT/db/models/__init__.py
from .schools import School, Student
from .schedules import STATUS_VALUES, Schedule, ScheduleLesson, ScheduleTeacher
from .student_assessments import StudentAssessment

__all__ = [
    "School",
    "Student",
    "STATUS_VALUES",
    "Schedule",
    "ScheduleTeacher",
    "ScheduleLesson",
    "StudentAssessment",
]
