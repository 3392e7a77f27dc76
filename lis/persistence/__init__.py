"""
Persistence module: in-memory repositories and the education store.
"""

from .repositories import (
    InMemoryRepository, ProfessorRepository, StudentRepository, CourseRepository,
    LectureRepository, FeedbackRepository, AssessmentRepository, GradeRepository,
    NotificationRepository
)
from .store import EducationStore

__all__ = [
    "InMemoryRepository",
    "ProfessorRepository",
    "StudentRepository",
    "CourseRepository",
    "LectureRepository",
    "FeedbackRepository",
    "AssessmentRepository",
    "GradeRepository",
    "NotificationRepository",
    "EducationStore",
]
