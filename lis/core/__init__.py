"""
Core module containing the entity model, error taxonomy and grade arithmetic.
"""

from .entities import *
from .interfaces import *
from .exceptions import *
from .enums import *
from .results import OperationResult, returns_result

__all__ = [
    # Entities
    "AbstractEntity",
    "Person",
    "Professor",
    "Student",
    "Course",
    "Lecture",
    "TopicRating",
    "Feedback",
    "Assessment",
    "Grade",
    "Notification",
    "Event",
    "normalize_email",

    # Interfaces
    "Repository",
    "EventHandler",
    "InsightAnalyzer",

    # Enums
    "LectureStatus",
    "UnderstandingLevel",
    "GradeStatus",
    "AssessmentType",
    "ErrorKind",
    "EventType",
    "NotificationType",
    "InsightPriority",

    # Exceptions
    "LISException",
    "ValidationError",
    "ResourceNotFoundError",
    "DuplicateEmailError",
    "InvalidCodeError",
    "AlreadyEnrolledError",
    "NotEnrolledError",
    "IllegalTransitionError",
    "DuplicateFeedbackError",
    "LectureNotCompletedError",
    "ConfigurationError",
    "InsightAnalysisError",

    # Results
    "OperationResult",
    "returns_result",
]
