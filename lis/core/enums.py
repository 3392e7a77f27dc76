"""
Enumerations and constants for the LIS core.
"""

from enum import Enum
from typing import Dict, Set


class LectureStatus(Enum):
    """Lifecycle status of a lecture."""
    SCHEDULED = "scheduled"
    LIVE = "live"
    COMPLETED = "completed"

    def can_transition_to(self, new_status: "LectureStatus") -> bool:
        """Check whether moving to new_status is a legal forward step."""
        return new_status in LECTURE_TRANSITIONS[self]


LECTURE_TRANSITIONS: Dict[LectureStatus, Set[LectureStatus]] = {
    LectureStatus.SCHEDULED: {LectureStatus.LIVE, LectureStatus.COMPLETED},
    LectureStatus.LIVE: {LectureStatus.COMPLETED},
    LectureStatus.COMPLETED: set(),
}


class UnderstandingLevel(Enum):
    """How well a student followed a lecture."""
    FULLY = "fully"
    PARTIAL = "partial"
    CONFUSED = "confused"

    @classmethod
    def from_value(cls, value) -> "UnderstandingLevel":
        """Parse a level, accepting the 'need clarity' spellings for CONFUSED."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace(" ", "_")
        if normalized in _UNDERSTANDING_ALIASES:
            return _UNDERSTANDING_ALIASES[normalized]
        return cls(normalized)

    @property
    def score(self) -> float:
        """Weight used when averaging understanding (1.0 / 0.5 / 0.0)."""
        return _UNDERSTANDING_SCORES[self]


_UNDERSTANDING_ALIASES = {
    "need_clarity": UnderstandingLevel.CONFUSED,
    "need-clarity": UnderstandingLevel.CONFUSED,
    "confused/need-clarity": UnderstandingLevel.CONFUSED,
    "full": UnderstandingLevel.FULLY,
    "fully_understood": UnderstandingLevel.FULLY,
}

_UNDERSTANDING_SCORES = {
    UnderstandingLevel.FULLY: 1.0,
    UnderstandingLevel.PARTIAL: 0.5,
    UnderstandingLevel.CONFUSED: 0.0,
}


class GradeStatus(Enum):
    """Visibility state of a grade. DRAFT grades are hidden from students."""
    DRAFT = "draft"
    PUBLISHED = "published"


class AssessmentType(Enum):
    """Kinds of graded work."""
    QUIZ = "quiz"
    ASSIGNMENT = "assignment"
    MIDTERM = "midterm"
    FINAL = "final"
    LAB = "lab"
    PROJECT = "project"


class ErrorKind(Enum):
    """Coarse error categories the presentation layer renders differently."""
    NOT_FOUND = "not_found"          # stale reference, 404-equivalent
    INVALID_INPUT = "invalid_input"  # user-correctable, 400-equivalent
    CONFLICT = "conflict"            # state clash, 409-equivalent


class EventType(Enum):
    """Domain events raised by the services."""
    STUDENT_ENROLLED = "student_enrolled"
    LECTURE_TRANSITIONED = "lecture_transitioned"
    FEEDBACK_RECORDED = "feedback_recorded"
    GRADES_PUBLISHED = "grades_published"


class NotificationType(Enum):
    """Types of in-app notifications."""
    GRADE = "grade"
    FEEDBACK = "feedback"
    LECTURE = "lecture"
    NUDGE = "nudge"
    SYSTEM = "system"


class InsightPriority(Enum):
    """Priority attached to confusing topics and revision items."""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
