"""
Core entities for the LIS data store.
"""

import re
import uuid
from abc import ABC
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .enums import (
    LectureStatus, UnderstandingLevel, GradeStatus, AssessmentType,
    EventType, NotificationType
)
from .exceptions import ValidationError, IllegalTransitionError


EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

DIFFICULT_RATING_MAX = 2


def normalize_email(email: str) -> str:
    """Trim and lowercase an email so lookups are case-insensitive."""
    return (email or "").strip().lower()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_datetime(value: Union[str, datetime]) -> datetime:
    """Accept a datetime or an ISO-8601 string; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(f"Invalid date: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class AbstractEntity(ABC):
    """Base abstract entity with universal ID, timestamps and versioning."""

    def __init__(self, entity_id: Optional[str] = None):
        self._id = entity_id or str(uuid.uuid4())
        self._created_at = utcnow()
        self._updated_at = self._created_at
        self._version = 1

    @property
    def id(self) -> str:
        """Get the entity ID."""
        return self._id

    @property
    def created_at(self) -> datetime:
        """Get creation timestamp."""
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        """Get last update timestamp."""
        return self._updated_at

    @property
    def version(self) -> int:
        """Get current version."""
        return self._version

    def update(self, **kwargs) -> None:
        """Update entity with new data."""
        for key, value in kwargs.items():
            if hasattr(self, f"_{key}"):
                setattr(self, f"_{key}", value)
        self._updated_at = utcnow()
        self._version += 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert entity to dictionary."""
        return {
            'id': self._id,
            'created_at': self._created_at.isoformat(),
            'updated_at': self._updated_at.isoformat(),
            'version': self._version,
        }

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self._id})"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self._id}, version={self._version})"


class Person(AbstractEntity):
    """Abstract base class for registered people. Identity is fixed at registration."""

    def __init__(self, name: str, email: str, department: str, **kwargs):
        super().__init__(**kwargs)
        name = (name or "").strip()
        email = normalize_email(email)
        if not name:
            raise ValidationError("Name is required")
        if not EMAIL_PATTERN.match(email):
            raise ValidationError(f"Invalid email format: {email!r}")
        self._name = name
        self._email = email
        self._department = (department or "").strip()

    @property
    def name(self) -> str:
        return self._name

    @property
    def email(self) -> str:
        return self._email

    @property
    def department(self) -> str:
        return self._department

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'name': self._name,
            'email': self._email,
            'department': self._department,
        })
        return base_dict


class Professor(Person):
    """Professor who owns courses."""

    def __init__(self, name: str, email: str, department: str, **kwargs):
        super().__init__(name, email, department, **kwargs)
        self._course_ids: List[str] = []

    @property
    def role(self) -> str:
        return "professor"

    @property
    def course_ids(self) -> List[str]:
        return list(self._course_ids)

    def add_course(self, course_id: str) -> None:
        """Record ownership of a course."""
        if course_id not in self._course_ids:
            self._course_ids.append(course_id)
            self.update()

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'role': self.role,
            'course_ids': list(self._course_ids),
        })
        return base_dict


class Student(Person):
    """Student with an ordered set of enrolled courses."""

    def __init__(self, name: str, email: str, roll_number: str, department: str,
                 enrolled_course_ids: Optional[Iterable[str]] = None, **kwargs):
        super().__init__(name, email, department, **kwargs)
        self._roll_number = (roll_number or "").strip()
        self._enrolled_course_ids: List[str] = []
        for course_id in enrolled_course_ids or []:
            if course_id not in self._enrolled_course_ids:
                self._enrolled_course_ids.append(course_id)
        self._last_active_at = self._created_at

    @property
    def role(self) -> str:
        return "student"

    @property
    def roll_number(self) -> str:
        return self._roll_number

    @property
    def enrolled_course_ids(self) -> List[str]:
        """Course IDs in the order the student joined them."""
        return list(self._enrolled_course_ids)

    @property
    def last_active_at(self) -> datetime:
        return self._last_active_at

    def is_enrolled(self, course_id: str) -> bool:
        return course_id in self._enrolled_course_ids

    def enroll_in_course(self, course_id: str) -> bool:
        """Add a course. Returns False if the student was already enrolled."""
        if course_id in self._enrolled_course_ids:
            return False
        self._enrolled_course_ids.append(course_id)
        self.update()
        return True

    def mark_active(self) -> None:
        self._last_active_at = utcnow()
        self.update()

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'role': self.role,
            'roll_number': self._roll_number,
            'enrolled_course_ids': list(self._enrolled_course_ids),
            'last_active_at': self._last_active_at.isoformat(),
        })
        return base_dict


class Course(AbstractEntity):
    """Course owned by a professor, joinable through its enrollment code."""

    def __init__(self, code: str, name: str, professor_id: str, semester: str,
                 department: str, credits: int, enrollment_code: str, **kwargs):
        super().__init__(**kwargs)
        if not (code or "").strip():
            raise ValidationError("Course code is required")
        if not (name or "").strip():
            raise ValidationError("Course name is required")
        if credits is None or int(credits) < 0:
            raise ValidationError("Credits cannot be negative")
        self._code = code.strip()
        self._name = name.strip()
        self._professor_id = professor_id
        self._semester = (semester or "").strip()
        self._department = (department or "").strip()
        self._credits = int(credits)
        self._enrollment_code = enrollment_code

    @property
    def code(self) -> str:
        return self._code

    @property
    def name(self) -> str:
        return self._name

    @property
    def professor_id(self) -> str:
        return self._professor_id

    @property
    def semester(self) -> str:
        return self._semester

    @property
    def department(self) -> str:
        return self._department

    @property
    def credits(self) -> int:
        return self._credits

    @property
    def enrollment_code(self) -> str:
        return self._enrollment_code

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'code': self._code,
            'name': self._name,
            'professor_id': self._professor_id,
            'semester': self._semester,
            'department': self._department,
            'credits': self._credits,
            'enrollment_code': self._enrollment_code,
        })
        return base_dict


class Lecture(AbstractEntity):
    """Lecture scheduled within a course."""

    def __init__(self, course_id: str, title: str, date: Union[str, datetime],
                 duration: int, topics: Optional[Iterable[str]] = None, **kwargs):
        super().__init__(**kwargs)
        if not (title or "").strip():
            raise ValidationError("Lecture title is required")
        if duration is None or int(duration) <= 0:
            raise ValidationError("Lecture duration must be positive")
        self._course_id = course_id
        self._title = title.strip()
        self._date = parse_datetime(date)
        self._duration = int(duration)
        self._topics: List[str] = []
        for topic in topics or []:
            topic = str(topic).strip()
            if topic and topic not in self._topics:
                self._topics.append(topic)
        self._status = LectureStatus.SCHEDULED
        self._started_at: Optional[datetime] = None
        self._completed_at: Optional[datetime] = None

    @property
    def course_id(self) -> str:
        return self._course_id

    @property
    def title(self) -> str:
        return self._title

    @property
    def date(self) -> datetime:
        return self._date

    @property
    def duration(self) -> int:
        """Duration in minutes."""
        return self._duration

    @property
    def topics(self) -> List[str]:
        return list(self._topics)

    @property
    def status(self) -> LectureStatus:
        return self._status

    @property
    def is_completed(self) -> bool:
        return self._status == LectureStatus.COMPLETED

    @property
    def started_at(self) -> Optional[datetime]:
        return self._started_at

    @property
    def completed_at(self) -> Optional[datetime]:
        return self._completed_at

    def transition_to(self, new_status: LectureStatus) -> None:
        """Advance the lecture status. Same-state and backward moves are illegal."""
        if not self._status.can_transition_to(new_status):
            raise IllegalTransitionError(
                f"Cannot move lecture from {self._status.value} to {new_status.value}",
                details={'lecture_id': self._id, 'from': self._status.value, 'to': new_status.value}
            )
        now = utcnow()
        if new_status == LectureStatus.LIVE:
            self._started_at = now
        elif new_status == LectureStatus.COMPLETED:
            self._completed_at = now
        self._status = new_status
        self.update()

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'course_id': self._course_id,
            'title': self._title,
            'date': self._date.isoformat(),
            'duration': self._duration,
            'topics': list(self._topics),
            'status': self._status.value,
            'started_at': self._started_at.isoformat() if self._started_at else None,
            'completed_at': self._completed_at.isoformat() if self._completed_at else None,
        })
        return base_dict


@dataclass(frozen=True)
class TopicRating:
    """A 1-5 rating a student gives one lecture topic."""
    topic: str
    rating: int

    def __post_init__(self):
        if isinstance(self.rating, bool) or not isinstance(self.rating, int) or not 1 <= self.rating <= 5:
            raise ValidationError(f"Rating for {self.topic!r} must be an integer from 1 to 5")

    @classmethod
    def parse(cls, value: Union["TopicRating", Dict[str, Any], Tuple[str, int]]) -> "TopicRating":
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            topic = value.get('topic', value.get('topicId'))
            return cls(topic=str(topic or "").strip(), rating=value.get('rating'))
        topic, rating = value
        return cls(topic=str(topic).strip(), rating=rating)


class Feedback(AbstractEntity):
    """Immutable feedback a student leaves on a completed lecture."""

    def __init__(self, lecture_id: str, student_id: str, course_id: str,
                 understanding_level: UnderstandingLevel,
                 topic_ratings: Iterable[TopicRating], comment: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self._lecture_id = lecture_id
        self._student_id = student_id
        self._course_id = course_id
        self._understanding_level = understanding_level
        self._topic_ratings: Tuple[TopicRating, ...] = tuple(topic_ratings)
        self._comment = comment.strip() if comment and comment.strip() else None
        self._timestamp = self._created_at

    @property
    def lecture_id(self) -> str:
        return self._lecture_id

    @property
    def student_id(self) -> str:
        return self._student_id

    @property
    def course_id(self) -> str:
        return self._course_id

    @property
    def understanding_level(self) -> UnderstandingLevel:
        return self._understanding_level

    @property
    def topic_ratings(self) -> Tuple[TopicRating, ...]:
        return self._topic_ratings

    @property
    def comment(self) -> Optional[str]:
        return self._comment

    @property
    def timestamp(self) -> datetime:
        return self._timestamp

    @property
    def difficult_topics(self) -> List[str]:
        """Topics the student rated 2 or lower."""
        return [r.topic for r in self._topic_ratings if r.rating <= DIFFICULT_RATING_MAX]

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'lecture_id': self._lecture_id,
            'student_id': self._student_id,
            'course_id': self._course_id,
            'understanding_level': self._understanding_level.value,
            'topic_ratings': [{'topic': r.topic, 'rating': r.rating} for r in self._topic_ratings],
            'difficult_topics': self.difficult_topics,
            'comment': self._comment,
            'timestamp': self._timestamp.isoformat(),
        })
        return base_dict


class Assessment(AbstractEntity):
    """Graded piece of work within a course."""

    def __init__(self, course_id: str, name: str, assessment_type: AssessmentType,
                 max_marks: float, weight_pct: float, due_date: Optional[Union[str, datetime]] = None,
                 **kwargs):
        super().__init__(**kwargs)
        if not (name or "").strip():
            raise ValidationError("Assessment name is required")
        if max_marks is None or max_marks <= 0:
            raise ValidationError("max_marks must be positive")
        if weight_pct is None or not 0 <= weight_pct <= 100:
            raise ValidationError("weight_pct must be between 0 and 100")
        self._course_id = course_id
        self._name = name.strip()
        self._assessment_type = assessment_type
        self._max_marks = float(max_marks)
        self._weight_pct = float(weight_pct)
        self._due_date = parse_datetime(due_date) if due_date else None
        self._published_at: Optional[datetime] = None

    @property
    def course_id(self) -> str:
        return self._course_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def assessment_type(self) -> AssessmentType:
        return self._assessment_type

    @property
    def max_marks(self) -> float:
        return self._max_marks

    @property
    def weight_pct(self) -> float:
        return self._weight_pct

    @property
    def due_date(self) -> Optional[datetime]:
        return self._due_date

    @property
    def published_at(self) -> Optional[datetime]:
        """When grades were last published for this assessment."""
        return self._published_at

    def mark_published(self) -> None:
        self._published_at = utcnow()
        self.update()

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'course_id': self._course_id,
            'name': self._name,
            'type': self._assessment_type.value,
            'max_marks': self._max_marks,
            'weight_pct': self._weight_pct,
            'due_date': self._due_date.isoformat() if self._due_date else None,
            'published_at': self._published_at.isoformat() if self._published_at else None,
        })
        return base_dict


class Grade(AbstractEntity):
    """A student's mark on one assessment, gated by an explicit draft/published state."""

    def __init__(self, assessment_id: str, student_id: str, course_id: str,
                 marks_obtained: Optional[float], comments: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self._assessment_id = assessment_id
        self._student_id = student_id
        self._course_id = course_id
        self._marks_obtained = marks_obtained
        self._comments = comments
        self._status = GradeStatus.DRAFT
        self._graded_at: Optional[datetime] = utcnow() if marks_obtained is not None else None
        self._published_at: Optional[datetime] = None

    @property
    def assessment_id(self) -> str:
        return self._assessment_id

    @property
    def student_id(self) -> str:
        return self._student_id

    @property
    def course_id(self) -> str:
        return self._course_id

    @property
    def marks_obtained(self) -> Optional[float]:
        return self._marks_obtained

    @property
    def comments(self) -> Optional[str]:
        return self._comments

    @property
    def status(self) -> GradeStatus:
        return self._status

    @property
    def is_published(self) -> bool:
        return self._status == GradeStatus.PUBLISHED

    @property
    def is_graded(self) -> bool:
        return self._marks_obtained is not None

    @property
    def graded_at(self) -> Optional[datetime]:
        return self._graded_at

    @property
    def published_at(self) -> Optional[datetime]:
        return self._published_at

    def regrade(self, marks_obtained: Optional[float], comments: Optional[str] = None) -> bool:
        """Replace the marks. A published grade becomes a new draft.

        Returns True if the grade was pulled back from published.
        """
        was_published = self.is_published
        self._marks_obtained = marks_obtained
        self._comments = comments
        self._graded_at = utcnow() if marks_obtained is not None else None
        self._status = GradeStatus.DRAFT
        self._published_at = None
        self.update()
        return was_published

    def publish(self) -> bool:
        """Flip draft to published. Returns False if already published."""
        if self.is_published:
            return False
        self._status = GradeStatus.PUBLISHED
        self._published_at = utcnow()
        self.update()
        return True

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'assessment_id': self._assessment_id,
            'student_id': self._student_id,
            'course_id': self._course_id,
            'marks_obtained': self._marks_obtained,
            'comments': self._comments,
            'status': self._status.value,
            'graded_at': self._graded_at.isoformat() if self._graded_at else None,
            'published_at': self._published_at.isoformat() if self._published_at else None,
        })
        return base_dict


class Notification(AbstractEntity):
    """In-app notification addressed to a professor or student."""

    def __init__(self, user_id: str, notification_type: NotificationType, title: str,
                 message: str, **kwargs):
        super().__init__(**kwargs)
        self._user_id = user_id
        self._notification_type = notification_type
        self._title = title
        self._message = message
        self._read = False

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def notification_type(self) -> NotificationType:
        return self._notification_type

    @property
    def title(self) -> str:
        return self._title

    @property
    def message(self) -> str:
        return self._message

    @property
    def read(self) -> bool:
        return self._read

    def mark_read(self) -> None:
        if not self._read:
            self._read = True
            self.update()

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'user_id': self._user_id,
            'type': self._notification_type.value,
            'title': self._title,
            'message': self._message,
            'read': self._read,
        })
        return base_dict


class Event(AbstractEntity):
    """Domain event handed to registered event handlers."""

    def __init__(self, event_type: EventType, stream_id: str,
                 event_data: Dict[str, Any], **kwargs):
        super().__init__(**kwargs)
        self._event_type = event_type
        self._stream_id = stream_id
        self._event_data = event_data

    @property
    def event_type(self) -> EventType:
        return self._event_type

    @property
    def stream_id(self) -> str:
        return self._stream_id

    @property
    def event_data(self) -> Dict[str, Any]:
        return self._event_data.copy()
