"""
Lecture tracker: lectures scoped to a course and their one-way lifecycle.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Union

from ..core.entities import Lecture
from ..core.enums import EventType, LectureStatus
from ..core.exceptions import IllegalTransitionError, ResourceNotFoundError
from ..core.results import OperationResult, returns_result
from ..persistence.store import EducationStore
from .event_service import EventService

logger = logging.getLogger(__name__)


class LectureService:
    """Creates lectures and advances their status scheduled -> live -> completed."""

    def __init__(self, store: EducationStore, event_service: EventService):
        self._store = store
        self._event_service = event_service

    @returns_result
    def create_lecture(self, course_id: str, title: str, date: Union[str, datetime],
                       duration: int, topics: Optional[Iterable[str]] = None) -> OperationResult[Lecture]:
        """Create a lecture in the scheduled state."""
        with self._store.lock:
            if self._store.courses.find_by_id(course_id) is None:
                raise ResourceNotFoundError(f"Course {course_id} not found", details={'course_id': course_id})
            lecture = self._store.add_lecture(Lecture(
                course_id=course_id,
                title=title,
                date=date,
                duration=duration,
                topics=topics,
            ))
        logger.info("Created lecture %s for course %s on %s", lecture.id, course_id, lecture.date.isoformat())
        return lecture

    @returns_result
    def transition_lecture(self, lecture_id: str, new_status: Union[str, LectureStatus]) -> OperationResult[Lecture]:
        """Move a lecture forward. Same-state and backward moves fail."""
        with self._store.lock:
            lecture = self._store.lectures.find_by_id(lecture_id)
            if lecture is None:
                raise ResourceNotFoundError(f"Lecture {lecture_id} not found", details={'lecture_id': lecture_id})
            previous = lecture.status
            lecture.transition_to(self._parse_status(new_status))
        logger.info("Lecture %s moved from %s to %s", lecture_id, previous.value, lecture.status.value)
        self._event_service.publish_event(EventType.LECTURE_TRANSITIONED, lecture.course_id, {
            'lecture_id': lecture_id,
            'from': previous.value,
            'to': lecture.status.value,
        })
        return lecture

    def start_lecture(self, lecture_id: str) -> OperationResult[Lecture]:
        return self.transition_lecture(lecture_id, LectureStatus.LIVE)

    def end_lecture(self, lecture_id: str) -> OperationResult[Lecture]:
        return self.transition_lecture(lecture_id, LectureStatus.COMPLETED)

    @staticmethod
    def _parse_status(value: Union[str, LectureStatus]) -> LectureStatus:
        if isinstance(value, LectureStatus):
            return value
        try:
            return LectureStatus(str(value).strip().lower())
        except ValueError:
            raise IllegalTransitionError(f"Unknown lecture status: {value!r}")

    def get_lecture(self, lecture_id: str) -> Optional[Lecture]:
        return self._store.lectures.find_by_id(lecture_id)

    def get_course_lectures(self, course_id: str) -> List[Lecture]:
        """Lectures of a course ordered by date."""
        return sorted(self._store.course_lectures(course_id), key=lambda l: l.date)

    def get_student_lectures(self, student_id: str) -> List[Lecture]:
        """Lectures of every enrolled course, all statuses, by date ascending."""
        with self._store.lock:
            student = self._store.students.find_by_id(student_id)
            if student is None:
                return []
            lectures: List[Lecture] = []
            for course_id in student.enrolled_course_ids:
                lectures.extend(self._store.course_lectures(course_id))
        return sorted(lectures, key=lambda l: l.date)
