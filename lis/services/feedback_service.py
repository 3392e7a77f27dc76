"""
Feedback ledger: one immutable feedback record per (student, lecture) pair.
"""

import logging
from typing import Any, Iterable, List, Optional, Union

from ..core.entities import Feedback, Lecture, Student, TopicRating
from ..core.enums import EventType, UnderstandingLevel
from ..core.exceptions import (
    DuplicateFeedbackError, LectureNotCompletedError, NotEnrolledError,
    ResourceNotFoundError, ValidationError
)
from ..core.results import OperationResult, returns_result
from ..persistence.store import EducationStore
from .event_service import EventService

logger = logging.getLogger(__name__)


class FeedbackService:
    """Records lecture feedback and derives pending and silent-student views."""

    def __init__(self, store: EducationStore, event_service: EventService,
                 silent_feedback_ratio: float = 0.0):
        self._store = store
        self._event_service = event_service
        self._silent_feedback_ratio = silent_feedback_ratio

    @returns_result
    def record_feedback(self, student_id: str, lecture_id: str,
                        understanding_level: Union[str, UnderstandingLevel],
                        topic_ratings: Optional[Iterable[Any]] = None,
                        comment: Optional[str] = None) -> OperationResult[Feedback]:
        """Submit feedback on a completed lecture. Allowed once per lecture."""
        with self._store.lock:
            student = self._store.students.find_by_id(student_id)
            if student is None:
                raise ResourceNotFoundError(f"Student {student_id} not found", details={'student_id': student_id})
            lecture = self._store.lectures.find_by_id(lecture_id)
            if lecture is None:
                raise ResourceNotFoundError(f"Lecture {lecture_id} not found", details={'lecture_id': lecture_id})
            if not student.is_enrolled(lecture.course_id):
                raise NotEnrolledError(
                    "Student is not enrolled in this lecture's course",
                    details={'student_id': student_id, 'course_id': lecture.course_id}
                )
            if not lecture.is_completed:
                raise LectureNotCompletedError(
                    "Feedback can only be given after the lecture is completed",
                    details={'lecture_id': lecture_id, 'status': lecture.status.value}
                )
            if self._store.has_feedback(student_id, lecture_id):
                raise DuplicateFeedbackError(
                    "Feedback already submitted for this lecture",
                    details={'student_id': student_id, 'lecture_id': lecture_id}
                )

            feedback = Feedback(
                lecture_id=lecture_id,
                student_id=student_id,
                course_id=lecture.course_id,
                understanding_level=self._parse_level(understanding_level),
                topic_ratings=self._parse_ratings(lecture, topic_ratings),
                comment=comment,
            )
            self._store.add_feedback(feedback)
            student.mark_active()

        logger.info("Recorded feedback %s from student %s on lecture %s", feedback.id, student_id, lecture_id)
        self._event_service.publish_event(EventType.FEEDBACK_RECORDED, lecture.course_id, {
            'feedback_id': feedback.id,
            'student_id': student_id,
            'lecture_id': lecture_id,
        })
        return feedback

    @staticmethod
    def _parse_level(value: Union[str, UnderstandingLevel]) -> UnderstandingLevel:
        try:
            return UnderstandingLevel.from_value(value)
        except ValueError:
            raise ValidationError(f"Unknown understanding level: {value!r}")

    @staticmethod
    def _parse_ratings(lecture: Lecture, raw_ratings: Optional[Iterable[Any]]) -> List[TopicRating]:
        ratings: List[TopicRating] = []
        seen = set()
        for raw in raw_ratings or []:
            try:
                rating = TopicRating.parse(raw)
            except (TypeError, ValueError):
                raise ValidationError(f"Malformed topic rating: {raw!r}")
            if rating.topic not in lecture.topics:
                raise ValidationError(f"Topic {rating.topic!r} is not covered by this lecture")
            if rating.topic in seen:
                raise ValidationError(f"Topic {rating.topic!r} rated more than once")
            seen.add(rating.topic)
            ratings.append(rating)
        return ratings

    def get_student_pending_feedback(self, student_id: str) -> List[Lecture]:
        """Completed lectures of enrolled courses the student has not reviewed yet.

        Recomputed on every call: lecture status and feedback existence both
        change independently.
        """
        with self._store.lock:
            student = self._store.students.find_by_id(student_id)
            if student is None:
                return []
            pending: List[Lecture] = []
            for course_id in student.enrolled_course_ids:
                for lecture in self._store.course_lectures(course_id):
                    if lecture.is_completed and not self._store.has_feedback(student_id, lecture.id):
                        pending.append(lecture)
        return sorted(pending, key=lambda l: l.date)

    def get_silent_students(self, course_id: str, threshold: Optional[float] = None) -> List[Student]:
        """Enrolled students whose feedback count lags the completed lectures.

        A student is silent when the course has at least one completed lecture
        and their feedback count is at most ``threshold * completed``. The
        default threshold of 0.0 flags students who never gave feedback.
        """
        ratio = self._silent_feedback_ratio if threshold is None else threshold
        if ratio < 0:
            ratio = 0.0
        with self._store.lock:
            lectures = self._store.course_lectures(course_id)
            completed_ids = {l.id for l in lectures if l.is_completed}
            if not completed_ids:
                return []
            allowed = ratio * len(completed_ids)
            silent: List[Student] = []
            for student in self._store.course_students(course_id):
                given = sum(1 for lecture_id in completed_ids
                            if self._store.has_feedback(student.id, lecture_id))
                if given <= allowed:
                    silent.append(student)
        return silent

    def get_course_feedback(self, course_id: str) -> List[Feedback]:
        return self._store.course_feedback(course_id)

    def get_lecture_feedback(self, lecture_id: str) -> List[Feedback]:
        return self._store.lecture_feedback(lecture_id)

    def get_student_feedback(self, student_id: str) -> List[Feedback]:
        return self._store.student_feedback(student_id)
