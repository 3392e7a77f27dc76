"""
Course catalog and code-based enrollment.
"""

import logging
import secrets
import string
from typing import Callable, List, Optional

from ..core.entities import Course, Student
from ..core.enums import EventType
from ..core.exceptions import (
    AlreadyEnrolledError, ConfigurationError, InvalidCodeError, ResourceNotFoundError
)
from ..core.results import OperationResult, returns_result
from ..persistence.store import EducationStore
from .event_service import EventService

logger = logging.getLogger(__name__)

ENROLLMENT_CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_CODE_ATTEMPTS = 100


def generate_enrollment_code(length: int = 6) -> str:
    """Random uppercase alphanumeric code."""
    return ''.join(secrets.choice(ENROLLMENT_CODE_ALPHABET) for _ in range(length))


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


class CatalogService:
    """Owns courses and their enrollment codes."""

    def __init__(self, store: EducationStore, event_service: EventService,
                 code_length: int = 6,
                 code_generator: Callable[[int], str] = generate_enrollment_code):
        self._store = store
        self._event_service = event_service
        self._code_length = code_length
        self._code_generator = code_generator

    @returns_result
    def create_course(self, professor_id: str, name: str, code: str, semester: str,
                      department: str, credits: int) -> OperationResult[Course]:
        """Create a course owned by professor_id with a fresh enrollment code."""
        with self._store.lock:
            if self._store.professors.find_by_id(professor_id) is None:
                raise ResourceNotFoundError(f"Professor {professor_id} not found",
                                            details={'professor_id': professor_id})
            course = Course(
                code=code,
                name=name,
                professor_id=professor_id,
                semester=semester,
                department=department,
                credits=credits,
                enrollment_code=self._unique_enrollment_code(),
            )
            self._store.add_course(course)
        logger.info("Created course %s (%s) with enrollment code %s",
                    course.id, course.code, course.enrollment_code)
        return course

    def _unique_enrollment_code(self) -> str:
        """Draw codes until one is unused by every existing course."""
        for _ in range(MAX_CODE_ATTEMPTS):
            candidate = normalize_code(self._code_generator(self._code_length))
            if candidate and not self._store.enrollment_code_exists(candidate):
                return candidate
        raise ConfigurationError(
            f"Could not generate a unique enrollment code after {MAX_CODE_ATTEMPTS} attempts"
        )

    @returns_result
    def enroll_by_code(self, student_id: str, code: str) -> OperationResult[str]:
        """Redeem an enrollment code; the result value is the joined course ID."""
        with self._store.lock:
            student = self._require_student(student_id)
            course = self._store.course_by_enrollment_code(normalize_code(code))
            if course is None:
                raise InvalidCodeError("Invalid enrollment code", details={'code': code})
            if not self._store.enroll(student, course.id):
                raise AlreadyEnrolledError(
                    "Already enrolled in this course",
                    details={'student_id': student_id, 'course_id': course.id}
                )
        logger.info("Student %s enrolled in course %s by code", student_id, course.id)
        self._event_service.publish_event(EventType.STUDENT_ENROLLED, course.id, {
            'student_id': student_id,
            'course_id': course.id,
        })
        return OperationResult.ok(course.id, message=f"Enrolled in {course.code}")

    def get_course(self, course_id: str) -> Optional[Course]:
        return self._store.courses.find_by_id(course_id)

    def get_student_courses(self, student_id: str) -> List[Course]:
        """Courses the student is enrolled in, in the order they joined."""
        with self._store.lock:
            student = self._store.students.find_by_id(student_id)
            if student is None:
                return []
            return self._store.courses.find_many(student.enrolled_course_ids)

    def get_professor_courses(self, professor_id: str) -> List[Course]:
        return self._store.courses.find_by_professor(professor_id)

    def get_course_students(self, course_id: str) -> List[Student]:
        return self._store.course_students(course_id)

    def _require_student(self, student_id: str) -> Student:
        student = self._store.students.find_by_id(student_id)
        if student is None:
            raise ResourceNotFoundError(f"Student {student_id} not found", details={'student_id': student_id})
        return student
