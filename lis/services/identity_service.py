"""
Identity registry: registration and lookup of professors and students.
"""

import logging
from typing import Iterable, Optional, Union

from ..core.entities import Professor, Student, normalize_email
from ..core.exceptions import DuplicateEmailError
from ..core.results import OperationResult, returns_result
from ..persistence.store import EducationStore

logger = logging.getLogger(__name__)


class IdentityService:
    """Creates and looks up Professor and Student records.

    Emails are unique per role, compared after trimming and lowercasing.
    Identities are immutable once registered.
    """

    def __init__(self, store: EducationStore):
        self._store = store

    @returns_result
    def register_professor(self, name: str, email: str, department: str) -> OperationResult[str]:
        """Register a professor and return the new professor ID."""
        with self._store.lock:
            if self._store.professor_by_email(email) is not None:
                raise DuplicateEmailError(
                    f"A professor with email {normalize_email(email)} already exists",
                    details={'email': normalize_email(email)}
                )
            professor = self._store.add_professor(Professor(name=name, email=email, department=department))
        logger.info("Registered professor %s (%s)", professor.id, professor.email)
        return professor.id

    @returns_result
    def register_student(self, name: str, email: str, roll_number: str, department: str) -> OperationResult[str]:
        """Register a student and return the new student ID."""
        student = self.create_student(name, email, roll_number, department)
        return student.id

    def create_student(self, name: str, email: str, roll_number: str, department: str,
                       enrolled_course_ids: Optional[Iterable[str]] = None) -> Student:
        """Create a student record, optionally with enrollments already set.

        Raises DuplicateEmailError; used directly by the roster import, which
        bypasses enrollment codes.
        """
        with self._store.lock:
            if self._store.student_by_email(email) is not None:
                raise DuplicateEmailError(
                    f"A student with email {normalize_email(email)} already exists",
                    details={'email': normalize_email(email)}
                )
            student = self._store.add_student(Student(
                name=name,
                email=email,
                roll_number=roll_number,
                department=department,
                enrolled_course_ids=enrolled_course_ids,
            ))
        logger.info("Registered student %s (%s)", student.id, student.email)
        return student

    def find_by_email(self, email: str) -> Optional[Union[Professor, Student]]:
        """Find a professor or student by email. Professors are checked first."""
        with self._store.lock:
            return self._store.professor_by_email(email) or self._store.student_by_email(email)

    def get_professor(self, professor_id: str) -> Optional[Professor]:
        return self._store.professors.find_by_id(professor_id)

    def get_student(self, student_id: str) -> Optional[Student]:
        return self._store.students.find_by_id(student_id)
