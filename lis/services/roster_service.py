"""
Bulk roster import: validate every row first, then commit the valid ones.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator

from ..core.entities import EMAIL_PATTERN, normalize_email
from ..core.exceptions import LISException, ResourceNotFoundError
from ..core.results import OperationResult, returns_result
from ..persistence.store import EducationStore
from .identity_service import IdentityService

logger = logging.getLogger(__name__)


class RosterRecord(BaseModel):
    """One row of an uploaded class roster."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=2, description="The full name of the student.")
    email: str = Field(..., description="Institutional email, used to match existing students.")
    roll_number: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices('roll_number', 'rollno', 'rollNumber'),
        description="The official roll number of the student.",
    )
    department: Optional[str] = Field(default=None)

    @field_validator('roll_number', mode='before')
    @classmethod
    def _coerce_roll_number(cls, value: Any) -> Any:
        # Spreadsheet exports often turn numeric roll numbers into ints.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value)) if float(value).is_integer() else str(value)
        return value

    @field_validator('email')
    @classmethod
    def _check_email(cls, value: str) -> str:
        email = normalize_email(value)
        if not EMAIL_PATTERN.match(email):
            raise ValueError("invalid email format")
        return email


@dataclass
class RosterValidation:
    """Outcome of the validation phase."""
    valid: List[RosterRecord] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass
class BulkImportResult:
    """Per-row outcome of an import."""
    created: List[str] = field(default_factory=list)
    linked: List[str] = field(default_factory=list)
    already_enrolled: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def imported_count(self) -> int:
        return len(self.created) + len(self.linked)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'created': list(self.created),
            'linked': list(self.linked),
            'already_enrolled': list(self.already_enrolled),
            'errors': list(self.errors),
            'imported_count': self.imported_count,
        }


def _describe(error: PydanticValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get('loc', ())) or "row"
    message = first.get('msg', 'invalid value')
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return f"{location}: {message}"


class RosterImportService:
    """Creates or links students from roster rows and enrolls them in a course."""

    def __init__(self, store: EducationStore, identity: IdentityService):
        self._store = store
        self._identity = identity

    @staticmethod
    def validate_roster(records: Iterable[Dict[str, Any]]) -> RosterValidation:
        """Validate rows without touching the store. Rows are numbered from 1."""
        validation = RosterValidation()
        seen_emails = set()
        for row_number, raw in enumerate(records, start=1):
            if not isinstance(raw, dict):
                validation.errors.append(f"Row {row_number}: expected a mapping of fields")
                continue
            try:
                record = RosterRecord.model_validate(raw)
            except PydanticValidationError as e:
                validation.errors.append(f"Row {row_number}: {_describe(e)}")
                continue
            if record.email in seen_emails:
                validation.errors.append(f"Row {row_number}: duplicate email {record.email} in roster")
                continue
            seen_emails.add(record.email)
            validation.valid.append(record)
        return validation

    @returns_result
    def import_roster(self, course_id: str, records: Iterable[Dict[str, Any]]) -> OperationResult[BulkImportResult]:
        """Validate, then commit valid rows one by one.

        Not transactional: a row that fails during commit is reported and the
        rows before it stay committed. Re-running the same roster is a no-op
        for students already enrolled.
        """
        course = self._store.courses.find_by_id(course_id)
        if course is None:
            raise ResourceNotFoundError(f"Course {course_id} not found", details={'course_id': course_id})

        validation = self.validate_roster(records)
        result = BulkImportResult(errors=list(validation.errors))

        for record in validation.valid:
            try:
                with self._store.lock:
                    existing = self._store.student_by_email(record.email)
                    if existing is None:
                        student = self._identity.create_student(
                            name=record.name,
                            email=record.email,
                            roll_number=record.roll_number,
                            department=record.department or course.department,
                            enrolled_course_ids=[course_id],
                        )
                        result.created.append(student.id)
                    elif self._store.enroll(existing, course_id):
                        result.linked.append(existing.id)
                    else:
                        result.already_enrolled.append(existing.id)
            except LISException as e:
                result.errors.append(f"{record.email}: {e.message}")

        logger.info("Roster import into %s: %d created, %d linked, %d errors",
                    course.code, len(result.created), len(result.linked), len(result.errors))
        return OperationResult.ok(result,
                                  message=f"Imported {result.imported_count} students",
                                  warnings=result.errors)
