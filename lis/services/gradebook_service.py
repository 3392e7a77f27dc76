"""
Gradebook: assessments, draft/published grades and GPA arithmetic.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from ..core.entities import Assessment, Course, Grade
from ..core.enums import AssessmentType, EventType
from ..core.exceptions import NotEnrolledError, ResourceNotFoundError, ValidationError
from ..core.grading import credit_weighted_gpa, letter_grade, percentage, weighted_course_grade
from ..core.results import OperationResult, returns_result
from ..persistence.store import EducationStore
from .event_service import EventService

logger = logging.getLogger(__name__)

PublishedGrade = Tuple[Course, Assessment, Grade]


class GradebookService:
    """Owns assessments and grades.

    Grades start as drafts and become visible to students only once their
    assessment is published. Re-grading a published grade turns it back
    into a draft, which must be published again.
    """

    def __init__(self, store: EducationStore, event_service: EventService):
        self._store = store
        self._event_service = event_service

    @returns_result
    def create_assessment(self, course_id: str, name: str, assessment_type: Union[str, AssessmentType],
                          max_marks: float, weight_pct: float,
                          due_date: Optional[Union[str, datetime]] = None) -> OperationResult[Assessment]:
        """Create an assessment within a course."""
        with self._store.lock:
            if self._store.courses.find_by_id(course_id) is None:
                raise ResourceNotFoundError(f"Course {course_id} not found", details={'course_id': course_id})
            assessment = self._store.add_assessment(Assessment(
                course_id=course_id,
                name=name,
                assessment_type=self._parse_type(assessment_type),
                max_marks=max_marks,
                weight_pct=weight_pct,
                due_date=due_date,
            ))
        logger.info("Created assessment %s (%s) for course %s", assessment.id, assessment.name, course_id)
        return assessment

    @staticmethod
    def _parse_type(value: Union[str, AssessmentType]) -> AssessmentType:
        if isinstance(value, AssessmentType):
            return value
        try:
            return AssessmentType(str(value).strip().lower())
        except ValueError:
            raise ValidationError(f"Unknown assessment type: {value!r}")

    @returns_result
    def record_grade(self, assessment_id: str, student_id: str, marks_obtained: Optional[float],
                     comments: Optional[str] = None) -> OperationResult[Grade]:
        """Create or update the grade for (assessment, student) as a draft."""
        with self._store.lock:
            grade, pulled_back = self._upsert_grade(assessment_id, student_id, marks_obtained, comments)

        warnings = []
        if pulled_back:
            warnings.append("Grade was published; it is now a draft until published again")
            logger.info("Published grade %s re-graded back to draft", grade.id)
        return OperationResult.ok(grade, warnings=warnings)

    def _upsert_grade(self, assessment_id: str, student_id: str, marks_obtained: Optional[float],
                      comments: Optional[str]) -> Tuple[Grade, bool]:
        assessment = self._require_assessment(assessment_id)
        student = self._store.students.find_by_id(student_id)
        if student is None:
            raise ResourceNotFoundError(f"Student {student_id} not found", details={'student_id': student_id})
        if not student.is_enrolled(assessment.course_id):
            raise NotEnrolledError(
                "Student is not enrolled in this assessment's course",
                details={'student_id': student_id, 'course_id': assessment.course_id}
            )
        if marks_obtained is not None:
            if isinstance(marks_obtained, bool) or not isinstance(marks_obtained, (int, float)):
                raise ValidationError("marks_obtained must be a number")
            if not 0 <= marks_obtained <= assessment.max_marks:
                raise ValidationError(
                    f"marks_obtained must be between 0 and {assessment.max_marks:g}",
                    details={'marks_obtained': marks_obtained, 'max_marks': assessment.max_marks}
                )

        grade = self._store.grade_for(assessment_id, student_id)
        if grade is None:
            grade = self._store.add_grade(Grade(
                assessment_id=assessment_id,
                student_id=student_id,
                course_id=assessment.course_id,
                marks_obtained=marks_obtained,
                comments=comments,
            ))
            return grade, False
        return grade, grade.regrade(marks_obtained, comments)

    @returns_result
    def record_grades(self, assessment_id: str,
                      entries: Iterable[Dict[str, Any]]) -> OperationResult[Dict[str, Any]]:
        """Upsert many grades. Best effort: bad rows are reported, good rows kept.

        Each entry is ``{'student_id', 'marks_obtained', 'comments'?}``.
        """
        recorded: List[str] = []
        errors: List[str] = []
        with self._store.lock:
            self._require_assessment(assessment_id)
            for index, entry in enumerate(entries, start=1):
                try:
                    grade, _ = self._upsert_grade(
                        assessment_id,
                        entry.get('student_id'),
                        entry.get('marks_obtained'),
                        entry.get('comments'),
                    )
                except (ValidationError, ResourceNotFoundError, NotEnrolledError) as e:
                    errors.append(f"Row {index}: {e.message}")
                    continue
                recorded.append(grade.id)
        logger.info("Bulk grading of %s: %d recorded, %d rejected", assessment_id, len(recorded), len(errors))
        return OperationResult.ok(
            {'recorded': recorded, 'errors': errors},
            message=f"Recorded {len(recorded)} grades",
            warnings=errors,
        )

    @returns_result
    def publish_grades(self, assessment_id: str) -> OperationResult[int]:
        """Publish every draft grade of an assessment. The value is how many flipped."""
        with self._store.lock:
            assessment = self._require_assessment(assessment_id)
            course = self._store.courses.find_by_id(assessment.course_id)
            published_students = [grade.student_id for grade in self._store.assessment_grades(assessment_id)
                                  if grade.publish()]
            assessment.mark_published()
            total_weight = sum(a.weight_pct for a in self._store.course_assessments(assessment.course_id))

        warnings = []
        if total_weight > 100:
            warning = f"Assessment weights for course {course.code} total {total_weight:g}%, above 100%"
            warnings.append(warning)
            logger.warning(warning)

        logger.info("Published %d grades for assessment %s", len(published_students), assessment_id)
        if published_students:
            self._event_service.publish_event(EventType.GRADES_PUBLISHED, assessment.course_id, {
                'assessment_id': assessment_id,
                'assessment_name': assessment.name,
                'course_id': course.id,
                'course_code': course.code,
                'student_ids': published_students,
            })
        return OperationResult.ok(len(published_students),
                                  message=f"Published {len(published_students)} grades",
                                  warnings=warnings)

    def _require_assessment(self, assessment_id: str) -> Assessment:
        assessment = self._store.assessments.find_by_id(assessment_id)
        if assessment is None:
            raise ResourceNotFoundError(f"Assessment {assessment_id} not found",
                                        details={'assessment_id': assessment_id})
        return assessment

    def get_student_published_grades(self, student_id: str) -> List[PublishedGrade]:
        """(course, assessment, grade) for every published grade in an enrolled course."""
        with self._store.lock:
            student = self._store.students.find_by_id(student_id)
            if student is None:
                return []
            result: List[PublishedGrade] = []
            for grade in self._store.student_grades(student_id):
                if not grade.is_published or not student.is_enrolled(grade.course_id):
                    continue
                course = self._store.courses.find_by_id(grade.course_id)
                assessment = self._store.assessments.find_by_id(grade.assessment_id)
                result.append((course, assessment, grade))
            return result

    def get_course_grade(self, student_id: str, course_id: str) -> Optional[float]:
        """Weighted percentage over published, graded work; None when there is none."""
        with self._store.lock:
            items = []
            for grade in self._store.student_grades(student_id):
                if grade.course_id != course_id or not grade.is_published or not grade.is_graded:
                    continue
                assessment = self._store.assessments.find_by_id(grade.assessment_id)
                items.append((grade.marks_obtained, assessment.max_marks, assessment.weight_pct))
        return weighted_course_grade(items)

    def get_published_average(self, student_id: str, course_id: str) -> Optional[float]:
        """Plain mean of published percentages in a course, ungraded marks counting as 0."""
        with self._store.lock:
            pcts = []
            for grade in self._store.student_grades(student_id):
                if grade.course_id != course_id or not grade.is_published:
                    continue
                assessment = self._store.assessments.find_by_id(grade.assessment_id)
                pcts.append(percentage(grade.marks_obtained or 0.0, assessment.max_marks))
        if not pcts:
            return None
        return sum(pcts) / len(pcts)

    def get_course_letter(self, student_id: str, course_id: str) -> Optional[str]:
        grade_pct = self.get_course_grade(student_id, course_id)
        return letter_grade(grade_pct) if grade_pct is not None else None

    def calculate_student_gpa(self, student_id: str) -> float:
        """Credit-weighted 4.0-scale GPA, 0.0 when nothing is graded."""
        gpa, _ = self.get_student_gpa_summary(student_id)
        return gpa

    def get_student_gpa_summary(self, student_id: str) -> Tuple[float, bool]:
        """GPA plus a flag telling a real 0.0 apart from no data."""
        with self._store.lock:
            student = self._store.students.find_by_id(student_id)
            if student is None:
                return 0.0, False
            pairs = []
            for course in self._store.courses.find_many(student.enrolled_course_ids):
                pairs.append((self.get_course_grade(student_id, course.id), course.credits))
        return credit_weighted_gpa(pairs)

    def get_course_assessments(self, course_id: str) -> List[Assessment]:
        return self._store.course_assessments(course_id)

    def get_assessment_grades(self, assessment_id: str) -> List[Grade]:
        return self._store.assessment_grades(assessment_id)

    def get_assessment(self, assessment_id: str) -> Optional[Assessment]:
        return self._store.assessments.find_by_id(assessment_id)
