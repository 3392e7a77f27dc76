"""
Derivation layer: dashboards and course analytics composed from the other
services. Nothing here is cached; every call recomputes from the store.
"""

from typing import Any, Dict, List, Optional

from ..core.entities import Student
from ..core.enums import LectureStatus
from ..core.grading import letter_grade
from ..persistence.store import EducationStore
from .catalog_service import CatalogService
from .feedback_service import FeedbackService
from .gradebook_service import GradebookService
from .lecture_service import LectureService
from .notification_service import NotificationService


class QueryService:
    """Read-only views for the student dashboard and professor analytics."""

    def __init__(self, store: EducationStore, catalog: CatalogService, lectures: LectureService,
                 feedback: FeedbackService, gradebook: GradebookService,
                 notifications: NotificationService,
                 at_risk_grade_pct: float = 50.0, ai_min_data_points: int = 10):
        self._store = store
        self._catalog = catalog
        self._lectures = lectures
        self._feedback = feedback
        self._gradebook = gradebook
        self._notifications = notifications
        self._at_risk_grade_pct = at_risk_grade_pct
        self._ai_min_data_points = ai_min_data_points

    def get_student_dashboard(self, student_id: str) -> Optional[Dict[str, Any]]:
        """Everything the student home screen shows, or None for an unknown student."""
        with self._store.lock:
            student = self._store.students.find_by_id(student_id)
            if student is None:
                return None

            courses = []
            for course in self._catalog.get_student_courses(student_id):
                grade_pct = self._gradebook.get_course_grade(student_id, course.id)
                courses.append({
                    'course': course.to_dict(),
                    'grade_pct': round(grade_pct, 2) if grade_pct is not None else None,
                    'letter': letter_grade(grade_pct) if grade_pct is not None else None,
                })

            upcoming = [lecture.to_dict() for lecture in self._lectures.get_student_lectures(student_id)
                        if not lecture.is_completed]
            pending = [lecture.to_dict() for lecture in self._feedback.get_student_pending_feedback(student_id)]
            published = [{
                'course_code': course.code,
                'assessment': assessment.to_dict(),
                'grade': grade.to_dict(),
            } for course, assessment, grade in self._gradebook.get_student_published_grades(student_id)]
            gpa, has_gpa = self._gradebook.get_student_gpa_summary(student_id)
            unread = self._notifications.get_user_notifications(student_id, unread_only=True)

            return {
                'student': student.to_dict(),
                'courses': courses,
                'upcoming_lectures': upcoming,
                'pending_feedback': pending,
                'published_grades': published,
                'gpa': gpa,
                'has_gpa': has_gpa,
                'unread_notifications': [n.to_dict() for n in unread],
            }

    def get_course_engagement(self, course_id: str) -> float:
        """Feedback received as a percentage of feedback possible (0..100)."""
        with self._store.lock:
            completed_ids = {l.id for l in self._store.course_lectures(course_id) if l.is_completed}
            enrolled_ids = set(self._store.course_student_ids(course_id))
            possible = len(completed_ids) * len(enrolled_ids)
            if possible == 0:
                return 0.0
            received = sum(1 for f in self._store.course_feedback(course_id)
                           if f.lecture_id in completed_ids and f.student_id in enrolled_ids)
        return round(received / possible * 100.0, 1)

    def get_course_health(self, course_id: str) -> float:
        """Engagement weighted at 60% plus the non-silent share of the roster at 40%.

        An unknown course or one without students scores 0.0.
        """
        with self._store.lock:
            if self._store.courses.find_by_id(course_id) is None:
                return 0.0
            enrolled = len(self._store.course_student_ids(course_id))
            if enrolled == 0:
                return 0.0
            engagement = self.get_course_engagement(course_id)
            silent = len(self._feedback.get_silent_students(course_id))
        return round(engagement * 0.6 + (1 - silent / enrolled) * 40, 1)

    def get_at_risk_students(self, course_id: str) -> List[Dict[str, Any]]:
        """Silent students and students whose average published percentage is below the cut-off."""
        with self._store.lock:
            silent_ids = {s.id for s in self._feedback.get_silent_students(course_id)}
            at_risk = []
            for student in self._store.course_students(course_id):
                reasons = []
                if student.id in silent_ids:
                    reasons.append("silent")
                grade_pct = self._gradebook.get_published_average(student.id, course_id)
                if grade_pct is not None and grade_pct < self._at_risk_grade_pct:
                    reasons.append("low_grade")
                if reasons:
                    at_risk.append(self._at_risk_entry(student, reasons, grade_pct))
        return at_risk

    @staticmethod
    def _at_risk_entry(student: Student, reasons: List[str], grade_pct: Optional[float]) -> Dict[str, Any]:
        return {
            'student_id': student.id,
            'name': student.name,
            'email': student.email,
            'reasons': reasons,
            'grade_pct': round(grade_pct, 2) if grade_pct is not None else None,
        }

    def get_ai_data_availability(self, course_id: str) -> Dict[str, Any]:
        """Whether a course has gathered enough feedback and grades to analyze."""
        with self._store.lock:
            feedback_count = len(self._store.course_feedback(course_id))
            grade_count = sum(1 for assessment in self._store.course_assessments(course_id)
                              for grade in self._store.assessment_grades(assessment.id)
                              if grade.is_graded)
        total = feedback_count + grade_count
        return {
            'course_id': course_id,
            'feedback_count': feedback_count,
            'grade_count': grade_count,
            'total_data_points': total,
            'required_data_points': self._ai_min_data_points,
            'is_ready': total >= self._ai_min_data_points,
        }

    def get_course_overview(self, course_id: str) -> Optional[Dict[str, Any]]:
        """Professor-facing summary of one course, or None for an unknown course."""
        with self._store.lock:
            course = self._store.courses.find_by_id(course_id)
            if course is None:
                return None
            lectures = self._store.course_lectures(course_id)
            by_status = {status.value: 0 for status in LectureStatus}
            for lecture in lectures:
                by_status[lecture.status.value] += 1
            return {
                'course': course.to_dict(),
                'enrolled_students': len(self._store.course_student_ids(course_id)),
                'lectures': by_status,
                'assessments': len(self._store.course_assessments(course_id)),
                'engagement': self.get_course_engagement(course_id),
                'health': self.get_course_health(course_id),
                'silent_students': [s.id for s in self._feedback.get_silent_students(course_id)],
                'at_risk_students': self.get_at_risk_students(course_id),
            }
