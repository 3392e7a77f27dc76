"""
The in-memory education store: single source of truth for every entity.

One ``EducationStore`` is built per process (or per test) and handed to the
services. It owns the repositories, the secondary indexes that keep
relationship lookups O(1), and the lock that serializes mutations.
"""

import threading
from collections import defaultdict
from typing import Any, Dict, List, Optional, Tuple

from ..core.entities import (
    Professor, Student, Course, Lecture, Feedback, Assessment, Grade,
    Notification, normalize_email
)
from .repositories import (
    ProfessorRepository, StudentRepository, CourseRepository, LectureRepository,
    FeedbackRepository, AssessmentRepository, GradeRepository, NotificationRepository
)


class EducationStore:
    """Repositories plus secondary indexes over them."""

    def __init__(self):
        self._lock = threading.RLock()

        self.professors = ProfessorRepository()
        self.students = StudentRepository()
        self.courses = CourseRepository()
        self.lectures = LectureRepository()
        self.feedback = FeedbackRepository()
        self.assessments = AssessmentRepository()
        self.grades = GradeRepository()
        self.notifications = NotificationRepository()

        # Unique-key indexes
        self._professor_by_email: Dict[str, str] = {}
        self._student_by_email: Dict[str, str] = {}
        self._course_by_enrollment_code: Dict[str, str] = {}
        self._feedback_by_pair: Dict[Tuple[str, str], str] = {}  # (student_id, lecture_id)
        self._grade_by_pair: Dict[Tuple[str, str], str] = {}  # (assessment_id, student_id)

        # One-to-many indexes, insertion ordered
        self._course_students: Dict[str, List[str]] = defaultdict(list)
        self._course_lectures: Dict[str, List[str]] = defaultdict(list)
        self._course_assessments: Dict[str, List[str]] = defaultdict(list)
        self._student_feedback: Dict[str, List[str]] = defaultdict(list)
        self._lecture_feedback: Dict[str, List[str]] = defaultdict(list)
        self._assessment_grades: Dict[str, List[str]] = defaultdict(list)
        self._student_grades: Dict[str, List[str]] = defaultdict(list)

    @property
    def lock(self) -> threading.RLock:
        """Lock held by every mutation and multi-entity read."""
        return self._lock

    # Identity

    def add_professor(self, professor: Professor) -> Professor:
        with self._lock:
            self.professors.save(professor)
            self._professor_by_email[professor.email] = professor.id
            return professor

    def professor_by_email(self, email: str) -> Optional[Professor]:
        with self._lock:
            professor_id = self._professor_by_email.get(normalize_email(email))
            return self.professors.find_by_id(professor_id) if professor_id else None

    def add_student(self, student: Student) -> Student:
        """Store a student, indexing any pre-set enrollments."""
        with self._lock:
            self.students.save(student)
            self._student_by_email[student.email] = student.id
            for course_id in student.enrolled_course_ids:
                if student.id not in self._course_students[course_id]:
                    self._course_students[course_id].append(student.id)
            return student

    def student_by_email(self, email: str) -> Optional[Student]:
        with self._lock:
            student_id = self._student_by_email.get(normalize_email(email))
            return self.students.find_by_id(student_id) if student_id else None

    # Catalog

    def add_course(self, course: Course) -> Course:
        with self._lock:
            self.courses.save(course)
            self._course_by_enrollment_code[course.enrollment_code] = course.id
            professor = self.professors.find_by_id(course.professor_id)
            if professor is not None:
                professor.add_course(course.id)
            return course

    def enrollment_code_exists(self, code: str) -> bool:
        with self._lock:
            return code in self._course_by_enrollment_code

    def course_by_enrollment_code(self, code: str) -> Optional[Course]:
        with self._lock:
            course_id = self._course_by_enrollment_code.get(code)
            return self.courses.find_by_id(course_id) if course_id else None

    def enroll(self, student: Student, course_id: str) -> bool:
        """Link a student to a course. Returns False if already linked."""
        with self._lock:
            if not student.enroll_in_course(course_id):
                return False
            if student.id not in self._course_students[course_id]:
                self._course_students[course_id].append(student.id)
            return True

    def course_student_ids(self, course_id: str) -> List[str]:
        with self._lock:
            return list(self._course_students.get(course_id, []))

    def course_students(self, course_id: str) -> List[Student]:
        with self._lock:
            return self.students.find_many(self._course_students.get(course_id, []))

    # Lectures

    def add_lecture(self, lecture: Lecture) -> Lecture:
        with self._lock:
            self.lectures.save(lecture)
            self._course_lectures[lecture.course_id].append(lecture.id)
            return lecture

    def course_lectures(self, course_id: str) -> List[Lecture]:
        with self._lock:
            return self.lectures.find_many(self._course_lectures.get(course_id, []))

    # Feedback

    def add_feedback(self, feedback: Feedback) -> Feedback:
        with self._lock:
            self.feedback.save(feedback)
            self._feedback_by_pair[(feedback.student_id, feedback.lecture_id)] = feedback.id
            self._student_feedback[feedback.student_id].append(feedback.id)
            self._lecture_feedback[feedback.lecture_id].append(feedback.id)
            return feedback

    def feedback_for(self, student_id: str, lecture_id: str) -> Optional[Feedback]:
        with self._lock:
            feedback_id = self._feedback_by_pair.get((student_id, lecture_id))
            return self.feedback.find_by_id(feedback_id) if feedback_id else None

    def has_feedback(self, student_id: str, lecture_id: str) -> bool:
        with self._lock:
            return (student_id, lecture_id) in self._feedback_by_pair

    def student_feedback(self, student_id: str) -> List[Feedback]:
        with self._lock:
            return self.feedback.find_many(self._student_feedback.get(student_id, []))

    def lecture_feedback(self, lecture_id: str) -> List[Feedback]:
        with self._lock:
            return self.feedback.find_many(self._lecture_feedback.get(lecture_id, []))

    def course_feedback(self, course_id: str) -> List[Feedback]:
        with self._lock:
            result: List[Feedback] = []
            for lecture_id in self._course_lectures.get(course_id, []):
                result.extend(self.feedback.find_many(self._lecture_feedback.get(lecture_id, [])))
            return result

    # Gradebook

    def add_assessment(self, assessment: Assessment) -> Assessment:
        with self._lock:
            self.assessments.save(assessment)
            self._course_assessments[assessment.course_id].append(assessment.id)
            return assessment

    def course_assessments(self, course_id: str) -> List[Assessment]:
        with self._lock:
            return self.assessments.find_many(self._course_assessments.get(course_id, []))

    def add_grade(self, grade: Grade) -> Grade:
        with self._lock:
            self.grades.save(grade)
            self._grade_by_pair[(grade.assessment_id, grade.student_id)] = grade.id
            self._assessment_grades[grade.assessment_id].append(grade.id)
            self._student_grades[grade.student_id].append(grade.id)
            return grade

    def grade_for(self, assessment_id: str, student_id: str) -> Optional[Grade]:
        with self._lock:
            grade_id = self._grade_by_pair.get((assessment_id, student_id))
            return self.grades.find_by_id(grade_id) if grade_id else None

    def assessment_grades(self, assessment_id: str) -> List[Grade]:
        with self._lock:
            return self.grades.find_many(self._assessment_grades.get(assessment_id, []))

    def student_grades(self, student_id: str) -> List[Grade]:
        with self._lock:
            return self.grades.find_many(self._student_grades.get(student_id, []))

    # Notifications

    def add_notification(self, notification: Notification) -> Notification:
        with self._lock:
            return self.notifications.save(notification)

    def get_statistics(self) -> Dict[str, Any]:
        """Get entity counts."""
        with self._lock:
            return {
                'professors': self.professors.count(),
                'students': self.students.count(),
                'courses': self.courses.count(),
                'lectures': self.lectures.count(),
                'feedback': self.feedback.count(),
                'assessments': self.assessments.count(),
                'grades': self.grades.count(),
                'notifications': self.notifications.count(),
            }
