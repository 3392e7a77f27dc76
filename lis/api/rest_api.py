"""
REST API for the LIS core using FastAPI.

Every route delegates to a service. Failed ``OperationResult`` values are
mapped onto HTTP status codes by their ``ErrorKind``.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .. import __version__
from ..core.enums import ErrorKind
from ..core.results import OperationResult
from ..persistence import EducationStore
from ..services import (
    CatalogService, EventService, FeedbackService, GradebookService, IdentityService,
    InsightService, LectureService, NotificationService, QueryService, RosterImportService
)


ERROR_STATUS = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
}


# Pydantic models for API
class ProfessorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=320)
    department: str = Field(..., min_length=1, max_length=100)


class StudentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=320)
    roll_number: str = Field(..., min_length=1, max_length=50)
    department: str = Field(..., min_length=1, max_length=100)


class CourseCreate(BaseModel):
    professor_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    code: str = Field(..., min_length=1, max_length=20)
    semester: str = Field(..., min_length=1, max_length=40)
    department: str = Field(..., min_length=1, max_length=100)
    credits: int = Field(..., ge=0, le=20)


class EnrollmentRequest(BaseModel):
    student_id: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1, max_length=20)


class LectureCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    date: datetime
    duration: int = Field(..., gt=0)
    topics: List[str] = Field(default_factory=list)


class TransitionRequest(BaseModel):
    status: str = Field(..., min_length=1)


class TopicRatingIn(BaseModel):
    topic: str = Field(..., min_length=1)
    rating: int


class FeedbackCreate(BaseModel):
    student_id: str = Field(..., min_length=1)
    understanding_level: str = Field(..., min_length=1)
    topic_ratings: List[TopicRatingIn] = Field(default_factory=list)
    comment: Optional[str] = None


class AssessmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    type: str = Field(..., min_length=1)
    max_marks: float
    weight_pct: float
    due_date: Optional[datetime] = None


class GradeEntry(BaseModel):
    marks_obtained: Optional[float] = None
    comments: Optional[str] = None


class BulkGradeEntry(GradeEntry):
    student_id: str = Field(..., min_length=1)


class BulkGradeRequest(BaseModel):
    grades: List[BulkGradeEntry] = Field(..., min_length=1)


class RosterRequest(BaseModel):
    records: List[Dict[str, Any]] = Field(default_factory=list)


class NudgeRequest(BaseModel):
    professor_id: str = Field(..., min_length=1)
    student_id: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1, max_length=1000)


def _check(result: OperationResult) -> OperationResult:
    """Raise the HTTP error matching a failed result."""
    if not result.success:
        raise HTTPException(
            status_code=ERROR_STATUS.get(result.kind, status.HTTP_400_BAD_REQUEST),
            detail={'error_code': result.error_code, 'message': result.message},
        )
    return result


def _not_found(what: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                         detail={'error_code': 'NOT_FOUND', 'message': f"{what} not found"})


class LISRestAPI:
    """REST API implementation for the LIS platform."""

    def __init__(self, store: EducationStore, event_service: EventService, identity: IdentityService,
                 catalog: CatalogService, lectures: LectureService, feedback: FeedbackService,
                 gradebook: GradebookService, query: QueryService, roster: RosterImportService,
                 insights: InsightService, notifications: NotificationService):
        self._store = store
        self._event_service = event_service
        self._identity = identity
        self._catalog = catalog
        self._lectures = lectures
        self._feedback = feedback
        self._gradebook = gradebook
        self._query = query
        self._roster = roster
        self._insights = insights
        self._notifications = notifications

        self.app = FastAPI(
            title="LIS API",
            description="Lecture Intelligence System: courses, lecture feedback and grades",
            version=__version__,
            docs_url="/docs",
            redoc_url="/redoc"
        )

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        self._setup_routes()

    def _setup_routes(self):
        """Setup API routes."""

        @self.app.get("/")
        async def root():
            return {"message": "LIS API", "version": __version__, "docs": "/docs"}

        @self.app.get("/health")
        async def health_check():
            return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

        @self.app.get("/statistics")
        async def get_statistics():
            return {
                "success": True,
                "message": "Statistics retrieved successfully",
                "statistics": {
                    "store": self._store.get_statistics(),
                    "events": self._event_service.get_processing_statistics(),
                },
            }

        # Identity
        @self.app.post("/professors", status_code=status.HTTP_201_CREATED)
        async def register_professor(data: ProfessorCreate):
            result = _check(self._identity.register_professor(data.name, data.email, data.department))
            return {"id": result.value}

        @self.app.post("/students", status_code=status.HTTP_201_CREATED)
        async def register_student(data: StudentCreate):
            result = _check(self._identity.register_student(
                data.name, data.email, data.roll_number, data.department))
            return {"id": result.value}

        @self.app.get("/professors/{professor_id}")
        async def get_professor(professor_id: str):
            professor = self._identity.get_professor(professor_id)
            if professor is None:
                raise _not_found("Professor")
            return professor.to_dict()

        @self.app.get("/students/{student_id}")
        async def get_student(student_id: str):
            student = self._identity.get_student(student_id)
            if student is None:
                raise _not_found("Student")
            return student.to_dict()

        @self.app.get("/users")
        async def find_user(email: str):
            user = self._identity.find_by_email(email)
            if user is None:
                raise _not_found("User")
            return user.to_dict()

        # Catalog
        @self.app.post("/courses", status_code=status.HTTP_201_CREATED)
        async def create_course(data: CourseCreate):
            result = _check(self._catalog.create_course(
                data.professor_id, data.name, data.code, data.semester, data.department, data.credits))
            return result.value.to_dict()

        @self.app.get("/courses/{course_id}")
        async def get_course(course_id: str):
            course = self._catalog.get_course(course_id)
            if course is None:
                raise _not_found("Course")
            return course.to_dict()

        @self.app.get("/professors/{professor_id}/courses")
        async def get_professor_courses(professor_id: str):
            return [c.to_dict() for c in self._catalog.get_professor_courses(professor_id)]

        @self.app.post("/enrollments")
        async def enroll_by_code(data: EnrollmentRequest):
            result = _check(self._catalog.enroll_by_code(data.student_id, data.code))
            return {"course_id": result.value, "message": result.message}

        @self.app.get("/students/{student_id}/courses")
        async def get_student_courses(student_id: str):
            return [c.to_dict() for c in self._catalog.get_student_courses(student_id)]

        @self.app.get("/courses/{course_id}/students")
        async def get_course_students(course_id: str):
            return [s.to_dict() for s in self._catalog.get_course_students(course_id)]

        # Lectures
        @self.app.post("/courses/{course_id}/lectures", status_code=status.HTTP_201_CREATED)
        async def create_lecture(course_id: str, data: LectureCreate):
            result = _check(self._lectures.create_lecture(
                course_id, data.title, data.date, data.duration, data.topics))
            return result.value.to_dict()

        @self.app.post("/lectures/{lecture_id}/transition")
        async def transition_lecture(lecture_id: str, data: TransitionRequest):
            result = _check(self._lectures.transition_lecture(lecture_id, data.status))
            return result.value.to_dict()

        @self.app.get("/lectures/{lecture_id}")
        async def get_lecture(lecture_id: str):
            lecture = self._lectures.get_lecture(lecture_id)
            if lecture is None:
                raise _not_found("Lecture")
            return lecture.to_dict()

        @self.app.get("/courses/{course_id}/lectures")
        async def get_course_lectures(course_id: str):
            return [l.to_dict() for l in self._lectures.get_course_lectures(course_id)]

        @self.app.get("/students/{student_id}/lectures")
        async def get_student_lectures(student_id: str):
            return [l.to_dict() for l in self._lectures.get_student_lectures(student_id)]

        # Feedback
        @self.app.post("/lectures/{lecture_id}/feedback", status_code=status.HTTP_201_CREATED)
        async def record_feedback(lecture_id: str, data: FeedbackCreate):
            result = _check(self._feedback.record_feedback(
                data.student_id,
                lecture_id,
                data.understanding_level,
                [r.model_dump() for r in data.topic_ratings],
                data.comment,
            ))
            return result.value.to_dict()

        @self.app.get("/students/{student_id}/pending-feedback")
        async def get_pending_feedback(student_id: str):
            return [l.to_dict() for l in self._feedback.get_student_pending_feedback(student_id)]

        @self.app.get("/courses/{course_id}/silent-students")
        async def get_silent_students(course_id: str, threshold: Optional[float] = None):
            return [s.to_dict() for s in self._feedback.get_silent_students(course_id, threshold)]

        @self.app.get("/courses/{course_id}/feedback")
        async def get_course_feedback(course_id: str):
            return [f.to_dict() for f in self._feedback.get_course_feedback(course_id)]

        @self.app.get("/lectures/{lecture_id}/feedback")
        async def get_lecture_feedback(lecture_id: str):
            return [f.to_dict() for f in self._feedback.get_lecture_feedback(lecture_id)]

        # Gradebook
        @self.app.post("/courses/{course_id}/assessments", status_code=status.HTTP_201_CREATED)
        async def create_assessment(course_id: str, data: AssessmentCreate):
            result = _check(self._gradebook.create_assessment(
                course_id, data.name, data.type, data.max_marks, data.weight_pct, data.due_date))
            return result.value.to_dict()

        @self.app.get("/courses/{course_id}/assessments")
        async def get_course_assessments(course_id: str):
            return [a.to_dict() for a in self._gradebook.get_course_assessments(course_id)]

        @self.app.put("/assessments/{assessment_id}/grades/{student_id}")
        async def record_grade(assessment_id: str, student_id: str, data: GradeEntry):
            result = _check(self._gradebook.record_grade(
                assessment_id, student_id, data.marks_obtained, data.comments))
            return {"grade": result.value.to_dict(), "warnings": result.warnings}

        @self.app.post("/assessments/{assessment_id}/grades")
        async def record_grades(assessment_id: str, data: BulkGradeRequest):
            result = _check(self._gradebook.record_grades(
                assessment_id, [entry.model_dump() for entry in data.grades]))
            return result.value

        @self.app.get("/assessments/{assessment_id}/grades")
        async def get_assessment_grades(assessment_id: str):
            return [g.to_dict() for g in self._gradebook.get_assessment_grades(assessment_id)]

        @self.app.post("/assessments/{assessment_id}/publish")
        async def publish_grades(assessment_id: str):
            result = _check(self._gradebook.publish_grades(assessment_id))
            return {"published": result.value, "message": result.message, "warnings": result.warnings}

        @self.app.get("/students/{student_id}/grades")
        async def get_published_grades(student_id: str):
            return [{
                "course": course.to_dict(),
                "assessment": assessment.to_dict(),
                "grade": grade.to_dict(),
            } for course, assessment, grade in self._gradebook.get_student_published_grades(student_id)]

        @self.app.get("/students/{student_id}/courses/{course_id}/grade")
        async def get_course_grade(student_id: str, course_id: str):
            grade_pct = self._gradebook.get_course_grade(student_id, course_id)
            return {
                "grade_pct": grade_pct,
                "letter": self._gradebook.get_course_letter(student_id, course_id),
            }

        @self.app.get("/students/{student_id}/gpa")
        async def get_gpa(student_id: str):
            gpa, has_data = self._gradebook.get_student_gpa_summary(student_id)
            return {"gpa": gpa, "has_data": has_data}

        # Derived views
        @self.app.get("/students/{student_id}/dashboard")
        async def get_dashboard(student_id: str):
            dashboard = self._query.get_student_dashboard(student_id)
            if dashboard is None:
                raise _not_found("Student")
            return dashboard

        @self.app.get("/courses/{course_id}/engagement")
        async def get_engagement(course_id: str):
            if self._catalog.get_course(course_id) is None:
                raise _not_found("Course")
            return {"engagement": self._query.get_course_engagement(course_id)}

        @self.app.get("/courses/{course_id}/health")
        async def get_course_health(course_id: str):
            if self._catalog.get_course(course_id) is None:
                raise _not_found("Course")
            return {"health": self._query.get_course_health(course_id)}

        @self.app.get("/courses/{course_id}/at-risk")
        async def get_at_risk(course_id: str):
            return self._query.get_at_risk_students(course_id)

        @self.app.get("/courses/{course_id}/ai-availability")
        async def get_ai_availability(course_id: str):
            return self._query.get_ai_data_availability(course_id)

        @self.app.get("/courses/{course_id}/overview")
        async def get_overview(course_id: str):
            overview = self._query.get_course_overview(course_id)
            if overview is None:
                raise _not_found("Course")
            return overview

        # Roster import
        @self.app.post("/courses/{course_id}/roster/validate")
        async def validate_roster(course_id: str, data: RosterRequest):
            validation = self._roster.validate_roster(data.records)
            return {
                "valid": [record.model_dump() for record in validation.valid],
                "errors": validation.errors,
            }

        @self.app.post("/courses/{course_id}/roster")
        async def import_roster(course_id: str, data: RosterRequest):
            result = _check(self._roster.import_roster(course_id, data.records))
            return result.value.to_dict()

        # Insights
        @self.app.get("/courses/{course_id}/insights")
        async def get_insights(course_id: str):
            insights = await self._insights.analyze_course_async(course_id)
            if insights is None:
                raise _not_found("Course")
            return insights.model_dump(mode="json")

        # Notifications
        @self.app.post("/nudges", status_code=status.HTTP_201_CREATED)
        async def send_nudge(data: NudgeRequest):
            result = _check(self._notifications.send_nudge(data.professor_id, data.student_id, data.message))
            return result.value.to_dict()

        @self.app.get("/users/{user_id}/notifications")
        async def get_notifications(user_id: str, unread_only: bool = False):
            return [n.to_dict() for n in self._notifications.get_user_notifications(user_id, unread_only)]

        @self.app.post("/notifications/{notification_id}/read")
        async def mark_read(notification_id: str):
            result = _check(self._notifications.mark_notification_read(notification_id))
            return result.value.to_dict()

        @self.app.delete("/users/{user_id}/notifications")
        async def clear_notifications(user_id: str):
            result = _check(self._notifications.clear_notifications(user_id))
            return {"removed": result.value}
