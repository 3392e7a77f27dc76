"""
Services module: one service per component of the LIS core.
"""

from .event_service import EventService
from .identity_service import IdentityService
from .catalog_service import CatalogService, generate_enrollment_code
from .lecture_service import LectureService
from .feedback_service import FeedbackService
from .gradebook_service import GradebookService
from .notification_service import NotificationService
from .query_service import QueryService
from .roster_service import RosterImportService, RosterRecord, RosterValidation, BulkImportResult
from .insight_service import InsightService, OpenAIInsightAnalyzer, CourseInsights, compute_local_insights

__all__ = [
    "EventService",
    "IdentityService",
    "CatalogService",
    "generate_enrollment_code",
    "LectureService",
    "FeedbackService",
    "GradebookService",
    "NotificationService",
    "QueryService",
    "RosterImportService",
    "RosterRecord",
    "RosterValidation",
    "BulkImportResult",
    "InsightService",
    "OpenAIInsightAnalyzer",
    "CourseInsights",
    "compute_local_insights",
]
