"""
In-store notifications. Nothing is delivered; records are read back by the UI.
"""

import logging
from typing import List

from ..core.entities import Event, Notification
from ..core.enums import EventType, NotificationType
from ..core.exceptions import ResourceNotFoundError, ValidationError
from ..core.interfaces import EventHandler
from ..core.results import OperationResult, returns_result
from ..persistence.store import EducationStore

logger = logging.getLogger(__name__)


class NotificationService(EventHandler):
    """Turns grade publications into student notifications and stores nudges."""

    def __init__(self, store: EducationStore):
        self._store = store

    def can_handle(self, event_type: str) -> bool:
        return event_type == EventType.GRADES_PUBLISHED.value

    def handle_event(self, event: Event) -> None:
        data = event.event_data
        title = f"Grades published: {data.get('course_code', '')}".strip()
        message = f"Your grade for {data.get('assessment_name', 'an assessment')} is now available."
        with self._store.lock:
            for student_id in data.get('student_ids', []):
                self._store.add_notification(Notification(
                    user_id=student_id,
                    notification_type=NotificationType.GRADE,
                    title=title,
                    message=message,
                ))
        logger.info("Queued %d grade notifications for assessment %s",
                    len(data.get('student_ids', [])), data.get('assessment_id'))

    @returns_result
    def send_nudge(self, professor_id: str, student_id: str, message: str) -> OperationResult[Notification]:
        """Record a professor's reminder to a (typically silent) student."""
        if not (message or "").strip():
            raise ValidationError("Nudge message cannot be empty")
        with self._store.lock:
            professor = self._store.professors.find_by_id(professor_id)
            if professor is None:
                raise ResourceNotFoundError(f"Professor {professor_id} not found",
                                            details={'professor_id': professor_id})
            if self._store.students.find_by_id(student_id) is None:
                raise ResourceNotFoundError(f"Student {student_id} not found", details={'student_id': student_id})
            notification = self._store.add_notification(Notification(
                user_id=student_id,
                notification_type=NotificationType.NUDGE,
                title=f"Reminder from {professor.name}",
                message=message.strip(),
            ))
        logger.info("Professor %s nudged student %s", professor_id, student_id)
        return notification

    def get_user_notifications(self, user_id: str, unread_only: bool = False) -> List[Notification]:
        """Notifications for a user, newest first."""
        notifications = self._store.notifications.find_by_user(user_id)
        if unread_only:
            notifications = [n for n in notifications if not n.read]
        # Stable sort keeps insertion order reversed for identical timestamps.
        return sorted(reversed(notifications), key=lambda n: n.created_at, reverse=True)

    @returns_result
    def mark_notification_read(self, notification_id: str) -> OperationResult[Notification]:
        with self._store.lock:
            notification = self._store.notifications.find_by_id(notification_id)
            if notification is None:
                raise ResourceNotFoundError(f"Notification {notification_id} not found",
                                            details={'notification_id': notification_id})
            notification.mark_read()
        return notification

    @returns_result
    def clear_notifications(self, user_id: str) -> OperationResult[int]:
        """Delete every notification of a user; the value is how many were removed."""
        with self._store.lock:
            removed = 0
            for notification in self._store.notifications.find_by_user(user_id):
                if self._store.notifications.delete(notification.id):
                    removed += 1
        return removed
