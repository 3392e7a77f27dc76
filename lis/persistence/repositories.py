"""
Repository pattern implementations for in-memory data access.
"""

import threading
from typing import Callable, Dict, Iterator, List, Optional, TypeVar, Generic

from ..core.entities import (
    Professor, Student, Course, Lecture, Feedback, Assessment, Grade,
    Notification, AbstractEntity
)
from ..core.interfaces import Repository

T = TypeVar('T', bound=AbstractEntity)


class InMemoryRepository(Repository[T], Generic[T]):
    """Dict-backed repository keyed by entity ID, preserving insertion order."""

    def __init__(self, entity_type: str):
        self._entity_type = entity_type
        self._entities: Dict[str, T] = {}
        self._lock = threading.RLock()

    @property
    def entity_type(self) -> str:
        return self._entity_type

    def save(self, entity: T) -> T:
        """Save an entity, replacing any previous object with the same ID."""
        with self._lock:
            self._entities[entity.id] = entity
            return entity

    def find_by_id(self, entity_id: str) -> Optional[T]:
        """Find entity by ID."""
        with self._lock:
            return self._entities.get(entity_id)

    def find_many(self, entity_ids: List[str]) -> List[T]:
        """Resolve IDs in the given order, skipping unknown ones."""
        with self._lock:
            return [self._entities[i] for i in entity_ids if i in self._entities]

    def find_all(self, predicate: Optional[Callable[[T], bool]] = None) -> List[T]:
        """Find all entities, in insertion order, matching the predicate."""
        with self._lock:
            if predicate is None:
                return list(self._entities.values())
            return [e for e in self._entities.values() if predicate(e)]

    def delete(self, entity_id: str) -> bool:
        """Delete an entity by ID."""
        with self._lock:
            return self._entities.pop(entity_id, None) is not None

    def count(self, predicate: Optional[Callable[[T], bool]] = None) -> int:
        """Count entities matching the predicate."""
        with self._lock:
            if predicate is None:
                return len(self._entities)
            return sum(1 for e in self._entities.values() if predicate(e))

    def __contains__(self, entity_id: str) -> bool:
        return entity_id in self._entities

    def __iter__(self) -> Iterator[T]:
        return iter(self.find_all())

    def __len__(self) -> int:
        return self.count()


class ProfessorRepository(InMemoryRepository[Professor]):
    """Repository for Professor entities."""

    def __init__(self):
        super().__init__("professor")


class StudentRepository(InMemoryRepository[Student]):
    """Repository for Student entities."""

    def __init__(self):
        super().__init__("student")


class CourseRepository(InMemoryRepository[Course]):
    """Repository for Course entities."""

    def __init__(self):
        super().__init__("course")

    def find_by_professor(self, professor_id: str) -> List[Course]:
        return self.find_all(lambda c: c.professor_id == professor_id)


class LectureRepository(InMemoryRepository[Lecture]):
    """Repository for Lecture entities."""

    def __init__(self):
        super().__init__("lecture")


class FeedbackRepository(InMemoryRepository[Feedback]):
    """Repository for Feedback entities."""

    def __init__(self):
        super().__init__("feedback")


class AssessmentRepository(InMemoryRepository[Assessment]):
    """Repository for Assessment entities."""

    def __init__(self):
        super().__init__("assessment")


class GradeRepository(InMemoryRepository[Grade]):
    """Repository for Grade entities."""

    def __init__(self):
        super().__init__("grade")


class NotificationRepository(InMemoryRepository[Notification]):
    """Repository for Notification entities."""

    def __init__(self):
        super().__init__("notification")

    def find_by_user(self, user_id: str) -> List[Notification]:
        return self.find_all(lambda n: n.user_id == user_id)
