"""
Core interfaces and abstract base classes for the LIS core.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, TypeVar, Generic


T = TypeVar('T')


class Repository(ABC, Generic[T]):
    """Abstract base class for repositories."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Save an entity."""
        pass

    @abstractmethod
    def find_by_id(self, entity_id: str) -> Optional[T]:
        """Find entity by ID."""
        pass

    @abstractmethod
    def find_all(self, predicate: Optional[Callable[[T], bool]] = None) -> List[T]:
        """Find all entities, optionally filtered by a predicate."""
        pass

    @abstractmethod
    def delete(self, entity_id: str) -> bool:
        """Delete an entity by ID."""
        pass


class EventHandler(ABC):
    """Abstract base class for event handlers."""

    @abstractmethod
    def handle_event(self, event: 'Event') -> None:
        """Handle an event."""
        pass

    @abstractmethod
    def can_handle(self, event_type: str) -> bool:
        """Check if this handler can handle the event type."""
        pass


class InsightAnalyzer(ABC):
    """Pluggable analysis collaborator that turns a course snapshot into insights.

    Implementations receive plain dictionaries only (never live entities) and
    may raise on any failure; the caller falls back to the local computation.
    """

    @abstractmethod
    def analyze(self, snapshot: Dict[str, Any]) -> Dict[str, Any]:
        """Return a raw insight mapping for the snapshot."""
        pass

    @abstractmethod
    def get_analyzer_name(self) -> str:
        """Get the name of this analyzer."""
        pass
