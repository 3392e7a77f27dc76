"""
Value-level operation results.

Public service operations never throw domain errors at their callers; they
return an ``OperationResult`` describing either the produced value or the
failure, so the presentation layer can render inline messages.
"""

import functools
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Optional, TypeVar

from .enums import ErrorKind
from .exceptions import LISException

T = TypeVar('T')


@dataclass
class OperationResult(Generic[T]):
    """Result of a core operation."""
    success: bool
    value: Optional[T] = None
    error_code: Optional[str] = None
    kind: Optional[ErrorKind] = None
    message: str = ""
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def ok(cls, value: Optional[T] = None, message: str = "", warnings: Optional[List[str]] = None) -> "OperationResult[T]":
        return cls(success=True, value=value, message=message, warnings=list(warnings or []))

    @classmethod
    def failure(cls, error: LISException) -> "OperationResult[T]":
        return cls(
            success=False,
            error_code=error.error_code,
            kind=error.kind,
            message=error.message,
        )

    @property
    def is_not_found(self) -> bool:
        return self.kind == ErrorKind.NOT_FOUND

    @property
    def is_conflict(self) -> bool:
        return self.kind == ErrorKind.CONFLICT

    def unwrap(self) -> T:
        """Return the value, raising if the operation failed."""
        if not self.success:
            raise ValueError(f"{self.error_code}: {self.message}")
        return self.value

    def to_dict(self) -> dict:
        return {
            'success': self.success,
            'error_code': self.error_code,
            'kind': self.kind.value if self.kind else None,
            'message': self.message,
            'warnings': list(self.warnings),
        }


def returns_result(func: Callable[..., Any]) -> Callable[..., OperationResult]:
    """Wrap a service method so domain errors become failed results.

    A method may return an ``OperationResult`` itself (e.g. to attach
    warnings); any other return value is wrapped in ``OperationResult.ok``.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> OperationResult:
        try:
            value = func(*args, **kwargs)
        except LISException as e:
            return OperationResult.failure(e)
        if isinstance(value, OperationResult):
            return value
        return OperationResult.ok(value)

    return wrapper
