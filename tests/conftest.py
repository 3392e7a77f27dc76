# /tests/conftest.py

import itertools
from datetime import datetime, timedelta, timezone

import pytest

from lis.main import LISPlatform


class SequentialCodes:
    """Deterministic enrollment codes: C00001, C00002, ..."""

    def __init__(self, queue=None):
        self._queue = list(queue or [])
        self._counter = itertools.count(1)
        self.calls = 0

    def __call__(self, length):
        self.calls += 1
        if self._queue:
            return self._queue.pop(0)
        return f"C{next(self._counter):0{length - 1}d}"


@pytest.fixture
def code_factory():
    return SequentialCodes


@pytest.fixture
def codes():
    return SequentialCodes()


@pytest.fixture
def platform(codes):
    """A fresh platform with default config for EACH test function."""
    return LISPlatform({}, code_generator=codes)


@pytest.fixture
def professor_id(platform):
    return platform.identity.register_professor("Grace Hopper", "grace@uni.edu", "CS").unwrap()


@pytest.fixture
def course(platform, professor_id):
    return platform.catalog.create_course(professor_id, "Compilers", "CS401", "Fall", "CS", 3).unwrap()


@pytest.fixture
def student_id(platform):
    return platform.identity.register_student("Alan Turing", "alan@uni.edu", "R001", "CS").unwrap()


@pytest.fixture
def enrolled_student_id(platform, course, student_id):
    platform.catalog.enroll_by_code(student_id, course.enrollment_code).unwrap()
    return student_id


@pytest.fixture
def make_lecture(platform, course):
    """Create lectures one day apart, optionally completing them."""
    base = datetime(2026, 9, 1, 9, 0, tzinfo=timezone.utc)
    counter = itertools.count()

    def _make(completed=False, topics=("parsing", "lexing"), course_id=None):
        index = next(counter)
        lecture = platform.lectures.create_lecture(
            course_id or course.id, f"Lecture {index + 1}", base + timedelta(days=index), 50, list(topics)
        ).unwrap()
        if completed:
            platform.lectures.end_lecture(lecture.id).unwrap()
        return lecture

    return _make
