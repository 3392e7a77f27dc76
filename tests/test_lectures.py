# /tests/test_lectures.py

import pytest

from lis.core.enums import LectureStatus


def test_new_lecture_is_scheduled(platform, course):
    lecture = platform.lectures.create_lecture(
        course.id, "Intro", "2026-09-01T09:00:00Z", 60, ["a", "b", "a"]).unwrap()

    assert lecture.status == LectureStatus.SCHEDULED
    assert lecture.topics == ["a", "b"]
    assert platform.lectures.get_lecture(lecture.id) is lecture


def test_create_lecture_unknown_course(platform):
    result = platform.lectures.create_lecture("ghost", "Intro", "2026-09-01", 60)
    assert result.is_not_found


@pytest.mark.parametrize("bad_date", ["yesterday", "2026-13-45"])
def test_create_lecture_bad_date(platform, course, bad_date):
    result = platform.lectures.create_lecture(course.id, "Intro", bad_date, 60)
    assert result.error_code == "INVALID_INPUT"


def test_scheduled_to_completed_directly(platform, make_lecture):
    lecture = make_lecture()

    result = platform.lectures.transition_lecture(lecture.id, "completed")

    assert result.success
    assert lecture.is_completed
    assert lecture.completed_at is not None


def test_full_lifecycle(platform, make_lecture):
    lecture = make_lecture()

    assert platform.lectures.start_lecture(lecture.id).success
    assert lecture.status == LectureStatus.LIVE
    assert platform.lectures.end_lecture(lecture.id).success
    assert lecture.status == LectureStatus.COMPLETED


@pytest.mark.parametrize("start, target", [
    (LectureStatus.COMPLETED, "live"),
    (LectureStatus.COMPLETED, "scheduled"),
    (LectureStatus.LIVE, "scheduled"),
    (LectureStatus.LIVE, "live"),
    (LectureStatus.SCHEDULED, "scheduled"),
])
def test_illegal_transitions(platform, make_lecture, start, target):
    lecture = make_lecture()
    if start != LectureStatus.SCHEDULED:
        platform.lectures.transition_lecture(lecture.id, start).unwrap()

    result = platform.lectures.transition_lecture(lecture.id, target)

    assert result.error_code == "ILLEGAL_TRANSITION"
    assert result.is_conflict
    assert lecture.status == start


def test_unknown_status_is_illegal(platform, make_lecture):
    lecture = make_lecture()
    assert platform.lectures.transition_lecture(lecture.id, "cancelled").error_code == "ILLEGAL_TRANSITION"


def test_transition_unknown_lecture(platform):
    assert platform.lectures.transition_lecture("ghost", "live").is_not_found


def test_student_lectures_sorted_by_date(platform, course, enrolled_student_id):
    late = platform.lectures.create_lecture(course.id, "Late", "2026-10-10T09:00:00", 60).unwrap()
    early = platform.lectures.create_lecture(course.id, "Early", "2026-09-10T09:00:00", 60).unwrap()
    platform.lectures.end_lecture(early.id).unwrap()

    lectures = platform.lectures.get_student_lectures(enrolled_student_id)

    assert [l.id for l in lectures] == [early.id, late.id]
    assert platform.lectures.get_student_lectures("ghost") == []


def test_student_lectures_excludes_other_courses(platform, professor_id, course, enrolled_student_id):
    other = platform.catalog.create_course(professor_id, "Other", "CS999", "Fall", "CS", 3).unwrap()
    platform.lectures.create_lecture(other.id, "Elsewhere", "2026-09-01", 60).unwrap()

    assert platform.lectures.get_student_lectures(enrolled_student_id) == []
