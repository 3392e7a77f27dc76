# /tests/test_catalog.py

from lis.core.enums import ErrorKind, EventType
from lis.main import LISPlatform
from lis.services.catalog_service import generate_enrollment_code


def test_create_course_assigns_unique_code(platform, professor_id):
    first = platform.catalog.create_course(professor_id, "A", "CS1", "Fall", "CS", 3).unwrap()
    second = platform.catalog.create_course(professor_id, "B", "CS2", "Fall", "CS", 4).unwrap()

    assert first.enrollment_code != second.enrollment_code
    assert len(first.enrollment_code) == 6
    assert [c.id for c in platform.catalog.get_professor_courses(professor_id)] == [first.id, second.id]


def test_create_course_unknown_professor(platform):
    result = platform.catalog.create_course("nobody", "A", "CS1", "Fall", "CS", 3)

    assert result.is_not_found


def test_code_collisions_are_retried(code_factory):
    codes = code_factory(queue=["ABC123", "ABC123", "XYZ789"])
    platform = LISPlatform({}, code_generator=codes)
    prof = platform.identity.register_professor("P", "p@uni.edu", "CS").unwrap()

    first = platform.catalog.create_course(prof, "A", "CS1", "Fall", "CS", 3).unwrap()
    second = platform.catalog.create_course(prof, "B", "CS2", "Fall", "CS", 3).unwrap()

    assert first.enrollment_code == "ABC123"
    assert second.enrollment_code == "XYZ789"
    assert codes.calls == 3


def test_code_generation_gives_up():
    stuck = LISPlatform({}, code_generator=lambda length: "SAME01")
    prof = stuck.identity.register_professor("P", "p@uni.edu", "CS").unwrap()
    stuck.catalog.create_course(prof, "A", "CS1", "Fall", "CS", 3).unwrap()

    result = stuck.catalog.create_course(prof, "B", "CS2", "Fall", "CS", 3)

    assert not result.success
    assert result.error_code == "CONFIGURATION_ERROR"


def test_generated_codes_are_uppercase_alphanumeric():
    code = generate_enrollment_code()
    assert len(code) == 6
    assert code.isalnum() and code.upper() == code


def test_enroll_twice(platform, course, student_id):
    first = platform.catalog.enroll_by_code(student_id, course.enrollment_code)
    second = platform.catalog.enroll_by_code(student_id, course.enrollment_code)

    assert first.success
    assert first.value == course.id
    assert first.message == f"Enrolled in {course.code}"
    assert second.error_code == "ALREADY_ENROLLED"
    assert second.is_conflict
    assert [c.id for c in platform.catalog.get_student_courses(student_id)] == [course.id]


def test_enroll_code_is_normalized(platform, course, student_id):
    result = platform.catalog.enroll_by_code(student_id, f"  {course.enrollment_code.lower()} ")

    assert result.success
    assert [s.id for s in platform.catalog.get_course_students(course.id)] == [student_id]


def test_enroll_invalid_code(platform, course, student_id):
    result = platform.catalog.enroll_by_code(student_id, "NOPE00")

    assert result.error_code == "INVALID_CODE"
    assert result.kind == ErrorKind.INVALID_INPUT
    assert platform.catalog.get_student_courses(student_id) == []


def test_enroll_unknown_student(platform, course):
    assert platform.catalog.enroll_by_code("ghost", course.enrollment_code).is_not_found


def test_enroll_publishes_event(platform, course, student_id):
    platform.catalog.enroll_by_code(student_id, course.enrollment_code).unwrap()

    stats = platform.event_service.get_processing_statistics()
    assert stats['published'][EventType.STUDENT_ENROLLED.value] == 1


def test_student_courses_in_enrollment_order(platform, professor_id, student_id):
    first = platform.catalog.create_course(professor_id, "A", "CS1", "Fall", "CS", 3).unwrap()
    second = platform.catalog.create_course(professor_id, "B", "CS2", "Fall", "CS", 3).unwrap()

    platform.catalog.enroll_by_code(student_id, second.enrollment_code).unwrap()
    platform.catalog.enroll_by_code(student_id, first.enrollment_code).unwrap()

    assert [c.id for c in platform.catalog.get_student_courses(student_id)] == [second.id, first.id]
    assert platform.catalog.get_student_courses("ghost") == []
