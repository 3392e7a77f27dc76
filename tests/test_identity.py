# /tests/test_identity.py

from lis.core.enums import ErrorKind
from lis.core.entities import Professor, Student


def test_register_professor_and_find_by_email(platform):
    result = platform.identity.register_professor("Barbara Liskov", "barbara@uni.edu", "CS")

    assert result.success
    found = platform.identity.find_by_email("barbara@uni.edu")
    assert isinstance(found, Professor)
    assert found.id == result.value
    assert found is platform.identity.get_professor(result.value)


def test_duplicate_professor_email_is_normalized(platform):
    platform.identity.register_professor("Barbara Liskov", "barbara@uni.edu", "CS").unwrap()

    second = platform.identity.register_professor("Someone Else", "  Barbara@UNI.edu ", "Math")

    assert not second.success
    assert second.error_code == "DUPLICATE_EMAIL"
    assert second.kind == ErrorKind.CONFLICT
    assert platform.store.get_statistics()['professors'] == 1


def test_same_email_allowed_across_roles(platform):
    platform.identity.register_professor("Pat Doe", "pat@uni.edu", "CS").unwrap()

    result = platform.identity.register_student("Pat Doe", "pat@uni.edu", "R9", "CS")

    assert result.success
    # Professors win the lookup when both roles share an email.
    assert isinstance(platform.identity.find_by_email("pat@uni.edu"), Professor)


def test_register_student(platform):
    student_id = platform.identity.register_student("Ada", "ADA@uni.edu", "R1", "CS").unwrap()

    student = platform.identity.get_student(student_id)
    assert isinstance(student, Student)
    assert student.email == "ada@uni.edu"
    assert student.enrolled_course_ids == []


def test_register_student_rejects_bad_email(platform):
    result = platform.identity.register_student("Ada", "not-an-email", "R1", "CS")

    assert not result.success
    assert result.kind == ErrorKind.INVALID_INPUT


def test_unknown_lookups_return_none(platform):
    assert platform.identity.find_by_email("ghost@uni.edu") is None
    assert platform.identity.get_student("missing") is None
