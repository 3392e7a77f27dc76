# /tests/test_insights.py

import json
from unittest.mock import MagicMock

import pytest
import requests

from lis.core.enums import InsightPriority
from lis.core.interfaces import InsightAnalyzer
from lis.main import LISPlatform
from lis.services.insight_service import (
    CourseInsights, OpenAIInsightAnalyzer, SilentStudent, compute_local_insights,
)


@pytest.fixture
def rated_course(platform, course, make_lecture):
    """Four students rate one lecture; 'parsing' is hard for three of them."""
    lecture = make_lecture(completed=True)
    levels = ["fully", "partial", "confused", "confused"]
    for index, level in enumerate(levels):
        student_id = platform.identity.register_student(
            f"Student {index}", f"s{index}@uni.edu", f"R{index}", "CS").unwrap()
        platform.catalog.enroll_by_code(student_id, course.enrollment_code).unwrap()
        ratings = [{'topic': 'parsing', 'rating': 1 if index else 4}, {'topic': 'lexing', 'rating': 2 if index == 3 else 5}]
        platform.feedback.record_feedback(student_id, lecture.id, level, ratings).unwrap()
    return course


def _mock_session(content=None, error=None):
    session = MagicMock()
    if error is not None:
        session.post.side_effect = error
    else:
        response = MagicMock()
        response.json.return_value = {'choices': [{'message': {'content': content}}]}
        session.post.return_value = response
    return session


def test_local_insights(platform, rated_course):
    insights = platform.insights.analyze_course(rated_course.id)

    assert insights.source == "local"
    assert insights.total_feedback == 4
    assert insights.average_understanding == pytest.approx(37.5)
    assert [t.topic for t in insights.confusing_topics] == ["parsing", "lexing"]
    assert insights.confusing_topics[0].priority == InsightPriority.HIGH
    assert insights.confusing_topics[1].priority == InsightPriority.MEDIUM
    assert insights.sentiment.confused == 2
    assert len(insights.revision_plan) == 2


def test_local_insights_empty_course(platform, course):
    insights = platform.insights.analyze_course(course.id)

    assert insights.total_feedback == 0
    assert insights.average_understanding == 0.0
    assert insights.confusing_topics == []


def test_unknown_course_has_no_insights(platform):
    assert platform.insights.analyze_course("ghost") is None


def test_remote_analyzer_used(codes):
    reply = {
        'total_feedback': 0,
        'average_understanding': 88,
        'confusing_topics': [{'topic': 'x', 'mentions': 1, 'percentage': 10, 'priority': 'LOW'}],
        'revision_plan': [],
        'sentiment': {'fully': 0, 'partial': 0, 'confused': 0},
    }
    session = _mock_session(content="Here you go:\n" + json.dumps(reply))
    analyzer = OpenAIInsightAnalyzer(api_key="sk-test", session=session)
    platform = LISPlatform({}, code_generator=codes, analyzer=analyzer)
    prof = platform.identity.register_professor("P", "p@uni.edu", "CS").unwrap()
    course = platform.catalog.create_course(prof, "A", "CS1", "Fall", "CS", 3).unwrap()

    insights = platform.insights.analyze_course(course.id)

    assert isinstance(insights, CourseInsights)
    assert insights.source == "openai:gpt-4o-mini"
    assert insights.average_understanding == 88
    assert insights.course_id == course.id
    _, kwargs = session.post.call_args
    assert kwargs['headers']['Authorization'] == "Bearer sk-test"
    assert kwargs['json']['model'] == "gpt-4o-mini"


@pytest.mark.parametrize("session", [
    _mock_session(error=requests.ConnectionError("down")),
    _mock_session(content="no json here"),
    _mock_session(content='{"average_understanding": 250}'),
])
def test_remote_failures_fall_back(codes, session):
    analyzer = OpenAIInsightAnalyzer(api_key="sk-test", session=session)
    platform = LISPlatform({}, code_generator=codes, analyzer=analyzer)
    prof = platform.identity.register_professor("P", "p@uni.edu", "CS").unwrap()
    course = platform.catalog.create_course(prof, "A", "CS1", "Fall", "CS", 3).unwrap()

    insights = platform.insights.analyze_course(course.id)

    assert insights.source == "local"


def test_analyzer_built_from_config(codes):
    platform = LISPlatform({'openai_api_key': 'sk-config'}, code_generator=codes)
    assert isinstance(platform.insights.analyzer, OpenAIInsightAnalyzer)
    assert LISPlatform({}, code_generator=codes).insights.analyzer is None


def test_compute_local_insights_limits_topics():
    feedback = [{
        'understanding_level': 'confused',
        'difficult_topics': [f"t{i}" for i in range(8)],
    }]
    insights = compute_local_insights({'course_id': 'c1', 'feedback': feedback})

    assert len(insights.confusing_topics) == 5
    assert len(insights.revision_plan) == 3


@pytest.mark.asyncio
async def test_analyze_course_async(platform, rated_course):
    insights = await platform.insights.analyze_course_async(rated_course.id)

    assert insights.total_feedback == 4


class BrokenAnalyzer(InsightAnalyzer):
    """Stands in for a third-party analyzer that fails with its own exception type."""

    def __init__(self, error):
        self.error = error
        self.calls = 0

    def get_analyzer_name(self):
        return "broken"

    def analyze(self, snapshot):
        self.calls += 1
        raise self.error


@pytest.mark.parametrize("error", [RuntimeError("upstream 502"), KeyError("choices"), requests.Timeout("slow")])
def test_any_analyzer_error_falls_back(codes, error):
    analyzer = BrokenAnalyzer(error)
    platform = LISPlatform({}, code_generator=codes, analyzer=analyzer)
    prof = platform.identity.register_professor("P", "p@uni.edu", "CS").unwrap()
    course = platform.catalog.create_course(prof, "A", "CS1", "Fall", "CS", 3).unwrap()

    insights = platform.insights.analyze_course(course.id)

    assert analyzer.calls == 1
    assert insights.source == "local"


@pytest.mark.asyncio
async def test_async_analyzer_error_falls_back(codes):
    platform = LISPlatform({}, code_generator=codes, analyzer=BrokenAnalyzer(RuntimeError("upstream 502")))
    prof = platform.identity.register_professor("P", "p@uni.edu", "CS").unwrap()
    course = platform.catalog.create_course(prof, "A", "CS1", "Fall", "CS", 3).unwrap()

    insights = await platform.insights.analyze_course_async(course.id)

    assert insights.source == "local"


def test_local_insights_overview_and_silent_students(platform, rated_course, enrolled_student_id, make_lecture):
    make_lecture()
    insights = platform.insights.analyze_course(rated_course.id)

    assert insights.course_overview.total_lectures == 2
    assert insights.course_overview.completed_lectures == 1
    assert insights.course_overview.enrolled_students == 5
    assert insights.silent_students == [
        SilentStudent(name="Alan Turing", email="alan@uni.edu", feedback_count=0, last_feedback=None)
    ]
    assert len(insights.teaching_insights) == 3
    assert "37.5%" in insights.teaching_insights[0]
    assert insights.teaching_insights[1].startswith("parsing")


def test_silent_student_feedback_history(codes):
    platform = LISPlatform({'silent_feedback_ratio': 0.5}, code_generator=codes)
    prof = platform.identity.register_professor("P", "p@uni.edu", "CS").unwrap()
    course = platform.catalog.create_course(prof, "A", "CS1", "Fall", "CS", 3).unwrap()
    student_id = platform.identity.register_student("Ada Lovelace", "ada@uni.edu", "R9", "CS").unwrap()
    platform.catalog.enroll_by_code(student_id, course.enrollment_code).unwrap()
    lectures = [platform.lectures.create_lecture(course.id, f"L{i}", "2026-09-01T09:00:00Z", 50).unwrap()
                for i in range(2)]
    for lecture in lectures:
        platform.lectures.end_lecture(lecture.id).unwrap()
    feedback = platform.feedback.record_feedback(student_id, lectures[0].id, "fully").unwrap()

    insights = platform.insights.analyze_course(course.id)

    assert len(insights.silent_students) == 1
    silent = insights.silent_students[0]
    assert silent.feedback_count == 1
    assert silent.last_feedback == feedback.timestamp.isoformat()


def test_no_feedback_teaching_note(platform, course):
    insights = platform.insights.analyze_course(course.id)

    assert insights.silent_students == []
    assert insights.teaching_insights == ["No feedback yet: ask students to rate their completed lectures"]
