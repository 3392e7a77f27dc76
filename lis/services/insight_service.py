"""
Course insights: confusing topics, revision plan, sentiment, silent students
and short teaching notes.

An optional remote analyzer (an OpenAI-compatible chat completions endpoint)
may produce the insights; whenever it is missing or fails, the same shape is
computed locally from the feedback snapshot.
"""

import asyncio
import json
import logging
from collections import Counter
from typing import Any, Dict, List, Optional

import requests
from pydantic import BaseModel, Field

from ..core.entities import Student
from ..core.enums import InsightPriority, LectureStatus, UnderstandingLevel
from ..core.exceptions import InsightAnalysisError
from ..core.interfaces import InsightAnalyzer
from ..persistence.store import EducationStore
from .feedback_service import FeedbackService

logger = logging.getLogger(__name__)

MAX_CONFUSING_TOPICS = 5
MAX_REVISION_ITEMS = 3


class ConfusingTopic(BaseModel):
    topic: str
    mentions: int = Field(..., ge=0)
    percentage: float = Field(..., ge=0, le=100)
    priority: InsightPriority


class RevisionItem(BaseModel):
    topic: str
    priority: InsightPriority
    suggestion: str


class SentimentBreakdown(BaseModel):
    fully: int = 0
    partial: int = 0
    confused: int = 0


class SilentStudent(BaseModel):
    name: str
    email: str
    feedback_count: int = Field(0, ge=0)
    last_feedback: Optional[str] = None


class CourseOverview(BaseModel):
    total_lectures: int = Field(0, ge=0)
    completed_lectures: int = Field(0, ge=0)
    enrolled_students: int = Field(0, ge=0)


class CourseInsights(BaseModel):
    """Insights for one course, whichever analyzer produced them."""
    course_id: str
    course_overview: CourseOverview = Field(default_factory=CourseOverview)
    total_feedback: int = Field(..., ge=0)
    average_understanding: float = Field(..., ge=0, le=100)
    confusing_topics: List[ConfusingTopic] = Field(default_factory=list)
    revision_plan: List[RevisionItem] = Field(default_factory=list)
    sentiment: SentimentBreakdown = Field(default_factory=SentimentBreakdown)
    silent_students: List[SilentStudent] = Field(default_factory=list)
    teaching_insights: List[str] = Field(default_factory=list)
    source: str = "local"


def _priority_for(share: float) -> InsightPriority:
    if share > 0.5:
        return InsightPriority.HIGH
    if share > 0.2:
        return InsightPriority.MEDIUM
    return InsightPriority.LOW


def _course_overview(snapshot: Dict[str, Any]) -> CourseOverview:
    lectures = snapshot.get('lectures', [])
    return CourseOverview(
        total_lectures=len(lectures),
        completed_lectures=sum(1 for lecture in lectures if lecture['status'] == LectureStatus.COMPLETED.value),
        enrolled_students=snapshot.get('enrolled_students', 0),
    )


def _teaching_insights(total: int, average: float, confusing: List[ConfusingTopic],
                       silent: List[SilentStudent]) -> List[str]:
    if not total:
        return ["No feedback yet: ask students to rate their completed lectures"]
    if average > 80:
        label = "excellent"
    elif average > 60:
        label = "good"
    else:
        label = "needs improvement"
    notes = [f"Understanding is {label} ({average}% across {total} responses)"]
    if confusing:
        top = confusing[0]
        notes.append(f"{top.topic} needs more examples ({top.mentions} of {total} responses found it difficult)")
    if silent:
        notes.append(f"{len(silent)} enrolled student(s) have gone silent; consider a nudge")
    return notes


def compute_local_insights(snapshot: Dict[str, Any]) -> CourseInsights:
    """Deterministic insights from a course snapshot (see ``InsightService.take_snapshot``)."""
    feedback = snapshot.get('feedback', [])
    total = len(feedback)

    sentiment = Counter(item['understanding_level'] for item in feedback)
    fully = sentiment.get(UnderstandingLevel.FULLY.value, 0)
    partial = sentiment.get(UnderstandingLevel.PARTIAL.value, 0)
    confused = sentiment.get(UnderstandingLevel.CONFUSED.value, 0)
    average = (fully * 1.0 + partial * 0.5) / total * 100.0 if total else 0.0

    difficult = Counter()
    for item in feedback:
        difficult.update(item.get('difficult_topics', []))
    # Ties are broken alphabetically so repeated runs agree.
    ranked = sorted(difficult.items(), key=lambda kv: (-kv[1], kv[0]))[:MAX_CONFUSING_TOPICS]

    confusing = [ConfusingTopic(
        topic=topic,
        mentions=count,
        percentage=round(count / total * 100.0, 1),
        priority=_priority_for(count / total),
    ) for topic, count in ranked]

    overview = _course_overview(snapshot)
    silent = [SilentStudent(**entry) for entry in snapshot.get('silent_students', [])]

    revision = [RevisionItem(
        topic=item.topic,
        priority=item.priority,
        suggestion=f"Revisit {item.topic} with additional examples",
    ) for item in confusing[:MAX_REVISION_ITEMS]]

    return CourseInsights(
        course_id=snapshot['course_id'],
        course_overview=overview,
        total_feedback=total,
        average_understanding=round(average, 1),
        confusing_topics=confusing,
        revision_plan=revision,
        sentiment=SentimentBreakdown(fully=fully, partial=partial, confused=confused),
        silent_students=silent,
        teaching_insights=_teaching_insights(total, round(average, 1), confusing, silent),
        source="local",
    )


class OpenAIInsightAnalyzer(InsightAnalyzer):
    """Asks an OpenAI-compatible chat completions endpoint for insights."""

    SYSTEM_PROMPT = (
        "You analyze lecture feedback for a professor. Reply with a single JSON object "
        "with keys course_id, total_feedback, average_understanding (0-100), "
        "confusing_topics (list of {topic, mentions, percentage, priority}), "
        "revision_plan (list of {topic, priority, suggestion}), "
        "sentiment ({fully, partial, confused}) and teaching_insights (list of short strings). "
        "Priorities are HIGH, MEDIUM or LOW."
    )

    def __init__(self, api_key: str, model: str = "gpt-4o-mini",
                 base_url: str = "https://api.openai.com/v1", timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip('/')
        self._timeout = timeout
        self._session = session or requests.Session()

    def get_analyzer_name(self) -> str:
        return f"openai:{self._model}"

    def analyze(self, snapshot: Dict[str, Any]) -> Dict[str, Any]:
        payload = {
            'model': self._model,
            'temperature': 0.2,
            'messages': [
                {'role': 'system', 'content': self.SYSTEM_PROMPT},
                {'role': 'user', 'content': json.dumps(snapshot)},
            ],
        }
        try:
            response = self._session.post(
                f"{self._base_url}/chat/completions",
                json=payload,
                headers={'Authorization': f"Bearer {self._api_key}"},
                timeout=self._timeout,
            )
            response.raise_for_status()
            content = response.json()['choices'][0]['message']['content']
        except (requests.RequestException, KeyError, IndexError, ValueError) as e:
            raise InsightAnalysisError(f"Insight request failed: {e}")

        json_start, json_end = content.find('{'), content.rfind('}') + 1
        if json_start < 0 or json_end <= json_start:
            raise InsightAnalysisError("Analyzer reply contained no JSON object")
        try:
            return json.loads(content[json_start:json_end])
        except json.JSONDecodeError as e:
            raise InsightAnalysisError(f"Analyzer reply was not valid JSON: {e}")


class InsightService:
    """Produces ``CourseInsights``, preferring the configured analyzer."""

    def __init__(self, store: EducationStore, feedback: FeedbackService,
                 analyzer: Optional[InsightAnalyzer] = None):
        self._store = store
        self._feedback = feedback
        self._analyzer = analyzer

    @property
    def analyzer(self) -> Optional[InsightAnalyzer]:
        return self._analyzer

    def take_snapshot(self, course_id: str) -> Optional[Dict[str, Any]]:
        """Plain-data copy of a course's lectures and feedback."""
        with self._store.lock:
            course = self._store.courses.find_by_id(course_id)
            if course is None:
                return None
            lectures = self._store.course_lectures(course_id)
            feedback = self._store.course_feedback(course_id)
            silent = [self._silent_entry(student, course_id)
                      for student in self._feedback.get_silent_students(course_id)]
            return {
                'course_id': course.id,
                'course_code': course.code,
                'course_name': course.name,
                'lectures': [{
                    'lecture_id': lecture.id,
                    'title': lecture.title,
                    'status': lecture.status.value,
                    'topics': list(lecture.topics),
                } for lecture in lectures],
                'feedback': [{
                    'lecture_id': item.lecture_id,
                    'understanding_level': item.understanding_level.value,
                    'topic_ratings': {r.topic: r.rating for r in item.topic_ratings},
                    'difficult_topics': item.difficult_topics,
                    'comment': item.comment,
                } for item in feedback],
                'enrolled_students': len(self._store.course_student_ids(course_id)),
                'silent_students': silent,
            }

    def _silent_entry(self, student: Student, course_id: str) -> Dict[str, Any]:
        given = [f for f in self._store.student_feedback(student.id) if f.course_id == course_id]
        last = max((f.timestamp for f in given), default=None)
        return {
            'name': student.name,
            'email': student.email,
            'feedback_count': len(given),
            'last_feedback': last.isoformat() if last is not None else None,
        }

    def analyze_course(self, course_id: str) -> Optional[CourseInsights]:
        """Insights for a course, or None when the course does not exist.

        The analyzer runs outside the store lock on a snapshot. Its failures
        are logged and answered with the local computation.
        """
        snapshot = self.take_snapshot(course_id)
        if snapshot is None:
            return None
        if self._analyzer is not None:
            try:
                raw = self._analyzer.analyze(snapshot)
                raw.setdefault('course_id', course_id)
                raw.setdefault('course_overview', _course_overview(snapshot).model_dump())
                raw.setdefault('silent_students', snapshot['silent_students'])
                raw['source'] = self._analyzer.get_analyzer_name()
                return CourseInsights.model_validate(raw)
            except Exception as e:
                logger.warning("Analyzer %s failed for course %s, using local insights: %s",
                               self._analyzer.get_analyzer_name(), course_id, e)
        return compute_local_insights(snapshot)

    async def analyze_course_async(self, course_id: str) -> Optional[CourseInsights]:
        """Same as ``analyze_course`` without blocking the event loop."""
        return await asyncio.to_thread(self.analyze_course, course_id)
