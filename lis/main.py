"""
Main entry point for the LIS platform.
"""

import logging
import threading
import time
from datetime import timedelta
from typing import Callable, Optional

from .config import load_config
from .core.entities import utcnow
from .core.interfaces import InsightAnalyzer
from .persistence import EducationStore
from .services import (
    CatalogService, EventService, FeedbackService, GradebookService, IdentityService,
    InsightService, LectureService, NotificationService, OpenAIInsightAnalyzer, QueryService,
    RosterImportService, generate_enrollment_code
)
from .api.rest_api import LISRestAPI


class LISPlatform:
    """Main platform class that wires the store, the services and the REST adapter."""

    def __init__(self, config: Optional[dict] = None,
                 code_generator: Callable[[int], str] = generate_enrollment_code,
                 analyzer: Optional[InsightAnalyzer] = None, verbose: bool = False):
        self._config = load_config(overrides=config, environ={}) if config is not None else load_config()
        self._code_generator = code_generator
        self._analyzer = analyzer
        self._verbose = verbose
        self._rest_thread = None
        self._running = False

        self._initialize_platform()

    def _announce(self, message: str) -> None:
        if self._verbose:
            print(message)

    def _initialize_platform(self):
        """Initialize the platform with all services."""
        self._announce("Initializing LIS platform...")

        self.store = EducationStore()
        self._announce("✓ Education store initialized")

        self.event_service = EventService()
        self.identity = IdentityService(self.store)
        self.catalog = CatalogService(
            self.store,
            self.event_service,
            code_length=self._config['enrollment_code_length'],
            code_generator=self._code_generator,
        )
        self.lectures = LectureService(self.store, self.event_service)
        self.feedback = FeedbackService(
            self.store,
            self.event_service,
            silent_feedback_ratio=self._config['silent_feedback_ratio'],
        )
        self.gradebook = GradebookService(self.store, self.event_service)
        self.notifications = NotificationService(self.store)
        self.event_service.add_event_handler(self.notifications)
        self.query = QueryService(
            self.store,
            self.catalog,
            self.lectures,
            self.feedback,
            self.gradebook,
            self.notifications,
            at_risk_grade_pct=self._config['at_risk_grade_pct'],
            ai_min_data_points=self._config['ai_min_data_points'],
        )
        self.roster = RosterImportService(self.store, self.identity)
        self.insights = InsightService(self.store, self.feedback, self._analyzer or self._build_analyzer())
        self._announce("✓ Services initialized")

        self.rest_api = LISRestAPI(
            self.store,
            self.event_service,
            self.identity,
            self.catalog,
            self.lectures,
            self.feedback,
            self.gradebook,
            self.query,
            self.roster,
            self.insights,
            self.notifications,
        )
        self._announce("✓ REST API initialized")
        self._announce("✓ LIS platform initialized successfully!")

    def _build_analyzer(self) -> Optional[InsightAnalyzer]:
        api_key = self._config.get('openai_api_key')
        if not api_key:
            return None
        return OpenAIInsightAnalyzer(
            api_key=api_key,
            model=self._config['openai_model'],
            base_url=self._config['openai_base_url'],
            timeout=self._config['openai_timeout'],
        )

    @property
    def config(self) -> dict:
        return dict(self._config)

    def start_rest_server(self, host: Optional[str] = None, port: Optional[int] = None):
        """Start the REST server in a background thread."""
        import uvicorn

        host = host or self._config['rest_host']
        port = port or self._config['rest_port']

        def run_server():
            uvicorn.run(
                self.rest_api.app,
                host=host,
                port=port,
                log_level=self._config['log_level'].lower()
            )

        self._rest_thread = threading.Thread(target=run_server, daemon=True)
        self._rest_thread.start()
        self._running = True

        print(f"✓ REST server started on {host}:{port}")
        print(f"  - REST API: http://localhost:{port}")
        print(f"  - API Docs: http://localhost:{port}/docs")

    def stop_platform(self):
        """Stop the platform."""
        if not self._running:
            print("Platform not running")
            return
        # uvicorn runs in a daemon thread and exits with the process.
        self._running = False
        print("✓ LIS platform stopped")

    def create_sample_data(self) -> dict:
        """Create a professor, a course with two lectures, and three enrolled students."""
        print("Creating sample data...")

        professor_id = self.identity.register_professor(
            "Dr. Ada Lovelace", "ada@university.edu", "Computer Science").unwrap()
        course = self.catalog.create_course(
            professor_id, "Data Structures", "CS201", "Fall 2026", "Computer Science", 3).unwrap()
        print(f"✓ Course {course.code} created with enrollment code {course.enrollment_code}")

        student_ids = []
        for name, email, roll in [
            ("Alice Johnson", "alice@university.edu", "CS-001"),
            ("Bob Smith", "bob@university.edu", "CS-002"),
            ("Carol Davis", "carol@university.edu", "CS-003"),
        ]:
            student_id = self.identity.register_student(name, email, roll, "Computer Science").unwrap()
            self.catalog.enroll_by_code(student_id, course.enrollment_code.lower())
            student_ids.append(student_id)
        print(f"✓ {len(student_ids)} students enrolled")

        now = utcnow()
        first = self.lectures.create_lecture(
            course.id, "Linked Lists", now - timedelta(days=7), 60, ["pointers", "traversal"]).unwrap()
        second = self.lectures.create_lecture(
            course.id, "Hash Tables", now + timedelta(days=2), 60, ["hashing", "collisions"]).unwrap()
        self.lectures.start_lecture(first.id)
        self.lectures.end_lecture(first.id)
        print("✓ Lectures created")

        return {
            'professor_id': professor_id,
            'course_id': course.id,
            'student_ids': student_ids,
            'lecture_ids': [first.id, second.id],
        }

    def run_demo(self):
        """Run a demonstration of the platform."""
        print("Running LIS platform demonstration...")
        sample = self.create_sample_data()
        alice, bob, _ = sample['student_ids']
        lecture_id = sample['lecture_ids'][0]
        course_id = sample['course_id']

        print("\n=== Feedback Demo ===")
        result = self.feedback.record_feedback(
            alice, lecture_id, "partial", [{'topic': 'pointers', 'rating': 2}], "Pointers were fast")
        print(f"Alice feedback: {result.success}")
        result = self.feedback.record_feedback(alice, lecture_id, "fully")
        print(f"Alice again: {result.error_code}")
        silent = self.feedback.get_silent_students(course_id)
        print(f"Silent students: {[s.name for s in silent]}")

        print("\n=== Gradebook Demo ===")
        quiz = self.gradebook.create_assessment(course_id, "Quiz 1", "quiz", 100, 40).unwrap()
        midterm = self.gradebook.create_assessment(course_id, "Midterm", "midterm", 50, 60).unwrap()
        self.gradebook.record_grade(quiz.id, bob, 80)
        self.gradebook.record_grade(midterm.id, bob, 40)
        self.gradebook.publish_grades(quiz.id)
        self.gradebook.publish_grades(midterm.id)
        grade_pct = self.gradebook.get_course_grade(bob, course_id)
        print(f"Bob course grade: {grade_pct:.1f}% ({self.gradebook.get_course_letter(bob, course_id)})")
        print(f"Bob GPA: {self.gradebook.calculate_student_gpa(bob)}")

        print("\n=== Platform Statistics ===")
        print(f"Store: {self.store.get_statistics()}")
        print(f"Events: {self.event_service.get_processing_statistics()}")
        print(f"Course health: {self.query.get_course_health(course_id)}")

        print("\n✓ Demo completed")


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="LIS Lecture Intelligence Platform")
    parser.add_argument("--rest-port", type=int, default=None, help="REST server port")
    parser.add_argument("--demo", action="store_true", help="Run demo mode")
    parser.add_argument("--config", type=str, help="Configuration file path")

    args = parser.parse_args()

    config = load_config(args.config)
    logging.basicConfig(
        level=getattr(logging, str(config['log_level']).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    platform = LISPlatform(config, verbose=True)

    try:
        if args.demo:
            platform.run_demo()
        else:
            platform.start_rest_server(port=args.rest_port)

            print("\nPlatform is running. Press Ctrl+C to stop.")
            while True:
                time.sleep(1)

    except KeyboardInterrupt:
        print("\nShutting down...")
        platform.stop_platform()


if __name__ == "__main__":
    main()
