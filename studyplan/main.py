"""
Main entry point for the Studyplan platform.
"""

import logging
from typing import Optional

from .config import PlannerConfig, apply_overrides, load_config
from .core.exceptions import PlannerException
from .persistence import StoreFactory
from .services import ConcurrencyManager, GradeService
from .api import PlannerRestAPI

logger = logging.getLogger(__name__)


class PlannerPlatform:
    """Wires configuration, store, services and API together."""

    def __init__(self, config: Optional[PlannerConfig] = None):
        self._config = config if config is not None else PlannerConfig()
        self._store = None
        self._grade_service = None
        self._rest_api = None

        self._initialize_platform()

    @property
    def config(self) -> PlannerConfig:
        return self._config

    @property
    def grade_service(self) -> GradeService:
        return self._grade_service

    @property
    def app(self):
        """The FastAPI application."""
        return self._rest_api.app

    def _initialize_platform(self):
        """Initialize the platform with all services."""
        logger.info("Initializing Studyplan platform...")

        self._store = StoreFactory.create_store(
            self._config.store_type,
            database_path=self._config.database_path,
            strict_records=self._config.strict_records,
            seed_path=self._config.seed_path,
        )
        logger.info("Store initialized: %s", self._config.store_type.value)

        self._grade_service = GradeService(
            self._store,
            credit_policy=self._config.credit_policy,
            default_credits=self._config.default_credits,
            concurrency_manager=ConcurrencyManager(),
        )
        logger.info("Grade service initialized (credit policy: %s)", self._config.credit_policy.value)

        self._rest_api = PlannerRestAPI(self._grade_service)

        if self._config.seed_demo_data:
            self.create_sample_data()
        logger.info("Studyplan platform initialized")

    def start_rest_server(self):
        """Serve the REST API until interrupted."""
        import uvicorn

        logger.info("REST server starting on %s:%s (docs at /docs)", self._config.host, self._config.port)
        uvicorn.run(
            self._rest_api.app,
            host=self._config.host,
            port=self._config.port,
            log_level=self._config.log_level.lower()
        )

    def create_sample_data(self):
        """Create sample courses and grade categories."""
        service = self._grade_service

        algebra = service.create_course(
            name="Linear Algebra", code="MATH221", instructor="Dr. Chen",
            credits=4, color="#10B981", semester="Fall 2024"
        )
        service.create_grade_category(algebra.id, "Homework", 40, [
            {"name": "Problem Set 1", "max_points": 10, "grade": 8},
            {"name": "Problem Set 2", "max_points": 10, "grade": 9},
            {"name": "Problem Set 3", "max_points": 10},
        ])
        service.create_grade_category(algebra.id, "Exams", 60, [
            {"name": "Midterm", "max_points": 100, "grade": 85},
            {"name": "Final", "max_points": 100},
        ])

        writing = service.create_course(
            name="Academic Writing", code="ENG102", instructor="Prof. Alvarez",
            credits=3, color="#F59E0B", semester="Fall 2024"
        )
        service.create_grade_category(writing.id, "Essays", 70, [
            {"name": "Essay 1", "max_points": 50, "grade": 47},
        ])
        service.create_grade_category(writing.id, "Participation", 30, [
            {"name": "Workshop attendance", "max_points": 20},
        ])

        logger.info("Sample data created")

    def run_demo(self):
        """Run a demonstration of the platform."""
        logger.info("Running Studyplan demonstration...")
        self.create_sample_data()

        summary = self._grade_service.grade_summary()
        for entry in summary.courses:
            logger.info("%s %s: %.1f%% (%s)", entry.course.code, entry.course.name,
                        entry.grade.percentage, entry.grade.letter)
        logger.info("GPA %.2f over %d course(s): %s",
                    summary.gpa.gpa, summary.gpa.courses_counted, summary.standing)

        categories = self._grade_service.list_grade_categories()
        exams = next(c for c in categories if c.category_name == "Exams")
        final = next(a for a in exams.assignments if a.grade is None)
        self._grade_service.update_assignment_grade(exams.id, final.assignment_id, 91)
        logger.info("After grading the final: GPA %.2f", self._grade_service.calculate_gpa())


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Studyplan academic planner")
    parser.add_argument("--host", type=str, help="REST server host")
    parser.add_argument("--port", type=int, help="REST server port")
    parser.add_argument("--demo", action="store_true", help="Run demo mode")
    parser.add_argument("--config", type=str, help="Configuration file path")
    parser.add_argument("--log-level", type=str, help="Logging level")

    args = parser.parse_args()

    try:
        config = apply_overrides(load_config(args.config), host=args.host, port=args.port,
                                 log_level=args.log_level)
    except PlannerException as e:
        parser.error(e.message)

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    platform = PlannerPlatform(config)

    try:
        if args.demo:
            platform.run_demo()
        else:
            platform.start_rest_server()
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    main()
