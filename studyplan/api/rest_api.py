"""
REST API implementation for the Studyplan platform using FastAPI.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .. import __version__
from ..core.entities import Course, CourseGrade, GPAResult, GradeCategory
from ..core.enums import DEFAULT_COURSE_COLOR
from ..core.exceptions import (
    NotFoundError, ValidationError, MalformedDataError, PersistenceError, PlannerException
)
from ..core.grading import GradeAggregator, standing_for
from ..services import GradeService

logger = logging.getLogger(__name__)


# Pydantic models for API
class CourseCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    code: str = Field(..., min_length=1, max_length=20)
    instructor: str = Field("", max_length=100)
    credits: int = Field(0, ge=0, le=20)
    color: str = Field(DEFAULT_COURSE_COLOR, pattern=r'^#[0-9A-Fa-f]{6}$')
    schedule: str = Field("", max_length=200)
    semester: str = Field("", max_length=50)
    description: str = Field("", max_length=1000)


class CourseUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    code: Optional[str] = Field(None, min_length=1, max_length=20)
    instructor: Optional[str] = Field(None, max_length=100)
    credits: Optional[int] = Field(None, ge=0, le=20)
    color: Optional[str] = Field(None, pattern=r'^#[0-9A-Fa-f]{6}$')
    schedule: Optional[str] = Field(None, max_length=200)
    semester: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=1000)


class CourseResponse(BaseModel):
    id: str
    name: str
    code: str
    instructor: str
    credits: int
    color: str
    schedule: str
    semester: str
    description: str
    created_at: datetime
    updated_at: datetime
    version: int


class AssignmentCreate(BaseModel):
    id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=200)
    max_points: float = Field(..., gt=0)
    grade: Optional[float] = Field(None, ge=0)


class AssignmentResponse(BaseModel):
    id: str
    name: str
    max_points: float
    grade: Optional[float] = None
    completed: bool


class GradeCategoryCreate(BaseModel):
    course_id: str = Field(..., min_length=1)
    category_name: str = Field(..., min_length=1, max_length=100)
    weight: float = Field(..., ge=0)
    assignments: List[AssignmentCreate] = Field(default_factory=list)


class GradeCategoryResponse(BaseModel):
    id: str
    course_id: str
    category_name: str
    weight: float
    assignments: List[AssignmentResponse] = []
    average_percentage: Optional[float] = None
    created_at: datetime
    updated_at: datetime
    version: int


class GradeUpdate(BaseModel):
    grade: float = Field(..., ge=0)


class CourseGradeResponse(BaseModel):
    course_id: str
    percentage: float
    letter: str
    has_data: bool


class GPAResponse(BaseModel):
    gpa: float
    has_data: bool
    standing: str
    courses_counted: int
    total_credits: float


class CourseSummaryEntry(BaseModel):
    course: CourseResponse
    grade: CourseGradeResponse


class GradeSummaryResponse(BaseModel):
    gpa: GPAResponse
    courses: List[CourseSummaryEntry] = []
    average_percentage: Optional[float] = None
    highest_percentage: Optional[float] = None


def _http_error(e: PlannerException) -> HTTPException:
    """Map a platform exception to the matching HTTP error."""
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=e.message)
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=e.message)
    if isinstance(e, MalformedDataError):
        logger.error("Malformed stored data: %s", e.message)
        return HTTPException(status_code=500, detail=f"Malformed stored data: {e.message}")
    if isinstance(e, PersistenceError):
        logger.error("Persistence failure: %s", e.message)
        return HTTPException(status_code=500, detail=f"Storage error: {e.message}")
    logger.error("Unhandled platform error: %s", e.message)
    return HTTPException(status_code=500, detail=f"Internal error: {e.message}")


class PlannerRestAPI:
    """REST API implementation for the Studyplan platform."""

    def __init__(self, grade_service: GradeService):
        self._grade_service = grade_service
        self._aggregator = GradeAggregator()

        self.app = FastAPI(
            title="Studyplan API",
            description="Courses, weighted grade categories, course grades and GPA",
            version=__version__,
            docs_url="/docs",
            redoc_url="/redoc"
        )

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        self._setup_routes()

    def _setup_routes(self):
        """Setup API routes."""

        @self.app.get("/", response_model=Dict[str, str])
        async def root():
            """Root endpoint."""
            return {
                "message": "Studyplan API",
                "version": __version__,
                "docs": "/docs"
            }

        @self.app.get("/health", response_model=Dict[str, str])
        async def health_check():
            """Health check endpoint."""
            return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

        # Course endpoints
        @self.app.post("/courses", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
        async def create_course(course_data: CourseCreate):
            """Create a new course."""
            try:
                course = self._grade_service.create_course(**course_data.model_dump())
                return self._course_to_response(course)
            except PlannerException as e:
                raise _http_error(e)

        @self.app.get("/courses", response_model=List[CourseResponse])
        async def list_courses(skip: int = Query(0, ge=0), limit: int = Query(100, ge=1, le=500)):
            """List all courses."""
            try:
                courses = self._grade_service.list_courses()[skip:skip + limit]
                return [self._course_to_response(course) for course in courses]
            except PlannerException as e:
                raise _http_error(e)

        @self.app.get("/courses/{course_id}", response_model=CourseResponse)
        async def get_course(course_id: str):
            """Get a course by ID."""
            try:
                return self._course_to_response(self._grade_service.get_course(course_id))
            except PlannerException as e:
                raise _http_error(e)

        @self.app.put("/courses/{course_id}", response_model=CourseResponse)
        async def update_course(course_id: str, course_data: CourseUpdate):
            """Edit a course; omitted fields keep their values."""
            try:
                course = self._grade_service.update_course(
                    course_id, **course_data.model_dump(exclude_none=True)
                )
                return self._course_to_response(course)
            except PlannerException as e:
                raise _http_error(e)

        @self.app.delete("/courses/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
        async def delete_course(course_id: str):
            """Delete a course together with its grade categories."""
            try:
                if not self._grade_service.delete_course(course_id):
                    raise HTTPException(status_code=404, detail="Course not found")
            except PlannerException as e:
                raise _http_error(e)

        @self.app.get("/courses/{course_id}/grade", response_model=CourseGradeResponse)
        async def get_course_grade(course_id: str):
            """Current percentage and letter grade of a course."""
            try:
                return self._course_grade_to_response(self._grade_service.course_grade(course_id))
            except PlannerException as e:
                raise _http_error(e)

        # Grade category endpoints
        @self.app.post("/grade-categories", response_model=GradeCategoryResponse,
                       status_code=status.HTTP_201_CREATED)
        async def create_grade_category(category_data: GradeCategoryCreate):
            """Create a grade category for a course."""
            try:
                category = self._grade_service.create_grade_category(
                    course_id=category_data.course_id,
                    category_name=category_data.category_name,
                    weight=category_data.weight,
                    assignments=[a.model_dump() for a in category_data.assignments],
                )
                return self._category_to_response(category)
            except PlannerException as e:
                raise _http_error(e)

        @self.app.get("/grade-categories", response_model=List[GradeCategoryResponse])
        async def list_grade_categories(course_id: Optional[str] = None):
            """List grade categories, optionally for one course."""
            try:
                categories = self._grade_service.list_grade_categories(course_id)
                return [self._category_to_response(c) for c in categories]
            except PlannerException as e:
                raise _http_error(e)

        @self.app.get("/grade-categories/{category_id}", response_model=GradeCategoryResponse)
        async def get_grade_category(category_id: str):
            """Get a grade category by ID."""
            try:
                return self._category_to_response(self._grade_service.get_grade_category(category_id))
            except PlannerException as e:
                raise _http_error(e)

        @self.app.delete("/grade-categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
        async def delete_grade_category(category_id: str):
            """Delete a grade category."""
            try:
                if not self._grade_service.delete_grade_category(category_id):
                    raise HTTPException(status_code=404, detail="Grade category not found")
            except PlannerException as e:
                raise _http_error(e)

        @self.app.put("/grade-categories/{category_id}/assignments/{assignment_id}/grade",
                      response_model=GradeCategoryResponse)
        async def update_assignment_grade(category_id: str, assignment_id: str, update: GradeUpdate):
            """Record the grade of one assignment."""
            try:
                category = self._grade_service.update_assignment_grade(
                    category_id, assignment_id, update.grade
                )
                return self._category_to_response(category)
            except PlannerException as e:
                raise _http_error(e)

        # GPA endpoints
        @self.app.get("/gpa", response_model=GPAResponse)
        async def get_gpa(course_id: Optional[List[str]] = Query(None)):
            """Credit-weighted GPA, optionally restricted to some courses."""
            try:
                return self._gpa_to_response(self._grade_service.gpa_summary(course_id))
            except PlannerException as e:
                raise _http_error(e)

        @self.app.get("/grades/summary", response_model=GradeSummaryResponse)
        async def get_grade_summary():
            """GPA and per-course grades in one call."""
            try:
                summary = self._grade_service.grade_summary()
                return GradeSummaryResponse(
                    gpa=self._gpa_to_response(summary.gpa),
                    courses=[
                        CourseSummaryEntry(
                            course=self._course_to_response(entry.course),
                            grade=self._course_grade_to_response(entry.grade),
                        )
                        for entry in summary.courses
                    ],
                    average_percentage=summary.average_percentage,
                    highest_percentage=summary.highest_percentage,
                )
            except PlannerException as e:
                raise _http_error(e)

    def _course_to_response(self, course: Course) -> CourseResponse:
        """Convert Course entity to response model."""
        return CourseResponse(
            id=course.id,
            name=course.name,
            code=course.code,
            instructor=course.instructor,
            credits=course.credits,
            color=course.color,
            schedule=course.schedule,
            semester=course.semester,
            description=course.description,
            created_at=course.created_at,
            updated_at=course.updated_at,
            version=course.version
        )

    def _category_to_response(self, category: GradeCategory) -> GradeCategoryResponse:
        """Convert GradeCategory entity to response model."""
        average = self._aggregator.category_average(category)
        return GradeCategoryResponse(
            id=category.id,
            course_id=category.course_id,
            category_name=category.category_name,
            weight=category.weight,
            assignments=[
                AssignmentResponse(
                    id=a.assignment_id,
                    name=a.name,
                    max_points=a.max_points,
                    grade=a.grade,
                    completed=a.completed
                )
                for a in category.assignments
            ],
            average_percentage=None if average is None else average * 100,
            created_at=category.created_at,
            updated_at=category.updated_at,
            version=category.version
        )

    def _course_grade_to_response(self, grade: CourseGrade) -> CourseGradeResponse:
        return CourseGradeResponse(
            course_id=grade.course_id,
            percentage=grade.percentage,
            letter=grade.letter,
            has_data=grade.has_data
        )

    def _gpa_to_response(self, result: GPAResult) -> GPAResponse:
        return GPAResponse(
            gpa=result.gpa,
            has_data=result.has_data,
            standing=standing_for(result.gpa),
            courses_counted=result.courses_counted,
            total_credits=result.total_credits
        )
