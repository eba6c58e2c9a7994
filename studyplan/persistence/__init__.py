"""
Persistence module: the grade store implementations and record mapping.
"""

from .database import DatabaseManager, SQLiteDatabase, SCHEMA_VERSION
from .repositories import BaseRepository, CourseRepository, GradeCategoryRepository
from .memory import InMemoryGradeStore
from .store import DatabaseGradeStore, StoreFactory

__all__ = [
    "DatabaseManager",
    "SQLiteDatabase",
    "SCHEMA_VERSION",
    "BaseRepository",
    "CourseRepository",
    "GradeCategoryRepository",
    "InMemoryGradeStore",
    "DatabaseGradeStore",
    "StoreFactory",
]
