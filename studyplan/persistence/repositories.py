"""
Repositories mapping entities onto rows of the ``entities`` table.
"""

import json
import logging
from abc import abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, TypeVar

from ..core.entities import AbstractEntity, Course, GradeCategory
from ..core.exceptions import MalformedDataError
from ..core.interfaces import Repository
from .database import DatabaseManager, Statement
from . import records

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=AbstractEntity)

_COLUMNS = "data, created_at, updated_at, version"

_UPSERT = """
    INSERT INTO entities (id, type, data, created_at, updated_at, version)
    VALUES (?, ?, ?, ?, ?, ?)
    ON CONFLICT (id, type) DO UPDATE SET
        data = excluded.data,
        updated_at = excluded.updated_at,
        version = excluded.version
"""


class BaseRepository(Repository[T], Generic[T]):
    """Stores one entity type as JSON backend records.

    Subclasses decide the record shape through ``_to_record`` and
    ``_from_record``; the row's lifecycle columns are restored onto the
    decoded entity.
    """

    entity_type: str = ""

    def __init__(self, database: DatabaseManager):
        self._database = database

    def save(self, entity: T) -> T:
        """Insert the entity or overwrite the stored row with the same id."""
        self._database.execute(_UPSERT, (
            entity.id,
            self.entity_type,
            json.dumps(self._to_record(entity)),
            entity.created_at.isoformat(),
            entity.updated_at.isoformat(),
            entity.version,
        ))
        logger.debug("Saved %s %s (version %s)", self.entity_type, entity.id, entity.version)
        return entity

    def find_by_id(self, entity_id: str) -> Optional[T]:
        rows = self._database.fetch_all(
            f"SELECT {_COLUMNS} FROM entities WHERE id = ? AND type = ?",
            (str(entity_id), self.entity_type),
        )
        return self._entity_from_row(rows[0]) if rows else None

    def find_all(self) -> List[T]:
        """All stored entities in creation order."""
        rows = self._database.fetch_all(
            f"SELECT {_COLUMNS} FROM entities WHERE type = ? ORDER BY created_at, rowid",
            (self.entity_type,),
        )
        return [self._entity_from_row(row) for row in rows]

    def delete(self, entity_id: str) -> bool:
        return self._database.execute(*self.delete_statement(entity_id)) > 0

    def delete_statement(self, entity_id: str) -> Statement:
        """The DELETE for one entity, for callers batching several deletes."""
        return "DELETE FROM entities WHERE id = ? AND type = ?", (str(entity_id), self.entity_type)

    def _entity_from_row(self, row: Dict[str, Any]) -> T:
        try:
            record = json.loads(row["data"])
        except ValueError as e:
            raise MalformedDataError(f"Stored {self.entity_type} row is not valid JSON: {e}") from e

        entity = self._from_record(record)
        entity.restore_lifecycle(
            created_at=_parse_timestamp(row["created_at"]),
            updated_at=_parse_timestamp(row["updated_at"]),
            version=row["version"],
        )
        return entity

    @abstractmethod
    def _to_record(self, entity: T) -> Dict[str, Any]:
        pass

    @abstractmethod
    def _from_record(self, record: Dict[str, Any]) -> T:
        pass


class CourseRepository(BaseRepository[Course]):
    entity_type = "course"

    def _to_record(self, entity: Course) -> Dict[str, Any]:
        return records.course_to_record(entity)

    def _from_record(self, record: Dict[str, Any]) -> Course:
        return records.course_from_record(record)


class GradeCategoryRepository(BaseRepository[GradeCategory]):
    entity_type = "grade_category"

    def __init__(self, database: DatabaseManager, strict_records: bool = False):
        super().__init__(database)
        self._strict_records = strict_records

    def _to_record(self, entity: GradeCategory) -> Dict[str, Any]:
        return records.category_to_record(entity)

    def _from_record(self, record: Dict[str, Any]) -> GradeCategory:
        return records.category_from_record(record, strict=self._strict_records)

    def find_by_course(self, course_id: str) -> List[GradeCategory]:
        return [self._entity_from_row(row) for row in self._rows_for_course(course_id)]

    def ids_for_course(self, course_id: str) -> List[str]:
        """Ids of a course's categories; the records themselves are not decoded."""
        return [row["id"] for row in self._rows_for_course(course_id)]

    def _rows_for_course(self, course_id: str) -> List[Dict[str, Any]]:
        rows = self._database.fetch_all(
            f"SELECT id, {_COLUMNS} FROM entities WHERE type = ? ORDER BY created_at, rowid",
            (self.entity_type,),
        )
        matching = []
        for row in rows:
            try:
                record = json.loads(row["data"])
            except ValueError:
                logger.warning("Skipping grade category %s: stored row is not valid JSON", row["id"])
                continue
            if isinstance(record, dict) and records.record_course_id(record) == str(course_id):
                matching.append(row)
        return matching


def _parse_timestamp(value: Optional[str]) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return datetime.now(timezone.utc)
