"""Persistence of optimization records."""

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.engine import Engine

from ..database import create_all, get_connection, prompt_optimizations_table
from ..exceptions import NotFoundError
from .types import (
    HistoryStats,
    MediaType,
    Optimization,
    OptimizationStatus,
    OptimizationType,
)

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Optimization not found."

_table = prompt_optimizations_table

# Model field -> column, for fields whose names differ
_COLUMN_NAMES = {"metadata": "metadata_json"}


class OptimizationStore(Protocol):
    """Storage operations the pipeline depends on."""

    def create(self, optimization: Optimization) -> Optimization:
        ...

    def get(self, optimization_id: str, user_id: str) -> Optional[Optimization]:
        ...

    def find_latest(
        self,
        user_id: str,
        original_prompt: str,
        target_model: str,
        media_type: MediaType,
        optimization_type: OptimizationType,
        status: OptimizationStatus,
    ) -> Optional[Optimization]:
        ...

    def update_if_status(
        self, optimization: Optimization, expected_status: OptimizationStatus
    ) -> bool:
        """Write the record only if its stored status is still ``expected_status``."""
        ...

    def save(self, optimization: Optimization) -> Optimization:
        ...

    def list_completed(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 20,
        target_model: Optional[str] = None,
        optimization_type: Optional[OptimizationType] = None,
    ) -> tuple[list[Optimization], int, HistoryStats]:
        ...

    def delete(self, optimization_id: str, user_id: str) -> bool:
        ...


def _to_row(optimization: Optimization) -> dict[str, Any]:
    data = optimization.model_dump(mode="json", exclude={"created_at", "updated_at"})
    row = {_COLUMN_NAMES.get(key, key): value for key, value in data.items()}
    row["created_at"] = optimization.created_at
    row["updated_at"] = optimization.updated_at
    return row


def _from_row(row: Any) -> Optimization:
    data = dict(row._mapping)
    data["metadata"] = data.pop("metadata_json")
    for key, empty in (("questions", []), ("user_answers", {}), ("parsed_details", {})):
        if data.get(key) is None:
            data[key] = empty
    for key in ("created_at", "updated_at"):
        # SQLite drops tzinfo on the way back
        if data[key] is not None and data[key].tzinfo is None:
            data[key] = data[key].replace(tzinfo=timezone.utc)
    return Optimization.model_validate(data)


class SqlOptimizationStore:
    """OptimizationStore backed by SQLAlchemy Core."""

    def __init__(self, engine: Engine):
        """
        Initialize the store.

        Args:
            engine: SQLAlchemy engine
        """
        self.engine = engine

    def create_all(self) -> None:
        create_all(self.engine)

    def create(self, optimization: Optimization) -> Optimization:
        with get_connection(self.engine) as conn:
            conn.execute(insert(_table).values(**_to_row(optimization)))
        logger.debug(f"Created optimization {optimization.id} ({optimization.status})")
        return optimization

    def get(self, optimization_id: str, user_id: str) -> Optional[Optimization]:
        with get_connection(self.engine) as conn:
            row = conn.execute(
                select(_table).where(
                    _table.c.id == optimization_id,
                    _table.c.user_id == user_id,
                )
            ).fetchone()
        return _from_row(row) if row else None

    def find_latest(
        self,
        user_id: str,
        original_prompt: str,
        target_model: str,
        media_type: MediaType,
        optimization_type: OptimizationType,
        status: OptimizationStatus,
    ) -> Optional[Optimization]:
        stmt = (
            select(_table)
            .where(
                _table.c.user_id == user_id,
                _table.c.original_prompt == original_prompt,
                _table.c.target_model == target_model,
                _table.c.media_type == media_type,
                _table.c.optimization_type == optimization_type,
                _table.c.status == status,
            )
            .order_by(_table.c.created_at.desc())
            .limit(1)
        )
        with get_connection(self.engine) as conn:
            row = conn.execute(stmt).fetchone()
        return _from_row(row) if row else None

    def update_if_status(
        self, optimization: Optimization, expected_status: OptimizationStatus
    ) -> bool:
        optimization.updated_at = datetime.now(timezone.utc)
        values = _to_row(optimization)
        values.pop("id")
        values.pop("created_at")

        stmt = (
            update(_table)
            .where(
                _table.c.id == optimization.id,
                _table.c.user_id == optimization.user_id,
                _table.c.status == expected_status,
            )
            .values(**values)
        )
        with get_connection(self.engine) as conn:
            result = conn.execute(stmt)
        return result.rowcount == 1

    def save(self, optimization: Optimization) -> Optimization:
        optimization.updated_at = datetime.now(timezone.utc)
        values = _to_row(optimization)
        values.pop("id")
        values.pop("created_at")

        stmt = (
            update(_table)
            .where(
                _table.c.id == optimization.id,
                _table.c.user_id == optimization.user_id,
            )
            .values(**values)
        )
        with get_connection(self.engine) as conn:
            result = conn.execute(stmt)
        if result.rowcount == 0:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        return optimization

    def list_completed(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 20,
        target_model: Optional[str] = None,
        optimization_type: Optional[OptimizationType] = None,
    ) -> tuple[list[Optimization], int, HistoryStats]:
        """
        Page through a user's completed optimizations, newest first.

        Args:
            user_id: Owner of the records
            page: 1-based page number
            limit: Page size
            target_model: Case-insensitive substring filter on the model
            optimization_type: Restrict to quick or premium

        Returns:
            (page of records, total matching, stats over every match)
        """
        conditions = [_table.c.user_id == user_id, _table.c.status == "completed"]
        if target_model:
            conditions.append(
                func.lower(_table.c.target_model).contains(target_model.lower(), autoescape=True)
            )
        if optimization_type:
            conditions.append(_table.c.optimization_type == optimization_type)

        page_stmt = (
            select(_table)
            .where(*conditions)
            .order_by(_table.c.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        stats_stmt = select(_table.c.optimization_type, _table.c.quality_score).where(*conditions)

        with get_connection(self.engine) as conn:
            rows = conn.execute(page_stmt).fetchall()
            stats_rows = conn.execute(stats_stmt).fetchall()

        return [_from_row(row) for row in rows], len(stats_rows), _history_stats(stats_rows)

    def delete(self, optimization_id: str, user_id: str) -> bool:
        with get_connection(self.engine) as conn:
            result = conn.execute(
                delete(_table).where(
                    _table.c.id == optimization_id,
                    _table.c.user_id == user_id,
                )
            )
        return result.rowcount > 0


def _history_stats(rows: list[Any]) -> HistoryStats:
    if not rows:
        return HistoryStats()

    deltas = []
    for row in rows:
        score = row.quality_score or {}
        if score.get("after") is not None and score.get("before") is not None:
            deltas.append(score["after"] - score["before"])

    average = sum(deltas) / len(deltas) if deltas else 0.0
    return HistoryStats(
        avg_quality_improvement=round(average, 2),
        total_optimizations=len(rows),
        quick_count=sum(1 for row in rows if row.optimization_type == "quick"),
        premium_count=sum(1 for row in rows if row.optimization_type == "premium"),
    )
