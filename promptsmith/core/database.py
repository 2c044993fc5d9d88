"""Database connection and schema management using SQLAlchemy Core"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Index,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
)
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool, StaticPool

from ..config import get_settings

logger = logging.getLogger(__name__)


metadata = MetaData()

# Prompt optimizations - one row per quick or premium optimization
# Nested structures (questions, scores, analysis) are stored as JSON documents
prompt_optimizations_table = Table(
    "prompt_optimizations",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", String(255), nullable=False, index=True),
    # Inputs
    Column("original_prompt", Text, nullable=False),
    Column("target_model", String(100), nullable=False),
    Column("media_type", String(10), nullable=False),
    # Mode and lifecycle
    Column("optimization_type", String(10), nullable=False),
    Column("optimization_mode", String(10), nullable=False),
    Column("status", String(20), nullable=False, index=True),
    Column("error", Text, nullable=True),
    # Output
    Column("optimized_prompt", Text, nullable=False, default=""),
    # Clarification
    Column("questions", JSON(none_as_null=True), nullable=True),
    Column("user_answers", JSON(none_as_null=True), nullable=True),
    Column("additional_details", Text, nullable=True),
    Column("parsed_details", JSON(none_as_null=True), nullable=True),
    # Scoring
    Column("quality_score", JSON(none_as_null=True), nullable=True),
    Column("metadata_json", JSON(none_as_null=True), nullable=True),
    Column("analysis", JSON(none_as_null=True), nullable=True),
    Column("feedback", JSON(none_as_null=True), nullable=True),
    # Timestamps
    Column("created_at", DateTime(timezone=True), nullable=False, index=True),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

# Lookup used by the premium build step
Index(
    "ix_prompt_optimizations_lookup",
    prompt_optimizations_table.c.user_id,
    prompt_optimizations_table.c.original_prompt,
    prompt_optimizations_table.c.target_model,
    prompt_optimizations_table.c.status,
)


def get_database_url() -> str:
    """Get database URL from settings or use a local SQLite file"""
    return get_settings().database_url or "sqlite:///./promptsmith.db"


def create_db_engine(database_url: Optional[str] = None, **kwargs: Any) -> Engine:
    """
    Create SQLAlchemy engine with connection pooling.

    Args:
        database_url: Database connection string (defaults to DATABASE_URL setting)
        **kwargs: Additional engine options

    Returns:
        SQLAlchemy Engine instance
    """
    url = database_url or get_database_url()

    engine_options: dict[str, Any] = {
        "pool_pre_ping": True,
        "echo": False,
    }
    # SQLite uses a single-file pool; sizing options only apply to server databases
    if not url.startswith("sqlite"):
        engine_options.update({"pool_recycle": 3600, "pool_size": 5, "max_overflow": 10})

    engine_options.update(kwargs)

    return create_engine(url, **engine_options)


def create_test_engine(database_url: str = "sqlite://") -> Engine:
    """
    Create engine for testing.

    In-memory SQLite shares one connection (StaticPool) so every test
    connection sees the same database; anything else uses NullPool.

    Args:
        database_url: Connection string (defaults to in-memory SQLite)

    Returns:
        SQLAlchemy Engine instance
    """
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            database_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=False,
        )
    return create_engine(database_url, poolclass=NullPool, echo=False)


def create_all(engine: Engine) -> None:
    """Create any missing tables."""
    metadata.create_all(engine)
    logger.info("Database schema ready")


@contextmanager
def get_connection(engine: Engine):
    """
    Context manager for database connections.

    Commits on success, rolls back on error.

    Usage:
        with get_connection(engine) as conn:
            result = conn.execute(...)
    """
    conn = engine.connect()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
