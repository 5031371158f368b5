"""
SQLite database configuration and ORM models.

This module defines the SQLAlchemy ORM models and database initialization.
"""

from functools import lru_cache
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from workplan.core.config import get_settings
from workplan.utils.time_utils import now_utc


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


# ===========================================
# ORM Models
# ===========================================


class WorkCalendarORM(Base):
    """Per-user weekly capacity."""

    __tablename__ = "work_calendars"

    user_id = Column(String(255), primary_key=True)
    # [{capacity_hours, start}] x 7, Monday first
    work_days = Column(JSON, nullable=False)
    hobby_days = Column(JSON, nullable=False)
    lunch_start = Column(String(5), nullable=False, default="12:00")
    lunch_duration_minutes = Column(Integer, nullable=False, default=60)
    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)


class ProjectORM(Base):
    """Project ORM model."""

    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(255), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    mode = Column(String(10), nullable=False, default="work")
    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)


class TaskORM(Base):
    """Task ORM model."""

    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(255), nullable=False, index=True)
    project_id = Column(String(36), nullable=True, index=True)
    title = Column(String(500), nullable=False)
    parent_id = Column(String(36), nullable=True, index=True)
    depends_on_id = Column(String(36), nullable=True, index=True)
    assigned_to = Column(String(255), nullable=True, index=True)
    mode = Column(String(10), nullable=False, default="work")
    planned_start_date = Column(Date, nullable=True)
    planned_end_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)


class AllocationORM(Base):
    """One contiguous block of a user's calendar reserved for a task."""

    __tablename__ = "allocations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    task_id = Column(String(36), nullable=False, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    allocation_date = Column(Date, nullable=False, index=True)
    hours = Column(Float, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    is_manual = Column(Boolean, default=False)
    mode = Column(String(10), nullable=False, default="work")
    created_at = Column(DateTime, default=now_utc)


class ChildAllocationORM(Base):
    """Subdivision of a parent task's allocation."""

    __tablename__ = "child_allocations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    parent_task_id = Column(String(36), nullable=False, index=True)
    child_task_id = Column(String(36), nullable=False, index=True)
    allocation_date = Column(Date, nullable=False, index=True)
    hours = Column(Float, nullable=False)
    level = Column(Integer, nullable=False, default=1)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    created_at = Column(DateTime, default=now_utc)


class RecurringCommitmentORM(Base):
    """Recurring commitment definition."""

    __tablename__ = "recurring_commitments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(255), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    recurrence_type = Column(String(20), nullable=False)
    recurrence_interval = Column(Integer, nullable=True)
    days_of_week = Column(String(20), nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)


class RecurringBlockORM(Base):
    """Generated occurrence of a recurring commitment."""

    __tablename__ = "recurring_blocks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    commitment_id = Column(String(36), nullable=False, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    block_date = Column(Date, nullable=False, index=True)
    start_minutes = Column(Integer, nullable=False)
    end_minutes = Column(Integer, nullable=False)
    hours = Column(Float, nullable=False)


class NotificationORM(Base):
    """Notification ORM model."""

    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(255), nullable=False, index=True)
    type = Column(String(50), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(String(500), nullable=False)
    task_id = Column(String(36), nullable=True)
    project_id = Column(String(36), nullable=True)
    is_read = Column(Boolean, default=False, index=True)
    created_at = Column(DateTime, default=now_utc, index=True)


# ===========================================
# Database Session Management
# ===========================================


@lru_cache()
def get_engine():
    """Get async engine instance."""
    settings = get_settings()
    return create_async_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)


def get_session_factory():
    """Get async session factory."""
    engine = get_engine()
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db():
    """Initialize database tables."""
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
