"""Utilities for Dramatiq tasks."""

from jobs.utils.database import (
    create_task_engine,
    create_task_session_maker,
    task_session,
)

__all__ = [
    "create_task_engine",
    "create_task_session_maker",
    "task_session",
]
