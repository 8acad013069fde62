"""
Task service: CRUD for the Task record.

Tasks share the identifier scheme and error kinds of services but carry
no business rules beyond a required title.
"""
import logging
from typing import Any, Mapping

from pydantic import ValidationError
from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from virtyum.errors import NotFound, StoreUnavailable, ValidationFailure
from virtyum.models import Task, utcnow
from virtyum.schemas import TaskDocument
from virtyum.services.service_repository import document_errors, parse_identifier

logger = logging.getLogger(__name__)


def _task_to_dict(task: Task) -> dict:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "completed": task.completed,
        "createdAt": task.created_at.isoformat() if task.created_at else None,
        "updatedAt": task.updated_at.isoformat() if task.updated_at else None,
    }


def _to_document(payload: Mapping[str, Any], message: str) -> TaskDocument:
    try:
        return TaskDocument(**payload)
    except ValidationError as exc:
        raise ValidationFailure(document_errors(exc), message=message) from exc


async def _fetch(db: AsyncSession, task_id: str, not_found_message: str) -> Task:
    canonical = parse_identifier(task_id, message="Invalid task ID")
    try:
        result = await db.execute(select(Task).where(Task.id == canonical))
    except SQLAlchemyError as exc:
        logger.exception("Task lookup failed for id=%s", canonical)
        raise StoreUnavailable("Internal server error", str(exc)) from exc
    task = result.scalar_one_or_none()
    if task is None:
        raise NotFound(not_found_message, task_id)
    return task


async def _flush(db: AsyncSession, action: str) -> None:
    try:
        await db.flush()
    except SQLAlchemyError as exc:
        logger.exception("Task %s failed", action)
        raise StoreUnavailable(f"Internal server error while {action} task", str(exc)) from exc


async def get_tasks(db: AsyncSession) -> list[dict]:
    """Return all tasks, newest first."""
    try:
        result = await db.execute(select(Task).order_by(desc(Task.created_at)))
    except SQLAlchemyError as exc:
        logger.exception("Listing tasks failed")
        raise StoreUnavailable("Internal server error while fetching tasks", str(exc)) from exc
    return [_task_to_dict(t) for t in result.scalars().all()]


async def create_task(db: AsyncSession, payload: Mapping[str, Any]) -> dict:
    document = _to_document(
        {k: v for k, v in payload.items() if v is not None},
        message="Validation error",
    )
    task = Task(**document.model_dump())
    db.add(task)
    await _flush(db, "creating")
    logger.info("Created task %s", task.id, extra={"task_id": task.id})
    return _task_to_dict(task)


async def get_task(db: AsyncSession, task_id: str) -> dict:
    return _task_to_dict(await _fetch(db, task_id, "Task not found"))


async def update_task(db: AsyncSession, task_id: str, changes: Mapping[str, Any]) -> dict:
    """Apply only the keys present in *changes*; ``completed=False`` is honoured."""
    task = await _fetch(db, task_id, "Task not found for update")

    merged = {"title": task.title, "description": task.description, "completed": task.completed}
    merged.update({k: v for k, v in changes.items() if k in merged})
    document = _to_document(merged, message="Validation error on update")

    for field, value in document.model_dump().items():
        setattr(task, field, value)
    task.updated_at = utcnow()
    await _flush(db, "updating")
    return _task_to_dict(task)


async def delete_task(db: AsyncSession, task_id: str) -> dict:
    task = await _fetch(db, task_id, "Task not found for deletion")
    deleted = {"id": task.id, "title": task.title}
    await db.delete(task)
    await _flush(db, "deleting")
    logger.info("Deleted task %s", deleted["id"], extra={"task_id": deleted["id"]})
    return deleted
