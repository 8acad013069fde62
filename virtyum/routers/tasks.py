from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from virtyum.database import get_db
from virtyum.errors import ValidationFailure
from virtyum.schemas import TaskCreate, TaskUpdate
from virtyum.services import task_service
from virtyum.validation import validate_task

router = APIRouter(prefix="/api/tasks", tags=["tasks"])

@router.get("")
async def list_tasks(db: AsyncSession = Depends(get_db)):
    return await task_service.get_tasks(db)

@router.post("", status_code=201)
async def create_task(data: TaskCreate, db: AsyncSession = Depends(get_db)):
    payload = data.model_dump(exclude_none=True)
    errors = validate_task(payload)
    if errors:
        raise ValidationFailure(errors)
    task = await task_service.create_task(db, payload)
    return {"message": "Task created successfully", "task": task}

@router.get("/{task_id}")
async def get_task(task_id: str, db: AsyncSession = Depends(get_db)):
    return await task_service.get_task(db, task_id)

@router.put("/{task_id}")
async def update_task(task_id: str, data: TaskUpdate, db: AsyncSession = Depends(get_db)):
    changes = data.model_dump(exclude_unset=True)
    errors = validate_task(changes, partial=True)
    if errors:
        raise ValidationFailure(errors, message="Validation error on update")
    task = await task_service.update_task(db, task_id, changes)
    return {"message": "Task updated successfully", "task": task}

@router.delete("/{task_id}")
async def delete_task(task_id: str, db: AsyncSession = Depends(get_db)):
    deleted = await task_service.delete_task(db, task_id)
    return {"message": "Task deleted successfully", "deletedTask": deleted}
