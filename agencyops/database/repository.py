"""Repository layer for task reads."""

import logging
from typing import List, Optional
from sqlalchemy import case
from sqlalchemy.orm import Session

from agencyops.engine.ports import TaskFilter
from agencyops.models.task import Task, PRIORITY_RANK
from agencyops.database.models import ProjectDB, TaskDB

logger = logging.getLogger(__name__)


class TaskRepository:
    """Repository for Task database operations."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, task: Task) -> Task:
        """Create a new task."""
        try:
            task_db = TaskDB.from_pydantic(task)
            self.db.add(task_db)
            self.db.commit()
            self.db.refresh(task_db)
            logger.debug(f"Created task {task.id}: {task.name[:50]}")
            return task_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create task {task.id}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, task_id: str) -> Optional[Task]:
        """Get task by ID."""
        task_db = self.db.query(TaskDB).filter(TaskDB.id == task_id).first()
        return task_db.to_pydantic() if task_db else None

    def find_tasks(self, task_filter: TaskFilter) -> List[Task]:
        """Translate a TaskFilter into one SQL query."""
        query = self.db.query(TaskDB)

        if task_filter.ids_in is not None:
            query = query.filter(TaskDB.id.in_(task_filter.ids_in))
        if task_filter.assignee_id is not None:
            query = query.filter(TaskDB.assignee_id == task_filter.assignee_id)
        if task_filter.require_assignee:
            query = query.filter(TaskDB.assignee_id.is_not(None))
        if task_filter.status_in is not None:
            query = query.filter(TaskDB.status.in_(task_filter.status_in))
        if task_filter.status_not_in is not None:
            query = query.filter(TaskDB.status.not_in(task_filter.status_not_in))
        if task_filter.priority_in is not None:
            query = query.filter(TaskDB.priority.in_(task_filter.priority_in))
        if task_filter.project_status_in is not None:
            query = query.join(ProjectDB, TaskDB.project_id == ProjectDB.id).filter(
                ProjectDB.status.in_(task_filter.project_status_in)
            )
        if task_filter.due_from is not None:
            query = query.filter(TaskDB.due_date >= task_filter.due_from)
        if task_filter.due_before is not None:
            query = query.filter(TaskDB.due_date < task_filter.due_before)
        if task_filter.exclude_ids:
            query = query.filter(TaskDB.id.not_in(task_filter.exclude_ids))

        if task_filter.order_by_priority:
            rank = case(PRIORITY_RANK, value=TaskDB.priority, else_=-1)
            query = query.order_by(rank.desc(), TaskDB.created_at.asc(), TaskDB.id)
        else:
            query = query.order_by(TaskDB.created_at.asc(), TaskDB.id)

        if task_filter.limit is not None:
            query = query.limit(task_filter.limit)

        return [task_db.to_pydantic() for task_db in query.all()]
