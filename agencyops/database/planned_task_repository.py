"""Repository for PlannedTaskEntry database operations."""

import logging
from datetime import date
from typing import List, Optional
from sqlalchemy import case
from sqlalchemy.orm import Session

from agencyops.models.planned_task import PlannedTaskEntry
from agencyops.models.task import PRIORITY_RANK
from agencyops.database.models import PlannedTaskEntryDB, TaskDB
from agencyops.database.repository import TaskRepository

logger = logging.getLogger(__name__)
_UNSET = object()


class PlannedTaskRepository:
    """Repository for a user's daily plan entries."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, entry_id: str) -> Optional[PlannedTaskEntry]:
        """Get plan entry by ID."""
        row = self.db.query(PlannedTaskEntryDB).filter(PlannedTaskEntryDB.id == entry_id).first()
        return row.to_pydantic() if row else None

    def get_for_date(self, user_id: str, plan_date: date) -> List[PlannedTaskEntry]:
        """Entries for one user and day, in the order they were planned."""
        rows = (
            self.db.query(PlannedTaskEntryDB)
            .filter(PlannedTaskEntryDB.user_id == user_id, PlannedTaskEntryDB.date == plan_date)
            .order_by(PlannedTaskEntryDB.created_at.asc(), PlannedTaskEntryDB.id)
            .all()
        )
        return [row.to_pydantic() for row in rows]

    def list_for_date_by_priority(self, user_id: str, plan_date: date) -> List[PlannedTaskEntry]:
        """Entries for one user and day, highest task priority first."""
        rank = case(PRIORITY_RANK, value=TaskDB.priority, else_=-1)
        rows = (
            self.db.query(PlannedTaskEntryDB)
            .join(TaskDB, PlannedTaskEntryDB.task_id == TaskDB.id)
            .filter(PlannedTaskEntryDB.user_id == user_id, PlannedTaskEntryDB.date == plan_date)
            .order_by(rank.desc(), PlannedTaskEntryDB.created_at.asc(), PlannedTaskEntryDB.id)
            .all()
        )
        return [row.to_pydantic() for row in rows]

    def exists(self, user_id: str, task_id: str, plan_date: date) -> bool:
        return (
            self.db.query(PlannedTaskEntryDB.id)
            .filter(
                PlannedTaskEntryDB.user_id == user_id,
                PlannedTaskEntryDB.task_id == task_id,
                PlannedTaskEntryDB.date == plan_date,
            )
            .first()
            is not None
        )

    def create(self, entry: PlannedTaskEntry) -> PlannedTaskEntry:
        """Create a single plan entry."""
        return self.create_many([entry])[0]

    def create_many(self, entries: List[PlannedTaskEntry]) -> List[PlannedTaskEntry]:
        """Create plan entries in one transaction: all of them or none."""
        try:
            rows = [PlannedTaskEntryDB.from_pydantic(entry) for entry in entries]
            self.db.add_all(rows)
            self.db.commit()
            for row in rows:
                self.db.refresh(row)
            logger.debug(f"Created {len(rows)} plan entries")
            return [row.to_pydantic() for row in rows]
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create {len(entries)} plan entries: {type(e).__name__}: {str(e)}")
            raise

    def update(
        self,
        entry_id: str,
        *,
        completed_at=_UNSET,
        deferred_to=_UNSET,
    ) -> Optional[PlannedTaskEntry]:
        """Update completion/deferral of an entry.

        Uses an UNSET sentinel so callers can explicitly clear values by passing None.
        """
        try:
            row = self.db.query(PlannedTaskEntryDB).filter(PlannedTaskEntryDB.id == entry_id).first()
            if row is None:
                return None
            if completed_at is not _UNSET:
                row.completed_at = completed_at
            if deferred_to is not _UNSET:
                row.deferred_to = deferred_to
            self.db.commit()
            self.db.refresh(row)
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update plan entry {entry_id}: {type(e).__name__}: {str(e)}")
            raise

    def delete(self, entry_id: str) -> bool:
        """Delete a plan entry by ID."""
        row = self.db.query(PlannedTaskEntryDB).filter(PlannedTaskEntryDB.id == entry_id).first()
        if row is None:
            return False
        try:
            self.db.delete(row)
            self.db.commit()
            logger.debug(f"Deleted plan entry {entry_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete plan entry {entry_id}: {type(e).__name__}: {str(e)}")
            raise


class TaskStoreRepository:
    """TaskStore backed by the task and plan-entry repositories on one session."""

    def __init__(self, db: Session):
        self.tasks = TaskRepository(db)
        self.plans = PlannedTaskRepository(db)

    def find_tasks(self, task_filter):
        return self.tasks.find_tasks(task_filter)

    def find_planned_entries(self, user_id: str, plan_date: date) -> List[PlannedTaskEntry]:
        return self.plans.get_for_date(user_id, plan_date)

    def create_planned_entries(self, entries: List[PlannedTaskEntry]) -> List[PlannedTaskEntry]:
        return self.plans.create_many(entries)
