"""Repository for active time-tracking timers."""

import logging
from datetime import datetime
from typing import Optional, Set
from sqlalchemy.orm import Session

from agencyops.database.models import ActiveTimerDB

logger = logging.getLogger(__name__)


class TimerRepository:
    """Active timers, at most one per user."""

    def __init__(self, db: Session):
        self.db = db

    def list_active_timer_task_ids(self) -> Set[str]:
        """IDs of tasks someone is currently timing."""
        return {row[0] for row in self.db.query(ActiveTimerDB.task_id).all()}

    def start(self, user_id: str, task_id: str, started_at: Optional[datetime] = None) -> None:
        """Start (or switch) the user's single active timer."""
        try:
            row = self.db.query(ActiveTimerDB).filter(ActiveTimerDB.user_id == user_id).first()
            if row is None:
                row = ActiveTimerDB(user_id=user_id)
                self.db.add(row)
            row.task_id = task_id
            row.started_at = started_at or datetime.utcnow()
            self.db.commit()
            logger.debug(f"Started timer for user {user_id} on task {task_id}")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to start timer for user {user_id}: {type(e).__name__}: {str(e)}")
            raise

    def stop(self, user_id: str) -> bool:
        row = self.db.query(ActiveTimerDB).filter(ActiveTimerDB.user_id == user_id).first()
        if row is None:
            return False
        try:
            self.db.delete(row)
            self.db.commit()
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to stop timer for user {user_id}: {type(e).__name__}: {str(e)}")
            raise
