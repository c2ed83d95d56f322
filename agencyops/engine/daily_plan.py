"""Manual daily-plan operations: list, add, complete/defer, remove."""

import logging
import uuid
from datetime import date, datetime
from typing import List, Optional

from agencyops.engine.ports import Clock
from agencyops.errors import AuthorizationError, DuplicatePlanEntryError, InvalidInputError, NotFoundError
from agencyops.models.planned_task import PlannedTaskEntry, PlanSource
from agencyops.models.user import User

logger = logging.getLogger(__name__)

_UNCHANGED = object()


def ensure_can_access(actor: User, owner_id: str) -> None:
    """Raise AuthorizationError unless `actor` owns the data or holds an elevated role."""
    if owner_id != actor.id and not actor.is_elevated:
        raise AuthorizationError(f"User {actor.id} may not access the plan of user {owner_id}")


class DailyPlanService:
    """Reads and edits PlannedTaskEntry rows on behalf of an acting user."""

    def __init__(self, plans, tasks, clock: Clock = datetime.utcnow):
        self.plans = plans
        self.tasks = tasks
        self.clock = clock

    def list_plan(self, actor: User, user_id: str, plan_date: date) -> List[PlannedTaskEntry]:
        ensure_can_access(actor, user_id)
        return self.plans.list_for_date_by_priority(user_id, plan_date)

    def add_to_plan(
        self,
        actor: User,
        task_id: str,
        plan_date: Optional[date] = None,
        source: Optional[str] = None,
        target_user_id: Optional[str] = None,
    ) -> PlannedTaskEntry:
        """Put a task on a plan; elevated users may plan for someone else.

        Args:
            actor: User making the change
            task_id: Task to plan
            plan_date: Day to plan it for (defaults to today)
            source: PlanSource label (defaults to "manual")
            target_user_id: Whose plan (defaults to the actor)

        Returns:
            The created entry

        Raises:
            AuthorizationError: Planning for someone else without an elevated role
            NotFoundError: The task does not exist
            DuplicatePlanEntryError: The task is already planned that day
        """
        user_id = target_user_id or actor.id
        ensure_can_access(actor, user_id)
        manager_override = user_id != actor.id

        if plan_date is None:
            plan_date = self.clock().date()
        if self.tasks.get(task_id) is None:
            raise NotFoundError(f"Task {task_id} not found")
        if self.plans.exists(user_id, task_id, plan_date):
            raise DuplicatePlanEntryError(f"Task {task_id} is already planned for {plan_date.isoformat()}")

        try:
            plan_source = PlanSource(source) if source else PlanSource.MANUAL
        except ValueError:
            raise InvalidInputError(f"Unknown plan source: {source}")
        entry = PlannedTaskEntry(
            id=str(uuid.uuid4()),
            task_id=task_id,
            user_id=user_id,
            plan_date=plan_date,
            source=plan_source,
            suggested=plan_source == PlanSource.SYSTEM,
            accepted=True,
            suggested_by=actor.id if manager_override else "system",
            created_at=self.clock(),
        )
        created = self.plans.create(entry)
        if manager_override:
            logger.info(f"Manager {actor.id} added task {task_id} to {user_id}'s plan for {plan_date.isoformat()}")
        return created

    def update_entry(
        self,
        actor: User,
        entry_id: str,
        completed: Optional[bool] = None,
        deferred_to=_UNCHANGED,
    ) -> PlannedTaskEntry:
        """Mark an entry complete/incomplete and/or defer it.

        Args:
            actor: User making the change
            entry_id: Plan entry to update
            completed: True stamps completion, False clears it, None leaves it
            deferred_to: New deferral time (None clears it); omit to leave unchanged

        Returns:
            The updated entry
        """
        self._owned_entry(actor, entry_id)
        changes = {}
        if completed is not None:
            changes["completed_at"] = self.clock() if completed else None
        if deferred_to is not _UNCHANGED:
            changes["deferred_to"] = deferred_to
        return self.plans.update(entry_id, **changes)

    def remove_entry(self, actor: User, entry_id: str) -> None:
        self._owned_entry(actor, entry_id)
        self.plans.delete(entry_id)

    def _owned_entry(self, actor: User, entry_id: str) -> PlannedTaskEntry:
        entry = self.plans.get(entry_id)
        if entry is None:
            raise NotFoundError(f"Plan entry {entry_id} not found")
        ensure_can_access(actor, entry.user_id)
        return entry
