"""Daily-plan suggestions for agencyops.

Candidates come from four sources in a fixed order (rollover, due today,
high priority, project sequence). Each source carries a fixed score, so
source membership is the ranking signal; there is no per-task formula.
The final list is a stable sort by score, truncated to the configured cap.
"""

import logging
import uuid
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Set

from agencyops.engine.config import SuggestionConfig
from agencyops.engine.ports import Clock, TaskFilter, TaskStore
from agencyops.errors import InvalidInputError, NotFoundError
from agencyops.models.planned_task import PlannedTaskEntry, PlanSource
from agencyops.models.suggestion import Suggestion
from agencyops.models.task import (
    ACTIVE_PROJECT_STATUSES,
    OPEN_WORK_STATUSES,
    Task,
    TaskPriority,
    TaskStatus,
)

logger = logging.getLogger(__name__)


def day_bounds(plan_date: date):
    """Return the half-open [start, end) datetime range covering a calendar day."""
    start = datetime.combine(plan_date, time.min)
    return start, start + timedelta(days=1)


class SuggestionEngine:
    """Builds and accepts ranked daily-plan suggestions for one user."""

    def __init__(
        self,
        store: TaskStore,
        config: Optional[SuggestionConfig] = None,
        clock: Clock = datetime.utcnow,
    ):
        self.store = store
        self.config = config or SuggestionConfig()
        self.clock = clock

    def generate_suggestions(self, user_id: str, plan_date: Optional[date] = None) -> List[Suggestion]:
        """Rank candidate tasks for `user_id` on `plan_date` (default: today).

        Tasks already planned for the date are never suggested, and no task
        appears under more than one source.

        Args:
            user_id: Whose plan to build
            plan_date: Day being planned

        Returns:
            At most `max_results` suggestions, highest score first
        """
        if plan_date is None:
            plan_date = self.clock().date()

        planned_ids = {entry.task_id for entry in self.store.find_planned_entries(user_id, plan_date)}
        claimed: Set[str] = set(planned_ids)
        suggestions: List[Suggestion] = []

        for source, find_candidates in (
            (PlanSource.ROLLOVER, self._rollover_tasks),
            (PlanSource.DUE_DATE, self._due_today_tasks),
            (PlanSource.PRIORITY, self._high_priority_tasks),
            (PlanSource.PROJECT_SEQUENCE, self._project_sequence_tasks),
        ):
            for task in find_candidates(user_id, plan_date, claimed):
                claimed.add(task.id)
                suggestions.append(self._suggest(task, source))

        # sorted() is stable, so equal scores keep source order.
        ranked = sorted(suggestions, key=lambda s: s.score, reverse=True)
        top = ranked[: self.config.max_results]
        logger.debug(
            f"Generated {len(top)} suggestions for user {user_id} on {plan_date.isoformat()} "
            f"({len(suggestions)} candidates, {len(planned_ids)} already planned)"
        )
        return top

    def accept_suggestions(
        self,
        user_id: str,
        plan_date: date,
        task_ids: List[str],
        sources: Optional[List[str]] = None,
    ) -> List[PlannedTaskEntry]:
        """Plan the accepted tasks for `plan_date` in one atomic batch.

        `sources[i]` labels `task_ids[i]`; a missing label means "system".
        Ids repeated in the request or already planned for the date are skipped.

        Args:
            user_id: Whose plan receives the tasks
            plan_date: Day being planned
            task_ids: Accepted task ids, in request order
            sources: Optional source label per task id

        Returns:
            The newly created entries (empty when nothing was new)

        Raises:
            InvalidInputError: A source label is not a known PlanSource
            NotFoundError: A task id does not name an existing task
        """
        sources = sources or []
        already_planned = {entry.task_id for entry in self.store.find_planned_entries(user_id, plan_date)}

        entries: List[PlannedTaskEntry] = []
        seen: Set[str] = set()
        for index, task_id in enumerate(task_ids):
            source = self._parse_source(sources[index] if index < len(sources) else None)
            if task_id in already_planned or task_id in seen:
                logger.info(f"Skipping task {task_id}: already planned for user {user_id} on {plan_date.isoformat()}")
                continue
            seen.add(task_id)
            entries.append(
                PlannedTaskEntry(
                    id=str(uuid.uuid4()),
                    task_id=task_id,
                    user_id=user_id,
                    plan_date=plan_date,
                    source=source,
                    suggested=True,
                    accepted=True,
                    suggested_by="system",
                    created_at=self.clock(),
                )
            )

        if not entries:
            return []
        self._ensure_tasks_exist([entry.task_id for entry in entries])
        return self.store.create_planned_entries(entries)

    def _ensure_tasks_exist(self, task_ids: List[str]) -> None:
        found = {task.id for task in self.store.find_tasks(TaskFilter(ids_in=task_ids))}
        missing = [task_id for task_id in task_ids if task_id not in found]
        if missing:
            raise NotFoundError(f"Tasks not found: {', '.join(missing)}")

    def _suggest(self, task: Task, source: PlanSource) -> Suggestion:
        return Suggestion(
            task=task,
            source=source,
            score=self.config.source_scores[source.value],
            reason=self.config.source_reasons[source.value],
        )

    def _limit(self, source: PlanSource) -> int:
        return self.config.source_limits[source.value]

    def _rollover_tasks(self, user_id: str, plan_date: date, claimed: Set[str]) -> List[Task]:
        yesterday = plan_date - timedelta(days=1)
        tasks: List[Task] = []
        for entry in self.store.find_planned_entries(user_id, yesterday):
            if entry.completed_at is not None or entry.task is None:
                continue
            if entry.task_id in claimed or any(t.id == entry.task_id for t in tasks):
                continue
            tasks.append(entry.task)
            if len(tasks) >= self._limit(PlanSource.ROLLOVER):
                break
        return tasks

    def _due_today_tasks(self, user_id: str, plan_date: date, claimed: Iterable[str]) -> List[Task]:
        day_start, day_end = day_bounds(plan_date)
        return self.store.find_tasks(
            TaskFilter(
                assignee_id=user_id,
                due_from=day_start,
                due_before=day_end,
                status_not_in=[TaskStatus.COMPLETED.value],
                exclude_ids=sorted(claimed),
                limit=self._limit(PlanSource.DUE_DATE),
            )
        )

    def _high_priority_tasks(self, user_id: str, plan_date: date, claimed: Iterable[str]) -> List[Task]:
        return self.store.find_tasks(
            TaskFilter(
                assignee_id=user_id,
                priority_in=[TaskPriority.HIGH.value],
                status_in=list(OPEN_WORK_STATUSES),
                project_status_in=list(ACTIVE_PROJECT_STATUSES),
                exclude_ids=sorted(claimed),
                limit=self._limit(PlanSource.PRIORITY),
            )
        )

    def _project_sequence_tasks(self, user_id: str, plan_date: date, claimed: Iterable[str]) -> List[Task]:
        return self.store.find_tasks(
            TaskFilter(
                assignee_id=user_id,
                status_in=list(OPEN_WORK_STATUSES),
                project_status_in=list(ACTIVE_PROJECT_STATUSES),
                exclude_ids=sorted(claimed),
                order_by_priority=True,
                limit=self._limit(PlanSource.PROJECT_SEQUENCE),
            )
        )

    @staticmethod
    def _parse_source(value: Optional[str]) -> PlanSource:
        if not value:
            return PlanSource.SYSTEM
        try:
            return PlanSource(value)
        except ValueError:
            raise InvalidInputError(f"Unknown plan source: {value}")
