"""FastAPI web application for agencyops."""

import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, status
from sqlalchemy.orm import Session

from agencyops.api.schemas import (
    AcceptSuggestionsRequest,
    AcceptSuggestionsResponse,
    AddPlanEntryRequest,
    ReminderSweepResponse,
    UpdatePlanEntryRequest,
)
from agencyops.auth.dependencies import get_current_user, verify_cron_or_user
from agencyops.database.database import SessionLocal, get_db, init_db
from agencyops.database.notification_repository import NotificationRepository
from agencyops.database.planned_task_repository import PlannedTaskRepository, TaskStoreRepository
from agencyops.database.repository import TaskRepository
from agencyops.database.timer_repository import TimerRepository
from agencyops.engine.config import ReminderConfig, SuggestionConfig
from agencyops.engine.daily_plan import DailyPlanService, ensure_can_access
from agencyops.engine.reminders import ReminderScheduler
from agencyops.engine.suggestions import SuggestionEngine
from agencyops.errors import (
    AuthorizationError,
    DuplicatePlanEntryError,
    InvalidInputError,
    NotFoundError,
)
from agencyops.models.planned_task import PlannedTaskEntry
from agencyops.models.suggestion import Suggestion
from agencyops.models.user import User
from agencyops.notifications.service import NotificationService, SessionScopedNotificationSink

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(
    title="agencyops API",
    description="Daily plan suggestions and priority reminders for agency task work",
    version="0.1.0",
    lifespan=lifespan,
)


def parse_plan_date(value: Optional[str]) -> date:
    """Parse YYYY-MM-DD; missing means today (UTC). Anything else is a client error."""
    if not value:
        return datetime.utcnow().date()
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise InvalidInputError(f"Invalid date '{value}', expected YYYY-MM-DD")


def get_suggestion_engine(db: Session = Depends(get_db)) -> SuggestionEngine:
    return SuggestionEngine(TaskStoreRepository(db), SuggestionConfig.from_env())


def get_reminder_scheduler(db: Session = Depends(get_db)) -> ReminderScheduler:
    config = ReminderConfig.from_env()
    notifications = NotificationService(NotificationRepository(db))
    # Timed sends run on a worker thread and need their own session.
    sink = SessionScopedNotificationSink(SessionLocal) if config.send_timeout_seconds else notifications
    return ReminderScheduler(
        store=TaskStoreRepository(db),
        timers=TimerRepository(db),
        sink=sink,
        ledger=notifications,
        config=config,
    )


def get_daily_plan_service(db: Session = Depends(get_db)) -> DailyPlanService:
    return DailyPlanService(PlannedTaskRepository(db), TaskRepository(db))


def _client_error(e: Exception) -> HTTPException:
    """Map a domain error to its HTTP status."""
    if isinstance(e, AuthorizationError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, DuplicatePlanEntryError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


_CLIENT_ERRORS = (AuthorizationError, NotFoundError, DuplicatePlanEntryError, InvalidInputError)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}


@app.get("/suggestions", response_model=List[Suggestion])
@app.get("/daily/suggestions", response_model=List[Suggestion], include_in_schema=False)
def get_suggestions(
    plan_date: Optional[str] = Query(None, alias="date", description="Plan date (YYYY-MM-DD), defaults to today"),
    user_id: Optional[str] = Query(None, alias="userId", description="Whose plan; defaults to the caller"),
    current_user: User = Depends(get_current_user),
    engine: SuggestionEngine = Depends(get_suggestion_engine),
):
    """Ranked daily-plan suggestions for a user."""
    target_user_id = user_id or current_user.id
    try:
        ensure_can_access(current_user, target_user_id)
        day = parse_plan_date(plan_date)
    except _CLIENT_ERRORS as e:
        raise _client_error(e)

    try:
        return engine.generate_suggestions(target_user_id, day)
    except Exception as e:
        logger.error(f"Failed to generate suggestions for user {target_user_id}: {type(e).__name__}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to generate suggestions")


@app.post("/suggestions/accept", response_model=AcceptSuggestionsResponse)
@app.post("/daily/suggestions/accept", response_model=AcceptSuggestionsResponse, include_in_schema=False)
def accept_suggestions(
    body: AcceptSuggestionsRequest,
    current_user: User = Depends(get_current_user),
    engine: SuggestionEngine = Depends(get_suggestion_engine),
):
    """Plan accepted suggestions for the caller (all-or-nothing)."""
    try:
        plan_date = parse_plan_date(body.date)
        if len(body.sources) > len(body.task_ids):
            raise InvalidInputError("More sources than task IDs")
        entries = engine.accept_suggestions(current_user.id, plan_date, body.task_ids, body.sources)
    except _CLIENT_ERRORS as e:
        raise _client_error(e)
    except Exception as e:
        logger.error(f"Failed to accept suggestions for user {current_user.id}: {type(e).__name__}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to accept suggestions")

    return AcceptSuggestionsResponse(success=True, count=len(entries), tasks=entries)


@app.get("/reminders", response_model=ReminderSweepResponse)
@app.get("/tasks/reminders", response_model=ReminderSweepResponse, include_in_schema=False)
def run_reminders(
    caller: Optional[User] = Depends(verify_cron_or_user),
    scheduler: ReminderScheduler = Depends(get_reminder_scheduler),
):
    """Run one reminder sweep (cron or manual trigger)."""
    trigger = "cron" if caller is None else f"user {caller.id}"
    try:
        result = scheduler.run_sweep()
    except Exception as e:
        logger.error(f"Task reminders error ({trigger}): {type(e).__name__}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to process reminders")

    return ReminderSweepResponse(
        success=True,
        tasksChecked=result.tasks_checked,
        remindersSent=result.reminders_sent,
        timestamp=result.timestamp,
    )


@app.get("/daily/tasks", response_model=List[PlannedTaskEntry])
def list_daily_tasks(
    plan_date: Optional[str] = Query(None, alias="date", description="Plan date (YYYY-MM-DD), defaults to today"),
    user_id: Optional[str] = Query(None, alias="userId"),
    current_user: User = Depends(get_current_user),
    service: DailyPlanService = Depends(get_daily_plan_service),
):
    """A user's planned tasks for one day, highest priority first."""
    try:
        return service.list_plan(current_user, user_id or current_user.id, parse_plan_date(plan_date))
    except _CLIENT_ERRORS as e:
        raise _client_error(e)


@app.post("/daily/tasks", response_model=PlannedTaskEntry, status_code=status.HTTP_201_CREATED)
def add_daily_task(
    body: AddPlanEntryRequest,
    current_user: User = Depends(get_current_user),
    service: DailyPlanService = Depends(get_daily_plan_service),
):
    """Add a task to a daily plan."""
    try:
        plan_date = parse_plan_date(body.date) if body.date else None
        return service.add_to_plan(
            current_user,
            body.task_id,
            plan_date=plan_date,
            source=body.source,
            target_user_id=body.target_user_id,
        )
    except _CLIENT_ERRORS as e:
        raise _client_error(e)


@app.patch("/daily/tasks/{entry_id}", response_model=PlannedTaskEntry)
def update_daily_task(
    entry_id: str,
    body: UpdatePlanEntryRequest,
    current_user: User = Depends(get_current_user),
    service: DailyPlanService = Depends(get_daily_plan_service),
):
    """Mark a planned task complete/incomplete or defer it."""
    changes = {}
    if "deferred_to" in body.model_fields_set:
        changes["deferred_to"] = body.deferred_to
    try:
        return service.update_entry(current_user, entry_id, completed=body.completed, **changes)
    except _CLIENT_ERRORS as e:
        raise _client_error(e)


@app.delete("/daily/tasks/{entry_id}")
def delete_daily_task(
    entry_id: str,
    current_user: User = Depends(get_current_user),
    service: DailyPlanService = Depends(get_daily_plan_service),
):
    """Remove a task from a daily plan."""
    try:
        service.remove_entry(current_user, entry_id)
    except _CLIENT_ERRORS as e:
        raise _client_error(e)
    return {"success": True}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
