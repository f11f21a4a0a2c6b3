"""Per-user tracker endpoints."""

from __future__ import annotations

from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, HTTPException, Request, status

from nutritrack.api.models import (
    FitnessModeRequest,
    GoalRequest,
    LogFoodRequest,
    PlannedMealRequest,
    ProfileRequest,
    ShareMealRequest,
    SleepRequest,
    TimezoneRequest,
    WaterRequest,
)
from nutritrack.domain.models import UserProfile
from nutritrack.domain.planner import MealType  # noqa: TC001
from nutritrack.services.tracker import TrackerService  # noqa: TC001

if TYPE_CHECKING:
    from nutritrack.containers import AppContainer

router = APIRouter(prefix="/users/{user_id}", tags=["tracker"])


def get_tracker(request: Request) -> TrackerService:
    container: AppContainer = request.app.state.container
    return container.tracker_service


def _unprocessable(exc: ValueError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
    )


def _not_found(what: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found"
    )


@router.get("/log")
def list_log(
    user_id: UUID, tracker: TrackerService = Depends(get_tracker)
) -> dict[str, object]:
    """Return every log entry, oldest first."""
    return {"entries": tracker.get_log(user_id)}


@router.post("/log", status_code=status.HTTP_201_CREATED)
def log_food(
    user_id: UUID,
    body: LogFoodRequest,
    tracker: TrackerService = Depends(get_tracker),
) -> dict[str, object]:
    """Log a nutrition fact as a new entry."""
    entry = tracker.add_food(user_id, body, quantity_label=body.quantity)
    return {"entry": entry}


@router.delete("/log/{entry_id}")
def remove_food(
    user_id: UUID, entry_id: str, tracker: TrackerService = Depends(get_tracker)
) -> dict[str, str]:
    """Remove a log entry."""
    if not tracker.remove_food(user_id, entry_id):
        raise _not_found("Log entry")
    return {"status": "ok"}


@router.get("/goal")
def get_goal(
    user_id: UUID, tracker: TrackerService = Depends(get_tracker)
) -> dict[str, object]:
    """Return goal settings and derived targets."""
    return {"goal": tracker.get_goal_summary(user_id)}


@router.put("/goal")
def set_goal(
    user_id: UUID, body: GoalRequest, tracker: TrackerService = Depends(get_tracker)
) -> dict[str, object]:
    """Set the base daily calorie goal."""
    try:
        summary = tracker.set_base_calorie_goal(user_id, body.base_calories)
    except ValueError as exc:
        raise _unprocessable(exc) from exc
    return {"goal": summary}


@router.put("/fitness-mode")
def set_fitness_mode(
    user_id: UUID,
    body: FitnessModeRequest,
    tracker: TrackerService = Depends(get_tracker),
) -> dict[str, object]:
    """Switch the fitness mode."""
    return {"goal": tracker.set_fitness_mode(user_id, body.mode)}


@router.put("/timezone")
def set_timezone(
    user_id: UUID,
    body: TimezoneRequest,
    tracker: TrackerService = Depends(get_tracker),
) -> dict[str, str]:
    """Set the zone used for calendar-day bucketing."""
    try:
        tracker.set_timezone(user_id, body.timezone)
    except ValueError as exc:
        raise _unprocessable(exc) from exc
    return {"timezone": tracker.get_timezone(user_id)}


@router.get("/dashboard")
def dashboard(
    user_id: UUID, tracker: TrackerService = Depends(get_tracker)
) -> dict[str, object]:
    """Return today's intake against goal and the trailing week."""
    return {"dashboard": tracker.get_dashboard(user_id)}


@router.get("/forecasts")
def forecasts(
    user_id: UUID, tracker: TrackerService = Depends(get_tracker)
) -> dict[str, object]:
    """Return weekly and monthly goal forecasts."""
    return {"forecasts": tracker.get_forecasts(user_id)}


@router.get("/progress")
def progress(
    user_id: UUID, tracker: TrackerService = Depends(get_tracker)
) -> dict[str, object]:
    """Return streak, milestones, challenges and points."""
    return {"progress": tracker.get_progress(user_id)}


@router.post("/progress/refresh")
def refresh_progress(
    user_id: UUID,
    body: ProfileRequest | None = None,
    tracker: TrackerService = Depends(get_tracker),
) -> dict[str, object]:
    """Re-evaluate milestones and challenges now, optionally with a profile."""
    profile = None
    if body is not None:
        profile = UserProfile(uid=str(user_id), **body.model_dump())
    return {"progress": tracker.refresh_progress(user_id, profile)}


@router.get("/planned-meals")
def list_planned_meals(
    user_id: UUID,
    planned_date: date | None = None,
    meal_type: MealType | None = None,
    tracker: TrackerService = Depends(get_tracker),
) -> dict[str, object]:
    """Return planned meals, optionally for one date and meal slot."""
    return {"meals": tracker.get_planned_meals(user_id, planned_date, meal_type)}


@router.post("/planned-meals", status_code=status.HTTP_201_CREATED)
def add_planned_meal(
    user_id: UUID,
    body: PlannedMealRequest,
    tracker: TrackerService = Depends(get_tracker),
) -> dict[str, object]:
    """Plan a meal."""
    meal = tracker.add_planned_meal(
        user_id,
        body,
        planned_date=body.planned_date,
        meal_type=body.meal_type,
        quantity_label=body.quantity,
    )
    return {"meal": meal}


@router.delete("/planned-meals/{meal_id}")
def remove_planned_meal(
    user_id: UUID, meal_id: str, tracker: TrackerService = Depends(get_tracker)
) -> dict[str, str]:
    """Remove a planned meal."""
    if not tracker.remove_planned_meal(user_id, meal_id):
        raise _not_found("Planned meal")
    return {"status": "ok"}


@router.get("/water")
def water_intake(
    user_id: UUID,
    day: date | None = None,
    tracker: TrackerService = Depends(get_tracker),
) -> dict[str, object]:
    """Return water records and the millilitre total for a date."""
    return {"water": tracker.get_water_intake(user_id, day)}


@router.post("/water", status_code=status.HTTP_201_CREATED)
def add_water(
    user_id: UUID, body: WaterRequest, tracker: TrackerService = Depends(get_tracker)
) -> dict[str, object]:
    """Record water consumed today."""
    try:
        record = tracker.add_water_intake(user_id, body.amount, body.unit)
    except ValueError as exc:
        raise _unprocessable(exc) from exc
    return {"record": record}


@router.delete("/water/{record_id}")
def remove_water(
    user_id: UUID, record_id: str, tracker: TrackerService = Depends(get_tracker)
) -> dict[str, str]:
    """Remove a water record."""
    if not tracker.remove_water_intake(user_id, record_id):
        raise _not_found("Water record")
    return {"status": "ok"}


@router.get("/sleep")
def sleep_record(
    user_id: UUID,
    day: date | None = None,
    tracker: TrackerService = Depends(get_tracker),
) -> dict[str, object]:
    """Return the sleep record for a date."""
    return {"record": tracker.get_sleep_record(user_id, day)}


@router.post("/sleep", status_code=status.HTTP_201_CREATED)
def add_sleep(
    user_id: UUID, body: SleepRequest, tracker: TrackerService = Depends(get_tracker)
) -> dict[str, object]:
    """Record sleep for a date, replacing any earlier record."""
    try:
        record = tracker.add_sleep_record(
            user_id,
            body.duration_hours,
            day=body.day,
            quality=body.quality,
            notes=body.notes,
        )
    except ValueError as exc:
        raise _unprocessable(exc) from exc
    return {"record": record}


@router.delete("/sleep/{record_id}")
def remove_sleep(
    user_id: UUID, record_id: str, tracker: TrackerService = Depends(get_tracker)
) -> dict[str, str]:
    """Remove a sleep record."""
    if not tracker.remove_sleep_record(user_id, record_id):
        raise _not_found("Sleep record")
    return {"status": "ok"}


@router.get("/feed")
def shared_feed(
    user_id: UUID, tracker: TrackerService = Depends(get_tracker)
) -> dict[str, object]:
    """Return shared meals, newest first."""
    return {"feed": tracker.get_shared_feed(user_id)}


@router.post("/feed", status_code=status.HTTP_201_CREATED)
def share_meal(
    user_id: UUID,
    body: ShareMealRequest,
    tracker: TrackerService = Depends(get_tracker),
) -> dict[str, object]:
    """Share a logged entry to the feed."""
    profile = UserProfile(
        uid=str(user_id), email=body.email, display_name=body.display_name
    )
    shared = tracker.share_meal(user_id, body.entry_id, profile)
    if shared is None:
        raise _not_found("Log entry")
    return {"shared": shared}


@router.delete("/feed/{entry_id}")
def remove_shared_meal(
    user_id: UUID, entry_id: str, tracker: TrackerService = Depends(get_tracker)
) -> dict[str, str]:
    """Remove a meal from the feed."""
    if not tracker.remove_shared_meal(user_id, entry_id):
        raise _not_found("Shared meal")
    return {"status": "ok"}
