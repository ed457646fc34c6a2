"""
Derived views over training days: the per-day view, the make streak and the
trailing-week consistency report.

Every function here is a pure function of its arguments, including the
reference date, so the HTTP layer decides what "today" is. Absent rows are
treated as zero makes or empty lists, never as errors.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy.orm import Session as DBSession

from shotlog.crud import crud
from shotlog.schemas import schemas

SHOOTING_GOAL = 200
STREAK_LOOKBACK_DAYS = 365
ON_TIME_TOLERANCE_MINUTES = 30
WEEK_LENGTH = 7

_SHOOTING = schemas.ActualActivityType.shooting.value
_PICKUP = schemas.ActualActivityType.pickup.value
_CUSTOM = schemas.ActualActivityType.custom.value
_COACH_SKILLS = schemas.ActualActivityType.coach_skills.value
_COACH_WEIGHTS = schemas.ActualActivityType.coach_weights.value
_VARSITY = schemas.ActualActivityType.varsity.value


def time_to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def _round_percent(numerator: int, denominator: int) -> int:
    """100 * numerator / denominator rounded half up; 0 for an empty denominator."""
    if denominator <= 0:
        return 0
    return (200 * numerator + denominator) // (2 * denominator)


def _day_of_week(day: date) -> int:
    # 0 = Sunday
    return day.isoweekday() % 7


# --- Activity reconciliation ---
def build_day_view(training_day: Any) -> schemas.TrainingDayResponse:
    planned = schemas.PlannedDayView()
    for activity in training_day.planned_activities:
        if activity.type == _SHOOTING:
            planned.shooting = schemas.PlannedShootingSlot(id=activity.id, time=activity.planned_time)
        elif activity.type == _PICKUP:
            planned.pickup_runs.append(
                schemas.PlannedPickupSlot(id=activity.id, time=activity.planned_time, location=activity.location)
            )
        elif activity.type == _CUSTOM:
            planned.custom.append(
                schemas.PlannedCustomSlot(id=activity.id, time=activity.planned_time, name=activity.name)
            )

    actual = schemas.ActualDayView()
    for activity in training_day.actual_activities:
        if activity.type == _SHOOTING:
            actual.shooting_makes = activity.shooting_makes or 0
            actual.shooting_completed_at = activity.completed_at
        elif activity.type == _COACH_SKILLS:
            actual.coach_skills = True
        elif activity.type == _COACH_WEIGHTS:
            actual.coach_weights = True
        elif activity.type == _VARSITY:
            actual.varsity = True
        elif activity.type == _PICKUP:
            actual.pickup_runs.append(schemas.CompletedActivity(id=activity.id, completed_at=activity.completed_at))
        elif activity.type == _CUSTOM:
            actual.custom.append(schemas.CompletedActivity(id=activity.id, completed_at=activity.completed_at))

    return schemas.TrainingDayResponse(
        id=training_day.id,
        date=training_day.date,
        is_game_day=bool(training_day.is_game_day),
        planned=planned,
        actual=actual,
    )


# --- Streak ---
def calculate_streak(makes_by_date: Mapping[date, int], today: date) -> int:
    """
    Count consecutive days with at least SHOOTING_GOAL makes, walking back from today.

    An unfinished today does not break the streak; the walk then starts from
    yesterday. Any earlier day short of the goal ends it.
    """
    streak = 0
    current = today
    while (today - current).days <= STREAK_LOOKBACK_DAYS:
        makes = makes_by_date.get(current, 0)
        if makes >= SHOOTING_GOAL:
            streak += 1
        elif streak > 0 or current < today:
            break
        current -= timedelta(days=1)
    return streak


def get_streak(db: DBSession, user_id: int, today: date) -> int:
    start_date = today - timedelta(days=STREAK_LOOKBACK_DAYS)
    makes_by_date = crud.get_shooting_makes_by_date(db, user_id, start_date, today)
    return calculate_streak(makes_by_date, today)


def get_summary(db: DBSession, user_id: int, today: date) -> schemas.SummaryResponse:
    totals = crud.get_shooting_summary(db, user_id, perfect_day_threshold=SHOOTING_GOAL)
    return schemas.SummaryResponse(streak=get_streak(db, user_id, today), **totals)


# --- Weekly consistency ---
def _shooting_makes(training_day: Optional[Any]) -> int:
    if training_day is None:
        return 0
    for activity in training_day.actual_activities:
        if activity.type == _SHOOTING:
            return activity.shooting_makes or 0
    return 0


def _timing_counts(training_days: Iterable[Any]) -> tuple[int, int]:
    on_time = 0
    total_planned = 0
    for training_day in training_days:
        for planned in training_day.planned_activities:
            total_planned += 1
            # Matched by type only: with two planned pickups both pair with the first logged one.
            actual = next((a for a in training_day.actual_activities if a.type == planned.type), None)
            if actual is None or not actual.completed_at or not planned.planned_time:
                continue
            diff_minutes = abs(time_to_minutes(actual.completed_at) - time_to_minutes(planned.planned_time))
            if diff_minutes <= ON_TIME_TOLERANCE_MINUTES:
                on_time += 1
    return on_time, total_planned


def compute_weekly_stats(training_days: Iterable[Any], today: date) -> schemas.WeeklyStatsResponse:
    """
    Summarize the seven days ending at ``today``.

    Days with no stored record still get an entry with zero makes. The
    consistency score is the share of planned activities whose matching
    actual activity was completed within ON_TIME_TOLERANCE_MINUTES of the
    planned time.
    """
    start_date = today - timedelta(days=WEEK_LENGTH - 1)
    window = [d for d in training_days if start_date <= d.date <= today]

    by_date: dict[date, Any] = {}
    for training_day in window:
        by_date.setdefault(training_day.date, training_day)

    daily_stats = []
    for offset in range(WEEK_LENGTH):
        day = start_date + timedelta(days=offset)
        makes = _shooting_makes(by_date.get(day))
        daily_stats.append(
            schemas.DailyStat(
                date=day,
                day_of_week=_day_of_week(day),
                makes=makes,
                completed=makes >= SHOOTING_GOAL,
            )
        )

    completed_days = sum(1 for stat in daily_stats if stat.completed)
    on_time, total_planned = _timing_counts(window)

    return schemas.WeeklyStatsResponse(
        daily_stats=daily_stats,
        completion_percentage=_round_percent(completed_days, WEEK_LENGTH),
        consistency_score=_round_percent(on_time, total_planned),
        total_makes=sum(stat.makes for stat in daily_stats),
    )


def get_weekly_stats(db: DBSession, user_id: int, today: date) -> schemas.WeeklyStatsResponse:
    start_date = today - timedelta(days=WEEK_LENGTH - 1)
    training_days = crud.get_training_days_by_date_range(db, user_id, start_date, today)
    return compute_weekly_stats(training_days, today)


# --- Shooting quick update ---
def resolve_shooting_completion(
    makes: int,
    requested_completed_at: Optional[str],
    existing_completed_at: Optional[str],
    now_time: str,
) -> Optional[str]:
    """
    Completion time to store for a quick makes update, or None to keep the stored one.

    The first update that reaches the goal without an explicit or stored time
    is stamped with ``now_time``.
    """
    if requested_completed_at:
        return requested_completed_at
    if makes >= SHOOTING_GOAL and not existing_completed_at:
        return now_time
    return None
