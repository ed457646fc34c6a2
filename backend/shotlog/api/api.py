import logging
import re
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
from shotlog.core.auth import CurrentUser, get_current_user
from shotlog.core.database import get_db
from shotlog.core.security import (
    create_access_token,
    get_password_hash,
    is_valid_email,
    is_valid_password,
    verify_password,
)
from shotlog.core.config import settings
from shotlog.services import training
from shotlog.services.clock import current_date, current_datetime, current_time_of_day
from shotlog.schemas import schemas
from shotlog.crud import crud

logger = logging.getLogger(__name__)

router = APIRouter()

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _parse_day(value: str) -> date:
    if not _DATE_PATTERN.match(value or ""):
        raise HTTPException(status_code=400, detail="Invalid date format. Use YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid date format. Use YYYY-MM-DD") from exc


def _auth_response(message: str, user) -> schemas.AuthResponse:
    return schemas.AuthResponse(
        message=message,
        token=create_access_token(user.id, user.email, user.name),
        user=schemas.UserResponse.model_validate(user),
    )

# --- Health ---
@router.get("/health", response_model=schemas.HealthResponse)
def health():
    return schemas.HealthResponse(status="ok", timestamp=current_datetime())

# --- Auth ---
@router.post("/auth/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: schemas.RegisterRequest, db: Session = Depends(get_db)):
    """Create a new account and return an access token."""
    if not payload.email or not payload.password or not payload.name.strip():
        raise HTTPException(status_code=400, detail="Email, password, and name are required")
    if not is_valid_email(payload.email):
        raise HTTPException(status_code=400, detail="Invalid email format")
    if not is_valid_password(payload.password):
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters",
        )
    if crud.get_user_by_email(db, payload.email):
        raise HTTPException(status_code=409, detail="Email already registered")

    user = crud.create_user(db, payload.email, get_password_hash(payload.password), payload.name)
    logger.info("Registered user %s", user.id)
    return _auth_response("Account created successfully", user)

@router.post("/auth/login", response_model=schemas.AuthResponse)
def login(payload: schemas.LoginRequest, db: Session = Depends(get_db)):
    """Exchange email and password for an access token."""
    if not payload.email or not payload.password:
        raise HTTPException(status_code=400, detail="Email and password are required")

    user = crud.get_user_by_email(db, payload.email)
    if not user or not verify_password(payload.password, user.password_hash):
        logger.info("Failed login attempt")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    logger.info("User %s logged in", user.id)
    return _auth_response("Login successful", user)

@router.get("/auth/me", response_model=schemas.MeResponse)
def read_me(current_user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    user = crud.get_user(db, current_user.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return schemas.MeResponse(user=schemas.UserResponse.model_validate(user))

# --- Training Days ---
@router.get("/training", response_model=List[schemas.TrainingDayResponse])
def read_training_days(
    start: Optional[str] = None,
    end: Optional[str] = None,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get the stored training days within a date range."""
    if not start or not end:
        raise HTTPException(status_code=400, detail="start and end query params required")
    start_date = _parse_day(start)
    end_date = _parse_day(end)
    training_days = crud.get_training_days_by_date_range(db, current_user.user_id, start_date, end_date)
    return [training.build_day_view(day) for day in training_days]

@router.get("/training/{day}", response_model=schemas.TrainingDayResponse)
def read_training_day(day: str, current_user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """Get a training day, creating an empty one on first access."""
    training_day = crud.get_or_create_training_day(db, current_user.user_id, _parse_day(day))
    return training.build_day_view(training_day)

@router.put("/training/{day}", response_model=schemas.TrainingDayResponse)
def update_training_day(
    day: str,
    update: schemas.TrainingDayUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update day-level flags such as the game day toggle."""
    training_day = crud.get_or_create_training_day(db, current_user.user_id, _parse_day(day))
    return training.build_day_view(crud.update_training_day(db, training_day, update))

# --- Planned Activities ---
@router.post(
    "/training/{day}/planned",
    response_model=schemas.TrainingDayResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_planned_activity(
    day: str,
    planned: schemas.PlannedActivityCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Plan an activity. A new shooting plan replaces the existing one."""
    training_day = crud.get_or_create_training_day(db, current_user.user_id, _parse_day(day))
    return training.build_day_view(crud.add_planned_activity(db, training_day, planned))

@router.delete("/training/{day}/planned/{activity_id}", response_model=schemas.TrainingDayResponse)
def delete_planned_activity(
    day: str,
    activity_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    activity = crud.get_planned_activity_for_user(db, current_user.user_id, activity_id)
    if not activity:
        raise HTTPException(status_code=404, detail="Activity not found")
    return training.build_day_view(crud.delete_planned_activity(db, activity))

# --- Actual Activities ---
@router.post("/training/{day}/actual", response_model=schemas.TrainingDayResponse)
def log_actual_activity(
    day: str,
    actual: schemas.ActualActivityCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Log a completed activity. Coach and varsity sessions toggle; shooting is upserted."""
    training_day = crud.get_or_create_training_day(db, current_user.user_id, _parse_day(day))
    updated = crud.log_actual_activity(db, training_day, actual, now_time=current_time_of_day())
    return training.build_day_view(updated)

@router.put("/training/{day}/actual/{activity_id}", response_model=schemas.TrainingDayResponse)
def update_actual_activity(
    day: str,
    activity_id: int,
    update: schemas.ActualActivityUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    activity = crud.get_actual_activity_for_user(db, current_user.user_id, activity_id)
    if not activity:
        raise HTTPException(status_code=404, detail="Activity not found")
    return training.build_day_view(crud.update_actual_activity(db, activity, update))

@router.put("/training/{day}/shooting", response_model=schemas.TrainingDayResponse)
def update_shooting_makes(
    day: str,
    update: schemas.ShootingUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Set the day's make count, stamping the completion time when the goal is first reached."""
    training_day = crud.get_or_create_training_day(db, current_user.user_id, _parse_day(day))
    existing = crud.get_actual_activity_by_type(db, training_day.id, schemas.ActualActivityType.shooting.value)
    completed_at = training.resolve_shooting_completion(
        makes=update.makes,
        requested_completed_at=update.completed_at,
        existing_completed_at=existing.completed_at if existing else None,
        now_time=current_time_of_day(),
    )
    updated = crud.upsert_shooting_activity(db, training_day, update.makes, completed_at)
    return training.build_day_view(updated)

# --- Stats ---
@router.get("/stats/streak", response_model=schemas.StreakResponse)
def read_streak(current_user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    return schemas.StreakResponse(streak=training.get_streak(db, current_user.user_id, current_date()))

@router.get("/stats/summary", response_model=schemas.SummaryResponse)
def read_summary(current_user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """Lifetime totals plus the current streak."""
    return training.get_summary(db, current_user.user_id, current_date())

@router.get("/stats/weekly", response_model=schemas.WeeklyStatsResponse)
def read_weekly_stats(current_user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """Completion and timing consistency over the last seven days."""
    return training.get_weekly_stats(db, current_user.user_id, current_date())
