import logging
from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession
from shotlog.models import models
from shotlog.schemas import schemas
from datetime import date
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

# --- Users ---
def get_user(db: DBSession, user_id: int) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()

def get_user_by_email(db: DBSession, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email.strip().lower()).first()

def create_user(db: DBSession, email: str, password_hash: str, name: str) -> models.User:
    db_user = models.User(
        email=email.strip().lower(),
        password_hash=password_hash,
        name=name.strip(),
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user

# --- Training Days ---
def get_training_day(db: DBSession, user_id: int, day: date) -> Optional[models.TrainingDay]:
    return db.query(models.TrainingDay).filter(
        models.TrainingDay.user_id == user_id,
        models.TrainingDay.date == day
    ).first()

def get_or_create_training_day(db: DBSession, user_id: int, day: date) -> models.TrainingDay:
    db_day = get_training_day(db, user_id, day)
    if db_day:
        return db_day

    db_day = models.TrainingDay(user_id=user_id, date=day, is_game_day=False)
    db.add(db_day)
    try:
        db.commit()
    except IntegrityError:
        # Another request created the same (user, date) row first.
        db.rollback()
        logger.info("Training day %s for user %s created concurrently, re-reading", day, user_id)
        return get_training_day(db, user_id, day)
    db.refresh(db_day)
    return db_day

def update_training_day(db: DBSession, training_day: models.TrainingDay, update: schemas.TrainingDayUpdate) -> models.TrainingDay:
    if update.is_game_day is not None:
        training_day.is_game_day = update.is_game_day
    db.commit()
    db.refresh(training_day)
    return training_day

def get_training_days_by_date_range(db: DBSession, user_id: int, start_date: date, end_date: date) -> List[models.TrainingDay]:
    return db.query(models.TrainingDay).filter(
        models.TrainingDay.user_id == user_id,
        models.TrainingDay.date >= start_date,
        models.TrainingDay.date <= end_date
    ).order_by(
        models.TrainingDay.date.asc()
    ).all()

# --- Planned Activities ---
def add_planned_activity(db: DBSession, training_day: models.TrainingDay, planned: schemas.PlannedActivityCreate) -> models.TrainingDay:
    activity_type = planned.type.value
    if planned.type == schemas.PlannedActivityType.shooting:
        # Single planned shooting slot per day: replace, never stack.
        db.query(models.PlannedActivity).filter(
            models.PlannedActivity.training_day_id == training_day.id,
            models.PlannedActivity.type == activity_type
        ).delete(synchronize_session=False)

    db_activity = models.PlannedActivity(
        training_day_id=training_day.id,
        type=activity_type,
        planned_time=planned.time,
        location=planned.location if planned.type == schemas.PlannedActivityType.pickup else None,
        name=planned.name if planned.type == schemas.PlannedActivityType.custom else None,
    )
    db.add(db_activity)
    db.commit()
    db.refresh(training_day)
    return training_day

def get_planned_activity_for_user(db: DBSession, user_id: int, activity_id: int) -> Optional[models.PlannedActivity]:
    return db.query(models.PlannedActivity).join(models.TrainingDay).filter(
        models.PlannedActivity.id == activity_id,
        models.TrainingDay.user_id == user_id
    ).first()

def delete_planned_activity(db: DBSession, activity: models.PlannedActivity) -> models.TrainingDay:
    training_day = activity.training_day
    db.delete(activity)
    db.commit()
    db.refresh(training_day)
    return training_day

# --- Actual Activities ---
def get_actual_activity_by_type(db: DBSession, training_day_id: int, activity_type: str) -> Optional[models.ActualActivity]:
    return db.query(models.ActualActivity).filter(
        models.ActualActivity.training_day_id == training_day_id,
        models.ActualActivity.type == activity_type
    ).order_by(models.ActualActivity.id.asc()).first()

def get_actual_activity_for_user(db: DBSession, user_id: int, activity_id: int) -> Optional[models.ActualActivity]:
    return db.query(models.ActualActivity).join(models.TrainingDay).filter(
        models.ActualActivity.id == activity_id,
        models.TrainingDay.user_id == user_id
    ).first()

def toggle_fixed_actual_activity(
    db: DBSession,
    training_day: models.TrainingDay,
    activity_type: str,
    completed_at: str,
) -> models.TrainingDay:
    existing = get_actual_activity_by_type(db, training_day.id, activity_type)
    if existing:
        db.delete(existing)
        logger.debug("Toggled off %s on training day %s", activity_type, training_day.id)
    else:
        db.add(models.ActualActivity(
            training_day_id=training_day.id,
            type=activity_type,
            completed_at=completed_at,
        ))
        logger.debug("Toggled on %s on training day %s", activity_type, training_day.id)
    db.commit()
    db.refresh(training_day)
    return training_day

def upsert_shooting_activity(
    db: DBSession,
    training_day: models.TrainingDay,
    shooting_makes: Optional[int],
    completed_at: Optional[str],
) -> models.TrainingDay:
    """Update the day's shooting record in place, or create it. None keeps the stored value."""
    existing = get_actual_activity_by_type(db, training_day.id, schemas.ActualActivityType.shooting.value)
    if existing:
        if shooting_makes is not None:
            existing.shooting_makes = shooting_makes
        if completed_at is not None:
            existing.completed_at = completed_at
    else:
        db.add(models.ActualActivity(
            training_day_id=training_day.id,
            type=schemas.ActualActivityType.shooting.value,
            shooting_makes=shooting_makes or 0,
            completed_at=completed_at,
        ))
    db.commit()
    db.refresh(training_day)
    return training_day

def create_actual_activity(
    db: DBSession,
    training_day: models.TrainingDay,
    activity_type: str,
    completed_at: Optional[str],
) -> models.TrainingDay:
    db.add(models.ActualActivity(
        training_day_id=training_day.id,
        type=activity_type,
        completed_at=completed_at,
    ))
    db.commit()
    db.refresh(training_day)
    return training_day

def log_actual_activity(
    db: DBSession,
    training_day: models.TrainingDay,
    actual: schemas.ActualActivityCreate,
    now_time: str,
) -> models.TrainingDay:
    """Apply the logging policy for the activity type: toggle, upsert, or append."""
    if actual.type in schemas.FIXED_ACTUAL_TYPES:
        return toggle_fixed_actual_activity(db, training_day, actual.type.value, actual.completed_at or now_time)
    if actual.type == schemas.ActualActivityType.shooting:
        return upsert_shooting_activity(db, training_day, actual.shooting_makes, actual.completed_at)
    return create_actual_activity(db, training_day, actual.type.value, actual.completed_at)

def update_actual_activity(db: DBSession, activity: models.ActualActivity, update: schemas.ActualActivityUpdate) -> models.TrainingDay:
    if update.completed_at is not None:
        activity.completed_at = update.completed_at
    if update.shooting_makes is not None and activity.type == schemas.ActualActivityType.shooting.value:
        activity.shooting_makes = update.shooting_makes
    training_day = activity.training_day
    db.commit()
    db.refresh(training_day)
    return training_day

# --- Stats Queries ---
def get_shooting_makes_by_date(db: DBSession, user_id: int, start_date: date, end_date: date) -> Dict[date, int]:
    rows = db.query(models.TrainingDay.date, models.ActualActivity.shooting_makes).join(
        models.ActualActivity, models.ActualActivity.training_day_id == models.TrainingDay.id
    ).filter(
        models.TrainingDay.user_id == user_id,
        models.TrainingDay.date >= start_date,
        models.TrainingDay.date <= end_date,
        models.ActualActivity.type == schemas.ActualActivityType.shooting.value
    ).order_by(
        models.TrainingDay.date.asc(),
        models.ActualActivity.id.asc()
    ).all()

    makes_by_date: Dict[date, int] = {}
    for day, makes in rows:
        makes_by_date.setdefault(day, makes or 0)
    return makes_by_date

def get_shooting_summary(db: DBSession, user_id: int, perfect_day_threshold: int) -> Dict[str, int]:
    shooting = schemas.ActualActivityType.shooting.value
    base = db.query(models.ActualActivity).join(models.TrainingDay).filter(
        models.TrainingDay.user_id == user_id
    )

    total_makes, shooting_days, perfect_days = base.filter(
        models.ActualActivity.type == shooting
    ).with_entities(
        func.coalesce(func.sum(models.ActualActivity.shooting_makes), 0),
        func.count(models.ActualActivity.id),
        func.coalesce(func.sum(case((models.ActualActivity.shooting_makes >= perfect_day_threshold, 1), else_=0)), 0),
    ).one()

    total_sessions = base.filter(models.ActualActivity.type != shooting).count()

    return {
        "total_makes": int(total_makes),
        "total_sessions": int(total_sessions),
        "perfect_days": int(perfect_days),
        "shooting_days": int(shooting_days),
    }
