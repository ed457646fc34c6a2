from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shotlog.core.database import Base

_SINGLE_ACTUAL_WHERE = text("type IN ('shooting', 'coach_skills', 'coach_weights', 'varsity')")
_SINGLE_PLANNED_WHERE = text("type = 'shooting'")

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False) # stored lower-cased
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    training_days = relationship("TrainingDay", back_populates="user", cascade="all, delete-orphan")

class TrainingDay(Base):
    __tablename__ = "training_days"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_training_day_user_date"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    date = Column(Date, index=True, nullable=False)
    is_game_day = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="training_days")
    planned_activities = relationship(
        "PlannedActivity",
        back_populates="training_day",
        cascade="all, delete-orphan",
        order_by="PlannedActivity.id",
    )
    actual_activities = relationship(
        "ActualActivity",
        back_populates="training_day",
        cascade="all, delete-orphan",
        order_by="ActualActivity.id",
    )

class PlannedActivity(Base):
    __tablename__ = "planned_activities"
    __table_args__ = (
        Index(
            "uq_planned_shooting_per_day",
            "training_day_id",
            unique=True,
            sqlite_where=_SINGLE_PLANNED_WHERE,
            postgresql_where=_SINGLE_PLANNED_WHERE,
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    training_day_id = Column(Integer, ForeignKey("training_days.id", ondelete="CASCADE"), index=True, nullable=False)
    type = Column(String, index=True, nullable=False) # shooting, pickup, custom
    planned_time = Column(String(5), nullable=False) # HH:MM
    location = Column(String, nullable=True) # pickup only
    name = Column(String, nullable=True) # custom only

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    training_day = relationship("TrainingDay", back_populates="planned_activities")

class ActualActivity(Base):
    __tablename__ = "actual_activities"
    __table_args__ = (
        Index(
            "uq_actual_single_slot_per_day",
            "training_day_id",
            "type",
            unique=True,
            sqlite_where=_SINGLE_ACTUAL_WHERE,
            postgresql_where=_SINGLE_ACTUAL_WHERE,
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    training_day_id = Column(Integer, ForeignKey("training_days.id", ondelete="CASCADE"), index=True, nullable=False)
    type = Column(String, index=True, nullable=False) # shooting, pickup, custom, coach_skills, coach_weights, varsity
    completed_at = Column(String(5), nullable=True) # HH:MM
    shooting_makes = Column(Integer, nullable=True) # shooting only

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    training_day = relationship("TrainingDay", back_populates="actual_activities")
