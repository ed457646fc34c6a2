from enum import Enum
from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional, List

TIME_OF_DAY_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class PlannedActivityType(str, Enum):
    shooting = "shooting"
    pickup = "pickup"
    custom = "custom"


class ActualActivityType(str, Enum):
    shooting = "shooting"
    pickup = "pickup"
    custom = "custom"
    coach_skills = "coach_skills"
    coach_weights = "coach_weights"
    varsity = "varsity"


FIXED_ACTUAL_TYPES = frozenset(
    {ActualActivityType.coach_skills, ActualActivityType.coach_weights, ActualActivityType.varsity}
)

# --- Auth Schemas ---
class RegisterRequest(BaseModel):
    email: str = ""
    password: str = ""
    name: str = ""

class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""

class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserResponse

class MeResponse(BaseModel):
    user: UserResponse

# --- Day View Schemas ---
class PlannedShootingSlot(BaseModel):
    id: int
    time: str

class PlannedPickupSlot(BaseModel):
    id: int
    time: str
    location: Optional[str] = None

class PlannedCustomSlot(BaseModel):
    id: int
    time: str
    name: Optional[str] = None

class PlannedDayView(BaseModel):
    shooting: Optional[PlannedShootingSlot] = None
    pickup_runs: List[PlannedPickupSlot] = []
    custom: List[PlannedCustomSlot] = []

class CompletedActivity(BaseModel):
    id: int
    completed_at: Optional[str] = None

class ActualDayView(BaseModel):
    shooting_makes: int = 0
    shooting_completed_at: Optional[str] = None
    coach_skills: bool = False
    coach_weights: bool = False
    varsity: bool = False
    pickup_runs: List[CompletedActivity] = []
    custom: List[CompletedActivity] = []

class TrainingDayResponse(BaseModel):
    id: int
    date: date
    is_game_day: bool
    planned: PlannedDayView
    actual: ActualDayView

# --- Mutation Schemas ---
class TrainingDayUpdate(BaseModel):
    is_game_day: Optional[bool] = None

class PlannedActivityCreate(BaseModel):
    type: PlannedActivityType
    time: str = Field(..., pattern=TIME_OF_DAY_PATTERN, description="HH:MM, 24-hour")
    location: Optional[str] = None
    name: Optional[str] = None

class ActualActivityCreate(BaseModel):
    type: ActualActivityType
    completed_at: Optional[str] = Field(None, pattern=TIME_OF_DAY_PATTERN)
    shooting_makes: Optional[int] = Field(None, ge=0)

class ActualActivityUpdate(BaseModel):
    completed_at: Optional[str] = Field(None, pattern=TIME_OF_DAY_PATTERN)
    shooting_makes: Optional[int] = Field(None, ge=0)

class ShootingUpdate(BaseModel):
    makes: int = Field(..., ge=0, strict=True)
    completed_at: Optional[str] = Field(None, pattern=TIME_OF_DAY_PATTERN)

# --- Stats Schemas ---
class StreakResponse(BaseModel):
    streak: int

class SummaryResponse(BaseModel):
    streak: int
    total_makes: int = 0
    total_sessions: int = 0
    perfect_days: int = 0
    shooting_days: int = 0

class DailyStat(BaseModel):
    date: date
    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    makes: int
    completed: bool

class WeeklyStatsResponse(BaseModel):
    daily_stats: List[DailyStat] = []
    completion_percentage: int = 0
    consistency_score: int = 0
    total_makes: int = 0

class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
