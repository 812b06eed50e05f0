from datetime import UTC, datetime
from typing import Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

# --- Enums / Literals ---
SubscriptionStatus = Literal[
    "trialing", "active", "past_due", "canceled", "incomplete", "unpaid"
]


def _utcnow() -> datetime:
    return datetime.now(UTC)


# --- User & Auth ---


class Subscription(BaseModel):
    stripe_subscription_id: str
    status: SubscriptionStatus = "trialing"
    current_period_end: datetime | None = None
    updated_at: datetime = Field(default_factory=_utcnow)


class User(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    email: str
    password_hash: str
    stripe_customer_id: str | None = None
    subscription: Subscription | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class Session(BaseModel):
    id: str
    user_id: UUID
    token_hash: str
    expires_at: datetime
    created_at: datetime = Field(default_factory=_utcnow)


# --- Exercise catalog ---


class Exercise(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    # None means the exercise is part of the shared catalog
    user_id: UUID | None = None


# --- Folders & Routines ---


class RoutineSet(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    rep_range_lower: int
    rep_range_upper: int
    rir: int = 0
    weight: float | None = None


class RoutineExercise(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    exercise: Exercise
    notes: str | None = None
    sets: list[RoutineSet] = Field(default_factory=list)


class Routine(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    folder_id: UUID
    user_id: UUID
    name: str
    notes: str | None = None
    exercises: list[RoutineExercise] = Field(default_factory=list)


class Folder(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    name: str
    notes: str | None = None
    position: int = 0
    routines: list[Routine] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)


# --- Mesocycles ---


class MesocycleSet(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    rir: int = 0
    rep_range_lower: int
    rep_range_upper: int
    weight: float | None = None


class MesocycleExercise(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    exercise_id: UUID
    notes: str | None = None
    sets: list[MesocycleSet] = Field(default_factory=list)


class TrainingDay(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    day_number: int
    exercises: list[MesocycleExercise] = Field(default_factory=list)


class Mesocycle(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    name: str
    goal: str | None = None
    duration_in_weeks: int
    training_days_per_week: int
    training_days: list[TrainingDay] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
