"""
Form validation schemas.

Each schema is a pydantic model validated from the payload of a form
submission (see sculp.api.forms). Field aliases are the form field names, so
validation error locations map straight back onto form fields.

``error_messages`` maps a form field name and a pydantic error type to the
message shown next to the field. Errors with no entry keep pydantic's message.
"""

from enum import Enum
from typing import ClassVar, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
REP_RANGE_PATTERN = r"^\d+-\d+$"

NOTES_MAX_LENGTH = 1024
NAME_MAX_LENGTH = 50
MAX_SETS_PER_EXERCISE = 10
MAX_REPS = 100
MAX_RIR = 5

DEFAULT_SET_VALUE = {"rir": "0", "repRange": "5-8", "weight": ""}


class FormSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    error_messages: ClassVar[dict[str, dict[str, str]]] = {}

    @classmethod
    def message_for(cls, field: str, error_type: str, default: str) -> str:
        return cls.error_messages.get(field, {}).get(error_type, default)


_NOTES_MESSAGES = {
    "string_type": "Notes are not valid.",
    "string_too_long": f"Notes must be at most {NOTES_MAX_LENGTH} characters long.",
}

_NAME_MESSAGES = {
    "missing": "Name is required.",
    "string_type": "Name is not valid.",
    "string_too_short": "Name is required.",
    "string_too_long": f"Name must be at most {NAME_MAX_LENGTH} characters long.",
}


# --- Auth ---


class CredentialsSchema(FormSchema):
    email: str = Field(min_length=1, max_length=254, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=8, max_length=128)

    error_messages = {
        "email": {
            "missing": "Email is required.",
            "string_type": "Email is not valid.",
            "string_too_short": "Email is required.",
            "string_too_long": "Email must be at most 254 characters long.",
            "string_pattern_mismatch": "Email is not valid.",
        },
        "password": {
            "missing": "Password is required.",
            "string_type": "Password is not valid.",
            "string_too_short": "Password must be at least 8 characters long.",
            "string_too_long": "Password must be at most 128 characters long.",
        },
    }

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class SignInSchema(CredentialsSchema):
    pass


class GetStartedSchema(CredentialsSchema):
    pass


# --- Train: folders ---


class Intent(str, Enum):
    CREATE_FOLDER = "create_folder"
    UPDATE_FOLDER_NOTES = "update_folder_notes"
    RENAME_FOLDER = "rename_folder"
    DELETE_FOLDER = "delete_folder"


_FOLDER_ID_MESSAGES = {
    "missing": "Folder is required.",
    "uuid_parsing": "Folder is not valid.",
    "uuid_type": "Folder is not valid.",
}


class UpdateFolderNotesSchema(FormSchema):
    intent: Literal["update_folder_notes"]
    id: UUID
    notes: str | None = Field(default=None, max_length=NOTES_MAX_LENGTH)

    error_messages = {"id": _FOLDER_ID_MESSAGES, "notes": _NOTES_MESSAGES}


class RenameFolderSchema(FormSchema):
    intent: Literal["rename_folder"]
    id: UUID
    name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)

    error_messages = {"id": _FOLDER_ID_MESSAGES, "name": _NAME_MESSAGES}


class DeleteFolderSchema(FormSchema):
    intent: Literal["delete_folder"]
    id: UUID

    error_messages = {"id": _FOLDER_ID_MESSAGES}


class CreateFolderSchema(FormSchema):
    intent: Literal["create_folder"]
    name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)

    error_messages = {"name": _NAME_MESSAGES}


FOLDER_SCHEMAS: dict[Intent, type[FormSchema]] = {
    Intent.CREATE_FOLDER: CreateFolderSchema,
    Intent.UPDATE_FOLDER_NOTES: UpdateFolderNotesSchema,
    Intent.RENAME_FOLDER: RenameFolderSchema,
    Intent.DELETE_FOLDER: DeleteFolderSchema,
}


# --- Mesocycles ---


class NewMesocycleSchema(FormSchema):
    name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    duration_in_weeks: int = Field(alias="durationInWeeks", ge=1, le=16)
    training_days_per_week: int = Field(alias="trainingDaysPerWeek", ge=1, le=6)
    goal: str | None = Field(default=None, max_length=NOTES_MAX_LENGTH)

    error_messages = {
        "name": _NAME_MESSAGES,
        "durationInWeeks": {
            "missing": "Duration is required.",
            "int_parsing": "Duration must be a whole number of weeks.",
            "int_from_float": "Duration must be a whole number of weeks.",
            "greater_than_equal": "Duration must be at least 1 week.",
            "less_than_equal": "Duration must be at most 16 weeks.",
        },
        "trainingDaysPerWeek": {
            "missing": "Training days per week is required.",
            "int_parsing": "Training days per week must be a whole number.",
            "int_from_float": "Training days per week must be a whole number.",
            "greater_than_equal": "You must train at least 1 day per week.",
            "less_than_equal": "You can train at most 6 days per week.",
        },
        "goal": {
            "string_too_long": f"Goal must be at most {NOTES_MAX_LENGTH} characters long.",
        },
    }


class SetSchema(FormSchema):
    rir: int = Field(ge=0, le=MAX_RIR)
    rep_range: str = Field(alias="repRange", pattern=REP_RANGE_PATTERN)
    weight: float | None = Field(default=None, ge=0)

    @field_validator("rep_range")
    @classmethod
    def check_rep_range(cls, v: str) -> str:
        lower, upper = (int(part) for part in v.split("-"))
        if lower < 1:
            raise PydanticCustomError("rep_range_lower", "Rep range must start at 1 or more.")
        if lower > upper:
            raise PydanticCustomError(
                "rep_range_order", "Rep range lower bound must not exceed the upper bound."
            )
        if upper > MAX_REPS:
            raise PydanticCustomError(
                "rep_range_upper", f"Rep range must be at most {MAX_REPS} reps."
            )
        return v

    @property
    def bounds(self) -> tuple[int, int]:
        lower, upper = self.rep_range.split("-")
        return int(lower), int(upper)


class ExerciseDesignSchema(FormSchema):
    id: UUID
    day_number: int = Field(alias="dayNumber", ge=1)
    notes: str | None = Field(default=None, max_length=NOTES_MAX_LENGTH)
    sets: list[SetSchema] = Field(min_length=1, max_length=MAX_SETS_PER_EXERCISE)


class TrainingDaySchema(FormSchema):
    day_number: int = Field(alias="dayNumber", ge=1)
    exercises: list[ExerciseDesignSchema] = Field(min_length=1)


class MesocycleDesignSchema(FormSchema):
    training_days: list[TrainingDaySchema] = Field(alias="trainingDays", min_length=1)

    error_messages = {
        "trainingDays": {
            "missing": "You must have at least one training day.",
            "too_short": "You must have at least one training day.",
        },
        "exercises": {
            "missing": "Each training day must have at least one exercise.",
            "too_short": "Each training day must have at least one exercise.",
        },
        "id": {
            "missing": "Exercise is required.",
            "uuid_parsing": "Exercise is not valid.",
            "uuid_type": "Exercise is not valid.",
        },
        "dayNumber": {
            "missing": "Day number is required.",
            "int_parsing": "Day number is not valid.",
            "greater_than_equal": "Day number is not valid.",
        },
        "notes": _NOTES_MESSAGES,
        "sets": {
            "missing": "Each exercise must have at least one set.",
            "too_short": "Each exercise must have at least one set.",
            "too_long": f"Each exercise can have at most {MAX_SETS_PER_EXERCISE} sets.",
        },
        "rir": {
            "missing": "RIR is required.",
            "int_parsing": "RIR must be a whole number.",
            "int_from_float": "RIR must be a whole number.",
            "greater_than_equal": "RIR must be at least 0.",
            "less_than_equal": f"RIR must be at most {MAX_RIR}.",
        },
        "repRange": {
            "missing": "Rep range is required.",
            "string_pattern_mismatch": "Rep range must look like 5-8.",
        },
        "weight": {
            "float_parsing": "Weight must be a number.",
            "greater_than_equal": "Weight must be at least 0.",
        },
    }
