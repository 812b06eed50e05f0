from __future__ import annotations

from uuid import uuid4

import pytest
from pydantic import ValidationError

from sculp.api.forms import collect_errors
from sculp.domain.schemas import (
    FOLDER_SCHEMAS,
    CreateFolderSchema,
    GetStartedSchema,
    Intent,
    MesocycleDesignSchema,
    NewMesocycleSchema,
    SetSchema,
    SignInSchema,
)


def errors_for(schema, data) -> dict[str, str]:
    with pytest.raises(ValidationError) as exc_info:
        schema.model_validate(data)
    return collect_errors(exc_info.value, schema)


def design_data(sets: list[dict[str, str]] | None = None) -> dict:
    return {
        "trainingDays": [
            {
                "dayNumber": "1",
                "exercises": [
                    {
                        "id": str(uuid4()),
                        "dayNumber": "1",
                        "sets": sets if sets is not None else [{"rir": "1", "repRange": "5-8"}],
                    }
                ],
            }
        ]
    }


class TestCredentials:
    @pytest.mark.parametrize(
        ("email", "message"),
        [
            ("not-an-email", "Email is not valid."),
            ("a" * 250 + "@b.co", "Email must be at most 254 characters long."),
        ],
    )
    def test_email_messages(self, email: str, message: str) -> None:
        errors = errors_for(SignInSchema, {"email": email, "password": "long-enough"})
        assert errors == {"email": message}

    def test_password_too_long(self) -> None:
        errors = errors_for(SignInSchema, {"email": "a@b.co", "password": "x" * 129})
        assert errors == {"password": "Password must be at most 128 characters long."}

    def test_password_not_a_string(self) -> None:
        errors = errors_for(SignInSchema, {"email": "a@b.co", "password": 12345678})
        assert errors == {"password": "Password is not valid."}

    def test_email_is_normalized(self) -> None:
        value = GetStartedSchema.model_validate(
            {"email": "Lifter@Example.COM", "password": "12345678"}
        )
        assert value.email == "lifter@example.com"


class TestFolderSchemas:
    def test_schema_per_intent(self) -> None:
        assert set(FOLDER_SCHEMAS) == set(Intent)
        assert FOLDER_SCHEMAS[Intent.CREATE_FOLDER] is CreateFolderSchema

    def test_name_required(self) -> None:
        errors = errors_for(CreateFolderSchema, {"intent": "create_folder"})
        assert errors == {"name": "Name is required."}

    def test_name_too_long(self) -> None:
        errors = errors_for(CreateFolderSchema, {"intent": "create_folder", "name": "x" * 51})
        assert errors == {"name": "Name must be at most 50 characters long."}


class TestNewMesocycle:
    def test_valid(self) -> None:
        value = NewMesocycleSchema.model_validate(
            {"name": "Hypertrophy", "durationInWeeks": "6", "trainingDaysPerWeek": "4"}
        )
        assert value.duration_in_weeks == 6
        assert value.training_days_per_week == 4
        assert value.goal is None

    def test_bounds(self) -> None:
        errors = errors_for(
            NewMesocycleSchema,
            {"name": "Block", "durationInWeeks": "17", "trainingDaysPerWeek": "0"},
        )
        assert errors == {
            "durationInWeeks": "Duration must be at most 16 weeks.",
            "trainingDaysPerWeek": "You must train at least 1 day per week.",
        }


class TestSets:
    def test_rep_range_bounds(self) -> None:
        value = SetSchema.model_validate({"rir": "2", "repRange": "8-12", "weight": "42.5"})
        assert value.bounds == (8, 12)
        assert value.weight == 42.5

    @pytest.mark.parametrize(
        ("rep_range", "message"),
        [
            ("8", "Rep range must look like 5-8."),
            ("0-5", "Rep range must start at 1 or more."),
            ("10-8", "Rep range lower bound must not exceed the upper bound."),
            ("5-101", "Rep range must be at most 100 reps."),
        ],
    )
    def test_rep_range_errors(self, rep_range: str, message: str) -> None:
        data = design_data([{"rir": "0", "repRange": rep_range}])
        errors = errors_for(MesocycleDesignSchema, data)
        assert errors == {"trainingDays[0].exercises[0].sets[0].repRange": message}

    def test_negative_weight(self) -> None:
        errors = errors_for(
            MesocycleDesignSchema, design_data([{"rir": "0", "repRange": "5-8", "weight": "-1"}])
        )
        assert errors == {
            "trainingDays[0].exercises[0].sets[0].weight": "Weight must be at least 0."
        }


class TestDesign:
    def test_at_least_one_set(self) -> None:
        errors = errors_for(MesocycleDesignSchema, design_data([]))
        assert errors == {
            "trainingDays[0].exercises[0].sets": "Each exercise must have at least one set."
        }

    def test_at_most_ten_sets(self) -> None:
        sets = [{"rir": "0", "repRange": "5-8"}] * 11
        errors = errors_for(MesocycleDesignSchema, design_data(sets))
        assert errors == {
            "trainingDays[0].exercises[0].sets": "Each exercise can have at most 10 sets."
        }

    def test_at_least_one_training_day(self) -> None:
        errors = errors_for(MesocycleDesignSchema, {})
        assert errors == {"trainingDays": "You must have at least one training day."}

    def test_valid_design(self) -> None:
        design = MesocycleDesignSchema.model_validate(design_data())
        assert design.training_days[0].exercises[0].sets[0].bounds == (5, 8)
