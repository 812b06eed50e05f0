"""
Training component.

Folder and mesocycle operations behind the /app/train and
/app/mesocycles pages. Every operation is scoped to the acting user: a
folder or mesocycle owned by somebody else is reported as not found.
"""

from uuid import UUID

from sculp.components.auth.ports import TimePort
from sculp.domain.entities import (
    Folder,
    Mesocycle,
    MesocycleExercise,
    MesocycleSet,
    TrainingDay,
    User,
)
from sculp.domain.schemas import MesocycleDesignSchema

from .models import (
    CreateFolderInput,
    CreateMesocycleInput,
    DeleteFolderInput,
    FolderListOutput,
    FolderOutput,
    ListFoldersInput,
    MesocycleOutput,
    RenameFolderInput,
    SaveDesignInput,
    UpdateFolderNotesInput,
)
from .ports import ExerciseRepoPort, FolderRepoPort, MesocycleRepoPort

# --- Folders ---


def _owned_folder(repo: FolderRepoPort, user: User, folder_id: UUID) -> Folder | None:
    folder = repo.get_by_id(folder_id)
    if folder is None or folder.user_id != user.id:
        return None
    return folder


def run_list_folders(inp: ListFoldersInput, repo: FolderRepoPort) -> FolderListOutput:
    return FolderListOutput(folders=repo.list_by_user(inp.user.id))


def run_create_folder(inp: CreateFolderInput, repo: FolderRepoPort) -> FolderOutput:
    folder = Folder(
        user_id=inp.user.id,
        name=inp.name.strip(),
        position=repo.next_position(inp.user.id),
    )
    repo.save(folder)
    return FolderOutput(folder=folder, success=True)


def run_update_folder_notes(inp: UpdateFolderNotesInput, repo: FolderRepoPort) -> FolderOutput:
    folder = _owned_folder(repo, inp.user, inp.folder_id)
    if folder is None:
        return FolderOutput(success=False, error="Folder not found", not_found=True)

    folder.notes = inp.notes or None
    repo.save(folder)
    return FolderOutput(folder=folder, success=True)


def run_rename_folder(inp: RenameFolderInput, repo: FolderRepoPort) -> FolderOutput:
    folder = _owned_folder(repo, inp.user, inp.folder_id)
    if folder is None:
        return FolderOutput(success=False, error="Folder not found", not_found=True)

    folder.name = inp.name.strip()
    repo.save(folder)
    return FolderOutput(folder=folder, success=True)


def run_delete_folder(inp: DeleteFolderInput, repo: FolderRepoPort) -> FolderOutput:
    folder = _owned_folder(repo, inp.user, inp.folder_id)
    if folder is None:
        return FolderOutput(success=False, error="Folder not found", not_found=True)

    repo.delete(folder.id)
    return FolderOutput(folder=folder, success=True)


# --- Mesocycles ---


def _owned_mesocycle(repo: MesocycleRepoPort, user: User, mesocycle_id: UUID) -> Mesocycle | None:
    mesocycle = repo.get_by_id(mesocycle_id)
    if mesocycle is None or mesocycle.user_id != user.id:
        return None
    return mesocycle


def run_create_mesocycle(
    inp: CreateMesocycleInput, repo: MesocycleRepoPort, time: TimePort
) -> MesocycleOutput:
    now = time.now_utc()
    mesocycle = Mesocycle(
        user_id=inp.user.id,
        name=inp.data.name.strip(),
        goal=inp.data.goal,
        duration_in_weeks=inp.data.duration_in_weeks,
        training_days_per_week=inp.data.training_days_per_week,
        created_at=now,
        updated_at=now,
    )
    repo.save(mesocycle)
    return MesocycleOutput(mesocycle=mesocycle, success=True)


def run_load_design(
    user: User,
    mesocycle_id: UUID,
    repo: MesocycleRepoPort,
    exercise_repo: ExerciseRepoPort,
) -> MesocycleOutput:
    """Loader for the design page: the mesocycle plus the exercise catalog."""
    mesocycle = _owned_mesocycle(repo, user, mesocycle_id)
    if mesocycle is None:
        return MesocycleOutput(success=False, error="Mesocycle not found", not_found=True)

    return MesocycleOutput(
        mesocycle=mesocycle,
        exercises=exercise_repo.list_available(user.id),
        success=True,
    )


def _check_design(
    design: MesocycleDesignSchema, mesocycle: Mesocycle, available: set[UUID]
) -> dict[str, str]:
    errors: dict[str, str] = {}
    seen_days: set[int] = set()
    for day_index, day in enumerate(design.training_days):
        day_name = f"trainingDays[{day_index}]"
        if day.day_number > mesocycle.training_days_per_week:
            errors[f"{day_name}.dayNumber"] = (
                f"Day number must be at most {mesocycle.training_days_per_week}."
            )
        elif day.day_number in seen_days:
            errors[f"{day_name}.dayNumber"] = "Each training day can only appear once."
        seen_days.add(day.day_number)

        for exercise_index, exercise in enumerate(day.exercises):
            name = f"{day_name}.exercises[{exercise_index}]"
            if exercise.id not in available:
                errors[f"{name}.id"] = "Exercise is not valid."
            if exercise.day_number != day.day_number:
                errors[f"{name}.dayNumber"] = "Day number is not valid."
    return errors


def run_save_design(
    inp: SaveDesignInput,
    repo: MesocycleRepoPort,
    exercise_repo: ExerciseRepoPort,
    time: TimePort,
) -> MesocycleOutput:
    mesocycle = _owned_mesocycle(repo, inp.user, inp.mesocycle_id)
    if mesocycle is None:
        return MesocycleOutput(success=False, error="Mesocycle not found", not_found=True)

    exercises = exercise_repo.list_available(inp.user.id)
    field_errors = _check_design(inp.design, mesocycle, {e.id for e in exercises})
    if field_errors:
        return MesocycleOutput(
            mesocycle=mesocycle,
            exercises=exercises,
            success=False,
            error="Design is not valid",
            field_errors=field_errors,
        )

    days: list[TrainingDay] = []
    for day in sorted(inp.design.training_days, key=lambda d: d.day_number):
        days.append(
            TrainingDay(
                day_number=day.day_number,
                exercises=[
                    MesocycleExercise(
                        exercise_id=exercise.id,
                        notes=exercise.notes,
                        sets=[
                            MesocycleSet(
                                rir=s.rir,
                                rep_range_lower=s.bounds[0],
                                rep_range_upper=s.bounds[1],
                                weight=s.weight,
                            )
                            for s in exercise.sets
                        ],
                    )
                    for exercise in day.exercises
                ],
            )
        )

    repo.replace_training_days(mesocycle.id, days)
    mesocycle.training_days = days
    mesocycle.updated_at = time.now_utc()
    repo.save(mesocycle)
    return MesocycleOutput(mesocycle=mesocycle, exercises=exercises, success=True)


def run_list_mesocycles(user: User, repo: MesocycleRepoPort) -> list[Mesocycle]:
    return repo.list_by_user(user.id)
