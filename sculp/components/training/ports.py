from typing import Protocol
from uuid import UUID

from sculp.domain.entities import Exercise, Folder, Mesocycle, TrainingDay


class FolderRepoPort(Protocol):
    def list_by_user(self, user_id: UUID) -> list[Folder]:
        """Folders ordered by position, routines and their exercises/sets loaded."""
        ...

    def get_by_id(self, folder_id: UUID) -> Folder | None: ...
    def save(self, folder: Folder) -> Folder: ...
    def delete(self, folder_id: UUID) -> None: ...
    def next_position(self, user_id: UUID) -> int: ...


class ExerciseRepoPort(Protocol):
    def list_available(self, user_id: UUID) -> list[Exercise]:
        """Shared catalog plus the user's own exercises, ordered by name."""
        ...

    def get_by_id(self, exercise_id: UUID) -> Exercise | None: ...
    def save(self, exercise: Exercise) -> Exercise: ...


class MesocycleRepoPort(Protocol):
    def get_by_id(self, mesocycle_id: UUID) -> Mesocycle | None: ...
    def list_by_user(self, user_id: UUID) -> list[Mesocycle]: ...
    def save(self, mesocycle: Mesocycle) -> Mesocycle: ...
    def replace_training_days(self, mesocycle_id: UUID, days: list[TrainingDay]) -> None: ...
