from dataclasses import dataclass, field
from uuid import UUID

from sculp.domain.entities import Exercise, Folder, Mesocycle, User
from sculp.domain.schemas import MesocycleDesignSchema, NewMesocycleSchema


@dataclass
class ListFoldersInput:
    user: User


@dataclass
class CreateFolderInput:
    user: User
    name: str


@dataclass
class UpdateFolderNotesInput:
    user: User
    folder_id: UUID
    notes: str | None


@dataclass
class RenameFolderInput:
    user: User
    folder_id: UUID
    name: str


@dataclass
class DeleteFolderInput:
    user: User
    folder_id: UUID


@dataclass
class FolderOutput:
    folder: Folder | None = None
    success: bool = False
    error: str | None = None
    not_found: bool = False


@dataclass
class FolderListOutput:
    folders: list[Folder] = field(default_factory=list)


@dataclass
class CreateMesocycleInput:
    user: User
    data: NewMesocycleSchema


@dataclass
class SaveDesignInput:
    user: User
    mesocycle_id: UUID
    design: MesocycleDesignSchema


@dataclass
class MesocycleOutput:
    mesocycle: Mesocycle | None = None
    exercises: list[Exercise] = field(default_factory=list)
    success: bool = False
    error: str | None = None
    not_found: bool = False
    # Form field name -> message, for references that only the store can check
    field_errors: dict[str, str] = field(default_factory=dict)
