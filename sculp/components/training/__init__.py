"""
Training component - folders, routines and mesocycle design.
"""

from .component import (
    run_create_folder,
    run_create_mesocycle,
    run_delete_folder,
    run_list_folders,
    run_list_mesocycles,
    run_load_design,
    run_rename_folder,
    run_save_design,
    run_update_folder_notes,
)
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

__all__ = [
    "run_create_folder",
    "run_create_mesocycle",
    "run_delete_folder",
    "run_list_folders",
    "run_list_mesocycles",
    "run_load_design",
    "run_rename_folder",
    "run_save_design",
    "run_update_folder_notes",
    "CreateFolderInput",
    "CreateMesocycleInput",
    "DeleteFolderInput",
    "FolderListOutput",
    "FolderOutput",
    "ListFoldersInput",
    "MesocycleOutput",
    "RenameFolderInput",
    "SaveDesignInput",
    "UpdateFolderNotesInput",
    "ExerciseRepoPort",
    "FolderRepoPort",
    "MesocycleRepoPort",
]
