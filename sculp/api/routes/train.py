"""
Train page: the user's folders with their routines.

Every folder with notes gets an auto-saving notes form. The page script
posts it in the background once typing stops for ``forms.debounce_ms``;
those requests carry the background-submit header and get a bare status
back instead of a redirect.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from sculp.adapters.sqlite.repos import SQLiteFolderRepo
from sculp.api.deps import get_folder_repo, get_rules, require_user
from sculp.api.forms import FORM_ERROR_KEY, Submission, parse_submission
from sculp.api.render import (
    BACKGROUND_SUBMIT_HEADER,
    app_page_layout,
    error_message,
    escape,
    hidden_input,
    input_field,
    render_document,
    submit_button,
    textarea_field,
)
from sculp.api.routes.app_home import render_app_nav
from sculp.components.training import (
    CreateFolderInput,
    DeleteFolderInput,
    FolderOutput,
    ListFoldersInput,
    RenameFolderInput,
    UpdateFolderNotesInput,
    run_create_folder,
    run_delete_folder,
    run_list_folders,
    run_rename_folder,
    run_update_folder_notes,
)
from sculp.config_routes import config_routes
from sculp.domain.entities import Folder, Routine, User
from sculp.domain.schemas import (
    FOLDER_SCHEMAS,
    CreateFolderSchema,
    DeleteFolderSchema,
    Intent,
    RenameFolderSchema,
    UpdateFolderNotesSchema,
)
from sculp.rules.models import Rules

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Rendering ---


def render_routine(routine: Routine) -> str:
    lines = "".join(
        f"<li>{len(item.sets)} x {escape(item.exercise.name)}</li>" for item in routine.exercises
    )
    notes = f'<p class="routine-notes">{escape(routine.notes)}</p>' if routine.notes else ""
    return (
        f'<li class="routine"><span class="routine-name">{escape(routine.name)}</span>'
        f"<ol>{lines}</ol>{notes}</li>"
    )


def render_notes_form(folder: Folder, errors: dict[str, str], debounce_ms: int) -> str:
    return f"""<form id="update-folder-notes-{folder.id}" class="update-folder-notes"
      method="post" action="{config_routes.train}" data-debounce-submit="{debounce_ms}">
    {hidden_input("intent", Intent.UPDATE_FOLDER_NOTES.value)}
    {hidden_input("id", folder.id)}
    {textarea_field(f"notes-{folder.id}", "Notes", folder.notes, errors.get("notes"),
                    hide_label=True, hide_error_message=True, auto_size=True)}
</form>"""


def render_folder(folder: Folder, submission: Submission | None, debounce_ms: int) -> str:
    errors: dict[str, str] = {}
    if submission is not None and submission.payload.get("id") == str(folder.id):
        errors = submission.error

    notes_form = render_notes_form(folder, errors, debounce_ms) if folder.notes else ""
    routines = "".join(render_routine(routine) for routine in folder.routines)
    form_error = errors.get(FORM_ERROR_KEY)
    return f"""<li class="folder">
<details open>
    <summary>{escape(folder.name)}</summary>
    {notes_form}
    <ul class="routines">{routines}</ul>
    <div class="folder-options">
        <form method="post" action="{config_routes.train}">
            {hidden_input("intent", Intent.RENAME_FOLDER.value)}
            {hidden_input("id", folder.id)}
            {input_field(f"name-{folder.id}", "Folder name", folder.name, errors.get("name"))}
            {submit_button("Rename")}
        </form>
        <form method="post" action="{config_routes.train}">
            {hidden_input("intent", Intent.DELETE_FOLDER.value)}
            {hidden_input("id", folder.id)}
            {submit_button("Delete")}
        </form>
        {error_message(form_error) if form_error else ""}
    </div>
</details>
</li>"""


def render_train_page(
    folders: list[Folder], debounce_ms: int, submission: Submission | None = None
) -> str:
    create_errors: dict[str, str] = {}
    if submission is not None and submission.payload.get("intent") == Intent.CREATE_FOLDER.value:
        create_errors = submission.error

    folder_items = "".join(render_folder(folder, submission, debounce_ms) for folder in folders)
    empty = "" if folders else "<p>You have no folders yet.</p>"
    content = f"""<h1>Train</h1>
{empty}
<ul class="folders">{folder_items}</ul>
<form method="post" action="{config_routes.train}" class="create-folder">
    {hidden_input("intent", Intent.CREATE_FOLDER.value)}
    {input_field("name", "New folder", None, create_errors.get("name"))}
    {submit_button("Create folder")}
</form>"""
    return render_document(render_app_nav() + app_page_layout(content), title="Train | Sculp")


# --- Loader ---


@router.get("/train", response_class=HTMLResponse)
def train_page(
    user: User = Depends(require_user),
    rules: Rules = Depends(get_rules),
    repo: SQLiteFolderRepo = Depends(get_folder_repo),
) -> str:
    folders = run_list_folders(ListFoldersInput(user=user), repo).folders
    return render_train_page(folders, rules.forms.debounce_ms)


# --- Action ---


def _normalize_items(items: list[tuple[str, str]]) -> list[tuple[str, str]]:
    # Per-folder inputs are named "<field>-<folder id>" to keep element ids unique
    normalized = []
    for name, value in items:
        base, _, suffix = name.partition("-")
        if suffix and base in ("notes", "name"):
            name = base
        normalized.append((name, value))
    return normalized


@router.post("/train", response_model=None)
async def train_action(
    request: Request,
    user: User = Depends(require_user),
    rules: Rules = Depends(get_rules),
    repo: SQLiteFolderRepo = Depends(get_folder_repo),
) -> Response:
    form = await request.form()
    items = _normalize_items([(k, v) for k, v in form.multi_items() if isinstance(v, str)])
    background = request.headers.get(BACKGROUND_SUBMIT_HEADER) == "1"

    raw_intent = form.get("intent")
    try:
        intent = Intent(raw_intent)
    except ValueError:
        raise HTTPException(status_code=400, detail="Unknown intent") from None

    submission = parse_submission(items, FOLDER_SCHEMAS[intent])
    if not submission.is_valid:
        if background:
            return Response(status_code=400)
        folders = run_list_folders(ListFoldersInput(user=user), repo).folders
        return HTMLResponse(
            render_train_page(folders, rules.forms.debounce_ms, submission), status_code=400
        )

    value = submission.value
    result: FolderOutput
    if isinstance(value, UpdateFolderNotesSchema):
        result = run_update_folder_notes(
            UpdateFolderNotesInput(user=user, folder_id=value.id, notes=value.notes), repo
        )
    elif isinstance(value, RenameFolderSchema):
        result = run_rename_folder(
            RenameFolderInput(user=user, folder_id=value.id, name=value.name), repo
        )
    elif isinstance(value, DeleteFolderSchema):
        result = run_delete_folder(DeleteFolderInput(user=user, folder_id=value.id), repo)
    elif isinstance(value, CreateFolderSchema):
        result = run_create_folder(CreateFolderInput(user=user, name=value.name), repo)
    else:
        raise HTTPException(status_code=400, detail="Unknown intent")

    if result.not_found:
        logger.info("Folder action %s by user %s hit a missing folder", intent.value, user.id)
        raise HTTPException(status_code=404, detail=result.error)

    if background:
        return Response(status_code=204)
    return RedirectResponse(url=config_routes.train, status_code=303)
