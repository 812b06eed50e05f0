"""
Mesocycle pages: list, create a draft, design its training days.

The design form works without client script: adding or removing an
exercise or a set is a ``list/...`` intent that the server applies to the
submitted payload before re-rendering the form.
"""

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from sculp.adapters.clock import SystemClock
from sculp.adapters.sqlite.repos import SQLiteExerciseRepo, SQLiteMesocycleRepo
from sculp.api.deps import get_clock, get_exercise_repo, get_mesocycle_repo, require_user
from sculp.api.forms import FORM_ERROR_KEY, Submission, parse_submission
from sculp.api.render import (
    app_page_layout,
    error_message,
    escape,
    hidden_input,
    input_field,
    intent_button,
    render_document,
    select_field,
    submit_button,
    textarea_field,
)
from sculp.api.routes.app_home import render_app_nav
from sculp.components.training import (
    CreateMesocycleInput,
    SaveDesignInput,
    run_create_mesocycle,
    run_list_mesocycles,
    run_load_design,
    run_save_design,
)
from sculp.config_routes import config_routes
from sculp.domain.entities import Exercise, Mesocycle, User
from sculp.domain.schemas import (
    DEFAULT_SET_VALUE,
    MAX_SETS_PER_EXERCISE,
    MesocycleDesignSchema,
    NewMesocycleSchema,
)

logger = logging.getLogger(__name__)

router = APIRouter()

LIST_DEFAULTS: dict[str, dict[str, Any]] = {
    "sets": DEFAULT_SET_VALUE,
    "exercises": {"sets": [DEFAULT_SET_VALUE]},
}


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


# --- List ---


def render_mesocycle_item(mesocycle: Mesocycle) -> str:
    goal = f"<p>{escape(mesocycle.goal)}</p>" if mesocycle.goal else ""
    return f"""<li class="mesocycle">
    <a href="{config_routes.mesocycles.design(mesocycle.id)}">{escape(mesocycle.name)}</a>
    <p>{mesocycle.duration_in_weeks} weeks, {mesocycle.training_days_per_week} days per week</p>
    {goal}
</li>"""


@router.get("/mesocycles", response_class=HTMLResponse)
def mesocycles_page(
    user: User = Depends(require_user),
    repo: SQLiteMesocycleRepo = Depends(get_mesocycle_repo),
) -> str:
    mesocycles = run_list_mesocycles(user, repo)
    items = "".join(render_mesocycle_item(m) for m in mesocycles)
    empty = "" if mesocycles else "<p>You have not planned any mesocycles yet.</p>"
    content = f"""<h1>Mesocycles</h1>
{empty}
<ul class="mesocycles">{items}</ul>
<a href="{config_routes.mesocycles.new}">Plan a new mesocycle</a>"""
    return render_document(
        render_app_nav() + app_page_layout(content), title="Mesocycles | Sculp"
    )


# --- New ---


def render_new_page(submission: Submission | None = None) -> str:
    payload = submission.payload if submission else {}
    errors = submission.error if submission else {}
    weeks = [(str(n), f"{n} {'week' if n == 1 else 'weeks'}") for n in range(1, 17)]
    days = [(str(n), f"{n} {'day' if n == 1 else 'days'} per week") for n in range(1, 7)]
    form_error = errors.get(FORM_ERROR_KEY)
    content = f"""<h1>Plan a new mesocycle</h1>
<form method="post" action="{config_routes.mesocycles.new}" novalidate>
    {input_field("name", "Name", payload.get("name"), errors.get("name"),
                 placeholder="My New Mesocycle")}
    {select_field("durationInWeeks", "Duration", weeks, payload.get("durationInWeeks"),
                  errors.get("durationInWeeks"))}
    {select_field("trainingDaysPerWeek", "Days per week", days,
                  payload.get("trainingDaysPerWeek"), errors.get("trainingDaysPerWeek"))}
    {textarea_field("goal", "Goal (Optional)", payload.get("goal"), errors.get("goal"),
                    placeholder="Bring up lagging muscles...")}
    {error_message(form_error) if form_error else ""}
    {submit_button("Save and continue")}
</form>"""
    return render_document(
        render_app_nav() + app_page_layout(content), title="New mesocycle | Sculp"
    )


@router.get("/mesocycles/new", response_class=HTMLResponse)
def new_mesocycle_page(user: User = Depends(require_user)) -> str:
    return render_new_page()


@router.post("/mesocycles/new", response_model=None)
async def new_mesocycle_action(
    request: Request,
    user: User = Depends(require_user),
    repo: SQLiteMesocycleRepo = Depends(get_mesocycle_repo),
    clock: SystemClock = Depends(get_clock),
) -> Response:
    form = await request.form()
    submission = parse_submission(form.multi_items(), NewMesocycleSchema)
    if not submission.is_valid:
        return HTMLResponse(render_new_page(submission), status_code=400)

    result = run_create_mesocycle(
        CreateMesocycleInput(user=user, data=submission.value), repo, clock
    )
    assert result.mesocycle is not None
    logger.info("User %s created mesocycle %s", user.id, result.mesocycle.id)
    return RedirectResponse(
        url=config_routes.mesocycles.design(result.mesocycle.id), status_code=303
    )


# --- Design ---


def design_payload(mesocycle: Mesocycle) -> dict[str, Any]:
    """Form payload for a stored design; one entry per training day of the week."""
    stored = {day.day_number: day for day in mesocycle.training_days}
    days = []
    for day_number in range(1, mesocycle.training_days_per_week + 1):
        day = stored.get(day_number)
        exercises = []
        for exercise in day.exercises if day else []:
            exercises.append(
                {
                    "id": str(exercise.exercise_id),
                    "dayNumber": str(day_number),
                    "notes": exercise.notes or "",
                    "sets": [
                        {
                            "rir": str(s.rir),
                            "repRange": f"{s.rep_range_lower}-{s.rep_range_upper}",
                            "weight": "" if s.weight is None else f"{s.weight:g}",
                        }
                        for s in exercise.sets
                    ],
                }
            )
        days.append({"dayNumber": str(day_number), "exercises": exercises})
    return {"trainingDays": days}


def render_set_fieldset(
    name: str, set_item: dict[str, Any], index: int, errors: dict[str, str]
) -> str:
    set_name = f"{name}[{index}]"
    return f"""<li><fieldset class="set">
    <legend>Set {index + 1}</legend>
    {input_field(f"{set_name}.rir", "RIR", set_item.get("rir"), errors.get(f"{set_name}.rir"),
                 type="number")}
    {input_field(f"{set_name}.repRange", "Rep range", set_item.get("repRange"),
                 errors.get(f"{set_name}.repRange"))}
    {input_field(f"{set_name}.weight", "Weight", set_item.get("weight"),
                 errors.get(f"{set_name}.weight"), type="number")}
    {intent_button("Remove set", f"list/remove/{name}/{index}", "remove-set")}
</fieldset></li>"""


def render_exercise_fieldset(
    name: str,
    exercise: dict[str, Any],
    index: int,
    day_number: int,
    catalog: list[Exercise],
    errors: dict[str, str],
) -> str:
    exercise_name = f"{name}[{index}]"
    sets_name = f"{exercise_name}.sets"
    sets = [_as_dict(s) for s in _as_list(exercise.get("sets"))]
    set_items = "".join(render_set_fieldset(sets_name, s, i, errors) for i, s in enumerate(sets))
    sets_error = errors.get(sets_name)
    add_set = (
        intent_button("Add set", f"list/append/{sets_name}", "add-set")
        if len(sets) < MAX_SETS_PER_EXERCISE
        else ""
    )
    options = [(str(e.id), e.name) for e in catalog]
    return f"""<li><fieldset class="exercise">
    {hidden_input(f"{exercise_name}.dayNumber", day_number)}
    {intent_button("Delete exercise", f"list/remove/{name}/{index}", "remove-exercise")}
    {select_field(f"{exercise_name}.id", f"Day {day_number} exercise {index + 1}", options,
                  exercise.get("id"), errors.get(f"{exercise_name}.id"))}
    <ol class="sets">{set_items}</ol>
    {error_message(sets_error, f"{sets_name}-error") if sets_error else ""}
    {add_set}
    {textarea_field(f"{exercise_name}.notes", "Notes (Optional)", exercise.get("notes"),
                    errors.get(f"{exercise_name}.notes"), rows=4,
                    placeholder="Seat on 4th setting, handles on 3rd setting...")}
</fieldset></li>"""


def render_design_page(
    mesocycle: Mesocycle,
    catalog: list[Exercise],
    payload: dict[str, Any],
    errors: dict[str, str] | None = None,
) -> str:
    errors = errors or {}
    day_sections = []
    for day_index, day in enumerate(_as_list(payload.get("trainingDays"))):
        day = _as_dict(day)
        day_name = f"trainingDays[{day_index}]"
        try:
            day_number = int(day.get("dayNumber", day_index + 1))
        except (TypeError, ValueError):
            day_number = day_index + 1
        exercises_name = f"{day_name}.exercises"
        exercises = [_as_dict(e) for e in _as_list(day.get("exercises"))]
        exercise_items = "".join(
            render_exercise_fieldset(exercises_name, exercise, i, day_number, catalog, errors)
            for i, exercise in enumerate(exercises)
        )
        day_error = errors.get(exercises_name) or errors.get(f"{day_name}.dayNumber")
        day_sections.append(
            f"""<section class="training-day">
    <h2>Day {day_number}</h2>
    {hidden_input(f"{day_name}.dayNumber", day_number)}
    <ol class="exercises">{exercise_items}</ol>
    {error_message(day_error, f"{exercises_name}-error") if day_error else ""}
    {intent_button("Add exercise", f"list/append/{exercises_name}", "add-exercise")}
</section>"""
        )

    form_error = errors.get(FORM_ERROR_KEY) or errors.get("trainingDays")
    content = f"""<h1>{escape(mesocycle.name)}</h1>
<p>{mesocycle.duration_in_weeks} weeks, {mesocycle.training_days_per_week} days per week</p>
<form method="post" action="{config_routes.mesocycles.design(mesocycle.id)}" novalidate>
    {"".join(day_sections)}
    {error_message(form_error) if form_error else ""}
    {submit_button("Save mesocycle")}
</form>"""
    return render_document(
        render_app_nav() + app_page_layout(content), title=f"{mesocycle.name} | Sculp"
    )


@router.get("/mesocycles/new/design/{mesocycle_id}", response_class=HTMLResponse)
def design_page(
    mesocycle_id: UUID,
    user: User = Depends(require_user),
    repo: SQLiteMesocycleRepo = Depends(get_mesocycle_repo),
    exercise_repo: SQLiteExerciseRepo = Depends(get_exercise_repo),
) -> str:
    result = run_load_design(user, mesocycle_id, repo, exercise_repo)
    if result.not_found or result.mesocycle is None:
        raise HTTPException(status_code=404, detail=result.error)
    payload = design_payload(result.mesocycle)
    return render_design_page(result.mesocycle, result.exercises, payload)


@router.post("/mesocycles/new/design/{mesocycle_id}", response_model=None)
async def design_action(
    mesocycle_id: UUID,
    request: Request,
    user: User = Depends(require_user),
    repo: SQLiteMesocycleRepo = Depends(get_mesocycle_repo),
    exercise_repo: SQLiteExerciseRepo = Depends(get_exercise_repo),
    clock: SystemClock = Depends(get_clock),
) -> Response:
    loaded = run_load_design(user, mesocycle_id, repo, exercise_repo)
    if loaded.not_found or loaded.mesocycle is None:
        raise HTTPException(status_code=404, detail=loaded.error)

    form = await request.form()
    submission = parse_submission(form.multi_items(), MesocycleDesignSchema, LIST_DEFAULTS)
    if submission.intent.startswith("list/"):
        status_code = 400 if submission.error else 200
        page = render_design_page(
            loaded.mesocycle, loaded.exercises, submission.payload, submission.error
        )
        return HTMLResponse(page, status_code=status_code)

    if not submission.is_valid:
        page = render_design_page(
            loaded.mesocycle, loaded.exercises, submission.payload, submission.error
        )
        return HTMLResponse(page, status_code=400)

    result = run_save_design(
        SaveDesignInput(user=user, mesocycle_id=mesocycle_id, design=submission.value),
        repo,
        exercise_repo,
        clock,
    )
    if result.not_found:
        raise HTTPException(status_code=404, detail=result.error)
    if not result.success:
        page = render_design_page(
            loaded.mesocycle, loaded.exercises, submission.payload, result.field_errors
        )
        return HTMLResponse(page, status_code=400)

    logger.info("User %s saved design of mesocycle %s", user.id, mesocycle_id)
    return RedirectResponse(url=config_routes.mesocycles.list, status_code=303)
