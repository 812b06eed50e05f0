"""
Form submission parsing.

Turns the flat key/value pairs of an HTML form into a nested payload,
resolves the submission intent and validates the payload against a
FormSchema. The result is a Submission that routes either act on
(``value`` is set) or hand back to the page so it can re-render the form
with the last submitted payload and per-field errors.

Field names use path syntax: ``trainingDays[0].exercises[1].notes``.

Intents (``__intent__`` field):
- ``submit`` (default): validate and, when valid, expose ``value``.
- ``validate/<name>``: validate and only report errors for ``<name>``.
- ``list/append/<name>``: append the schema's default item to a list field.
- ``list/remove/<name>/<index>``: remove an item from a list field.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from sculp.domain.schemas import FormSchema

INTENT_FIELD = "__intent__"
SUBMIT_INTENT = "submit"
FORM_ERROR_KEY = "form"

_SEGMENT_RE = re.compile(r"([^.\[\]]+)|\[(\d+)\]")


@dataclass
class Submission:
    intent: str
    payload: dict[str, Any]
    error: dict[str, str] = field(default_factory=dict)
    value: Any = None

    @property
    def is_valid(self) -> bool:
        return self.value is not None and self.intent == SUBMIT_INTENT


# --- Names ---


def parse_name(name: str) -> list[str | int]:
    """Split ``a.b[0].c`` into ``["a", "b", 0, "c"]``."""
    segments: list[str | int] = []
    for key, index in _SEGMENT_RE.findall(name):
        segments.append(int(index) if index else key)
    return segments


def format_name(loc: Iterable[str | int]) -> str:
    """Inverse of parse_name, used for pydantic error locations."""
    name = ""
    for segment in loc:
        if isinstance(segment, int):
            name += f"[{segment}]"
        else:
            name = f"{name}.{segment}" if name else str(segment)
    return name


# --- Payload ---


_EMPTY = object()


def _assign(container: dict[str, Any], segments: list[str | int], value: Any) -> None:
    """Set a nested value. ``_EMPTY`` builds the containers but leaves the leaf out."""
    current: Any = container
    for position, segment in enumerate(segments):
        last = position == len(segments) - 1
        next_default: Any = None
        if not last:
            next_default = {} if isinstance(segments[position + 1], str) else []

        expected = list if isinstance(segment, int) else dict
        if not isinstance(current, expected):
            # Conflicting names such as "a" and "a.b"; keep the first
            return
        if isinstance(segment, int):
            while len(current) <= segment:
                current.append(None)
            if last:
                if value is not _EMPTY:
                    current[segment] = value
                return
            if current[segment] is None:
                current[segment] = next_default
            current = current[segment]
        else:
            if last:
                if value is not _EMPTY:
                    current[segment] = value
                return
            current = current.setdefault(segment, next_default)


def _compact(node: Any) -> Any:
    # Indices never submitted (e.g. after a removed fieldset) collapse into a dense list
    if isinstance(node, list):
        return [_compact(item) for item in node if item is not None]
    if isinstance(node, dict):
        return {key: _compact(value) for key, value in node.items()}
    return node


def build_payload(items: Iterable[tuple[str, Any]]) -> dict[str, Any]:
    """
    Expand flat form items into a nested payload.

    Empty strings leave their field out, but the list items and objects
    holding them are kept so a cleared row still reports its errors.
    """
    payload: dict[str, Any] = {}
    for name, raw in items:
        if name == INTENT_FIELD:
            continue
        segments = parse_name(name)
        if not segments:
            continue
        _assign(payload, segments, _EMPTY if raw == "" or raw is None else raw)
    return _compact(payload)


# --- Intents ---


def _apply_list_intent(
    payload: dict[str, Any], intent: str, default_item: Mapping[str, Any]
) -> None:
    parts = intent.split("/")
    if len(parts) < 3:
        raise ValueError(f"Malformed list intent: {intent}")

    operation, name = parts[1], parts[2]
    segments = parse_name(name)
    parent: Any = payload
    for segment in segments[:-1]:
        if isinstance(segment, int):
            parent = parent[segment]
        else:
            parent = parent.setdefault(segment, {})
    leaf = segments[-1]
    items = parent.get(leaf) if isinstance(parent, dict) else None
    if items is None:
        items = []
        parent[leaf] = items

    if operation == "append":
        items.append(copy.deepcopy(dict(default_item)))
    elif operation == "remove":
        if len(parts) < 4:
            raise ValueError(f"List remove intent needs an index: {intent}")
        index = int(parts[3])
        if 0 <= index < len(items):
            items.pop(index)
    else:
        raise ValueError(f"Unknown list operation: {operation}")


# --- Parse ---


def parse_submission(
    items: Iterable[tuple[str, Any]],
    schema: type[FormSchema],
    list_defaults: Mapping[str, Mapping[str, Any]] | None = None,
) -> Submission:
    """
    Parse form items against a schema.

    Args:
        items: (name, value) pairs in submission order, e.g. ``form.multi_items()``
        schema: FormSchema subclass to validate against
        list_defaults: default item per list field leaf name, used by
            ``list/append`` intents

    Returns:
        Submission. ``value`` holds the validated schema instance only for a
        valid ``submit`` intent.
    """
    items = list(items)
    intent = SUBMIT_INTENT
    for name, value in items:
        if name == INTENT_FIELD and isinstance(value, str) and value:
            intent = value

    payload = build_payload(items)
    submission = Submission(intent=intent, payload=payload)

    if intent.startswith("list/"):
        leaf = intent.split("/")[2] if len(intent.split("/")) > 2 else ""
        leaf_segments = parse_name(leaf)
        leaf_name = str(leaf_segments[-1]) if leaf_segments else ""
        try:
            _apply_list_intent(payload, intent, (list_defaults or {}).get(leaf_name, {}))
        except (ValueError, IndexError, TypeError, AttributeError):
            submission.error[FORM_ERROR_KEY] = "The form could not be updated."
        # List edits re-render the form; errors are not reported yet
        return submission

    try:
        value = schema.model_validate(payload)
    except ValidationError as e:
        submission.error = collect_errors(e, schema)
        if intent.startswith("validate/"):
            target = intent.split("/", 1)[1]
            submission.error = {
                name: message
                for name, message in submission.error.items()
                if name == target or name.startswith(f"{target}.") or name.startswith(f"{target}[")
            }
        return submission

    if intent == SUBMIT_INTENT:
        submission.value = value
    return submission


def collect_errors(error: ValidationError, schema: type[FormSchema]) -> dict[str, str]:
    """Map pydantic errors to form field names. First error per field wins."""
    errors: dict[str, str] = {}
    for detail in error.errors():
        loc = tuple(detail["loc"])
        name = format_name(loc) or FORM_ERROR_KEY
        leaf = next((str(part) for part in reversed(loc) if isinstance(part, str)), FORM_ERROR_KEY)
        if name in errors:
            continue
        errors[name] = schema.message_for(leaf, detail["type"], detail["msg"])
    return errors
