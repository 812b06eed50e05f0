"""
Server-side HTML rendering.

Small composable functions returning HTML strings: the document shell,
the app page layout, the error page and form controls. All dynamic text
goes through ``escape``.
"""

from __future__ import annotations

import html
from collections.abc import Iterable

SITE_TITLE = "Sculp"
SITE_DESCRIPTION = "Smart hypertrophy app for maximum muscle growth."

BACKGROUND_SUBMIT_HEADER = "X-Sculp-Background"

# Submits forms marked with data-debounce-submit in the background once the
# user stops typing. No navigation happens, so history and scroll stay put.
DEBOUNCE_SCRIPT = """
<script>
document.addEventListener("input", function (event) {
  var form = event.target.form;
  if (!form || !form.dataset.debounceSubmit) return;
  clearTimeout(form._debounceTimer);
  form._debounceTimer = setTimeout(function () {
    form.dataset.state = "saving";
    fetch(form.action, {
      method: "POST",
      body: new FormData(form),
      headers: {"X-Sculp-Background": "1"},
      credentials: "same-origin"
    }).then(function (response) {
      form.dataset.state = response.ok ? "saved" : "invalid";
    });
  }, parseInt(form.dataset.debounceSubmit, 10));
});
</script>
"""


def escape(text: object) -> str:
    return html.escape("" if text is None else str(text), quote=True)


def class_names(*names: str | None) -> str:
    return " ".join(n for n in names if n)


# --- Documents ---


def render_document(body: str, title: str = SITE_TITLE, toasts: Iterable[str] = ()) -> str:
    return f"""<!DOCTYPE html>
<html lang="en" class="h-full">
<head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width,initial-scale=1" />
    <title>{escape(title)}</title>
    <meta name="description" content="{escape(SITE_DESCRIPTION)}" />
</head>
<body class="h-full">
    {body}
    <div id="toaster" class="toaster top-right" aria-live="polite">{"".join(toasts)}</div>
    <noscript>This app requires JavaScript to be enabled</noscript>
    {DEBOUNCE_SCRIPT}
</body>
</html>"""


def render_error_document(body: str) -> str:
    return f"""<!DOCTYPE html>
<html lang="en" class="h-full">
<head>
    <meta charset="utf-8" />
    <title>Oh no...</title>
</head>
<body class="h-full">
    {body}
</body>
</html>"""


# --- Layout ---


def app_page_layout(children: str, class_name: str | None = None) -> str:
    return (
        f'<div class="{escape(class_names("px-4 py-6 sm:px-6 lg:px-8 lg:py-10", class_name))}">'
        f'<div class="mx-auto w-full max-w-2xl">{children}</div>'
        "</div>"
    )


def back_link(to: str, text: str) -> str:
    return f'<a class="back-link" href="{escape(to)}">{escape(text)}</a>'


def error_page(status_code: int, title: str, subtitle: str, action: str = "") -> str:
    return f"""<main class="error-page">
    <p class="status-code">{status_code}</p>
    <h1>{escape(title)}</h1>
    <p>{escape(subtitle)}</p>
    <div class="action">{action}</div>
</main>"""


def toast(toast_id: str, title: str, description: str, duration_ms: int = 5000) -> str:
    return (
        f'<div class="toast toast-error top-center" id="toast-{escape(toast_id)}" '
        f'role="status" data-duration="{duration_ms}">'
        f"<p class=\"toast-title\">{escape(title)}</p>"
        f"<p>{escape(description)}</p>"
        "</div>"
    )


# --- Form controls ---


def error_message(text: str, error_id: str | None = None) -> str:
    id_attr = f' id="{escape(error_id)}"' if error_id else ""
    return f'<p class="error-message"{id_attr} role="alert">{escape(text)}</p>'


def hidden_input(name: str, value: object) -> str:
    return f'<input type="hidden" name="{escape(name)}" value="{escape(value)}" />'


def input_field(
    name: str,
    label: str,
    value: object = None,
    error: str | None = None,
    *,
    type: str = "text",
    autocomplete: str | None = None,
    placeholder: str | None = None,
    hide_label: bool = False,
    hide_error_message: bool = False,
    class_name: str | None = None,
) -> str:
    field_id = f"field-{name}"
    attrs = [
        f'id="{escape(field_id)}"',
        f'name="{escape(name)}"',
        f'type="{escape(type)}"',
    ]
    # Passwords are never echoed back into the page
    if value is not None and type != "password":
        attrs.append(f'value="{escape(value)}"')
    if autocomplete:
        attrs.append(f'autocomplete="{escape(autocomplete)}"')
    if placeholder:
        attrs.append(f'placeholder="{escape(placeholder)}"')
    if class_name:
        attrs.append(f'class="{escape(class_name)}"')
    if error:
        attrs.append('aria-invalid="true"')
        attrs.append(f'aria-describedby="{escape(field_id)}-error"')

    label_class = ' class="sr-only"' if hide_label else ""
    parts = [
        f'<label for="{escape(field_id)}"{label_class}>{escape(label)}</label>',
        f"<input {' '.join(attrs)} />",
    ]
    if error and not hide_error_message:
        parts.append(error_message(error, f"{field_id}-error"))
    return f'<div class="field">{"".join(parts)}</div>'


def textarea_field(
    name: str,
    label: str,
    value: object = None,
    error: str | None = None,
    *,
    rows: int = 3,
    placeholder: str | None = None,
    hide_label: bool = False,
    hide_error_message: bool = False,
    auto_size: bool = False,
) -> str:
    field_id = f"field-{name}"
    attrs = [f'id="{escape(field_id)}"', f'name="{escape(name)}"', f'rows="{rows}"']
    if placeholder:
        attrs.append(f'placeholder="{escape(placeholder)}"')
    if auto_size:
        attrs.append('data-auto-size="true"')
    if error:
        attrs.append('aria-invalid="true"')

    label_class = ' class="sr-only"' if hide_label else ""
    parts = [
        f'<label for="{escape(field_id)}"{label_class}>{escape(label)}</label>',
        f"<textarea {' '.join(attrs)}>{escape(value)}</textarea>",
    ]
    if error and not hide_error_message:
        parts.append(error_message(error, f"{field_id}-error"))
    return f'<div class="field">{"".join(parts)}</div>'


def select_field(
    name: str,
    label: str,
    options: Iterable[tuple[str, str]],
    value: object = None,
    error: str | None = None,
    *,
    placeholder: str = "Select...",
) -> str:
    field_id = f"field-{name}"
    selected = "" if value is None else str(value)
    option_html = [f'<option value="">{escape(placeholder)}</option>']
    for option_value, option_label in options:
        flag = " selected" if option_value == selected else ""
        option_html.append(
            f'<option value="{escape(option_value)}"{flag}>{escape(option_label)}</option>'
        )
    parts = [
        f'<label for="{escape(field_id)}">{escape(label)}</label>',
        f'<select id="{escape(field_id)}" name="{escape(name)}">{"".join(option_html)}</select>',
    ]
    if error:
        parts.append(error_message(error, f"{field_id}-error"))
    return f'<div class="field">{"".join(parts)}</div>'


def intent_button(label: str, intent: str, class_name: str | None = None) -> str:
    class_attr = f' class="{escape(class_name)}"' if class_name else ""
    return (
        f'<button type="submit" name="__intent__" value="{escape(intent)}"{class_attr}>'
        f"{escape(label)}</button>"
    )


def submit_button(text: str) -> str:
    return f'<button type="submit" class="submit-button">{escape(text)}</button>'
