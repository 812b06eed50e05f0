"""
Route error handling.

Every HTTP error and every uncaught exception ends in the same error page,
selected by status code. Unauthenticated access to app pages is raised as
AuthRedirect and answered with a redirect to the sign-in page.
"""

import logging
from urllib.parse import urlencode

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sculp.api.render import back_link, error_page, render_error_document
from sculp.components.checkout import CheckoutError
from sculp.config_routes import config_routes

logger = logging.getLogger(__name__)

GENERIC_TITLE = "Oh no, something did not go well."


class AuthRedirect(Exception):
    """Raised by guards when the request needs a signed-in, subscribed user."""

    def __init__(self, redirect_to: str | None = None):
        super().__init__("Authentication required")
        self.redirect_to = redirect_to


def error_content(status_code: int, path: str) -> tuple[str, str]:
    """Title and subtitle of the error page for a status."""
    if status_code == 404:
        return "Page not found", f'"{path}" is not a page. So sorry.'
    return GENERIC_TITLE, f'"{path}" is currently not working. So sorry.'


def render_error_response(status_code: int, path: str) -> HTMLResponse:
    title, subtitle = error_content(status_code, path)
    body = error_page(
        status_code,
        title,
        subtitle,
        action=back_link(config_routes.home, "Back to home"),
    )
    return HTMLResponse(render_error_document(body), status_code=status_code)


async def auth_redirect_handler(request: Request, exc: Exception) -> RedirectResponse:
    assert isinstance(exc, AuthRedirect)
    url = config_routes.auth.sign_in
    if exc.redirect_to:
        url = f"{url}?{urlencode({'redirectTo': exc.redirect_to})}"
    return RedirectResponse(url=url, status_code=302)


async def http_error_handler(request: Request, exc: Exception) -> HTMLResponse:
    assert isinstance(exc, StarletteHTTPException)
    logger.info("Caught route error: %s %s", exc.status_code, request.url.path)
    response = render_error_response(exc.status_code, request.url.path)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def request_validation_handler(request: Request, exc: Exception) -> HTMLResponse:
    assert isinstance(exc, RequestValidationError)
    # A malformed id in the URL names a page that does not exist
    in_path = any(tuple(error.get("loc", ()))[:1] == ("path",) for error in exc.errors())
    status_code = 404 if in_path else 400
    logger.info("Caught route error: %s %s", status_code, request.url.path)
    return render_error_response(status_code, request.url.path)


async def checkout_error_handler(request: Request, exc: Exception) -> HTMLResponse:
    logger.error("Caught route error: 502 %s (%s)", request.url.path, exc)
    return render_error_response(502, request.url.path)


async def unhandled_error_handler(request: Request, exc: Exception) -> HTMLResponse:
    logger.exception("Uncaught error on %s", request.url.path, exc_info=exc)
    return render_error_response(500, request.url.path)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthRedirect, auth_redirect_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(CheckoutError, checkout_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
