from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from sculp.api.deps import get_optional_user
from sculp.api.render import escape, render_document
from sculp.config_routes import config_routes
from sculp.domain.entities import User

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
def index(user: User | None = Depends(get_optional_user)) -> str:
    if user is not None:
        nav = (
            f'<p>Signed in as {escape(user.email)}. '
            f'<a href="{config_routes.app_root}">Go to the app</a></p>'
        )
    else:
        nav = f'<p><a href="{config_routes.auth.sign_in}">Sign in</a></p>'
    return render_document(f"<main><h1>Hello, World!</h1>{nav}</main>")
