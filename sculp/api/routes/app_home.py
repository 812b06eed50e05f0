"""App root: landing page for signed-in, subscribed users."""

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from sculp.api.deps import require_user
from sculp.api.render import app_page_layout, escape, render_document
from sculp.config_routes import config_routes
from sculp.domain.entities import User

router = APIRouter()


def render_app_nav() -> str:
    return f"""<nav class="app-nav">
    <a href="{config_routes.app_root}">Home</a>
    <a href="{config_routes.train}">Train</a>
    <a href="{config_routes.mesocycles.list}">Mesocycles</a>
    <form method="post" action="{config_routes.auth.sign_out}">
        <button type="submit">Sign out</button>
    </form>
</nav>"""


@router.get("", response_class=HTMLResponse)
def app_home(user: User = Depends(require_user)) -> str:
    assert user.subscription is not None
    content = f"""<h1>Welcome back</h1>
<p>{escape(user.email)}</p>
<p>Subscription: {escape(user.subscription.status)}</p>
<ul>
    <li><a href="{config_routes.train}">Your training folders</a></li>
    <li><a href="{config_routes.mesocycles.new}">Plan a new mesocycle</a></li>
</ul>"""
    return render_document(render_app_nav() + app_page_layout(content))
