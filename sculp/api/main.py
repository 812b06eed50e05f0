import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from sculp.adapters.sqlite.migrator import SQLiteMigrator
from sculp.api.deps import get_settings
from sculp.api.errors import register_error_handlers
from sculp.app_shell.config import ConfigError, validate_ops_rules
from sculp.rules.loader import load_rules

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules, validate the environment and migrate on startup (fail-fast)
    try:
        rules = load_rules(settings.rules_path)
        validate_ops_rules(rules, settings.data_dir)
        logger.info("Rules loaded from %s", settings.rules_path)
        applied = SQLiteMigrator(settings.db_path).run_migrations()
        if applied:
            logger.info("Applied migrations: %s", ", ".join(applied))
    except (ConfigError, FileNotFoundError, ValueError) as e:
        logger.critical("Startup failed: %s", e)
        sys.exit(1)

    yield


app = FastAPI(
    title="Sculp",
    version="0.1.0",
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
)

register_error_handlers(app)

# --- Routers ---
from sculp.api.routes import (  # noqa: E402
    app_home,
    auth,
    dev_checkout,
    index,
    mesocycles,
    train,
    webhooks,
)

app.include_router(index.router, prefix="", tags=["Index"])
app.include_router(auth.router, prefix="/auth", tags=["Auth"])
app.include_router(app_home.router, prefix="/app", tags=["App"])
app.include_router(train.router, prefix="/app", tags=["Train"])
app.include_router(mesocycles.router, prefix="/app", tags=["Mesocycles"])
app.include_router(webhooks.router, prefix="/webhooks", tags=["Webhooks"])
app.include_router(dev_checkout.router, prefix="/dev", tags=["Dev"])


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "web"}
