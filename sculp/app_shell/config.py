import logging
import os
from pathlib import Path

from sculp.rules.models import Rules

logger = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    """Raised when the runtime environment does not satisfy the ops rules."""


def validate_ops_rules(rules: Rules, data_dir: Path) -> None:
    """
    Validate operational requirements before startup.

    Raises:
        ConfigError: data dir not writable or required env vars missing.
    """
    ops = rules.ops

    if ops.data_dir_required:
        data_dir.mkdir(parents=True, exist_ok=True)
        if not os.access(data_dir, os.W_OK):
            raise ConfigError(f"Data directory is not writable: {data_dir}")

    missing = [env_var for env_var in ops.required_env if env_var not in os.environ]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

    logger.info("Configuration validated.")
