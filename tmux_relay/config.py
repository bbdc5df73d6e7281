"""Configuration and logging setup."""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"
CONFIG_ENV_VAR = "TMUX_RELAY_CONFIG"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def load_config(config_path: Optional[str] = None) -> dict:
    """Load configuration from YAML file."""
    config_path = config_path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
    path = Path(config_path).expanduser()

    if not path.exists():
        logger.debug(f"Config file not found: {config_path}, using defaults")
        return {}

    with open(path) as f:
        return yaml.safe_load(f) or {}


def setup_logging(config: dict) -> None:
    """
    Configure root logging from the `logging` section.

    Logs go to stderr (stdout carries the JSON result) or to `logging.file`.
    """
    log_config = config.get("logging", {})
    level_name = str(log_config.get("level", "WARNING")).upper()
    kwargs = {
        "level": getattr(logging, level_name, logging.WARNING),
        "format": LOG_FORMAT,
    }
    if log_config.get("file"):
        kwargs["filename"] = os.path.expanduser(log_config["file"])
    logging.basicConfig(**kwargs)
