import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel

from sessionmenu.config.schema import SessionMenuConfig
from sessionmenu.logging_config import get_logger

logger = get_logger(__name__)

CONFIG_PATH_ENV = "SESSIONMENU_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.sessionmenu/sessionmenu.yml")


def _warn_unknown_keys(model: BaseModel, path: str, config_path: Path) -> None:
    """Recursively warn about unknown keys in a model and its nested models."""
    if model.model_extra:
        logger.warning("Unknown config keys", section=path, file=str(config_path), keys=list(model.model_extra))

    for field_name, field_value in model.__dict__.items():
        if isinstance(field_value, BaseModel):
            _warn_unknown_keys(field_value, f"{path}.{field_name}", config_path)


def _expand_env_vars(value: object) -> object:
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env_vars(v) for v in value]
    return value


def resolve_config_path() -> Path:
    env_path = os.getenv(CONFIG_PATH_ENV)
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH.expanduser()


def load_config(path: Optional[Path] = None) -> SessionMenuConfig:
    """Load and validate configuration from a YAML file.

    Args:
        path: Path to the config file. Defaults to `SESSIONMENU_CONFIG` or
            `~/.sessionmenu/sessionmenu.yml`.

    Returns:
        The validated configuration. Defaults when the file is missing or unreadable.

    Raises:
        pydantic.ValidationError: If the file is readable but holds invalid values.
    """
    if path is None:
        path = resolve_config_path()
    if not path.exists():
        return SessionMenuConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to read config file", file=str(path), error=str(e))
        return SessionMenuConfig()

    model = SessionMenuConfig.model_validate(_expand_env_vars(raw))
    _warn_unknown_keys(model, "root", path)
    return model
