"""Configuration management.

Importing this package loads `.env`; the YAML file is read only when
`load_config()` is called, so the CLI can honour `--config`:
    from sessionmenu.config import load_config
    settings = load_config(path)
"""

import os
from pathlib import Path

from dotenv import load_dotenv

from sessionmenu.config.loader import load_config
from sessionmenu.config.schema import ActionsConfig, CacheConfig, GatewayConfig, SessionMenuConfig

# Load .env (allow override for tests)
_env_path = os.getenv("SESSIONMENU_ENV_PATH")
load_dotenv(Path(_env_path).expanduser() if _env_path else Path.cwd() / ".env")

__all__ = ["ActionsConfig", "CacheConfig", "GatewayConfig", "SessionMenuConfig", "load_config"]
