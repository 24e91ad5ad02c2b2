from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sessionmenu.constants import (
    ACTIVE_WINDOW_SECONDS,
    API_REQUEST_TIMEOUT_S,
    API_SOCKET_PATH,
    COMPACT_MAX_LINES,
    REFRESH_INTERVAL_SECONDS,
    SNAPSHOT_ROW_LIMIT,
)


class GatewayConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    socket_path: str = API_SOCKET_PATH
    request_timeout: float = Field(default=API_REQUEST_TIMEOUT_S, gt=0)


class CacheConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    refresh_interval_seconds: float = Field(default=REFRESH_INTERVAL_SECONDS, ge=0)
    active_window_seconds: float = Field(default=ACTIVE_WINDOW_SECONDS, gt=0)
    snapshot_limit: int = Field(default=SNAPSHOT_ROW_LIMIT, ge=1)


class ActionsConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    compact_max_lines: int = Field(default=COMPACT_MAX_LINES, ge=1)
    editor_command: list[str] = Field(default_factory=lambda: ["code"])

    @field_validator("editor_command", mode="before")
    @classmethod
    def split_editor_command(cls, v: object) -> object:
        """Accept `editor_command: "code --wait"` as well as a list."""
        if isinstance(v, str):
            parts = v.split()
            if not parts:
                raise ValueError("editor_command must not be empty")
            return parts
        return v


class SessionMenuConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    connection_mode: Literal["local", "remote"] = "local"
    debug_pane_enabled: bool = False
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    actions: ActionsConfig = Field(default_factory=ActionsConfig)
