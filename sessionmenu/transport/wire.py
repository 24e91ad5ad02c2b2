"""Wire models for the gateway sessions API."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sessionmenu.core.models import SessionRow, Snapshot


class SessionRowPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    key: str = Field(min_length=1)
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    updated_at: Optional[int] = Field(default=None, alias="updatedAt")  # epoch milliseconds
    thinking_level: Optional[str] = Field(default=None, alias="thinkingLevel")
    verbose_level: Optional[str] = Field(default=None, alias="verboseLevel")

    @field_validator("updated_at")
    @classmethod
    def non_negative(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("updatedAt must be non-negative")
        return v

    def to_row(self) -> SessionRow:
        updated_at = None
        if self.updated_at is not None:
            updated_at = datetime.fromtimestamp(self.updated_at / 1000, tz=timezone.utc)
        return SessionRow(
            key=self.key,
            session_id=self.session_id,
            updated_at=updated_at,
            thinking_level=self.thinking_level,
            verbose_level=self.verbose_level,
        )


class SnapshotPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    path: str
    sessions: list[SessionRowPayload] = []

    def to_snapshot(self) -> Snapshot:
        return Snapshot(rows=tuple(s.to_row() for s in self.sessions), store_path=self.path)


class HealthPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: str
