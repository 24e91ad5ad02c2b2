"""Open session transcripts in an external editor."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Sequence

from sessionmenu.constants import TRANSCRIPT_SUFFIX
from sessionmenu.logging_config import get_logger

logger = get_logger(__name__)


def transcript_path(session_id: str, store_path: str) -> Path:
    """Transcripts live next to the session store as `<session_id>.jsonl`."""
    return Path(store_path).expanduser().parent / f"{session_id}{TRANSCRIPT_SUFFIX}"


class TranscriptOpener:
    """Launches the configured editor command on a transcript file."""

    def __init__(self, command: Sequence[str] = ("code",)) -> None:
        if not command:
            raise ValueError("Editor command must not be empty")
        self.command = tuple(command)

    async def open(self, session_id: str, store_path: str) -> Path:
        """Open the transcript for `session_id`.

        Returns:
            The transcript path that was opened

        Raises:
            FileNotFoundError: If the transcript or the editor binary is missing
            RuntimeError: If the editor command exits non-zero
        """
        path = transcript_path(session_id, store_path)
        if not path.is_file():
            raise FileNotFoundError(f"Session log not found: {path}")

        proc = await asyncio.create_subprocess_exec(
            *self.command,
            str(path),
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
        _, stderr = await proc.communicate()
        if proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip() if stderr else ""
            raise RuntimeError(f"{self.command[0]} exited with {proc.returncode}: {message}")

        logger.info("Opened session log", path=str(path), editor=self.command[0])
        return path
