"""JSON file session store (default: CB.hist in the working directory).

The file holds one JSON document. A file containing a bare JSON list of
strings (the older format) loads as conversations with default metadata.
"""

import asyncio
import json
import os
from pathlib import Path

from pydantic import ValidationError

from .base import SessionStore
from .models import SessionData

DEFAULT_HISTORY_FILE = "CB.hist"


class FileSessionStore(SessionStore):
    """Session data stored as a JSON file."""

    def __init__(self, path: str | Path = DEFAULT_HISTORY_FILE):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    async def connect(self) -> None:
        """Nothing to open; the file is read and written per call."""
        pass

    async def disconnect(self) -> None:
        pass

    def _read(self) -> SessionData | None:
        if not self._path.exists():
            return None
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return None

        if isinstance(raw, list):
            return SessionData(conversations=[str(item) for item in raw])
        try:
            return SessionData.model_validate(raw)
        except ValidationError:
            return None

    def _write_sync(self, data: SessionData) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        # Atomic replace: readers never see a partial file
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_text(data.model_dump_json(indent=2), encoding="utf-8")
        os.replace(tmp, self._path)

    async def load(self) -> SessionData | None:
        return await asyncio.to_thread(self._read)

    async def _write(self, data: SessionData) -> None:
        await asyncio.to_thread(self._write_sync, data)

    async def clear(self) -> None:
        await asyncio.to_thread(self._path.unlink, missing_ok=True)

    @property
    def backend_type(self) -> str:
        return "file"
