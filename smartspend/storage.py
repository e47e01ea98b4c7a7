"""Persistence utilities for the SmartSpend core services."""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Optional, Type

from .exceptions import ParseError, PersistenceError

logger = logging.getLogger(__name__)


class JSONStorage:
    """Simple file-based JSON storage with crash-safe writes.

    Each resource is one file under ``base_path`` holding a full snapshot.
    Writes go to a temp file first and are retried ``retries`` times before
    a :class:`PersistenceError` is raised.
    """

    def __init__(self, base_path: Path, *, retries: int = 3, retry_delay: float = 0.05) -> None:
        self._base_path = Path(base_path)
        self._base_path.mkdir(parents=True, exist_ok=True)
        self._retries = max(1, retries)
        self._retry_delay = retry_delay

    def load(self, resource: str, expected: Type = list) -> Optional[Any]:
        """Return the decoded snapshot, or ``None`` when nothing was stored yet."""
        path = self._base_path / resource
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise ParseError(f"Corrupted JSON data in {path}") from exc
        except OSError as exc:
            raise PersistenceError(f"Unable to read from {path}") from exc

        if not isinstance(payload, expected):
            raise ParseError(f"Expected {expected.__name__} payload in {path}")
        return payload

    def save(self, resource: str, payload: Any) -> None:
        path = self._base_path / resource
        temp_path = path.with_suffix(path.suffix + ".tmp")
        last_error: Optional[OSError] = None
        for attempt in range(1, self._retries + 1):
            try:
                with temp_path.open("w", encoding="utf-8") as handle:
                    json.dump(payload, handle, indent=2, ensure_ascii=False)
                    handle.flush()
                # Atomic on POSIX, readers never see a half-written snapshot.
                temp_path.replace(path)
                return
            except OSError as exc:
                last_error = exc
                logger.warning(
                    "Write to %s failed (attempt %d/%d): %s", path, attempt, self._retries, exc
                )
                if attempt < self._retries:
                    time.sleep(self._retry_delay)
        raise PersistenceError(f"Unable to write to {path}") from last_error

    def delete(self, resource: str) -> None:
        path = self._base_path / resource
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Unable to remove {path}") from exc

    def exists(self, resource: str) -> bool:
        return (self._base_path / resource).exists()

    @property
    def base_path(self) -> Path:
        return self._base_path
