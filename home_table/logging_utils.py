"""
Table event journal written as NDJSON, one record per line.
"""

from __future__ import annotations

import json
import pathlib
from datetime import datetime, timezone
from typing import IO, Any, Dict, Optional


class NDJSONLogger:
    """
    Append-only journal of table lifecycle and hand events.

    Each record is ``{"ts", "type", "payload"}`` with a UTC ISO timestamp.
    A path target is opened for appending so restarts extend the same journal;
    a stream target belongs to the caller and is only flushed.
    """

    def __init__(self, target: pathlib.Path | IO[str]) -> None:
        self.path: Optional[pathlib.Path] = None
        if isinstance(target, pathlib.Path):
            target.parent.mkdir(parents=True, exist_ok=True)
            self.path = target
            self._file: IO[str] = target.open("a", encoding="utf-8")
        else:
            self._file = target

    def log(self, event_type: str, payload: Optional[Dict[str, Any]] = None) -> None:
        line = json.dumps(
            {
                "ts": datetime.now(timezone.utc).isoformat(),
                "type": event_type,
                "payload": payload or {},
            },
            sort_keys=True,
        )
        self._file.write(line + "\n")
        self._file.flush()

    def close(self) -> None:
        if self.path is not None and not self._file.closed:
            self._file.close()

    def __enter__(self) -> "NDJSONLogger":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class NullJournal:
    """Stands in for the journal when no journal path is configured."""

    def log(self, event_type: str, payload: Optional[Dict[str, Any]] = None) -> None:
        return None

    def close(self) -> None:
        return None
