"""
JSON Lines trace of colorization batches.

One object per line. Every event carries ``event`` (one of the names below)
and ``ts`` (UTC, ISO 8601):

- ``batch_start``: ``polygons``, ``window``
- ``polygon_result``: ``polygon_id``, ``status``, ``color``, ``value``,
  ``reason``, ``detail``, ``window``
- ``batch_end``: ``results``

Traces are for replaying and diffing runs; the CLI writes one with ``--trace``.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, TextIO

from polytherm.model import TimeWindow

if TYPE_CHECKING:
    from polytherm.core.colorizer import ColorizeResult


BATCH_START = "batch_start"
POLYGON_RESULT = "polygon_result"
BATCH_END = "batch_end"


def _encode(o: Any) -> Any:
    if isinstance(o, Enum):
        return o.value
    if isinstance(o, Path):
        return str(o)
    raise TypeError(f"Cannot encode {type(o).__name__} in a trace event")


class TraceWriter:
    """Append events to a JSONL file, flushing after each so a crash keeps what ran."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._out: TextIO = self.path.open("w", encoding="utf-8")

    def write(self, event: str, **fields: Any) -> None:
        record: Dict[str, Any] = {
            "event": event,
            "ts": datetime.now(timezone.utc).isoformat(),
            **fields,
        }
        self._out.write(json.dumps(record, ensure_ascii=False, default=_encode) + "\n")
        self._out.flush()

    def batch_start(self, polygons: int, window: TimeWindow) -> None:
        self.write(BATCH_START, polygons=polygons, window=window.as_list())

    def polygon_result(self, result: "ColorizeResult", window: TimeWindow) -> None:
        self.write(
            POLYGON_RESULT,
            polygon_id=result.polygon_id,
            status=result.status,
            color=result.color,
            value=result.value,
            reason=result.reason,
            detail=result.detail,
            window=window.as_list(),
        )

    def batch_end(self, results: int) -> None:
        self.write(BATCH_END, results=results)

    def close(self) -> None:
        if not self._out.closed:
            self._out.close()

    def __enter__(self) -> "TraceWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class TraceReader:
    def __init__(self, path: str | Path):
        self.path = Path(path)

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        with self.path.open("r", encoding="utf-8") as fh:
            for raw in fh:
                if raw.strip():
                    yield json.loads(raw)

    def events(self, kind: str) -> List[Dict[str, Any]]:
        return [e for e in self if e.get("event") == kind]

    def results(self) -> List[Dict[str, Any]]:
        return self.events(POLYGON_RESULT)
