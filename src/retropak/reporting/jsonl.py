from __future__ import annotations

import json
import sys
from typing import Any, Dict, TextIO

from .base import TaskRecord, TrackingReporter, format_summary, get_verbosity


class JsonLinesReporter(TrackingReporter):
    """Machine-readable reporter: one JSON object per line on stdout.

    Every event carries an ``event`` key (``task_start``, ``task_progress``,
    ``task_end``, ``summary``, ``status`` or ``section``). Summary events keep
    their field values typed, so ``bytes`` is a number rather than text.
    """

    def __init__(self, stream: TextIO | None = None):
        super().__init__()
        self.stream = stream or sys.stdout

    def _emit(self, event: str, **payload: Any) -> None:
        obj = {"event": event, **payload}
        self.stream.write(json.dumps(obj, sort_keys=True, default=str) + "\n")

    def _on_start(self, rec: TaskRecord) -> None:
        self._emit(
            "task_start", id=rec.task_id, name=rec.name, total=rec.total, **rec.meta
        )

    def _on_advance(self, rec: TaskRecord, meta: Dict[str, Any]) -> None:
        self._emit("task_progress", id=rec.task_id, completed=rec.completed, **meta)

    def _on_end(self, rec: TaskRecord) -> None:
        self._emit(
            "task_end",
            **{
                **rec.meta,
                "id": rec.task_id,
                "status": rec.status.name.lower(),
                "completed": rec.completed,
                "total": rec.total,
                "duration_seconds": rec.duration,
            },
        )

    def summary(self, kind: str, **fields: Any) -> None:
        self._emit(
            "summary",
            **{**fields, "summary_type": kind, "raw": format_summary(kind, fields)},
        )

    def status(self, message: str, **fields: Any) -> None:
        self._emit("status", **{**fields, "message": message, "level": "info"})

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() >= level:
            self._emit(
                "status", **{**fields, "message": message, "level": f"verbose{level}"}
            )

    def error(self, message: str, **fields: Any) -> None:
        self._emit("status", **{**fields, "message": message, "level": "error"})

    def warning(self, message: str, **fields: Any) -> None:
        self._emit("status", **{**fields, "message": message, "level": "warning"})

    def section(self, title: str) -> None:
        self._emit("section", title=title)
