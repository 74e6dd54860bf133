from __future__ import annotations

import sys
from typing import Any, Dict, TextIO

from .base import TaskRecord, TaskStatus, TrackingReporter, format_stats, get_verbosity

ICONS = {
    TaskStatus.SUCCESS: "✔",
    TaskStatus.FAILED: "✖",
    TaskStatus.SKIPPED: "→",
}

# ANSI color per line label
_LABEL_COLORS = {"INFO": "32", "WARN": "33", "ERROR": "31"}


class PlainReporter(TrackingReporter):
    """Deterministic line-oriented reporter with optional ANSI color.

    Per-asset progress lines are only printed at verbosity >= 1 so library
    callers reading large packages are not flooded.
    """

    def __init__(self, stream: TextIO | None = None, use_color: bool | None = None):
        super().__init__()
        self.stream = stream or sys.stderr
        if use_color is None:
            use_color = getattr(self.stream, "isatty", lambda: False)()
        self.use_color = use_color

    def _line(self, label: str, message: str, color: str | None = None) -> None:
        color = color or _LABEL_COLORS.get(label)
        if self.use_color and color:
            label = f"\x1b[{color}m{label}\x1b[0m"
        self.stream.write(f"{label}: {message}\n")

    def _on_advance(self, rec: TaskRecord, meta: Dict[str, Any]) -> None:
        if get_verbosity() < 1:
            return
        item = meta.get("current_item") or f"item#{rec.completed}"
        self.stream.write(f"   · {rec.name}: {item} ({rec.progress})\n")

    def _on_end(self, rec: TaskRecord) -> None:
        icon = ICONS.get(rec.status, "?")
        counts = f" {rec.progress}" if rec.total is not None else ""
        self.stream.write(
            f" {icon} {rec.name}{counts} ({rec.duration:.2f}s)"
            f"{format_stats(rec.meta)}\n"
        )

    def status(self, message: str, **fields: Any) -> None:
        self._line("INFO", message)

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() >= level:
            self._line(f"VERB{level}", message, color="36")

    def error(self, message: str, **fields: Any) -> None:
        self._line("ERROR", message)

    def warning(self, message: str, **fields: Any) -> None:
        self._line("WARN", message)

    def section(self, title: str) -> None:
        self.stream.write(f"\n[{title}]\n")
