from __future__ import annotations

import os
from typing import Any, Dict, List

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from .base import (
    TaskRecord,
    TaskStatus,
    TrackingReporter,
    format_stats,
    format_summary,
    get_verbosity,
)

_STATUS_ICON = {
    TaskStatus.SUCCESS: "[green]✔[/]",
    TaskStatus.FAILED: "[red]✖[/]",
    TaskStatus.SKIPPED: "→",
}

TRANSIENT_ENV = "RETROPAK_PROGRESS_TRANSIENT"


def _env_flag(name: str) -> bool:
    return os.getenv(name, "0").lower() in ("1", "true", "yes")


class RichReporter(TrackingReporter):
    """Interactive reporter: one progress bar per counted task.

    Set ``RETROPAK_PROGRESS_TRANSIENT=1`` to clear bars once they complete and
    print the completion lines in one block instead.
    """

    supports_progress = True

    def __init__(self, console: Console | None = None):
        super().__init__()
        self.console = console or Console(
            stderr=True, highlight=False, soft_wrap=False
        )
        self._transient = _env_flag(TRANSIENT_ENV)
        self.progress: Progress | None = None
        self._bars: Dict[str, TaskID] = {}
        self._completions: List[str] = []

    def _ensure_progress(self) -> Progress:
        if self.progress is None:
            self.progress = Progress(
                SpinnerColumn(spinner_name="dots"),
                TextColumn("{task.description}", justify="left"),
                BarColumn(bar_width=None),
                TextColumn("{task.completed}/{task.total}"),
                TextColumn("{task.fields[item]}", style="dim", markup=False),
                TimeElapsedColumn(),
                transient=self._transient,
                console=self.console,
                expand=True,
            )
            self.progress.start()
        return self.progress

    def _on_start(self, rec: TaskRecord) -> None:
        # Uncounted tasks render as a rule instead of a bar
        if rec.total is None:
            self.console.rule(escape(rec.name))
            return
        progress = self._ensure_progress()
        self._bars[rec.task_id] = progress.add_task(
            escape(rec.name), total=rec.total, item=""
        )

    def _on_advance(self, rec: TaskRecord, meta: Dict[str, Any]) -> None:
        bar = self._bars.get(rec.task_id)
        if bar is None or self.progress is None:
            return
        self.progress.update(
            bar, completed=rec.completed, item=str(meta.get("current_item", ""))
        )

    def _on_end(self, rec: TaskRecord) -> None:
        bar = self._bars.pop(rec.task_id, None)
        if bar is not None and self.progress is not None:
            self.progress.update(bar, completed=rec.completed, item="")
        line = _STATUS_ICON.get(rec.status, "") + " " + escape(
            f"{rec.name} {rec.progress} ({rec.duration:.2f}s)"
            f"{format_stats(rec.meta)}"
        )
        if self._transient:
            self._completions.append(line)
        else:
            self.console.print(line)
        if not self.open_tasks:
            self.flush()

    def summary(self, kind: str, **fields: Any) -> None:
        line = escape(format_summary(kind, fields))
        self.console.print(f"[bold green]DONE[/]: {line}")

    def status(self, message: str, **fields: Any) -> None:
        self.console.print(f"[green]INFO[/]: {escape(message)}")

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() >= level:
            self.console.print(f"[cyan]VERB{level}[/]: {escape(message)}")

    def error(self, message: str, **fields: Any) -> None:
        self.console.print(f"[bold red]ERROR[/]: {escape(message)}")

    def warning(self, message: str, **fields: Any) -> None:
        self.console.print(f"[yellow]WARN[/]: {escape(message)}")

    def section(self, title: str) -> None:
        self.console.rule(escape(title))

    def flush(self) -> None:
        if self.progress is None:
            return
        try:
            self.progress.stop()
        finally:
            self.progress = None
            self._bars.clear()
            if self._completions:
                self.console.print("\n".join(self._completions))
                self._completions.clear()
