from __future__ import annotations

import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterator, Optional

__all__ = [
    "TaskStatus",
    "TaskRecord",
    "Reporter",
    "TrackingReporter",
    "STAT_KEYS",
    "format_stats",
    "format_summary",
    "set_reporter",
    "get_reporter",
    "set_verbosity",
    "get_verbosity",
    "section",
    "task",
]

# Task metadata keys rendered in completion lines, in display order
STAT_KEYS = ("assets", "compressed", "entries", "bytes")


class TaskStatus(Enum):
    RUNNING = auto()
    SUCCESS = auto()
    FAILED = auto()
    SKIPPED = auto()


@dataclass(slots=True)
class TaskRecord:
    task_id: str
    name: str
    total: Optional[int] = None
    completed: int = 0
    status: TaskStatus = TaskStatus.RUNNING
    start_time: float = field(default_factory=time.time)
    end_time: float | None = None
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration(self) -> float:
        return (self.end_time - self.start_time) if self.end_time else 0.0

    @property
    def progress(self) -> str:
        total = self.total if self.total is not None else "?"
        return f"{self.completed}/{total}"


def format_stats(meta: Dict[str, Any]) -> str:
    stats = [f"{key}={meta[key]}" for key in STAT_KEYS if key in meta]
    return f" [{' '.join(stats)}]" if stats else ""


def format_summary(kind: str, fields: Dict[str, Any]) -> str:
    """Render ``Read summary: file=x.pak assets=3`` style lines."""
    pairs = " ".join(f"{k}={v}" for k, v in fields.items())
    return f"{kind.capitalize()} summary: {pairs}"


_VERBOSITY: int = 0  # set by the CLI (-v repeats)


def set_verbosity(level: int) -> None:
    global _VERBOSITY
    _VERBOSITY = max(0, level)


def get_verbosity() -> int:
    return _VERBOSITY


class Reporter:
    """Progress and message sink used by the reader, writer and CLI."""

    supports_progress: bool = False

    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        raise NotImplementedError

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        raise NotImplementedError

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        raise NotImplementedError

    def status(self, message: str, **fields: Any) -> None:
        raise NotImplementedError

    def summary(self, kind: str, **fields: Any) -> None:
        """Report the outcome of a whole operation (read, write, extract...)."""
        self.status(format_summary(kind, fields))

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        pass

    def error(self, message: str, **fields: Any) -> None:
        raise NotImplementedError

    def warning(self, message: str, **fields: Any) -> None:
        self.status(message, **fields)

    def section(self, title: str) -> None:
        raise NotImplementedError

    def flush(self) -> None:
        pass


class TrackingReporter(Reporter):
    """Reporter that keeps a :class:`TaskRecord` per open task.

    Backends implement the ``_on_*`` hooks; unknown task ids are ignored so
    a backend installed mid-operation does not fail on tasks it never saw.
    """

    def __init__(self) -> None:
        self._tasks: Dict[str, TaskRecord] = {}

    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        rec = TaskRecord(task_id, name, total, meta=dict(meta))
        self._tasks[task_id] = rec
        self._on_start(rec)

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        rec = self._tasks.get(task_id)
        if rec is None:
            return
        rec.completed += step
        rec.meta.update(meta)
        self._on_advance(rec, meta)

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        rec = self._tasks.pop(task_id, None)
        if rec is None:
            return
        rec.status = status
        rec.end_time = time.time()
        rec.meta.update(final_meta)
        self._on_end(rec)

    @property
    def open_tasks(self) -> int:
        return len(self._tasks)

    def _on_start(self, rec: TaskRecord) -> None:
        pass

    def _on_advance(self, rec: TaskRecord, meta: Dict[str, Any]) -> None:
        pass

    def _on_end(self, rec: TaskRecord) -> None:
        pass


_ACTIVE_REPORTER: Reporter | None = None


def set_reporter(rep: Reporter) -> None:
    global _ACTIVE_REPORTER
    _ACTIVE_REPORTER = rep


def get_reporter() -> Reporter:
    global _ACTIVE_REPORTER
    if _ACTIVE_REPORTER is None:
        from .plain import PlainReporter  # local import to avoid cycle

        _ACTIVE_REPORTER = PlainReporter(stream=sys.stderr)
    return _ACTIVE_REPORTER


@contextmanager
def section(title: str) -> Iterator[None]:
    get_reporter().section(title)
    yield


@contextmanager
def task(
    task_id: str, name: str, total: int | None = None, **meta: Any
) -> Iterator[Reporter]:
    rep = get_reporter()
    rep.start_task(task_id, name, total, **meta)
    try:
        yield rep
    except Exception:
        rep.end_task(task_id, TaskStatus.FAILED)
        raise
    else:
        rep.end_task(task_id, TaskStatus.SUCCESS)
