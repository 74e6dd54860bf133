"""Progress and message reporting.

Library code talks to the active reporter via :func:`get_reporter`; the CLI
installs a backend with :func:`set_reporter` according to ``--reporter``.
"""

from .base import (
    Reporter,
    TaskRecord,
    TaskStatus,
    TrackingReporter,
    format_summary,
    get_reporter,
    get_verbosity,
    section,
    set_reporter,
    set_verbosity,
    task,
)
from .jsonl import JsonLinesReporter
from .plain import PlainReporter
from .rich_reporter import RichReporter
from .silent import SilentReporter

BACKENDS = {
    "plain": PlainReporter,
    "rich": RichReporter,
    "json": JsonLinesReporter,
    "silent": SilentReporter,
}

__all__ = [
    "BACKENDS",
    "Reporter",
    "TaskRecord",
    "TaskStatus",
    "TrackingReporter",
    "format_summary",
    "get_reporter",
    "get_verbosity",
    "section",
    "set_reporter",
    "set_verbosity",
    "task",
    "JsonLinesReporter",
    "PlainReporter",
    "RichReporter",
    "SilentReporter",
]
