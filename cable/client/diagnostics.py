from __future__ import annotations

from collections import Counter, deque
from typing import Any, Protocol

from cable.config import cable_config
from cable.logger import get_logger
from cable.models import CableErrorReport

log = get_logger(__name__)


class DiagnosticsSink(Protocol):
    def capture_actioncable_error(self, record: dict[str, Any]) -> Any: ...


class CableErrorReporter:
    """
    Diagnostics sink keeping counts and a bounded history of reported errors.

    Args:
        history_size: Number of reports retained, oldest dropped first.
    """

    def __init__(self, history_size: int | None = None) -> None:
        size = history_size or cable_config.diagnostics.history_size
        self.error_counts: Counter[str] = Counter()
        self.history: deque[CableErrorReport] = deque(maxlen=size)

    def capture_actioncable_error(self, record: dict[str, Any]) -> CableErrorReport:
        report = CableErrorReport.from_record(record)
        self.error_counts[report.type] += 1
        self.history.append(report)
        log.error(
            f"[{report.controller_name or report.channel}] {report.message} "
            f"(channel: {report.channel}, action: {report.action})"
        )
        return report

    @property
    def last(self) -> CableErrorReport | None:
        return self.history[-1] if self.history else None

    def clear(self) -> None:
        self.error_counts.clear()
        self.history.clear()


_sink: DiagnosticsSink | None = None


def install_sink(sink: DiagnosticsSink | None) -> None:
    """Install the process-wide diagnostics sink, or remove it with None."""
    global _sink
    _sink = sink


def get_sink() -> DiagnosticsSink | None:
    return _sink


def report(record: dict[str, Any], *, sink: DiagnosticsSink | None = None) -> None:
    """
    Forward *record* to *sink* (or the installed sink).

    Without a sink the record is written to the log. A sink that raises is
    logged as well; reporting never raises.
    """
    sink = sink or _sink
    source = record.get("controller_name") or record.get("channel") or "cable"

    if sink is None:
        log.error(f"[{source}] Error: {record}")
        return

    try:
        sink.capture_actioncable_error(record)
    except Exception as e:  # noqa: BLE001
        log.error(f"[{source}] Diagnostics sink failed ({e}); error was: {record}")
