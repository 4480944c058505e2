"""
Progress reporting for loaders, volume filters and pipelines.

Workers only ever see a plain ``callback(percent, message)``. A ProgressBus
hands out such callbacks, tags every report with the pipeline stage it came
from, and fans the resulting events out to observers (terminal bar, logger,
test collectors).
"""

from __future__ import annotations

import logging
import sys
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, TextIO, Union

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], None]


@dataclass(frozen=True)
class ProgressEvent:
    """
    One progress report.

    ``channel`` is ``"stage"`` for reports from inside a stage (loader, filter,
    projection) and ``"dag"`` for the executor moving between stages.
    """

    percent: int
    message: str
    stage: Optional[str] = None
    channel: str = "stage"
    timestamp: float = field(default_factory=time.time)

    @property
    def done(self) -> bool:
        return self.percent >= 100


class ProgressObserver(Protocol):
    def on_progress(self, event: ProgressEvent) -> None:
        ...


Observer = Union[ProgressObserver, Callable[[ProgressEvent], None]]


def _deliver(observer: Observer, event: ProgressEvent) -> None:
    handler = getattr(observer, "on_progress", None)
    if handler is not None:
        handler(event)
    else:
        observer(event)


class ProgressBus:
    """Fans progress events out to every subscribed observer, in subscription order."""

    def __init__(self) -> None:
        self._observers: List[Observer] = []

    def subscribe(self, observer: Observer) -> "ProgressBus":
        self._observers.append(observer)
        return self

    def unsubscribe(self, observer: Observer) -> "ProgressBus":
        try:
            self._observers.remove(observer)
        except ValueError:
            logger.debug("unsubscribe: observer %r was not subscribed", observer)
        return self

    def emit(self, event: ProgressEvent) -> None:
        # observers may unsubscribe themselves while handling an event
        for observer in list(self._observers):
            _deliver(observer, event)

    def _make_callback(self, stage: Optional[str], channel: str) -> ProgressCallback:
        def report(percent: int, message: str) -> None:
            clamped = min(100, max(0, int(percent)))
            self.emit(ProgressEvent(clamped, message, stage=stage, channel=channel))

        return report

    def stage_callback(self, stage: str) -> ProgressCallback:
        """Callback for work inside ``stage``."""
        return self._make_callback(stage, "stage")

    def dag_callback(self) -> ProgressCallback:
        """Callback for the executor's stage-to-stage progress."""
        return self._make_callback(None, "dag")


class TerminalProgressObserver:
    """
    Renders stage progress as a single redrawn bar and executor progress as
    one line per stage.
    """

    def __init__(self, bar_width: int = 30, stream: Optional[TextIO] = None) -> None:
        self.bar_width = bar_width
        self.stream = stream or sys.stdout

    def _bar(self, percent: int) -> str:
        filled = self.bar_width * percent // 100
        return "#" * filled + "." * (self.bar_width - filled)

    def on_progress(self, event: ProgressEvent) -> None:
        if event.channel == "dag":
            line = f"  [pipeline {event.percent:3d}%] {event.message}\n"
        else:
            line = f"\r  [{event.stage or 'task'}] [{self._bar(event.percent)}] {event.percent:3d}%  {event.message:<48}"
            if event.done:
                line += "\n"
        self.stream.write(line)
        self.stream.flush()


class LoggingProgressObserver:
    """Forwards progress to a logger instead of drawing a bar (quiet / non-tty runs)."""

    def __init__(self, log: Optional[logging.Logger] = None, level: int = logging.DEBUG) -> None:
        self.log = log or logger
        self.level = level

    def on_progress(self, event: ProgressEvent) -> None:
        self.log.log(self.level, "[%s %3d%%] %s", event.stage or "pipeline", event.percent, event.message)


__all__ = [
    "ProgressCallback",
    "ProgressEvent",
    "ProgressObserver",
    "ProgressBus",
    "TerminalProgressObserver",
    "LoggingProgressObserver",
]
