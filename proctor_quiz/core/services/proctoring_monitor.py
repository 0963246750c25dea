"""Turns environment signals into a numbered violation stream.

The monitor never talks to a window system directly. Hosts feed it through an
``EnvironmentSignalSource`` (the Qt event filter in the desktop app, a fake in
tests) and optionally a ``PresentationHost`` that can enter and leave
fullscreen. Some signals describe actions the student is attempting (copy,
paste, context menu, screenshot and reserved shortcuts); for those the monitor
also marks the event as suppressed so the host drops the default action.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto
import logging
from typing import Protocol

from proctor_quiz.constants.quiz_constants import VIOLATION_THRESHOLD, VISIBLE_WARNING_COUNT

logger = logging.getLogger(__name__)


class SignalKind(Enum):
    """Environment signals that count as proctoring violations."""

    FULLSCREEN_EXIT = auto()
    VISIBILITY_HIDDEN = auto()
    FOCUS_LOST = auto()
    COPY = auto()
    PASTE = auto()
    CONTEXT_MENU = auto()
    SCREENSHOT = auto()
    RESERVED_SHORTCUT = auto()


SUPPRESSED_SIGNALS: frozenset[SignalKind] = frozenset(
    {
        SignalKind.COPY,
        SignalKind.PASTE,
        SignalKind.CONTEXT_MENU,
        SignalKind.SCREENSHOT,
        SignalKind.RESERVED_SHORTCUT,
    }
)

VIOLATION_MESSAGES: dict[SignalKind, str] = {
    SignalKind.FULLSCREEN_EXIT: "Fullscreen mode is required for this quiz",
    SignalKind.VISIBILITY_HIDDEN: "Tab switching is not allowed during the quiz",
    SignalKind.FOCUS_LOST: "Please stay focused on the quiz window",
    SignalKind.COPY: "Copying is disabled during the quiz",
    SignalKind.PASTE: "Pasting is disabled during the quiz",
    SignalKind.CONTEXT_MENU: "Right-click is disabled during the quiz",
    SignalKind.SCREENSHOT: "Screenshots are not allowed during the quiz",
    SignalKind.RESERVED_SHORTCUT: "Keyboard shortcuts are disabled during the quiz",
}

FULLSCREEN_DENIED_MESSAGE = "Fullscreen mode could not be enabled"


@dataclass(slots=True)
class SignalEvent:
    """One observed environment signal."""

    kind: SignalKind
    detail: str | None = None
    suppressed: bool = False

    def suppress(self) -> None:
        """Ask the host to drop the action that produced this signal."""
        self.suppressed = True


SignalHandler = Callable[[SignalEvent], None]


class EnvironmentSignalSource(Protocol):
    """Delivers environment signals to subscribed handlers."""

    def subscribe(self, kind: SignalKind, handler: SignalHandler) -> None: ...

    def unsubscribe(self, kind: SignalKind, handler: SignalHandler) -> None: ...


class PresentationHost(Protocol):
    """Window chrome controls the monitor may request."""

    def request_fullscreen(self) -> bool: ...

    def exit_fullscreen(self) -> None: ...


class ProctoringMonitor:
    """Counts violations and signals termination once the threshold is reached."""

    def __init__(
        self,
        source: EnvironmentSignalSource,
        on_terminate: Callable[[], None],
        on_violation: Callable[[str], None] | None = None,
        presentation_host: PresentationHost | None = None,
        threshold: int = VIOLATION_THRESHOLD,
    ) -> None:
        if threshold <= 0:
            raise ValueError("Violation threshold must be a positive integer.")
        self._source = source
        self._on_terminate = on_terminate
        self._on_violation = on_violation
        self._presentation_host = presentation_host
        self._threshold = threshold
        self._violations: list[str] = []
        self._violation_count = 0
        self._terminated = False
        self._attached = False
        self._detached = False

    @property
    def violation_count(self) -> int:
        return self._violation_count

    @property
    def violations(self) -> tuple[str, ...]:
        return tuple(self._violations)

    @property
    def termination_signaled(self) -> bool:
        return self._terminated

    @property
    def is_attached(self) -> bool:
        return self._attached

    def recent_violations(self, limit: int = VISIBLE_WARNING_COUNT) -> tuple[str, ...]:
        if limit <= 0:
            return ()
        return tuple(self._violations[-limit:])

    def attach(self) -> None:
        if self._attached or self._detached:
            return
        for kind in SignalKind:
            self._source.subscribe(kind, self._handle_signal)
        self._attached = True
        logger.debug("Proctoring monitor attached.")
        if self._presentation_host is not None and not self._presentation_host.request_fullscreen():
            self.record_violation(FULLSCREEN_DENIED_MESSAGE)

    def detach(self) -> bool:
        """Stop listening. Returns False when the monitor was already detached."""
        if self._detached:
            return False
        self._detached = True
        if self._attached:
            for kind in SignalKind:
                self._source.unsubscribe(kind, self._handle_signal)
            self._attached = False
            if self._presentation_host is not None:
                self._presentation_host.exit_fullscreen()
        self._violations.clear()
        logger.debug("Proctoring monitor detached.")
        return True

    def record_violation(self, message: str) -> str:
        self._violation_count += 1
        entry = f"{self._violation_count}. {message}"
        self._violations.append(entry)
        logger.warning("Proctoring violation %s", entry)
        if self._on_violation is not None:
            self._on_violation(entry)
        if self._violation_count >= self._threshold and not self._terminated:
            self._terminated = True
            logger.warning("Violation threshold of %s reached; terminating session.", self._threshold)
            self._on_terminate()
        return entry

    def _handle_signal(self, event: SignalEvent) -> None:
        if not self._attached:
            return
        if event.kind in SUPPRESSED_SIGNALS:
            event.suppress()
        self.record_violation(VIOLATION_MESSAGES[event.kind])
