"""Qt adapters for the timer and proctoring collaborators of ``QuizSession``."""

from __future__ import annotations

from collections.abc import Callable
import logging

from PySide6.QtCore import QEvent, QObject, Qt, QTimer
from PySide6.QtGui import QGuiApplication, QKeyEvent, QKeySequence
from PySide6.QtWidgets import QApplication, QWidget

from proctor_quiz.core.services.proctoring_monitor import SignalEvent, SignalHandler, SignalKind

logger = logging.getLogger(__name__)

_RESERVED_LETTER_KEYS = frozenset(
    {
        Qt.Key_A,
        Qt.Key_X,
        Qt.Key_Z,
        Qt.Key_Y,
        Qt.Key_F,
        Qt.Key_P,
        Qt.Key_S,
    }
)
_FUNCTION_KEYS = frozenset(getattr(Qt, f"Key_F{number}") for number in range(1, 36))
_HEADLESS_PLATFORMS = frozenset({"offscreen", "minimal"})


class QtTicker:
    """``Ticker`` backed by a repeating ``QTimer`` on the Qt event loop."""

    def __init__(self, parent: QObject | None = None) -> None:
        self._timer = QTimer(parent)
        self._timer.setTimerType(Qt.PreciseTimer)
        self._timer.timeout.connect(self._fire)
        self._callback: Callable[[], None] | None = None

    def start(self, interval_ms: int, callback: Callable[[], None]) -> None:
        self._callback = callback
        self._timer.setInterval(interval_ms)
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()
        self._callback = None

    def is_running(self) -> bool:
        return self._timer.isActive()

    def _fire(self) -> None:
        if self._callback is not None:
            self._callback()


class QtEnvironmentSignalSource(QObject):
    """Application-wide event filter that reports proctoring signals for one window.

    Also acts as the presentation host: it puts the window into fullscreen
    and reports when the student leaves it. Events whose signal was
    suppressed by a subscriber are consumed so the widget never sees them.
    """

    def __init__(self, window: QWidget) -> None:
        super().__init__(window)
        self._window = window
        self._handlers: dict[SignalKind, list[SignalHandler]] = {}
        self._installed = False
        self._fullscreen_expected = False

    # --- EnvironmentSignalSource ---

    def subscribe(self, kind: SignalKind, handler: SignalHandler) -> None:
        handlers = self._handlers.setdefault(kind, [])
        if handler not in handlers:
            handlers.append(handler)
        self._sync_installation()

    def unsubscribe(self, kind: SignalKind, handler: SignalHandler) -> None:
        handlers = self._handlers.get(kind, [])
        if handler in handlers:
            handlers.remove(handler)
        self._sync_installation()

    # --- PresentationHost ---

    def request_fullscreen(self) -> bool:
        if QGuiApplication.platformName() in _HEADLESS_PLATFORMS:
            logger.warning("Fullscreen is unavailable on the %s platform.", QGuiApplication.platformName())
            return False
        self._window.showFullScreen()
        return True

    def exit_fullscreen(self) -> None:
        self._fullscreen_expected = False
        if self._window.isFullScreen():
            self._window.showNormal()

    # --- Qt plumbing ---

    def _sync_installation(self) -> None:
        app = QApplication.instance()
        if app is None:
            return
        wanted = any(self._handlers.values())
        if wanted and not self._installed:
            app.installEventFilter(self)
            app.applicationStateChanged.connect(self._handle_application_state)
            self._installed = True
            logger.debug("Proctoring event filter installed.")
        elif not wanted and self._installed:
            app.removeEventFilter(self)
            app.applicationStateChanged.disconnect(self._handle_application_state)
            self._installed = False
            logger.debug("Proctoring event filter removed.")

    def _emit(self, kind: SignalKind, detail: str | None = None) -> bool:
        event = SignalEvent(kind=kind, detail=detail)
        for handler in list(self._handlers.get(kind, ())):
            handler(event)
        return event.suppressed

    def _belongs_to_window(self, watched: QObject) -> bool:
        return isinstance(watched, QWidget) and watched.window() is self._window

    def _handle_application_state(self, state: Qt.ApplicationState) -> None:
        # Modal dialogs of this application keep it active.
        if state == Qt.ApplicationHidden:
            self._emit(SignalKind.VISIBILITY_HIDDEN, "application hidden")
        elif state == Qt.ApplicationInactive:
            self._emit(SignalKind.FOCUS_LOST, "application inactive")

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:  # noqa: N802 - Qt API
        if not self._belongs_to_window(watched):
            return False
        event_type = event.type()

        if watched is self._window and event_type == QEvent.WindowStateChange:
            self._handle_window_state_change()
            return False

        if event_type == QEvent.ContextMenu:
            return self._emit(SignalKind.CONTEXT_MENU)
        if event_type == QEvent.KeyPress:
            kind = self._classify_key_press(event)
            return kind is not None and self._emit(kind, QKeySequence(event.keyCombination()).toString())
        if event_type == QEvent.KeyRelease and event.key() == Qt.Key_Print:
            return self._emit(SignalKind.SCREENSHOT, "Print")
        return False

    def _handle_window_state_change(self) -> None:
        if self._window.isMinimized():
            self._emit(SignalKind.VISIBILITY_HIDDEN, "window minimized")
        elif self._window.isFullScreen():
            self._fullscreen_expected = True
        elif self._fullscreen_expected:
            self._fullscreen_expected = False
            self._emit(SignalKind.FULLSCREEN_EXIT)

    @staticmethod
    def _classify_key_press(event: QKeyEvent) -> SignalKind | None:
        if event.matches(QKeySequence.StandardKey.Copy):
            return SignalKind.COPY
        if event.matches(QKeySequence.StandardKey.Paste):
            return SignalKind.PASTE
        key = event.key()
        modifiers = event.modifiers()
        command = bool(modifiers & (Qt.ControlModifier | Qt.MetaModifier))
        if key == Qt.Key_Print:
            # Reported on release so a press/release pair counts once.
            return None
        if command and modifiers & Qt.ShiftModifier and key == Qt.Key_I:
            return SignalKind.SCREENSHOT
        if command and key in _RESERVED_LETTER_KEYS:
            return SignalKind.RESERVED_SHORTCUT
        if key in _FUNCTION_KEYS and key != Qt.Key_F5:
            return SignalKind.RESERVED_SHORTCUT
        return None
