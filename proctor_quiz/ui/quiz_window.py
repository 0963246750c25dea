"""Qt main window hosting one proctored quiz session."""

from __future__ import annotations

from collections import deque
import logging

from PySide6.QtCore import QEvent, Qt, QTimer
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QComboBox,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QProgressBar,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from proctor_quiz.constants.quiz_constants import VISIBLE_WARNING_COUNT
from proctor_quiz.constants.ui_constants import (
    BUTTON_FLAG,
    BUTTON_NEXT,
    BUTTON_PREVIOUS,
    BUTTON_SUBMIT,
    BUTTON_THEME,
    BUTTON_UNFLAG,
    DEFAULT_FONT_SIZE_LABEL,
    FONT_SIZE_CHOICES,
    FULLSCREEN_BADGE,
    LOAD_ERROR_TITLE,
    LOADING_MESSAGE,
    SUBMITTING_MESSAGE,
    WINDOW_TITLE,
    WINDOWED_BADGE,
)
from proctor_quiz.core.models import SessionState
from proctor_quiz.core.quiz_manager import QuizManager
from proctor_quiz.core.scoring import format_time
from proctor_quiz.core.services.quiz_session import NavigationTarget, QuestionStatus
from proctor_quiz.core.services.timer_engine import is_time_running_out
from proctor_quiz.styling.color_palette import Theme
from proctor_quiz.styling.styles import Styles
from proctor_quiz.ui.components.question_palette import QuestionPalette
from proctor_quiz.ui.components.question_panel import QuestionPanel
from proctor_quiz.ui.dialog_helpers import ask_retry_submit, confirm_exit, confirm_submit, show_error
from proctor_quiz.ui.qt_environment import QtEnvironmentSignalSource, QtTicker
from proctor_quiz.ui.review_dialog import ReviewDialog

logger = logging.getLogger(__name__)


class QuizWindow(QMainWindow):
    """Student-facing window: timer, question, answer controls and warnings."""

    def __init__(self, quiz_manager: QuizManager, quiz_id: str) -> None:
        super().__init__()
        self.setWindowTitle(WINDOW_TITLE)

        self.quiz_manager = quiz_manager
        self.quiz_id = quiz_id

        self._theme: Theme = Theme.LIGHT
        self._font_size: int = FONT_SIZE_CHOICES[DEFAULT_FONT_SIZE_LABEL]
        self._warnings: deque[str] = deque(maxlen=VISIBLE_WARNING_COUNT)

        self._build_ui()
        self._apply_styles()

        self.environment = QtEnvironmentSignalSource(self)
        self.session = self.quiz_manager.open_session(
            quiz_id,
            self.environment,
            QtTicker(self),
            presentation_host=self.environment,
            on_state_changed=self._handle_state_changed,
            on_tick=self._handle_tick,
            on_violation=self._handle_violation,
            on_submit_failed=self._handle_submit_failed,
            on_navigate=self._handle_navigate,
        )
        QTimer.singleShot(0, self._start_session)

    def _build_ui(self) -> None:
        central_widget = QWidget(self)
        self.setCentralWidget(central_widget)
        root_layout = QVBoxLayout()
        central_widget.setLayout(root_layout)

        # Header: title, display settings, badge and timer
        header_row = QHBoxLayout()
        self.title_label = QLabel("", self)
        self.title_label.setStyleSheet("font-weight: bold;")
        header_row.addWidget(self.title_label)
        header_row.addStretch()

        self.font_size_combo = QComboBox(self)
        self.font_size_combo.addItems(list(FONT_SIZE_CHOICES))
        self.font_size_combo.setCurrentText(DEFAULT_FONT_SIZE_LABEL)
        self.font_size_combo.currentTextChanged.connect(self._handle_font_size_changed)
        header_row.addWidget(self.font_size_combo)

        self.theme_button = QPushButton(BUTTON_THEME, self)
        self.theme_button.clicked.connect(self._handle_toggle_theme)
        header_row.addWidget(self.theme_button)

        self.fullscreen_badge = QLabel(WINDOWED_BADGE, self)
        header_row.addWidget(self.fullscreen_badge)

        self.timer_label = QLabel("--:--", self)
        header_row.addWidget(self.timer_label)
        root_layout.addLayout(header_row)

        self.progress_bar = QProgressBar(self)
        self.progress_bar.setRange(0, 100)
        self.progress_bar.setTextVisible(False)
        root_layout.addWidget(self.progress_bar)

        self.warning_label = QLabel("", self)
        self.warning_label.setWordWrap(True)
        self.warning_label.setVisible(False)
        root_layout.addWidget(self.warning_label)

        self.page_stack = QStackedWidget(self)
        self.status_label = QLabel(LOADING_MESSAGE, self)
        self.status_label.setAlignment(Qt.AlignCenter)
        self.page_stack.addWidget(self.status_label)

        quiz_page = QWidget(self)
        quiz_layout = QHBoxLayout()
        quiz_page.setLayout(quiz_layout)

        self.question_panel = QuestionPanel(on_answer=self._handle_answer, parent=quiz_page)
        quiz_layout.addWidget(self.question_panel, stretch=3)

        side_layout = QVBoxLayout()
        self.question_palette = QuestionPalette(on_select=self._handle_jump, parent=quiz_page)
        side_layout.addWidget(self.question_palette)
        side_layout.addStretch()
        quiz_layout.addLayout(side_layout, stretch=1)
        self.page_stack.addWidget(quiz_page)
        root_layout.addWidget(self.page_stack, stretch=1)

        # Navigation row
        nav_row = QHBoxLayout()
        self.previous_button = QPushButton(BUTTON_PREVIOUS, self)
        self.previous_button.clicked.connect(self._handle_previous)
        nav_row.addWidget(self.previous_button)

        self.flag_button = QPushButton(BUTTON_FLAG, self)
        self.flag_button.setCheckable(True)
        self.flag_button.clicked.connect(self._handle_toggle_flag)
        nav_row.addWidget(self.flag_button)

        self.next_button = QPushButton(BUTTON_NEXT, self)
        self.next_button.clicked.connect(self._handle_next)
        nav_row.addWidget(self.next_button)
        nav_row.addStretch()

        self.submit_button = QPushButton(BUTTON_SUBMIT, self)
        self.submit_button.clicked.connect(self._handle_submit)
        nav_row.addWidget(self.submit_button)
        root_layout.addLayout(nav_row)

        self._set_controls_enabled(False)

    def _apply_styles(self) -> None:
        self.setStyleSheet(Styles.get_main_window_style(self._theme, self._font_size))
        self.submit_button.setStyleSheet(Styles.get_primary_button_style(self._theme))
        self.warning_label.setStyleSheet(Styles.get_warning_style(self._theme))
        self._update_fullscreen_badge()
        self.question_panel.set_style(self._font_size, self._theme)
        if hasattr(self, "session") and self.session.state == SessionState.ACTIVE:
            self._update_timer_label(self.session.remaining_seconds)
            self._refresh_palette()

    # --- Session lifecycle ---

    def _start_session(self) -> None:
        state = self.session.initialize()
        if state != SessionState.ACTIVE:
            return
        quiz = self.session.quiz
        self.title_label.setText(quiz.title)
        self.question_palette.set_question_count(self.session.question_count)
        self.page_stack.setCurrentIndex(1)
        self._set_controls_enabled(True)
        self._update_timer_label(self.session.remaining_seconds)
        self._show_current_question()
        if self.session.resumed:
            logger.info("Resumed quiz %s with %d answers.", quiz.id, self.session.answered_count)

    def _handle_state_changed(self, state: SessionState) -> None:
        if state == SessionState.SUBMITTING:
            self._set_controls_enabled(False)
            self.question_panel.set_read_only(True)
            self.status_label.setText(SUBMITTING_MESSAGE)
            self.page_stack.setCurrentIndex(0)
        elif state in (SessionState.COMPLETED, SessionState.ERROR, SessionState.SUSPENDED):
            self._set_controls_enabled(False)

    def _handle_navigate(self, target: NavigationTarget) -> None:
        # Deferred so dialogs never open inside a timer or event-filter callback.
        if target == NavigationTarget.REVIEW:
            QTimer.singleShot(0, self._show_review)
        else:
            QTimer.singleShot(0, self._show_load_error)

    def _show_review(self) -> None:
        review = self.quiz_manager.review(self.quiz_id, self.session.student_id)
        if review is not None:
            ReviewDialog(review, font_size=self._font_size, theme=self._theme, parent=self).exec()
        self.close()

    def _show_load_error(self) -> None:
        show_error(self, LOAD_ERROR_TITLE, self.session.error_message or "The quiz could not be loaded.")
        self.close()

    def _handle_submit_failed(self, error: Exception) -> None:
        QTimer.singleShot(0, lambda: self._offer_retry(str(error)))

    def _offer_retry(self, message: str) -> None:
        if self.session.state != SessionState.SUBMITTING:
            return
        if ask_retry_submit(self, message):
            self.session.retry_submit()
        else:
            self.submit_button.setText("Retry Submit")
            self.submit_button.setEnabled(True)

    # --- Timer and proctoring ---

    def _handle_tick(self, remaining_seconds: int) -> None:
        self._update_timer_label(remaining_seconds)

    def _update_timer_label(self, remaining_seconds: int | None) -> None:
        if remaining_seconds is None:
            return
        urgent = is_time_running_out(remaining_seconds)
        self.timer_label.setText(format_time(remaining_seconds))
        self.timer_label.setStyleSheet(Styles.get_timer_style(self._theme, urgent))

    def _handle_violation(self, message: str) -> None:
        self._warnings.append(message)
        self.warning_label.setText("\n".join(self._warnings))
        self.warning_label.setVisible(True)

    def changeEvent(self, event: QEvent) -> None:  # noqa: N802 - Qt API
        if event.type() == QEvent.WindowStateChange:
            self._update_fullscreen_badge()
        super().changeEvent(event)

    def _update_fullscreen_badge(self) -> None:
        fullscreen = self.isFullScreen()
        self.fullscreen_badge.setText(FULLSCREEN_BADGE if fullscreen else WINDOWED_BADGE)
        self.fullscreen_badge.setStyleSheet(Styles.get_badge_style(self._theme, fullscreen))

    # --- Question navigation ---

    def _show_current_question(self) -> None:
        question = self.session.current_question
        if question is None:
            return
        index = self.session.current_index
        self.question_panel.show_question(
            question,
            index + 1,
            self.session.question_count,
            self.session.answers.get(question.id),
        )
        flagged = question.id in self.session.flagged
        self.flag_button.setChecked(flagged)
        self.flag_button.setText(BUTTON_UNFLAG if flagged else BUTTON_FLAG)
        self.previous_button.setEnabled(index > 0)
        self.next_button.setEnabled(index < self.session.question_count - 1)
        self.progress_bar.setValue(int(self.session.progress_percentage))
        self._refresh_palette()

    def _refresh_palette(self) -> None:
        statuses = [self.session.question_status(idx) for idx in range(self.session.question_count)]
        self.question_palette.refresh(statuses, self.session.current_index, self._theme)

    def _handle_answer(self, question_id: str, value: str) -> None:
        if self.session.state != SessionState.ACTIVE:
            return
        self.session.set_answer(question_id, value)
        self._refresh_palette()

    def _handle_toggle_flag(self) -> None:
        question = self.session.current_question
        if question is None or self.session.state != SessionState.ACTIVE:
            return
        flagged = self.session.toggle_flag(question.id)
        self.flag_button.setChecked(flagged)
        self.flag_button.setText(BUTTON_UNFLAG if flagged else BUTTON_FLAG)
        self._refresh_palette()

    def _handle_jump(self, index: int) -> None:
        self.session.navigate(index)
        self._show_current_question()

    def _handle_previous(self) -> None:
        self.session.previous_question()
        self._show_current_question()

    def _handle_next(self) -> None:
        self.session.next_question()
        self._show_current_question()

    def _handle_submit(self) -> None:
        if self.session.state == SessionState.SUBMITTING:
            self.submit_button.setEnabled(False)
            self.session.retry_submit()
            return
        if self.session.state != SessionState.ACTIVE:
            return
        statuses = [self.session.question_status(idx) for idx in range(self.session.question_count)]
        unanswered = self.session.question_count - self.session.answered_count
        flagged = sum(1 for status in statuses if status == QuestionStatus.FLAGGED)
        if confirm_submit(self, unanswered, flagged):
            self.session.submit()

    def _set_controls_enabled(self, enabled: bool) -> None:
        for widget in (self.previous_button, self.next_button, self.flag_button, self.submit_button):
            widget.setEnabled(enabled)
        self.question_palette.set_locked(not enabled)

    # --- Display settings ---

    def _handle_font_size_changed(self, label: str) -> None:
        self._font_size = FONT_SIZE_CHOICES.get(label, self._font_size)
        self._apply_styles()

    def _handle_toggle_theme(self) -> None:
        self._theme = self._theme.toggled()
        self._apply_styles()

    def closeEvent(self, event: QCloseEvent) -> None:  # noqa: N802 - Qt API
        state = self.session.state
        if state == SessionState.SUBMITTING:
            event.ignore()
            return
        if state == SessionState.ACTIVE:
            if not confirm_exit(self):
                event.ignore()
                return
            self.session.suspend()
        super().closeEvent(event)
