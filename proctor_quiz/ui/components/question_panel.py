"""Component showing the current question and its answer controls."""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtCore import Qt
from PySide6.QtWebEngineCore import QWebEnginePage
from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import (
    QButtonGroup,
    QLabel,
    QPlainTextEdit,
    QRadioButton,
    QVBoxLayout,
    QWidget,
)

from proctor_quiz.constants.ui_constants import SHORT_ANSWER_PLACEHOLDER
from proctor_quiz.core.models import Question, QuestionKind
from proctor_quiz.styling.color_palette import Theme
from proctor_quiz.ui.question_renderer import render_question


class QuestionPanel(QWidget):
    """Renders one question and reports answer changes through ``on_answer``."""

    def __init__(
        self,
        on_answer: Callable[[str, str], None],
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.on_answer = on_answer
        self._question: Question | None = None
        self._font_size: int = 12
        self._theme: Theme = Theme.LIGHT
        self._choice_group: QButtonGroup | None = None
        self._text_answer: QPlainTextEdit | None = None
        self._loading = False

        self._build_ui()

    def _build_ui(self) -> None:
        layout = QVBoxLayout()
        self.setLayout(layout)

        self.prompt_view = QWebEngineView(self)
        self.prompt_view.setContextMenuPolicy(Qt.NoContextMenu)
        self.prompt_view.setMinimumHeight(180)
        layout.addWidget(self.prompt_view, stretch=2)

        self.answer_container = QWidget(self)
        self.answer_layout = QVBoxLayout()
        self.answer_container.setLayout(self.answer_layout)
        layout.addWidget(self.answer_container, stretch=1)

    @property
    def question(self) -> Question | None:
        return self._question

    def show_question(self, question: Question, number: int, total: int, answer: str | None) -> None:
        self._question = question
        self._number = number
        self._total = total
        self._render_prompt()
        self._rebuild_answer_controls(question, answer)

    def set_style(self, font_size: int, theme: Theme) -> None:
        self._font_size = font_size
        self._theme = theme
        if self._question is not None:
            self._render_prompt()

    def set_read_only(self, read_only: bool) -> None:
        self.answer_container.setEnabled(not read_only)

    def _render_prompt(self) -> None:
        html = render_question(self._question, self._number, self._total, self._font_size, self._theme)
        self.prompt_view.setHtml(html)
        self.prompt_view.page().triggerAction(QWebEnginePage.Unselect)

    def _clear_answer_controls(self) -> None:
        while self.answer_layout.count():
            item = self.answer_layout.takeAt(0)
            widget = item.widget()
            if widget is not None:
                widget.deleteLater()
        self._choice_group = None
        self._text_answer = None

    def _rebuild_answer_controls(self, question: Question, answer: str | None) -> None:
        self._loading = True
        self._clear_answer_controls()
        choices = question.answer_choices()
        if choices:
            self._choice_group = QButtonGroup(self.answer_container)
            self._choice_group.setExclusive(True)
            for idx, choice in enumerate(choices):
                label = f"{chr(ord('A') + idx)}. {choice}" if question.kind == QuestionKind.MULTIPLE_CHOICE else choice
                button = QRadioButton(label, self.answer_container)
                button.setProperty("answer_value", choice)
                button.setChecked(answer == choice)
                self._choice_group.addButton(button, idx)
                self.answer_layout.addWidget(button)
            self._choice_group.buttonToggled.connect(self._handle_choice_toggled)
        else:
            hint = QLabel("Short answer", self.answer_container)
            self.answer_layout.addWidget(hint)
            self._text_answer = QPlainTextEdit(self.answer_container)
            self._text_answer.setPlaceholderText(SHORT_ANSWER_PLACEHOLDER)
            self._text_answer.setPlainText(answer or "")
            self._text_answer.setContextMenuPolicy(Qt.NoContextMenu)
            self._text_answer.textChanged.connect(self._handle_text_changed)
            self.answer_layout.addWidget(self._text_answer)
        self.answer_layout.addStretch()
        self._loading = False

    def _handle_choice_toggled(self, button: QRadioButton, checked: bool) -> None:
        if self._loading or not checked or self._question is None:
            return
        self.on_answer(self._question.id, str(button.property("answer_value")))

    def _handle_text_changed(self) -> None:
        if self._loading or self._question is None or self._text_answer is None:
            return
        self.on_answer(self._question.id, self._text_answer.toPlainText())
