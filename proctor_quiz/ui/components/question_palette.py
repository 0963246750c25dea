"""Grid of numbered buttons for jumping between questions."""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtWidgets import QGridLayout, QGroupBox, QPushButton, QWidget

from proctor_quiz.core.services.quiz_session import QuestionStatus
from proctor_quiz.styling.color_palette import Theme
from proctor_quiz.styling.styles import Styles

_COLUMNS = 5


class QuestionPalette(QGroupBox):
    """Shows answered, flagged and unanswered questions and the current one."""

    def __init__(self, on_select: Callable[[int], None], parent: QWidget | None = None) -> None:
        super().__init__("Questions", parent)
        self.on_select = on_select
        self._buttons: list[QPushButton] = []
        self._theme: Theme = Theme.LIGHT
        self._grid = QGridLayout()
        self.setLayout(self._grid)

    def set_question_count(self, count: int) -> None:
        while self._grid.count():
            item = self._grid.takeAt(0)
            widget = item.widget()
            if widget is not None:
                widget.deleteLater()
        self._buttons = []
        for idx in range(count):
            button = QPushButton(str(idx + 1), self)
            button.setFixedSize(36, 36)
            button.clicked.connect(lambda _checked=False, index=idx: self.on_select(index))
            self._grid.addWidget(button, idx // _COLUMNS, idx % _COLUMNS)
            self._buttons.append(button)

    def refresh(self, statuses: list[QuestionStatus], current_index: int, theme: Theme) -> None:
        self._theme = theme
        for idx, button in enumerate(self._buttons):
            status = statuses[idx] if idx < len(statuses) else QuestionStatus.UNANSWERED
            button.setStyleSheet(Styles.get_palette_button_style(theme, status.name.lower(), idx == current_index))

    def set_locked(self, locked: bool) -> None:
        for button in self._buttons:
            button.setEnabled(not locked)
