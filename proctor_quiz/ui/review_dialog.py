"""Dialog showing the per-question breakdown of a finished attempt."""

from __future__ import annotations

from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import QDialog, QDialogButtonBox, QLabel, QVBoxLayout, QWidget

from proctor_quiz.constants.ui_constants import REVIEW_DIALOG_TITLE
from proctor_quiz.core.markdown_math_renderer import renderer
from proctor_quiz.core.scoring import AttemptReview, format_time
from proctor_quiz.styling.color_palette import ColorPalette, Theme
from proctor_quiz.ui.question_renderer import render_review_item


class ReviewDialog(QDialog):
    def __init__(
        self,
        review: AttemptReview,
        font_size: int = 12,
        theme: Theme = Theme.LIGHT,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle(REVIEW_DIALOG_TITLE)
        self.resize(760, 620)
        self._review = review

        layout = QVBoxLayout(self)

        attempt = review.attempt
        summary = QLabel(
            f"<b>{review.quiz.title}</b><br>"
            f"Score: {attempt.score}/{attempt.total_points} ({review.percentage}%)<br>"
            f"Correct answers: {review.correct_count}/{len(review.questions)}<br>"
            f"Time taken: {format_time(attempt.time_taken)}",
            self,
        )
        summary.setStyleSheet(f"font-size: {font_size + 2}pt;")
        layout.addWidget(summary)

        message = QLabel(review.performance_message, self)
        message.setStyleSheet(f"font-size: {font_size}pt; color: {ColorPalette.TEXT_SECONDARY.get(theme)};")
        layout.addWidget(message)

        self.details_view = QWebEngineView(self)
        markdown = "\n\n---\n\n".join(
            render_review_item(item, number) for number, item in enumerate(review.questions, start=1)
        )
        self.details_view.setHtml(
            renderer.render_full_document(
                markdown,
                title=REVIEW_DIALOG_TITLE,
                font_size=font_size,
                text_color=ColorPalette.TEXT_PRIMARY.get(theme),
                background=ColorPalette.BACKGROUND_PRIMARY.get(theme),
            )
        )
        layout.addWidget(self.details_view, stretch=1)

        buttons = QDialogButtonBox(QDialogButtonBox.Close, self)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)
