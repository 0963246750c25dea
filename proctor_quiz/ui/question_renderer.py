"""Question rendering utilities for the quiz window and review dialog."""

from __future__ import annotations

from proctor_quiz.core.markdown_math_renderer import renderer
from proctor_quiz.core.models import Question, QuestionKind
from proctor_quiz.core.scoring import QuestionReview
from proctor_quiz.styling.color_palette import ColorPalette, Theme


def render_question(
    question: Question,
    number: int,
    total: int,
    font_size: int = 14,
    theme: Theme = Theme.LIGHT,
) -> str:
    """Render a question prompt as HTML ready for display in QWebEngineView.

    Answer widgets are native Qt controls, so only the prompt is rendered
    here. Multiple-choice options are listed as well because they may contain
    math that only MathJax can typeset.
    """
    markdown_lines = [f"**Question {number} of {total}** ({question.points} pt)", question.text.strip()]
    if question.kind == QuestionKind.MULTIPLE_CHOICE:
        for idx, option in enumerate(question.options):
            letter = chr(ord("A") + idx)
            markdown_lines.append(f"**{letter}.** {option or '(empty)'}")
    markdown = "\n\n".join(markdown_lines)
    return renderer.render_full_document(
        markdown,
        font_size=font_size,
        text_color=ColorPalette.TEXT_PRIMARY.get(theme),
        background=ColorPalette.BACKGROUND_PRIMARY.get(theme),
    )


def render_review_item(item: QuestionReview, number: int) -> str:
    """Markdown summary of one reviewed question."""
    question = item.question
    verdict = "Correct" if item.is_correct else "Incorrect"
    lines = [
        f"**{number}. {question.text.strip()}**",
        f"Your answer: {item.given_answer or '_Not answered_'}",
        f"Correct answer: {question.correct_answer}",
        f"{verdict} ({item.points_awarded}/{question.points} pt)",
    ]
    if question.explanation:
        lines.append(f"_{question.explanation}_")
    return "\n\n".join(lines)
