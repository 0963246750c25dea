"""Utilities for exporting quizzes to the plain-text format used for imports."""

from __future__ import annotations

from pathlib import Path

from proctor_quiz.core.models import Question, QuestionKind, Quiz
from proctor_quiz.core.quiz_importer import OPTION_LETTERS


def save_quiz_to_file(file_path: Path, quiz: Quiz) -> None:
    """Persist the provided quiz to disk in the text import format."""

    if not quiz.questions:
        raise ValueError("Cannot export an empty quiz.")

    file_path = file_path.resolve()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(serialize_quiz(quiz), encoding="utf-8")


def serialize_quiz(quiz: Quiz) -> str:
    blocks = [_serialize_header(quiz)]
    blocks.extend(_serialize_question(question) for question in quiz.questions)
    return "\n\n---\n\n".join(blocks) + "\n"


def _serialize_header(quiz: Quiz) -> str:
    lines = [f"ID: {quiz.id}", f"TITLE: {quiz.title}"]
    if quiz.description:
        lines.append(f"DESCRIPTION: {quiz.description}")
    lines.append(f"TIMELIMIT: {quiz.time_limit_minutes}")
    if quiz.start_time is not None:
        lines.append(f"STARTS: {quiz.start_time.isoformat()}")
    if quiz.end_time is not None:
        lines.append(f"ENDS: {quiz.end_time.isoformat()}")
    lines.append(f"ACTIVE: {'yes' if quiz.is_active else 'no'}")
    return "\n".join(lines)


def _serialize_question(question: Question) -> str:
    lines: list[str] = []

    question_lines = question.text.splitlines() or [question.text]
    lines.append(f"Q: {question_lines[0]}")
    lines.extend(question_lines[1:])
    lines.append(f"TYPE: {question.kind.value}")

    correct = question.correct_answer
    if question.kind == QuestionKind.MULTIPLE_CHOICE:
        for letter, option_text in zip(OPTION_LETTERS, question.options):
            option_lines = option_text.splitlines() or [option_text]
            lines.append(f"{letter}: {option_lines[0]}")
            lines.extend(option_lines[1:])
        correct = OPTION_LETTERS[question.options.index(question.correct_answer)]

    lines.append(f"CORRECT: {correct}")
    lines.append(f"POINTS: {question.points}")
    if question.explanation:
        lines.append(f"EXPLANATION: {question.explanation}")
    return "\n".join(lines)
