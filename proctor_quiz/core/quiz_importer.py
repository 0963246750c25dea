"""Utilities for importing quizzes from a human-friendly text file.

File format: a header block followed by question blocks. Blocks are separated
by lines containing only ``---``.

    ID: capitals-101            (optional, defaults to the file name)
    TITLE: European capitals
    DESCRIPTION: Warm-up quiz   (optional)
    TIMELIMIT: 10               (minutes)
    STARTS: 2024-05-01T09:00    (optional, ISO-8601)
    ENDS: 2024-05-01T17:00      (optional, ISO-8601)
    ACTIVE: yes                 (optional, yes|no)
    ---
    Q: What is the capital of France? Additional lines until the next
       marker are treated as part of the question.
    TYPE: multiple-choice       (multiple-choice | true-false | short-answer)
    A: Berlin
    B: Paris
    C: Rome
    CORRECT: B                  (option letter for multiple-choice, text otherwise)
    POINTS: 2                   (optional, defaults to 1)
    EXPLANATION: Paris has been the capital since 987.   (optional)

Questions are numbered ``q1``, ``q2``... in file order.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from proctor_quiz.constants.quiz_constants import DEFAULT_POINTS, MAX_OPTION_COUNT
from proctor_quiz.core.models import Question, QuestionKind, Quiz


class QuizImportError(Exception):
    """Raised when a quiz definition cannot be parsed."""


@dataclass(slots=True)
class ImportedQuiz:
    """Container for the parsed quiz and the file it came from."""

    source_path: Path
    quiz: Quiz


OPTION_LETTERS = tuple(chr(ord("A") + idx) for idx in range(MAX_OPTION_COUNT))
_HEADER_KEYS = ("ID", "TITLE", "DESCRIPTION", "TIMELIMIT", "STARTS", "ENDS", "ACTIVE")
_TRUTHY = {"yes", "true", "1", "on"}
_FALSY = {"no", "false", "0", "off"}


def load_quiz_from_file(file_path: Path) -> ImportedQuiz:
    text = file_path.read_text(encoding="utf-8")
    quiz = parse_quiz_text(text, default_id=file_path.stem)
    return ImportedQuiz(source_path=file_path, quiz=quiz)


def parse_quiz_text(text: str, default_id: str = "quiz") -> Quiz:
    blocks = _split_blocks(text)
    if not blocks:
        raise QuizImportError("Quiz file is empty.")
    header = _parse_header(blocks[0])
    questions = [
        _parse_question(block, question_id=f"q{number}")
        for number, block in enumerate(blocks[1:], start=1)
    ]
    if not questions:
        raise QuizImportError("Quiz file did not contain any questions.")
    return Quiz(
        id=header.get("ID") or default_id,
        title=header["TITLE"],
        description=header.get("DESCRIPTION", ""),
        time_limit_minutes=_parse_int(header["TIMELIMIT"], "TIMELIMIT", minimum=0),
        questions=tuple(questions),
        is_active=_parse_bool(header.get("ACTIVE", "yes")),
        start_time=_parse_datetime(header.get("STARTS"), "STARTS"),
        end_time=_parse_datetime(header.get("ENDS"), "ENDS"),
    )


def _split_blocks(text: str) -> list[str]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        if raw_line.strip() == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        current_block.append(raw_line)
    if current_block:
        blocks.append("\n".join(current_block).strip())
    return [block for block in blocks if block]


def _split_marker(line: str) -> tuple[str, str] | None:
    if ":" not in line:
        return None
    key, value = line.split(":", 1)
    return key.strip().upper(), value.strip()


def _parse_header(block: str) -> dict[str, str]:
    header: dict[str, str] = {}
    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        marker = _split_marker(line)
        if marker is None or marker[0] not in _HEADER_KEYS:
            raise QuizImportError(f"Unexpected header line: '{line}'.")
        header[marker[0]] = marker[1]
    for required in ("TITLE", "TIMELIMIT"):
        if not header.get(required):
            raise QuizImportError(f"Quiz header must define {required}.")
    return header


def _parse_question(block: str, question_id: str) -> Question:
    question_lines: list[str] = []
    options: dict[str, str] = {}
    kind_value: str | None = None
    correct_value: str | None = None
    points = DEFAULT_POINTS
    explanation_lines: list[str] = []
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        marker = _split_marker(line)
        key = marker[0] if marker else None

        if key == "Q":
            question_lines = [marker[1]]
            current_section = "Q"
            continue
        if key == "TYPE":
            kind_value = marker[1].lower()
            current_section = None
            continue
        if key == "CORRECT":
            correct_value = marker[1]
            current_section = None
            continue
        if key == "POINTS":
            points = _parse_int(marker[1], "POINTS", minimum=1)
            current_section = None
            continue
        if key == "EXPLANATION":
            explanation_lines = [marker[1]]
            current_section = "EXPLANATION"
            continue
        if key in OPTION_LETTERS and len(line) > 2 and line[1] == ":":
            options[key] = marker[1]
            current_section = key
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section == "EXPLANATION":
            explanation_lines.append(line)
        elif current_section in OPTION_LETTERS:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise QuizImportError(f"Encountered text outside of a known section: '{line}'.")

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise QuizImportError("Question text missing (Q: ...)")
    if correct_value is None or not correct_value.strip():
        raise QuizImportError(f"Question '{question_id}' must define CORRECT.")

    try:
        kind = QuestionKind(kind_value) if kind_value else _infer_kind(options)
    except ValueError as exc:
        raise QuizImportError(f"Unknown question TYPE '{kind_value}'.") from exc
    if kind == QuestionKind.MATCHING:
        raise QuizImportError("Matching questions are not supported.")

    option_list: tuple[str, ...] = ()
    correct_answer = correct_value.strip()
    if kind == QuestionKind.MULTIPLE_CHOICE:
        option_list = _ordered_options(options)
        letter = correct_answer.upper()
        if letter not in options:
            raise QuizImportError(f"CORRECT must name one of the options ({', '.join(sorted(options))}).")
        correct_answer = options[letter].strip()
    elif options:
        raise QuizImportError(f"Options are only allowed for multiple-choice questions ('{question_id}').")

    explanation = "\n".join(explanation_lines).strip() or None
    return Question(
        id=question_id,
        text=question_text,
        kind=kind,
        correct_answer=correct_answer,
        points=points,
        options=option_list,
        explanation=explanation,
    )


def _infer_kind(options: dict[str, str]) -> QuestionKind:
    return QuestionKind.MULTIPLE_CHOICE if options else QuestionKind.SHORT_ANSWER


def _ordered_options(options: dict[str, str]) -> tuple[str, ...]:
    if len(options) < 2:
        raise QuizImportError("Multiple-choice questions need at least two options.")
    expected = OPTION_LETTERS[: len(options)]
    if tuple(sorted(options)) != expected:
        raise QuizImportError(f"Options must use consecutive letters starting at A ({', '.join(expected)}).")
    cleaned = tuple(options[letter].strip() for letter in expected)
    if any(not option for option in cleaned):
        raise QuizImportError("Option text cannot be empty.")
    return cleaned


def _parse_int(raw_value: str, name: str, minimum: int) -> int:
    try:
        parsed_value = int(raw_value)
    except ValueError as exc:  # pragma: no cover - conversion error details unnecessary
        raise QuizImportError(f"{name} must be an integer.") from exc
    if parsed_value < minimum:
        raise QuizImportError(f"{name} must be at least {minimum}.")
    return parsed_value


def _parse_bool(raw_value: str) -> bool:
    lowered = raw_value.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise QuizImportError(f"ACTIVE must be yes or no, not '{raw_value}'.")


def _parse_datetime(raw_value: str | None, name: str) -> datetime | None:
    if not raw_value:
        return None
    try:
        return datetime.fromisoformat(raw_value)
    except ValueError as exc:
        raise QuizImportError(f"{name} must be an ISO-8601 timestamp.") from exc
