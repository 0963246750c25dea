"""
Unit Tests for the quiz text importer and exporter
"""
from datetime import datetime
from pathlib import Path

import pytest

from proctor_quiz.core.models import QuestionKind
from proctor_quiz.core.quiz_exporter import save_quiz_to_file, serialize_quiz
from proctor_quiz.core.quiz_importer import QuizImportError, load_quiz_from_file, parse_quiz_text

SAMPLE_QUIZ = Path(__file__).resolve().parents[1] / "proctor_quiz" / "data" / "sample_quiz.txt"

QUIZ_TEXT = """\
ID: capitals
TITLE: European capitals
DESCRIPTION: Warm-up
TIMELIMIT: 10
STARTS: 2024-05-01T09:00
ENDS: 2024-05-01T17:00
ACTIVE: no
---
Q: What is the capital of France?
Think about the Seine.
TYPE: multiple-choice
A: Berlin
B: Paris
C: Rome
CORRECT: b
POINTS: 2
EXPLANATION: Paris has been the capital since 987.
---
Q: Vienna is in Austria.
TYPE: true-false
CORRECT: True
---
Q: Capital of Norway?
CORRECT: Oslo
"""


class TestParseQuizText:
    """Tests for the header and question blocks"""

    @pytest.fixture
    def quiz(self):
        return parse_quiz_text(QUIZ_TEXT)

    def test_header(self, quiz):
        assert quiz.id == "capitals"
        assert quiz.title == "European capitals"
        assert quiz.description == "Warm-up"
        assert quiz.time_limit_minutes == 10
        assert quiz.start_time == datetime(2024, 5, 1, 9, 0)
        assert quiz.end_time == datetime(2024, 5, 1, 17, 0)
        assert quiz.is_active is False

    def test_multiple_choice_letter_maps_to_option_text(self, quiz):
        question = quiz.questions[0]
        assert question.id == "q1"
        assert question.kind == QuestionKind.MULTIPLE_CHOICE
        assert question.options == ("Berlin", "Paris", "Rome")
        assert question.correct_answer == "Paris"
        assert question.points == 2
        assert question.text == "What is the capital of France?\nThink about the Seine."
        assert question.explanation == "Paris has been the capital since 987."

    def test_true_false_and_inferred_short_answer(self, quiz):
        true_false, short = quiz.questions[1:]
        assert true_false.kind == QuestionKind.TRUE_FALSE
        assert true_false.points == 1
        assert short.kind == QuestionKind.SHORT_ANSWER
        assert short.correct_answer == "Oslo"
        assert quiz.total_points == 4

    def test_default_id(self):
        quiz = parse_quiz_text("TITLE: T\nTIMELIMIT: 5\n---\nQ: x\nCORRECT: y", default_id="fallback")
        assert quiz.id == "fallback"
        assert quiz.is_active is True

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "TITLE: Only a header\nTIMELIMIT: 5",
            "TIMELIMIT: 5\n---\nQ: x\nCORRECT: y",
            "TITLE: T\nTIMELIMIT: soon\n---\nQ: x\nCORRECT: y",
            "TITLE: T\nTIMELIMIT: 5\n---\nQ: x",
            "TITLE: T\nTIMELIMIT: 5\n---\nQ: x\nTYPE: matching\nCORRECT: y",
            "TITLE: T\nTIMELIMIT: 5\n---\nQ: x\nTYPE: essay\nCORRECT: y",
            "TITLE: T\nTIMELIMIT: 5\n---\nQ: x\nA: one\nB: two\nCORRECT: C",
            "TITLE: T\nTIMELIMIT: 5\n---\nQ: x\nA: one\nC: two\nCORRECT: A",
            "TITLE: T\nTIMELIMIT: 5\n---\nQ: x\nTYPE: short-answer\nA: one\nB: two\nCORRECT: A",
            "TITLE: T\nTIMELIMIT: 5\nACTIVE: maybe\n---\nQ: x\nCORRECT: y",
            "TITLE: T\nTIMELIMIT: 5\nSTARTS: tomorrow\n---\nQ: x\nCORRECT: y",
            "TITLE: T\nTIMELIMIT: 5\nCOLOR: blue\n---\nQ: x\nCORRECT: y",
        ],
    )
    def test_invalid_files(self, text):
        with pytest.raises(QuizImportError):
            parse_quiz_text(text)


class TestQuizFiles:
    """Tests for loading and saving files"""

    def test_bundled_sample_quiz_loads(self):
        imported = load_quiz_from_file(SAMPLE_QUIZ)
        assert imported.quiz.id == "sample-capitals"
        assert len(imported.quiz.questions) == 4

    def test_export_then_import(self, tmp_path, sample_quiz):
        target = tmp_path / "nested" / "geo.txt"
        save_quiz_to_file(target, sample_quiz)

        loaded = load_quiz_from_file(target).quiz
        assert loaded == sample_quiz

    def test_serialized_multiple_choice_uses_letters(self, sample_quiz):
        text = serialize_quiz(sample_quiz)
        assert "B: Paris" in text
        assert "CORRECT: B" in text
        assert "ACTIVE: yes" in text
