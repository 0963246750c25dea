"""
Unit Tests for markdown rendering of prompts and reviews
"""
from proctor_quiz.core.markdown_math_renderer import MarkdownMathRenderer
from proctor_quiz.core.scoring import QuestionReview
from proctor_quiz.styling.color_palette import ColorPalette, Theme
from proctor_quiz.ui.question_renderer import render_question, render_review_item


class TestMarkdownMathRenderer:
    def test_raw_html_is_not_passed_through(self):
        html = MarkdownMathRenderer().render_fragment("Hi <script>alert(1)</script>")
        assert "<script>" not in html

    def test_math_is_left_for_mathjax(self):
        html = MarkdownMathRenderer().render_full_document("Area is $\\pi r^2$")
        assert "$\\pi r^2$" in html
        assert "MathJax" in html

    def test_empty_prompt(self):
        assert "No content provided" in MarkdownMathRenderer().render_fragment("   ")


class TestQuestionRenderer:
    def test_multiple_choice_lists_options(self, sample_quiz):
        html = render_question(sample_quiz.questions[0], 1, 2, font_size=15, theme=Theme.DARK)
        assert "Question 1 of 2" in html
        assert "Paris" in html
        assert "15pt" in html
        assert ColorPalette.BACKGROUND_PRIMARY.get(Theme.DARK) in html

    def test_review_item(self, sample_quiz):
        item = QuestionReview(question=sample_quiz.questions[1], given_answer=None, is_correct=False, points_awarded=0)
        markdown = render_review_item(item, 2)
        assert "_Not answered_" in markdown
        assert "Correct answer: True" in markdown
        assert "Incorrect (0/1 pt)" in markdown
