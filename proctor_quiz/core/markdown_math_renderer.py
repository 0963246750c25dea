"""Markdown + LaTeX rendering for question prompts and review explanations.

Prompts are stored as markdown and converted to HTML with markdown-it; math is
left in ``$...$`` form and typeset by MathJax when the page is displayed in
the quiz window's web view. Raw HTML in prompts is disabled so a quiz file
cannot inject scripts into the proctored window.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from html import escape

from markdown_it import MarkdownIt

_MATHJAX_SCRIPT = (
    "https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-mml-chtml.js"
)


@dataclass(slots=True)
class MarkdownMathRenderer:
    """Converts markdown-with-math into HTML fragments or full documents."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str) -> str:
        """Render a markdown string into an HTML fragment."""

        sanitized = markdown_text.strip()
        if not sanitized:
            return "<p><em>No content provided.</em></p>"
        return self._markdown.render(sanitized)

    def wrap_with_mathjax(
        self,
        body_html: str,
        title: str = "ProctorQuiz",
        font_size: int = 14,
        text_color: str = "#000000",
        background: str = "transparent",
    ) -> str:
        """Wrap a fragment inside a minimal HTML document that loads MathJax."""

        return f"""<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>{escape(title)}</title>
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <style>
      body {{ font-family: 'Segoe UI', system-ui, sans-serif; margin: 0; padding: 1rem; background: {background}; color: {text_color}; user-select: none; }}
      .question-html {{ font-size: {font_size}pt; line-height: 1.5; }}
    </style>
    <script>
      window.MathJax = {{ tex: {{ inlineMath: [['$','$']], displayMath: [['$$','$$']] }}, svg: {{ fontCache: 'global' }} }};
    </script>
    <script defer src="{_MATHJAX_SCRIPT}"></script>
  </head>
  <body>
    <div class="question-html">{body_html}</div>
  </body>
</html>"""

    def render_full_document(self, markdown_text: str, title: str = "ProctorQuiz", **style: object) -> str:
        """Convenience wrapper to render markdown and embed MathJax."""

        fragment = self.render_fragment(markdown_text)
        return self.wrap_with_mathjax(fragment, title=title, **style)


renderer = MarkdownMathRenderer()
# Shared instance; MarkdownIt is safe for concurrent read-only renders, so the
# Qt window and the review API can both use it.
