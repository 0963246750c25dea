"""Qt UI constants used across widgets."""

WINDOW_TITLE: str = "ProctorQuiz"
LOADING_MESSAGE: str = "Loading quiz..."
LOAD_ERROR_TITLE: str = "Quiz unavailable"
REVIEW_DIALOG_TITLE: str = "Quiz Review"

BUTTON_PREVIOUS: str = "Previous"
BUTTON_NEXT: str = "Next"
BUTTON_FLAG: str = "Flag for review"
BUTTON_UNFLAG: str = "Flagged"
BUTTON_SUBMIT: str = "Submit Quiz"
BUTTON_THEME: str = "Toggle theme"

SHORT_ANSWER_PLACEHOLDER: str = "Type your answer here..."
FULLSCREEN_BADGE: str = "Fullscreen"
WINDOWED_BADGE: str = "Windowed"
SUBMITTING_MESSAGE: str = "Submitting your answers..."

FONT_SIZE_CHOICES: dict[str, int] = {"Small": 10, "Medium": 12, "Large": 15}
DEFAULT_FONT_SIZE_LABEL: str = "Medium"
