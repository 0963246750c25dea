"""Static metadata describing ProctorQuiz."""

APP_NAME = "ProctorQuiz"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "ProctorQuiz runs timed, proctored quizzes on the student's desktop and "
    "serves the stored attempts to teachers over a small review API."
)
