"""Application entry point for ProctorQuiz."""

from __future__ import annotations

import os
from pathlib import Path
import sys

from PySide6.QtWidgets import QApplication

from proctor_quiz.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from proctor_quiz.core.quiz_importer import QuizImportError
from proctor_quiz.core.quiz_manager import QuizManager
from proctor_quiz.core.services.persistence import (
    JsonFileDocumentStore,
    PersistenceError,
    StaticIdentity,
)
from proctor_quiz.core.services.quiz_repository import QuizLoadError
from proctor_quiz.server.api_server import start_api_server
from proctor_quiz.ui.quiz_window import QuizWindow
from proctor_quiz.utils.logging_config import configure_logging

DEFAULT_STUDENT_ID = "student"
DEFAULT_STORE_PATH = Path.home() / ".proctor_quiz" / "store.json"
SAMPLE_QUIZ_PATH = Path(__file__).resolve().parent / "proctor_quiz" / "data" / "sample_quiz.txt"


def main() -> None:
    """Initialize logging, load the quiz, start the API server, and launch the Qt UI."""
    logger = configure_logging()
    logger.info("Starting ProctorQuiz...")

    store_path = Path(os.environ.get("PROCTOR_QUIZ_STORE", DEFAULT_STORE_PATH))
    identity = StaticIdentity(
        user_id=os.environ.get("PROCTOR_QUIZ_STUDENT_ID", DEFAULT_STUDENT_ID),
        email=os.environ.get("PROCTOR_QUIZ_STUDENT_EMAIL", ""),
    )
    quiz_path = Path(sys.argv[1]) if len(sys.argv) > 1 else SAMPLE_QUIZ_PATH

    try:
        quiz_manager = QuizManager(JsonFileDocumentStore(store_path), identity)
        quiz = quiz_manager.import_quiz(quiz_path)
    except (OSError, ValueError, PersistenceError, QuizImportError, QuizLoadError) as exc:
        logger.error("Could not load quiz from %s: %s", quiz_path, exc)
        sys.exit(1)
    logger.info("Loaded quiz %s for student %s (store: %s)", quiz.id, identity.user_id, store_path)

    start_api_server(quiz_manager=quiz_manager, host=DEFAULT_HOST, port=DEFAULT_PORT)
    logger.info("Review API available at http://%s:%d/", DEFAULT_HOST, DEFAULT_PORT)

    app = QApplication(sys.argv)
    window = QuizWindow(quiz_manager=quiz_manager, quiz_id=quiz.id)
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
