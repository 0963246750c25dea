"""Helper functions for common dialog patterns in the quiz window."""

from __future__ import annotations

from PySide6.QtGui import QFont
from PySide6.QtWidgets import QMessageBox, QWidget


def _apply_optional_font(widget: QWidget, font_point_size: int | None) -> None:
    """Apply font size to a widget when requested."""
    if font_point_size is None or font_point_size <= 0:
        return

    font: QFont = widget.font()
    font.setPointSize(font_point_size)
    widget.setFont(font)


def confirm_submit(parent: QWidget, unanswered_count: int, flagged_count: int) -> bool:
    """Ask the student to confirm a manual submit.

    Args:
        parent: Parent widget for the dialog
        unanswered_count: Questions without an answer
        flagged_count: Questions flagged for review

    Returns:
        True if the student confirmed, False otherwise
    """
    details = []
    if unanswered_count:
        details.append(f"{unanswered_count} question(s) are unanswered.")
    if flagged_count:
        details.append(f"{flagged_count} question(s) are flagged for review.")
    details.append("You cannot change your answers after submitting.")
    reply = QMessageBox.question(
        parent,
        "Submit Quiz",
        "Submit your answers now?\n\n" + "\n".join(details),
        QMessageBox.Yes | QMessageBox.No,
        QMessageBox.No,
    )
    return reply == QMessageBox.Yes


def confirm_exit(parent: QWidget) -> bool:
    """Ask before leaving a running quiz; progress is kept for a later resume."""
    reply = QMessageBox.question(
        parent,
        "Leave Quiz",
        "Your answers are saved and you can resume this quiz later. Leave now?",
        QMessageBox.Yes | QMessageBox.No,
        QMessageBox.No,
    )
    return reply == QMessageBox.Yes


def ask_retry_submit(parent: QWidget, message: str) -> bool:
    """Blocking dialog shown when saving the results failed.

    Returns:
        True if the student wants to retry immediately
    """
    msg_box = QMessageBox(parent)
    msg_box.setIcon(QMessageBox.Critical)
    msg_box.setWindowTitle("Submission Failed")
    msg_box.setText("Your answers could not be submitted.")
    msg_box.setInformativeText(f"{message}\n\nYour answers are kept on this computer until the upload succeeds.")
    retry_button = msg_box.addButton("Retry", QMessageBox.AcceptRole)
    msg_box.addButton("Wait", QMessageBox.RejectRole)
    msg_box.setDefaultButton(retry_button)
    msg_box.exec()
    return msg_box.clickedButton() is retry_button


def show_error(parent: QWidget, title: str, message: str) -> None:
    QMessageBox.critical(parent, title, message)


def show_info(
    parent: QWidget,
    title: str,
    message: str,
    *,
    font_point_size: int | None = None,
) -> None:
    """Show information dialog.

    Args:
        parent: Parent widget for the dialog
        title: Dialog title
        message: Information message
    """
    msg_box = QMessageBox(parent)
    msg_box.setIcon(QMessageBox.Information)
    msg_box.setWindowTitle(title)
    msg_box.setText(message)
    msg_box.setStandardButtons(QMessageBox.Ok)
    _apply_optional_font(msg_box, font_point_size)
    msg_box.exec()
