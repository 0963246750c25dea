"""Centralized styles for the quiz window."""

from .color_palette import ColorPalette, Theme


class Styles:
    """Helper class to generate Qt stylesheets based on the current theme."""

    @staticmethod
    def get_main_window_style(theme: Theme = Theme.LIGHT, font_size: int = 11) -> str:
        return f"""
            QMainWindow, QDialog {{
                background-color: {ColorPalette.BACKGROUND_PRIMARY.get(theme)};
                color: {ColorPalette.TEXT_PRIMARY.get(theme)};
            }}
            QWidget {{
                background-color: {ColorPalette.BACKGROUND_PRIMARY.get(theme)};
                color: {ColorPalette.TEXT_PRIMARY.get(theme)};
                font-family: 'Segoe UI', 'Roboto', sans-serif;
                font-size: {font_size}pt;
            }}
            QPushButton {{
                background-color: {ColorPalette.BUTTON_SECONDARY_BG.get(theme)};
                color: {ColorPalette.TEXT_PRIMARY.get(theme)};
                border: 1px solid {ColorPalette.BORDER_PRIMARY.get(theme)};
                border-radius: 4px;
                padding: 6px 12px;
            }}
            QPushButton:hover {{
                background-color: {ColorPalette.BUTTON_HOVER_BG.get(theme)};
            }}
            QPushButton:checked {{
                background-color: {ColorPalette.WARNING.get(theme)};
                color: #000000;
            }}
            QLineEdit, QPlainTextEdit, QComboBox {{
                background-color: {ColorPalette.BACKGROUND_PRIMARY.get(theme)};
                color: {ColorPalette.TEXT_PRIMARY.get(theme)};
                border: 1px solid {ColorPalette.BORDER_PRIMARY.get(theme)};
                border-radius: 4px;
                padding: 4px;
            }}
            QGroupBox {{
                border: 1px solid {ColorPalette.BORDER_PRIMARY.get(theme)};
                border-radius: 6px;
                margin-top: 6px;
                padding-top: 10px;
            }}
        """

    @staticmethod
    def get_primary_button_style(theme: Theme = Theme.LIGHT) -> str:
        return (
            f"background-color: {ColorPalette.BUTTON_PRIMARY_BG.get(theme)};"
            f" color: {ColorPalette.BUTTON_PRIMARY_TEXT.get(theme)}; font-weight: bold;"
        )

    @staticmethod
    def get_timer_style(theme: Theme = Theme.LIGHT, urgent: bool = False) -> str:
        color = ColorPalette.ERROR.get(theme) if urgent else ColorPalette.TEXT_PRIMARY.get(theme)
        return f"font-family: monospace; font-size: 16pt; font-weight: bold; color: {color};"

    @staticmethod
    def get_badge_style(theme: Theme = Theme.LIGHT, ok: bool = True) -> str:
        color = ColorPalette.SUCCESS.get(theme) if ok else ColorPalette.WARNING.get(theme)
        return f"padding: 2px 8px; border-radius: 8px; border: 1px solid {color}; color: {color};"

    @staticmethod
    def get_warning_style(theme: Theme = Theme.LIGHT) -> str:
        return (
            f"background-color: {ColorPalette.ERROR.get(theme)}; color: #FFFFFF;"
            " padding: 4px 8px; border-radius: 4px;"
        )

    @staticmethod
    def get_palette_button_style(theme: Theme, status: str, current: bool) -> str:
        colors = {
            "answered": ColorPalette.SUCCESS.get(theme),
            "flagged": ColorPalette.WARNING.get(theme),
            "unanswered": ColorPalette.BUTTON_SECONDARY_BG.get(theme),
        }
        border = ColorPalette.BUTTON_PRIMARY_BG.get(theme) if current else ColorPalette.BORDER_PRIMARY.get(theme)
        return f"background-color: {colors[status]}; border: 2px solid {border}; min-width: 32px;"
