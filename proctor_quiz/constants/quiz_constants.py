"""Quiz-related constants shared across UI and core layers."""

TIMER_TICK_INTERVAL_MS: int = 1000
VIOLATION_THRESHOLD: int = 3
VISIBLE_WARNING_COUNT: int = 3
TIME_LIMIT_WARNING_WINDOW_SECONDS: int = 300
DEFAULT_POINTS: int = 1
MAX_OPTION_COUNT: int = 6
