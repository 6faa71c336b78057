"""Challenge-related constants shared across core and server layers."""

DAY_COUNT: int = 30
MAX_QURAN_POINTS: int = 3
MAX_HADITH_POINTS: int = 3
FIQH_CORRECT_POINTS: int = 2
IMPACT_DONE_POINTS: int = 2
MAX_DAILY_POINTS: int = 10

# Answer key used when a supervisor has never edited the day.
DEFAULT_CORRECT_ANSWER: bool = True

DEFAULT_TIMEZONE: str = "America/Chicago"
DEFAULT_CUTOFF_TIME: str = "23:59:00"
DEFAULT_MAX_PLAYERS: int = 7
MIN_PLAYERS: int = 2
MAX_PLAYERS: int = 20

INVITE_CODE_LENGTH: int = 8
OVERRIDE_LOG_PAGE_SIZE: int = 50
