"""Quiz-related constants shared across the engine, storage and server."""

MAX_SESSION_QUESTIONS: int = 40
TABLE_BONUS_SECONDS: int = 5 * 60
TICK_INTERVAL_SECONDS: float = 1.0

# Free-text grading thresholds.
FUZZY_MATCH_THRESHOLD: float = 0.75
KEYWORD_MATCH_THRESHOLD: float = 0.6
KEYWORD_MIN_ANSWER_LENGTH: int = 10

MCQ_POINTS: int = 1
WRITTEN_POINTS: int = 1
TABLE_ANSWER_POINTS: int = 100

# Aggregated quizzes.
GENERAL_TARGET: str = "general"
COURSE_TARGET_PREFIX: str = "course:"
GENERAL_COURSE_CODE: str = "GEN"
GENERAL_TIME_LIMIT_MINUTES: float = 20
COURSE_MINUTES_PER_QUESTION: float = 0.4
COURSE_MAX_TIME_LIMIT_MINUTES: float = 180

# Imported PDF quizzes.
IMPORTED_MARKS: int = 100
IMPORTED_TIME_LIMIT_MINUTES: float = 30

# Finished sessions are evicted from the live session map after this long.
FINISHED_SESSION_RETENTION_SECONDS: float = 60 * 60
