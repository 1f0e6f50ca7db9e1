"""Defaults for the file-backed quiz store and the authoring gate."""

DEFAULT_DATA_DIR: str = "data/quizzes"
DEFAULT_ADMIN_CODE: str = "112233"
QUIZ_FILE_SUFFIX: str = ".json"
READ_WORKER_COUNT: int = 8
