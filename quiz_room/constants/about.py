"""Static metadata describing QuizRoom."""

APP_NAME = "QuizRoom"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "QuizRoom is a student quiz platform. Authors store quizzes as JSON files, "
    "students take timed attempts over single quizzes, whole courses or the "
    "entire question bank, and every attempt is graded automatically."
)
