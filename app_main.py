"""Application entry point for QuizRoom."""

from __future__ import annotations

from quiz_room.cli import main

if __name__ == "__main__":
    main()
