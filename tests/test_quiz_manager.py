"""Tests for the quiz manager's session bookkeeping."""

from __future__ import annotations

import random

import pytest

from quiz_room.core.quiz_manager import QuizManager, UnknownSessionError
from quiz_room.core.services.quiz_repository import QuizRepository

from conftest import FakeScheduler


class ManualClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def manager(data_dir, clock) -> QuizManager:
    return QuizManager(
        QuizRepository(data_dir),
        scheduler=FakeScheduler(),
        rng_factory=lambda: random.Random(0),
        clock=clock,
        finished_retention_seconds=60,
    )


class TestSessionEviction:
    def test_finished_session_is_evicted_after_retention(self, manager, clock):
        finished = manager.start_session("ECO201_Markets.json")
        manager.submit(finished.session_id)

        clock.now += 61
        manager.start_session("ECO201_Markets.json")

        assert manager.get_session_count() == 1
        with pytest.raises(UnknownSessionError):
            manager.get_session(finished.session_id)

    def test_recently_finished_session_is_kept(self, manager, clock):
        finished = manager.start_session("ECO201_Markets.json")
        manager.submit(finished.session_id)

        clock.now += 30
        manager.start_session("ECO201_Markets.json")

        assert manager.get_session(finished.session_id).is_finished()
        assert manager.get_session_count() == 2

    def test_in_progress_sessions_are_never_evicted(self, manager, clock):
        live = manager.start_session("ECO201_Markets.json")
        clock.now += 10_000
        assert manager.evict_finished_sessions() == 0
        assert manager.get_session(live.session_id) is live

    def test_retake_keeps_session_alive(self, manager, clock):
        session = manager.start_session("ECO201_Markets.json")
        manager.submit(session.session_id)
        manager.retake(session.session_id)

        clock.now += 61
        assert manager.evict_finished_sessions() == 0
        assert not manager.get_session(session.session_id).is_finished()

    def test_ended_session_leaves_no_bookkeeping(self, manager, clock):
        session = manager.start_session("ECO201_Markets.json")
        manager.submit(session.session_id)
        manager.end_session(session.session_id)

        clock.now += 61
        assert manager.evict_finished_sessions() == 0
        assert manager.get_session_count() == 0
