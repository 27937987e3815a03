"""State machine tests for the embedded quiz player.

A manual scheduler stands in for wall-clock timers so ticks and the deferred
advance fire only when a test says so.
"""

import threading

import pytest

from services.embed_client import EmbeddedQuiz, QuizUnavailable
from services.quiz_format import normalize_questions
from services.quiz_player import (
    CompletionStats,
    Correctness,
    PerformanceTier,
    PlayerState,
    QuizPlayer,
    Scheduler,
    TaskHandle,
    ThreadingScheduler,
    format_elapsed,
    percentage_correct,
)

QUESTIONS = normalize_questions(
    [
        {"question": "Q1?", "options": ["A", "X"], "correctAnswer": "A"},
        {"question": "Q2?", "options": ["B", "X"], "correctAnswer": "B"},
        {"question": "Q3?", "options": ["C", "X"], "correctAnswer": "C"},
    ]
)


class ManualScheduler(Scheduler):
    def __init__(self):
        self.delayed = []
        self.periodic = []

    def call_later(self, delay, callback):
        handle = TaskHandle()
        self.delayed.append((handle, delay, callback))
        return handle

    def call_every(self, interval, callback):
        handle = TaskHandle()
        self.periodic.append((handle, interval, callback))
        return handle

    def active_periodic(self):
        return [h for h, _, _ in self.periodic if not h.cancelled]

    def tick(self, n=1):
        for _ in range(n):
            for handle, _, callback in list(self.periodic):
                if not handle.cancelled:
                    callback()

    def run_delayed(self):
        pending, self.delayed = self.delayed, []
        for handle, _, callback in pending:
            if not handle.cancelled:
                callback()

    def fire_all_delayed_ignoring_cancel(self):
        pending, self.delayed = self.delayed, []
        for _, _, callback in pending:
            callback()


class StubClient:
    def __init__(self, quiz=None, error=None):
        self.quiz = quiz
        self.error = error
        self.calls = 0

    def fetch_quiz(self, quiz_id):
        self.calls += 1
        if self.error:
            raise self.error
        return self.quiz


def _quiz(questions=QUESTIONS):
    return EmbeddedQuiz(id="q1", name="Sample", questions=list(questions), total_questions=len(questions))


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def player(scheduler):
    p = QuizPlayer("q1", StubClient(_quiz()), scheduler=scheduler)
    assert p.load() is PlayerState.READY
    return p


def _answer(player, scheduler, option):
    assert player.select_answer(option)
    result = player.check_answer()
    scheduler.run_delayed()
    return result


def test_starts_loading_without_timer(scheduler):
    p = QuizPlayer("q1", StubClient(_quiz()), scheduler=scheduler)
    assert p.state is PlayerState.LOADING
    assert p.current_question is None
    assert scheduler.periodic == []


def test_load_success_enters_ready_and_starts_timer(player, scheduler):
    assert player.current_index == 0
    assert player.current_question.prompt == "Q1?"
    assert len(scheduler.active_periodic()) == 1
    assert scheduler.periodic[0][1] == 1.0


def test_fetch_failure_enters_error(scheduler):
    client = StubClient(error=QuizUnavailable("HTTP 404"))
    p = QuizPlayer("q1", client, scheduler=scheduler)
    assert p.load() is PlayerState.ERROR
    assert p.error
    assert p.quiz is None
    assert scheduler.periodic == []
    # terminal: no retry, no transitions
    assert p.load() is PlayerState.ERROR
    assert client.calls == 1
    assert not p.select_answer("A")
    assert not p.skip_question()
    assert not p.restart()


def test_empty_quiz_is_an_error(scheduler):
    p = QuizPlayer("q1", StubClient(_quiz([])), scheduler=scheduler)
    assert p.load() is PlayerState.ERROR
    assert p.error


def test_load_is_single_shot(player):
    assert player.load() is PlayerState.READY
    assert player.client.calls == 1


def test_check_requires_selection(player, scheduler):
    assert player.check_answer() is None
    assert scheduler.delayed == []


def test_correct_answer_scores_and_advances_after_delay(player, scheduler):
    player.select_answer("A")
    assert player.check_answer() is True
    assert player.correctness is Correctness.CORRECT
    assert player.score == 1
    # still on the same question until the delay elapses
    assert player.current_index == 0
    assert player.advance_pending
    assert scheduler.delayed[0][1] == 1.5

    scheduler.run_delayed()
    assert player.current_index == 1
    assert player.selected_answer is None
    assert player.correctness is Correctness.UNANSWERED
    assert not player.advance_pending


def test_incorrect_answer_does_not_score(player, scheduler):
    player.select_answer("X")
    assert player.check_answer() is False
    assert player.correctness is Correctness.INCORRECT
    assert player.score == 0


def test_answer_locked_after_check(player):
    player.select_answer("X")
    player.check_answer()
    assert player.select_answer("A") is False
    assert player.selected_answer == "X"
    # a second check is ignored
    assert player.check_answer() is None
    assert player.score == 0


def test_selection_can_change_before_check(player):
    assert player.select_answer("X")
    assert player.select_answer("A")
    assert player.check_answer() is True


def test_skip_does_not_score(player):
    assert player.skip_question()
    assert player.current_index == 1
    assert player.score == 0
    assert player.skipped == 1


def test_skip_during_pending_advance_moves_once(player, scheduler):
    player.select_answer("A")
    player.check_answer()
    assert player.skip_question()
    assert player.current_index == 1
    assert player.skipped == 0
    # the cancelled advance never fires a second step
    scheduler.fire_all_delayed_ignoring_cancel()
    assert player.current_index == 1
    assert player.score == 1


def test_two_correct_one_skipped_scores_67_percent(player, scheduler):
    assert _answer(player, scheduler, "A") is True
    assert _answer(player, scheduler, "B") is True
    player.skip_question()

    assert player.state is PlayerState.COMPLETE
    assert player.complete
    stats = player.completion_stats()
    assert stats.score == 2
    assert stats.total_questions == 3
    assert stats.skipped == 1
    assert stats.percentage == 67
    assert stats.tier is PerformanceTier.FAIR


def test_score_equals_number_of_true_checks(player, scheduler):
    results = [_answer(player, scheduler, opt) for opt in ("A", "X", "C")]
    assert player.complete
    assert player.score == results.count(True) == 2


def test_completion_stops_timer_and_blocks_actions(player, scheduler):
    scheduler.tick(5)
    for _ in range(3):
        player.skip_question()
    assert player.complete
    assert scheduler.active_periodic() == []
    scheduler.tick(10)
    assert player.time_spent == 5
    assert not player.select_answer("A")
    assert player.check_answer() is None
    assert not player.skip_question()
    assert player.current_question is None


def test_timer_counts_ticks_while_ready(player, scheduler):
    scheduler.tick(3)
    assert player.time_spent == 3


def test_restart_resets_everything_with_single_timer(player, scheduler):
    _answer(player, scheduler, "A")
    scheduler.tick(7)
    player.skip_question()
    player.skip_question()
    assert player.complete

    assert player.restart()
    assert player.state is PlayerState.READY
    assert player.current_index == 0
    assert player.score == 0
    assert player.skipped == 0
    assert player.time_spent == 0
    assert player.selected_answer is None
    assert player.correctness is Correctness.UNANSWERED
    assert len(scheduler.active_periodic()) == 1

    scheduler.tick(2)
    assert player.time_spent == 2


def test_restart_mid_quiz_cancels_old_timer_and_pending_advance(player, scheduler):
    player.select_answer("A")
    player.check_answer()
    old_timer = scheduler.periodic[0][0]

    player.restart()
    assert old_timer.cancelled
    assert len(scheduler.active_periodic()) == 1
    assert not player.advance_pending

    # even if stale callbacks slip through they must not touch the new session
    scheduler.fire_all_delayed_ignoring_cancel()
    scheduler.periodic[0][2]()
    assert player.current_index == 0
    assert player.time_spent == 0


def test_close_cancels_all_tasks(player, scheduler):
    player.select_answer("A")
    player.check_answer()
    player.close()

    assert scheduler.active_periodic() == []
    assert all(h.cancelled for h, _, _ in scheduler.delayed)
    scheduler.fire_all_delayed_ignoring_cancel()
    assert player.current_index == 0
    assert not player.restart()
    assert not player.skip_question()


def test_completion_stats_requires_loaded_quiz(scheduler):
    p = QuizPlayer("q1", StubClient(error=QuizUnavailable()), scheduler=scheduler)
    p.load()
    with pytest.raises(RuntimeError):
        p.completion_stats()


@pytest.mark.parametrize(
    "score,total,expected",
    [(2, 3, 67), (1, 3, 33), (1, 2, 50), (1, 8, 13), (0, 5, 0), (5, 5, 100), (0, 0, 0)],
)
def test_percentage_rounds_half_up(score, total, expected):
    assert percentage_correct(score, total) == expected


@pytest.mark.parametrize("seconds,expected", [(0, "0:00"), (5, "0:05"), (65, "1:05"), (600, "10:00")])
def test_format_elapsed(seconds, expected):
    assert format_elapsed(seconds) == expected


@pytest.mark.parametrize(
    "percentage,tier",
    [
        (100, PerformanceTier.EXCEPTIONAL),
        (90, PerformanceTier.EXCEPTIONAL),
        (89, PerformanceTier.GOOD),
        (70, PerformanceTier.GOOD),
        (69, PerformanceTier.FAIR),
        (50, PerformanceTier.FAIR),
        (49, PerformanceTier.KEEP_GOING),
        (0, PerformanceTier.KEEP_GOING),
    ],
)
def test_tiers(percentage, tier):
    assert PerformanceTier.for_percentage(percentage) is tier


def test_tier_thresholds_are_monotonic():
    thresholds = [t.threshold for t in PerformanceTier]
    assert thresholds == sorted(thresholds, reverse=True)
    assert len(thresholds) == 4


def test_completion_stats_formatting():
    stats = CompletionStats(score=9, total_questions=10, skipped=0, time_spent=125)
    assert stats.percentage == 90
    assert stats.formatted_time == "2:05"
    assert stats.tier is PerformanceTier.EXCEPTIONAL


def test_threading_scheduler_advances_and_ticks():
    p = QuizPlayer(
        "q1",
        StubClient(_quiz()),
        scheduler=ThreadingScheduler(),
        advance_delay=0.05,
        tick_interval=0.02,
    )
    try:
        p.load()
        p.select_answer("A")
        p.check_answer()
        done = threading.Event()
        for _ in range(100):
            if not p.advance_pending:
                done.set()
                break
            threading.Event().wait(0.02)
        assert done.is_set()
        assert p.current_index == 1
        assert p.time_spent >= 1
    finally:
        p.close()


def test_threading_scheduler_cancel_prevents_callback():
    fired = []
    handle = ThreadingScheduler().call_later(0.05, lambda: fired.append(1))
    handle.cancel()
    threading.Event().wait(0.15)
    assert fired == []
