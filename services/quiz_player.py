"""Single-player quiz session for embedded quizzes.

The player loads a quiz once, then steps through its questions in order::

    LOADING --fetch ok--> READY --last question advanced--> COMPLETE
       \\--fetch failed--> ERROR

While READY an answer can be selected until it has been checked. A check
scores the answer and schedules the advance after ``advance_delay`` seconds;
a skip advances immediately without scoring. An elapsed-time counter ticks
once per ``tick_interval`` until the session completes.

All timers are owned by the player as cancellable task handles. Each
scheduled callback carries the generation it was scheduled under and is
dropped if a newer task replaced it, so restart and teardown never race a
stale advance or a duplicate tick.
"""

import enum
import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from services.embed_client import EmbedClient, EmbeddedQuiz, QuizUnavailable
from services.quiz_format import Question

logger = logging.getLogger(__name__)

ADVANCE_DELAY_SECONDS = 1.5
TICK_INTERVAL_SECONDS = 1.0


class PlayerState(enum.Enum):
    LOADING = "loading"
    ERROR = "error"
    READY = "ready"
    COMPLETE = "complete"


class Correctness(enum.Enum):
    UNANSWERED = "unanswered"
    CORRECT = "correct"
    INCORRECT = "incorrect"


class PerformanceTier(enum.Enum):
    # (minimum percentage, label); keep ordered from highest threshold down
    EXCEPTIONAL = (90, "Outstanding! You really know this topic.")
    GOOD = (70, "Great job! Just a few slipped past you.")
    FAIR = (50, "Not bad. A little review will go a long way.")
    KEEP_GOING = (0, "Keep practicing, you'll get there!")

    @property
    def threshold(self) -> int:
        return self.value[0]

    @property
    def label(self) -> str:
        return self.value[1]

    @classmethod
    def for_percentage(cls, percentage: int) -> "PerformanceTier":
        for tier in cls:
            if percentage >= tier.threshold:
                return tier
        return cls.KEEP_GOING


def percentage_correct(score: int, total: int) -> int:
    """round(100 * score / total), halves rounding up."""
    if total <= 0:
        return 0
    return (200 * score + total) // (2 * total)


def format_elapsed(seconds: int) -> str:
    return f"{seconds // 60}:{seconds % 60:02d}"


@dataclass(frozen=True)
class CompletionStats:
    score: int
    total_questions: int
    skipped: int
    time_spent: int

    @property
    def percentage(self) -> int:
        return percentage_correct(self.score, self.total_questions)

    @property
    def formatted_time(self) -> str:
        return format_elapsed(self.time_spent)

    @property
    def tier(self) -> PerformanceTier:
        return PerformanceTier.for_percentage(self.percentage)


class TaskHandle:
    """Cancellable handle for a scheduled callback."""

    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class Scheduler:
    """Source of delayed and periodic callbacks."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TaskHandle:
        raise NotImplementedError

    def call_every(self, interval: float, callback: Callable[[], None]) -> TaskHandle:
        raise NotImplementedError


class _TimerTask(TaskHandle):
    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        super().__init__()
        self._callback = callback
        self._timer = threading.Timer(delay, self._run)
        self._timer.daemon = True

    def _run(self) -> None:
        if not self.cancelled:
            self._callback()

    def cancel(self) -> None:
        super().cancel()
        self._timer.cancel()


class _RepeatingTask(TaskHandle):
    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        super().__init__()
        self._interval = interval
        self._callback = callback
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True)

    def _run(self) -> None:
        while not self._stopped.wait(self._interval):
            if self.cancelled:
                return
            self._callback()

    def cancel(self) -> None:
        super().cancel()
        self._stopped.set()


class ThreadingScheduler(Scheduler):
    def call_later(self, delay, callback):
        task = _TimerTask(delay, callback)
        task._timer.start()
        return task

    def call_every(self, interval, callback):
        task = _RepeatingTask(interval, callback)
        task._thread.start()
        return task


class QuizPlayer:
    def __init__(
        self,
        quiz_id: str,
        client: Optional[EmbedClient] = None,
        scheduler: Optional[Scheduler] = None,
        advance_delay: float = ADVANCE_DELAY_SECONDS,
        tick_interval: float = TICK_INTERVAL_SECONDS,
    ) -> None:
        self.quiz_id = quiz_id
        self.client = client or EmbedClient()
        self.scheduler = scheduler or ThreadingScheduler()
        self.advance_delay = advance_delay
        self.tick_interval = tick_interval

        self.state = PlayerState.LOADING
        self.quiz: Optional[EmbeddedQuiz] = None
        self.error: Optional[str] = None
        self.current_index = 0
        self.selected_answer: Optional[str] = None
        self.correctness = Correctness.UNANSWERED
        self.score = 0
        self.skipped = 0
        self.time_spent = 0
        self.closed = False

        self._lock = threading.RLock()
        self._tick_task: Optional[TaskHandle] = None
        self._advance_task: Optional[TaskHandle] = None
        # bumped whenever a task is scheduled; callbacks from older ones are dropped
        self._generation = 0
        self._timer_generation = 0

    @property
    def questions(self) -> List[Question]:
        return self.quiz.questions if self.quiz else []

    @property
    def current_question(self) -> Optional[Question]:
        if self.state is not PlayerState.READY:
            return None
        return self.questions[self.current_index]

    @property
    def complete(self) -> bool:
        return self.state is PlayerState.COMPLETE

    @property
    def advance_pending(self) -> bool:
        return self._advance_task is not None

    @property
    def timer_running(self) -> bool:
        return self._tick_task is not None

    def _active(self) -> bool:
        return not self.closed and self.state is PlayerState.READY

    def load(self) -> PlayerState:
        """Fetch the quiz once; ends in READY or ERROR."""
        with self._lock:
            if self.closed or self.state is not PlayerState.LOADING:
                return self.state
            try:
                quiz = self.client.fetch_quiz(self.quiz_id)
            except QuizUnavailable as e:
                logger.error("quiz %s unavailable: %s", self.quiz_id, e.detail)
                self.error = str(e)
                self.state = PlayerState.ERROR
                return self.state

            if not quiz.questions:
                logger.error("quiz %s has no questions", self.quiz_id)
                self.error = str(QuizUnavailable())
                self.state = PlayerState.ERROR
                return self.state

            self.quiz = quiz
            self.state = PlayerState.READY
            self._start_timer()
            return self.state

    def select_answer(self, option: str) -> bool:
        with self._lock:
            if not self._active() or self.correctness is not Correctness.UNANSWERED:
                return False
            self.selected_answer = option
            return True

    def check_answer(self) -> Optional[bool]:
        """Score the selected answer; None when there is nothing to check."""
        with self._lock:
            if not self._active() or self.selected_answer is None:
                return None
            if self.correctness is not Correctness.UNANSWERED:
                return None

            correct = self.selected_answer == self.current_question.correct_answer
            self.correctness = Correctness.CORRECT if correct else Correctness.INCORRECT
            if correct:
                self.score += 1

            self._generation += 1
            generation = self._generation
            self._advance_task = self.scheduler.call_later(
                self.advance_delay, lambda: self._on_advance(generation)
            )
            return correct

    def skip_question(self) -> bool:
        with self._lock:
            if not self._active():
                return False
            if self._advance_task is not None:
                # already checked; move on now instead of waiting for the delay
                self._cancel_advance()
            else:
                self.skipped += 1
            self._advance()
            return True

    def restart(self) -> bool:
        with self._lock:
            if self.closed or self.quiz is None:
                return False
            self._cancel_advance()
            self._stop_timer()
            self.current_index = 0
            self.selected_answer = None
            self.correctness = Correctness.UNANSWERED
            self.score = 0
            self.skipped = 0
            self.time_spent = 0
            self.state = PlayerState.READY
            self._start_timer()
            return True

    def close(self) -> None:
        """Tear down: no callback fires after this returns."""
        with self._lock:
            self._cancel_advance()
            self._stop_timer()
            self.closed = True

    def completion_stats(self) -> CompletionStats:
        if self.quiz is None:
            raise RuntimeError("quiz is not loaded")
        return CompletionStats(
            score=self.score,
            total_questions=len(self.questions),
            skipped=self.skipped,
            time_spent=self.time_spent,
        )

    def _advance(self) -> None:
        if self.current_index < len(self.questions) - 1:
            self.current_index += 1
            self.selected_answer = None
            self.correctness = Correctness.UNANSWERED
        else:
            self.state = PlayerState.COMPLETE
            self._stop_timer()
            logger.info("quiz %s complete score=%s/%s", self.quiz_id, self.score, len(self.questions))

    def _on_advance(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._advance_task is None:
                return
            self._advance_task = None
            if self._active():
                self._advance()

    def _on_tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._timer_generation or self._tick_task is None:
                return
            if self._active():
                self.time_spent += 1

    def _start_timer(self) -> None:
        self._stop_timer()
        self._timer_generation += 1
        generation = self._timer_generation
        self._tick_task = self.scheduler.call_every(
            self.tick_interval, lambda: self._on_tick(generation)
        )

    def _stop_timer(self) -> None:
        if self._tick_task is not None:
            self._tick_task.cancel()
            self._tick_task = None

    def _cancel_advance(self) -> None:
        if self._advance_task is not None:
            self._advance_task.cancel()
            self._advance_task = None
