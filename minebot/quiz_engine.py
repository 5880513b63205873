"""
Quiz engine for the MineBot Discord bot.
Collects at most one answer per quiz invocation within a fixed window.
"""
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from .models import QuizOutcome, QuizQuestion, QuizSession

# Set up logger for quiz session operations
logger = logging.getLogger(__name__)

QUIZ_TIMEOUT_SECONDS = 15

CORRECT_MESSAGE = '✅ Correct! Well done!'
INCORRECT_MESSAGE = '❌ Wrong! The correct answer was: {answer}'
TIMEOUT_MESSAGE = "⏰ Time's up! No answer received."

OutcomeEmitter = Callable[[QuizSession, Optional[Any]], Awaitable[Any]]


class QuizLifecycleLogger:
    """Structured logging for quiz session lifecycle events."""

    @staticmethod
    def log_session_started(session: QuizSession, timeout: float) -> None:
        logger.info(
            f"Quiz lifecycle: STARTED - Channel {session.channel_id}, User {session.user_id}, Timeout {timeout}s",
            extra={
                'event_type': 'quiz_session_started',
                'channel_id': session.channel_id,
                'user_id': session.user_id,
                'timeout': timeout,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_session_resolved(session: QuizSession, elapsed: float) -> None:
        logger.info(
            f"Quiz lifecycle: RESOLVED - Channel {session.channel_id}, User {session.user_id}, "
            f"Outcome {session.outcome.value}, Elapsed {elapsed:.3f}s",
            extra={
                'event_type': 'quiz_session_resolved',
                'channel_id': session.channel_id,
                'user_id': session.user_id,
                'outcome': session.outcome.value,
                'elapsed': elapsed,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_answer_rejected(session: QuizSession, reason: str) -> None:
        """Log an answer offered to a session that could not take it."""
        logger.debug(
            f"Quiz lifecycle: ANSWER_REJECTED - Channel {session.channel_id}: {reason}",
            extra={
                'event_type': 'quiz_answer_rejected',
                'channel_id': session.channel_id,
                'reason': reason,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_session_abandoned(session: QuizSession) -> None:
        logger.info(
            f"Quiz lifecycle: ABANDONED - Channel {session.channel_id}, User {session.user_id}",
            extra={
                'event_type': 'quiz_session_abandoned',
                'channel_id': session.channel_id,
                'user_id': session.user_id,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_session_error(session: QuizSession, error_type: str, error_message: str, operation: str) -> None:
        logger.error(
            f"Quiz lifecycle: ERROR - Channel {session.channel_id}, Operation {operation}, "
            f"Type {error_type}: {error_message}",
            extra={
                'event_type': 'quiz_session_error',
                'channel_id': session.channel_id,
                'error_type': error_type,
                'error_message': error_message,
                'operation': operation,
                'timestamp': time.time()
            }
        )


def is_correct_answer(content: str, expected: str) -> bool:
    """Case-insensitive substring containment, so "it's obsidian i think" matches "Obsidian"."""
    return expected.lower() in (content or '').lower()


def outcome_message(session: QuizSession) -> str:
    """The text announced for a resolved session."""
    if session.outcome is QuizOutcome.CORRECT:
        return CORRECT_MESSAGE
    if session.outcome is QuizOutcome.INCORRECT:
        return INCORRECT_MESSAGE.format(answer=session.question.answer)
    if session.outcome is QuizOutcome.TIMED_OUT:
        return TIMEOUT_MESSAGE
    raise ValueError(f"Session outcome {session.outcome.value} has no message")


class QuizTimer:
    """
    Waits for one answer to a quiz session.

    The answer slot is a future that is filled at most once, either by the
    first qualifying message or, through cancellation, by the timeout. Offers
    made after the slot is settled are rejected, so only one outcome can
    ever be produced.
    """

    def __init__(self, session: QuizSession, timeout: float = QUIZ_TIMEOUT_SECONDS):
        self.session = session
        self.timeout = timeout
        self._answer: asyncio.Future = asyncio.get_running_loop().create_future()
        self._created_at = time.monotonic()

    def matches(self, message: Any) -> bool:
        """Only the asking user, in the asking channel, can answer."""
        return (
            message.author.id == self.session.user_id
            and message.channel.id == self.session.channel_id
        )

    @property
    def is_waiting(self) -> bool:
        return not self._answer.done()

    def offer(self, message: Any) -> bool:
        """
        Offer a message as the answer.

        Returns:
            True if this message became the session's answer
        """
        if not self.matches(message):
            return False
        if not self.is_waiting:
            QuizLifecycleLogger.log_answer_rejected(self.session, "answer window closed")
            return False
        self._answer.set_result(message)
        return True

    def cancel(self) -> None:
        """Abandon the session without an outcome."""
        if self.is_waiting:
            self._answer.cancel()

    async def run(self) -> Tuple[QuizOutcome, Optional[Any]]:
        """
        Wait for the answer or the deadline and resolve the session.

        Returns:
            The outcome and the answering message (None on timeout)
        """
        try:
            await asyncio.wait_for(asyncio.shield(self._answer), timeout=self.timeout)
        except asyncio.TimeoutError:
            pass

        # An answer set in the same loop iteration as the deadline still counts
        if self._answer.done() and not self._answer.cancelled():
            message = self._answer.result()
        else:
            self._answer.cancel()
            message = None

        if message is None:
            self.session.resolve(QuizOutcome.TIMED_OUT)
        elif is_correct_answer(message.content, self.session.question.answer):
            self.session.resolve(QuizOutcome.CORRECT, message.content)
        else:
            self.session.resolve(QuizOutcome.INCORRECT, message.content)

        QuizLifecycleLogger.log_session_resolved(self.session, time.monotonic() - self._created_at)
        return self.session.outcome, message


class QuizEngine:
    """Tracks the quiz sessions that are still waiting for an answer."""

    def __init__(self, timeout: float = QUIZ_TIMEOUT_SECONDS):
        """Initialize the quiz engine."""
        self.timeout = timeout
        self._timers: Dict[int, QuizTimer] = {}  # id(timer) -> timer
        self._tasks: Dict[int, asyncio.Task] = {}

    @property
    def active_count(self) -> int:
        return len(self._timers)

    def start_session(
        self,
        question: QuizQuestion,
        user_id: int,
        channel_id: int,
        emit: OutcomeEmitter,
    ) -> QuizTimer:
        """
        Open a quiz session and start its answer window.

        Args:
            question: The question that was asked
            user_id: The asking user; only their messages count
            channel_id: The channel the question was asked in
            emit: Called once with the resolved session and the answer
                message (None on timeout)

        Returns:
            The timer owning the new session
        """
        session = QuizSession.open(question, user_id, channel_id, self.timeout)
        timer = QuizTimer(session, self.timeout)
        key = id(timer)
        self._timers[key] = timer
        self._tasks[key] = asyncio.create_task(self._run(key, timer, emit))
        QuizLifecycleLogger.log_session_started(session, self.timeout)
        return timer

    async def _run(self, key: int, timer: QuizTimer, emit: OutcomeEmitter) -> None:
        try:
            _, message = await timer.run()
            # Unregister before emitting so late messages are not offered to a resolved session
            self._timers.pop(key, None)
            await emit(timer.session, message)
        except asyncio.CancelledError:
            QuizLifecycleLogger.log_session_abandoned(timer.session)
            raise
        except Exception as e:
            QuizLifecycleLogger.log_session_error(timer.session, type(e).__name__, str(e), "emit_outcome")
        finally:
            self._timers.pop(key, None)
            self._tasks.pop(key, None)

    def dispatch_message(self, message: Any) -> int:
        """
        Offer a message to every waiting session.

        Returns:
            Number of sessions that took the message as their answer
        """
        accepted = 0
        for timer in list(self._timers.values()):
            if timer.offer(message):
                accepted += 1
        return accepted

    async def wait_idle(self) -> None:
        """Wait until every running session has resolved and emitted."""
        tasks = list(self._tasks.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def cancel_all(self) -> None:
        """Abandon every waiting session; none of them emits an outcome."""
        for timer in list(self._timers.values()):
            timer.cancel()
        for task in list(self._tasks.values()):
            if not task.done():
                task.cancel()
