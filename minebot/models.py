"""
Core data models for the MineBot Discord bot.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Tuple

from .exceptions import InvalidSessionStateError


class CommandName(Enum):
    """Every command the bot answers to."""
    HELP = "help"
    BLOCK = "block"
    BLOCKS = "blocks"
    ITEM = "item"
    ITEMS = "items"
    MOB = "mob"
    MOBS = "mobs"
    BIOME = "biome"
    BIOMES = "biomes"
    RECIPE = "recipe"
    RECIPES = "recipes"
    RANDOM = "random"
    QUIZ = "quiz"
    PING = "ping"
    INFO = "info"

    @classmethod
    def lookup(cls, name: str) -> Optional["CommandName"]:
        """Return the member for a command name, or None if unknown."""
        try:
            return cls(name)
        except ValueError:
            return None


@dataclass
class Command:
    """A parsed prefix command."""
    name: str
    args: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ReplyPayload:
    """
    A reply produced by a command handler.

    Payloads without a title are sent as plain text, everything else
    is rendered as an embed.
    """
    body: str
    title: Optional[str] = None
    color: int = 0x7289DA
    footer: Optional[str] = None
    fields: Tuple[Tuple[str, str, bool], ...] = ()
    timestamp: bool = False

    @property
    def is_embed(self) -> bool:
        return self.title is not None


@dataclass(frozen=True)
class QuizQuestion:
    """A quiz question and the answer it expects."""
    prompt: str
    answer: str


class QuizOutcome(Enum):
    """Terminal (and initial) outcomes of a quiz session."""
    PENDING = "pending"
    CORRECT = "correct"
    INCORRECT = "incorrect"
    TIMED_OUT = "timed_out"


@dataclass
class QuizSession:
    """A single quiz invocation waiting for one answer."""
    channel_id: int
    user_id: int
    question: QuizQuestion
    started_at: datetime
    deadline: datetime
    outcome: QuizOutcome = QuizOutcome.PENDING
    answer_content: Optional[str] = None

    @classmethod
    def open(cls, question: QuizQuestion, user_id: int, channel_id: int, timeout: float) -> "QuizSession":
        started_at = datetime.now()
        return cls(
            channel_id=channel_id,
            user_id=user_id,
            question=question,
            started_at=started_at,
            deadline=started_at + timedelta(seconds=timeout),
        )

    @property
    def is_resolved(self) -> bool:
        return self.outcome is not QuizOutcome.PENDING

    def resolve(self, outcome: QuizOutcome, answer_content: Optional[str] = None) -> None:
        """
        Move the session to its terminal outcome.

        Raises:
            InvalidSessionStateError: If the session is already resolved or
                the requested outcome is not terminal
        """
        if outcome is QuizOutcome.PENDING:
            raise InvalidSessionStateError("Cannot resolve a quiz session to pending")
        if self.is_resolved:
            raise InvalidSessionStateError(
                f"Quiz session in channel {self.channel_id} already resolved as {self.outcome.value}"
            )
        self.outcome = outcome
        self.answer_content = answer_content


@dataclass
class UpdateState:
    """State of the scheduled/manual update flow for the update channel."""
    active: bool = False
    start_message_id: Optional[int] = None
    finish_message_id: Optional[int] = None
    auto_update_enabled: bool = True

    def protected_message_ids(self) -> Tuple[int, ...]:
        return tuple(
            message_id for message_id in (self.start_message_id, self.finish_message_id)
            if message_id is not None
        )
