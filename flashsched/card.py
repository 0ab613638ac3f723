"""
flashsched.card
---------------

This module defines the CardState class.

Classes:
    CardState: The persisted memory record of one flashcard.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
import json
import time
from typing import TypedDict
from typing_extensions import Self
from flashsched.state import State


def parse_datetime(value: str) -> datetime:
    """
    Parses an ISO-8601 datetime read back from storage.

    Timestamps stored without an offset were written in UTC, so a naive value is taken as UTC.
    """

    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed


class CardStateDict(TypedDict):
    """
    JSON-serializable dictionary representation of a CardState object.
    """

    card_id: int | str
    state: int
    stability: float
    difficulty: float
    elapsed_days: int
    scheduled_days: int
    reps: int
    lapses: int
    learning_steps: int
    last_review: str | None
    due: str


@dataclass(init=False)
class CardState:
    """
    Represents the scheduling record of a flashcard.

    A CardState starts out in the New state and is replaced by a new CardState
    every time the card is reviewed.

    Attributes:
        card_id: The id of the card. Defaults to the epoch milliseconds of when the card was created.
        state: The card's current scheduling state.
        stability: Days until retrievability drops to 90%. 0 while the card is New.
        difficulty: Intrinsic hardness of the card between 1 and 10. 0 while the card is New.
        elapsed_days: Days between the previous review and the last review.
        scheduled_days: The interval in days chosen at the last review, 0 for learning steps.
        reps: Number of successful (Hard, Good or Easy) reviews.
        lapses: Number of Again ratings.
        learning_steps: The card's position in the learning or relearning steps.
        last_review: The date and time of the card's last review.
        due: The date and time when the card is due next. For a New card this is its creation time.
    """

    card_id: int | str
    state: State
    stability: float
    difficulty: float
    elapsed_days: int
    scheduled_days: int
    reps: int
    lapses: int
    learning_steps: int
    last_review: datetime | None
    due: datetime

    def __init__(
        self,
        card_id: int | str | None = None,
        state: State = State.New,
        stability: float = 0.0,
        difficulty: float = 0.0,
        elapsed_days: int = 0,
        scheduled_days: int = 0,
        reps: int = 0,
        lapses: int = 0,
        learning_steps: int = 0,
        last_review: datetime | None = None,
        due: datetime | None = None,
    ) -> None:
        if card_id is None:
            # epoch milliseconds of when the card was created
            card_id = int(datetime.now(timezone.utc).timestamp() * 1000)
            # wait 1ms to prevent potential card_id collision on next CardState creation
            time.sleep(0.001)
        self.card_id = card_id

        self.state = state
        self.stability = stability
        self.difficulty = difficulty
        self.elapsed_days = elapsed_days
        self.scheduled_days = scheduled_days
        self.reps = reps
        self.lapses = lapses
        self.learning_steps = learning_steps
        self.last_review = last_review

        if due is None:
            due = datetime.now(timezone.utc)
        self.due = due

    @classmethod
    def new(
        cls, card_id: int | str | None = None, created_at: datetime | None = None
    ) -> Self:
        """
        Creates the all-default record of a card that has never been reviewed.

        Args:
            card_id: The id of the card.
            created_at: The date and time the card was created. Defaults to now.

        Returns:
            A CardState in the New state, due at its creation time.
        """

        return cls(card_id=card_id, state=State.New, due=created_at)

    @property
    def is_new(self) -> bool:
        return self.state == State.New

    def to_dict(self) -> CardStateDict:
        """
        Returns a JSON-serializable dictionary representation of the CardState object.

        This method is specifically useful for storing CardState objects in a database.

        Returns:
            A dictionary representation of the CardState object.
        """

        return {
            "card_id": self.card_id,
            "state": self.state.value,
            "stability": self.stability,
            "difficulty": self.difficulty,
            "elapsed_days": self.elapsed_days,
            "scheduled_days": self.scheduled_days,
            "reps": self.reps,
            "lapses": self.lapses,
            "learning_steps": self.learning_steps,
            "last_review": self.last_review.isoformat() if self.last_review else None,
            "due": self.due.isoformat(),
        }

    @classmethod
    def from_dict(cls, source_dict: CardStateDict) -> Self:
        """
        Creates a CardState object from an existing dictionary.

        Args:
            source_dict: A dictionary representing an existing CardState object.

        Returns:
            A CardState object created from the provided dictionary.
        """

        return cls(
            card_id=source_dict["card_id"],
            state=State(int(source_dict["state"])),
            stability=float(source_dict["stability"] or 0.0),
            difficulty=float(source_dict["difficulty"] or 0.0),
            elapsed_days=int(source_dict["elapsed_days"] or 0),
            scheduled_days=int(source_dict["scheduled_days"] or 0),
            reps=int(source_dict["reps"] or 0),
            lapses=int(source_dict["lapses"] or 0),
            learning_steps=int(source_dict["learning_steps"] or 0),
            last_review=(
                parse_datetime(source_dict["last_review"])
                if source_dict["last_review"]
                else None
            ),
            due=parse_datetime(source_dict["due"]),
        )

    def to_json(self, indent: int | str | None = None) -> str:
        """
        Returns a JSON-serialized string of the CardState object.

        Args:
            indent: Equivalent argument to the indent in json.dumps()

        Returns:
            str: A JSON-serialized string of the CardState object.
        """

        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, source_json: str) -> Self:
        """
        Creates a CardState object from a JSON-serialized string.

        Args:
            source_json: A JSON-serialized string of an existing CardState object.

        Returns:
            Self: A CardState object created from the JSON string.
        """

        source_dict: CardStateDict = json.loads(source_json)
        return cls.from_dict(source_dict=source_dict)


__all__ = ["CardState"]
