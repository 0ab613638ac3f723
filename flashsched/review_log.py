"""
flashsched.review_log
---------------------

This module defines the ReviewEvent class.

Classes:
    ReviewEvent: The append-only log entry written for every submitted review.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import TypedDict
import json
from typing_extensions import Self
from flashsched.card import parse_datetime
from flashsched.rating import Rating


class ReviewEventDict(TypedDict):
    """
    JSON-serializable dictionary representation of a ReviewEvent object.
    """

    card_id: int | str
    rating: int
    reviewed_at: str


@dataclass(frozen=True)
class ReviewEvent:
    """
    Represents the log entry of a card that has been reviewed.

    Review events are never modified once written. Replaying a card's events in
    order rebuilds its CardState.

    Attributes:
        card_id: The id of the card being reviewed.
        rating: The rating given to the card during the review.
        reviewed_at: The date and time of the review.
    """

    card_id: int | str
    rating: Rating
    reviewed_at: datetime

    def to_dict(
        self,
    ) -> ReviewEventDict:
        """
        Returns a dictionary representation of the ReviewEvent object.

        Returns:
            A dictionary representation of the ReviewEvent object.
        """

        return {
            "card_id": self.card_id,
            "rating": int(self.rating),
            "reviewed_at": self.reviewed_at.isoformat(),
        }

    @classmethod
    def from_dict(
        cls,
        source_dict: ReviewEventDict,
    ) -> Self:
        """
        Creates a ReviewEvent object from an existing dictionary.

        Args:
            source_dict: A dictionary representing an existing ReviewEvent object.

        Returns:
            A ReviewEvent object created from the provided dictionary.

        Raises:
            ValueError: If the stored rating is not between 1 and 4.
        """

        return cls(
            card_id=source_dict["card_id"],
            rating=Rating.parse(int(source_dict["rating"])),
            reviewed_at=parse_datetime(source_dict["reviewed_at"]),
        )

    def to_json(self, indent: int | str | None = None) -> str:
        """
        Returns a JSON-serialized string of the ReviewEvent object.

        Args:
            indent: Equivalent argument to the indent in json.dumps()

        Returns:
            str: A JSON-serialized string of the ReviewEvent object.
        """

        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, source_json: str) -> Self:
        """
        Creates a ReviewEvent object from a JSON-serialized string.

        Args:
            source_json: A JSON-serialized string of an existing ReviewEvent object.

        Returns:
            Self: A ReviewEvent object created from the JSON string.
        """

        source_dict: ReviewEventDict = json.loads(source_json)
        return cls.from_dict(source_dict=source_dict)


__all__ = ["ReviewEvent"]
