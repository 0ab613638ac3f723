from __future__ import annotations
from enum import IntEnum
from typing_extensions import Self


class Rating(IntEnum):
    """
    Enum representing the four possible ratings when reviewing a card.
    """

    Again = 1
    Hard = 2
    Good = 3
    Easy = 4

    @classmethod
    def parse(cls, value: object) -> Self:
        """
        Validates a caller-supplied rating and converts it to a Rating.

        Args:
            value: A Rating or an integer in the range 1-4.

        Returns:
            The corresponding Rating.

        Raises:
            ValueError: If the value is not an integer rating between 1 and 4.
        """

        # bool is an int subclass, True would otherwise pass as Again
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"rating must be an integer between 1 and 4, got {value!r}")

        try:
            return cls(value)
        except ValueError:
            raise ValueError(
                f"rating must be an integer between 1 and 4, got {value!r}"
            ) from None


__all__ = ["Rating"]
