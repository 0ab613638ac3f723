"""
flashsched.parameters
---------------------

This module defines the SchedulingParameters class as well as the model weights and bounds
used to validate them.

Classes:
    SchedulingParameters: The immutable configuration of a SchedulingEngine.
"""

from __future__ import annotations
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import timedelta
import json
from typing import TypedDict
from typing_extensions import Self

FSRS_DEFAULT_DECAY = 0.1542
DEFAULT_WEIGHTS = (
    0.212,
    1.2931,
    2.3065,
    8.2956,
    6.4133,
    0.8334,
    3.0194,
    0.001,
    1.8722,
    0.1666,
    0.796,
    1.4835,
    0.0614,
    0.2629,
    1.6483,
    0.6014,
    1.8729,
    0.5425,
    0.0912,
    0.0658,
    FSRS_DEFAULT_DECAY,
)

# FSRS-5 weight vectors lack w19 and use a fixed decay of 0.5
FSRS5_WEIGHT_COUNT = 19
FSRS5_MIGRATION_WEIGHTS = (0.0, 0.5)

STABILITY_MIN = 0.001
MIN_DIFFICULTY = 1.0
MAX_DIFFICULTY = 10.0

LOWER_BOUNDS_WEIGHTS = (
    STABILITY_MIN,
    STABILITY_MIN,
    STABILITY_MIN,
    STABILITY_MIN,
    1.0,
    0.001,
    0.001,
    0.001,
    0.0,
    0.0,
    0.001,
    0.001,
    0.001,
    0.001,
    0.0,
    0.0,
    1.0,
    0.0,
    0.0,
    0.0,
    0.1,
)

INITIAL_STABILITY_MAX = 100.0
UPPER_BOUNDS_WEIGHTS = (
    INITIAL_STABILITY_MAX,
    INITIAL_STABILITY_MAX,
    INITIAL_STABILITY_MAX,
    INITIAL_STABILITY_MAX,
    10.0,
    4.0,
    4.0,
    0.75,
    4.5,
    0.8,
    3.5,
    5.0,
    0.25,
    0.9,
    4.0,
    1.0,
    6.0,
    2.0,
    2.0,
    0.8,
    0.8,
)


class SchedulingParametersDict(TypedDict):
    """
    JSON-serializable dictionary representation of a SchedulingParameters object.
    """

    weights: list[float]
    desired_retention: float
    learning_steps: list[int]
    relearning_steps: list[int]
    maximum_interval: int
    enable_fuzzing: bool
    enable_short_term: bool


def migrate_weights(weights: Sequence[float]) -> tuple[float, ...]:
    """
    Upgrades an FSRS-5 weight vector to the 21 weights of FSRS-6.

    Vectors that already have 21 weights are returned unchanged.
    """

    weights = tuple(float(weight) for weight in weights)

    if len(weights) == FSRS5_WEIGHT_COUNT:
        return weights + FSRS5_MIGRATION_WEIGHTS

    return weights


def validate_weights(weights: Sequence[float]) -> None:
    if len(weights) != len(LOWER_BOUNDS_WEIGHTS):
        raise ValueError(
            f"Expected {len(LOWER_BOUNDS_WEIGHTS)} weights, got {len(weights)}."
        )

    error_messages = []
    for index, (weight, lower_bound, upper_bound) in enumerate(
        zip(weights, LOWER_BOUNDS_WEIGHTS, UPPER_BOUNDS_WEIGHTS)
    ):
        if not lower_bound <= weight <= upper_bound:
            error_message = f"weights[{index}] = {weight} is out of bounds: ({lower_bound}, {upper_bound})"
            error_messages.append(error_message)

    if len(error_messages) > 0:
        raise ValueError(
            "One or more weights are out of bounds:\n" + "\n".join(error_messages)
        )


@dataclass(frozen=True)
class SchedulingParameters:
    """
    The configuration of a SchedulingEngine.

    SchedulingParameters are validated on construction and never change afterwards.

    Attributes:
        weights: The 21 model weights (w0-w20) of the FSRS memory model.
        desired_retention: The target probability of recall when a card becomes due.
        learning_steps: Small time intervals that schedule cards in the Learning state.
        relearning_steps: Small time intervals that schedule cards in the Relearning state.
        maximum_interval: The maximum number of days a Review-state card can be scheduled into the future.
        enable_fuzzing: Whether to apply a small amount of 'fuzz' to calculated intervals.
        enable_short_term: Whether to use the learning steps and the same-day stability formula.
    """

    weights: tuple[float, ...] = DEFAULT_WEIGHTS
    desired_retention: float = 0.9
    learning_steps: tuple[timedelta, ...] = field(
        default=(timedelta(minutes=1), timedelta(minutes=10))
    )
    relearning_steps: tuple[timedelta, ...] = field(default=(timedelta(minutes=10),))
    maximum_interval: int = 36500
    enable_fuzzing: bool = True
    enable_short_term: bool = True

    def __post_init__(self) -> None:
        weights = migrate_weights(self.weights)
        validate_weights(weights)

        # the dataclass is frozen, normalise sequences in place
        object.__setattr__(self, "weights", weights)
        object.__setattr__(self, "learning_steps", tuple(self.learning_steps))
        object.__setattr__(self, "relearning_steps", tuple(self.relearning_steps))

        if not 0 < self.desired_retention < 1:
            raise ValueError(
                f"desired_retention must be between 0 and 1, got {self.desired_retention}"
            )

        if self.maximum_interval < 1:
            raise ValueError(
                f"maximum_interval must be at least 1 day, got {self.maximum_interval}"
            )

        for name in ("learning_steps", "relearning_steps"):
            for step in getattr(self, name):
                if step <= timedelta(0):
                    raise ValueError(f"{name} must be positive, got {step}")

    @property
    def active_learning_steps(self) -> tuple[timedelta, ...]:
        return self.learning_steps if self.enable_short_term else ()

    @property
    def active_relearning_steps(self) -> tuple[timedelta, ...]:
        return self.relearning_steps if self.enable_short_term else ()

    def to_dict(
        self,
    ) -> SchedulingParametersDict:
        """
        Returns a dictionary representation of the SchedulingParameters object.

        Returns:
            SchedulingParametersDict: A dictionary representation of the SchedulingParameters object.
        """

        return {
            "weights": list(self.weights),
            "desired_retention": self.desired_retention,
            "learning_steps": [
                int(learning_step.total_seconds())
                for learning_step in self.learning_steps
            ],
            "relearning_steps": [
                int(relearning_step.total_seconds())
                for relearning_step in self.relearning_steps
            ],
            "maximum_interval": self.maximum_interval,
            "enable_fuzzing": self.enable_fuzzing,
            "enable_short_term": self.enable_short_term,
        }

    @classmethod
    def from_dict(cls, source_dict: SchedulingParametersDict) -> Self:
        """
        Creates a SchedulingParameters object from an existing dictionary.

        Missing keys fall back to their defaults.

        Args:
            source_dict: A dictionary representing an existing SchedulingParameters object.

        Returns:
            Self: A SchedulingParameters object created from the provided dictionary.

        Raises:
            ValueError: If any of the stored values are invalid.
        """

        kwargs = {}
        if "weights" in source_dict:
            kwargs["weights"] = tuple(source_dict["weights"])
        if "desired_retention" in source_dict:
            kwargs["desired_retention"] = float(source_dict["desired_retention"])
        if "learning_steps" in source_dict:
            kwargs["learning_steps"] = tuple(
                timedelta(seconds=learning_step)
                for learning_step in source_dict["learning_steps"]
            )
        if "relearning_steps" in source_dict:
            kwargs["relearning_steps"] = tuple(
                timedelta(seconds=relearning_step)
                for relearning_step in source_dict["relearning_steps"]
            )
        if "maximum_interval" in source_dict:
            kwargs["maximum_interval"] = int(source_dict["maximum_interval"])
        if "enable_fuzzing" in source_dict:
            kwargs["enable_fuzzing"] = bool(source_dict["enable_fuzzing"])
        if "enable_short_term" in source_dict:
            kwargs["enable_short_term"] = bool(source_dict["enable_short_term"])

        return cls(**kwargs)

    def to_json(self, indent: int | str | None = None) -> str:
        """
        Returns a JSON-serialized string of the SchedulingParameters object.

        Args:
            indent: Equivalent argument to the indent in json.dumps()

        Returns:
            str: A JSON-serialized string of the SchedulingParameters object.
        """

        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, source_json: str) -> Self:
        """
        Creates a SchedulingParameters object from a JSON-serialized string.

        Args:
            source_json: A JSON-serialized string of an existing SchedulingParameters object.

        Returns:
            Self: A SchedulingParameters object created from the JSON string.
        """

        source_dict: SchedulingParametersDict = json.loads(source_json)
        return cls.from_dict(source_dict=source_dict)


__all__ = ["SchedulingParameters", "DEFAULT_WEIGHTS"]
