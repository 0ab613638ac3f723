"""
flashsched.memory_model
-----------------------

This module defines the MemoryModel class, the FSRS-6 forgetting-curve equations.

Classes:
    MemoryModel: Pure stability, difficulty and retrievability calculations.
"""

from __future__ import annotations
from collections.abc import Sequence
import logging
import math
from flashsched.parameters import (
    DEFAULT_WEIGHTS,
    MAX_DIFFICULTY,
    MIN_DIFFICULTY,
    STABILITY_MIN,
    migrate_weights,
    validate_weights,
)
from flashsched.rating import Rating

logger = logging.getLogger(__name__)


class MemoryModel:
    """
    The FSRS-6 memory model.

    Every method is a pure function of the model weights and its arguments. Stability
    and difficulty arguments are clamped into their valid domains before use, so a
    corrupted stored value never propagates into the result.

    The model uses the following key concepts:
    - Retrievability (R): Probability of recall at a given time, following a power-law
      forgetting curve whose decay is the weight w20
    - Stability (S): Memory strength, measured as the number of days until R falls to 0.9
    - Difficulty (D): Value between 1-10 indicating the card's intrinsic hardness. Difficulty
      changes with each rating and reverts toward the initial difficulty of an Easy card
    - Rating (G): Review rating (Again=1, Hard=2, Good=3, Easy=4)

    Weight usage:
    - w0-w3: initial stability per rating
    - w4-w5: initial difficulty
    - w6-w7: difficulty update and mean reversion
    - w8-w10, w15, w16: stability after a successful recall
    - w11-w14: stability after a lapse
    - w17-w19: same-day (short-term) stability
    - w20: forgetting curve decay

    Attributes:
        weights: The 21 model weights.
    """

    weights: tuple[float, ...]

    def __init__(self, weights: Sequence[float] = DEFAULT_WEIGHTS) -> None:
        weights = migrate_weights(weights)
        validate_weights(weights)
        self.weights = weights

        self._DECAY = -self.weights[20]
        # chosen so that R = 0.9 when t = S
        self._FACTOR = 0.9 ** (1 / self._DECAY) - 1

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(weights={self.weights})"

    def _clamp_difficulty(self, difficulty: float) -> float:
        if not math.isfinite(difficulty):
            fallback = self.initial_difficulty(Rating.Good)
            logger.warning(
                f"Replacing non-finite difficulty {difficulty} with {fallback}"
            )
            return fallback

        if not MIN_DIFFICULTY <= difficulty <= MAX_DIFFICULTY:
            logger.warning(f"Clamping out of range difficulty {difficulty}")

        return min(max(difficulty, MIN_DIFFICULTY), MAX_DIFFICULTY)

    def _clamp_stability(self, stability: float) -> float:
        if not math.isfinite(stability):
            logger.warning(
                f"Replacing non-finite stability {stability} with {STABILITY_MIN}"
            )
            return STABILITY_MIN

        return max(stability, STABILITY_MIN)

    def initial_stability(self, rating: Rating) -> float:
        """
        Returns the stability of a card after its first review.

        Args:
            rating: The first rating given to the card.

        Returns:
            The initial stability, w0-w3 for ratings Again-Easy.
        """

        return self._clamp_stability(self.weights[rating - 1])

    def initial_difficulty(self, rating: Rating, clamp: bool = True) -> float:
        """
        Returns the difficulty of a card after its first review.

        Uses formula: D0(G) = w4 - e^(w5*(G-1)) + 1

        Args:
            rating: The first rating given to the card.
            clamp: Whether to clamp the result into [1, 10]. The mean reversion target of
                next_difficulty uses the unclamped value.

        Returns:
            The initial difficulty.
        """

        initial_difficulty = (
            self.weights[4] - math.exp(self.weights[5] * (rating - 1)) + 1
        )

        if clamp:
            initial_difficulty = min(
                max(initial_difficulty, MIN_DIFFICULTY), MAX_DIFFICULTY
            )

        return initial_difficulty

    def retrievability(self, stability: float, elapsed_days: float) -> float:
        """
        Returns the predicted probability of recalling a card.

        Uses the power function R(t,S) = (1 + FACTOR*t/S)^DECAY, which is 1 at t = 0,
        0.9 at t = S and approaches 0 as t grows.

        Args:
            stability: The card's stability.
            elapsed_days: Days since the card's last review. Negative values count as 0.

        Returns:
            The retrievability, between 0 and 1.
        """

        if elapsed_days <= 0:
            return 1.0

        stability = self._clamp_stability(stability)
        retrievability = (1 + self._FACTOR * elapsed_days / stability) ** self._DECAY

        return min(max(retrievability, 0.0), 1.0)

    def next_recall_stability(
        self,
        stability: float,
        difficulty: float,
        retrievability: float,
        rating: Rating,
    ) -> float:
        """
        Returns the new stability after a successful recall (Hard, Good or Easy).

        Formula: S' = S * (1 + e^w8 * (11-D) * S^-w9 * (e^(w10*(1-R)) - 1) * w15^(G=2) * w16^(G=4))

        - Higher D -> smaller increase
        - Higher S -> harder to increase further
        - Lower R -> larger increase

        Raises:
            ValueError: If the rating is Again.
        """

        if rating == Rating.Again:
            raise ValueError("recall stability is undefined for an Again rating")

        stability = self._clamp_stability(stability)
        difficulty = self._clamp_difficulty(difficulty)

        hard_penalty = self.weights[15] if rating == Rating.Hard else 1
        easy_bonus = self.weights[16] if rating == Rating.Easy else 1

        next_stability = stability * (
            1
            + math.exp(self.weights[8])
            * (11 - difficulty)
            * (stability ** -self.weights[9])
            * (math.exp((1 - retrievability) * self.weights[10]) - 1)
            * hard_penalty
            * easy_bonus
        )

        return self._clamp_stability(next_stability)

    def next_forget_stability(
        self, stability: float, difficulty: float, retrievability: float
    ) -> float:
        """
        Returns the new stability after a lapse (an Again rating).

        Formula: S'_f = w11 * D^-w12 * ((S+1)^w13 - 1) * e^(w14*(1-R)), bounded above by
        S / e^(w17*w18) so that a lapse never increases stability.
        """

        stability = self._clamp_stability(stability)
        difficulty = self._clamp_difficulty(difficulty)

        long_term_forget_stability = (
            self.weights[11]
            * (difficulty ** -self.weights[12])
            * (((stability + 1) ** (self.weights[13])) - 1)
            * math.exp((1 - retrievability) * self.weights[14])
        )

        short_term_forget_stability = stability / math.exp(
            self.weights[17] * self.weights[18]
        )

        return self._clamp_stability(
            min(long_term_forget_stability, short_term_forget_stability, stability)
        )

    def next_short_term_stability(self, stability: float, rating: Rating) -> float:
        """
        Returns the new stability after a review on the same day as the previous one.

        Formula: S' = S * e^(w17*(G-3+w18)) * S^-w19. Good and Easy never decrease stability.
        """

        stability = self._clamp_stability(stability)

        short_term_stability_increase = math.exp(
            self.weights[17] * (rating - 3 + self.weights[18])
        ) * (stability ** -self.weights[19])

        if rating in (Rating.Good, Rating.Easy):
            short_term_stability_increase = max(short_term_stability_increase, 1.0)

        return self._clamp_stability(stability * short_term_stability_increase)

    def next_difficulty(self, difficulty: float, rating: Rating) -> float:
        """
        Returns the new difficulty after a review.

        Uses formulas:
        ΔD = -w6*(G-3)
        D' = D + ΔD*(10-D)/9  # linear damping
        D'' = w7*D0(4) + (1-w7)*D'  # mean reversion to the Easy initial difficulty

        The result is always within [1, 10].
        """

        difficulty = self._clamp_difficulty(difficulty)

        delta_difficulty = -(self.weights[6] * (rating - 3))
        damped_difficulty = (
            difficulty + (10.0 - difficulty) * delta_difficulty / 9.0
        )

        mean_reversion_target = self.initial_difficulty(Rating.Easy, clamp=False)
        next_difficulty = (
            self.weights[7] * mean_reversion_target
            + (1 - self.weights[7]) * damped_difficulty
        )

        return min(max(next_difficulty, MIN_DIFFICULTY), MAX_DIFFICULTY)

    def next_interval(
        self,
        stability: float,
        desired_retention: float = 0.9,
        maximum_interval: int = 36500,
    ) -> int:
        """
        Returns the number of days until retrievability falls to the desired retention.

        Uses the inverse of the forgetting curve: I(r,S) = (S/FACTOR) * (r^(1/DECAY) - 1)

        Args:
            stability: The card's stability.
            desired_retention: The target retrievability.
            maximum_interval: The largest interval that may be returned.

        Returns:
            The interval in whole days, at least 1 and at most maximum_interval.
        """

        stability = self._clamp_stability(stability)

        next_interval = (stability / self._FACTOR) * (
            (desired_retention ** (1 / self._DECAY)) - 1
        )

        next_interval = round(next_interval)  # intervals are full days

        # must be at least 1 day long
        next_interval = max(next_interval, 1)

        # can not be longer than the maximum interval
        next_interval = min(next_interval, maximum_interval)

        return next_interval


__all__ = ["MemoryModel"]
