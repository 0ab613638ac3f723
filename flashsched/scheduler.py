"""
flashsched.scheduler
--------------------

This module defines the SchedulingEngine class and the records it returns.

Classes:
    SchedulingEngine: The FSRS spaced-repetition scheduling engine.
    SchedulingInfo: The outcome of reviewing a card with one rating.
    NextStates: The four possible outcomes of reviewing a card.
"""

from __future__ import annotations
from collections.abc import Iterable, Iterator
from copy import copy
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
from flashsched.card import CardState
from flashsched.fuzz import apply_fuzz, fuzz_factor, order_intervals
from flashsched.memory_model import MemoryModel
from flashsched.parameters import SchedulingParameters
from flashsched.rating import Rating
from flashsched.review_log import ReviewEvent
from flashsched.state import State

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchedulingInfo:
    """
    The outcome of reviewing a card with one rating.

    Attributes:
        card: The card as it would be persisted after the review.
        review_event: The log entry to append for the review.
    """

    card: CardState
    review_event: ReviewEvent


@dataclass(frozen=True)
class NextStates:
    """
    The outcomes of reviewing a card with each of the four ratings.

    Outcomes can be read as attributes, indexed by Rating or iterated in rating order.
    """

    again: SchedulingInfo
    hard: SchedulingInfo
    good: SchedulingInfo
    easy: SchedulingInfo

    def __getitem__(self, rating: Rating | int) -> SchedulingInfo:
        return getattr(self, Rating.parse(rating).name.lower())

    def __iter__(self) -> Iterator[SchedulingInfo]:
        return iter((self.again, self.hard, self.good, self.easy))

    def items(self) -> Iterator[tuple[Rating, SchedulingInfo]]:
        return zip(Rating, self)


@dataclass(init=False, frozen=True)
class SchedulingEngine:
    """
    The FSRS scheduling engine.

    Enables the reviewing and future scheduling of cards according to the FSRS algorithm.
    The engine holds no state besides its configuration, so one engine can be shared by
    any number of callers. Reviews of the same card must still be submitted one at a time.

    Attributes:
        parameters: The configuration of the engine.
        model: The memory model used to compute stability, difficulty and intervals.
    """

    parameters: SchedulingParameters
    model: MemoryModel

    def __init__(
        self,
        parameters: SchedulingParameters | None = None,
        model: MemoryModel | None = None,
    ) -> None:
        if parameters is None:
            parameters = SchedulingParameters()

        if model is None:
            model = MemoryModel(parameters.weights)

        object.__setattr__(self, "parameters", parameters)
        object.__setattr__(self, "model", model)

    def get_card_retrievability(self, card: CardState, now: datetime) -> float:
        """
        Calculates a card's retrievability at a given date and time.

        The retrievability of a card is the predicted probability that the card is correctly recalled at the provided datetime.

        Args:
            card: The card whose retrievability is to be calculated.
            now: The current date and time.

        Returns:
            float: The retrievability of the card, 0 if it was never reviewed.
        """

        if card.state == State.New or card.last_review is None:
            return 0.0

        now = self._validate_datetime(now)
        self._validate_card(card)
        elapsed_days = max(0, (now - card.last_review).days)

        return self.model.retrievability(card.stability, elapsed_days)

    def compute_next_states(self, card: CardState, now: datetime) -> NextStates:
        """
        Computes the card that would result from each of the four ratings, without committing any.

        Args:
            card: The card being reviewed.
            now: The date and time of the review.

        Returns:
            NextStates: The outcome of each rating.

        Raises:
            ValueError: If `now` or the card's datetimes are not timezone-aware, or `now` is earlier
                than the card's last review.
        """

        now = self._validate_datetime(now)

        self._validate_card(card)

        if card.last_review is not None and now < card.last_review:
            raise ValueError(
                f"review datetime {now.isoformat()} is earlier than the card's last review "
                f"{card.last_review.isoformat()}"
            )

        elapsed_days = (
            max(0, (now - card.last_review).days) if card.last_review else 0
        )

        next_cards = {}
        step_intervals = {}
        for rating in Rating:
            next_card, step_interval = self._next_card(
                card=card, rating=rating, now=now, elapsed_days=elapsed_days
            )
            next_cards[rating] = next_card
            if step_interval is not None:
                step_intervals[rating] = step_interval

        day_intervals = {
            rating: self.model.next_interval(
                next_card.stability,
                self.parameters.desired_retention,
                self.parameters.maximum_interval,
            )
            for rating, next_card in next_cards.items()
            if rating not in step_intervals
        }

        if self.parameters.enable_fuzzing:
            factor = fuzz_factor(now, card.reps, card.difficulty, card.stability)
            day_intervals = {
                rating: apply_fuzz(
                    interval_days,
                    factor,
                    elapsed_days,
                    self.parameters.maximum_interval,
                )
                for rating, interval_days in day_intervals.items()
            }

        day_intervals = order_intervals(day_intervals)

        for rating, next_card in next_cards.items():
            if rating in step_intervals:
                next_card.scheduled_days = 0
                next_card.due = now + step_intervals[rating]
            else:
                next_card.scheduled_days = day_intervals[rating]
                next_card.due = now + timedelta(days=day_intervals[rating])

        return NextStates(
            *(
                SchedulingInfo(
                    card=next_cards[rating],
                    review_event=ReviewEvent(
                        card_id=card.card_id, rating=rating, reviewed_at=now
                    ),
                )
                for rating in Rating
            )
        )

    def commit_review(
        self, card: CardState, rating: Rating | int, now: datetime
    ) -> tuple[CardState, ReviewEvent]:
        """
        Reviews a card with a given rating at a given time.

        Args:
            card: The card being reviewed.
            rating: The chosen rating for the card being reviewed, 1-4.
            now: The date and time of the review.

        Returns:
            tuple[CardState, ReviewEvent]: The updated card and the review event to log.

        Raises:
            ValueError: If the rating is not between 1 and 4, or `now` is invalid for the card.
        """

        rating = Rating.parse(rating)

        scheduling_info = self.compute_next_states(card=card, now=now)[rating]
        next_card = scheduling_info.card

        logger.debug(
            f"Reviewed card {card.card_id} as {rating.name}: "
            f"{card.state.name} -> {next_card.state.name}, due {next_card.due.isoformat()}"
        )

        return next_card, scheduling_info.review_event

    def replay(
        self,
        review_events: Iterable[ReviewEvent],
        card_id: int | str | None = None,
        created_at: datetime | None = None,
    ) -> CardState:
        """
        Rebuilds a card's state by replaying its review events from a New card.

        Args:
            review_events: The card's review events (order doesn't matter).
            card_id: The id of the card. Defaults to the card_id of the review events.
            created_at: When the card was created. Defaults to the time of the first review.

        Returns:
            CardState: The card after all of the reviews.

        Raises:
            ValueError: If the review events belong to more than one card.
        """

        review_events = sorted(review_events, key=lambda event: event.reviewed_at)

        if card_id is None and len(review_events) > 0:
            card_id = review_events[0].card_id

        for review_event in review_events:
            if review_event.card_id != card_id:
                raise ValueError(
                    f"ReviewEvent card_id {review_event.card_id} does not match card_id {card_id}"
                )

        if created_at is None and len(review_events) > 0:
            created_at = review_events[0].reviewed_at

        card = CardState.new(card_id=card_id, created_at=created_at)

        for review_event in review_events:
            card, _ = self.commit_review(
                card=card, rating=review_event.rating, now=review_event.reviewed_at
            )

        logger.debug(f"Replayed {len(review_events)} review events for card {card_id}")

        return card

    def reschedule_card(
        self, card: CardState, review_events: Iterable[ReviewEvent]
    ) -> CardState:
        """
        Reschedules/updates the given card with the current engine provided that card's review events.

        If the current card was previously scheduled with different parameters, you may want to reschedule/update
        it as if it had always been scheduled with this engine.

        Args:
            card: The card to be rescheduled/updated.
            review_events: A list of that card's review events (order doesn't matter).

        Returns:
            CardState: A new card that has been rescheduled/updated with this engine.

        Raises:
            ValueError: If any of the review events are for a card other than the one specified.
        """

        return self.replay(review_events, card_id=card.card_id, created_at=card.due)

    def _validate_datetime(self, now: datetime) -> datetime:
        if now.tzinfo is None:
            raise ValueError("datetime must be timezone-aware")

        return now.astimezone(timezone.utc)

    def _validate_card(self, card: CardState) -> None:
        for field_name in ("last_review", "due"):
            value = getattr(card, field_name)
            if value is not None and value.tzinfo is None:
                raise ValueError(
                    f"card {card.card_id} has a timezone-naive {field_name} {value.isoformat()}"
                )

    def _next_card(
        self, *, card: CardState, rating: Rating, now: datetime, elapsed_days: int
    ) -> tuple[CardState, timedelta | None]:
        """
        Applies one rating to a copy of the card.

        Returns the new card and its learning step interval, or None when the card is to be
        scheduled in whole days. The caller fills in scheduled_days and due.
        """

        next_card = copy(card)

        next_card.stability, next_card.difficulty = self._next_memory_state(
            card=card, rating=rating, elapsed_days=elapsed_days
        )

        if rating == Rating.Again:
            next_card.lapses += 1
        else:
            next_card.reps += 1

        step_interval = None

        match card.state:
            case State.New | State.Learning:
                step = 0 if card.state == State.New else card.learning_steps
                next_step, step_interval = self._next_step(
                    step=step,
                    rating=rating,
                    steps=self.parameters.active_learning_steps,
                )
                next_card.state = (
                    State.Learning if step_interval is not None else State.Review
                )

            case State.Review:
                relearning_steps = self.parameters.active_relearning_steps

                # if there are no relearning steps the card stays in Review
                if rating == Rating.Again and len(relearning_steps) > 0:
                    next_step = 0
                    step_interval = relearning_steps[next_step]
                    next_card.state = State.Relearning
                else:
                    next_step = 0
                    next_card.state = State.Review

            case State.Relearning:
                next_step, step_interval = self._next_step(
                    step=card.learning_steps,
                    rating=rating,
                    steps=self.parameters.active_relearning_steps,
                )
                next_card.state = (
                    State.Relearning if step_interval is not None else State.Review
                )

        next_card.learning_steps = next_step
        next_card.elapsed_days = elapsed_days
        next_card.last_review = now

        return next_card, step_interval

    def _next_memory_state(
        self, *, card: CardState, rating: Rating, elapsed_days: int
    ) -> tuple[float, float]:
        if card.state == State.New:
            return (
                self.model.initial_stability(rating),
                self.model.initial_difficulty(rating),
            )

        if elapsed_days < 1 and self.parameters.enable_short_term:
            stability = self.model.next_short_term_stability(card.stability, rating)

        else:
            retrievability = self.model.retrievability(card.stability, elapsed_days)

            if rating == Rating.Again:
                stability = self.model.next_forget_stability(
                    card.stability, card.difficulty, retrievability
                )
            else:
                stability = self.model.next_recall_stability(
                    card.stability, card.difficulty, retrievability, rating
                )

        difficulty = self.model.next_difficulty(card.difficulty, rating)

        return stability, difficulty

    def _next_step(
        self, *, step: int, rating: Rating, steps: tuple[timedelta, ...]
    ) -> tuple[int, timedelta | None]:
        """
        Moves a card through learning or relearning steps.

        Returns the card's next step and the time until it is due, or (0, None) when the
        card graduates to the Review state.
        """

        ## second clause handles the edge case where the card was put on a step by
        ## parameters with more steps than the current ones
        if len(steps) == 0 or (step >= len(steps) and rating != Rating.Again):
            return 0, None

        match rating:
            case Rating.Again:
                return 0, steps[0]

            case Rating.Hard:
                # card step stays the same
                if step == 0 and len(steps) == 1:
                    return step, steps[0] * 1.5
                elif step == 0 and len(steps) >= 2:
                    return step, (steps[0] + steps[1]) / 2.0
                else:
                    return step, steps[step]

            case Rating.Good:
                if step + 1 >= len(steps):  # the last step
                    return 0, None

                return step + 1, steps[step + 1]

            case Rating.Easy:
                return 0, None


__all__ = ["SchedulingEngine", "SchedulingInfo", "NextStates"]
