from flashsched import (
    CardState,
    Rating,
    ReviewEvent,
    SchedulingEngine,
    SchedulingParameters,
    State,
    DEFAULT_WEIGHTS,
)

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone
import json
import pytest

NOW = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class TestCardState:
    def test_new_card(self):
        card = CardState.new(card_id=1, created_at=NOW)

        assert card.state == State.New
        assert card.is_new
        assert card.reps == 0
        assert card.lapses == 0
        assert card.stability == 0.0
        assert card.difficulty == 0.0
        assert card.last_review is None
        assert card.due == NOW

    def test_default_card_ids_are_unique(self):
        card_ids = {CardState().card_id for _ in range(20)}

        assert len(card_ids) == 20

    def test_dict_serialize(self):
        engine = SchedulingEngine()
        card = CardState.new(card_id=12, created_at=NOW)

        card_dict = card.to_dict()
        assert card_dict["state"] == 0
        assert card_dict["last_review"] is None
        assert CardState.from_dict(card_dict) == card

        card, _ = engine.commit_review(card, Rating.Good, NOW)

        card_dict = card.to_dict()
        assert card_dict["state"] == State.Learning.value
        assert card_dict["last_review"] == NOW.isoformat()
        assert CardState.from_dict(card_dict) == card

    def test_json_serialize(self):
        engine = SchedulingEngine()
        card = CardState.new(card_id="c0ffee", created_at=NOW)

        for rating in (Rating.Good, Rating.Good, Rating.Again):
            card, _ = engine.commit_review(card, rating, card.due)

            card_json = card.to_json()
            assert json.loads(card_json) == card.to_dict()

            copied_card = CardState.from_json(card_json)
            assert copied_card == card
            assert copied_card.to_json(indent=2) == card.to_json(indent=2)

    def test_from_dict_with_missing_counters(self):
        # rows written before a card was reviewed may carry NULL counters
        card = CardState.from_dict(
            {
                "card_id": 5,
                "state": 0,
                "stability": None,
                "difficulty": None,
                "elapsed_days": None,
                "scheduled_days": None,
                "reps": None,
                "lapses": None,
                "learning_steps": None,
                "last_review": None,
                "due": NOW.isoformat(),
            }
        )

        assert card == CardState.new(card_id=5, created_at=NOW)

    def test_from_dict_without_offset(self):
        # timestamp columns without a time zone hold UTC values
        card = CardState.from_dict(
            {
                "card_id": 7,
                "state": 2,
                "stability": 10.0,
                "difficulty": 5.0,
                "elapsed_days": 0,
                "scheduled_days": 10,
                "reps": 3,
                "lapses": 0,
                "learning_steps": 0,
                "last_review": "2024-01-05T12:00:00",
                "due": "2024-01-15T12:00:00",
            }
        )

        assert card.last_review == NOW - timedelta(days=10)
        assert card.due == NOW
        assert card.due.tzinfo is not None


class TestReviewEvent:
    def test_dict_serialize(self):
        review_event = ReviewEvent(card_id=1, rating=Rating.Hard, reviewed_at=NOW)

        review_event_dict = review_event.to_dict()
        assert review_event_dict == {
            "card_id": 1,
            "rating": 2,
            "reviewed_at": NOW.isoformat(),
        }
        assert ReviewEvent.from_dict(review_event_dict) == review_event

    def test_json_serialize(self):
        review_event = ReviewEvent(card_id="abc", rating=Rating.Easy, reviewed_at=NOW)

        copied_review_event = ReviewEvent.from_json(review_event.to_json())

        assert copied_review_event == review_event
        assert copied_review_event.rating is Rating.Easy

    def test_from_dict_without_offset(self):
        review_event = ReviewEvent.from_dict(
            {"card_id": 1, "rating": 3, "reviewed_at": "2024-01-15T12:00:00"}
        )

        assert review_event.reviewed_at == NOW
        assert review_event.reviewed_at.tzinfo is not None

    def test_invalid_rating(self):
        with pytest.raises(ValueError):
            ReviewEvent.from_dict(
                {"card_id": 1, "rating": 5, "reviewed_at": NOW.isoformat()}
            )

    def test_immutable(self):
        review_event = ReviewEvent(card_id=1, rating=Rating.Good, reviewed_at=NOW)

        with pytest.raises(FrozenInstanceError):
            review_event.rating = Rating.Again


class TestSchedulingParameters:
    def test_defaults(self):
        parameters = SchedulingParameters()

        assert parameters.weights == DEFAULT_WEIGHTS
        assert parameters.desired_retention == 0.9
        assert parameters.learning_steps == (
            timedelta(minutes=1),
            timedelta(minutes=10),
        )
        assert parameters.relearning_steps == (timedelta(minutes=10),)
        assert parameters.maximum_interval == 36500
        assert parameters.enable_fuzzing is True
        assert parameters.enable_short_term is True

    def test_custom_parameters(self):
        weights = list(DEFAULT_WEIGHTS)
        weights[0] = 0.5

        parameters = SchedulingParameters(
            weights=weights,
            desired_retention=0.85,
            learning_steps=[timedelta(minutes=5)],
            relearning_steps=[],
            maximum_interval=3650,
            enable_fuzzing=False,
        )

        assert parameters.weights == tuple(weights)
        assert parameters.learning_steps == (timedelta(minutes=5),)
        assert parameters.relearning_steps == ()

        engine = SchedulingEngine(parameters)
        assert engine.model.weights == tuple(weights)

    def test_dict_serialize(self):
        parameters = SchedulingParameters(
            desired_retention=0.8, learning_steps=(timedelta(minutes=3),)
        )

        parameters_dict = parameters.to_dict()
        assert parameters_dict["learning_steps"] == [180]
        assert parameters_dict["relearning_steps"] == [600]
        assert SchedulingParameters.from_dict(parameters_dict) == parameters

    def test_json_serialize(self):
        parameters = SchedulingParameters(enable_fuzzing=False, maximum_interval=1000)

        copied_parameters = SchedulingParameters.from_json(parameters.to_json())

        assert copied_parameters == parameters

    def test_from_dict_uses_defaults(self):
        parameters = SchedulingParameters.from_dict({"desired_retention": 0.95})

        assert parameters == SchedulingParameters(desired_retention=0.95)

    def test_fsrs5_weights(self):
        fsrs5_weights = DEFAULT_WEIGHTS[:19]

        parameters = SchedulingParameters(weights=fsrs5_weights)

        assert len(parameters.weights) == 21
        assert parameters.weights[19:] == (0.0, 0.5)

    def test_weight_validation(self):
        with pytest.raises(ValueError, match="Expected 21 weights"):
            SchedulingParameters(weights=(1.0, 2.0, 3.0))

        weights = list(DEFAULT_WEIGHTS)
        weights[4] = 11.0
        weights[20] = 0.0
        with pytest.raises(ValueError) as excinfo:
            SchedulingParameters(weights=weights)

        assert "weights[4]" in str(excinfo.value)
        assert "weights[20]" in str(excinfo.value)

    @pytest.mark.parametrize("desired_retention", [0.0, 1.0, 1.5, -0.2])
    def test_desired_retention_validation(self, desired_retention):
        with pytest.raises(ValueError):
            SchedulingParameters(desired_retention=desired_retention)

    def test_step_and_interval_validation(self):
        with pytest.raises(ValueError):
            SchedulingParameters(maximum_interval=0)

        with pytest.raises(ValueError):
            SchedulingParameters(learning_steps=(timedelta(0),))

        with pytest.raises(ValueError):
            SchedulingParameters(relearning_steps=(timedelta(minutes=-1),))

    def test_immutable(self):
        parameters = SchedulingParameters()

        with pytest.raises(FrozenInstanceError):
            parameters.desired_retention = 0.5
