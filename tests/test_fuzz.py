from flashsched.fuzz import apply_fuzz, fuzz_factor, get_fuzz_range, order_intervals
from flashsched.rating import Rating

from datetime import datetime, timezone


class TestFuzz:
    def test_short_intervals_are_not_fuzzed(self):
        for interval_days in (1, 2):
            for factor in (0.0, 0.5, 0.999):
                assert apply_fuzz(interval_days, factor, 0, 36500) == interval_days

    def test_fuzz_range(self):
        # delta = 1 + 0.15 * 4.5 + 0.1 * 13 + 0.05 * 30 = 4.475
        assert get_fuzz_range(50, 0, 36500) == (46, 54)

        # the band is wider for longer intervals
        min_short, max_short = get_fuzz_range(5, 0, 36500)
        min_long, max_long = get_fuzz_range(500, 0, 36500)
        assert max_short - min_short < max_long - min_long

        # never below 2 days or above the maximum interval
        assert get_fuzz_range(3, 0, 36500)[0] >= 2
        assert get_fuzz_range(100, 0, 102)[1] == 102

    def test_fuzz_range_respects_elapsed_days(self):
        min_ivl, max_ivl = get_fuzz_range(50, 49, 36500)

        assert min_ivl == 50
        assert max_ivl == 54

    def test_fuzzed_interval_within_range(self):
        for interval_days in (3, 7, 19, 50, 365, 4000):
            min_ivl, max_ivl = get_fuzz_range(interval_days, 0, 36500)
            for factor in (0.0, 0.25, 0.5, 0.75, 0.9999):
                fuzzed = apply_fuzz(interval_days, factor, 0, 36500)
                assert min_ivl <= fuzzed <= max_ivl
                assert fuzzed >= 1

    def test_fuzz_factor_is_deterministic(self):
        review_datetime = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)

        factor = fuzz_factor(review_datetime, 3, 5.2, 12.5)

        assert 0.0 <= factor < 1.0
        assert fuzz_factor(review_datetime, 3, 5.2, 12.5) == factor

        other_factors = {
            fuzz_factor(review_datetime, reps, 5.2, 12.5) for reps in range(10)
        }
        assert len(other_factors) > 1

    def test_order_intervals(self):
        ordered = order_intervals({Rating.Hard: 5, Rating.Good: 5, Rating.Easy: 4})
        assert ordered == {Rating.Hard: 5, Rating.Good: 6, Rating.Easy: 7}

        # Hard may equal Again but never be shorter
        ordered = order_intervals({Rating.Again: 3, Rating.Hard: 2})
        assert ordered == {Rating.Again: 3, Rating.Hard: 3}

        ordered = order_intervals({Rating.Easy: 0})
        assert ordered == {Rating.Easy: 1}

    def test_order_intervals_at_maximum_interval(self):
        # all three ratings were capped at a maximum interval of 99 days
        ordered = order_intervals({Rating.Hard: 99, Rating.Good: 99, Rating.Easy: 99})

        assert ordered == {Rating.Hard: 99, Rating.Good: 100, Rating.Easy: 101}

    def test_fuzz_does_not_invert_rating_order(self):
        raw_intervals = {Rating.Hard: 18, Rating.Good: 20, Rating.Easy: 21}

        for step in range(100):
            factor = step / 100
            fuzzed = order_intervals(
                {
                    rating: apply_fuzz(interval_days, factor, 10, 36500)
                    for rating, interval_days in raw_intervals.items()
                }
            )

            assert fuzzed[Rating.Hard] < fuzzed[Rating.Good] < fuzzed[Rating.Easy]
