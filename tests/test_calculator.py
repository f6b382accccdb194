"""Tests for the remaining-time calculator."""

from timeleft.core.calculator import adjusted_now_ms, compute_remaining

T0 = 1_700_000_000_000


class TestComputeRemaining:
    """compute_remaining() floors the time left to whole seconds."""

    def test_nine_minutes_into_ten(self) -> None:
        assert compute_remaining(T0, 600, T0 + 540_000, 0) == 60

    def test_partial_second_is_floored(self) -> None:
        assert compute_remaining(T0, 600, T0 + 250, 0) == 599

    def test_positive_offset_reduces_remaining(self) -> None:
        assert compute_remaining(T0, 600, T0 + 540_000, 5000) == 55

    def test_negative_offset_increases_remaining(self) -> None:
        assert compute_remaining(T0, 600, T0 + 540_000, -5000) == 65

    def test_exact_end_is_zero(self) -> None:
        assert compute_remaining(T0, 60, T0 + 60_000, 0) == 0

    def test_past_end_is_negative(self) -> None:
        assert compute_remaining(T0, 60, T0 + 60_001, 0) == -1
        assert compute_remaining(T0, 60, T0 + 90_000, 0) == -30

    def test_zero_duration_still_returns_a_number(self) -> None:
        assert compute_remaining(T0, 0, T0, 0) == 0

    def test_returns_int(self) -> None:
        assert isinstance(compute_remaining(T0, 600, T0 + 0.5, 0.25), int)

    def test_deterministic(self) -> None:
        args = (T0, 1800, T0 + 123_456, -789)
        assert compute_remaining(*args) == compute_remaining(*args)


class TestAdjustedNow:
    def test_adds_offset(self) -> None:
        assert adjusted_now_ms(T0, 1500) == T0 + 1500
        assert adjusted_now_ms(T0, -1500) == T0 - 1500
