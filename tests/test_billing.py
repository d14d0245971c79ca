import pytest

from checkin_tracker.billing import bill, round_remainder


def test_zero_duration_bills_nothing() -> None:
    billing = bill(0)

    assert billing.billable_minutes == 0
    assert billing.cost == 0


def test_partial_hour_rounds_up_to_quarter() -> None:
    assert bill(50 * 60).billable_minutes == 60
    assert bill(61 * 60).billable_minutes == 75
    assert bill(1).billable_minutes == 15


def test_tier_boundaries_are_inclusive() -> None:
    assert bill(90 * 60).billable_minutes == 90
    assert bill(15 * 60).billable_minutes == 15
    assert bill(45 * 60).billable_minutes == 45
    assert bill(45 * 60 + 1).billable_minutes == 60


def test_exact_hours_are_not_rounded() -> None:
    billing = bill(2 * 3600)

    assert billing.billable_minutes == 120
    assert billing.billable_seconds == 7200
    assert billing.cost == 20.0


def test_cost_uses_rate() -> None:
    assert bill(61 * 60).cost == 12.5
    assert bill(30 * 60, rate_per_hour=24.0).cost == 12.0


def test_round_remainder_tiers() -> None:
    assert round_remainder(0) == 0
    assert round_remainder(0.5) == 15
    assert round_remainder(15.01) == 30
    assert round_remainder(30) == 30
    assert round_remainder(44.9) == 45
    assert round_remainder(59.99) == 60


def test_billable_minutes_are_quarter_hours() -> None:
    for seconds in range(0, 4 * 3600, 397):
        assert bill(seconds).billable_minutes % 15 == 0
        assert bill(seconds).billable_minutes * 60 >= seconds


def test_negative_duration_rejected() -> None:
    with pytest.raises(ValueError):
        bill(-1)
