from __future__ import annotations

import math
from dataclasses import dataclass

DEFAULT_RATE_PER_HOUR = 10.0

# (upper bound inclusive, rounded minutes); a remainder of exactly 0 bills nothing.
_QUARTER_TIERS = ((15, 15), (30, 30), (45, 45))


@dataclass(frozen=True, slots=True)
class Billing:
    billable_minutes: int
    cost: float

    @property
    def billable_seconds(self) -> int:
        return self.billable_minutes * 60


def round_remainder(remainder_minutes: float) -> int:
    """Round a partial hour up to the next quarter hour."""
    if remainder_minutes <= 0:
        return 0
    for upper, rounded in _QUARTER_TIERS:
        if remainder_minutes <= upper:
            return rounded
    return 60


def bill(duration_seconds: float, rate_per_hour: float = DEFAULT_RATE_PER_HOUR) -> Billing:
    if duration_seconds < 0:
        raise ValueError("duration_seconds must be non-negative")

    total_minutes = duration_seconds / 60
    full_hours = math.floor(total_minutes / 60)
    remainder = total_minutes % 60

    billable_minutes = full_hours * 60 + round_remainder(remainder)
    return Billing(
        billable_minutes=billable_minutes,
        cost=billable_minutes / 60 * rate_per_hour,
    )
