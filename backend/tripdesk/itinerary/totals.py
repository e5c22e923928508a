"""Derived totals.

``day_total`` is never authoritative on its own: every store calls
``apply_day_total`` immediately before writing a day document, overwriting
whatever value the caller put there. Budget line totals follow the same rule
through ``compute_line_total``.
"""

from collections.abc import Iterable, Mapping
from typing import Any, Protocol


class HasActivities(Protocol):
    """Anything carrying an activity list and a derived total."""

    activities: list[dict[str, Any]]
    day_total: int


def compute_day_total(activities: Iterable[Mapping[str, Any] | None] | None) -> int:
    """Sum activity costs. Missing activities or costs count as 0."""
    if not activities:
        return 0
    total = 0
    for activity in activities:
        if not activity:
            continue
        cost = activity.get("cost") or 0
        total += int(cost)
    return total


def apply_day_total(day: HasActivities) -> HasActivities:
    """Recompute ``day.day_total`` from its activities in place."""
    day.day_total = compute_day_total(day.activities)
    return day


def compute_line_total(quantity: float | None, unit_price: float | None) -> float:
    """Budget line total; a caller-supplied total is never trusted."""
    return (quantity or 0) * (unit_price or 0)
