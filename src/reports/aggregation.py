"""Grouping and statistics helpers shared by reports.

Arithmetic runs on ``Decimal`` so rounding is half-up and matches
fixed-point currency semantics. Division by zero yields ``None``.
"""

from __future__ import annotations

from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal
import statistics
from typing import Callable, Hashable, Iterable, Sequence, TypeVar

from core.constants import AGE_GROUPS, CURRENCY_PLACES, PERCENT_PLACES, VISITOR_TYPES
from core.types import AdmissionFact, ReportTable

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)

_HUNDRED = Decimal(100)


def quantize(value: Decimal | int | None, places: int) -> Decimal | None:
    """Round a number half-up to a fixed number of decimal places."""
    if value is None:
        return None
    return Decimal(value).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def percentage(part: int | Decimal, total: int | Decimal) -> Decimal | None:
    """Return ``part / total * 100`` rounded to percent places.

    Args:
        part: Numerator count.
        total: Denominator count.

    Returns:
        Rounded percentage, or ``None`` when ``total`` is zero.
    """
    if total == 0:
        return None
    return quantize(Decimal(part) * _HUNDRED / Decimal(total), PERCENT_PLACES)


def mean(values: Sequence[Decimal | int]) -> Decimal | None:
    """Return the exact arithmetic mean, ``None`` for no values."""
    if not values:
        return None
    return sum((Decimal(value) for value in values), Decimal(0)) / len(values)


def standard_deviation(values: Sequence[Decimal], stddev_mode: str) -> Decimal | None:
    """Return the sample or population standard deviation.

    Args:
        values: Observations.
        stddev_mode: ``sample`` (n-1 denominator) or ``population``.

    Returns:
        Standard deviation, or ``None`` when undefined for ``values``.
    """
    if stddev_mode == "population":
        return statistics.pstdev(values) if values else None
    return statistics.stdev(values) if len(values) >= 2 else None


def currency(value: Decimal | None) -> Decimal | None:
    return quantize(value, CURRENCY_PLACES)


def group_by(items: Iterable[T], key: Callable[[T], K]) -> dict[K, list[T]]:
    """Group items by key, keeping first-seen key order."""
    groups: dict[K, list[T]] = defaultdict(list)
    for item in items:
        groups[key(item)].append(item)
    return dict(groups)


def competition_rank(values: Sequence[object]) -> list[int]:
    """Assign competition ranks to values already sorted best-first.

    Equal values share a rank and the next distinct value skips ahead,
    giving ranks like ``1, 1, 3``.
    """
    ranks: list[int] = []
    for index, value in enumerate(values):
        if index > 0 and value == values[index - 1]:
            ranks.append(ranks[-1])
        else:
            ranks.append(index + 1)
    return ranks


def age_group_for(age: int | None) -> str | None:
    """Map an age onto its bucket label, ``None`` when age is unknown."""
    if age is None:
        return None
    for label, low, high in AGE_GROUPS:
        if age >= low and (high is None or age <= high):
            return label
    return None


def visitor_type_for(visit_count: int) -> str:
    """Bucket a patient's admission count into a visitor type."""
    if visit_count <= 1:
        return VISITOR_TYPES[0]
    if visit_count == 2:
        return VISITOR_TYPES[1]
    return VISITOR_TYPES[2]


def billing_amounts(facts: Iterable[AdmissionFact]) -> list[Decimal]:
    """Return non-null billing amounts, mirroring SQL aggregate null skipping."""
    return [fact.billing_amount for fact in facts if fact.billing_amount is not None]


def descending(value: Decimal | int | None) -> tuple[bool, Decimal | int]:
    """Sort key placing larger values first and nulls last."""
    if value is None:
        return (True, 0)
    return (False, -value)


def build_table(
    name: str,
    title: str,
    columns: tuple[str, ...],
    rows: Iterable[dict[str, object]],
) -> ReportTable:
    """Assemble a report table, keeping only declared columns."""
    return ReportTable(
        name=name,
        title=title,
        columns=columns,
        rows=tuple({column: row.get(column) for column in columns} for row in rows),
    )


def nulls_last(value: str | int | None) -> tuple[bool, str | int]:
    """Sort key for ascending order with nulls after every value."""
    if value is None:
        return (True, "")
    return (False, value)
