from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal

from .aggregate import ZERO, as_utc
from .domain import MonthlyProfit


def line_profit(row: Mapping[str, object]) -> Decimal:
    """(unit price - unit cost) * quantity; a missing item or quantity counts as 0."""
    quantity = row.get("quantity")
    unit_cost = row.get("unit_cost")
    unit_price = row.get("unit_price")
    if quantity is None or unit_cost is None or unit_price is None:
        return ZERO
    return (Decimal(unit_price) - Decimal(unit_cost)) * int(quantity)


def monthly_profits(rows: Iterable[Mapping[str, object]]) -> list[MonthlyProfit]:
    """Group completed order lines by the UTC calendar month of their order.

    Each row carries ``created_date`` plus the line's ``quantity``,
    ``unit_cost`` and ``unit_price``. An order without items arrives as one
    row whose line fields are None: its month still appears with zero profit.
    Months with no rows at all are absent from the result.
    """
    totals: dict[tuple[int, int], Decimal] = {}
    for row in rows:
        created = as_utc(row["created_date"])
        key = (created.year, created.month)
        totals[key] = totals.get(key, ZERO) + line_profit(row)

    return [
        MonthlyProfit(year=year, month=month, total_profit=total)
        for (year, month), total in sorted(totals.items(), reverse=True)
    ]
