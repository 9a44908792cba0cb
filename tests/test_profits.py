from datetime import datetime, timedelta, timezone
from decimal import Decimal

from orderdesk.profits import line_profit, monthly_profits


def _line(year, month, day, quantity, cost="0.8", price="0.9"):
    return {
        "created_date": datetime(year, month, day, 10, 0, tzinfo=timezone.utc),
        "quantity": quantity,
        "unit_cost": Decimal(cost),
        "unit_price": Decimal(price),
    }


def test_groups_by_month_newest_first():
    profits = monthly_profits(
        [
            _line(2023, 1, 15, 2),
            _line(2023, 1, 20, 1),
            _line(2023, 2, 5, 3),
        ]
    )

    assert [(p.year, p.month) for p in profits] == [(2023, 2), (2023, 1)]
    assert profits[0].total_profit == Decimal("0.3")
    assert profits[1].total_profit == Decimal("0.3")


def test_months_without_rows_are_absent():
    profits = monthly_profits([_line(2023, 1, 15, 2), _line(2023, 6, 1, 1)])
    assert (2023, 4) not in {(p.year, p.month) for p in profits}
    assert len(profits) == 2


def test_sorted_by_year_then_month_descending():
    profits = monthly_profits(
        [_line(2022, 12, 1, 1), _line(2024, 1, 1, 1), _line(2023, 11, 1, 1), _line(2024, 3, 1, 1)]
    )
    assert [(p.year, p.month) for p in profits] == [(2024, 3), (2024, 1), (2023, 11), (2022, 12)]


def test_missing_quantity_counts_as_zero():
    assert line_profit(_line(2023, 1, 1, None)) == 0
    [p] = monthly_profits([_line(2023, 1, 1, None), _line(2023, 1, 2, 4)])
    assert p.total_profit == Decimal("0.4")


def test_order_without_items_keeps_its_month_at_zero():
    row = {"created_date": datetime(2023, 3, 3, tzinfo=timezone.utc), "quantity": None, "unit_cost": None, "unit_price": None}
    [p] = monthly_profits([row])
    assert (p.year, p.month, p.total_profit) == (2023, 3, Decimal("0"))


def test_month_is_taken_in_utc():
    local = timezone(timedelta(hours=3))
    row = _line(2023, 1, 1, 1)
    row["created_date"] = datetime(2023, 2, 1, 1, 0, tzinfo=local)  # 2023-01-31 22:00 UTC
    [p] = monthly_profits([row])
    assert (p.year, p.month) == (2023, 1)


def test_empty_input():
    assert monthly_profits([]) == []
