from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID

from .domain import OrderDetail, OrderDraft, OrderItem, OrderSummary
from .errors import (
    EMPTY_ITEMS,
    FUTURE_DATE,
    INVALID_QUANTITY,
    NEGATIVE_AMOUNT,
    PRICE_BELOW_COST,
    TransitionNotAllowedError,
    ValidationError,
    ValidationIssue,
)
from .ids import from_bytes

ZERO = Decimal("0")

# order_item.quantity is a PostgreSQL INTEGER
MAX_QUANTITY = 2_147_483_647

TransitionPolicy = Callable[[str, str], bool]


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def draft_issues(draft: OrderDraft, now: Optional[datetime] = None) -> list[ValidationIssue]:
    now = as_utc(now) if now is not None else utcnow()
    issues: list[ValidationIssue] = []

    if not draft.items:
        issues.append(ValidationIssue(EMPTY_ITEMS, "items", "Order must contain at least one item."))

    for index, item in enumerate(draft.items):
        prefix = f"items[{index}]"
        if item.quantity is None or not 1 <= item.quantity <= MAX_QUANTITY:
            issues.append(
                ValidationIssue(
                    INVALID_QUANTITY,
                    f"{prefix}.quantity",
                    f"Quantity must be between 1 and {MAX_QUANTITY} (product {item.product_id}, got {item.quantity}).",
                )
            )
        for name in ("unit_cost", "unit_price"):
            amount = getattr(item, name)
            if amount is not None and amount < 0:
                issues.append(
                    ValidationIssue(NEGATIVE_AMOUNT, f"{prefix}.{name}", f"{name} cannot be negative.")
                )
        if (
            item.unit_cost is not None
            and item.unit_price is not None
            and item.unit_cost >= 0
            and item.unit_price < item.unit_cost
        ):
            issues.append(
                ValidationIssue(
                    PRICE_BELOW_COST,
                    f"{prefix}.unit_price",
                    f"unit_price {item.unit_price} is below unit_cost {item.unit_cost}.",
                )
            )

    if draft.created_date is not None and as_utc(draft.created_date) > now:
        issues.append(ValidationIssue(FUTURE_DATE, "created_date", "CreatedDate cannot be in the future."))

    return issues


def validate_draft(draft: OrderDraft, now: Optional[datetime] = None) -> None:
    issues = draft_issues(draft, now)
    if issues:
        raise ValidationError(issues)


def order_totals(items: Iterable[OrderItem]) -> tuple[Decimal, Decimal]:
    """Return (total cost, total price) summed over ``items``."""
    total_cost = ZERO
    total_price = ZERO
    for item in items:
        total_cost += item.total_cost
        total_price += item.total_price
    return total_cost, total_price


def build_item(row: Mapping[str, object]) -> OrderItem:
    quantity = row["quantity"]
    return OrderItem(
        id=from_bytes(row["id"]),
        order_id=from_bytes(row["order_id"]),
        product_id=from_bytes(row["product_id"]),
        product_name=str(row["product_name"]),
        service_id=from_bytes(row["service_id"]),
        service_name=str(row["service_name"]),
        quantity=int(quantity) if quantity is not None else 0,
        unit_cost=Decimal(row["unit_cost"]),
        unit_price=Decimal(row["unit_price"]),
    )


def _header_fields(header: Mapping[str, object], items: tuple[OrderItem, ...]) -> dict[str, object]:
    total_cost, total_price = order_totals(items)
    return {
        "id": from_bytes(header["id"]),
        "reseller_id": from_bytes(header["reseller_id"]),
        "customer_id": from_bytes(header["customer_id"]),
        "status_id": from_bytes(header["status_id"]),
        "status_name": str(header["status_name"]),
        "created_date": header["created_date"],
        "item_count": len(items),
        "total_cost": total_cost,
        "total_price": total_price,
    }


def build_summary(header: Mapping[str, object], items: Iterable[OrderItem]) -> OrderSummary:
    return OrderSummary(**_header_fields(header, tuple(items)))


def build_detail(header: Mapping[str, object], items: Iterable[OrderItem]) -> OrderDetail:
    items = tuple(items)
    return OrderDetail(**_header_fields(header, items), items=items)


def build_summaries(
    headers: Iterable[Mapping[str, object]], item_rows: Iterable[Mapping[str, object]]
) -> list[OrderSummary]:
    """Join header rows with their item rows, keeping the header order."""
    by_order: dict[UUID, list[OrderItem]] = {}
    for row in item_rows:
        item = build_item(row)
        by_order.setdefault(item.order_id, []).append(item)

    return [
        build_summary(header, by_order.get(from_bytes(header["id"]), ()))
        for header in headers
    ]


def allow_any(current: str, target: str) -> bool:
    return True


class LockedStatusesPolicy:
    """Forbid leaving any of the ``locked`` statuses, e.g. ``Completed``."""

    def __init__(self, locked: Iterable[str]):
        self.locked = frozenset(locked)

    def __call__(self, current: str, target: str) -> bool:
        if current == target:
            return True
        return current not in self.locked

    def __repr__(self) -> str:
        return f"LockedStatusesPolicy({sorted(self.locked)!r})"


def policy_from_locked(locked: Iterable[str]) -> TransitionPolicy:
    locked = tuple(locked)
    if not locked:
        return allow_any
    return LockedStatusesPolicy(locked)


def check_transition(policy: TransitionPolicy, order_id: UUID, current: str, target: str) -> None:
    if not policy(current, target):
        raise TransitionNotAllowedError(order_id, current, target)
