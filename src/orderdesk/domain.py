from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID


def _money(value: Decimal) -> str:
    return str(value)


@dataclass(frozen=True)
class OrderStatus:
    id: UUID
    name: str


@dataclass(frozen=True)
class Service:
    id: UUID
    name: str


@dataclass(frozen=True)
class Product:
    id: UUID
    service_id: UUID
    name: str
    unit_cost: Decimal
    unit_price: Decimal


@dataclass(frozen=True)
class OrderItem:
    id: UUID
    order_id: UUID
    product_id: UUID
    product_name: str
    service_id: UUID
    service_name: str
    quantity: int
    unit_cost: Decimal
    unit_price: Decimal

    @property
    def total_cost(self) -> Decimal:
        return self.unit_cost * self.quantity

    @property
    def total_price(self) -> Decimal:
        return self.unit_price * self.quantity

    def as_dict(self) -> dict[str, object]:
        return {
            "id": str(self.id),
            "orderId": str(self.order_id),
            "productId": str(self.product_id),
            "productName": self.product_name,
            "serviceId": str(self.service_id),
            "serviceName": self.service_name,
            "quantity": self.quantity,
            "unitCost": _money(self.unit_cost),
            "unitPrice": _money(self.unit_price),
            "totalCost": _money(self.total_cost),
            "totalPrice": _money(self.total_price),
        }


@dataclass(frozen=True)
class OrderSummary:
    id: UUID
    reseller_id: UUID
    customer_id: UUID
    status_id: UUID
    status_name: str
    created_date: datetime
    item_count: int
    total_cost: Decimal
    total_price: Decimal

    def as_dict(self) -> dict[str, object]:
        return {
            "id": str(self.id),
            "resellerId": str(self.reseller_id),
            "customerId": str(self.customer_id),
            "statusId": str(self.status_id),
            "statusName": self.status_name,
            "createdDate": self.created_date.isoformat(),
            "itemCount": self.item_count,
            "totalCost": _money(self.total_cost),
            "totalPrice": _money(self.total_price),
        }


@dataclass(frozen=True)
class OrderDetail(OrderSummary):
    items: tuple[OrderItem, ...] = ()

    def as_dict(self) -> dict[str, object]:
        data = OrderSummary.as_dict(self)
        data["items"] = [item.as_dict() for item in self.items]
        return data


@dataclass(frozen=True)
class MonthlyProfit:
    year: int
    month: int
    total_profit: Decimal

    def as_dict(self) -> dict[str, object]:
        return {"year": self.year, "month": self.month, "totalProfit": _money(self.total_profit)}


@dataclass(frozen=True)
class OrderItemDraft:
    """A requested line: which product of which service, and how many.

    Unit cost and price are optional; when given they are only checked for
    sign, the stored order always prices from the live catalog.
    """

    product_id: UUID
    service_id: UUID
    quantity: Optional[int]
    unit_cost: Optional[Decimal] = None
    unit_price: Optional[Decimal] = None


@dataclass(frozen=True)
class OrderDraft:
    reseller_id: UUID
    customer_id: UUID
    created_date: Optional[datetime] = None
    items: tuple[OrderItemDraft, ...] = field(default_factory=tuple)
