from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

EMPTY_ITEMS = "EMPTY_ITEMS"
INVALID_QUANTITY = "INVALID_QUANTITY"
FUTURE_DATE = "FUTURE_DATE"
NEGATIVE_AMOUNT = "NEGATIVE_AMOUNT"
PRICE_BELOW_COST = "PRICE_BELOW_COST"
UNKNOWN_PRODUCT = "UNKNOWN_PRODUCT"
UNKNOWN_SERVICE = "UNKNOWN_SERVICE"
INVALID_ID = "INVALID_ID"
INVALID_FORMAT = "INVALID_FORMAT"


class OrderDeskError(Exception):
    """Base exception for all orderdesk errors."""

    pass


class OrderNotFoundError(OrderDeskError):
    """Raised when no order has the requested id."""

    def __init__(self, order_id: UUID):
        self.order_id = order_id
        super().__init__(f"Order with ID '{order_id}' does not exist.")


class InvalidStatusError(OrderDeskError):
    """Raised when a target status name is not in the status registry."""

    def __init__(self, status_name: str):
        self.status_name = status_name
        super().__init__(f"Status '{status_name}' does not exist.")


class TransitionNotAllowedError(OrderDeskError):
    """Raised when the configured transition policy rejects a status change."""

    def __init__(self, order_id: UUID, current: str, target: str):
        self.order_id = order_id
        self.current = current
        self.target = target
        super().__init__(
            f"Order '{order_id}' cannot move from status '{current}' to '{target}'."
        )


@dataclass(frozen=True)
class ValidationIssue:
    code: str
    field: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"code": self.code, "field": self.field, "message": self.message}


class ValidationError(OrderDeskError):
    """Raised with every violation found in a request, not just the first."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = list(issues)
        super().__init__("; ".join(f"{i.field}: {i.message}" for i in self.issues))

    @property
    def codes(self) -> set[str]:
        return {i.code for i in self.issues}


class ConfigurationError(OrderDeskError):
    """Raised when required seed data is missing from the database.

    This is a deployment defect (for example the default status was never
    seeded), not a problem with the caller's input.
    """

    def __init__(self, message: str):
        super().__init__(message)


class StoreUnavailableError(OrderDeskError):
    """Raised when the database fails while serving an operation."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Order store unavailable during '{operation}'.")
