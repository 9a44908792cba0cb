from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from uuid import UUID

from ..aggregate import TransitionPolicy, allow_any, policy_from_locked, utcnow, validate_draft
from ..config import AppConfig
from ..db import Db
from ..domain import MonthlyProfit, OrderDetail, OrderDraft, OrderStatus, OrderSummary
from ..errors import ConfigurationError, ValidationError
from ..store import OrderStore

logger = logging.getLogger(__name__)


class OrderService:
    """Entry point used by the web API and the CLI.

    Requests are validated before anything reaches the store; the store
    then does the database work in a single unit per call.
    """

    def __init__(
        self,
        *,
        store: OrderStore,
        transition_policy: TransitionPolicy = allow_any,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.transition_policy = transition_policy
        self.clock = clock

    def list_orders(self) -> list[OrderSummary]:
        return self.store.list_orders()

    def get_order(self, order_id: UUID) -> OrderDetail | None:
        return self.store.get_order(order_id)

    def list_orders_by_status(self, status_name: str) -> list[OrderSummary]:
        return self.store.list_orders_by_status(status_name)

    def update_status(self, order_id: UUID, new_status: str) -> None:
        self.store.update_status(order_id, new_status, self.transition_policy)
        logger.info(
            "Order %s moved to status %s",
            order_id,
            new_status,
            extra={"operation": "update_status", "order_id": str(order_id), "status": new_status},
        )

    def add_order(self, draft: OrderDraft) -> UUID:
        try:
            validate_draft(draft, self.clock())
            order_id = self.store.insert_order(draft)
        except ValidationError as e:
            logger.info(
                "Rejected order draft: %s",
                e,
                extra={"operation": "add_order", "issues": [i.code for i in e.issues]},
            )
            raise
        except ConfigurationError as e:
            logger.critical("Cannot create orders: %s", e, extra={"operation": "add_order", "error": str(e)})
            raise

        logger.info(
            "Created order %s with %d item(s)",
            order_id,
            len(draft.items),
            extra={"operation": "add_order", "order_id": str(order_id)},
        )
        return order_id

    def monthly_profits(self) -> list[MonthlyProfit]:
        return self.store.monthly_profits()

    def import_reference(self, path: str | Path) -> dict[str, int]:
        counts = self.store.import_reference(path)
        logger.info("Imported reference data from %s: %s", path, counts, extra={"operation": "import_reference"})
        return counts

    def list_statuses(self) -> list[OrderStatus]:
        return self.store.list_statuses()


def build_order_service(cfg: AppConfig) -> OrderService:
    store = OrderStore(Db(cfg.db), orders_cfg=cfg.orders)
    return OrderService(store=store, transition_policy=policy_from_locked(cfg.orders.locked_statuses))
