from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from uuid import UUID

import psycopg
from psycopg import Connection

from .aggregate import (
    TransitionPolicy,
    allow_any,
    build_detail,
    build_item,
    build_summaries,
    check_transition,
    utcnow,
)
from .config import OrdersConfig
from .db import Db, DbError
from .domain import MonthlyProfit, OrderDetail, OrderDraft, OrderStatus, OrderSummary
from .errors import (
    UNKNOWN_PRODUCT,
    UNKNOWN_SERVICE,
    ConfigurationError,
    InvalidStatusError,
    OrderNotFoundError,
    StoreUnavailableError,
    ValidationError,
    ValidationIssue,
)
from .ids import from_bytes, new_id
from .importers import import_reference_json
from .profits import monthly_profits
from .repositories.catalog_repo import CatalogRepository
from .repositories.order_repo import OrderRepository
from .repositories.status_repo import StatusRepository

logger = logging.getLogger(__name__)


class OrderStore:
    def __init__(
        self,
        db: Db,
        *,
        order_repo: OrderRepository | None = None,
        status_repo: StatusRepository | None = None,
        catalog_repo: CatalogRepository | None = None,
        orders_cfg: OrdersConfig | None = None,
    ) -> None:
        self.db = db
        self.order_repo = order_repo or OrderRepository()
        self.status_repo = status_repo or StatusRepository()
        self.catalog_repo = catalog_repo or CatalogRepository()
        self.orders_cfg = orders_cfg or OrdersConfig()

    @contextmanager
    def _unit(self, operation: str, *, write: bool = False) -> Iterator[Connection]:
        opener = self.db.transaction if write else self.db.session
        try:
            with opener() as conn:
                yield conn
        except (psycopg.Error, DbError) as e:
            logger.exception("Database failure", extra={"operation": operation})
            raise StoreUnavailableError(operation) from e

    def _summaries(self, conn: Connection, headers: list[dict]) -> list[OrderSummary]:
        item_rows = self.order_repo.list_item_rows(conn, [from_bytes(h["id"]) for h in headers])
        return build_summaries(headers, item_rows)

    def list_orders(self) -> list[OrderSummary]:
        with self._unit("list_orders") as conn:
            headers = self.order_repo.list_headers(conn)
            return self._summaries(conn, headers)

    def list_orders_by_status(self, status_name: str) -> list[OrderSummary]:
        with self._unit("list_orders_by_status") as conn:
            statuses = self.status_repo.find_case_insensitive(conn, status_name)
            if not statuses:
                return []
            headers = self.order_repo.list_headers(conn, [s.id for s in statuses])
            return self._summaries(conn, headers)

    def get_order(self, order_id: UUID) -> OrderDetail | None:
        with self._unit("get_order") as conn:
            header = self.order_repo.get_header(conn, order_id)
            if header is None:
                return None
            rows = self.order_repo.list_item_rows(conn, [order_id])
            return build_detail(header, (build_item(r) for r in rows))

    def monthly_profits(self) -> list[MonthlyProfit]:
        completed_name = self.orders_cfg.completed_status
        with self._unit("monthly_profits") as conn:
            completed = self.status_repo.find_exact(conn, completed_name)
            if completed is None:
                return []
            lines = self.order_repo.list_profit_lines(conn, completed.id)
        return monthly_profits(lines)

    def update_status(
        self, order_id: UUID, new_status_name: str, policy: TransitionPolicy = allow_any
    ) -> None:
        with self._unit("update_status", write=True) as conn:
            header = self.order_repo.get_header(conn, order_id, for_update=True)
            if header is None:
                raise OrderNotFoundError(order_id)
            status = self.status_repo.find_exact(conn, new_status_name)
            if status is None:
                raise InvalidStatusError(new_status_name)
            check_transition(policy, order_id, str(header["status_name"]), status.name)
            self.order_repo.set_status(conn, order_id=order_id, status_id=status.id)

    def insert_order(self, draft: OrderDraft) -> UUID:
        created_name = self.orders_cfg.created_status
        with self._unit("insert_order", write=True) as conn:
            created = self.status_repo.find_exact(conn, created_name)
            if created is None:
                raise ConfigurationError(f"Default status '{created_name}' not found.")

            self._check_catalog(conn, draft)

            order_id = new_id()
            self.order_repo.insert_order(
                conn,
                order_id=order_id,
                reseller_id=draft.reseller_id,
                customer_id=draft.customer_id,
                status_id=created.id,
                created_date=utcnow(),
            )
            for position, item in enumerate(draft.items):
                self.order_repo.insert_item(
                    conn,
                    item_id=new_id(),
                    order_id=order_id,
                    product_id=item.product_id,
                    service_id=item.service_id,
                    quantity=item.quantity,
                    position=position,
                )
        return order_id

    def _check_catalog(self, conn: Connection, draft: OrderDraft) -> None:
        issues: list[ValidationIssue] = []
        for index, item in enumerate(draft.items):
            service = self.catalog_repo.get_service(conn, item.service_id)
            if service is None:
                issues.append(
                    ValidationIssue(UNKNOWN_SERVICE, f"items[{index}].service_id", f"Unknown service {item.service_id}.")
                )
            product = self.catalog_repo.get_product(conn, item.product_id)
            if product is None:
                issues.append(
                    ValidationIssue(UNKNOWN_PRODUCT, f"items[{index}].product_id", f"Unknown product {item.product_id}.")
                )
            elif product.service_id != item.service_id:
                issues.append(
                    ValidationIssue(
                        UNKNOWN_PRODUCT,
                        f"items[{index}].product_id",
                        f"Product {item.product_id} does not belong to service {item.service_id}.",
                    )
                )
        if issues:
            raise ValidationError(issues)

    def import_reference(self, path: str | Path) -> dict[str, int]:
        with self._unit("import_reference", write=True) as conn:
            return import_reference_json(conn, path, self.status_repo, self.catalog_repo)

    def list_statuses(self) -> list[OrderStatus]:
        with self._unit("list_statuses") as conn:
            return self.status_repo.list(conn)
