from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from psycopg import Connection

from ..ids import to_bytes

_HEADER_SELECT = """
    SELECT o.id, o.reseller_id, o.customer_id, o.status_id, s.name AS status_name, o.created_date
    FROM "order" o
    JOIN order_status s ON s.id = o.status_id
"""


def _rows(cur) -> list[dict]:
    cols = [d.name for d in cur.description]
    return [dict(zip(cols, row)) for row in cur.fetchall()]


class OrderRepository:
    def insert_order(
        self,
        conn: Connection,
        *,
        order_id: UUID,
        reseller_id: UUID,
        customer_id: UUID,
        status_id: UUID,
        created_date: datetime,
    ) -> None:
        conn.execute(
            """
            INSERT INTO "order"(id, reseller_id, customer_id, status_id, created_date)
            VALUES (%s, %s, %s, %s, %s);
            """,
            (to_bytes(order_id), to_bytes(reseller_id), to_bytes(customer_id), to_bytes(status_id), created_date),
        )

    def insert_item(
        self,
        conn: Connection,
        *,
        item_id: UUID,
        order_id: UUID,
        product_id: UUID,
        service_id: UUID,
        quantity: int,
        position: int,
    ) -> None:
        conn.execute(
            """
            INSERT INTO order_item(id, order_id, product_id, service_id, quantity, position)
            VALUES (%s, %s, %s, %s, %s, %s);
            """,
            (to_bytes(item_id), to_bytes(order_id), to_bytes(product_id), to_bytes(service_id), quantity, position),
        )

    def get_header(self, conn: Connection, order_id: UUID, *, for_update: bool = False) -> dict | None:
        sql = _HEADER_SELECT + " WHERE o.id = %s"
        if for_update:
            sql += " FOR UPDATE OF o"
        cur = conn.execute(sql + ";", (to_bytes(order_id),))
        rows = _rows(cur)
        return rows[0] if rows else None

    def list_headers(self, conn: Connection, status_ids: Sequence[UUID] | None = None) -> list[dict]:
        if status_ids is None:
            cur = conn.execute(_HEADER_SELECT + " ORDER BY o.created_date DESC;")
        else:
            cur = conn.execute(
                _HEADER_SELECT + " WHERE o.status_id = ANY(%s) ORDER BY o.created_date DESC;",
                ([to_bytes(s) for s in status_ids],),
            )
        return _rows(cur)

    def list_item_rows(self, conn: Connection, order_ids: Sequence[UUID]) -> list[dict]:
        # unit values come from the live catalog, never from the item row
        if not order_ids:
            return []
        cur = conn.execute(
            """
            SELECT i.id, i.order_id, i.product_id, p.name AS product_name,
                   i.service_id, sv.name AS service_name,
                   i.quantity, p.unit_cost, p.unit_price
            FROM order_item i
            JOIN order_product p ON p.id = i.product_id
            JOIN order_service sv ON sv.id = i.service_id
            WHERE i.order_id = ANY(%s)
            ORDER BY i.order_id, i.position;
            """,
            ([to_bytes(o) for o in order_ids],),
        )
        return _rows(cur)

    def set_status(self, conn: Connection, *, order_id: UUID, status_id: UUID) -> int:
        cur = conn.execute(
            'UPDATE "order" SET status_id = %s WHERE id = %s;',
            (to_bytes(status_id), to_bytes(order_id)),
        )
        return cur.rowcount

    def list_profit_lines(self, conn: Connection, status_id: UUID) -> list[dict]:
        cur = conn.execute(
            """
            SELECT o.id AS order_id, o.created_date, i.quantity, p.unit_cost, p.unit_price
            FROM "order" o
            LEFT JOIN order_item i ON i.order_id = o.id
            LEFT JOIN order_product p ON p.id = i.product_id
            WHERE o.status_id = %s;
            """,
            (to_bytes(status_id),),
        )
        return _rows(cur)
