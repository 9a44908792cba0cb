from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from psycopg import Connection

from ..domain import Product, Service
from ..ids import from_bytes, to_bytes


def _product(row) -> Product:
    return Product(
        id=from_bytes(row[0]),
        service_id=from_bytes(row[1]),
        name=str(row[2]),
        unit_cost=Decimal(row[3]),
        unit_price=Decimal(row[4]),
    )


class CatalogRepository:
    def get_service(self, conn: Connection, service_id: UUID) -> Service | None:
        cur = conn.execute("SELECT id, name FROM order_service WHERE id = %s;", (to_bytes(service_id),))
        row = cur.fetchone()
        if not row:
            return None
        return Service(id=from_bytes(row[0]), name=str(row[1]))

    def get_product(self, conn: Connection, product_id: UUID) -> Product | None:
        cur = conn.execute(
            """
            SELECT id, service_id, name, unit_cost, unit_price
            FROM order_product WHERE id = %s;
            """,
            (to_bytes(product_id),),
        )
        row = cur.fetchone()
        if not row:
            return None
        return _product(row)

    def upsert_service(self, conn: Connection, *, service_id: UUID, name: str) -> None:
        conn.execute(
            """
            INSERT INTO order_service(id, name)
            VALUES (%s, %s)
            ON CONFLICT (id) DO UPDATE SET name = EXCLUDED.name;
            """,
            (to_bytes(service_id), name),
        )

    def upsert_product(
        self,
        conn: Connection,
        *,
        product_id: UUID,
        service_id: UUID,
        name: str,
        unit_cost: Decimal,
        unit_price: Decimal,
    ) -> None:
        conn.execute(
            """
            INSERT INTO order_product(id, service_id, name, unit_cost, unit_price)
            VALUES (%s, %s, %s, %s, %s)
            ON CONFLICT (id) DO UPDATE SET
              service_id = EXCLUDED.service_id,
              name = EXCLUDED.name,
              unit_cost = EXCLUDED.unit_cost,
              unit_price = EXCLUDED.unit_price;
            """,
            (to_bytes(product_id), to_bytes(service_id), name, unit_cost, unit_price),
        )
