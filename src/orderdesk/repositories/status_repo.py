from __future__ import annotations

from uuid import UUID

from psycopg import Connection

from ..domain import OrderStatus
from ..ids import from_bytes, to_bytes


def _status(row) -> OrderStatus:
    return OrderStatus(id=from_bytes(row[0]), name=str(row[1]))


class StatusRepository:
    """Status registry lookups.

    Filtering matches names case-insensitively; transition targets must match
    exactly.
    """

    def find_case_insensitive(self, conn: Connection, name: str) -> list[OrderStatus]:
        cur = conn.execute(
            "SELECT id, name FROM order_status WHERE lower(name) = lower(%s) ORDER BY name;",
            (name,),
        )
        return [_status(row) for row in cur.fetchall()]

    def find_exact(self, conn: Connection, name: str) -> OrderStatus | None:
        cur = conn.execute("SELECT id, name FROM order_status WHERE name = %s;", (name,))
        row = cur.fetchone()
        if not row:
            return None
        return _status(row)

    def list(self, conn: Connection) -> list[OrderStatus]:
        cur = conn.execute("SELECT id, name FROM order_status ORDER BY name;")
        return [_status(row) for row in cur.fetchall()]

    def upsert(self, conn: Connection, *, status_id: UUID, name: str) -> None:
        conn.execute(
            """
            INSERT INTO order_status(id, name)
            VALUES (%s, %s)
            ON CONFLICT (id) DO UPDATE SET name = EXCLUDED.name;
            """,
            (to_bytes(status_id), name),
        )
