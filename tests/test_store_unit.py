from contextlib import contextmanager
from uuid import uuid4

import psycopg
import pytest

from orderdesk.aggregate import LockedStatusesPolicy, allow_any
from orderdesk.config import AppConfig, DbConfig, OrdersConfig, WebConfig
from orderdesk.db import DbError
from orderdesk.errors import StoreUnavailableError
from orderdesk.services.order_service import build_order_service
from orderdesk.store import OrderStore


class BrokenDb:
    def __init__(self, exc):
        self.exc = exc
        self.opened = []

    @contextmanager
    def session(self):
        self.opened.append("session")
        raise self.exc
        yield

    @contextmanager
    def transaction(self):
        self.opened.append("transaction")
        raise self.exc
        yield


@pytest.mark.parametrize("exc", [DbError("down"), psycopg.OperationalError("server closed the connection")])
def test_database_failures_surface_as_store_unavailable(exc, caplog):
    store = OrderStore(BrokenDb(exc))

    with pytest.raises(StoreUnavailableError) as info:
        store.list_orders()

    assert info.value.operation == "list_orders"
    assert info.value.__cause__ is exc
    assert any(r.levelname == "ERROR" for r in caplog.records)


def test_reads_use_sessions_and_writes_use_transactions():
    db = BrokenDb(DbError("down"))
    store = OrderStore(db)
    with pytest.raises(StoreUnavailableError):
        store.get_order(uuid4())
    with pytest.raises(StoreUnavailableError, match="update_status"):
        store.update_status(uuid4(), "Completed")
    assert db.opened == ["session", "transaction"]


def _cfg(locked=()):
    return AppConfig(
        name="t",
        log_level="INFO",
        log_format="text",
        db=DbConfig(host="localhost", port=5432, name="orders", user="u", password="p"),
        orders=OrdersConfig(completed_status="Done", locked_statuses=tuple(locked)),
        web=WebConfig(),
    )


def test_build_order_service_defaults_to_open_transitions():
    service = build_order_service(_cfg())
    assert service.transition_policy is allow_any
    assert service.store.orders_cfg.completed_status == "Done"


def test_build_order_service_with_locked_statuses():
    service = build_order_service(_cfg(locked=["Completed"]))
    assert isinstance(service.transition_policy, LockedStatusesPolicy)
    assert not service.transition_policy("Completed", "Created")
