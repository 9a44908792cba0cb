"""Shared fixtures for orderdesk tests."""

import pytest

from orderdesk.services.order_service import OrderService
from orderdesk.web import create_app

from fakes import FIXED_NOW, InMemoryOrderStore


@pytest.fixture
def store():
    """Store seeded like a fresh deployment: a Created status and one mailbox product."""
    s = InMemoryOrderStore()
    s.created_id = s.add_status("Created")
    s.email_service = s.add_service("Email")
    s.mailbox = s.add_product(s.email_service, "100GB Mailbox", "0.8", "0.9")
    return s


@pytest.fixture
def service(store):
    return OrderService(store=store, clock=lambda: FIXED_NOW)


@pytest.fixture
def client(service):
    app = create_app(service)
    app.config["TESTING"] = True
    return app.test_client()
