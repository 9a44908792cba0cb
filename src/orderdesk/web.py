from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation

from flask import Flask, current_app, jsonify, request, url_for

from .domain import OrderDraft, OrderItemDraft
from .errors import (
    INVALID_FORMAT,
    INVALID_QUANTITY,
    ConfigurationError,
    InvalidStatusError,
    OrderNotFoundError,
    StoreUnavailableError,
    TransitionNotAllowedError,
    ValidationError,
    ValidationIssue,
)
from .ids import parse_uuid
from .services.order_service import OrderService


SERVICE_KEY = "orderdesk.service"


def _service() -> OrderService:
    return current_app.extensions[SERVICE_KEY]


def _collect(issues: list[ValidationIssue], parse, *args):
    try:
        return parse(*args)
    except ValidationError as e:
        issues.extend(e.issues)
        return None


def _parse_quantity(value: object, field: str):
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError([ValidationIssue(INVALID_QUANTITY, field, f"Quantity must be an integer, got {value!r}.")])
    return value


def _parse_amount(value: object, field: str):
    if value is None:
        return None
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        amount = None
    if amount is None or not amount.is_finite():
        raise ValidationError([ValidationIssue(INVALID_FORMAT, field, f"'{value}' is not a decimal amount.")])
    return amount


def _parse_date(value: object, field: str):
    if value is None:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise ValidationError([ValidationIssue(INVALID_FORMAT, field, f"'{value}' is not an ISO 8601 timestamp.")]) from None


def draft_from_json(payload: object) -> OrderDraft:
    """Build an OrderDraft from a request body, reporting every malformed field."""
    if not isinstance(payload, dict):
        raise ValidationError([ValidationIssue(INVALID_FORMAT, "body", "Request body must be a JSON object.")])

    issues: list[ValidationIssue] = []
    reseller_id = _collect(issues, parse_uuid, payload.get("resellerId"), "resellerId")
    customer_id = _collect(issues, parse_uuid, payload.get("customerId"), "customerId")
    created_date = _collect(issues, _parse_date, payload.get("createdDate"), "createdDate")

    raw_items = payload.get("items") or []
    if not isinstance(raw_items, list):
        issues.append(ValidationIssue(INVALID_FORMAT, "items", "items must be a list."))
        raw_items = []

    items: list[OrderItemDraft] = []
    for index, raw in enumerate(raw_items):
        prefix = f"items[{index}]"
        if not isinstance(raw, dict):
            issues.append(ValidationIssue(INVALID_FORMAT, prefix, "Each item must be a JSON object."))
            continue
        product_id = _collect(issues, parse_uuid, raw.get("productId"), f"{prefix}.productId")
        service_id = _collect(issues, parse_uuid, raw.get("serviceId"), f"{prefix}.serviceId")
        quantity = _collect(issues, _parse_quantity, raw.get("quantity"), f"{prefix}.quantity")
        unit_cost = _collect(issues, _parse_amount, raw.get("unitCost"), f"{prefix}.unitCost")
        unit_price = _collect(issues, _parse_amount, raw.get("unitPrice"), f"{prefix}.unitPrice")
        items.append(
            OrderItemDraft(
                product_id=product_id,
                service_id=service_id,
                quantity=quantity,
                unit_cost=unit_cost,
                unit_price=unit_price,
            )
        )

    if issues:
        raise ValidationError(issues)

    return OrderDraft(
        reseller_id=reseller_id,
        customer_id=customer_id,
        created_date=created_date,
        items=tuple(items),
    )


def _status_from_body() -> str:
    body = request.get_json(silent=True)
    if isinstance(body, dict):
        body = body.get("status")
    if not isinstance(body, str) or not body:
        raise ValidationError([ValidationIssue(INVALID_FORMAT, "status", "A status name is required.")])
    return body


def _error(status: int, message: str, **extra):
    body = {"error": message}
    body.update(extra)
    return jsonify(body), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(OrderNotFoundError)
    def _not_found(e):
        return _error(404, str(e))

    @app.errorhandler(InvalidStatusError)
    def _invalid_status(e):
        return _error(400, str(e))

    @app.errorhandler(ValidationError)
    def _invalid(e):
        return _error(400, "Validation failed.", issues=[i.as_dict() for i in e.issues])

    @app.errorhandler(TransitionNotAllowedError)
    def _transition(e):
        return _error(409, str(e))

    @app.errorhandler(ConfigurationError)
    def _configuration(e):
        return _error(500, "Service is misconfigured; the order was not created.")

    @app.errorhandler(StoreUnavailableError)
    def _unavailable(e):
        return _error(503, "Order store is unavailable, try again later.")


def create_app(service: OrderService) -> Flask:
    app = Flask(__name__)
    app.extensions[SERVICE_KEY] = service
    register_error_handlers(app)

    @app.get("/orders")
    def list_orders():
        return jsonify([o.as_dict() for o in _service().list_orders()])

    @app.get("/orders/<order_id>")
    def get_order(order_id):
        order = _service().get_order(parse_uuid(order_id, "orderId"))
        if order is None:
            return _error(404, f"Order with ID '{order_id}' does not exist.")
        return jsonify(order.as_dict())

    @app.get("/orders/status/<status>")
    def list_orders_by_status(status):
        return jsonify([o.as_dict() for o in _service().list_orders_by_status(status)])

    @app.patch("/orders/<order_id>/status")
    def update_order_status(order_id):
        oid = parse_uuid(order_id, "orderId")
        new_status = _status_from_body()
        _service().update_status(oid, new_status)
        return jsonify({"message": f"Order '{oid}' updated to status '{new_status}'."})

    @app.post("/orders")
    def add_order():
        draft = draft_from_json(request.get_json(silent=True))
        order_id = _service().add_order(draft)
        response = jsonify({"orderId": str(order_id)})
        response.status_code = 201
        response.headers["Location"] = url_for("get_order", order_id=str(order_id))
        return response

    @app.get("/orders/profits/monthly")
    def monthly_profits():
        return jsonify([p.as_dict() for p in _service().monthly_profits()])

    return app
