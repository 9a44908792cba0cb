from __future__ import annotations

import json
from decimal import Decimal, InvalidOperation
from pathlib import Path

from psycopg import Connection

from .errors import NEGATIVE_AMOUNT, PRICE_BELOW_COST, UNKNOWN_SERVICE, ValidationError, ValidationIssue
from .ids import parse_uuid
from .repositories.catalog_repo import CatalogRepository
from .repositories.status_repo import StatusRepository


class ReferenceImportError(Exception):
    pass


def _records(data: dict, key: str) -> list[dict]:
    records = data.get(key, [])
    if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
        raise ReferenceImportError(f"'{key}' must be a list of objects")
    return records


def _name(obj: dict, where: str) -> str:
    name = str(obj.get("name", "")).strip()
    if not name:
        raise ReferenceImportError(f"{where}: name is required")
    return name


def _amount(obj: dict, key: str, where: str) -> Decimal:
    if key not in obj:
        raise ReferenceImportError(f"{where}: {key} is required")
    try:
        amount = Decimal(str(obj[key]))
    except InvalidOperation:
        amount = None
    if amount is None or not amount.is_finite():
        raise ReferenceImportError(f"{where}: {key} is not a decimal amount")
    return amount


def product_issues(index: int, unit_cost: Decimal, unit_price: Decimal) -> list[ValidationIssue]:
    field = f"products[{index}]"
    issues = []
    if unit_cost < 0:
        issues.append(ValidationIssue(NEGATIVE_AMOUNT, f"{field}.unitCost", "unitCost cannot be negative."))
    if unit_price < 0:
        issues.append(ValidationIssue(NEGATIVE_AMOUNT, f"{field}.unitPrice", "unitPrice cannot be negative."))
    if unit_price < unit_cost:
        issues.append(
            ValidationIssue(PRICE_BELOW_COST, f"{field}.unitPrice", "unitPrice cannot be lower than unitCost.")
        )
    return issues


def import_reference_json(
    conn: Connection,
    path: str | Path,
    status_repo: StatusRepository,
    catalog_repo: CatalogRepository,
) -> dict[str, int]:
    """Upsert statuses, services and products from a JSON file.

    Every record is checked before the first write, so a bad product leaves
    the reference tables untouched.
    """
    p = Path(path)
    if not p.exists():
        raise ReferenceImportError(f"File not found: {p}")

    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except Exception as e:
        raise ReferenceImportError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ReferenceImportError("JSON must be an object with statuses/services/products lists")

    statuses = [
        (parse_uuid(obj.get("id"), f"statuses[{i}].id"), _name(obj, f"statuses[{i}]"))
        for i, obj in enumerate(_records(data, "statuses"))
    ]
    services = [
        (parse_uuid(obj.get("id"), f"services[{i}].id"), _name(obj, f"services[{i}]"))
        for i, obj in enumerate(_records(data, "services"))
    ]
    products = []
    issues: list[ValidationIssue] = []
    for i, obj in enumerate(_records(data, "products")):
        where = f"products[{i}]"
        unit_cost = _amount(obj, "unitCost", where)
        unit_price = _amount(obj, "unitPrice", where)
        issues.extend(product_issues(i, unit_cost, unit_price))
        products.append(
            (
                parse_uuid(obj.get("id"), f"{where}.id"),
                parse_uuid(obj.get("serviceId"), f"{where}.serviceId"),
                _name(obj, where),
                unit_cost,
                unit_price,
            )
        )
    known_services = {service_id for service_id, _ in services}
    for i, (_, service_id, _, _, _) in enumerate(products):
        if service_id not in known_services and catalog_repo.get_service(conn, service_id) is None:
            issues.append(
                ValidationIssue(UNKNOWN_SERVICE, f"products[{i}].serviceId", f"Unknown service {service_id}.")
            )
    if issues:
        raise ValidationError(issues)

    for status_id, name in statuses:
        status_repo.upsert(conn, status_id=status_id, name=name)
    for service_id, name in services:
        catalog_repo.upsert_service(conn, service_id=service_id, name=name)
    for product_id, service_id, name, unit_cost, unit_price in products:
        catalog_repo.upsert_product(
            conn,
            product_id=product_id,
            service_id=service_id,
            name=name,
            unit_cost=unit_cost,
            unit_price=unit_price,
        )

    return {"statuses": len(statuses), "services": len(services), "products": len(products)}
