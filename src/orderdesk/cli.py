from __future__ import annotations

import logging

from .domain import OrderDraft, OrderItemDraft, OrderSummary
from .errors import (
    ConfigurationError,
    InvalidStatusError,
    OrderNotFoundError,
    StoreUnavailableError,
    TransitionNotAllowedError,
    ValidationError,
)
from .ids import parse_uuid
from .importers import ReferenceImportError
from .services.order_service import OrderService

logger = logging.getLogger(__name__)


def _prompt(msg: str) -> str:
    return input(msg).strip()


def _print_summary(o: OrderSummary) -> None:
    print(
        f"{o.id} {o.created_date:%Y-%m-%d %H:%M} status={o.status_name} "
        f"items={o.item_count} cost={o.total_cost} price={o.total_price}"
    )


def _read_draft() -> OrderDraft:
    reseller_id = parse_uuid(_prompt("reseller_id: "), "reseller_id")
    customer_id = parse_uuid(_prompt("customer_id: "), "customer_id")

    items: list[OrderItemDraft] = []
    while True:
        add = _prompt("Add item? (y/n): ").lower()
        if add != "y":
            break
        product_id = parse_uuid(_prompt("  product_id: "), "product_id")
        service_id = parse_uuid(_prompt("  service_id: "), "service_id")
        qty = int(_prompt("  quantity: "))
        items.append(OrderItemDraft(product_id=product_id, service_id=service_id, quantity=qty))

    return OrderDraft(reseller_id=reseller_id, customer_id=customer_id, items=tuple(items))


def run_cli(service: OrderService) -> None:
    while True:
        print("\n=== OrderDesk CLI ===")
        print("1) List orders")
        print("2) Show order")
        print("3) List orders by status")
        print("4) Update order status")
        print("5) Create order")
        print("6) Monthly profits (completed orders)")
        print("7) Import reference data JSON")
        print("8) List statuses")
        print("0) Exit")

        choice = _prompt("> ")
        try:
            if choice == "0":
                return

            elif choice == "1":
                for o in service.list_orders():
                    _print_summary(o)

            elif choice == "2":
                order_id = parse_uuid(_prompt("order_id: "), "order_id")
                order = service.get_order(order_id)
                if order is None:
                    print(f"Order {order_id} not found.")
                    continue
                _print_summary(order)
                for it in order.items:
                    print(
                        f"  {it.service_name} / {it.product_name} qty={it.quantity} "
                        f"unit_cost={it.unit_cost} unit_price={it.unit_price} "
                        f"total_cost={it.total_cost} total_price={it.total_price}"
                    )

            elif choice == "3":
                status = _prompt("status: ")
                orders = service.list_orders_by_status(status)
                if not orders:
                    print(f"No orders found with status '{status}'.")
                for o in orders:
                    _print_summary(o)

            elif choice == "4":
                order_id = parse_uuid(_prompt("order_id: "), "order_id")
                status = _prompt("new status: ")
                service.update_status(order_id, status)
                print(f"Order {order_id} updated to status '{status}'.")

            elif choice == "5":
                draft = _read_draft()
                order_id = service.add_order(draft)
                print(f"Created order_id={order_id}")

            elif choice == "6":
                profits = service.monthly_profits()
                if not profits:
                    print("No completed orders yet.")
                for p in profits:
                    print(f"{p.year}-{p.month:02d} profit={p.total_profit}")

            elif choice == "7":
                path = _prompt("path to reference.json: ")
                counts = service.import_reference(path)
                print(
                    f"Imported statuses={counts['statuses']} services={counts['services']} "
                    f"products={counts['products']}"
                )

            elif choice == "8":
                for s in service.list_statuses():
                    print(f"{s.id} {s.name}")

            else:
                print("Unknown choice.")

        except ValidationError as e:
            print("[INPUT ERROR]")
            for issue in e.issues:
                print(f"  {issue.field}: {issue.message}")
        except OrderNotFoundError as e:
            print(f"[NOT FOUND] {e}")
        except (InvalidStatusError, TransitionNotAllowedError) as e:
            print(f"[STATUS ERROR] {e}")
        except ReferenceImportError as e:
            print(f"[IMPORT ERROR] {e}")
        except ConfigurationError as e:
            print(f"[CONFIG ERROR] {e}")
        except StoreUnavailableError as e:
            print(f"[DB ERROR] {e}")
        except ValueError as e:
            print(f"[VALUE ERROR] {e}")
        except Exception as e:
            logger.exception("Unexpected failure in CLI action %s", choice)
            print(f"[ERROR] {type(e).__name__}: {e}")
