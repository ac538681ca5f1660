"""Orders: checkout creation, listings, admin fulfillment updates."""

from datetime import datetime

from beanie import UpdateResponse
from beanie.operators import Set

from app.core.audit import log_event
from app.core.exceptions import BadRequestError, NotFoundError
from app.core.ids import parse_object_id
from app.core.logging import get_logger
from app.models.order import FULFILLMENT_STATUSES, Order, OrderItem, Payment, UserSnapshot

log = get_logger(__name__)


async def create_order(
    user: UserSnapshot,
    items: list[OrderItem],
    total: float,
    address: str = "",
    payment_method: str = "crypto",
) -> Order:
    """Persist a pending/unpaid order. The caller's total is stored as given."""
    if not items:
        raise BadRequestError("Invalid payload", details={"items": "at least one item is required"})
    order = Order(
        user=user,
        items=items,
        total=total,
        address=address or "",
        status="pending",
        payment=Payment(method=payment_method),
    )
    await order.insert()
    log.info("order_created", order_id=str(order.id), user_id=user.id, total=total, items=len(items))
    await log_event(user.id, "order_created", "order", str(order.id), {"total": total})
    return order


async def list_orders() -> list[Order]:
    return await Order.find_all().sort("-created_at", "-_id").to_list()


async def list_orders_for_user(user_id: str) -> list[Order]:
    if not user_id:
        raise BadRequestError("User ID is required")
    return await Order.find({"user.id": user_id}).sort("-created_at", "-_id").to_list()


async def get_order(order_id: str) -> Order:
    oid = parse_object_id(order_id)
    order = await Order.get(oid) if oid else None
    if not order:
        raise NotFoundError("Order not found")
    return order


async def update_status(order_id: str, status: str, actor_id: str | None = None) -> Order:
    """Overwrite fulfillment status. Any status may follow any other."""
    if status not in FULFILLMENT_STATUSES:
        raise BadRequestError("Invalid status", details={"allowed": list(FULFILLMENT_STATUSES)})
    oid = parse_object_id(order_id)
    updated = None
    if oid:
        updated = await Order.find_one({"_id": oid}).update(
            Set({"status": status, "updated_at": datetime.utcnow()}),
            response_type=UpdateResponse.NEW_DOCUMENT,
        )
    if not updated:
        raise NotFoundError("Order not found")
    log.info("order_status_updated", order_id=order_id, status=status)
    await log_event(actor_id, "order_status_updated", "order", order_id, {"status": status})
    return updated
