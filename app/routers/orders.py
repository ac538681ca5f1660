from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.exceptions import ForbiddenError
from app.deps import get_current_user, require_admin
from app.models.order import Order, OrderItem, PaymentMethod, UserSnapshot
from app.models.user import User
from app.services import orders as orders_service

router = APIRouter()


class OrderItemIn(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    card_id: str | None = None
    name: str
    price: float
    quantity: int = Field(ge=1)


class CreateOrderRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user: UserSnapshot
    items: list[OrderItemIn]
    total: float
    address: str = ""
    payment_method: PaymentMethod = "crypto"


class UpdateStatusRequest(BaseModel):
    status: str = ""


def order_out(order: Order) -> dict:
    p = order.payment
    return {
        "id": str(order.id),
        "user": order.user.model_dump(),
        "items": [
            {"cardId": i.card_id, "name": i.name, "price": i.price, "quantity": i.quantity}
            for i in order.items
        ],
        "total": order.total,
        "address": order.address,
        "status": order.status,
        "payment": {
            "method": p.method,
            "status": p.status,
            "currency": p.currency,
            "invoiceId": p.invoice_id,
            "externalOrderId": p.external_order_id,
            "txHash": p.tx_hash,
            "raw": p.raw,
        },
        "createdAt": order.created_at,
        "updatedAt": order.updated_at,
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(body: CreateOrderRequest):
    """Checkout: store the order as pending/unpaid with the submitted total."""
    order = await orders_service.create_order(
        user=body.user,
        items=[OrderItem(**i.model_dump()) for i in body.items],
        total=body.total,
        address=body.address,
        payment_method=body.payment_method,
    )
    return order_out(order)


@router.get("")
async def list_orders(_: User = Depends(require_admin)):
    return [order_out(o) for o in await orders_service.list_orders()]


@router.get("/user/{user_id}")
async def list_user_orders(user_id: str, user: User = Depends(get_current_user)):
    """Order history for one buyer; admins may read anyone's."""
    if str(user.id) != user_id and user.role != "admin":
        raise ForbiddenError("Cannot read another user's orders")
    return [order_out(o) for o in await orders_service.list_orders_for_user(user_id)]


@router.patch("/{order_id}/status")
async def update_order_status(order_id: str, body: UpdateStatusRequest, admin: User = Depends(require_admin)):
    order = await orders_service.update_status(order_id, body.status, actor_id=str(admin.id))
    return order_out(order)
