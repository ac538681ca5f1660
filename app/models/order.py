from datetime import datetime
from typing import Any, Literal

from beanie import Document
from pydantic import BaseModel, Field

FulfillmentStatus = Literal["pending", "packed", "shipped", "delivered", "cancelled"]
FULFILLMENT_STATUSES: tuple[str, ...] = ("pending", "packed", "shipped", "delivered", "cancelled")

PaymentMethod = Literal["cod", "card", "crypto"]

# Payment states we model; the gateway may report others and those are stored as sent.
PAYMENT_UNPAID = "unpaid"
PAYMENT_PROCESSING = "processing"
PAYMENT_SUCCESS_STATUSES = frozenset({"confirmed", "finished"})
PAYMENT_STATUSES: tuple[str, ...] = ("unpaid", "processing", "confirmed", "finished", "failed", "expired")


class UserSnapshot(BaseModel):
    """Copy of the buyer at order time, not a live reference."""
    id: str
    name: str
    email: str


class OrderItem(BaseModel):
    card_id: str | None = None
    name: str
    price: float
    quantity: int


class Payment(BaseModel):
    method: PaymentMethod = "crypto"
    status: str = PAYMENT_UNPAID
    currency: str = ""  # e.g. btc, usdttrc20
    invoice_id: str = ""
    external_order_id: str = ""  # gateway order_id; webhook join key once set
    tx_hash: str = ""
    raw: dict[str, Any] = Field(default_factory=dict)


class Order(Document):
    user: UserSnapshot
    items: list[OrderItem]
    total: float
    address: str = ""
    status: FulfillmentStatus = "pending"
    payment: Payment = Field(default_factory=Payment)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "orders"
        indexes = [
            [("status", 1)],
            [("user.id", 1), ("created_at", -1)],
            [("payment.external_order_id", 1)],
        ]
