from app.models.user import User
from app.models.card import Card
from app.models.order import Order
from app.models.audit_log import AuditLog

__all__ = [
    "User",
    "Card",
    "Order",
    "AuditLog",
]
