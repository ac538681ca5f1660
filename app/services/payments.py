"""Crypto checkout via NOWPayments: invoice creation and IPN webhook reconciliation."""

import json
import math
import time
from datetime import datetime
from typing import Any

from beanie import UpdateResponse
from pymongo.errors import PyMongoError

from app.core.audit import log_event
from app.core.config import get_settings
from app.core.exceptions import AppError, BadRequestError, InvalidSignatureError, UpstreamError
from app.core.ids import parse_object_id
from app.core.logging import get_logger
from app.core.security import verify_nowpayments_signature
from app.models.order import PAYMENT_PROCESSING, PAYMENT_SUCCESS_STATUSES, PAYMENT_UNPAID, Order
from app.services.nowpayments import GatewayError, NowPaymentsClient

log = get_logger(__name__)

ORDER_DESCRIPTION = "Marketplace order"


def _is_valid_amount(amount: Any) -> bool:
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        return False
    return math.isfinite(amount) and amount > 0


def build_invoice_payload(
    amount: float,
    currency: str,
    external_order_id: str,
    meta: dict[str, Any] | None = None,
) -> dict[str, Any]:
    settings = get_settings()
    public_base = settings.public_base_url.rstrip("/")
    public_api = settings.public_api_url.rstrip("/")
    return {
        "price_amount": round(float(amount), 2),
        "price_currency": str(currency).lower(),
        "order_id": external_order_id,
        "success_url": f"{public_base}/payment/success?order_id={external_order_id}",
        "cancel_url": f"{public_base}/payment/cancel?order_id={external_order_id}",
        "ipn_callback_url": f"{public_api}/api/pay/crypto/webhook",
        # Let the buyer pick the coin on the hosted page
        "is_fixed_rate": False,
        "supported_multi_payments": settings.nowpayments_pay_currencies,
        "order_description": ORDER_DESCRIPTION,
        "metadata": meta or {},
    }


async def _attach_invoice(order_id: str, external_order_id: str, invoice: dict[str, Any]) -> bool:
    """Best-effort: record the invoice on the local order. Failures are logged, never raised."""
    oid = parse_object_id(order_id)
    if not oid:
        log.warning("invoice_attach_skipped", order_id=order_id, reason="invalid_order_id")
        return False
    try:
        updated = await Order.find_one({"_id": oid}).update(
            {
                "$set": {
                    "payment.method": "crypto",
                    "payment.status": PAYMENT_PROCESSING,
                    "payment.invoice_id": str(invoice.get("id") or ""),
                    "payment.external_order_id": external_order_id,
                    "payment.raw": invoice,
                    "updated_at": datetime.utcnow(),
                }
            }
        )
    except PyMongoError:
        log.exception("invoice_attach_failed", order_id=order_id)
        return False
    if not updated or not getattr(updated, "matched_count", 0):
        log.warning("invoice_attach_skipped", order_id=order_id, reason="order_not_found")
        return False
    return True


async def create_invoice(
    gateway: NowPaymentsClient,
    amount: Any,
    currency: str = "USD",
    meta: dict[str, Any] | None = None,
    order_id: str | None = None,
) -> dict[str, Any]:
    """Create a hosted invoice; link it to the local order when one is given."""
    if not _is_valid_amount(amount):
        raise BadRequestError("Invalid amount")
    if not gateway.api_key:
        raise AppError("NOWPAYMENTS_API_KEY is not set", code="CONFIG_ERROR")
    external_order_id = order_id or f"inv_{int(time.time() * 1000)}"
    payload = build_invoice_payload(amount, currency, external_order_id, meta)
    try:
        invoice = await gateway.create_invoice(payload)
    except GatewayError as e:
        log.error("invoice_create_failed", order_id=external_order_id, error=str(e))
        raise UpstreamError("Failed to create invoice") from e
    log.info("invoice_created", order_id=external_order_id, invoice_id=invoice.get("id"))
    if order_id and await _attach_invoice(order_id, external_order_id, invoice):
        await log_event(
            None,
            "invoice_created",
            "order",
            order_id,
            {"invoice_id": str(invoice.get("id") or ""), "amount": payload["price_amount"]},
        )
    return {
        "invoiceId": invoice.get("id"),
        "invoiceUrl": invoice.get("invoice_url"),
        "orderId": external_order_id,
        "raw": invoice,
    }


def _parse_payload(body: bytes) -> dict[str, Any]:
    try:
        data = json.loads(body.decode("utf-8") or "{}")
    except (UnicodeDecodeError, ValueError):
        log.warning("webhook_unparsable_body", size=len(body))
        return {}
    return data if isinstance(data, dict) else {}


def _order_filter(reference: str) -> dict[str, Any]:
    """The gateway may echo our order id or its own reference; match either."""
    clauses: list[dict[str, Any]] = [{"payment.external_order_id": reference}]
    oid = parse_object_id(reference)
    if oid:
        clauses.insert(0, {"_id": oid})
    return {"$or": clauses}


async def handle_webhook(body: bytes, signature: str | None) -> Order | None:
    """Verify the IPN signature and apply its payment status to the matching order.

    Returns the updated order, or None when the callback matched nothing. Unknown
    orders are acknowledged without any write so the gateway stops retrying.
    Fulfillment status is never touched here.
    """
    secret = get_settings().nowpayments_ipn_secret
    if not verify_nowpayments_signature(body, signature, secret):
        log.warning("webhook_invalid_signature", has_signature=bool(signature), has_secret=bool(secret))
        raise InvalidSignatureError()

    payload = _parse_payload(body)
    reference = payload.get("order_id")
    status = str(payload.get("payment_status") or payload.get("transaction_status") or PAYMENT_UNPAID).lower()
    payment_id = str(payload.get("payment_id") or "")
    log.info("webhook_received", order_id=reference, payment_status=status, payment_id=payment_id)
    if not reference:
        return None

    # Last write wins: no ordering guard against out-of-order deliveries.
    order = await Order.find_one(_order_filter(str(reference))).update(
        {
            "$set": {
                "payment.status": status,
                "payment.currency": str(payload.get("pay_currency") or "").lower(),
                "payment.tx_hash": payment_id,
                "payment.raw": payload,
                "updated_at": datetime.utcnow(),
            }
        },
        response_type=UpdateResponse.NEW_DOCUMENT,
    )
    if not order:
        log.info("webhook_order_not_found", order_id=reference)
        return None

    if status in PAYMENT_SUCCESS_STATUSES:
        log.info("payment_succeeded", order_id=str(order.id), payment_status=status, fulfillment=order.status)
    await log_event(
        order.user.id,
        "payment_webhook_applied",
        "order",
        str(order.id),
        {
            "payment_id": payment_id,
            "payment_status": status,
            "pay_currency": payload.get("pay_currency"),
            "price_amount": payload.get("price_amount"),
        },
    )
    return order
