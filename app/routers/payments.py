from typing import Any

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.exceptions import InvalidSignatureError
from app.core.logging import get_logger
from app.deps import get_payment_gateway
from app.services import payments as payments_service
from app.services.nowpayments import NowPaymentsClient

router = APIRouter()
log = get_logger(__name__)


class CreateInvoiceRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    amount: Any = None  # type-checked in the service so bad amounts never reach the gateway
    currency: str = "USD"
    meta: dict[str, Any] = Field(default_factory=dict)
    order_id: str | None = None


@router.post("/crypto/create-invoice")
async def create_invoice(body: CreateInvoiceRequest, gateway: NowPaymentsClient = Depends(get_payment_gateway)):
    """Create a hosted crypto invoice; pass orderId to link it to a local order."""
    return await payments_service.create_invoice(
        gateway,
        amount=body.amount,
        currency=body.currency,
        meta=body.meta,
        order_id=body.order_id,
    )


@router.post("/crypto/webhook", response_class=PlainTextResponse)
async def nowpayments_webhook(
    request: Request,
    x_nowpayments_sig: str | None = Header(default=None, alias="x-nowpayments-sig"),
):
    """NOWPayments IPN. Signature is checked against the raw body bytes."""
    body = await request.body()
    try:
        await payments_service.handle_webhook(body, x_nowpayments_sig)
    except InvalidSignatureError:
        return PlainTextResponse("invalid signature", status_code=400)
    except Exception:
        # 500 makes the gateway retry the callback
        log.exception("webhook_error")
        return PlainTextResponse("error", status_code=500)
    return PlainTextResponse("ok")
