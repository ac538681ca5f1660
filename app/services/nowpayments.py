"""NOWPayments HTTP client: hosted crypto invoices."""

from typing import Any

import httpx

from app.core.logging import get_logger

log = get_logger(__name__)

DEFAULT_API_URL = "https://api.nowpayments.io"


class GatewayError(Exception):
    """Gateway rejected the request, was unreachable, or answered with garbage."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class NowPaymentsClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        headers = {"x-api-key": self.api_key, "Content-Type": "application/json"}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                resp = await client.request(method, path, json=payload or {}, headers=headers)
        except httpx.RequestError as e:
            log.error("nowpayments_unreachable", path=path, error=str(e))
            raise GatewayError(f"NOWPayments unreachable: {e}") from e
        if not resp.is_success:
            log.warning("nowpayments_error", path=path, status_code=resp.status_code, body=resp.text[:500])
            raise GatewayError(f"NOWPayments {resp.status_code}: {resp.text[:500]}", resp.status_code)
        try:
            data = resp.json() if resp.content else {}
        except ValueError as e:
            raise GatewayError("NOWPayments returned a non-JSON body", resp.status_code) from e
        if not isinstance(data, dict):
            raise GatewayError("NOWPayments returned an unexpected body", resp.status_code)
        return data

    async def create_invoice(self, payload: dict[str, Any]) -> dict[str, Any]:
        """POST /v1/invoice; returns the gateway's invoice (id, invoice_url, order_id, ...)."""
        return await self._request("POST", "/v1/invoice", payload)
