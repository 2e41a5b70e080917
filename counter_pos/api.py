"""HTTP client for the restaurant backend (orders, payments, menu, tables)."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Callable, Iterable

import httpx

from counter_pos.config import API_BASE_URL, API_TIMEOUT_SECONDS, PAYABLE_ORDER_STATUS
from counter_pos.data import (
    category_from_api,
    menu_item_from_api,
    order_from_api,
    payment_from_api,
    table_from_api,
    unwrap_list,
)
from counter_pos.errors import AuthError, NotFoundError, ServiceError, ValidationError
from counter_pos.models import Category, DiningTable, MenuItem, PaymentResult, SubmittedOrder
from counter_pos.money import quantize
from counter_pos.session import SessionContext, establish_session

logger = logging.getLogger(__name__)

_VALIDATION_STATUSES = {400, 409, 422}


class ApiClient:
    """Request pipeline shared by every counter component.

    Built once at startup and passed in. Each request carries the attached
    session's bearer token; a 401 calls ``on_unauthorized`` (supplied by the
    hosting shell) before raising AuthError.
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        timeout: float = API_TIMEOUT_SECONDS,
        on_unauthorized: Callable[[], None] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.on_unauthorized = on_unauthorized
        self.session: SessionContext | None = None
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    def attach_session(self, session: SessionContext) -> None:
        self.session = session

    def detach_session(self) -> None:
        self.session = None

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        headers = {}
        if self.session is not None:
            headers["Authorization"] = self.session.authorization

        logger.debug("api_request method=%s path=%s", method, path)
        try:
            response = await self.client.request(method, path, json=json, params=params, headers=headers)
        except httpx.TimeoutException as exc:
            logger.warning("api_timeout method=%s path=%s", method, path)
            raise ServiceError(f"Request timed out: {method} {path}") from exc
        except httpx.HTTPError as exc:
            logger.warning("api_transport_error method=%s path=%s error=%r", method, path, exc)
            raise ServiceError(f"Could not reach the server: {exc}") from exc

        body = self._decode(response)
        message = self._message(response, body)
        status = response.status_code
        logger.debug("api_response method=%s path=%s status=%s", method, path, status)

        if status == 401:
            self.session = None
            if self.on_unauthorized is not None:
                self.on_unauthorized()
            raise AuthError(message, payload=body)
        if status == 404:
            raise NotFoundError(message, payload=body)
        if status in _VALIDATION_STATUSES:
            raise ValidationError(message, status, body)
        if status >= 400:
            raise ServiceError(message, status, body)
        if isinstance(body, dict) and body.get("success") is False:
            raise ValidationError(message, status, body)

        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            if response.is_success:
                raise ServiceError("Server returned an unreadable response", response.status_code) from None
            return None

    @staticmethod
    def _message(response: httpx.Response, body: Any) -> str:
        if isinstance(body, dict):
            for key in ("message", "error"):
                if body.get(key):
                    return str(body[key])
        return response.reason_phrase or f"HTTP {response.status_code}"

    @staticmethod
    def _require_dict(data: Any, what: str) -> dict[str, Any]:
        if not isinstance(data, dict):
            raise ServiceError(f"Server returned no {what}")
        return data

    # Session

    async def login(self, email: str, password: str) -> SessionContext:
        data = await self._request("POST", "/users/login", json={"email": email, "password": password})
        data = self._require_dict(data, "login data")
        session = establish_session(str(data.get("accessToken") or ""), data.get("user"))
        self.attach_session(session)
        logger.info("login_ok user=%s", session.user.email or session.user.user_id)
        return session

    # Catalog

    async def list_menu_items(self) -> list[MenuItem]:
        data = await self._request("GET", "/products")
        return [menu_item_from_api(raw) for raw in unwrap_list(data, "products")]

    async def list_categories(self) -> list[Category]:
        data = await self._request("GET", "/categories")
        return [category_from_api(raw) for raw in unwrap_list(data, "categories")]

    async def list_tables(self) -> list[DiningTable]:
        data = await self._request("GET", "/tables")
        return [table_from_api(raw) for raw in unwrap_list(data, "tables")]

    # Orders

    async def create_order(
        self,
        order_type: str,
        table_id: str | None,
        line_items: Iterable[tuple[str, int]],
        notes: str | None = None,
    ) -> SubmittedOrder:
        payload: dict[str, Any] = {
            "order_type": order_type,
            "items": [{"product_id": item_id, "quantity": quantity} for item_id, quantity in line_items],
        }
        if table_id:
            payload["table_id"] = table_id
        if notes:
            payload["notes"] = notes
        data = await self._request("POST", "/counter/orders", json=payload)
        return order_from_api(self._require_dict(data, "order"))

    async def update_counter_order(
        self,
        order_id: str,
        line_items: Iterable[tuple[str, int]],
        notes: str | None = None,
    ) -> SubmittedOrder:
        """Add lines to an order that is still open at its table."""
        payload: dict[str, Any] = {
            "order_id": order_id,
            "items": [{"product_id": item_id, "quantity": quantity} for item_id, quantity in line_items],
        }
        if notes:
            payload["notes"] = notes
        data = await self._request("PUT", f"/counter/orders/{order_id}", json=payload)
        return order_from_api(self._require_dict(data, "order"))

    async def list_payable_orders(self, status: str = PAYABLE_ORDER_STATUS) -> list[SubmittedOrder]:
        data = await self._request("GET", "/orders", params={"status": status})
        return [order_from_api(raw) for raw in unwrap_list(data, "orders")]

    async def get_order(self, order_id: str) -> SubmittedOrder:
        data = await self._request("GET", f"/orders/{order_id}")
        return order_from_api(self._require_dict(data, "order"))

    async def update_order_status(self, order_id: str, status: str, notes: str | None = None) -> None:
        payload: dict[str, Any] = {"status": status}
        if notes:
            payload["notes"] = notes
        await self._request("PATCH", f"/orders/{order_id}/status", json=payload)

    # Payments

    async def submit_payment(
        self,
        order_id: str,
        method: str,
        amount: Decimal,
        reference_number: str | None = None,
    ) -> PaymentResult:
        payload: dict[str, Any] = {"payment_method": method, "amount": float(quantize(amount))}
        if reference_number:
            payload["reference_number"] = reference_number
        data = await self._request("POST", f"/counter/orders/{order_id}/payments", json=payload)
        return payment_from_api(data if isinstance(data, dict) else {}, method, amount)
