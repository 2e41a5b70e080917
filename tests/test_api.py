import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import httpx
import jwt
import pytest

from counter_pos.api import ApiClient
from counter_pos.errors import AuthError, NotFoundError, ServiceError, ValidationError
from counter_pos.session import establish_session

BASE_URL = "http://pos.test/api"


def make_token(**claims):
    claims.setdefault("sub", "u1")
    claims.setdefault("name", "Ana")
    claims.setdefault("exp", datetime.now(timezone.utc) + timedelta(hours=1))
    return jwt.encode(claims, "test-secret", algorithm="HS256")


def client_for(handler, **kwargs):
    return ApiClient(BASE_URL, transport=httpx.MockTransport(handler), **kwargs)


def envelope(data, status=200, success=True, message="ok"):
    return httpx.Response(status, json={"success": success, "message": message, "data": data})


@pytest.mark.asyncio
async def test_create_order_sends_payload_and_bearer_token():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return envelope(
            {"id": "o1", "order_number": "1001", "order_type": "dine_in", "status": "confirmed", "price": "19.50"},
            status=201,
        )

    api = client_for(handler)
    token = make_token()
    api.attach_session(establish_session(token))

    order = await api.create_order("dine_in", "t5", [("p1", 2), ("p2", 1)], "no onions")
    await api.aclose()

    assert seen["method"] == "POST"
    assert seen["path"] == "/api/counter/orders"
    assert seen["auth"] == f"Bearer {token}"
    assert seen["body"] == {
        "order_type": "dine_in",
        "items": [{"product_id": "p1", "quantity": 2}, {"product_id": "p2", "quantity": 1}],
        "table_id": "t5",
        "notes": "no onions",
    }
    assert order.order_id == "o1"
    assert order.display_number == "1001"
    assert order.computed_total == Decimal("19.50")


@pytest.mark.asyncio
async def test_list_payable_orders_filters_by_status_and_parses_items():
    seen = {}

    def handler(request):
        seen["status"] = request.url.params.get("status")
        return envelope(
            {
                "orders": [
                    {
                        "id": "o7",
                        "order_type": "take_away",
                        "price": 12,
                        "RestaurantTable": {"id": "t3", "table_number": "3"},
                        "OrderItems": [
                            {"quantity": 2, "unit_price": "4.00", "Product": {"id": "p9", "name": "Soda"}},
                            {"quantity": 1, "price": "4.00", "total_price": "4.00", "product_name": "Chips"},
                        ],
                    }
                ]
            }
        )

    api = client_for(handler)
    (order,) = await api.list_payable_orders()
    await api.aclose()

    assert seen["status"] == "confirmed"
    assert order.order_type == "takeout"
    assert order.table.table_number == "3"
    assert [(line.name, line.quantity, line.line_total) for line in order.lines] == [
        ("Soda", 2, Decimal("8.00")),
        ("Chips", 1, Decimal("4.00")),
    ]
    assert order.computed_total == Decimal("12")


@pytest.mark.asyncio
async def test_submit_payment_payload():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return envelope({"id": "pay1", "status": "completed", "amount": 24, "payment_method": "card"})

    api = client_for(handler)
    result = await api.submit_payment("o-24", "card", Decimal("24.005"), "TXN123")
    await api.aclose()

    assert seen["path"] == "/api/counter/orders/o-24/payments"
    assert seen["body"] == {"payment_method": "card", "amount": 24.0, "reference_number": "TXN123"}
    assert result.settled_amount == Decimal("24")
    assert result.method == "card"


@pytest.mark.asyncio
async def test_menu_and_tables_accept_wrapped_lists():
    def handler(request):
        if request.url.path.endswith("/products"):
            return envelope({"products": [{"id": 1, "name": "Burger", "price": "8.00", "category_id": 4}]})
        return envelope({"tables": [{"id": "t5", "table_number": "5", "capacity": "4", "status": "occupied"}]})

    api = client_for(handler)
    (item,) = await api.list_menu_items()
    (table,) = await api.list_tables()
    await api.aclose()

    assert (item.item_id, item.unit_price, item.category_id) == ("1", Decimal("8.00"), "4")
    assert (table.table_number, table.capacity, table.status) == ("5", 4, "occupied")


@pytest.mark.asyncio
async def test_unauthorized_calls_strategy_and_drops_session():
    calls = []

    def handler(request):
        return httpx.Response(401, json={"success": False, "message": "Token expired"})

    api = client_for(handler, on_unauthorized=lambda: calls.append("signed-out"))
    api.attach_session(establish_session(make_token()))

    with pytest.raises(AuthError, match="Token expired"):
        await api.list_tables()
    await api.aclose()

    assert calls == ["signed-out"]
    assert api.session is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, error",
    [(400, ValidationError), (409, ValidationError), (422, ValidationError), (404, NotFoundError), (503, ServiceError)],
)
async def test_error_statuses_map_to_taxonomy(status, error):
    def handler(request):
        return httpx.Response(status, json={"success": False, "message": "Table is required for dine-in"})

    api = client_for(handler)
    with pytest.raises(error) as exc_info:
        await api.get_order("o1")
    await api.aclose()

    assert exc_info.value.message == "Table is required for dine-in"
    assert exc_info.value.status_code == status


@pytest.mark.asyncio
async def test_success_false_is_a_validation_error():
    def handler(request):
        return httpx.Response(200, json={"success": False, "message": "Order already paid"})

    api = client_for(handler)
    with pytest.raises(ValidationError, match="Order already paid"):
        await api.submit_payment("o1", "cash", Decimal("5"))
    await api.aclose()


@pytest.mark.asyncio
async def test_transport_failure_is_a_service_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    api = client_for(handler)
    with pytest.raises(ServiceError, match="Could not reach the server"):
        await api.list_payable_orders()
    await api.aclose()


@pytest.mark.asyncio
async def test_unreadable_success_body_is_a_service_error():
    def handler(request):
        return httpx.Response(200, text="<html>gateway</html>")

    api = client_for(handler)
    with pytest.raises(ServiceError):
        await api.list_menu_items()
    await api.aclose()


@pytest.mark.asyncio
async def test_login_attaches_session():
    token = make_token(sub="u9", role="cashier")

    def handler(request):
        assert json.loads(request.content) == {"email": "cashier@example.com", "password": "pw"}
        return envelope({"accessToken": token, "user": {"id": "u9", "name": "Kim", "role": "cashier"}})

    api = client_for(handler)
    session = await api.login("cashier@example.com", "pw")
    await api.aclose()

    assert api.session is session
    assert session.user.name == "Kim"
    assert session.authorization == f"Bearer {token}"


@pytest.mark.asyncio
async def test_update_order_status_patches():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return envelope({"id": "o1", "status": "cancelled"})

    api = client_for(handler)
    await api.update_order_status("o1", "cancelled")
    await api.aclose()

    assert (seen["method"], seen["path"], seen["body"]) == ("PATCH", "/api/orders/o1/status", {"status": "cancelled"})


@pytest.mark.asyncio
async def test_update_counter_order_puts_added_lines():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return envelope({"id": "o1", "order_number": "1001", "order_type": "dine_in", "status": "confirmed", "price": "27.50"})

    api = client_for(handler)
    order = await api.update_counter_order("o1", [("p2", 1)])
    await api.aclose()

    assert (seen["method"], seen["path"]) == ("PUT", "/api/counter/orders/o1")
    assert seen["body"] == {"order_id": "o1", "items": [{"product_id": "p2", "quantity": 1}]}
    assert order.computed_total == Decimal("27.50")
