"""Shared pytest fixtures: an in-process fake commerce service and clients."""
from __future__ import annotations

import asyncio
import json
import uuid
from dataclasses import dataclass, field
from typing import Any

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from shopcart.core.constants import CARTS_ENDPOINT, ORDERS_ENDPOINT
from shopcart.integrations.http_client import ApiClient
from shopcart.integrations.session_store import MemorySessionStore
from shopcart.services.auth_state import AuthState, AuthTokens
from shopcart.services.cart_service import CartSessionManager

VARIANT_PRICES = {101: 250.0, 102: 500.0, 103: 80.0}


@dataclass
class RecordedRequest:
    method: str
    path: str
    body: Any
    headers: dict[str, str]


@dataclass
class FakeCommerce:
    """Minimal stand-in for the remote cart/order API.

    ``script(method, path, responses)`` queues canned (status, body) replies
    that are served before the regular handler runs.
    """

    carts: dict[str, dict[str, Any]] = field(default_factory=dict)
    requests: list[RecordedRequest] = field(default_factory=list)
    orders: list[dict[str, Any]] = field(default_factory=list)
    scripted: dict[tuple[str, str], list[tuple[int, Any]]] = field(default_factory=dict)
    next_line_id: int = 1
    next_order_id: int = 501

    # ---------- helpers used by tests ----------

    def script(self, method: str, path: str, responses: list[tuple[int, Any]]) -> None:
        self.scripted.setdefault((method, path), []).extend(responses)

    def new_cart(self) -> str:
        cart_id = str(uuid.uuid4())
        self.carts[cart_id] = {"id": cart_id, "items": [], "coupon_discount": 0}
        return cart_id

    def calls(self, method: str, path_prefix: str = "") -> list[RecordedRequest]:
        return [r for r in self.requests if r.method == method and r.path.startswith(path_prefix)]

    def cart_json(self, cart_id: str) -> dict[str, Any]:
        cart = self.carts[cart_id]
        subtotal = sum(line["total_price"] for line in cart["items"])
        return {
            "id": cart_id,
            "items": cart["items"],
            "subtotal": f"{subtotal:.2f}",
            "coupon_discount": cart["coupon_discount"],
            "delivery_charge_inside_dhaka": 60,
            "delivery_charge_outside_dhaka": 120,
            "total_amount": subtotal,
        }

    # ---------- aiohttp app ----------

    def build_app(self) -> web.Application:
        app = web.Application(middlewares=[self._record_and_script])
        app.router.add_get(CARTS_ENDPOINT, self.list_carts)
        app.router.add_post(CARTS_ENDPOINT, self.create_cart)
        app.router.add_get(CARTS_ENDPOINT + "{cart_id}/", self.get_cart)
        app.router.add_post(CARTS_ENDPOINT + "{cart_id}/items/", self.add_line)
        app.router.add_patch(CARTS_ENDPOINT + "{cart_id}/items/{line_id}/", self.update_line)
        app.router.add_delete(CARTS_ENDPOINT + "{cart_id}/items/{line_id}/", self.delete_line)
        app.router.add_post(ORDERS_ENDPOINT, self.create_order)
        app.router.add_get("/slow/", self.slow)
        app.router.add_route("*", "/{tail:.*}", self.not_found)
        return app

    @web.middleware
    async def _record_and_script(self, request: web.Request, handler):
        raw = await request.text()
        body = json.loads(raw) if raw else None
        self.requests.append(RecordedRequest(request.method, request.path, body, dict(request.headers)))

        queue = self.scripted.get((request.method, request.path))
        if queue:
            status, payload = queue.pop(0)
            if payload is None:
                return web.Response(status=status)
            if isinstance(payload, str):
                return web.Response(status=status, text=payload, content_type="application/json")
            return web.json_response(payload, status=status)
        return await handler(request)

    def _missing(self) -> web.Response:
        return web.json_response({"detail": "Not found."}, status=404)

    async def not_found(self, request: web.Request) -> web.Response:
        return self._missing()

    async def slow(self, request: web.Request) -> web.Response:
        await asyncio.sleep(0.5)
        return web.json_response({"data": "late"})

    async def list_carts(self, request: web.Request) -> web.Response:
        data = [self.cart_json(cart_id) for cart_id in self.carts]
        return web.json_response({"success": True, "data": data})

    async def create_cart(self, request: web.Request) -> web.Response:
        cart_id = self.new_cart()
        return web.json_response({"data": self.cart_json(cart_id)}, status=201)

    async def get_cart(self, request: web.Request) -> web.Response:
        cart_id = request.match_info["cart_id"]
        if cart_id not in self.carts:
            return self._missing()
        return web.json_response(self.cart_json(cart_id))

    async def add_line(self, request: web.Request) -> web.Response:
        cart_id = request.match_info["cart_id"]
        if cart_id not in self.carts:
            return self._missing()
        body = await request.json()
        variant_id = body.get("variant_id")
        quantity = int(body.get("quantity", 1))
        if variant_id not in VARIANT_PRICES:
            return web.json_response({"variant_id": ["Invalid variant."]}, status=400)

        price = VARIANT_PRICES[variant_id]
        items = self.carts[cart_id]["items"]
        for line in items:
            if line["variant"]["id"] == variant_id:
                line["quantity"] += quantity
                line["total_price"] = price * line["quantity"]
                return web.json_response({"success": True, "data": line}, status=201)

        line = {
            "id": self.next_line_id,
            "variant": {
                "id": variant_id,
                "price": price,
                "final_price": price,
                "stock": 5,
                "attributes": '{"size": "M"}',
            },
            "quantity": quantity,
            "total_price": price * quantity,
        }
        self.next_line_id += 1
        items.append(line)
        return web.json_response({"success": True, "data": line}, status=201)

    def _find_line(self, request: web.Request) -> dict[str, Any] | None:
        cart = self.carts.get(request.match_info["cart_id"])
        if cart is None:
            return None
        line_id = int(request.match_info["line_id"])
        for line in cart["items"]:
            if line["id"] == line_id:
                return line
        return None

    async def update_line(self, request: web.Request) -> web.Response:
        line = self._find_line(request)
        if line is None:
            return self._missing()
        body = await request.json()
        line["quantity"] = int(body["quantity"])
        line["total_price"] = line["variant"]["price"] * line["quantity"]
        return web.json_response(line)

    async def delete_line(self, request: web.Request) -> web.Response:
        line = self._find_line(request)
        if line is None:
            return self._missing()
        self.carts[request.match_info["cart_id"]]["items"].remove(line)
        return web.Response(status=204)

    async def create_order(self, request: web.Request) -> web.Response:
        body = await request.json()
        self.orders.append(body)
        if body.get("payment_method") == "OP":
            return web.json_response({"GatewayPageURL": "https://sandbox.gateway.test/pay/abc"})
        order_id = self.next_order_id
        self.next_order_id += 1
        return web.json_response({"success": True, "data": {"id": order_id, "status": "pending"}}, status=201)


@pytest.fixture()
def commerce() -> FakeCommerce:
    return FakeCommerce()


@pytest.fixture()
async def commerce_server(commerce: FakeCommerce):
    server = TestServer(commerce.build_app())
    await server.start_server()
    try:
        yield server
    finally:
        await server.close()


@pytest.fixture()
def sleeps() -> list[float]:
    """Backoff delays requested by the client, recorded instead of slept."""
    return []


@pytest.fixture()
async def api_client(commerce_server, sleeps: list[float]):
    async def _fake_sleep(delay: float) -> None:
        sleeps.append(delay)

    client = ApiClient(str(commerce_server.make_url("")), timeout=5, sleep=_fake_sleep)
    try:
        yield client
    finally:
        await client.close()


@pytest.fixture()
def store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture()
def anonymous(store: MemorySessionStore) -> AuthState:
    return AuthState(store)


@pytest.fixture()
async def signed_in(store: MemorySessionStore) -> AuthState:
    auth = AuthState(store)
    await auth.set_session(AuthTokens(access="access-token", refresh="refresh-token"), {"id": 7})
    return auth


@pytest.fixture()
def manager(api_client: ApiClient, store: MemorySessionStore, anonymous: AuthState) -> CartSessionManager:
    return CartSessionManager(api_client, store, anonymous)


@pytest.fixture()
def product() -> dict[str, Any]:
    return {
        "id": 11,
        "name": "Cotton T-Shirt",
        "default_variant": {"id": 101, "price": 300, "final_price": 250},
        "variants": [{"id": 101}, {"id": 102}],
    }
