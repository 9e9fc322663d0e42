from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import httpx

from db.models import CartItem, Order, OrderStatus, Product, ProductDraft, ShippingInfo, User
from db.token_store import TokenStore
from gateway.errors import TransportError, error_for_status
from utils.config import DEFAULT_TIMEOUT
from utils.logger import get_logger

_logger = get_logger(__name__)

API_PREFIX = "/api/v1"


class GatewayClient:
    """
    The only component that talks to the backend.

    Attaches the bearer token (when one is held) to every request and returns
    parsed response bodies. Non-2xx responses and transport failures raise a
    GatewayError subclass; nothing is retried or cached here.
    """

    def __init__(
        self,
        base_url: str,
        token_store: Optional[TokenStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._token: Optional[str] = None
        self._token_store = token_store or TokenStore()
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + API_PREFIX,
            transport=transport,
            timeout=timeout,
        )

    @property
    def token(self) -> Optional[str]:
        return self._token

    async def load_token(self) -> Optional[str]:
        """Pick up a token persisted by an earlier run."""
        self._token = await self._token_store.load()
        return self._token

    async def clear_token(self) -> None:
        self._token = None
        await self._token_store.clear()

    async def close(self) -> None:
        await self._http.aclose()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _request(self, method: str, path: str, payload: Any = None) -> Any:
        _logger.debug(f"{method} {path}")
        try:
            resp = await self._http.request(
                method, path, json=payload, headers=self._headers()
            )
        except httpx.HTTPError as e:
            _logger.warning(f"{method} {path} failed: {e!r}")
            raise TransportError() from e

        try:
            body = resp.json() if resp.content else {}
        except ValueError as e:
            if resp.is_success:
                raise TransportError(status=resp.status_code) from e
            body = {}

        if not resp.is_success:
            message = body.get("message") if isinstance(body, dict) else None
            _logger.info(f"{method} {path} -> {resp.status_code} {message or ''}")
            raise error_for_status(resp.status_code, message)
        return body

    # ---------------------------
    # Auth
    # ---------------------------

    async def register(self, name: str, email: str, password: str) -> Dict[str, Any]:
        return await self._request(
            "POST",
            "/auth/register",
            {"name": name, "email": email, "password": password},
        )

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Returns the login body. A token in it is held in memory before this
        returns, so every later call carries it, and is persisted durably.
        """
        body = await self._request(
            "POST", "/auth/login", {"email": email, "password": password}
        )
        token = body.get("token") if isinstance(body, dict) else None
        if token:
            self._token = token
            await self._token_store.save(token)
        return body

    async def logout(self) -> Dict[str, Any]:
        """The token is gone when this returns, even if the remote call failed."""
        try:
            return await self._request("GET", "/auth/logout")
        finally:
            await self.clear_token()

    async def get_current_user(self) -> User:
        body = await self._request("GET", "/auth/me")
        return User.from_json(body.get("user") or body)

    # ---------------------------
    # Products
    # ---------------------------

    async def list_products(self) -> List[Product]:
        body = await self._request("GET", "/product/all")
        return [Product.from_json(p) for p in body.get("products") or []]

    async def get_product(self, product_id: str) -> Product:
        body = await self._request("GET", f"/product/{product_id}")
        return Product.from_json(body.get("product") or body)

    async def add_product(self, draft: ProductDraft) -> Dict[str, Any]:
        return await self._request("POST", "/product/create", draft.to_json())

    async def update_product(self, product_id: str, draft: ProductDraft) -> Dict[str, Any]:
        return await self._request("PUT", f"/product/{product_id}", draft.to_json())

    async def delete_product(self, product_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/product/{product_id}")

    # ---------------------------
    # Cart
    # ---------------------------

    async def add_to_cart(self, product_id: str, quantity: int = 1) -> Dict[str, Any]:
        return await self._request(
            "POST", "/cart/add", {"productId": product_id, "quantity": quantity}
        )

    async def get_cart(self) -> List[CartItem]:
        body = await self._request("GET", "/cart")
        return [CartItem.from_json(i) for i in body.get("cartItems") or []]

    async def remove_from_cart(self, item_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/cart/{item_id}")

    # ---------------------------
    # Orders & payment
    # ---------------------------

    async def create_order(
        self,
        items: Iterable[CartItem],
        total_amount: float,
        shipping: ShippingInfo,
        payment_method: str,
    ) -> Dict[str, Any]:
        payload = {
            "products": [
                {
                    "product": item.product.id,
                    "quantity": item.quantity,
                    "price": item.product.price,
                }
                for item in items
            ],
            "totalAmount": total_amount,
            "shippingAddress": shipping.to_json(),
            "paymentMethod": payment_method,
        }
        return await self._request("POST", "/order/create-order", payload)

    async def list_orders(self) -> List[Order]:
        body = await self._request("GET", "/order/all")
        return [Order.from_json(o) for o in body.get("orders") or []]

    async def get_order(self, order_id: str) -> Order:
        body = await self._request("GET", f"/order/{order_id}")
        return Order.from_json(body.get("order") or body)

    async def update_order_status(
        self, order_id: str, status: OrderStatus
    ) -> Dict[str, Any]:
        return await self._request(
            "PUT", f"/order/{order_id}/status", {"status": OrderStatus(status).value}
        )

    async def initialize_payment(
        self,
        order_id: str,
        amount: float,
        payment_method: str,
        currency: str = "USD",
    ) -> Dict[str, Any]:
        return await self._request(
            "POST",
            "/payment/init",
            {
                "orderId": order_id,
                "amount": amount,
                "currency": currency,
                "paymentMethod": payment_method,
            },
        )
