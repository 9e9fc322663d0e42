import unittest

import httpx

from db.models import CartItem, OrderStatus, ProductDraft, ShippingInfo
from db.token_store import TokenStore
from fake_backend import USER, BackendTestCase, cart_item_json, product_json
from gateway.errors import (
    GENERIC_MESSAGE,
    AuthenticationError,
    NotFoundError,
    ServerError,
    TransportError,
    ValidationError,
)


class GatewayTokenTestCase(BackendTestCase):
    # ---------- Credentials ----------

    async def test_no_authorization_header_without_token(self):
        self.backend.on("GET", "/product/all", (200, {"products": []}))
        await self.gateway.list_products()

        request = self.backend.calls("GET", "/product/all")[0]
        self.assertNotIn("Authorization", request.headers)
        self.assertEqual(request.headers["Content-Type"], "application/json")

    async def test_login_token_is_attached_and_persisted(self):
        self.backend.on(
            "POST", "/auth/login", (200, {"success": True, "token": "tok-1", "user": USER})
        )
        self.backend.on("GET", "/cart", (200, {"cartItems": []}))

        body = await self.gateway.login("jane@example.com", "pw")
        self.assertEqual(body["token"], "tok-1")
        self.assertEqual(self.gateway.token, "tok-1")
        self.assertEqual(await TokenStore().load(), "tok-1")

        await self.gateway.get_cart()
        request = self.backend.calls("GET", "/cart")[0]
        self.assertEqual(request.headers["Authorization"], "Bearer tok-1")

        login_req = self.backend.calls("POST", "/auth/login")[0]
        self.assertEqual(
            self.backend.body_of(login_req),
            {"email": "jane@example.com", "password": "pw"},
        )

    async def test_login_without_token_keeps_previous_state(self):
        self.backend.on(
            "POST", "/auth/login", (200, {"success": False, "message": "Invalid credentials"})
        )
        body = await self.gateway.login("jane@example.com", "bad")
        self.assertFalse(body["success"])
        self.assertIsNone(self.gateway.token)
        self.assertIsNone(await TokenStore().load())

    async def test_load_token_picks_up_persisted_token(self):
        await TokenStore().save("persisted")
        self.assertEqual(await self.gateway.load_token(), "persisted")

        self.backend.on("GET", "/auth/me", (200, {"user": USER}))
        user = await self.gateway.get_current_user()
        self.assertEqual(user.email, USER["email"])
        request = self.backend.calls("GET", "/auth/me")[0]
        self.assertEqual(request.headers["Authorization"], "Bearer persisted")

    async def test_logout_clears_token_on_success(self):
        await TokenStore().save("tok")
        await self.gateway.load_token()
        self.backend.on("GET", "/auth/logout", (200, {"success": True}))

        await self.gateway.logout()
        self.assertIsNone(self.gateway.token)
        self.assertIsNone(await TokenStore().load())
        request = self.backend.calls("GET", "/auth/logout")[0]
        self.assertEqual(request.headers["Authorization"], "Bearer tok")

    async def test_logout_clears_token_even_when_remote_fails(self):
        await TokenStore().save("tok")
        await self.gateway.load_token()
        self.backend.on("GET", "/auth/logout", (500, {"message": "boom"}))

        with self.assertRaises(ServerError):
            await self.gateway.logout()
        self.assertIsNone(self.gateway.token)
        self.assertIsNone(await TokenStore().load())

    async def test_logout_clears_token_on_transport_failure(self):
        await TokenStore().save("tok")
        await self.gateway.load_token()
        self.backend.on("GET", "/auth/logout", httpx.ConnectError("unreachable"))

        with self.assertRaises(TransportError):
            await self.gateway.logout()
        self.assertIsNone(self.gateway.token)


class GatewayErrorTestCase(BackendTestCase):
    async def test_unauthorized_maps_to_authentication_error(self):
        self.backend.on("GET", "/auth/me", (401, {"message": "Token expired"}))
        with self.assertRaises(AuthenticationError) as ctx:
            await self.gateway.get_current_user()
        self.assertEqual(ctx.exception.status, 401)
        self.assertEqual(ctx.exception.user_message, "Token expired")

    async def test_not_found(self):
        self.backend.on("GET", "/product/missing", (404, {"message": "Product not found"}))
        with self.assertRaises(NotFoundError):
            await self.gateway.get_product("missing")

    async def test_business_rule_keeps_server_message(self):
        self.backend.on("POST", "/cart/add", (400, {"message": "Insufficient stock"}))
        with self.assertRaises(ValidationError) as ctx:
            await self.gateway.add_to_cart("p1", 99)
        self.assertEqual(ctx.exception.user_message, "Insufficient stock")

    async def test_validation_without_message_is_generic(self):
        self.backend.on("POST", "/cart/add", (422, {}))
        with self.assertRaises(ValidationError) as ctx:
            await self.gateway.add_to_cart("p1")
        self.assertEqual(ctx.exception.user_message, GENERIC_MESSAGE)

    async def test_server_error(self):
        self.backend.on("GET", "/order/all", (503, {"message": "down"}))
        with self.assertRaises(ServerError):
            await self.gateway.list_orders()

    async def test_network_failure_is_transport_error(self):
        self.backend.on("GET", "/product/all", httpx.ConnectTimeout("slow"))
        with self.assertRaises(TransportError) as ctx:
            await self.gateway.list_products()
        self.assertEqual(ctx.exception.user_message, GENERIC_MESSAGE)

    async def test_no_retry_on_failure(self):
        self.backend.on("GET", "/cart", (500, {}))
        with self.assertRaises(ServerError):
            await self.gateway.get_cart()
        self.assertEqual(len(self.backend.calls("GET", "/cart")), 1)


class GatewayEndpointsTestCase(BackendTestCase):
    async def test_list_and_get_products(self):
        self.backend.on(
            "GET",
            "/product/all",
            (200, {"products": [product_json("p1"), product_json("p2", "Pan", 40.0)]}),
        )
        self.backend.on("GET", "/product/p2", (200, product_json("p2", "Pan", 40.0)))

        products = await self.gateway.list_products()
        self.assertEqual([p.id for p in products], ["p1", "p2"])
        self.assertEqual(products[1].price, 40.0)

        product = await self.gateway.get_product("p2")
        self.assertEqual(product.name, "Pan")

    async def test_missing_envelope_key_gives_empty_list(self):
        self.backend.on("GET", "/product/all", (200, {}))
        self.assertEqual(await self.gateway.list_products(), [])

    async def test_cart_endpoints(self):
        self.backend.on("POST", "/cart/add", (200, {"success": True}))
        self.backend.on("GET", "/cart", (200, {"cartItems": [cart_item_json(quantity=3)]}))
        self.backend.on("DELETE", "/cart/c1", (200, {"success": True}))

        await self.gateway.add_to_cart("p1", 3)
        self.assertEqual(
            self.backend.body_of(self.backend.calls("POST", "/cart/add")[0]),
            {"productId": "p1", "quantity": 3},
        )

        items = await self.gateway.get_cart()
        self.assertEqual(items[0].quantity, 3)
        self.assertEqual(items[0].product.id, "p1")

        await self.gateway.remove_from_cart("c1")
        self.assertEqual(len(self.backend.calls("DELETE", "/cart/c1")), 1)

    async def test_create_order_payload(self):
        self.backend.on("POST", "/order/create-order", (200, {"success": True, "order": {"_id": "o1"}}))
        item = CartItem.from_json(cart_item_json(quantity=2))
        shipping = ShippingInfo(first_name="Jane", address="1 Main St", city="Dhaka")

        await self.gateway.create_order([item], 63.2, shipping, "card")
        body = self.backend.body_of(self.backend.calls("POST", "/order/create-order")[0])
        self.assertEqual(body["products"], [{"product": "p1", "quantity": 2, "price": 25.0}])
        self.assertEqual(body["totalAmount"], 63.2)
        self.assertEqual(body["paymentMethod"], "card")
        self.assertEqual(body["shippingAddress"]["firstName"], "Jane")
        self.assertEqual(body["shippingAddress"]["country"], "Bangladesh")

    async def test_payment_payload(self):
        self.backend.on("POST", "/payment/init", (200, {"success": True}))
        await self.gateway.initialize_payment("o1", 53.2, "paypal")
        body = self.backend.body_of(self.backend.calls("POST", "/payment/init")[0])
        self.assertEqual(
            body,
            {"orderId": "o1", "amount": 53.2, "currency": "USD", "paymentMethod": "paypal"},
        )

    async def test_admin_endpoints(self):
        self.backend.on("POST", "/product/create", (201, {"success": True}))
        self.backend.on("PUT", "/product/p1", (200, {"success": True}))
        self.backend.on("DELETE", "/product/p1", (200, {"success": True}))
        self.backend.on("PUT", "/order/o1/status", (200, {"success": True}))

        draft = ProductDraft(name="Kettle", price=30.0, category="Kitchen", stock=4)
        await self.gateway.add_product(draft)
        await self.gateway.update_product("p1", draft)
        await self.gateway.delete_product("p1")
        await self.gateway.update_order_status("o1", OrderStatus.SHIPPED)

        created = self.backend.body_of(self.backend.calls("POST", "/product/create")[0])
        self.assertEqual(created["name"], "Kettle")
        self.assertEqual(created["stock"], 4)
        status = self.backend.body_of(self.backend.calls("PUT", "/order/o1/status")[0])
        self.assertEqual(status, {"status": "shipped"})

    async def test_orders(self):
        order = {
            "_id": "o1",
            "user": "u1",
            "products": [{"product": product_json(), "quantity": 2}],
            "totalAmount": 64.8,
            "status": "confirmed",
            "createdAt": "2024-06-01T12:00:00Z",
        }
        self.backend.on("GET", "/order/all", (200, {"orders": [order]}))
        self.backend.on("GET", "/order/o1", (200, {"order": order}))

        orders = await self.gateway.list_orders()
        self.assertEqual(orders[0].status, OrderStatus.CONFIRMED)
        self.assertEqual(orders[0].lines[0].quantity, 2)

        detail = await self.gateway.get_order("o1")
        self.assertEqual(detail.total_amount, 64.8)


if __name__ == "__main__":
    unittest.main()
