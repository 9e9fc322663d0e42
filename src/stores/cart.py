from __future__ import annotations

from typing import Callable, List, Optional

from db.models import CartItem, ShippingInfo
from gateway.client import GatewayClient
from gateway.errors import GENERIC_MESSAGE, GatewayError, ServerError, TransportError
from stores.session import SessionStore
from utils.logger import get_logger
from utils.notices import Notice, Notifier, log_notice
from utils.pure import checkout_summary

_logger = get_logger(__name__)

CartListener = Callable[[], None]

PAYMENT_METHODS = {
    "card": "Credit / Debit Card",
    "paypal": "PayPal",
    "cod": "Cash on Delivery",
}

# one retry of the re-add half of update_quantity, for transient failures only
READD_ATTEMPTS = 2
RETRYABLE_ERRORS = (TransportError, ServerError)


class CartStore:
    """
    The current session's cart lines.

    Every mutation goes to the backend and is followed by a full refetch; the
    list is only ever replaced whole. Totals are folded from the list on
    demand. Follows the session: refetch on login, empty on logout.
    """

    def __init__(
        self,
        gateway: GatewayClient,
        session: SessionStore,
        notify: Optional[Notifier] = None,
    ) -> None:
        self._gateway = gateway
        self._session = session
        self._notify = notify or log_notice
        self._listeners: List[CartListener] = []

        self.items: List[CartItem] = []
        # bumped on clear(); fetches started before a clear are discarded
        self._epoch = 0

        session.subscribe(self._on_session_change)

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener()

    async def _on_session_change(self, authenticated: bool) -> None:
        if authenticated:
            await self.refresh()
        else:
            self.clear()

    def find(self, item_id: str) -> Optional[CartItem]:
        return next((i for i in self.items if i.id == item_id), None)

    def find_by_product(self, product_id: str) -> Optional[CartItem]:
        return next((i for i in self.items if i.product.id == product_id), None)

    def total_amount(self) -> float:
        return sum(item.product.price * item.quantity for item in self.items)

    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    def clear(self) -> None:
        """Drop local lines only; the backend cart is untouched."""
        self._epoch += 1
        self.items = []
        self._changed()

    async def refresh(self) -> bool:
        """
        Replace the lines with the backend's cart. When several refreshes
        overlap, whichever response lands last wins.
        """
        if not self._session.authenticated:
            return False

        epoch = self._epoch
        try:
            items = await self._gateway.get_cart()
        except GatewayError as e:
            _logger.error(f"Failed to fetch cart: {e!r}")
            self._notify(Notice("Error", "Failed to load cart items", "error"))
            return False

        if epoch != self._epoch or not self._session.authenticated:
            _logger.debug("Discarding cart response from an ended session.")
            return False

        self.items = items
        self._changed()
        return True

    def _require_login(self) -> bool:
        if self._session.authenticated:
            return True
        self._notify(
            Notice("Login required", "Please log in to add items to cart", "warning")
        )
        return False

    async def add_to_cart(self, product_id: str, quantity: int = 1) -> bool:
        if not self._require_login():
            return False

        try:
            await self._gateway.add_to_cart(product_id, quantity)
        except GatewayError as e:
            _logger.error(f"Failed to add {product_id} to cart: {e!r}")
            self._notify(
                Notice("Error", e.server_message or "Failed to add item to cart", "error")
            )
            return False

        await self.refresh()
        self._notify(Notice("Added to cart", "Item has been added to your cart"))
        return True

    async def remove_from_cart(self, item_id: str) -> bool:
        if not self._require_login():
            return False

        try:
            await self._gateway.remove_from_cart(item_id)
        except GatewayError as e:
            _logger.error(f"Failed to remove {item_id} from cart: {e!r}")
            self._notify(
                Notice("Error", e.server_message or "Failed to remove item from cart", "error")
            )
            return False

        await self.refresh()
        self._notify(Notice("Item removed", "Item has been removed from your cart"))
        return True

    async def update_quantity(self, item_id: str, quantity: int) -> bool:
        """
        Set a line's quantity. The backend has no update endpoint, so this is a
        remove followed by a re-add at the new quantity. A transient re-add
        failure is retried once; if the re-add still fails the line is put back
        at its old quantity and the failure is surfaced.
        """
        if quantity <= 0:
            return await self.remove_from_cart(item_id)
        if not self._require_login():
            return False

        item = self.find(item_id)
        if item is None:
            _logger.warning(f"update_quantity: {item_id} is not in the cart")
            self._notify(Notice("Cart out of date", "Please refresh your cart.", "warning"))
            return False
        if item.quantity == quantity:
            return True

        try:
            await self._gateway.remove_from_cart(item_id)
        except GatewayError as e:
            _logger.error(f"Failed to update quantity of {item_id}: {e!r}")
            self._notify(Notice("Error", e.server_message or GENERIC_MESSAGE, "error"))
            return False

        try:
            await self._readd(item.product.id, quantity)
        except GatewayError as e:
            _logger.warning(
                f"Re-adding {item.product.id} with quantity {quantity} failed: {e!r}"
            )
            await self._restore(item)
            self._notify(Notice("Error", e.user_message, "error"))
            await self.refresh()
            return False

        await self.refresh()
        return True

    async def _readd(self, product_id: str, quantity: int) -> None:
        for attempt in range(1, READD_ATTEMPTS + 1):
            try:
                await self._gateway.add_to_cart(product_id, quantity)
                return
            except RETRYABLE_ERRORS as e:
                if attempt == READD_ATTEMPTS:
                    raise
                _logger.warning(f"Re-adding {product_id} failed ({e!r}), retrying.")

    async def _restore(self, item: CartItem) -> bool:
        """Put a removed line back at its previous quantity."""
        try:
            await self._gateway.add_to_cart(item.product.id, item.quantity)
            return True
        except GatewayError as e:
            _logger.error(
                f"{item.product.id} was removed from the cart and could not be "
                f"restored with quantity {item.quantity}: {e!r}"
            )
            return False

    async def checkout(self, shipping: ShippingInfo, payment_method: str) -> Optional[str]:
        """
        Create the order from the current lines and start payment.
        Returns the new order id, or None when checkout did not go through.
        """
        if not self._session.authenticated or not self.items:
            self._notify(Notice("Nothing to check out", "Your cart is empty.", "warning"))
            return None

        missing = shipping.missing_fields()
        if missing:
            self._notify(
                Notice(
                    "Missing information",
                    "Please fill in: " + ", ".join(m.replace("_", " ") for m in missing),
                    "error",
                )
            )
            return None
        if payment_method not in PAYMENT_METHODS:
            self._notify(Notice("Invalid payment method", payment_method, "error"))
            return None

        summary = checkout_summary(self.total_amount())
        try:
            order_resp = await self._gateway.create_order(
                self.items, summary.total, shipping, payment_method
            )
            order_id = (order_resp.get("order") or {}).get("_id")
            if not order_resp.get("success") or not order_id:
                _logger.error(f"Order creation failed: {order_resp.get('message')}")
                self._notify(Notice("Checkout failed", GENERIC_MESSAGE, "error"))
                return None

            pay_resp = await self._gateway.initialize_payment(
                order_id, summary.total, payment_method
            )
            if not pay_resp.get("success"):
                _logger.error(f"Payment initialization failed for order {order_id}")
                self._notify(Notice("Checkout failed", GENERIC_MESSAGE, "error"))
                return None
        except GatewayError as e:
            _logger.error(f"Checkout error: {e!r}")
            self._notify(Notice("Checkout failed", GENERIC_MESSAGE, "error"))
            return None

        self.clear()
        self._notify(
            Notice(
                "Order placed successfully!",
                "You will receive a confirmation email shortly.",
            )
        )
        return order_id
