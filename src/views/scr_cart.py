from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, HorizontalGroup, VerticalScroll
from textual.events import ScreenResume
from textual.message import Message
from textual.widgets import Button, Label, Rule

from db.models import CartItem
from utils.messages import CartChangedMessage, NewOrderMessage
from utils.pure import money
from views.base_screen import BaseScreen
from views.modal_checkout import CheckoutModal
from views.modal_dialog import DialogModal


class CartItemActionMessage(Message):
    bubble = True

    def __init__(self, action: str) -> None:
        super().__init__()
        self.action = action


class CartItemActionLabel(Label):
    def action_decrement(self):
        self.post_message(CartItemActionMessage("decrement"))

    def action_increment(self):
        self.post_message(CartItemActionMessage("increment"))

    def action_remove(self):
        self.post_message(CartItemActionMessage("remove"))


class CartItemWidget(HorizontalGroup):
    def __init__(self, item: CartItem):
        super().__init__()
        self.item = item

    def compose(self):
        with Container(id="div-cart-item-group"):
            with Container(id="div-item"):
                yield Label(self.item.product.name, id="label-item-name")
                yield Label(f"x{self.item.quantity}", id="label-item-qty")
                yield Label(money(self.item.line_total), id="label-item-price")
            with Container(id="div-actions"):
                yield CartItemActionLabel("[@click=decrement()]-1[/]", id="link-item-dec")
                if self.at_stock_limit:
                    yield Label("+1", id="link-item-inc", classes="-disabled")
                else:
                    yield CartItemActionLabel("[@click=increment()]+1[/]", id="link-item-inc")
                yield CartItemActionLabel("[@click=remove()]Remove[/]", id="link-item-remove")

    @property
    def at_stock_limit(self) -> bool:
        return self.item.quantity >= self.item.product.stock

    @on(CartItemActionMessage)
    @work()
    async def handle_item_action(self, message: CartItemActionMessage):
        cart = self.app.state.cart
        if message.action == "increment":
            if self.at_stock_limit:
                self.notify(
                    f"Only {self.item.product.stock} in stock.", severity="warning"
                )
                return
            await cart.update_quantity(self.item.id, self.item.quantity + 1)
        elif message.action == "decrement":
            if self.item.quantity > 1:
                await cart.update_quantity(self.item.id, self.item.quantity - 1)
            elif await self._confirm_remove():
                await cart.update_quantity(self.item.id, 0)
        elif message.action == "remove" and await self._confirm_remove():
            await cart.remove_from_cart(self.item.id)

    async def _confirm_remove(self) -> bool:
        return await self.app.push_screen_wait(
            DialogModal(
                "Do you really want to remove this item from cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        )


class CartScreen(BaseScreen):
    """
    Cart lines with quantity controls, totals and checkout.
    Renders straight from the cart store; it never keeps its own copy.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("Total: $0.00", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    async def on_mount(self):
        self.render_cart()

    @on(ScreenResume)
    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True, group="cart-refresh")
    async def handle_refresh(self):
        await self.app.state.cart.refresh()
        self.render_cart()

    @on(CartChangedMessage)
    def handle_cart_change(self):
        self.render_cart()

    @work(exclusive=True, group="cart-render")
    async def render_cart(self):
        cart = self.app.state.cart
        content = self.query_one("#vertscroll-content")

        await content.remove_children()
        await content.mount_all([CartItemWidget(item) for item in cart.items])
        content.set_class(not cart.items, "no-items")

        self.query_one("#label-cart-total", Label).update(
            f"Total: {money(cart.total_amount())} ({cart.total_items()} items)"
        )

    @on(Button.Pressed, "#btn-checkout")
    @work()
    async def handle_checkout(self) -> None:
        if not self.app.state.cart.items:
            self.app.notify("Cart is empty.", severity="warning")
            return

        order_id = await self.app.push_screen_wait(CheckoutModal())
        if not order_id:
            return

        await self.app.switch_mode("orders")
        self.app.screen.post_message(NewOrderMessage(order_id))
