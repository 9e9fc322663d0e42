from typing import Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label, MarkdownViewer

from db.models import CartItem, Product
from gateway.errors import GatewayError, NotFoundError
from utils.pure import generate_markdown_table, money


class ProdDetailModal(ModalScreen[bool]):
    """
    Product detail plus the add-to-cart form.
    Dismisses True if the cart changed.
    """

    order_qty = reactive(1)

    def __init__(self, product_id: str) -> None:
        super().__init__()

        self._product_id = product_id
        self._prod: Optional[Product] = None
        self._existing_cart_item: Optional[CartItem] = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-prod-detail"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Vertical():
                yield Label("Quantity")
                with Horizontal():
                    yield Button("-", id="btn-sub-qty")
                    yield Input(value="1", id="input-order-qty", type="integer")
                    yield Button("+", id="btn-add-qty")
                with Horizontal():
                    yield Button("Go Back", id="btn-quit")
                    yield Button("Add to Cart", id="btn-addcart", variant="primary")

    async def on_mount(self):
        viewer = self.query_one(MarkdownViewer)
        order_btn = self.query_one("#btn-addcart", Button)
        try:
            self._prod = await self.app.state.gateway.get_product(self._product_id)
        except NotFoundError:
            await viewer.document.update("### Product not found")
            order_btn.disabled = True
            return
        except GatewayError as e:
            self.notify(e.user_message, title="Failed to load product", severity="error")
            await viewer.document.update("### Product unavailable")
            order_btn.disabled = True
            return

        prod = self._prod
        rows = [
            ["Price", money(prod.price)],
            ["Category", prod.category or "-"],
            ["In stock", prod.stock],
            ["Image", prod.image or "-"],
        ]
        md = (
            f"### {prod.name}\n\n"
            f"{prod.description}\n\n"
            + generate_markdown_table(["Attribute", "Value"], rows, ["l", "l"])
        )
        await viewer.document.update(md)

        if prod.stock < 1:
            order_btn.label = "Out of Stock"
            order_btn.disabled = True
            order_btn.variant = "warning"

        self.query_one("#input-order-qty").validators = [
            Number(minimum=1, maximum=max(prod.stock, 1))
        ]

        self._existing_cart_item = self.app.state.cart.find_by_product(prod.id)
        if self._existing_cart_item:
            self.order_qty = self._existing_cart_item.quantity
            order_btn.label = "Update Cart"

        self.query_one("#input-order-qty").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    async def on_input_changed(self, message: Input.Changed) -> None:
        if (
            message.input.id == "input-order-qty"
            and message.input.is_valid
            and self.focused == message.input
        ):
            self.order_qty = int(message.value)

    def validate_order_qty(self, qty: int) -> int:
        upper = self._prod.stock if self._prod and self._prod.stock > 0 else 1
        return max(1, min(qty, upper))

    def watch_order_qty(self, qty: int):
        upper = self._prod.stock if self._prod else 1
        self.query_one("#btn-sub-qty").disabled = qty <= 1
        self.query_one("#btn-add-qty").disabled = qty >= upper
        self.query_one("#input-order-qty", Input).value = str(qty)

    @on(Button.Pressed, "#btn-add-qty")
    def handle_add_qty(self):
        self.order_qty += 1

    @on(Button.Pressed, "#btn-sub-qty")
    def handle_sub_qty(self):
        self.order_qty -= 1

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)

    @on(Button.Pressed, "#btn-addcart")
    @work(exclusive=True)
    async def handle_addcart(self):
        cart = self.app.state.cart
        if self._existing_cart_item:
            changed = await cart.update_quantity(
                self._existing_cart_item.id, self.order_qty
            )
        else:
            changed = await cart.add_to_cart(self._prod.id, self.order_qty)

        if changed or self.app.state.session.authenticated:
            self.dismiss(changed)
