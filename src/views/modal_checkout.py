from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, MarkdownViewer, RadioButton, RadioSet

from db.models import ShippingInfo
from stores.cart import PAYMENT_METHODS
from utils.pure import checkout_summary, generate_markdown_table, money
from views.modal_dialog import DialogModal

# (input id suffix, label, ShippingInfo field)
SHIPPING_FIELDS = [
    ("first-name", "First Name", "first_name"),
    ("last-name", "Last Name", "last_name"),
    ("email", "Email", "email"),
    ("phone", "Phone", "phone"),
    ("address", "Address", "address"),
    ("city", "City", "city"),
    ("zip", "ZIP Code", "zip_code"),
    ("country", "Country", "country"),
]


class CheckoutModal(ModalScreen[str]):
    """
    Order summary, shipping form and payment method.
    Dismisses with the new order id, or "" when nothing was ordered.
    """

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-checkout"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with VerticalScroll(id="div-shipping"):
                for suffix, label, _ in SHIPPING_FIELDS:
                    yield Label(label)
                    yield Input(id=f"input-ship-{suffix}")
                yield Label("Payment Method")
                with RadioSet(id="radio-payment"):
                    for i, (key, label) in enumerate(PAYMENT_METHODS.items()):
                        yield RadioButton(label, value=i == 0, name=key)
                with Horizontal():
                    yield Button("Go Back", id="btn-quit")
                    yield Button("Place Order", id="btn-submit", variant="primary")

    async def on_mount(self):
        user = self.app.state.session.user
        first, _, last = (user.name if user else "").partition(" ")
        prefill = {
            "first-name": first,
            "last-name": last,
            "email": user.email if user else "",
            "country": ShippingInfo().country,
        }
        for suffix, value in prefill.items():
            self.query_one(f"#input-ship-{suffix}", Input).value = value

        await self.render_summary()
        self.query_one("#input-ship-phone").focus()

    async def render_summary(self) -> None:
        cart = self.app.state.cart
        summary = checkout_summary(cart.total_amount())
        rows = [
            [item.product.name, money(item.product.price), item.quantity, money(item.line_total)]
            for item in cart.items
        ]
        md = (
            "### Order Summary\n\n"
            + generate_markdown_table(
                ["Product", "Unit Price", "Qty", "Total"], rows, ["l", "r", "c", "r"]
            )
            + f"\n\nSubtotal: {money(summary.subtotal)}  \n"
            + "Shipping: "
            + ("Free" if summary.shipping == 0 else money(summary.shipping))
            + f"  \nTax (8%): {money(summary.tax)}  \n"
            + f"\n**Total: {money(summary.total)}**"
        )
        await self.query_one(MarkdownViewer).document.update(md)

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss("")

    def shipping_info(self) -> ShippingInfo:
        values = {
            field: self.query_one(f"#input-ship-{suffix}", Input).value.strip()
            for suffix, _, field in SHIPPING_FIELDS
        }
        return ShippingInfo(**values)

    def payment_method(self) -> str:
        pressed = self.query_one("#radio-payment", RadioSet).pressed_button
        return pressed.name if pressed else "card"

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        shipping = self.shipping_info()
        missing = set(shipping.missing_fields())
        for suffix, _, field in SHIPPING_FIELDS:
            self.query_one(f"#input-ship-{suffix}", Input).set_class(
                field in missing, "-invalid"
            )
        if missing:
            self.notify("Please fill in all shipping fields.", severity="error")
            return

        if not await self.app.push_screen_wait(
            DialogModal(
                "Place order? This cannot be undone.",
                primary_text="Yes",
                secondary_text="No",
                tone="positive",
            )
        ):
            return

        self.query_one("#btn-submit", Button).disabled = True
        order_id = await self.app.state.cart.checkout(shipping, self.payment_method())
        if order_id:
            self.dismiss(order_id)
        else:
            self.query_one("#btn-submit", Button).disabled = False

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss("")
