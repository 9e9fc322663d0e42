from __future__ import annotations

from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.validation import Number
from textual.widgets import Button, Input, Label, OptionList
from textual.widgets.option_list import Option

from db.models import Product, ProductDraft
from gateway.errors import GatewayError
from utils.pure import filter_admin_products, money
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal


class AdminProductsScreen(BaseScreen):
    """
    Admins search products by name or category, then edit, delete, or
    add new ones. Saving sends the whole product, replacing it server-side.
    """

    def __init__(self) -> None:
        super().__init__()
        self._products: List[Product] = []
        self.current: Optional[Product] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Input(id="input-search", placeholder="Search by name or category...")
            yield OptionList(id="optlist-prods")
            with Vertical(id="div-product-form"):
                yield Label("New product", id="label-form-title")
                yield Input(placeholder="Name", id="input-name")
                with Horizontal():
                    yield Input(
                        placeholder="Price ($)",
                        id="input-price",
                        type="number",
                        validators=[Number(minimum=0.0)],
                    )
                    yield Input(
                        placeholder="Stock",
                        id="input-stock",
                        type="integer",
                        validators=[Number(minimum=0)],
                    )
                    yield Input(placeholder="Category", id="input-category")
                yield Input(placeholder="Image URL", id="input-image")
                yield Input(placeholder="Description", id="input-description")
            with Horizontal(id="hort-controls"):
                yield Button("New", id="btn-new")
                yield Button("Delete", id="btn-delete", variant="error")
                yield Button("Save", id="btn-save", variant="success")

    def on_mount(self) -> None:
        self.query_one("#input-search", Input).focus()
        self.load_products()

    @on(ScreenResume)
    def handle_resume(self) -> None:
        self.load_products()

    @work(exclusive=True, group="admin-products")
    async def load_products(self) -> None:
        if not self.app.state.session.is_admin:
            self.notify("Admins only.", severity="error")
            return
        try:
            self._products = await self.app.state.gateway.list_products()
        except GatewayError as e:
            self.notify(e.user_message, title="Failed to load products", severity="error")
            return
        self.update_optlist(self.query_one("#input-search", Input).value)

    @on(Input.Changed, "#input-search")
    def handle_search(self, message: Input.Changed) -> None:
        self.update_optlist(message.value)

    def update_optlist(self, query: str) -> None:
        opt_list = self.query_one("#optlist-prods", OptionList)
        opt_list.clear_options()
        opt_list.add_options(
            [
                Option(f"{p.name}  [{p.category or '-'}]  {money(p.price)}  stock {p.stock}", id=p.id)
                for p in filter_admin_products(self._products, query)
            ]
        )

    @on(OptionList.OptionSelected)
    def handle_selected(self, message: OptionList.OptionSelected) -> None:
        self.current = next(
            (p for p in self._products if p.id == message.option.id), None
        )
        self.fill_form(self.current)

    def fill_form(self, product: Optional[Product]) -> None:
        draft = ProductDraft.from_product(product) if product else None
        self.query_one("#label-form-title", Label).update(
            f"Editing {product.name}" if product else "New product"
        )
        self.query_one("#input-name", Input).value = draft.name if draft else ""
        self.query_one("#input-price", Input).value = f"{draft.price:.2f}" if draft else ""
        self.query_one("#input-stock", Input).value = str(draft.stock) if draft else ""
        self.query_one("#input-category", Input).value = draft.category if draft else ""
        self.query_one("#input-image", Input).value = draft.image if draft else ""
        self.query_one("#input-description", Input).value = draft.description if draft else ""
        self.query_one("#btn-delete", Button).disabled = product is None

    def read_form(self) -> Optional[ProductDraft]:
        price_input = self.query_one("#input-price", Input)
        stock_input = self.query_one("#input-stock", Input)
        try:
            price = float(price_input.value)
        except ValueError:
            price_input.add_class("-invalid")
            price_input.focus()
            return None
        try:
            stock = int(stock_input.value)
        except ValueError:
            stock_input.add_class("-invalid")
            stock_input.focus()
            return None

        draft = ProductDraft(
            name=self.query_one("#input-name", Input).value.strip(),
            price=price,
            stock=stock,
            category=self.query_one("#input-category", Input).value.strip(),
            image=self.query_one("#input-image", Input).value.strip(),
            description=self.query_one("#input-description", Input).value.strip(),
        )
        problems = draft.problems()
        if problems:
            self.notify(" ".join(problems), severity="error")
            return None
        return draft

    @on(Button.Pressed, "#btn-new")
    def handle_new(self) -> None:
        self.current = None
        self.fill_form(None)
        self.query_one("#input-name", Input).focus()

    @on(Button.Pressed, "#btn-save")
    @work(exclusive=True)
    async def handle_save(self) -> None:
        draft = self.read_form()
        if draft is None:
            return
        if self.current and draft == ProductDraft.from_product(self.current):
            self.notify("Nothing to update.", severity="warning")
            return

        gateway = self.app.state.gateway
        try:
            if self.current:
                await gateway.update_product(self.current.id, draft)
                self.notify("Product updated successfully", title="Success")
            else:
                await gateway.add_product(draft)
                self.notify("Product added successfully", title="Success")
        except GatewayError as e:
            self.notify(e.user_message, title="Failed to save product", severity="error")
            return

        self.current = None
        self.fill_form(None)
        self.load_products()

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True)
    async def handle_delete(self) -> None:
        if not self.current:
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Delete {self.current.name}? This cannot be undone.",
                primary_text="Delete",
                secondary_text="Cancel",
                tone="error",
            )
        ):
            return

        try:
            await self.app.state.gateway.delete_product(self.current.id)
        except GatewayError as e:
            self.notify(e.user_message, title="Failed to delete product", severity="error")
            return

        self.notify("Product deleted successfully", title="Success")
        self.current = None
        self.fill_form(None)
        self.load_products()
