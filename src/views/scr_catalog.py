from typing import List

from textual import events, on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.events import ScreenResume
from textual.reactive import reactive
from textual.widgets import DataTable, Input, Label, Select

from db.models import Product
from gateway.errors import GatewayError
from utils.pure import SORT_OPTIONS, filter_products, list_categories, money, sort_products
from views.base_screen import BaseScreen
from views.modal_prod_detail import ProdDetailModal


class CatalogScreen(BaseScreen):
    """
    Product browsing: the whole catalog is fetched once, then searched,
    filtered by category and sorted locally.
    """

    # shown in the footer only
    BINDINGS = [
        Binding("enter", "noop", "View Product", show=True, key_display="⏎"),
    ]

    query_str = reactive("")
    category = reactive("all")
    sort_by = reactive("name")

    def __init__(self):
        super().__init__()
        self._products: List[Product] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-catalog-filters"):
            yield Input(id="input-search", placeholder="Search products...")
            yield Select(
                [("All Categories", "all")],
                value="all",
                allow_blank=False,
                id="select-category",
            )
            yield Select(
                [(label, key) for key, label in SORT_OPTIONS.items()],
                value="name",
                allow_blank=False,
                id="select-sort",
            )
        yield DataTable(id="table-products")
        yield Label("", id="label-result-cnt")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_column("ID", key="id")
        table.add_columns("Name", "Category", "Price", "Stock")

        self.query_one("#input-search").focus()
        self.load_products()

    @on(ScreenResume)
    def handle_reload(self) -> None:
        self.load_products()

    @work(exclusive=True, group="catalog")
    async def load_products(self) -> None:
        try:
            self._products = await self.app.state.gateway.list_products()
        except GatewayError as e:
            self.notify(e.user_message, title="Failed to load products", severity="error")
            self._products = []

        categories = list_categories(self._products)
        select = self.query_one("#select-category", Select)
        select.set_options(
            [("All Categories" if c == "all" else c, c) for c in categories]
        )
        select.value = self.category if self.category in categories else "all"
        self.render_products()

    @on(Input.Changed, "#input-search")
    def handle_search(self, message: Input.Changed) -> None:
        self.query_str = message.value

    @on(Select.Changed, "#select-category")
    def handle_category(self, message: Select.Changed) -> None:
        if message.value != Select.BLANK:
            self.category = str(message.value)

    @on(Select.Changed, "#select-sort")
    def handle_sort(self, message: Select.Changed) -> None:
        if message.value != Select.BLANK:
            self.sort_by = str(message.value)

    def watch_query_str(self) -> None:
        self.render_products()

    def watch_category(self) -> None:
        self.render_products()

    def watch_sort_by(self) -> None:
        self.render_products()

    def render_products(self) -> None:
        if not self.is_mounted:
            return
        shown = sort_products(
            filter_products(self._products, self.query_str, self.category),
            self.sort_by,
        )
        table = self.query_one(DataTable)
        table.clear()
        for p in shown:
            stock = str(p.stock) if p.stock > 0 else "Out of stock"
            table.add_row(p.id, p.name, p.category, money(p.price), stock)
        self.query_one("#label-result-cnt", Label).update(
            f"{len(shown)} of {len(self._products)} products"
        )

    async def on_key(self, event: events.Key) -> None:
        table = self.query_one(DataTable)
        if event.key == "enter" and self.focused == table and table.row_count:
            product_id = table.get_row_at(table.cursor_row)[0]
            self.open_detail(product_id)

    @work()
    async def open_detail(self, product_id: str) -> None:
        await self.app.push_screen_wait(ProdDetailModal(product_id))
