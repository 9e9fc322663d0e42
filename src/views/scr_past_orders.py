from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.reactive import reactive
from textual.widgets import Button, DataTable, Label, MarkdownViewer

from db.models import Order
from gateway.errors import GatewayError, NotFoundError
from utils.messages import NewOrderMessage
from utils.pure import describe_order, money, paginate, sort_orders_newest
from views.base_screen import BaseScreen

PAGE_SIZE = 5


class PastOrdersScreen(BaseScreen):
    """
    The user's orders, newest first, 5 per page, with the highlighted
    order's detail on top.
    """

    BINDINGS = [
        Binding("enter", "noop", "View Order Detail", show=True, key_display="⏎"),
    ]

    page_idx = reactive(1)
    page_cnt = reactive(1)

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []
        self._focus_order_id: Optional[str] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("<", id="btn-prev")
            yield Label("1 / 1", id="label-page")
            yield Button(">", id="btn-next")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order", "Date", "Status", "Items", "Total")
        self.load_orders()

    @on(Button.Pressed, "#btn-refresh")
    @on(ScreenResume)
    def handle_refresh(self):
        self.load_orders()

    @on(NewOrderMessage)
    def handle_new_order(self, message: NewOrderMessage):
        self._focus_order_id = message.order_id
        self.load_orders()

    @work(exclusive=True, group="orders")
    async def load_orders(self) -> None:
        if not self.app.state.session.authenticated:
            self._orders = []
        else:
            try:
                self._orders = sort_orders_newest(
                    await self.app.state.gateway.list_orders()
                )
            except GatewayError as e:
                self.notify(e.user_message, title="Failed to load orders", severity="error")
                self._orders = []

        if self._focus_order_id:
            ids = [o.id for o in self._orders]
            if self._focus_order_id in ids:
                self.page_idx = ids.index(self._focus_order_id) // PAGE_SIZE + 1
        self.render_page()

    def watch_page_idx(self) -> None:
        self.render_page()

    def render_page(self) -> None:
        if not self.is_mounted:
            return
        shown, self.page_cnt = paginate(self._orders, self.page_idx, PAGE_SIZE)

        table = self.query_one(DataTable)
        table.clear()
        for o in shown:
            placed = o.created_at.strftime("%Y-%m-%d") if o.created_at else "-"
            items = sum(line.quantity for line in o.lines)
            table.add_row(o.id, placed, o.status.label, items, money(o.total_amount))

        self.query_one("#label-page", Label).update(f"{self.page_idx} / {self.page_cnt}")
        self.query_one("#btn-prev", Button).disabled = self.page_idx <= 1
        self.query_one("#btn-next", Button).disabled = self.page_idx >= self.page_cnt

        if not shown:
            self.show_detail(None)
            return
        row = 0
        if self._focus_order_id in [o.id for o in shown]:
            row = [o.id for o in shown].index(self._focus_order_id)
            self._focus_order_id = None
        table.move_cursor(row=row)
        self.show_detail(shown[row].id)

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        table = self.query_one(DataTable)
        if table.row_count:
            self.show_detail(table.get_row_at(event.cursor_row)[0])

    @on(Button.Pressed, "#btn-prev")
    def handle_prev(self) -> None:
        if self.page_idx > 1:
            self.page_idx -= 1

    @on(Button.Pressed, "#btn-next")
    def handle_next(self) -> None:
        if self.page_idx < self.page_cnt:
            self.page_idx += 1

    @work(exclusive=True, group="order-detail")
    async def show_detail(self, order_id: Optional[str]) -> None:
        viewer = self.query_one("#md-order-detail", MarkdownViewer)
        if order_id is None:
            await viewer.document.update("### No orders yet.")
            return

        try:
            order = await self.app.state.gateway.get_order(order_id)
        except NotFoundError:
            await viewer.document.update(f"### Order #{order_id} not found")
            return
        except GatewayError:
            # fall back to the copy from the listing
            order = next((o for o in self._orders if o.id == order_id), None)
            if order is None:
                await viewer.document.update("### Order unavailable")
                return
        await viewer.document.update(describe_order(order))
