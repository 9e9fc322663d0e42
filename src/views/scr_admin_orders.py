from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, MarkdownViewer, Select

from db.models import Order, OrderStatus
from gateway.errors import GatewayError
from utils.pure import describe_order, money, sort_orders_newest
from views.base_screen import BaseScreen


class AdminOrdersScreen(BaseScreen):
    """
    All orders; status is the only thing an admin changes on an order.
    """

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []
        self._selected: Optional[Order] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield DataTable(id="table-admin-orders")
            yield MarkdownViewer(id="md-admin-order", show_table_of_contents=False)
            with Horizontal(id="hort-controls"):
                yield Select(
                    [(s.label, s.value) for s in OrderStatus],
                    prompt="Status",
                    id="select-status",
                )
                yield Button("Update Status", id="btn-update", variant="success")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order", "Customer", "Status", "Total")
        self.load_orders()

    @on(ScreenResume)
    def handle_reload(self) -> None:
        self.load_orders()

    @work(exclusive=True, group="admin-orders")
    async def load_orders(self) -> None:
        if not self.app.state.session.is_admin:
            self.notify("Admins only.", severity="error")
            return
        try:
            self._orders = sort_orders_newest(await self.app.state.gateway.list_orders())
        except GatewayError as e:
            self.notify(e.user_message, title="Failed to load orders", severity="error")
            return

        table = self.query_one(DataTable)
        table.clear()
        for o in self._orders:
            table.add_row(o.id, o.user_id, o.status.label, money(o.total_amount), key=o.id)

        if self._selected:
            self._selected = next((o for o in self._orders if o.id == self._selected.id), None)
        await self.render_selected()

    @on(DataTable.RowHighlighted)
    async def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        key = event.row_key.value if event.row_key else None
        self._selected = next((o for o in self._orders if o.id == key), None)
        await self.render_selected()

    async def render_selected(self) -> None:
        viewer = self.query_one("#md-admin-order", MarkdownViewer)
        if not self._selected:
            await viewer.document.update("### Select an order.")
            return
        current = self._selected.status
        select = self.query_one("#select-status", Select)
        select.set_options(
            (s.label, s.value)
            for s in OrderStatus
            if s is current or current.can_change_to(s)
        )
        select.value = current.value
        self.query_one("#btn-update", Button).disabled = current.is_final
        await viewer.document.update(describe_order(self._selected))

    @on(Button.Pressed, "#btn-update")
    @work(exclusive=True)
    async def handle_update(self) -> None:
        if not self._selected:
            self.notify("Select an order first.", severity="warning")
            return
        value = self.query_one("#select-status", Select).value
        if value == Select.BLANK or value == self._selected.status.value:
            self.notify("Nothing to update.", severity="warning")
            return
        status = OrderStatus(value)
        if not self._selected.status.can_change_to(status):
            self.notify(
                f"A {self._selected.status.label.lower()} order cannot become {value}.",
                severity="error",
            )
            return

        try:
            await self.app.state.gateway.update_order_status(self._selected.id, status)
        except GatewayError as e:
            self.notify(e.user_message, title="Failed to update order status", severity="error")
            return

        self.notify("Order status updated successfully", title="Success")
        self.load_orders()
