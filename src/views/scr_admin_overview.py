import asyncio

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.events import ScreenResume
from textual.widgets import MarkdownViewer

from gateway.errors import GatewayError
from utils.pure import (
    LOW_STOCK_LIMIT,
    admin_stats,
    generate_markdown_table,
    money,
    sort_orders_newest,
)
from views.base_screen import BaseScreen


class AdminOverviewScreen(BaseScreen):
    """
    Store totals, recent orders and products running low on stock.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-overview", show_table_of_contents=False)

    def on_mount(self) -> None:
        self.handle_reload()

    @on(ScreenResume)
    @work(exclusive=True)
    async def handle_reload(self) -> None:
        viewer = self.query_one("#md-overview", MarkdownViewer)
        if not self.app.state.session.is_admin:
            await viewer.document.update("### Access denied\n\nAdmins only.")
            return

        gateway = self.app.state.gateway
        try:
            products, orders = await asyncio.gather(
                gateway.list_products(), gateway.list_orders()
            )
        except GatewayError as e:
            self.notify(e.user_message, title="Failed to load admin data", severity="error")
            return

        stats = admin_stats(products, orders)
        recent = [
            [o.id, o.status.label, money(o.total_amount)]
            for o in sort_orders_newest(orders)[:5]
        ]
        low_stock = [
            [p.name, p.category or "-", p.stock]
            for p in sorted(products, key=lambda p: p.stock)
            if p.stock <= LOW_STOCK_LIMIT
        ]

        md = (
            "### Overview\n\n"
            f"- Total Products: {stats.total_products}\n"
            f"- Total Orders: {stats.total_orders}\n"
            f"- Total Revenue: {money(stats.total_revenue)}\n"
            f"- Low Stock Products: {stats.low_stock_products}\n\n"
            "#### Recent Orders\n\n"
            + (generate_markdown_table(["Order", "Status", "Total"], recent, ["l", "c", "r"]) or "None yet.")
            + f"\n\n#### Stock at or below {LOW_STOCK_LIMIT}\n\n"
            + (generate_markdown_table(["Product", "Category", "Stock"], low_stock, ["l", "l", "r"]) or "None.")
        )
        await viewer.document.update(md)
