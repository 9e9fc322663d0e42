from typing import Optional

import httpx
from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from stores.session import SessionPhase
from utils.config import Settings
from utils.logger import get_logger
from utils.messages import (
    CartChangedMessage,
    LoginRequestedMessage,
    QuitRequestedMessage,
    UserLoginMessage,
    UserLogoutMessage,
)
from utils.notices import Notice
from utils.state import AppState
from views.scr_admin_orders import AdminOrdersScreen
from views.scr_admin_overview import AdminOverviewScreen
from views.scr_admin_products import AdminProductsScreen
from views.scr_cart import CartScreen
from views.scr_catalog import CatalogScreen
from views.scr_login import LoginScreen
from views.scr_past_orders import PastOrdersScreen

_logger = get_logger(__name__)


class StorefrontApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "catalog": CatalogScreen,
        "cart": CartScreen,
        "orders": PastOrdersScreen,
        "admin_overview": AdminOverviewScreen,
        "admin_products": AdminProductsScreen,
        "admin_orders": AdminOrdersScreen,
    }

    GUEST_MODES = {"catalog": "Shop"}
    CUSTOMER_MODES = {
        "catalog": "Shop",
        "cart": "Cart",
        "orders": "My Orders",
    }
    ADMIN_MODES = {
        "admin_overview": "Admin Overview",
        "admin_products": "Manage Products",
        "admin_orders": "Manage Orders",
    }

    CSS_PATH = [
        "styles/index.tcss",
        "styles/login.tcss",
        "styles/catalog.tcss",
        "styles/cart.tcss",
        "styles/orders.tcss",
        "styles/admin.tcss",
    ]

    state: AppState

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__()
        self.state = AppState(settings, notify=self.show_notice, transport=transport)
        self.state.cart.subscribe(self.broadcast_cart_change)

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.main_flow()

    async def on_unmount(self) -> None:
        await self.state.close()

    def show_notice(self, notice: Notice) -> None:
        self.notify(notice.message, title=notice.title, severity=notice.severity)

    def broadcast_cart_change(self) -> None:
        # messages only bubble up, so hand it to whatever screen is showing
        self.screen.post_message(CartChangedMessage())

    def available_modes(self) -> dict:
        session = self.state.session
        if not session.authenticated:
            return dict(self.GUEST_MODES)
        if session.is_admin:
            return {**self.CUSTOMER_MODES, **self.ADMIN_MODES}
        return dict(self.CUSTOMER_MODES)

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        await self.state.session.logout()
        self.main_flow()

    @on(LoginRequestedMessage)
    def handle_login_requested(self):
        self.main_flow()

    @on(QuitRequestedMessage)
    def handle_quit(self):
        # the token stays persisted so the next start resumes the session
        self.exit()

    @work(exclusive=True, group="main-flow")
    async def main_flow(self):
        session = self.state.session
        if session.phase is SessionPhase.UNKNOWN:
            if await self.state.start():
                self.notify(f"Welcome back, {session.user.name}!")

        if not session.authenticated:
            await self.push_screen_wait(LoginScreen())

        if session.authenticated:
            self.screen.post_message(UserLoginMessage())
        await self.switch_mode("catalog")


if __name__ == "__main__":
    app = StorefrontApp()
    app.run()
