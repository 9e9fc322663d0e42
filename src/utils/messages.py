"""
Textual messages exchanged between the app and its screens.

Messages only bubble upwards; anything the app wants a screen to hear is
posted to app.screen directly.
"""

from textual.message import Message


class QuitRequestedMessage(Message):
    """The user confirmed quitting."""

    bubble = True


class LoginRequestedMessage(Message):
    """A guest pressed "Log in" in the sidebar."""

    bubble = True


class UserLogoutMessage(Message):
    """The user confirmed logging out; the app ends the session."""

    bubble = True


class UserLoginMessage(Message):
    """Session became authenticated; sidebars re-render account info."""

    bubble = True


class CartChangedMessage(Message):
    """The cart store replaced its lines (refetch, clear, checkout)."""

    bubble = True


class NewOrderMessage(Message):
    """Checkout placed an order; the orders screen highlights it."""

    bubble = True

    def __init__(self, order_id: str) -> None:
        super().__init__()
        self.order_id = order_id
