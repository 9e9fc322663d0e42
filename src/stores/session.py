from __future__ import annotations

from enum import Enum
from typing import Awaitable, Callable, List, Optional

from db.models import User
from gateway.client import GatewayClient
from gateway.errors import AuthenticationError, GatewayError, ValidationError
from utils.logger import get_logger
from utils.notices import Notice, Notifier, log_notice

_logger = get_logger(__name__)

SessionListener = Callable[[bool], Awaitable[None]]


class SessionPhase(Enum):
    UNKNOWN = "unknown"
    CHECKING = "checking"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


class SessionStore:
    """
    Owns who is logged in.

    UNKNOWN -> CHECKING -> AUTHENTICATED | ANONYMOUS on startup, then
    login() / logout() move between AUTHENTICATED and ANONYMOUS. Every
    transition is published to subscribers with the new authenticated flag.
    """

    def __init__(self, gateway: GatewayClient, notify: Optional[Notifier] = None):
        self._gateway = gateway
        self._notify = notify or log_notice
        self._listeners: List[SessionListener] = []

        self.phase = SessionPhase.UNKNOWN
        self.user: Optional[User] = None
        self.last_error: Optional[str] = None

    @property
    def authenticated(self) -> bool:
        return self.phase is SessionPhase.AUTHENTICATED and self.user is not None

    @property
    def is_admin(self) -> bool:
        return self.authenticated and self.user.is_admin

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register for transitions; returns a callable that unsubscribes."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    async def _publish(self) -> None:
        for listener in list(self._listeners):
            await listener(self.authenticated)

    async def _become_authenticated(self, user: User) -> None:
        self.user = user
        self.phase = SessionPhase.AUTHENTICATED
        _logger.info(f"Session authenticated for {user.email}")
        await self._publish()

    async def _become_anonymous(self) -> None:
        self.user = None
        self.phase = SessionPhase.ANONYMOUS
        await self._publish()

    async def check(self) -> bool:
        """
        Validate a token persisted by an earlier run against /auth/me.
        A token that fails validation is discarded.
        """
        self.phase = SessionPhase.CHECKING
        token = await self._gateway.load_token()
        if not token:
            await self._become_anonymous()
            return False

        try:
            user = await self._gateway.get_current_user()
        except GatewayError as e:
            _logger.warning(f"Stored token rejected ({e!r}), clearing it.")
            await self._gateway.clear_token()
            await self._become_anonymous()
            return False

        await self._become_authenticated(user)
        return True

    async def login(self, email: str, password: str) -> bool:
        """
        True on success. On failure the session stays anonymous, the reason is
        kept in last_error and shown as a notice.
        """
        self.last_error = None
        try:
            body = await self._gateway.login(email, password)
        except (AuthenticationError, ValidationError) as e:
            return self._login_failed("Login failed", e.user_message)
        except GatewayError as e:
            _logger.error(f"Login error: {e!r}")
            return self._login_failed("Login error", e.user_message)

        if not body.get("success"):
            if body.get("token"):
                await self._gateway.clear_token()
            return self._login_failed(
                "Login failed", body.get("message") or "Invalid credentials"
            )

        if body.get("user"):
            user = User.from_json(body["user"])
        else:
            try:
                user = await self._gateway.get_current_user()
            except GatewayError as e:
                _logger.error(f"Login succeeded but /auth/me failed: {e!r}")
                await self._gateway.clear_token()
                return self._login_failed("Login error", e.user_message)

        await self._become_authenticated(user)
        self._notify(Notice("Login successful", "Welcome back!"))
        return True

    def _login_failed(self, title: str, reason: str) -> bool:
        self.last_error = reason
        self._notify(Notice(title, reason, "error"))
        return False

    async def register(self, name: str, email: str, password: str) -> bool:
        """Create an account; the user still has to log in afterwards."""
        self.last_error = None
        try:
            body = await self._gateway.register(name, email, password)
        except GatewayError as e:
            self.last_error = e.user_message
            self._notify(Notice("Registration failed", e.user_message, "error"))
            return False

        if not body.get("success"):
            self.last_error = body.get("message") or "Registration failed"
            self._notify(Notice("Registration failed", self.last_error, "error"))
            return False

        self._notify(
            Notice("Registration successful", "Please log in with your credentials")
        )
        return True

    async def logout(self) -> None:
        """Always ends anonymous, whatever the remote logout call does."""
        try:
            await self._gateway.logout()
        except GatewayError as e:
            _logger.error(f"Logout error: {e!r}")
        finally:
            await self._become_anonymous()
        self._notify(Notice("Logged out", "You have been successfully logged out"))
