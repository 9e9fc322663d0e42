"""Failures raised by the gateway client."""

from typing import Optional

GENERIC_MESSAGE = "Something went wrong. Please try again."


class GatewayError(Exception):
    """Base exception for every failed backend call."""

    default_message = GENERIC_MESSAGE

    def __init__(self, message: Optional[str] = None, status: Optional[int] = None):
        self.status = status
        self.server_message = message
        super().__init__(message or self.default_message)

    @property
    def user_message(self) -> str:
        """Server-provided text when there is one, a generic notice otherwise."""
        return self.server_message or self.default_message


class TransportError(GatewayError):
    """Network unreachable, timeout, or an unreadable response body."""

    @property
    def user_message(self) -> str:
        return GENERIC_MESSAGE


class AuthenticationError(GatewayError):
    """Invalid credentials or an expired/rejected token (401, 403)."""

    default_message = "Invalid credentials"


class NotFoundError(GatewayError):
    """The requested product or order does not exist (404)."""

    default_message = "Not found"


class ValidationError(GatewayError):
    """Business rule rejected by the backend, e.g. insufficient stock (other 4xx)."""


class ServerError(GatewayError):
    """The backend failed to handle the request (5xx)."""


def error_for_status(status: int, message: Optional[str] = None) -> GatewayError:
    if status in (401, 403):
        return AuthenticationError(message, status)
    if status == 404:
        return NotFoundError(message, status)
    if 400 <= status < 500:
        return ValidationError(message, status)
    return ServerError(message, status)
