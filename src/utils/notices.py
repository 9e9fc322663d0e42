from dataclasses import dataclass
from typing import Callable, Literal

from utils.logger import get_logger

_logger = get_logger(__name__)

Severity = Literal["information", "warning", "error"]


@dataclass(frozen=True)
class Notice:
    """
    A user-facing notification raised by a store operation.
    The app shows it as a toast; tests collect it.
    """

    title: str
    message: str = ""
    severity: Severity = "information"


Notifier = Callable[[Notice], None]


def log_notice(notice: Notice) -> None:
    """Fallback notifier when no UI is attached."""
    if notice.severity == "error":
        _logger.error(f"{notice.title}: {notice.message}")
    elif notice.severity == "warning":
        _logger.warning(f"{notice.title}: {notice.message}")
    else:
        _logger.info(f"{notice.title}: {notice.message}")
