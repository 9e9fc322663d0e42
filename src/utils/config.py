import os
from dataclasses import dataclass

DEFAULT_API_URL = "https://e-commarce-3rq4.onrender.com"
DEFAULT_DB_PATH = "data/storefront.sqlite"
DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings, read from the environment once at startup.

    Fields:
      - api_url: backend origin, without the /api/v1 prefix
      - db_path: sqlite file holding the persisted auth token
      - timeout: per-request transport timeout in seconds
    """

    api_url: str = DEFAULT_API_URL
    db_path: str = DEFAULT_DB_PATH
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls) -> "Settings":
        try:
            timeout = float(os.getenv("STOREFRONT_TIMEOUT", DEFAULT_TIMEOUT))
        except ValueError:
            timeout = DEFAULT_TIMEOUT
        return cls(
            api_url=os.getenv("STOREFRONT_API_URL", DEFAULT_API_URL).rstrip("/"),
            db_path=os.getenv("STOREFRONT_DB_PATH", DEFAULT_DB_PATH),
            timeout=timeout,
        )
