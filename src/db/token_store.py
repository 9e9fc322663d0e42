from __future__ import annotations

from typing import Optional

from db.database import connect

TOKEN_KEY = "authToken"


class TokenStore:
    """
    Durable home of the bearer token, keyed under a fixed storage key so it
    survives restarts. Only the gateway client writes to it.
    """

    def __init__(self, key: str = TOKEN_KEY) -> None:
        self.key = key

    async def load(self) -> Optional[str]:
        async with connect() as conn:
            cur = await conn.execute(
                "SELECT value FROM storage WHERE key = ?;", (self.key,)
            )
            row = await cur.fetchone()
            await cur.close()
        return row[0] if row else None

    async def save(self, token: str) -> None:
        async with connect() as conn:
            await conn.execute(
                """
                INSERT INTO storage(key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value;
                """,
                (self.key, token),
            )
            await conn.commit()

    async def clear(self) -> None:
        async with connect() as conn:
            await conn.execute("DELETE FROM storage WHERE key = ?;", (self.key,))
            await conn.commit()
