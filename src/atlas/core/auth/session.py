from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class Session:
    access_token: str
    user_email: str | None = None


class SessionProvider(Protocol):
    async def get_session(self) -> Session | None: ...


class StaticSessionProvider:
    def __init__(self, session: Session | None) -> None:
        self._session = session

    async def get_session(self) -> Session | None:
        return self._session


class EnvSessionProvider:
    """Reads the caller's session from ``ATLAS_ACCESS_TOKEN``/``ATLAS_USER_EMAIL``."""

    async def get_session(self) -> Session | None:
        token = os.getenv("ATLAS_ACCESS_TOKEN", "").strip()
        if not token:
            return None
        return Session(access_token=token, user_email=os.getenv("ATLAS_USER_EMAIL") or None)
