"""
NoteBoard Backend - Session Registry
====================================

What:  Keeps one NoteBoard per session token while the session is in use.
How:   The first request of a session builds its platform clients on the
       shared httpx.AsyncClient, creates the board and mounts it (initial
       note listing). Sign-out discards the board.
Who:   Used by the route dependencies and by the app lifespan.

Concurrency:
    Lookup and insertion happen without an await in between, so two first
    requests for the same token always share one board. The board itself
    runs its initial listing once (see NoteBoard.mount).

Idle Eviction:
    Each access records a timestamp. Before every lookup, boards not used
    for SESSION_IDLE_TTL seconds are closed and forgotten, so replaced or
    abandoned tokens do not accumulate. An evicted session that comes back
    gets a fresh board and a fresh listing.
"""

import logging
import time
from typing import Callable, Dict, Optional

import httpx

from noteboard.clients import build_platform_clients
from noteboard.clients.base import PlatformClients
from noteboard.config import settings
from noteboard.exceptions import AuthenticationError
from noteboard.services.note_board import NoteBoard

logger = logging.getLogger(__name__)

ClientFactory = Callable[[httpx.AsyncClient, str], PlatformClients]


class SessionRegistry:
    """Token → NoteBoard map plus the shared platform HTTP client."""

    def __init__(
        self,
        client_factory: ClientFactory = build_platform_clients,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client_factory = client_factory
        self._clock = clock
        self._boards: Dict[str, NoteBoard] = {}
        self._last_access: Dict[str, float] = {}
        self._http: Optional[httpx.AsyncClient] = None

    def __len__(self) -> int:
        return len(self._boards)

    def startup(self) -> httpx.AsyncClient:
        """Open the shared HTTP client (idempotent)."""
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=settings.platform_timeout)
            logger.info("Platform HTTP client opened")
        return self._http

    async def shutdown(self) -> None:
        """Close every board and the shared HTTP client."""
        for board in list(self._boards.values()):
            await board.close()
        self._boards.clear()
        self._last_access.clear()
        if self._http is not None:
            await self._http.aclose()
            self._http = None
            logger.info("Platform HTTP client closed")

    async def get_or_create(self, token: str) -> NoteBoard:
        """
        Return the session's board, creating and mounting it on first use.

        A session the platform rejects while mounting is not kept.

        Raises:
            AuthenticationError: The platform rejected the token
            DataServiceError: The initial listing failed (retried next request)
        """
        now = self._clock()
        await self.evict_idle(now)

        board = self._boards.get(token)
        if board is None:
            board = NoteBoard(self._client_factory(self.startup(), token))
            self._boards[token] = board
            logger.info("Board created (%d active sessions)", len(self._boards))
        self._last_access[token] = now

        try:
            await board.mount()
        except AuthenticationError:
            await self.discard(token)
            raise

        return board

    async def sign_out(self, token: str) -> None:
        """
        Sign the session out on the platform and forget its board.

        Works for sessions that never loaded a board; nothing is listed.
        Platform failures are logged by NoteBoard.sign_out().
        """
        board = self._boards.get(token)
        if board is None:
            board = NoteBoard(self._client_factory(self.startup(), token))
        await board.sign_out()
        await self.discard(token)

    async def discard(self, token: str) -> None:
        """Forget a session and release its board's local resources."""
        board = self._boards.pop(token, None)
        self._last_access.pop(token, None)
        if board is not None:
            await board.close()
            logger.info("Board discarded (%d active sessions)", len(self._boards))

    async def evict_idle(self, now: Optional[float] = None) -> int:
        """
        Discard boards idle for longer than settings.session_idle_ttl.

        Returns: Number of evicted sessions.
        """
        now = self._clock() if now is None else now
        cutoff = now - settings.session_idle_ttl
        idle = [token for token, seen in self._last_access.items() if seen < cutoff]
        for token in idle:
            # Touched again while an earlier board was closing
            if self._last_access.get(token, cutoff) >= cutoff:
                continue
            await self.discard(token)

        if idle:
            logger.info("Evicted %d idle sessions", len(idle))
        return len(idle)


# ── Singleton Instance ────────────────────────────────────────────────────
session_registry = SessionRegistry()
