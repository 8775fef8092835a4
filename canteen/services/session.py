"""
Storefront session contexts.

Each browser session gets an explicit SessionContext holding its cart and
signed-in identity. Contexts are created, looked up and closed through a
SessionRegistry owned by the application; nothing about a session lives in
module globals.
"""

import asyncio
import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

from canteen.core.config import get_settings
from canteen.services.cart import CartStore
from canteen.services.identity.base import UserIdentity

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SessionContext:
    """Cart and identity of one storefront session."""
    session_id: str
    cart: CartStore = field(default_factory=CartStore)
    user: Optional[UserIdentity] = None
    access_token: Optional[str] = None
    created_at: datetime = field(default_factory=_now)
    last_seen: datetime = field(default_factory=_now)
    checkout_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def sign_in(self, user: UserIdentity, access_token: str) -> None:
        self.user = user
        self.access_token = access_token

    def sign_out(self) -> None:
        """Forget the identity. The cart is kept."""
        self.user = None
        self.access_token = None


class SessionRegistry:
    """
    Owns all live session contexts.

    Sessions idle for longer than ``idle_timeout`` are discarded on lookup
    and swept whenever a new session is opened.
    """

    def __init__(self, idle_timeout: timedelta):
        self.idle_timeout = idle_timeout
        self._sessions: dict[str, SessionContext] = {}

    def _is_expired(self, context: SessionContext, now: datetime) -> bool:
        return now - context.last_seen > self.idle_timeout

    def sweep(self) -> int:
        """Close every idle session. Returns how many were closed."""
        now = _now()
        expired = [
            session_id for session_id, context in self._sessions.items()
            if self._is_expired(context, now)
        ]
        for session_id in expired:
            self.close(session_id)
        if expired:
            logger.debug(f"Swept {len(expired)} idle session(s)")
        return len(expired)

    def open(self) -> SessionContext:
        self.sweep()
        context = SessionContext(session_id=secrets.token_urlsafe(24))
        self._sessions[context.session_id] = context
        logger.debug(f"Session opened ({len(self._sessions)} live)")
        return context

    def get(self, session_id: str) -> Optional[SessionContext]:
        context = self._sessions.get(session_id)
        if context is None:
            return None

        now = _now()
        if self._is_expired(context, now):
            self.close(session_id)
            return None

        context.last_seen = now
        return context

    def close(self, session_id: str) -> None:
        context = self._sessions.pop(session_id, None)
        if context:
            context.cart.clear_cart()
            context.sign_out()

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self.close(session_id)
        logger.info("All sessions closed")

    def __len__(self) -> int:
        return len(self._sessions)


@lru_cache()
def get_session_registry() -> SessionRegistry:
    """Get the application's session registry."""
    settings = get_settings()
    return SessionRegistry(idle_timeout=timedelta(minutes=settings.session_idle_minutes))
