"""Deposit session storage"""

import uuid
from typing import Callable, Optional

from ..models.checkout import DepositSession
from .carts import now_ms


def generate_session_id(clock: Callable[[], int] = now_ms) -> str:
    return f"deposit_{clock()}_{uuid.uuid4().hex[:12]}"


class DepositSessionDatabase:
    """In-memory partial-payment sessions keyed by session ID"""

    DEFAULT_TTL_SECONDS = 24 * 60 * 60

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], int] = now_ms,
    ):
        self.ttl_ms = ttl_seconds * 1000
        self.clock = clock
        self.sessions: dict[str, DepositSession] = {}

    def expiry_from_now(self) -> int:
        return self.clock() + self.ttl_ms

    def create_session(self, session: DepositSession) -> DepositSession:
        self.sessions[session.session_id] = session.model_copy(deep=True)
        self._cleanup()
        return session

    def get_session(self, session_id: str) -> Optional[DepositSession]:
        """Get a session by ID; expired sessions are dropped"""
        session = self.sessions.get(session_id)
        if not session:
            return None

        if self.clock() > session.expires_at:
            self.sessions.pop(session_id, None)
            return None

        return session.model_copy(deep=True)

    def _cleanup(self) -> None:
        now = self.clock()
        expired = [sid for sid, s in self.sessions.items() if now > s.expires_at]
        for sid in expired:
            del self.sessions[sid]
