from fastapi import Depends, HTTPException
from marketplace.config import settings
from marketplace.services.api import PropertyApiClient
from marketplace.services.auth import AuthClient
from marketplace.services.controller import SessionController
from structlog import get_logger
import time
import uuid

logger = get_logger()


class SessionRegistry:
    """In-process map of session id -> SessionController.

    Sessions idle for longer than ``ttl`` seconds are evicted whenever a
    session is created or looked up.
    """

    def __init__(self, api: PropertyApiClient, auth: AuthClient, ttl: float | None = None, clock=time.monotonic):
        self.api = api
        self.auth = auth
        self.ttl = settings.SESSION_TTL if ttl is None else ttl
        self._clock = clock
        self._sessions: dict[str, SessionController] = {}
        self._last_seen: dict[str, float] = {}

    def _evict_expired(self):
        cutoff = self._clock() - self.ttl
        expired = [sid for sid, seen in self._last_seen.items() if seen < cutoff]
        for sid in expired:
            self._sessions.pop(sid, None)
            self._last_seen.pop(sid, None)
        if expired:
            logger.info("Evicted idle sessions", count=len(expired), active=len(self._sessions))

    def create(self) -> tuple[str, SessionController]:
        self._evict_expired()
        session_id = uuid.uuid4().hex
        controller = SessionController(self.api, self.auth)
        self._sessions[session_id] = controller
        self._last_seen[session_id] = self._clock()
        logger.info("Created session", session_id=session_id, active=len(self._sessions))
        return session_id, controller

    def get(self, session_id: str) -> SessionController | None:
        self._evict_expired()
        controller = self._sessions.get(session_id)
        if controller is not None:
            self._last_seen[session_id] = self._clock()
        return controller

    def drop(self, session_id: str) -> bool:
        self._last_seen.pop(session_id, None)
        dropped = self._sessions.pop(session_id, None) is not None
        if dropped:
            logger.info("Dropped session", session_id=session_id, active=len(self._sessions))
        return dropped


registry: SessionRegistry | None = None

def get_registry() -> SessionRegistry:
    global registry
    if registry is None:
        registry = SessionRegistry(PropertyApiClient.from_settings(), AuthClient.from_settings())
    return registry

async def get_controller(session_id: str, sessions: SessionRegistry = Depends(get_registry)) -> SessionController:
    controller = sessions.get(session_id)
    if controller is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return controller
