"""Cookie-keyed session state.

All list data lives in a `SessionState` held in process memory and looked up
by a session id. The browser only carries the id, inside a signed JWT cookie,
so a tampered or expired cookie simply starts a new, empty session.
"""
import asyncio
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from . import config
from .models import SessionState

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
TOKEN_TYPE = "session"

_generated_secret: Optional[str] = None


def get_secret_key() -> str:
    """Configured SECRET_KEY, or a random per-process secret when unset."""
    global _generated_secret
    if config.SECRET_KEY:
        return config.SECRET_KEY
    if _generated_secret is None:
        logger.warning('SECRET_KEY not set; using a random per-process secret (sessions end on restart)')
        _generated_secret = secrets.token_hex(32)
    return _generated_secret


def create_session_token(session_id: str, expires_delta: Optional[timedelta] = None) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=config.SESSION_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {"sid": session_id, "type": TOKEN_TYPE, "exp": int(expire.timestamp())}
    return jwt.encode(to_encode, get_secret_key(), algorithm=ALGORITHM)


def decode_session_token(token: Optional[str]) -> Optional[str]:
    """Return the session id carried by `token`, or None if it is not valid."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, get_secret_key(), algorithms=[ALGORITHM])
    except JWTError as e:
        logger.info('rejecting session token: %s', str(e))
        return None
    if payload.get("type") != TOKEN_TYPE:
        logger.info('rejecting session token: type mismatch (got %s)', payload.get("type"))
        return None
    sid = payload.get("sid")
    return sid if isinstance(sid, str) and sid else None


@dataclass
class _Entry:
    state: SessionState
    expires_at: datetime


class SessionStore:
    """In-memory map of session id -> SessionState with idle expiry.

    Each session also owns an asyncio.Lock; the middleware holds it for the
    whole request so requests on one session never interleave.
    """

    def __init__(self, expire_minutes: Optional[int] = None):
        self.expire_minutes = expire_minutes
        self._entries: dict[str, _Entry] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _lifetime(self) -> timedelta:
        minutes = self.expire_minutes if self.expire_minutes is not None else config.SESSION_EXPIRE_MINUTES
        return timedelta(minutes=minutes)

    def create(self) -> tuple[str, SessionState]:
        sid = secrets.token_urlsafe(32)
        state = SessionState()
        self.set(sid, state)
        logger.debug('created session %s', sid[:8])
        return sid, state

    def get(self, sid: Optional[str]) -> Optional[SessionState]:
        if not sid:
            return None
        entry = self._entries.get(sid)
        if entry is None:
            return None
        if entry.expires_at < datetime.now(timezone.utc):
            logger.info('session %s expired', sid[:8])
            self.delete(sid)
            return None
        return entry.state

    def set(self, sid: str, state: SessionState) -> None:
        self._entries[sid] = _Entry(state=state, expires_at=datetime.now(timezone.utc) + self._lifetime())

    def touch(self, sid: str) -> None:
        entry = self._entries.get(sid)
        if entry is not None:
            entry.expires_at = datetime.now(timezone.utc) + self._lifetime()

    def delete(self, sid: str) -> None:
        self._entries.pop(sid, None)
        self._locks.pop(sid, None)

    def lock(self, sid: str) -> asyncio.Lock:
        lk = self._locks.get(sid)
        if lk is None:
            lk = asyncio.Lock()
            self._locks[sid] = lk
        return lk

    def purge_expired(self) -> int:
        now = datetime.now(timezone.utc)
        expired = [sid for sid, e in self._entries.items() if e.expires_at < now]
        for sid in expired:
            self.delete(sid)
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
        self._locks.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, sid: str) -> bool:
        return sid in self._entries


store = SessionStore()


class SessionMiddleware(BaseHTTPMiddleware):
    """Attach the caller's SessionState to `request.state.session`.

    The session cookie is re-issued on every response so the expiry slides
    forward while the user is active.
    """

    def __init__(self, app, store: SessionStore = store, cookie_name: Optional[str] = None):
        super().__init__(app)
        self.store = store
        self.cookie_name = cookie_name or config.SESSION_COOKIE_NAME

    async def dispatch(self, request, call_next):
        sid = decode_session_token(request.cookies.get(self.cookie_name))
        state = self.store.get(sid)
        if state is None:
            sid, state = self.store.create()
        request.state.session = state
        request.state.session_id = sid
        async with self.store.lock(sid):
            response = await call_next(request)
        self.store.touch(sid)
        response.set_cookie(
            self.cookie_name,
            create_session_token(sid),
            max_age=config.SESSION_EXPIRE_MINUTES * 60,
            httponly=True,
            samesite='lax',
            secure=config.COOKIE_SECURE,
            path='/',
        )
        return response


def get_session(request: Request) -> SessionState:
    """FastAPI dependency returning the current request's session state."""
    return request.state.session
