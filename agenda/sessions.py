# agenda/sessions.py
"""Login session stores: session id -> user id, with expiry."""

import logging
import secrets
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete
from sqlmodel import Session

from agenda.config import SESSION_TTL_DAYS
from agenda.models import LoginSession

logger = logging.getLogger(__name__)


class SessionStore(ABC):
    def __init__(self, ttl: timedelta = timedelta(days=SESSION_TTL_DAYS)):
        self.ttl = ttl

    @abstractmethod
    def create(self, user_id: int) -> str:
        ...

    @abstractmethod
    def get_user_id(self, sid: str) -> Optional[int]:
        ...

    @abstractmethod
    def delete(self, sid: str) -> None:
        ...

    @staticmethod
    def new_sid() -> str:
        return secrets.token_urlsafe(32)


class InMemorySessionStore(SessionStore):
    def __init__(self, ttl: timedelta = timedelta(days=SESSION_TTL_DAYS)):
        super().__init__(ttl)
        self._sessions: dict[str, tuple[int, datetime]] = {}

    def create(self, user_id: int) -> str:
        sid = self.new_sid()
        self._sessions[sid] = (user_id, datetime.now() + self.ttl)
        return sid

    def get_user_id(self, sid: str) -> Optional[int]:
        entry = self._sessions.get(sid)
        if entry is None:
            return None
        user_id, expires_at = entry
        if expires_at <= datetime.now():
            self._sessions.pop(sid, None)
            return None
        return user_id

    def delete(self, sid: str) -> None:
        self._sessions.pop(sid, None)


class DatabaseSessionStore(SessionStore):
    def __init__(self, engine, ttl: timedelta = timedelta(days=SESSION_TTL_DAYS)):
        super().__init__(ttl)
        self.engine = engine

    def create(self, user_id: int) -> str:
        sid = self.new_sid()
        with Session(self.engine) as session:
            session.add(LoginSession(sid=sid, user_id=user_id, expires_at=datetime.now() + self.ttl))
            session.commit()
        return sid

    def get_user_id(self, sid: str) -> Optional[int]:
        with Session(self.engine) as session:
            row = session.get(LoginSession, sid)
            if row is None:
                return None
            if row.expires_at <= datetime.now():
                session.delete(row)
                session.commit()
                return None
            return row.user_id

    def delete(self, sid: str) -> None:
        with Session(self.engine) as session:
            row = session.get(LoginSession, sid)
            if row is not None:
                session.delete(row)
                session.commit()

    def purge_expired(self) -> int:
        with Session(self.engine) as session:
            result = session.exec(delete(LoginSession).where(LoginSession.expires_at <= datetime.now()))
            session.commit()
            logger.info(f"Purged {result.rowcount} expired login sessions")
            return result.rowcount
