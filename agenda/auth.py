# agenda/auth.py

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, Request, Response
from fastapi.security import APIKeyCookie
from jose import jwt, JWTError
from passlib.context import CryptContext

from sqlmodel import Session
from agenda.config import ALGORITHM, IS_PRODUCTION, SECRET_KEY, SESSION_COOKIE_NAME, SESSION_TTL_DAYS
from agenda.db import get_session
from agenda.errors import Unauthorized
from agenda.models import User
from agenda.sessions import SessionStore

logger = logging.getLogger(__name__)

SESSION_TTL = timedelta(days=SESSION_TTL_DAYS)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
session_cookie = APIKeyCookie(name=SESSION_COOKIE_NAME, auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def create_session_token(sid: str, expires: timedelta = SESSION_TTL) -> str:
    to_encode = {"sid": sid, "exp": datetime.utcnow() + expires}
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_session_token(token: str) -> Optional[str]:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"Rejected session token: {e}")
        return None
    return payload.get("sid")


# Dependency: the configured session store lives on the app
def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def start_session(response: Response, store: SessionStore, user_id: int) -> None:
    sid = store.create(user_id)
    response.set_cookie(
        SESSION_COOKIE_NAME,
        create_session_token(sid),
        max_age=int(SESSION_TTL.total_seconds()),
        httponly=True,
        secure=IS_PRODUCTION,
        samesite="lax",
    )
    logger.info(f"Session started for user {user_id}")


def end_session(response: Response, store: SessionStore, token: Optional[str]) -> None:
    sid = decode_session_token(token) if token else None
    if sid:
        store.delete(sid)
    response.delete_cookie(SESSION_COOKIE_NAME, httponly=True, secure=IS_PRODUCTION, samesite="lax")


def get_current_user_id(
    token: Optional[str] = Depends(session_cookie),
    store: SessionStore = Depends(get_session_store),
) -> int:
    if not token:
        raise Unauthorized()
    sid = decode_session_token(token)
    if sid is None:
        raise Unauthorized("Invalid session")
    user_id = store.get_user_id(sid)
    if user_id is None:
        raise Unauthorized("Session expired")
    return user_id


def get_current_user(
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session),
) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise Unauthorized("User not found")
    return user
