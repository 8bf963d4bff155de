# agenda/routers/auth_routes.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.exc import IntegrityError

from agenda.auth import (
    end_session,
    get_current_user,
    get_session_store,
    hash_password,
    session_cookie,
    start_session,
    verify_password,
)
from agenda.deps import get_storage, get_verification_service
from agenda.errors import Conflict, InternalError, Unauthorized, UserNotFound, VerificationFailed
from agenda.models import User
from agenda.schemas import (
    AuthResponse,
    MessageResponse,
    ResendVerificationRequest,
    UserLogin,
    UserPublic,
    UserRegister,
    VerifyEmailRequest,
    VerifyEmailResponse,
)
from agenda.services.verification import VerificationService
from agenda.sessions import SessionStore
from agenda.storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/auth",
    tags=["auth"],
)


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(
    payload: UserRegister,
    response: Response,
    storage: Storage = Depends(get_storage),
    verification: VerificationService = Depends(get_verification_service),
    store: SessionStore = Depends(get_session_store),
):
    # 1) Check if email already exists
    if storage.get_user_by_email(payload.email) is not None:
        raise Conflict("User already exists")

    # 2) Create user
    try:
        user = storage.create_user(payload.email, hash_password(payload.password), payload.name)
    except IntegrityError:
        storage.session.rollback()
        raise Conflict("User already exists")
    logger.info(f"👤 Registered user {user.id} ({user.email})")

    # 3) Send verification code; a failed send leaves the account unverified
    sent = verification.send_verification(user.id, user.email, user.name)

    # 4) Log the new user in
    start_session(response, store, user.id)

    return AuthResponse(
        user=UserPublic.model_validate(user),
        message="Account created. Check your email for the verification code.",
        verification_sent=sent,
    )


@router.post("/login", response_model=AuthResponse)
def login(
    payload: UserLogin,
    response: Response,
    storage: Storage = Depends(get_storage),
    store: SessionStore = Depends(get_session_store),
):
    user = storage.get_user_by_email(payload.email)
    if user is None or not verify_password(payload.password, user.password_hash):
        logger.warning(f"Failed login for {payload.email}")
        raise Unauthorized("Invalid credentials")

    start_session(response, store, user.id)
    return AuthResponse(user=UserPublic.model_validate(user))


@router.post("/logout", response_model=MessageResponse)
def logout(
    response: Response,
    token: Optional[str] = Depends(session_cookie),
    store: SessionStore = Depends(get_session_store),
):
    end_session(response, store, token)
    return MessageResponse(message="Logged out successfully")


@router.get("/user", response_model=UserPublic)
def current_user(user: User = Depends(get_current_user)):
    return UserPublic.model_validate(user)


@router.post("/verify-email", response_model=VerifyEmailResponse)
def verify_email(
    payload: VerifyEmailRequest,
    verification: VerificationService = Depends(get_verification_service),
):
    result = verification.verify_code(payload.email, payload.code)
    if not result.valid:
        raise VerificationFailed(result.message, reason=result.reason.value)
    return VerifyEmailResponse(message="Email verified successfully", user_id=result.user_id)


@router.post("/resend-verification", response_model=MessageResponse)
def resend_verification(
    payload: ResendVerificationRequest,
    storage: Storage = Depends(get_storage),
    verification: VerificationService = Depends(get_verification_service),
):
    user = storage.get_user(payload.user_id)
    if user is None or user.email != payload.email:
        raise UserNotFound()
    if user.email_verified:
        raise Conflict("Email already verified")

    if not verification.resend_code(user.id, payload.email, payload.name):
        raise InternalError("Failed to resend verification code")
    return MessageResponse(message="A new verification code has been sent")
