# agenda/services/verification.py

"""
Email verification codes
One-time 6 character codes, valid for a fixed wall-clock window
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from agenda.config import VERIFICATION_CODE_TTL_MINUTES
from agenda.email_service import EmailService
from agenda.models import VerificationCode
from agenda.storage import Storage

logger = logging.getLogger(__name__)

CODE_TTL = timedelta(minutes=VERIFICATION_CODE_TTL_MINUTES)


class VerificationFailure(str, Enum):
    not_found = "not_found"
    already_used = "already_used"
    expired = "expired"
    mismatch = "mismatch"


FAILURE_MESSAGES = {
    VerificationFailure.not_found: "Verification code not found",
    VerificationFailure.already_used: "Verification code has already been used",
    VerificationFailure.expired: "Verification code has expired",
    VerificationFailure.mismatch: "Incorrect verification code",
}


@dataclass
class VerificationResult:
    valid: bool
    user_id: Optional[int] = None
    reason: Optional[VerificationFailure] = None
    message: Optional[str] = None

    @classmethod
    def failed(cls, reason: VerificationFailure) -> "VerificationResult":
        return cls(valid=False, reason=reason, message=FAILURE_MESSAGES[reason])


def new_code() -> str:
    # 3 random bytes -> 6 upper-case hex characters
    return secrets.token_hex(3).upper()


class VerificationService:
    def __init__(self, storage: Storage, email: EmailService, ttl: timedelta = CODE_TTL):
        self.storage = storage
        self.email = email
        self.ttl = ttl

    def generate_code(self, user_id: int, email: str) -> str:
        code = new_code()
        self.storage.create_verification_code(
            VerificationCode(
                user_id=user_id,
                email=email.lower(),
                code=code,
                expires_at=datetime.now() + self.ttl,
                used=False,
            )
        )
        logger.info(f"🔢 Verification code issued for user {user_id}")
        return code

    def send_verification(self, user_id: int, email: str, name: str) -> bool:
        code = self.generate_code(user_id, email)
        try:
            sent = self.email.send_verification_email(email, code, name)
        except Exception as e:
            logger.error(f"❌ Verification email to {email} failed: {e}")
            return False
        if not sent:
            logger.warning(f"⚠️ Verification email to {email} was not delivered; code stays valid")
        return sent

    def verify_code(self, email: str, code: str) -> VerificationResult:
        record = self.storage.latest_verification_code(email)

        if record is None:
            result = VerificationResult.failed(VerificationFailure.not_found)
        elif record.used:
            result = VerificationResult.failed(VerificationFailure.already_used)
        elif record.expires_at < datetime.now():
            result = VerificationResult.failed(VerificationFailure.expired)
        elif record.code != code.strip().upper():
            result = VerificationResult.failed(VerificationFailure.mismatch)
        else:
            self.storage.mark_verification_code_used(record, commit=False)
            self.storage.mark_user_verified(record.user_id, commit=False)
            self.storage.session.commit()
            logger.info(f"✅ Email verified for user {record.user_id}")
            return VerificationResult(valid=True, user_id=record.user_id)

        logger.warning(f"Verification failed for {email}: {result.reason.value}")
        return result

    def resend_code(self, user_id: int, email: str, name: str) -> bool:
        invalidated = self.storage.invalidate_verification_codes(user_id)
        logger.info(f"Invalidated {invalidated} previous codes for user {user_id}")
        return self.send_verification(user_id, email, name)
