# agenda/email_service.py

"""
Email delivery through Resend.
Without RESEND_API_KEY the message is logged instead of sent.
"""

import logging
from html import escape
from typing import Optional

import resend

from agenda.config import APP_NAME, EMAIL_FROM_ADDRESS, RESEND_API_KEY, VERIFICATION_CODE_TTL_MINUTES

logger = logging.getLogger(__name__)


def verification_email_html(user_name: str, code: str, ttl_minutes: int) -> str:
    return f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h1 style="color: #667eea;">{escape(APP_NAME)}</h1>
  <h2>Hello, {escape(user_name)}!</h2>
  <p>Use the code below to confirm your email address:</p>
  <div style="font-size: 32px; font-weight: bold; letter-spacing: 8px; font-family: 'Courier New', monospace;">
    {escape(code)}
  </div>
  <p><strong>Important:</strong> this code expires in {ttl_minutes} minutes.</p>
  <p>If you did not create an account, you can ignore this email.</p>
</div>
"""


class EmailService:
    def __init__(self, api_key: Optional[str] = RESEND_API_KEY, from_address: str = EMAIL_FROM_ADDRESS):
        self.api_key = api_key
        self.from_address = from_address

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def send_email(self, to: str, subject: str, html: str) -> bool:
        if not self.is_configured:
            logger.info(f"📧 Email delivery not configured, simulating send to {to}: {subject}")
            logger.debug(html)
            return True

        try:
            resend.api_key = self.api_key
            response = resend.Emails.send(
                {"from": self.from_address, "to": [to], "subject": subject, "html": html}
            )
            logger.info(f"✅ Email sent to {to}: {response}")
            return True
        except Exception as e:
            logger.error(f"❌ Failed to send email to {to}: {e}")
            return False

    def send_verification_email(self, to: str, code: str, user_name: str) -> bool:
        subject = f"Confirm your email - {APP_NAME}"
        html = verification_email_html(user_name, code, VERIFICATION_CODE_TTL_MINUTES)
        return self.send_email(to, subject, html)


email_service = EmailService()


def get_email_service() -> EmailService:
    return email_service
