import logging
import secrets
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Callable
from uuid import UUID, uuid4

from sqlmodel import Session

from .service import get_user_by_email, pin_context
from ..core.clock import utcnow
from ..core.errors import ValidationError
from ..core.settings import Settings
from ..models.OTPChallenge import OTPChallenge

logger = logging.getLogger(__name__)

# (email, code) -> None; hands the plaintext code to whatever channel delivers it
OTPDelivery = Callable[[str, str], None]


class OTPProvider(ABC):
    """
    One-time-code identity provider. Verifying a code yields the stable
    subject id for the email, which becomes the user's id on registration.
    """

    @abstractmethod
    def send_otp(self, session: Session, email: str) -> None:
        ...

    @abstractmethod
    def verify_otp(self, session: Session, email: str, code: str) -> tuple[UUID, str]:
        ...


def logging_delivery(settings: Settings) -> OTPDelivery:
    def deliver(email: str, code: str) -> None:
        if settings.is_development:
            logger.debug("OTP for %s: %s", email, code)
        logger.info("[OTP] sent to %s (code hidden)", email)
    return deliver


class LocalOTPProvider(OTPProvider):
    def __init__(self, settings: Settings, delivery: OTPDelivery | None = None):
        self.lifetime = timedelta(minutes=settings.OTP_EXPIRE_MINUTES)
        self.max_attempts = settings.OTP_MAX_ATTEMPTS
        self.delivery = delivery or logging_delivery(settings)

    @staticmethod
    def generate_code() -> str:
        return f"{secrets.randbelow(10 ** 6):06d}"

    def _subject_for(self, session: Session, email: str, challenge: OTPChallenge | None) -> UUID:
        user = get_user_by_email(session, email)
        if user is not None:
            return user.id
        if challenge is not None:
            return challenge.subject_id
        return uuid4()

    def send_otp(self, session: Session, email: str) -> None:
        email = email.lower()
        code = self.generate_code()
        now = utcnow()

        challenge = session.get(OTPChallenge, email)
        subject_id = self._subject_for(session, email, challenge)
        if challenge is None:
            challenge = OTPChallenge(email=email, subject_id=subject_id, code_hash="", expires_at=now)

        # A new code replaces any outstanding one
        challenge.subject_id = subject_id
        challenge.code_hash = pin_context.hash(code)
        challenge.attempts = 0
        challenge.created_at = now
        challenge.expires_at = now + self.lifetime
        session.add(challenge)
        session.commit()

        self.delivery(email, code)

    def verify_otp(self, session: Session, email: str, code: str) -> tuple[UUID, str]:
        email = email.lower()
        challenge = session.get(OTPChallenge, email)
        if challenge is None:
            raise ValidationError("Invalid or expired code")

        if utcnow() > challenge.expires_at or challenge.attempts >= self.max_attempts:
            session.delete(challenge)
            session.commit()
            raise ValidationError("Invalid or expired code")

        if not pin_context.verify(code, challenge.code_hash):
            challenge.attempts += 1
            session.add(challenge)
            session.commit()
            logger.info("[OTP] mismatch for %s (attempt %d)", email, challenge.attempts)
            raise ValidationError("Invalid or expired code")

        subject_id = challenge.subject_id
        session.delete(challenge)
        session.commit()
        return subject_id, email
