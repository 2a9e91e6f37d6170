import logging
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError as PydanticValidationError

from ..core.errors import InvalidToken, TokenExpired
from ..core.settings import Settings
from ..models.Role import SETUP_ROLE
from ..models.Token import DOWNLOAD_TOKEN, SESSION_TOKEN, SETUP_TOKEN, TokenClaims
from ..models.User import User

logger = logging.getLogger(__name__)


class SessionIssuer:
    """
    Mints and verifies the stateless tokens the API hands out.

    Setup tokens (role "temp", short-lived) only authorize setting a PIN;
    session tokens carry the user's persisted role and authorize everything else.
    """

    def __init__(self, settings: Settings):
        self.algorithm = settings.ALGORITHM
        self.private_key = settings.SERVER_PRIVATE_KEY
        self.public_key = settings.SERVER_PUBLIC_KEY
        self.setup_lifetime = timedelta(minutes=settings.SETUP_TOKEN_EXPIRE_MINUTES)
        self.session_lifetime = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    def sign(self, claims: dict[str, Any], lifetime: timedelta) -> str:
        now = datetime.now(timezone.utc)
        to_encode = claims.copy()
        to_encode.update({"iat": now, "exp": now + lifetime})
        return jwt.encode(to_encode, self.private_key, algorithm=self.algorithm)

    def decode(self, token: str, expected_type: str) -> dict[str, Any]:
        try:
            payload = jwt.decode(token, self.public_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            logger.info("Rejected expired %s token", expected_type)
            raise TokenExpired()
        except JWTError as e:
            logger.warning("Rejected invalid %s token: %s", expected_type, e)
            raise InvalidToken()

        if payload.get("type") != expected_type:
            logger.warning("Rejected %s token presented as %s token", payload.get("type"), expected_type)
            raise InvalidToken()
        return payload

    def issue_setup_token(self, subject_id: UUID, email: str) -> str:
        return self.sign(
            {"sub": str(subject_id), "email": email, "role": SETUP_ROLE, "type": SETUP_TOKEN},
            self.setup_lifetime,
        )

    def issue_session_token(self, user: User) -> str:
        return self.sign(
            {"sub": str(user.id), "email": user.email, "role": user.role.value, "type": SESSION_TOKEN},
            self.session_lifetime,
        )

    def verify_setup_token(self, token: str) -> TokenClaims:
        claims = self._claims(self.decode(token, SETUP_TOKEN))
        if claims.role != SETUP_ROLE:
            raise InvalidToken()
        return claims

    def verify_session_token(self, token: str) -> TokenClaims:
        claims = self._claims(self.decode(token, SESSION_TOKEN))
        if claims.role == SETUP_ROLE:
            raise InvalidToken()
        return claims

    def issue_download_token(self, key: str, expires_in: int) -> str:
        return self.sign({"key": key, "type": DOWNLOAD_TOKEN}, timedelta(seconds=expires_in))

    def verify_download_token(self, token: str) -> str:
        payload = self.decode(token, DOWNLOAD_TOKEN)
        key = payload.get("key")
        if not isinstance(key, str) or not key:
            raise InvalidToken()
        return key

    @staticmethod
    def _claims(payload: dict[str, Any]) -> TokenClaims:
        try:
            return TokenClaims.model_validate(payload)
        except PydanticValidationError:
            logger.warning("Rejected token with malformed claims")
            raise InvalidToken()
