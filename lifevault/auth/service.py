import logging
import re

from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .tokens import SessionIssuer
from ..core.clock import utcnow
from ..core.errors import ConflictError, InvalidCredentials, ValidationError
from ..models.Nominee import Nominee
from ..models.Role import Role
from ..models.Token import TokenClaims
from ..models.User import User

logger = logging.getLogger(__name__)

PIN_PATTERN = re.compile(r"^\d{6}$")

# PIN hashing. The cost is tuned so one verification takes ~100ms.
pin_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__time_cost=2,
    argon2__memory_cost=102400,
    argon2__parallelism=8
)

def get_pin_hash(pin: str, pepper: str) -> str:
    return pin_context.hash(pin + pepper)

def verify_pin(pin: str, pin_hash: str, pepper: str) -> bool:
    return pin_context.verify(pin + pepper, pin_hash)


def get_user_by_email(session: Session, email: str) -> User | None:
    statement = select(User).where(User.email == email.lower())
    return session.exec(statement).first()


def ensure_nominee_record(session: Session, user: User) -> Nominee:
    """
    Nominee rows are what owners link assets to; one per nominee-role user.
    Adds it to the session when missing, the caller commits.
    """
    nominee = session.exec(select(Nominee).where(Nominee.user_id == user.id)).first()
    if nominee is None:
        nominee = Nominee(user_id=user.id)
        session.add(nominee)
    return nominee


def create_user(session: Session, user_id, email: str, pin: str, role: Role, pepper: str) -> User:
    if not PIN_PATTERN.match(pin):
        raise ValidationError("PIN must be exactly 6 digits")

    email = email.lower()
    if session.get(User, user_id) is not None or get_user_by_email(session, email) is not None:
        raise ConflictError("User already exists. Please login instead.")

    now = utcnow()
    user = User(
        id=user_id,
        email=email,
        role=role,
        pin_hash=get_pin_hash(pin, pepper),
        created_at=now,
        updated_at=now,
    )
    session.add(user)
    if role is Role.NOMINEE:
        ensure_nominee_record(session, user)

    try:
        session.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same identity
        session.rollback()
        raise ConflictError("User already exists. Please login instead.")

    session.refresh(user)
    logger.info("Registered user %s with role %s", user.id, role.value)
    return user


async def set_pin(session: Session, claims: TokenClaims, pin: str, role: Role, pepper: str) -> User:
    """
    Completes registration for an identity holding a valid setup token.
    The only place a role is chosen by the user; a second call for the
    same identity is a conflict.
    """
    return create_user(session, claims.sub, claims.email, pin, role, pepper)


async def authenticate_user(session: Session, email: str, pin: str, pepper: str) -> User | None:
    user = get_user_by_email(session, email)
    if not user:
        # Burn the same hashing time as a real check so timing does not reveal unknown emails
        pin_context.dummy_verify()
        return None
    if not verify_pin(pin, user.pin_hash, pepper):
        return None
    return user


async def login_with_pin(session: Session, issuer: SessionIssuer, email: str, pin: str, pepper: str) -> tuple[str, User]:
    user = await authenticate_user(session, email, pin, pepper)
    if not user:
        raise InvalidCredentials()
    return issuer.issue_session_token(user), user
