import http
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlmodel import Session

from .otp import OTPProvider
from .service import login_with_pin, set_pin
from .tokens import SessionIssuer
from ..access.dependencies import get_current_user, get_issuer, get_settings, get_setup_claims
from ..audit.service import log_event
from ..core.database import get_session
from ..core.errors import InvalidCredentials, ValidationError
from ..core.responses import envelope
from ..core.settings import Settings
from ..models.Token import TokenClaims
from ..models.User import LoginPINRequest, SendOTPRequest, SetPINRequest, User, UserResponse, VerifyOTPRequest

router = APIRouter(prefix="/auth", tags=["auth"])


def get_otp_provider(request: Request) -> OTPProvider:
    return request.app.state.otp_provider


@router.post("/send-otp", status_code=status.HTTP_200_OK)
async def send_otp(
    body: SendOTPRequest,
    session: Session = Depends(get_session),
    otp_provider: OTPProvider = Depends(get_otp_provider),
):
    """
    Send a one-time code to the given email.
    """
    otp_provider.send_otp(session, body.email)
    return envelope(message="OTP sent to your email")


@router.post("/verify-otp", status_code=status.HTTP_200_OK)
async def verify_otp(
    body: VerifyOTPRequest,
    session: Session = Depends(get_session),
    otp_provider: OTPProvider = Depends(get_otp_provider),
    issuer: SessionIssuer = Depends(get_issuer),
):
    """
    Exchange a valid one-time code for a short-lived setup token.
    """
    try:
        subject_id, email = otp_provider.verify_otp(session, body.email, body.otp)
    except ValidationError:
        action = f"POST /auth/verify-otp {status.HTTP_400_BAD_REQUEST} - {http.HTTPStatus(status.HTTP_400_BAD_REQUEST).phrase}"
        log_event(session, None, action, f"Code rejected for {body.email.lower()}")
        raise

    temp_token = issuer.issue_setup_token(subject_id, email)
    action = f"POST /auth/verify-otp {status.HTTP_200_OK} {http.HTTPStatus(status.HTTP_200_OK).phrase}"
    log_event(session, subject_id, action, "OTP verified")
    return envelope(
        data={"userId": subject_id, "email": email, "tempToken": temp_token},
        message="OTP verified successfully",
    )


@router.post("/set-pin", status_code=status.HTTP_201_CREATED)
async def set_user_pin(
    body: SetPINRequest,
    claims: Annotated[TokenClaims, Depends(get_setup_claims)],
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """
    Complete registration: choose a PIN and a role (setup token only).
    """
    user = await set_pin(session, claims, body.pin, body.role, settings.PIN_PEPPER)

    action = f"POST /auth/set-pin {status.HTTP_201_CREATED} {http.HTTPStatus(status.HTTP_201_CREATED).phrase}"
    log_event(session, user.id, action, f"PIN set, role {user.role.value}")
    return envelope(
        data={"userId": user.id, "email": user.email, "role": user.role},
        message="PIN set successfully",
    )


@router.post("/login-pin", status_code=status.HTTP_200_OK)
async def login(
    body: LoginPINRequest,
    session: Session = Depends(get_session),
    issuer: SessionIssuer = Depends(get_issuer),
    settings: Settings = Depends(get_settings),
):
    """
    Login with email and PIN to get a session token.
    """
    try:
        token, user = await login_with_pin(session, issuer, body.email, body.pin, settings.PIN_PEPPER)
    except InvalidCredentials:
        action = f"POST /auth/login-pin {status.HTTP_401_UNAUTHORIZED} - {http.HTTPStatus(status.HTTP_401_UNAUTHORIZED).phrase}"
        log_event(session, None, action, "Invalid email or PIN")
        raise

    action = f"POST /auth/login-pin {status.HTTP_200_OK} {http.HTTPStatus(status.HTTP_200_OK).phrase}"
    log_event(session, user.id, action, "Login successful")
    return envelope(
        data={
            "token": token,
            "user": {"id": user.id, "email": user.email, "role": user.role, "created_at": user.created_at},
        },
        message="Login successful",
    )


@router.get("/profile")
async def read_profile(current_user: Annotated[User, Depends(get_current_user)]):
    """
    Return the caller's user record as currently stored.
    """
    return envelope(data={"user": UserResponse.from_user(current_user)})
