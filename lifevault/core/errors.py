from fastapi import HTTPException, status


class LifeVaultError(HTTPException):
    """Base for errors raised by services; rendered in the standard response envelope."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None, headers: dict[str, str] | None = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail, headers=headers)


class ValidationError(LifeVaultError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Validation error"


class AuthenticationError(LifeVaultError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Authentication required"

    def __init__(self, detail: str | None = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class InvalidToken(AuthenticationError):
    default_detail = "Invalid token"


class TokenExpired(AuthenticationError):
    default_detail = "Token expired"


class InvalidCredentials(AuthenticationError):
    # Same message for unknown email and wrong PIN
    default_detail = "Invalid email or PIN"


class AuthorizationError(LifeVaultError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have permission to access this resource"


class NotFoundError(LifeVaultError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"


class ConflictError(LifeVaultError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists"


class UnexpectedError(LifeVaultError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"
