from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, EmailStr, StringConstraints
from sqlalchemy import Column, Enum as SQLEnum
from sqlmodel import Field, SQLModel

from .Role import Role
from ..core.clock import utcnow

SixDigits = Annotated[str, StringConstraints(pattern=r"^\d{6}$")]

# ==========================================
# SQLModel (Database Entity)
# ==========================================
class User(SQLModel, table=True):
    __tablename__ = "users"

    # Subject id assigned by the identity provider during code verification
    id: UUID = Field(primary_key=True)
    email: str = Field(unique=True, index=True, nullable=False)
    role: Role = Field(sa_column=Column(SQLEnum(Role, values_callable=lambda e: [r.value for r in e]), nullable=False))
    pin_hash: str = Field(nullable=False)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

# ==========================================
# Pydantic Models (DTOs)
# ==========================================

class SendOTPRequest(BaseModel):
    email: EmailStr

class VerifyOTPRequest(BaseModel):
    email: EmailStr
    otp: SixDigits

class SetPINRequest(BaseModel):
    pin: SixDigits
    role: Role

class LoginPINRequest(BaseModel):
    email: EmailStr
    pin: SixDigits

class UserUpdate(BaseModel):
    role: Role | None = None

class UserResponse(BaseModel):
    id: UUID
    email: str
    role: Role
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            role=user.role,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
