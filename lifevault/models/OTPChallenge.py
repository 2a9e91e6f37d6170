from datetime import datetime
from uuid import UUID
from sqlmodel import Field, SQLModel

from ..core.clock import utcnow

class OTPChallenge(SQLModel, table=True):
    __tablename__ = "otp_challenges"

    email: str = Field(primary_key=True)
    subject_id: UUID
    code_hash: str
    attempts: int = Field(default=0)
    created_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime
