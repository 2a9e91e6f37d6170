from datetime import datetime
from typing import Optional
from uuid import UUID
from sqlmodel import Field, SQLModel
import hashlib

from ..core.clock import utcnow

GENESIS_HASH = "0" * 64

class AuditLog(SQLModel, table=True):
    __tablename__ = "audit_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    timestamp: datetime = Field(default_factory=lambda: utcnow().replace(microsecond=0))
    actor_id: Optional[UUID] = Field(default=None, index=True)  # None for unauthenticated callers
    action: str
    details: str = ""
    previous_hash: str
    current_hash: str

    def calculate_hash(self) -> str:
        """
        SHA-256 over previous_hash + timestamp (isoformat) + actor + action + details.
        """
        ts_str = self.timestamp.replace(tzinfo=None).isoformat()
        actor = str(self.actor_id) if self.actor_id else "anonymous"

        data = (
            self.previous_hash +
            ts_str +
            actor +
            self.action +
            self.details
        )
        return hashlib.sha256(data.encode("utf-8")).hexdigest()
