from datetime import datetime
from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field as PydanticField
from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from .User import User
from ..core.clock import utcnow

if TYPE_CHECKING:
    from .Asset import Asset


class Nominee(SQLModel, table=True):
    """A user in their capacity as someone assets can be shared with."""
    __tablename__ = "nominees"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    user_id: UUID = Field(foreign_key="users.id", unique=True, index=True)
    created_at: datetime = Field(default_factory=utcnow)

    user: Optional[User] = Relationship()


class NomineeLink(SQLModel, table=True):
    """Grant of read access on one asset to one nominee."""
    __tablename__ = "linked_nominees"
    # The real duplicate guard; the service-level check only gives a friendlier error
    __table_args__ = (UniqueConstraint("asset_id", "nominee_id", name="uq_linked_nominees_asset_nominee"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    asset_id: UUID = Field(foreign_key="assets.id", index=True, ondelete="CASCADE")
    nominee_id: UUID = Field(foreign_key="nominees.id", index=True, ondelete="CASCADE")
    linked_at: datetime = Field(default_factory=utcnow)

    asset: Optional["Asset"] = Relationship(back_populates="links")
    nominee: Optional[Nominee] = Relationship()


# ==========================================
# Pydantic Models (DTOs)
# ==========================================

class NomineeLinkCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    asset_id: UUID = PydanticField(alias="assetId")
    nominee_id: UUID = PydanticField(alias="nomineeId")
