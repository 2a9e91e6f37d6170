from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field as PydanticField, model_validator
from sqlalchemy import Column, Enum as SQLEnum
from sqlmodel import Field, Relationship, SQLModel

from .User import User
from ..core.clock import utcnow

if TYPE_CHECKING:
    from .Nominee import NomineeLink


class Category(str, Enum):
    LEGAL = "Legal"
    FINANCIAL = "Financial"
    MEDICAL = "Medical"
    PERSONAL = "Personal"
    OTHER = "Other"


class Asset(SQLModel, table=True):
    __tablename__ = "assets"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    owner_id: UUID = Field(foreign_key="users.id", index=True)
    title: str = Field(max_length=255)
    category: Category = Field(sa_column=Column(SQLEnum(Category, values_callable=lambda e: [c.value for c in e]), nullable=False))
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    owner: Optional[User] = Relationship()
    # Deleting an asset removes its documents and nominee links in the same flush
    documents: List["Document"] = Relationship(
        back_populates="asset",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "Document.uploaded_at.desc()"},
    )
    links: List["NomineeLink"] = Relationship(
        back_populates="asset",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class Document(SQLModel, table=True):
    __tablename__ = "documents"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    asset_id: UUID = Field(foreign_key="assets.id", index=True, ondelete="CASCADE")
    file_name: str
    file_path: str  # opaque storage key
    file_size: int
    uploaded_at: datetime = Field(default_factory=utcnow)

    asset: Optional[Asset] = Relationship(back_populates="documents")


# ==========================================
# Pydantic Models (DTOs)
# ==========================================

class AssetCreate(BaseModel):
    title: str = PydanticField(min_length=1, max_length=255)
    category: Category


class AssetUpdate(BaseModel):
    title: str | None = PydanticField(default=None, min_length=1, max_length=255)
    category: Category | None = None

    @model_validator(mode="after")
    def at_least_one_field(self):
        if self.title is None and self.category is None:
            raise ValueError("At least one field (title or category) must be provided")
        return self


class DocumentResponse(BaseModel):
    id: UUID
    asset_id: UUID
    file_name: str
    file_path: str
    file_size: int
    uploaded_at: datetime

    @classmethod
    def from_document(cls, document: Document) -> "DocumentResponse":
        return cls(
            id=document.id,
            asset_id=document.asset_id,
            file_name=document.file_name,
            file_path=document.file_path,
            file_size=document.file_size,
            uploaded_at=document.uploaded_at,
        )
