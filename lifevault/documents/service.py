import logging
import re
import time
from uuid import UUID, uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..access.policy import Action
from ..access.resolver import AccessResolver
from ..models.Asset import Document
from ..models.User import User
from ..storage.base import BlobStorage
from ..storage.local import discard_quietly

logger = logging.getLogger(__name__)

UPLOAD_FORBIDDEN = "Unauthorized: You can only upload documents to your own assets"
DELETE_FORBIDDEN = "Unauthorized: You can only delete documents from your own assets"


def sanitize_file_name(file_name: str) -> str:
    return re.sub(r"[^A-Za-z0-9.-]", "_", file_name) or "file"


def storage_key(asset_id: UUID, file_name: str) -> str:
    return f"assets/{asset_id}/{int(time.time() * 1000)}-{uuid4().hex}-{sanitize_file_name(file_name)}"


async def upload_document(
    session: Session,
    resolver: AccessResolver,
    storage: BlobStorage,
    user: User,
    asset_id: UUID,
    file_name: str,
    data: bytes,
) -> Document:
    """
    Stores the bytes, then records the metadata row. If the row cannot be
    written the stored object is removed again (best effort).
    """
    asset = resolver.authorize_asset(user, asset_id, Action.DOCUMENT_UPLOAD, forbidden=UPLOAD_FORBIDDEN)

    key = storage_key(asset.id, file_name)
    storage.put(key, data)

    document = Document(asset_id=asset.id, file_name=file_name, file_path=key, file_size=len(data))
    try:
        session.add(document)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.warning("Metadata insert failed for %s, removing stored object", key)
        discard_quietly(storage, key)
        raise

    session.refresh(document)
    return document


async def list_documents(resolver: AccessResolver, user: User, asset_id: UUID) -> list[Document]:
    asset = resolver.authorize_asset(user, asset_id, Action.ASSET_READ)
    return list(asset.documents)


async def get_download_url(resolver: AccessResolver, storage: BlobStorage, user: User, document_id: UUID, expires_in: int) -> str:
    document = resolver.authorize_document(user, document_id, Action.DOCUMENT_READ)
    return storage.signed_url(document.file_path, expires_in)


async def delete_document(session: Session, resolver: AccessResolver, storage: BlobStorage, user: User, document_id: UUID) -> None:
    document = resolver.authorize_document(user, document_id, Action.DOCUMENT_DELETE, forbidden=DELETE_FORBIDDEN)
    key = document.file_path

    session.delete(document)
    session.commit()
    discard_quietly(storage, key)
