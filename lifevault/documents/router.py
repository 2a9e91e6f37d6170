import http
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlmodel import Session

from .service import delete_document, get_download_url, list_documents, upload_document
from ..access.dependencies import get_current_user, get_resolver, get_settings, get_storage
from ..access.resolver import AccessResolver
from ..audit.service import log_event
from ..core.database import get_session
from ..core.errors import ValidationError
from ..core.responses import envelope
from ..core.settings import Settings
from ..models.Asset import DocumentResponse
from ..models.User import User
from ..storage.base import BlobStorage

router = APIRouter(tags=["documents"])


@router.post("/assets/{asset_id}/documents", status_code=status.HTTP_201_CREATED)
async def upload_asset_document(
    asset_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    file: UploadFile | None = File(None),
    session: Session = Depends(get_session),
    resolver: AccessResolver = Depends(get_resolver),
    storage: BlobStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    """
    Upload a file to an asset (its owner only), multipart field `file`.
    """
    if file is None:
        raise ValidationError("No file uploaded")

    # Read one byte past the limit so oversize uploads are detected without buffering them whole
    data = await file.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise ValidationError(f"File size exceeds {settings.MAX_UPLOAD_BYTES // (1024 * 1024)} MB limit")

    document = await upload_document(
        session, resolver, storage, current_user, asset_id, file.filename or "file", data
    )
    action = f"POST /assets/{asset_id}/documents {status.HTTP_201_CREATED} {http.HTTPStatus(status.HTTP_201_CREATED).phrase}"
    log_event(session, current_user.id, action, f"Document {document.id} uploaded ({document.file_size} bytes)")
    return envelope(data={"document": DocumentResponse.from_document(document)}, message="Document uploaded successfully")


@router.get("/assets/{asset_id}/documents")
async def read_asset_documents(
    asset_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    resolver: AccessResolver = Depends(get_resolver),
):
    documents = await list_documents(resolver, current_user, asset_id)
    return envelope(data={"documents": [DocumentResponse.from_document(d) for d in documents]})


@router.get("/documents/{document_id}/download")
async def download_document(
    document_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    resolver: AccessResolver = Depends(get_resolver),
    storage: BlobStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    """
    Issue a short-lived signed URL for the document's bytes.
    """
    expires_in = settings.SIGNED_URL_EXPIRE_SECONDS
    url = await get_download_url(resolver, storage, current_user, document_id, expires_in)
    return envelope(data={"url": url, "expiresIn": expires_in})


@router.delete("/documents/{document_id}")
async def delete_asset_document(
    document_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    session: Session = Depends(get_session),
    resolver: AccessResolver = Depends(get_resolver),
    storage: BlobStorage = Depends(get_storage),
):
    await delete_document(session, resolver, storage, current_user, document_id)
    action = f"DELETE /documents/{document_id} {status.HTTP_200_OK} {http.HTTPStatus(status.HTTP_200_OK).phrase}"
    log_event(session, current_user.id, action, "Document deleted")
    return envelope(message="Document deleted successfully")
