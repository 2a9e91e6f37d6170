import logging
import os
from typing import Iterator

from .base import BlobNotFoundError, BlobStorage, StorageError
from ..auth.tokens import SessionIssuer

logger = logging.getLogger(__name__)


class LocalBlobStorage(BlobStorage):
    """
    Stores blobs as files under a root directory. Signed URLs point back at
    this service's `/storage/{token}` route; the token carries the key.
    """

    def __init__(self, root: str, issuer: SessionIssuer, public_base_url: str):
        self.root = os.path.abspath(root)
        self.issuer = issuer
        self.public_base_url = public_base_url.rstrip("/")
        os.makedirs(self.root, exist_ok=True)

    def _path(self, key: str) -> str:
        path = os.path.abspath(os.path.join(self.root, key))
        if os.path.commonpath([self.root, path]) != self.root or path == self.root:
            raise StorageError(f"Invalid storage key: {key}")
        return path

    def put(self, key: str, data: bytes) -> None:
        path = self._path(key)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as buffer:
                buffer.write(data)
        except OSError as e:
            raise StorageError(f"Failed to store {key}: {e}") from e

    def open(self, key: str) -> Iterator[bytes]:
        path = self._path(key)
        if not os.path.isfile(path):
            raise BlobNotFoundError(f"File not found: {key}")

        def iterfile():
            with open(path, mode="rb") as file_like:
                yield from file_like

        return iterfile()

    def delete(self, key: str) -> None:
        path = self._path(key)
        if not os.path.exists(path):
            raise BlobNotFoundError(f"File not found: {key}")
        try:
            os.remove(path)
        except OSError as e:
            raise StorageError(f"Failed to delete {key}: {e}") from e

    def signed_url(self, key: str, expires_in: int) -> str:
        self._path(key)
        token = self.issuer.issue_download_token(key, expires_in)
        return f"{self.public_base_url}/storage/{token}"


def discard_quietly(storage: BlobStorage, key: str) -> None:
    """Best-effort removal; failures are logged and never retried."""
    try:
        storage.delete(key)
    except BlobNotFoundError:
        pass
    except StorageError as e:
        logger.warning("Could not remove stored object %s: %s", key, e)
