from abc import ABC, abstractmethod
from typing import Iterator


class StorageError(Exception):
    """The object store failed or refused an operation."""


class BlobNotFoundError(StorageError):
    pass


class BlobStorage(ABC):
    """
    Object storage for document bytes. Keys are opaque to callers; the
    database only ever stores the key.
    """

    @abstractmethod
    def put(self, key: str, data: bytes) -> None:
        ...

    @abstractmethod
    def open(self, key: str) -> Iterator[bytes]:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def signed_url(self, key: str, expires_in: int) -> str:
        ...
