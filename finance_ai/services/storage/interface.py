"""
Abstract Storage Interface

DESIGN DECISION: The finance store only needs named byte slots (the
primary aggregate and its backup), so the backend contract is a tiny
key-value interface. This allows us to:
1. Keep the data on disk, in Google Sheets, or in memory for tests
2. Emulate a storage quota to exercise "storage full" handling
3. Keep the read-modify-write and backup policy out of the backends

Backends raise StorageError subclasses. Turning those into results the
UI can show is the store's job, not the backend's.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueBackend(ABC):
    """
    Abstract interface for slot storage.

    Any storage implementation (file, Google Sheets, etc.)
    must implement these methods.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """
        Read a slot.

        Args:
            key: Slot name

        Returns:
            The stored bytes, or None if the slot is empty

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        """
        Overwrite a slot.

        Args:
            key: Slot name
            value: Bytes to store

        Raises:
            StorageFullError: If the backend has no room for the value
            StorageError: If the write fails for any other reason
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """
        Remove a slot. Removing an empty slot is not an error.

        Raises:
            StorageError: If the backend cannot be written
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageFullError(StorageError):
    """The backend refused a write because it is out of space."""
    pass


class BackendConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
