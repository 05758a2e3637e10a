"""
Storage Services Package

Provides the key-value backend interface and its implementations.
The finance store only ever talks to KeyValueBackend.
"""

from finance_ai.services.storage.interface import (
    BackendConnectionError,
    KeyValueBackend,
    StorageError,
    StorageFullError,
)
from finance_ai.services.storage.memory import InMemoryBackend
from finance_ai.services.storage.file import JsonFileBackend
from finance_ai.services.storage.google_sheets import (
    GoogleSheetsBackend,
    GoogleSheetsClient,
)

__all__ = [
    # Interface
    "KeyValueBackend",
    # Exceptions
    "BackendConnectionError",
    "StorageError",
    "StorageFullError",
    # Implementations
    "GoogleSheetsBackend",
    "GoogleSheetsClient",
    "InMemoryBackend",
    "JsonFileBackend",
]
