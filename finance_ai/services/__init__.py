"""Services package."""

from finance_ai.services.storage import (
    BackendConnectionError,
    GoogleSheetsBackend,
    GoogleSheetsClient,
    InMemoryBackend,
    JsonFileBackend,
    KeyValueBackend,
    StorageError,
    StorageFullError,
)

__all__ = [
    "BackendConnectionError",
    "GoogleSheetsBackend",
    "GoogleSheetsClient",
    "InMemoryBackend",
    "JsonFileBackend",
    "KeyValueBackend",
    "StorageError",
    "StorageFullError",
]
