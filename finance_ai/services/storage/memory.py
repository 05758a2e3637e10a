"""
In-Memory Storage

Holds slots in a dict. Used by tests and by the "memory" backend setting.
An optional byte quota mimics the per-origin limit of browser storage so
quota failures can be exercised without filling a disk.
"""

from typing import Optional

from finance_ai.services.storage.interface import KeyValueBackend, StorageFullError


class InMemoryBackend(KeyValueBackend):
    """Dict-backed slot storage with an optional total size quota."""

    def __init__(self, quota_bytes: Optional[int] = None):
        self._slots: dict[str, bytes] = {}
        self._quota_bytes = quota_bytes

    def get(self, key: str) -> Optional[bytes]:
        return self._slots.get(key)

    def set(self, key: str, value: bytes) -> None:
        if self._quota_bytes is not None:
            used = sum(len(v) for k, v in self._slots.items() if k != key)
            if used + len(value) > self._quota_bytes:
                raise StorageFullError(
                    f"Quota of {self._quota_bytes} bytes exceeded writing {key}"
                )
        self._slots[key] = bytes(value)

    def delete(self, key: str) -> None:
        self._slots.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._slots)
