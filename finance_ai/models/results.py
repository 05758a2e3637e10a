"""
Operation Results

DESIGN DECISION: Store mutations never raise to their callers. Instead
every mutation returns a StoreResult that says whether the change reached
storage and, if not, why. A result is truthy only when the operation
succeeded, so callers that just need a yes/no can write
``if store.import_data(text): ...``.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class OperationStatus(str, Enum):
    """Outcome of a store mutation."""
    OK = "ok"
    STORAGE_FULL = "storage_full"            # Backend quota exceeded
    STORAGE_ERROR = "storage_error"          # Any other backend failure
    SERIALIZATION_ERROR = "serialization_error"
    VALIDATION_ERROR = "validation_error"    # Input rejected before writing


class StoreResult(BaseModel):
    """Result of one mutating store operation."""

    status: OperationStatus = OperationStatus.OK
    value: Optional[Any] = Field(
        default=None,
        description="Record created or changed by the operation, if any"
    )
    changed: bool = Field(
        default=True,
        description="False when the operation was a no-op (e.g. unknown ID)"
    )
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == OperationStatus.OK

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: Any = None) -> "StoreResult":
        return cls(status=OperationStatus.OK, value=value)

    @classmethod
    def unchanged(cls) -> "StoreResult":
        """A lookup miss: nothing to do, nothing written."""
        return cls(status=OperationStatus.OK, changed=False)

    @classmethod
    def failure(
        cls,
        status: OperationStatus,
        message: str,
        value: Any = None,
    ) -> "StoreResult":
        return cls(status=status, value=value, changed=False, message=message)
