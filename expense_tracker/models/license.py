"""
License Models

Outcomes of the license gate. Every outcome is a value, never an
exception: the UI decides how to present a failed activation.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class ActivationFailureReason(str, Enum):
    """Why an activation attempt was refused."""
    INVALID_KEY = "InvalidKey"
    DEVICE_LIMIT_REACHED = "DeviceLimitReached"
    STORAGE_UNAVAILABLE = "StorageUnavailable"


class ActivationResult(BaseModel):
    """
    Result of a single activation attempt.

    `limit` is only present when the key is full.
    """

    success: bool
    reason: Optional[ActivationFailureReason] = None
    limit: Optional[int] = Field(default=None, ge=1)

    @model_validator(mode='after')
    def validate_reason(self) -> 'ActivationResult':
        """A success carries no reason; a failure always does."""
        if self.success and self.reason is not None:
            raise ValueError("Successful activation cannot have a failure reason")
        if not self.success and self.reason is None:
            raise ValueError("Failed activation must have a reason")
        if self.limit is not None and self.reason != ActivationFailureReason.DEVICE_LIMIT_REACHED:
            raise ValueError("limit is only reported when the device limit is reached")
        return self

    @classmethod
    def succeeded(cls) -> 'ActivationResult':
        return cls(success=True)

    @classmethod
    def invalid_key(cls) -> 'ActivationResult':
        return cls(success=False, reason=ActivationFailureReason.INVALID_KEY)

    @classmethod
    def device_limit_reached(cls, limit: int) -> 'ActivationResult':
        return cls(
            success=False,
            reason=ActivationFailureReason.DEVICE_LIMIT_REACHED,
            limit=limit,
        )

    @classmethod
    def storage_unavailable(cls) -> 'ActivationResult':
        return cls(success=False, reason=ActivationFailureReason.STORAGE_UNAVAILABLE)

    def to_dict(self) -> dict:
        """Wire shape: {success, reason?, limit?}."""
        return self.model_dump(mode="json", exclude_none=True)


class LicenseStatus(BaseModel):
    """Result of the start-up license check."""

    licensed: bool
    device_id: Optional[str] = None
    activated_key: Optional[str] = None
    stale_key_cleared: bool = Field(
        default=False,
        description="True when a remembered key no longer validated and was dropped"
    )

    def to_dict(self) -> dict:
        """Wire shape: {licensed}."""
        return {"licensed": self.licensed}
