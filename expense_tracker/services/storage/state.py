"""
Typed access to the license and preference keys of the local store.

Reads sanitize whatever is on disk: a value of the wrong shape is
treated exactly like a missing one, so callers only ever see
well-formed data.
"""

from typing import Optional
from uuid import uuid4

import structlog

from expense_tracker.constants import (
    ACTIVATED_LICENSE_KEY,
    CURRENCY_KEY,
    DEVICE_ID_KEY,
    LICENSE_ACTIVATIONS_KEY,
)
from expense_tracker.services.storage.interface import KeyValueStoreInterface


logger = structlog.get_logger(__name__)


class LocalState:
    """Wrapper around the key-value store for the licensing keys."""

    def __init__(self, store: KeyValueStoreInterface):
        self._store = store

    @property
    def store(self) -> KeyValueStoreInterface:
        return self._store

    # ---------------------------
    # Device id
    # ---------------------------
    def get_device_id(self) -> Optional[str]:
        """Stored device id, or None if this installation has none yet."""
        value = self._store.get(DEVICE_ID_KEY)
        if isinstance(value, str) and value.strip():
            return value
        return None

    def get_or_create_device_id(self) -> tuple[str, bool]:
        """
        Return the device id, generating and persisting one if absent.

        Returns:
            (device_id, created)
        """
        device_id = self.get_device_id()
        if device_id is not None:
            return device_id, False

        device_id = str(uuid4())
        self._store.set(DEVICE_ID_KEY, device_id)
        logger.info("device_id_created", device_id=device_id)
        return device_id, True

    def clear_device_id(self) -> None:
        self._store.delete(DEVICE_ID_KEY)

    # ---------------------------
    # Activation state
    # ---------------------------
    def get_activated_key(self) -> Optional[str]:
        value = self._store.get(ACTIVATED_LICENSE_KEY)
        if isinstance(value, str) and value:
            return value
        return None

    def set_activated_key(self, license_key: str) -> None:
        self._store.set(ACTIVATED_LICENSE_KEY, license_key)

    def clear_activated_key(self) -> None:
        self._store.set(ACTIVATED_LICENSE_KEY, None)

    def get_activations(self) -> dict[str, list[str]]:
        """
        License key -> ordered device ids.

        Non-object values become {}, non-list entries become [],
        non-string ids are dropped and duplicates collapsed.
        """
        value = self._store.get(LICENSE_ACTIVATIONS_KEY)
        if not isinstance(value, dict):
            if value is not None:
                logger.warning("activations_malformed", value_type=type(value).__name__)
            return {}

        activations = {}
        for key, devices in value.items():
            if not isinstance(devices, list):
                activations[key] = []
                continue
            seen = []
            for device in devices:
                if isinstance(device, str) and device not in seen:
                    seen.append(device)
            activations[key] = seen
        return activations

    def get_devices_for_key(self, license_key: str) -> list[str]:
        return self.get_activations().get(license_key, [])

    def has_activations(self) -> bool:
        return LICENSE_ACTIVATIONS_KEY in self._store

    def set_activations(self, activations: dict[str, list[str]]) -> None:
        self._store.set(LICENSE_ACTIVATIONS_KEY, activations)

    def clear_activations(self) -> None:
        self._store.delete(LICENSE_ACTIVATIONS_KEY)

    # ---------------------------
    # Preferences
    # ---------------------------
    def get_currency_code(self) -> Optional[str]:
        value = self._store.get(CURRENCY_KEY)
        # Also accept a stored {"code": ...} currency object
        if isinstance(value, dict):
            value = value.get("code")
        return value if isinstance(value, str) else None

    def set_currency_code(self, code: str) -> None:
        self._store.set(CURRENCY_KEY, code)
