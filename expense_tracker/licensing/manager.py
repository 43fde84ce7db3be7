"""
License Activation Manager

Decides whether this device may use the application and processes
activation requests against a fixed per-key device quota.

GUARANTEES:
- A key never lists more than `device_limit` distinct devices
- Activating twice from the same device is a no-op success
- A refused or failed activation leaves the store as it found it
- Missing, corrupt or inconsistent state means "not licensed"
- Nothing is raised to the caller; every outcome is a value

KNOWN GAP: the per-key device lists live in the same device-local store
that the license protects, so each installation only sees its own
activations. A shared, authoritative store with an atomic
append-if-room operation is needed before the cap means anything
across devices. LocalState.get_activations/set_activations is the seam
where that store would plug in.
"""

from typing import Iterable, Optional
from uuid import UUID

import structlog

from expense_tracker.audit import AuditLogger
from expense_tracker.constants import DEFAULT_DEVICE_LIMIT, VALID_LICENSE_KEYS
from expense_tracker.models.license import ActivationResult, LicenseStatus
from expense_tracker.services.storage import LocalState, StorageError


logger = structlog.get_logger(__name__)


class LicenseActivationManager:
    """
    Owns the license key -> devices mapping for this installation.

    One instance per process. Callers are serialized by the UI, so the
    read-modify-write of the activation map is never interleaved.
    """

    def __init__(
        self,
        state: LocalState,
        valid_keys: Optional[Iterable[str]] = None,
        device_limit: int = DEFAULT_DEVICE_LIMIT,
        audit_logger: Optional[AuditLogger] = None,
    ):
        """
        Args:
            state: Typed access to the device's key-value store
            valid_keys: Allow-list of keys. Defaults to the keys
                        shipped with the application.
            device_limit: Devices per key. Fixed at build time; only
                          tests pass anything else.
            audit_logger: Optional audit trail
        """
        if device_limit < 1:
            raise ValueError(f"device_limit must be at least 1, got {device_limit}")

        self._state = state
        self._valid_keys = frozenset(valid_keys) if valid_keys is not None else VALID_LICENSE_KEYS
        self._device_limit = device_limit
        self._audit_logger = audit_logger
        self._licensed = False

    @property
    def device_limit(self) -> int:
        return self._device_limit

    @property
    def device_id(self) -> Optional[str]:
        """This installation's id, without creating one."""
        return self._state.get_device_id()

    @property
    def is_licensed(self) -> bool:
        """Outcome of the last initialize() or successful activate()."""
        return self._licensed

    def is_valid_key(self, candidate_key: str) -> bool:
        return isinstance(candidate_key, str) and candidate_key in self._valid_keys

    def activation_count(self, license_key: str) -> int:
        """Distinct devices currently recorded for a key."""
        return len(self._state.get_devices_for_key(license_key))

    # ---------------------------
    # Start-up check
    # ---------------------------
    def initialize(self, correlation_id: Optional[UUID] = None) -> LicenseStatus:
        """
        Is this device licensed?

        Creates the device id on first run. A remembered key whose
        device list no longer contains this device is cleared.
        """
        try:
            device_id, created = self._state.get_or_create_device_id()
        except StorageError as e:
            # Without a persisted id the device cannot prove anything
            logger.error("device_id_unavailable", error=str(e))
            if self._audit_logger:
                self._audit_logger.log_storage_error(
                    operation="create_device_id",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            self._licensed = False
            return LicenseStatus(licensed=False)

        if created and self._audit_logger:
            self._audit_logger.log_device_registered(device_id)

        activated_key = self._state.get_activated_key()

        if activated_key is None or not self.is_valid_key(activated_key):
            status = LicenseStatus(licensed=False, device_id=device_id)
        elif device_id in self._state.get_devices_for_key(activated_key):
            status = LicenseStatus(
                licensed=True,
                device_id=device_id,
                activated_key=activated_key,
            )
        else:
            cleared = self._clear_stale_key(device_id, activated_key, correlation_id)
            status = LicenseStatus(
                licensed=False,
                device_id=device_id,
                stale_key_cleared=cleared,
            )

        self._licensed = status.licensed

        if self._audit_logger:
            self._audit_logger.log_license_checked(
                device_id=device_id,
                licensed=status.licensed,
                correlation_id=correlation_id,
            )

        return status

    def _clear_stale_key(
        self,
        device_id: str,
        activated_key: str,
        correlation_id: Optional[UUID],
    ) -> bool:
        try:
            self._state.clear_activated_key()
        except StorageError as e:
            # Still unlicensed; the check repeats on next load
            logger.error("stale_key_clear_failed", error=str(e))
            if self._audit_logger:
                self._audit_logger.log_storage_error(
                    operation="clear_activated_key",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return False

        if self._audit_logger:
            self._audit_logger.log_stale_activation_cleared(device_id, activated_key)
        return True

    # ---------------------------
    # Activation
    # ---------------------------
    def activate(
        self,
        candidate_key: str,
        correlation_id: Optional[UUID] = None,
    ) -> ActivationResult:
        """
        Activate this device with a license key.

        Order of checks:
        1. Unknown key -> InvalidKey
        2. Device already listed -> success, nothing appended
        3. Key full -> DeviceLimitReached
        4. Append device, remember key -> success

        Nothing is kept unless the result is a success: if a write
        fails, the writes made so far are undone.
        """
        if not self.is_valid_key(candidate_key):
            return self._reject(candidate_key, ActivationResult.invalid_key(), correlation_id)

        devices = self._state.get_devices_for_key(candidate_key)
        device_id = self._state.get_device_id()
        already_active = device_id is not None and device_id in devices

        if not already_active and len(devices) >= self._device_limit:
            return self._reject(
                candidate_key,
                ActivationResult.device_limit_reached(self._device_limit),
                correlation_id,
            )

        created = False
        previous_activations = None
        try:
            if not already_active:
                if device_id is None:
                    device_id, created = self._state.get_or_create_device_id()

                activations = self._state.get_activations()
                if self._state.has_activations():
                    previous_activations = dict(activations)
                devices = devices + [device_id]
                activations[candidate_key] = devices
                self._state.set_activations(activations)

            self._state.set_activated_key(candidate_key)
        except StorageError as e:
            logger.error("activation_write_failed", error=str(e), key=e.key)
            if not already_active:
                self._undo_activation(created, previous_activations)
            if self._audit_logger:
                self._audit_logger.log_storage_error(
                    operation="activate",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return self._reject(
                candidate_key,
                ActivationResult.storage_unavailable(),
                correlation_id,
            )

        self._licensed = True

        if created and self._audit_logger:
            self._audit_logger.log_device_registered(device_id)

        if self._audit_logger:
            self._audit_logger.log_license_activated(
                device_id=device_id,
                license_key=candidate_key,
                device_count=len(devices),
                already_active=already_active,
                correlation_id=correlation_id,
            )

        return ActivationResult.succeeded()

    def _undo_activation(
        self,
        created_device: bool,
        previous_activations: Optional[dict[str, list[str]]],
    ) -> None:
        """
        Put back the activation map and device id a failed activate() found.

        A map that was missing before is removed again. A device id
        generated during the failed call is dropped.
        """
        try:
            if previous_activations is None:
                self._state.clear_activations()
            else:
                self._state.set_activations(previous_activations)
        except StorageError as e:
            logger.error("activation_rollback_failed", error=str(e), key=e.key)

        if created_device:
            try:
                self._state.clear_device_id()
            except StorageError as e:
                logger.error("activation_rollback_failed", error=str(e), key=e.key)

    def _reject(
        self,
        candidate_key: str,
        result: ActivationResult,
        correlation_id: Optional[UUID],
    ) -> ActivationResult:
        if self._audit_logger:
            self._audit_logger.log_activation_rejected(
                device_id=self._state.get_device_id(),
                license_key=candidate_key if isinstance(candidate_key, str) else "",
                reason=result.reason.value,
                correlation_id=correlation_id,
            )
        return result
