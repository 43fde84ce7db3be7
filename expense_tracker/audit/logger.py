"""
Audit trail for license decisions and record changes.

DESIGN DECISION: Audit events go to their own JSON-lines file, never to
the key-value store. A refused activation must leave that store
byte-for-byte unchanged, yet it still has to be recorded somewhere.

A failed audit write is logged and swallowed. Correlation ids tie the
events of one license screen submission together.
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from expense_tracker.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from expense_tracker.services.storage import AuditStorageInterface


# One structlog configuration for the whole package
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """Writes every event to structlog and, if configured, to audit storage."""

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Args:
            storage: Where events are persisted. Without one, events
                     only reach the structured log.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    def log(self, event: AuditEvent) -> bool:
        """
        Record one event.

        Returns False only when persisting to storage failed.
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def recent_events(self, limit: int = 50) -> list[dict]:
        """Most recent persisted events, newest first."""
        if not self._storage:
            return []
        return self._storage.get_recent_events(limit=limit)

    # ---------------------------
    # Licensing
    # ---------------------------
    def log_device_registered(self, device_id: str) -> None:
        self.log(AuditEventBuilder.device_registered(device_id))

    def log_license_checked(
        self,
        device_id: str,
        licensed: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.license_checked(
            device_id=device_id,
            licensed=licensed,
            correlation_id=correlation_id,
        ))

    def log_license_activated(
        self,
        device_id: str,
        license_key: str,
        device_count: int,
        already_active: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a successful activation (new or repeated)."""
        self.log(AuditEventBuilder.license_activated(
            device_id=device_id,
            license_key=license_key,
            device_count=device_count,
            already_active=already_active,
            correlation_id=correlation_id,
        ))

    def log_activation_rejected(
        self,
        device_id: Optional[str],
        license_key: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a refused activation."""
        self.log(AuditEventBuilder.activation_rejected(
            device_id=device_id,
            license_key=license_key,
            reason=reason,
            correlation_id=correlation_id,
        ))

    def log_stale_activation_cleared(self, device_id: str, license_key: str) -> None:
        self.log(AuditEventBuilder.stale_activation_cleared(device_id, license_key))

    # ---------------------------
    # Errors
    # ---------------------------
    def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """New id shared by all events of one user action."""
    return uuid4()
