"""
Audit Logger

DESIGN DECISION: Every change to the ledger and every advisor call is
logged. This provides:
1. Traceability of how the net-worth history came to be
2. A record of when the offline rule engine stood in for the advisor
3. Evidence when corrupt stored data was silently replaced

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from wealthwise.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from wealthwise.services.storage.interface import AuditStorageInterface


# Configure structlog for local logging
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
        structlog.processors.JSONRenderer(ensure_ascii=False),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit store, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("wealthwise.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity is AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_ledger_saved(
        self,
        item_count: int,
        net_worth: float,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.ledger_saved(
            item_count=item_count,
            net_worth=net_worth,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.ledger_validation_failed(
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_ledger_recovered(self, key: str, reason: str) -> None:
        """Log that unreadable stored data was replaced with defaults."""
        await self.log(AuditEventBuilder.ledger_recovered(key=key, reason=reason))

    async def log_snapshot_created(
        self,
        snapshot_id: str,
        month_key: str,
        net_worth: float,
        replaced: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.snapshot_created(
            snapshot_id=snapshot_id,
            month_key=month_key,
            net_worth=net_worth,
            replaced=replaced,
            correlation_id=correlation_id,
        ))

    async def log_user_created(self, name: str) -> None:
        await self.log(AuditEventBuilder.user_created(name))

    async def log_data_cleared(self) -> None:
        await self.log(AuditEventBuilder.data_cleared())

    async def log_goal_analyzed(
        self,
        goal_type: str,
        evaluation: str,
        source: str,
        is_achievable: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a completed goal analysis."""
        await self.log(AuditEventBuilder.goal_analyzed(
            goal_type=goal_type,
            evaluation=evaluation,
            source=source,
            is_achievable=is_achievable,
            correlation_id=correlation_id,
        ))

    async def log_analysis_fallback(
        self,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log that the offline rules answered instead of the advisor."""
        await self.log(AuditEventBuilder.analysis_fallback(
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., saving the ledger).
    Pass it through all subsequent operations.
    """
    return uuid4()
