"""
Audit Models for WealthWise

Every ledger save, snapshot and advisor call is logged for audit purposes.
This provides:
1. Traceability of how the net-worth history came to be
2. Debugging information when the advisor falls back to offline rules
3. A record of silently recovered (corrupt) data

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger
    LEDGER_SAVED = "ledger_saved"
    LEDGER_VALIDATION_FAILED = "ledger_validation_failed"
    LEDGER_RECOVERED = "ledger_recovered"
    SNAPSHOT_CREATED = "snapshot_created"

    # User session
    USER_CREATED = "user_created"
    DATA_CLEARED = "data_cleared"

    # Planning
    GOAL_ANALYZED = "goal_analyzed"
    ANALYSIS_FALLBACK = "analysis_fallback"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'ledger', 'snapshot', 'goal')"
    )
    entity_id: Optional[str] = None

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., a save and its snapshot)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, ensure_ascii=False) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.ledger_saved(item_count, net_worth, correlation_id)
        event = AuditEventBuilder.analysis_fallback("timeout", correlation_id)
    """

    @staticmethod
    def ledger_saved(
        item_count: int,
        net_worth: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_SAVED,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=f"Ledger saved with {item_count} items",
            details={
                "item_count": item_count,
                "net_worth": net_worth,
            },
            is_user_action=True,
        )

    @staticmethod
    def ledger_validation_failed(
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=f"Ledger rejected with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def ledger_recovered(
        key: str,
        reason: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_RECOVERED,
            severity=AuditSeverity.WARNING,
            entity_type="store_key",
            entity_id=key,
            description=f"Unreadable data under '{key}' replaced with defaults",
            error_message=reason,
        )

    @staticmethod
    def snapshot_created(
        snapshot_id: str,
        month_key: str,
        net_worth: float,
        replaced: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        action = "replaced" if replaced else "created"
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_CREATED,
            entity_type="snapshot",
            entity_id=snapshot_id,
            correlation_id=correlation_id,
            description=f"Snapshot for {month_key} {action}",
            details={
                "month_key": month_key,
                "net_worth": net_worth,
                "replaced_existing": replaced,
            },
        )

    @staticmethod
    def user_created(name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_CREATED,
            entity_type="user",
            description=f"User profile created: {name}",
            is_user_action=True,
        )

    @staticmethod
    def data_cleared() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_CLEARED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            description="All local data cleared",
            is_user_action=True,
        )

    @staticmethod
    def goal_analyzed(
        goal_type: str,
        evaluation: str,
        source: str,
        is_achievable: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_ANALYZED,
            entity_type="goal",
            correlation_id=correlation_id,
            description=f"{goal_type} goal analyzed by {source}: {evaluation}",
            details={
                "goal_type": goal_type,
                "evaluation": evaluation,
                "source": source,
                "is_achievable": is_achievable,
            },
            is_user_action=True,
        )

    @staticmethod
    def analysis_fallback(
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ANALYSIS_FALLBACK,
            severity=AuditSeverity.WARNING,
            entity_type="goal",
            correlation_id=correlation_id,
            description="Advisor unavailable, offline rule engine used",
            error_message=reason,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
