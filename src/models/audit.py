"""
Audit Models for the Group Expense Tracker

Every change to a group is logged for audit purposes.
This provides:
1. Traceability of who changed membership and when
2. A record of every AI suggestion, accepted or rejected
3. Debugging information when the collaborator misbehaves

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Membership
    GROUP_CREATED = "group_created"
    MEMBER_ADDED = "member_added"
    MEMBER_REMOVED = "member_removed"
    MEMBER_LEFT = "member_left"

    # Ledger
    EXPENSE_ADDED = "expense_added"

    # AI suggestions
    AI_SUGGESTION_REQUESTED = "ai_suggestion_requested"
    AI_SUGGESTION_ACCEPTED = "ai_suggestion_accepted"
    AI_SUGGESTION_REJECTED = "ai_suggestion_rejected"

    # System events
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'group', 'expense')"
    )
    entity_id: Optional[UUID] = None

    # Ties together the events of one AI suggestion
    correlation_id: Optional[UUID] = None

    actor: Optional[str] = Field(
        default=None,
        description="Username of the user who triggered the event"
    )
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_type: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "actor": self.actor,
            "description": self.description,
            "details": self.details,
            "error_type": self.error_type,
            "error_message": self.error_message,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_log_dict(), default=str)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.group_created(group_id, "Trip", "alice")
        event = AuditEventBuilder.expense_added(expense_id, group_id, ...)
    """

    @staticmethod
    def group_created(
        group_id: UUID,
        group_name: str,
        creator: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GROUP_CREATED,
            entity_type="group",
            entity_id=group_id,
            actor=creator,
            description=f'Group "{group_name}" created by {creator}',
            details={"group_name": group_name},
        )

    @staticmethod
    def member_added(
        group_id: UUID,
        group_name: str,
        added_by: str,
        member: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MEMBER_ADDED,
            entity_type="group",
            entity_id=group_id,
            actor=added_by,
            description=f'{member} added to group "{group_name}" by {added_by}',
            details={"member": member},
        )

    @staticmethod
    def member_removed(
        group_id: UUID,
        group_name: str,
        owner: str,
        member: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MEMBER_REMOVED,
            entity_type="group",
            entity_id=group_id,
            actor=owner,
            description=f'{member} removed from group "{group_name}" by owner {owner}',
            details={"member": member},
        )

    @staticmethod
    def member_left(
        group_id: UUID,
        group_name: str,
        member: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MEMBER_LEFT,
            entity_type="group",
            entity_id=group_id,
            actor=member,
            description=f'{member} left group "{group_name}"',
        )

    @staticmethod
    def expense_added(
        expense_id: UUID,
        group_name: str,
        payer: str,
        title: str,
        total_cost: str,
        source: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            actor=payer,
            description=f'Expense "{title}" ({total_cost}) added in group "{group_name}"',
            details={
                "title": title,
                "total_cost": total_cost,
                "source": source,
            },
        )

    @staticmethod
    def ai_suggestion_requested(
        group_id: UUID,
        inputter: str,
        prompt: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AI_SUGGESTION_REQUESTED,
            entity_type="group",
            entity_id=group_id,
            correlation_id=correlation_id,
            actor=inputter,
            description=f"AI expense suggestion requested by {inputter}",
            details={"prompt": prompt},
        )

    @staticmethod
    def ai_suggestion_accepted(
        expense_id: UUID,
        inputter: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AI_SUGGESTION_ACCEPTED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            actor=inputter,
            description="AI expense suggestion passed validation and was committed",
        )

    @staticmethod
    def ai_suggestion_rejected(
        group_id: UUID,
        inputter: str,
        error: Exception,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AI_SUGGESTION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="group",
            entity_id=group_id,
            correlation_id=correlation_id,
            actor=inputter,
            description=f"AI expense suggestion rejected: {type(error).__name__}",
            error_type=type(error).__name__,
            error_message=str(error),
        )

    @staticmethod
    def external_service_error(
        service: str,
        error: Exception,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"External service error: {service}",
            error_type=type(error).__name__,
            error_message=str(error),
            details={"service": service},
        )
