"""
Audit Logger

DESIGN DECISION: Every change to a group is logged.
This provides:
1. Complete traceability of membership and ledger changes
2. A record of every AI suggestion and why it was rejected
3. Debugging capability when the collaborator misbehaves

The audit logger:
- Always writes a structured local log line
- Gracefully handles storage failures (never breaks a ledger operation)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from src.models.audit import AuditEvent, AuditEventBuilder
from src.models.expense import Group, GroupExpense, User
from src.services.storage import AuditStorageInterface


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
        structlog.processors.JSONRenderer()
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
        Initialize audit logger.

        Args:
            storage: Storage backend for the audit trail.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value == "error":
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
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

    def log_group_created(self, group: Group) -> None:
        self.log(AuditEventBuilder.group_created(
            group_id=group.id,
            group_name=group.name,
            creator=group.creator.username,
        ))

    def log_member_added(self, group: Group, added_by: User, member: User) -> None:
        self.log(AuditEventBuilder.member_added(
            group_id=group.id,
            group_name=group.name,
            added_by=added_by.username,
            member=member.username,
        ))

    def log_member_removed(self, group: Group, owner: User, member: User) -> None:
        self.log(AuditEventBuilder.member_removed(
            group_id=group.id,
            group_name=group.name,
            owner=owner.username,
            member=member.username,
        ))

    def log_member_left(self, group: Group, member: User) -> None:
        self.log(AuditEventBuilder.member_left(
            group_id=group.id,
            group_name=group.name,
            member=member.username,
        ))

    def log_expense_added(
        self,
        group: Group,
        expense: GroupExpense,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.expense_added(
            expense_id=expense.id,
            group_name=group.name,
            payer=expense.payer.username,
            title=expense.title,
            total_cost=str(expense.total_cost),
            source=expense.source.value,
            correlation_id=correlation_id,
        ))

    def log_suggestion_requested(
        self,
        group: Group,
        inputter: User,
        prompt: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.ai_suggestion_requested(
            group_id=group.id,
            inputter=inputter.username,
            prompt=prompt,
            correlation_id=correlation_id,
        ))

    def log_suggestion_accepted(
        self,
        expense: GroupExpense,
        inputter: User,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.ai_suggestion_accepted(
            expense_id=expense.id,
            inputter=inputter.username,
            correlation_id=correlation_id,
        ))

    def log_suggestion_rejected(
        self,
        group: Group,
        inputter: User,
        error: Exception,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.ai_suggestion_rejected(
            group_id=group.id,
            inputter=inputter.username,
            error=error,
            correlation_id=correlation_id,
        ))

    def log_external_service_error(
        self,
        service: str,
        error: Exception,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.external_service_error(
            service=service,
            error=error,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., an AI suggestion).
    """
    return uuid4()
