"""
Main Orchestrator for the Group Expense Tracker

This module ties together all the components and exposes the
operations a front end calls:
1. Users and groups (register, create, add, remove, leave)
2. Manual expenses
3. AI-suggested expenses (free text → collaborator → validate → commit)

DESIGN DECISION: The orchestrator owns the store and the audit trail.
The membership manager, ledger and suggestion agent stay pure: they
check rules and mutate groups, nothing else. Every successful change
and every rejected suggestion is audited here.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping, Optional, Union
from uuid import UUID

import structlog

from src.agents import ExpenseSuggestionAgent, GeminiTextGenerator, TextGenerator
from src.audit import AuditLogger, create_correlation_id
from src.config import LedgerSettings, get_settings
from src.ledger import ExpenseLedger, LedgerError, MembershipManager
from src.models.expense import ExpenseCategory, Group, GroupExpense, User
from src.services.storage import (
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
)


logger = structlog.get_logger(__name__)


class SuggestionsUnavailableError(Exception):
    """No text-generation collaborator is configured."""
    pass


class GroupExpenseTracker:
    """
    Facade over membership, ledger and AI suggestions.

    Each tracker owns its own store, so independent trackers never
    share users or groups.
    """

    def __init__(
        self,
        store: Optional[LedgerStorageInterface] = None,
        generator: Optional[TextGenerator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[LedgerSettings] = None,
    ):
        self._settings = settings or get_settings().ledger
        self._store = store or InMemoryLedgerStorage()
        self._membership = MembershipManager()
        self._ledger = ExpenseLedger(self._settings)
        self._agent = (
            ExpenseSuggestionAgent(generator, self._ledger, self._settings)
            if generator is not None
            else None
        )
        self._audit_logger = audit_logger

    @property
    def store(self) -> LedgerStorageInterface:
        return self._store

    @property
    def suggestions_enabled(self) -> bool:
        return self._agent is not None

    # -------------------------------------------------------------------------
    # Users and groups
    # -------------------------------------------------------------------------

    def register_user(self, username: str) -> User:
        """Create and store a new user with a unique username."""
        return self._store.add_user(User(username=username))

    def create_group(self, name: str, creator: Optional[User]) -> Group:
        group = self._membership.create_group(name, creator)
        self._store.add_group(group)
        if self._audit_logger:
            self._audit_logger.log_group_created(group)
        return group

    def add_user(
        self,
        acting_user: Optional[User],
        new_user: Optional[User],
        group: Optional[Group],
    ) -> bool:
        added = self._membership.add_user(acting_user, new_user, group)
        if added and self._audit_logger:
            self._audit_logger.log_member_added(group, acting_user, new_user)
        return added

    def remove_user(
        self,
        owner: Optional[User],
        user: Optional[User],
        group: Optional[Group],
    ) -> bool:
        removed = self._membership.remove_user(owner, user, group)
        if removed and self._audit_logger:
            self._audit_logger.log_member_removed(group, owner, user)
        return removed

    def leave_group(self, group: Optional[Group], user: Optional[User]) -> None:
        self._membership.leave_group(group, user)
        if self._audit_logger:
            self._audit_logger.log_member_left(group, user)

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    def add_group_expense(
        self,
        payer: Optional[User],
        group: Optional[Group],
        title: str,
        description: str,
        category: Union[ExpenseCategory, str],
        total_cost: Any,
        expense_date: Union[date, datetime],
        debt_mapping: Mapping[User, Any],
    ) -> GroupExpense:
        expense = self._ledger.add_group_expense(
            payer, group, title, description, category,
            total_cost, expense_date, debt_mapping,
        )
        if self._audit_logger:
            self._audit_logger.log_expense_added(group, expense)
        return expense

    async def suggest_expense_with_ai(
        self,
        inputter: Optional[User],
        group: Optional[Group],
        prompt: str,
        current_date: Optional[Union[date, datetime]] = None,
    ) -> GroupExpense:
        """
        Interpret a free-text expense with the collaborator and commit it.

        Rejections and collaborator failures are audited, then re-raised
        unchanged.
        """
        if self._agent is None:
            raise SuggestionsUnavailableError(
                "AI suggestions need a text-generation collaborator"
            )

        correlation_id = create_correlation_id()
        if self._audit_logger and group is not None and inputter is not None:
            self._audit_logger.log_suggestion_requested(
                group, inputter, prompt, correlation_id
            )

        try:
            response_text = await self._agent.request_reply(
                inputter, group, prompt, current_date
            )
        except LedgerError as e:
            self._audit_rejection(group, inputter, e, correlation_id)
            raise
        except Exception as e:
            # Only the collaborator call itself counts as an external failure
            if self._audit_logger:
                self._audit_logger.log_external_service_error(
                    service="text_generation",
                    error=e,
                    correlation_id=correlation_id,
                )
            raise

        try:
            expense = self._agent.commit_reply(group, response_text)
        except LedgerError as e:
            self._audit_rejection(group, inputter, e, correlation_id)
            raise

        if self._audit_logger:
            self._audit_logger.log_expense_added(group, expense, correlation_id)
            self._audit_logger.log_suggestion_accepted(expense, inputter, correlation_id)
        return expense

    def _audit_rejection(
        self,
        group: Optional[Group],
        inputter: Optional[User],
        error: LedgerError,
        correlation_id: UUID,
    ) -> None:
        if self._audit_logger and group is not None and inputter is not None:
            self._audit_logger.log_suggestion_rejected(
                group, inputter, error, correlation_id
            )

    def member_balances(self, group: Group) -> dict[User, Decimal]:
        return self._ledger.member_balances(group)


def create_app_components(
    use_ai: bool = True,
    generator: Optional[TextGenerator] = None,
) -> tuple[GroupExpenseTracker, AuditLogger]:
    """
    Factory function to create a ready-to-use tracker.

    Args:
        use_ai: Whether to set up the Gemini collaborator when no
                generator is passed. Without GEMINI_API_KEY the tracker
                is still built, just without AI suggestions.
        generator: Explicit collaborator (e.g. a fake in tests).

    Returns:
        (tracker, audit_logger)
    """
    audit_logger = AuditLogger(InMemoryAuditStorage())

    if generator is None and use_ai:
        try:
            generator = GeminiTextGenerator()
        except Exception as e:
            # Collaborator not configured - continue without it
            logger.warning("ai_suggestions_disabled", error=str(e))
            generator = None

    tracker = GroupExpenseTracker(
        generator=generator,
        audit_logger=audit_logger,
    )
    return tracker, audit_logger
