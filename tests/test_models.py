"""
Tests for the Group Expense Tracker models

Test strategy:
1. Unit tests for individual components (models, ledger rules)
2. Pipeline tests for AI suggestions (with a fake collaborator)
3. No real API calls in tests
"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from src.config import LedgerSettings
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from src.models.expense import (
    ExpenseCategory,
    ExpenseSource,
    ExpenseSuggestion,
    Group,
    GroupExpense,
    User,
)


class TestUser:
    """Tests for the User model."""

    def test_user_strips_whitespace(self):
        """Test that whitespace is stripped from username."""
        assert User(username="  Alice ").username == "Alice"

    def test_user_rejects_blank_username(self):
        with pytest.raises(ValueError):
            User(username="   ")

    def test_users_with_same_name_are_distinct(self):
        """Identity is the id, not the display name."""
        first = User(username="Sam")
        second = User(username="Sam")
        assert first != second
        assert len({first, second}) == 2

    def test_user_is_immutable(self):
        user = User(username="Alice")
        with pytest.raises(ValidationError):
            user.username = "Mallory"


class TestGroup:
    """Tests for the Group model."""

    def test_creator_must_be_member(self, alice, bob):
        with pytest.raises(ValueError, match="creator must be a member"):
            Group(name="Trip", creator=alice, users=[bob])

    def test_creator_cannot_be_reassigned(self, alice, bob):
        group = Group(name="Trip", creator=alice, users=[alice, bob])
        with pytest.raises(ValidationError):
            group.creator = bob

    def test_blank_name_rejected(self, alice):
        with pytest.raises(ValueError):
            Group(name="  ", creator=alice, users=[alice])

    def test_find_members_matches_exact_username(self, group, bob):
        assert group.find_members("Bob") == [bob]
        assert group.find_members("bob") == []

    def test_member_usernames_keep_join_order(self, group):
        assert group.member_usernames() == ["Alice", "Bob", "Charlie"]


class TestGroupExpense:
    """Tests for the GroupExpense model."""

    def test_expense_truncates_datetime(self, alice):
        expense = GroupExpense(
            title="Taxi",
            category=ExpenseCategory.TRANSPORT,
            total_cost=Decimal("12.50"),
            payer=alice,
            expense_date=datetime(2025, 10, 16, 21, 30),
            debt_mapping={alice: Decimal("12.50")},
        )
        assert expense.expense_date == date(2025, 10, 16)
        assert expense.source == ExpenseSource.MANUAL

    def test_expense_is_immutable(self, alice):
        expense = GroupExpense(
            title="Taxi",
            category="Transport",
            total_cost=Decimal("12.50"),
            payer=alice,
            expense_date=date(2025, 10, 16),
            debt_mapping={alice: Decimal("12.50")},
        )
        with pytest.raises(ValidationError):
            expense.title = "Bus"

    def test_amount_owed_defaults_to_zero(self, alice, bob):
        expense = GroupExpense(
            title="Taxi",
            category="Transport",
            total_cost=Decimal("10"),
            payer=alice,
            expense_date=date(2025, 10, 16),
            debt_mapping={alice: Decimal("10")},
        )
        assert expense.amount_owed_by(bob) == Decimal("0")
        assert expense.debt_sum == Decimal("10")


class TestExpenseSuggestion:
    """Tests for the collaborator wire model."""

    def test_parses_camel_case_fields(self):
        suggestion = ExpenseSuggestion.model_validate({
            "title": "Hotel",
            "payer": "Alice",
            "category": "Lodging",
            "totalCost": 200,
            "date": "2025-10-01T12:00:00Z",
            "debtMapping": {"Alice": 100, "Bob": 100},
        })
        assert suggestion.total_cost == 200.0
        assert suggestion.expense_date == date(2025, 10, 1)
        assert suggestion.debt_mapping == {"Alice": 100.0, "Bob": 100.0}
        assert suggestion.description == ""

    def test_garbage_after_date_rejected(self):
        with pytest.raises(ValidationError):
            ExpenseSuggestion.model_validate({
                "title": "Hotel",
                "payer": "Alice",
                "category": "Lodging",
                "totalCost": 200,
                "date": "2025-10-17Tnonsense",
                "debtMapping": {"Alice": 200},
            })

    def test_title_limited_like_expense(self):
        with pytest.raises(ValidationError):
            ExpenseSuggestion.model_validate({
                "title": "T" * 201,
                "payer": "Alice",
                "category": "Lodging",
                "totalCost": 200,
                "date": "2025-10-17",
                "debtMapping": {"Alice": 200},
            })

    def test_missing_debt_mapping_rejected(self):
        with pytest.raises(ValidationError):
            ExpenseSuggestion.model_validate({
                "title": "Hotel",
                "payer": "Alice",
                "category": "Lodging",
                "totalCost": 200,
                "date": "2025-10-01",
            })


class TestExpenseCategories:
    """Tests for expense category enum."""

    def test_all_categories_exist(self):
        assert ExpenseCategory.values() == [
            "Food", "Lodging", "Transport", "Shopping", "Other",
        ]

    def test_unknown_category_rejected(self):
        with pytest.raises(ValueError):
            ExpenseCategory("Entertainment")


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_defaults(self):
        event = AuditEvent(
            event_type=AuditEventType.GROUP_CREATED,
            description="Group created",
        )
        assert event.severity == AuditSeverity.INFO
        assert event.correlation_id is None

    def test_audit_event_to_log_dict(self):
        group_id = uuid4()
        event = AuditEventBuilder.member_added(
            group_id=group_id,
            group_name="Trip",
            added_by="Alice",
            member="Bob",
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "member_added"
        assert log_dict["entity_id"] == str(group_id)
        assert log_dict["actor"] == "Alice"
        assert log_dict["details"]["member"] == "Bob"

    def test_rejected_suggestion_records_error(self):
        correlation_id = uuid4()
        event = AuditEventBuilder.ai_suggestion_rejected(
            group_id=uuid4(),
            inputter="Alice",
            error=ValueError("bad reply"),
            correlation_id=correlation_id,
        )
        assert event.severity == AuditSeverity.WARNING
        assert event.error_type == "ValueError"
        assert event.error_message == "bad reply"
        assert '"event_type": "ai_suggestion_rejected"' in event.to_json()


class TestSettings:
    """Tests for ledger settings."""

    def test_default_tolerance(self):
        assert LedgerSettings().debt_tolerance == Decimal("0.01")

    def test_tolerance_parsed_from_string(self):
        assert LedgerSettings(debt_tolerance="0.05").debt_tolerance == Decimal("0.05")

    def test_negative_tolerance_rejected(self):
        with pytest.raises(ValueError):
            LedgerSettings(debt_tolerance="-1")
