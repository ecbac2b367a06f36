"""Tests for the expense ledger (manual entry and the shared commit gate)."""

import pytest
from decimal import Decimal

from src.config import LedgerSettings
from src.ledger import (
    DebtSumMismatchError,
    ExpenseLedger,
    InvalidArgumentError,
    NegativeDebtError,
    NonPositiveCostError,
    NotAMemberError,
    UnknownCategoryError,
)
from src.models.expense import ExpenseCategory, ExpenseSource


class TestAddGroupExpense:
    """Tests for manual expense entry."""

    def test_dinner_night_scenario(self, membership, ledger, alice, bob, today):
        group = membership.create_group("Dinner Night", alice)
        membership.add_user(alice, bob, group)

        expense = ledger.add_group_expense(
            alice, group, "Dinner", "Pizza night", "Food", 30, today,
            {alice: 20, bob: 10},
        )

        assert group.expenses == [expense]
        assert group.expenses[-1] is expense
        assert expense.total_cost == 30
        assert expense.debt_mapping[bob] == 10
        assert expense.category == ExpenseCategory.FOOD
        assert expense.source == ExpenseSource.MANUAL

    def test_fields_kept_verbatim(self, ledger, group, alice, bob, today):
        expense = ledger.add_group_expense(
            alice, group, "Museum", "Tickets for two", ExpenseCategory.OTHER,
            Decimal("24.50"), today, {alice: Decimal("12.25"), bob: Decimal("12.25")},
        )
        assert expense.title == "Museum"
        assert expense.description == "Tickets for two"
        assert expense.payer == alice
        assert expense.expense_date == today
        assert expense.total_cost == Decimal("24.50")

    def test_missing_payer_rejected(self, ledger, group, today):
        with pytest.raises(InvalidArgumentError, match="payer must exist"):
            ledger.add_group_expense(None, group, "X", "", "Food", 10, today, {})

    def test_missing_group_rejected(self, ledger, alice, today):
        with pytest.raises(InvalidArgumentError):
            ledger.add_group_expense(alice, None, "X", "", "Food", 10, today, {alice: 10})

    def test_non_member_payer_rejected(self, ledger, group, dave, alice, today):
        with pytest.raises(NotAMemberError, match="Payer Dave"):
            ledger.add_group_expense(dave, group, "X", "", "Food", 10, today, {alice: 10})
        assert group.expenses == []

    def test_membership_checked_before_cost(self, ledger, group, dave, today):
        with pytest.raises(NotAMemberError):
            ledger.add_group_expense(dave, group, "X", "", "Food", -5, today, {})

    @pytest.mark.parametrize("cost", [0, -10, "-0.01"])
    def test_non_positive_cost_rejected(self, ledger, group, alice, today, cost):
        with pytest.raises(NonPositiveCostError):
            ledger.add_group_expense(alice, group, "X", "", "Food", cost, today, {alice: cost})

    def test_nan_cost_rejected(self, ledger, group, alice, today):
        with pytest.raises(InvalidArgumentError, match="finite"):
            ledger.add_group_expense(
                alice, group, "X", "", "Food", float("nan"), today, {alice: 1}
            )

    def test_debt_sum_below_tolerance_accepted(self, ledger, group, alice, bob, today):
        expense = ledger.add_group_expense(
            alice, group, "X", "", "Food", 30, today, {alice: 20, bob: 9.995}
        )
        assert expense.debt_sum == Decimal("29.995")

    def test_debt_sum_at_tolerance_rejected(self, ledger, group, alice, bob, today):
        with pytest.raises(DebtSumMismatchError) as excinfo:
            ledger.add_group_expense(
                alice, group, "X", "", "Food", 30, today, {alice: 20, bob: 9.99}
            )
        assert excinfo.value.debt_sum == Decimal("29.99")
        assert group.expenses == []

    def test_zero_tolerance_needs_exact_sum(self, group, alice, bob, today):
        ledger = ExpenseLedger(LedgerSettings(debt_tolerance=Decimal("0")))
        expense = ledger.add_group_expense(
            alice, group, "X", "", "Food", 30, today, {alice: 20, bob: 10}
        )
        assert expense in group.expenses
        with pytest.raises(DebtSumMismatchError):
            ledger.add_group_expense(
                alice, group, "X", "", "Food", 30, today, {alice: 20, bob: 9.999}
            )

    def test_debt_sum_mismatch_rejected(self, ledger, group, alice, bob, today):
        with pytest.raises(DebtSumMismatchError) as excinfo:
            ledger.add_group_expense(
                alice, group, "X", "", "Food", 30, today, {alice: 20, bob: 9.98}
            )
        assert excinfo.value.debt_sum == Decimal("29.98")
        assert group.expenses == []

    def test_sum_checked_before_negative_amounts(self, ledger, group, alice, bob, today):
        with pytest.raises(DebtSumMismatchError):
            ledger.add_group_expense(
                alice, group, "X", "", "Food", 10, today, {alice: 20, bob: -5}
            )

    def test_negative_debt_rejected(self, ledger, group, alice, bob, today):
        with pytest.raises(NegativeDebtError, match="Bob"):
            ledger.add_group_expense(
                alice, group, "X", "", "Food", 10, today, {alice: 15, bob: -5}
            )

    def test_unknown_category_rejected(self, ledger, group, alice, today):
        with pytest.raises(UnknownCategoryError, match="Entertainment"):
            ledger.add_group_expense(
                alice, group, "Movie", "", "Entertainment", 10, today, {alice: 10}
            )

    def test_non_member_debtor_rejected(self, ledger, group, alice, dave, today):
        with pytest.raises(NotAMemberError, match="Dave"):
            ledger.add_group_expense(
                alice, group, "X", "", "Food", 10, today, {alice: 5, dave: 5}
            )
        assert group.expenses == []

    def test_custom_tolerance(self, group, alice, bob, today):
        ledger = ExpenseLedger(LedgerSettings(debt_tolerance=Decimal("0.05")))
        expense = ledger.add_group_expense(
            alice, group, "X", "", "Food", 30, today, {alice: 20, bob: 9.96}
        )
        assert expense in group.expenses

    def test_overlong_title_rejected(self, ledger, group, alice, today):
        with pytest.raises(InvalidArgumentError, match="title"):
            ledger.add_group_expense(
                alice, group, "T" * 300, "", "Food", 10, today, {alice: 10}
            )
        assert group.expenses == []

    def test_expenses_appended_in_order(self, ledger, group, alice, bob, today):
        first = ledger.add_group_expense(alice, group, "A", "", "Food", 10, today, {alice: 10})
        second = ledger.add_group_expense(bob, group, "B", "", "Food", 10, today, {bob: 10})
        assert group.expenses == [first, second]


class TestMemberBalances:
    """Tests for net balances."""

    def test_balances_net_out(self, ledger, group, alice, bob, charlie, today):
        ledger.add_group_expense(
            alice, group, "Hotel", "", "Lodging", 90, today,
            {alice: 30, bob: 30, charlie: 30},
        )
        ledger.add_group_expense(
            bob, group, "Taxi", "", "Transport", 20, today, {alice: 10, bob: 10}
        )

        balances = ledger.member_balances(group)

        assert balances[alice] == Decimal("50")
        assert balances[bob] == Decimal("-20")
        assert balances[charlie] == Decimal("-30")
        assert sum(balances.values()) == 0

    def test_members_without_expenses_have_zero(self, ledger, group, alice):
        assert ledger.member_balances(group)[alice] == 0

    def test_removed_member_keeps_balance(
        self, membership, ledger, group, alice, bob, today
    ):
        ledger.add_group_expense(alice, group, "X", "", "Food", 10, today, {bob: 10})
        membership.remove_user(alice, bob, group)
        assert ledger.member_balances(group)[bob] == Decimal("-10")
