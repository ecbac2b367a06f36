"""
Expense Ledger

DESIGN DECISION: There is exactly ONE way to put an expense into a group:
commit_expense(). Manual entry and AI suggestions both go through it, so
both are held to the same rules:

1. Group and payer must exist
2. Payer must be a current member
3. Total cost must be a finite, strictly positive number
4. Debt mapping must sum to the total cost (difference below the tolerance)
5. No debt amount may be negative
6. Category must be one of the supported categories
7. Every debtor must be a current member

Checks run in this order and fail fast. Nothing is appended unless
every check passes.
"""

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from src.config import LedgerSettings, get_settings
from src.ledger.errors import (
    DebtSumMismatchError,
    InvalidArgumentError,
    NegativeDebtError,
    NonPositiveCostError,
    NotAMemberError,
    UnknownCategoryError,
)
from src.models.expense import (
    ExpenseCategory,
    ExpenseSource,
    Group,
    GroupExpense,
    User,
)


def to_decimal(value: Any, field: str) -> Decimal:
    """
    Convert a number to Decimal without float artifacts.

    Floats go through str() so 29.99 stays 29.99.
    """
    if isinstance(value, bool):
        raise InvalidArgumentError(f"{field} must be a number, got {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidArgumentError(f"{field} must be a number, got {value!r}")
    if not amount.is_finite():
        raise InvalidArgumentError(f"{field} must be a finite number, got {value!r}")
    return amount


class ExpenseLedger:
    """Validates and records expenses in a group."""

    def __init__(self, settings: Optional[LedgerSettings] = None):
        self._settings = settings or get_settings().ledger

    @property
    def tolerance(self) -> Decimal:
        return self._settings.debt_tolerance

    def debts_reconcile(self, debt_sum: Decimal, total_cost: Decimal) -> bool:
        """
        True when the debts add up to the total cost.

        A difference equal to the tolerance is a mismatch: 29.99 against
        30 is rejected with the default 0.01.
        """
        difference = abs(debt_sum - total_cost)
        return difference == 0 or difference < self.tolerance

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
        """Record an expense entered by hand."""
        return self.commit_expense(
            payer=payer,
            group=group,
            title=title,
            description=description,
            category=category,
            total_cost=total_cost,
            expense_date=expense_date,
            debt_mapping=debt_mapping,
            source=ExpenseSource.MANUAL,
        )

    def commit_expense(
        self,
        payer: Optional[User],
        group: Optional[Group],
        title: str,
        description: str,
        category: Union[ExpenseCategory, str],
        total_cost: Any,
        expense_date: Union[date, datetime],
        debt_mapping: Mapping[User, Any],
        source: ExpenseSource = ExpenseSource.MANUAL,
    ) -> GroupExpense:
        """
        Validate an expense and append it to the group.

        Returns the stored expense (the same object now in group.expenses).

        Raises:
            InvalidArgumentError: missing group/payer, non-numeric amounts
                or fields the expense model rejects
            NotAMemberError: payer or a debtor is not a current member
            NonPositiveCostError: total cost is not strictly positive
            DebtSumMismatchError: debts do not add up to the total cost
            NegativeDebtError: a debt amount is negative
            UnknownCategoryError: category is not supported
        """
        if group is None or payer is None:
            raise InvalidArgumentError("Group and payer must exist")
        if not group.is_member(payer):
            raise NotAMemberError(
                payer.username,
                group.name,
                f'Payer {payer.username} must be a member of group "{group.name}"',
            )

        cost = to_decimal(total_cost, "Total cost")
        if cost <= 0:
            raise NonPositiveCostError(f"Total cost must be positive, got {cost}")

        debts = {
            user: to_decimal(amount, f"Debt amount for {user.username}")
            for user, amount in debt_mapping.items()
        }
        debt_sum = sum(debts.values(), Decimal("0"))
        if not self.debts_reconcile(debt_sum, cost):
            raise DebtSumMismatchError(debt_sum, cost, self.tolerance)

        for user, amount in debts.items():
            if amount < 0:
                raise NegativeDebtError(
                    f"Debt amount for {user.username} must not be negative, got {amount}"
                )

        try:
            expense_category = ExpenseCategory(category)
        except ValueError:
            raise UnknownCategoryError(
                f'Invalid category "{category}". '
                f"Must be one of: {', '.join(ExpenseCategory.values())}"
            )

        for user in debts:
            if not group.is_member(user):
                raise NotAMemberError(user.username, group.name)

        try:
            expense = GroupExpense(
                title=title,
                description=description,
                category=expense_category,
                total_cost=cost,
                payer=payer,
                expense_date=expense_date,
                debt_mapping=debts,
                source=source,
            )
        except ValidationError as e:
            fields = ", ".join(str(error["loc"][0]) for error in e.errors() if error["loc"])
            raise InvalidArgumentError(f"Invalid expense fields: {fields}") from e
        group.expenses.append(expense)
        return expense

    def member_balances(self, group: Group) -> dict[User, Decimal]:
        """
        Net balance per user across every recorded expense.

        Positive: the user is owed money. Negative: the user owes money.
        Former members with recorded debts or credits are included.
        """
        balances: dict[User, Decimal] = defaultdict(lambda: Decimal("0"))
        for member in group.users:
            balances[member] = Decimal("0")

        for expense in group.expenses:
            for debtor, amount in expense.debt_mapping.items():
                if debtor == expense.payer:
                    continue
                balances[debtor] -= amount
                balances[expense.payer] += amount

        return dict(balances)
