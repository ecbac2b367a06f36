"""
Ledger Exceptions

Every rule the ledger enforces has its own exception class so callers
can tell exactly which check failed. All of them are raised before any
group is mutated.
"""

from decimal import Decimal
from typing import Optional


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class InvalidArgumentError(LedgerError, ValueError):
    """A required entity is missing or an argument is unusable."""
    pass


class NotAMemberError(InvalidArgumentError):
    """The user is not a current member of the group."""

    def __init__(self, username: str, group_name: str, message: Optional[str] = None):
        self.username = username
        self.group_name = group_name
        super().__init__(message or f'{username} is not a member of group "{group_name}"')


class PermissionDeniedError(LedgerError):
    """The acting user is not allowed to perform this operation."""
    pass


class BusinessRuleViolation(LedgerError):
    """An accounting or membership rule would be broken."""
    pass


class OutstandingBalanceError(BusinessRuleViolation):
    """User tried to leave while still owing money on an expense."""

    def __init__(self, username: str, expense_title: str, amount: Decimal):
        self.username = username
        self.expense_title = expense_title
        self.amount = amount
        super().__init__(
            f'{username} cannot leave: still owes {amount} on "{expense_title}" '
            "(outstanding balance)"
        )


class NonPositiveCostError(BusinessRuleViolation):
    """Total cost is zero or negative."""
    pass


class DebtSumMismatchError(BusinessRuleViolation):
    """Debt mapping does not add up to the total cost."""

    def __init__(self, debt_sum: Decimal, total_cost: Decimal, tolerance: Decimal):
        self.debt_sum = debt_sum
        self.total_cost = total_cost
        self.tolerance = tolerance
        super().__init__(
            f"Debt mapping sums to {debt_sum} but total cost is {total_cost} "
            f"(tolerance {tolerance})"
        )


class NegativeDebtError(BusinessRuleViolation):
    """A debt mapping amount is negative."""
    pass


class UnknownCategoryError(BusinessRuleViolation):
    """Category is not one of the supported expense categories."""
    pass
