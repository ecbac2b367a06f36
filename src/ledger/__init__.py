"""Ledger package: membership rules and expense validation."""

from src.ledger.errors import (
    BusinessRuleViolation,
    DebtSumMismatchError,
    InvalidArgumentError,
    LedgerError,
    NegativeDebtError,
    NonPositiveCostError,
    NotAMemberError,
    OutstandingBalanceError,
    PermissionDeniedError,
    UnknownCategoryError,
)
from src.ledger.expenses import ExpenseLedger, to_decimal
from src.ledger.membership import MembershipManager

__all__ = [
    # Services
    "ExpenseLedger",
    "MembershipManager",
    "to_decimal",
    # Exceptions
    "BusinessRuleViolation",
    "DebtSumMismatchError",
    "InvalidArgumentError",
    "LedgerError",
    "NegativeDebtError",
    "NonPositiveCostError",
    "NotAMemberError",
    "OutstandingBalanceError",
    "PermissionDeniedError",
    "UnknownCategoryError",
]
