"""
Data Models Package

This package contains all Pydantic models used in the Group Expense Tracker.
All data flowing through the system must conform to these schemas.
"""

from src.models.expense import (
    ExpenseCategory,
    ExpenseSource,
    ExpenseSuggestion,
    Group,
    GroupExpense,
    User,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "ExpenseCategory",
    "ExpenseSource",
    "ExpenseSuggestion",
    "Group",
    "GroupExpense",
    "User",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
