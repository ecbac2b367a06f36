"""
Group Expense Tracker - Source Package

Shared expenses within groups, with AI-assisted entry from free text.

DESIGN PRINCIPLES:
1. AI suggests → System verifies → Ledger records
2. Fail early, fail visibly
3. No silent corrections
4. Every change is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Group Expense Tracker Team"
