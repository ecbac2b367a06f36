"""
Core Data Models for the Group Expense Tracker

These models define the shared vocabulary of the ledger:
users, groups, and the expenses recorded inside a group.

DESIGN DECISION: We use Pydantic v2 models.
- User and GroupExpense are frozen: once created they never change.
- Group is mutable, but only through the membership manager and the
  expense ledger. Its creator can never be reassigned.

Money is held as Decimal so that the 0.01 reconciliation tolerance
is compared exactly, never through float rounding.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def coerce_date(value: Any) -> Any:
    """
    Truncate datetimes (and ISO datetime strings) to their calendar date.

    Strings that are not valid ISO datetimes, and anything else, are
    returned untouched for pydantic to validate.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        value = value.strip()
        if len(value) > 10:
            try:
                return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
            except ValueError:
                return value
    return value


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Supported expense categories.

    The values double as the wire vocabulary offered to the
    text-generation collaborator, so they are capitalized words.
    """
    FOOD = "Food"
    LODGING = "Lodging"
    TRANSPORT = "Transport"
    SHOPPING = "Shopping"
    OTHER = "Other"

    @classmethod
    def values(cls) -> list[str]:
        return [category.value for category in cls]


class ExpenseSource(str, Enum):
    """Which entry point produced an expense."""
    MANUAL = "manual"
    AI_SUGGESTION = "ai_suggestion"


# =============================================================================
# ENTITIES
# =============================================================================

class User(BaseModel):
    """
    A person who can belong to groups.

    Identity is the generated id, not the display name: two users that
    happen to share a username are still different people.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique user ID"
    )
    username: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )

    def __str__(self) -> str:
        return self.username


class GroupExpense(BaseModel):
    """
    A single expense shared within a group.

    CRITICAL: Instances are only built by ExpenseLedger.commit_expense,
    which checks the accounting invariants before construction.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique expense ID"
    )
    created_at: datetime = Field(
        default_factory=_utcnow,
        description="When the expense was recorded"
    )

    title: str = Field(
        ...,
        max_length=200,
        description="Short expense title"
    )
    description: str = Field(
        default="",
        description="Longer free-text description"
    )
    category: ExpenseCategory
    total_cost: Decimal = Field(
        ...,
        gt=0,
        description="Total cost of the expense"
    )
    payer: User = Field(
        ...,
        description="Member who fronted the cost"
    )
    expense_date: date = Field(
        ...,
        description="When the expense occurred"
    )
    debt_mapping: dict[User, Decimal] = Field(
        default_factory=dict,
        description="How much each user owes toward the total"
    )
    source: ExpenseSource = Field(
        default=ExpenseSource.MANUAL,
        description="Entry point that produced this expense"
    )

    @field_validator("expense_date", mode="before")
    @classmethod
    def truncate_datetime(cls, v: Any) -> Any:
        return coerce_date(v)

    def amount_owed_by(self, user: User) -> Decimal:
        """Amount the user owes on this expense (zero when not listed)."""
        return self.debt_mapping.get(user, Decimal("0"))

    @property
    def debt_sum(self) -> Decimal:
        return sum(self.debt_mapping.values(), Decimal("0"))


class Group(BaseModel):
    """
    A group of users sharing expenses.

    Invariant: the creator is always a member.
    The expense list is append-only.
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique group ID"
    )
    created_at: datetime = Field(
        default_factory=_utcnow
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Group name"
    )
    creator: User = Field(
        ...,
        frozen=True,
        description="User who created the group"
    )
    users: list[User] = Field(
        default_factory=list,
        description="Current members, in the order they joined"
    )
    expenses: list[GroupExpense] = Field(
        default_factory=list,
        description="Recorded expenses, oldest first"
    )

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Group name cannot be blank")
        return v

    @model_validator(mode="after")
    def validate_creator_is_member(self) -> "Group":
        if self.creator not in self.users:
            raise ValueError("Group creator must be a member")
        return self

    def is_member(self, user: Optional[User]) -> bool:
        return user is not None and user in self.users

    def member_usernames(self) -> list[str]:
        return [user.username for user in self.users]

    def find_members(self, username: str) -> list[User]:
        """All current members whose username matches exactly."""
        return [user for user in self.users if user.username == username]


# =============================================================================
# COLLABORATOR WIRE MODEL
# =============================================================================

class ExpenseSuggestion(BaseModel):
    """
    The structured answer expected from the text-generation collaborator.

    CRITICAL: This is PROPOSED data, NOT verified.
    Usernames are raw strings and amounts are unchecked; the suggestion
    agent validates and resolves them before anything touches a group.
    """
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: str = Field(..., max_length=200)
    payer: str
    description: str = ""
    category: str
    total_cost: float = Field(alias="totalCost")
    expense_date: date = Field(alias="date")
    debt_mapping: dict[str, float] = Field(alias="debtMapping")

    @field_validator("expense_date", mode="before")
    @classmethod
    def truncate_datetime(cls, v: Any) -> Any:
        return coerce_date(v)
