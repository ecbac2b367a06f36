"""
Membership Manager

Creates groups and manages who belongs to them.

RULES:
- Any member can add another user (adding an existing member is a no-op)
- Only the creator can remove members, and removal ignores balances
- A member can leave only when they owe nothing on any recorded expense
- The creator always stays a member

Removing or adding members never touches the expenses already recorded.
"""

from decimal import Decimal
from typing import Optional

from src.ledger.errors import (
    InvalidArgumentError,
    NotAMemberError,
    OutstandingBalanceError,
    PermissionDeniedError,
)
from src.models.expense import Group, GroupExpense, User


class MembershipManager:
    """Add, remove and leave operations on a Group."""

    def create_group(self, name: str, creator: Optional[User]) -> Group:
        """Create a group whose only member is its creator."""
        if creator is None:
            raise InvalidArgumentError("Creator must exist")
        if not name or not name.strip():
            raise InvalidArgumentError("Group name is required")

        return Group(name=name, creator=creator, users=[creator])

    def add_user(
        self,
        acting_user: Optional[User],
        new_user: Optional[User],
        group: Optional[Group],
    ) -> bool:
        """
        Add new_user to the group on behalf of acting_user.

        Returns False when new_user was already a member.
        """
        if group is None or acting_user is None or new_user is None:
            raise InvalidArgumentError("Group and users must exist")
        if not group.is_member(acting_user):
            raise PermissionDeniedError(
                f'{acting_user.username} must be a member of group "{group.name}" to add users'
            )
        if acting_user == new_user:
            raise InvalidArgumentError("User cannot add themselves")

        if group.is_member(new_user):
            return False

        group.users.append(new_user)
        return True

    def remove_user(
        self,
        owner: Optional[User],
        user: Optional[User],
        group: Optional[Group],
    ) -> bool:
        """
        Remove a member. Only the group creator may do this.

        Outstanding balances are not checked. Returns False when the
        user was not a member.
        """
        if group is None or owner is None or user is None:
            raise InvalidArgumentError("Group and users must exist")
        if group.creator != owner:
            raise PermissionDeniedError("Only the group creator can remove users")
        if user == group.creator:
            raise InvalidArgumentError("The group creator cannot be removed")

        if not group.is_member(user):
            return False

        group.users = [member for member in group.users if member != user]
        return True

    def leave_group(self, group: Optional[Group], user: Optional[User]) -> None:
        """Remove user from the group if they owe nothing on any expense."""
        if group is None or user is None:
            raise InvalidArgumentError("Group and user must exist")
        if not group.is_member(user):
            raise NotAMemberError(user.username, group.name)
        if user == group.creator:
            raise InvalidArgumentError("The group creator cannot leave the group")

        debts = self.outstanding_debts(group, user)
        if debts:
            expense, amount = debts[0]
            raise OutstandingBalanceError(user.username, expense.title, amount)

        group.users = [member for member in group.users if member != user]

    def outstanding_debts(
        self,
        group: Group,
        user: User,
    ) -> list[tuple[GroupExpense, Decimal]]:
        """
        Expenses on which the user still owes a positive amount.

        Only the user's own debt-mapping entries count; money owed TO the
        user as payer is not considered.
        """
        debts = []
        for expense in group.expenses:
            amount = expense.amount_owed_by(user)
            if amount > 0:
                debts.append((expense, amount))
        return debts
