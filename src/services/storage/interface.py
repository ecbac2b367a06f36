"""
Abstract Storage Interface

DESIGN DECISION: Users and groups live in an explicitly owned store
rather than in module-level lists. This allows us to:
1. Run several independent ledgers side by side (e.g. one per test)
2. Tear state down explicitly with clear()
3. Swap the in-memory store for a real database later

The interface is intentionally simple - just the lookups the tracker needs.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from src.models.audit import AuditEvent
from src.models.expense import Group, User


class LedgerStorageInterface(ABC):
    """
    Abstract interface for user and group storage.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def add_user(self, user: User) -> User:
        """
        Register a user.

        Raises:
            DuplicateError: If the username is already taken
        """
        pass

    @abstractmethod
    def get_user(self, user_id: UUID) -> User:
        """
        Retrieve a user by ID.

        Raises:
            NotFoundError: If no such user exists
        """
        pass

    @abstractmethod
    def get_user_by_username(self, username: str) -> User:
        """
        Retrieve a user by exact username.

        Raises:
            NotFoundError: If no such user exists
        """
        pass

    @abstractmethod
    def list_users(self) -> list[User]:
        """All registered users, in registration order."""
        pass

    @abstractmethod
    def add_group(self, group: Group) -> Group:
        """
        Register a group.

        Raises:
            DuplicateError: If the group is already stored
        """
        pass

    @abstractmethod
    def get_group(self, group_id: UUID) -> Group:
        """
        Retrieve a group by ID.

        Raises:
            NotFoundError: If no such group exists
        """
        pass

    @abstractmethod
    def list_groups(self) -> list[Group]:
        """All groups, in creation order."""
        pass

    @abstractmethod
    def groups_for_user(self, user: User) -> list[Group]:
        """Groups the user is currently a member of."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Drop every user and group."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Events sharing a correlation ID, in chronological order."""
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """The most recent events (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass
