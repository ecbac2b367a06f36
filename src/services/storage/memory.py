"""
In-Memory Storage

Process-lifetime storage for users, groups and audit events.
Each instance is independent; nothing is shared between instances.
"""

from uuid import UUID

from src.models.audit import AuditEvent
from src.models.expense import Group, User
from src.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Dict-backed user and group store."""

    def __init__(self):
        self._users: dict[UUID, User] = {}
        self._usernames: dict[str, UUID] = {}
        self._groups: dict[UUID, Group] = {}

    def add_user(self, user: User) -> User:
        if user.id in self._users:
            raise DuplicateError(f"User {user.username} is already registered")
        if user.username in self._usernames:
            raise DuplicateError(f"Username {user.username} is already taken")

        self._users[user.id] = user
        self._usernames[user.username] = user.id
        return user

    def get_user(self, user_id: UUID) -> User:
        try:
            return self._users[user_id]
        except KeyError:
            raise NotFoundError(f"No user with id {user_id}")

    def get_user_by_username(self, username: str) -> User:
        user_id = self._usernames.get(username)
        if user_id is None:
            raise NotFoundError(f"No user named {username}")
        return self._users[user_id]

    def list_users(self) -> list[User]:
        return list(self._users.values())

    def add_group(self, group: Group) -> Group:
        if group.id in self._groups:
            raise DuplicateError(f'Group "{group.name}" is already stored')
        self._groups[group.id] = group
        return group

    def get_group(self, group_id: UUID) -> Group:
        try:
            return self._groups[group_id]
        except KeyError:
            raise NotFoundError(f"No group with id {group_id}")

    def list_groups(self) -> list[Group]:
        return list(self._groups.values())

    def groups_for_user(self, user: User) -> list[Group]:
        return [group for group in self._groups.values() if group.is_member(user)]

    def clear(self) -> None:
        self._users.clear()
        self._usernames.clear()
        self._groups.clear()


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
