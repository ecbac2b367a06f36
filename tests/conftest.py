"""
Shared fixtures.

No real API calls in tests: the collaborator is always FakeTextGenerator.
"""

import json
from datetime import date
from decimal import Decimal

import pytest

from src.agents import TextGenerator
from src.config import LedgerSettings
from src.ledger import ExpenseLedger, MembershipManager
from src.models.expense import User


class FakeTextGenerator(TextGenerator):
    """Returns a canned reply (or raises) and records every prompt."""

    def __init__(self, response: str = "", error: Exception = None):
        self.response = response
        self.error = error
        self.prompts = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


def make_reply(fenced: bool = False, **overrides) -> str:
    """Build a collaborator reply; overrides replace wire fields."""
    payload = {
        "title": "Dinner",
        "payer": "Bob",
        "description": "Dinner with 15% tip",
        "category": "Food",
        "totalCost": 57.5,
        "date": "2025-10-16",
        "debtMapping": {"Alice": 19.17, "Bob": 19.17, "Charlie": 19.16},
    }
    payload.update(overrides)
    text = json.dumps(payload)
    if fenced:
        return f"```json\n{text}\n```"
    return text


@pytest.fixture
def settings():
    return LedgerSettings(debt_tolerance=Decimal("0.01"), amount_precision=Decimal("0.01"))


@pytest.fixture
def membership():
    return MembershipManager()


@pytest.fixture
def ledger(settings):
    return ExpenseLedger(settings)


@pytest.fixture
def alice():
    return User(username="Alice")


@pytest.fixture
def bob():
    return User(username="Bob")


@pytest.fixture
def charlie():
    return User(username="Charlie")


@pytest.fixture
def dave():
    return User(username="Dave")


@pytest.fixture
def group(membership, alice, bob, charlie):
    """Vacation group: Alice (creator), Bob, Charlie."""
    group = membership.create_group("Vacation 2025", alice)
    membership.add_user(alice, bob, group)
    membership.add_user(alice, charlie, group)
    return group


@pytest.fixture
def today():
    return date(2025, 10, 17)
