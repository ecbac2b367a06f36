"""
AI Expense Suggestion Agent

Turns a member's free-text description of an expense ("dinner was $50
plus 15% tip, Bob paid") into a validated GroupExpense.

CRITICAL BOUNDARIES:
- The collaborator is a TRANSLATOR, not an authority.
  Its reply is parsed, checked against the group, and either committed
  whole or rejected whole. Nothing is ever corrected on its behalf.
- Usernames in the reply are resolved to existing members through an
  explicit lookup table. Unknown or ambiguous names are rejected, never
  guessed.
- The final expense goes through ExpenseLedger.commit_expense, the same
  gate manual entries use, so the debt mapping must add up to the total.

FLOW:
1. Preconditions (no collaborator call if they fail)
2. Build prompt
3. Call collaborator (only suspension point, failures propagate)
4. Strip code fence
5. Parse JSON into ExpenseSuggestion
6. Validate amounts, members, category, payer
7. Resolve usernames to User objects
8. Commit through the ledger
"""

import json
import math
from collections import defaultdict
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

from pydantic import ValidationError

from src.agents.text_generator import TextGenerator
from src.config import LedgerSettings, get_settings
from src.ledger import (
    ExpenseLedger,
    InvalidArgumentError,
    LedgerError,
    NotAMemberError,
)
from src.models.expense import (
    ExpenseCategory,
    ExpenseSource,
    ExpenseSuggestion,
    Group,
    GroupExpense,
    User,
)


FENCE = "```"


class MalformedResponseError(LedgerError):
    """The collaborator's reply cannot be accepted."""
    pass


class ResponseParseError(MalformedResponseError):
    """Reply is not a JSON object of the expected shape."""

    def __init__(self, raw_text: str, reason: str = ""):
        self.raw_text = raw_text
        message = f"Failed to parse model output: {raw_text}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class InvalidSuggestedAmountError(MalformedResponseError):
    """Suggested total or debt amount is not a usable number."""
    pass


class UnknownMemberError(MalformedResponseError):
    """Reply names a user who is not a current group member."""

    def __init__(self, username: str, role: str = "debt mapping"):
        self.username = username
        super().__init__(f"Model included unknown user in {role}: {username}")


class AmbiguousMemberError(MalformedResponseError):
    """Reply names a username shared by several members."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(
            f"Username {username} matches more than one group member; refusing to guess"
        )


class InvalidSuggestedCategoryError(MalformedResponseError):
    """Reply uses a category outside the supported set."""
    pass


class ExpenseSuggestionAgent:
    """
    AI agent that proposes and commits group expenses.

    RESPONSIBILITIES:
    - Describe the group and the request to the collaborator
    - Reject any reply that does not fit the group exactly
    - Hand accepted suggestions to the ledger
    """

    def __init__(
        self,
        generator: TextGenerator,
        ledger: Optional[ExpenseLedger] = None,
        settings: Optional[LedgerSettings] = None,
    ):
        self._generator = generator
        self._settings = settings or get_settings().ledger
        self._ledger = ledger or ExpenseLedger(self._settings)

    def build_prompt(
        self,
        inputter: User,
        group: Group,
        prompt: str,
        current_date: Union[date, datetime],
    ) -> str:
        """Build the single text prompt sent to the collaborator."""
        members = ", ".join(group.member_usernames())
        categories = "|".join(ExpenseCategory.values())

        return f"""You are an assistant that calculates the cost split for each involved member of a group.
Be precise with math and reasoning. If the request mentions who paid or who the purchase was for,
use that information to assign the cost correctly.

The person writing the request is: {inputter.username}
Group name: {group.name}
Group members: {members}
Request: {prompt}
Request written on: {current_date.isoformat()}

Respond with ONLY a JSON object in this exact format:
{{
  "title": "string",
  "payer": "username",
  "description": "string",
  "category": "{categories}",
  "totalCost": 0.00,
  "date": "YYYY-MM-DD",
  "debtMapping": {{"username": 0.00}}
}}

Rules:
- payer and every key of debtMapping must be one of the group members listed above
- numbers cannot be negative; totalCost must be greater than zero
- round all amounts to two decimal places
- the debtMapping amounts must add up to totalCost
- double check your math
- JSON only, no explanation"""

    @staticmethod
    def extract_json_text(response_text: str) -> str:
        """
        Remove a surrounding code fence, if any.

        Fenced replies lose their opening fence line (e.g. ```json) and
        the closing fence. Unfenced replies are returned stripped.
        """
        text = response_text.strip()
        if not text.startswith(FENCE):
            return text

        first_newline = text.find("\n")
        body = text[len(FENCE):] if first_newline == -1 else text[first_newline + 1:]
        closing = body.rfind(FENCE)
        if closing != -1:
            body = body[:closing]
        return body.strip()

    def parse_suggestion(self, text: str) -> ExpenseSuggestion:
        """Parse cleaned reply text into an ExpenseSuggestion."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ResponseParseError(text, e.msg) from e

        if not isinstance(data, dict):
            raise ResponseParseError(text, "expected a JSON object")

        try:
            return ExpenseSuggestion.model_validate(data)
        except ValidationError as e:
            fields = ", ".join(
                ".".join(str(part) for part in error["loc"]) for error in e.errors()
            )
            raise ResponseParseError(text, f"invalid fields: {fields}") from e

    def validate_suggestion(self, suggestion: ExpenseSuggestion, group: Group) -> None:
        """
        Check a parsed suggestion against the group.

        Each failure has its own exception; nothing is corrected.
        """
        if not (math.isfinite(suggestion.total_cost) and suggestion.total_cost > 0):
            raise InvalidSuggestedAmountError(
                f"Invalid totalCost from model: {suggestion.total_cost}. Must be positive."
            )

        for username, amount in suggestion.debt_mapping.items():
            if not math.isfinite(amount) or amount < 0:
                raise InvalidSuggestedAmountError(
                    f"Invalid debt amount for {username}: {amount}. "
                    "All amounts must be non-negative numbers."
                )

        for username in suggestion.debt_mapping:
            if not group.find_members(username):
                raise UnknownMemberError(username)

        if suggestion.category not in ExpenseCategory.values():
            raise InvalidSuggestedCategoryError(
                f'Invalid category "{suggestion.category}". '
                f"Must be one of: {', '.join(ExpenseCategory.values())}"
            )

        if not group.find_members(suggestion.payer):
            raise UnknownMemberError(suggestion.payer, role="payer")

    def resolve_members(
        self,
        suggestion: ExpenseSuggestion,
        group: Group,
    ) -> tuple[User, dict[User, Decimal]]:
        """
        Map usernames in the suggestion to the group's User objects.

        Returns (payer, debt_mapping) with amounts rounded to the
        configured precision.
        """
        lookup: dict[str, list[User]] = defaultdict(list)
        for member in group.users:
            lookup[member.username].append(member)

        def resolve(username: str, role: str) -> User:
            matches = lookup.get(username, [])
            if not matches:
                raise UnknownMemberError(username, role=role)
            if len(matches) > 1:
                raise AmbiguousMemberError(username)
            return matches[0]

        payer = resolve(suggestion.payer, "payer")
        debts: dict[User, Decimal] = {}
        for username, amount in suggestion.debt_mapping.items():
            debts[resolve(username, "debt mapping")] = self._round(amount)

        return payer, debts

    def _round(self, amount: float) -> Decimal:
        try:
            return Decimal(str(amount)).quantize(
                self._settings.amount_precision,
                rounding=ROUND_HALF_UP,
            )
        except InvalidOperation as e:
            raise InvalidSuggestedAmountError(
                f"Amount from model is too large to record: {amount}"
            ) from e

    async def request_reply(
        self,
        inputter: Optional[User],
        group: Optional[Group],
        prompt: str,
        current_date: Optional[Union[date, datetime]] = None,
    ) -> str:
        """
        Check the preconditions, then send the prompt to the collaborator.

        Returns the raw reply text. Collaborator failures propagate unchanged.
        """
        if group is None or inputter is None:
            raise InvalidArgumentError("Group and inputter must exist")
        if not group.is_member(inputter):
            raise NotAMemberError(
                inputter.username,
                group.name,
                f'Inputter {inputter.username} must be a member of group "{group.name}"',
            )

        llm_prompt = self.build_prompt(
            inputter, group, prompt, current_date or date.today()
        )
        return await self._generator.generate(llm_prompt)

    def commit_reply(self, group: Group, response_text: str) -> GroupExpense:
        """Turn a raw reply into a committed expense, or reject it whole."""
        cleaned = self.extract_json_text(response_text)
        suggestion = self.parse_suggestion(cleaned)
        self.validate_suggestion(suggestion, group)
        payer, debts = self.resolve_members(suggestion, group)

        return self._ledger.commit_expense(
            payer=payer,
            group=group,
            title=suggestion.title,
            description=suggestion.description,
            category=suggestion.category,
            total_cost=self._round(suggestion.total_cost),
            expense_date=suggestion.expense_date,
            debt_mapping=debts,
            source=ExpenseSource.AI_SUGGESTION,
        )

    async def suggest_expense_with_ai(
        self,
        inputter: Optional[User],
        group: Optional[Group],
        prompt: str,
        current_date: Optional[Union[date, datetime]] = None,
    ) -> GroupExpense:
        """
        Ask the collaborator to interpret a free-text expense and commit it.

        Raises:
            InvalidArgumentError / NotAMemberError: bad inputter or group
            MalformedResponseError subclasses: reply rejected
            BusinessRuleViolation subclasses: reply failed ledger rules
            Anything the collaborator raises, unchanged
        """
        response_text = await self.request_reply(inputter, group, prompt, current_date)
        return self.commit_reply(group, response_text)
