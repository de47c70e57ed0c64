"""
AI Transaction Drafting

DESIGN DECISION: Free text ("paid 45.90 for lunch on the Nubank card")
is turned into a draft by Gemini via google-generativeai. The model sees
the user's account and card ids, the category lists and today's date, and
must answer with a single JSON object.

CRITICAL BOUNDARIES:
- CAN: Propose amount, description, type, category, date and payment method
- CANNOT: Touch the ledger; a draft is only an input to the entry form
- CANNOT: Guess when the reply is unusable - the caller gets None and asks
  the user to try again

The LLM is a TRANSLATOR, not an ORACLE.
"""

import json
from datetime import date, datetime
from typing import Any, Optional

import google.generativeai as genai
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from zenith.config import GeminiSettings, get_settings
from zenith.exceptions import DraftingError, LedgerValidationError
from zenith.models.ledger import (
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    AppState,
    EntryKind,
    TransactionRequest,
    ValidationIssue,
    ValidationResult,
    ensure_utc,
    utc_today,
)
from zenith.money import format_cents

logger = structlog.get_logger(__name__)


class TransactionDraft(BaseModel):
    """
    What the model proposed. Every field may be missing.

    Accepts the camelCase keys the prompt asks for.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    amount: Optional[int] = Field(default=None, ge=0, description="Cents")
    description: Optional[str] = None
    type: Optional[EntryKind] = None
    category: Optional[str] = None
    date: Optional[datetime] = None
    account_id: Optional[str] = None
    card_id: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def only_income_or_expense(cls, v: Any) -> Any:
        if isinstance(v, str) and v.upper() not in ("INCOME", "EXPENSE"):
            return None
        return v.upper() if isinstance(v, str) else v

    @field_validator("date")
    @classmethod
    def normalize_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v else v

    @property
    def is_complete(self) -> bool:
        return (
            self.amount is not None
            and self.type is not None
            and bool(self.description)
        )


def build_prompt(text: str, state: AppState, today: date) -> str:
    """The drafting prompt, with the user's own ids as context."""
    accounts = ", ".join(f"{a.name} (ID: {a.id})" for a in state.accounts) or "none"
    cards = ", ".join(f"{c.name} (ID: {c.id})" for c in state.credit_cards) or "none"
    categories = ", ".join(dict.fromkeys(EXPENSE_CATEGORIES + INCOME_CATEGORIES))

    return f"""Analyze this financial transaction command: "{text}".

Context:
- Today's date: {today.isoformat()}
- Available accounts: {accounts}
- Available credit cards: {cards}
- Categories: {categories}

Instructions:
1. Extract the amount in cents (integer).
2. Determine the type: INCOME or EXPENSE.
3. Pick the best matching category from the list.
4. Identify the account ID or card ID if mentioned (fuzzy match on name).
   If a credit card is mentioned without a name, use the first card.
   If a debit or account payment is mentioned without a name, use the first account.
5. Give the date as an ISO 8601 date-time string; use today if none is mentioned.

Respond with ONLY a JSON object in this exact format:
{{"amount": 4590, "description": "short description", "type": "EXPENSE", "category": "Food", "date": "{today.isoformat()}T12:00:00", "accountId": null, "cardId": null}}

Never invent ids that are not in the lists above; use null instead."""


def parse_reply(text: str) -> TransactionDraft:
    """
    Extract the JSON object from a model reply.

    Raises:
        DraftingError: If there is no parsable JSON object
    """
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise DraftingError("Model reply contains no JSON object")
    try:
        data = json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise DraftingError(f"Model reply is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise DraftingError("Model reply is not a JSON object")
    try:
        return TransactionDraft.model_validate(data)
    except ValidationError as e:
        raise DraftingError(f"Model reply does not match the draft schema: {e.error_count()} error(s)") from e


class TransactionDraftAgent:
    """
    Drafts transactions from free text.

    RESPONSIBILITIES:
    - Build the prompt from the current snapshot
    - Parse and validate the reply
    - Drop ids the ledger does not know

    BOUNDARIES:
    - NEVER mutates state
    - NEVER raises to the caller; failure is None
    """

    def __init__(
        self,
        model: Any = None,
        settings: Optional[GeminiSettings] = None,
    ):
        """
        Args:
            model: Anything with an async generate_content_async(prompt).
                   When None a Gemini model is configured from settings.
            settings: Gemini settings; loaded from the environment if omitted
        """
        self._model = model
        self._settings = settings

    def _get_model(self) -> Any:
        """Get or create the Gemini model."""
        if self._model is None:
            settings = self._settings or get_settings().gemini
            genai.configure(api_key=settings.api_key)
            self._model = genai.GenerativeModel(
                model_name=settings.model_name,
                generation_config={
                    "temperature": settings.temperature,
                    "max_output_tokens": settings.max_tokens,
                },
            )
        return self._model

    async def draft(
        self,
        text: str,
        state: AppState,
        today: Optional[date] = None,
    ) -> Optional[TransactionDraft]:
        """
        Draft a transaction from text.

        Returns None when the text is empty or the model reply is unusable.
        """
        if not text or not text.strip():
            return None

        today = today or utc_today()
        prompt = build_prompt(text.strip(), state, today)

        try:
            response = await self._get_model().generate_content_async(prompt)
            draft = parse_reply(response.text or "")
        except DraftingError as e:
            logger.warning("draft_unparsable", error=str(e))
            return None
        except Exception as e:
            logger.error("draft_model_failed", error=str(e), error_type=type(e).__name__)
            return None

        # Unknown ids are dropped rather than trusted
        updates = {}
        if draft.account_id and state.find_account(draft.account_id) is None:
            logger.info("draft_unknown_account", account_id=draft.account_id)
            updates["account_id"] = None
        if draft.card_id and state.find_card(draft.card_id) is None:
            logger.info("draft_unknown_card", card_id=draft.card_id)
            updates["card_id"] = None
        if updates:
            draft = draft.model_copy(update=updates)

        return draft

    def generate_summary(self, draft: TransactionDraft, state: AppState) -> str:
        """
        Human-friendly summary shown before the user confirms the draft.
        """
        parts = []

        if draft.description:
            parts.append(f"📋 **What:** {draft.description}")
        if draft.amount is not None:
            parts.append(f"💰 **Amount:** {format_cents(draft.amount)}")
        if draft.type:
            parts.append(f"↕️ **Type:** {draft.type.value.title()}")
        if draft.category:
            parts.append(f"🏷️ **Category:** {draft.category}")
        if draft.date:
            parts.append(f"📅 **Date:** {draft.date.strftime('%d/%m/%Y')}")

        card = state.find_card(draft.card_id)
        account = state.find_account(draft.account_id)
        if card:
            parts.append(f"💳 **Card:** {card.name}")
        elif account:
            parts.append(f"🏦 **Account:** {account.name}")

        return "\n".join(parts)


def draft_to_request(draft: TransactionDraft, installments: int = 1) -> TransactionRequest:
    """
    Convert a draft into an entry request.

    Raises:
        LedgerValidationError: If the draft lacks amount, type or description
    """
    if not draft.is_complete:
        issues = []
        for field, present in (
            ("amount", draft.amount is not None),
            ("type", draft.type is not None),
            ("description", bool(draft.description)),
        ):
            if not present:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="missing",
                    message=f"The draft has no {field}",
                    severity="error",
                    suggested_fix="Try rephrasing or fill it in manually",
                ))
        raise LedgerValidationError(ValidationResult(is_valid=False, issues=issues))

    return TransactionRequest(
        kind=draft.type,
        amount=draft.amount,
        date=draft.date,
        description=draft.description,
        category=draft.category,
        method_id=draft.card_id or draft.account_id,
        installments=installments,
    )
