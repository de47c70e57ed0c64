"""Tests for AI transaction drafting (the model is faked)."""

import asyncio
import json
from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest

from zenith.agents import (
    TransactionDraft,
    TransactionDraftAgent,
    build_prompt,
    draft_to_request,
    parse_reply,
)
from zenith.exceptions import DraftingError, LedgerValidationError
from zenith.models.ledger import EntryKind

TODAY = date(2024, 5, 1)


class FakeModel:
    """Stands in for a Gemini GenerativeModel."""

    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    async def generate_content_async(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.reply)


def reply(**overrides):
    data = {
        "amount": 4590,
        "description": "Lunch",
        "type": "EXPENSE",
        "category": "Food",
        "date": "2024-05-01T12:00:00",
        "accountId": None,
        "cardId": "card-1",
    }
    data.update(overrides)
    return "Here you go:\n```json\n" + json.dumps(data) + "\n```"


class TestParseReply:

    def test_extracts_embedded_object(self):
        draft = parse_reply(reply())
        assert draft.amount == 4590
        assert draft.type == EntryKind.EXPENSE
        assert draft.card_id == "card-1"
        assert draft.date == datetime(2024, 5, 1, 12, tzinfo=timezone.utc)

    def test_unsupported_type_becomes_none(self):
        assert parse_reply(reply(type="transfer")).type is None

    def test_lowercase_type_accepted(self):
        assert parse_reply(reply(type="income")).type == EntryKind.INCOME

    @pytest.mark.parametrize("text", ["no json here", "{broken", '{"amount": "lots"}'])
    def test_unusable(self, text):
        with pytest.raises(DraftingError):
            parse_reply(text)


class TestBuildPrompt:

    def test_includes_ids_and_date(self, state):
        prompt = build_prompt("paid 45.90 lunch", state, TODAY)
        assert "Checking (ID: acc-checking)" in prompt
        assert "Nubank (ID: card-1)" in prompt
        assert "2024-05-01" in prompt
        assert "paid 45.90 lunch" in prompt


class TestTransactionDraftAgent:

    def test_draft(self, state):
        model = FakeModel(reply())
        agent = TransactionDraftAgent(model=model)

        draft = asyncio.run(agent.draft("lunch 45.90 nubank", state, TODAY))

        assert draft.description == "Lunch"
        assert draft.card_id == "card-1"
        assert len(model.prompts) == 1

    def test_unknown_ids_dropped(self, state):
        agent = TransactionDraftAgent(model=FakeModel(reply(cardId="card-x", accountId="acc-x")))
        draft = asyncio.run(agent.draft("lunch", state, TODAY))
        assert draft.card_id is None
        assert draft.account_id is None
        assert draft.amount == 4590

    def test_empty_text_skips_model(self, state):
        model = FakeModel(reply())
        agent = TransactionDraftAgent(model=model)
        assert asyncio.run(agent.draft("   ", state, TODAY)) is None
        assert model.prompts == []

    def test_garbage_reply(self, state):
        agent = TransactionDraftAgent(model=FakeModel("I cannot help with that"))
        assert asyncio.run(agent.draft("lunch", state, TODAY)) is None

    def test_model_error(self, state):
        agent = TransactionDraftAgent(model=FakeModel(error=RuntimeError("quota")))
        assert asyncio.run(agent.draft("lunch", state, TODAY)) is None

    def test_summary(self, state):
        agent = TransactionDraftAgent(model=FakeModel())
        summary = agent.generate_summary(parse_reply(reply()), state)
        assert "Lunch" in summary
        assert "Nubank" in summary
        assert "01/05/2024" in summary


class TestDraftToRequest:

    def test_card_preferred_over_account(self):
        draft = TransactionDraft(
            amount=4590,
            description="Lunch",
            type=EntryKind.EXPENSE,
            account_id="acc-checking",
            card_id="card-1",
        )
        request = draft_to_request(draft, installments=2)
        assert request.method_id == "card-1"
        assert request.installments == 2
        assert request.kind == EntryKind.EXPENSE

    def test_incomplete_draft(self):
        with pytest.raises(LedgerValidationError) as exc:
            draft_to_request(TransactionDraft(amount=100))
        fields = {issue.field for issue in exc.value.result.issues}
        assert fields == {"type", "description"}
