"""AI Agents package."""

from zenith.agents.ai_agents import (
    TransactionDraft,
    TransactionDraftAgent,
    build_prompt,
    draft_to_request,
    parse_reply,
)

__all__ = [
    "TransactionDraft",
    "TransactionDraftAgent",
    "build_prompt",
    "draft_to_request",
    "parse_reply",
]
