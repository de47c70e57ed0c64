"""
Goal Progress Engine

Progress depends on the goal type:

    linked account / ACCOUNT_TARGET  -> that account's balance
    CUSTOM, EMERGENCY_FUND           -> saved_amount (manual deposits)
    NET_WORTH                        -> whole-portfolio net worth
    INVESTMENTS                      -> market value of non-crypto positions
    CRYPTO                           -> market value of crypto positions

Only manual goals accept deposits/withdrawals; everything else is derived
from the ledger and would be overwritten on the next read.
"""

from datetime import date
from typing import Optional

import structlog
from dateutil.relativedelta import relativedelta

from zenith.engine.net_worth import calculate_net_worth
from zenith.engine.positions import market_value
from zenith.exceptions import GoalNotManualError
from zenith.models.ledger import AppState, AssetType, FinancialGoal, GoalType, utc_today

logger = structlog.get_logger(__name__)


def calculate_progress(goal: FinancialGoal, state: AppState) -> int:
    """Current progress towards the goal, in cents."""
    if goal.type == GoalType.ACCOUNT_TARGET or goal.linked_account_id:
        account = state.find_account(goal.linked_account_id)
        if account is None:
            logger.warning(
                "goal_account_missing",
                goal_id=goal.id,
                account_id=goal.linked_account_id,
            )
            return 0
        return account.balance

    if goal.type in (GoalType.CUSTOM, GoalType.EMERGENCY_FUND):
        return goal.saved_amount

    if goal.type == GoalType.NET_WORTH:
        return calculate_net_worth(state.accounts, state.assets)

    if goal.type == GoalType.INVESTMENTS:
        return sum(market_value(a) for a in state.assets if a.type != AssetType.CRYPTO)

    if goal.type == GoalType.CRYPTO:
        return sum(market_value(a) for a in state.assets if a.type == AssetType.CRYPTO)

    raise ValueError(f"Unhandled goal type: {goal.type}")


def adjust_saved_amount(goal: FinancialGoal, signed_amount: int) -> FinancialGoal:
    """
    Deposit (positive) or withdraw (negative) on a manual goal.

    The saved amount never goes below zero.

    Raises:
        GoalNotManualError: If the goal's progress is derived
    """
    if not goal.is_manual:
        raise GoalNotManualError(
            f"Goal '{goal.title}' tracks {goal.type.value.lower()} automatically"
        )

    new_saved = max(0, goal.saved_amount + signed_amount)
    if goal.saved_amount + signed_amount < 0:
        logger.info(
            "goal_withdrawal_clamped",
            goal_id=goal.id,
            requested=signed_amount,
            saved=goal.saved_amount,
        )
    return goal.model_copy(update={"saved_amount": new_saved})


def progress_ratio(goal: FinancialGoal, state: AppState) -> float:
    """Progress as a fraction of the target, between 0.0 and 1.0."""
    progress = calculate_progress(goal, state)
    return min(1.0, max(0.0, progress / goal.target_amount))


def monthly_target(goal: FinancialGoal, state: AppState, today: Optional[date] = None) -> Optional[int]:
    """
    How much to put aside per month to reach the goal by its deadline.

    A partial month counts as a whole one. Returns None when there is no
    deadline or the deadline has passed, and 0 when the goal is already met.
    """
    if goal.deadline is None:
        return None

    today = today or utc_today()
    if goal.deadline <= today:
        return None

    remaining = goal.target_amount - calculate_progress(goal, state)
    if remaining <= 0:
        return 0

    delta = relativedelta(goal.deadline, today)
    months = delta.years * 12 + delta.months
    if delta.days > 0:
        months += 1
    months = max(months, 1)

    return -(-remaining // months)
