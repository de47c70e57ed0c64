"""
Ledger Engine Package

Pure accounting rules. Every function takes models and returns models;
nothing here does I/O or holds state.
"""

from zenith.engine.alerts import check_alerts
from zenith.engine.balances import (
    BalanceStrategy,
    FullRecomputeStrategy,
    IncrementalStrategy,
    account_balance,
    signed_effect,
)
from zenith.engine.credit_card import (
    available_limit,
    calculate_invoice_total,
    calculate_total_used_limit,
    generate_installment_plan,
    limit_usage,
)
from zenith.engine.dividends import UpcomingDividend, project_dividends, reinvestment_balance
from zenith.engine.entries import build_transactions
from zenith.engine.goals import (
    adjust_saved_amount,
    calculate_progress,
    monthly_target,
    progress_ratio,
)
from zenith.engine.ledger import apply_transactions, delete_transaction, transaction_group
from zenith.engine.net_worth import calculate_history, calculate_net_worth, market_value_by_type
from zenith.engine.positions import apply_investment, market_value, reverse_investment

__all__ = [
    "check_alerts",
    "BalanceStrategy",
    "FullRecomputeStrategy",
    "IncrementalStrategy",
    "account_balance",
    "signed_effect",
    "available_limit",
    "calculate_invoice_total",
    "calculate_total_used_limit",
    "generate_installment_plan",
    "limit_usage",
    "UpcomingDividend",
    "project_dividends",
    "reinvestment_balance",
    "build_transactions",
    "adjust_saved_amount",
    "calculate_progress",
    "monthly_target",
    "progress_ratio",
    "apply_transactions",
    "delete_transaction",
    "transaction_group",
    "calculate_history",
    "calculate_net_worth",
    "market_value_by_type",
    "apply_investment",
    "market_value",
    "reverse_investment",
]
