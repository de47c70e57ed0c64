"""
Core Data Models for Zenith Ledger

These models define the strict schemas for everything the ledger stores.
They are designed to:
1. Enforce type safety at runtime
2. Round-trip the persisted JSON document exactly (camelCase on the wire)
3. Be immutable - every state transition produces a new snapshot

DESIGN DECISION: All entities are frozen pydantic models. Engines never
mutate a model; they build a replacement with model_copy(update=...).
This makes "apply then reverse" easy to test and rules out half-applied
updates when an operation fails midway.

DESIGN DECISION: Money fields are plain ints (cents). Asset quantities are
floats because fractional units (crypto) are allowed.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


DEFAULT_RESET_DATE = datetime(2024, 1, 1, tzinfo=timezone.utc)

# Category used for dividend/yield income; the reinvestment counter keys on it
INVESTMENT_INCOME_CATEGORY = "Investment Income"
TRANSFER_CATEGORY = "Transfer"
TRANSFER_RECEIVED_CATEGORY = "Transfer Received"
OPENING_BALANCE_CATEGORY = "Opening Balance"

EXPENSE_CATEGORIES = [
    "Food", "Vehicle", "Fuel", "Taxes", "Housing",
    "Leisure", "Health", "Education", TRANSFER_CATEGORY, "Other",
]

INCOME_CATEGORIES = [
    "Salary", INVESTMENT_INCOME_CATEGORY, "Sales", "Refund", TRANSFER_RECEIVED_CATEGORY, "Other",
]

INVESTMENT_CATEGORIES = [
    "Stocks", "REITs", "Fixed Income", "Crypto", "Foreign Stocks", "Other",
]


def new_id(prefix: str) -> str:
    """Generate an entity id such as 'txn-3f2a9c1d04be'."""
    return f"{prefix}-{uuid4().hex[:12]}"


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so every timestamp in the ledger compares."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Today as a UTC calendar day, the boundary every ledger date uses."""
    return utc_now().date()


class LedgerModel(BaseModel):
    """Base for persisted entities: frozen, camelCase aliases on the wire."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AccountType(str, Enum):
    CHECKING = "CHECKING"
    SAVINGS = "SAVINGS"
    WALLET = "WALLET"


class Currency(str, Enum):
    BRL = "BRL"
    USD = "USD"


class CardBrand(str, Enum):
    VISA = "VISA"
    MASTERCARD = "MASTERCARD"
    AMEX = "AMEX"
    ELO = "ELO"
    OTHER = "OUTROS"


class TransactionType(str, Enum):
    """
    Transaction kinds.

    TRANSFER exists for completeness of the wire format; transfers created by
    this ledger are always an EXPENSE leg plus an INCOME leg.
    """
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    INVESTMENT = "INVESTMENT"
    TRANSFER = "TRANSFER"


class InvestmentAction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class AssetType(str, Enum):
    STOCK = "STOCK"
    FII = "FII"
    CRYPTO = "CRYPTO"
    FIXED = "FIXED"


class GoalType(str, Enum):
    """
    How a goal's progress is computed.

    Only CUSTOM and EMERGENCY_FUND accumulate manual deposits; the others
    are derived from the ledger.
    """
    NET_WORTH = "NET_WORTH"
    INVESTMENTS = "INVESTMENTS"
    CRYPTO = "CRYPTO"
    EMERGENCY_FUND = "EMERGENCY_FUND"
    CUSTOM = "CUSTOM"
    ACCOUNT_TARGET = "ACCOUNT_TARGET"


class NotificationType(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    SUCCESS = "SUCCESS"


class CorporateActionType(str, Enum):
    DIVIDEND = "DIVIDEND"
    JCP = "JCP"
    YIELD = "RENDIMENTO"


# =============================================================================
# CORE ENTITIES
# =============================================================================

class Account(LedgerModel):
    """
    A cash account.

    CRITICAL: balance is derived from the transaction log. The only code that
    writes it is the balance strategy in zenith.engine.balances.
    """

    id: str = Field(default_factory=lambda: new_id("acc"))
    name: str = Field(..., min_length=1, max_length=100)
    type: AccountType = AccountType.CHECKING
    balance: int = Field(default=0, description="Signed balance in cents (derived)")
    currency: Currency = Currency.BRL


class CreditCard(LedgerModel):
    """A credit card. Cards hold no balance; usage is computed from transactions."""

    id: str = Field(default_factory=lambda: new_id("card"))
    name: str = Field(..., min_length=1, max_length=100)
    limit: int = Field(..., ge=0, description="Credit limit in cents")
    closing_day: int = Field(..., ge=1, le=31)
    due_day: int = Field(..., ge=1, le=31)
    brand: CardBrand = CardBrand.OTHER


class Installment(LedgerModel):
    """Display-only position of a row inside an installment plan."""

    current: int = Field(..., ge=1)
    total: int = Field(..., ge=1)

    @model_validator(mode="after")
    def validate_position(self) -> "Installment":
        if self.current > self.total:
            raise ValueError("Installment number cannot exceed the plan size")
        return self


class Transaction(LedgerModel):
    """
    A single ledger row.

    Immutable once created: amendment is delete + recreate.
    amount is always a non-negative magnitude; the sign comes from type.
    """

    id: str = Field(default_factory=lambda: new_id("txn"))
    description: str = Field(default="", max_length=200)
    amount: int = Field(..., ge=0, description="Magnitude in cents")
    date: datetime
    type: TransactionType
    investment_type: Optional[InvestmentAction] = None
    category: str = Field(default="Other", max_length=60)

    account_id: Optional[str] = None
    card_id: Optional[str] = None
    transfer_id: Optional[str] = Field(
        default=None,
        description="Shared by both legs of a transfer"
    )

    installment: Optional[Installment] = None
    is_cleared: bool = True

    # Investment fields
    asset_ticker: Optional[str] = None
    asset_quantity: Optional[float] = Field(default=None, gt=0)
    asset_price: Optional[int] = Field(
        default=None,
        ge=0,
        description="Cents per unit (amount / quantity)"
    )

    @field_validator("date")
    @classmethod
    def normalize_date(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @field_validator("asset_ticker")
    @classmethod
    def normalize_ticker(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v else v

    @model_validator(mode="after")
    def validate_investment_fields(self) -> "Transaction":
        """INVESTMENT rows must say what was traded and in which direction."""
        if self.type == TransactionType.INVESTMENT:
            if self.investment_type is None:
                raise ValueError("Investment transactions require investmentType (BUY or SELL)")
            if not self.asset_ticker:
                raise ValueError("Investment transactions require assetTicker")
            if self.asset_quantity is None:
                raise ValueError("Investment transactions require assetQuantity")
        return self

    @property
    def is_buy(self) -> bool:
        return (
            self.type == TransactionType.INVESTMENT
            and self.investment_type == InvestmentAction.BUY
        )

    @property
    def is_sell(self) -> bool:
        return (
            self.type == TransactionType.INVESTMENT
            and self.investment_type == InvestmentAction.SELL
        )


class InvestmentAsset(LedgerModel):
    """
    An open position.

    Created on the first BUY of a ticker and removed when quantity reaches
    zero, so re-entering a closed position restarts the cost basis.
    """

    id: str = Field(default_factory=lambda: new_id("asset"))
    ticker: str = Field(..., min_length=1, max_length=20)
    quantity: float = Field(..., ge=0)
    average_price: int = Field(..., ge=0, description="Weighted-average cost, cents per unit")
    current_price: int = Field(..., ge=0, description="Last known market price, cents per unit")
    type: AssetType = AssetType.STOCK
    last_update: Optional[datetime] = None

    @field_validator("ticker")
    @classmethod
    def normalize_ticker(cls, v: str) -> str:
        return v.upper()


class FinancialGoal(LedgerModel):
    """A savings goal. type decides how progress is computed."""

    id: str = Field(default_factory=lambda: new_id("goal"))
    title: str = Field(..., min_length=1, max_length=100)
    target_amount: int = Field(..., gt=0)
    deadline: Optional[date] = None
    type: GoalType = GoalType.CUSTOM
    linked_account_id: Optional[str] = None
    saved_amount: int = Field(
        default=0,
        ge=0,
        description="Manual running total (CUSTOM / EMERGENCY_FUND only)"
    )

    @model_validator(mode="after")
    def validate_link(self) -> "FinancialGoal":
        if self.type == GoalType.ACCOUNT_TARGET and not self.linked_account_id:
            raise ValueError("Account target goals require a linked account")
        return self

    @property
    def is_manual(self) -> bool:
        """Does progress come from deposits/withdrawals rather than the ledger?"""
        return (
            self.linked_account_id is None
            and self.type in (GoalType.CUSTOM, GoalType.EMERGENCY_FUND)
        )


class NotificationItem(LedgerModel):
    id: str
    title: str
    message: str
    date: datetime
    read: bool = False
    type: NotificationType = NotificationType.INFO


class UserProfile(LedgerModel):
    level: int = Field(default=1, ge=1)
    xp: int = Field(default=0, ge=0)
    achievements: list[str] = Field(default_factory=list)


class CorporateAction(LedgerModel):
    """A dividend / JCP / yield event from the market data feed."""

    id: str
    ticker: str
    type: CorporateActionType
    amount_per_share: int = Field(..., ge=0)
    payment_date: date
    data_com: date


# =============================================================================
# AGGREGATE ROOT
# =============================================================================

class AppState(LedgerModel):
    """
    The whole ledger.

    This is the single unit of persistence. transactions is kept newest
    first by insertion (new batches are prepended).
    """

    accounts: list[Account] = Field(default_factory=list)
    credit_cards: list[CreditCard] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    assets: list[InvestmentAsset] = Field(default_factory=list)
    goals: list[FinancialGoal] = Field(default_factory=list)
    notifications: list[NotificationItem] = Field(default_factory=list)
    user_profile: UserProfile = Field(default_factory=UserProfile)
    settings: dict[str, Any] = Field(default_factory=dict)
    processed_corporate_action_ids: list[str] = Field(default_factory=list)
    last_reinvestment_reset_date: datetime = DEFAULT_RESET_DATE

    @field_validator("last_reinvestment_reset_date")
    @classmethod
    def normalize_reset_date(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    def find_account(self, account_id: Optional[str]) -> Optional[Account]:
        return next((a for a in self.accounts if a.id == account_id), None)

    def find_card(self, card_id: Optional[str]) -> Optional[CreditCard]:
        return next((c for c in self.credit_cards if c.id == card_id), None)

    def find_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return next((t for t in self.transactions if t.id == transaction_id), None)

    def find_asset(self, ticker: Optional[str]) -> Optional[InvestmentAsset]:
        if not ticker:
            return None
        ticker = ticker.upper()
        return next((a for a in self.assets if a.ticker == ticker), None)

    def find_goal(self, goal_id: str) -> Optional[FinancialGoal]:
        return next((g for g in self.goals if g.id == goal_id), None)

    def transactions_by_date(self) -> list[Transaction]:
        """Newest first by date, for display."""
        return sorted(self.transactions, key=lambda t: t.date, reverse=True)

    def to_document(self) -> dict[str, Any]:
        """The persisted/exported JSON document."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# ENTRY REQUEST MODELS
# =============================================================================

class EntryKind(str, Enum):
    """What the user is recording. Maps onto one or more Transactions."""
    EXPENSE = "EXPENSE"
    INCOME = "INCOME"
    TRANSFER = "TRANSFER"
    INVESTMENT = "INVESTMENT"


class TransactionRequest(BaseModel):
    """
    A transaction as entered by the user (or drafted by the AI agent).

    CRITICAL: This is PROPOSED data. Fields are optional so the validator can
    report everything that is missing at once. Nothing reaches the ledger
    until TransactionValidator accepts it.

    method_id is an account id or a card id. For transfers it is the source
    account and destination_account_id the target.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    kind: EntryKind
    amount: Optional[int] = Field(default=None, description="Total in cents")
    date: Optional[datetime] = None
    description: Optional[str] = None
    category: Optional[str] = None
    method_id: Optional[str] = None
    destination_account_id: Optional[str] = None
    installments: int = Field(default=1, ge=1, le=48)

    # Investment entries
    ticker: Optional[str] = None
    quantity: Optional[float] = None
    action: InvestmentAction = InvestmentAction.BUY
    asset_type: AssetType = AssetType.STOCK

    @field_validator("date")
    @classmethod
    def normalize_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v else v


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'not_found')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """Result of validating a TransactionRequest."""

    validated_at: datetime = Field(default_factory=utc_now)
    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
