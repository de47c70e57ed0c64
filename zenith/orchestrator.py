"""
Ledger Service

This module ties the components together. LedgerService owns the current
AppState snapshot and exposes every ledger operation:

1. Entries (validate -> build rows -> apply)
2. Deletion (point reversal, transfers as a pair)
3. Accounts, cards, goals
4. Dividends and the reinvestment counter
5. Collaborators (price refresh, AI drafting, health check)
6. Backups and persistence
7. Read views (net worth, history, invoices, goal progress)

DESIGN DECISION: The service is the single writer. Engines are pure
functions; the service runs them under a threading.RLock and swaps the
snapshot only after the new one has been persisted. A failed validation or
a failed save leaves the previous snapshot in place.

CRITICAL: Collaborators (market data, AI) run OUTSIDE the lock and only
produce inputs. Their failures are logged and become "no update"; they
never reach the caller as exceptions.
"""

import threading
from datetime import date, datetime
from typing import Callable, Optional, Union
from uuid import UUID

import structlog

from zenith.agents import TransactionDraft, TransactionDraftAgent
from zenith.audit import AuditLogger, create_correlation_id
from zenith.config import LedgerSettings, get_settings, validate_all_settings
from zenith.engine import (
    BalanceStrategy,
    UpcomingDividend,
    adjust_saved_amount,
    available_limit,
    build_transactions,
    calculate_history,
    calculate_invoice_total,
    calculate_net_worth,
    calculate_progress,
    calculate_total_used_limit,
    check_alerts,
    project_dividends,
    transaction_group,
)
from zenith.engine import apply_transactions as engine_apply
from zenith.engine import delete_transaction as engine_delete
from zenith.engine import reinvestment_balance as engine_reinvestment_balance
from zenith.engine.positions import update_price
from zenith.exceptions import (
    InvalidBackupError,
    LedgerValidationError,
    MarketDataError,
    NotFoundError,
)
from zenith.models.audit import AuditEventType
from zenith.models.ledger import (
    INVESTMENT_INCOME_CATEGORY,
    OPENING_BALANCE_CATEGORY,
    Account,
    AppState,
    AssetType,
    CorporateAction,
    CreditCard,
    EntryKind,
    FinancialGoal,
    InvestmentAction,
    NotificationItem,
    Transaction,
    TransactionRequest,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    ensure_utc,
    new_id,
    utc_now,
    utc_today,
)
from zenith.services.market import MarketDataService, SimulatedMarketDataService
from zenith.services.storage import (
    JsonFileStateStorage,
    StateStorageInterface,
    StorageError,
    backup_filename,
    export_document,
    parse_document,
)
from zenith.validation.validator import TransactionValidator

logger = structlog.get_logger(__name__)


def _rejection(field: str, issue_type: str, message: str) -> LedgerValidationError:
    return LedgerValidationError(ValidationResult(
        is_valid=False,
        issues=[ValidationIssue(field=field, issue_type=issue_type, message=message, severity="error")],
    ))


class LedgerService:
    """
    The ledger's public API.

    All mutating methods return the committed value (new snapshot, created
    rows or updated entity). Read views never lock for long; they work on
    whatever snapshot is current when they start.
    """

    def __init__(
        self,
        state: Optional[AppState] = None,
        storage: Optional[StateStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[TransactionValidator] = None,
        market_data: Optional[MarketDataService] = None,
        draft_agent: Optional[TransactionDraftAgent] = None,
        strategy: Optional[BalanceStrategy] = None,
        settings: Optional[LedgerSettings] = None,
    ):
        self._settings = settings or get_settings().ledger
        self._state = state if state is not None else self._fresh_state()
        self._storage = storage
        self._audit = audit_logger or AuditLogger()
        self._validator = validator or TransactionValidator(self._settings.future_date_tolerance_days)
        self._market_data = market_data
        self._draft_agent = draft_agent
        self._strategy = strategy
        self._lock = threading.RLock()

    def _fresh_state(self) -> AppState:
        return AppState(last_reinvestment_reset_date=self._settings.default_reset_date)

    # =========================================================================
    # SNAPSHOT & PERSISTENCE
    # =========================================================================

    @property
    def state(self) -> AppState:
        """The current snapshot (immutable)."""
        return self._state

    def _commit(self, new_state: AppState) -> AppState:
        """Persist then swap. Caller holds the lock."""
        if new_state is self._state:
            return new_state
        if self._storage is not None:
            try:
                self._storage.save(new_state)
            except StorageError as e:
                self._audit.log_error("storage_save_failed", str(e))
                raise
        self._state = new_state
        return new_state

    def _mutate(self, change: Callable[[AppState], AppState]) -> AppState:
        with self._lock:
            return self._commit(change(self._state))

    def load(self) -> AppState:
        """
        Replace the snapshot with the stored one.

        A storage with nothing saved yet gives a fresh ledger.
        """
        with self._lock:
            if self._storage is None:
                return self._state
            loaded = self._storage.load()
            self._state = loaded if loaded is not None else self._fresh_state()
            logger.info(
                "ledger_loaded",
                accounts=len(self._state.accounts),
                transactions=len(self._state.transactions),
            )
            return self._state

    def save(self) -> bool:
        """Persist the current snapshot explicitly."""
        with self._lock:
            if self._storage is None:
                return False
            return self._storage.save(self._state)

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    def apply_transactions(
        self,
        transactions: list[Transaction],
        correlation_id: Optional[UUID] = None,
    ) -> AppState:
        """
        Apply already-built rows.

        Raises:
            DuplicateTransactionError: If an id is already recorded
        """
        with self._lock:
            new_state = self._commit(engine_apply(self._state, transactions, self._strategy))
        if transactions:
            self._audit.log_transactions_applied(
                [t.id for t in transactions],
                sum(t.amount for t in transactions),
                correlation_id,
            )
        return new_state

    def delete_transaction(self, transaction_id: str) -> AppState:
        """
        Delete a transaction and reverse its effects.

        Both legs of a transfer go together. Unknown ids are a no-op.
        """
        with self._lock:
            group = transaction_group(self._state, transaction_id)
            new_state = self._commit(engine_delete(self._state, transaction_id))
        if group:
            self._audit.log_transaction_deleted([t.id for t in group])
        return new_state

    def record(
        self,
        request: TransactionRequest,
        correlation_id: Optional[UUID] = None,
    ) -> list[Transaction]:
        """
        Validate an entry, build its rows and apply them.

        Returns:
            The rows that were added

        Raises:
            LedgerValidationError: If the entry is rejected (nothing applied)
        """
        correlation_id = correlation_id or create_correlation_id()
        with self._lock:
            result = self._validator.validate(request, self._state)
            if not result.is_valid:
                self._audit.log_transaction_rejected(
                    request.kind.value,
                    [issue.model_dump() for issue in result.issues],
                    correlation_id,
                )
                raise LedgerValidationError(result)
            for warning in result.warnings:
                logger.info("entry_warning", kind=request.kind.value, warning=warning)

            rows = build_transactions(request, self._state)
            self.apply_transactions(rows, correlation_id)
            return rows

    def record_expense(
        self,
        amount: int,
        description: str,
        method_id: str,
        date: Optional[datetime] = None,
        category: Optional[str] = None,
        installments: int = 1,
    ) -> list[Transaction]:
        """Expense on an account, or a purchase on a card (optionally in installments)."""
        return self.record(TransactionRequest(
            kind=EntryKind.EXPENSE,
            amount=amount,
            description=description,
            method_id=method_id,
            date=date or utc_now(),
            category=category,
            installments=installments,
        ))

    def record_income(
        self,
        amount: int,
        description: str,
        account_id: str,
        date: Optional[datetime] = None,
        category: Optional[str] = None,
    ) -> list[Transaction]:
        return self.record(TransactionRequest(
            kind=EntryKind.INCOME,
            amount=amount,
            description=description,
            method_id=account_id,
            date=date or utc_now(),
            category=category,
        ))

    def record_transfer(
        self,
        amount: int,
        source_account_id: str,
        destination_account_id: str,
        date: Optional[datetime] = None,
        description: Optional[str] = None,
    ) -> list[Transaction]:
        """Two linked postings: EXPENSE on the source, INCOME on the destination."""
        return self.record(TransactionRequest(
            kind=EntryKind.TRANSFER,
            amount=amount,
            description=description,
            method_id=source_account_id,
            destination_account_id=destination_account_id,
            date=date or utc_now(),
        ))

    def record_investment(
        self,
        ticker: str,
        quantity: float,
        amount: int,
        account_id: str,
        action: InvestmentAction = InvestmentAction.BUY,
        asset_type: AssetType = AssetType.STOCK,
        date: Optional[datetime] = None,
        category: Optional[str] = None,
    ) -> list[Transaction]:
        """
        Buy or sell `quantity` units for a total of `amount` cents.
        """
        return self.record(TransactionRequest(
            kind=EntryKind.INVESTMENT,
            amount=amount,
            ticker=ticker,
            quantity=quantity,
            action=action,
            asset_type=asset_type,
            method_id=account_id,
            date=date or utc_now(),
            category=category,
        ))

    # =========================================================================
    # ACCOUNTS & CARDS
    # =========================================================================

    def save_account(self, account: Account) -> Account:
        """
        Create or update an account.

        A new account's balance is its opening balance and is recorded as an
        "Opening Balance" transaction, so the balance invariant holds from
        the first row. Updates keep the derived balance and change the rest.
        """
        with self._lock:
            existing = self._state.find_account(account.id)
            if existing is not None:
                updated = account.model_copy(update={"balance": existing.balance})
                self._commit(self._state.model_copy(update={
                    "accounts": [updated if a.id == account.id else a for a in self._state.accounts],
                }))
            else:
                opening = account.balance
                updated = account.model_copy(update={"balance": 0})
                self._commit(self._state.model_copy(update={
                    "accounts": list(self._state.accounts) + [updated],
                }))
                if opening:
                    self.apply_transactions([Transaction(
                        description=f"Opening balance - {account.name}",
                        amount=abs(opening),
                        date=utc_now(),
                        type=TransactionType.INCOME if opening > 0 else TransactionType.EXPENSE,
                        category=OPENING_BALANCE_CATEGORY,
                        account_id=account.id,
                    )])
                updated = self._state.find_account(account.id)

        self._audit.log_entity_saved(AuditEventType.ACCOUNT_SAVED, "account", updated.id, updated.name)
        return updated

    def delete_account(self, account_id: str) -> AppState:
        """
        Remove an account. Its transactions stay in the log.

        Raises:
            NotFoundError: If the account does not exist
        """
        with self._lock:
            if self._state.find_account(account_id) is None:
                raise NotFoundError(f"Account not found: {account_id}")
            orphaned = sum(1 for t in self._state.transactions if t.account_id == account_id)
            if orphaned:
                logger.warning("account_deleted_with_transactions", account_id=account_id, transactions=orphaned)
            new_state = self._commit(self._state.model_copy(update={
                "accounts": [a for a in self._state.accounts if a.id != account_id],
            }))
        self._audit.log_entity_deleted(AuditEventType.ACCOUNT_DELETED, "account", account_id)
        return new_state

    def save_card(self, card: CreditCard) -> CreditCard:
        with self._lock:
            if self._state.find_card(card.id) is not None:
                cards = [card if c.id == card.id else c for c in self._state.credit_cards]
            else:
                cards = list(self._state.credit_cards) + [card]
            self._commit(self._state.model_copy(update={"credit_cards": cards}))
        self._audit.log_entity_saved(AuditEventType.CARD_SAVED, "card", card.id, card.name)
        return card

    def delete_card(self, card_id: str) -> AppState:
        """
        Raises:
            NotFoundError: If the card does not exist
        """
        with self._lock:
            if self._state.find_card(card_id) is None:
                raise NotFoundError(f"Card not found: {card_id}")
            new_state = self._commit(self._state.model_copy(update={
                "credit_cards": [c for c in self._state.credit_cards if c.id != card_id],
            }))
        self._audit.log_entity_deleted(AuditEventType.CARD_DELETED, "card", card_id)
        return new_state

    # =========================================================================
    # GOALS
    # =========================================================================

    def save_goal(self, goal: FinancialGoal) -> FinancialGoal:
        """
        Create or update a goal.

        Raises:
            LedgerValidationError: If the goal links to an unknown account
        """
        with self._lock:
            if goal.linked_account_id and self._state.find_account(goal.linked_account_id) is None:
                raise _rejection(
                    "linked_account_id",
                    "not_found",
                    f"Linked account not found: {goal.linked_account_id}",
                )
            if self._state.find_goal(goal.id) is not None:
                goals = [goal if g.id == goal.id else g for g in self._state.goals]
            else:
                goals = list(self._state.goals) + [goal]
            self._commit(self._state.model_copy(update={"goals": goals}))
        self._audit.log_entity_saved(AuditEventType.GOAL_SAVED, "goal", goal.id, goal.title)
        return goal

    def delete_goal(self, goal_id: str) -> AppState:
        """
        Raises:
            NotFoundError: If the goal does not exist
        """
        with self._lock:
            if self._state.find_goal(goal_id) is None:
                raise NotFoundError(f"Goal not found: {goal_id}")
            new_state = self._commit(self._state.model_copy(update={
                "goals": [g for g in self._state.goals if g.id != goal_id],
            }))
        self._audit.log_entity_deleted(AuditEventType.GOAL_DELETED, "goal", goal_id)
        return new_state

    def update_goal_amount(self, goal_id: str, signed_delta: int) -> FinancialGoal:
        """
        Deposit (positive) or withdraw (negative) on a manual goal.

        Raises:
            NotFoundError: If the goal does not exist
            GoalNotManualError: If the goal's progress is derived
        """
        with self._lock:
            goal = self._state.find_goal(goal_id)
            if goal is None:
                raise NotFoundError(f"Goal not found: {goal_id}")
            updated = adjust_saved_amount(goal, signed_delta)
            self._commit(self._state.model_copy(update={
                "goals": [updated if g.id == goal_id else g for g in self._state.goals],
            }))
        self._audit.log_goal_amount_updated(goal_id, signed_delta, updated.saved_amount)
        return updated

    # =========================================================================
    # DIVIDENDS & REINVESTMENT
    # =========================================================================

    def confirm_dividend(
        self,
        corporate_action_id: str,
        amount: int,
        account_id: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Optional[Transaction]:
        """
        Record a received payout as INCOME and mark the action processed.

        Defaults to the first account. Confirming an already processed id
        does nothing and returns None.

        Raises:
            LedgerValidationError: If there is no account to receive it
        """
        with self._lock:
            if corporate_action_id in self._state.processed_corporate_action_ids:
                logger.info("dividend_already_processed", corporate_action_id=corporate_action_id)
                return None
            if not self._state.accounts:
                raise _rejection("accounts", "missing", "Add an account before confirming dividends")
            account = self._state.find_account(account_id) if account_id else self._state.accounts[0]
            if account is None:
                raise _rejection("account_id", "not_found", f"Account not found: {account_id}")

            txn = Transaction(
                id=new_id("div-txn"),
                description=description or f"Dividends - {corporate_action_id}",
                amount=amount,
                date=utc_now(),
                type=TransactionType.INCOME,
                category=INVESTMENT_INCOME_CATEGORY,
                account_id=account.id,
            )
            applied = engine_apply(self._state, [txn], self._strategy)
            self._commit(applied.model_copy(update={
                "processed_corporate_action_ids": (
                    list(applied.processed_corporate_action_ids) + [corporate_action_id]
                ),
            }))

        self._audit.log_dividend_confirmed(corporate_action_id, txn.id, account.id, amount)
        return txn

    def confirm_upcoming_dividend(
        self,
        dividend: UpcomingDividend,
        account_id: Optional[str] = None,
    ) -> Optional[Transaction]:
        return self.confirm_dividend(dividend.id, dividend.amount, account_id, dividend.label)

    def reset_reinvestment_counter(self, at: Optional[datetime] = None) -> AppState:
        """Stamp the reset date; the reinvestment balance starts again from zero."""
        reset_at = ensure_utc(at) if at else utc_now()
        new_state = self._mutate(
            lambda s: s.model_copy(update={"last_reinvestment_reset_date": reset_at})
        )
        self._audit.log_reinvestment_reset(reset_at)
        return new_state

    def upcoming_dividends(self, actions: list[CorporateAction]) -> list[UpcomingDividend]:
        state = self._state
        return project_dividends(state.assets, actions, state.processed_corporate_action_ids)

    # =========================================================================
    # COLLABORATORS
    # =========================================================================

    async def refresh_prices(self) -> dict[str, int]:
        """
        Fetch a price for every held ticker and store the ones that arrived.

        Failed tickers keep their previous price.

        Returns:
            {ticker: new price} for the updated positions
        """
        if self._market_data is None:
            logger.info("price_refresh_skipped", reason="no market data service")
            return {}

        tickers = [a.ticker for a in self._state.assets]
        prices: dict[str, int] = {}
        failed: list[str] = []
        for ticker in tickers:
            try:
                prices[ticker] = await self._market_data.fetch_price(ticker)
            except MarketDataError as e:
                failed.append(ticker)
                self._audit.log_external_service_error("market_data", f"{ticker}: {e}")

        if prices:
            now = utc_now()

            def apply_prices(state: AppState) -> AppState:
                assets = list(state.assets)
                for ticker, price in prices.items():
                    assets = update_price(assets, ticker, price, now)
                return state.model_copy(update={"assets": assets})

            self._mutate(apply_prices)

        self._audit.log_prices_refreshed(sorted(prices), failed)
        return prices

    async def draft_transaction(self, text: str, today: Optional[date] = None) -> Optional[TransactionDraft]:
        """
        Ask the AI agent for a draft. None means "could not understand, try again".
        """
        if self._draft_agent is None:
            logger.info("draft_skipped", reason="no drafting agent")
            return None

        draft = await self._draft_agent.draft(text, self._state, today)
        if draft is None:
            self._audit.log_draft_failed("No usable draft from text")
        else:
            self._audit.log_draft_created(draft.type.value if draft.type else "unknown")
        return draft

    async def run_health_check(self, today: Optional[date] = None) -> list[NotificationItem]:
        """
        Raise today's alerts and add them to the notification list.

        A failing dividend feed only drops the dividend alerts.

        Returns:
            The notifications that were added
        """
        today = today or utc_today()
        actions: list[CorporateAction] = []
        if self._market_data is not None:
            try:
                actions = await self._market_data.fetch_upcoming_dividends(today)
            except MarketDataError as e:
                self._audit.log_external_service_error("market_data", str(e))

        with self._lock:
            alerts = check_alerts(
                self._state,
                today,
                actions,
                self._settings.limit_alert_thresholds,
            )
            if alerts:
                self._commit(self._state.model_copy(update={
                    "notifications": alerts + list(self._state.notifications),
                }))
        if alerts:
            logger.info("health_check_alerts", count=len(alerts))
        return alerts

    def mark_notification_read(self, notification_id: str) -> bool:
        """Returns False when the id is unknown."""
        with self._lock:
            if not any(n.id == notification_id for n in self._state.notifications):
                return False
            self._commit(self._state.model_copy(update={
                "notifications": [
                    n.model_copy(update={"read": True}) if n.id == notification_id else n
                    for n in self._state.notifications
                ],
            }))
        return True

    # =========================================================================
    # BACKUPS
    # =========================================================================

    def import_backup(self, raw: Union[str, bytes, dict]) -> AppState:
        """
        Replace the whole ledger with a backup document.

        Raises:
            InvalidBackupError: If the document is rejected (ledger untouched)
        """
        try:
            imported = parse_document(raw, self._settings.default_reset_date)
        except InvalidBackupError as e:
            self._audit.log_backup_rejected(str(e))
            raise

        new_state = self._mutate(lambda _: imported)
        self._audit.log_backup_imported(len(imported.accounts), len(imported.transactions))
        return new_state

    def export_backup(self, today: Optional[date] = None) -> tuple[str, str]:
        """
        Returns:
            (filename, JSON document)
        """
        filename = backup_filename(today)
        content = export_document(self._state)
        self._audit.log_backup_exported(filename)
        return filename, content

    # =========================================================================
    # READ VIEWS
    # =========================================================================

    def net_worth(self) -> int:
        state = self._state
        return calculate_net_worth(state.accounts, state.assets)

    def net_worth_history(self, days: Optional[int] = None, today: Optional[date] = None) -> list[int]:
        state = self._state
        return calculate_history(
            state.accounts,
            state.assets,
            state.transactions,
            days if days is not None else self._settings.history_days,
            today,
        )

    def invoice_total(self, card_id: str, month_offset: int = 0, today: Optional[date] = None) -> int:
        return calculate_invoice_total(self._state.transactions, card_id, month_offset, today)

    def used_limit(self, card_id: str) -> int:
        return calculate_total_used_limit(self._state.transactions, card_id)

    def available_limit(self, card_id: str) -> int:
        """
        Raises:
            NotFoundError: If the card does not exist
        """
        state = self._state
        card = state.find_card(card_id)
        if card is None:
            raise NotFoundError(f"Card not found: {card_id}")
        return available_limit(card, state.transactions)

    def goal_progress(self, goal_id: str) -> int:
        """
        Raises:
            NotFoundError: If the goal does not exist
        """
        state = self._state
        goal = state.find_goal(goal_id)
        if goal is None:
            raise NotFoundError(f"Goal not found: {goal_id}")
        return calculate_progress(goal, state)

    def reinvestment_balance(self) -> int:
        state = self._state
        return engine_reinvestment_balance(state.transactions, state.last_reinvestment_reset_date)


def create_ledger_service(
    use_storage: bool = True,
    use_ai: bool = True,
) -> LedgerService:
    """
    Factory function wiring the default components.

    Args:
        use_storage: Persist to the JSON state file from settings.
                    Set to False for an in-memory ledger.
        use_ai: Enable AI drafting when Gemini settings are available.

    Returns:
        A LedgerService with the stored snapshot loaded
    """
    settings = get_settings().ledger
    storage = JsonFileStateStorage(settings.state_file) if use_storage else None

    draft_agent = None
    if use_ai:
        status = validate_all_settings()
        if status["gemini"]:
            draft_agent = TransactionDraftAgent(settings=get_settings().gemini)
        else:
            # Drafting not configured - continue without it
            logger.warning("draft_agent_unavailable", error=status.get("gemini_error"))

    service = LedgerService(
        storage=storage,
        audit_logger=AuditLogger(),
        market_data=SimulatedMarketDataService(),
        draft_agent=draft_agent,
        settings=settings,
    )
    service.load()
    return service
