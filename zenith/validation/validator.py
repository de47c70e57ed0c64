"""
Two-Stage Entry Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Positive amounts and quantities
- At least one account configured
- This catches incomplete forms and half-parsed AI drafts

STAGE 2 - SEMANTIC VALIDATION:
- Referenced accounts and cards exist
- Transfer source and destination differ
- Installments only on cards
- Far-future dates and oversells (warnings)
- This catches entries that are complete but make no sense for this ledger

Stage 2 only runs when stage 1 passes; it needs the ids stage 1 checked.

IMPORTANT: Validation NEVER silently fixes issues.
Errors block the entry; warnings are shown and the entry still goes through.
"""

from datetime import timedelta
from typing import Optional

from zenith.config import get_settings
from zenith.models.ledger import (
    AppState,
    EntryKind,
    InvestmentAction,
    TransactionRequest,
    ValidationIssue,
    ValidationResult,
    utc_now,
)


class TransactionValidator:
    """
    Validates a TransactionRequest against the current ledger snapshot.

    Stage 1: Schema validation (request only, plus "any accounts at all")
    Stage 2: Semantic validation (needs the snapshot)
    """

    def __init__(self, future_date_tolerance_days: Optional[int] = None):
        """
        Args:
            future_date_tolerance_days: Override for the far-future warning.
                Defaults to the ledger settings.
        """
        if future_date_tolerance_days is None:
            future_date_tolerance_days = get_settings().ledger.future_date_tolerance_days
        self._future_tolerance = timedelta(days=future_date_tolerance_days)

    def _validate_schema(
        self,
        request: TransactionRequest,
        state: AppState,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        posts_to_card = request.kind == EntryKind.EXPENSE and state.find_card(request.method_id) is not None
        if not state.accounts and not posts_to_card:
            issues.append(ValidationIssue(
                field="accounts",
                issue_type="missing",
                message="No accounts configured",
                severity="error",
                suggested_fix="Create an account before recording transactions",
            ))

        if request.amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ))
        elif request.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
            ))

        if request.date is None:
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Date is required",
                severity="error",
            ))

        if not request.method_id:
            issues.append(ValidationIssue(
                field="method_id",
                issue_type="missing",
                message=(
                    "Source account is required"
                    if request.kind == EntryKind.TRANSFER
                    else "Account or card is required"
                ),
                severity="error",
            ))

        if request.kind in (EntryKind.EXPENSE, EntryKind.INCOME) and not request.description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
                severity="error",
            ))

        if request.kind == EntryKind.TRANSFER and not request.destination_account_id:
            issues.append(ValidationIssue(
                field="destination_account_id",
                issue_type="missing",
                message="Destination account is required",
                severity="error",
            ))

        if request.kind == EntryKind.INVESTMENT:
            if not request.ticker:
                issues.append(ValidationIssue(
                    field="ticker",
                    issue_type="missing",
                    message="Ticker is required for investments",
                    severity="error",
                ))
            if request.quantity is None:
                issues.append(ValidationIssue(
                    field="quantity",
                    issue_type="missing",
                    message="Quantity is required for investments",
                    severity="error",
                ))
            elif request.quantity <= 0:
                issues.append(ValidationIssue(
                    field="quantity",
                    issue_type="invalid_value",
                    message="Quantity must be greater than zero",
                    severity="error",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_semantic(
        self,
        request: TransactionRequest,
        state: AppState,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []
        account = state.find_account(request.method_id)
        card = state.find_card(request.method_id)

        if request.kind == EntryKind.TRANSFER:
            if account is None:
                issues.append(ValidationIssue(
                    field="method_id",
                    issue_type="not_found",
                    message=f"Source account not found: {request.method_id}",
                    severity="error",
                ))
            if state.find_account(request.destination_account_id) is None:
                issues.append(ValidationIssue(
                    field="destination_account_id",
                    issue_type="not_found",
                    message=f"Destination account not found: {request.destination_account_id}",
                    severity="error",
                ))
            if request.method_id == request.destination_account_id:
                issues.append(ValidationIssue(
                    field="destination_account_id",
                    issue_type="invalid_value",
                    message="Source and destination accounts must be different",
                    severity="error",
                    suggested_fix="Pick another destination account",
                ))
        elif request.kind == EntryKind.EXPENSE:
            if account is None and card is None:
                issues.append(ValidationIssue(
                    field="method_id",
                    issue_type="not_found",
                    message=f"Account or card not found: {request.method_id}",
                    severity="error",
                ))
        else:
            if account is None:
                issues.append(ValidationIssue(
                    field="method_id",
                    issue_type="not_found",
                    message=(
                        f"Cards can only be used for expenses: {request.method_id}"
                        if card is not None
                        else f"Account not found: {request.method_id}"
                    ),
                    severity="error",
                ))

        if request.installments > 1 and card is None:
            issues.append(ValidationIssue(
                field="installments",
                issue_type="invalid_value",
                message="Installments are only available on credit cards",
                severity="error",
                suggested_fix="Pay in one installment or choose a card",
            ))

        if request.date and request.date > utc_now() + self._future_tolerance:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({request.date.date()}) is far in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        if request.kind == EntryKind.INVESTMENT and request.action == InvestmentAction.SELL:
            ticker = request.ticker.strip().upper()
            position = state.find_asset(ticker)
            held = position.quantity if position else 0.0
            if request.quantity > held:
                issues.append(ValidationIssue(
                    field="quantity",
                    issue_type="suspicious_value",
                    message=f"Selling {request.quantity:g} {ticker} but only {held:g} held",
                    severity="warning",
                    suggested_fix="The position will be closed at zero",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(self, request: TransactionRequest, state: AppState) -> ValidationResult:
        """
        Run the full two-stage validation pipeline.

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        schema_valid, schema_issues = self._validate_schema(request, state)
        all_issues.extend(schema_issues)

        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(request, state)
            all_issues.extend(semantic_issues)

        return ValidationResult(
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what we show next to the entry form.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed!"

        lines = []

        if result.has_errors:
            lines.append("❌ This entry cannot be saved yet:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
