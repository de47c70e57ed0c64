"""
Backup Import / Export

The backup file is the persisted document verbatim. Import validates
minimally and migrates older documents:

- The root must be an object with non-null "accounts" and "transactions"
  arrays, otherwise the file is rejected.
- Top-level fields added in later versions (processedCorporateActionIds,
  lastReinvestmentResetDate, ...) are filled with defaults when missing or
  null.

DESIGN DECISION: Everything past those two arrays is checked by the
pydantic models themselves. A document whose rows do not parse is rejected
as a whole; there is no partial import.
"""

import json
from datetime import date, datetime
from typing import Any, Optional, Union

from pydantic import ValidationError

from zenith.exceptions import InvalidBackupError
from zenith.models.ledger import DEFAULT_RESET_DATE, AppState, utc_today

REQUIRED_ARRAYS = ("accounts", "transactions")

# Filled when missing or null; everything else already has a model default
MIGRATION_DEFAULTS: dict[str, Any] = {
    "creditCards": list,
    "assets": list,
    "goals": list,
    "notifications": list,
    "settings": dict,
    "processedCorporateActionIds": list,
}


def migrate_document(document: dict[str, Any], reset_date: Optional[datetime] = None) -> dict[str, Any]:
    """Fill fields that older documents lack. Returns a new dict."""
    migrated = dict(document)
    for key, factory in MIGRATION_DEFAULTS.items():
        if migrated.get(key) is None:
            migrated[key] = factory()
    if migrated.get("userProfile") is None:
        migrated.pop("userProfile", None)
    if not migrated.get("lastReinvestmentResetDate"):
        migrated["lastReinvestmentResetDate"] = (reset_date or DEFAULT_RESET_DATE).isoformat()
    return migrated


def parse_document(
    raw: Union[str, bytes, dict],
    reset_date: Optional[datetime] = None,
) -> AppState:
    """
    Parse a backup (JSON text or an already decoded object) into an AppState.

    Raises:
        InvalidBackupError: If the content is not a ledger document
    """
    if isinstance(raw, (str, bytes)):
        try:
            document = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InvalidBackupError(f"Backup is not valid JSON: {e}") from e
    else:
        document = raw

    if not isinstance(document, dict):
        raise InvalidBackupError("Backup root must be an object")

    for key in REQUIRED_ARRAYS:
        if not isinstance(document.get(key), list):
            raise InvalidBackupError(f"Backup is missing the '{key}' list")

    try:
        return AppState.model_validate(migrate_document(document, reset_date))
    except ValidationError as e:
        raise InvalidBackupError(f"Backup contents are invalid: {e.error_count()} error(s)") from e


def backup_filename(today: Optional[date] = None) -> str:
    today = today or utc_today()
    return f"zenith_backup_{today.isoformat()}.json"


def export_document(state: AppState, indent: Optional[int] = 2) -> str:
    """Serialize a snapshot to the backup JSON text."""
    return json.dumps(state.to_document(), indent=indent, ensure_ascii=False)
