"""
JSON File Storage Implementation

DESIGN DECISION: The whole ledger lives in one JSON document on disk,
the same document that backups export. Saves are atomic: the snapshot is
written to a temporary file in the same directory and moved over the old
one with os.replace, so a crash mid-write leaves the previous snapshot
intact.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional, Union

import structlog

from zenith.exceptions import InvalidBackupError
from zenith.models.ledger import AppState
from zenith.services.storage.backup import export_document, parse_document
from zenith.services.storage.interface import (
    CorruptStateError,
    StateStorageInterface,
    StorageError,
)

logger = structlog.get_logger(__name__)


class JsonFileStateStorage(StateStorageInterface):
    """
    Snapshot storage backed by a single JSON file.

    The file uses the backup format, so a backup can be dropped in as
    the state file and vice versa.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[AppState]:
        if not self._path.exists():
            logger.info("state_file_missing", path=str(self._path))
            return None

        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Could not read {self._path}: {e}") from e

        try:
            return parse_document(raw)
        except InvalidBackupError as e:
            raise CorruptStateError(f"{self._path} is not a ledger document: {e}") from e

    def save(self, state: AppState) -> bool:
        directory = self._path.parent
        tmp_name = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=directory,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(export_document(state))
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self._path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError(f"Could not write {self._path}: {e}") from e

        logger.debug("state_saved", path=str(self._path), transactions=len(state.transactions))
        return True
