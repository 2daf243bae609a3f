"""JSON match files and a directory store of them."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from volleyscout.core.config import get_config
from volleyscout.core.errors import CorruptLedgerError, VolleyScoutError
from volleyscout.core.ledger import Ledger
from volleyscout.recording.recorder import load
from volleyscout.storage.schemas import SCHEMA_VERSION, MatchFile

logger = logging.getLogger(__name__)


def save_match(path: Path, ledger: Ledger) -> Path:
    """Write the match identity and its full event log to ``path``."""
    document = MatchFile.from_match(ledger.match, ledger.events)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(document.model_dump_json(indent=2, exclude_none=True))
    logger.debug("Saved match %s (%d events) to %s", ledger.match.match_id, len(ledger), path)
    return path


def read_match_file(path: Path) -> MatchFile:
    """Parse a match file without replaying it."""
    try:
        raw = path.read_text()
    except FileNotFoundError as e:
        raise VolleyScoutError(
            f"Match file not found: {path}",
            hint="Check the path, or run 'volleyscout list' to see stored matches",
        ) from e

    try:
        document = MatchFile.model_validate_json(raw)
    except ValidationError as e:
        raise CorruptLedgerError(None, f"{path.name} is not a valid match file: {e}") from e

    if document.schema_version > SCHEMA_VERSION:
        raise VolleyScoutError(
            f"{path.name} uses schema version {document.schema_version}, "
            f"newest supported is {SCHEMA_VERSION}",
            hint="Upgrade volleyscout to read this file",
        )
    return document


def load_match(path: Path) -> Ledger:
    """Read a match file and replay its events into a ledger.

    Raises:
        CorruptLedgerError: If the file cannot be parsed or its events
            cannot be replayed from an empty state
    """
    document = read_match_file(path)
    try:
        match = document.to_match()
    except ValueError as e:
        raise CorruptLedgerError(None, str(e)) from e

    ledger = load(match, document.to_events())
    logger.debug("Loaded match %s (%d events) from %s", match.match_id, len(ledger), path)
    return ledger


class MatchStore:
    """Directory of match files, one ``<match_id>.json`` per match."""

    def __init__(self, root: Path | None = None):
        self.root = root or get_config().data_dir
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, match_id: str) -> Path:
        if not match_id or Path(match_id).name != match_id:
            raise VolleyScoutError(f"Invalid match id: {match_id!r}")
        return self.root / f"{match_id}.json"

    def save(self, ledger: Ledger) -> Path:
        return save_match(self.path_for(ledger.match.match_id), ledger)

    def load(self, match_id: str) -> Ledger:
        return load_match(self.path_for(match_id))

    def exists(self, match_id: str) -> bool:
        return self.path_for(match_id).exists()

    def list_matches(self) -> list[str]:
        """Stored match ids, sorted."""
        return sorted(p.stem for p in self.root.glob("*.json"))

    def delete(self, match_id: str) -> bool:
        """Remove a stored match. Returns False if it did not exist."""
        path = self.path_for(match_id)
        if not path.exists():
            return False
        path.unlink()
        logger.debug("Deleted match %s", match_id)
        return True
