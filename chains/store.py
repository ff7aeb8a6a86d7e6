"""
chains/store.py - Persisted user-added chain records.

State is one JSON file:

    {
        "timestamp": "...",
        "current_chain_id": "1",
        "chains": [{"id": "250", "name": "Fantom", ...}, ...]
    }

Record ids are kept in decimal text only. Files written by older versions
carry a mix of decimal, 0x-hex and bare-hex ids for the same kind of record;
those are rewritten once, at load, and every lookup normalises the query the
same way, so callers may pass any encoding.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional

from core.constants import ErrorCode, STORE_FILENAME
from core.exceptions import StoreError, ValidationError
from core.logging import get_logger
from core.models import ChainRecord
from core.time import now_iso
from core.validators import ChainIdLike, canonical_chain_id, parse_chain_id

logger = get_logger(__name__)


class JsonChainStore:
    """
    File-backed store for chain records and the current chain selection.

    Records are returned as copies; save() is the only way to change what
    is persisted.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._records: Dict[str, ChainRecord] = {}
        self._current_chain_id: Optional[str] = None
        self._load_state()

    @classmethod
    def in_dir(cls, data_dir: Path) -> "JsonChainStore":
        return cls(Path(data_dir) / STORE_FILENAME)

    def _load_state(self) -> None:
        """Load persisted records, migrating legacy id encodings."""
        if not self.path.exists():
            return

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StoreError(
                f"Failed to read chain store: {e}",
                ErrorCode.STORE_READ_FAILED,
                details={"path": str(self.path)},
            ) from e

        if not isinstance(data, dict):
            raise StoreError(
                "Chain store is not a JSON object",
                ErrorCode.STORE_READ_FAILED,
                details={"path": str(self.path)},
            )

        migrated = 0
        records = data.get("chains") or []
        if not isinstance(records, list):
            logger.warning(
                "Ignoring chain list that is not an array",
                extra={"context": {"path": str(self.path)}},
            )
            records = []

        for raw in records:
            if not isinstance(raw, dict):
                logger.warning(
                    "Skipping chain record that is not an object",
                    extra={"context": {"record": raw}},
                )
                continue
            try:
                record = ChainRecord.from_dict(raw)
                canonical = canonical_chain_id(record.id)
            except (KeyError, TypeError, ValidationError) as e:
                logger.warning(
                    f"Skipping unreadable chain record: {e}",
                    extra={"context": {"record": raw}},
                )
                continue

            if canonical != record.id:
                migrated += 1
                record.id = canonical

            if canonical in self._records:
                logger.warning(
                    "Duplicate chain record, keeping the first",
                    extra={"context": {"chain_id": canonical}},
                )
                continue
            self._records[canonical] = record

        current = data.get("current_chain_id")
        if current is not None:
            try:
                self._current_chain_id = canonical_chain_id(str(current))
            except ValidationError:
                logger.warning(
                    "Ignoring unreadable current chain id",
                    extra={"context": {"current_chain_id": current}},
                )

        if migrated:
            logger.info(
                f"Migrated {migrated} chain records to decimal ids",
                extra={"context": {"path": str(self.path)}},
            )
            self._save_state()

    def _save_state(self) -> None:
        data = {
            "timestamp": now_iso(),
            "current_chain_id": self._current_chain_id,
            "chains": [r.to_dict() for r in self._records.values()],
        }

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            tmp.replace(self.path)
        except OSError as e:
            raise StoreError(
                f"Failed to write chain store: {e}",
                ErrorCode.STORE_WRITE_FAILED,
                details={"path": str(self.path)},
            ) from e

    def all(self) -> List[ChainRecord]:
        return [ChainRecord.from_dict(r.to_dict()) for r in self._records.values()]

    def find(self, chain_id: ChainIdLike) -> Optional[ChainRecord]:
        """Record for chain_id in any encoding, or None."""
        record = self._records.get(canonical_chain_id(chain_id))
        if record is None:
            return None
        return ChainRecord.from_dict(record.to_dict())

    def save(self, record: ChainRecord) -> None:
        """Create or replace the record for record.id."""
        canonical = canonical_chain_id(record.id)
        stored = ChainRecord.from_dict(record.to_dict())
        stored.id = canonical
        self._records[canonical] = stored
        self._save_state()

    def delete(self, chain_id: ChainIdLike) -> bool:
        """Delete the record for chain_id; False if there was none."""
        canonical = canonical_chain_id(chain_id)
        if canonical not in self._records:
            return False
        del self._records[canonical]
        self._save_state()
        return True

    def get_current_chain_id(self) -> Optional[int]:
        if self._current_chain_id is None:
            return None
        return parse_chain_id(self._current_chain_id)

    def set_current_chain_id(self, chain_id: ChainIdLike) -> None:
        self._current_chain_id = canonical_chain_id(chain_id)
        self._save_state()
