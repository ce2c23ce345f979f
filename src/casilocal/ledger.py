"""JSON-array ledgers recording which items a pipeline has already handled."""

import json
import logging
from pathlib import Path
from typing import Generic, Iterator, TypeVar

from pydantic import BaseModel, ValidationError

from .models.ledger import ProcessedSpot, RefinedSpot

logger = logging.getLogger(__name__)

EntryT = TypeVar("EntryT", bound=BaseModel)


class LedgerStore(Generic[EntryT]):
    """Append-only ledger backed by a JSON array file.

    Entries are loaded once, appended in memory and written back with a full
    rewrite on save(). Uniqueness is by the entry model's `key_field`.
    Single writer; no locking.
    """

    def __init__(self, path: Path, entry_model: type[EntryT]):
        self.path = path
        self.entry_model = entry_model
        self.key_field: str = entry_model.key_field
        self._entries: list[EntryT] = []
        self._keys: set[str] = set()

    def load(self) -> list[EntryT]:
        """Load entries from disk.

        A missing or unreadable file yields an empty ledger, never an error.
        """
        self._entries = []
        self._keys = set()

        if not self.path.exists():
            logger.info(f"Ledger {self.path} does not exist, starting empty")
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, list):
                raise ValueError("ledger root is not a JSON array")
            entries = [self.entry_model.model_validate(item) for item in data]
        except (OSError, json.JSONDecodeError, ValueError, ValidationError) as e:
            logger.warning(f"Failed to load ledger {self.path}: {e}, using empty ledger")
            return []

        for entry in entries:
            self.append(entry)
        return list(self._entries)

    def save(self) -> None:
        """Rewrite the ledger file atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)

        data = [entry.model_dump(mode="json", by_alias=True) for entry in self._entries]

        temp_file = self.path.with_suffix(".tmp")
        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_file.replace(self.path)
            logger.debug(f"Saved {len(data)} ledger entries to {self.path}")
        except OSError as e:
            logger.error(f"Failed to save ledger to {self.path}: {e}")
            temp_file.unlink(missing_ok=True)
            raise

    def contains(self, key: str) -> bool:
        """Check if an item key has already been recorded."""
        return key in self._keys

    def append(self, entry: EntryT) -> bool:
        """Record an entry in memory. Returns False if its key is already present."""
        key = getattr(entry, self.key_field)
        if key in self._keys:
            logger.debug(f"Ledger already has {key}, not appending")
            return False
        self._entries.append(entry)
        self._keys.add(key)
        return True

    def keys(self) -> set[str]:
        return set(self._keys)

    @property
    def entries(self) -> list[EntryT]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[EntryT]:
        return iter(list(self._entries))


def open_processed_ledger(path: Path) -> LedgerStore[ProcessedSpot]:
    """Load the ingestion ledger (processed-spots.json)."""
    store = LedgerStore(path, ProcessedSpot)
    store.load()
    return store


def open_refined_ledger(path: Path) -> LedgerStore[RefinedSpot]:
    """Load the refinement ledger (refined-spots.json)."""
    store = LedgerStore(path, RefinedSpot)
    store.load()
    return store
