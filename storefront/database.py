import copy
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

# Storage backends for the product catalog. A backend only moves the whole
# collection in and out; it never interprets individual records.

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class CatalogError(Exception):
    """Base error for catalog storage problems."""


class CatalogFormatError(CatalogError):
    """The backing file exists but does not hold a JSON array of records."""


class ProductStorage(ABC):

    @abstractmethod
    def load(self) -> List[Record]:
        """Return every stored record, in insertion order.

        Raises when the backing data cannot be read or parsed; callers decide
        whether to degrade.
        """

    @abstractmethod
    def save(self, records: List[Record]) -> None:
        """Replace the stored collection with ``records``."""


class JsonFileStorage(ProductStorage):
    """Whole-file JSON storage: one pretty-printed array, rewritten on every save."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _ensure_data_directory(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def load(self) -> List[Record]:
        self._ensure_data_directory()
        if not self.path.exists():
            return []
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, list):
            raise CatalogFormatError(f"{self.path}: expected a JSON array, got {type(data).__name__}")
        return data

    def save(self, records: List[Record]) -> None:
        self._ensure_data_directory()
        self.path.write_text(json.dumps(records, indent=2, ensure_ascii=False, allow_nan=False), encoding="utf-8")
        logger.debug("wrote %d products to %s", len(records), self.path)


class InMemoryStorage(ProductStorage):
    """Process-local storage, mainly for tests. Records are copied in both directions."""

    def __init__(self, records: Optional[List[Record]] = None):
        self._records: List[Record] = copy.deepcopy(records or [])
        self.saves = 0

    def load(self) -> List[Record]:
        return copy.deepcopy(self._records)

    def save(self, records: List[Record]) -> None:
        self._records = copy.deepcopy(records)
        self.saves += 1
