"""Fixed item catalog and the candidate filter built on it.

Matching is exact after trimming: case-sensitive, no synonyms, no fuzzy or
partial matches. An OCR misread that does not equal a catalog entry produces
no row for that item.
"""

import re
from dataclasses import dataclass
from pathlib import Path

import yaml

from demand_ocr.errors import ConfigurationError
from demand_ocr.utils.config import CatalogConfig
from demand_ocr.utils.logger import get_logger

from .table_rows import CandidatePair

logger = get_logger(__name__)

_NON_DIGIT = re.compile(r"[^0-9]")


def strip_quantity(text: str) -> str:
    """Keep only the ASCII digits 0-9 of a quantity cell.

    Leading zeros are preserved. Decimal points, units and digits from other
    scripts (Devanagari, fullwidth) are dropped.

    Args:
        text: Raw quantity cell text.

    Returns:
        Digit-only string, possibly empty.
    """
    return _NON_DIGIT.sub("", text.strip())


@dataclass(frozen=True)
class AcceptedItem:
    """A candidate whose item is in the catalog and whose quantity has digits."""

    item_name: str
    quantity: str


class Catalog:
    """Ordered, immutable set of recognized item names.

    Args:
        items: Item names in display order. Duplicates are dropped.
    """

    def __init__(self, items: list[str] | tuple[str, ...]) -> None:
        self.items: tuple[str, ...] = tuple(dict.fromkeys(items))
        self._members: frozenset[str] = frozenset(self.items)

    def __contains__(self, name: object) -> bool:
        return name in self._members

    def __len__(self) -> int:
        return len(self.items)

    @classmethod
    def from_config(cls, config: CatalogConfig) -> "Catalog":
        """Build the catalog from ``config.path`` if set, else ``config.items``.

        The YAML file holds either a list of names or a mapping with an
        ``items`` list.

        Raises:
            ConfigurationError: If the catalog file is missing or malformed.
        """
        if not config.path:
            return cls(config.items)

        path = Path(config.path)
        if not path.exists():
            raise ConfigurationError(f"Catalog file not found: {path}")
        with open(path) as f:
            data = yaml.safe_load(f)
        if isinstance(data, dict):
            data = data.get("items")
        if not isinstance(data, list) or not all(isinstance(i, str) for i in data):
            raise ConfigurationError(f"Catalog file {path} must hold a list of names")

        logger.info("Loaded %d catalog items from %s", len(data), path)
        return cls(data)

    def accept(self, pair: CandidatePair) -> AcceptedItem | None:
        """Validate a raw candidate against the catalog.

        Args:
            pair: Raw item and quantity text from one table row.

        Returns:
            The accepted item, or ``None`` when the trimmed item name is not
            a catalog entry or the quantity has no digits.
        """
        item_name = pair.item_text.strip()
        quantity = strip_quantity(pair.quantity_text)

        if item_name not in self._members:
            logger.debug("Rejected unknown item %r", item_name)
            return None
        if not quantity:
            logger.debug("Rejected %r with no quantity digits", item_name)
            return None
        return AcceptedItem(item_name=item_name, quantity=quantity)
