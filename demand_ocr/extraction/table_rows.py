"""Walk document tables and emit raw (item, quantity) cell text pairs.

Demand sheets use the column layout ``[S. No., Item, Unit, Required Qty]``.
Only the item (index 1) and required quantity (index 3) are read.
"""

from collections.abc import Iterator
from dataclasses import dataclass

from demand_ocr.ocr.document_graph import DocumentGraph
from demand_ocr.utils.logger import get_logger

from .span_resolver import resolve_text

logger = get_logger(__name__)

ITEM_COLUMN = 1
QUANTITY_COLUMN = 3
MIN_CELLS = 4


@dataclass(frozen=True)
class CandidatePair:
    """Unvalidated cell text read from one table body row."""

    item_text: str
    quantity_text: str


def iter_candidate_pairs(document: DocumentGraph) -> Iterator[CandidatePair]:
    """Yield one candidate per eligible body row in layout order.

    Traversal is page, then table, then body row. Rows with fewer than
    four cells (section headers, merged cells) are skipped silently.

    Args:
        document: Parsed Document AI output.

    Yields:
        Raw item and quantity text for each eligible row.
    """
    for page in document.pages:
        for table_index, table in enumerate(page.tables):
            for row_index, row in enumerate(table.body_rows):
                if len(row.cells) < MIN_CELLS:
                    logger.debug(
                        "Skipping row %d of table %d on page %d (%d cells)",
                        row_index,
                        table_index,
                        page.page_number,
                        len(row.cells),
                    )
                    continue
                yield CandidatePair(
                    item_text=resolve_text(
                        document.text, row.cells[ITEM_COLUMN].text_anchor
                    ),
                    quantity_text=resolve_text(
                        document.text, row.cells[QUANTITY_COLUMN].text_anchor
                    ),
                )
