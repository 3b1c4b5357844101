"""Extraction pipeline from a document graph to demand rows.

Composes the table row extractor, the catalog filter and the row
assembler into a single call used by the API and the CLI.
"""

from demand_ocr.ocr.document_graph import DocumentGraph
from demand_ocr.utils.logger import get_logger

from .assembler import DemandRow, assemble_rows
from .catalog import AcceptedItem, Catalog
from .table_rows import iter_candidate_pairs

logger = get_logger(__name__)


class DemandExtractor:
    """Turns OCR output into validated demand rows.

    Args:
        catalog: Fixed catalog of recognized item names.
    """

    def __init__(self, catalog: Catalog) -> None:
        self.catalog = catalog

    def accepted_items(self, document: DocumentGraph) -> list[AcceptedItem]:
        """Return catalog-validated items in document layout order."""
        accepted: list[AcceptedItem] = []
        candidates = 0
        for pair in iter_candidate_pairs(document):
            candidates += 1
            item = self.catalog.accept(pair)
            if item is not None:
                accepted.append(item)

        logger.info(
            "Accepted %d of %d candidate rows", len(accepted), candidates
        )
        return accepted

    def extract(
        self, document: DocumentGraph, store_id: str, submission_date: str
    ) -> list[DemandRow]:
        """Extract demand rows for one submission.

        Args:
            document: Parsed Document AI output.
            store_id: Store identifier from the submission.
            submission_date: Date from the submission, passed through verbatim.

        Returns:
            Ordered demand rows, possibly empty.
        """
        return assemble_rows(self.accepted_items(document), submission_date, store_id)
