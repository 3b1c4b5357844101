"""Shared test fixtures for the demand sheet OCR test suite."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from demand_ocr.extraction.catalog import Catalog
from demand_ocr.ocr.document_graph import DocumentGraph

# pages -> tables -> rows -> cell texts
PageSpec = list[list[list[str]]]


def make_document_dict(pages: list[PageSpec]) -> dict[str, Any]:
    """Build a Document AI style JSON document from nested cell texts.

    Cell texts are laid out in one buffer separated by newlines, and each
    cell gets a single text segment. Offsets are rendered as strings, the
    way ``MessageToDict`` renders int64 fields.
    """
    text = ""
    pages_out = []
    for page_number, tables in enumerate(pages, start=1):
        tables_out = []
        for rows in tables:
            rows_out = []
            for cells in rows:
                cells_out = []
                for cell_text in cells:
                    start = len(text)
                    text += cell_text
                    end = len(text)
                    text += "\n"
                    cells_out.append(
                        {
                            "layout": {
                                "textAnchor": {
                                    "textSegments": [
                                        {"startIndex": str(start), "endIndex": str(end)}
                                    ]
                                }
                            }
                        }
                    )
                rows_out.append({"cells": cells_out})
            tables_out.append({"bodyRows": rows_out})
        pages_out.append({"pageNumber": page_number, "tables": tables_out})
    return {"text": text, "pages": pages_out}


@pytest.fixture
def document_dict_factory() -> Callable[[list[PageSpec]], dict[str, Any]]:
    """Return the Document AI JSON builder."""
    return make_document_dict


@pytest.fixture
def document_factory() -> Callable[[list[PageSpec]], DocumentGraph]:
    """Return a builder for document graphs from nested cell texts."""

    def _build(pages: list[PageSpec]) -> DocumentGraph:
        return DocumentGraph.from_dict(make_document_dict(pages))

    return _build


@pytest.fixture
def sugar_document(
    document_factory: Callable[[list[PageSpec]], DocumentGraph],
) -> DocumentGraph:
    """One page, one table, one ``[S. No., Item, Unit, Qty]`` row."""
    return document_factory([[[["1", "Sugar", "kg", "5 kg"]]]])


@pytest.fixture
def catalog() -> Catalog:
    """A small catalog in sheet order."""
    return Catalog(["Sambhar", "Sugar", "Rice", "Tata Salt"])


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent
