"""Immutable document graph produced by Document AI.

A document is a full text buffer plus pages, tables, rows and cells. Each
cell locates its text through a text anchor: an ordered list of segments
holding offsets into the shared buffer. The graph is built from the JSON
form of a Document AI response and accepts both camelCase
(``MessageToDict`` default) and snake_case keys.
"""

from dataclasses import dataclass, field
from typing import Any


def _get(data: dict[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    """Read a key in either naming convention."""
    if camel in data:
        return data[camel]
    return data.get(snake, default)


def _to_int(value: Any) -> int:
    # MessageToDict renders int64 fields as strings.
    if value is None or value == "":
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class TextSegment:
    """Half-open ``[start_index, end_index)`` range into the document text."""

    start_index: int = 0
    end_index: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TextSegment":
        return cls(
            start_index=_to_int(_get(data, "startIndex", "start_index")),
            end_index=_to_int(_get(data, "endIndex", "end_index")),
        )


@dataclass(frozen=True)
class TextAnchor:
    """Ordered text segments locating a layout element's text."""

    segments: tuple[TextSegment, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "TextAnchor | None":
        if not data:
            return None
        raw_segments = _get(data, "textSegments", "text_segments") or []
        return cls(segments=tuple(TextSegment.from_dict(s) for s in raw_segments))


@dataclass(frozen=True)
class TableCell:
    """A single table cell."""

    text_anchor: TextAnchor | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TableCell":
        layout = data.get("layout") or {}
        return cls(text_anchor=TextAnchor.from_dict(_get(layout, "textAnchor", "text_anchor")))


@dataclass(frozen=True)
class TableRow:
    """An ordered sequence of cells."""

    cells: tuple[TableCell, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TableRow":
        return cls(cells=tuple(TableCell.from_dict(c) for c in data.get("cells") or []))


@dataclass(frozen=True)
class Table:
    """A detected table with header and body rows."""

    header_rows: tuple[TableRow, ...] = ()
    body_rows: tuple[TableRow, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Table":
        return cls(
            header_rows=tuple(
                TableRow.from_dict(r) for r in _get(data, "headerRows", "header_rows") or []
            ),
            body_rows=tuple(
                TableRow.from_dict(r) for r in _get(data, "bodyRows", "body_rows") or []
            ),
        )


@dataclass(frozen=True)
class Page:
    """A document page and the tables found on it."""

    page_number: int
    tables: tuple[Table, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any], default_number: int) -> "Page":
        number = _to_int(_get(data, "pageNumber", "page_number")) or default_number
        return cls(
            page_number=number,
            tables=tuple(Table.from_dict(t) for t in data.get("tables") or []),
        )


@dataclass(frozen=True)
class DocumentGraph:
    """Structured OCR output: full text plus the page/table/row/cell tree."""

    text: str = ""
    pages: tuple[Page, ...] = field(default_factory=tuple)

    @property
    def table_count(self) -> int:
        return sum(len(p.tables) for p in self.pages)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DocumentGraph":
        """Build a graph from a Document AI ``Document`` in JSON form.

        Args:
            data: Dictionary with ``text`` and ``pages`` keys.

        Returns:
            The parsed, immutable document graph.
        """
        return cls(
            text=data.get("text") or "",
            pages=tuple(
                Page.from_dict(p, default_number=i)
                for i, p in enumerate(data.get("pages") or [], start=1)
            ),
        )
