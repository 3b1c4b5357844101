"""Resolve text anchors into the substrings they denote."""

from demand_ocr.ocr.document_graph import TextAnchor


def resolve_text(text: str, anchor: TextAnchor | None) -> str:
    """Return the text covered by ``anchor`` within the document buffer.

    The anchor is read as one contiguous range from the first segment's
    start to the last segment's end, so characters lying between disjoint
    segments are included. Missing or empty anchors resolve to ``""``.

    Args:
        text: Full document text buffer.
        anchor: Cell text anchor, possibly ``None``.

    Returns:
        The resolved substring.
    """
    if anchor is None or not anchor.segments:
        return ""
    start = anchor.segments[0].start_index or 0
    end = anchor.segments[-1].end_index or 0
    return text[start:end]
