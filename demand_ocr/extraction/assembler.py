"""Attach submission context to accepted items."""

from collections.abc import Iterable
from dataclasses import dataclass

from .catalog import AcceptedItem


@dataclass(frozen=True)
class DemandRow:
    """One normalized demand line as appended to the sheet."""

    submission_date: str
    store_id: str
    item_name: str
    quantity: str

    def as_values(self) -> list[str]:
        """Return the row in sheet column order: date, store, item, quantity."""
        return [self.submission_date, self.store_id, self.item_name, self.quantity]


def assemble_rows(
    accepted: Iterable[AcceptedItem], submission_date: str, store_id: str
) -> list[DemandRow]:
    """Build demand rows in extraction order.

    Args:
        accepted: Items that passed the catalog filter.
        submission_date: Date from the submission, passed through verbatim.
        store_id: Store identifier from the submission.

    Returns:
        Ordered list of demand rows.
    """
    return [
        DemandRow(
            submission_date=submission_date,
            store_id=store_id,
            item_name=item.item_name,
            quantity=item.quantity,
        )
        for item in accepted
    ]
