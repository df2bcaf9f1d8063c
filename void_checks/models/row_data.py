from __future__ import annotations

from dataclasses import dataclass

"""RawRow model: one parsed spreadsheet row before matching.

Column absence and empty cells are kept distinct: a field is None when its
column is not in the sheet, and "" when the column exists but the cell is
blank. The diff stage relies on this for the notes column.
"""

__all__ = [
    "RawRow",
]


@dataclass(frozen=True)
class RawRow:
    """Logical representation of a single uploaded row.

    The row_number refers to the position in the uploaded sheet (header = 1, first data row = 2).
    """
    row_number: int
    id: str | None = None
    check_number: str | None = None
    notes: str | None = None
    status: str | None = None

    @property
    def is_blank(self) -> bool:
        return not (self.id or self.check_number or self.notes or self.status)
