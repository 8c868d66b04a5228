import re
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence


_CELL_RE = re.compile(r'^([A-Z]*)(\d*)$')


@dataclass(frozen=True)
class CellRange:
    """A parsed A1 range. Columns are 0-based, rows 1-based; None means open-ended."""

    first_col: int
    first_row: int
    last_col: Optional[int]
    last_row: Optional[int]

    def column_slice(self) -> slice:
        stop = self.last_col + 1 if self.last_col is not None else None
        return slice(self.first_col, stop)


def column_index(letters: str) -> int:
    index = 0
    for ch in letters:
        index = index * 26 + (ord(ch) - ord('A') + 1)
    return index - 1


def _split_cell(ref: str):
    match = _CELL_RE.match(ref.strip().upper())
    if not match or not (match.group(1) or match.group(2)):
        raise ValueError(f"Invalid cell reference {ref!r}")
    letters, digits = match.groups()
    col = column_index(letters) if letters else None
    row = int(digits) if digits else None
    if row is not None and row < 1:
        raise ValueError(f"Row numbers start at 1: {ref!r}")
    return col, row


def parse_range(a1: str = '') -> CellRange:
    """Parse ``''``, ``'A:G'``, ``'A2:F'``, ``'C5:G5'`` or ``'D5'``."""
    if not a1:
        return CellRange(0, 1, None, None)
    if ':' in a1:
        start, end = a1.split(':', 1)
        first_col, first_row = _split_cell(start)
        last_col, last_row = _split_cell(end)
    else:
        first_col, first_row = _split_cell(a1)
        # A lone cell addresses exactly that cell
        last_col = first_col
        last_row = first_row
    return CellRange(
        first_col=first_col or 0,
        first_row=first_row or 1,
        last_col=last_col,
        last_row=last_row,
    )


def cell_text(value: Any) -> str:
    """Text form of a written value, the way a spreadsheet echoes it back."""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'TRUE' if value else 'FALSE'
    return str(value)


def trim_row(cells: Sequence[str]) -> List[str]:
    cells = list(cells)
    while cells and cells[-1] == '':
        cells.pop()
    return cells


class TabularStore:
    """Read / append / update over named tables.

    No transactional guarantee: a caller that reads and then writes the same
    row races with every other caller doing the same.
    """

    def read(self, table: str, a1: str = '') -> List[List[str]]:
        raise NotImplementedError

    def append(self, table: str, rows: Sequence[Sequence[Any]]) -> None:
        raise NotImplementedError

    def update(self, table: str, a1: str, rows: Sequence[Sequence[Any]]) -> None:
        raise NotImplementedError
