"""
Merge-aware row resolution for table questions.

A cell with rowspan > 1 visually merges the rows below it at that column;
the covered cells are kept in the grid with is_hidden=True. Rules treat a
merge group as one logical row: selecting the merged cell selects every
row in the group.

All functions are pure and tolerate unknown row ids / columns by treating
the row as unmerged.
"""

from typing import Iterable, List, Optional, Sequence

from survey_logic.contracts import RowMergeInfo, TableCell, TableRow


def cell_at(row: TableRow, col_index: int) -> Optional[TableCell]:
    """Return the cell at col_index, or None when the row is too short."""
    if col_index < 0 or col_index >= len(row.cells):
        return None
    return row.cells[col_index]


def _spans(cell: Optional[TableCell]) -> bool:
    return cell is not None and cell.rowspan > 1 and not cell.is_hidden


def _find_merge_start(rows: Sequence[TableRow], row_index: int, col_index: int) -> Optional[int]:
    """
    Find the index of the row whose cell spans row_index at col_index.

    The row's own cell is checked first, then rows above it.
    """
    own = cell_at(rows[row_index], col_index)
    if _spans(own):
        return row_index

    for start in range(row_index):
        cell = cell_at(rows[start], col_index)
        if _spans(cell) and start <= row_index < start + cell.rowspan:
            return start

    return None


def get_row_merge_info(
    row_id: str,
    rows: Optional[Sequence[TableRow]],
    col_index: Optional[int] = None
) -> RowMergeInfo:
    """
    Describe the merge group containing row_id at col_index.

    Args:
        row_id: Row to look up
        rows: Table rows in display order
        col_index: Column to inspect; None means no merge awareness

    Returns:
        RowMergeInfo. Unknown rows and a missing column report an
        unmerged single-row group.
    """
    unmerged = RowMergeInfo(is_merged=False, merged_row_ids=(row_id,), merge_start_row_id=None)

    if not rows or col_index is None:
        return unmerged

    row_index = next((i for i, row in enumerate(rows) if row.id == row_id), -1)
    if row_index == -1:
        return unmerged

    start = _find_merge_start(rows, row_index, col_index)
    if start is None:
        return unmerged

    span = rows[start].cells[col_index].rowspan
    merged = tuple(row.id for row in rows[start:start + span])
    return RowMergeInfo(is_merged=True, merged_row_ids=merged, merge_start_row_id=rows[start].id)


def get_merged_row_ids(
    row_id: str,
    rows: Optional[Sequence[TableRow]],
    col_index: Optional[int] = None
) -> List[str]:
    """Return every row id merged with row_id at col_index (row_id alone if none)."""
    return list(get_row_merge_info(row_id, rows, col_index).merged_row_ids)


def expand_row_ids(
    row_ids: Iterable[str],
    rows: Optional[Sequence[TableRow]],
    col_index: Optional[int] = None
) -> List[str]:
    """
    Expand row ids so that each merge group is represented in full.

    Order follows the input, merge partners are inserted after the first
    member seen, duplicates are dropped.
    """
    expanded = []
    seen = set()

    for row_id in row_ids:
        for merged_id in get_merged_row_ids(row_id, rows, col_index):
            if merged_id not in seen:
                seen.add(merged_id)
                expanded.append(merged_id)

    return expanded
