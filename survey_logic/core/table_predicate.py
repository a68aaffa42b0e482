"""
Table Cell Predicate - shared row/cell evaluation for table questions

Responsibilities:
- Read one table cell's response value according to the cell's widget
- Decide whether each row of a table is "hit" for a given column and
  expected values, treating merge groups as one logical row
- Combine row hits with any/all/none semantics
- Extract the observed selection used for dynamic branching

Table responses are flat: {cell_id: value}. Checkbox cells hold a list of
option ids, radio/select cells a single option id (or {"optionId": ...}),
input cells text. Option ids are resolved to option values before
matching; the raw id also matches.

Malformed responses, unknown rows and missing columns are "not hit".
"""

import logging
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional, Sequence

from survey_logic.contracts import (
    CellType,
    CheckType,
    INTERACTIVE_CELL_TYPES,
    Question,
    TableCell,
    TableCheck,
    TableRow,
)
from survey_logic.core.merge_resolver import (
    cell_at,
    expand_row_ids,
    get_merged_row_ids,
    get_row_merge_info,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Cell reading
# =============================================================================

def unwrap_option_id(value: Any) -> Optional[str]:
    """
    Reduce a stored selection to the option id / value string.

    Accepts a plain string, {"optionId": ...} and the "other" choice shape
    {"selectedValue": ..., "otherValue": ..., "hasOther": True}.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        if "optionId" in value:
            return value["optionId"]
        if "selectedValue" in value:
            return value["selectedValue"]
    return None


def _option_tokens(cell: TableCell, option_id: str) -> set:
    """Raw option id plus the option's authored value, if the id is known."""
    tokens = {option_id}
    for option in cell.options:
        if option.id == option_id:
            tokens.add(option.value)
            break
    return tokens


def _option_value(cell: TableCell, option_id: str) -> str:
    for option in cell.options:
        if option.id == option_id:
            return option.value
    return option_id


def is_cell_hit(cell: TableCell, cell_value: Any, expected_values: Iterable[str] = ()) -> bool:
    """
    Decide whether one cell's response counts as a hit.

    Args:
        cell: Table cell (its widget type decides how the value is read)
        cell_value: Stored response value for this cell, may be None
        expected_values: Accepted option values / texts; empty accepts any
            selection

    Returns:
        True if the cell is selected (and matches expected_values, if any)
    """
    expected = set(expected_values)

    if cell.type == CellType.CHECKBOX:
        if not isinstance(cell_value, (list, tuple)) or not cell_value:
            return False
        if not expected:
            return True
        for item in cell_value:
            option_id = unwrap_option_id(item)
            if option_id is not None and _option_tokens(cell, option_id) & expected:
                return True
        return False

    if cell.type in (CellType.RADIO, CellType.SELECT):
        option_id = unwrap_option_id(cell_value)
        if not option_id:
            return False
        if not expected:
            return True
        return bool(_option_tokens(cell, option_id) & expected)

    if cell.type == CellType.INPUT:
        if cell_value is None or isinstance(cell_value, (list, tuple, Mapping)):
            return False
        text = str(cell_value).strip()
        if not text:
            return False
        return not expected or text in expected

    # Display-only cells never carry a response
    return False


def selected_value(cell: TableCell, cell_value: Any) -> Optional[str]:
    """
    Return the single value a cell contributes to dynamic branching.

    radio/select: the selected option's value
    checkbox: the first checked option's value
    input: the trimmed text
    """
    if cell.type == CellType.CHECKBOX:
        if isinstance(cell_value, (list, tuple)):
            for item in cell_value:
                option_id = unwrap_option_id(item)
                if option_id:
                    return _option_value(cell, option_id)
        return None

    if cell.type in (CellType.RADIO, CellType.SELECT):
        option_id = unwrap_option_id(cell_value)
        return _option_value(cell, option_id) if option_id else None

    if cell.type == CellType.INPUT:
        if cell_value is None or isinstance(cell_value, (list, tuple, Mapping)):
            return None
        text = str(cell_value).strip()
        return text or None

    return None


def _owning_cell(row: TableRow, col_index: int, rows: Sequence[TableRow]) -> Optional[TableCell]:
    """The cell shown at (row, col): a hidden cell is owned by its merge start."""
    cell = cell_at(row, col_index)
    if cell is None or not cell.is_hidden or not rows:
        return cell

    info = get_row_merge_info(row.id, rows, col_index)
    if not info.is_merged:
        return cell
    start = next((r for r in rows if r.id == info.merge_start_row_id), None)
    return cell_at(start, col_index) if start is not None else cell


def consulted_column(row: TableRow, col_index: Optional[int], rows: Sequence[TableRow] = ()) -> Optional[int]:
    """
    Column actually read for a row.

    A column showing a display-only cell (e.g. a row label, possibly merged
    over several rows) is redirected to the row's first interactive column.
    """
    if col_index is None:
        return None

    owner = _owning_cell(row, col_index, rows)
    if owner is None or owner.type in INTERACTIVE_CELL_TYPES:
        return col_index

    for index, cell in enumerate(row.cells):
        if cell.type in INTERACTIVE_CELL_TYPES:
            return index
    return col_index


def cells_to_check(
    row: TableRow,
    col_index: Optional[int],
    rows: Sequence[TableRow] = ()
) -> List[TableCell]:
    """Cells of a row consulted for a check. No column: every cell."""
    if col_index is None:
        return list(row.cells)

    cell = cell_at(row, consulted_column(row, col_index, rows))
    return [cell] if cell is not None else []


def expand_targets(row_ids: Iterable[str], rows: Sequence[TableRow], col_index: Optional[int]) -> List[str]:
    """Expand row ids by merge group, each at the column its row consults."""
    by_id = {row.id: row for row in rows}
    expanded = []
    for row_id in row_ids:
        row = by_id.get(row_id)
        column = consulted_column(row, col_index, rows) if row is not None else col_index
        for member in expand_row_ids([row_id], rows, column):
            if member not in expanded:
                expanded.append(member)
    return expanded


# =============================================================================
# Row hits
# =============================================================================

def collect_row_hits(
    question: Question,
    cell_responses: Mapping,
    col_index: Optional[int] = None,
    expected_values: Iterable[str] = ()
) -> Dict[str, bool]:
    """
    Compute the hit state of every row of a table question.

    A row is hit if any consulted cell is hit. Rows merged at the column a
    row actually consults share one state: the group is hit if any member is.

    Returns:
        dict[str, bool]: row id -> hit, for every row in the table
    """
    expected = tuple(expected_values)
    rows = question.table_rows

    raw_hits = {}
    for row in rows:
        raw_hits[row.id] = any(
            is_cell_hit(cell, cell_responses.get(cell.id), expected)
            for cell in cells_to_check(row, col_index, rows)
        )

    if col_index is None:
        return raw_hits

    hits = {}
    for row in rows:
        group = get_merged_row_ids(row.id, rows, consulted_column(row, col_index, rows))
        hits[row.id] = any(raw_hits.get(member, False) for member in group)

    return hits


def combine_hits(row_ids: Sequence[str], hits: Mapping, check_type: CheckType) -> bool:
    """
    Combine row hits under a check type.

    ANY: at least one row hit
    ALL: every row hit
    NONE: no row hit
    Widget hints (CHECKBOX/RADIO/SELECT/INPUT) combine as ANY.
    """
    row_hits = [hits.get(row_id, False) for row_id in row_ids]

    if check_type == CheckType.ALL:
        return all(row_hits)
    if check_type == CheckType.NONE:
        return not any(row_hits)
    return any(row_hits)


def target_rows(check: TableCheck, question: Question) -> List[str]:
    """Row ids of a check with merge groups expanded at its column."""
    return expand_targets(check.row_ids, question.table_rows, check.cell_column_index)


def hit_row_ids(check: TableCheck, question: Question, cell_responses: Mapping) -> List[str]:
    """Target rows of a check that are hit, in target order."""
    if not isinstance(cell_responses, Mapping):
        return []
    hits = collect_row_hits(question, cell_responses, check.cell_column_index, check.expected_values)
    return [row_id for row_id in target_rows(check, question) if hits.get(row_id, False)]


def table_cell_satisfied(
    check: Optional[TableCheck],
    question: Question,
    cell_responses: Any,
    check_type: Optional[CheckType] = None
) -> bool:
    """
    Evaluate a TableCheck against one table question's response.

    Args:
        check: Row predicate
        question: Table question owning the rows
        cell_responses: Flat {cell_id: value} response
        check_type: Override for check.check_type (validation rules pass
            the mode implied by their rule type)

    Returns:
        bool: False for a missing check, a table without rows or a
        non-mapping response
    """
    if check is None or not question.table_rows:
        return False
    if not isinstance(cell_responses, Mapping):
        return False

    mode = check_type if check_type is not None else check.check_type
    hits = collect_row_hits(question, cell_responses, check.cell_column_index, check.expected_values)
    rows = target_rows(check, question)

    result = combine_hits(rows, hits, mode)
    logger.debug(f"Table check on {question.id}: rows={rows} mode={mode.value} -> {result}")
    return result


def additional_satisfied(
    additional: TableCheck,
    question: Question,
    cell_responses: Any,
    primary_hit_rows: Sequence[str]
) -> bool:
    """
    Evaluate an additional TableCheck that is ANDed with a primary one.

    The additional check uses its own row_ids when it names any, otherwise
    the rows the primary check found hit, so "row X checked AND the same
    row's cell Y equals Z" can be expressed.
    """
    if not isinstance(cell_responses, Mapping):
        return False

    scope = list(additional.row_ids) or list(primary_hit_rows)
    if not scope:
        return False

    rows = expand_targets(scope, question.table_rows, additional.cell_column_index)
    hits = collect_row_hits(
        question, cell_responses, additional.cell_column_index, additional.expected_values
    )
    return combine_hits(rows, hits, additional.check_type)


def observed_values(
    question: Question,
    cell_responses: Any,
    row_ids: Sequence[str],
    col_index: Optional[int]
) -> List[str]:
    """
    Collect the selected values within a row/column scope.

    Rows are visited in table order (merge groups expanded, empty row_ids
    means every row). Each row contributes the value of its first consulted
    cell that has one.

    Returns:
        list[str]: Candidate values in table order
    """
    if not isinstance(cell_responses, Mapping):
        return []

    rows = question.table_rows
    if row_ids:
        scope = set(expand_targets(row_ids, rows, col_index))
    else:
        scope = {row.id for row in rows}

    values = []
    for row in rows:
        if row.id not in scope:
            continue
        for cell in cells_to_check(row, col_index, rows):
            value = selected_value(cell, cell_responses.get(cell.id))
            if value:
                values.append(value)
                break

    return values
