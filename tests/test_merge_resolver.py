"""
Test merge-aware row resolution

Table layout used throughout (column 0 merges r1 and r2):

    r1 | [check, rowspan=2] | text
    r2 | [hidden]           | text
    r3 | [check]            | text
"""

from survey_logic.contracts import (
    CellOption,
    CellType,
    Question,
    QuestionType,
    TableCell,
    TableCheck,
    TableRow,
    CheckType,
)
from survey_logic.core.merge_resolver import (
    expand_row_ids,
    get_merged_row_ids,
    get_row_merge_info,
)
from survey_logic.core.table_predicate import collect_row_hits, table_cell_satisfied


def build_rows():
    own = (CellOption(id="own", value="owned"),)
    return (
        TableRow(id="r1", cells=(
            TableCell(id="r1-check", type=CellType.CHECKBOX, options=own, rowspan=2),
            TableCell(id="r1-label", type=CellType.TEXT),
        )),
        TableRow(id="r2", cells=(
            TableCell(id="r2-check", type=CellType.CHECKBOX, options=own, is_hidden=True),
            TableCell(id="r2-label", type=CellType.TEXT),
        )),
        TableRow(id="r3", cells=(
            TableCell(id="r3-check", type=CellType.CHECKBOX, options=own),
            TableCell(id="r3-label", type=CellType.TEXT),
        )),
    )


def build_table():
    return Question(id="grid", type=QuestionType.TABLE, table_rows=build_rows())


def test_merge_start_row_returns_group():
    rows = build_rows()
    assert get_merged_row_ids("r1", rows, 0) == ["r1", "r2"]


def test_hidden_row_resolves_to_same_group():
    rows = build_rows()
    assert get_merged_row_ids("r2", rows, 0) == ["r1", "r2"]


def test_unmerged_row_is_alone():
    rows = build_rows()
    assert get_merged_row_ids("r3", rows, 0) == ["r3"]


def test_no_column_means_no_merge_awareness():
    rows = build_rows()
    assert get_merged_row_ids("r1", rows, None) == ["r1"]


def test_unknown_row_and_missing_rows():
    rows = build_rows()
    assert get_merged_row_ids("nope", rows, 0) == ["nope"]
    assert get_merged_row_ids("r1", None, 0) == ["r1"]
    assert get_merged_row_ids("r1", rows, 7) == ["r1"]


def test_merge_info_for_hidden_row():
    info = get_row_merge_info("r2", build_rows(), 0)

    assert info.is_merged is True
    assert info.merged_row_ids == ("r1", "r2")
    assert info.merge_start_row_id == "r1"


def test_merge_info_unmerged():
    info = get_row_merge_info("r3", build_rows(), 0)

    assert info.is_merged is False
    assert info.merged_row_ids == ("r3",)
    assert info.merge_start_row_id is None


def test_rowspan_past_table_end_is_clipped():
    rows = (
        TableRow(id="a", cells=(TableCell(id="a0", type=CellType.CHECKBOX, rowspan=5),)),
        TableRow(id="b", cells=(TableCell(id="b0", type=CellType.CHECKBOX, is_hidden=True),)),
    )
    assert get_merged_row_ids("b", rows, 0) == ["a", "b"]


def test_expand_row_ids_keeps_order_and_dedupes():
    rows = build_rows()
    assert expand_row_ids(["r2", "r3", "r1"], rows, 0) == ["r1", "r2", "r3"]
    assert expand_row_ids(["r3"], rows, 0) == ["r3"]


def test_merged_rows_report_identical_state():
    """Checking the merged cell checks every row of the merge group."""
    table = build_table()

    hits = collect_row_hits(table, {"r1-check": ["own"]}, col_index=0)

    assert hits == {"r1": True, "r2": True, "r3": False}


def test_merged_state_without_any_selection():
    hits = collect_row_hits(build_table(), {}, col_index=0)
    assert hits == {"r1": False, "r2": False, "r3": False}


def test_predicate_on_covered_row_sees_merged_selection():
    table = build_table()
    check = TableCheck(row_ids=("r2",), check_type=CheckType.ALL, cell_column_index=0)

    assert table_cell_satisfied(check, table, {"r1-check": ["own"]}) is True
    assert table_cell_satisfied(check, table, {"r3-check": ["own"]}) is False


def test_none_check_on_merge_group_is_all_or_nothing():
    table = build_table()
    check = TableCheck(row_ids=("r1",), check_type=CheckType.NONE, cell_column_index=0)

    # r2's hidden cell carrying a value still counts for the whole group
    assert table_cell_satisfied(check, table, {"r2-check": ["own"]}) is False
    assert table_cell_satisfied(check, table, {}) is True
