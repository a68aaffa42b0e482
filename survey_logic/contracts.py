"""
Semantic contracts for the survey display & branching engine.

This module defines immutable data structures that serve as contracts
between the survey editor (which owns and mutates surveys), the loader
(which turns stored JSON into these types) and the engine (which only
reads them).

Design principles:
- Frozen dataclasses (immutable after creation)
- Tuples instead of lists, so a loaded survey can be shared freely
- Closed string enums for every tagged kind (JSON-serializable values)
- No validation logic (contracts, not validators - see loader.py)

Contents:
- Enums: QuestionType, CellType, LogicType, ConditionType, CheckType,
  RuleType, RuleAction
- Table grid: CellOption, TableCell, TableRow, TableColumn, RowMergeInfo
- Rules: TableCheck, Condition, ConditionGroup, TableValidationRule
- Survey structure: Question, QuestionGroup, Survey

Usage:
    from survey_logic.contracts import Question, Condition, LogicType
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class QuestionType(str, Enum):
    NOTICE = "notice"
    TEXT = "text"
    TEXTAREA = "textarea"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    SELECT = "select"
    MULTISELECT = "multiselect"
    TABLE = "table"


class CellType(str, Enum):
    """
    Widget rendered in one table cell.

    TEXT, IMAGE and VIDEO are display-only; the rest hold response data.
    """
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    SELECT = "select"
    INPUT = "input"


# Cells that can carry a response value
INTERACTIVE_CELL_TYPES = frozenset({
    CellType.CHECKBOX, CellType.RADIO, CellType.SELECT, CellType.INPUT
})


class LogicType(str, Enum):
    """
    How the enabled conditions of a ConditionGroup are combined.

    AND: every condition holds
    OR:  at least one condition holds
    NOT: none of the conditions hold (not per-condition negation)
    """
    AND = "AND"
    OR = "OR"
    NOT = "NOT"


class ConditionType(str, Enum):
    VALUE_MATCH = "value-match"
    TABLE_CELL_CHECK = "table-cell-check"


class CheckType(str, Enum):
    """
    Row combination mode of a TableCheck.

    ANY/ALL/NONE are used by display conditions. The validation editor
    stores the widget kind it was configured against (CHECKBOX, RADIO,
    SELECT, INPUT) instead; those are hints only and combine as ANY.
    """
    ANY = "any"
    ALL = "all"
    NONE = "none"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    SELECT = "select"
    INPUT = "input"


class RuleType(str, Enum):
    EXCLUSIVE_CHECK = "exclusive-check"
    ANY_OF = "any-of"
    ALL_OF = "all-of"
    NONE_OF = "none-of"
    REQUIRED_COMBINATION = "required-combination"


class RuleAction(str, Enum):
    GOTO = "goto"
    END = "end"


# =============================================================================
# Table grid
# =============================================================================

@dataclass(frozen=True)
class CellOption:
    """
    One selectable option of a checkbox/radio/select cell.

    Responses store the option id; rules are authored against the value.
    """
    id: str
    value: str
    label: str = ""


@dataclass(frozen=True)
class TableCell:
    """
    One cell of a table question.

    Attributes:
        id: Cell identifier, also the key of this cell in a table response
        type: Widget kind
        options: Options of a checkbox/radio/select cell, empty otherwise
        rowspan: Rows covered by this cell when it starts a vertical merge
        colspan: Columns covered by this cell when it starts a horizontal merge
        is_hidden: True when the cell is covered by another cell's merge
    """
    id: str
    type: CellType
    options: Tuple[CellOption, ...] = ()
    rowspan: int = 1
    colspan: int = 1
    is_hidden: bool = False


@dataclass(frozen=True)
class TableRow:
    id: str
    cells: Tuple[TableCell, ...] = ()
    label: str = ""


@dataclass(frozen=True)
class TableColumn:
    id: str
    label: str = ""


@dataclass(frozen=True)
class RowMergeInfo:
    """
    Merge membership of one row at one column.

    Attributes:
        is_merged: True if the row shares a rowspan cell with other rows
        merged_row_ids: All row ids of the merge group (just the row itself
            when not merged)
        merge_start_row_id: Row holding the visible (spanning) cell, None
            when not merged
    """
    is_merged: bool
    merged_row_ids: Tuple[str, ...]
    merge_start_row_id: Optional[str] = None


# =============================================================================
# Conditions and rules
# =============================================================================

@dataclass(frozen=True)
class TableCheck:
    """
    Predicate over the rows of one table question.

    Attributes:
        row_ids: Target rows (merge groups are expanded at evaluation time)
        check_type: How row hits combine (see CheckType)
        cell_column_index: Column to inspect; None means every cell of the
            row counts and a row is hit if any of them is hit
        expected_values: Option values (or input texts) that count as a hit;
            empty means any selection counts
    """
    row_ids: Tuple[str, ...] = ()
    check_type: CheckType = CheckType.ANY
    cell_column_index: Optional[int] = None
    expected_values: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Condition:
    """
    Atomic predicate over one earlier question's response.

    `enabled` is always a real boolean; disabled conditions are dropped
    before a group combines its results.
    """
    id: str
    source_question_id: str
    condition_type: ConditionType
    enabled: bool = True
    required_values: Tuple[str, ...] = ()
    table_conditions: Optional[TableCheck] = None
    additional_conditions: Optional[TableCheck] = None


@dataclass(frozen=True)
class ConditionGroup:
    """Conditions combined into one boolean. An empty group always holds."""
    conditions: Tuple[Condition, ...] = ()
    logic_type: LogicType = LogicType.AND


@dataclass(frozen=True)
class TableValidationRule:
    """
    Table-scoped rule that ends the survey or redirects navigation.

    Attributes:
        id: Rule identifier
        type: Semantic rule kind; authoritative over conditions.check_type
        conditions: Primary row predicate
        action: GOTO or END
        additional_conditions: Extra predicate ANDed with the primary one;
            also scopes the observed selection for target_question_map
        target_question_id: Fixed GOTO target
        target_question_map: Option value -> question id, for dynamic GOTO.
            Stored as a tuple of pairs to stay hashable and immutable.
        error_message: Author-facing message shown by the editor
        description: Author-facing label
    """
    id: str
    type: RuleType
    conditions: TableCheck
    action: RuleAction
    additional_conditions: Optional[TableCheck] = None
    target_question_id: Optional[str] = None
    target_question_map: Optional[Tuple[Tuple[str, str], ...]] = None
    error_message: Optional[str] = None
    description: Optional[str] = None


# =============================================================================
# Survey structure
# =============================================================================

@dataclass(frozen=True)
class Question:
    id: str
    type: QuestionType
    order: int = 0
    group_id: Optional[str] = None
    display_condition: Optional[ConditionGroup] = None
    table_rows: Tuple[TableRow, ...] = ()
    table_columns: Tuple[TableColumn, ...] = ()
    table_validation_rules: Tuple[TableValidationRule, ...] = ()
    title: str = ""


@dataclass(frozen=True)
class QuestionGroup:
    """Question group. parent_group_id links form a tree of any depth."""
    id: str
    parent_group_id: Optional[str] = None
    display_condition: Optional[ConditionGroup] = None
    name: str = ""
    order: int = 0


@dataclass(frozen=True)
class Survey:
    """Questions in display order plus their groups, as produced by the loader."""
    id: str
    questions: Tuple[Question, ...] = ()
    groups: Tuple[QuestionGroup, ...] = ()
    title: str = ""
