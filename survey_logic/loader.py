"""
Survey loader - stored survey JSON -> immutable contracts

The editor stores surveys as camelCase JSON (displayCondition,
tableRowsData, tableValidationRules, checkboxOptions, rowspan, isHidden,
...). This module converts that shape into the frozen dataclasses of
survey_logic.contracts and reports configuration bugs to the author.

Error handling:
- Structural problems (missing ids, unknown enum strings, wrong types)
  raise ValueError from the *_from_dict functions
- Reference problems (dangling targets, unknown sources, group cycles) are
  collected by collect_configuration_errors(); load_survey() raises them
  all at once in strict mode and logs them otherwise

The engine itself never sees malformed input: by the time a Survey exists,
every enum is a known variant.
"""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Type

from survey_logic.contracts import (
    CellOption,
    CellType,
    CheckType,
    Condition,
    ConditionGroup,
    ConditionType,
    LogicType,
    Question,
    QuestionGroup,
    QuestionType,
    RuleAction,
    RuleType,
    Survey,
    TableCell,
    TableCheck,
    TableColumn,
    TableRow,
    TableValidationRule,
)

logger = logging.getLogger(__name__)

# Option list key per cell widget, as stored by the table editor
_OPTION_KEYS = ("checkboxOptions", "radioOptions", "selectOptions")


def _enum(enum_cls: Type[Enum], value: Any, where: str):
    try:
        return enum_cls(value)
    except (ValueError, TypeError):
        raise ValueError(f"Unknown {enum_cls.__name__} '{value}' in {where}") from None


def _require_id(data: Any, where: str) -> str:
    if not isinstance(data, dict):
        raise ValueError(f"Expected object in {where}, got {type(data).__name__}")
    if not data.get("id"):
        raise ValueError(f"Missing 'id' in {where}")
    return str(data["id"])


def _object(data: Any, where: str) -> dict:
    if not isinstance(data, dict):
        raise ValueError(f"Expected object in {where}, got {type(data).__name__}")
    return data


def _list(values: Any, where: str) -> list:
    if values is None:
        return []
    if not isinstance(values, list):
        raise ValueError(f"Expected list in {where}, got {type(values).__name__}")
    return values


def _int(value: Any, where: str, default: int) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"Expected integer in {where}, got {type(value).__name__}")
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Expected integer in {where}, got '{value}'") from None


def _optional_id(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, (dict, list)):
        raise ValueError(f"Expected id string, got {type(value).__name__}")
    return str(value)


def _strings(values: Any, where: str = "value list") -> tuple:
    return tuple(str(v) for v in _list(values, where))


def _column_index(value: Any, where: str) -> Optional[int]:
    # The editor stores "" when the column select is cleared
    if value is None or value == "":
        return None
    return _int(value, f"cellColumnIndex of {where}", 0)


# =============================================================================
# Element parsers
# =============================================================================

def table_check_from_dict(data: Optional[dict], where: str = "table check") -> Optional[TableCheck]:
    if data is None:
        return None
    data = _object(data, where)
    return TableCheck(
        row_ids=_strings(data.get("rowIds"), f"rowIds of {where}"),
        check_type=_enum(CheckType, data.get("checkType", "any"), where),
        cell_column_index=_column_index(data.get("cellColumnIndex"), where),
        expected_values=_strings(data.get("expectedValues"), f"expectedValues of {where}"),
    )


def condition_from_dict(data: dict) -> Condition:
    condition_id = _require_id(data, "condition")
    where = f"condition '{condition_id}'"
    return Condition(
        id=condition_id,
        source_question_id=str(data.get("sourceQuestionId", "")),
        condition_type=_enum(ConditionType, data.get("conditionType"), where),
        enabled=data.get("enabled") is not False,
        required_values=_strings(data.get("requiredValues"), f"requiredValues of {where}"),
        table_conditions=table_check_from_dict(data.get("tableConditions"), where),
        additional_conditions=table_check_from_dict(data.get("additionalConditions"), where),
    )


def condition_group_from_dict(data: Optional[dict], where: str = "displayCondition") -> Optional[ConditionGroup]:
    """Parse a displayCondition. None stays None (no restriction)."""
    if data is None:
        return None
    data = _object(data, where)
    return ConditionGroup(
        conditions=tuple(condition_from_dict(c) for c in _list(data.get("conditions"), f"conditions of {where}")),
        logic_type=_enum(LogicType, data.get("logicType", "AND"), where),
    )


def cell_from_dict(data: dict) -> TableCell:
    cell_id = _require_id(data, "table cell")
    where = f"cell '{cell_id}'"
    options = []
    for key in _OPTION_KEYS:
        for option in _list(data.get(key), f"{key} of {where}"):
            option_id = _require_id(option, f"options of {where}")
            options.append(CellOption(
                id=option_id,
                value=str(option.get("value", option_id)),
                label=option.get("label", ""),
            ))

    return TableCell(
        id=cell_id,
        type=_enum(CellType, data.get("type", "text"), where),
        options=tuple(options),
        rowspan=_int(data.get("rowspan"), f"rowspan of {where}", 1),
        colspan=_int(data.get("colspan"), f"colspan of {where}", 1),
        is_hidden=bool(data.get("isHidden", False)),
    )


def row_from_dict(data: dict) -> TableRow:
    row_id = _require_id(data, "table row")
    return TableRow(
        id=row_id,
        cells=tuple(cell_from_dict(c) for c in _list(data.get("cells"), f"cells of row '{row_id}'")),
        label=data.get("label", ""),
    )


def rule_from_dict(data: dict) -> TableValidationRule:
    rule_id = _require_id(data, "validation rule")
    where = f"validation rule '{rule_id}'"

    target_map = data.get("targetQuestionMap")
    if target_map is not None:
        target_map = _object(target_map, f"targetQuestionMap of {where}")
        target_map = tuple((str(k), str(v)) for k, v in target_map.items())

    return TableValidationRule(
        id=rule_id,
        type=_enum(RuleType, data.get("type"), where),
        conditions=table_check_from_dict(data.get("conditions") or {}, where),
        action=_enum(RuleAction, data.get("action"), where),
        additional_conditions=table_check_from_dict(data.get("additionalConditions"), where),
        target_question_id=_optional_id(data.get("targetQuestionId")),
        target_question_map=target_map,
        error_message=data.get("errorMessage"),
        description=data.get("description"),
    )


def question_from_dict(data: dict) -> Question:
    question_id = _require_id(data, "question")
    where = f"question '{question_id}'"
    return Question(
        id=question_id,
        type=_enum(QuestionType, data.get("type"), where),
        order=_int(data.get("order"), f"order of {where}", 0),
        group_id=_optional_id(data.get("groupId")),
        display_condition=condition_group_from_dict(data.get("displayCondition"), f"displayCondition of {where}"),
        table_rows=tuple(row_from_dict(r) for r in _list(data.get("tableRowsData"), f"tableRowsData of {where}")),
        table_columns=tuple(
            TableColumn(id=_require_id(c, f"columns of {where}"), label=c.get("label", ""))
            for c in _list(data.get("tableColumns"), f"tableColumns of {where}")
        ),
        table_validation_rules=tuple(
            rule_from_dict(r) for r in _list(data.get("tableValidationRules"), f"tableValidationRules of {where}")
        ),
        title=data.get("title", ""),
    )


def group_from_dict(data: dict) -> QuestionGroup:
    group_id = _require_id(data, "group")
    where = f"group '{group_id}'"
    return QuestionGroup(
        id=group_id,
        parent_group_id=_optional_id(data.get("parentGroupId")),
        display_condition=condition_group_from_dict(data.get("displayCondition"), f"displayCondition of {where}"),
        name=data.get("name", ""),
        order=_int(data.get("order"), f"order of {where}", 0),
    )


def survey_from_dict(data: dict) -> Survey:
    """
    Parse a stored survey.

    Questions keep their stored order (the editor saves them in display order).

    Raises:
        ValueError: If the structure is malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Survey must be a JSON object")

    return Survey(
        id=str(data.get("id", "")),
        title=data.get("title", ""),
        questions=tuple(question_from_dict(q) for q in _list(data.get("questions"), "survey questions")),
        groups=tuple(group_from_dict(g) for g in _list(data.get("groups"), "survey groups")),
    )


# =============================================================================
# Validation
# =============================================================================

def _check_rows(check: Optional[TableCheck], table: Question, where: str, errors: List[str]):
    if check is None:
        return
    known_rows = {row.id for row in table.table_rows}
    for row_id in check.row_ids:
        if row_id not in known_rows:
            errors.append(f"{where} references unknown row '{row_id}' of question '{table.id}'")


def collect_configuration_errors(survey: Survey) -> List[str]:
    """
    Report authoring bugs that the engine would silently fail closed on.

    Checks:
    - Duplicate question ids
    - Conditions referencing unknown source questions or unknown rows
    - table-cell-check conditions on non-table sources
    - Questions in unknown groups, groups with unknown parents
    - Group parent cycles
    - Validation rules on non-table questions
    - GOTO rules with dangling or missing targets

    Returns:
        list[str]: Human-readable errors, empty when the survey is consistent
    """
    errors = []
    questions_by_id = {}

    for question in survey.questions:
        if question.id in questions_by_id:
            errors.append(f"Duplicate question id '{question.id}'")
        questions_by_id[question.id] = question

    groups_by_id = {group.id: group for group in survey.groups}

    def check_condition_group(group: Optional[ConditionGroup], owner: str):
        if group is None:
            return
        for condition in group.conditions:
            where = f"Condition '{condition.id}' of {owner}"
            source = questions_by_id.get(condition.source_question_id)
            if source is None:
                errors.append(f"{where} references unknown question '{condition.source_question_id}'")
                continue
            if condition.condition_type == ConditionType.TABLE_CELL_CHECK:
                if source.type != QuestionType.TABLE:
                    errors.append(f"{where} checks table cells of non-table question '{source.id}'")
                    continue
                if condition.table_conditions is None:
                    errors.append(f"{where} has no tableConditions")
                _check_rows(condition.table_conditions, source, where, errors)
                _check_rows(condition.additional_conditions, source, where, errors)

    for question in survey.questions:
        owner = f"question '{question.id}'"
        check_condition_group(question.display_condition, owner)

        if question.group_id and question.group_id not in groups_by_id:
            errors.append(f"Question '{question.id}' is in unknown group '{question.group_id}'")

        if question.table_validation_rules and question.type != QuestionType.TABLE:
            errors.append(f"Question '{question.id}' has validation rules but is not a table")
            continue

        for rule in question.table_validation_rules:
            where = f"Rule '{rule.id}' of {owner}"
            _check_rows(rule.conditions, question, where, errors)
            _check_rows(rule.additional_conditions, question, where, errors)

            if rule.action != RuleAction.GOTO:
                continue
            if rule.target_question_map is not None:
                for value, target in rule.target_question_map:
                    if target not in questions_by_id:
                        errors.append(f"{where} maps '{value}' to unknown question '{target}'")
            elif not rule.target_question_id:
                errors.append(f"{where} is a goto rule without a target")
            elif rule.target_question_id not in questions_by_id:
                errors.append(f"{where} targets unknown question '{rule.target_question_id}'")

    for group in survey.groups:
        check_condition_group(group.display_condition, f"group '{group.id}'")
        if group.parent_group_id and group.parent_group_id not in groups_by_id:
            errors.append(f"Group '{group.id}' has unknown parent '{group.parent_group_id}'")

    # Cycle detection over parent links
    reported = set()
    for group in survey.groups:
        seen = []
        current = group.id
        while current is not None and current in groups_by_id:
            if current in seen:
                cycle = tuple(sorted(seen[seen.index(current):]))
                if cycle not in reported:
                    reported.add(cycle)
                    errors.append(f"Group parent cycle: {' -> '.join(seen[seen.index(current):] + [current])}")
                break
            seen.append(current)
            current = groups_by_id[current].parent_group_id

    return errors


def load_survey(survey_path: str, strict: bool = True) -> Survey:
    """
    Load and validate a survey JSON file.

    Args:
        survey_path: Path to survey JSON
        strict: Raise on configuration errors instead of logging them

    Returns:
        Survey

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the survey is malformed, or (strict) inconsistent
    """
    path = Path(survey_path)
    if not path.exists():
        raise FileNotFoundError(f"Survey not found: {survey_path}")

    with open(path, 'r', encoding='utf-8') as f:
        survey = survey_from_dict(json.load(f))

    errors = collect_configuration_errors(survey)
    if errors:
        if strict:
            raise ValueError("Survey validation failed:\n  - " + "\n  - ".join(errors))
        for error in errors:
            logger.warning(f"Survey {survey.id}: {error}")

    logger.info(f"Loaded survey {survey.id} with {len(survey.questions)} questions, {len(survey.groups)} groups")
    return survey
