"""
Condition Evaluator - display conditions over a response snapshot

Responsibilities:
- Evaluate one Condition (value-match or table-cell-check) against the
  responses collected so far
- Combine a ConditionGroup's enabled conditions under AND / OR / NOT

Design principles:
- Stateless and pure: all inputs are passed per call
- Fail closed: a condition that cannot be resolved is False, never raises
"""

import logging
from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterable, Optional, Sequence

from survey_logic.contracts import (
    Condition,
    ConditionGroup,
    ConditionType,
    LogicType,
    Question,
    QuestionType,
)
from survey_logic.core.table_predicate import (
    additional_satisfied,
    hit_row_ids,
    table_cell_satisfied,
    unwrap_option_id,
)

logger = logging.getLogger(__name__)


def _find_question(questions: Iterable[Question], question_id: str) -> Optional[Question]:
    for question in questions:
        if question.id == question_id:
            return question
    return None


def _has_response(value: Any) -> bool:
    if isinstance(value, str):
        return bool(value.strip())
    return value is not None


# =============================================================================
# Per-type evaluators
# =============================================================================

def _check_value_match(condition: Condition, response: Any, source: Question) -> bool:
    """
    value-match: the response (or any element of a multi-valued response)
    is one of required_values. No required_values: any non-empty response.
    """
    required = set(condition.required_values)

    if isinstance(response, (list, tuple)):
        selected = [unwrap_option_id(item) for item in response]
        selected = [value for value in selected if _has_response(value)]
        if not required:
            return bool(selected)
        return any(value in required for value in selected)

    value = unwrap_option_id(response)
    if not _has_response(value):
        return False
    if not required:
        return True
    return value in required


def _check_table_cell(condition: Condition, response: Any, source: Question) -> bool:
    """
    table-cell-check: primary table_conditions, ANDed with
    additional_conditions when present.
    """
    if source.type != QuestionType.TABLE or condition.table_conditions is None:
        logger.warning(
            f"Condition {condition.id}: table-cell-check on non-table or "
            f"unconfigured source {source.id}"
        )
        return False

    if not isinstance(response, Mapping):
        return False

    primary = table_cell_satisfied(condition.table_conditions, source, response)

    if condition.additional_conditions is None:
        return primary
    if not primary:
        return False

    primary_rows = hit_row_ids(condition.table_conditions, source, response)
    return additional_satisfied(condition.additional_conditions, source, response, primary_rows)


CONDITION_EVALUATORS: Dict[ConditionType, Callable[[Condition, Any, Question], bool]] = {
    ConditionType.VALUE_MATCH: _check_value_match,
    ConditionType.TABLE_CELL_CHECK: _check_table_cell,
}


# =============================================================================
# Public API
# =============================================================================

def evaluate_condition(
    condition: Condition,
    responses: Mapping,
    questions: Sequence[Question]
) -> bool:
    """
    Evaluate one condition against the response snapshot.

    Args:
        condition: Condition to evaluate
        responses: question id -> response value
        questions: All survey questions (to resolve the source question)

    Returns:
        bool: True if the condition holds. Disabled conditions, unknown
        source questions and missing responses are False.
    """
    if not condition.enabled:
        return False

    response = responses.get(condition.source_question_id)
    if not _has_response(response):
        return False

    source = _find_question(questions, condition.source_question_id)
    if source is None:
        logger.warning(
            f"Condition {condition.id} references unknown question "
            f"{condition.source_question_id}"
        )
        return False

    evaluator = CONDITION_EVALUATORS.get(condition.condition_type)
    if evaluator is None:
        logger.warning(f"Unknown condition type: {condition.condition_type}")
        return False

    return evaluator(condition, response, source)


def evaluate_group(
    group: Optional[ConditionGroup],
    responses: Mapping,
    questions: Sequence[Question]
) -> bool:
    """
    Combine a condition group into one boolean.

    Args:
        group: Condition group, or None (no restriction)
        responses: question id -> response value
        questions: All survey questions

    Returns:
        bool: Group result. None or no enabled conditions -> True.
    """
    if group is None:
        return True

    enabled = [condition for condition in group.conditions if condition.enabled]
    if not enabled:
        return True  # Vacuous truth, regardless of logic type

    results = (evaluate_condition(condition, responses, questions) for condition in enabled)

    if group.logic_type == LogicType.AND:
        return all(results)

    if group.logic_type == LogicType.OR:
        return any(results)

    if group.logic_type == LogicType.NOT:
        return not any(results)

    logger.warning(f"Unknown logic type: {group.logic_type}")
    return True
