"""
Table Validation Evaluator - branching rules attached to table questions

Responsibilities:
- Evaluate a table question's validation rules, in order, against the
  question's own response; the first rule that fires wins
- Resolve the branch target of a firing GOTO rule (fixed id or value map)
"""

import logging
from collections.abc import Mapping
from typing import Any, Callable, Dict, Optional

from survey_logic.contracts import (
    CheckType,
    Question,
    QuestionType,
    RuleType,
    TableValidationRule,
)
from survey_logic.core.table_predicate import (
    additional_satisfied,
    collect_row_hits,
    hit_row_ids,
    observed_values,
    table_cell_satisfied,
    target_rows,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Primary predicates per rule type
# =============================================================================

def _forced(check_type: CheckType) -> Callable[[Question, Mapping, TableValidationRule], bool]:
    def predicate(question: Question, response: Mapping, rule: TableValidationRule) -> bool:
        return table_cell_satisfied(rule.conditions, question, response, check_type=check_type)
    return predicate


def _exclusive_check(question: Question, response: Mapping, rule: TableValidationRule) -> bool:
    """Exactly the target rows are hit, no more, no less."""
    check = rule.conditions
    targets = set(target_rows(check, question))
    if not targets:
        return False

    hits = collect_row_hits(question, response, check.cell_column_index, check.expected_values)

    for row in question.table_rows:
        if hits.get(row.id, False) != (row.id in targets):
            return False

    # Target ids not present in the table can never be hit
    return targets.issubset(hits)


RULE_PREDICATES: Dict[RuleType, Callable[[Question, Mapping, TableValidationRule], bool]] = {
    RuleType.ANY_OF: _forced(CheckType.ANY),
    RuleType.ALL_OF: _forced(CheckType.ALL),
    RuleType.REQUIRED_COMBINATION: _forced(CheckType.ALL),
    RuleType.NONE_OF: _forced(CheckType.NONE),
    RuleType.EXCLUSIVE_CHECK: _exclusive_check,
}


# =============================================================================
# Public API
# =============================================================================

def check_table_validation_rule(
    question: Question,
    response: Any,
    rule: TableValidationRule
) -> bool:
    """
    Evaluate one validation rule.

    Args:
        question: Table question owning the rule
        response: Flat {cell_id: value} table response
        rule: Rule to evaluate

    Returns:
        bool: True if the rule fires. Non-table questions, empty tables and
        non-mapping responses never fire.
    """
    if question.type != QuestionType.TABLE or not question.table_rows:
        return False
    if not isinstance(response, Mapping):
        return False

    predicate = RULE_PREDICATES.get(rule.type)
    if predicate is None:
        logger.warning(f"Unknown validation rule type: {rule.type}")
        return False

    primary = predicate(question, response, rule)
    logger.debug(f"Rule {rule.id} ({rule.type.value}) on {question.id}: primary={primary}")

    if not primary or rule.additional_conditions is None:
        return primary

    primary_rows = hit_row_ids(rule.conditions, question, response)
    additional = additional_satisfied(rule.additional_conditions, question, response, primary_rows)
    logger.debug(f"Rule {rule.id}: additional={additional}")
    return additional


def evaluate_table_validation(question: Question, response: Any) -> Optional[TableValidationRule]:
    """
    Find the first validation rule of a table question that fires.

    Rules are evaluated in order; once one fires the rest are skipped.

    Returns:
        TableValidationRule or None if the question is not a table or no
        rule fires
    """
    if question.type != QuestionType.TABLE or not question.table_validation_rules:
        return None

    for rule in question.table_validation_rules:
        if check_table_validation_rule(question, response, rule):
            logger.info(f"Validation rule {rule.id} fired on {question.id} ({rule.action.value})")
            return rule

    return None


def resolve_branch_target(
    question: Question,
    response: Any,
    rule: TableValidationRule
) -> Optional[str]:
    """
    Determine the question id a firing GOTO rule points to.

    With a target_question_map, the first observed value (table order,
    additional_conditions scope if present) that is a map key wins.

    Returns:
        str question id, or None when nothing resolves
    """
    if rule.target_question_map is None:
        return rule.target_question_id

    mapping = dict(rule.target_question_map)
    scope = rule.additional_conditions or rule.conditions

    for value in observed_values(question, response, scope.row_ids, scope.cell_column_index):
        if value in mapping:
            logger.info(f"Dynamic branch on {question.id}: '{value}' -> {mapping[value]}")
            return mapping[value]

    logger.warning(f"Rule {rule.id}: no target_question_map key matches the selection")
    return None
