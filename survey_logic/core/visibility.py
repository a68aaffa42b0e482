"""
Visibility Resolver - which questions are currently shown

A question is visible only if its own display condition holds and so does
the display condition of every group in its containment chain (its group,
that group's parent, and so on up to the root).

Parent links are walked with a visited set; a cycle stops the walk.

Visibility is a filter applied after navigation, never a navigation state.
"""

import logging
from collections.abc import Mapping
from typing import Iterator, List, Optional, Sequence

from survey_logic.contracts import Question, QuestionGroup
from survey_logic.core.condition_evaluator import evaluate_group

logger = logging.getLogger(__name__)


def _iter_group_chain(
    group_id: Optional[str],
    all_groups: Sequence[QuestionGroup]
) -> Iterator[QuestionGroup]:
    """
    Yield the group with group_id, then its ancestors.

    Stops at a missing parent, an unknown group id or a revisited group.
    """
    by_id = {group.id: group for group in all_groups}
    visited = set()

    while group_id is not None:
        if group_id in visited:
            logger.warning(f"Group parent cycle detected at {group_id}, stopping walk")
            return
        visited.add(group_id)

        group = by_id.get(group_id)
        if group is None:
            return

        yield group
        group_id = group.parent_group_id


def should_display_group(
    group: QuestionGroup,
    responses: Mapping,
    all_questions: Sequence[Question],
    all_groups: Sequence[QuestionGroup]
) -> bool:
    """True if the group and all of its ancestors pass their display conditions."""
    # Start from the group object itself so an unregistered group is still checked
    if not evaluate_group(group.display_condition, responses, all_questions):
        return False

    chain = _iter_group_chain(group.parent_group_id, [g for g in all_groups if g.id != group.id])
    return all(
        evaluate_group(ancestor.display_condition, responses, all_questions)
        for ancestor in chain
    )


def should_display_question(
    question: Question,
    responses: Mapping,
    all_questions: Sequence[Question],
    all_groups: Sequence[QuestionGroup] = ()
) -> bool:
    """
    Decide whether a question is visible for the current responses.

    Args:
        question: Question to check
        responses: question id -> response value
        all_questions: All survey questions (condition sources)
        all_groups: All survey groups (containment chain)

    Returns:
        bool: AND of the question's display condition and every group
        display condition in its chain
    """
    if not evaluate_group(question.display_condition, responses, all_questions):
        return False

    for group in _iter_group_chain(question.group_id, all_groups):
        if not evaluate_group(group.display_condition, responses, all_questions):
            logger.debug(f"Question {question.id} hidden by group {group.id}")
            return False

    return True


def get_visible_questions(
    questions: Sequence[Question],
    responses: Mapping,
    all_groups: Sequence[QuestionGroup] = ()
) -> List[Question]:
    """Return the currently visible questions in survey order (progress numbering)."""
    return [
        question for question in questions
        if should_display_question(question, responses, questions, all_groups)
    ]


def find_next_visible_index(
    questions: Sequence[Question],
    start_index: int,
    responses: Mapping,
    all_groups: Sequence[QuestionGroup] = ()
) -> int:
    """
    Find the first visible question at or after start_index.

    Returns:
        int: Question index, or -1 if start_index is negative or no visible
        question remains
    """
    if start_index < 0:
        return -1

    for index in range(start_index, len(questions)):
        if should_display_question(questions[index], responses, questions, all_groups):
            return index

    return -1


def find_previous_visible_index(
    questions: Sequence[Question],
    start_index: int,
    responses: Mapping,
    all_groups: Sequence[QuestionGroup] = ()
) -> int:
    """
    Find the last visible question at or before start_index ("Previous" button).

    Returns:
        int: Question index, or -1 if none
    """
    for index in range(min(start_index, len(questions) - 1), -1, -1):
        if should_display_question(questions[index], responses, questions, all_groups):
            return index

    return -1
