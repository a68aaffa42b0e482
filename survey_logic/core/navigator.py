"""
Navigation Resolver - which question comes after "Next"

Responsibilities:
- Combine table validation outcomes with linear order to pick the next
  question index, or signal the end of the survey (-1)
- Compose navigation with the visibility filter (advance)
- Offer a survey-bound, stateless facade for the UI (SurveyNavigator)

get_next_question_index() deliberately does not skip hidden questions:
branching decides where the graph points, visibility decides whether the
target is shown. advance() applies both.
"""

import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Sequence, Tuple

from survey_logic.contracts import Question, QuestionGroup, RuleAction, Survey
from survey_logic.core.table_validation import evaluate_table_validation, resolve_branch_target
from survey_logic.core.visibility import (
    find_next_visible_index,
    find_previous_visible_index,
    get_visible_questions,
    should_display_question,
)
from survey_logic.results import (
    NavigationResult,
    REASON_EXHAUSTED,
    REASON_INVALID_INDEX,
    REASON_LINEAR,
    REASON_RULE_END,
    REASON_RULE_GOTO,
    REASON_RULE_GOTO_UNRESOLVED,
)

logger = logging.getLogger(__name__)


def find_question_index_by_id(questions: Sequence[Question], question_id: Optional[str]) -> int:
    """Return the index of the question with question_id, -1 if absent."""
    if question_id is None:
        return -1
    for index, question in enumerate(questions):
        if question.id == question_id:
            return index
    return -1


def _linear(questions: Sequence[Question], current_index: int, reason: str, rule_id=None) -> NavigationResult:
    next_index = current_index + 1
    if next_index < len(questions):
        return NavigationResult(next_index=next_index, ended=False, fired_rule_id=rule_id, reason=reason)
    return NavigationResult(next_index=-1, ended=True, fired_rule_id=rule_id, reason=REASON_EXHAUSTED)


def resolve_next(
    questions: Sequence[Question],
    current_index: int,
    current_response: Any
) -> NavigationResult:
    """
    Resolve the next question index with the reason behind it.

    Args:
        questions: Survey questions in display order
        current_index: Index of the question just answered
        current_response: That question's response (cell-keyed mapping for tables)

    Returns:
        NavigationResult (next_index -1 means submit now)
    """
    if current_index < 0 or current_index >= len(questions):
        return NavigationResult(next_index=-1, ended=True, reason=REASON_INVALID_INDEX)

    question = questions[current_index]
    rule = evaluate_table_validation(question, current_response)

    if rule is None:
        return _linear(questions, current_index, REASON_LINEAR)

    if rule.action == RuleAction.END:
        return NavigationResult(next_index=-1, ended=True, fired_rule_id=rule.id, reason=REASON_RULE_END)

    target_id = resolve_branch_target(question, current_response, rule)
    target_index = find_question_index_by_id(questions, target_id)

    if target_index == -1:
        if target_id is not None:
            logger.warning(f"Rule {rule.id} targets unknown question {target_id}, advancing linearly")
        return _linear(questions, current_index, REASON_RULE_GOTO_UNRESOLVED, rule.id)

    return NavigationResult(
        next_index=target_index, ended=False, fired_rule_id=rule.id, reason=REASON_RULE_GOTO
    )


def get_next_question_index(
    questions: Sequence[Question],
    current_index: int,
    current_response: Any
) -> int:
    """
    Get the index of the next question, ignoring visibility.

    Returns:
        int: 0-based index, or -1 for "end of survey, submit now"
    """
    return resolve_next(questions, current_index, current_response).next_index


def advance(
    questions: Sequence[Question],
    current_index: int,
    responses: Mapping,
    all_groups: Sequence[QuestionGroup] = ()
) -> NavigationResult:
    """
    Move from current_index to the next *visible* question.

    Runs the navigation resolver on the current question's response, then
    scans forward from the result until a visible question is found.
    """
    current_id = questions[current_index].id if 0 <= current_index < len(questions) else None
    step = resolve_next(questions, current_index, responses.get(current_id))

    if step.ended:
        return step

    visible_index = find_next_visible_index(questions, step.next_index, responses, all_groups)
    if visible_index == -1:
        return NavigationResult(
            next_index=-1, ended=True, fired_rule_id=step.fired_rule_id, reason=REASON_EXHAUSTED
        )

    if visible_index != step.next_index:
        logger.debug(f"Skipped hidden questions {step.next_index}..{visible_index - 1}")

    return NavigationResult(
        next_index=visible_index, ended=False, fired_rule_id=step.fired_rule_id, reason=step.reason
    )


class SurveyNavigator:
    """
    Stateless navigator bound to one survey.

    Holds only the immutable survey and an id -> index map; every call
    receives the response snapshot, so one instance can serve many
    respondents.
    """

    def __init__(self, survey: Survey):
        """
        Initialize navigator.

        Args:
            survey: Loaded survey (see survey_logic.loader.load_survey)
        """
        self.survey = survey
        self.questions: Tuple[Question, ...] = survey.questions
        self.groups: Tuple[QuestionGroup, ...] = survey.groups
        self._index_by_id: Dict[str, int] = {q.id: i for i, q in enumerate(self.questions)}

        logger.info(f"SurveyNavigator initialized for {survey.id} with {len(self.questions)} questions")

    # =========================================================================
    # Public API
    # =========================================================================

    def index_of(self, question_id: str) -> int:
        return self._index_by_id.get(question_id, -1)

    def first_index(self, responses: Mapping) -> int:
        """First visible question, -1 if the survey shows nothing."""
        return find_next_visible_index(self.questions, 0, responses, self.groups)

    def is_visible(self, question_id: str, responses: Mapping) -> bool:
        index = self.index_of(question_id)
        if index == -1:
            return False
        return should_display_question(self.questions[index], responses, self.questions, self.groups)

    def visible_questions(self, responses: Mapping) -> List[Question]:
        return get_visible_questions(self.questions, responses, self.groups)

    def next_index(self, current_index: int, responses: Mapping) -> NavigationResult:
        """Next visible question after answering current_index."""
        return advance(self.questions, current_index, responses, self.groups)

    def previous_index(self, current_index: int, responses: Mapping) -> int:
        """Closest visible question before current_index, -1 if none."""
        return find_previous_visible_index(self.questions, current_index - 1, responses, self.groups)

    def progress(self, current_index: int, responses: Mapping) -> Tuple[int, int]:
        """
        Position of the current question among visible questions.

        Returns:
            (position, total): 1-based position (0 if the current question
            is hidden or out of range) and the number of visible questions
        """
        visible = self.visible_questions(responses)
        current_id = self.questions[current_index].id if 0 <= current_index < len(self.questions) else None

        position = 0
        for number, question in enumerate(visible, start=1):
            if question.id == current_id:
                position = number
                break

        return position, len(visible)
