"""
Result types returned by the navigation resolver.

get_next_question_index() returns a bare int for callers that only need
the index; resolve_next() and advance() return NavigationResult so the UI
and the console harness can show why navigation went where it did.
"""

from dataclasses import dataclass
from typing import Optional


# Reasons attached to a NavigationResult
REASON_LINEAR = "linear"
REASON_RULE_END = "rule_end"
REASON_RULE_GOTO = "rule_goto"
REASON_RULE_GOTO_UNRESOLVED = "rule_goto_unresolved"
REASON_EXHAUSTED = "exhausted"
REASON_INVALID_INDEX = "invalid_index"


@dataclass(frozen=True)
class NavigationResult:
    """
    Outcome of one "Next" step.

    Attributes:
        next_index: Index into the question list, or -1 when the survey ends
        ended: True when next_index is -1 (submit now)
        fired_rule_id: Id of the table validation rule that fired, if any
        reason: One of the REASON_* constants
    """
    next_index: int
    ended: bool
    fired_rule_id: Optional[str] = None
    reason: str = REASON_LINEAR
