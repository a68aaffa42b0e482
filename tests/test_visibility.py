"""
Test the Visibility Resolver

Question visibility = own display condition AND every group condition in
the containment chain.
"""

import unittest

from survey_logic.contracts import (
    Condition,
    ConditionGroup,
    ConditionType,
    LogicType,
    Question,
    QuestionGroup,
    QuestionType,
)
from survey_logic.core.visibility import (
    find_next_visible_index,
    find_previous_visible_index,
    get_visible_questions,
    should_display_group,
    should_display_question,
)


def requires(source, *values, logic_type=LogicType.AND):
    """Display condition: source question answered with one of values."""
    return ConditionGroup(
        conditions=(Condition(
            id=f"needs-{source}",
            source_question_id=source,
            condition_type=ConditionType.VALUE_MATCH,
            required_values=values,
            enabled=True,
        ),),
        logic_type=logic_type,
    )


class TestShouldDisplayQuestion(unittest.TestCase):
    """Test single-question visibility."""

    def setUp(self):
        self.q1 = Question(id="Q1", type=QuestionType.RADIO)
        self.q2 = Question(id="Q2", type=QuestionType.TEXT, display_condition=requires("Q1", "yes"))
        self.questions = [self.q1, self.q2]

    def test_display_condition_met(self):
        self.assertTrue(should_display_question(self.q2, {"Q1": "yes"}, self.questions, []))

    def test_display_condition_not_met(self):
        self.assertFalse(should_display_question(self.q2, {"Q1": "no"}, self.questions, []))

    def test_display_condition_unanswered_source(self):
        self.assertFalse(should_display_question(self.q2, {}, self.questions, []))

    def test_no_condition_always_visible(self):
        self.assertTrue(should_display_question(self.q1, {}, self.questions, []))

    def test_not_logic_hides_when_condition_holds(self):
        q3 = Question(id="Q3", type=QuestionType.TEXT,
                      display_condition=requires("Q1", "yes", logic_type=LogicType.NOT))
        questions = self.questions + [q3]

        self.assertFalse(should_display_question(q3, {"Q1": "yes"}, questions, []))
        self.assertTrue(should_display_question(q3, {"Q1": "no"}, questions, []))


class TestGroupChain(unittest.TestCase):
    """Test group and ancestor group conditions."""

    def setUp(self):
        self.gate = Question(id="gate", type=QuestionType.RADIO)
        self.inner_gate = Question(id="inner_gate", type=QuestionType.RADIO)

        self.outer = QuestionGroup(id="outer", display_condition=requires("gate", "open"))
        self.inner = QuestionGroup(id="inner", parent_group_id="outer",
                                   display_condition=requires("inner_gate", "open"))
        self.groups = [self.outer, self.inner]

        self.child = Question(id="child", type=QuestionType.TEXT, group_id="inner")
        self.questions = [self.gate, self.inner_gate, self.child]

    def visible(self, responses):
        return should_display_question(self.child, responses, self.questions, self.groups)

    def test_all_groups_pass(self):
        self.assertTrue(self.visible({"gate": "open", "inner_gate": "open"}))

    def test_own_group_fails(self):
        self.assertFalse(self.visible({"gate": "open", "inner_gate": "closed"}))

    def test_ancestor_group_fails(self):
        self.assertFalse(self.visible({"gate": "closed", "inner_gate": "open"}))

    def test_question_condition_true_but_group_false(self):
        child = Question(id="child", type=QuestionType.TEXT, group_id="inner",
                         display_condition=requires("gate", "open"))
        responses = {"gate": "open", "inner_gate": "closed"}

        self.assertFalse(should_display_question(child, responses, self.questions, self.groups))

    def test_unknown_group_is_vacuous(self):
        orphan = Question(id="orphan", type=QuestionType.TEXT, group_id="missing")
        self.assertTrue(should_display_question(orphan, {}, self.questions, self.groups))

    def test_deep_nesting_has_no_depth_bound(self):
        groups = [QuestionGroup(id="g0", display_condition=requires("gate", "open"))]
        for level in range(1, 6):
            groups.append(QuestionGroup(id=f"g{level}", parent_group_id=f"g{level - 1}"))
        leaf = Question(id="leaf", type=QuestionType.TEXT, group_id="g5")

        self.assertFalse(should_display_question(leaf, {"gate": "closed"}, self.questions, groups))
        self.assertTrue(should_display_question(leaf, {"gate": "open"}, self.questions, groups))

    def test_should_display_group(self):
        responses = {"gate": "closed", "inner_gate": "open"}

        self.assertFalse(should_display_group(self.inner, responses, self.questions, self.groups))
        self.assertFalse(should_display_group(self.outer, responses, self.questions, self.groups))

        responses = {"gate": "open", "inner_gate": "open"}
        self.assertTrue(should_display_group(self.inner, responses, self.questions, self.groups))


class TestGroupCycles(unittest.TestCase):
    """Parent cycles must terminate."""

    def setUp(self):
        self.gate = Question(id="gate", type=QuestionType.RADIO)
        self.question = Question(id="member", type=QuestionType.TEXT, group_id="a")
        self.questions = [self.gate, self.question]

    def test_cycle_without_conditions_terminates_visible(self):
        groups = [
            QuestionGroup(id="a", parent_group_id="b"),
            QuestionGroup(id="b", parent_group_id="a"),
        ]
        self.assertTrue(should_display_question(self.question, {}, self.questions, groups))

    def test_cycle_still_applies_conditions_seen_before_repeat(self):
        groups = [
            QuestionGroup(id="a", parent_group_id="b"),
            QuestionGroup(id="b", parent_group_id="a", display_condition=requires("gate", "open")),
        ]
        self.assertFalse(should_display_question(self.question, {"gate": "closed"}, self.questions, groups))
        self.assertTrue(should_display_question(self.question, {"gate": "open"}, self.questions, groups))

    def test_self_parent(self):
        groups = [QuestionGroup(id="a", parent_group_id="a")]
        self.assertTrue(should_display_question(self.question, {}, self.questions, groups))
        self.assertTrue(should_display_group(groups[0], {}, self.questions, groups))


# =============================================================================
# Index scans
# =============================================================================

def build_linear_survey():
    return [
        Question(id="start", type=QuestionType.RADIO),
        Question(id="only_yes", type=QuestionType.TEXT, display_condition=requires("start", "yes")),
        Question(id="only_no", type=QuestionType.TEXT, display_condition=requires("start", "no")),
        Question(id="end", type=QuestionType.TEXT),
    ]


def test_visible_questions_in_order():
    questions = build_linear_survey()

    visible = get_visible_questions(questions, {"start": "no"})

    assert [q.id for q in visible] == ["start", "only_no", "end"]


def test_next_visible_index_skips_hidden():
    questions = build_linear_survey()

    assert find_next_visible_index(questions, 1, {"start": "no"}) == 2
    assert find_next_visible_index(questions, 1, {"start": "yes"}) == 1
    assert find_next_visible_index(questions, 1, {}) == 3


def test_next_visible_index_exhausted():
    questions = build_linear_survey()[:3]

    assert find_next_visible_index(questions, 1, {}) == -1
    assert find_next_visible_index(questions, 5, {}) == -1
    assert find_next_visible_index(questions, -1, {}) == -1


def test_previous_visible_index():
    questions = build_linear_survey()

    assert find_previous_visible_index(questions, 2, {"start": "yes"}) == 1
    assert find_previous_visible_index(questions, 2, {}) == 0
    assert find_previous_visible_index(questions, 10, {}) == 3
    assert find_previous_visible_index(questions, -1, {}) == -1


if __name__ == '__main__':
    unittest.main()
