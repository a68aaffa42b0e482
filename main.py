"""
Console Harness for the survey branching engine

Walks a survey file question by question. Answers are typed as JSON
(e.g. "yes" for a radio, ["a", "b"] for a checkbox, {"cell-id": ["opt"]}
for a table) and the navigation trace is printed after every step.

Usage:
    python main.py [survey.json]
"""

import json
import logging
import os
import sys

from survey_logic.core.navigator import SurveyNavigator
from survey_logic.loader import load_survey

# Configure logging
logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def print_separator(char="=", length=60):
    """Print a separator line"""
    print(char * length)


def print_step(navigator, result, responses):
    """Print navigation details for one step"""
    print("\n" + "-" * 60)
    print(f"Next index: {result.next_index} (reason: {result.reason})")
    if result.fired_rule_id:
        print(f"Fired rule: {result.fired_rule_id}")

    visible = [q.id for q in navigator.visible_questions(responses)]
    print(f"Visible questions: {visible}")
    print("-" * 60)


def read_answer(question):
    """Prompt until the answer parses as JSON. Empty input skips the question."""
    while True:
        raw = input(f"[{question.type.value}] > ").strip()
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            # Bare words are accepted as strings
            if raw.startswith(("{", "[", '"')):
                print("Invalid JSON, try again.")
                continue
            return raw


def main(argv):
    survey_path = argv[1] if len(argv) > 1 else os.environ.get("SURVEY_PATH", "data/surveys/tv_survey.json")

    print_separator()
    print("SURVEY BRANCHING ENGINE - CONSOLE HARNESS")
    print_separator()

    try:
        survey = load_survey(survey_path, strict=os.environ.get("STRICT_SURVEY", "1") != "0")
    except (FileNotFoundError, ValueError) as e:
        print(f"\nFailed to load survey: {e}")
        return 1

    navigator = SurveyNavigator(survey)
    responses = {}
    index = navigator.first_index(responses)

    while index != -1:
        question = navigator.questions[index]
        position, total = navigator.progress(index, responses)

        print(f"\nQuestion {position}/{total} ({question.id})")
        print(question.title or "(no title)")

        try:
            answer = read_answer(question)
        except (KeyboardInterrupt, EOFError):
            print("\n\nSurvey interrupted by user")
            return 0

        if answer is None:
            responses.pop(question.id, None)
        else:
            responses[question.id] = answer

        result = navigator.next_index(index, responses)
        print_step(navigator, result, responses)
        index = result.next_index

    print_separator()
    print("SURVEY COMPLETE")
    print_separator()
    print(json.dumps(responses, ensure_ascii=False, indent=2))
    return 0


if __name__ == '__main__':
    sys.exit(main(sys.argv))
