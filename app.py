"""
Flask JSON API for the survey display & branching engine

Thin HTTP layer used by the survey-taking page and the rule editors:
- GET  /api/survey      - loaded survey summary
- POST /api/visibility  - visible question ids for a response snapshot
- POST /api/next        - next visible question after "Next"
- POST /api/validate    - configuration errors of a survey being authored

The engine is stateless; the only server-side state is the loaded survey.

Configuration (environment):
- SURVEY_PATH   survey JSON to serve (default data/surveys/tv_survey.json)
- STRICT_SURVEY "0" to load a survey with configuration errors
- LOG_LEVEL     logging level (default INFO)
"""

import logging
import os

from flask import Flask, jsonify, request

from survey_logic.core.navigator import SurveyNavigator
from survey_logic.loader import collect_configuration_errors, load_survey, survey_from_dict

# Configure logging
logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

DEFAULT_SURVEY_PATH = "data/surveys/tv_survey.json"

# Initialize Flask app
app = Flask(__name__)

# Loaded survey, shared by all requests (read-only after load)
current_survey = {
    'navigator': None,
    'path': None
}


def initialize_survey(survey_path=None):
    """Load the survey served by this process (called once at startup)"""
    path = survey_path or os.environ.get("SURVEY_PATH", DEFAULT_SURVEY_PATH)
    strict = os.environ.get("STRICT_SURVEY", "1") != "0"

    survey = load_survey(path, strict=strict)
    current_survey['navigator'] = SurveyNavigator(survey)
    current_survey['path'] = path
    logger.info(f"Serving survey {survey.id} from {path}")
    return current_survey['navigator']


def get_navigator():
    if current_survey['navigator'] is None:
        initialize_survey()
    return current_survey['navigator']


def _bad_request(message):
    return jsonify({
        'success': False,
        'error': message
    }), 400


def _read_responses(data):
    responses = data.get('responses', {})
    if not isinstance(responses, dict):
        raise ValueError("'responses' must be an object")
    return responses


@app.route('/api/survey', methods=['GET'])
def survey_summary():
    """Loaded survey id, title and question ids"""
    try:
        navigator = get_navigator()
        return jsonify({
            'success': True,
            'surveyId': navigator.survey.id,
            'title': navigator.survey.title,
            'questionIds': [q.id for q in navigator.questions]
        })

    except Exception as e:
        logger.error(f"Error loading survey: {e}")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500


@app.route('/api/visibility', methods=['POST'])
def visibility():
    """Visible questions for the posted response snapshot"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _bad_request("Request body must be a JSON object")

    try:
        responses = _read_responses(data)
    except ValueError as e:
        return _bad_request(str(e))

    try:
        navigator = get_navigator()
        visible = navigator.visible_questions(responses)
        return jsonify({
            'success': True,
            'visibleQuestionIds': [q.id for q in visible],
            'firstVisibleIndex': navigator.first_index(responses)
        })

    except Exception as e:
        logger.error(f"Error computing visibility: {e}")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500


@app.route('/api/next', methods=['POST'])
def next_question():
    """Resolve the next visible question after answering currentIndex"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _bad_request("Request body must be a JSON object")

    current_index = data.get('currentIndex')
    if not isinstance(current_index, int) or isinstance(current_index, bool):
        return _bad_request("'currentIndex' must be an integer")

    try:
        responses = _read_responses(data)
    except ValueError as e:
        return _bad_request(str(e))

    try:
        navigator = get_navigator()
        result = navigator.next_index(current_index, responses)
        question_id = None if result.ended else navigator.questions[result.next_index].id

        return jsonify({
            'success': True,
            'nextIndex': result.next_index,
            'ended': result.ended,
            'firedRuleId': result.fired_rule_id,
            'reason': result.reason,
            'questionId': question_id
        })

    except Exception as e:
        logger.error(f"Error resolving next question: {e}")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500


@app.route('/api/validate', methods=['POST'])
def validate_survey():
    """Report configuration errors of a survey being authored"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get('survey'), dict):
        return _bad_request("Request body must contain a 'survey' object")

    try:
        try:
            survey = survey_from_dict(data['survey'])
        except ValueError as e:
            return jsonify({
                'success': True,
                'valid': False,
                'errors': [str(e)]
            })

        errors = collect_configuration_errors(survey)
        return jsonify({
            'success': True,
            'valid': not errors,
            'errors': errors
        })

    except Exception as e:
        logger.error(f"Error validating survey: {e}")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500


if __name__ == '__main__':
    initialize_survey()

    print("\n" + "=" * 60)
    print("SURVEY BRANCHING ENGINE - JSON API")
    print("=" * 60)
    print("\nServer starting on http://localhost:5000")
    print("\nPress Ctrl+C to stop the server")
    print("=" * 60 + "\n")

    app.run(debug=False, host='0.0.0.0', port=5000)
