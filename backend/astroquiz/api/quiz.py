from flask import Blueprint, jsonify, request, current_app
from astroquiz.errors import QuestionNotFoundError, ValidationError
from astroquiz.services.quiz import (
    ScoreSummary,
    new_session_id,
    utc_timestamp,
)


quiz_api = Blueprint('quiz_api', __name__)


def _repo():
    return current_app.extensions['quiz_repository']


def _preflight():
    return jsonify({'status': 'ok'}), 200


def _error(code, message, status):
    return jsonify({'success': False, 'error': code, 'message': message}), status


def _failure(code, tag, exc):
    current_app.logger.error(f"[{tag}] failed: {type(exc).__name__}: {exc}")
    return _error(code, str(exc), 500)


def _as_int(value, field):
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be an integer')
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ValidationError(f'{field} must be an integer')


def _session_id_from(data, path_session_id):
    session_id = data.get('sessionID')
    if not session_id:
        raise ValidationError('Missing required field: sessionID')
    if session_id != path_session_id:
        raise ValidationError('sessionID does not match the session in the URL')
    return session_id


@quiz_api.route('/questions', methods=['GET', 'OPTIONS'])
def get_questions():
    if request.method == 'OPTIONS':
        return _preflight()
    try:
        questions = _repo().get_questions()
    except Exception as exc:
        return _failure('questions_unavailable', 'questions', exc)
    return jsonify({
        'success': True,
        'questions': [q.to_dict() for q in questions],
        'total': len(questions),
    })


@quiz_api.route('/sessions', methods=['POST', 'OPTIONS'])
def start_session():
    if request.method == 'OPTIONS':
        return _preflight()
    session_id = new_session_id()
    timestamp = utc_timestamp()
    try:
        _repo().create_session(session_id, timestamp)
    except Exception as exc:
        return _failure('session_start_failed', 'session-start', exc)
    current_app.logger.info(f"[session-start] session={session_id}")
    return jsonify({'success': True, 'sessionID': session_id, 'timestamp': timestamp})


@quiz_api.route('/sessions/<string:session_id>/answers', methods=['POST', 'OPTIONS'])
def record_answer(session_id):
    if request.method == 'OPTIONS':
        return _preflight()
    data = request.get_json(silent=True) or {}
    question_id = data.get('questionID')
    selected = data.get('selectedAnswerIndex')
    # Validate before touching the store
    try:
        if not data.get('sessionID') or not question_id or selected is None:
            raise ValidationError('Missing required fields: sessionID, questionID, selectedAnswerIndex')
        _session_id_from(data, session_id)
        selected = _as_int(selected, 'selectedAnswerIndex')
        if not 0 <= selected <= 2:
            raise ValidationError('selectedAnswerIndex must be 0, 1, or 2')
    except ValidationError as exc:
        return _error(exc.code, str(exc), 400)

    try:
        question = next((q for q in _repo().get_questions() if q.id == question_id), None)
        if question is None:
            raise QuestionNotFoundError(f'Question not found: {question_id}')
        stats = _repo().record_answer(question_id, selected)
    except QuestionNotFoundError as exc:
        return _error(exc.code, str(exc), 404)
    except Exception as exc:
        return _failure('answer_record_failed', 'record-answer', exc)

    current_app.logger.info(
        f"[record-answer] session={session_id} question={question_id} selected={selected} total={stats.total}"
    )
    return jsonify({
        'success': True,
        'correct': selected == question.correct_index,
        'correctAnswerIndex': question.correct_index,
        'statistics': {
            'totalResponses': stats.total,
            'correctPercentage': stats.correct_percentage(question.correct_index),
            'answerDistribution': stats.answer_distribution,
        },
    })


@quiz_api.route('/sessions/<string:session_id>/complete', methods=['POST', 'OPTIONS'])
def complete_session(session_id):
    if request.method == 'OPTIONS':
        return _preflight()
    data = request.get_json(silent=True) or {}
    try:
        if not data.get('sessionID') or data.get('finalScore') is None or not data.get('totalQuestions'):
            raise ValidationError('Missing required fields: sessionID, finalScore, totalQuestions')
        _session_id_from(data, session_id)
        final_score = _as_int(data.get('finalScore'), 'finalScore')
        total_questions = _as_int(data.get('totalQuestions'), 'totalQuestions')
        if total_questions <= 0 or not 0 <= final_score <= total_questions:
            raise ValidationError('Invalid score range')
    except ValidationError as exc:
        return _error(exc.code, str(exc), 400)

    timestamp = utc_timestamp()
    try:
        percentage = _repo().complete_session(session_id, timestamp, final_score, total_questions)
        _repo().update_score_distribution(final_score)
    except Exception as exc:
        # Session-not-found lands here too and is reported as a 500
        return _failure('session_complete_failed', 'session-complete', exc)

    current_app.logger.info(
        f"[session-complete] session={session_id} score={final_score}/{total_questions} percentage={percentage}"
    )
    return jsonify({
        'success': True,
        'sessionID': session_id,
        'finalScore': final_score,
        'totalQuestions': total_questions,
        'percentage': float(percentage),
        'timestamp': timestamp,
    })


@quiz_api.route('/sessions/<string:session_id>/abandon', methods=['POST', 'OPTIONS'])
def abandon_session(session_id):
    if request.method == 'OPTIONS':
        return _preflight()
    data = request.get_json(silent=True) or {}
    try:
        _session_id_from(data, session_id)
    except ValidationError as exc:
        return _error(exc.code, str(exc), 400)

    try:
        _repo().abandon_session(session_id)
    except Exception as exc:
        return _failure('session_abandon_failed', 'session-abandon', exc)

    current_app.logger.info(f"[session-abandon] session={session_id}")
    return jsonify({'success': True, 'sessionID': session_id, 'status': 'abandoned'})


@quiz_api.route('/score-distribution', methods=['GET', 'OPTIONS'])
def get_score_distribution():
    if request.method == 'OPTIONS':
        return _preflight()
    try:
        summary = ScoreSummary(_repo().get_score_distribution())
    except Exception as exc:
        return _failure('distribution_unavailable', 'score-distribution', exc)
    return jsonify({
        'success': True,
        'distribution': [e.to_dict() for e in summary.distribution],
        'statistics': {
            'totalResponses': summary.total_responses,
            'averageScore': summary.average_score,
        },
    })
