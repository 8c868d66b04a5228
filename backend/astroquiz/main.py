from flask import Blueprint, jsonify, request, current_app
from astroquiz.services.quiz import utc_timestamp

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the AstroQuiz server!'})

@main.route('/api/health', methods=['GET', 'OPTIONS'])
def health():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    return jsonify({
        'success': True,
        'message': 'AstroQuiz Backend API is running!',
        'timestamp': utc_timestamp(),
        'environment': current_app.config.get('ENV_NAME', 'development'),
    })
