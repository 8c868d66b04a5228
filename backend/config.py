import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///astroquiz.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    ENV_NAME = os.environ.get('ENV_NAME', 'development')
    # Tabular store backend: 'sql' (sheet_row table) or 'sheets' (Google Sheets)
    STORE_BACKEND = os.environ.get('STORE_BACKEND', 'sql')
    GOOGLE_SPREADSHEET_ID = os.environ.get('GOOGLE_SPREADSHEET_ID')
    GOOGLE_SERVICE_ACCOUNT_JSON = os.environ.get('GOOGLE_SERVICE_ACCOUNT_JSON')
    GOOGLE_SERVICE_ACCOUNT_EMAIL = os.environ.get('GOOGLE_SERVICE_ACCOUNT_EMAIL')
    GOOGLE_PRIVATE_KEY = os.environ.get('GOOGLE_PRIVATE_KEY')
    # Sheet (table) names
    SHEET_QUESTIONS = os.environ.get('SHEET_QUESTIONS', 'questions')
    SHEET_SESSIONS = os.environ.get('SHEET_SESSIONS', 'sessions')
    SHEET_ANSWER_STATS = os.environ.get('SHEET_ANSWER_STATS', 'answer_stats')
    SHEET_SCORE_DISTRIBUTION = os.environ.get('SHEET_SCORE_DISTRIBUTION', 'score_distribution')
    # Comma separated list, '*' allows any origin
    ALLOWED_ORIGINS = os.environ.get('ALLOWED_ORIGINS', '*')
    # Client side
    API_BASE_URL = os.environ.get('API_BASE_URL', 'http://localhost:5000')
    API_TIMEOUT_SEC = float(os.environ.get('API_TIMEOUT_SEC', '10'))
    # Quiz screen timers (seconds)
    INACTIVITY_TIMEOUT_SEC = float(os.environ.get('INACTIVITY_TIMEOUT_SEC', '30'))
    AUTO_ADVANCE_TIMEOUT_SEC = float(os.environ.get('AUTO_ADVANCE_TIMEOUT_SEC', '10'))
