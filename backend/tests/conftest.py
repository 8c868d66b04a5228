import os
import sys
import pytest

# Ensure the backend root (containing the `astroquiz` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from astroquiz import create_app, db
from astroquiz.services.quiz import seed_workbook, sheet_names


TEST_QUESTIONS = [
    ['q1', 'Which planet is closest to the Sun?', 'Venus', 'Mercury', 'Mars', 1],
    ['q2', 'What is the largest planet?', 'Jupiter', 'Saturn', 'Neptune', 0],
    ['q3', 'What is at the centre of the Milky Way?', 'A pulsar', 'A white dwarf', 'A black hole', 2],
]


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    STORE_BACKEND = 'sql'
    ENV_NAME = 'testing'
    ALLOWED_ORIGINS = '*'
    SHEET_QUESTIONS = 'questions'
    SHEET_SESSIONS = 'sessions'
    SHEET_ANSWER_STATS = 'answer_stats'
    SHEET_SCORE_DISTRIBUTION = 'score_distribution'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        db.create_all()
        seed_workbook(application.extensions['quiz_store'], sheet_names(application.config), TEST_QUESTIONS)
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def store(flask_app):
    return flask_app.extensions['quiz_store']


@pytest.fixture()
def repo(flask_app):
    return flask_app.extensions['quiz_repository']
