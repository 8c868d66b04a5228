from astroquiz.services.store import TabularStore
from .records import ANSWER_STATS_HEADER, QUESTION_HEADER, SCORE_DISTRIBUTION_HEADER, SESSION_HEADER

SAMPLE_QUESTIONS = [
    ['q1', 'Which planet is closest to the Sun?', 'Venus', 'Mercury', 'Mars', 1],
    ['q2', 'What is the largest planet in the Solar System?', 'Jupiter', 'Saturn', 'Neptune', 0],
    ['q3', 'How long does light from the Sun take to reach Earth?', 'About 8 seconds', 'About 8 hours', 'About 8 minutes', 2],
    ['q4', 'Which galaxy is the Milky Way on a collision course with?', 'Andromeda', 'Triangulum', 'Sombrero', 0],
    ['q5', 'What is the name of the boundary around a black hole beyond which nothing escapes?', 'Photon sphere', 'Event horizon', 'Ergosphere', 1],
    ['q6', 'Which planet has the moon Titan?', 'Uranus', 'Jupiter', 'Saturn', 2],
]


def seed_workbook(store: TabularStore, sheets, questions=None) -> None:
    """Write header rows for the four tables and the question catalog.

    ``sheets`` maps 'questions', 'sessions', 'answer_stats' and
    'score_distribution' to the configured table names.
    """
    store.append(sheets['questions'], [QUESTION_HEADER, *(questions if questions is not None else SAMPLE_QUESTIONS)])
    store.append(sheets['sessions'], [SESSION_HEADER])
    store.append(sheets['answer_stats'], [ANSWER_STATS_HEADER])
    store.append(sheets['score_distribution'], [SCORE_DISTRIBUTION_HEADER])


def sheet_names(config):
    return {
        'questions': config.get('SHEET_QUESTIONS', 'questions'),
        'sessions': config.get('SHEET_SESSIONS', 'sessions'),
        'answer_stats': config.get('SHEET_ANSWER_STATS', 'answer_stats'),
        'score_distribution': config.get('SHEET_SCORE_DISTRIBUTION', 'score_distribution'),
    }
