"""Quiz domain services: question catalog, sessions and statistics.

HTTP routes import from here; the tabular store underneath is injected, so
nothing in this package knows whether rows live in SQL or in a spreadsheet.
"""

from .records import (
    AnswerStat,
    Question,
    ScoreDistributionEntry,
    ScoreSummary,
    format_percentage,
    utc_timestamp,
)
from .repository import QuizRepository, SheetQuizRepository, new_session_id
from .seed import SAMPLE_QUESTIONS, seed_workbook, sheet_names
