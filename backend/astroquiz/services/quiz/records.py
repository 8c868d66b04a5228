from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Tuple

QUESTION_HEADER = ['questionID', 'question', 'answer0', 'answer1', 'answer2', 'correctAnswerIndex']
SESSION_HEADER = ['sessionID', 'timestampStart', 'timestampEnd', 'status', 'finalScore', 'totalQuestions', 'percentage']
ANSWER_STATS_HEADER = ['questionID', 'answer0Count', 'answer1Count', 'answer2Count', 'totalResponses']
SCORE_DISTRIBUTION_HEADER = ['score', 'count']

STATUS_STARTED = 'started'
STATUS_COMPLETED = 'completed'
STATUS_ABANDONED = 'abandoned'

ANSWER_SLOTS = 3


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC with milliseconds and a trailing Z."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def format_percentage(final_score: int, total_questions: int) -> str:
    return f"{final_score / total_questions * 100:.2f}"


@dataclass(frozen=True)
class Question:
    id: str
    question: str
    answers: Tuple[str, str, str]
    correct_index: int

    def to_dict(self):
        return {
            'id': self.id,
            'question': self.question,
            'answers': list(self.answers),
            'correctIndex': self.correct_index,
        }


@dataclass(frozen=True)
class AnswerStat:
    question_id: str
    counts: Tuple[int, int, int]
    total: int

    @property
    def answer_distribution(self) -> List[int]:
        return list(self.counts)

    def correct_percentage(self, correct_index: int) -> float:
        if not self.total:
            return 0.0
        return round(self.counts[correct_index] / self.total * 100, 1)


@dataclass(frozen=True)
class ScoreDistributionEntry:
    score: int
    count: int

    def to_dict(self):
        return {'score': self.score, 'count': self.count}


@dataclass
class ScoreSummary:
    distribution: List[ScoreDistributionEntry] = field(default_factory=list)

    @property
    def total_responses(self) -> int:
        return sum(e.count for e in self.distribution)

    @property
    def average_score(self) -> float:
        total = self.total_responses
        if not total:
            return 0
        return round(sum(e.score * e.count for e in self.distribution) / total, 2)
