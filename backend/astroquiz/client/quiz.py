import asyncio
import logging
import math
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from .api import Err, Ok

log = logging.getLogger(__name__)

PLACEHOLDER_PREFIX = 'offline-'


class QuizState(str, Enum):
    NOT_STARTED = 'not_started'
    IN_PROGRESS = 'in_progress'
    COMPLETE = 'complete'


@dataclass
class QuizAnswer:
    answer: str
    correct: bool
    slot: int  # position in the catalog row, what the server counts by


@dataclass
class QuizQuestion:
    unique_id: str
    question: str
    answers: List[QuizAnswer]

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'QuizQuestion':
        correct_index = data['correctIndex']
        return cls(
            unique_id=data['id'],
            question=data['question'],
            answers=[
                QuizAnswer(answer=text, correct=(index == correct_index), slot=index)
                for index, text in enumerate(data['answers'])
            ],
        )


@dataclass(frozen=True)
class UserAnswer:
    question_id: str
    selected_answer: str
    is_correct: bool


@dataclass(frozen=True)
class AnswerOutcome:
    is_correct: bool
    correct_index: int
    statistics: Optional[Dict[str, Any]] = None


def is_placeholder(session_id: Optional[str]) -> bool:
    return bool(session_id) and session_id.startswith(PLACEHOLDER_PREFIX)


def shuffle_in_place(items: List[Any], rng: random.Random) -> List[Any]:
    """Uniform Fisher-Yates shuffle."""
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items


class Quiz:
    """Client-side quiz state: question order, position, score and session.

    Remote calls are best effort. A failed call never changes the local flow,
    only the statistics shown alongside it.
    """

    def __init__(self, api, rng: Optional[random.Random] = None):
        self.api = api
        self.rng = rng or random.Random()
        self.state = QuizState.NOT_STARTED
        self.questions: List[QuizQuestion] = []
        self.current_question_index = 0
        self.score = 0
        self.user_answers: List[UserAnswer] = []
        self.session_id: Optional[str] = None
        self.session_start_time: Optional[str] = None
        self._answered_current = False
        # Bumped on reset; responses for an older generation are dropped
        self._generation = 0
        self._background: Set[asyncio.Task] = set()

    # Loading and session start

    async def load_questions(self) -> bool:
        result = await self.api.get_questions()
        if isinstance(result, Err):
            log.error(f"[quiz] failed to load questions: {result.message}")
            return False
        questions = [QuizQuestion.from_api(q) for q in result.value.get('questions', [])]
        if not questions:
            log.error("[quiz] question catalog is empty")
            return False
        self.questions = questions
        self.shuffle_questions()
        self.shuffle_answers()
        return True

    async def start_session(self) -> bool:
        generation = self._generation
        result = await self.api.start_session()
        if generation != self._generation:
            return False
        if isinstance(result, Ok):
            self.session_id = result.value['sessionID']
            self.session_start_time = result.value.get('timestamp')
            log.info(f"[quiz] session started: {self.session_id}")
        else:
            # Keep playing locally; analytics calls for this id are skipped
            self.session_id = f"{PLACEHOLDER_PREFIX}{int(time.time() * 1000)}"
            self.session_start_time = None
            log.warning(f"[quiz] session start failed ({result.message}), using {self.session_id}")
        self.state = QuizState.IN_PROGRESS
        self._answered_current = False
        return True

    async def start(self) -> bool:
        if not await self.load_questions():
            return False
        return await self.start_session()

    def shuffle_questions(self) -> None:
        shuffle_in_place(self.questions, self.rng)

    def shuffle_answers(self) -> None:
        for question in self.questions:
            shuffle_in_place(question.answers, self.rng)

    # Per-question interaction

    def get_current_question(self) -> Optional[QuizQuestion]:
        if 0 <= self.current_question_index < len(self.questions):
            return self.questions[self.current_question_index]
        return None

    def get_total_questions(self) -> int:
        return len(self.questions)

    def get_correct_answer_index(self) -> int:
        question = self.get_current_question()
        return next(i for i, a in enumerate(question.answers) if a.correct)

    @property
    def has_answered_current(self) -> bool:
        return self._answered_current

    async def select_answer(self, answer_index: int) -> Optional[AnswerOutcome]:
        """Record the answer at display position ``answer_index``.

        Returns None when the question was already answered or no quiz is
        running.
        """
        question = self.get_current_question()
        if self.state != QuizState.IN_PROGRESS or question is None or self._answered_current:
            return None
        if not 0 <= answer_index < len(question.answers):
            raise IndexError(f"answer index {answer_index} out of range")

        self._answered_current = True
        selected = question.answers[answer_index]
        self.user_answers.append(UserAnswer(
            question_id=question.unique_id,
            selected_answer=selected.answer,
            is_correct=selected.correct,
        ))
        if selected.correct:
            self.score += 1
        correct_index = self.get_correct_answer_index()

        session_id = self.session_id
        if not session_id or is_placeholder(session_id):
            return AnswerOutcome(selected.correct, correct_index)

        generation = self._generation
        result = await self.api.record_answer(session_id, question.unique_id, selected.slot)
        if generation != self._generation:
            log.info(f"[quiz] dropping late statistics for question {question.unique_id}")
            return AnswerOutcome(selected.correct, correct_index)
        if isinstance(result, Ok):
            return AnswerOutcome(selected.correct, correct_index, result.value.get('statistics'))
        return AnswerOutcome(selected.correct, correct_index)

    async def advance(self) -> bool:
        """Move to the next question; returns whether any remain.

        Moving past the last question completes the quiz and reports the
        final score.
        """
        if self.state != QuizState.IN_PROGRESS:
            return False
        self.current_question_index += 1
        self._answered_current = False
        if self.current_question_index < len(self.questions):
            return True
        self.state = QuizState.COMPLETE
        await self.complete_session()
        return False

    def get_score(self) -> int:
        return self.score

    def get_score_percentage(self) -> int:
        if not self.questions:
            return 0
        # Half-up, not banker's rounding
        return int(math.floor(self.score / len(self.questions) * 100 + 0.5))

    # Remote bookkeeping

    async def complete_session(self) -> bool:
        session_id = self.session_id
        if not session_id or is_placeholder(session_id):
            return False
        result = await self.api.complete_session(session_id, self.score, len(self.questions))
        if isinstance(result, Ok):
            log.info(f"[quiz] session completed: {session_id}")
            return True
        log.error(f"[quiz] failed to complete session {session_id}: {result.message}")
        return False

    async def abandon_session(self, session_id: str) -> bool:
        result = await self.api.abandon_session(session_id)
        if isinstance(result, Ok):
            log.info(f"[quiz] session abandoned: {session_id}")
            return True
        log.error(f"[quiz] failed to abandon session {session_id}: {result.message}")
        return False

    async def get_score_distribution(self) -> Optional[Dict[str, Any]]:
        result = await self.api.get_score_distribution()
        if isinstance(result, Ok):
            return result.value
        return None

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    def _on_background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.error(f"[quiz] background task failed: {exc!r}")

    async def flush(self) -> None:
        """Wait for background calls (abandon) to settle."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def reset(self) -> None:
        if self.state == QuizState.IN_PROGRESS and self.session_id and not is_placeholder(self.session_id):
            # Not awaited; failure is logged by the done callback
            self._spawn(self.abandon_session(self.session_id))

        self._generation += 1
        self.state = QuizState.NOT_STARTED
        self.current_question_index = 0
        self.score = 0
        self.user_answers = []
        self.session_id = None
        self.session_start_time = None
        self._answered_current = False
        self.shuffle_questions()
        self.shuffle_answers()

