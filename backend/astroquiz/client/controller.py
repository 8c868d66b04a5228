import asyncio
import logging
from enum import Enum
from typing import Any, Dict, Optional, Set

from config import Config
from .quiz import Quiz, QuizState

log = logging.getLogger(__name__)


class Screen(str, Enum):
    WELCOME = 'welcome'
    QUIZ = 'quiz'
    RESULTS = 'results'


def result_message(percentage: int) -> str:
    if percentage == 100:
        return "Perfect! You're a true astronomy expert!"
    if percentage >= 70:
        return 'Great job! You know astronomy very well!'
    if percentage >= 50:
        return 'Good result! Keep studying the stars!'
    return "Not bad! There's still a lot to learn about the universe!"


def feedback_message(is_correct: bool, statistics: Optional[Dict[str, Any]]) -> str:
    message = 'Correct answer!' if is_correct else 'Wrong answer!'
    if statistics and statistics.get('totalResponses', 0) > 0:
        total = statistics['totalResponses']
        message += f"\n\n{float(statistics.get('correctPercentage', 0)):.1f}% of people answered correctly"
        message += f"\n(out of {total} {'response' if total == 1 else 'responses'})"
    return message


class QuizController:
    """Screen flow and the two quiz timers.

    The inactivity timer runs while a question waits for an answer and sends
    the player back to the welcome screen when it expires. The auto-advance
    timer runs after an answer and moves on as if "next" was pressed. Both
    are cancelled on every screen change.
    """

    def __init__(self, quiz: Quiz, inactivity_timeout: Optional[float] = None,
                 auto_advance_timeout: Optional[float] = None):
        self.quiz = quiz
        self.inactivity_timeout = (
            inactivity_timeout if inactivity_timeout is not None else Config.INACTIVITY_TIMEOUT_SEC
        )
        self.auto_advance_timeout = (
            auto_advance_timeout if auto_advance_timeout is not None else Config.AUTO_ADVANCE_TIMEOUT_SEC
        )
        self.screen = Screen.WELCOME
        self.loading = False
        self.selected_answer_index: Optional[int] = None
        self.feedback: Optional[Dict[str, Any]] = None
        self.results: Optional[Dict[str, Any]] = None
        self._inactivity_timer: Optional[asyncio.TimerHandle] = None
        self._auto_advance_timer: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()

    # Screens

    def show_screen(self, screen: Screen) -> None:
        self.clear_inactivity_timer()
        self.clear_auto_advance_timer()
        self.screen = screen

    async def start_quiz(self) -> bool:
        self.loading = True
        try:
            if not await self.quiz.load_questions():
                return False
            if not await self.quiz.start_session():
                return False
        finally:
            self.loading = False
        self.results = None
        self.show_screen(Screen.QUIZ)
        self.display_question()
        return True

    def display_question(self) -> None:
        self.selected_answer_index = None
        self.feedback = None
        self.start_inactivity_timer()

    async def select_answer(self, answer_index: int) -> None:
        if self.screen != Screen.QUIZ or self.selected_answer_index is not None:
            return
        question = self.quiz.get_current_question()
        if question is None or not 0 <= answer_index < len(question.answers):
            log.warning(f"[controller] ignoring answer index {answer_index}")
            return
        self.clear_inactivity_timer()
        self.selected_answer_index = answer_index

        question_index = self.quiz.current_question_index
        outcome = await self.quiz.select_answer(answer_index)
        if outcome is None:
            return
        if self.screen != Screen.QUIZ or self.quiz.current_question_index != question_index \
                or self.quiz.state != QuizState.IN_PROGRESS:
            # The player left this question while the answer was recorded
            return

        self.feedback = {
            'is_correct': outcome.is_correct,
            'selected_index': answer_index,
            'correct_index': outcome.correct_index,
            'statistics': outcome.statistics,
            'message': feedback_message(outcome.is_correct, outcome.statistics),
        }
        self.start_auto_advance_timer()

    async def next_question(self) -> None:
        self.clear_auto_advance_timer()
        if self.screen != Screen.QUIZ or not self.quiz.has_answered_current:
            return
        has_more = await self.quiz.advance()
        if has_more:
            self.display_question()
        else:
            await self.show_results()

    async def show_results(self) -> None:
        score = self.quiz.get_score()
        total = self.quiz.get_total_questions()
        percentage = self.quiz.get_score_percentage()
        self.results = {
            'score': score,
            'total': total,
            'percentage': percentage,
            'message': result_message(percentage),
            'distribution': None,
            'statistics': None,
        }
        data = await self.quiz.get_score_distribution()
        if data and data.get('distribution'):
            self.results['distribution'] = data['distribution']
            self.results['statistics'] = data.get('statistics')
        else:
            log.info('[controller] no score distribution data available')
        self.show_screen(Screen.RESULTS)

    async def restart(self) -> bool:
        self.clear_inactivity_timer()
        self.clear_auto_advance_timer()
        self.quiz.reset()
        return await self.start_quiz()

    def reset_to_home(self) -> None:
        self.clear_inactivity_timer()
        self.clear_auto_advance_timer()
        self.quiz.reset()
        self.selected_answer_index = None
        self.feedback = None
        self.show_screen(Screen.WELCOME)

    # Timers

    def start_inactivity_timer(self) -> None:
        self.clear_inactivity_timer()
        loop = asyncio.get_running_loop()
        self._inactivity_timer = loop.call_later(self.inactivity_timeout, self._on_inactivity)

    def clear_inactivity_timer(self) -> None:
        if self._inactivity_timer is not None:
            self._inactivity_timer.cancel()
            self._inactivity_timer = None

    def start_auto_advance_timer(self) -> None:
        self.clear_auto_advance_timer()
        loop = asyncio.get_running_loop()
        self._auto_advance_timer = loop.call_later(self.auto_advance_timeout, self._on_auto_advance)

    def clear_auto_advance_timer(self) -> None:
        if self._auto_advance_timer is not None:
            self._auto_advance_timer.cancel()
            self._auto_advance_timer = None

    def _on_inactivity(self) -> None:
        self._inactivity_timer = None
        log.info('[controller] inactivity detected, resetting to home screen')
        self.reset_to_home()

    def _on_auto_advance(self) -> None:
        self._auto_advance_timer = None
        log.info('[controller] auto-advancing to next question')
        task = asyncio.get_running_loop().create_task(self.next_question())
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            log.error(f"[controller] auto-advance failed: {task.exception()!r}")

    @property
    def timers_armed(self) -> Dict[str, bool]:
        return {
            'inactivity': self._inactivity_timer is not None,
            'auto_advance': self._auto_advance_timer is not None,
        }

    async def aclose(self) -> None:
        """Cancel timers and wait for in-flight work, including the quiz's."""
        self.clear_inactivity_timer()
        self.clear_auto_advance_timer()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await self.quiz.flush()
