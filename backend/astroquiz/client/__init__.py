"""Quiz client: API access, quiz state and the screen/timer controller.

Everything here runs on one asyncio event loop. Build one ``Quiz`` and one
``QuizController`` per player; nothing is shared at module level.
"""

from .api import Err, ErrorKind, Ok, QuizApiClient, Result
from .quiz import AnswerOutcome, Quiz, QuizState, UserAnswer, is_placeholder
from .controller import QuizController, Screen


def build_controller(base_url=None, timeout=None, inactivity_timeout=None, auto_advance_timeout=None):
    api = QuizApiClient(base_url=base_url, timeout=timeout)
    return QuizController(
        Quiz(api),
        inactivity_timeout=inactivity_timeout,
        auto_advance_timeout=auto_advance_timeout,
    )
