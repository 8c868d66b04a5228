import uuid
from typing import List, Optional, Sequence

from astroquiz.errors import MalformedDataError, SessionNotFoundError, ValidationError
from astroquiz.services.store import TabularStore
from .records import (
    ANSWER_SLOTS,
    STATUS_ABANDONED,
    STATUS_COMPLETED,
    STATUS_STARTED,
    AnswerStat,
    Question,
    ScoreDistributionEntry,
    format_percentage,
)


def new_session_id() -> str:
    return str(uuid.uuid4())


def _lenient_int(cell) -> Optional[int]:
    try:
        return int(str(cell).strip())
    except (TypeError, ValueError):
        return None


def _strict_int(cell, what: str, default: Optional[int] = None) -> int:
    text = str(cell).strip() if cell is not None else ''
    if text == '' and default is not None:
        return default
    try:
        return int(text)
    except ValueError as exc:
        raise MalformedDataError(f"{what} is not a number: {cell!r}") from exc


def _cell(row: Sequence[str], index: int) -> str:
    return row[index] if index < len(row) else ''


class QuizRepository:
    """Questions, session lifecycle and answer / score statistics."""

    def get_questions(self) -> List[Question]:
        raise NotImplementedError

    def create_session(self, session_id: str, start_timestamp: str) -> None:
        raise NotImplementedError

    def complete_session(self, session_id: str, end_timestamp: str, final_score: int, total_questions: int) -> str:
        raise NotImplementedError

    def abandon_session(self, session_id: str) -> None:
        raise NotImplementedError

    def record_answer(self, question_id: str, selected_index: int) -> AnswerStat:
        raise NotImplementedError

    def update_score_distribution(self, score: int) -> int:
        raise NotImplementedError

    def get_score_distribution(self) -> List[ScoreDistributionEntry]:
        raise NotImplementedError


class SheetQuizRepository(QuizRepository):
    """Repository over a tabular store using scan-then-write.

    Every mutation reads the whole table, finds the row by key and writes it
    back in a second call. Nothing guards the gap between the two, so
    concurrent writers to one row lose updates (last write wins).
    """

    def __init__(self, store: TabularStore, questions_sheet: str = 'questions', sessions_sheet: str = 'sessions',
                 answer_stats_sheet: str = 'answer_stats', score_distribution_sheet: str = 'score_distribution'):
        self.store = store
        self.questions_sheet = questions_sheet
        self.sessions_sheet = sessions_sheet
        self.answer_stats_sheet = answer_stats_sheet
        self.score_distribution_sheet = score_distribution_sheet

    @classmethod
    def from_config(cls, store: TabularStore, config) -> 'SheetQuizRepository':
        return cls(
            store,
            questions_sheet=config.get('SHEET_QUESTIONS', 'questions'),
            sessions_sheet=config.get('SHEET_SESSIONS', 'sessions'),
            answer_stats_sheet=config.get('SHEET_ANSWER_STATS', 'answer_stats'),
            score_distribution_sheet=config.get('SHEET_SCORE_DISTRIBUTION', 'score_distribution'),
        )

    # Questions

    def get_questions(self) -> List[Question]:
        rows = self.store.read(self.questions_sheet, 'A2:F')
        questions = []
        for row in rows:
            if not row:
                continue
            correct_index = _strict_int(_cell(row, 5), f"correctAnswerIndex of question {row[0]!r}")
            if not 0 <= correct_index < ANSWER_SLOTS:
                raise MalformedDataError(f"correctAnswerIndex of question {row[0]!r} out of range: {correct_index}")
            questions.append(Question(
                id=row[0],
                question=_cell(row, 1),
                answers=(_cell(row, 2), _cell(row, 3), _cell(row, 4)),
                correct_index=correct_index,
            ))
        return questions

    # Sessions

    def create_session(self, session_id: str, start_timestamp: str) -> None:
        self.store.append(self.sessions_sheet, [
            [session_id, start_timestamp, '', STATUS_STARTED, '', '', ''],
        ])

    def _find_session_row(self, session_id: str) -> int:
        rows = self.store.read(self.sessions_sheet, 'A:G')
        for index, row in enumerate(rows):
            if row and row[0] == session_id:
                # read() starts at row 1, so list index + 1 is the sheet row
                return index + 1
        raise SessionNotFoundError(f"Session not found: {session_id}")

    def complete_session(self, session_id: str, end_timestamp: str, final_score: int, total_questions: int) -> str:
        row_number = self._find_session_row(session_id)
        percentage = format_percentage(final_score, total_questions)
        self.store.update(self.sessions_sheet, f"C{row_number}:G{row_number}", [
            [end_timestamp, STATUS_COMPLETED, final_score, total_questions, percentage],
        ])
        return percentage

    def abandon_session(self, session_id: str) -> None:
        row_number = self._find_session_row(session_id)
        self.store.update(self.sessions_sheet, f"D{row_number}", [[STATUS_ABANDONED]])

    # Answer statistics

    def record_answer(self, question_id: str, selected_index: int) -> AnswerStat:
        if isinstance(selected_index, bool) or not isinstance(selected_index, int) \
                or not 0 <= selected_index < ANSWER_SLOTS:
            raise ValidationError(f"selectedAnswerIndex must be 0, 1, or 2 (got {selected_index!r})")

        rows = self.store.read(self.answer_stats_sheet, 'A:E')
        match = next((i for i, row in enumerate(rows) if row and row[0] == question_id), None)

        if match is None:
            counts = [0] * ANSWER_SLOTS
            counts[selected_index] = 1
            total = 1
            self.store.append(self.answer_stats_sheet, [[question_id, *counts, total]])
        else:
            current = rows[match]
            counts = [
                _strict_int(_cell(current, slot + 1), f"answer{slot}Count of {question_id!r}", default=0)
                for slot in range(ANSWER_SLOTS)
            ]
            total = _strict_int(_cell(current, 4), f"totalResponses of {question_id!r}", default=0)
            counts[selected_index] += 1
            total += 1
            row_number = match + 1
            self.store.update(self.answer_stats_sheet, f"B{row_number}:E{row_number}", [[*counts, total]])

        return AnswerStat(question_id=question_id, counts=tuple(counts), total=total)

    # Score distribution

    def update_score_distribution(self, score: int) -> int:
        rows = self.store.read(self.score_distribution_sheet, 'A:B')
        match = next((i for i, row in enumerate(rows) if row and _lenient_int(row[0]) == score), None)
        if match is None:
            self.store.append(self.score_distribution_sheet, [[score, 1]])
            return 1
        count = _strict_int(_cell(rows[match], 1), f"count for score {score}", default=0) + 1
        self.store.update(self.score_distribution_sheet, f"B{match + 1}", [[count]])
        return count

    def get_score_distribution(self) -> List[ScoreDistributionEntry]:
        rows = self.store.read(self.score_distribution_sheet, 'A2:B')
        entries = [
            ScoreDistributionEntry(
                score=_strict_int(row[0], 'score'),
                count=_strict_int(_cell(row, 1), f"count for score {row[0]!r}", default=0),
            )
            for row in rows if row
        ]
        return sorted(entries, key=lambda e: e.score)
