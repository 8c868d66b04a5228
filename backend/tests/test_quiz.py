import asyncio
import random
from collections import Counter

from astroquiz.client import Quiz, QuizState, is_placeholder
from astroquiz.client.quiz import shuffle_in_place

from fakes import FakeQuizApi, QUESTIONS


def _answer_index(quiz, correct):
    question = quiz.get_current_question()
    return next(i for i, a in enumerate(question.answers) if a.correct == correct)


def test_load_shuffles_but_preserves_membership():
    quiz = Quiz(FakeQuizApi(), rng=random.Random(7))
    assert asyncio.run(quiz.load_questions()) is True
    assert sorted(q.unique_id for q in quiz.questions) == sorted(q['id'] for q in QUESTIONS)
    for question in quiz.questions:
        source = next(q for q in QUESTIONS if q['id'] == question.unique_id)
        assert sorted(a.answer for a in question.answers) == sorted(source['answers'])
        assert [a.answer for a in question.answers if a.correct] == [source['answers'][source['correctIndex']]]
        # Each answer keeps the slot it had in the catalog
        assert all(source['answers'][a.slot] == a.answer for a in question.answers)


def test_empty_catalog_does_not_start():
    quiz = Quiz(FakeQuizApi(questions=[]))
    assert asyncio.run(quiz.start()) is False
    assert quiz.state == QuizState.NOT_STARTED


def test_shuffle_is_not_biased():
    rng = random.Random(1234)
    counts = Counter(tuple(shuffle_in_place(['a', 'b', 'c'], rng)) for _ in range(6000))
    assert len(counts) == 6
    # Expected 1000 each; the standard deviation is about 29
    assert all(850 < n < 1150 for n in counts.values())


def test_start_session_uses_remote_id():
    api = FakeQuizApi()
    quiz = Quiz(api)
    assert asyncio.run(quiz.start()) is True
    assert quiz.state == QuizState.IN_PROGRESS
    assert quiz.session_id == 'sess-1'


def test_session_failure_falls_back_to_placeholder():
    async def scenario():
        api = FakeQuizApi(session_ok=False)
        quiz = Quiz(api)
        assert await quiz.start() is True
        assert quiz.state == QuizState.IN_PROGRESS
        assert is_placeholder(quiz.session_id)

        outcome = await quiz.select_answer(_answer_index(quiz, True))
        assert outcome.is_correct is True
        assert outcome.statistics is None
        quiz.reset()
        await quiz.flush()
        return api

    api = asyncio.run(scenario())
    # Calls keyed by a placeholder session are never sent
    assert api.called('record_answer') == []
    assert api.called('abandon_session') == []


def test_select_answer_only_once_per_question():
    async def scenario():
        api = FakeQuizApi()
        quiz = Quiz(api, rng=random.Random(3))
        await quiz.start()
        first = await quiz.select_answer(_answer_index(quiz, True))
        second = await quiz.select_answer(_answer_index(quiz, False))
        return api, quiz, first, second

    api, quiz, first, second = asyncio.run(scenario())
    assert first.is_correct is True
    assert first.statistics['answerDistribution'] == [1, 3, 0]
    assert second is None
    assert quiz.score == 1
    assert len(quiz.user_answers) == 1
    assert len(api.called('record_answer')) == 1


def test_record_answer_sends_catalog_slot():
    async def scenario():
        api = FakeQuizApi()
        quiz = Quiz(api, rng=random.Random(11))
        await quiz.start()
        question = quiz.get_current_question()
        display_index = _answer_index(quiz, True)
        await quiz.select_answer(display_index)
        return api, question, display_index

    api, question, display_index = asyncio.run(scenario())
    source = next(q for q in QUESTIONS if q['id'] == question.unique_id)
    _, _, question_id, slot = api.called('record_answer')[0]
    assert question_id == question.unique_id
    assert slot == source['correctIndex']


def test_remote_failure_keeps_local_correctness():
    async def scenario():
        quiz = Quiz(FakeQuizApi(answers_ok=False))
        await quiz.start()
        return quiz, await quiz.select_answer(_answer_index(quiz, False))

    quiz, outcome = asyncio.run(scenario())
    assert outcome.is_correct is False
    assert outcome.statistics is None
    assert outcome.correct_index == quiz.get_correct_answer_index()
    assert quiz.score == 0
    assert quiz.user_answers[0].is_correct is False


def test_full_run_completes_session():
    async def scenario():
        api = FakeQuizApi()
        quiz = Quiz(api)
        await quiz.start()
        has_more = True
        for correct in (True, False, True):
            await quiz.select_answer(_answer_index(quiz, correct))
            has_more = await quiz.advance()
        return api, quiz, has_more

    api, quiz, has_more = asyncio.run(scenario())
    assert has_more is False
    assert quiz.state == QuizState.COMPLETE
    assert quiz.get_score() == 2
    assert quiz.get_score_percentage() == 67
    assert api.called('complete_session') == [('complete_session', 'sess-1', 2, 3)]


def test_score_percentage_rounds_half_up():
    quiz = Quiz(FakeQuizApi(questions=QUESTIONS[:2] * 4))
    asyncio.run(quiz.load_questions())
    quiz.score = 1
    # 1/8 = 12.5%
    assert quiz.get_score_percentage() == 13


def test_reset_abandons_in_flight_session():
    async def scenario():
        api = FakeQuizApi()
        quiz = Quiz(api)
        await quiz.start()
        await quiz.select_answer(0)
        quiz.reset()
        await quiz.flush()
        return api, quiz

    api, quiz = asyncio.run(scenario())
    assert api.called('abandon_session') == [('abandon_session', 'sess-1')]
    assert quiz.state == QuizState.NOT_STARTED
    assert quiz.score == 0
    assert quiz.user_answers == []
    assert quiz.session_id is None
    assert quiz.current_question_index == 0
    assert sorted(q.unique_id for q in quiz.questions) == ['q1', 'q2', 'q3']


def test_reset_after_completion_does_not_abandon():
    async def scenario():
        api = FakeQuizApi(questions=QUESTIONS[:1])
        quiz = Quiz(api)
        await quiz.start()
        await quiz.select_answer(0)
        await quiz.advance()
        quiz.reset()
        await quiz.flush()
        return api

    api = asyncio.run(scenario())
    assert api.called('complete_session')
    assert api.called('abandon_session') == []


def test_late_statistics_are_dropped_after_reset():
    async def scenario():
        api = FakeQuizApi()
        api.answer_gate = asyncio.Event()
        quiz = Quiz(api)
        await quiz.start()
        pending = asyncio.ensure_future(quiz.select_answer(0))
        await asyncio.sleep(0)
        quiz.reset()
        api.answer_gate.set()
        outcome = await pending
        await quiz.flush()
        return quiz, outcome

    quiz, outcome = asyncio.run(scenario())
    assert outcome is not None
    assert outcome.statistics is None
    assert quiz.user_answers == []
