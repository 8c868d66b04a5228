"""Error taxonomy shared by the store, the repository and the HTTP layer."""


class QuizError(Exception):
    """Base error. ``code`` is the short code sent to clients."""

    code = 'quiz_error'
    status_code = 500


class ValidationError(QuizError):
    code = 'validation_error'
    status_code = 400


class NotFoundError(QuizError):
    code = 'not_found'
    status_code = 404


class QuestionNotFoundError(NotFoundError):
    code = 'question_not_found'


class SessionNotFoundError(NotFoundError):
    code = 'session_not_found'


class MalformedDataError(QuizError):
    """A stored cell could not be parsed (e.g. a non-numeric counter)."""

    code = 'malformed_data'


class StoreUnavailableError(QuizError):
    code = 'store_unavailable'


class AuthError(StoreUnavailableError):
    code = 'store_auth_failed'
