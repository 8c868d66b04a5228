"""HTTP client for the quiz API.

Every call resolves to ``Ok(value)`` or ``Err(kind, message)``; transport
problems never raise. Blocking ``requests`` calls run in a worker thread so
the event loop driving the quiz is never stalled.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

import requests

from config import Config

log = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    VALIDATION = 'validation'
    NOT_FOUND = 'not_found'
    STORE_UNAVAILABLE = 'store_unavailable'
    TIMEOUT = 'timeout'
    NETWORK = 'network'
    INVALID_RESPONSE = 'invalid_response'


@dataclass(frozen=True)
class Ok:
    value: Dict[str, Any]


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str


Result = Union[Ok, Err]


def _kind_for_status(status: int) -> ErrorKind:
    if status == 404:
        return ErrorKind.NOT_FOUND
    if 400 <= status < 500:
        return ErrorKind.VALIDATION
    return ErrorKind.STORE_UNAVAILABLE


class QuizApiClient:
    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 http: Optional[requests.Session] = None):
        self.base_url = (base_url or Config.API_BASE_URL).rstrip('/')
        self.timeout = timeout if timeout is not None else Config.API_TIMEOUT_SEC
        self.http = http or requests.Session()

    def _send(self, method: str, path: str, payload: Optional[Dict[str, Any]]) -> Result:
        url = f"{self.base_url}/api{path}"
        try:
            response = self.http.request(
                method,
                url,
                json=payload,
                headers={'Content-Type': 'application/json'},
                timeout=self.timeout,
            )
        except requests.Timeout:
            return Err(ErrorKind.TIMEOUT, 'Request timeout - please check your connection')
        except requests.RequestException as exc:
            return Err(ErrorKind.NETWORK, str(exc))

        try:
            body = response.json()
        except ValueError:
            body = None

        if not 200 <= response.status_code < 300:
            message = None
            if isinstance(body, dict):
                message = body.get('message') or body.get('error')
            return Err(_kind_for_status(response.status_code), message or f"HTTP error! status: {response.status_code}")
        if not isinstance(body, dict):
            return Err(ErrorKind.INVALID_RESPONSE, f"Expected a JSON object from {path}")
        if not body.get('success'):
            return Err(ErrorKind.INVALID_RESPONSE, body.get('message') or body.get('error') or 'Request failed')
        return Ok(body)

    async def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Result:
        result = await asyncio.to_thread(self._send, method, path, payload)
        if isinstance(result, Err):
            log.warning(f"[api] {method} {path} failed kind={result.kind.value}: {result.message}")
        return result

    async def get_questions(self) -> Result:
        return await self._request('GET', '/questions')

    async def start_session(self) -> Result:
        return await self._request('POST', '/sessions', {})

    async def record_answer(self, session_id: str, question_id: str, selected_index: int) -> Result:
        return await self._request('POST', f'/sessions/{session_id}/answers', {
            'sessionID': session_id,
            'questionID': question_id,
            'selectedAnswerIndex': selected_index,
        })

    async def complete_session(self, session_id: str, final_score: int, total_questions: int) -> Result:
        return await self._request('POST', f'/sessions/{session_id}/complete', {
            'sessionID': session_id,
            'finalScore': final_score,
            'totalQuestions': total_questions,
        })

    async def abandon_session(self, session_id: str) -> Result:
        return await self._request('POST', f'/sessions/{session_id}/abandon', {'sessionID': session_id})

    async def get_score_distribution(self) -> Result:
        return await self._request('GET', '/score-distribution')
