"""In-memory registry of quiz sessions keyed by session id.

Sessions live only as long as the process; nothing is persisted.  The
registry holds at most ``max_sessions`` entries and evicts the least
recently used one when a new session would exceed the cap.
"""

from __future__ import annotations

import logging
import uuid
from collections import OrderedDict
from typing import Callable

from bigfive import settings
from bigfive.session.quiz_session import AnalysisPipeline, QuizSession

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    """Raised when a session id is not (or no longer) registered."""


class SessionStore:
    """Creates and looks up ``QuizSession`` objects sharing one pipeline.

    Not thread-safe; the web layer only touches it from the event loop.
    """

    def __init__(
        self,
        pipeline: AnalysisPipeline,
        id_factory: Callable[[], str] | None = None,
        max_sessions: int | None = None,
    ):
        self._pipeline = pipeline
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex[:12])
        self.max_sessions = max_sessions or settings.MAX_SESSIONS
        self._sessions: OrderedDict[str, QuizSession] = OrderedDict()

    def create(self) -> QuizSession:
        session_id = self._id_factory()
        session = QuizSession(session_id=session_id, pipeline=self._pipeline)
        self._sessions[session_id] = session
        self._sessions.move_to_end(session_id)
        while len(self._sessions) > self.max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            logger.info("Evicted session %s (cap %d)", evicted, self.max_sessions)
        logger.info("Created session %s", session_id)
        return session

    def get(self, session_id: str) -> QuizSession:
        try:
            session = self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None
        self._sessions.move_to_end(session_id)
        return session

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions
