import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, TypeVar

from .session import Phase, QuizSession
from .summary import build_summary, continent_progress

T = TypeVar('T')


@dataclass
class SessionHandle:
    session_id: str
    session: QuizSession
    lock: threading.RLock = field(default_factory=threading.RLock)
    # Score submission bookkeeping: attempted at most once
    submitted: bool = False
    saved: Optional[bool] = None
    score_id: Optional[int] = None
    finished_at: Optional[float] = None

    def to_dict(self) -> dict:
        with self.lock:
            session = self.session
            payload = session.snapshot()
            reveal = session.phase in (Phase.REVIEWING, Phase.FINISHED)
            payload['session_id'] = self.session_id
            payload['continents'] = continent_progress(session.resolver.catalog, session.guessed, reveal=reveal)
            payload['summary'] = build_summary(session) if reveal else None
            payload['saved'] = self.saved
            payload['score_id'] = self.score_id
            return payload


class SessionRegistry:
    """In-process sessions keyed by id.

    All mutation goes through ``apply`` so the clock, HTTP handlers and
    socket handlers never interleave on one session.
    """

    def __init__(self):
        self._sessions: Dict[str, SessionHandle] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id) -> bool:
        return session_id in self._sessions

    def create(self, session: QuizSession) -> SessionHandle:
        handle = SessionHandle(session_id=uuid.uuid4().hex, session=session)
        with self._lock:
            self._sessions[handle.session_id] = handle
        return handle

    def get(self, session_id: str) -> Optional[SessionHandle]:
        return self._sessions.get(session_id)

    def discard(self, session_id: str) -> Optional[SessionHandle]:
        with self._lock:
            return self._sessions.pop(session_id, None)

    def apply(self, session_id: str, fn: Callable[[QuizSession], T]) -> T:
        handle = self._sessions.get(session_id)
        if handle is None:
            raise KeyError(session_id)
        with handle.lock:
            result = fn(handle.session)
            if handle.session.phase == Phase.FINISHED and handle.finished_at is None:
                handle.finished_at = time.monotonic()
            return result

    def submit_score(self, handle: SessionHandle, store) -> Optional[bool]:
        """Hand a finished session's score to ``store`` once.

        Returns the save outcome, or None while the session is still
        running. Storage failures are recorded, never raised.
        """
        with handle.lock:
            if handle.submitted or handle.session.phase != Phase.FINISHED:
                return handle.saved
            handle.submitted = True
            entry = handle.session.score_entry
        result = store.insert(entry)
        with handle.lock:
            handle.saved = result.ok
            handle.score_id = result.record.id if result.ok and result.record is not None else None
        return handle.saved

    def prune_finished(self, max_age_sec: float) -> int:
        """Drop sessions that finished more than ``max_age_sec`` ago."""
        cutoff = time.monotonic() - max_age_sec
        with self._lock:
            stale = [sid for sid, h in self._sessions.items() if h.finished_at is not None and h.finished_at < cutoff]
            for sid in stale:
                del self._sessions[sid]
        return len(stale)


sessions = SessionRegistry()
