"""Score store: the persistence gateway for finished sessions.

``insert`` never raises on storage errors; it reports them in the
returned ``InsertResult`` so a failed save cannot take the player's
result down with it.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from countries_quiz import db
from countries_quiz.models import PLAYER_NAME_MAX, ScoreRecord, _utcnow
from .errors import InvalidInput, PersistenceFailure
from .leaderboard import as_utc
from .session import Difficulty, ScoreEntry


@dataclass
class InsertResult:
    ok: bool
    record: Optional[ScoreRecord] = None
    error: Optional[str] = None


def _field(payload: dict, snake: str, camel: str):
    if snake in payload:
        return payload.get(snake)
    return payload.get(camel)


def _whole_number(payload: dict, snake: str, camel: str, minimum: int) -> int:
    value = _field(payload, snake, camel)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInput(f"'{camel}' must be a number")
    if isinstance(value, float) and not value.is_integer():
        raise InvalidInput(f"'{camel}' must be a whole number")
    value = int(value)
    if value < minimum:
        raise InvalidInput(f"'{camel}' must be at least {minimum}")
    return value


def validate_submission(payload) -> ScoreEntry:
    """Turn a submitted JSON body into a ScoreEntry or raise InvalidInput.

    Accepts ``playerName``/``player_name`` style keys. ``created_at`` is a
    placeholder; the store stamps its own at insert time.
    """
    if not isinstance(payload, dict):
        raise InvalidInput('Invalid request data')
    name = _field(payload, 'player_name', 'playerName')
    name = name.strip() if isinstance(name, str) else ''
    if not name:
        raise InvalidInput("'playerName' is required")
    if len(name) > PLAYER_NAME_MAX:
        raise InvalidInput(f"'playerName' must be at most {PLAYER_NAME_MAX} characters")
    return ScoreEntry(
        player_name=name,
        score=_whole_number(payload, 'score', 'score', 0),
        time_remaining=_whole_number(payload, 'time_remaining', 'timeRemaining', 0),
        total=_whole_number(payload, 'total', 'total', 1),
        difficulty=Difficulty.parse(payload.get('difficulty')),
        created_at=_utcnow(),
    )


class ScoreStore:
    def insert(self, entry: ScoreEntry) -> InsertResult:
        record = ScoreRecord(
            player_name=entry.player_name[:PLAYER_NAME_MAX],
            score=entry.score,
            time_remaining=entry.time_remaining,
            total=entry.total,
            difficulty=Difficulty.parse(entry.difficulty).value,
            created_at=_utcnow(),
        )
        try:
            db.session.add(record)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.warning(f"[score-failed] player={entry.player_name!r} error={exc}")
            return InsertResult(ok=False, error=str(exc))
        current_app.logger.info(
            f"[score-saved] id={record.id} player={record.player_name!r} score={record.score}/{record.total} difficulty={record.difficulty}"
        )
        return InsertResult(ok=True, record=record)

    def query(self, limit: int, since: Optional[datetime] = None) -> List[ScoreRecord]:
        """Up to ``limit`` records, best first by storage order.

        ``since`` drops older rows before the limit applies so windowed
        leaderboards are not cut off by all-time scores.
        """
        q = ScoreRecord.query
        if since is not None:
            q = q.filter(ScoreRecord.created_at >= as_utc(since))
        q = q.order_by(
            ScoreRecord.score.desc(),
            ScoreRecord.time_remaining.desc(),
            ScoreRecord.created_at.asc(),
        )
        try:
            return q.limit(limit).all()
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.warning(f"[score-query-failed] limit={limit} error={exc}")
            raise PersistenceFailure(str(exc)) from exc


score_store = ScoreStore()
