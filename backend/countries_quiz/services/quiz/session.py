"""Single-player quiz session: clock, guessed set and phase transitions.

One ``QuizSession`` per attempt. Phases only move forward::

    not_started -> active -> reviewing -> finished

and every transition goes through ``QuizSession._transition``. The engine
does no I/O; callers feed it ticks and input text and read back the
``ScoreEntry`` once the session is finished.
"""

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Optional, Set

from .errors import InvalidInput, InvalidState
from .resolver import NameResolver


class Phase(str, Enum):
    NOT_STARTED = 'not_started'
    ACTIVE = 'active'
    REVIEWING = 'reviewing'
    FINISHED = 'finished'


class Difficulty(str, Enum):
    BEGINNER = 'beginner'
    AVERAGE = 'average'
    EXPERT = 'expert'

    @classmethod
    def parse(cls, value) -> 'Difficulty':
        if isinstance(value, cls):
            return value
        if value is None or value == '':
            return cls.AVERAGE
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidInput(f"Unknown difficulty: {value!r}") from None


ACTIVE_SECONDS: Dict[Difficulty, int] = {
    Difficulty.BEGINNER: 1200,
    Difficulty.AVERAGE: 900,
    Difficulty.EXPERT: 600,
}
REVIEW_SECONDS = 180

# Legal forward edges; anything else is InvalidState
_TRANSITIONS = {
    Phase.NOT_STARTED: Phase.ACTIVE,
    Phase.ACTIVE: Phase.REVIEWING,
    Phase.REVIEWING: Phase.FINISHED,
}


@dataclass(frozen=True)
class ScoreEntry:
    player_name: str
    score: int
    time_remaining: int
    total: int
    difficulty: Difficulty
    created_at: datetime

    def to_dict(self) -> dict:
        data = asdict(self)
        data['difficulty'] = self.difficulty.value
        data['created_at'] = self.created_at.isoformat()
        return data


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuizSession:
    def __init__(
        self,
        resolver: NameResolver,
        review_seconds: int = REVIEW_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.resolver = resolver
        self.total = len(resolver.catalog)
        self.review_budget = int(review_seconds)
        self._clock = clock

        self.phase = Phase.NOT_STARTED
        self.difficulty: Optional[Difficulty] = None
        self.player_name: Optional[str] = None
        self.active_seconds_remaining = 0
        self.review_seconds_remaining = 0
        self.guessed: Set[str] = set()
        self.time_remaining_at_end: Optional[int] = None
        self._score_entry: Optional[ScoreEntry] = None

    @property
    def score(self) -> int:
        return len(self.guessed)

    @property
    def score_entry(self) -> Optional[ScoreEntry]:
        return self._score_entry

    @property
    def is_running(self) -> bool:
        return self.phase in (Phase.ACTIVE, Phase.REVIEWING)

    def start(self, player_name: str, difficulty=Difficulty.AVERAGE) -> None:
        if self.phase != Phase.NOT_STARTED:
            raise InvalidState(f"Cannot start a session that is {self.phase.value}")
        name = (player_name or '').strip() if isinstance(player_name, str) else ''
        if not name:
            raise InvalidInput('Player name is required')
        level = Difficulty.parse(difficulty)

        self.player_name = name
        self.difficulty = level
        self.guessed = set()
        self.active_seconds_remaining = ACTIVE_SECONDS[level]
        self._transition(Phase.ACTIVE)

    def tick(self) -> Phase:
        """Advance the running countdown by one second."""
        if self.phase == Phase.ACTIVE:
            self.active_seconds_remaining = max(0, self.active_seconds_remaining - 1)
            if self.active_seconds_remaining == 0:
                self._transition(Phase.REVIEWING)
        elif self.phase == Phase.REVIEWING:
            self.review_seconds_remaining = max(0, self.review_seconds_remaining - 1)
            if self.review_seconds_remaining == 0:
                self._transition(Phase.FINISHED)
        return self.phase

    def submit_input(self, raw_input: str) -> Optional[str]:
        """Canonical name newly guessed by ``raw_input``, or None.

        Ignored outside the active phase; a miss is not an error.
        """
        if self.phase != Phase.ACTIVE:
            return None
        match = self.resolver.resolve(raw_input, self.guessed)
        if match is not None:
            self.guessed.add(match)
        return match

    def give_up(self) -> None:
        if self.phase != Phase.ACTIVE:
            raise InvalidState(f"Cannot give up a session that is {self.phase.value}")
        self._transition(Phase.REVIEWING)

    def finish_review(self) -> ScoreEntry:
        if self.phase == Phase.FINISHED:
            return self._score_entry
        if self.phase != Phase.REVIEWING:
            raise InvalidState(f"Cannot finish review of a session that is {self.phase.value}")
        self._transition(Phase.FINISHED)
        return self._score_entry

    def _transition(self, target: Phase) -> None:
        if _TRANSITIONS.get(self.phase) != target:
            raise InvalidState(f"Illegal transition {self.phase.value} -> {target.value}")
        if target == Phase.REVIEWING:
            self.time_remaining_at_end = self.active_seconds_remaining
            self.review_seconds_remaining = self.review_budget
        elif target == Phase.FINISHED:
            self.review_seconds_remaining = 0
            self._score_entry = ScoreEntry(
                player_name=self.player_name,
                score=len(self.guessed),
                time_remaining=self.time_remaining_at_end or 0,
                total=self.total,
                difficulty=self.difficulty,
                created_at=self._clock(),
            )
        self.phase = target

    def snapshot(self) -> dict:
        return {
            'phase': self.phase.value,
            'player_name': self.player_name,
            'difficulty': self.difficulty.value if self.difficulty else None,
            'active_seconds_remaining': self.active_seconds_remaining,
            'review_seconds_remaining': self.review_seconds_remaining,
            'guessed': sorted(self.guessed),
            'score': self.score,
            'total': self.total,
            'score_entry': self._score_entry.to_dict() if self._score_entry else None,
        }
