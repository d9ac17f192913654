from datetime import datetime, timezone

from countries_quiz import db
from countries_quiz.services.quiz.leaderboard import as_utc
from countries_quiz.services.quiz.session import Difficulty, ScoreEntry

PLAYER_NAME_MAX = 64


def _utcnow():
    return datetime.now(timezone.utc)


class ScoreRecord(db.Model):
    __tablename__ = 'score'
    id = db.Column(db.Integer, primary_key=True)
    player_name = db.Column(db.String(PLAYER_NAME_MAX), nullable=False)
    score = db.Column(db.Integer, nullable=False)
    time_remaining = db.Column(db.Integer, nullable=False)
    total = db.Column(db.Integer, nullable=False)
    difficulty = db.Column(db.String(16), nullable=False, default=Difficulty.AVERAGE.value)
    # Stamped by the store at insert time; SQLite hands it back naive (UTC)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    __table_args__ = (
        db.Index('ix_score_ranking', 'score', 'time_remaining'),
    )

    def to_entry(self) -> ScoreEntry:
        return ScoreEntry(
            player_name=self.player_name,
            score=self.score,
            time_remaining=self.time_remaining,
            total=self.total,
            difficulty=Difficulty.parse(self.difficulty),
            created_at=as_utc(self.created_at),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'player_name': self.player_name,
            'score': self.score,
            'time_remaining': self.time_remaining,
            'total': self.total,
            'difficulty': self.difficulty,
            'created_at': as_utc(self.created_at).isoformat() if self.created_at else None,
        }
