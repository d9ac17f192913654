from typing import AbstractSet, List

from .catalog import CONTINENT_ORDER, CountryCatalog
from .session import ACTIVE_SECONDS, Difficulty

# (minimum completion percent, title), checked top down
_TITLES = (
    (90, 'Geography Expert'),
    (75, 'World Traveler'),
    (50, 'Globe Trotter'),
    (25, 'Explorer'),
)


def completion_percentage(score: int, total: int) -> int:
    if total <= 0:
        return 0
    return int(score * 100 / total + 0.5)


def performance_title(score: int, total: int) -> str:
    if total > 0 and score >= total:
        return 'Perfect Score!'
    percentage = completion_percentage(score, total)
    for threshold, title in _TITLES:
        if percentage >= threshold:
            return title
    return 'Beginner'


def time_taken(difficulty, time_remaining: int) -> int:
    budget = ACTIVE_SECONDS[Difficulty.parse(difficulty)]
    return max(0, budget - int(time_remaining or 0))


def continent_progress(catalog: CountryCatalog, guessed: AbstractSet[str], reveal: bool = False) -> List[dict]:
    """Guessed/total per continent, in display order.

    Countries are listed as ``{'name', 'guessed'}``; missed ones only show
    up once ``reveal`` is set (review and results screens).
    """
    grouped = catalog.by_continent()
    out = []
    for continent in CONTINENT_ORDER:
        records = grouped.get(continent, [])
        countries = [
            {'name': r.canonical_name, 'guessed': r.canonical_name in guessed}
            for r in records
            if reveal or r.canonical_name in guessed
        ]
        out.append({
            'continent': continent.value,
            'guessed': sum(1 for r in records if r.canonical_name in guessed),
            'total': len(records),
            'countries': countries,
        })
    return out


def build_summary(session) -> dict:
    """Results block for a session that has left the active phase."""
    entry = session.score_entry
    score = entry.score if entry else session.score
    time_remaining = entry.time_remaining if entry else (session.time_remaining_at_end or 0)
    return {
        'score': score,
        'total': session.total,
        'percentage': completion_percentage(score, session.total),
        'title': performance_title(score, session.total),
        'time_taken': time_taken(session.difficulty, time_remaining),
        'time_remaining': time_remaining,
    }
