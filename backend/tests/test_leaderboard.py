from datetime import datetime, timedelta, timezone

import pytest

from countries_quiz.services.quiz.errors import InvalidInput
from countries_quiz.services.quiz.leaderboard import Window, as_utc, rank, window_start
from countries_quiz.services.quiz.session import Difficulty, ScoreEntry

# Local noon keeps "today" well clear of midnight in any timezone
NOW = datetime.now().astimezone().replace(hour=12, minute=0, second=0, microsecond=0)


def _entry(name, score, time_remaining, age):
    return ScoreEntry(
        player_name=name,
        score=score,
        time_remaining=time_remaining,
        total=197,
        difficulty=Difficulty.AVERAGE,
        created_at=NOW - age,
    )


def test_rank_orders_by_score_then_time_then_age():
    entries = [
        _entry('slow', 50, 30, timedelta(minutes=5)),
        _entry('fewer', 48, 500, timedelta(minutes=4)),
        _entry('fast', 50, 90, timedelta(minutes=3)),
    ]
    assert [e.player_name for e in rank(entries)] == ['fast', 'slow', 'fewer']


def test_rank_ties_go_to_the_earlier_entry():
    entries = [
        _entry('later', 40, 10, timedelta(minutes=1)),
        _entry('earlier', 40, 10, timedelta(minutes=30)),
    ]
    assert [e.player_name for e in rank(entries)] == ['earlier', 'later']


def test_identical_entries_keep_input_order():
    a = _entry('a', 10, 10, timedelta(minutes=1))
    b = _entry('b', 10, 10, timedelta(minutes=1))
    assert rank([a, b]) == [a, b]
    assert rank([b, a]) == [b, a]


def test_today_window_drops_yesterday():
    entries = [
        _entry('recent', 10, 0, timedelta(hours=1)),
        _entry('yesterday', 99, 0, timedelta(hours=25)),
    ]
    assert [e.player_name for e in rank(entries, Window.TODAY, now=NOW)] == ['recent']
    assert len(rank(entries, Window.ALL, now=NOW)) == 2


def test_week_window_is_last_seven_days():
    entries = [
        _entry('six-days', 10, 0, timedelta(days=6)),
        _entry('eight-days', 99, 0, timedelta(days=8)),
    ]
    assert [e.player_name for e in rank(entries, 'week', now=NOW)] == ['six-days']


def test_window_parse():
    assert Window.parse(None) == Window.ALL
    assert Window.parse('') == Window.ALL
    assert Window.parse('Today') == Window.TODAY
    assert Window.parse('thisWeek') == Window.WEEK
    assert Window.parse('this_week') == Window.WEEK
    with pytest.raises(InvalidInput):
        Window.parse('month')


def test_window_start():
    assert window_start(Window.ALL, NOW) is None
    start = window_start(Window.TODAY, NOW)
    assert start.hour == 0 and start.minute == 0
    assert start <= NOW
    assert window_start(Window.WEEK, NOW) == as_utc(NOW) - timedelta(days=7)


def test_naive_timestamps_are_utc():
    naive = datetime(2025, 1, 1, 8, 30)
    assert as_utc(naive) == datetime(2025, 1, 1, 8, 30, tzinfo=timezone.utc)
