from typing import Set

from countries_quiz import socketio
from .registry import sessions
from .scores import score_store
from .session import Phase


_running_clocks: Set[str] = set()
_pending_saves: Set[str] = set()


def session_room(session_id: str) -> str:
    return f"session:{session_id}"


def publish_session(handle) -> None:
    socketio.emit('session_update', handle.to_dict(), to=session_room(handle.session_id), namespace='/ws')


def schedule_score_submission(app, handle) -> None:
    """Save a finished session's score off the request path.

    The finished state is already published; a second session_update
    carries the save outcome. At most one insert runs per session.
    """
    if handle.submitted or handle.session_id in _pending_saves:
        return
    _pending_saves.add(handle.session_id)

    def _save(h):
        try:
            with app.app_context():
                saved = sessions.submit_score(h, score_store)
                if saved is False:
                    app.logger.warning(f"[session-finished] session={h.session_id} score not saved")
                else:
                    app.logger.info(f"[session-finished] session={h.session_id} score={h.session.score} saved={saved}")
                publish_session(h)
        finally:
            _pending_saves.discard(h.session_id)

    socketio.start_background_task(_save, handle)


def schedule_session_clock(app, session_id: str) -> None:
    """Drive a session with one tick per CLOCK_INTERVAL_SEC.

    - No-ops in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS is set
    - Ensures a single clock per session
    - Stops once the session is finished or discarded, submitting the
      score on the way out
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return

    if session_id in _running_clocks:
        app.logger.info(f"[clock-skip] session={session_id} already running")
        return
    _running_clocks.add(session_id)

    interval = float(app.config.get('CLOCK_INTERVAL_SEC', 1))
    app.logger.info(f"[clock-start] session={session_id} interval={interval}s")

    def _worker(sid: str, delay: float):
        try:
            hb = int(app.config.get('CLOCK_HEARTBEAT_SEC', 0))
        except (TypeError, ValueError):
            hb = 0
        ticks = 0
        try:
            while True:
                if delay > 0:
                    socketio.sleep(delay)
                handle = sessions.get(sid)
                if handle is None:
                    app.logger.info(f"[clock-abort] session={sid} discarded")
                    return
                try:
                    phase = sessions.apply(sid, lambda s: s.tick())
                except KeyError:
                    app.logger.info(f"[clock-abort] session={sid} discarded")
                    return
                ticks += 1
                with app.app_context():
                    publish_session(handle)
                    # Save only after the finished state is out
                    if phase == Phase.FINISHED:
                        sessions.submit_score(handle, score_store)
                        publish_session(handle)
                if hb and ticks % hb == 0:
                    s = handle.session
                    app.logger.info(
                        f"[clock-heartbeat] session={sid} phase={s.phase.value} active={s.active_seconds_remaining}s review={s.review_seconds_remaining}s"
                    )
                if phase == Phase.FINISHED:
                    app.logger.info(f"[clock-stop] session={sid} finished after {ticks} ticks")
                    return
                if phase == Phase.NOT_STARTED:
                    app.logger.info(f"[clock-abort] session={sid} not started")
                    return
        finally:
            _running_clocks.discard(sid)

    if app.config.get('TESTING'):
        _worker(session_id, interval)
    else:
        socketio.start_background_task(_worker, session_id, interval)
