from flask_socketio import join_room, leave_room, emit
from flask import current_app, request
from typing import Dict

from countries_quiz import socketio
from countries_quiz.services.quiz.registry import sessions
from countries_quiz.services.quiz.scheduler import publish_session, session_room


# Socket id -> session id it is following
_sid_to_session: Dict[str, str] = {}


def _get_sid() -> str:
    return request.sid  # type: ignore


def _payload(data):
    """Event data as a dict; None when the client sent some other value."""
    if data is None:
        return {}
    return data if isinstance(data, dict) else None


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    # Sessions outlive their sockets; the player can reconnect and rejoin
    _sid_to_session.pop(_get_sid(), None)


def handle_join_session(data):
    data = _payload(data)
    if data is None:
        emit('error', {'message': 'Invalid payload'})
        return
    session_id = data.get('session_id')
    if not session_id or not isinstance(session_id, str):
        emit('error', {'message': 'session_id is required'})
        return
    handle = sessions.get(session_id)
    if handle is None:
        emit('error', {'message': 'Session not found'})
        return
    room = session_room(session_id)
    join_room(room)
    _sid_to_session[_get_sid()] = session_id
    emit('joined', {'room': room})
    emit('session_update', handle.to_dict())


def handle_leave_session(data):
    data = _payload(data)
    if data is None:
        emit('error', {'message': 'Invalid payload'})
        return
    session_id = data.get('session_id')
    if not session_id or not isinstance(session_id, str):
        emit('error', {'message': 'session_id is required'})
        return
    room = session_room(session_id)
    leave_room(room)
    if _sid_to_session.get(_get_sid()) == session_id:
        _sid_to_session.pop(_get_sid(), None)
    emit('left', {'room': room})


def handle_submit_input(data):
    """Resolve one keystroke's worth of input for a followed session."""
    data = _payload(data)
    if data is None:
        emit('error', {'message': 'Invalid payload'})
        return
    session_id = data.get('session_id') or _sid_to_session.get(_get_sid())
    text = data.get('text')
    if not session_id or not isinstance(session_id, str):
        emit('error', {'message': 'session_id is required'})
        return
    if text is not None and not isinstance(text, str):
        emit('error', {'message': 'text must be a string'})
        return
    handle = sessions.get(session_id)
    if handle is None:
        emit('error', {'message': 'Session not found'})
        return

    try:
        matched = sessions.apply(session_id, lambda s: s.submit_input(text or ''))
    except KeyError:
        emit('error', {'message': 'Session not found'})
        return
    if matched:
        current_app.logger.info(f"[guess] session={session_id} matched={matched!r} score={handle.session.score}")
        publish_session(handle)
    emit('input_result', {'session_id': session_id, 'matched': matched, 'score': handle.session.score})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = {
        'connect': handle_connect,
        'disconnect': handle_disconnect,
        'join_session': handle_join_session,
        'leave_session': handle_leave_session,
        'submit_input': handle_submit_input,
        'ping': handle_ping,
    }
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        for event, handler in handlers.items():
            socketio.on_event(event, handler, namespace=namespace)
