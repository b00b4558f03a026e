"""Socket.IO game handlers.

Events:
    - join_game: Subscribe to a save's updates; payload { save_id }
    - start_autoplay: Start the bot timer; payload { save_id, interval? }
    - stop_autoplay: Stop the bot timer; payload { save_id }

Emits:
    - game_update: { save_id, state, bot? } after every autoplay tick (and on join)
    - autoplay_status: { save_id, running, reason? }
    - error: validation / lookup failures
"""

import time

from flask import current_app, request
from flask_socketio import emit, join_room

from delve import app, socketio
from delve.logging_utils import get_logger
from delve.services import sessions

from .validation import JOIN_GAME, START_AUTOPLAY, STOP_AUTOPLAY, validate

_log = get_logger("delve.ws")

# Running autoplay loops keyed by save id: { save_id: { 'sid': ..., 'started': ts } }
active_autoplay = {}


def _invalid(event, result):
    emit('error', {'message': f"Invalid {event}: {result['error']}", 'field': result['field'], 'code': result['code']})


def _state_payload(gs, action=None):
    body = {'save_id': gs.save_id, 'state': gs.game.state(), 'autoplay': gs.autoplay}
    if action is not None:
        bot = {'kind': action.kind, 'detail': action.detail}
        if action.result is not None:
            bot['result'] = action.result.to_dict()
        body['bot'] = bot
    return body


def autoplay_tick(save_id):
    """Run one bot tick for `save_id` and broadcast it.

    Returns False once the loop should end (autoplay stopped, game gone or over).
    Requires an application context.
    """
    gs = sessions.get_session(save_id)
    if gs is None or not gs.autoplay:
        return False
    action = sessions.autoplay_step(gs)
    with gs.lock:
        socketio.emit('game_update', _state_payload(gs, action), room=save_id)
        if gs.finished or not gs.game.player.is_alive:
            gs.autoplay = False
            return False
        return gs.autoplay


def _autoplay_loop(save_id, interval):  # pragma: no cover (timer thread)
    with app.app_context():
        reason = 'stopped'
        while True:
            if not autoplay_tick(save_id):
                gs = sessions.get_session(save_id)
                if gs is not None and gs.finished:
                    reason = 'game_over'
                break
            socketio.sleep(interval)
        active_autoplay.pop(save_id, None)
        socketio.emit('autoplay_status', {'save_id': save_id, 'running': False, 'reason': reason}, room=save_id)
        _log.info(event="autoplay_stopped", save_id=save_id, reason=reason)


@socketio.on('join_game')
def handle_join_game(data):
    ok, result = validate(data or {}, JOIN_GAME)
    if not ok:
        _invalid('join_game', result)
        return
    save_id = result['save_id']
    gs = sessions.get_session(save_id)
    if gs is None:
        emit('error', {'message': 'game not found', 'field': 'save_id', 'code': 'not_found'})
        return
    join_room(save_id)
    with gs.lock:
        emit('game_update', _state_payload(gs))
    _log.info(event="join_game", save_id=save_id, sid=request.sid)


@socketio.on('start_autoplay')
def handle_start_autoplay(data):
    ok, result = validate(data or {}, START_AUTOPLAY)
    if not ok:
        _invalid('start_autoplay', result)
        return
    save_id = result['save_id']
    gs = sessions.get_session(save_id)
    if gs is None:
        emit('error', {'message': 'game not found', 'field': 'save_id', 'code': 'not_found'})
        return
    join_room(save_id)
    interval = float(result.get('interval') or current_app.config.get('DELVE_AUTOPLAY_INTERVAL', 0.3))
    with gs.lock:
        if gs.finished:
            emit('autoplay_status', {'save_id': save_id, 'running': False, 'reason': 'game_over'})
            return
        already = gs.autoplay
        gs.autoplay = True
    emit('autoplay_status', {'save_id': save_id, 'running': True, 'interval': interval}, room=save_id)
    if not already and save_id not in active_autoplay:
        active_autoplay[save_id] = {'sid': request.sid, 'started': time.time()}
        socketio.start_background_task(_autoplay_loop, save_id, interval)
        _log.info(event="autoplay_started", save_id=save_id, interval=interval)


@socketio.on('stop_autoplay')
def handle_stop_autoplay(data):
    ok, result = validate(data or {}, STOP_AUTOPLAY)
    if not ok:
        _invalid('stop_autoplay', result)
        return
    save_id = result['save_id']
    gs = sessions.get_session(save_id)
    if gs is None:
        emit('error', {'message': 'game not found', 'field': 'save_id', 'code': 'not_found'})
        return
    with gs.lock:
        gs.autoplay = False
    emit('autoplay_status', {'save_id': save_id, 'running': False, 'reason': 'stopped'}, room=save_id)
