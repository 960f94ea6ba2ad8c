from flask import current_app, request
from flask_socketio import emit

from seabattle import socketio
from seabattle.protocol import (
    AddShipsRequest,
    AttackRequest,
    Credentials,
    JoinRoomRequest,
    RandomAttackRequest,
    request_id_of,
    unpack,
)
from seabattle.services.accounts import as_player
from seabattle.services.games.errors import GameError, MalformedPayload, NotAuthenticated


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _state():
    return current_app.extensions['seabattle']


def _current_player():
    player = _state().sessions.get(_get_sid())
    if player is None:
        raise NotAuthenticated()
    return player


def _reply(event, data, request_id):
    emit(event, {'data': data, 'id': request_id})


def _broadcast_rooms():
    state = _state()
    state.notifier.broadcast('update_room', list(state.engine.rooms.list_joinable()))


def handle_connect():
    emit('connected', {'data': {'message': 'Connected to /ws'}, 'id': 0})


def handle_disconnect(*args):
    state = _state()
    sid = _get_sid()
    player = state.sessions.pop(sid, None)
    if state.engine.rooms.leave(sid):
        _broadcast_rooms()
    if player is not None and current_app.config.get('FORFEIT_ON_DISCONNECT', True):
        finished = state.engine.games.forfeit(sid)
        if finished:
            current_app.logger.info(f"[disconnect] player={player.name} forfeited games={finished}")


def _login(data, request_id, authenticate):
    state = _state()
    creds = Credentials.parse(data)
    user = authenticate(creds.name, creds.password)
    player = as_player(user)
    state.sessions[_get_sid()] = player
    current_app.logger.info(f"[login] sid={_get_sid()} player={player.name} index={player.index}")
    _reply('reg', {'name': player.name, 'index': player.index, 'error': False, 'errorText': ''}, request_id)
    _reply('update_room', list(state.engine.rooms.list_joinable()), 0)
    _reply('update_winners', state.accounts.winners(), 0)


def handle_reg(data, request_id):
    _login(data, request_id, _state().accounts.register_or_login)


def handle_login(data, request_id):
    _login(data, request_id, _state().accounts.authenticate)


def handle_create_room(data, request_id):
    player = _current_player()
    rooms = _state().engine.rooms
    room_id = rooms.create_room()
    rooms.join_room(room_id, player, _get_sid())
    _reply('create_room', {'roomId': room_id, 'error': False, 'errorText': ''}, request_id)
    _broadcast_rooms()


def handle_add_user_to_room(data, request_id):
    player = _current_player()
    req = JoinRoomRequest.parse(data)
    _state().engine.rooms.join_room(req.room_id, player, _get_sid())
    _broadcast_rooms()


def handle_add_ships(data, request_id):
    _current_player()
    req = AddShipsRequest.parse(data)
    _state().engine.games.place_ships(req.game_id, req.player_index, req.ships, handle=_get_sid())
    _reply('add_ships', {'gameId': req.game_id, 'indexPlayer': req.player_index, 'error': False}, request_id)


def handle_attack(data, request_id):
    _current_player()
    req = AttackRequest.parse(data)
    _state().engine.attacks.attack(req.game_id, req.player_index, req.x, req.y, handle=_get_sid())


def handle_random_attack(data, request_id):
    _current_player()
    req = RandomAttackRequest.parse(data)
    _state().engine.attacks.random_attack(req.game_id, req.player_index)


def handle_unknown(event, *args):
    request_id = request_id_of(args[0] if args else None)
    _reject(event, MalformedPayload('Unknown command type'), request_id)


def _reject(command, exc, request_id):
    current_app.logger.info(f"[rejected] sid={_get_sid()} command={command} code={exc.code} reason={exc}")
    payload = exc.to_dict()
    payload.update({'error': True, 'command': command})
    _reply('error', payload, request_id)


def _command(name, handler):
    """Wrap a handler so any engine error goes back to the sender only."""
    def wrapper(payload=None):
        request_id = request_id_of(payload)
        try:
            data, request_id = unpack(payload)
            handler(data, request_id)
        except GameError as exc:
            _reject(name, exc, request_id)
    wrapper.__name__ = f'on_{name}'
    return wrapper


COMMANDS = {
    'reg': handle_reg,
    'login': handle_login,
    'create_room': handle_create_room,
    'add_user_to_room': handle_add_user_to_room,
    'add_ships': handle_add_ships,
    'attack': handle_attack,
    'randomAttack': handle_random_attack,
}


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register Socket.IO event handlers on the game namespace."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    for name, handler in COMMANDS.items():
        socketio.on_event(name, _command(name, handler), namespace=namespace)
    socketio.on_event('*', handle_unknown, namespace=namespace)
