"""Inbound command records for the /ws namespace.

Every Socket.IO event carries an envelope ``{"data": ..., "id": n}`` where
``data`` is either an object or a JSON-encoded string. Each command is parsed
into an explicit record here, before anything reaches the game engine; any
shape problem raises ``MalformedPayload``.
"""
import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from seabattle.services.games.board import SHIP_LENGTHS, Orientation, Ship
from seabattle.services.games.errors import MalformedPayload

_INT_RE = re.compile(r'-?[0-9]+')


def unpack(payload) -> Tuple[Dict[str, Any], int]:
    """Split an envelope into its data object and correlation id."""
    if payload is None:
        return {}, 0
    if isinstance(payload, str):
        payload = _loads(payload)
    if not isinstance(payload, dict):
        raise MalformedPayload()
    request_id = request_id_of(payload)
    data = payload.get('data')
    if data is None or data == '':
        data = {}
    if isinstance(data, str):
        data = _loads(data)
    if not isinstance(data, dict):
        raise MalformedPayload('Expected a JSON object in data')
    return data, request_id


def request_id_of(payload) -> int:
    """Best-effort correlation id, used to answer payloads that fail to parse."""
    if isinstance(payload, dict):
        request_id = payload.get('id', 0)
        if isinstance(request_id, int) and not isinstance(request_id, bool):
            return request_id
    return 0


def _loads(text):
    try:
        return json.loads(text)
    except ValueError:
        raise MalformedPayload('Invalid data format. Expected JSON object.')


def _int(data, key) -> int:
    value = data.get(key)
    if isinstance(value, bool):
        raise MalformedPayload(f'{key} must be an integer')
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _INT_RE.fullmatch(value.strip()):
        return int(value)
    raise MalformedPayload(f'{key} must be an integer')


def _str(data, key) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise MalformedPayload(f'{key} is required')
    return value.strip()


@dataclass(frozen=True)
class Credentials:
    name: str
    password: str

    @classmethod
    def parse(cls, data):
        return cls(name=_str(data, 'name'), password=_str(data, 'password'))


@dataclass(frozen=True)
class JoinRoomRequest:
    room_id: int

    @classmethod
    def parse(cls, data):
        return cls(room_id=_int(data, 'indexRoom'))


def parse_ship(raw) -> Ship:
    if not isinstance(raw, dict) or not isinstance(raw.get('position'), dict):
        raise MalformedPayload('Each ship needs a position')
    kind = raw.get('type')
    if kind not in SHIP_LENGTHS:
        raise MalformedPayload(f'Unknown ship type: {kind}')
    length = _int(raw, 'length') if 'length' in raw else SHIP_LENGTHS[kind]
    if length != SHIP_LENGTHS[kind]:
        raise MalformedPayload(f'A {kind} ship has length {SHIP_LENGTHS[kind]}, got {length}')
    direction = raw.get('direction', False)
    if not isinstance(direction, bool):
        raise MalformedPayload('direction must be a boolean')
    position = raw['position']
    return Ship(
        x=_int(position, 'x'),
        y=_int(position, 'y'),
        orientation=Orientation.VERTICAL if direction else Orientation.HORIZONTAL,
        length=length,
        kind=kind,
    )


@dataclass(frozen=True)
class AddShipsRequest:
    game_id: int
    player_index: int
    ships: List[Ship]

    @classmethod
    def parse(cls, data):
        ships = data.get('ships')
        if not isinstance(ships, list) or not ships:
            raise MalformedPayload('ships must be a non-empty list')
        return cls(
            game_id=_int(data, 'gameId'),
            player_index=_int(data, 'indexPlayer'),
            ships=[parse_ship(s) for s in ships],
        )


@dataclass(frozen=True)
class AttackRequest:
    game_id: int
    player_index: int
    x: int
    y: int

    @classmethod
    def parse(cls, data):
        return cls(
            game_id=_int(data, 'gameId'),
            player_index=_int(data, 'indexPlayer'),
            x=_int(data, 'x'),
            y=_int(data, 'y'),
        )


@dataclass(frozen=True)
class RandomAttackRequest:
    game_id: int
    player_index: int

    @classmethod
    def parse(cls, data):
        return cls(game_id=_int(data, 'gameId'), player_index=_int(data, 'indexPlayer'))
