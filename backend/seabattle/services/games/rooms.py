import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, NamedTuple, Optional

from .errors import AlreadyInRoom, RoomFull, RoomNotFound

ROOM_CAPACITY = 2


@dataclass(frozen=True)
class Player:
    """Identity issued by the account store."""
    name: str
    index: int

    def to_dict(self):
        return {'name': self.name, 'index': self.index}


@dataclass(frozen=True)
class Seat:
    player: Player
    handle: str


@dataclass
class Room:
    id: int
    players: List[Seat] = field(default_factory=list)

    @property
    def is_full(self) -> bool:
        return len(self.players) >= ROOM_CAPACITY

    def has_player(self, player: Player) -> bool:
        return any(seat.player.index == player.index for seat in self.players)

    def to_dict(self):
        return {
            'roomId': self.id,
            'roomUsers': [seat.player.to_dict() for seat in self.players],
        }


class JoinResult(NamedTuple):
    room: Room
    game_id: Optional[int]


class RoomRegistry:
    """Pending matchmaking rooms.

    A room that reaches two players is promoted to a game and dropped from
    the registry under the same lock, so it is never listed as joinable.
    """

    def __init__(self, games, logger=None):
        self.games = games
        self.logger = logger or logging.getLogger(__name__)
        self._rooms: Dict[int, Room] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def create_room(self) -> int:
        with self._lock:
            room = Room(id=next(self._ids))
            self._rooms[room.id] = room
        self.logger.info(f"[room-create] room={room.id}")
        return room.id

    def get_room(self, room_id: int) -> Room:
        with self._lock:
            room = self._rooms.get(room_id)
        if room is None:
            raise RoomNotFound()
        return room

    def join_room(self, room_id: int, player: Player, handle: str) -> JoinResult:
        with self._lock:
            room = self._rooms.get(room_id)
            if room is None:
                raise RoomNotFound()
            if room.has_player(player):
                raise AlreadyInRoom()
            if room.is_full:
                raise RoomFull()

            # A player waits in one room at a time
            self._vacate(player, keep=room.id)
            room.players.append(Seat(player, handle))
            self.logger.info(f"[room-join] room={room.id} player={player.name} occupants={len(room.players)}")
            if not room.is_full:
                return JoinResult(room, None)

            del self._rooms[room.id]
            for seat in room.players:
                self._vacate(seat.player)
            game_id = self.games.create_game(room)
        self.logger.info(f"[room-promote] room={room.id} game={game_id}")
        return JoinResult(room, game_id)

    def leave(self, handle: str) -> bool:
        """Drop every pending seat held by a connection."""
        changed = False
        with self._lock:
            for room in list(self._rooms.values()):
                kept = [seat for seat in room.players if seat.handle != handle]
                if len(kept) != len(room.players):
                    room.players = kept
                    changed = True
                    if not kept:
                        del self._rooms[room.id]
        if changed:
            self.logger.info(f"[room-leave] handle={handle}")
        return changed

    def list_joinable(self) -> Iterator[dict]:
        """Rooms with a free seat, in creation order.

        The snapshot is taken when iteration starts; it is not a live view.
        """
        with self._lock:
            snapshot = [room.to_dict() for room in self._rooms.values() if not room.is_full]
        yield from snapshot

    def __len__(self):
        with self._lock:
            return len(self._rooms)

    def _vacate(self, player: Player, keep: Optional[int] = None) -> None:
        for room in list(self._rooms.values()):
            if room.id == keep:
                continue
            kept = [seat for seat in room.players if seat.player.index != player.index]
            if len(kept) == len(room.players):
                continue
            room.players = kept
            if not kept:
                del self._rooms[room.id]
