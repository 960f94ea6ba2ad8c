import itertools
import logging
import random
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .board import Board, Ship
from .errors import GameNotFound, PlayerNotFound, WrongPhase
from .rooms import Player, Room


class Phase(Enum):
    PLACING = 'placing'
    IN_PROGRESS = 'in_progress'
    FINISHED = 'finished'


@dataclass
class GamePlayer:
    player: Player
    handle: str
    board: Board = field(default_factory=Board)
    ships: List[Ship] = field(default_factory=list)
    ships_placed: bool = False


@dataclass
class Game:
    id: int
    players: List[GamePlayer]
    turn_index: int
    phase: Phase = Phase.PLACING
    # Guards boards, turn and phase; re-entrant so an attack can finish the game
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def slot(self, index) -> GamePlayer:
        if index not in (0, 1) or index >= len(self.players):
            raise PlayerNotFound()
        return self.players[index]

    def seat_of(self, index, handle=None) -> GamePlayer:
        """Like :meth:`slot`, but also checks the connection holding the seat."""
        gp = self.slot(index)
        if handle is not None and gp.handle != handle:
            raise PlayerNotFound()
        return gp

    @staticmethod
    def opponent(index: int) -> int:
        return 1 - index

    def index_of(self, handle) -> Optional[int]:
        for i, gp in enumerate(self.players):
            if gp.handle == handle:
                return i
        return None


class GameRegistry:
    """Active games and their lifecycle.

    PLACING -> IN_PROGRESS once both players have placed ships, and
    IN_PROGRESS -> FINISHED through :meth:`finish_game`, after which the game
    is dropped from the registry.
    """

    def __init__(self, notifier, win_store, logger=None, rng=None, enforce_fleet=False):
        self.notifier = notifier
        self.win_store = win_store
        self.logger = logger or logging.getLogger(__name__)
        self.rng = rng or random
        self.enforce_fleet = enforce_fleet
        self._games: Dict[int, Game] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def create_game(self, room: Room) -> int:
        players = [GamePlayer(player=seat.player, handle=seat.handle) for seat in room.players]
        with self._lock:
            game = Game(id=next(self._ids), players=players, turn_index=self.rng.randrange(2))
            self._games[game.id] = game
        self.logger.info(
            f"[game-create] game={game.id} players={[gp.player.name for gp in players]} first_turn={game.turn_index}"
        )
        for index, gp in enumerate(players):
            self.notifier.send(gp.handle, 'create_game', {'idGame': game.id, 'idPlayer': index})
        return game.id

    def get_game(self, game_id) -> Game:
        with self._lock:
            game = self._games.get(game_id)
        if game is None:
            raise GameNotFound()
        return game

    def games_for(self, handle) -> List[Game]:
        with self._lock:
            return [g for g in self._games.values() if g.index_of(handle) is not None]

    def place_ships(self, game_id, player_index, ships, handle=None) -> bool:
        """Validate and store one player's ships.

        Returns True when this placement started the game. A rejected ship
        list leaves the player's board untouched. When ``handle`` is given it
        must be the connection seated at ``player_index``.
        """
        game = self.get_game(game_id)
        with game.lock:
            if game.phase is not Phase.PLACING:
                raise WrongPhase('Ships can only be placed before the game starts')
            slot = game.seat_of(player_index, handle)
            board = Board.from_ships(ships, enforce_fleet=self.enforce_fleet)
            slot.board = board
            slot.ships = list(ships)
            slot.ships_placed = True
            self.logger.info(f"[ships] game={game.id} player={player_index} ships={len(slot.ships)}")

            if not all(gp.ships_placed for gp in game.players):
                return False
            game.phase = Phase.IN_PROGRESS
            self.logger.info(f"[start] game={game.id} first_turn={game.turn_index}")
            for gp in game.players:
                self.notifier.send(gp.handle, 'start_game', {
                    'ships': [ship.to_dict() for ship in gp.ships],
                    'currentPlayerIndex': game.turn_index,
                })
            self.announce_turn(game)
            return True

    def announce_turn(self, game: Game) -> None:
        for gp in game.players:
            self.notifier.send(gp.handle, 'turn', {'currentPlayer': game.turn_index})

    def finish_game(self, game_id, winner_index) -> bool:
        """Finish a game, credit the winner and drop it from the registry.

        Calling it again for the same game is a no-op returning False.
        """
        with self._lock:
            game = self._games.get(game_id)
        if game is None:
            return False
        with game.lock:
            if game.phase is Phase.FINISHED:
                return False
            winner = game.slot(winner_index)
            game.phase = Phase.FINISHED
            winners = []
            try:
                self.win_store.increment_win(winner.player.name)
                winners = list(self.win_store.winners())
            except Exception:
                self.logger.exception(f"[finish] game={game.id} could not record win for {winner.player.name}")
            self.logger.info(f"[finish] game={game.id} winner={winner_index} name={winner.player.name}")
            for gp in game.players:
                self.notifier.send(gp.handle, 'finish', {'winPlayer': winner_index})
                self.notifier.send(gp.handle, 'update_winners', winners)
        with self._lock:
            self._games.pop(game_id, None)
        return True

    def forfeit(self, handle) -> List[int]:
        """Finish every game the connection is part of in favour of the opponent."""
        finished = []
        for game in self.games_for(handle):
            index = game.index_of(handle)
            self.logger.info(f"[forfeit] game={game.id} player={index}")
            if self.finish_game(game.id, Game.opponent(index)):
                finished.append(game.id)
        return finished

    def __len__(self):
        with self._lock:
            return len(self._games)
