from typing import NamedTuple, Optional

from .board import CellState, in_bounds
from .errors import NotImplementedCommand, NotYourTurn, OutOfBounds, WrongPhase
from .registry import Game, Phase

MISS = 'miss'
SHOT = 'shot'
KILLED = 'killed'


class AttackResult(NamedTuple):
    status: str
    next_turn: Optional[int]
    finished: bool = False


class AttackResolver:
    """Applies attacks to running games, one per call.

    A hit keeps the turn with the attacker, a miss passes it on. Sinking is
    only reported once the defender has no ship cell left, which also ends
    the game.
    """

    def __init__(self, games):
        self.games = games

    def attack(self, game_id, attacker_index, x, y, handle=None) -> AttackResult:
        game = self.games.get_game(game_id)
        with game.lock:
            if game.phase is not Phase.IN_PROGRESS:
                raise WrongPhase('Game is not in progress')
            game.seat_of(attacker_index, handle)
            if attacker_index != game.turn_index:
                raise NotYourTurn()
            if not in_bounds(x, y):
                raise OutOfBounds()

            defender = Game.opponent(attacker_index)
            board = game.players[defender].board
            status = self._strike(board, x, y)
            self.games.logger.info(
                f"[attack] game={game.id} attacker={attacker_index} x={x} y={y} status={status} remaining={board.remaining}"
            )
            self._report(game, attacker_index, x, y, status)

            if status == MISS:
                game.turn_index = defender
                if board.remaining:
                    self.games.announce_turn(game)
            elif status == KILLED:
                for nx, ny in board.neighbours(x, y):
                    if board.get(nx, ny) is CellState.EMPTY:
                        board.set(nx, ny, CellState.MISS)
                        self._report(game, attacker_index, nx, ny, MISS)

            if board.remaining == 0:
                self.games.finish_game(game.id, attacker_index)
                return AttackResult(status, None, finished=True)
            return AttackResult(status, game.turn_index)

    def random_attack(self, game_id, attacker_index) -> AttackResult:
        raise NotImplementedCommand('randomAttack not implemented yet.')

    @staticmethod
    def _strike(board, x, y) -> str:
        state = board.get(x, y)
        if state is CellState.OCCUPIED:
            board.set(x, y, CellState.HIT)
            return KILLED if board.remaining == 0 else SHOT
        if state is CellState.EMPTY:
            board.set(x, y, CellState.MISS)
            return MISS
        # Already resolved: replay the earlier outcome without touching the board
        return SHOT if state is CellState.HIT else MISS

    def _report(self, game, attacker_index, x, y, status):
        for gp in game.players:
            self.games.notifier.send(gp.handle, 'attack', {
                'position': {'x': x, 'y': y},
                'currentPlayer': attacker_index,
                'status': status,
            })
