"""Game domain services: rooms, boards, games and attacks.

This package contains pure(ish) domain logic that should be imported by
socket handlers, keeping transport concerns separated from core game
mechanics. Connections are opaque handles; all outbound traffic goes
through a notifier.
"""
from typing import NamedTuple

from .attack import AttackResolver, AttackResult
from .registry import Game, GameRegistry, Phase
from .rooms import Player, RoomRegistry


class Engine(NamedTuple):
    rooms: RoomRegistry
    games: GameRegistry
    attacks: AttackResolver


def create_engine(notifier, win_store, logger=None, rng=None, enforce_fleet=False) -> Engine:
    """Wire the registries together around one notifier and win store."""
    games = GameRegistry(notifier, win_store, logger=logger, rng=rng, enforce_fleet=enforce_fleet)
    rooms = RoomRegistry(games, logger=logger)
    return Engine(rooms=rooms, games=games, attacks=AttackResolver(games))


__all__ = [
    'AttackResolver', 'AttackResult', 'Engine', 'Game', 'GameRegistry',
    'Phase', 'Player', 'RoomRegistry', 'create_engine',
]
