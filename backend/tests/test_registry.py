import pytest

from conftest import ALICE, BOB, FixedTurn, RecordingNotifier, ship
from seabattle.services.games import GameRegistry, Phase
from seabattle.services.games.board import CellState
from seabattle.services.games.errors import (
    GameNotFound,
    InvalidPlacement,
    PlayerNotFound,
    WrongPhase,
)
from seabattle.services.games.rooms import Room, Seat


def test_create_game_starts_in_placing(engine, game_id):
    game = engine.games.get_game(game_id)
    assert game.phase is Phase.PLACING
    assert [gp.player for gp in game.players] == [ALICE, BOB]
    assert game.turn_index == 0
    assert all(gp.board.remaining == 0 for gp in game.players)


def test_first_turn_is_drawn_from_rng(win_store):
    registry = GameRegistry(RecordingNotifier(), win_store, rng=FixedTurn(1))
    room = Room(id=1, players=[Seat(ALICE, 'sid-a'), Seat(BOB, 'sid-b')])
    assert registry.get_game(registry.create_game(room)).turn_index == 1


def test_game_ids_unique(engine):
    ids = set()
    for _ in range(3):
        room_id = engine.rooms.create_room()
        engine.rooms.join_room(room_id, ALICE, 'sid-a')
        ids.add(engine.rooms.join_room(room_id, BOB, 'sid-b').game_id)
    assert len(ids) == 3


def test_get_unknown_game(engine):
    with pytest.raises(GameNotFound):
        engine.games.get_game(42)


def test_place_ships_materializes_board(engine, game_id):
    # Scenario B
    assert engine.games.place_ships(game_id, 0, [ship(0, 0, 2)]) is False
    board = engine.games.get_game(game_id).players[0].board
    assert board.get(0, 0) is CellState.OCCUPIED
    assert board.get(1, 0) is CellState.OCCUPIED
    assert board.remaining == 2


def test_rejected_placement_leaves_board_unchanged(engine, game_id):
    engine.games.place_ships(game_id, 0, [ship(0, 0, 2)])
    with pytest.raises(InvalidPlacement) as exc:
        engine.games.place_ships(game_id, 0, [ship(4, 4), ship(1, 0, 2), ship(1, 0, 3, vertical=True)])
    assert exc.value.reason == 'overlap'

    slot = engine.games.get_game(game_id).players[0]
    assert slot.board.remaining == 2
    assert slot.board.get(4, 4) is CellState.EMPTY
    assert len(slot.ships) == 1


def test_resubmitting_during_placing_replaces_ships(engine, game_id):
    engine.games.place_ships(game_id, 0, [ship(0, 0, 2)])
    engine.games.place_ships(game_id, 0, [ship(5, 5, 3)])
    board = engine.games.get_game(game_id).players[0].board
    assert board.get(0, 0) is CellState.EMPTY
    assert board.remaining == 3


@pytest.mark.parametrize('index', [-1, 2, 7])
def test_place_ships_unknown_player(engine, game_id, index):
    with pytest.raises(PlayerNotFound):
        engine.games.place_ships(game_id, index, [ship(0, 0)])


def test_place_ships_unknown_game(engine):
    with pytest.raises(GameNotFound):
        engine.games.place_ships(99, 0, [ship(0, 0)])


def test_both_placed_starts_game(engine, game_id, notifier):
    engine.games.place_ships(game_id, 0, [ship(0, 0, 2)])
    assert engine.games.place_ships(game_id, 1, [ship(5, 5)]) is True
    assert engine.games.get_game(game_id).phase is Phase.IN_PROGRESS

    start_a = notifier.events_for('sid-a', 'start_game')
    start_b = notifier.events_for('sid-b', 'start_game')
    assert start_a == [{'ships': [ship(0, 0, 2).to_dict()], 'currentPlayerIndex': 0}]
    assert start_b == [{'ships': [ship(5, 5).to_dict()], 'currentPlayerIndex': 0}]
    assert notifier.events_for('sid-a', 'turn') == [{'currentPlayer': 0}]
    assert notifier.events_for('sid-b', 'turn') == [{'currentPlayer': 0}]


def test_place_ships_after_start_fails(engine, started_game):
    with pytest.raises(WrongPhase):
        engine.games.place_ships(started_game, 0, [ship(7, 7)])
    assert engine.games.get_game(started_game).players[0].board.get(7, 7) is CellState.EMPTY


def test_finish_game_credits_winner_once(engine, started_game, notifier, win_store):
    assert engine.games.finish_game(started_game, 1) is True
    assert win_store.wins == {'bob': 1}
    for sid in ('sid-a', 'sid-b'):
        assert notifier.events_for(sid, 'finish') == [{'winPlayer': 1}]
        assert notifier.events_for(sid, 'update_winners') == [[{'name': 'bob', 'wins': 1}]]
    with pytest.raises(GameNotFound):
        engine.games.get_game(started_game)

    assert engine.games.finish_game(started_game, 1) is False
    assert win_store.wins == {'bob': 1}
    assert len(notifier.events_for('sid-a', 'finish')) == 1


def test_failed_send_does_not_undo_finish(engine, started_game, notifier, win_store):
    def broken(handle, event, payload):
        raise ConnectionError('peer gone')
    notifier._deliver = broken
    assert engine.games.finish_game(started_game, 0) is True
    assert win_store.wins == {'alice': 1}
    assert len(engine.games) == 0


def test_forfeit_awards_opponent(engine, started_game, notifier, win_store):
    assert engine.games.forfeit('sid-a') == [started_game]
    assert win_store.wins == {'bob': 1}
    assert notifier.events_for('sid-b', 'finish') == [{'winPlayer': 1}]
    assert engine.games.forfeit('sid-a') == []


def test_place_ships_checks_the_seat_holder(engine, game_id):
    with pytest.raises(PlayerNotFound):
        engine.games.place_ships(game_id, 0, [ship(0, 0)], handle='sid-b')
    assert engine.games.get_game(game_id).players[0].ships_placed is False
    assert engine.games.place_ships(game_id, 0, [ship(0, 0)], handle='sid-a') is False


def test_empty_ship_list_never_starts_a_game(engine, game_id):
    engine.games.place_ships(game_id, 0, [ship(0, 0)])
    with pytest.raises(InvalidPlacement):
        engine.games.place_ships(game_id, 1, [])
    assert engine.games.get_game(game_id).phase is Phase.PLACING
