import io
import random

import pytest

from strongholdsim.kingdom import SaveReader, StrongholdError
from strongholdsim.worldmap import MAP_SIZE, GameMap


class _Queue:
    def __init__(self, *values):
        self._values = list(values)

    def randrange(self, stop):
        value = self._values.pop(0)
        assert 0 <= value < stop
        return value


def _two_player_map():
    game_map = GameMap(rng=_Queue(0, 0, 0, 1))
    game_map.initialize(2)
    return game_map


def test_new_map_is_neutral():
    game_map = GameMap()
    assert all(game_map.owner(x, y) is None for x in range(MAP_SIZE) for y in range(MAP_SIZE))
    assert game_map.position(0) is None


def test_initialize_places_players_on_distinct_cells():
    game_map = GameMap(rng=random.Random(7))
    game_map.initialize(4)
    places = [game_map.position(i) for i in range(4)]
    assert len(set(places)) == 4
    for player_id, (x, y) in enumerate(places):
        assert game_map.owner(x, y) == player_id


def test_initialize_retries_occupied_cell():
    game_map = GameMap(rng=_Queue(2, 2, 2, 2, 3, 3))
    game_map.initialize(2)
    assert game_map.position(0) == (2, 2)
    assert game_map.position(1) == (3, 3)


def test_initialize_rejects_too_many_players():
    with pytest.raises(StrongholdError):
        GameMap().initialize(5)


def test_move_one_step():
    game_map = _two_player_map()
    assert game_map.move_player(0, 1, 0) == "Player 0 moved to (1, 0)."
    assert game_map.position(0) == (1, 0)
    assert game_map.owner(1, 0) == 0
    assert game_map.owner(0, 0) is None


@pytest.mark.parametrize(
    "player_id, x, y, message",
    [
        (0, 2, 0, "Invalid move: can only move one step."),
        (0, 0, 1, "Cannot move: position occupied."),
        (0, 5, 0, "Invalid move: out of bounds or invalid player ID."),
        (4, 0, 0, "Invalid move: out of bounds or invalid player ID."),
        (2, 1, 1, "Player has no valid position on map."),
    ],
)
def test_invalid_moves(player_id, x, y, message):
    game_map = _two_player_map()
    with pytest.raises(StrongholdError, match=message):
        game_map.move_player(player_id, x, y)
    assert game_map.position(0) == (0, 0)


def test_capture_territory():
    game_map = _two_player_map()
    assert game_map.capture_territory(1, 4, 4) == "Player 1 captured territory at (4, 4)."
    assert game_map.owner(4, 4) == 1
    assert game_map.capture_territory(1, 4, 4) == "Territory at (4, 4) already owned by Player 1."
    with pytest.raises(StrongholdError, match="Invalid coordinates"):
        game_map.capture_territory(1, -1, 0)


def test_adjacency():
    game_map = _two_player_map()
    assert game_map.are_adjacent(0, 1)
    assert game_map.are_adjacent(1, 0)
    assert not game_map.are_adjacent(0, 2)
    assert not game_map.are_adjacent(0, 7)
    game_map.move_player(0, 1, 0)
    assert not game_map.are_adjacent(0, 1)


def test_render():
    game_map = _two_player_map()
    lines = game_map.render(0).splitlines()
    assert lines[0] == "Map (Player 0 perspective):"
    assert lines[1].startswith(" P  1 ")
    assert len(lines) == MAP_SIZE + 2
    assert lines[-1] == "Player 0 position: (0, 0)"
    assert " . " in lines[2]


def test_save_layout():
    out = io.StringIO()
    _two_player_map().save(out)
    text = out.getvalue()
    assert text.startswith("# Map\nGrid: 0 1 -1 ")
    assert "Player0_X: 0\n" in text
    assert "Player3_Y: -1\n" in text


def test_save_load_round_trip():
    game_map = _two_player_map()
    game_map.capture_territory(1, 3, 2)
    out = io.StringIO()
    game_map.save(out)
    restored = GameMap()
    reader = SaveReader(out.getvalue())
    restored.load(reader)
    assert restored.grid == game_map.grid
    assert restored.positions == game_map.positions
    assert reader.at_end()


def test_load_old_layout():
    cells = ["-1"] * 25
    cells[0] = "0"
    cells[7] = "1"
    text = " ".join(cells) + "\n0 0 1 2 -1 -1 -1 -1\n"
    game_map = GameMap()
    game_map.load(SaveReader(text))
    assert game_map.owner(0, 0) == 0
    assert game_map.owner(1, 2) == 1
    assert game_map.position(1) == (1, 2)
    assert game_map.position(2) is None


def test_load_rejects_bad_owner():
    text = "# Map\nGrid: " + "9 " * 25 + "\n"
    with pytest.raises(StrongholdError):
        GameMap().load(SaveReader(text))