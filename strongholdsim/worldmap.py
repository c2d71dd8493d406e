"""The 5x5 world map: player positions and territory ownership."""

from __future__ import annotations

import random
import re
from typing import TextIO

from strongholdsim.kingdom import (
    SaveReader,
    StrongholdError,
    _read_tokens,
    _skip_blank,
    _skip_header,
    _to_int,
)

MAP_SIZE = 5
MAX_POSITIONS = 4

_FIELD = re.compile(r"Player(\d+)_([XY]):(.*)")

Position = tuple[int, int]


def _in_bounds(x: int, y: int) -> bool:
    return 0 <= x < MAP_SIZE and 0 <= y < MAP_SIZE


def _decode_owner(value: int) -> int | None:
    if not -1 <= value < MAX_POSITIONS:
        raise StrongholdError(f"invalid territory owner {value}")
    return None if value == -1 else value


def _decode_position(x: int, y: int) -> Position | None:
    if x == -1 or y == -1:
        return None
    if not _in_bounds(x, y):
        raise StrongholdError(f"position out of bounds: ({x}, {y})")
    return (x, y)


class GameMap:
    """A square grid where each cell is neutral or owned by a player."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng if rng is not None else random.Random()
        self.grid: list[list[int | None]] = [[None] * MAP_SIZE for _ in range(MAP_SIZE)]
        self.positions: list[Position | None] = [None] * MAX_POSITIONS

    def initialize(self, num_players: int) -> None:
        """Place each player on a random free cell."""
        if not 0 <= num_players <= MAX_POSITIONS:
            raise StrongholdError(f"the map holds at most {MAX_POSITIONS} players")
        self.grid = [[None] * MAP_SIZE for _ in range(MAP_SIZE)]
        self.positions = [None] * MAX_POSITIONS
        for player_id in range(num_players):
            while True:
                x = self._rng.randrange(MAP_SIZE)
                y = self._rng.randrange(MAP_SIZE)
                if self.grid[x][y] is None:
                    self.grid[x][y] = player_id
                    self.positions[player_id] = (x, y)
                    break

    def move_player(self, player_id: int, new_x: int, new_y: int) -> str:
        """Move a player one step onto a free cell."""
        if not 0 <= player_id < MAX_POSITIONS or not _in_bounds(new_x, new_y):
            raise StrongholdError("Invalid move: out of bounds or invalid player ID.")
        current = self.positions[player_id]
        if current is None:
            raise StrongholdError("Player has no valid position on map.")
        old_x, old_y = current
        if abs(new_x - old_x) + abs(new_y - old_y) > 1:
            raise StrongholdError("Invalid move: can only move one step.")
        if self.grid[new_x][new_y] is not None:
            raise StrongholdError("Cannot move: position occupied.")
        self.grid[old_x][old_y] = None
        self.grid[new_x][new_y] = player_id
        self.positions[player_id] = (new_x, new_y)
        return f"Player {player_id} moved to ({new_x}, {new_y})."

    def capture_territory(self, player_id: int, x: int, y: int) -> str:
        """Claim a cell for a player."""
        if not _in_bounds(x, y):
            raise StrongholdError("Invalid coordinates for capturing territory.")
        if self.grid[x][y] == player_id:
            return f"Territory at ({x}, {y}) already owned by Player {player_id}."
        self.grid[x][y] = player_id
        return f"Player {player_id} captured territory at ({x}, {y})."

    def render(self, player_id: int) -> str:
        """Draw the map as seen by one player."""
        if not 0 <= player_id < MAX_POSITIONS:
            raise StrongholdError(f"invalid player ID {player_id}")
        lines = [f"Map (Player {player_id} perspective):"]
        for row in self.grid:
            cells = []
            for owner in row:
                if owner is None:
                    cells.append(" . ")
                elif owner == player_id:
                    cells.append(" P ")
                else:
                    cells.append(f" {owner} ")
            lines.append("".join(cells))
        x, y = self.positions[player_id] or (-1, -1)
        lines.append(f"Player {player_id} position: ({x}, {y})")
        return "\n".join(lines)

    def are_adjacent(self, player1_id: int, player2_id: int) -> bool:
        """True when both players stand on orthogonally neighbouring cells."""
        if not (0 <= player1_id < MAX_POSITIONS and 0 <= player2_id < MAX_POSITIONS):
            return False
        first = self.positions[player1_id]
        second = self.positions[player2_id]
        if first is None or second is None:
            return False
        return abs(first[0] - second[0]) + abs(first[1] - second[1]) == 1

    def position(self, player_id: int) -> Position | None:
        """A player's cell, or None when they have no place on the map."""
        if not 0 <= player_id < MAX_POSITIONS:
            raise StrongholdError(f"invalid player ID {player_id}")
        return self.positions[player_id]

    def owner(self, x: int, y: int) -> int | None:
        """The player owning a cell, or None if it is neutral."""
        if not _in_bounds(x, y):
            raise StrongholdError(f"coordinates out of bounds: ({x}, {y})")
        return self.grid[x][y]

    def save(self, out: TextIO) -> None:
        out.write("# Map\n")
        cells = "".join(
            f"{-1 if owner is None else owner} " for row in self.grid for owner in row
        )
        out.write(f"Grid: {cells}\n")
        for player_id, place in enumerate(self.positions):
            x, y = place or (-1, -1)
            out.write(f"Player{player_id}_X: {x}\n")
            out.write(f"Player{player_id}_Y: {y}\n")
        out.write("\n")

    def load(self, reader: SaveReader) -> None:
        """Read the map in the keyed layout or the older bare-value layout."""
        cell_count = MAP_SIZE * MAP_SIZE
        _skip_header(reader, "Map")
        first = reader.peek()
        if first is None:
            raise StrongholdError("missing Map data")
        if first.startswith("Grid:"):
            tokens = reader.readline()[len("Grid:"):].split()
            if len(tokens) < cell_count:
                tokens += _read_tokens(reader, cell_count - len(tokens))
            cells = [_to_int(token) for token in tokens[:cell_count]]
            coords = {(i, axis): -1 for i in range(MAX_POSITIONS) for axis in "XY"}
            while (line := reader.peek()) is not None and (match := _FIELD.fullmatch(line)):
                reader.readline()
                index = int(match[1])
                if index >= MAX_POSITIONS:
                    raise StrongholdError(f"player {index} beyond map capacity")
                coords[(index, match[2])] = _to_int(match[3].strip())
            places = [(coords[(i, "X")], coords[(i, "Y")]) for i in range(MAX_POSITIONS)]
        else:
            numbers = [_to_int(t) for t in _read_tokens(reader, cell_count + 2 * MAX_POSITIONS)]
            cells = numbers[:cell_count]
            rest = numbers[cell_count:]
            places = list(zip(rest[::2], rest[1::2]))
        grid = [
            [_decode_owner(value) for value in cells[row * MAP_SIZE:(row + 1) * MAP_SIZE]]
            for row in range(MAP_SIZE)
        ]
        positions = [_decode_position(x, y) for x, y in places]
        _skip_blank(reader)
        self.grid = grid
        self.positions = positions