"""Treaties between players."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import TextIO

from strongholdsim.kingdom import (
    SaveReader,
    StrongholdError,
    _read_tokens,
    _skip_blank,
    _skip_header,
    _to_int,
)

MAX_TREATIES = 10

_FIELD = re.compile(r"Treaty(\d+)_(\w+):(.*)")


class TreatyType(Enum):
    """The kinds of treaty players may sign."""

    ALLIANCE = "Alliance"
    NON_AGGRESSION = "Non-Aggression"
    TRADE = "Trade"


@dataclass
class Treaty:
    """A treaty between two players, lasting a number of turns."""

    player1_id: int = -1
    player2_id: int = -1
    treaty_type: TreatyType | None = None
    duration: int = 0
    active: bool = False


def _parse_type(value: TreatyType | str) -> TreatyType:
    if isinstance(value, TreatyType):
        return value
    try:
        return TreatyType(value)
    except ValueError:
        raise StrongholdError(f"unknown treaty type {value!r}") from None


def _between(treaty: Treaty, a: int, b: int) -> bool:
    return {treaty.player1_id, treaty.player2_id} == {a, b} and (
        (treaty.player1_id, treaty.player2_id) in ((a, b), (b, a))
    )


def _read_fields(reader: SaveReader) -> dict[int, dict[str, str]]:
    fields: dict[int, dict[str, str]] = {}
    while (line := reader.peek()) is not None and (match := _FIELD.fullmatch(line)):
        reader.readline()
        fields.setdefault(int(match[1]), {})[match[2]] = match[3].strip()
    return fields


def _checked_count(count: int) -> int:
    if not 0 <= count <= MAX_TREATIES:
        raise StrongholdError(f"treaty count out of range: {count}")
    return count


class Diplomacy:
    """Every treaty signed in the game."""

    def __init__(self) -> None:
        self.treaties: list[Treaty] = []

    def propose_treaty(
        self, player1_id: int, player2_id: int, treaty_type: TreatyType | str, duration: int
    ) -> str:
        """Sign a treaty for a positive number of turns."""
        error = "Cannot propose treaty: invalid parameters or treaty limit reached."
        try:
            kind = _parse_type(treaty_type)
        except StrongholdError:
            raise StrongholdError(error) from None
        if len(self.treaties) >= MAX_TREATIES or player1_id == player2_id or duration <= 0:
            raise StrongholdError(error)
        self.treaties.append(Treaty(player1_id, player2_id, kind, duration, True))
        return (
            f"Treaty proposed: {kind.value} between Player {player1_id} "
            f"and Player {player2_id}."
        )

    def break_treaty(self, player1_id: int, player2_id: int) -> Treaty | None:
        """End the first active treaty between two players and return it, or None if there is none."""
        for treaty in self.treaties:
            if treaty.active and _between(treaty, player1_id, player2_id):
                treaty.active = False
                return treaty
        return None

    def has_alliance(self, player1_id: int, player2_id: int) -> bool:
        return any(
            t.active and _between(t, player1_id, player2_id) and t.treaty_type is TreatyType.ALLIANCE
            for t in self.treaties
        )

    def update_treaties(self) -> list[Treaty]:
        """Count down one turn on every active treaty; return those that expired."""
        expired = []
        for treaty in self.treaties:
            if treaty.active:
                treaty.duration -= 1
                if treaty.duration <= 0:
                    treaty.active = False
                    expired.append(treaty)
        return expired

    def treaties_for(self, player_id: int) -> list[Treaty]:
        """Active treaties a player has signed."""
        return [
            t
            for t in self.treaties
            if t.active and player_id in (t.player1_id, t.player2_id)
        ]

    def display_treaties(self, player_id: int) -> str:
        lines = [f"Treaties for Player {player_id}:"]
        for treaty in self.treaties_for(player_id):
            other = treaty.player2_id if treaty.player1_id == player_id else treaty.player1_id
            kind = treaty.treaty_type.value if treaty.treaty_type else ""
            lines.append(f"{kind} with Player {other}, Duration: {treaty.duration} turns")
        if len(lines) == 1:
            lines.append("No treaties.")
        return "\n".join(lines)

    def save(self, out: TextIO) -> None:
        out.write("# Diplomacy\n")
        out.write(f"TreatyCount: {len(self.treaties)}\n")
        for index, treaty in enumerate(self.treaties):
            if treaty.active:
                kind = treaty.treaty_type.value if treaty.treaty_type else ""
                out.write(f"Treaty{index}_Player1: {treaty.player1_id}\n")
                out.write(f"Treaty{index}_Player2: {treaty.player2_id}\n")
                out.write(f"Treaty{index}_Type: {kind}\n")
                out.write(f"Treaty{index}_Duration: {treaty.duration}\n")
        out.write("\n")

    def load(self, reader: SaveReader) -> None:
        """Read treaties in the keyed layout or the older bare-value layout."""
        _skip_header(reader, "Diplomacy")
        first = reader.peek()
        if first is None:
            raise StrongholdError("missing Diplomacy data")
        if first.startswith("TreatyCount:"):
            count = _checked_count(_to_int(reader.readline().partition(":")[2].strip()))
            treaties = [Treaty() for _ in range(count)]
            for index, values in _read_fields(reader).items():
                if index >= count:
                    raise StrongholdError(f"treaty {index} beyond count {count}")
                try:
                    treaties[index] = Treaty(
                        _to_int(values["Player1"]),
                        _to_int(values["Player2"]),
                        _parse_type(values["Type"]),
                        _to_int(values["Duration"]),
                        True,
                    )
                except KeyError as exc:
                    raise StrongholdError(f"treaty {index} lacks {exc.args[0]}") from None
        else:
            (count_text,) = _read_tokens(reader, 1)
            count = _checked_count(_to_int(count_text))
            treaties = []
            for _ in range(count):
                first_id, second_id, kind, duration = _read_tokens(reader, 4)
                treaties.append(
                    Treaty(
                        _to_int(first_id),
                        _to_int(second_id),
                        _parse_type(kind),
                        _to_int(duration),
                        True,
                    )
                )
        _skip_blank(reader)
        self.treaties = treaties