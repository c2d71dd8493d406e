"""Random events that strike a kingdom between turns."""

from __future__ import annotations

import random
from collections.abc import Sequence
from enum import Enum

from strongholdsim.diplomacy import Diplomacy
from strongholdsim.kingdom import Player, StrongholdError
from strongholdsim.market import Market


class EventKind(Enum):
    """The kinds of random event, in the order they are drawn."""

    FAMINE = 0
    WAR = 1
    REBELLION = 2
    DROUGHT = 3
    TRADE_DISPUTE = 4
    DIPLOMATIC_CRISIS = 5


class EventSystem:
    """Draws a random event and applies it to a random player."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng if rng is not None else random.Random()

    def random_event(
        self, players: Sequence[Player], diplomacy: Diplomacy, market: Market
    ) -> tuple[EventKind, int, str]:
        """Apply one random event; return its kind, the player struck and a report."""
        if not players:
            raise StrongholdError("no players to affect")
        kind = EventKind(self._rng.randrange(len(EventKind)))
        player_id = self._rng.randrange(len(players))
        player = players[player_id]
        lines: list[str] = []

        def attempt(action, *args) -> None:
            try:
                result = action(*args)
            except StrongholdError as exc:
                lines.append(str(exc))
            else:
                if isinstance(result, str):
                    lines.append(result)

        if kind is EventKind.FAMINE:
            lines.append(f"A famine has struck Player {player_id}!")
            attempt(player.resources.consume, 200, 0, 0, 0)
        elif kind is EventKind.WAR:
            lines.append(f"War has broken out! Player {player_id} recruits soldiers.")
            attempt(player.army.recruit, 50, player.population)
        elif kind is EventKind.REBELLION:
            lines.append(f"A rebellion is brewing in Player {player_id}'s kingdom.")
            attempt(player.population.update, 0, 0, True)
        elif kind is EventKind.DROUGHT:
            lines.append(f"A drought has affected Player {player_id}'s resources.")
            attempt(player.resources.consume, 100, 0, 0, 0)
        elif kind is EventKind.TRADE_DISPUTE:
            lines.append(f"Trade dispute! Player {player_id}'s trade is canceled.")
            lines.append(market.view_offers(player_id))
        else:
            lines.append(f"Diplomatic crisis! Player {player_id}'s treaty is broken.")
            other_id = (player_id + 1) % len(players)
            if diplomacy.break_treaty(player_id, other_id) is not None:
                lines.append(f"Treaty broken between Player {player_id} and Player {other_id}.")
            else:
                lines.append("No treaty found.")
        return kind, player_id, "\n".join(lines)