"""Wars between neighbouring kingdoms."""

from __future__ import annotations

import random
from collections.abc import Sequence
from contextlib import suppress
from enum import Enum

from strongholdsim.diplomacy import Diplomacy
from strongholdsim.kingdom import Army, Player, StrongholdError
from strongholdsim.worldmap import MAP_SIZE, GameMap

BATTLE_MARGIN = 50
WAR_SPOILS = (100, 50, 50, 20)


class BattleOutcome(Enum):
    """How a battle ended."""

    ATTACKER_WINS = "attacker"
    DEFENDER_WINS = "defender"
    DRAW = "draw"


def _strength(army: Army) -> int:
    return (army.soldiers + army.trained * 2) * army.morale // 100


class Conflict:
    """Declares wars and fights the battles that follow."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng if rng is not None else random.Random()

    def declare_war(
        self,
        attacker_id: int,
        defender_id: int,
        players: Sequence[Player],
        diplomacy: Diplomacy,
        game_map: GameMap,
    ) -> BattleOutcome:
        """Attack a neighbour; attacking an ally costs approval, morale and the treaty."""
        if attacker_id == defender_id:
            raise StrongholdError("Cannot declare war on self.")
        if diplomacy.has_alliance(attacker_id, defender_id):
            attacker = players[attacker_id]
            attacker.leadership.reduce_approval(20)
            attacker.army.reduce_morale(15)
            diplomacy.break_treaty(attacker_id, defender_id)
        if not game_map.are_adjacent(attacker_id, defender_id):
            raise StrongholdError("Cannot attack: Players are not adjacent on the map.")
        return self.resolve_battle(attacker_id, defender_id, players, game_map)

    def resolve_battle(
        self,
        attacker_id: int,
        defender_id: int,
        players: Sequence[Player],
        game_map: GameMap,
    ) -> BattleOutcome:
        """Fight one battle, weighing army strength and morale against chance."""
        attacker = players[attacker_id]
        defender = players[defender_id]
        attacking, defending = attacker.army, defender.army
        result = self._rng.randrange(100) + _strength(attacking) - _strength(defending)

        if result > BATTLE_MARGIN:
            defending.reduce_soldiers(defending.soldiers // 2)
            attacking.reduce_soldiers(attacking.soldiers // 4)
            with suppress(StrongholdError):
                defender.resources.consume(*WAR_SPOILS)
            x = self._rng.randrange(MAP_SIZE)
            y = self._rng.randrange(MAP_SIZE)
            game_map.capture_territory(attacker_id, x, y)
            return BattleOutcome.ATTACKER_WINS
        if result < -BATTLE_MARGIN:
            attacking.reduce_soldiers(attacking.soldiers // 2)
            defending.reduce_soldiers(defending.soldiers // 4)
            with suppress(StrongholdError):
                attacker.resources.consume(*WAR_SPOILS)
            return BattleOutcome.DEFENDER_WINS
        attacking.reduce_soldiers(attacking.soldiers // 3)
        defending.reduce_soldiers(defending.soldiers // 3)
        return BattleOutcome.DRAW