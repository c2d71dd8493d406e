import pytest

from strongholdsim.conflict import BattleOutcome, Conflict
from strongholdsim.diplomacy import Diplomacy
from strongholdsim.kingdom import Player, StrongholdError
from strongholdsim.worldmap import GameMap


class _Queue:
    def __init__(self, *values):
        self._values = list(values)

    def randrange(self, stop):
        value = self._values.pop(0)
        assert 0 <= value < stop
        return value


def _setup(adjacent=True):
    players = [Player(id=i) for i in range(2)]
    game_map = GameMap(rng=_Queue(0, 0, 0, 1 if adjacent else 4))
    game_map.initialize(2)
    return players, game_map


def test_cannot_attack_self():
    players, game_map = _setup()
    with pytest.raises(StrongholdError, match="Cannot declare war on self."):
        Conflict(rng=_Queue()).declare_war(0, 0, players, Diplomacy(), game_map)


def test_not_adjacent():
    players, game_map = _setup(adjacent=False)
    with pytest.raises(StrongholdError, match="not adjacent"):
        Conflict(rng=_Queue()).declare_war(0, 1, players, Diplomacy(), game_map)
    assert players[0].army.soldiers == players[1].army.soldiers


def test_betrayal_penalties_even_without_battle():
    players, game_map = _setup(adjacent=False)
    diplomacy = Diplomacy()
    diplomacy.propose_treaty(0, 1, "Alliance", 3)
    with pytest.raises(StrongholdError):
        Conflict(rng=_Queue()).declare_war(0, 1, players, diplomacy, game_map)
    assert players[0].leadership.approval < players[1].leadership.approval
    assert players[0].army.morale < players[1].army.morale
    assert not diplomacy.has_alliance(0, 1)


def test_attacker_wins_and_captures():
    players, game_map = _setup()
    food_before = players[1].resources.food
    outcome = Conflict(rng=_Queue(99, 2, 3)).declare_war(0, 1, players, Diplomacy(), game_map)
    assert outcome is BattleOutcome.ATTACKER_WINS
    assert players[0].army.soldiers > players[1].army.soldiers
    assert players[1].resources.food < food_before
    assert game_map.owner(2, 3) == 0


def test_draw_costs_both_sides_equally():
    players, game_map = _setup()
    outcome = Conflict(rng=_Queue(0)).resolve_battle(0, 1, players, game_map)
    assert outcome is BattleOutcome.DRAW
    assert players[0].army.soldiers == players[1].army.soldiers
    assert players[0].army.soldiers < Player().army.soldiers


def test_defender_wins_against_weaker_attacker():
    players, game_map = _setup()
    players[1].army.trained = 100
    food_before = players[0].resources.food
    outcome = Conflict(rng=_Queue(0)).resolve_battle(0, 1, players, game_map)
    assert outcome is BattleOutcome.DEFENDER_WINS
    assert players[0].army.soldiers < players[1].army.soldiers
    assert players[0].resources.food < food_before


def test_morale_zero_means_no_strength():
    players, game_map = _setup()
    players[1].army.morale = 0
    outcome = Conflict(rng=_Queue(0, 4, 4)).resolve_battle(0, 1, players, game_map)
    assert outcome is BattleOutcome.ATTACKER_WINS
    assert game_map.owner(4, 4) == 0


def test_defeated_kingdom_without_resources_keeps_nothing():
    players, game_map = _setup()
    players[1].resources.food = 0
    outcome = Conflict(rng=_Queue(99, 1, 1)).resolve_battle(0, 1, players, game_map)
    assert outcome is BattleOutcome.ATTACKER_WINS
    assert players[1].resources.food == 0
    assert players[1].resources.wood == Player().resources.wood