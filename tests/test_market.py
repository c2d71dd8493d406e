import io

import pytest

from strongholdsim.diplomacy import Diplomacy
from strongholdsim.kingdom import Leadership, Player, Resources, SaveReader, StrongholdError
from strongholdsim.market import MAX_OFFERS, Market, TradeOffer


class _FixedRoll:
    def __init__(self, value):
        self.value = value

    def randrange(self, stop):
        return self.value


def _players():
    return [Player(id=0, name="Ann"), Player(id=1, name="Bo")]


def _saved(market):
    out = io.StringIO()
    market.save(out)
    return out.getvalue()


def test_propose_trade_records_offer():
    market = Market()
    assert market.propose_trade(0, 1, (10, 20, 30, 40), (1, 2, 3, 4), False) == (
        "Trade proposed to Player 1."
    )
    assert market.offers == [TradeOffer(0, 1, (10, 20, 30, 40), (1, 2, 3, 4), False, True)]


@pytest.mark.parametrize(
    "args",
    [
        (0, 0, (1, 1, 1, 1), (1, 1, 1, 1), False),
        (0, 1, (-1, 0, 0, 0), (0, 0, 0, 0), False),
        (0, 1, (0, 0, 0, 0), (0, 0, 0, -5), True),
        (0, 1, (0, 0, 0), (0, 0, 0, 0), False),
    ],
)
def test_propose_trade_rejects_invalid(args):
    market = Market()
    with pytest.raises(StrongholdError):
        market.propose_trade(*args)
    assert market.offers == []


def test_offer_limit():
    market = Market()
    for _ in range(MAX_OFFERS):
        market.propose_trade(0, 1, (1, 0, 0, 0), (0, 1, 0, 0), False)
    with pytest.raises(StrongholdError):
        market.propose_trade(0, 1, (1, 0, 0, 0), (0, 1, 0, 0), False)


def test_accept_trade_exchanges_resources():
    market = Market(rng=_FixedRoll(0))
    players = _players()
    market.propose_trade(0, 1, (100, 0, 10, 0), (0, 50, 0, 20), False)
    assert market.accept_trade(0, players, Diplomacy()) == "Trade completed successfully."
    start = Resources()
    sender, recipient = players[0].resources, players[1].resources
    assert (sender.food, sender.wood, sender.stone, sender.iron) == (
        start.food - 100,
        start.wood + 50,
        start.stone - 10,
        start.iron + 20,
    )
    assert (recipient.food, recipient.wood, recipient.stone, recipient.iron) == (
        start.food + 100,
        start.wood - 50,
        start.stone + 10,
        start.iron - 20,
    )
    assert market.offers[0].active is False


def test_trade_conserves_total_resources():
    market = Market(rng=_FixedRoll(99))
    players = _players()
    market.propose_trade(0, 1, (5, 6, 7, 8), (9, 10, 11, 12), True)
    before = sum(p.resources.food + p.resources.iron for p in players)
    market.accept_trade(0, players, Diplomacy())
    after = sum(p.resources.food + p.resources.iron for p in players)
    assert before == after


def test_smuggling_caught_applies_penalties():
    market = Market(rng=_FixedRoll(0))
    players = _players()
    diplomacy = Diplomacy()
    diplomacy.propose_treaty(0, 1, "Alliance", 5)
    market.propose_trade(0, 1, (100, 40, 0, 0), (0, 0, 60, 20), True)
    message = market.accept_trade(0, players, diplomacy)
    assert message == "Smuggling detected! Trade canceled, penalties applied."
    start = Resources()
    assert players[0].resources.food == start.food - 100 // 2
    assert players[1].resources.stone == start.stone - 60 // 2
    assert players[0].leadership.approval == Leadership().approval - 10
    assert players[1].leadership.approval == Leadership().approval - 10
    assert not diplomacy.has_alliance(0, 1)
    assert market.offers[0].active is False


def test_smuggling_at_detection_boundary_goes_through():
    market = Market(rng=_FixedRoll(30))
    players = _players()
    market.propose_trade(0, 1, (10, 0, 0, 0), (0, 0, 0, 0), True)
    assert market.accept_trade(0, players, Diplomacy()) == "Trade completed successfully."


def test_accept_with_insufficient_resources():
    market = Market()
    players = _players()
    market.propose_trade(0, 1, (Resources().food + 1, 0, 0, 0), (0, 0, 0, 0), False)
    with pytest.raises(StrongholdError):
        market.accept_trade(0, players, Diplomacy())
    assert market.offers[0].active is True
    assert players[0].resources == Resources()


@pytest.mark.parametrize("index", [-1, 0, 3])
def test_accept_invalid_index(index):
    with pytest.raises(StrongholdError):
        Market().accept_trade(index, _players(), Diplomacy())


def test_accepting_twice_is_rejected():
    market = Market()
    players = _players()
    market.propose_trade(0, 1, (1, 0, 0, 0), (0, 0, 0, 0), False)
    market.accept_trade(0, players, Diplomacy())
    with pytest.raises(StrongholdError):
        market.accept_trade(0, players, Diplomacy())


def test_view_offers():
    market = Market()
    market.propose_trade(0, 1, (1, 2, 3, 4), (5, 6, 7, 8), True)
    market.propose_trade(1, 0, (0, 0, 0, 0), (0, 0, 0, 0), False)
    assert market.view_offers(1).splitlines() == [
        "Trade offers for Player 1:",
        "Offer 0 from Player 0:",
        "Offers: Food=1, Wood=2, Stone=3, Iron=4",
        "Requests: Food=5, Wood=6, Stone=7, Iron=8",
        "Smuggling: Yes",
    ]
    assert [index for index, _ in market.offers_for(0)] == [1]


def test_view_offers_when_empty():
    assert Market().view_offers(2) == "Trade offers for Player 2:\nNo trade offers."


def test_save_layout():
    market = Market()
    market.propose_trade(0, 1, (1, 2, 3, 4), (5, 6, 7, 8), True)
    assert _saved(market).splitlines() == [
        "# Market",
        "OfferCount: 1",
        "Offer0_Sender: 0",
        "Offer0_Recipient: 1",
        "Offer0_Food: 1",
        "Offer0_Wood: 2",
        "Offer0_Stone: 3",
        "Offer0_Iron: 4",
        "Offer0_RequestFood: 5",
        "Offer0_RequestWood: 6",
        "Offer0_RequestStone: 7",
        "Offer0_RequestIron: 8",
        "Offer0_Smuggling: 1",
        "",
    ]


def test_round_trip():
    market = Market()
    market.propose_trade(0, 1, (1, 2, 3, 4), (5, 6, 7, 8), True)
    market.propose_trade(1, 0, (9, 0, 0, 0), (0, 0, 0, 9), False)
    market.propose_trade(2, 3, (0, 1, 0, 1), (1, 0, 1, 0), False)
    market.offers[1].active = False
    restored = Market()
    restored.load(SaveReader(_saved(market)))
    assert restored.offers[0] == market.offers[0]
    assert restored.offers[2] == market.offers[2]
    assert restored.offers[1].active is False
    assert len(restored.offers) == len(market.offers)


def test_load_old_layout():
    market = Market()
    market.load(SaveReader("1\n0 1 1 2 3 4 5 6 7 8 0\n"))
    assert market.offers == [TradeOffer(0, 1, (1, 2, 3, 4), (5, 6, 7, 8), False, True)]


def test_load_rejects_bad_smuggling_flag():
    with pytest.raises(StrongholdError):
        Market().load(SaveReader("1\n0 1 1 2 3 4 5 6 7 8 2\n"))


def test_load_rejects_count_beyond_limit():
    with pytest.raises(StrongholdError):
        Market().load(SaveReader(f"OfferCount: {MAX_OFFERS + 1}\n"))