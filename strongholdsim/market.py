"""Trade offers between players, honest or smuggled."""

from __future__ import annotations

import random
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TextIO

from strongholdsim.diplomacy import Diplomacy
from strongholdsim.kingdom import (
    Player,
    SaveReader,
    StrongholdError,
    _read_tokens,
    _skip_blank,
    _skip_header,
    _to_int,
)

MAX_OFFERS = 10
SMUGGLING_DETECTION_CHANCE = 30

_FIELD = re.compile(r"Offer(\d+)_(\w+):(.*)")
_OFFER_KEYS = ("Food", "Wood", "Stone", "Iron")
_REQUEST_KEYS = ("RequestFood", "RequestWood", "RequestStone", "RequestIron")

_Bundle = tuple[int, int, int, int]


def _bundle(values: Iterable[int]) -> _Bundle:
    items = tuple(values)
    if len(items) != 4:
        raise StrongholdError("a bundle holds food, wood, stone and iron")
    return items  # type: ignore[return-value]


def _to_bool(text: str) -> bool:
    value = _to_int(text)
    if value not in (0, 1):
        raise StrongholdError(f"expected 0 or 1, got {text!r}")
    return bool(value)


@dataclass
class TradeOffer:
    """Resources one player offers another in exchange for others."""

    sender_id: int = -1
    recipient_id: int = -1
    offer: _Bundle = (0, 0, 0, 0)
    request: _Bundle = (0, 0, 0, 0)
    smuggling: bool = False
    active: bool = False


def _read_fields(reader: SaveReader) -> dict[int, dict[str, str]]:
    fields: dict[int, dict[str, str]] = {}
    while (line := reader.peek()) is not None and (match := _FIELD.fullmatch(line)):
        reader.readline()
        fields.setdefault(int(match[1]), {})[match[2]] = match[3].strip()
    return fields


def _checked_count(count: int) -> int:
    if not 0 <= count <= MAX_OFFERS:
        raise StrongholdError(f"offer count out of range: {count}")
    return count


def _format_bundle(values: _Bundle) -> str:
    food, wood, stone, iron = values
    return f"Food={food}, Wood={wood}, Stone={stone}, Iron={iron}"


class Market:
    """The board of trade offers; offers keep their index for acceptance."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self.offers: list[TradeOffer] = []
        self._rng = rng if rng is not None else random.Random()

    def propose_trade(
        self,
        sender_id: int,
        recipient_id: int,
        offer: Iterable[int],
        request: Iterable[int],
        smuggling: bool,
    ) -> str:
        """Post an offer of (food, wood, stone, iron) for a requested bundle."""
        error = "Cannot propose trade: invalid parameters or offer limit reached."
        try:
            offered, requested = _bundle(offer), _bundle(request)
        except StrongholdError:
            raise StrongholdError(error) from None
        if (
            len(self.offers) >= MAX_OFFERS
            or sender_id == recipient_id
            or min(offered + requested) < 0
        ):
            raise StrongholdError(error)
        self.offers.append(
            TradeOffer(sender_id, recipient_id, offered, requested, bool(smuggling), True)
        )
        return f"Trade proposed to Player {recipient_id}."

    def accept_trade(
        self, offer_index: int, players: Sequence[Player], diplomacy: Diplomacy
    ) -> str:
        """Carry out an offer; smuggled goods may be caught, costing both sides."""
        if not 0 <= offer_index < len(self.offers) or not self.offers[offer_index].active:
            raise StrongholdError("Invalid trade offer.")
        offer = self.offers[offer_index]
        sender = players[offer.sender_id]
        recipient = players[offer.recipient_id]
        if not (sender.resources.has(*offer.offer) and recipient.resources.has(*offer.request)):
            raise StrongholdError("Insufficient resources for trade.")

        if offer.smuggling and self._rng.randrange(100) < SMUGGLING_DETECTION_CHANCE:
            sender.resources.consume(*(amount // 2 for amount in offer.offer))
            recipient.resources.consume(*(amount // 2 for amount in offer.request))
            sender.leadership.reduce_approval(10)
            recipient.leadership.reduce_approval(10)
            diplomacy.break_treaty(offer.sender_id, offer.recipient_id)
            message = "Smuggling detected! Trade canceled, penalties applied."
        else:
            sender.resources.consume(*offer.offer)
            recipient.resources.gather(*offer.offer)
            recipient.resources.consume(*offer.request)
            sender.resources.gather(*offer.request)
            message = "Trade completed successfully."
        offer.active = False
        return message

    def offers_for(self, player_id: int) -> list[tuple[int, TradeOffer]]:
        """Active offers addressed to a player, with their indices."""
        return [
            (index, offer)
            for index, offer in enumerate(self.offers)
            if offer.active and offer.recipient_id == player_id
        ]

    def view_offers(self, player_id: int) -> str:
        lines = [f"Trade offers for Player {player_id}:"]
        for index, offer in self.offers_for(player_id):
            lines.append(f"Offer {index} from Player {offer.sender_id}:")
            lines.append(f"Offers: {_format_bundle(offer.offer)}")
            lines.append(f"Requests: {_format_bundle(offer.request)}")
            lines.append(f"Smuggling: {'Yes' if offer.smuggling else 'No'}")
        if len(lines) == 1:
            lines.append("No trade offers.")
        return "\n".join(lines)

    def save(self, out: TextIO) -> None:
        out.write("# Market\n")
        out.write(f"OfferCount: {len(self.offers)}\n")
        for index, offer in enumerate(self.offers):
            if not offer.active:
                continue
            out.write(f"Offer{index}_Sender: {offer.sender_id}\n")
            out.write(f"Offer{index}_Recipient: {offer.recipient_id}\n")
            for key, value in zip(_OFFER_KEYS + _REQUEST_KEYS, offer.offer + offer.request):
                out.write(f"Offer{index}_{key}: {value}\n")
            out.write(f"Offer{index}_Smuggling: {int(offer.smuggling)}\n")
        out.write("\n")

    def load(self, reader: SaveReader) -> None:
        """Read offers in the keyed layout or the older bare-value layout."""
        _skip_header(reader, "Market")
        first = reader.peek()
        if first is None:
            raise StrongholdError("missing Market data")
        if first.startswith("OfferCount:"):
            count = _checked_count(_to_int(reader.readline().partition(":")[2].strip()))
            offers = [TradeOffer() for _ in range(count)]
            for index, values in _read_fields(reader).items():
                if index >= count:
                    raise StrongholdError(f"offer {index} beyond count {count}")
                try:
                    offers[index] = TradeOffer(
                        _to_int(values["Sender"]),
                        _to_int(values["Recipient"]),
                        _bundle(_to_int(values[key]) for key in _OFFER_KEYS),
                        _bundle(_to_int(values[key]) for key in _REQUEST_KEYS),
                        _to_bool(values["Smuggling"]),
                        True,
                    )
                except KeyError as exc:
                    raise StrongholdError(f"offer {index} lacks {exc.args[0]}") from None
        else:
            (count_text,) = _read_tokens(reader, 1)
            count = _checked_count(_to_int(count_text))
            offers = []
            for _ in range(count):
                tokens = _read_tokens(reader, 11)
                numbers = [_to_int(token) for token in tokens[:10]]
                offers.append(
                    TradeOffer(
                        numbers[0],
                        numbers[1],
                        _bundle(numbers[2:6]),
                        _bundle(numbers[6:10]),
                        _to_bool(tokens[10]),
                        True,
                    )
                )
        _skip_blank(reader)
        self.offers = offers