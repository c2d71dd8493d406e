"""A single kingdom's state: society, population, army, leadership, bank, resources and economy.

Each component can describe itself, act on its own state, and write or read
its part of a save file. Invalid actions raise :class:`StrongholdError`.
Successful actions return a short message for the player.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TextIO


class StrongholdError(Exception):
    """An action or a save file that the game cannot accept."""


class SaveReader:
    """Line-oriented reader over save data that can look one line ahead."""

    def __init__(self, source: str | Iterable[str]) -> None:
        if isinstance(source, str):
            self._lines = source.splitlines()
        else:
            self._lines = [line.rstrip("\r\n") for line in source]
        self._index = 0

    def peek(self) -> str | None:
        """Return the next line without consuming it, or None at the end."""
        if self._index < len(self._lines):
            return self._lines[self._index]
        return None

    def readline(self) -> str:
        """Consume and return the next line."""
        if self._index >= len(self._lines):
            raise StrongholdError("unexpected end of save data")
        line = self._lines[self._index]
        self._index += 1
        return line

    def at_end(self) -> bool:
        """True once every line has been consumed."""
        return self._index >= len(self._lines)


def _fmt(value: float) -> str:
    return f"{value:g}"


def _to_int(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        raise StrongholdError(f"expected an integer, got {text!r}") from None


def _to_float(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        raise StrongholdError(f"expected a number, got {text!r}") from None


def _write_record(out: TextIO, header: str, pairs: Iterable[tuple[str, object]]) -> None:
    out.write(f"# {header}\n")
    for key, value in pairs:
        text = _fmt(value) if isinstance(value, float) else str(value)
        out.write(f"{key}: {text}\n")


def _skip_blank(reader: SaveReader) -> None:
    while (line := reader.peek()) is not None and not line.strip():
        reader.readline()


def _skip_header(reader: SaveReader, header: str) -> None:
    _skip_blank(reader)
    line = reader.peek()
    if line is not None and line.strip() == f"# {header}":
        reader.readline()
    _skip_blank(reader)


def _read_tokens(reader: SaveReader, count: int) -> list[str]:
    tokens: list[str] = []
    while len(tokens) < count:
        tokens.extend(reader.readline().split())
    return tokens[:count]


def _read_keyed(reader: SaveReader, keys: Iterable[str]) -> list[str]:
    values = []
    for key in keys:
        _skip_blank(reader)
        line = reader.readline()
        prefix = f"{key}:"
        if not line.startswith(prefix):
            raise StrongholdError(f"expected {prefix!r}, got {line!r}")
        values.append(line[len(prefix):].strip())
    return values


def _read_record(reader: SaveReader, header: str, keys: list[str]) -> list[str]:
    """Read a keyed record, or the older layout of bare whitespace-separated values."""
    _skip_header(reader, header)
    first = reader.peek()
    if first is None:
        raise StrongholdError(f"missing {header} data")
    if first.startswith(f"{keys[0]}:"):
        return _read_keyed(reader, keys)
    return _read_tokens(reader, len(keys))


@dataclass
class Society:
    """The social classes of a kingdom."""

    peasants: int = 100
    merchants: int = 50
    nobles: int = 10

    def describe(self) -> str:
        return "\n".join(
            [
                "Society Stats: ",
                f"Peasants: {self.peasants}",
                f"Merchants: {self.merchants}",
                f"Nobles: {self.nobles}",
            ]
        )

    def manage_conflict(self) -> str | None:
        """Return a warning about class tension, or None when society is calm."""
        if self.peasants > 120:
            return "Revolt in society! Peasants demand more rights."
        if self.nobles > 15:
            return "Noble class is growing, increasing tensions."
        return None

    def adjust_class(self, peasants: int, merchants: int, nobles: int) -> None:
        self.peasants = max(0, self.peasants + peasants)
        self.merchants = max(0, self.merchants + merchants)
        self.nobles = max(0, self.nobles + nobles)

    def save(self, out: TextIO) -> None:
        _write_record(
            out,
            "Society",
            [("Peasants", self.peasants), ("Merchants", self.merchants), ("Nobles", self.nobles)],
        )

    def load(self, reader: SaveReader) -> None:
        peasants, merchants, nobles = _read_record(
            reader, "Society", ["Peasants", "Merchants", "Nobles"]
        )
        self.peasants = max(0, _to_int(peasants))
        self.merchants = max(0, _to_int(merchants))
        self.nobles = max(0, _to_int(nobles))


@dataclass
class Population:
    """Head count, the sick and the rebellious."""

    total: int = 200
    sick: int = 0
    rebels: int = 0

    def update(self, food_supply: int, shelter: int, war: bool) -> None:
        """Advance the population given food supply and shelter (both 0-100)."""
        if not (0 <= food_supply <= 100 and 0 <= shelter <= 100):
            raise StrongholdError("Invalid food supply or shelter value.")
        if food_supply < 50:
            self.sick += 10
        if war:
            self.total -= 20
        if self.sick > 10:
            self.rebels += 5
        self.total = max(0, self.total - self.sick)
        self.sick = max(0, self.sick)
        self.rebels = max(0, self.rebels)

    def describe(self) -> str:
        return "\n".join(
            [
                f"Total Population: {self.total}",
                f"Sick Population: {self.sick}",
                f"Rebels: {self.rebels}",
            ]
        )

    def save(self, out: TextIO) -> None:
        _write_record(
            out, "Population", [("Total", self.total), ("Sick", self.sick), ("Rebels", self.rebels)]
        )

    def load(self, reader: SaveReader) -> None:
        total, sick, rebels = _read_record(reader, "Population", ["Total", "Sick", "Rebels"])
        self.total = max(0, _to_int(total))
        self.sick = max(0, _to_int(sick))
        self.rebels = max(0, _to_int(rebels))


@dataclass
class Army:
    """Soldiers, their training, morale and rations."""

    soldiers: int = 100
    trained: int = 0
    morale: int = 100
    food: int = 200

    def recruit(self, people: int, population: Population) -> str:
        """Move people from the population into the army."""
        if people < 0:
            raise StrongholdError("Cannot recruit negative people.")
        if population.total < people:
            raise StrongholdError("Not enough population to recruit.")
        self.soldiers += people
        population.total = max(0, population.total - people)
        return f"{people} soldiers recruited."

    def train(self) -> str:
        """Train ten soldiers at the cost of 50 food."""
        if self.food < 50:
            raise StrongholdError("Not enough food to train soldiers.")
        self.trained += 10
        self.food -= 50
        return f"Training 10 soldiers. {self.food} food remaining."

    def feed(self, rations: int) -> str:
        if not 0 <= rations <= self.food:
            raise StrongholdError("Invalid or insufficient food to feed soldiers.")
        self.food -= rations
        return f"Fed {rations} rations to the army."

    def reduce_soldiers(self, amount: int) -> None:
        self.soldiers = max(0, self.soldiers - amount)

    def reduce_morale(self, amount: int) -> None:
        self.morale = max(0, self.morale - amount)

    def describe(self) -> str:
        return "\n".join(
            [
                f"Army Size: {self.soldiers}",
                f"Trained Soldiers: {self.trained}",
                f"Morale: {self.morale}",
                f"Food: {self.food}",
            ]
        )

    def save(self, out: TextIO) -> None:
        _write_record(
            out,
            "Army",
            [
                ("Soldiers", self.soldiers),
                ("Trained", self.trained),
                ("Morale", self.morale),
                ("Food", self.food),
            ],
        )

    def load(self, reader: SaveReader) -> None:
        soldiers, trained, morale, food = _read_record(
            reader, "Army", ["Soldiers", "Trained", "Morale", "Food"]
        )
        self.soldiers = max(0, _to_int(soldiers))
        self.trained = max(0, _to_int(trained))
        self.morale = max(0, _to_int(morale))
        self.food = max(0, _to_int(food))


@dataclass
class Leadership:
    """The ruler, the ruling policy and the people's approval."""

    leader: str = "King"
    policy: str = "Peace"
    approval: int = 100

    def elect_new_leader(self, name: str) -> str:
        if not name:
            raise StrongholdError("Invalid leader name.")
        self.leader = name
        return f"New leader elected: {self.leader}"

    def change_policy(self, policy: str) -> str:
        if not policy:
            raise StrongholdError("Invalid policy.")
        self.policy = policy
        return f"New policy: {self.policy}"

    def reduce_approval(self, amount: int) -> None:
        self.approval = max(0, self.approval - amount)

    def describe(self) -> str:
        return "\n".join(
            [
                f"Current Leader: {self.leader}",
                f"Policy: {self.policy}",
                f"Approval: {self.approval}",
            ]
        )

    def save(self, out: TextIO) -> None:
        _write_record(
            out,
            "Leadership",
            [("Leader", self.leader), ("Policy", self.policy), ("Approval", self.approval)],
        )

    def load(self, reader: SaveReader) -> None:
        _skip_header(reader, "Leadership")
        first = reader.peek()
        if first is None:
            raise StrongholdError("missing Leadership data")
        if first.startswith("Leader:"):
            leader, policy, approval = _read_keyed(reader, ["Leader", "Policy", "Approval"])
        else:
            leader = reader.readline()
            policy = reader.readline()
            (approval,) = _read_tokens(reader, 1)
        self.leader = leader
        self.policy = policy
        self.approval = max(0, _to_int(approval))


@dataclass
class Bank:
    """The treasury and the kingdom's debt."""

    treasury: float = 5000.0
    loan_debt: float = 1000.0
    interest_rate: float = 0.05

    def take_loan(self, amount: float) -> str:
        if amount <= 0:
            raise StrongholdError("Invalid loan amount.")
        self.loan_debt += amount
        self.treasury += amount
        return f"Loan taken: {_fmt(amount)}. Current debt: {_fmt(self.loan_debt)}."

    def repay_loan(self, amount: float) -> str:
        if not (0 < amount <= self.loan_debt and amount <= self.treasury):
            raise StrongholdError("Invalid repayment amount or insufficient funds.")
        self.loan_debt -= amount
        self.treasury -= amount
        return f"Loan repaid: {_fmt(amount)}. Remaining debt: {_fmt(self.loan_debt)}."

    def add_treasury(self, amount: float) -> None:
        self.treasury += amount

    def reduce_treasury(self, amount: float) -> None:
        self.treasury = max(0.0, self.treasury - amount)

    def audit(self) -> str:
        return "\n".join(
            [
                "Audit report: ",
                f"Treasury: {_fmt(self.treasury)}",
                f"Loan Debt: {_fmt(self.loan_debt)}",
                f"Interest Rate: {_fmt(self.interest_rate)}",
            ]
        )

    def describe(self) -> str:
        return "\n".join(
            [
                f"Bank Treasury: {_fmt(self.treasury)}",
                f"Loan Debt: {_fmt(self.loan_debt)}",
            ]
        )

    def save(self, out: TextIO) -> None:
        _write_record(
            out,
            "Bank",
            [
                ("Treasury", float(self.treasury)),
                ("LoanDebt", float(self.loan_debt)),
                ("InterestRate", float(self.interest_rate)),
            ],
        )

    def load(self, reader: SaveReader) -> None:
        treasury, debt, rate = _read_record(reader, "Bank", ["Treasury", "LoanDebt", "InterestRate"])
        self.treasury = max(0.0, _to_float(treasury))
        self.loan_debt = max(0.0, _to_float(debt))
        self.interest_rate = max(0.0, _to_float(rate))


@dataclass
class Resources:
    """Stockpiles of food, wood, stone and iron."""

    food: int = 1000
    wood: int = 500
    stone: int = 300
    iron: int = 200

    def gather(self, food: int, wood: int, stone: int, iron: int) -> str:
        if min(food, wood, stone, iron) < 0:
            raise StrongholdError("Invalid resource amounts.")
        self.food += food
        self.wood += wood
        self.stone += stone
        self.iron += iron
        return f"Resources gathered: Food: {food}, Wood: {wood}, Stone: {stone}, Iron: {iron}"

    def consume(self, food: int, wood: int, stone: int, iron: int) -> str:
        if min(food, wood, stone, iron) < 0 or not self.has(food, wood, stone, iron):
            raise StrongholdError("Invalid or insufficient resources.")
        self.food -= food
        self.wood -= wood
        self.stone -= stone
        self.iron -= iron
        return f"Resources consumed: Food: {food}, Wood: {wood}, Stone: {stone}, Iron: {iron}"

    def has(self, food: int, wood: int, stone: int, iron: int) -> bool:
        return self.food >= food and self.wood >= wood and self.stone >= stone and self.iron >= iron

    def describe(self) -> str:
        return "\n".join(
            [
                f"Food: {self.food}",
                f"Wood: {self.wood}",
                f"Stone: {self.stone}",
                f"Iron: {self.iron}",
            ]
        )

    def save(self, out: TextIO) -> None:
        _write_record(
            out,
            "Resources",
            [("Food", self.food), ("Wood", self.wood), ("Stone", self.stone), ("Iron", self.iron)],
        )

    def load(self, reader: SaveReader) -> None:
        food, wood, stone, iron = _read_record(
            reader, "Resources", ["Food", "Wood", "Stone", "Iron"]
        )
        self.food = max(0, _to_int(food))
        self.wood = max(0, _to_int(wood))
        self.stone = max(0, _to_int(stone))
        self.iron = max(0, _to_int(iron))


@dataclass
class Economy:
    """Income, spending and the tax rate."""

    income: float = 1000.0
    expenditure: float = 500.0
    tax_rate: float = 0.1

    def collect_taxes(self, population: int) -> str:
        if population < 0:
            raise StrongholdError("Invalid population for tax collection.")
        taxes = population * self.tax_rate
        self.income += taxes
        return f"Taxes collected: {_fmt(taxes)}. Total income: {_fmt(self.income)}."

    def update_expenditure(self, amount: float) -> str:
        if amount < 0:
            raise StrongholdError("Invalid expenditure amount.")
        self.expenditure += amount
        return f"Expenditure updated. New total: {_fmt(self.expenditure)}."

    def audit(self) -> str:
        return "\n".join(
            [
                "Economic Audit Report: ",
                f"Total Income: {_fmt(self.income)}",
                f"Total Expenditure: {_fmt(self.expenditure)}",
                f"Net Wealth: {_fmt(self.income - self.expenditure)}",
            ]
        )

    def describe(self) -> str:
        return "\n".join(
            [
                f"Income: {_fmt(self.income)}",
                f"Expenditure: {_fmt(self.expenditure)}",
                f"Tax Rate: {_fmt(self.tax_rate * 100)}%",
            ]
        )

    def save(self, out: TextIO) -> None:
        _write_record(
            out,
            "Economy",
            [
                ("Income", float(self.income)),
                ("Expenditure", float(self.expenditure)),
                ("TaxRate", float(self.tax_rate)),
            ],
        )

    def load(self, reader: SaveReader) -> None:
        income, expenditure, rate = _read_record(
            reader, "Economy", ["Income", "Expenditure", "TaxRate"]
        )
        self.income = max(0.0, _to_float(income))
        self.expenditure = max(0.0, _to_float(expenditure))
        self.tax_rate = max(0.0, _to_float(rate))


@dataclass
class Player:
    """A player and every part of the kingdom they rule."""

    id: int = -1
    name: str = ""
    society: Society = field(default_factory=Society)
    population: Population = field(default_factory=Population)
    army: Army = field(default_factory=Army)
    leadership: Leadership = field(default_factory=Leadership)
    bank: Bank = field(default_factory=Bank)
    resources: Resources = field(default_factory=Resources)
    economy: Economy = field(default_factory=Economy)