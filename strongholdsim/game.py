"""The game session: players, turns, the menu and the save file."""

from __future__ import annotations

import argparse
import io
import random
import sys
from collections.abc import Callable
from pathlib import Path
from typing import TextIO

from strongholdsim.communication import Communication
from strongholdsim.conflict import BattleOutcome, Conflict
from strongholdsim.diplomacy import Diplomacy
from strongholdsim.events import EventSystem
from strongholdsim.kingdom import (
    Player,
    SaveReader,
    StrongholdError,
    _read_tokens,
    _to_int,
)
from strongholdsim.market import Market
from strongholdsim.worldmap import GameMap

MAX_PLAYERS = 4
MIN_PLAYERS = 2
SAVE_FILE = "save_game.txt"

BANNER = (
    "\n==============================================\n"
    "        WELCOME TO THE STRONGHOLD ENGINE       \n"
    "=============================================="
)

MENU = "\n".join(
    [
        "\n------------ Menu ------------",
        "1. View Society",
        "2. Update Population",
        "3. Manage Army",
        "4. Change Leadership",
        "5. Manage Bank",
        "6. Manage Resources",
        "7. Manage Economy",
        "8. Send Message",
        "9. View Messages",
        "10. Propose Treaty",
        "11. View Treaties",
        "12. Propose Trade",
        "13. View/Accept Trade Offers",
        "14. Declare War",
        "15. View Map",
        "16. Move on Map",
        "17. End Turn",
        "18. Quit Game",
        "------------------------------",
        "",
    ]
)

END_TURN = 17
QUIT = 18

_COMPONENTS = ("society", "population", "army", "leadership", "bank", "resources", "economy")


class Game:
    """A game session driven by a line-oriented text interface."""

    def __init__(
        self,
        *,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        save_path: str | Path = SAVE_FILE,
        rng: random.Random | None = None,
    ) -> None:
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.save_path = Path(save_path)
        self._rng = rng if rng is not None else random.Random()
        self.players: list[Player] = []
        self.communication = Communication()
        self.diplomacy = Diplomacy()
        self.market = Market(self._rng)
        self.conflict = Conflict(self._rng)
        self.map = GameMap(self._rng)
        self.events = EventSystem(self._rng)
        self.current_turn = 1
        self.ended = False
        self._actions: dict[int, Callable[[Player], None]] = {
            1: self._view_society,
            2: self._update_population,
            3: self._manage_army,
            4: self._change_leadership,
            5: self._manage_bank,
            6: self._manage_resources,
            7: self._manage_economy,
            8: self._send_message,
            9: self._view_messages,
            10: self._propose_treaty,
            11: self._view_treaties,
            12: self._propose_trade,
            13: self._accept_trade,
            14: self._declare_war,
            15: self._view_map,
            16: self._move_on_map,
        }

    # ----------------------------------------------------------------- I/O

    def _say(self, text: str) -> None:
        self.stdout.write(f"{text}\n")

    def _ask(self, prompt: str) -> str:
        self.stdout.write(prompt)
        self.stdout.flush()
        line = self.stdin.readline()
        if not line:
            raise EOFError("input ended")
        return line.rstrip("\r\n")

    def _ask_int(self, prompt: str) -> int:
        text = self._ask(prompt).strip()
        try:
            return int(text)
        except ValueError:
            raise StrongholdError(f"Invalid input: expected a whole number, got {text!r}.") from None

    def _ask_float(self, prompt: str) -> float:
        text = self._ask(prompt).strip()
        try:
            return float(text)
        except ValueError:
            raise StrongholdError(f"Invalid input: expected a number, got {text!r}.") from None

    def _ask_flag(self, prompt: str) -> bool:
        value = self._ask_int(prompt)
        if value not in (0, 1):
            raise StrongholdError("Invalid input: expected 1 or 0.")
        return bool(value)

    def _attempt(self, action: Callable[..., object], *args: object) -> None:
        try:
            result = action(*args)
        except StrongholdError as exc:
            self._say(str(exc))
        else:
            if isinstance(result, str):
                self._say(result)

    def _player_range(self) -> str:
        return f"(0-{len(self.players) - 1})"

    # ---------------------------------------------------------- lifecycle

    def initialize(self) -> None:
        """Ask for the players and place them on the map."""
        try:
            count = self._ask_int(f"Enter number of players ({MIN_PLAYERS}-{MAX_PLAYERS}): ")
        except StrongholdError:
            count = 0
        if not MIN_PLAYERS <= count <= MAX_PLAYERS:
            self._say("Invalid number of players. Defaulting to 2.")
            count = MIN_PLAYERS
        players = []
        for player_id in range(count):
            name = self._ask(f"Enter name for Player {player_id + 1}: ")
            players.append(Player(id=player_id, name=name))
        self.players = players
        self.map.initialize(count)

    def play_turn(self, player_id: int) -> None:
        """Run one player's turn until they end it or quit the game."""
        if not 0 <= player_id < len(self.players):
            raise StrongholdError(f"invalid player ID {player_id}")
        player = self.players[player_id]
        self._say(f"\n=== Turn {self.current_turn} - Player {player.name} ===")
        while not self.ended:
            self._say(MENU)
            try:
                text = self._ask("Choose an option: ").strip()
            except EOFError:
                self._quit()
                return
            choice = int(text) if text.lstrip("-").isdigit() else None
            if choice == END_TURN:
                self._say(f"Ending turn for Player {player.name}.")
                self.current_turn += 1
                return
            if choice == QUIT:
                self._quit()
                return
            handler = self._actions.get(choice) if choice is not None else None
            if handler is None:
                self._say("Invalid option. Try again.")
                continue
            try:
                handler(player)
            except StrongholdError as exc:
                self._say(str(exc))
            except EOFError:
                self._quit()
                return

    def _quit(self) -> None:
        self._say("Quitting game. Saving state...")
        self.save_game()
        self.ended = True

    def run(self) -> None:
        """Load or start a game and play rounds until someone quits."""
        self._say(BANNER)
        try:
            self.load_game()
            while not self.ended:
                for player in list(self.players):
                    self.play_turn(player.id)
                    if self.ended:
                        break
                    for treaty in self.diplomacy.update_treaties():
                        self._say(
                            f"Treaty expired between Player {treaty.player1_id} "
                            f"and Player {treaty.player2_id}."
                        )
                    _, _, report = self.events.random_event(
                        self.players, self.diplomacy, self.market
                    )
                    self._say(report)
        except EOFError:
            self.ended = True
        self._say("Game ended. Final state saved.")

    # -------------------------------------------------------------- saving

    def _write_state(self, out: TextIO) -> None:
        out.write("# Game State\n")
        out.write(f"NumPlayers: {len(self.players)}\n")
        out.write(f"CurrentTurn: {self.current_turn}\n\n")
        for player in self.players:
            out.write(f"# Player {player.id}\n")
            out.write(f"Name: {player.name}\n")
            for component in _COMPONENTS:
                getattr(player, component).save(out)
            out.write("\n")
        self.communication.save(out)
        self.diplomacy.save(out)
        self.market.save(out)
        self.map.save(out)

    def save_game(self) -> None:
        """Write the whole game to the save file."""
        buffer = io.StringIO()
        self._write_state(buffer)
        try:
            self.save_path.write_text(buffer.getvalue(), encoding="utf-8")
        except OSError:
            self._say("Error saving game.")
            return
        self._say("Game saved successfully.")

    def _read_header(self, reader: SaveReader) -> tuple[int, int, bool]:
        first = reader.peek()
        if first and "0" <= first[0] <= "9":
            count, turn = _read_tokens(reader, 2)
            return _to_int(count), _to_int(turn), True
        count, turn = 0, self.current_turn
        while not reader.at_end():
            line = reader.readline()
            if line.startswith("NumPlayers:"):
                count = _to_int(line.partition(":")[2].strip())
            elif line.startswith("CurrentTurn:"):
                turn = _to_int(line.partition(":")[2].strip())
                break
        return count, turn, False

    def _read_player(self, reader: SaveReader, player_id: int, old_format: bool) -> Player:
        player = Player(id=player_id)
        if old_format:
            player.name = reader.readline()
        else:
            while True:
                line = reader.readline()
                if line.startswith("Name:"):
                    player.name = line[6:]
                    break
        for component in _COMPONENTS:
            getattr(player, component).load(reader)
        return player

    def load_game(self) -> None:
        """Restore the game from the save file, or start a new one."""
        try:
            text = self.save_path.read_text(encoding="utf-8")
        except OSError:
            self._say("No save file found, starting a new game.")
            self.initialize()
            return
        reader = SaveReader(text)
        try:
            count, turn, old_format = self._read_header(reader)
            if not MIN_PLAYERS <= count <= MAX_PLAYERS:
                raise StrongholdError(f"player count out of range: {count}")
            players = [self._read_player(reader, i, old_format) for i in range(count)]
            communication = Communication()
            communication.load(reader)
            diplomacy = Diplomacy()
            diplomacy.load(reader)
            market = Market(self._rng)
            market.load(reader)
            game_map = GameMap(self._rng)
            game_map.load(reader)
        except StrongholdError:
            self._say("Invalid save data. Starting new game.")
            self.initialize()
            return
        self.players = players
        self.current_turn = turn
        self.communication = communication
        self.diplomacy = diplomacy
        self.market = market
        self.map = game_map
        self._say("Game loaded successfully.")

    # -------------------------------------------------------- menu actions

    def _view_society(self, player: Player) -> None:
        self._say(player.society.describe())

    def _update_population(self, player: Player) -> None:
        food = self._ask_int("Enter food supply (0-100): ")
        shelter = self._ask_int("Enter shelter level (0-100): ")
        war = self._ask_flag("Is there war? (1-Yes / 0-No): ")
        self._attempt(player.population.update, food, shelter, war)
        self._say(player.population.describe())

    def _manage_army(self, player: Player) -> None:
        recruits = self._ask_int("Enter number of recruits (0-100): ")
        rations = self._ask_int("Enter rations to feed (0-200): ")
        self._attempt(player.army.recruit, recruits, player.population)
        self._attempt(player.army.train)
        self._attempt(player.army.feed, rations)
        self._say(player.army.describe())

    def _change_leadership(self, player: Player) -> None:
        name = self._ask("Enter new leader name: ")
        policy = self._ask("Enter policy direction (e.g. Peace/War): ")
        self._attempt(player.leadership.elect_new_leader, name)
        self._attempt(player.leadership.change_policy, policy)
        self._say(player.leadership.describe())

    def _manage_bank(self, player: Player) -> None:
        loan = self._ask_float("Enter loan amount to take: ")
        repay = self._ask_float("Enter loan amount to repay: ")
        self._attempt(player.bank.take_loan, loan)
        self._attempt(player.bank.repay_loan, repay)
        self._say(player.bank.audit())
        self._say(player.bank.describe())

    def _manage_resources(self, player: Player) -> None:
        amounts = [
            self._ask_int(f"Enter {kind} to gather: ")
            for kind in ("food", "wood", "stone", "iron")
        ]
        self._attempt(player.resources.gather, *amounts)
        self._say(player.resources.describe())

    def _manage_economy(self, player: Player) -> None:
        expenditure = self._ask_float("Enter expenditure amount: ")
        self._attempt(player.economy.collect_taxes, player.population.total)
        self._attempt(player.economy.update_expenditure, expenditure)
        self._say(player.economy.audit())
        self._say(player.economy.describe())

    def _send_message(self, player: Player) -> None:
        recipient = self._ask_int(f"Enter recipient player ID {self._player_range()}: ")
        content = self._ask("Enter message: ")
        self._attempt(self.communication.send_message, player.id, recipient, content)

    def _view_messages(self, player: Player) -> None:
        self._say(self.communication.view_messages(player.id))

    def _propose_treaty(self, player: Player) -> None:
        other = self._ask_int(f"Enter other player ID {self._player_range()}: ")
        kind = self._ask("Enter treaty type (Alliance/Non-Aggression/Trade): ")
        duration = self._ask_int("Enter duration (turns): ")
        self._attempt(self.diplomacy.propose_treaty, player.id, other, kind, duration)

    def _view_treaties(self, player: Player) -> None:
        self._say(self.diplomacy.display_treaties(player.id))

    def _propose_trade(self, player: Player) -> None:
        recipient = self._ask_int(f"Enter recipient player ID {self._player_range()}: ")
        kinds = ("food", "wood", "stone", "iron")
        offer = [self._ask_int(f"Enter {kind} to offer: ") for kind in kinds]
        request = [self._ask_int(f"Enter {kind} requested: ") for kind in kinds]
        smuggling = self._ask_flag("Is this smuggling? (1-Yes / 0-No): ")
        if not 0 <= recipient < len(self.players):
            raise StrongholdError("Invalid player ID.")
        self._attempt(
            self.market.propose_trade, player.id, recipient, offer, request, smuggling
        )

    def _accept_trade(self, player: Player) -> None:
        self._say(self.market.view_offers(player.id))
        index = self._ask_int("Enter offer index to accept (-1 to skip): ")
        if index >= 0:
            self._attempt(self.market.accept_trade, index, self.players, self.diplomacy)

    def _declare_war(self, player: Player) -> None:
        defender = self._ask_int(f"Enter defender player ID {self._player_range()}: ")
        if defender != player.id and self.diplomacy.has_alliance(player.id, defender):
            self._say("Betrayal! Attacking an ally.")
            self._say(f"Treaty broken between Player {player.id} and Player {defender}.")
        outcome = self.conflict.declare_war(
            player.id, defender, self.players, self.diplomacy, self.map
        )
        self._say("War declared! Battle begins.")
        if outcome is BattleOutcome.ATTACKER_WINS:
            self._say(f"Player {player.id} wins the battle!")
        elif outcome is BattleOutcome.DEFENDER_WINS:
            self._say(f"Player {defender} wins the battle!")
        else:
            self._say("Battle is a draw.")

    def _view_map(self, player: Player) -> None:
        self._say(self.map.render(player.id))

    def _move_on_map(self, player: Player) -> None:
        new_x = self._ask_int("Enter new X coordinate (0-4): ")
        new_y = self._ask_int("Enter new Y coordinate (0-4): ")
        self._attempt(self.map.move_player, player.id, new_x, new_y)


def main(argv: list[str] | None = None) -> int:
    """Start the game from the command line."""
    parser = argparse.ArgumentParser(
        prog="strongholdsim", description="A turn-based kingdom strategy game."
    )
    parser.add_argument("--save", default=SAVE_FILE, help="path of the save file")
    args = parser.parse_args(argv)
    Game(save_path=args.save).run()
    return 0