# strongholdsim

A turn-based kingdom strategy game for two to four players sharing one
terminal. Each player rules a kingdom with its own society, population,
army, leadership, bank, resources and economy, and deals with the other
kingdoms through messages, treaties, trade and war on a 5x5 map.

## Installing

```
pip install .
```

## Playing

```
strongholdsim
strongholdsim --save path/to/my_save.txt
```

The game reads its save file (`save_game.txt` in the current directory
unless `--save` names another) and resumes from it. If there is no save
file, or it cannot be read, the game asks for the number of players (2-4;
anything else falls back to 2) and their names, then places each kingdom
on a random free square of the map.

Each turn the current player picks from a menu:

1. View society
2. Update population (food supply 0-100, shelter 0-100, war yes/no)
3. Manage the army (recruit from the population, train ten soldiers for
   50 army food, feed rations)
4. Change leader and policy
5. Take and repay a loan
6. Gather food, wood, stone and iron
7. Collect taxes from the population and add expenditure
8. Send a message to another player
9. Read your messages
10. Propose a treaty: `Alliance`, `Non-Aggression` or `Trade`, for a
    number of turns
11. View your treaties
12. Propose a trade of resources, openly or by smuggling
13. View the offers made to you and accept one by its index
14. Declare war on a neighbouring kingdom
15. View the map (`P` marks your squares, `.` neutral ones)
16. Move one square on the map onto a free square
17. End the turn
18. Save and quit

At most ten messages, ten treaties and ten trade offers exist at a time.

After each turn every treaty counts down one turn (expiring at zero), and
a random event strikes a random kingdom: famine (200 food lost), drought
(100 food lost), a call to arms (50 people recruited), a rebellion
(population hit by hunger and war), a trade dispute (the kingdom's offers
are listed) or a diplomatic crisis (its treaty with the next player is
broken).

War is only possible against a kingdom on an orthogonally adjacent
square. Battles weigh soldiers, trained soldiers (counted twice) and
morale against chance; the winner may seize a random square of the map
and the loser gives up 100 food, 50 wood, 50 stone and 20 iron if it has
them. Attacking an ally costs 20 approval and 15 morale and breaks the
alliance.

A smuggled trade is caught three times in ten. Then the trade is
cancelled, each side loses half of what it put into the deal, both
leaders lose 10 approval and a treaty between the two is broken.

Choosing option 18, or reaching the end of input during a turn, writes
the whole game to the save file. Save files in the older layout of bare
values, without `Key:` labels, are read as well.

## Using the pieces directly

The game is built from plain classes that can be driven from Python.
Actions return a short message and raise
`strongholdsim.kingdom.StrongholdError` when they are not allowed.

- `strongholdsim.kingdom`: `Society`, `Population`, `Army`, `Leadership`,
  `Bank`, `Resources`, `Economy`, `Player`, and `SaveReader` for reading
  save data
- `strongholdsim.communication`: `Communication`, `Message`
- `strongholdsim.diplomacy`: `Diplomacy`, `Treaty`, `TreatyType`
- `strongholdsim.market`: `Market`, `TradeOffer`
- `strongholdsim.worldmap`: `GameMap`
- `strongholdsim.conflict`: `Conflict`, `BattleOutcome`
- `strongholdsim.events`: `EventSystem`, `EventKind`
- `strongholdsim.game`: `Game` (takes `stdin`, `stdout`, `save_path` and
  a `random.Random`) and `main`

```python
import io
import random
from strongholdsim.game import Game

game = Game(stdin=io.StringIO("2\nAda\nBo\n"), stdout=io.StringIO(),
            save_path="demo_save.txt", rng=random.Random(1))
game.initialize()
print([p.name for p in game.players])
```

## What it does not do

There are no computer-controlled opponents and no network play: all
players take turns at the same terminal.

## Running the tests

```
pip install .[test]
pytest
```