"""
Encounter simulation for the Theatre of Blood.

This module resolves one tick of the raid: it rolls the room's hazards,
checks the bot's reaction against them, applies the action's primary effect,
keeps the player's stats in range and advances through the room sequence
once the boss is dead.
"""

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from .constants import (
    PRAYER_DRAIN_PER_TICK,
    ROOM_SEQUENCE,
    boss_stats_for,
    initial_game_state,
)
from .models import BotAction, GameState, GearSet, LogEntry, LogSource, Room, SpecialMechanics


class TickOutcome(str, Enum):
    CONTINUE = "CONTINUE"
    ROOM_CLEARED = "ROOM_CLEARED"
    COMPLETE = "COMPLETE"
    WIPED = "WIPED"


@dataclass
class TickResult:
    """The state after a tick and everything that happened during it."""

    state: GameState
    logs: List[LogEntry] = field(default_factory=list)
    outcome: TickOutcome = TickOutcome.CONTINUE
    damage_taken: int = 0
    damage_dealt: int = 0


def roll_mechanics(room: Room, rng: Optional[random.Random] = None) -> SpecialMechanics:
    """Roll the hazard flags the bot is told about before it decides."""
    rng = rng or random.Random()
    mechanics = SpecialMechanics()
    if room == Room.BLOAT:
        mechanics.isBloatUp = rng.random() > 0.4
    elif room == Room.XARPUS:
        mechanics.isXarpusStaring = rng.random() > 0.5
    elif room == Room.NYLOCAS:
        mechanics.currentNyloStyle = rng.choice(list(GearSet))
    return mechanics


class _Tick:
    """Mutable working copy of a single tick."""

    def __init__(
        self,
        state: GameState,
        action: BotAction,
        mechanics: SpecialMechanics,
        rng: random.Random,
    ):
        self.state = state.model_copy(deep=True)
        self.action = action
        self.mechanics = mechanics
        self.rng = rng
        self.result = TickResult(state=self.state)

    @property
    def player(self):
        return self.state.playerStats

    @property
    def boss(self):
        return self.state.bossStats

    def log(self, message: str, source: LogSource = LogSource.SYSTEM) -> None:
        self.result.logs.append(LogEntry.create(message, source))

    def hit(self, damage: int) -> None:
        self.player.health -= damage
        self.result.damage_taken += damage

    def reacted(self, *expected: str) -> bool:
        return self.action.verb in expected

    def react(
        self,
        expected: tuple,
        success: str,
        damage: int,
        failure: str,
    ) -> None:
        """Apply an avoidable hazard: log success or take the damage."""
        if self.reacted(*expected):
            self.log(success, LogSource.BOT)
        else:
            self.hit(damage)
            self.log(failure.format(action=self.action.action, damage=damage), LogSource.ERROR)


# -----------------------------------------------------------------------------
# Room hazards
# -----------------------------------------------------------------------------
def _maiden(tick: _Tick) -> None:
    if tick.rng.random() < 0.3:
        tick.log("Maiden throws a blood splat!")
        tick.react(
            ("DODGE",),
            "Bot correctly reacted by dodging the blood splat.",
            15 + tick.rng.randrange(10),
            "Bot failed to react correctly ({action}), taking {damage} damage from the splat.",
        )


def _bloat(tick: _Tick) -> None:
    if tick.mechanics.isBloatUp:
        tick.log("Bloat is active and sending flies!")
        tick.react(
            ("HIDE", "DODGE"),
            "Bot correctly hides behind a pillar to avoid flies.",
            20 + tick.rng.randrange(5),
            "Bot failed to hide ({action}), taking {damage} damage.",
        )
    else:
        tick.log("Bloat is down! Time to attack!")


def _nylocas(tick: _Tick) -> None:
    style = tick.mechanics.currentNyloStyle
    tick.log(f"Nylocas are vulnerable to {style.value if style else 'NONE'} attacks.")
    damage = 5 + tick.rng.randrange(5)
    tick.hit(damage)
    tick.log(f"Nylocas deal chip damage of {damage}.")


def _sotetseg(tick: _Tick) -> None:
    if tick.rng.random() < 0.25:
        tick.log("Sotetseg fires a massive energy ball!")
        tick.react(
            ("DODGE",),
            "Bot correctly dodged the energy ball.",
            35 + tick.rng.randrange(10),
            "Bot failed to dodge ({action}), taking {damage} damage!",
        )
    if tick.boss.health < tick.boss.maxHealth * 0.66 and tick.rng.random() < 0.1:
        tick.log("Sotetseg teleports the player to a maze!")
        tick.react(
            ("SOLVE_MAZE",),
            "Bot correctly solves the maze!",
            25,
            "Bot failed the maze ({action}) and took damage!",
        )


def _xarpus(tick: _Tick) -> None:
    if tick.mechanics.isXarpusStaring:
        tick.log("Xarpus is staring intently... DO NOT ATTACK!")
    if tick.rng.random() < 0.3:
        tick.log("Xarpus spits a poison pool!")
        tick.react(
            ("DODGE",),
            "Bot correctly moved away from the poison.",
            10,
            "Bot stood in poison ({action}), taking {damage} damage.",
        )


def _verzik(tick: _Tick) -> None:
    if tick.boss.health < tick.boss.maxHealth * 0.35 and tick.rng.random() < 0.2:
        tick.log("Verzik summons purple tornados!")
        tick.react(
            ("DODGE",),
            "Bot correctly dodges the tornados.",
            25,
            "Bot was hit by a tornado ({action}) for {damage} damage!",
        )
    if tick.boss.health < tick.boss.maxHealth * 0.7 and tick.rng.random() < 0.15:
        tick.log("Verzik launches a green ball!")
        tick.hit(40)
        tick.log("The green ball explodes, dealing 40 damage! This is unavoidable.")


def _default(tick: _Tick) -> None:
    damage = tick.rng.randrange(5)
    if damage > 1:
        tick.hit(damage)
        tick.log(f"Boss hits you for {damage} chip damage!")


ROOM_HAZARDS: Dict[Room, Callable[[_Tick], None]] = {
    Room.MAIDEN: _maiden,
    Room.BLOAT: _bloat,
    Room.NYLOCAS: _nylocas,
    Room.SOTETSEG: _sotetseg,
    Room.XARPUS: _xarpus,
    Room.VERZIK: _verzik,
}


# -----------------------------------------------------------------------------
# Bot actions
# -----------------------------------------------------------------------------
def _attack(tick: _Tick) -> None:
    damage = tick.rng.randrange(30) + 10
    room = tick.state.currentRoom
    if room == Room.BLOAT and tick.mechanics.isBloatUp:
        tick.log("Bot incorrectly tried to attack while Bloat is active. Action fails.", LogSource.ERROR)
        return
    if room == Room.XARPUS and tick.mechanics.isXarpusStaring:
        reflected = 15 + tick.rng.randrange(5)
        tick.hit(reflected)
        tick.log(
            f"Bot incorrectly attacked during the stare and took {reflected} reflected damage!",
            LogSource.ERROR,
        )
        return
    if room == Room.NYLOCAS:
        if tick.player.currentGear != tick.mechanics.currentNyloStyle:
            damage = damage // 4
            tick.log(
                f"Damage reduced to {damage} due to wrong gear. Bot should have switched gear first.",
                LogSource.ERROR,
            )
        else:
            tick.log("Bot attacks with the correct style, dealing full damage.", LogSource.BOT)

    dealt = min(damage, tick.boss.health)
    tick.boss.health = max(0, tick.boss.health - damage)
    tick.result.damage_dealt += dealt
    tick.log(f"Bot attacks {tick.boss.name.value} for {damage} damage.", LogSource.BOT)


def _eat(tick: _Tick) -> None:
    item = tick.action.itemToUse
    heal = 16 if item and "brew" in item.lower() else 22
    tick.player.health = min(tick.player.maxHealth, tick.player.health + heal)
    tick.log(f"Bot eats a {item or 'Shark'}, healing to {tick.player.health} HP.", LogSource.BOT)


def _pray(tick: _Tick) -> None:
    item = tick.action.itemToUse
    restore = 25 if item and "restore" in item.lower() else 10
    tick.player.prayer = min(tick.player.maxPrayer, tick.player.prayer + restore)
    tick.log(
        f"Bot sips a {item or 'Prayer Potion'}, restoring prayer to {tick.player.prayer}.",
        LogSource.BOT,
    )


def _switch_gear(tick: _Tick) -> None:
    gear = tick.action.gearToSwitch
    if gear is None:
        tick.log("Bot attempted to switch gear but no valid gear was specified.", LogSource.ERROR)
        return
    tick.player.currentGear = gear
    tick.log(f"Bot is switching to {gear.value} gear.", LogSource.BOT)
    if tick.state.currentRoom == Room.NYLOCAS:
        weakness = tick.mechanics.currentNyloStyle
        if gear == weakness:
            tick.log("This is the correct gear for the current Nylocas spawn.", LogSource.BOT)
        else:
            tick.log(
                f"Bot switched to the wrong gear! Current weakness is {weakness.value if weakness else 'NONE'}.",
                LogSource.ERROR,
            )


def _other(tick: _Tick) -> None:
    tick.log(f"Bot is performing action: {tick.action.action}.", LogSource.BOT)


ACTION_EFFECTS: Dict[str, Callable[[_Tick], None]] = {
    "ATTACK": _attack,
    "EAT": _eat,
    "PRAY": _pray,
    "SWITCH_GEAR": _switch_gear,
}


# -----------------------------------------------------------------------------
# Tick resolution
# -----------------------------------------------------------------------------
def _clamp_player(tick: _Tick) -> None:
    player = tick.player
    player.health = max(0, min(player.maxHealth, player.health))
    player.prayer = max(0, min(player.maxPrayer, player.prayer))


def _wipe(tick: _Tick) -> TickResult:
    tick.log("WIPED! You have died.", LogSource.ERROR)
    tick.result.state = initial_game_state()
    tick.result.outcome = TickOutcome.WIPED
    return tick.result


def _advance_room(tick: _Tick) -> None:
    room = tick.state.currentRoom
    tick.log(f"{room.value} has been defeated!")
    next_room = ROOM_SEQUENCE[ROOM_SEQUENCE.index(room) + 1]
    if next_room == Room.COMPLETE:
        tick.log("Congratulations! Theatre of Blood completed!")
        tick.state.currentRoom = Room.COMPLETE
        tick.result.outcome = TickOutcome.COMPLETE
    else:
        tick.log(f"Moving to the next room: {next_room.value}.")
        tick.state.currentRoom = next_room
        tick.state.bossStats = boss_stats_for(next_room)
        tick.result.outcome = TickOutcome.ROOM_CLEARED


def resolve_tick(
    state: GameState,
    action: BotAction,
    mechanics: Optional[SpecialMechanics] = None,
    rng: Optional[random.Random] = None,
) -> TickResult:
    """Resolve one tick of the encounter.

    Args:
        state: The state at the start of the tick. It is not modified.
        action: The bot's decision for this tick.
        mechanics: The hazard flags rolled for this tick.
        rng: Source of randomness for hazards and damage rolls.

    Returns:
        TickResult: The next state, the tick's log entries and its outcome.
    """
    rng = rng or random.Random()
    tick = _Tick(state, action, mechanics or SpecialMechanics(), rng)

    ROOM_HAZARDS.get(tick.state.currentRoom, _default)(tick)
    tick.player.health = max(0, tick.player.health)
    if tick.player.health <= 0:
        return _wipe(tick)

    ACTION_EFFECTS.get(action.verb, _other)(tick)

    tick.player.prayer -= PRAYER_DRAIN_PER_TICK
    _clamp_player(tick)
    if tick.player.health <= 0:
        return _wipe(tick)

    if tick.state.is_fighting and tick.boss.health <= 0:
        _advance_room(tick)

    return tick.result
