import random

import pytest

from tobbot.constants import ROOM_SEQUENCE, new_run_state
from tobbot.encounter import TickOutcome, resolve_tick, roll_mechanics
from tobbot.models import BotAction, GearSet, LogSource, Room, SpecialMechanics
from tests.conftest import ScriptedRandom, action, state_in


def messages(result, source=None):
    return [e.message for e in result.logs if source is None or e.source == source]


# -----------------------------------------------------------------------------
# Mechanics
# -----------------------------------------------------------------------------
def test_bloat_is_up_above_threshold() -> None:
    assert roll_mechanics(Room.BLOAT, ScriptedRandom(randoms=[0.5])).isBloatUp is True
    assert roll_mechanics(Room.BLOAT, ScriptedRandom(randoms=[0.3])).isBloatUp is False


def test_xarpus_stares_above_threshold() -> None:
    assert roll_mechanics(Room.XARPUS, ScriptedRandom(randoms=[0.6])).isXarpusStaring is True
    assert roll_mechanics(Room.XARPUS, ScriptedRandom(randoms=[0.4])).isXarpusStaring is False


def test_nylocas_weakness_is_a_gear_set() -> None:
    rng = random.Random(7)
    styles = {roll_mechanics(Room.NYLOCAS, rng).currentNyloStyle for _ in range(50)}
    assert styles == set(GearSet)


@pytest.mark.parametrize("room", [Room.IDLE, Room.MAIDEN, Room.SOTETSEG, Room.VERZIK, Room.COMPLETE])
def test_other_rooms_roll_no_mechanics(room) -> None:
    assert roll_mechanics(room, ScriptedRandom(randoms=[0.99])) == SpecialMechanics()


# -----------------------------------------------------------------------------
# Hazards
# -----------------------------------------------------------------------------
def test_maiden_splat_hits_when_not_dodging() -> None:
    rng = ScriptedRandom(randoms=[0.1], ranges=[5])
    result = resolve_tick(state_in(Room.MAIDEN), action("WAIT"), SpecialMechanics(), rng)

    assert result.state.playerStats.health == 99 - 20
    assert result.damage_taken == 20
    assert "Bot failed to react correctly (WAIT), taking 20 damage from the splat." in messages(result, LogSource.ERROR)


def test_maiden_splat_dodged_case_insensitively() -> None:
    rng = ScriptedRandom(randoms=[0.1])
    result = resolve_tick(state_in(Room.MAIDEN), action("dodge"), SpecialMechanics(), rng)

    assert result.state.playerStats.health == 99
    assert "Bot correctly reacted by dodging the blood splat." in messages(result, LogSource.BOT)


def test_bloat_flies_and_attack_fails_while_up() -> None:
    rng = ScriptedRandom(ranges=[3, 0])
    result = resolve_tick(
        state_in(Room.BLOAT), action("ATTACK"), SpecialMechanics(isBloatUp=True), rng
    )

    assert result.state.playerStats.health == 99 - 23
    assert result.state.bossStats.health == 1000
    assert "Bot incorrectly tried to attack while Bloat is active. Action fails." in messages(result)


@pytest.mark.parametrize("verb", ["HIDE", "DODGE"])
def test_bloat_flies_avoided_by_hiding(verb) -> None:
    result = resolve_tick(
        state_in(Room.BLOAT), action(verb), SpecialMechanics(isBloatUp=True), ScriptedRandom()
    )
    assert result.state.playerStats.health == 99


def test_bloat_down_can_be_attacked() -> None:
    rng = ScriptedRandom(ranges=[20])
    result = resolve_tick(state_in(Room.BLOAT), action("ATTACK"), SpecialMechanics(), rng)

    assert "Bloat is down! Time to attack!" in messages(result)
    assert result.state.bossStats.health == 1000 - 30
    assert result.damage_dealt == 30


def test_nylocas_wrong_gear_quarters_damage() -> None:
    rng = ScriptedRandom(ranges=[2, 29])
    mechanics = SpecialMechanics(currentNyloStyle=GearSet.RANGE)
    result = resolve_tick(state_in(Room.NYLOCAS), action("ATTACK"), mechanics, rng)

    assert result.state.playerStats.health == 99 - 7
    assert result.state.bossStats.health == 1000 - 39 // 4
    assert "Damage reduced to 9 due to wrong gear. Bot should have switched gear first." in messages(result)


def test_nylocas_matching_gear_deals_full_damage() -> None:
    rng = ScriptedRandom(ranges=[0, 29])
    state = state_in(Room.NYLOCAS)
    state.playerStats.currentGear = GearSet.MAGE
    mechanics = SpecialMechanics(currentNyloStyle=GearSet.MAGE)
    result = resolve_tick(state, action("ATTACK"), mechanics, rng)

    assert result.state.bossStats.health == 1000 - 39
    assert "Bot attacks with the correct style, dealing full damage." in messages(result, LogSource.BOT)


def test_sotetseg_maze_only_below_two_thirds_health() -> None:
    full = resolve_tick(
        state_in(Room.SOTETSEG), action("WAIT"), SpecialMechanics(), ScriptedRandom(randoms=[0.9, 0.05])
    )
    assert full.state.playerStats.health == 99

    wounded = resolve_tick(
        state_in(Room.SOTETSEG, boss_health=600),
        action("WAIT"),
        SpecialMechanics(),
        ScriptedRandom(randoms=[0.9, 0.05]),
    )
    assert wounded.state.playerStats.health == 99 - 25
    assert "Sotetseg teleports the player to a maze!" in messages(wounded)


def test_sotetseg_maze_solved() -> None:
    result = resolve_tick(
        state_in(Room.SOTETSEG, boss_health=600),
        action("SOLVE_MAZE"),
        SpecialMechanics(),
        ScriptedRandom(randoms=[0.9, 0.05]),
    )
    assert result.state.playerStats.health == 99
    assert "Bot correctly solves the maze!" in messages(result, LogSource.BOT)


def test_sotetseg_energy_ball() -> None:
    result = resolve_tick(
        state_in(Room.SOTETSEG), action("ATTACK"), SpecialMechanics(), ScriptedRandom(randoms=[0.1], ranges=[9, 0])
    )
    assert result.state.playerStats.health == 99 - 44


def test_xarpus_stare_reflects_attack() -> None:
    rng = ScriptedRandom(ranges=[0, 4])
    result = resolve_tick(
        state_in(Room.XARPUS), action("ATTACK"), SpecialMechanics(isXarpusStaring=True), rng
    )

    assert result.state.playerStats.health == 99 - 19
    assert result.state.bossStats.health == 1000
    assert "Xarpus is staring intently... DO NOT ATTACK!" in messages(result)


def test_xarpus_poison_pool() -> None:
    result = resolve_tick(
        state_in(Room.XARPUS), action("WAIT"), SpecialMechanics(), ScriptedRandom(randoms=[0.2])
    )
    assert result.state.playerStats.health == 89


def test_verzik_green_ball_is_unavoidable() -> None:
    result = resolve_tick(
        state_in(Room.VERZIK, boss_health=1000),
        action("DODGE"),
        SpecialMechanics(),
        ScriptedRandom(randoms=[0.05]),
    )
    assert result.state.playerStats.health == 99 - 40
    assert "The green ball explodes, dealing 40 damage! This is unavoidable." in messages(result)


def test_verzik_tornados_below_a_third() -> None:
    hit = resolve_tick(
        state_in(Room.VERZIK, boss_health=500), action("WAIT"), SpecialMechanics(), ScriptedRandom(randoms=[0.1, 0.9])
    )
    assert hit.state.playerStats.health == 99 - 25

    dodged = resolve_tick(
        state_in(Room.VERZIK, boss_health=500), action("DODGE"), SpecialMechanics(), ScriptedRandom(randoms=[0.1, 0.9])
    )
    assert dodged.state.playerStats.health == 99


def test_verzik_at_full_health_is_quiet() -> None:
    result = resolve_tick(
        state_in(Room.VERZIK), action("WAIT"), SpecialMechanics(), ScriptedRandom(randoms=[0.0, 0.0])
    )
    assert result.state.playerStats.health == 99


@pytest.mark.parametrize("roll,damage", [(0, 0), (1, 0), (2, 2), (4, 4)])
def test_default_room_chip_damage(roll, damage) -> None:
    state = new_run_state()
    state.currentRoom = Room.IDLE
    result = resolve_tick(state, action("WAIT"), SpecialMechanics(), ScriptedRandom(ranges=[roll]))
    assert result.state.playerStats.health == 99 - damage


# -----------------------------------------------------------------------------
# Actions
# -----------------------------------------------------------------------------
@pytest.mark.parametrize("item,expected", [("Saradomin Brew", 66), ("Shark", 72), (None, 72)])
def test_eat_heals_by_item(item, expected) -> None:
    state = state_in(Room.MAIDEN, health=50)
    result = resolve_tick(state, action("EAT", itemToUse=item), SpecialMechanics(), ScriptedRandom())
    assert result.state.playerStats.health == expected


def test_eat_caps_at_max_health() -> None:
    state = state_in(Room.MAIDEN, health=90)
    result = resolve_tick(state, action("EAT"), SpecialMechanics(), ScriptedRandom())
    assert result.state.playerStats.health == 99
    assert "Bot eats a Shark, healing to 99 HP." in messages(result, LogSource.BOT)


@pytest.mark.parametrize("item,expected", [("Super Restore", 50 + 25 - 2), ("Prayer Potion", 50 + 10 - 2)])
def test_pray_restores_by_item(item, expected) -> None:
    state = state_in(Room.MAIDEN, prayer=50)
    result = resolve_tick(state, action("PRAY", itemToUse=item), SpecialMechanics(), ScriptedRandom())
    assert result.state.playerStats.prayer == expected


def test_prayer_drains_and_never_goes_negative() -> None:
    state = state_in(Room.MAIDEN, prayer=1)
    result = resolve_tick(state, action("WAIT"), SpecialMechanics(), ScriptedRandom())
    assert result.state.playerStats.prayer == 0


def test_switch_gear_in_nylocas_reports_match() -> None:
    mechanics = SpecialMechanics(currentNyloStyle=GearSet.RANGE)
    result = resolve_tick(
        state_in(Room.NYLOCAS), action("SWITCH_GEAR", gearToSwitch="range"), mechanics, ScriptedRandom()
    )
    assert result.state.playerStats.currentGear == GearSet.RANGE
    assert "This is the correct gear for the current Nylocas spawn." in messages(result, LogSource.BOT)


def test_switch_gear_wrong_style_is_flagged() -> None:
    mechanics = SpecialMechanics(currentNyloStyle=GearSet.RANGE)
    result = resolve_tick(
        state_in(Room.NYLOCAS), action("SWITCH_GEAR", gearToSwitch="MAGE"), mechanics, ScriptedRandom()
    )
    assert result.state.playerStats.currentGear == GearSet.MAGE
    assert "Bot switched to the wrong gear! Current weakness is RANGE." in messages(result, LogSource.ERROR)


def test_switch_gear_without_valid_gear() -> None:
    result = resolve_tick(
        state_in(Room.MAIDEN), action("SWITCH_GEAR", gearToSwitch="LASERS"), SpecialMechanics(), ScriptedRandom()
    )
    assert result.state.playerStats.currentGear == GearSet.MELEE
    assert "Bot attempted to switch gear but no valid gear was specified." in messages(result, LogSource.ERROR)


def test_unknown_action_is_logged() -> None:
    result = resolve_tick(state_in(Room.MAIDEN), action("Dance"), SpecialMechanics(), ScriptedRandom())
    assert "Bot is performing action: Dance." in messages(result, LogSource.BOT)


# -----------------------------------------------------------------------------
# Wipes and progression
# -----------------------------------------------------------------------------
def test_wipe_resets_to_idle() -> None:
    state = state_in(Room.MAIDEN, health=10)
    result = resolve_tick(state, action("ATTACK"), SpecialMechanics(), ScriptedRandom(randoms=[0.1], ranges=[0]))

    assert result.outcome == TickOutcome.WIPED
    assert result.state.currentRoom == Room.IDLE
    assert result.state.playerStats.health == 99
    assert result.logs[-1].message == "WIPED! You have died."


def test_reflected_damage_can_wipe() -> None:
    state = state_in(Room.XARPUS, health=15)
    result = resolve_tick(
        state, action("ATTACK"), SpecialMechanics(isXarpusStaring=True), ScriptedRandom(ranges=[0, 0])
    )
    assert result.outcome == TickOutcome.WIPED
    assert result.state.currentRoom == Room.IDLE


def test_killing_the_boss_moves_to_next_room() -> None:
    state = state_in(Room.MAIDEN, boss_health=5)
    result = resolve_tick(state, action("ATTACK"), SpecialMechanics(), ScriptedRandom(ranges=[0]))

    assert result.outcome == TickOutcome.ROOM_CLEARED
    assert result.state.currentRoom == Room.BLOAT
    assert result.state.bossStats.name == Room.BLOAT
    assert result.state.bossStats.health == result.state.bossStats.maxHealth == 1000
    assert result.damage_dealt == 5
    assert "Moving to the next room: The Pestilent Bloat." in messages(result)


def test_killing_verzik_completes_the_theatre() -> None:
    state = state_in(Room.VERZIK, boss_health=5)
    result = resolve_tick(state, action("ATTACK"), SpecialMechanics(), ScriptedRandom(ranges=[0]))

    assert result.outcome == TickOutcome.COMPLETE
    assert result.state.currentRoom == Room.COMPLETE
    assert "Congratulations! Theatre of Blood completed!" in messages(result)


def test_rooms_advance_in_fixed_order() -> None:
    state = state_in(Room.MAIDEN)
    visited = [state.currentRoom]
    while state.currentRoom != Room.COMPLETE:
        state.bossStats.health = 1
        state = resolve_tick(state, action("ATTACK"), SpecialMechanics(), ScriptedRandom()).state
        visited.append(state.currentRoom)

    assert visited == ROOM_SEQUENCE


def test_living_boss_keeps_the_room() -> None:
    result = resolve_tick(state_in(Room.MAIDEN), action("ATTACK"), SpecialMechanics(), ScriptedRandom())
    assert result.outcome == TickOutcome.CONTINUE
    assert result.state.currentRoom == Room.MAIDEN


@pytest.mark.parametrize("room", [Room.IDLE, Room.COMPLETE])
def test_non_fighting_rooms_never_advance(room) -> None:
    state = new_run_state()
    state.currentRoom = room
    state.bossStats.health = 0
    result = resolve_tick(state, action("ATTACK"), SpecialMechanics(), ScriptedRandom())
    assert result.state.currentRoom == room
    assert result.outcome == TickOutcome.CONTINUE


def test_input_state_is_not_mutated() -> None:
    state = state_in(Room.MAIDEN, boss_health=5)
    before = state.model_copy(deep=True)
    resolve_tick(state, action("ATTACK"), SpecialMechanics(), ScriptedRandom(randoms=[0.1], ranges=[5, 0]))
    assert state == before


@pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
def test_random_play_keeps_stats_in_range(seed) -> None:
    rng = random.Random(seed)
    verbs = ["ATTACK", "EAT", "PRAY", "SWITCH_GEAR", "DODGE", "HIDE", "SOLVE_MAZE", "WAIT"]
    state = new_run_state()
    for _ in range(300):
        bot_action = BotAction(
            action=rng.choice(verbs),
            target="Boss",
            reasoning="fuzz",
            gearToSwitch=rng.choice(list(GearSet)),
            itemToUse=rng.choice(["Saradomin Brew", "Super Restore", None]),
        )
        room_before = state.currentRoom
        result = resolve_tick(state, bot_action, roll_mechanics(state.currentRoom, rng), rng)
        state = result.state
        player = state.playerStats

        assert 0 <= player.health <= player.maxHealth
        assert 0 <= player.prayer <= player.maxPrayer
        if result.outcome == TickOutcome.WIPED:
            assert state.currentRoom == Room.IDLE
            state = new_run_state()
        elif state.currentRoom != room_before:
            assert result.outcome in (TickOutcome.ROOM_CLEARED, TickOutcome.COMPLETE)
            assert ROOM_SEQUENCE.index(state.currentRoom) == ROOM_SEQUENCE.index(room_before) + 1
        if state.currentRoom == Room.COMPLETE:
            state = new_run_state()
