"""
Shared pytest fixtures for the Theatre of Blood bot tests.

This module provides:
- A scripted RNG for deterministic hazard and damage rolls
- Game states positioned in any room
- A fake decider standing in for the decision service
"""

import os
import random
import tempfile

os.environ.setdefault("TOBBOT_LOG_DIR", tempfile.mkdtemp(prefix="tobbot-logs-"))

import pytest  # noqa: E402

from tobbot.constants import boss_stats_for, new_run_state  # noqa: E402
from tobbot.models import BotAction, GameState, Room  # noqa: E402


class ScriptedRandom(random.Random):
    """Random source that replays queued values.

    ``random()`` pops from ``randoms`` and defaults to 0.99, which is above
    every hazard threshold in a tick but rolls Bloat up and Xarpus staring.
    ``randrange()`` pops from ``ranges`` and defaults to 0, the smallest
    damage roll.
    """

    def __init__(self, randoms=(), ranges=()):
        super().__init__(0)
        self.randoms = list(randoms)
        self.ranges = list(ranges)

    def random(self):
        return self.randoms.pop(0) if self.randoms else 0.99

    def randrange(self, *args, **kwargs):
        return self.ranges.pop(0) if self.ranges else 0


class FakeDecider:
    """Returns scripted actions and records what it was asked."""

    def __init__(self, *actions):
        self.actions = list(actions) or [BotAction(action="WAIT", target="Self", reasoning="test")]
        self.calls = []

    def decide(self, state, mechanics=None):
        self.calls.append((state, mechanics))
        if len(self.actions) > 1:
            return self.actions.pop(0)
        return self.actions[0]


def action(verb, **kwargs):
    kwargs.setdefault("target", "Boss")
    kwargs.setdefault("reasoning", "test")
    return BotAction(action=verb, **kwargs)


def state_in(room: Room, boss_health=None, health=None, prayer=None) -> GameState:
    state = new_run_state()
    state.currentRoom = room
    state.bossStats = boss_stats_for(room)
    if boss_health is not None:
        state.bossStats.health = boss_health
    if health is not None:
        state.playerStats.health = health
    if prayer is not None:
        state.playerStats.prayer = prayer
    return state


@pytest.fixture
def quiet_rng():
    """RNG under which no chance-based hazard fires and damage rolls are minimal."""
    return ScriptedRandom()


@pytest.fixture
def fake_decider():
    return FakeDecider()
