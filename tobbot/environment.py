"""
Theatre of Blood Environment Module

This module defines the TheatreEnv class, a custom Gymnasium environment
around the simulated encounter. Each step resolves one tick with a fixed
vocabulary of bot actions, which makes the raid usable for random play-throughs
and for training agents without the RuneLite client.
"""

import random
from typing import Any, Dict, List, Optional, Tuple

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from .constants import new_run_state
from .encounter import TickOutcome, resolve_tick, roll_mechanics
from .logging_utils import get_logger
from .models import BotAction, GameState, GearSet, Room, SpecialMechanics

logger = get_logger()


class Action(int):
    """Actions that can be performed in the Theatre environment."""

    ATTACK = 0
    EAT = 1
    PRAY = 2
    SWITCH_MELEE = 3
    SWITCH_RANGE = 4
    SWITCH_MAGE = 5
    DODGE = 6
    HIDE = 7
    SOLVE_MAZE = 8
    WAIT = 9


ACTIONS: List[BotAction] = [
    BotAction(action="ATTACK", target="Boss", reasoning="Deal damage"),
    BotAction(action="EAT", target="Self", itemToUse="Shark", reasoning="Heal"),
    BotAction(action="PRAY", target="Self", itemToUse="Super Restore", reasoning="Restore prayer"),
    BotAction(action="SWITCH_GEAR", target="Self", gearToSwitch=GearSet.MELEE, reasoning="Switch style"),
    BotAction(action="SWITCH_GEAR", target="Self", gearToSwitch=GearSet.RANGE, reasoning="Switch style"),
    BotAction(action="SWITCH_GEAR", target="Self", gearToSwitch=GearSet.MAGE, reasoning="Switch style"),
    BotAction(action="DODGE", target="Self", reasoning="Avoid hazard"),
    BotAction(action="HIDE", target="Self", reasoning="Avoid hazard"),
    BotAction(action="SOLVE_MAZE", target="Self", reasoning="Escape maze"),
    BotAction(action="WAIT", target="Self", reasoning="Do nothing"),
]

ROOMS = list(Room)
GEARS = list(GearSet)
OBSERVATION_SIZE = 2 + len(GEARS) + len(ROOMS) + 1 + 2 + len(GEARS)

ROOM_CLEARED_REWARD = 10.0
COMPLETE_REWARD = 50.0
WIPE_PENALTY = -10.0


def _one_hot(options: list, value: Any) -> List[float]:
    return [1.0 if option == value else 0.0 for option in options]


def state_to_observation(state: GameState, mechanics: SpecialMechanics) -> np.ndarray:
    """Flatten a game state and the tick's mechanics into an observation vector."""
    player = state.playerStats
    boss = state.bossStats
    features: List[float] = [
        player.health / max(1, player.maxHealth),
        player.prayer / max(1, player.maxPrayer),
    ]
    features += _one_hot(GEARS, player.currentGear)
    features += _one_hot(ROOMS, state.currentRoom)
    features.append(boss.health / boss.maxHealth if boss.maxHealth > 0 else 0.0)
    features.append(1.0 if mechanics.isBloatUp else 0.0)
    features.append(1.0 if mechanics.isXarpusStaring else 0.0)
    features += _one_hot(GEARS, mechanics.currentNyloStyle)
    return np.array(features, dtype=np.float32)


class TheatreEnv(gym.Env):
    """Custom Environment for running the bot through the simulated Theatre."""

    metadata = {"render_modes": []}

    def __init__(self, max_steps: int = 2000, debug: bool = False):
        """Initialize the Theatre environment.

        Args:
            max_steps: Steps after which an episode is truncated
            debug: Whether to log every tick
        """
        super().__init__()
        if max_steps <= 0:
            raise ValueError(f"max_steps must be positive, got {max_steps}")
        self.debug = debug
        self.max_steps = max_steps
        self.observation_space = spaces.Box(
            low=0.0, high=1.0, shape=(OBSERVATION_SIZE,), dtype=np.float32
        )
        self.action_space = spaces.Discrete(len(ACTIONS))

        self.rng = random.Random()
        self.state: GameState = new_run_state()
        self.mechanics = SpecialMechanics()
        self.timestep = 0
        self.rooms_cleared = 0

    def _observation(self) -> np.ndarray:
        return state_to_observation(self.state, self.mechanics)

    def _info(self) -> Dict[str, Any]:
        return {
            "timestep": self.timestep,
            "room": self.state.currentRoom.value,
            "health": self.state.playerStats.health,
            "prayer": self.state.playerStats.prayer,
            "boss_health": self.state.bossStats.health,
            "rooms_cleared": self.rooms_cleared,
        }

    def reset(
        self, *, seed: Optional[int] = None, options: Optional[Dict] = None
    ) -> Tuple[np.ndarray, Dict]:
        """Reset the environment to the start of a new run."""
        super().reset(seed=seed)
        if seed is not None:
            self.action_space.seed(seed)
        self.rng = random.Random(int(self.np_random.integers(2**32)))

        self.state = new_run_state()
        self.mechanics = roll_mechanics(self.state.currentRoom, self.rng)
        self.timestep = 0
        self.rooms_cleared = 0
        return self._observation(), self._info()

    def step(
        self, action: int
    ) -> Tuple[np.ndarray, float, bool, bool, Dict]:
        """Execute action and advance the encounter by one tick."""
        if not self.action_space.contains(action):
            logger.warning(f"Invalid action: {action}")
            action = Action.WAIT

        result = resolve_tick(self.state, ACTIONS[int(action)], self.mechanics, self.rng)
        if self.debug:
            for entry in result.logs:
                logger.debug(f"[{entry.source.value}] {entry.message}")

        self.state = result.state
        self.timestep += 1

        reward = result.damage_dealt / 100.0 - result.damage_taken / 10.0
        if result.outcome == TickOutcome.ROOM_CLEARED:
            self.rooms_cleared += 1
            reward += ROOM_CLEARED_REWARD
        elif result.outcome == TickOutcome.COMPLETE:
            self.rooms_cleared += 1
            reward += COMPLETE_REWARD
        elif result.outcome == TickOutcome.WIPED:
            reward += WIPE_PENALTY

        terminated = result.outcome in (TickOutcome.WIPED, TickOutcome.COMPLETE)
        truncated = not terminated and self.timestep >= self.max_steps
        self.mechanics = (
            SpecialMechanics() if terminated else roll_mechanics(self.state.currentRoom, self.rng)
        )

        info = self._info()
        info["outcome"] = result.outcome.value
        info["action"] = ACTIONS[int(action)].action
        return self._observation(), float(reward), terminated, truncated, info
