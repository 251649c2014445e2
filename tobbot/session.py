"""
Bot session for the Theatre of Blood bot.

A session owns the current game state and the event log, and drives the
decide-then-resolve loop: every tick it rolls the room's hazards, asks the
decision service for an action, resolves the tick and waits before the next
one. In RuneLite Plugin Mode the loop is idle and game states arrive from the
plugin instead.
"""

import asyncio
import random
from typing import Callable, List, Optional, Protocol

from .constants import START_DELAY, TICK_DELAY, initial_game_state, new_run_state
from .encounter import TickOutcome, TickResult, resolve_tick, roll_mechanics
from .logging_utils import get_logger
from .models import BotAction, GameState, LogEntry, LogSource, Room, RunMode, SpecialMechanics

logger = get_logger()


class Decider(Protocol):
    def decide(self, state: GameState, mechanics: Optional[SpecialMechanics] = None) -> BotAction:
        ...


class BotSession:
    """Runs the bot against the simulated encounter."""

    def __init__(
        self,
        decider: Decider,
        rng: Optional[random.Random] = None,
        tick_delay: float = TICK_DELAY,
        start_delay: float = START_DELAY,
        run_mode: RunMode = RunMode.SIMULATION,
        on_change: Optional[Callable[["BotSession"], None]] = None,
    ):
        """Initialize the session.

        Args:
            decider: Chooses the bot's action each tick.
            rng: Source of randomness for the encounter.
            tick_delay: Seconds between ticks.
            start_delay: Seconds before the first tick.
            run_mode: Initial run mode.
            on_change: Called whenever the state, log or flags change.
        """
        self.decider = decider
        self.rng = rng or random.Random()
        self.tick_delay = tick_delay
        self.start_delay = start_delay
        self.run_mode = run_mode
        self.on_change = on_change

        self.state: GameState = initial_game_state()
        self.logs: List[LogEntry] = []
        self.is_running = False
        self.is_loading = False
        self._stopped = asyncio.Event()

    # -------------------------------------------------------------------------
    # Event log
    # -------------------------------------------------------------------------
    def add_log(self, message: str, source: LogSource) -> LogEntry:
        return self._append(LogEntry.create(message, source))

    def _append(self, entry: LogEntry) -> LogEntry:
        self.logs.append(entry)
        logger.debug(f"[{entry.source.value}] {entry.message}")
        self._changed()
        return entry

    def clear_logs(self) -> None:
        self.logs = []
        self._changed()

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self)

    # -------------------------------------------------------------------------
    # Controls
    # -------------------------------------------------------------------------
    @property
    def status_text(self) -> str:
        if self.is_loading:
            return "THINKING..."
        if self.is_running:
            return "ACTIVE"
        if self.state.currentRoom == Room.COMPLETE:
            return "COMPLETED"
        return "IDLE"

    @property
    def can_start(self) -> bool:
        return (
            not self.is_running
            and self.state.currentRoom != Room.COMPLETE
            and self.run_mode != RunMode.RUNELITE
        )

    def start_new_run(self) -> GameState:
        self.state = new_run_state()
        self.clear_logs()
        self.add_log(
            f"Starting new Theatre of Blood run. First room: {self.state.currentRoom.value}.",
            LogSource.SYSTEM,
        )
        return self.state

    def start(self) -> bool:
        """Start or resume the bot.

        Returns:
            bool: True if the bot is now running.
        """
        if self.run_mode == RunMode.RUNELITE:
            self.add_log(
                "Cannot start from UI in RuneLite mode. The RuneLite plugin must initiate actions.",
                LogSource.ERROR,
            )
            return False

        self.is_running = True
        self._stopped.clear()
        if self.state.currentRoom in (Room.IDLE, Room.COMPLETE):
            self.start_new_run()
        else:
            self.add_log("Resuming bot...", LogSource.SYSTEM)
        return True

    def stop(self, by_user: bool = False) -> None:
        self.is_running = False
        self._stopped.set()
        self.add_log("Bot stopped by user." if by_user else "Bot stopped.", LogSource.SYSTEM)
        self.is_loading = False
        self._changed()

    def set_mode(self, mode: RunMode) -> None:
        """Switch run mode, discarding the current run and log."""
        self.stop()
        self.run_mode = mode
        self.state = initial_game_state()
        self.clear_logs()
        self.add_log(f"Switched to {mode.value}.", LogSource.SYSTEM)
        if mode == RunMode.RUNELITE:
            self.add_log(
                "This application is now ready to receive game state from an external RuneLite plugin.",
                LogSource.SYSTEM,
            )

    # -------------------------------------------------------------------------
    # Simulation loop
    # -------------------------------------------------------------------------
    async def tick(self) -> Optional[TickResult]:
        """Run one decision-action-resolution cycle."""
        if not self.is_running:
            return None

        current = self.state
        self.is_loading = True
        self.add_log(f"Analyzing situation in {current.currentRoom.value}...", LogSource.AI)

        mechanics = roll_mechanics(current.currentRoom, self.rng)
        action = await asyncio.to_thread(self.decider.decide, current, mechanics)
        self._log_decision(action)

        result = resolve_tick(current, action, mechanics, self.rng)
        for entry in result.logs:
            self._append(entry)
        self.state = result.state
        if result.outcome in (TickOutcome.WIPED, TickOutcome.COMPLETE):
            self.is_running = False
            self._stopped.set()

        self.is_loading = False
        self._changed()
        return result

    async def _wait(self, delay: float) -> None:
        try:
            await asyncio.wait_for(self._stopped.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    async def run(self) -> None:
        """Start the bot and tick until it stops, wipes or completes the raid."""
        self._stopped = asyncio.Event()
        if not self.start():
            return
        await self._wait(self.start_delay)
        while self.is_running:
            await self.tick()
            if not self.is_running or self.state.currentRoom == Room.COMPLETE:
                break
            await self._wait(self.tick_delay)

    # -------------------------------------------------------------------------
    # RuneLite plugin mode
    # -------------------------------------------------------------------------
    def handle_plugin_state(
        self, state: GameState, mechanics: Optional[SpecialMechanics] = None
    ) -> BotAction:
        """Adopt a game state sent by the RuneLite plugin and decide the reply.

        The decision call blocks until the model answers.
        """
        if self.run_mode != RunMode.RUNELITE:
            raise RuntimeError("Plugin game state received outside RuneLite Plugin Mode")

        self.state = state
        self.is_loading = True
        self.add_log(f"Analyzing situation in {state.currentRoom.value}...", LogSource.AI)
        action = self.decider.decide(state, mechanics)
        self._log_decision(action)
        self.is_loading = False
        self._changed()
        return action

    def _log_decision(self, action: BotAction) -> None:
        self.add_log(
            f"Decision: {action.action} on {action.target}. Reason: {action.reasoning}",
            LogSource.AI,
        )
