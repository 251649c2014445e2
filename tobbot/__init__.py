"""
Theatre of Blood Bot

This package contains the components for running a decision-model driven bot
through a simulated Theatre of Blood raid, and for relaying its decisions to
the RuneLite plugin.
"""

from .models import (
    BossStats,
    BotAction,
    GameState,
    GearSet,
    LogEntry,
    LogSource,
    PlayerStats,
    Room,
    RunMode,
    SpecialMechanics,
)
from .encounter import TickOutcome, TickResult, resolve_tick, roll_mechanics
from .decision import DecisionService
from .session import BotSession
from .environment import TheatreEnv, Action
from .bridge import PluginBridge
from .websocket_client import WebSocketClient

__all__ = [
    "BossStats",
    "BotAction",
    "GameState",
    "GearSet",
    "LogEntry",
    "LogSource",
    "PlayerStats",
    "Room",
    "RunMode",
    "SpecialMechanics",
    "TickOutcome",
    "TickResult",
    "resolve_tick",
    "roll_mechanics",
    "DecisionService",
    "BotSession",
    "TheatreEnv",
    "Action",
    "PluginBridge",
    "WebSocketClient",
]
