"""
Data models for the Theatre of Blood bot.

This module defines Pydantic models for the encounter state, the bot's
decisions and the event log. Field names follow the camelCase wire format
shared with the decision service and the RuneLite plugin.
"""

import time
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, field_validator, model_validator


class Room(str, Enum):
    """Rooms of the Theatre, in raid order, plus the idle and finished states."""

    IDLE = "IDLE"
    MAIDEN = "The Maiden of Sugadinti"
    BLOAT = "The Pestilent Bloat"
    NYLOCAS = "Nylocas Vasilias"
    SOTETSEG = "Sotetseg"
    XARPUS = "Xarpus"
    VERZIK = "Verzik Vitur"
    COMPLETE = "Theatre Complete"


class GearSet(str, Enum):
    """Combat styles the player can switch between."""

    MELEE = "MELEE"
    RANGE = "RANGE"
    MAGE = "MAGE"


class RunMode(str, Enum):
    SIMULATION = "Simulation Mode"
    RUNELITE = "RuneLite Plugin Mode"


class LogSource(str, Enum):
    BOT = "BOT"
    SYSTEM = "SYSTEM"
    AI = "AI"
    ERROR = "ERROR"


class PlayerStats(BaseModel):
    """Player hitpoints, prayer and equipped gear."""

    health: int
    maxHealth: int
    prayer: int
    maxPrayer: int
    currentGear: GearSet = GearSet.MELEE

    @model_validator(mode="after")
    def _within_bounds(self) -> "PlayerStats":
        if not 0 <= self.health <= self.maxHealth:
            raise ValueError(f"health {self.health} outside 0..{self.maxHealth}")
        if not 0 <= self.prayer <= self.maxPrayer:
            raise ValueError(f"prayer {self.prayer} outside 0..{self.maxPrayer}")
        return self


class BossStats(BaseModel):
    """Health of the boss in the current room."""

    name: Room
    health: int
    maxHealth: int

    @property
    def health_percent(self) -> int:
        if self.maxHealth <= 0:
            return 0
        return round(self.health / self.maxHealth * 100)


class GameState(BaseModel):
    """Complete encounter snapshot."""

    currentRoom: Room
    playerStats: PlayerStats
    bossStats: BossStats

    @property
    def is_fighting(self) -> bool:
        return self.currentRoom not in (Room.IDLE, Room.COMPLETE)


class SpecialMechanics(BaseModel):
    """Hazard flags rolled at the start of a tick, before the bot decides."""

    isBloatUp: bool = False
    isXarpusStaring: bool = False
    currentNyloStyle: Optional[GearSet] = None

    @field_validator("currentNyloStyle", mode="before")
    @classmethod
    def _none_style(cls, value: Any) -> Any:
        if value == "NONE":
            return None
        return value

    def to_payload(self) -> dict:
        """Serialize with the literal "NONE" used by prompts and the plugin."""
        payload = self.model_dump(mode="json")
        payload["currentNyloStyle"] = self.currentNyloStyle.value if self.currentNyloStyle else "NONE"
        return payload


class BotAction(BaseModel):
    """A single decision returned by the decision service."""

    action: str
    target: str = ""
    reasoning: str = ""
    itemToUse: Optional[str] = None
    gearToSwitch: Optional[GearSet] = None

    @field_validator("gearToSwitch", mode="before")
    @classmethod
    def _unknown_gear(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().upper()
            if value not in GearSet.__members__:
                return None
        return value

    @property
    def verb(self) -> str:
        """The action compared case-insensitively against expected reactions."""
        return self.action.strip().upper()


class LogEntry(BaseModel):
    """A line of the event log."""

    timestamp: str
    message: str
    source: LogSource

    @classmethod
    def create(cls, message: str, source: LogSource) -> "LogEntry":
        return cls(timestamp=time.strftime("%X"), message=message, source=source)


FALLBACK_ACTION = BotAction(
    action="WAIT",
    target="Self",
    reasoning="AI decision system failed. Waiting for recovery.",
)
