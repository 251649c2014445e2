"""
RuneLite plugin bridge.

In RuneLite Plugin Mode the plugin is the bot's "body": it reports the live
game state over a WebSocket and executes whatever action comes back. This
module validates those reports, routes them through a session for a decision
and builds the reply.

Inbound::

    {"type": "game_state", "request_id": 7,
     "state": {"currentRoom": ..., "playerStats": {...}, "bossStats": {...}},
     "specialMechanics": {"isBloatUp": false, ...}}

Outbound::

    {"type": "bot_action", "request_id": 7, "action": {"action": "DODGE", ...}}
"""

from typing import Any, Dict, Optional

from jsonschema import ValidationError, validate
from pydantic import ValidationError as ModelValidationError

from .logging_utils import get_logger
from .models import GameState, GearSet, Room, RunMode, SpecialMechanics
from .session import BotSession
from .websocket_client import WebSocketClient

logger = get_logger()

_ROOMS = [room.value for room in Room]
_GEAR = [gear.value for gear in GearSet]

GAME_STATE_MESSAGE_SCHEMA = {
    "type": "object",
    "required": ["type", "state"],
    "properties": {
        "type": {"const": "game_state"},
        "request_id": {"type": ["integer", "string"]},
        "state": {
            "type": "object",
            "required": ["currentRoom", "playerStats", "bossStats"],
            "properties": {
                "currentRoom": {"enum": _ROOMS},
                "playerStats": {
                    "type": "object",
                    "required": ["health", "maxHealth", "prayer", "maxPrayer"],
                    "properties": {
                        "health": {"type": "integer", "minimum": 0},
                        "maxHealth": {"type": "integer", "minimum": 0},
                        "prayer": {"type": "integer", "minimum": 0},
                        "maxPrayer": {"type": "integer", "minimum": 0},
                        "currentGear": {"enum": _GEAR},
                    },
                },
                "bossStats": {
                    "type": "object",
                    "required": ["name", "health", "maxHealth"],
                    "properties": {
                        "name": {"enum": _ROOMS},
                        "health": {"type": "integer", "minimum": 0},
                        "maxHealth": {"type": "integer", "minimum": 0},
                    },
                },
            },
        },
        "specialMechanics": {
            "type": ["object", "null"],
            "properties": {
                "isBloatUp": {"type": "boolean"},
                "isXarpusStaring": {"type": "boolean"},
                "currentNyloStyle": {"enum": _GEAR + ["NONE", None]},
            },
        },
    },
}


class PluginBridge:
    """Answers game states from the RuneLite plugin with bot actions."""

    def __init__(self, session: BotSession, websocket_url: Optional[str] = None):
        if session.run_mode != RunMode.RUNELITE:
            session.set_mode(RunMode.RUNELITE)
        self.session = session
        self.websocket_url = websocket_url
        self.client: Optional[WebSocketClient] = None

    def handle_message(self, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Turn one plugin message into a reply, or None if it is dropped."""
        if data.get("type") != "game_state":
            logger.debug(f"Ignoring message type: {data.get('type', 'unknown')}")
            return None

        try:
            validate(instance=data, schema=GAME_STATE_MESSAGE_SCHEMA)
            state = GameState.model_validate(data["state"])
            mechanics = SpecialMechanics.model_validate(data.get("specialMechanics") or {})
        except ValidationError as e:
            logger.error(f"Invalid state received: {e.message}")
            return None
        except ModelValidationError as e:
            logger.error(f"Invalid state received: {e}")
            return None

        action = self.session.handle_plugin_state(state, mechanics)
        reply: Dict[str, Any] = {
            "type": "bot_action",
            "action": action.model_dump(mode="json", exclude_none=True),
        }
        if "request_id" in data:
            reply["request_id"] = data["request_id"]
        return reply

    def connect(self, timeout: float = 30.0) -> bool:
        """Open the plugin connection.

        Returns:
            bool: True if connected within the timeout
        """
        self.client = WebSocketClient(self.websocket_url, on_message=self.handle_message)
        logger.info(f"Waiting for the RuneLite plugin at {self.client.websocket_url}...")
        return self.client.wait_for_connection(timeout)

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            self.client = None
