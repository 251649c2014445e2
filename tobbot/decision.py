"""
Decision service for the Theatre of Blood bot.

The bot's "brain" is a hosted chat model. Each tick the current game state and
the rolled hazard flags are described in a prompt, and the model answers with
a single action through a forced function call. Any failure is replaced by a
static WAIT action.
"""

import json
import os
from typing import Any, Dict, Optional

from openai import OpenAI
from pydantic import ValidationError

from .logging_utils import get_logger
from .models import FALLBACK_ACTION, BotAction, GameState, SpecialMechanics

logger = get_logger()

DEFAULT_MODEL = "gpt-4o-mini"

SYSTEM_INSTRUCTION = (
    "You are a world-class Old School RuneScape player controlling a bot to complete "
    "the Theatre of Blood. Your response must be a single, optimal action in JSON format "
    "based on the game state provided, prioritizing survival and mechanics over damage."
)

BOT_ACTION_FUNCTION = {
    "name": "choose_bot_action",
    "description": "Choose the bot's next action in the Theatre of Blood",
    "parameters": {
        "type": "object",
        "properties": {
            "action": {
                "type": "string",
                "description": "The primary action to take (e.g., ATTACK, EAT, PRAY, DODGE, SWITCH_GEAR, HIDE, SOLVE_MAZE).",
            },
            "target": {
                "type": "string",
                "description": 'The target of the action (e.g., "Sotetseg", "Nylocas", "Self").',
            },
            "itemToUse": {
                "type": "string",
                "description": 'Optional: The item to use for the action (e.g., "Saradomin Brew", "Super Restore", "Dragon Claws").',
            },
            "gearToSwitch": {
                "type": "string",
                "description": "Optional: The gear set to switch to. Use when action is SWITCH_GEAR.",
                "enum": ["MELEE", "RANGE", "MAGE"],
            },
            "reasoning": {
                "type": "string",
                "description": "A brief explanation for why this action was chosen.",
            },
        },
        "required": ["action", "target", "reasoning"],
    },
}


def describe_threats(mechanics: SpecialMechanics) -> str:
    threats = ""
    if mechanics.isBloatUp:
        threats += "Bloat is currently active; you must HIDE. "
    if mechanics.isXarpusStaring:
        threats += "Xarpus is staring; DO NOT ATTACK. "
    if mechanics.currentNyloStyle is not None:
        threats += f"Nylocas are weak to {mechanics.currentNyloStyle.value}. SWITCH_GEAR if necessary. "
    return threats


def build_prompt(state: GameState, mechanics: SpecialMechanics) -> str:
    """Describe the current situation for the decision model."""
    player = state.playerStats
    boss = state.bossStats
    nylo_style = mechanics.to_payload()["currentNyloStyle"]
    return f"""
Current Location: Theatre of Blood - {state.currentRoom.value}.
Player Status: Health={player.health}/{player.maxHealth}, Prayer={player.prayer}/{player.maxPrayer}, Current Gear={player.currentGear.value}.
Boss Status: {boss.name.value} at {boss.health_percent}% health.
IMMEDIATE THREATS: {describe_threats(mechanics) or 'None'}

Analyze the situation and provide the next optimal action. React to immediate threats above all else.
Your action MUST be appropriate for the current mechanics.
- Maiden: Dodge blood splats.
- Bloat: HIDE when he is up, ATTACK when he is down.
- Nylocas: Use 'SWITCH_GEAR' to match their color ({nylo_style}).
- Sotetseg: DODGE the big red ball. SOLVE_MAZE if teleported.
- Xarpus: DODGE poison. DO NOT ATTACK while he is staring.
- Verzik: DODGE purple tornados.
""".strip()


class DecisionService:
    """Chooses the bot's next action with a hosted chat model."""

    def __init__(
        self,
        client: Optional[Any] = None,
        model: Optional[str] = None,
        temperature: float = 0.7,
    ):
        """Initialize the decision service.

        Args:
            client: An OpenAI client. One is created from the environment if omitted.
            model: The chat model to use. Defaults to TOBBOT_MODEL or gpt-4o-mini.
            temperature: Sampling temperature for the model.
        """
        if client is None:
            api_key = os.getenv("OPENAI_API_KEY")
            if not api_key:
                logger.warning(
                    "OPENAI_API_KEY environment variable not set. Using a placeholder. AI features will not work."
                )
            client = OpenAI(api_key=api_key or "MISSING_API_KEY")
        self.client = client
        self.model = model or os.getenv("TOBBOT_MODEL", DEFAULT_MODEL)
        self.temperature = temperature

    def _request(self, prompt: str) -> Dict[str, Any]:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_INSTRUCTION},
                {"role": "user", "content": prompt},
            ],
            tools=[{"type": "function", "function": BOT_ACTION_FUNCTION}],
            tool_choice={"type": "function", "function": {"name": BOT_ACTION_FUNCTION["name"]}},
            temperature=self.temperature,
        )
        tool_calls = response.choices[0].message.tool_calls
        if not tool_calls:
            raise ValueError("No function call in model response")
        return json.loads(tool_calls[0].function.arguments)

    def decide(self, state: GameState, mechanics: Optional[SpecialMechanics] = None) -> BotAction:
        """Ask the model for the next action.

        Args:
            state: The current game state.
            mechanics: Hazard flags rolled for this tick.

        Returns:
            BotAction: The model's action, or the WAIT fallback if the call fails.
        """
        prompt = build_prompt(state, mechanics or SpecialMechanics())
        logger.debug(f"Decision prompt:\n{prompt}")
        try:
            data = self._request(prompt)
            return BotAction.model_validate(data)
        except (ValidationError, ValueError) as e:
            logger.error(f"Invalid decision from model: {e}")
        except Exception as e:
            logger.error(f"Error calling decision model: {e}")
        return FALLBACK_ACTION.model_copy()
