"""
Theatre of Blood Bot - Main Entry Point

This script provides a command-line interface for the Theatre of Blood bot.
It runs the bot against the simulated raid with a live dashboard, relays
decisions to the RuneLite plugin, or plays random actions in the gymnasium
environment.
"""

import argparse
import asyncio
import logging
import random
import time

from dotenv import load_dotenv
from rich.console import Console
from rich.live import Live

from .bridge import PluginBridge
from .decision import DecisionService
from .display import render_dashboard
from .environment import TheatreEnv
from .logging_utils import get_logger
from .models import RunMode
from .session import BotSession


def run_simulation(args, logger):
    """Run the bot through the simulated Theatre with a live dashboard."""
    decider = DecisionService(model=args.model)
    session = BotSession(
        decider,
        rng=random.Random(args.seed),
        tick_delay=args.tick_delay,
        start_delay=min(args.tick_delay, 1.0),
    )

    with Live(render_dashboard(session, args.log_limit), console=Console(), refresh_per_second=4) as live:
        session.on_change = lambda s: live.update(render_dashboard(s, args.log_limit))
        try:
            asyncio.run(session.run())
        except KeyboardInterrupt:
            session.stop(by_user=True)

    logger.info(f"Run finished in {session.state.currentRoom.value} ({session.status_text})")


def run_bridge(args, logger):
    """Serve bot decisions to the RuneLite plugin until interrupted."""
    decider = DecisionService(model=args.model)
    session = BotSession(decider)
    session.set_mode(RunMode.RUNELITE)
    bridge = PluginBridge(session, websocket_url=args.url)

    if not bridge.connect(timeout=args.timeout):
        logger.error("Failed to connect to the RuneLite plugin")
        logger.error("Is the RuneLite client running with the plugin enabled?")
        bridge.close()
        return

    with Live(render_dashboard(session, args.log_limit), console=Console(), refresh_per_second=4) as live:
        session.on_change = lambda s: live.update(render_dashboard(s, args.log_limit))
        try:
            while True:
                time.sleep(0.5)
        except KeyboardInterrupt:
            logger.info("Bridge interrupted by user")
        finally:
            bridge.close()


def random_actions(env, logger, steps=100, seed=None):
    """Execute random actions in the environment to test functionality.

    Args:
        env: The Theatre environment
        logger: The logger instance
        steps: Maximum number of steps to take
        seed: Optional seed for the environment and action sampling
    """
    logger.info("Executing random actions...")

    env.reset(seed=seed)
    total_reward = 0.0
    info = {}
    for i in range(1, steps + 1):
        action = env.action_space.sample()
        _, reward, terminated, truncated, info = env.step(action)
        total_reward += reward

        if i % 10 == 0 or terminated or truncated:
            logger.info(
                f"Step {i}: Action={info['action']}, Reward={reward:.2f}, "
                f"Room={info['room']}, HP={info['health']}"
            )

        if terminated or truncated:
            logger.info(f"Episode finished: {info['outcome']}")
            break

    logger.info(f"Random actions completed! Total reward: {total_reward:.2f}")
    return total_reward, info


def setup_arg_parser():
    """Create and configure the argument parser for the CLI."""

    parser = argparse.ArgumentParser(
        description="Theatre of Blood Bot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(
        dest="command", help="Command to execute", required=True)

    # Common arguments that apply to all subcommands
    common_args = {
        "--debug": {
            "action": "store_true",
            "help": "Enable debug logging"
        },
        "--verbose": {
            "action": "store_true",
            "help": "Enable verbose output"
        },
    }

    run_parser = subparsers.add_parser(
        "run", help="Run the bot through the simulated Theatre")
    for arg, kwargs in common_args.items():
        run_parser.add_argument(arg, **kwargs)
    run_parser.add_argument(
        "--tick-delay", type=float, default=3.0, help="Seconds between ticks")
    run_parser.add_argument(
        "--seed", type=int, default=None, help="Seed for the encounter's randomness")
    run_parser.add_argument(
        "--model", type=str, default=None, help="Chat model used for decisions")
    run_parser.add_argument(
        "--log-limit", type=int, default=20, help="Event log lines shown on screen")

    bridge_parser = subparsers.add_parser(
        "bridge", help="Serve decisions to the RuneLite plugin")
    for arg, kwargs in common_args.items():
        bridge_parser.add_argument(arg, **kwargs)
    bridge_parser.add_argument(
        "--url", type=str, default=None, help="WebSocket URL of the RuneLite plugin")
    bridge_parser.add_argument(
        "--timeout", type=float, default=30.0, help="Seconds to wait for the plugin")
    bridge_parser.add_argument(
        "--model", type=str, default=None, help="Chat model used for decisions")
    bridge_parser.add_argument(
        "--log-limit", type=int, default=20, help="Event log lines shown on screen")

    random_parser = subparsers.add_parser(
        "random", help="Execute random actions in the Theatre environment")
    for arg, kwargs in common_args.items():
        random_parser.add_argument(arg, **kwargs)
    random_parser.add_argument(
        "--steps", type=int, default=100, help="Number of random steps to take")
    random_parser.add_argument(
        "--seed", type=int, default=None, help="Seed for the environment")

    return parser


def main(argv=None):
    """Main entry point for the application."""
    load_dotenv()
    parser = setup_arg_parser()
    args = parser.parse_args(argv)
    logger = get_logger(debug=args.debug, verbose=args.verbose, logger_name="tobbot.cli")
    for name in list(logging.root.manager.loggerDict):
        if name.startswith("tobbot."):
            get_logger(debug=args.debug, verbose=args.verbose, logger_name=name)

    logger.info(f"Debug mode: {args.debug}")
    logger.info(f"Verbose logging: {args.verbose}")

    if args.command == "run":
        if args.tick_delay < 0:
            parser.error("--tick-delay must not be negative")
        logger.info("Starting simulation run")
        run_simulation(args, logger)
    elif args.command == "bridge":
        logger.info("Starting RuneLite plugin bridge")
        run_bridge(args, logger)
    elif args.command == "random":
        logger.info("Running random actions")
        env = TheatreEnv(debug=args.debug)
        random_actions(env, logger, steps=args.steps, seed=args.seed)
        env.close()
    else:
        logger.error(f"Unknown command: {args.command}")


if __name__ == "__main__":
    main()
