"""
Terminal rendering for the Theatre of Blood bot.

Builds rich renderables for the game screen, the event log and the control
panel, and lays them out as a single dashboard for ``rich.live.Live``.
"""

from typing import Sequence

from rich.console import Group
from rich.layout import Layout
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from .models import GameState, LogEntry, LogSource, Room, RunMode
from .session import BotSession

LOG_COLORS = {
    LogSource.BOT: "green",
    LogSource.AI: "magenta",
    LogSource.SYSTEM: "cyan",
    LogSource.ERROR: "red",
}

STATUS_COLORS = {
    "THINKING...": "magenta",
    "ACTIVE": "green",
    "COMPLETED": "yellow",
    "IDLE": "grey50",
}


def stat_bar(label: str, value: int, max_value: int, color: str) -> Table:
    """A labelled bar such as hitpoints or prayer."""
    table = Table.grid(expand=True)
    table.add_column(ratio=1)
    table.add_column(justify="right")
    table.add_row(Text(label, style="yellow"), Text(f"{value}/{max_value}"))
    table.add_row(
        ProgressBar(total=max(max_value, 1), completed=max(value, 0), complete_style=color),
        "",
    )
    return table


def render_game_screen(state: GameState, run_mode: RunMode, is_running: bool) -> Panel:
    player = state.playerStats
    boss = state.bossStats
    parts = []

    if state.is_fighting:
        parts.append(Text(f"Boss: {boss.name.value}", style="bold yellow", justify="center"))
        parts.append(stat_bar(f"{boss.health_percent}%", boss.health, boss.maxHealth, "red"))
    else:
        parts.append(Text("Awaiting Commands", style="bold yellow", justify="center"))
        if state.currentRoom == Room.COMPLETE:
            parts.append(Text("Theatre Complete", style="yellow", justify="center"))
        else:
            parts.append(Text("BOT OFFLINE", style="grey50", justify="center"))

    if run_mode == RunMode.RUNELITE and not is_running:
        parts.append(
            Panel(
                Text.assemble(
                    ("RuneLite Mode Active\n", "bold magenta"),
                    ("Waiting for connection from the RuneLite plugin...\n", ""),
                    (
                        "The plugin will send game state updates here, and this app will return the bot's next action.",
                        "grey50",
                    ),
                    justify="center",
                ),
                border_style="magenta",
            )
        )

    parts.append(Text(""))
    parts.append(stat_bar("Hitpoints", player.health, player.maxHealth, "red"))
    parts.append(stat_bar("Prayer", player.prayer, player.maxPrayer, "blue"))
    parts.append(Text(f"Gear: {player.currentGear.value}", style="white"))
    return Panel(Group(*parts), title="Theatre of Blood", border_style="grey50")


def format_log_entry(entry: LogEntry) -> Text:
    return Text.assemble(
        (f"{entry.timestamp} ", "grey50"),
        (f"[{entry.source.value}] ", LOG_COLORS.get(entry.source, "white")),
        (entry.message, "white"),
    )


def render_log(logs: Sequence[LogEntry], limit: int = 20) -> Panel:
    """The event log, newest entries at the bottom."""
    lines = [format_log_entry(entry) for entry in list(logs)[-limit:]] if limit > 0 else []
    return Panel(Group(*lines), title="EVENT LOG", border_style="grey50")


def render_control_panel(session: BotSession) -> Panel:
    status = session.status_text
    table = Table.grid(padding=(0, 1))
    table.add_column(style="grey50")
    table.add_column()
    table.add_row("STATUS:", Text(status, style=STATUS_COLORS.get(status, "white")))
    table.add_row("ROOM:", session.state.currentRoom.value)
    table.add_row("MODE:", session.run_mode.value)

    if session.is_running:
        controls = "Ctrl+C to STOP BOT"
    elif session.can_start:
        controls = "START BOT" if session.state.currentRoom == Room.IDLE else "RESUME BOT"
    else:
        controls = "Waiting for the RuneLite plugin" if session.run_mode == RunMode.RUNELITE else ""
    return Panel(
        Group(table, Text(controls, style="yellow")),
        title="TOB BOT v1.0",
        border_style="grey50",
    )


def render_dashboard(session: BotSession, log_limit: int = 20) -> Layout:
    layout = Layout()
    layout.split_row(
        Layout(name="screen", ratio=2),
        Layout(name="side", ratio=1),
    )
    layout["side"].split_column(
        Layout(render_log(session.logs, limit=log_limit), name="log", ratio=2),
        Layout(render_control_panel(session), name="controls", ratio=1),
    )
    layout["screen"].update(render_game_screen(session.state, session.run_mode, session.is_running))
    return layout
