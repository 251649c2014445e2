from .models import BossStats, GameState, GearSet, PlayerStats, Room

INITIAL_PLAYER_STATS = PlayerStats(
    health=99,
    maxHealth=99,
    prayer=99,
    maxPrayer=99,
    currentGear=GearSet.MELEE,
)

ROOM_SEQUENCE = [
    Room.MAIDEN,
    Room.BLOAT,
    Room.NYLOCAS,
    Room.SOTETSEG,
    Room.XARPUS,
    Room.VERZIK,
    Room.COMPLETE,
]

BOSS_MAX_HEALTH = {
    Room.IDLE: 0,
    Room.MAIDEN: 1000,
    Room.BLOAT: 1000,
    Room.NYLOCAS: 1000,
    Room.SOTETSEG: 1000,
    Room.XARPUS: 1000,
    Room.VERZIK: 1500,
    Room.COMPLETE: 0,
}

# Seconds
START_DELAY = 1.0
TICK_DELAY = 3.0

PRAYER_DRAIN_PER_TICK = 2


def boss_stats_for(room: Room) -> BossStats:
    """Fresh boss stats for the given room."""
    return BossStats(name=room, health=BOSS_MAX_HEALTH[room], maxHealth=BOSS_MAX_HEALTH[room])


def initial_game_state() -> GameState:
    """The idle state shown before a run starts and after a wipe."""
    return GameState(
        currentRoom=Room.IDLE,
        playerStats=INITIAL_PLAYER_STATS.model_copy(),
        bossStats=boss_stats_for(Room.IDLE),
    )


def new_run_state() -> GameState:
    """A fresh run standing in the first room with full stats."""
    first_room = ROOM_SEQUENCE[0]
    return GameState(
        currentRoom=first_room,
        playerStats=INITIAL_PLAYER_STATS.model_copy(),
        bossStats=boss_stats_for(first_room),
    )
