from __future__ import annotations

GRID_WIDTH = 13
GRID_HEIGHT = 11
GHOST_COUNT = 3
ROUND_SECONDS = 60

# Fixed so every round plays the same maze.
MAZE_SEED = 133742069
BRAID_PROBABILITY = 0.15
DOOR_FRACTION = 0.18

GHOST_MOVE_MIN_MS = 220
GHOST_MOVE_JITTER_MS = 180
GHOST_INITIAL_COOLDOWN_MS = 300
GHOST_MIN_SPAWN_DISTANCE = 4
GHOST_SPAWN_MAX_ATTEMPTS = 1000

TIMEOUT_GRACE_SECONDS = 1.2
MAX_FRAME_MS = 100

MSG_WON = "You made it home!"
MSG_CAUGHT = "A ghost caught you!"
MSG_TIMEOUT = "Time up. The ghosts caught you."
MSG_DOOR_OPENED = "Door opened"
MSG_NO_DOOR = "No door found"
