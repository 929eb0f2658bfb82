import logging

from .maze import generate_maze, generate_pellets

logger = logging.getLogger(__name__)

POWER_UP_TYPES = ['speed_boost', 'invincibility', 'pellet_multiplier']


class PowerUp:
    def __init__(self, power_up_type, position, spawn_time):
        self.type = power_up_type
        self.position = position
        self.spawn_time = spawn_time

    def to_dict(self):
        return {
            'type': self.type,
            'position': {'x': self.position.x, 'y': self.position.y},
            'spawnTime': self.spawn_time,
        }


class GameState:
    """Authoritative state of one room's round"""

    def __init__(self):
        self.is_started = False
        self.is_game_over = False
        self.winner = None  # 'pacman', 'ghosts' or None
        self.score = 0
        self.maze = generate_maze()
        self.pellets = generate_pellets(self.maze)
        self.pellets_remaining = len(self.pellets)
        self.power_ups = {}  # position key -> PowerUp
        self.start_time = None
        logger.debug(f"Fresh game state with {self.pellets_remaining} pellets")

    @property
    def is_running(self):
        return self.is_started and not self.is_game_over

    def remove_pellet(self, key):
        """Take a pellet off the board; returns False if none was there"""
        if key not in self.pellets:
            return False
        self.pellets.discard(key)
        self.pellets_remaining = len(self.pellets)
        return True
