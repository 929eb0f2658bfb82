from .maze import Position

PACMAN = 'pacman'
GHOST = 'ghost'

GHOST_COLORS = ['red', 'pink', 'cyan', 'orange']

PACMAN_SPAWN = Position(1, 1)
GHOST_SPAWNS = [
    Position(18, 1),
    Position(1, 17),
    Position(18, 17),
    Position(9, 9),
]
FALLBACK_GHOST_SPAWN = Position(9, 9)

# Speed is carried to clients but does not gate movement on the server
PACMAN_SPEED = 2
GHOST_SPEED = 1.8

# power-up type -> effect slot on the player
POWER_UP_SLOTS = {
    'speed_boost': 'speedBoost',
    'invincibility': 'invincibility',
    'pellet_multiplier': 'pelletMultiplier',
}


def spawn_position(role, spawn_slot=None):
    if role == PACMAN:
        return PACMAN_SPAWN
    if spawn_slot is not None and spawn_slot < len(GHOST_SPAWNS):
        return GHOST_SPAWNS[spawn_slot]
    return FALLBACK_GHOST_SPAWN


def ghost_color(spawn_slot):
    if spawn_slot < len(GHOST_COLORS):
        return GHOST_COLORS[spawn_slot]
    return None


def empty_power_ups():
    return {slot: None for slot in POWER_UP_SLOTS.values()}


class Player:
    def __init__(self, player_id, name, role, spawn_slot=None):
        self.id = player_id
        self.name = name
        self.role = role
        # Ghost join order within the room; fixes both color and spawn corner
        self.spawn_slot = spawn_slot
        self.ghost_color = ghost_color(spawn_slot) if role == GHOST else None
        self.speed = PACMAN_SPEED if role == PACMAN else GHOST_SPEED
        self.reset()

    def reset(self):
        """Put the player back at its spawn with no active effects"""
        self.position = spawn_position(self.role, self.spawn_slot)
        self.direction = 'right'
        self.power_ups = empty_power_ups()  # slot -> expiry (ms) or None
        self.is_alive = True

    def has_effect(self, slot, now_ms):
        expires_at = self.power_ups.get(slot)
        return expires_at is not None and expires_at > now_ms

    def to_dict(self):
        """Public view sent to clients"""
        return {
            'id': self.id,
            'name': self.name,
            'role': self.role,
            'ghostColor': self.ghost_color,
            'x': self.position.x,
            'y': self.position.y,
            'direction': self.direction,
        }
