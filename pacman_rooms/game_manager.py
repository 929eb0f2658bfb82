import logging
import random
import time

from .game_state import GameState, PowerUp, POWER_UP_TYPES
from .maze import (
    DIRECTION_OFFSETS, is_walkable, parse_position_key, path_positions, position_key, step,
)
from .messages import (
    ClientGameState, GameOver, GameRestarted, GameStarted, JoinFailed, JoinSuccess,
    PelletCollected, PlayerJoined, PlayerLeft, PlayerMoved, PowerUpCollected,
    PowerUpSpawned,
)
from .player import GHOST, PACMAN, POWER_UP_SLOTS, Player, spawn_position
from .timers import RepeatingTimer

MAX_PLAYERS = 5
MIN_PLAYERS_TO_START = 2
PELLET_POINTS = 10
GHOST_EATEN_POINTS = 200


def now_ms(clock):
    return int(clock() * 1000)


class GameManager:
    """Authoritative game for a single room.

    Handles join/move/start/restart/leave for the room's players and emits
    every resulting event to the room through the transport. Callers are
    expected to serialize calls (the RoomManager holds one lock for this).
    """

    def __init__(self, transport, room_id, lock, power_up_interval=30.0,
                 power_up_duration=10.0, clock=time.time, rng=None):
        self.logger = logging.getLogger(__name__)
        self.transport = transport
        self.room_id = room_id
        self.lock = lock
        self.power_up_interval = power_up_interval
        self.power_up_duration = power_up_duration
        self.clock = clock
        self.rng = rng or random.Random()
        self.players = {}  # connection id -> Player, in join order
        self.power_up_timer = None
        self.ghosts_joined = 0
        self.state = GameState()

    # Queries used by the registry

    @property
    def player_count(self):
        return len(self.players)

    @property
    def is_started(self):
        return self.state.is_started

    @property
    def is_game_over(self):
        return self.state.is_game_over

    def can_start(self):
        return len(self.players) >= MIN_PLAYERS_TO_START and not self.state.is_started

    def get_pacman(self):
        for player in self.players.values():
            if player.role == PACMAN:
                return player
        return None

    def rejection_reason(self, sid):
        """Why `sid` cannot join right now, or None if it can (or is already in)"""
        if sid in self.players:
            return None
        if len(self.players) >= MAX_PLAYERS:
            return 'Game is full'
        if self.state.is_started:
            return 'Game already started'
        return None

    # Player actions

    def join(self, sid, name):
        """Add a player to the room; returns True when the player is in the room"""
        if sid in self.players:
            self.logger.info(f"[JOIN] {sid} already in {self.room_id}, ignoring duplicate join")
            return True

        reason = self.rejection_reason(sid)
        if reason is not None:
            self.logger.info(f"[JOIN] {name} rejected from {self.room_id}: {reason}")
            self.transport.send(sid, JoinFailed(reason=reason))
            return False

        if not self.players:
            player = Player(sid, name, PACMAN)
        else:
            # Slots are never handed back, so a leaving ghost keeps its color retired
            player = Player(sid, name, GHOST, spawn_slot=self.ghosts_joined)
            self.ghosts_joined += 1

        self.players[sid] = player
        self.transport.join(sid, self.room_id)

        self.transport.send(sid, JoinSuccess(
            player_id=sid,
            role=player.role,
            game_state=self.get_client_game_state(),
        ))
        self.transport.broadcast(self.room_id, PlayerJoined(
            player=player.to_dict(),
            can_start=self.can_start(),
        ))
        self.logger.info(f"[JOIN] {name} joined {self.room_id} as {player.role} ({sid})")
        return True

    def move(self, sid, direction):
        """Move one cell; returns True if the move was applied"""
        player = self.players.get(sid)
        if player is None or not self.state.is_running:
            return False
        if direction not in DIRECTION_OFFSETS:
            return False

        new_position = step(player.position, direction)
        if not is_walkable(self.state.maze, new_position):
            return False

        player.position = new_position
        player.direction = direction

        pellet_collected = False
        if player.role == PACMAN:
            key = position_key(new_position)
            if self.state.remove_pellet(key):
                pellet_collected = True
                multiplier = 2 if player.has_effect('pelletMultiplier', now_ms(self.clock)) else 1
                self.state.score += PELLET_POINTS * multiplier
                self.transport.broadcast(self.room_id, PelletCollected(
                    position=key,
                    score=self.state.score,
                    pellets_remaining=self.state.pellets_remaining,
                ))
                if self.state.pellets_remaining == 0:
                    self.end_game('pacman')
                    return True

            self._collect_power_up(player, key)

        self.check_collisions()

        self.transport.broadcast(self.room_id, PlayerMoved(
            player_id=sid,
            x=player.position.x,
            y=player.position.y,
            direction=player.direction,
            score=self.state.score,
            pellets_remaining=self.state.pellets_remaining,
            pellet_collected=pellet_collected,
        ))
        return True

    def _collect_power_up(self, player, key):
        power_up = self.state.power_ups.pop(key, None)
        if power_up is None:
            return
        slot = POWER_UP_SLOTS[power_up.type]
        player.power_ups[slot] = now_ms(self.clock) + int(self.power_up_duration * 1000)
        self.transport.broadcast(self.room_id, PowerUpCollected(
            player_id=player.id,
            type=power_up.type,
            position=key,
        ))
        self.logger.info(f"[POWER] {player.name} collected {power_up.type} in {self.room_id}")

    def check_collisions(self):
        """Resolve pacman sharing a cell with ghosts; returns False if the game ended"""
        pacman = self.get_pacman()
        if pacman is None:
            return True

        for ghost in [p for p in self.players.values() if p.role == GHOST]:
            if ghost.position != pacman.position:
                continue
            if pacman.has_effect('invincibility', now_ms(self.clock)):
                ghost.position = spawn_position(GHOST, ghost.spawn_slot)
                self.state.score += GHOST_EATEN_POINTS
                self.logger.info(f"[GHOST_EATEN] {pacman.name} ate {ghost.name} in {self.room_id}")
            else:
                self.logger.info(f"[PLAYER_CAUGHT] {ghost.name} caught {pacman.name} in {self.room_id}")
                self.end_game('ghosts')
                return False
        return True

    def start_game(self, sid):
        player = self.players.get(sid)
        if player is None or player.role != PACMAN or not self.can_start():
            return False

        self.state.is_started = True
        self.state.start_time = now_ms(self.clock)
        self.state.pellets_remaining = len(self.state.pellets)

        self.transport.broadcast(self.room_id, GameStarted())
        self._start_power_up_timer()
        self.logger.info(f"[START] Game started in {self.room_id} with {len(self.players)} players")
        return True

    def restart_game(self, sid):
        player = self.players.get(sid)
        if player is None or player.role != PACMAN:
            return False

        self._stop_power_up_timer()
        self.state = GameState()
        for p in self.players.values():
            p.reset()

        self.transport.broadcast(self.room_id, GameRestarted(
            game_state=self.get_client_game_state(),
        ))
        self.logger.info(f"[RESTART] {self.room_id} restarted by {player.name}")
        return True

    def leave(self, sid, reason='leave'):
        """Remove a player (leave_game or a dropped connection)"""
        player = self.players.pop(sid, None)
        if player is None:
            return False

        if reason == 'disconnect':
            self.logger.info(f"[DISCONNECT] {player.name} dropped from {self.room_id}")
        else:
            self.logger.info(f"[LEAVE] {player.name} left {self.room_id}")

        self.transport.broadcast(self.room_id, PlayerLeft(player_id=sid))
        self.transport.leave(sid, self.room_id)

        if player.role == PACMAN and self.state.is_running:
            self.end_game('ghosts')

        if not self.players:
            self._stop_power_up_timer()
            self.state = GameState()
            self.ghosts_joined = 0
            self.logger.info(f"[RESET] {self.room_id} is empty, game reset")
        return True

    # Game lifecycle

    def end_game(self, winner):
        if self.state.is_game_over:
            return
        self.state.is_game_over = True
        self.state.winner = winner
        self._stop_power_up_timer()

        self.transport.broadcast(self.room_id, GameOver(winner=winner, score=self.state.score))
        self.logger.info(f"[GAME_OVER] {self.room_id} won by {winner}, score {self.state.score}")

    def spawn_power_up(self):
        """Drop a random power-up on a random path cell"""
        if not self.state.is_running:
            return None

        power_up_type = self.rng.choice(POWER_UP_TYPES)
        candidates = path_positions(self.state.maze)
        if not candidates:
            return None
        position = self.rng.choice(candidates)
        key = position_key(position)

        self.state.power_ups[key] = PowerUp(power_up_type, position, now_ms(self.clock))
        self.transport.broadcast(self.room_id, PowerUpSpawned(type=power_up_type, position=key))
        self.logger.debug(f"[POWER] Spawned {power_up_type} at {key} in {self.room_id}")
        return key

    def _start_power_up_timer(self):
        self._stop_power_up_timer()
        self.power_up_timer = RepeatingTimer(
            self.transport, self.power_up_interval, self.spawn_power_up, self.lock,
            name=f'power-ups:{self.room_id}',
        )
        self.power_up_timer.start()

    def _stop_power_up_timer(self):
        if self.power_up_timer is not None:
            self.power_up_timer.cancel()
            self.power_up_timer = None

    def shutdown(self):
        self._stop_power_up_timer()

    # Client views

    def get_client_game_state(self):
        pellets = sorted(self.state.pellets, key=parse_position_key)
        return ClientGameState(
            players=[p.to_dict() for p in self.players.values()],
            maze=self.state.maze,
            pellets=pellets,
            power_ups={key: power_up.to_dict() for key, power_up in self.state.power_ups.items()},
            score=self.state.score,
            pellets_remaining=self.state.pellets_remaining,
            can_start=self.can_start(),
        )
