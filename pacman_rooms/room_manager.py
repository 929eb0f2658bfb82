import logging
import threading
import time

from .game_manager import MAX_PLAYERS, GameManager
from .messages import JoinFailed, RoomCreated, RoomInfo, RoomsList

DEFAULT_ROOM_ID = 'room_default'
DEFAULT_ROOM_NAME = 'Default Room'


class RoomManager:
    """Process-wide directory of rooms.

    Owns every GameManager, maps connection ids to the room they play in and
    resolves human-entered room codes. All public methods run under a single
    re-entrant lock shared with the rooms' power-up timers, so each client
    event is applied to completion before the next one starts.
    """

    def __init__(self, transport, power_up_interval=30.0, power_up_duration=10.0,
                 clock=time.time, rng=None):
        self.logger = logging.getLogger(__name__)
        self.transport = transport
        self.power_up_interval = power_up_interval
        self.power_up_duration = power_up_duration
        self.clock = clock
        self.rng = rng
        self.lock = threading.RLock()
        self.rooms = {}        # room id -> GameManager
        self.room_names = {}   # room id -> human-chosen name
        self.player_rooms = {}  # connection id -> room id
        self.room_counter = 0
        self._create_default_room()

    def _new_game(self, room_id):
        return GameManager(
            self.transport, room_id, self.lock,
            power_up_interval=self.power_up_interval,
            power_up_duration=self.power_up_duration,
            clock=self.clock,
            rng=self.rng,
        )

    def _create_default_room(self):
        self.rooms[DEFAULT_ROOM_ID] = self._new_game(DEFAULT_ROOM_ID)
        self.room_names[DEFAULT_ROOM_ID] = DEFAULT_ROOM_NAME
        self.logger.info(f"[ROOM] Default room created: {DEFAULT_ROOM_ID}")

    # Room lifecycle

    def create_room(self, sid, player_name, room_name):
        with self.lock:
            self.room_counter += 1
            room_id = f'room_{self.room_counter}'
            self.rooms[room_id] = self._new_game(room_id)
            self.room_names[room_id] = room_name
            self.logger.info(f"[ROOM] Room created: {room_id} ({room_name}) by {player_name}")

            self.join_room(sid, player_name, room_id)
            self.transport.send(sid, RoomCreated(room_id=room_id, room_name=room_name))
            self.broadcast_rooms_list()
            return room_id

    def join_room(self, sid, player_name, room_id=None):
        with self.lock:
            target_room_id = room_id or DEFAULT_ROOM_ID
            game = self.rooms.get(target_room_id)
            if game is None:
                self.transport.send(sid, JoinFailed(reason='Room not found'))
                return False

            previous_room_id = self.player_rooms.get(sid)
            if previous_room_id is not None and previous_room_id != target_room_id:
                # A refused switch must leave the player where they are
                reason = game.rejection_reason(sid)
                if reason is not None:
                    self.logger.info(f"[JOIN] {player_name} stays in {previous_room_id}: {reason}")
                    self.transport.send(sid, JoinFailed(reason=reason))
                    return False
                self.leave_room(sid)

            joined = game.join(sid, player_name)
            if joined:
                self.player_rooms[sid] = target_room_id
            return joined

    def find_room_by_code(self, room_code):
        code = (room_code or '').strip()
        if code == '' or code.lower() == 'default':
            return DEFAULT_ROOM_ID

        for room_id, room_name in self.room_names.items():
            if room_name == code:
                return room_id

        # Lobby listings hand out room ids, so accept those as codes too
        if code in self.rooms:
            return code
        return None

    def join_room_by_code(self, sid, player_name, room_code):
        with self.lock:
            room_id = self.find_room_by_code(room_code)
            if room_id is None:
                self.logger.info(f"[JOIN] {player_name} asked for unknown room code {room_code!r}")
                self.transport.send(sid, JoinFailed(reason=f'Room "{room_code}" not found'))
                return False
            return self.join_room(sid, player_name, room_id)

    def leave_room(self, sid, reason='leave'):
        with self.lock:
            room_id = self.player_rooms.pop(sid, None)
            if room_id is None:
                return False

            game = self.rooms.get(room_id)
            if game is None:
                return False
            game.leave(sid, reason=reason)

            if room_id != DEFAULT_ROOM_ID and game.player_count == 0:
                self._delete_room(room_id)
            return True

    def handle_disconnect(self, sid):
        return self.leave_room(sid, reason='disconnect')

    def _delete_room(self, room_id):
        game = self.rooms.pop(room_id)
        game.shutdown()
        self.room_names.pop(room_id, None)
        self.logger.info(f"[ROOM] Empty room deleted: {room_id}")
        self.broadcast_rooms_list()

    # Per-connection dispatch

    def get_room_for(self, sid):
        room_id = self.player_rooms.get(sid)
        if room_id is None:
            return None
        return self.rooms.get(room_id)

    def handle_player_move(self, sid, direction):
        with self.lock:
            game = self.get_room_for(sid)
            if game is None:
                return False
            return game.move(sid, direction)

    def handle_start_game(self, sid):
        with self.lock:
            game = self.get_room_for(sid)
            if game is None:
                return False
            return game.start_game(sid)

    def handle_restart_game(self, sid):
        with self.lock:
            game = self.get_room_for(sid)
            if game is None:
                return False
            return game.restart_game(sid)

    # Lobby

    def get_rooms_list(self):
        with self.lock:
            return [
                RoomInfo(
                    id=room_id,
                    name=self.room_names.get(room_id, 'Unknown Room'),
                    player_count=game.player_count,
                    max_players=MAX_PLAYERS,
                    is_started=game.is_started,
                    is_game_over=game.is_game_over,
                )
                for room_id, game in self.rooms.items()
            ]

    def send_rooms_list(self, sid):
        self.transport.send(sid, RoomsList(rooms=self.get_rooms_list()))

    def broadcast_rooms_list(self):
        self.transport.broadcast_all(RoomsList(rooms=self.get_rooms_list()))

    def get_stats(self):
        with self.lock:
            return {
                'rooms': len(self.rooms),
                'players': len(self.player_rooms),
            }

    def shutdown(self):
        """Cancel every room's background work"""
        with self.lock:
            for game in self.rooms.values():
                game.shutdown()
            self.logger.info(f"[SHUTDOWN] Stopped timers for {len(self.rooms)} rooms")
