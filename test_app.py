"""
End-to-end tests through the Socket.IO event handlers, using the
Flask-SocketIO test client instead of a live server.
"""
import unittest
from unittest.mock import patch

import app as server
from app import app, socketio
from pacman_rooms.room_manager import DEFAULT_ROOM_ID, RoomManager


def events_named(received, name):
    return [event['args'][0] if event['args'] else None for event in received if event['name'] == name]


class SocketTestCase(unittest.TestCase):
    def setUp(self):
        app.config['TESTING'] = True
        # Fresh registry per test; a long interval keeps power-ups out of the way
        self.room_manager = RoomManager(server.transport, power_up_interval=3600.0)
        patcher = patch.object(server, 'room_manager', self.room_manager)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(self.room_manager.shutdown)
        self.clients = []

    def tearDown(self):
        for client in self.clients:
            if client.is_connected():
                client.disconnect()

    def connect(self):
        client = socketio.test_client(app)
        self.assertTrue(client.is_connected())
        client.get_received()
        self.clients.append(client)
        return client


class TestJoinFlow(SocketTestCase):
    def test_join_default_room(self):
        client = self.connect()
        client.emit('join_game', {'name': 'Alice'})

        received = client.get_received()
        success = events_named(received, 'join_success')
        self.assertEqual(len(success), 1)
        self.assertEqual(success[0]['role'], 'pacman')
        self.assertEqual(success[0]['game_state']['players'][0]['name'], 'Alice')
        self.assertFalse(success[0]['game_state']['canStart'])
        self.assertEqual(events_named(received, 'player_joined')[0]['player']['x'], 1)

    def test_blank_name_gets_join_failed(self):
        client = self.connect()
        client.emit('join_game', {'name': '  '})
        self.assertEqual(events_named(client.get_received(), 'join_failed'), [{'reason': 'Player name is required'}])
        self.assertEqual(self.room_manager.rooms[DEFAULT_ROOM_ID].player_count, 0)

    def test_unknown_room_code(self):
        client = self.connect()
        client.emit('join_game', {'name': 'Alice', 'roomCode': 'Narnia'})
        self.assertEqual(events_named(client.get_received(), 'join_failed'), [{'reason': 'Room "Narnia" not found'}])

    def test_create_room_and_join_by_name(self):
        host = self.connect()
        guest = self.connect()

        host.emit('create_room', {'name': 'Hana', 'roomName': 'Friday'})
        received = host.get_received()
        self.assertEqual(events_named(received, 'room_created'), [{'roomId': 'room_1', 'roomName': 'Friday'}])
        self.assertEqual(len(events_named(received, 'join_success')), 1)
        guest.get_received()

        guest.emit('join_game', {'name': 'Gus', 'roomCode': 'Friday'})
        self.assertEqual(events_named(guest.get_received(), 'join_success')[0]['role'], 'ghost')
        joined = events_named(host.get_received(), 'player_joined')
        self.assertEqual(joined[0]['player']['name'], 'Gus')
        self.assertTrue(joined[0]['can_start'])

    def test_create_room_requires_names(self):
        client = self.connect()
        client.emit('create_room', {'name': 'Hana'})
        self.assertEqual(events_named(client.get_received(), 'join_failed'), [{'reason': 'Room name is required'}])
        self.assertEqual(list(self.room_manager.rooms), [DEFAULT_ROOM_ID])

    def test_list_rooms(self):
        client = self.connect()
        client.emit('list_rooms')
        rooms = events_named(client.get_received(), 'rooms_list')[0]['rooms']
        self.assertEqual(rooms[0]['id'], DEFAULT_ROOM_ID)
        self.assertEqual(rooms[0]['maxPlayers'], 5)

    def test_internal_error_reported_as_join_failed(self):
        client = self.connect()
        with patch.object(self.room_manager, 'join_room_by_code', side_effect=RuntimeError('boom')):
            client.emit('join_game', {'name': 'Alice'})
        self.assertEqual(events_named(client.get_received(), 'join_failed'), [{'reason': 'Internal server error'}])
        self.assertTrue(client.is_connected())


class TestGameFlow(SocketTestCase):
    def setUp(self):
        super().setUp()
        self.pacman = self.connect()
        self.ghost = self.connect()
        self.pacman.emit('join_game', {'name': 'Alice'})
        self.ghost.emit('join_game', {'name': 'Bob'})
        self.pacman.get_received()
        self.ghost.get_received()

    def test_start_and_move(self):
        self.ghost.emit('start_game')
        self.assertEqual(events_named(self.pacman.get_received(), 'game_started'), [])

        self.pacman.emit('start_game')
        self.assertEqual(len(events_named(self.ghost.get_received(), 'game_started')), 1)

        self.pacman.emit('player_move', {'direction': 'right'})
        received = self.ghost.get_received()
        self.assertEqual(events_named(received, 'pellet_collected')[0]['score'], 10)
        moved = events_named(received, 'player_moved')[0]
        self.assertEqual((moved['x'], moved['y']), (2, 1))

    def test_malformed_move_is_dropped(self):
        self.pacman.emit('start_game')
        self.ghost.get_received()
        self.pacman.emit('player_move', {'direction': 'diagonal'})
        self.pacman.emit('player_move', 'right')
        self.assertEqual(self.ghost.get_received(), [])

    def test_pacman_disconnect_ends_game(self):
        self.pacman.emit('start_game')
        self.ghost.get_received()

        self.pacman.disconnect()

        names = [event['name'] for event in self.ghost.get_received()]
        self.assertEqual(names, ['player_left', 'game_over'])
        self.assertEqual(self.room_manager.rooms[DEFAULT_ROOM_ID].state.winner, 'ghosts')

    def test_restart(self):
        self.pacman.emit('start_game')
        self.pacman.emit('player_move', {'direction': 'right'})
        self.ghost.get_received()

        self.pacman.emit('restart_game')
        restarted = events_named(self.ghost.get_received(), 'game_restarted')
        self.assertEqual(restarted[0]['game_state']['score'], 0)
        self.assertEqual(len(restarted[0]['game_state']['players']), 2)

    def test_leave_game(self):
        ghost_sid = list(self.room_manager.rooms[DEFAULT_ROOM_ID].players)[1]
        self.ghost.emit('leave_game')
        self.assertEqual(events_named(self.pacman.get_received(), 'player_left'), [{'player_id': ghost_sid}])
        self.assertEqual(self.room_manager.rooms[DEFAULT_ROOM_ID].player_count, 1)
        self.assertNotIn(ghost_sid, self.room_manager.player_rooms)


class TestShutdown(SocketTestCase):
    def tearDown(self):
        super().tearDown()
        server.shutting_down.clear()

    def test_graceful_shutdown(self):
        pacman = self.connect()
        ghost = self.connect()
        pacman.emit('join_game', {'name': 'Alice'})
        ghost.emit('join_game', {'name': 'Bob'})
        pacman.emit('start_game')
        timer = self.room_manager.rooms[DEFAULT_ROOM_ID].power_up_timer

        with patch.dict(app.config, {'SHUTDOWN_GRACE_PERIOD': 0.05}), patch('app.os._exit') as mock_exit:
            force_exit = server.graceful_shutdown('test', exit_code=3)
            self.assertIsNone(server.graceful_shutdown('second call is ignored'))
            force_exit.join(timeout=5)

        self.assertTrue(server.shutting_down.is_set())
        self.assertFalse(timer.active)
        self.assertFalse(force_exit.is_alive())
        mock_exit.assert_called_once_with(3)

        late = socketio.test_client(app)
        self.assertFalse(late.is_connected())


class TestHttpEndpoints(SocketTestCase):
    def test_rooms_endpoint(self):
        response = app.test_client().get('/rooms')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()[0]['id'], DEFAULT_ROOM_ID)

    def test_stats_endpoint(self):
        response = app.test_client().get('/stats')
        self.assertEqual(response.status_code, 200)
        self.assertIn('events_handled', response.get_json())


if __name__ == '__main__':
    unittest.main()
