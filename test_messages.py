import unittest

from pacman_rooms.messages import (
    CreateRoom, JoinFailed, JoinGame, PlayerJoined, PlayerMove, RoomCreated,
    ValidationError, describe_validation_error, parse_client_message,
)


class TestClientMessages(unittest.TestCase):
    def test_join_game_defaults_to_default_room(self):
        message = parse_client_message(JoinGame, {'name': '  Alice '})
        self.assertEqual(message.name, 'Alice')
        self.assertEqual(message.room_code, 'default')

    def test_join_game_room_code(self):
        self.assertEqual(parse_client_message(JoinGame, {'name': 'A', 'roomCode': 'Friday'}).room_code, 'Friday')
        self.assertEqual(parse_client_message(JoinGame, {'name': 'A', 'room': 'room_2'}).room_code, 'room_2')

    def test_blank_name_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            parse_client_message(JoinGame, {'name': '   '})
        self.assertEqual(describe_validation_error(ctx.exception), 'Player name is required')

    def test_missing_payload_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            parse_client_message(JoinGame, None)
        self.assertEqual(describe_validation_error(ctx.exception), 'Player name is required')

    def test_non_object_payload_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            parse_client_message(JoinGame, 'Alice')
        self.assertEqual(describe_validation_error(ctx.exception), 'Request is invalid')

    def test_create_room_requires_room_name(self):
        message = parse_client_message(CreateRoom, {'name': 'Hana', 'roomName': 'Friday'})
        self.assertEqual(message.room_name, 'Friday')
        with self.assertRaises(ValidationError) as ctx:
            parse_client_message(CreateRoom, {'name': 'Hana', 'roomName': ''})
        self.assertEqual(describe_validation_error(ctx.exception), 'Room name is required')

    def test_player_move_direction(self):
        self.assertEqual(parse_client_message(PlayerMove, {'direction': 'up'}).direction, 'up')
        for bad in ({'direction': 'north'}, {'direction': 3}, {}):
            with self.assertRaises(ValidationError):
                parse_client_message(PlayerMove, bad)


class TestServerMessages(unittest.TestCase):
    def test_event_names(self):
        self.assertEqual(JoinFailed.event, 'join_failed')
        self.assertEqual(RoomCreated.event, 'room_created')

    def test_payload_uses_wire_names(self):
        self.assertEqual(RoomCreated(room_id='room_1', room_name='Friday').payload(),
                         {'roomId': 'room_1', 'roomName': 'Friday'})
        joined = PlayerJoined(player={
            'id': 'a', 'name': 'Alice', 'role': 'ghost', 'ghostColor': 'red',
            'x': 18, 'y': 1, 'direction': 'right',
        }, can_start=True)
        self.assertEqual(joined.payload()['player']['ghostColor'], 'red')
        self.assertTrue(joined.payload()['can_start'])

    def test_unknown_role_rejected(self):
        with self.assertRaises(ValidationError):
            PlayerJoined(player={
                'id': 'a', 'name': 'Alice', 'role': 'referee', 'ghostColor': None,
                'x': 1, 'y': 1, 'direction': 'right',
            }, can_start=False)


if __name__ == '__main__':
    unittest.main()
