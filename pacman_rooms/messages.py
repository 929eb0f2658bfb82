"""
Closed schemas for every Socket.IO event exchanged with browser clients.

Inbound models validate client payloads at the transport boundary before
anything reaches a room. Outbound models carry their event name so the
transport can emit them without loosely built dicts.
"""
from typing import ClassVar, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

Direction = Literal['up', 'down', 'left', 'right']
Role = Literal['pacman', 'ghost']
GhostColor = Literal['red', 'pink', 'cyan', 'orange']
Winner = Literal['pacman', 'ghosts']
PowerUpType = Literal['speed_boost', 'invincibility', 'pellet_multiplier']


class ClientMessage(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra='ignore')


class JoinGame(ClientMessage):
    name: str = Field(min_length=1)
    room_code: str = Field(
        default='default',
        validation_alias=AliasChoices('roomCode', 'room'),
    )


class CreateRoom(ClientMessage):
    name: str = Field(min_length=1)
    room_name: str = Field(min_length=1, validation_alias=AliasChoices('roomName', 'room_name'))


class PlayerMove(ClientMessage):
    direction: Direction


def parse_client_message(model, data):
    """Validate a raw payload; raises pydantic.ValidationError"""
    if data is None:
        data = {}
    return model.model_validate(data)


def describe_validation_error(error):
    """Turn a ValidationError into a short reason a player can read"""
    first = error.errors()[0]
    field = first['loc'][0] if first['loc'] else None
    labels = {
        'name': 'Player name',
        'roomName': 'Room name',
        'room_name': 'Room name',
        'roomCode': 'Room code',
        'room': 'Room code',
        None: 'Request',
    }
    label = labels.get(field, str(field))
    if first['type'] in ('missing', 'string_too_short'):
        return f'{label} is required'
    return f'{label} is invalid'


class ServerMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event: ClassVar[str]

    def payload(self):
        return self.model_dump(by_alias=True)


class ClientPlayer(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    role: Role
    ghost_color: Optional[GhostColor] = Field(default=None, alias='ghostColor')
    x: int
    y: int
    direction: Direction


class GridPosition(BaseModel):
    x: int
    y: int


class PowerUpView(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: PowerUpType
    position: GridPosition
    spawn_time: int = Field(alias='spawnTime')


class ClientGameState(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    players: List[ClientPlayer]
    maze: List[List[int]]
    pellets: List[str]
    power_ups: Dict[str, PowerUpView] = Field(alias='powerUps')
    score: int
    pellets_remaining: int = Field(alias='pelletsRemaining')
    can_start: bool = Field(alias='canStart')


class RoomInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    player_count: int = Field(alias='playerCount')
    max_players: int = Field(alias='maxPlayers')
    is_started: bool = Field(alias='isStarted')
    is_game_over: bool = Field(alias='isGameOver')


class JoinSuccess(ServerMessage):
    event: ClassVar[str] = 'join_success'

    player_id: str
    role: Role
    game_state: ClientGameState


class JoinFailed(ServerMessage):
    event: ClassVar[str] = 'join_failed'

    reason: str


class PlayerJoined(ServerMessage):
    event: ClassVar[str] = 'player_joined'

    player: ClientPlayer
    can_start: bool


class PlayerLeft(ServerMessage):
    event: ClassVar[str] = 'player_left'

    player_id: str


class GameStarted(ServerMessage):
    event: ClassVar[str] = 'game_started'


class PlayerMoved(ServerMessage):
    event: ClassVar[str] = 'player_moved'

    player_id: str
    x: int
    y: int
    direction: Direction
    score: int
    pellets_remaining: int
    pellet_collected: bool


class PelletCollected(ServerMessage):
    event: ClassVar[str] = 'pellet_collected'

    position: str
    score: int
    pellets_remaining: int


class PowerUpSpawned(ServerMessage):
    event: ClassVar[str] = 'power_up_spawned'

    type: PowerUpType
    position: str


class PowerUpCollected(ServerMessage):
    event: ClassVar[str] = 'power_up_collected'

    player_id: str
    type: PowerUpType
    position: str


class GameOver(ServerMessage):
    event: ClassVar[str] = 'game_over'

    winner: Winner
    score: int


class GameRestarted(ServerMessage):
    event: ClassVar[str] = 'game_restarted'

    game_state: ClientGameState


class RoomsList(ServerMessage):
    event: ClassVar[str] = 'rooms_list'

    rooms: List[RoomInfo]


class RoomCreated(ServerMessage):
    event: ClassVar[str] = 'room_created'

    room_id: str = Field(alias='roomId')
    room_name: str = Field(alias='roomName')


__all__ = [
    'ValidationError',
    'JoinGame', 'CreateRoom', 'PlayerMove',
    'parse_client_message', 'describe_validation_error',
    'ClientPlayer', 'ClientGameState', 'RoomInfo', 'PowerUpView',
    'JoinSuccess', 'JoinFailed', 'PlayerJoined', 'PlayerLeft', 'GameStarted',
    'PlayerMoved', 'PelletCollected', 'PowerUpSpawned', 'PowerUpCollected',
    'GameOver', 'GameRestarted', 'RoomsList', 'RoomCreated',
]
