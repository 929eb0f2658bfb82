from collections import namedtuple

# 1 = wall, 0 = path (the browser client draws walls from 1s)
WALL = 1
PATH = 0

MAZE_WIDTH = 20
MAZE_HEIGHT = 19

Position = namedtuple('Position', ['x', 'y'])

DIRECTION_OFFSETS = {
    'up': (0, -1),
    'down': (0, 1),
    'left': (-1, 0),
    'right': (1, 0),
}


def position_key(position):
    """Canonical "x,y" string used to key pellets and power-ups"""
    return f'{position[0]},{position[1]}'


def parse_position_key(key):
    x, y = key.split(',')
    return Position(int(x), int(y))


def step(position, direction):
    dx, dy = DIRECTION_OFFSETS[direction]
    return Position(position.x + dx, position.y + dy)


def generate_maze(width=MAZE_WIDTH, height=MAZE_HEIGHT):
    """Build the fixed room maze.

    Border cells are walls, interior cells follow a lattice pattern and the
    3x3 pocket at the top-left corner is always open so pacman can spawn there.
    """
    maze = []
    for y in range(height):
        row = []
        for x in range(width):
            if x == 0 or x == width - 1 or y == 0 or y == height - 1:
                row.append(WALL)
            elif (x % 4 == 0 and y % 4 == 0) or (x % 6 == 0 and y % 3 == 0):
                row.append(WALL)
            else:
                row.append(PATH)
        maze.append(row)

    for y in range(1, 4):
        for x in range(1, 4):
            if y < height - 1 and x < width - 1:
                maze[y][x] = PATH

    return maze


def path_positions(maze):
    """All walkable cells in row-major order"""
    return [
        Position(x, y)
        for y, row in enumerate(maze)
        for x, cell in enumerate(row)
        if cell == PATH
    ]


def generate_pellets(maze):
    return {position_key(pos) for pos in path_positions(maze)}


def is_walkable(maze, position):
    x, y = position
    if y < 0 or y >= len(maze) or x < 0 or x >= len(maze[0]):
        return False
    return maze[y][x] == PATH
