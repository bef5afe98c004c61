import numpy as np

# Direction codes: 0: up, 1: down, 2: left, 3: right
UP, DOWN, LEFT, RIGHT = 0, 1, 2, 3
DIRECTIONS = (UP, DOWN, LEFT, RIGHT)
DIRECTION_NAMES = ["up", "down", "left", "right"]

# Clockwise quarter turns that make each direction slide to the left
ROTATIONS = {UP: 3, DOWN: 1, LEFT: 0, RIGHT: 2}

ILLEGAL = -1
# Largest exponent reachable on a 4x4 board (131072); merges can go past 15
MAX_EXPONENT = 17


def fib(n):
    """Return the n-th Fibonacci number (fib(0) = 0, fib(1) = 1)."""
    a, b = 0, 1
    for _ in range(max(n, 0)):
        a, b = b, a + b
    return a


class Board:
    """
    4x4 2048 board holding tile exponents (0 = empty, value = 2 ** exponent).

    The board is a value type: search code copies it before simulating a
    move and never shares a grid between branches.
    """
    SIZE = 4
    CELLS = 16

    def __init__(self, cells=None):
        if cells is None:
            self.grid = np.zeros((self.SIZE, self.SIZE), dtype=int)
        else:
            self.grid = np.array(cells, dtype=int).reshape(self.SIZE, self.SIZE)

    def copy(self):
        return Board(self.grid.copy())

    def __getitem__(self, cell):
        return int(self.grid.flat[cell])

    def __setitem__(self, cell, tile):
        self.grid.flat[cell] = tile

    def __eq__(self, other):
        if not isinstance(other, Board):
            return NotImplemented
        return np.array_equal(self.grid, other.grid)

    def __repr__(self):
        return f"Board({self.grid.ravel().tolist()})"

    def __str__(self):
        lines = ["+" + "-" * 24 + "+"]
        for row in self.grid:
            cells = "".join(f"{(1 << int(t)) if t else 0:6d}" for t in row)
            lines.append("|" + cells + "|")
        lines.append("+" + "-" * 24 + "+")
        return "\n".join(lines)

    def cells(self):
        """Flat view of the 16 exponents in row-major order."""
        return self.grid.ravel()

    def empty_cells(self):
        return [int(i) for i in np.flatnonzero(self.grid == 0)]

    def max_tile(self):
        return int(self.grid.max())

    def place(self, cell, tile):
        """
        Put a tile of exponent `tile` on an empty cell.

        Returns:
            0, placing a tile never scores
        """
        if not 0 <= cell < self.CELLS:
            raise ValueError(f"Invalid cell: {cell}")
        if not 1 <= tile <= MAX_EXPONENT:
            raise ValueError(f"Invalid tile exponent: {tile}")
        if self.grid.flat[cell] != 0:
            raise ValueError(f"Cell {cell} is not empty")
        self.grid.flat[cell] = tile
        return 0

    def rotate(self, k=1):
        """Rotate the grid by 90 * k degrees clockwise (negative k turns counter-clockwise)."""
        self.grid = np.ascontiguousarray(np.rot90(self.grid, -k))

    def compress(self, row):
        """Compress the row: move non-zero exponents to the left"""
        new_row = row[row != 0]
        return np.pad(new_row, (0, self.SIZE - len(new_row)), mode='constant')

    def merge(self, row):
        """Merge adjacent equal exponents in a compressed row, each pair at most once"""
        reward = 0
        for i in range(self.SIZE - 1):
            if row[i] == row[i + 1] and row[i] != 0:
                row[i] += 1
                row[i + 1] = 0
                reward += 1 << int(row[i])
        return row, reward

    def slide_left(self):
        """
        Slide every row to the left.

        Returns:
            The merge reward, or -1 when no tile moved (the board is unchanged).
        """
        original = self.grid.copy()
        reward = 0
        for i in range(self.SIZE):
            row, gain = self.merge(self.compress(self.grid[i]))
            self.grid[i] = self.compress(row)
            reward += gain
        if np.array_equal(original, self.grid):
            return ILLEGAL
        return reward

    def slide(self, direction):
        """
        Slide all tiles towards `direction` and merge them.

        Args:
            direction: one of UP, DOWN, LEFT, RIGHT

        Returns:
            The merge reward (sum of 2 ** exponent of every merged tile),
            or -1 when the slide is illegal and left the board unchanged.
        """
        if direction not in ROTATIONS:
            raise ValueError(f"Invalid direction: {direction}")
        k = ROTATIONS[direction]
        self.rotate(k)
        reward = self.slide_left()
        self.rotate(-k)
        return reward

    def has_legal_slide(self):
        if np.any(self.grid == 0):
            return True
        if np.any(np.diff(self.grid, axis=1) == 0):
            return True
        return bool(np.any(np.diff(self.grid, axis=0) == 0))
