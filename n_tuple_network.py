import os

import numpy as np
from loguru import logger

# Rows and columns of the 4x4 board, as flat cell indices
FEATURE_GROUPS = np.array([
    # rows
    [0, 1, 2, 3],
    [4, 5, 6, 7],
    [8, 9, 10, 11],
    [12, 13, 14, 15],
    # columns
    [0, 4, 8, 12],
    [1, 5, 9, 13],
    [2, 6, 10, 14],
    [3, 7, 11, 15],
])

BASE = 25
MAX_DIGIT = BASE - 1
TABLE_SIZE = BASE ** 4
DIGIT_WEIGHTS = np.array([BASE ** 3, BASE ** 2, BASE, 1])

COUNT_DTYPE = np.dtype('<u4')
SIZE_DTYPE = np.dtype('<u8')
WEIGHT_DTYPE = np.dtype('<f4')


class WeightFileError(RuntimeError):
    """Raised when a weight file is missing, truncated or does not match the network."""


def features(board):
    """
    Hash a board into one table index per feature group.

    Each group reads its 4 cell exponents as base-25 digits, most significant
    first. Exponents above 24 are clamped to 24.

    Returns:
        An int array of 8 indices, each in [0, 25 ** 4)
    """
    digits = np.minimum(board.cells()[FEATURE_GROUPS], MAX_DIGIT)
    return digits @ DIGIT_WEIGHTS


def feature(board, group):
    """Table index of a single feature group."""
    digits = np.minimum(board.cells()[FEATURE_GROUPS[group]], MAX_DIGIT)
    return int(digits @ DIGIT_WEIGHTS)


class NTupleNetwork:
    """
    Value approximator made of one dense lookup table per feature group.

    The value of a board is the sum of the 8 table entries selected by its
    features; learning moves all 8 entries by the same amount.
    """
    NUM_TABLES = len(FEATURE_GROUPS)

    def __init__(self):
        self.tables = np.zeros((self.NUM_TABLES, TABLE_SIZE), dtype=np.float32)
        self._rows = np.arange(self.NUM_TABLES)

    def init_weights(self, info=""):
        """
        Allocate fresh tables.

        Args:
            info: empty or "0" for zero weights, or a number V for optimistic
                initialization where every board initially estimates to V
        """
        v_init = 0.0
        if info:
            try:
                v_init = float(info)
            except ValueError:
                raise ValueError(f"Invalid weight initialization: {info!r}") from None
        self.tables = np.full((self.NUM_TABLES, TABLE_SIZE), v_init / self.NUM_TABLES, dtype=np.float32)
        logger.debug(f"Initialized {self.NUM_TABLES} tables of {TABLE_SIZE} weights (v_init={v_init})")

    def estimate_value(self, board):
        """Evaluate the value of a board (afterstate)"""
        return float(self.tables[self._rows, features(board)].sum(dtype=np.float64))

    def adjust(self, board, target, alpha):
        """
        Move the estimate of `board` towards `target`.

        The error is computed once from the current tables and the same step
        alpha * error is added to the entry of every feature group.

        Returns:
            The TD error before the update
        """
        index = features(board)
        error = target - float(self.tables[self._rows, index].sum(dtype=np.float64))
        self.tables[self._rows, index] += np.float32(alpha * error)
        return error

    def save_weights(self, path):
        """
        Save the tables in the binary weight format: a uint32 table count,
        then every table as a uint64 element count followed by float32 weights.
        """
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        try:
            with open(path, 'wb') as f:
                np.array([len(self.tables)], dtype=COUNT_DTYPE).tofile(f)
                for table in self.tables:
                    np.array([table.size], dtype=SIZE_DTYPE).tofile(f)
                    table.astype(WEIGHT_DTYPE).tofile(f)
        except OSError as e:
            raise WeightFileError(f"Cannot write weights to {path}: {e}") from e
        logger.info(f"Saved {len(self.tables)} weight tables to {path}")

    def load_weights(self, path):
        """
        Load tables saved by `save_weights`.

        The whole file is validated before the current tables are replaced.

        Raises:
            WeightFileError: missing file, wrong table count, wrong table size
                or truncated data
        """
        try:
            with open(path, 'rb') as f:
                count = np.fromfile(f, dtype=COUNT_DTYPE, count=1)
                if count.size != 1:
                    raise WeightFileError(f"{path}: missing table count")
                if int(count[0]) != self.NUM_TABLES:
                    raise WeightFileError(
                        f"{path}: expected {self.NUM_TABLES} tables, found {int(count[0])}")

                tables = np.empty((self.NUM_TABLES, TABLE_SIZE), dtype=np.float32)
                for i in range(self.NUM_TABLES):
                    size = np.fromfile(f, dtype=SIZE_DTYPE, count=1)
                    if size.size != 1 or int(size[0]) != TABLE_SIZE:
                        raise WeightFileError(f"{path}: table {i} does not hold {TABLE_SIZE} weights")
                    weights = np.fromfile(f, dtype=WEIGHT_DTYPE, count=TABLE_SIZE)
                    if weights.size != TABLE_SIZE:
                        raise WeightFileError(f"{path}: table {i} is truncated")
                    tables[i] = weights
        except OSError as e:
            raise WeightFileError(f"Cannot read weights from {path}: {e}") from e

        self.tables = tables
        logger.info(f"Loaded {self.NUM_TABLES} weight tables from {path}")
