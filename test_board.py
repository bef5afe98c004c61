import numpy as np
import pytest

from action import Action
from board import Board, DIRECTIONS, DOWN, ILLEGAL, LEFT, RIGHT, MAX_EXPONENT, ROTATIONS, UP, fib


def random_boards(count=50, seed=0):
    rng = np.random.default_rng(seed)
    return [Board(rng.integers(0, 5, size=16)) for _ in range(count)]


def test_two_twos_merge_to_the_edge():
    board = Board([1, 1] + [0] * 14)
    reward = board.slide(LEFT)
    assert reward == 4
    assert board == Board([2] + [0] * 15)


def test_merge_of_two_eights_scores_sixteen():
    board = Board([0, 3, 0, 3] + [0] * 12)
    assert board.slide(RIGHT) == 16
    assert board[3] == 4
    assert board.empty_cells() == list(range(3)) + list(range(4, 16))


def test_each_tile_merges_at_most_once():
    board = Board([1, 1, 1, 1, 2, 1, 1, 0] + [0] * 8)
    reward = board.slide(LEFT)
    assert board.grid[0].tolist() == [2, 2, 0, 0]
    assert board.grid[1].tolist() == [2, 2, 0, 0]
    assert reward == 4 + 4 + 4


def test_vertical_slides():
    board = Board([1, 0, 0, 0, 1] + [0] * 11)
    up = board.copy()
    assert up.slide(UP) == 4
    assert up[0] == 2 and up.max_tile() == 2

    down = board.copy()
    assert down.slide(DOWN) == 4
    assert down[12] == 2
    assert len(down.empty_cells()) == 15


def test_move_without_merge_is_legal():
    board = Board([0, 0, 0, 1] + [0] * 12)
    assert board.slide(LEFT) == 0
    assert board[0] == 1


def test_illegal_slide_leaves_board_unchanged():
    board = Board([1, 2, 3, 4] + [0] * 12)
    before = board.copy()
    assert board.slide(LEFT) == ILLEGAL
    assert board == before
    assert board.slide(UP) == ILLEGAL
    assert board == before


@pytest.mark.parametrize("direction", DIRECTIONS)
def test_slide_is_illegal_iff_board_unchanged(direction):
    for board in random_boards():
        before = board.copy()
        reward = board.slide(direction)
        assert (reward == ILLEGAL) == (board == before)


def test_four_quarter_turns_restore_the_board():
    for board in random_boards(10):
        rotated = board.copy()
        for _ in range(4):
            rotated.rotate(1)
        assert rotated == board


@pytest.mark.parametrize("direction", DIRECTIONS)
def test_slide_matches_rotated_slide_left(direction):
    for board in random_boards(20, seed=direction):
        expected = board.copy()
        reward = expected.slide(direction)

        rotated = board.copy()
        rotated.rotate(ROTATIONS[direction])
        assert rotated.slide_left() == reward
        rotated.rotate(-ROTATIONS[direction])
        assert rotated == expected


def test_copy_is_independent():
    board = Board([1, 1] + [0] * 14)
    other = board.copy()
    other.slide(LEFT)
    assert board[0] == 1 and board[1] == 1


def test_place_on_empty_and_occupied_cells():
    board = Board()
    assert board.place(5, 2) == 0
    assert board[5] == 2
    with pytest.raises(ValueError):
        board.place(5, 1)
    with pytest.raises(ValueError):
        board.place(16, 1)


def test_has_legal_slide():
    assert Board([1] + [0] * 15).has_legal_slide()
    dead = Board([1, 2, 1, 2, 2, 1, 2, 1, 1, 2, 1, 2, 2, 1, 2, 1])
    assert not dead.has_legal_slide()
    assert all(dead.copy().slide(d) == ILLEGAL for d in DIRECTIONS)


def test_fib():
    assert [fib(n) for n in range(8)] == [0, 1, 1, 2, 3, 5, 8, 13]


def test_actions():
    board = Board()
    assert Action.place(0, 1).apply(board) == 0
    assert Action.place(1, 1).apply(board) == 0
    assert Action.slide(LEFT).apply(board) == 4
    assert board[0] == 2

    null = Action.null()
    assert not null
    assert Action.slide(UP) and Action.place(0, 1)
    assert null.apply(board) == ILLEGAL
    assert str(Action.slide(RIGHT)) == "#right"
    assert str(Action.place(3, 2)) == "@3+4"


def test_two_fifteen_tiles_merge_to_sixteen():
    board = Board([15, 15] + [0] * 14)
    assert board.slide(LEFT) == 1 << 16
    assert board[0] == 16
    assert board.max_tile() <= MAX_EXPONENT
    with pytest.raises(ValueError):
        Board().place(0, MAX_EXPONENT + 1)
