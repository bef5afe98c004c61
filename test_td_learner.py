import numpy as np
import pytest

from board import LEFT, RIGHT, Board
from heuristic_player import greedy_slide
from n_tuple_network import NTupleNetwork, WeightFileError
from td_learner import Step, TDPlayer

TIED_BOARD = [1, 1, 0, 0] + [0] * 12
DEAD_BOARD = [1, 2, 1, 2, 2, 1, 2, 1, 1, 2, 1, 2, 2, 1, 2, 1]


def test_defaults():
    player = TDPlayer()
    assert player.name == "dummy"
    assert player.role == "play"
    assert player.alpha == 0
    assert not player.check_for_win(Board(TIED_BOARD))


def test_take_action_records_the_chosen_afterstate():
    player = TDPlayer()
    player.open_episode()
    action = player.take_action(Board(TIED_BOARD))

    # left and right both score 4; the first one found is kept
    assert action.direction == LEFT
    assert len(player.history) == 1
    assert player.history[0].reward == 4
    assert player.history[0].after == Board([2] + [0] * 15)


def test_strict_tie_break_differs_from_greedy():
    board = Board(TIED_BOARD)
    assert TDPlayer().take_action(board).direction == LEFT
    assert greedy_slide(board) != LEFT


def test_value_estimate_guides_the_choice():
    network = NTupleNetwork()
    right_after = Board([0, 0, 0, 2] + [0] * 12)
    network.adjust(right_after, 80.0, 1.0)
    player = TDPlayer(network=network)
    assert player.take_action(Board(TIED_BOARD)).direction == RIGHT


def test_no_legal_slide_returns_null_and_records_nothing():
    player = TDPlayer()
    player.open_episode()
    assert not player.take_action(Board(DEAD_BOARD))
    assert player.history == []


def play_moves(player, board, moves=20):
    rng = np.random.default_rng(1)
    for _ in range(moves):
        empty = board.empty_cells()
        if not empty:
            break
        board.place(int(rng.choice(empty)), 1)
        action = player.take_action(board)
        if not action:
            break
        action.apply(board)


def test_close_episode_without_learning_rate_changes_nothing():
    player = TDPlayer("init=1000")
    player.open_episode()
    play_moves(player, Board())
    assert player.history
    snapshot = player.network.tables.tobytes()
    player.close_episode()
    assert player.network.tables.tobytes() == snapshot


def test_close_episode_with_empty_history_changes_nothing():
    player = TDPlayer("alpha=0.1 init=1000")
    player.open_episode()
    snapshot = player.network.tables.tobytes()
    player.close_episode()
    assert player.network.tables.tobytes() == snapshot


def test_backward_pass_updates_latest_afterstate_first():
    first = Board([1, 0, 0, 0, 2] + [0] * 11)
    second = Board([2, 0, 0, 0, 2] + [0] * 11)
    third = Board([3, 2] + [0] * 14)

    player = TDPlayer("alpha=0.5 init=80")
    player.history = [Step(0, first), Step(4, second), Step(8, third)]
    player.close_episode()

    expected = NTupleNetwork()
    expected.init_weights("80")
    expected.adjust(third, 0, 0.5)
    expected.adjust(second, 8 + expected.estimate_value(third), 0.5)
    expected.adjust(first, 4 + expected.estimate_value(second), 0.5)

    assert np.array_equal(player.network.tables, expected.tables)
    assert player.history == []

    forward = NTupleNetwork()
    forward.init_weights("80")
    forward.adjust(first, 4 + forward.estimate_value(second), 0.5)
    forward.adjust(second, 8 + forward.estimate_value(third), 0.5)
    forward.adjust(third, 0, 0.5)
    assert not np.array_equal(forward.tables, expected.tables)


def test_terminal_afterstate_learns_towards_zero():
    last = Board([4, 3] + [0] * 14)
    player = TDPlayer("alpha=0.25 init=400")
    player.history = [Step(16, last)]
    player.close_episode()
    assert player.network.estimate_value(last) == pytest.approx(400 - 8 * 0.25 * 400)


def test_open_episode_clears_history():
    player = TDPlayer()
    player.take_action(Board(TIED_BOARD))
    player.open_episode()
    assert player.history == []


def test_weights_are_saved_on_close_and_loaded_on_construction(tmp_path):
    path = str(tmp_path / "td.bin")
    player = TDPlayer(f"alpha=0.1 init=16 save={path}")
    player.history = [Step(4, Board([2] + [0] * 15))]
    player.close_episode()
    player.close()

    restored = TDPlayer(f"load={path}")
    assert np.array_equal(restored.network.tables, player.network.tables)
    assert restored.alpha == 0


def test_missing_weight_file_is_fatal(tmp_path):
    with pytest.raises(WeightFileError):
        TDPlayer(f"load={tmp_path / 'nope.bin'}")


def test_notified_learning_rate_is_used_by_the_next_update():
    last = Board([4, 3] + [0] * 14)
    player = TDPlayer("init=400")
    player.notify("alpha=0.25")
    assert player.alpha == 0.25

    player.history = [Step(16, last)]
    player.close_episode()
    assert player.network.estimate_value(last) == pytest.approx(400 - 8 * 0.25 * 400)
