import gym
import numpy as np
from gym import spaces

from agent import RandomEnvironment
from board import Board, DIRECTION_NAMES, ILLEGAL, MAX_EXPONENT


class Game2048Env(gym.Env):
    """
    Single-agent view of the game: the random environment agent is folded
    into step(), which places a new tile after every legal slide.

    Observations are 4x4 arrays of tile exponents. The game is over once no
    slide is legal, the usual 2048 rule; the self-play driver in train.py
    instead ends an episode when the environment finds no empty cell.
    """

    def __init__(self, seed=None):
        super(Game2048Env, self).__init__()

        self.size = Board.SIZE
        self.board = Board()
        self.score = 0

        # Action space: 0: up, 1: down, 2: left, 3: right
        self.action_space = spaces.Discrete(4)
        self.observation_space = spaces.Box(low=0, high=MAX_EXPONENT, shape=(self.size, self.size), dtype=np.int64)
        self.actions = DIRECTION_NAMES

        self.last_move_valid = True  # Record if the last move was valid
        self.afterstate = None  # Board after the last slide, before the new tile
        self.popup = RandomEnvironment("" if seed is None else f"seed={seed}")

        self.reset()

    def reset(self, seed=None):
        """Reset the environment with the two opening tiles"""
        if seed is not None:
            self.popup = RandomEnvironment(f"seed={seed}")
        self.board = Board()
        self.score = 0
        self.afterstate = None
        self.add_random_tile()
        self.add_random_tile()
        return self.board.grid.copy()

    def add_random_tile(self):
        action = self.popup.take_action(self.board)
        if action:
            action.apply(self.board)

    def is_game_over(self):
        """Check if there are no legal moves left"""
        return not self.board.has_legal_slide()

    def is_move_legal(self, action):
        """Check if the specified move changes the board, without modifying it"""
        return self.board.copy().slide(action) != ILLEGAL

    def get_afterstate(self, state, action):
        """
        Get the afterstate (state after move, before new tile) for a given state and action.

        Returns:
            (afterstate grid, reward), or (None, 0) for an invalid move
        """
        board = Board(state)
        reward = board.slide(action)
        if reward == ILLEGAL:
            return None, 0
        return board.grid.copy(), reward

    def step(self, action):
        """
        Execute one action.

        Returns:
            observation: the new board exponents
            reward: the merge reward of the slide (0 for an invalid move)
            done: whether no legal slide remains
            info: the afterstate (None for an invalid move)
        """
        assert self.action_space.contains(action), f"Invalid action: {action}"

        reward = self.board.slide(action)
        moved = reward != ILLEGAL
        self.last_move_valid = moved

        if moved:
            self.score += reward
            self.afterstate = self.board.grid.copy()
            self.add_random_tile()
        else:
            reward = 0
            self.afterstate = None

        done = self.is_game_over()
        return self.board.grid.copy(), reward, done, {"afterstate": self.afterstate}
