from dataclasses import dataclass, field
from typing import Dict, Optional

import numpy as np
from loguru import logger

from action import Action
from board import Board

KNOWN_KEYS = ("name", "role", "seed", "alpha", "init", "load", "save", "policy", "preset")


class ConfigError(ValueError):
    """Raised when an agent configuration value cannot be parsed."""


def parse_pairs(args):
    """Split a whitespace-separated "key=value" string; later keys override earlier ones."""
    meta = {}
    for pair in args.split():
        key, _, value = pair.partition('=')
        meta[key] = value
    return meta


@dataclass
class AgentConfig:
    """Typed agent configuration parsed once from a "key=value" string."""
    name: str = "unknown"
    role: str = "unknown"
    seed: Optional[int] = None
    alpha: float = 0.0
    init: Optional[str] = None
    load: Optional[str] = None
    save: Optional[str] = None
    policy: Optional[str] = None
    preset: Optional[str] = None
    extras: Dict[str, str] = field(default_factory=dict)
    meta: Dict[str, str] = field(default_factory=dict, repr=False)

    @classmethod
    def parse(cls, args="", defaults=""):
        """
        Build a configuration from `defaults` followed by `args`.

        Raises:
            ConfigError: a numeric key holds a malformed value
        """
        meta = parse_pairs(f"name=unknown role=unknown {defaults} {args}")
        config = cls(meta=meta)
        config._apply(meta)
        return config

    def _apply(self, meta):
        for key, value in meta.items():
            if key == "seed":
                try:
                    self.seed = int(value)
                except ValueError:
                    raise ConfigError(f"seed must be an integer, got {value!r}") from None
            elif key == "alpha":
                try:
                    self.alpha = float(value)
                except ValueError:
                    raise ConfigError(f"alpha must be a number, got {value!r}") from None
                if self.alpha < 0:
                    raise ConfigError(f"alpha must not be negative, got {value!r}")
            elif key in KNOWN_KEYS:
                setattr(self, key, value)
            else:
                self.extras[key] = value

    def property(self, key):
        """Raw string value of `key`; raises KeyError when it was never set."""
        return self.meta[key]

    def notify(self, msg):
        key, _, value = msg.partition('=')
        self.meta[key] = value
        self._apply({key: value})


class Agent:
    """
    Common interface of players and environments.

    The driver calls open_episode/close_episode around every game and
    take_action once per turn; close is called once at the end of the run.
    """

    def __init__(self, args="", defaults=""):
        self.config = AgentConfig.parse(args, defaults)

    def open_episode(self, flag=""):
        pass

    def close_episode(self, flag=""):
        pass

    def take_action(self, board):
        return Action.null()

    def check_for_win(self, board):
        return False

    def close(self):
        pass

    @property
    def name(self):
        return self.config.name

    @property
    def role(self):
        return self.config.role

    def property(self, key):
        return self.config.property(key)

    def notify(self, msg):
        self.config.notify(msg)


class RandomAgent(Agent):
    """Agent owning its own seedable random generator."""

    def __init__(self, args="", defaults=""):
        super(RandomAgent, self).__init__(args, defaults)
        self.rng = np.random.default_rng(self.config.seed)


class RandomEnvironment(RandomAgent):
    """
    Environment adding a new random tile to an empty cell:
    2-tile with probability 0.9, 4-tile with probability 0.1.
    """
    TWO_TILE_PROBABILITY = 0.9

    def __init__(self, args=""):
        super(RandomEnvironment, self).__init__(args, defaults="name=random role=environment")

    def take_action(self, board):
        for cell in self.rng.permutation(Board.CELLS):
            if board[cell] != 0:
                continue
            tile = 1 if self.rng.random() < self.TWO_TILE_PROBABILITY else 2
            return Action.place(int(cell), tile)
        logger.debug("No empty cell left for a new tile")
        return Action.null()

