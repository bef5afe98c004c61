from dataclasses import dataclass

from loguru import logger

from action import Action
from agent import Agent
from board import Board, DIRECTIONS, ILLEGAL
from n_tuple_network import NTupleNetwork


@dataclass
class Step:
    reward: int
    after: Board


class TDPlayer(Agent):
    """
    TD(0) afterstate learner for 2048 using an N-Tuple Network.

    Moves are chosen greedily on reward + V(afterstate). Every chosen
    afterstate is recorded and the network is updated backwards over the
    whole episode when it closes.
    """

    def __init__(self, args="", network=None):
        """
        Initialize the TD player.

        Args:
            args: agent configuration string; recognizes init, load, save and alpha
            network: optional N-Tuple Network to share instead of building one
        """
        super(TDPlayer, self).__init__(args, defaults="name=dummy role=play")
        self.network = network if network is not None else NTupleNetwork()
        if self.config.init is not None:
            self.network.init_weights(self.config.init)
        if self.config.load is not None:
            self.network.load_weights(self.config.load)
        self.history = []

    @property
    def alpha(self):
        """Learning rate, read from the configuration so notify("alpha=...") takes effect."""
        return self.config.alpha

    def open_episode(self, flag=""):
        self.history = []

    def take_action(self, before):
        best_action = None
        best_value = float('-inf')
        best_step = None

        for direction in DIRECTIONS:
            after = before.copy()
            reward = after.slide(direction)
            if reward == ILLEGAL:  # Invalid move
                continue

            value = reward + self.network.estimate_value(after)
            if value > best_value:
                best_value = value
                best_action = direction
                best_step = Step(reward, after)

        if best_action is None:
            return Action.null()

        self.history.append(best_step)
        return Action.slide(best_action)

    def close_episode(self, flag=""):
        """
        Update the network backwards over the recorded afterstates.

        The last afterstate is terminal and learns towards 0; every earlier
        one learns towards the next step's reward plus the freshly updated
        value of the next afterstate.
        """
        if not self.history or self.alpha == 0:
            return

        total_error = abs(self.network.adjust(self.history[-1].after, 0, self.alpha))
        for t in range(len(self.history) - 2, -1, -1):
            following = self.history[t + 1]
            target = following.reward + self.network.estimate_value(following.after)
            total_error += abs(self.network.adjust(self.history[t].after, target, self.alpha))

        logger.debug(f"{self.name}: updated {len(self.history)} afterstates, "
                     f"avg |TD error| {total_error / len(self.history):.4f}")
        self.history = []

    def close(self):
        if self.config.save is not None:
            self.network.save_weights(self.config.save)
