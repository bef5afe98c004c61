from dataclasses import dataclass

from loguru import logger

from action import Action
from agent import ConfigError, RandomAgent
from board import DIRECTIONS, ILLEGAL, fib

CORNERS = (0, 3, 12, 15)
ROW_STARTS = (0, 4, 8, 12)


@dataclass(frozen=True)
class HeuristicPreset:
    """Coefficients of the hand-crafted scoring function."""
    adjacency_bonus: int = 3
    empty_bonus: int = 2
    corner_bonus: int = 1
    fib_threshold: int = 6


PRESETS = {
    "balanced": HeuristicPreset(adjacency_bonus=3, empty_bonus=2, corner_bonus=1, fib_threshold=6),
    "open": HeuristicPreset(adjacency_bonus=3, empty_bonus=5, corner_bonus=1, fib_threshold=6),
}


def first_legal_slide(board, order=DIRECTIONS):
    for direction in order:
        if board.copy().slide(direction) != ILLEGAL:
            return direction
    return None


def greedy_slide(board, order=DIRECTIONS):
    """
    Direction with the largest immediate reward.

    Ties go to the direction found last in `order`.
    """
    best_reward = None
    best_direction = None
    for direction in order:
        reward = board.copy().slide(direction)
        if reward == ILLEGAL:
            continue
        if best_reward is None or reward >= best_reward:
            best_reward = reward
            best_direction = direction
    return best_direction


def tree_search_slide(board, order=DIRECTIONS):
    """
    Two-ply lookahead: the first move of the best pair of legal moves.

    Pairs are compared on the sum of both rewards, ties going to the pair
    found last.
    """
    best_total = None
    best_direction = None
    for first in order:
        after = board.copy()
        reward1 = after.slide(first)
        if reward1 == ILLEGAL:
            continue
        for second in order:
            reward2 = after.copy().slide(second)
            if reward2 == ILLEGAL:
                continue
            if best_total is None or reward1 + reward2 >= best_total:
                best_total = reward1 + reward2
                best_direction = first
    return best_direction


def adjacency_score(board, preset):
    """Bonus for every horizontal neighbour pair one exponent apart or both 2-tiles, over 4 rotations."""
    score = 0
    for k in range(4):
        rotated = board.copy()
        rotated.rotate(k)
        for start in ROW_STARTS:
            for cell in range(start, start + 3):
                a, b = rotated[cell], rotated[cell + 1]
                if abs(a - b) == 1 or (a == 1 and b == 1):
                    score += preset.adjacency_bonus
    return score


def largest_cell(board):
    """Cell index of the largest tile; the first one on ties."""
    best = 0
    for cell in range(board.CELLS):
        if board[cell] > board[best]:
            best = cell
    return best


def heuristic_score(before, direction, preset):
    """
    Score a first move with the hand-crafted evaluation.

    Returns:
        The score, or None when the move is illegal
    """
    after = before.copy()
    reward = after.slide(direction)
    if reward == ILLEGAL:
        return None

    score = reward + adjacency_score(after, preset)

    # The empty count keeps accumulating across the follow-up slides
    empty = 0
    for second in DIRECTIONS:
        followup = after.copy()
        if followup.slide(second) == ILLEGAL:
            continue
        empty += len(followup.empty_cells())
        score += empty * preset.empty_bonus

    max_loc = largest_cell(after)
    if max_loc in CORNERS:
        score += after[max_loc] * preset.corner_bonus
    if max_loc == largest_cell(before) and after[max_loc] > preset.fib_threshold:
        score += fib(after[max_loc] - 2)
    return score


def heuristic_slide(board, order=DIRECTIONS, preset=PRESETS["balanced"]):
    """Highest scoring direction; the last of equal best scores in `order` wins."""
    scored = []
    for direction in order:
        score = heuristic_score(board, direction, preset)
        if score is not None:
            scored.append((score, direction))
    if not scored:
        return None
    scored.sort(key=lambda item: item[0])
    return scored[-1][1]


class HeuristicPlayer(RandomAgent):
    """
    Player using one of the stateless search policies.

    The directions are shuffled with the agent's own generator before each
    move, so ties are broken randomly but reproducibly for a given seed.
    """
    POLICIES = {
        "random": first_legal_slide,
        "greedy": greedy_slide,
        "tree_search": tree_search_slide,
        "heuristic": heuristic_slide,
    }

    def __init__(self, args=""):
        super(HeuristicPlayer, self).__init__(args, defaults="name=test role=play")
        policy = self.config.policy or "random"
        if policy not in self.POLICIES:
            raise ConfigError(f"Unknown policy {policy!r}, expected one of {sorted(self.POLICIES)}")
        preset = self.config.preset or "balanced"
        if preset not in PRESETS:
            raise ConfigError(f"Unknown heuristic preset {preset!r}, expected one of {sorted(PRESETS)}")
        self.policy = policy
        self.preset = PRESETS[preset]
        logger.debug(f"{self.name}: policy={policy} preset={preset}")

    def take_action(self, before):
        order = [int(d) for d in self.rng.permutation(DIRECTIONS)]
        if self.policy == "heuristic":
            direction = heuristic_slide(before, order, self.preset)
        else:
            direction = self.POLICIES[self.policy](before, order)
        if direction is None:
            return Action.null()
        return Action.slide(direction)
