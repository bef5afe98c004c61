"""Self-play driver: train or evaluate a 2048 player against the random environment."""
import argparse
import sys
import time

from loguru import logger
from tqdm import tqdm

from agent import AgentConfig, RandomEnvironment
from board import Board
from episode_stats import EpisodeRecord, Statistics
from heuristic_player import HeuristicPlayer
from n_tuple_network import WeightFileError
from td_learner import TDPlayer

OPENING_TILES = 2


def build_player(args=""):
    """TD player unless a search policy is requested with policy=..."""
    policy = AgentConfig.parse(args).policy
    if policy is None or policy == "td":
        return TDPlayer(args)
    return HeuristicPlayer(args)


def build_environment(args=""):
    return RandomEnvironment(args)


def run_episode(player, environment, board=None):
    """
    Play one episode.

    The environment places the two opening tiles, then the player and the
    environment alternate, the player moving first. Either agent returning the null action ends the episode;
    the environment only does so when no empty cell is left.

    Returns:
        (EpisodeRecord, final board)
    """
    board = board if board is not None else Board()
    score = 0
    steps = 0
    start = time.time()

    environment.open_episode("~:" + environment.name)
    player.open_episode(player.name + ":~")

    ended = False
    for _ in range(OPENING_TILES):
        action = environment.take_action(board)
        if not action:
            ended = True
            break
        action.apply(board)

    while not ended:
        action = player.take_action(board)
        if not action:
            break
        score += action.apply(board)
        steps += 1
        if player.check_for_win(board):
            break

        action = environment.take_action(board)
        if not action:
            break
        action.apply(board)

    player.close_episode(player.name)
    environment.close_episode(player.name)

    record = EpisodeRecord(score=score, steps=steps, max_tile=board.max_tile(), duration=time.time() - start)
    logger.debug(f"Episode finished: score={score} steps={steps} max tile={1 << record.max_tile}")
    return record, board


def train(player, environment, total=1000, block=1000, limit=0, progress=True):
    """Run `total` episodes and return the collected statistics."""
    stats = Statistics(block=block)
    episodes = range(total)
    if progress:
        episodes = tqdm(episodes)
    start = time.time()
    for _ in episodes:
        record, _ = run_episode(player, environment)
        stats.add(record)
        if limit and time.time() - start > limit:
            logger.info(f"Time limit of {limit}s reached after {len(stats)} episodes")
            break
    return stats


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Train or play 2048 with an N-Tuple TD player')
    parser.add_argument('--total', type=int, default=1000,
                        help='Number of episodes to play (default: 1000)')
    parser.add_argument('--block', type=int, default=1000,
                        help='Episodes per statistics summary (default: 1000)')
    parser.add_argument('--limit', type=float, default=0,
                        help='Stop after this many seconds, 0 for no limit (default: 0)')
    parser.add_argument('--play', type=str, default='',
                        help='Player configuration, e.g. "alpha=0.1 init load=w.bin save=w.bin" or "policy=greedy"')
    parser.add_argument('--evil', type=str, default='',
                        help='Environment configuration, e.g. "seed=7"')
    parser.add_argument('--plot', type=str, default=None,
                        help='Save learning curves to this png file')
    parser.add_argument('--log-level', type=str, default='INFO',
                        help='Loguru log level (default: INFO)')
    parser.add_argument('--no-progress', action='store_true',
                        help='Disable the progress bar')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper())

    try:
        player = build_player(args.play)
        environment = build_environment(args.evil)
    except (ValueError, WeightFileError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    logger.info(f"Playing {args.total} episodes: {player.name} ({player.role}) vs {environment.name} ({environment.role})")
    stats = train(player, environment, total=args.total, block=args.block, limit=args.limit,
                  progress=not args.no_progress)

    summary = stats.summary()
    logger.info(f"Finished {summary['episodes']} episodes, avg score {summary['avg_score']:.0f}, "
                f"max score {summary['max_score']}")

    try:
        player.close()
        environment.close()
    except WeightFileError as e:
        logger.error(f"Cannot save weights: {e}")
        return 1

    if args.plot:
        stats.plot_learning_curves(args.plot)
    return 0


if __name__ == "__main__":
    sys.exit(main())
