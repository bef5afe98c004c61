import os
from dataclasses import dataclass

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
from loguru import logger


@dataclass
class EpisodeRecord:
    score: int
    steps: int
    max_tile: int  # exponent
    duration: float  # seconds


class Statistics:
    """In-memory record of finished episodes with block summaries."""

    def __init__(self, block=1000):
        self.block = block
        self.records = []
        self.avg_scores = []
        self.max_scores = []

    def __len__(self):
        return len(self.records)

    def add(self, record):
        self.records.append(record)
        if self.block and len(self.records) % self.block == 0:
            summary = self.summary(self.block)
            self.avg_scores.append(summary["avg_score"])
            self.max_scores.append(summary["max_score"])
            self.log_summary(summary)

    def summary(self, block=None):
        """
        Summarize the last `block` episodes (all of them when block is None).

        Returns:
            A dict with avg_score, max_score, avg_steps, speed (steps per
            second) and tiles, mapping each reached tile value to the share of
            episodes whose largest tile was at least that value
        """
        records = self.records[-block:] if block else self.records
        if not records:
            return {"episodes": 0, "avg_score": 0.0, "max_score": 0, "avg_steps": 0.0, "speed": 0.0, "tiles": {}}

        scores = np.array([r.score for r in records])
        steps = np.array([r.steps for r in records])
        max_tiles = np.array([r.max_tile for r in records])
        duration = sum(r.duration for r in records)

        tiles = {}
        for exponent in sorted(set(max_tiles.tolist())):
            if exponent == 0:
                continue
            tiles[1 << exponent] = float(np.mean(max_tiles >= exponent))

        return {
            "episodes": len(records),
            "avg_score": float(scores.mean()),
            "max_score": int(scores.max()),
            "avg_steps": float(steps.mean()),
            "speed": float(steps.sum() / duration) if duration > 0 else 0.0,
            "tiles": tiles,
        }

    def log_summary(self, summary):
        logger.info(f"{len(self.records)}\tavg = {summary['avg_score']:.0f}, max = {summary['max_score']}, "
                    f"ops = {summary['speed']:.0f}")
        for tile, share in summary["tiles"].items():
            logger.info(f"\t{tile}\t{share * 100:.1f}%")

    def plot_learning_curves(self, path):
        """Save the average and max score of every block as a png"""
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        plt.figure(figsize=(10, 5))

        plt.subplot(1, 2, 1)
        plt.plot(self.avg_scores)
        plt.title('Average Scores')
        plt.xlabel(f'Evaluation (x{self.block} episodes)')
        plt.ylabel('Average Score')

        plt.subplot(1, 2, 2)
        plt.plot(self.max_scores)
        plt.title('Max Scores')
        plt.xlabel(f'Evaluation (x{self.block} episodes)')
        plt.ylabel('Max Score')

        plt.tight_layout()
        plt.savefig(path)
        plt.close()
        logger.info(f"Saved learning curves to {path}")
