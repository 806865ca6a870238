"""Perception and fitness formulas shared by the simulation driver."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np


@dataclass(frozen=True)
class Perception:
    """What a bird sees of the nearest pipe, already normalized.

    horizontal/vertical are in [-1, 1]: the magnitude is the clamped normalized
    distance, the sign is + when the pipe is ahead of (or below) the bird.
    altitude is the bird's own height in [0, 1].
    """
    horizontal: float
    vertical: float
    altitude: float

    def as_input(self) -> np.ndarray:
        return np.array([self.horizontal, self.vertical, self.altitude], dtype=float)


def normalize(start: float, end: float, value: float) -> float:
    """Map ``[start, end]`` linearly onto ``[0, 1]`` (no clamping)."""
    return (value - start) / (end - start)


def _signed_distance(delta: float, extent: float) -> float:
    magnitude = float(np.clip(normalize(0.0, extent, abs(delta)), 0.0, 1.0))
    return magnitude if delta < 0 else -magnitude


def perceive(agent: Tuple[float, float],
             obstacle: Tuple[float, float],
             screen_size: Tuple[float, float]) -> Perception:
    width, height = screen_size
    agent_x, agent_y = agent
    obstacle_x, obstacle_y = obstacle
    return Perception(
        horizontal=_signed_distance(agent_x - obstacle_x, width),
        vertical=_signed_distance(agent_y - obstacle_y, height),
        altitude=float(np.clip(normalize(0.0, height, abs(agent_y)), 0.0, 1.0)),
    )


def distance_penalty(horizontal: float, vertical: float) -> float:
    return float(np.sqrt(horizontal ** 2 + vertical ** 2) / 10.0)


def compute_fitness(raw_score: float, horizontal: float, vertical: float) -> float:
    """Survival score minus a small penalty for being far from the gap center."""
    return float(raw_score) - distance_penalty(horizontal, vertical)
