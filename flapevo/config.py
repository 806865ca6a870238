"""Project-wide configuration constants."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final, List, Optional
import os

from .errors import InvalidConfiguration, InvalidPopulationSize

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
RESULTS_DIR: Final[str] = os.path.join(ROOT, 'results')
RANDOM_SEED: Final[int] = 42

# 150 birds, 5 elites, 3-8-1 networks.
DEFAULT_TOPOLOGY: Final[List[int]] = [3, 8, 1]
POPULATION_SIZE: Final[int] = 150
ELITE_COUNT: Final[int] = 5
WEIGHT_RANGE: Final[float] = 1.0
ACTION_THRESHOLD: Final[float] = 0.5
ACTION_OUTPUT_INDEX: Final[int] = 0

# World, in pixels and seconds.
SCREEN_WIDTH: Final[float] = 1280.0
SCREEN_HEIGHT: Final[float] = 720.0
GROUND_HEIGHT: Final[float] = 110.0
TIME_PER_FRAME: Final[float] = 1.0 / 60.0

BIRD_WIDTH: Final[float] = 34.0
BIRD_HEIGHT: Final[float] = 24.0
GRAVITY: Final[float] = 1400.0
FLAP_VELOCITY: Final[float] = -420.0
MAX_FALL_VELOCITY: Final[float] = 700.0
SCROLL_SPEED: Final[float] = 200.0

PIPE_WIDTH: Final[float] = 80.0
PIPE_GAP: Final[float] = 160.0
PIPE_SPACING_MIN: Final[float] = 300.0
PIPE_SPACING_MAX: Final[float] = 420.0
PIPE_GAP_MARGIN: Final[float] = 60.0

SELECTION_SCHEMES: Final[tuple] = ('roulette', 'tournament')


@dataclass
class EvolutionConfig:
    """Tunable knobs of one evolve call."""
    elite_count: int = ELITE_COUNT
    mutation_rate: float = 0.1
    mutation_std: float = 0.4
    mutation_clip: float = 1.0
    selection: str = 'roulette'
    tournament_size: int = 4
    topology: List[int] = field(default_factory=lambda: list(DEFAULT_TOPOLOGY))
    population_size: int = POPULATION_SIZE
    random_seed: Optional[int] = RANDOM_SEED

    def __post_init__(self):
        if self.population_size < 2:
            raise InvalidPopulationSize(f"population_size must be >= 2, got {self.population_size}")
        if self.elite_count < 0:
            raise InvalidConfiguration(f"elite_count must be >= 0, got {self.elite_count}")
        if self.elite_count >= self.population_size:
            raise InvalidConfiguration(
                f"elite_count ({self.elite_count}) must be smaller than "
                f"population_size ({self.population_size})"
            )
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise InvalidConfiguration(f"mutation_rate {self.mutation_rate} out of range [0, 1]")
        if self.mutation_std < 0.0 or self.mutation_clip < 0.0:
            raise InvalidConfiguration("mutation_std and mutation_clip must be non-negative")
        if self.selection not in SELECTION_SCHEMES:
            raise InvalidConfiguration(
                f"Unknown selection scheme {self.selection!r}, expected one of {SELECTION_SCHEMES}"
            )
        if self.tournament_size < 2:
            raise InvalidConfiguration(f"tournament_size must be >= 2, got {self.tournament_size}")
