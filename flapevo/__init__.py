"""Neuroevolution of fixed-topology networks flying a headless Flappy Bird."""

from .network import NeuralNetwork  # noqa: F401
from .genome import Genome  # noqa: F401
from .population import Population, create_population  # noqa: F401
from .engine import EvolutionEngine  # noqa: F401
from .genetic_algorithm import GeneticAlgorithm  # noqa: F401
from .config import EvolutionConfig  # noqa: F401
