"""Genetic algorithm front-end the simulation driver talks to."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np
from loguru import logger

from .config import EvolutionConfig
from .engine import EvolutionEngine
from .genome import Genome
from .population import Population, create_population


@dataclass
class GAHistory:
    generations: List[int]
    best_fitness: List[float]
    mean_fitness: List[float]
    diversity: List[float]


class GeneticAlgorithm:
    """Owns the seeded generator, the live population and its history."""

    def __init__(self, config: Optional[EvolutionConfig] = None):
        self.config = config if config is not None else EvolutionConfig()
        self.rng = np.random.default_rng(self.config.random_seed)
        self.engine = EvolutionEngine(self.config)
        self.population: Optional[Population] = None

        self.best_individual_history: List[np.ndarray] = []
        self.population_history: List[np.ndarray] = []
        self.fitness_history: List[np.ndarray] = []
        self.history = GAHistory([], [], [], [])

    def create_population(self) -> Population:
        if self.population is not None:
            raise RuntimeError("Population already created; call evolve() to advance it.")
        self.population = create_population(
            self.config.population_size, self.config.topology, self.rng
        )
        return self.population

    def _require_population(self) -> Population:
        if self.population is None:
            raise RuntimeError("create_population() must be called first.")
        return self.population

    def at(self, index: int) -> Genome:
        return self._require_population().at(index)

    @property
    def size(self) -> int:
        return self._require_population().size

    @property
    def generation(self) -> int:
        return self._require_population().generation

    @staticmethod
    def _population_diversity(weights: np.ndarray) -> float:
        if weights.shape[0] < 2:
            return 0.0
        diffs = weights[:, None, :] - weights[None, :, :]
        dists = np.sqrt(np.sum(diffs * diffs, axis=2))
        iu = np.triu_indices_from(dists, k=1)
        return float(np.mean(dists[iu]))

    def _record_history(self) -> None:
        population = self._require_population()
        weights = population.weight_matrix()
        fitness = population.fitness_scores()
        best = population.best()

        self.best_individual_history.append(best.weights())
        self.population_history.append(weights)
        self.fitness_history.append(fitness)

        self.history.generations.append(population.generation)
        self.history.best_fitness.append(float(best.fitness))
        self.history.mean_fitness.append(float(np.mean(fitness)))
        self.history.diversity.append(self._population_diversity(weights))

    def evolve(self) -> Population:
        """Record the finished generation and replace it with the next one."""
        population = self._require_population()
        self._record_history()
        logger.info(
            "Gen {g:03d} | Best={best:.3f} Mean={mean:.3f} Diversity={div:.3f}",
            g=population.generation,
            best=self.history.best_fitness[-1],
            mean=self.history.mean_fitness[-1],
            div=self.history.diversity[-1],
        )
        self.population = self.engine.evolve(population, self.rng)
        return self.population

    def get_best_individual(self) -> Dict[str, object]:
        best = self._require_population().best()
        return {
            "weights": best.weights(),
            "fitness": float(best.fitness),
            "genome_id": best.genome_id,
        }
