"""
Evolutionary operators and the generational evolve step.

One evolve call turns generation g into generation g + 1:
1. Rank genomes by fitness (ties keep population order)
2. Copy the top-K elites unmodified
3. Select two distinct parents per remaining slot (roulette or tournament)
4. Single-point crossover of the flat weight vectors
5. Per-weight Gaussian mutation, clipped
6. Wrap the children in fresh networks and genomes (fitness reset)
"""
from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from .config import EvolutionConfig
from .errors import InvalidConfiguration, TopologyMismatch, WeightCountMismatch
from .genome import Genome, generate_genome_id
from .network import NeuralNetwork
from .population import Population


# =============================================================================
# Selection Operators
# =============================================================================

def _candidates(n: int, exclude: Optional[int]) -> np.ndarray:
    indices = np.arange(n)
    if exclude is not None:
        indices = indices[indices != exclude]
    return indices


def _is_degenerate(fitness: np.ndarray) -> bool:
    """True when fitness carries no usable preference (all equal or none positive)."""
    return bool(np.all(fitness == fitness[0]) or np.all(fitness <= 0.0))


def roulette_selection(fitness: np.ndarray,
                       rng: np.random.Generator,
                       exclude: Optional[int] = None) -> int:
    """
    Fitness-proportionate choice of one index.

    Negative fitness counts as zero. When no candidate has positive fitness,
    or all candidates are equally fit, every candidate is equally likely.
    """
    candidates = _candidates(len(fitness), exclude)
    scores = fitness[candidates]
    if _is_degenerate(scores):
        return int(rng.choice(candidates))

    weights = np.clip(scores, 0.0, None)
    return int(rng.choice(candidates, p=weights / weights.sum()))


def tournament_selection(fitness: np.ndarray,
                         rng: np.random.Generator,
                         tournament_size: int = 4,
                         exclude: Optional[int] = None) -> int:
    """Best of ``tournament_size`` distinct random contestants."""
    candidates = _candidates(len(fitness), exclude)
    if _is_degenerate(fitness[candidates]):
        return int(rng.choice(candidates))

    k = min(tournament_size, len(candidates))
    contestants = np.sort(rng.choice(candidates, size=k, replace=False))
    # argmax returns the first maximum, so ties go to the better-ranked index
    return int(contestants[np.argmax(fitness[contestants])])


# =============================================================================
# Variation Operators
# =============================================================================

def single_point_crossover(parent_a: np.ndarray,
                           parent_b: np.ndarray,
                           point: int) -> np.ndarray:
    """Child takes ``parent_a[:point]`` followed by ``parent_b[point:]``."""
    parent_a = np.asarray(parent_a, dtype=float)
    parent_b = np.asarray(parent_b, dtype=float)
    if parent_a.shape != parent_b.shape:
        raise WeightCountMismatch(
            f"Parents have {parent_a.shape[0]} and {parent_b.shape[0]} weights"
        )
    if not 0 <= point <= parent_a.shape[0]:
        raise InvalidConfiguration(f"Crossover point {point} outside [0, {parent_a.shape[0]}]")
    return np.concatenate([parent_a[:point], parent_b[point:]])


def mutate_weights(weights: np.ndarray,
                   rng: np.random.Generator,
                   mutation_rate: float,
                   mutation_std: float,
                   mutation_clip: float) -> np.ndarray:
    """Add clipped Gaussian noise to each weight with probability ``mutation_rate``."""
    mutated = np.array(weights, dtype=float)
    mask = rng.random(mutated.shape[0]) < mutation_rate
    noise = np.clip(rng.normal(scale=mutation_std, size=mutated.shape[0]),
                    -mutation_clip, mutation_clip)
    mutated[mask] += noise[mask]
    return mutated


# =============================================================================
# Engine
# =============================================================================

class EvolutionEngine:
    """Stateless apart from its configuration; the generator is passed per call."""

    def __init__(self, config: Optional[EvolutionConfig] = None):
        self.config = config if config is not None else EvolutionConfig()

    def _select(self, fitness: np.ndarray, rng: np.random.Generator,
                exclude: Optional[int] = None) -> int:
        if self.config.selection == 'tournament':
            return tournament_selection(fitness, rng, self.config.tournament_size, exclude)
        return roulette_selection(fitness, rng, exclude)

    def select_parents(self, fitness: np.ndarray,
                       rng: np.random.Generator) -> Tuple[int, int]:
        first = self._select(fitness, rng)
        second = self._select(fitness, rng, exclude=first)
        return first, second

    def _check(self, population: Population) -> None:
        for genome in population:
            if genome.topology != population.topology:
                raise TopologyMismatch(
                    f"Genome {genome.genome_id} has topology {list(genome.topology)}, "
                    f"population expects {list(population.topology)}"
                )
        if self.config.elite_count >= population.size:
            raise InvalidConfiguration(
                f"elite_count ({self.config.elite_count}) must be smaller than the "
                f"population size ({population.size})"
            )

    def evolve(self, population: Population, rng: np.random.Generator) -> Population:
        self._check(population)
        cfg = self.config
        next_generation = population.generation + 1
        topology = population.topology

        ranked = population.ranked()
        ranked_genomes: Sequence[Genome] = [population.at(i) for i in ranked]
        ranked_fitness = np.array([g.fitness for g in ranked_genomes], dtype=float)

        offspring = [genome.copy() for genome in ranked_genomes[:cfg.elite_count]]

        while len(offspring) < population.size:
            a, b = self.select_parents(ranked_fitness, rng)
            parent_a, parent_b = ranked_genomes[a], ranked_genomes[b]
            weights_a = parent_a.weights()
            point = int(rng.integers(1, weights_a.shape[0]))
            child = single_point_crossover(weights_a, parent_b.weights(), point)
            child = mutate_weights(child, rng, cfg.mutation_rate,
                                   cfg.mutation_std, cfg.mutation_clip)
            offspring.append(Genome(
                NeuralNetwork(topology, child),
                genome_id=generate_genome_id(next_generation, len(offspring)),
                generation=next_generation,
                parents=(parent_a.genome_id, parent_b.genome_id),
            ))

        logger.debug(
            "Evolved generation {g} -> {n}: best={best:.3f} mean={mean:.3f} elites={k}",
            g=population.generation, n=next_generation,
            best=float(ranked_fitness[0]), mean=float(ranked_fitness.mean()),
            k=cfg.elite_count,
        )
        return Population(offspring, generation=next_generation)
