"""Fixed-size, ordered population of genomes for one generation."""
from __future__ import annotations

from typing import Iterator, List, Sequence, Tuple

import numpy as np
from loguru import logger

from .errors import IndexOutOfRange, InvalidPopulationSize, TopologyMismatch
from .genome import Genome, generate_genome_id, rank_genomes
from .network import NeuralNetwork


class Population:
    """Genome ``i`` always controls bird ``i`` of the current generation."""

    def __init__(self, genomes: Sequence[Genome], generation: int = 0):
        if len(genomes) < 2:
            raise InvalidPopulationSize(
                f"A population needs at least 2 genomes, got {len(genomes)}"
            )
        topology = genomes[0].topology
        for genome in genomes:
            if genome.topology != topology:
                raise TopologyMismatch(
                    f"Genome {genome.genome_id} has topology {list(genome.topology)}, "
                    f"expected {list(topology)}"
                )
        self._genomes: List[Genome] = list(genomes)
        self._generation = int(generation)
        self._topology = topology

    @property
    def size(self) -> int:
        return len(self._genomes)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def topology(self) -> Tuple[int, ...]:
        return self._topology

    def at(self, index: int) -> Genome:
        if not 0 <= index < len(self._genomes):
            raise IndexOutOfRange(
                f"Genome index {index} outside [0, {len(self._genomes)})"
            )
        return self._genomes[index]

    def __len__(self) -> int:
        return len(self._genomes)

    def __iter__(self) -> Iterator[Genome]:
        return iter(self._genomes)

    def fitness_scores(self) -> np.ndarray:
        return np.array([g.fitness for g in self._genomes], dtype=float)

    def weight_matrix(self) -> np.ndarray:
        """All weight vectors stacked, one row per genome."""
        return np.vstack([g.weights() for g in self._genomes])

    def ranked(self) -> List[int]:
        return rank_genomes(self._genomes)

    def best(self) -> Genome:
        return self._genomes[self.ranked()[0]]

    def __repr__(self) -> str:
        return (
            f"Population(size={self.size}, generation={self._generation}, "
            f"topology={list(self._topology)})"
        )


def create_population(size: int,
                      topology: Sequence[int],
                      rng: np.random.Generator) -> Population:
    """Generation 0: ``size`` genomes with independently randomized networks."""
    if size < 2:
        raise InvalidPopulationSize(
            f"Selection and crossover need at least 2 genomes, got {size}"
        )
    genomes = [
        Genome(NeuralNetwork(topology, rng=rng), genome_id=generate_genome_id(0, i))
        for i in range(size)
    ]
    logger.debug("Created population of {n} genomes with topology {t}", n=size, t=list(topology))
    return Population(genomes, generation=0)
