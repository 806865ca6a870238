"""
Genome: one candidate controller for one bird.

A genome owns a NeuralNetwork plus its fitness and a little lineage metadata
(id, generation born, parent ids) kept for diagnostics only.
"""
from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np

from .config import ACTION_OUTPUT_INDEX, ACTION_THRESHOLD
from .network import NeuralNetwork

BASELINE_FITNESS = 0.0


def generate_genome_id(generation: int, index: int, prefix: str = '') -> str:
    """Deterministic identifier, e.g. ``gen3_017`` or ``elite_gen3_000``."""
    if prefix:
        return f"{prefix}_gen{generation}_{index:03d}"
    return f"gen{generation}_{index:03d}"


class Genome:
    """
    Attributes:
        network: The controlling network (fixed topology)
        fitness: Last score written by the driver, starts at 0.0
        genome_id: Identifier for logs and plots
        generation: Generation number when this genome was created
        parents: Tuple of parent genome IDs
    """

    def __init__(self,
                 network: NeuralNetwork,
                 genome_id: str = 'gen0_000',
                 generation: int = 0,
                 parents: Tuple[str, str] = ('random', 'random')):
        self.network = network
        self.fitness = BASELINE_FITNESS
        self.genome_id = genome_id
        self.generation = generation
        self.parents = parents

    @property
    def topology(self) -> Tuple[int, ...]:
        return self.network.topology

    def evaluate(self, inputs: Sequence[float]) -> bool:
        """Run the network and turn its action output into a flap decision."""
        output = self.network.infer(inputs)
        return bool(output[ACTION_OUTPUT_INDEX] > ACTION_THRESHOLD)

    def set_fitness(self, value: float) -> None:
        self.fitness = float(value)

    def weights(self) -> np.ndarray:
        return self.network.weights()

    def copy(self) -> 'Genome':
        """Clone with fitness and metadata, sharing nothing with the original."""
        clone = Genome(
            network=self.network.copy(),
            genome_id=self.genome_id,
            generation=self.generation,
            parents=self.parents,
        )
        clone.fitness = self.fitness
        return clone

    def __repr__(self) -> str:
        return (
            f"Genome(id={self.genome_id}, topology={list(self.topology)}, "
            f"gen={self.generation}, fitness={self.fitness:.3f})"
        )


def rank_genomes(genomes: Sequence[Genome]) -> List[int]:
    """Indices sorted by fitness descending; ties keep population order."""
    return sorted(range(len(genomes)), key=lambda i: (-genomes[i].fitness, i))
