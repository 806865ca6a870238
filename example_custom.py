#!/usr/bin/env python3
"""
Example: drive the evolution core from your own loop.

Instead of FlappySimulation, this plays the driver role by hand for a toy
world where a bird should flap whenever the gap is above it. It shows the
per-tick contract: evaluate, apply the action, write fitness back, and evolve
once the whole flock is done.
"""
import numpy as np

from flapevo.config import EvolutionConfig
from flapevo.engine import EvolutionEngine
from flapevo.fitness import compute_fitness
from flapevo.population import create_population


def main():
    """Evolve a 3-6-1 network with tournament selection on a toy task."""
    print("=" * 80)
    print("Custom Example: hand-written driver")
    print("=" * 80)

    config = EvolutionConfig(
        topology=[3, 6, 1],
        population_size=40,
        elite_count=3,
        mutation_rate=0.15,
        mutation_std=0.3,
        selection='tournament',
        tournament_size=5,
    )
    rng = np.random.default_rng(config.random_seed)
    world = np.random.default_rng(7)
    engine = EvolutionEngine(config)
    population = create_population(config.population_size, config.topology, rng)

    for _ in range(25):
        scores = np.zeros(population.size)
        for _tick in range(50):
            horizontal = world.uniform(0.0, 1.0)
            vertical = world.uniform(-1.0, 1.0)
            altitude = world.uniform(0.0, 1.0)
            for i in range(population.size):
                genome = population.at(i)
                flap = genome.evaluate([horizontal, vertical, altitude])
                # gap above the bird means a negative vertical reading
                if flap == (vertical < 0):
                    scores[i] += 1
                genome.set_fitness(compute_fitness(scores[i], horizontal, vertical))

        best = population.best()
        print(f"Gen {population.generation:03d} | Best={best.fitness:.3f} "
              f"Mean={population.fitness_scores().mean():.3f}")
        population = engine.evolve(population, rng)

    print("=" * 80)


if __name__ == "__main__":
    main()
