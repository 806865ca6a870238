#!/usr/bin/env python3
"""Entry point: evolve a flock of birds in the headless simulation."""
from __future__ import annotations

import os
import sys
import argparse

from loguru import logger

from flapevo.config import (
    DEFAULT_TOPOLOGY,
    ELITE_COUNT,
    POPULATION_SIZE,
    RANDOM_SEED,
    RESULTS_DIR,
    TIME_PER_FRAME,
    EvolutionConfig,
)
from flapevo.genetic_algorithm import GeneticAlgorithm
from flapevo.simulation import FlappySimulation
from flapevo.visualizations import (
    plot_best_mds,
    plot_fitness_history,
    plot_weight_heatmap,
)


def setup_logger(level: str) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="{time:HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}",
        colorize=sys.stderr.isatty(),
    )


def run_experiment(args: argparse.Namespace) -> None:
    setup_logger(args.log_level)
    topology = [DEFAULT_TOPOLOGY[0]] + args.hidden + [DEFAULT_TOPOLOGY[-1]]
    config = EvolutionConfig(
        elite_count=args.elite_size,
        mutation_rate=args.mutation_rate,
        mutation_std=args.mutation_std,
        selection=args.selection,
        tournament_size=args.tournament_size,
        topology=topology,
        population_size=args.population_size,
        random_seed=args.seed,
    )
    print(f"Network topology: {topology}")
    print(f"Population: {config.population_size} birds, {config.elite_count} elites, "
          f"{config.selection} selection")

    ga = GeneticAlgorithm(config)
    sim = FlappySimulation(ga, time_limit=args.time_limit)
    history = sim.run(args.generations, dt=args.dt)

    best = max(range(len(history.best_fitness)), key=lambda i: history.best_fitness[i])
    print(f"\nBest fitness: {history.best_fitness[best]:.3f} "
          f"(generation {history.generations[best]})")

    os.makedirs(args.output, exist_ok=True)
    print("\nGenerating visualizations...")
    plot_fitness_history(history, os.path.join(args.output, "fitness_history.png"))
    plot_weight_heatmap(ga.best_individual_history,
                        os.path.join(args.output, "weights_heatmap.png"),
                        topology=topology)
    if len(ga.best_individual_history) >= 2:
        plot_best_mds(ga.best_individual_history,
                      os.path.join(args.output, "weights_mds.png"),
                      random_state=args.seed)
    print(f"Artifacts saved to {args.output}")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Flappy Bird neuroevolution (headless)")
    parser.add_argument("--generations", type=int, default=30)
    parser.add_argument("--population-size", type=int, default=POPULATION_SIZE)
    parser.add_argument("--hidden", type=int, nargs="*", default=DEFAULT_TOPOLOGY[1:-1])
    parser.add_argument("--elite-size", type=int, default=ELITE_COUNT)
    parser.add_argument("--mutation-rate", type=float, default=0.1)
    parser.add_argument("--mutation-std", type=float, default=0.4)
    parser.add_argument("--selection", choices=["roulette", "tournament"], default="roulette")
    parser.add_argument("--tournament-size", type=int, default=4)
    parser.add_argument("--time-limit", type=float, default=60.0,
                        help="seconds of game time before a generation is cut short")
    parser.add_argument("--dt", type=float, default=TIME_PER_FRAME)
    parser.add_argument("--seed", type=int, default=RANDOM_SEED)
    parser.add_argument("--output", default=RESULTS_DIR)
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args()


if __name__ == "__main__":
    run_experiment(parse_args())
