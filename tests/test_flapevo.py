"""Unit tests for the flapevo evolution core."""
from __future__ import annotations

import unittest
import numpy as np

from flapevo.config import EvolutionConfig
from flapevo.engine import (
    EvolutionEngine,
    mutate_weights,
    roulette_selection,
    single_point_crossover,
    tournament_selection,
)
from flapevo.errors import (
    IndexOutOfRange,
    InputSizeMismatch,
    InvalidConfiguration,
    InvalidPopulationSize,
    InvalidTopologyWeights,
    TopologyMismatch,
    WeightCountMismatch,
)
from flapevo.fitness import compute_fitness, distance_penalty, normalize, perceive
from flapevo.genetic_algorithm import GeneticAlgorithm
from flapevo.genome import Genome, rank_genomes
from flapevo.network import NeuralNetwork, parameter_count
from flapevo.population import Population, create_population


class TestNetwork(unittest.TestCase):
    def setUp(self):
        self.rng = np.random.default_rng(0)

    def test_parameter_count(self):
        self.assertEqual(parameter_count([2, 1]), 3)
        self.assertEqual(parameter_count([3, 8, 1]), 41)

    def test_random_weights_bounded(self):
        net = NeuralNetwork([3, 8, 1], rng=self.rng)
        weights = net.weights()
        self.assertEqual(weights.shape[0], 41)
        self.assertTrue(np.all(weights >= -1.0))
        self.assertTrue(np.all(weights <= 1.0))

    def test_explicit_weights_must_match_topology(self):
        with self.assertRaises(InvalidTopologyWeights):
            NeuralNetwork([2, 1], weights=[1.0, 1.0])
        with self.assertRaises(InvalidTopologyWeights):
            NeuralNetwork([3])

    def test_infer_is_deterministic(self):
        net = NeuralNetwork([3, 8, 1], rng=self.rng)
        x = [0.25, -0.75, 0.5]
        first = net.infer(x)
        for _ in range(5):
            np.testing.assert_array_equal(net.infer(x), first)

    def test_infer_rejects_wrong_input_size(self):
        net = NeuralNetwork([3, 8, 1], rng=self.rng)
        with self.assertRaises(InputSizeMismatch):
            net.infer([0.1, 0.2])

    def test_set_get_weights_roundtrip(self):
        net = NeuralNetwork([5, 4, 2], rng=self.rng)
        weights = self.rng.normal(size=net.total_weights)
        net.set_weights(weights)
        np.testing.assert_array_equal(net.weights(), weights)

    def test_set_weights_rejects_wrong_length(self):
        net = NeuralNetwork([2, 1], weights=[0.0, 0.0, 0.0])
        with self.assertRaises(WeightCountMismatch):
            net.set_weights([1.0, 2.0, 3.0, 4.0])

    def test_non_integral_layer_sizes_rejected(self):
        with self.assertRaises(InvalidTopologyWeights):
            NeuralNetwork([3, 2.7, 1], rng=self.rng)
        with self.assertRaises(InvalidTopologyWeights):
            NeuralNetwork([3, True, 1], rng=self.rng)
        net = NeuralNetwork([np.int64(3), 2, 1], rng=self.rng)
        self.assertEqual(net.topology, (3, 2, 1))

    def test_weight_matrix_is_not_flattened(self):
        with self.assertRaises(InvalidTopologyWeights):
            NeuralNetwork([2, 1], weights=[[1.0, 1.0, 0.0]])
        net = NeuralNetwork([2, 1], weights=[0.0, 0.0, 0.0])
        with self.assertRaises(WeightCountMismatch):
            net.set_weights(np.zeros((3, 1)))

    def test_weights_returns_copy(self):
        net = NeuralNetwork([2, 1], weights=[1.0, 1.0, 0.0])
        net.weights()[0] = 99.0
        self.assertEqual(net.weights()[0], 1.0)

    def test_sigmoid_midpoint(self):
        net = NeuralNetwork([2, 1], weights=[1.0, 1.0, 0.0])
        out = net.infer([0.5, -0.5])
        self.assertEqual(out.shape, (1,))
        self.assertEqual(out[0], 0.5)


class TestGenome(unittest.TestCase):
    def test_evaluate_uses_strict_threshold(self):
        genome = Genome(NeuralNetwork([2, 1], weights=[1.0, 1.0, 0.0]))
        self.assertFalse(genome.evaluate([0.5, -0.5]))
        self.assertTrue(genome.evaluate([0.5, 0.5]))

    def test_evaluate_leaves_fitness_alone(self):
        genome = Genome(NeuralNetwork([2, 1], weights=[1.0, 1.0, 0.0]))
        self.assertEqual(genome.fitness, 0.0)
        genome.evaluate([0.1, 0.2])
        self.assertEqual(genome.fitness, 0.0)
        genome.set_fitness(3.5)
        self.assertEqual(genome.fitness, 3.5)

    def test_copy_is_independent(self):
        genome = Genome(NeuralNetwork([2, 1], weights=[1.0, 2.0, 3.0]), genome_id='a')
        genome.set_fitness(2.0)
        clone = genome.copy()
        clone.network.set_weights([0.0, 0.0, 0.0])
        np.testing.assert_array_equal(genome.weights(), [1.0, 2.0, 3.0])
        self.assertEqual(clone.fitness, 2.0)
        self.assertEqual(clone.genome_id, 'a')

    def test_rank_breaks_ties_by_index(self):
        genomes = [Genome(NeuralNetwork([2, 1], weights=[0.0, 0.0, 0.0])) for _ in range(4)]
        for genome, fitness in zip(genomes, [1.0, 3.0, 1.0, 3.0]):
            genome.set_fitness(fitness)
        self.assertEqual(rank_genomes(genomes), [1, 3, 0, 2])


class TestPopulation(unittest.TestCase):
    def test_create_population_shape(self):
        pop = create_population(10, [3, 8, 1], np.random.default_rng(1))
        self.assertEqual(pop.size, 10)
        self.assertEqual(len(pop), 10)
        self.assertEqual(pop.generation, 0)
        for genome in pop:
            self.assertEqual(genome.topology, (3, 8, 1))
            self.assertEqual(genome.weights().shape[0], 41)
            self.assertEqual(genome.fitness, 0.0)

    def test_networks_are_independent(self):
        pop = create_population(3, [3, 8, 1], np.random.default_rng(1))
        self.assertFalse(np.array_equal(pop.at(0).weights(), pop.at(1).weights()))

    def test_too_small_population(self):
        with self.assertRaises(InvalidPopulationSize):
            create_population(1, [2, 1], np.random.default_rng(0))

    def test_bounds_checked_access(self):
        pop = create_population(4, [2, 1], np.random.default_rng(0))
        self.assertIs(pop.at(3), list(pop)[3])
        with self.assertRaises(IndexOutOfRange):
            pop.at(4)
        with self.assertRaises(IndexOutOfRange):
            pop.at(-1)

    def test_mixed_topologies_rejected(self):
        rng = np.random.default_rng(0)
        genomes = [Genome(NeuralNetwork([2, 1], rng=rng)),
                   Genome(NeuralNetwork([2, 2, 1], rng=rng))]
        with self.assertRaises(TopologyMismatch):
            Population(genomes)


class TestOperators(unittest.TestCase):
    def test_single_point_crossover(self):
        child = single_point_crossover(np.ones(3), -np.ones(3), 1)
        np.testing.assert_array_equal(child, [1.0, -1.0, -1.0])

    def test_crossover_length_mismatch(self):
        with self.assertRaises(WeightCountMismatch):
            single_point_crossover(np.ones(3), np.ones(4), 1)

    def test_crossover_point_out_of_range(self):
        with self.assertRaises(InvalidConfiguration):
            single_point_crossover(np.ones(3), -np.ones(3), 4)
        with self.assertRaises(InvalidConfiguration):
            single_point_crossover(np.ones(3), -np.ones(3), -1)

    def test_mutation_disabled(self):
        rng = np.random.default_rng(0)
        weights = np.array([0.1, 0.2, 0.3])
        np.testing.assert_array_equal(mutate_weights(weights, rng, 0.0, 0.5, 1.0), weights)

    def test_mutation_is_bounded(self):
        rng = np.random.default_rng(0)
        weights = np.zeros(200)
        mutated = mutate_weights(weights, rng, 1.0, 5.0, 0.1)
        self.assertEqual(mutated.shape, weights.shape)
        self.assertTrue(np.all(np.abs(mutated) <= 0.1))
        self.assertTrue(np.all(weights == 0.0))

    def test_roulette_prefers_only_positive(self):
        rng = np.random.default_rng(0)
        fitness = np.array([0.0, 5.0, -2.0])
        picks = {roulette_selection(fitness, rng) for _ in range(50)}
        self.assertEqual(picks, {1})

    def test_roulette_degenerate_falls_back_to_uniform(self):
        rng = np.random.default_rng(0)
        for fitness in (np.zeros(4), np.full(4, -1.0), np.full(4, 2.0)):
            picks = {roulette_selection(fitness, rng) for _ in range(200)}
            self.assertEqual(picks, {0, 1, 2, 3})

    def test_selection_respects_exclude(self):
        rng = np.random.default_rng(0)
        fitness = np.array([0.0, 5.0, 1.0])
        for _ in range(50):
            self.assertNotEqual(roulette_selection(fitness, rng, exclude=1), 1)
            self.assertNotEqual(tournament_selection(fitness, rng, 3, exclude=1), 1)

    def test_parents_are_distinct(self):
        engine = EvolutionEngine(EvolutionConfig(population_size=2, elite_count=0))
        rng = np.random.default_rng(3)
        for fitness in (np.array([1.0, 1.0]), np.array([9.0, 0.5])):
            a, b = engine.select_parents(fitness, rng)
            self.assertNotEqual(a, b)


class TestEvolutionEngine(unittest.TestCase):
    def setUp(self):
        self.config = EvolutionConfig(population_size=12, elite_count=2,
                                      topology=[3, 4, 1], random_seed=5)
        self.engine = EvolutionEngine(self.config)

    def _population(self, seed=0):
        rng = np.random.default_rng(seed)
        pop = create_population(12, [3, 4, 1], rng)
        for i, genome in enumerate(pop):
            genome.set_fitness(float(i % 5))
        return pop

    def test_evolve_preserves_shape(self):
        pop = self._population()
        new = self.engine.evolve(pop, np.random.default_rng(0))
        self.assertEqual(new.size, pop.size)
        self.assertEqual(new.topology, pop.topology)
        self.assertEqual(new.generation, pop.generation + 1)
        for genome in new:
            self.assertEqual(genome.weights().shape[0], parameter_count([3, 4, 1]))

    def test_elites_copied_verbatim(self):
        pop = self._population()
        ranked = pop.ranked()
        new = self.engine.evolve(pop, np.random.default_rng(0))
        for slot in range(self.config.elite_count):
            np.testing.assert_array_equal(new.at(slot).weights(), pop.at(ranked[slot]).weights())
        self.assertGreaterEqual(new.fitness_scores().max(), pop.fitness_scores().max())

    def test_children_start_at_baseline(self):
        new = self.engine.evolve(self._population(), np.random.default_rng(0))
        for slot in range(self.config.elite_count, new.size):
            self.assertEqual(new.at(slot).fitness, 0.0)
            self.assertEqual(new.at(slot).generation, 1)

    def test_all_zero_fitness(self):
        pop = create_population(6, [3, 4, 1], np.random.default_rng(2))
        new = self.engine.evolve(pop, np.random.default_rng(2))
        self.assertEqual(new.size, 6)

    def test_identical_genomes(self):
        genomes = [Genome(NeuralNetwork([2, 1], weights=[0.5, 0.5, 0.5])) for _ in range(4)]
        pop = Population(genomes)
        engine = EvolutionEngine(EvolutionConfig(population_size=4, elite_count=1))
        new = engine.evolve(pop, np.random.default_rng(0))
        self.assertEqual(new.size, 4)

    def test_evolve_is_reproducible(self):
        a = self.engine.evolve(self._population(), np.random.default_rng(11))
        b = self.engine.evolve(self._population(), np.random.default_rng(11))
        np.testing.assert_array_equal(a.weight_matrix(), b.weight_matrix())

    def test_tournament_selection_scheme(self):
        config = EvolutionConfig(population_size=12, elite_count=1, selection='tournament')
        new = EvolutionEngine(config).evolve(self._population(), np.random.default_rng(0))
        self.assertEqual(new.size, 12)

    def test_single_point_scenario_without_mutation(self):
        pop = Population([
            Genome(NeuralNetwork([2, 1], weights=[1.0, 1.0, 1.0])),
            Genome(NeuralNetwork([2, 1], weights=[-1.0, -1.0, -1.0])),
        ])
        pop.at(0).set_fitness(2.0)
        pop.at(1).set_fitness(1.0)
        config = EvolutionConfig(population_size=2, elite_count=1, mutation_rate=0.0)
        new = EvolutionEngine(config).evolve(pop, np.random.default_rng(0))
        np.testing.assert_array_equal(new.at(0).weights(), [1.0, 1.0, 1.0])
        # cut point is 1 or 2 and either parent may come first
        child = new.at(1).weights()
        self.assertIn(child.tolist(), ([1.0, -1.0, -1.0], [1.0, 1.0, -1.0],
                                       [-1.0, 1.0, 1.0], [-1.0, -1.0, 1.0]))

    def test_mismatched_topology_fails_fast(self):
        pop = self._population()
        pop.at(3).network = NeuralNetwork([3, 5, 1], rng=np.random.default_rng(0))
        with self.assertRaises(TopologyMismatch):
            self.engine.evolve(pop, np.random.default_rng(0))

    def test_too_many_elites(self):
        pop = create_population(3, [2, 1], np.random.default_rng(0))
        engine = EvolutionEngine(EvolutionConfig(population_size=10, elite_count=3))
        with self.assertRaises(InvalidConfiguration):
            engine.evolve(pop, np.random.default_rng(0))


class TestConfig(unittest.TestCase):
    def test_invalid_values(self):
        with self.assertRaises(InvalidPopulationSize):
            EvolutionConfig(population_size=1, elite_count=0)
        with self.assertRaises(InvalidConfiguration):
            EvolutionConfig(selection='rank')
        with self.assertRaises(InvalidConfiguration):
            EvolutionConfig(mutation_rate=1.5)
        with self.assertRaises(InvalidConfiguration):
            EvolutionConfig(population_size=5, elite_count=5)


class TestFitness(unittest.TestCase):
    def test_fitness_formula(self):
        self.assertAlmostEqual(distance_penalty(0.3, 0.4), 0.05)
        self.assertAlmostEqual(compute_fitness(10, 0.3, 0.4), 9.95)

    def test_normalize(self):
        self.assertEqual(normalize(0.0, 1280.0, 640.0), 0.5)

    def test_perceive_signs_and_clamping(self):
        seen = perceive((320.0, 360.0), (960.0, 300.0), (1280.0, 720.0))
        self.assertAlmostEqual(seen.horizontal, 0.5)
        self.assertAlmostEqual(seen.vertical, -60.0 / 720.0)
        self.assertAlmostEqual(seen.altitude, 0.5)

        far = perceive((0.0, 100.0), (5000.0, 900.0), (1280.0, 720.0))
        self.assertEqual(far.horizontal, 1.0)
        self.assertEqual(far.vertical, 1.0)

        behind = perceive((500.0, 100.0), (400.0, 100.0), (1280.0, 720.0))
        self.assertLess(behind.horizontal, 0.0)
        self.assertEqual(behind.as_input().shape, (3,))


class TestGeneticAlgorithm(unittest.TestCase):
    def setUp(self):
        self.config = EvolutionConfig(population_size=8, elite_count=2,
                                      topology=[3, 4, 1], random_seed=1)

    def test_requires_population(self):
        ga = GeneticAlgorithm(self.config)
        with self.assertRaises(RuntimeError):
            ga.at(0)
        ga.create_population()
        with self.assertRaises(RuntimeError):
            ga.create_population()

    def test_evolve_records_history(self):
        ga = GeneticAlgorithm(self.config)
        ga.create_population()
        for i in range(ga.size):
            ga.at(i).set_fitness(float(i))
        ga.evolve()
        ga.evolve()
        self.assertEqual(ga.generation, 2)
        self.assertEqual(ga.history.generations, [0, 1])
        self.assertEqual(ga.history.best_fitness[0], 7.0)
        self.assertEqual(ga.history.best_fitness[1], 7.0)
        self.assertEqual(len(ga.best_individual_history), 2)
        self.assertGreater(ga.history.diversity[0], 0.0)

    def test_best_payload(self):
        ga = GeneticAlgorithm(self.config)
        ga.create_population()
        ga.at(5).set_fitness(4.0)
        payload = ga.get_best_individual()
        self.assertEqual(payload["fitness"], 4.0)
        np.testing.assert_array_equal(payload["weights"], ga.at(5).weights())


if __name__ == "__main__":
    unittest.main()
