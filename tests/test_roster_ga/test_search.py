"""
Tests for the evolutionary search driver.
"""

import dataclasses
import threading
import unittest

import numpy as np

from roster_ga.config_loader import ConfigValidationError, SearchSettings
from roster_ga.criteria import DEFAULT_CRITERIA, Criterion, CriterionKind
from roster_ga.data_models import Gender, Individual
from roster_ga.orchestration import (
    STOP_CANCELLED,
    STOP_CONVERGED,
    breed_child,
    random_population,
    run_search,
)
from roster_ga.scoring import ScoringEngine


def uniform_roster():
    """Six men and six women, all rated 100."""
    roster = [Individual(f"m{i}", 100.0, Gender.MALE) for i in range(6)]
    roster += [Individual(f"f{i}", 100.0, Gender.FEMALE) for i in range(6)]
    return roster


def raw_score(result, criterion_name):
    for row in result.engine.breakdown(result.best):
        if row.name == criterion_name:
            return row.raw
    raise KeyError(criterion_name)


class TestRandomPopulation(unittest.TestCase):
    """Test random starting solutions."""

    def test_assignments_in_range(self):
        rng = np.random.default_rng(0)
        roster = uniform_roster()

        population = random_population(roster, 20, 5, rng)

        self.assertEqual(len(population), 20)
        for solution in population:
            groups = solution.groups()
            self.assertEqual(sum(len(g) for g in groups), len(roster))
            for group in solution.assignments():
                self.assertTrue(0 <= group < 5)

    def test_roster_not_modified(self):
        roster = uniform_roster()
        random_population(roster, 5, 4, np.random.default_rng(1))
        self.assertTrue(all(individual.group == 0 for individual in roster))


class TestBreedChild(unittest.TestCase):
    """Test one breeding task."""

    def test_child_is_scored(self):
        rng = np.random.default_rng(2)
        engine = ScoringEngine(DEFAULT_CRITERIA, 3)
        parent_a, parent_b = random_population(uniform_roster(), 2, 3, rng)

        child, ops = breed_child(parent_a, parent_b, engine, 0.5, 0.5, seed=11)

        self.assertIsNotNone(child.score)
        self.assertAlmostEqual(child.score, engine.score_solution(child.individuals)[0])
        self.assertTrue(ops[0].startswith("crossover"))


class TestSearch(unittest.TestCase):
    """Test the generational loop end to end."""

    def setUp(self):
        self.settings = SearchSettings(
            num_groups=6,
            population_size=80,
            elite_count=16,
            mutation_probability=0.2,
            baggage_probability=0.5,
            stall_patience=60,
            deterministic=True,
            seed=1,
        )

    def test_uniform_roster_balances_sizes(self):
        """Test 12 equal players in 6 groups end up two per group."""
        settings = dataclasses.replace(self.settings, stall_patience=120)

        result = run_search(uniform_roster(), settings)

        self.assertEqual(result.stop_reason, STOP_CONVERGED)
        self.assertGreater(result.generations, 0)
        self.assertEqual(raw_score(result, "number of players"), 0)
        self.assertEqual(raw_score(result, "baggages"), 0)
        self.assertEqual(sorted(len(g) for g in result.best.groups()), [2] * 6)

    def test_pairing_constraint_resolved(self):
        """Test a single baggage pair ends up in the same group."""
        roster = [
            Individual("A", 100.0, Gender.MALE, paired_with="B"),
            Individual("B", 100.0, Gender.FEMALE),
            Individual("C", 100.0, Gender.MALE),
            Individual("D", 100.0, Gender.FEMALE),
            Individual("E", 100.0, Gender.MALE),
            Individual("F", 100.0, Gender.FEMALE),
            Individual("G", 100.0, Gender.MALE),
            Individual("H", 100.0, Gender.FEMALE),
        ]
        settings = SearchSettings(
            num_groups=2,
            population_size=60,
            elite_count=12,
            mutation_probability=0.2,
            baggage_probability=0.5,
            stall_patience=120,
            deterministic=True,
            seed=5,
        )

        result = run_search(roster, settings)
        best = {i.name: i.group for i in result.best.individuals}

        self.assertEqual(raw_score(result, "baggages"), 0)
        self.assertEqual(best["A"], best["B"])

    def test_history_is_monotonic(self):
        """Test the best score never gets worse from one generation to the next."""
        result = run_search(uniform_roster(), self.settings)

        self.assertEqual(len(result.history), result.generations + 1)
        for previous, current in zip(result.history, result.history[1:]):
            self.assertLessEqual(current, previous)
        self.assertEqual(result.history[-1], result.best.score)

    def test_parents_sorted_and_sized(self):
        result = run_search(uniform_roster(), self.settings)

        scores = [p.score for p in result.parents]
        self.assertEqual(len(scores), self.settings.elite_count)
        self.assertEqual(scores, sorted(scores))
        self.assertIs(result.best, result.parents[0])

    def test_deterministic_runs_match(self):
        """Test identical seeds give identical results in single-worker mode."""
        first = run_search(uniform_roster(), self.settings)
        second = run_search(uniform_roster(), self.settings)

        self.assertEqual(first.history, second.history)
        self.assertEqual(first.best.assignments(), second.best.assignments())
        self.assertEqual(first.calibration, second.calibration)

    def test_multiple_workers(self):
        """Test a threaded run produces a valid balanced solution."""
        settings = SearchSettings(
            num_groups=6,
            population_size=80,
            elite_count=16,
            mutation_probability=0.2,
            workers=3,
            seed=9,
            stall_patience=120,
        )

        result = run_search(uniform_roster(), settings)

        self.assertEqual(raw_score(result, "number of players"), 0)
        for previous, current in zip(result.history, result.history[1:]):
            self.assertLessEqual(current, previous)

    def test_multiple_workers_reproducible(self):
        """Test per-task seeds make a seeded threaded run repeatable."""
        settings = SearchSettings(
            num_groups=6,
            population_size=40,
            elite_count=8,
            mutation_probability=0.2,
            workers=4,
            seed=3,
            stall_patience=20,
        )

        first = run_search(uniform_roster(), settings)
        second = run_search(uniform_roster(), settings)

        self.assertEqual(first.history, second.history)
        self.assertEqual(first.best.assignments(), second.best.assignments())

    def test_breeding_operations_logged(self):
        """Test every child's crossover and mutation log reaches the debug log."""
        settings = dataclasses.replace(self.settings, population_size=10,
                                       elite_count=4, stall_patience=0)

        with self.assertLogs('roster_ga.orchestration', level='DEBUG') as logs:
            result = run_search(uniform_roster(), settings)

        child_lines = [line for line in logs.output if " child " in line]
        self.assertEqual(len(child_lines), settings.population_size * result.generations)
        self.assertIn("Generation 1 child 0", child_lines[0])
        self.assertTrue(all("crossover" in line for line in child_lines))

    def test_stall_patience_stops_search(self):
        """Test the run ends exactly patience + 1 generations after the last improvement."""
        settings = SearchSettings(
            num_groups=2,
            population_size=4,
            elite_count=2,
            mutation_probability=0.0,
            stall_patience=3,
            deterministic=True,
        )
        roster = [Individual("a", 1.0), Individual("b", 1.0)]

        result = run_search(roster, settings)

        last_improvement = 0
        for generation in range(1, len(result.history)):
            if result.history[generation] < result.history[generation - 1]:
                last_improvement = generation
        self.assertEqual(result.generations - last_improvement, settings.stall_patience + 1)

    def test_cancel_before_start(self):
        """Test a set cancel event stops the run before the first generation."""
        cancel = threading.Event()
        cancel.set()

        result = run_search(uniform_roster(), self.settings, cancel_event=cancel)

        self.assertEqual(result.stop_reason, STOP_CANCELLED)
        self.assertEqual(result.generations, 0)
        self.assertIsNotNone(result.best.score)

    def test_cancel_from_callback(self):
        """Test cancellation is honoured at the next generation boundary."""
        cancel = threading.Event()
        seen = []

        def on_generation(stats):
            seen.append(stats.generation)
            if stats.generation == 3:
                cancel.set()

        result = run_search(uniform_roster(), self.settings, cancel_event=cancel,
                            on_generation=on_generation)

        self.assertEqual(result.generations, 3)
        self.assertEqual(seen, [1, 2, 3])
        self.assertEqual(result.stop_reason, STOP_CANCELLED)

    def test_custom_criteria(self):
        criteria = [Criterion("size", CriterionKind.COUNT_IMBALANCE, weight=1)]

        result = run_search(uniform_roster(), self.settings, criteria=criteria)

        self.assertEqual([c.name for c in result.engine.criteria], ["size"])
        self.assertEqual(result.best.score, 0.0)

    def test_input_roster_untouched(self):
        roster = uniform_roster()
        run_search(roster, self.settings)
        self.assertTrue(all(individual.group == 0 for individual in roster))

    def test_invalid_settings(self):
        """Test configuration errors are raised before the search starts."""
        with self.assertRaises(ConfigValidationError):
            run_search(uniform_roster(), SearchSettings(num_groups=0))
        with self.assertRaises(ConfigValidationError):
            run_search(uniform_roster(), SearchSettings(population_size=5, elite_count=10))

    def test_empty_roster(self):
        with self.assertRaises(ValueError):
            run_search([], self.settings)


if __name__ == '__main__':
    unittest.main()
