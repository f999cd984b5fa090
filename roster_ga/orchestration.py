"""
Evolutionary search driver.

Runs the generational loop: random start, calibration, then repeated
tournament selection, breeding on a worker pool, and elitism until the best
score stops improving or the run is cancelled.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from .calibration import calibrate
from .config_loader import SearchSettings
from .criteria import Criterion
from .crossover import breed
from .data_models import Individual, Solution
from .mutation import mutate
from .scoring import Calibration, ScoringEngine
from .selection import merge_elites, select_two_parents

logger = logging.getLogger(__name__)

STOP_CONVERGED = "converged"
STOP_CANCELLED = "cancelled"


@dataclass
class GenerationStats:
    """Summary of one finished generation."""
    generation: int
    best_score: float
    worst_elite_score: float
    improved: bool
    generations_since_improvement: int
    elapsed_seconds: float


@dataclass
class SearchResult:
    """
    Outcome of a search.

    Attributes:
        best: Best solution found
        parents: Final elite set, best first
        engine: Calibrated scoring engine used for the run
        calibration: Worst-case table from the calibration pass
        generations: Number of generations bred
        history: Best score after calibration (index 0) and after each generation
        stop_reason: "converged" or "cancelled"
    """
    best: Solution
    parents: List[Solution]
    engine: ScoringEngine
    calibration: Calibration
    generations: int
    history: List[float] = field(default_factory=list)
    stop_reason: str = STOP_CONVERGED


def make_rng(settings: SearchSettings) -> np.random.Generator:
    """Seeded generator, or one seeded from OS entropy when no seed is set."""
    if settings.seed is None:
        return np.random.default_rng()
    return np.random.default_rng(settings.seed)


def random_solution(
    individuals: Sequence[Individual],
    num_groups: int,
    rng: np.random.Generator
) -> Solution:
    """Copy the individuals and assign each to a uniformly random group."""
    assignments = rng.integers(0, num_groups, size=len(individuals))
    copies = []
    for individual, group in zip(individuals, assignments):
        copy = individual.copy()
        copy.group = int(group)
        copies.append(copy)
    return Solution(individuals=copies, num_groups=num_groups)


def random_population(
    individuals: Sequence[Individual],
    size: int,
    num_groups: int,
    rng: np.random.Generator
) -> List[Solution]:
    return [random_solution(individuals, num_groups, rng) for _ in range(size)]


def breed_child(
    parent_a: Solution,
    parent_b: Solution,
    engine: ScoringEngine,
    mutation_probability: float,
    baggage_probability: float,
    seed: int
) -> Tuple[Solution, List[str]]:
    """
    One breeding task: crossover, mutation and scoring of a single child.

    Runs on a worker. The parents passed in must be private copies; the
    engine is only read.

    Args:
        parent_a: First parent
        parent_b: Second parent
        engine: Calibrated scoring engine
        mutation_probability: Probability of each mutation move
        baggage_probability: Probability a move carries the paired partner
        seed: Seed for this task's own random stream

    Returns:
        Tuple of (scored_child, operation_log)
    """
    rng = np.random.default_rng(seed)
    child, cut_points = breed(parent_a, parent_b, rng)
    ops = [f"crossover: cuts={cut_points}" if cut_points else "crossover: clone (too small to split)"]
    child, mutation_ops = mutate(child, rng, mutation_probability, baggage_probability)
    ops.extend(mutation_ops)
    engine.evaluate(child)
    return child, ops


def _breed_generation(
    generation: int,
    parents: List[Solution],
    engine: ScoringEngine,
    settings: SearchSettings,
    rng: np.random.Generator,
    executor: Optional[ThreadPoolExecutor]
) -> List[Solution]:
    """
    Breed population_size scored children. Blocks until all are done.

    Each child's crossover and mutation log is written at DEBUG level.
    """
    tasks = []
    for _ in range(settings.population_size):
        parent_a, parent_b = select_two_parents(
            parents, rng, settings.tournament_size, settings.selection_pressure
        )
        seed = int(rng.integers(0, 2**31))
        tasks.append((parent_a.copy(), parent_b.copy(), engine,
                      settings.mutation_probability, settings.baggage_probability, seed))

    if executor is None:
        results = [breed_child(*task) for task in tasks]
    else:
        futures = [executor.submit(breed_child, *task) for task in tasks]
        results = [future.result() for future in futures]

    children = []
    for index, (child, ops) in enumerate(results):
        logger.debug("Generation %d child %d (score %.6f): %s",
                     generation, index, child.score, "; ".join(ops))
        children.append(child)
    return children


def run_search(
    individuals: Sequence[Individual],
    settings: SearchSettings,
    criteria: Optional[Sequence[Criterion]] = None,
    cancel_event: Optional[threading.Event] = None,
    on_generation: Optional[Callable[[GenerationStats], None]] = None
) -> SearchResult:
    """
    Search for a balanced assignment of individuals to groups.

    Algorithm:
        1. Build population_size random solutions
        2. Calibrate criterion worst cases on them and score them
        3. Keep the best elite_count as parents
        4. Each generation: check for cancellation, breed population_size
           children on the worker pool, keep the best elite_count of parents
           and children together
        5. Stop when more than stall_patience generations pass without the
           best score improving, or when cancel_event is set

    Args:
        individuals: Roster to split; not modified
        settings: Search parameters
        criteria: Criteria table (defaults to the default table)
        cancel_event: Checked between generations; setting it ends the run
            after the current generation
        on_generation: Called with a GenerationStats after every generation

    Returns:
        SearchResult with the best solution found

    Raises:
        ConfigValidationError: If settings are invalid
        ValueError: If there are no individuals
    """
    settings.validate()
    if not individuals:
        raise ValueError("Cannot build groups from an empty roster")

    start_time = time.time()
    rng = make_rng(settings)
    engine = ScoringEngine(criteria, settings.num_groups)

    population = random_population(individuals, settings.population_size, settings.num_groups, rng)
    calibration = calibrate(population, engine)
    engine = engine.with_calibration(calibration)
    for solution in population:
        engine.evaluate(solution)

    parents = merge_elites([], population, settings.elite_count)
    best_score = parents[0].sort_key
    history = [best_score]
    logger.info("Initial best score %.6f from %d random solutions", best_score, len(population))

    generation = 0
    last_improvement = 0
    stop_reason = STOP_CONVERGED

    executor = None
    if settings.workers > 1:
        executor = ThreadPoolExecutor(max_workers=settings.workers, thread_name_prefix="breeder")
    logger.debug("Breeding with %d worker(s)", settings.workers)

    try:
        while generation - last_improvement <= settings.stall_patience:
            if cancel_event is not None and cancel_event.is_set():
                stop_reason = STOP_CANCELLED
                logger.info("Search cancelled after %d generations", generation)
                break

            generation += 1
            children = _breed_generation(generation, parents, engine, settings, rng, executor)
            parents = merge_elites(parents, children, settings.elite_count)

            improved = parents[0].sort_key < best_score
            if improved:
                best_score = parents[0].sort_key
                last_improvement = generation
                logger.info("Generation %d: new best score %.6f", generation, best_score)
            history.append(best_score)

            stats = GenerationStats(
                generation=generation,
                best_score=best_score,
                worst_elite_score=parents[-1].sort_key,
                improved=improved,
                generations_since_improvement=generation - last_improvement,
                elapsed_seconds=time.time() - start_time,
            )
            logger.debug("Generation %d: best %.6f, worst elite %.6f",
                         generation, stats.best_score, stats.worst_elite_score)
            if on_generation is not None:
                on_generation(stats)
    finally:
        if executor is not None:
            executor.shutdown(wait=True)

    if stop_reason == STOP_CONVERGED:
        logger.info("Converged after %d generations (no improvement for %d)",
                    generation, generation - last_improvement)

    return SearchResult(
        best=parents[0],
        parents=parents,
        engine=engine,
        calibration=calibration,
        generations=generation,
        history=history,
        stop_reason=stop_reason,
    )
