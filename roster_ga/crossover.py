"""
Crossover operator.

Split-point crossover over the roster: the individual list is cut at one or
two points and the segments are taken alternately from each parent. Keeping
contiguous segments preserves co-assignment patterns that a per-individual
coin flip would break up.
"""

from typing import List, Tuple

import numpy as np

from .data_models import Solution

MIN_CROSSOVER_SIZE = 3


def choose_cut_points(num_individuals: int, rng: np.random.Generator) -> List[int]:
    """
    Pick one or two distinct cut indices in [1, num_individuals).

    Returns:
        Sorted list of cut indices
    """
    num_cuts = int(rng.integers(1, 3))
    num_cuts = min(num_cuts, num_individuals - 1)
    cuts = rng.choice(np.arange(1, num_individuals), size=num_cuts, replace=False)
    return sorted(int(c) for c in cuts)


def breed(
    parent_a: Solution,
    parent_b: Solution,
    rng: np.random.Generator
) -> Tuple[Solution, List[int]]:
    """
    Combine two parents into one child using split-point crossover.

    Segments alternate A, B, A between the cut points. Both parents must list
    the same individuals in the same order. Parents are never modified.

    Args:
        parent_a: First parent
        parent_b: Second parent
        rng: Random number generator

    Returns:
        Tuple of (child, cut_points). The child is unscored. With fewer than
        three individuals there is nothing meaningful to split, so the child
        is a copy of parent_a and cut_points is empty.

    Raises:
        ValueError: If the parents differ in size or group count
    """
    if len(parent_a) != len(parent_b):
        raise ValueError(
            f"Parents differ in size: {len(parent_a)} vs {len(parent_b)}"
        )
    if parent_a.num_groups != parent_b.num_groups:
        raise ValueError(
            f"Parents differ in group count: {parent_a.num_groups} vs {parent_b.num_groups}"
        )

    child = parent_a.copy()
    child.score = None

    if len(parent_a) < MIN_CROSSOVER_SIZE:
        return child, []

    cut_points = choose_cut_points(len(parent_a), rng)
    boundaries = [0] + cut_points + [len(parent_a)]

    for segment, (start, end) in enumerate(zip(boundaries[:-1], boundaries[1:])):
        if segment % 2 == 0:
            continue
        for i in range(start, end):
            child.individuals[i].group = parent_b.individuals[i].group

    return child, cut_points
