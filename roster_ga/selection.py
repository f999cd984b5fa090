"""
Parent selection and elitism.

Tournament selection picks breeding parents from the elite set; the elitism
merge forms the next elite set from the old elites and the new children.
"""

from typing import List, Tuple

import numpy as np

from .data_models import Solution


def tournament_select(
    parents: List[Solution],
    rng: np.random.Generator,
    tournament_size: int = 4,
    selection_pressure: float = 0.5
) -> Solution:
    """
    Select one parent by tournament.

    Draws a random sample of parents, ranks it by score, then walks the
    ranking accepting rank i with probability p, so rank i is chosen with
    probability p * (1 - p)^i. Falls back to the best of the sample if the
    walk accepts nobody.

    Args:
        parents: Scored candidate parents
        rng: Random number generator
        tournament_size: Number of parents drawn into the tournament
        selection_pressure: Acceptance probability p at each rank

    Returns:
        The selected parent (not a copy)

    Raises:
        ValueError: If parents is empty
    """
    if not parents:
        raise ValueError("Cannot select from an empty parent set")

    size = min(tournament_size, len(parents))
    indices = rng.choice(len(parents), size=size, replace=False)
    ranked = sorted((parents[i] for i in indices), key=lambda s: s.sort_key)

    for candidate in ranked:
        if rng.random() < selection_pressure:
            return candidate
    return ranked[0]


def select_two_parents(
    parents: List[Solution],
    rng: np.random.Generator,
    tournament_size: int = 4,
    selection_pressure: float = 0.5
) -> Tuple[Solution, Solution]:
    """Two independent tournament draws. The same parent may be drawn twice."""
    parent_a = tournament_select(parents, rng, tournament_size, selection_pressure)
    parent_b = tournament_select(parents, rng, tournament_size, selection_pressure)
    return parent_a, parent_b


def merge_elites(parents: List[Solution], children: List[Solution], elite_count: int) -> List[Solution]:
    """
    Keep the best elite_count solutions from parents and children combined.

    Parents are carried over unchanged, so the best score never gets worse.
    Sorting is stable and parents come first, so ties favour the old elite.
    """
    merged = sorted(list(parents) + list(children), key=lambda s: s.sort_key)
    return merged[:elite_count]
