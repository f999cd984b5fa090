"""
Mutation operator.

Moves random individuals to random groups. The number of moves per call is
geometrically distributed: after each move another one happens with the same
probability.
"""

from typing import List, Tuple

import numpy as np

from .data_models import Solution


def move_individual(
    solution: Solution,
    index: int,
    group: int,
    carry_baggage: bool
) -> List[str]:
    """
    Move one individual, optionally dragging its paired partner along.

    Returns:
        Operation log entries
    """
    individual = solution.individuals[index]
    old_group = individual.group
    solution.assign(index, group)
    log = [f"move({individual.name}): group {old_group} -> {group}"]

    if carry_baggage and individual.paired_with is not None:
        partner_index = solution.index_of(individual.paired_with)
        if partner_index is None:
            log.append(f"carry({individual.name}): partner {individual.paired_with} not found")
        else:
            partner = solution.individuals[partner_index]
            partner_old = partner.group
            solution.assign(partner_index, group)
            log.append(f"carry({partner.name}): group {partner_old} -> {group}")

    return log


def mutate(
    solution: Solution,
    rng: np.random.Generator,
    mutation_probability: float,
    baggage_probability: float = 0.0
) -> Tuple[Solution, List[str]]:
    """
    Apply a geometric number of random moves to a solution, in place.

    With probability mutation_probability one individual is moved to a
    uniformly random group; then the same roll is made again, until it fails.
    On each move the individual's partner follows with probability
    baggage_probability, rolled independently per move.

    Args:
        solution: Freshly bred child to mutate (modified in place)
        rng: Random number generator
        mutation_probability: Probability of each further move
        baggage_probability: Probability a move carries the paired partner

    Returns:
        Tuple of (solution, operation_log)
    """
    if mutation_probability >= 1.0:
        raise ValueError("mutation_probability must be below 1 or mutation never stops")

    log: List[str] = []
    if len(solution) == 0:
        return solution, log

    while rng.random() < mutation_probability:
        index = int(rng.integers(0, len(solution)))
        group = int(rng.integers(0, solution.num_groups))
        carry = rng.random() < baggage_probability
        log.extend(move_individual(solution, index, group, carry))

    return solution, log
