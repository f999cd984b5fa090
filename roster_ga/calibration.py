"""
Calibration pass.

Before the search starts, every criterion's normalization denominator is set
to the worst raw score seen across a randomly assigned population. This keeps
criteria with very different scales comparable without hand-tuned constants.
"""

import logging
import math
from typing import Iterable

from .data_models import Solution
from .scoring import Calibration, ScoringEngine

logger = logging.getLogger(__name__)


def calibrate(population: Iterable[Solution], engine: ScoringEngine) -> Calibration:
    """
    Record the worst raw score of each criterion over a population.

    Starts from the engine's current calibration and keeps, per criterion,
    the maximum of the current worst case and every finite raw score seen.
    Non-finite raw scores are skipped. Calibrating the same population again
    with the result returns an equal calibration.

    Args:
        population: Randomly assigned solutions
        engine: Engine providing the criteria table and starting calibration

    Returns:
        New Calibration; the engine is not modified
    """
    worst_cases = {
        criterion.name: engine.calibration.worst_case(criterion.name)
        for criterion in engine.criteria
    }

    count = 0
    for solution in population:
        count += 1
        for criterion, raw in zip(engine.criteria, engine.raw_scores(solution.individuals)):
            if not math.isfinite(raw):
                logger.debug("Skipping non-finite raw score for '%s' during calibration",
                             criterion.name)
                continue
            worst_cases[criterion.name] = max(worst_cases[criterion.name], raw)

    logger.info("Calibrated %d criteria over %d solutions", len(worst_cases), count)
    for name, worst_case in worst_cases.items():
        logger.debug("  worst case for '%s': %g", name, worst_case)

    return Calibration(worst_cases)
