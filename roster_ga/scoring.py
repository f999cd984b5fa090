"""
Scoring engine.

Scores a solution against a table of weighted criteria. Each criterion's raw
score is normalized by the worst value seen during calibration, weighted,
and summed. Lower totals are better.
"""

import logging
import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .criteria import DEFAULT_CRITERIA, Criterion, check_unique_names
from .data_models import Individual, Solution, split_into_groups

logger = logging.getLogger(__name__)


class Calibration:
    """
    Worst-case raw score observed for each criterion, keyed by criterion name.

    Instances are read-only once built; calibrating produces a new instance.
    Criteria without an entry have a worst case of zero.
    """

    def __init__(self, worst_cases: Optional[Mapping[str, float]] = None):
        self._worst_cases = MappingProxyType(dict(worst_cases or {}))

    def worst_case(self, criterion_name: str) -> float:
        return self._worst_cases.get(criterion_name, 0.0)

    def as_dict(self) -> Dict[str, float]:
        return dict(self._worst_cases)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Calibration):
            return NotImplemented
        return dict(self._worst_cases) == dict(other._worst_cases)

    def __repr__(self) -> str:
        return f"Calibration({dict(self._worst_cases)!r})"


@dataclass(frozen=True)
class CriterionScore:
    """One row of a per-criterion score breakdown."""
    name: str
    raw: float
    normalized: float
    weight: int
    weighted: float
    running_total: float


class ScoringEngine:
    """
    Scores individual lists and solutions against a criteria table.

    Scoring is a pure function of the individuals' group assignments and the
    engine's (immutable) criteria and calibration, so one engine can be
    shared by concurrent breeding tasks.

    Args:
        criteria: Criteria table, scored in order (defaults to DEFAULT_CRITERIA)
        num_groups: Number of groups individuals are split into
        calibration: Worst-case table used for normalization (defaults to empty)
    """

    def __init__(
        self,
        criteria: Optional[Sequence[Criterion]] = None,
        num_groups: int = 1,
        calibration: Optional[Calibration] = None
    ):
        if num_groups <= 0:
            raise ValueError(f"num_groups must be positive, got {num_groups}")
        self.criteria: Tuple[Criterion, ...] = tuple(
            DEFAULT_CRITERIA if criteria is None else criteria
        )
        check_unique_names(list(self.criteria))
        self.num_groups = num_groups
        self.calibration = calibration if calibration is not None else Calibration()

    def with_calibration(self, calibration: Calibration) -> "ScoringEngine":
        """Return a new engine with the same criteria and the given calibration."""
        return ScoringEngine(self.criteria, self.num_groups, calibration)

    def raw_scores(self, individuals: List[Individual]) -> List[float]:
        """Raw (unnormalized, unweighted) score of every criterion, in order."""
        groups = split_into_groups(individuals, self.num_groups)
        return [criterion.raw_score(groups) for criterion in self.criteria]

    def normalize(self, criterion: Criterion, raw: float) -> float:
        """
        Divide by the calibrated worst case.

        A worst case of zero means calibration never saw a nonzero value, so
        the raw score is used as is.
        """
        worst_case = self.calibration.worst_case(criterion.name)
        if worst_case == 0:
            return raw
        return raw / worst_case

    def _weighted(self, criterion: Criterion, raw: float) -> Tuple[float, float]:
        if not math.isfinite(raw):
            logger.debug("Criterion '%s' produced non-finite raw score %r", criterion.name, raw)
            return 0.0, 0.0
        normalized = self.normalize(criterion, raw)
        return normalized, normalized * criterion.weight

    def score_solution(self, individuals: List[Individual]) -> Tuple[float, List[float]]:
        """
        Score an individual list.

        Args:
            individuals: Individuals with their current group assignments

        Returns:
            Tuple of (total_score, raw_scores) where raw_scores holds each
            criterion's raw score in table order
        """
        raw_scores = self.raw_scores(individuals)
        total = 0.0
        for criterion, raw in zip(self.criteria, raw_scores):
            _, weighted = self._weighted(criterion, raw)
            total += weighted
        return total, raw_scores

    def evaluate(self, solution: Solution) -> float:
        """Score a solution, caching the total on it."""
        if solution.num_groups != self.num_groups:
            raise ValueError(
                f"Solution has {solution.num_groups} groups, engine expects {self.num_groups}"
            )
        total, _ = self.score_solution(solution.individuals)
        solution.score = total
        return total

    def breakdown(self, solution: Solution) -> List[CriterionScore]:
        """
        Per-criterion breakdown of a solution's score, suitable for a table.

        Returns:
            One CriterionScore per criterion, with a running total
        """
        rows = []
        running_total = 0.0
        for criterion, raw in zip(self.criteria, self.raw_scores(solution.individuals)):
            normalized, weighted = self._weighted(criterion, raw)
            running_total += weighted
            rows.append(CriterionScore(
                name=criterion.name,
                raw=raw,
                normalized=normalized,
                weight=criterion.weight,
                weighted=weighted,
                running_total=running_total,
            ))
        return rows


def unresolved_pairings(solution: Solution) -> List[Tuple[str, str]]:
    """
    List pairing constraints the solution does not satisfy.

    Returns:
        (name, partner_name) for every individual whose partner is absent
        from its group, in roster order
    """
    groups = solution.groups()
    unresolved = []
    for individual in solution.individuals:
        if individual.paired_with is None:
            continue
        if individual.paired_with not in groups[individual.group].names():
            unresolved.append((individual.name, individual.paired_with))
    return unresolved
