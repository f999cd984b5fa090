"""
Balancing criteria.

A criterion is one weighted, independently computed measure of imbalance
between groups. Each criterion filters the members of every group, optionally
keeps only the top-rated few, and reduces the filtered groups to a raw score
with one of a closed set of raw-score functions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from .data_models import Gender, Group, Individual


class CriterionKind(Enum):
    """Raw-score function a criterion applies to its filtered groups."""
    COUNT_IMBALANCE = "count_imbalance"
    RATING_MEAN_SPREAD = "rating_mean_spread"
    RATING_INTERNAL_SPREAD = "rating_internal_spread"
    PAIRING_VIOLATION = "pairing_violation"


class PlayerFilter(Enum):
    """Which members of a group a criterion looks at."""
    ALL = "all"
    MALES = "males"
    FEMALES = "females"

    def accepts(self, individual: Individual) -> bool:
        if self is PlayerFilter.MALES:
            return individual.gender == Gender.MALE
        if self is PlayerFilter.FEMALES:
            return individual.gender == Gender.FEMALE
        return True


@dataclass(frozen=True)
class Criterion:
    """
    Immutable description of one balancing criterion.

    Attributes:
        name: Human readable name, unique within a criteria table
        kind: Raw-score function to apply
        filter: Members to keep before scoring
        weight: How much the normalized score counts toward the total
        top_n: If set, keep only the top_n highest rated filtered members per group
    """
    name: str
    kind: CriterionKind
    filter: PlayerFilter = PlayerFilter.ALL
    weight: int = 1
    top_n: Optional[int] = None

    def __post_init__(self):
        if self.weight < 0:
            raise ValueError(f"Criterion '{self.name}' has negative weight {self.weight}")
        if self.top_n is not None and self.top_n <= 0:
            raise ValueError(f"Criterion '{self.name}' has non-positive top_n {self.top_n}")

    def filter_groups(self, groups: List[Group]) -> List[Group]:
        """
        Apply the member filter, then the top-N rating cap, to every group.

        The cap is applied after the filter: "top 3 males" means the three
        best males, not the males among the three best players.
        """
        filtered = []
        for group in groups:
            members = [m for m in group.members if self.filter.accepts(m)]
            if self.top_n is not None:
                members = sorted(members, key=lambda m: m.rating, reverse=True)[:self.top_n]
            filtered.append(Group(index=group.index, members=members))
        return filtered

    def raw_score(self, groups: List[Group]) -> float:
        """Filter the groups and compute this criterion's raw score."""
        return RAW_SCORE_FUNCTIONS[self.kind](self.filter_groups(groups))


def _sample_std(values: List[float]) -> float:
    if len(values) < 2:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float), ddof=1))


def count_imbalance(groups: List[Group]) -> float:
    """
    Size difference between the largest and smallest group, less one.

    A difference of one is unavoidable when the total does not divide evenly,
    so it scores zero.
    """
    if not groups:
        return 0.0
    sizes = [len(group) for group in groups]
    diff = max(sizes) - min(sizes)
    return float(diff - 1) if diff > 1 else 0.0


def rating_mean_spread(groups: List[Group]) -> float:
    """Sample standard deviation of group mean ratings. Empty groups count as 0."""
    means = [float(np.mean(group.ratings())) if len(group) else 0.0 for group in groups]
    return _sample_std(means)


def rating_internal_spread(groups: List[Group]) -> float:
    """Sample standard deviation of each group's own rating spread."""
    spreads = [_sample_std(group.ratings()) for group in groups]
    return _sample_std(spreads)


def pairing_violation(groups: List[Group]) -> float:
    """Number of members whose partner is not in the same group."""
    violations = 0
    for group in groups:
        names = group.names()
        for member in group.members:
            if member.paired_with is not None and member.paired_with not in names:
                violations += 1
    return float(violations)


RAW_SCORE_FUNCTIONS: Dict[CriterionKind, Callable[[List[Group]], float]] = {
    CriterionKind.COUNT_IMBALANCE: count_imbalance,
    CriterionKind.RATING_MEAN_SPREAD: rating_mean_spread,
    CriterionKind.RATING_INTERNAL_SPREAD: rating_internal_spread,
    CriterionKind.PAIRING_VIOLATION: pairing_violation,
}

_missing = set(CriterionKind) - set(RAW_SCORE_FUNCTIONS)
if _missing:
    raise RuntimeError(f"No raw-score function for {sorted(k.value for k in _missing)}")


DEFAULT_CRITERIA: List[Criterion] = [
    Criterion("number of players", CriterionKind.COUNT_IMBALANCE, PlayerFilter.ALL, 10),
    Criterion("number of males", CriterionKind.COUNT_IMBALANCE, PlayerFilter.MALES, 9),
    Criterion("number of females", CriterionKind.COUNT_IMBALANCE, PlayerFilter.FEMALES, 9),
    Criterion("average rating", CriterionKind.RATING_MEAN_SPREAD, PlayerFilter.ALL, 8),
    Criterion("average rating males", CriterionKind.RATING_MEAN_SPREAD, PlayerFilter.MALES, 5),
    Criterion("average rating females", CriterionKind.RATING_MEAN_SPREAD, PlayerFilter.FEMALES, 5),
    Criterion("average rating top 3 males", CriterionKind.RATING_MEAN_SPREAD,
              PlayerFilter.MALES, 3, top_n=3),
    Criterion("average rating top 3 females", CriterionKind.RATING_MEAN_SPREAD,
              PlayerFilter.FEMALES, 3, top_n=3),
    Criterion("rating spread", CriterionKind.RATING_INTERNAL_SPREAD, PlayerFilter.ALL, 4),
    Criterion("baggages", CriterionKind.PAIRING_VIOLATION, PlayerFilter.ALL, 2),
]


def criterion_from_dict(data: Dict[str, Any]) -> Criterion:
    """
    Build a criterion from a configuration mapping.

    Expected keys: name, kind, and optionally filter, weight, top_n.

    Raises:
        ValueError: If a key is missing or a value is not recognized
    """
    for key in ("name", "kind"):
        if key not in data:
            raise ValueError(f"Criterion is missing required field '{key}': {data}")

    try:
        kind = CriterionKind(data["kind"])
    except ValueError:
        valid = ", ".join(k.value for k in CriterionKind)
        raise ValueError(f"Unknown criterion kind '{data['kind']}'. Must be one of: {valid}")

    try:
        player_filter = PlayerFilter(data.get("filter", "all"))
    except ValueError:
        valid = ", ".join(f.value for f in PlayerFilter)
        raise ValueError(f"Unknown criterion filter '{data.get('filter')}'. Must be one of: {valid}")

    weight = data.get("weight", 1)
    if not isinstance(weight, int) or isinstance(weight, bool):
        raise ValueError(f"Criterion '{data['name']}' weight must be an integer, got: {weight}")

    top_n = data.get("top_n")
    if top_n is not None and (not isinstance(top_n, int) or isinstance(top_n, bool)):
        raise ValueError(f"Criterion '{data['name']}' top_n must be an integer, got: {top_n}")

    return Criterion(
        name=str(data["name"]),
        kind=kind,
        filter=player_filter,
        weight=weight,
        top_n=top_n,
    )


def criteria_from_config(entries: List[Dict[str, Any]]) -> List[Criterion]:
    """
    Build a criteria table from configuration entries.

    Raises:
        ValueError: If the table is empty, an entry is invalid, or names repeat
    """
    if not entries:
        raise ValueError("Criteria table must contain at least one criterion")

    criteria = [criterion_from_dict(entry) for entry in entries]
    check_unique_names(criteria)
    return criteria


def check_unique_names(criteria: List[Criterion]) -> None:
    seen = set()
    for criterion in criteria:
        if criterion.name in seen:
            raise ValueError(f"Duplicate criterion name: '{criterion.name}'")
        seen.add(criterion.name)
