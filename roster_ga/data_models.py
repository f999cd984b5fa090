"""
Data models for the roster balancer.

Core data structures representing individuals, the groups they are split
into, and candidate solutions (one full assignment of individuals to groups).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Set


class Gender(Enum):
    """Gender of an individual. DEFAULT means unset."""
    MALE = "male"
    FEMALE = "female"
    DEFAULT = "default"


_GENDER_ALIASES = {
    "m": Gender.MALE,
    "male": Gender.MALE,
    "f": Gender.FEMALE,
    "female": Gender.FEMALE,
}


def parse_gender(value: str) -> Gender:
    """
    Parse a gender string as found in signup spreadsheets.

    Accepts "m", "f", "male" and "female" in any case.

    Raises:
        ValueError: If the string is not a recognized gender
    """
    gender = _GENDER_ALIASES.get(value.strip().lower())
    if gender is None:
        raise ValueError(f"Invalid gender '{value}'")
    return gender


@dataclass
class Individual:
    """
    A single person to be placed into a group.

    Attributes:
        name: Unique identity of this individual
        rating: Skill rating
        gender: Gender (DEFAULT when unknown)
        group: Index of the group this individual is assigned to
        paired_with: Name of the individual this one must share a group with
            ("baggage"). Looked up by name; may be absent from the population.
    """
    name: str
    rating: float
    gender: Gender = Gender.DEFAULT
    group: int = 0
    paired_with: Optional[str] = None

    def copy(self) -> "Individual":
        return Individual(
            name=self.name,
            rating=self.rating,
            gender=self.gender,
            group=self.group,
            paired_with=self.paired_with,
        )

    def has_baggage(self) -> bool:
        return self.paired_with is not None

    def __str__(self) -> str:
        return f"{self.name} ({self.gender.value}, {self.rating:g})"


@dataclass
class Group:
    """
    One output partition. Always derived from an individual list, never stored.

    Attributes:
        index: Group index in [0, num_groups)
        members: Individuals assigned to this group
    """
    index: int
    members: List[Individual] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.members)

    def ratings(self) -> List[float]:
        return [member.rating for member in self.members]

    def names(self) -> Set[str]:
        return {member.name for member in self.members}

    def count_gender(self, gender: Gender) -> int:
        return sum(1 for member in self.members if member.gender == gender)


def split_into_groups(individuals: List[Individual], num_groups: int) -> List[Group]:
    """
    Partition individuals by their group assignment.

    Every group index in [0, num_groups) is present in the result, empty
    groups included.

    Raises:
        ValueError: If an individual is assigned outside [0, num_groups)
    """
    groups = [Group(index=i) for i in range(num_groups)]
    for individual in individuals:
        if not 0 <= individual.group < num_groups:
            raise ValueError(
                f"{individual.name} assigned to group {individual.group}, "
                f"expected 0..{num_groups - 1}"
            )
        groups[individual.group].members.append(individual)
    return groups


@dataclass
class Solution:
    """
    A candidate assignment of every individual to a group.

    A solution owns its individuals: copies are never shared between
    solutions. The cached score is cleared whenever an assignment changes.

    Attributes:
        individuals: Owned list of individuals, in roster order
        num_groups: Number of groups in the partition
        score: Total score from the scoring engine, None when stale
    """
    individuals: List[Individual]
    num_groups: int
    score: Optional[float] = None

    def __post_init__(self):
        """Validate group count and assignments."""
        if self.num_groups <= 0:
            raise ValueError(f"num_groups must be positive, got {self.num_groups}")
        for individual in self.individuals:
            if not 0 <= individual.group < self.num_groups:
                raise ValueError(
                    f"{individual.name} assigned to group {individual.group}, "
                    f"expected 0..{self.num_groups - 1}"
                )

    def copy(self) -> "Solution":
        """
        Create a deep copy of this solution.

        Returns:
            New Solution with copied individuals and the same cached score
        """
        return Solution(
            individuals=[individual.copy() for individual in self.individuals],
            num_groups=self.num_groups,
            score=self.score,
        )

    def assign(self, index: int, group: int) -> None:
        """
        Move the individual at `index` to `group`, invalidating the score.

        Raises:
            ValueError: If group is outside [0, num_groups)
        """
        if not 0 <= group < self.num_groups:
            raise ValueError(f"Group {group} out of range 0..{self.num_groups - 1}")
        self.individuals[index].group = group
        self.score = None

    def assignments(self) -> List[int]:
        return [individual.group for individual in self.individuals]

    def groups(self) -> List[Group]:
        return split_into_groups(self.individuals, self.num_groups)

    def index_of(self, name: str) -> Optional[int]:
        for i, individual in enumerate(self.individuals):
            if individual.name == name:
                return i
        return None

    @property
    def sort_key(self) -> float:
        """
        Score used for ranking.

        Raises:
            ValueError: If the solution has not been scored since its last change
        """
        if self.score is None:
            raise ValueError("Solution has no score; evaluate it before ranking")
        return self.score

    def __len__(self) -> int:
        return len(self.individuals)
