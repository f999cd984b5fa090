"""
Roster balancer

Splits a roster of players into a fixed number of balanced groups using an
evolutionary search over weighted balancing criteria.

Modules:
- data_models: Core data structures (Individual, Group, Solution)
- criteria: Balancing criteria and their raw-score functions
- scoring: Scoring engine, calibration table and score breakdown
- calibration: Worst-case calibration pass run before the search
- selection: Tournament selection and elitism
- crossover: Split-point crossover
- mutation: Random reassignment with baggage carry
- orchestration: Generational search loop and breeding worker pool
- config_loader: YAML run configuration and search settings
- io_utils: CSV input of players and baggages, CSV output of results
- reporting: Text reports of the final roster
- visualization_utils: Score history and group balance plots
- cli: Command-line interface
"""

__version__ = "0.1.0"
__author__ = "Roster Balancer Team"

from .data_models import Gender, Individual, Group, Solution
from .criteria import Criterion, CriterionKind, PlayerFilter, DEFAULT_CRITERIA
from .scoring import Calibration, ScoringEngine
from .config_loader import SearchSettings, ConfigValidationError
from .orchestration import run_search, SearchResult

__all__ = [
    "Gender",
    "Individual",
    "Group",
    "Solution",
    "Criterion",
    "CriterionKind",
    "PlayerFilter",
    "DEFAULT_CRITERIA",
    "Calibration",
    "ScoringEngine",
    "SearchSettings",
    "ConfigValidationError",
    "run_search",
    "SearchResult",
]
