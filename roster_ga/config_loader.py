"""
Configuration loading.

Loads the YAML run configuration and converts it into search settings and a
criteria table. All configuration errors are raised here, before any search
starts.
"""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .criteria import DEFAULT_CRITERIA, Criterion, criteria_from_config


class ConfigValidationError(Exception):
    """Raised when run configuration is invalid."""
    pass


@dataclass
class SearchSettings:
    """
    Parameters of one evolutionary search.

    Attributes:
        num_groups: Number of groups to split individuals into
        population_size: Random solutions at start, and children bred per generation
        elite_count: Solutions carried from one generation to the next
        mutation_probability: Probability of each further mutation move, in [0, 1)
        baggage_probability: Probability a moved individual drags its partner along
        tournament_size: Parents drawn into each selection tournament
        selection_pressure: Probability of accepting each tournament rank
        workers: Breeding worker threads
        deterministic: Force one worker and a fixed seed
        seed: Random seed; None seeds from OS entropy unless deterministic
        stall_patience: Generations without improvement before stopping
    """
    num_groups: int = 6
    population_size: int = 100
    elite_count: int = 20
    mutation_probability: float = 0.05
    baggage_probability: float = 0.5
    tournament_size: int = 4
    selection_pressure: float = 0.5
    workers: int = 1
    deterministic: bool = False
    seed: Optional[int] = None
    stall_patience: int = 250

    def __post_init__(self):
        if self.deterministic:
            self.workers = 1
            if self.seed is None:
                self.seed = 0

    def validate(self) -> None:
        """
        Check the settings describe a runnable search.

        Raises:
            ConfigValidationError: If any setting is out of range
        """
        for name in ("num_groups", "population_size", "elite_count",
                     "tournament_size", "workers", "stall_patience"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigValidationError(f"'{name}' must be an integer, got: {value}")
        for name in ("mutation_probability", "baggage_probability", "selection_pressure"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise ConfigValidationError(f"'{name}' must be a number, got: {value!r}")

        if self.num_groups <= 0:
            raise ConfigValidationError(
                f"'num_groups' must be a positive integer, got: {self.num_groups}"
            )
        if self.elite_count <= 0:
            raise ConfigValidationError(
                f"'elite_count' must be a positive integer, got: {self.elite_count}"
            )
        if self.population_size < self.elite_count:
            raise ConfigValidationError(
                f"'population_size' ({self.population_size}) must be at least "
                f"'elite_count' ({self.elite_count})"
            )
        if not 0.0 <= self.mutation_probability < 1.0:
            raise ConfigValidationError(
                f"'mutation_probability' must be in [0, 1), got: {self.mutation_probability}"
            )
        for name in ("baggage_probability", "selection_pressure"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigValidationError(f"'{name}' must be in [0, 1], got: {value}")
        if self.tournament_size < 1:
            raise ConfigValidationError(
                f"'tournament_size' must be at least 1, got: {self.tournament_size}"
            )
        if self.workers < 1:
            raise ConfigValidationError(f"'workers' must be at least 1, got: {self.workers}")
        if self.stall_patience < 0:
            raise ConfigValidationError(
                f"'stall_patience' must be non-negative, got: {self.stall_patience}"
            )


def load_run_config(config_path: str) -> Dict[str, Any]:
    """
    Load run configuration from YAML file.

    Args:
        config_path: Path to run configuration YAML file

    Returns:
        Dictionary containing run configuration

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigValidationError: If config is invalid
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML in configuration file: {e}")

    if config is None:
        raise ConfigValidationError("Configuration file is empty")
    if not isinstance(config, dict):
        raise ConfigValidationError("Configuration file must contain a mapping")

    return config


def settings_from_config(config: Dict[str, Any]) -> SearchSettings:
    """
    Build and validate search settings from the 'search' section.

    Unknown keys are rejected so that typos do not silently fall back to
    defaults.

    Raises:
        ConfigValidationError: If the section is malformed or a value is invalid
    """
    section = config.get('search', {}) or {}
    if not isinstance(section, dict):
        raise ConfigValidationError("'search' must be a dictionary")

    known = {f.name for f in fields(SearchSettings)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ConfigValidationError(f"Unknown search settings: {', '.join(unknown)}")

    settings = SearchSettings(**section)
    settings.validate()
    return settings


def criteria_from_run_config(config: Dict[str, Any]) -> List[Criterion]:
    """
    Criteria table from the 'criteria' section, or the default table.

    Raises:
        ConfigValidationError: If the section is malformed
    """
    entries = config.get('criteria')
    if entries is None:
        return list(DEFAULT_CRITERIA)
    if not isinstance(entries, list):
        raise ConfigValidationError("'criteria' must be a list")
    try:
        return criteria_from_config(entries)
    except ValueError as e:
        raise ConfigValidationError(str(e))


def validate_run_config(config: Dict[str, Any]) -> None:
    """
    Validate run configuration structure.

    Args:
        config: Run configuration dictionary

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    if 'input' not in config:
        raise ConfigValidationError("Missing required field: 'input'")
    if not isinstance(config['input'], dict):
        raise ConfigValidationError("'input' must be a dictionary")

    input_config = config['input']
    if 'players' not in input_config:
        raise ConfigValidationError("Missing required field: 'input.players'")

    input_format = input_config.get('format', 'simple')
    if input_format not in ['simple', 'signup']:
        raise ConfigValidationError(
            f"Invalid input format: '{input_format}'. Must be 'simple' or 'signup'"
        )

    columns = input_config.get('columns')
    if columns is not None:
        if not isinstance(columns, dict):
            raise ConfigValidationError("'input.columns' must be a dictionary")
        for key, value in columns.items():
            if not isinstance(value, int) or value < 0:
                raise ConfigValidationError(
                    f"'input.columns.{key}' must be a non-negative integer, got: {value}"
                )

    if 'output' in config and config['output'] is not None:
        if not isinstance(config['output'], dict):
            raise ConfigValidationError("'output' must be a dictionary")

    settings_from_config(config)
    criteria_from_run_config(config)
