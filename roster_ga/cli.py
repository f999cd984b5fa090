"""
CLI module for the roster balancer.

Handles command-line parsing, run configuration overrides, logging setup,
optional CPU profiling, signal-based shutdown, and the end-to-end run.
"""

import argparse
import cProfile
import logging
import signal
import sys
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Optional

from .config_loader import (
    ConfigValidationError,
    criteria_from_run_config,
    load_run_config,
    settings_from_config,
    validate_run_config,
)
from .io_utils import load_baggages, load_individuals, save_history_csv, save_roster_csv
from .orchestration import GenerationStats, SearchResult, run_search
from .reporting import roster_report

LOGGER_NAME = "roster_ga"
PROGRESS_EVERY = 100

# Command-line flag -> (config section, key)
OVERRIDES = {
    'groups': ('search', 'num_groups'),
    'population': ('search', 'population_size'),
    'elites': ('search', 'elite_count'),
    'mutation': ('search', 'mutation_probability'),
    'baggage_carry': ('search', 'baggage_probability'),
    'workers': ('search', 'workers'),
    'seed': ('search', 'seed'),
    'patience': ('search', 'stall_patience'),
    'players': ('input', 'players'),
    'baggages': ('input', 'baggages'),
    'output': ('output', 'root'),
}


def setup_logger(level: str = "INFO") -> logging.Logger:
    """Configure the package logger with a single stream handler."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s - %(message)s"))
        logger.addHandler(handler)
    return logger


def apply_overrides(config: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """
    Copy command-line values over the YAML configuration.

    Only flags that were given are applied.

    Returns:
        The updated configuration (same dictionary)
    """
    for flag, (section, key) in OVERRIDES.items():
        value = getattr(args, flag, None)
        if value is None:
            continue
        if config.get(section) is None:
            config[section] = {}
        config[section][key] = value

    if getattr(args, 'deterministic', False):
        if config.get('search') is None:
            config['search'] = {}
        config['search']['deterministic'] = True

    return config


@contextmanager
def cancel_on_signals(cancel_event: threading.Event):
    """
    Set cancel_event on SIGINT/SIGTERM while the block runs.

    The running generation is allowed to finish. Previous handlers are
    restored on exit. Outside the main thread signals cannot be trapped and
    the block runs unchanged.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def handle(signum, frame):
        print(f"\nReceived signal {signum}, finishing current generation...")
        cancel_event.set()

    previous = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.signal(sig, handle)
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


@contextmanager
def cpu_profile(output_path: Optional[str]):
    """Profile the block with cProfile and dump stats to output_path, if given."""
    if not output_path:
        yield
        return

    profiler = cProfile.Profile()
    profiler.enable()
    try:
        yield
    finally:
        profiler.disable()
        profiler.dump_stats(output_path)
        print(f"CPU profile written to: {output_path}")


def print_progress(stats: GenerationStats) -> None:
    if stats.generation % PROGRESS_EVERY == 0:
        print(f"  Generation {stats.generation}: best {stats.best_score:.6f} "
              f"({stats.generations_since_improvement} since last improvement)")


def check_output_root(output_config: Dict[str, Any]) -> None:
    """
    Refuse to start a run whose results would overwrite a non-empty directory.

    Raises:
        FileExistsError: If output.root is non-empty and overwrite is off
    """
    output_root = Path(output_config['root'])
    overwrite = output_config.get('overwrite', False)

    if output_root.exists() and any(output_root.iterdir()) and not overwrite:
        raise FileExistsError(
            f"Output directory already exists: {output_root}\n"
            f"Set 'output.overwrite: true' in config to overwrite"
        )


def save_outputs(result: SearchResult, output_config: Dict[str, Any]) -> None:
    """Write roster.csv, history.csv and (optionally) plots under output.root."""
    output_root = Path(output_config['root'])
    output_root.mkdir(parents=True, exist_ok=True)

    roster_path = save_roster_csv(result.best, output_root / 'roster.csv', overwrite=True)
    history_path = save_history_csv(result.history, output_root / 'history.csv', overwrite=True)
    print(f"Roster: {roster_path}")
    print(f"History: {history_path}")

    if output_config.get('plots', True):
        from .visualization_utils import plot_group_balance, plot_score_history
        plot_score_history(result.history, output_root / 'history.png')
        plot_group_balance(result.best, output_root / 'groups.png')


def run_from_config(
    config: Dict[str, Any],
    cancel_event: Optional[threading.Event] = None
) -> SearchResult:
    """
    Validate a run configuration and execute the search.

    Args:
        config: Run configuration dictionary (already loaded)
        cancel_event: Event that stops the search between generations

    Returns:
        SearchResult of the run

    Raises:
        ConfigValidationError: If config is invalid
        FileNotFoundError, ValueError: If input files are missing or malformed
        FileExistsError: If output.root is non-empty and overwrite is off
    """
    print("Validating configuration...")
    validate_run_config(config)
    settings = settings_from_config(config)
    criteria = criteria_from_run_config(config)
    output_config = config.get('output') or {}
    if output_config.get('root'):
        check_output_root(output_config)

    input_config = config['input']
    print(f"Loading players from: {input_config['players']}")
    individuals = load_individuals(
        input_config['players'],
        input_config.get('format', 'simple'),
        input_config.get('columns'),
    )
    if input_config.get('baggages'):
        count = load_baggages(input_config['baggages'], individuals)
        print(f"Loaded {count} baggages from: {input_config['baggages']}")

    print("=" * 70)
    print("ROSTER SEARCH")
    print("=" * 70)
    print(f"Players: {len(individuals)}")
    print(f"Groups: {settings.num_groups}")
    print(f"Population: {settings.population_size}, elites: {settings.elite_count}")
    print(f"Workers: {settings.workers}")
    print(f"Random seed: {settings.seed if settings.seed is not None else 'unseeded'}")
    print(f"Criteria: {len(criteria)}")
    print()

    if cancel_event is None:
        cancel_event = threading.Event()

    with cancel_on_signals(cancel_event):
        result = run_search(individuals, settings, criteria, cancel_event, print_progress)

    print()
    print(f"Stopped ({result.stop_reason}) after {result.generations} generations")
    print(roster_report(result.best, result.engine))

    if output_config.get('root'):
        save_outputs(result, output_config)

    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Roster balancer - split players into balanced groups",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python3 main.py                                # Run with config.yaml
  python3 main.py --config league.yaml           # Custom config file
  python3 main.py --groups 8 --workers 4         # Override search settings
  python3 main.py --deterministic --seed 7       # Reproducible single-worker run
  python3 main.py --cpuprofile search.prof       # Write a cProfile dump
        """
    )

    parser.add_argument('--config', '-c', default='config.yaml',
                        help='Configuration file path (default: config.yaml)')
    parser.add_argument('--players', '-p', type=str, metavar='CSV',
                        help='Players CSV file (overrides input.players)')
    parser.add_argument('--baggages', '-b', type=str, metavar='CSV',
                        help='Baggages CSV file (overrides input.baggages)')
    parser.add_argument('--output', '-o', type=str, metavar='DIR',
                        help='Output directory (overrides output.root)')
    parser.add_argument('--groups', '-g', type=int, metavar='N',
                        help='Number of groups')
    parser.add_argument('--population', type=int, metavar='N',
                        help='Children bred per generation')
    parser.add_argument('--elites', type=int, metavar='N',
                        help='Solutions carried over each generation')
    parser.add_argument('--mutation', type=float, metavar='P',
                        help='Mutation probability')
    parser.add_argument('--baggage-carry', type=float, metavar='P',
                        help='Probability a mutated player drags their baggage along')
    parser.add_argument('--workers', '-w', type=int, metavar='N',
                        help='Breeding worker threads')
    parser.add_argument('--seed', type=int, help='Random seed')
    parser.add_argument('--deterministic', action='store_true',
                        help='Single worker and fixed seed for reproducible runs')
    parser.add_argument('--patience', type=int, metavar='N',
                        help='Generations without improvement before stopping')
    parser.add_argument('--log-level', default='WARNING',
                        help='Logging level (DEBUG, INFO, WARNING, ...)')
    parser.add_argument('--cpuprofile', type=str, metavar='FILE',
                        help='Write cProfile stats to FILE')
    return parser


def main(argv=None) -> int:
    """Main entry point with command-line argument parsing."""
    args = build_parser().parse_args(argv)
    setup_logger(args.log_level)

    try:
        config = load_run_config(args.config)
        apply_overrides(config, args)
        with cpu_profile(args.cpuprofile):
            run_from_config(config)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 1
    except ConfigValidationError as e:
        print(f"\nConfiguration error: {e}")
        return 1
    except Exception as e:
        print(f"\nError: {e}")
        return 1

    print("\nRun completed successfully!")
    return 0


if __name__ == '__main__':
    sys.exit(main())
