#!/usr/bin/env python3
"""
Test runner for the roster balancer
"""

import unittest
import sys
from pathlib import Path

# Add current directory to path for imports
sys.path.append(str(Path(__file__).parent))


def run_all_tests():
    """Run all test modules"""
    loader = unittest.TestLoader()
    suite = loader.discover(
        start_dir=str(Path(__file__).parent / "tests"),
        top_level_dir=str(Path(__file__).parent)
    )

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return result.wasSuccessful()


def run_integration_test():
    """Run the bundled example roster end to end"""
    print("\n" + "=" * 50)
    print("INTEGRATION TEST")
    print("=" * 50)

    try:
        from roster_ga.io_utils import load_individuals, load_baggages
        from roster_ga.config_loader import SearchSettings
        from roster_ga.orchestration import run_search
        from roster_ga.scoring import unresolved_pairings

        root = Path(__file__).parent
        individuals = load_individuals(root / "examples" / "players.csv")
        load_baggages(root / "examples" / "baggages.csv", individuals)

        settings = SearchSettings(
            num_groups=4,
            population_size=60,
            elite_count=12,
            stall_patience=50,
            deterministic=True,
        )

        print("Running search on example roster...")
        result = run_search(individuals, settings)

        sizes = [len(group) for group in result.best.groups()]
        unresolved = unresolved_pairings(result.best)

        print(f"Generations: {result.generations}")
        print(f"Best score: {result.best.score:.4f}")
        print(f"Group sizes: {sizes}")
        print(f"Unresolved baggages: {len(unresolved)}")

        success = (
            sum(sizes) == len(individuals) and
            max(sizes) - min(sizes) <= 1 and
            result.history[-1] <= result.history[0]
        )

        if success:
            print("✓ Integration test PASSED")
        else:
            print("✗ Integration test FAILED")

        return success

    except Exception as e:
        print(f"✗ Integration test FAILED: {e}")
        import traceback
        traceback.print_exc()
        return False


if __name__ == "__main__":
    print("Running Roster Balancer Tests")
    print("=" * 60)

    # Run unit tests
    print("Running unit tests...")
    unit_success = run_all_tests()

    # Run integration test
    integration_success = run_integration_test()

    # Summary
    print("\n" + "=" * 60)
    print("TEST SUMMARY")
    print("=" * 60)
    print(f"Unit tests: {'PASSED' if unit_success else 'FAILED'}")
    print(f"Integration test: {'PASSED' if integration_success else 'FAILED'}")

    overall_success = unit_success and integration_success
    print(f"Overall: {'PASSED' if overall_success else 'FAILED'}")

    sys.exit(0 if overall_success else 1)
