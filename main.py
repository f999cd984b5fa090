#!/usr/bin/env python3
"""
Roster balancer - command-line entry point.

Splits the players listed in a CSV file into balanced groups. Settings come
from a YAML run configuration; command-line flags override it.

Usage:
    python3 main.py
    python3 main.py --config league.yaml --groups 8
    python3 main.py --help
"""

import sys
from pathlib import Path

# Add project root to path if needed
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from roster_ga.cli import main


if __name__ == '__main__':
    sys.exit(main())
