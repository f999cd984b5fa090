"""
Text reports for a finished search.

Renders the per-criterion score breakdown, the groups with their members,
and any pairing constraints left unresolved.
"""

from typing import List

import numpy as np

from .data_models import Gender, Solution
from .scoring import CriterionScore, ScoringEngine, unresolved_pairings


def format_breakdown(rows: List[CriterionScore]) -> List[str]:
    """Score breakdown as an aligned table, one line per criterion."""
    name_width = max([len("criterion")] + [len(row.name) for row in rows])
    header = (f"  {'criterion':<{name_width}}  {'raw':>10}  {'normalized':>10}  "
              f"{'weight':>6}  {'weighted':>10}  {'total':>10}")
    lines = [header, "  " + "-" * (len(header) - 2)]
    for row in rows:
        lines.append(
            f"  {row.name:<{name_width}}  {row.raw:>10.4f}  {row.normalized:>10.4f}  "
            f"{row.weight:>6d}  {row.weighted:>10.4f}  {row.running_total:>10.4f}"
        )
    return lines


def format_groups(solution: Solution) -> List[str]:
    lines = []
    for group in solution.groups():
        ratings = group.ratings()
        average = float(np.mean(ratings)) if ratings else 0.0
        lines.append(
            f"Group {group.index + 1}: {len(group)} members "
            f"({group.count_gender(Gender.MALE)} m / {group.count_gender(Gender.FEMALE)} f), "
            f"average rating {average:.2f}"
        )
        for member in sorted(group.members, key=lambda m: m.rating, reverse=True):
            baggage = f"  [with {member.paired_with}]" if member.paired_with else ""
            lines.append(f"  {member.name:<30} {member.gender.value:<7} {member.rating:>8.2f}{baggage}")
    return lines


def roster_report(solution: Solution, engine: ScoringEngine) -> str:
    """Generate a human-readable report of a solution."""
    lines = []
    lines.append("=" * 70)
    lines.append("ROSTER REPORT")
    lines.append("=" * 70)
    lines.append(f"Total score: {solution.sort_key:.6f}")
    lines.append("")

    lines.append("SCORE BREAKDOWN:")
    lines.extend(format_breakdown(engine.breakdown(solution)))
    lines.append("")

    lines.append("GROUPS:")
    lines.extend(format_groups(solution))
    lines.append("")

    unresolved = unresolved_pairings(solution)
    if unresolved:
        lines.append("UNRESOLVED BAGGAGES:")
        for name, partner in unresolved:
            lines.append(f"  - {name} is not grouped with {partner}")
    else:
        lines.append("BAGGAGES: All pairing constraints satisfied")

    lines.append("=" * 70)

    return "\n".join(lines)
