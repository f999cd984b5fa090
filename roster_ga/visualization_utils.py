"""
Visualization utilities for the roster balancer.

Plots the best score per generation and the balance of the final groups.
"""

from pathlib import Path
from typing import List, Tuple

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np

from .data_models import Gender, Solution


def plot_score_history(
    history: List[float],
    output_path: Path,
    figsize: Tuple[int, int] = (10, 5)
) -> None:
    """
    Plot best score per generation. Generation 0 is the calibrated start.

    Args:
        history: Best score after calibration and after each generation
        output_path: Path to save PNG file
        figsize: Figure size (width, height) in inches
    """
    fig, ax = plt.subplots(figsize=figsize)
    ax.plot(range(len(history)), history, color="tab:blue", linewidth=1.5)
    ax.set_xlabel("Generation")
    ax.set_ylabel("Best score (lower is better)")
    ax.set_title("Search progress")
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)

    print(f"  Saved visualization: {output_path}")


def plot_group_balance(
    solution: Solution,
    output_path: Path,
    figsize: Tuple[int, int] = (12, 5)
) -> None:
    """
    Two-panel plot of the final groups.

    Left: members per group, stacked by gender. Right: rating distribution
    per group.

    Args:
        solution: Solution to visualize
        output_path: Path to save PNG file
        figsize: Figure size (width, height) in inches
    """
    groups = solution.groups()
    labels = [f"G{group.index + 1}" for group in groups]
    positions = np.arange(len(groups))

    males = np.array([group.count_gender(Gender.MALE) for group in groups])
    females = np.array([group.count_gender(Gender.FEMALE) for group in groups])
    others = np.array([len(group) for group in groups]) - males - females

    fig, (ax_counts, ax_ratings) = plt.subplots(1, 2, figsize=figsize)

    ax_counts.bar(positions, males, color="tab:blue", label="male")
    ax_counts.bar(positions, females, bottom=males, color="tab:orange", label="female")
    if others.any():
        ax_counts.bar(positions, others, bottom=males + females, color="tab:gray", label="unset")
    ax_counts.set_xticks(positions)
    ax_counts.set_xticklabels(labels)
    ax_counts.set_ylabel("Members")
    ax_counts.set_title("Group sizes")
    ax_counts.legend()

    ratings = [group.ratings() or [0.0] for group in groups]
    ax_ratings.boxplot(ratings)
    ax_ratings.set_xticks(positions + 1)
    ax_ratings.set_xticklabels(labels)
    ax_ratings.set_ylabel("Rating")
    ax_ratings.set_title("Ratings per group")

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)

    print(f"  Saved visualization: {output_path}")
