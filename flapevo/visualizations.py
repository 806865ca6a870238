"""Figures summarizing a training run, written as PNG files."""
from __future__ import annotations

from typing import Optional, Sequence
import os

import matplotlib.pyplot as plt
import numpy as np
from sklearn.manifold import MDS

from .genetic_algorithm import GAHistory
from .network import parameter_count


def _ensure_dir(path: str) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)


def _save(fig, save_path: str) -> None:
    plt.tight_layout()
    _ensure_dir(save_path)
    fig.savefig(save_path, dpi=150, bbox_inches="tight")
    plt.close(fig)


def _as_matrix(history: Sequence[np.ndarray]) -> np.ndarray:
    if history is None or len(history) == 0:
        raise ValueError("history is empty.")
    return np.vstack(history)


def plot_fitness_history(history: GAHistory, save_path: str) -> None:
    """Best and mean fitness per generation, diversity on a twin axis."""
    if not history.generations:
        raise ValueError("history is empty.")

    fig, ax = plt.subplots(figsize=(9, 5))
    ax.plot(history.generations, history.best_fitness, color="#d62728",
            linewidth=2.0, label="Best fitness")
    ax.plot(history.generations, history.mean_fitness, color="#1f77b4",
            label="Mean fitness")
    ax.set_xlabel("Generation")
    ax.set_ylabel("Fitness")
    ax.grid(alpha=0.3)

    ax2 = ax.twinx()
    ax2.plot(history.generations, history.diversity, color="#7f7f7f",
             linestyle="--", label="Diversity")
    ax2.set_ylabel("Mean pairwise weight distance")

    lines = ax.get_lines() + ax2.get_lines()
    ax.legend(lines, [line.get_label() for line in lines], loc="upper left")
    ax.set_title("Fitness over generations")
    _save(fig, save_path)


def plot_weight_heatmap(best_history: Sequence[np.ndarray],
                        save_path: str,
                        topology: Optional[Sequence[int]] = None) -> None:
    """Best-individual weights: generations on X, flat weight index on Y.

    With ``topology`` given, horizontal lines mark where each layer's block of
    weights and biases ends.
    """
    data = _as_matrix(best_history).T
    fig, ax = plt.subplots(figsize=(10, 5))
    im = ax.imshow(data, aspect="auto", cmap="coolwarm", interpolation="nearest",
                   origin="lower")
    if topology is not None:
        for end in range(2, len(topology)):
            ax.axhline(parameter_count(topology[:end]) - 0.5, color="black", linewidth=0.8)
    ax.set_xlabel("Generation")
    ax.set_ylabel("Weight index")
    ax.set_title("Best-individual weights over generations")
    cbar = fig.colorbar(im, ax=ax)
    cbar.set_label("Weight value")
    _save(fig, save_path)


def plot_best_mds(best_history: Sequence[np.ndarray],
                  save_path: str,
                  random_state: int = 0) -> None:
    """Map the champion's weight vectors into 2-D via MDS."""
    matrix = _as_matrix(best_history)
    if matrix.shape[0] < 2:
        raise ValueError("Need at least two generations for MDS plot.")

    embedding = MDS(n_components=2, n_init=4, init="random", random_state=random_state)
    coords = embedding.fit_transform(matrix)
    generations = np.arange(matrix.shape[0])

    fig, ax = plt.subplots(figsize=(7, 6))
    ax.plot(coords[:, 0], coords[:, 1], color="#bbbbbb", linewidth=1.2, alpha=0.6)
    scatter = ax.scatter(coords[:, 0], coords[:, 1], c=generations, cmap="viridis",
                         s=50, edgecolor="black", linewidth=0.4)
    ax.scatter(coords[0, 0], coords[0, 1], marker="^", s=140, color="#1b9e77", label="Start")
    ax.scatter(coords[-1, 0], coords[-1, 1], marker="*", s=160, color="#d95f02", label="End")
    ax.set_xlabel("MDS dim 1")
    ax.set_ylabel("MDS dim 2")
    ax.set_title("Trajectory of the best bird's weights (MDS)")
    ax.legend()
    cbar = fig.colorbar(scatter, ax=ax)
    cbar.set_label("Generation")
    ax.grid(alpha=0.3)
    _save(fig, save_path)
