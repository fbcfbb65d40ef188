"""
Visualization Utilities.

This module provides plotting of a ``TrainingLogger`` history.

Core Idea (核心思想)
====================
一张图包含四个面板：episode奖励 (原始与平滑)、每次更新的损失、
梯度范数与评估分数，用于快速判断训练是否正常。
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import matplotlib.pyplot as plt

from deepq.utils.training import TrainingLogger


def plot_training_curves(
    history: TrainingLogger,
    title: str = "Training Progress",
    smoothing_window: int = 10,
    save_path: Optional[Union[str, Path]] = None,
    show: bool = True,
) -> None:
    """
    Plot training curves from a training history.

    Parameters
    ----------
    history : TrainingLogger
        History returned by the solver
    title : str, default="Training Progress"
        Plot title
    smoothing_window : int, default=10
        Window size for moving average smoothing
    save_path : Optional[Union[str, Path]]
        Path to save figure
    show : bool, default=True
        Whether to display plot

    Examples
    --------
    >>> solver = DeepQLearningSolver(config)
    >>> policy = solver.solve(env)
    >>> plot_training_curves(solver.history, save_path="curves.png", show=False)
    """
    fig, axes = plt.subplots(2, 2, figsize=(14, 10))

    # Episode rewards
    ax1 = axes[0, 0]
    if history.episode_rewards:
        smoothed = history.get_smoothed_rewards(smoothing_window)
        ax1.plot(history.episode_rewards, alpha=0.3, color="blue", label="Raw")
        ax1.plot(smoothed, color="blue", linewidth=2, label=f"Smoothed ({smoothing_window})")
        ax1.axhline(history.mean_reward, color="red", linestyle="--",
                    label=f"Final: {history.mean_reward:.1f}")
        ax1.legend()
    ax1.set_xlabel("Episode")
    ax1.set_ylabel("Reward")
    ax1.set_title("Episode Rewards")
    ax1.grid(True, alpha=0.3)

    # Training loss
    ax2 = axes[0, 1]
    if history.losses:
        ax2.plot(history.losses, alpha=0.5, color="orange")
        ax2.set_yscale("log")
    ax2.set_xlabel("Update Step")
    ax2.set_ylabel("Loss")
    ax2.set_title("Training Loss")
    ax2.grid(True, alpha=0.3)

    # Gradient norm
    ax3 = axes[1, 0]
    if history.grad_norms:
        ax3.plot(history.grad_norms, alpha=0.5, color="green")
    ax3.set_xlabel("Update Step")
    ax3.set_ylabel("Gradient Norm")
    ax3.set_title("Gradient Norm (before clipping)")
    ax3.grid(True, alpha=0.3)

    # Evaluation scores
    ax4 = axes[1, 1]
    if history.eval_scores:
        steps, scores = zip(*history.eval_scores)
        ax4.plot(steps, scores, marker="o", color="purple")
    ax4.set_xlabel("Environment Step")
    ax4.set_ylabel("Score")
    ax4.set_title("Evaluation Score")
    ax4.grid(True, alpha=0.3)

    fig.suptitle(title, fontsize=14)
    plt.tight_layout()

    if save_path is not None:
        plt.savefig(save_path, dpi=150, bbox_inches="tight")

    if show:
        plt.show()
    else:
        plt.close(fig)
