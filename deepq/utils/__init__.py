"""
Utilities Module.

This module provides training support:
    - TrainingLogger: Training history and moving averages
    - RunContext: Mutable state of one solver run
    - basic_evaluation: Mean undiscounted return of a policy
    - plot_training_curves: Matplotlib figure of a training history

Example:
    >>> from deepq.utils import plot_training_curves
    >>> plot_training_curves(solver.history, show=False, save_path="curves.png")
"""

from deepq.utils.evaluation import basic_evaluation
from deepq.utils.training import RunContext, TrainingLogger
from deepq.utils.visualization import plot_training_curves

__all__ = [
    "TrainingLogger",
    "RunContext",
    "basic_evaluation",
    "plot_training_curves",
]
