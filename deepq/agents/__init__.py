"""
Agents Module.

This module provides the learning components and the training loop:
    - LinearEpsilonGreedy: Linearly decaying ε-greedy exploration
    - NNPolicy: Greedy policy with recurrent state management
    - TargetNetwork: Frozen copy of the active network
    - BatchUpdateEngine / RecurrentBatchUpdateEngine: One gradient step
    - DeepQLearningSolver: The training loop

Example:
    >>> from deepq.agents import DeepQLearningSolver
    >>> solver = DeepQLearningSolver(config)
    >>> policy = solver.solve(env)
"""

from deepq.agents.exploration import LinearEpsilonGreedy
from deepq.agents.learner import (
    BatchUpdateEngine,
    RecurrentBatchUpdateEngine,
    create_update_engine,
)
from deepq.agents.policy import NNPolicy
from deepq.agents.solver import DeepQLearningSolver
from deepq.agents.target import TargetNetwork

__all__ = [
    "LinearEpsilonGreedy",
    "NNPolicy",
    "TargetNetwork",
    "BatchUpdateEngine",
    "RecurrentBatchUpdateEngine",
    "create_update_engine",
    "DeepQLearningSolver",
]
