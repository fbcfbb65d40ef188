"""
Core Module - Configuration and Data Structures.

This module provides foundational components for the solver:
    - DeepQLearningConfig: Hyperparameter configuration with validation
    - ReplayDiscipline: Enumeration of replay disciplines
    - Experience, TransitionBatch, TraceBatch, UpdateResult: data records
    - DeepQLearningError, ConfigurationError: error hierarchy

Example:
    >>> from deepq.core import DeepQLearningConfig
    >>> config = DeepQLearningConfig(max_steps=200, train_start=20)
    >>> config.get_device()
    device(type='cpu')
"""

from deepq.core.config import DeepQLearningConfig
from deepq.core.enums import ReplayDiscipline
from deepq.core.errors import ConfigurationError, DeepQLearningError
from deepq.core.types import (
    Experience,
    FloatArray,
    IntArray,
    TraceBatch,
    TransitionBatch,
    UpdateResult,
)

__all__ = [
    "DeepQLearningConfig",
    "ReplayDiscipline",
    "DeepQLearningError",
    "ConfigurationError",
    "Experience",
    "TransitionBatch",
    "TraceBatch",
    "UpdateResult",
    "FloatArray",
    "IntArray",
]
