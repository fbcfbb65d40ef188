"""
Exception hierarchy for the Deep Q-Learning solver.

Configuration problems are detected before any training state exists and
are reported as ``ConfigurationError``. It subclasses ``ValueError`` so
callers that validate arguments the usual way keep working.
"""


class DeepQLearningError(Exception):
    """Base class for all errors raised by the solver."""


class ConfigurationError(DeepQLearningError, ValueError):
    """Invalid or inconsistent solver configuration."""
