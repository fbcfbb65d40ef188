"""
Environments Module.

    - Environment: Protocol the solver trains against
    - GymEnvironment: Adapter for gymnasium environments
"""

from deepq.envs.base import Environment
from deepq.envs.gym_adapter import GymEnvironment

__all__ = ["Environment", "GymEnvironment"]
