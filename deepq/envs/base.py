"""
Environment protocol expected by the solver.

Any object with these methods can be trained on; ``GymEnvironment``
adapts gymnasium environments with a discrete action space.
"""

from __future__ import annotations

from typing import Any, Dict, Protocol, Sequence, Tuple

import numpy as np


class Environment(Protocol):
    """
    Episodic environment with a fixed, ordered action set.

    ``step`` returns ``(observation, reward, done, info)``; the solver
    calls ``reset`` after ``done`` or when an episode hits its step cap.
    """

    def reset(self) -> np.ndarray:
        ...

    def step(self, action: Any) -> Tuple[np.ndarray, float, bool, Dict[str, Any]]:
        ...

    def discount(self) -> float:
        ...

    def actions(self) -> Sequence[Any]:
        ...

    def action_index(self, action: Any) -> int:
        ...

    def obs_dimensions(self) -> Tuple[int, ...]:
        ...
