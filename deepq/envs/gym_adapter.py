"""
Gymnasium adapter.

Core Idea (核心思想)
====================
将gymnasium的五元组 ``(obs, reward, terminated, truncated, info)``
转换为求解器使用的四元组，``done = terminated or truncated``。
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import gymnasium as gym
import numpy as np


class GymEnvironment:
    """
    Wrap a gymnasium environment with a ``Discrete`` action space.

    Parameters
    ----------
    env : gymnasium.Env or str
        Environment instance, or an id passed to ``gymnasium.make``
    discount : float, default=0.99
        Discount factor reported by ``discount()``
    seed : Optional[int]
        Seed for the first ``reset``

    Raises
    ------
    ValueError
        If the action space is not discrete

    Examples
    --------
    >>> env = GymEnvironment("CartPole-v1", seed=0)
    >>> env.actions()
    [0, 1]
    >>> env.obs_dimensions()
    (4,)
    """

    def __init__(
        self,
        env: Any,
        discount: float = 0.99,
        seed: Optional[int] = None,
    ) -> None:
        self.env = gym.make(env) if isinstance(env, str) else env
        if not isinstance(self.env.action_space, gym.spaces.Discrete):
            raise ValueError(
                f"only Discrete action spaces are supported, got {self.env.action_space}"
            )
        self._discount = discount
        self._seed = seed
        self._actions = list(range(int(self.env.action_space.n)))

    def reset(self) -> np.ndarray:
        obs, _info = self.env.reset(seed=self._seed)
        # Seed only the first episode.
        self._seed = None
        return np.asarray(obs, dtype=np.float32)

    def step(self, action: int) -> Tuple[np.ndarray, float, bool, Dict[str, Any]]:
        obs, reward, terminated, truncated, info = self.env.step(action)
        done = bool(terminated or truncated)
        return np.asarray(obs, dtype=np.float32), float(reward), done, info

    def discount(self) -> float:
        return self._discount

    def actions(self) -> List[int]:
        return self._actions

    def action_index(self, action: int) -> int:
        return self._actions.index(int(action))

    def obs_dimensions(self) -> Tuple[int, ...]:
        return tuple(self.env.observation_space.shape)

    def close(self) -> None:
        self.env.close()
