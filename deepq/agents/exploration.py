"""
Linear ε-greedy exploration schedule.

Core Idea (核心思想)
====================
训练初期以较大概率随机探索，随后线性衰减到最终探索率：

    ε(t) = max(ε_end, 1 - (1 - ε_end) · t / (f · T))

其中 T 为总步数 ``max_steps``，f 为衰减所占比例 ``eps_fraction``。
调度器本身无状态，给定 t 与随机数生成器即可完全确定行为。
"""

from __future__ import annotations

from typing import Any, Tuple

import numpy as np


class LinearEpsilonGreedy:
    """
    ε-greedy action selection with a linearly decaying ε.

    Parameters
    ----------
    max_steps : int
        Total number of environment steps of the run
    eps_fraction : float
        Fraction of ``max_steps`` over which ε decays from 1 to ``eps_end``
    eps_end : float
        Final exploration rate

    Examples
    --------
    >>> explore = LinearEpsilonGreedy(max_steps=1000, eps_fraction=0.5, eps_end=0.01)
    >>> explore.epsilon(0)
    1.0
    >>> round(explore.epsilon(250), 3)
    0.505
    >>> explore.epsilon(800)
    0.01
    """

    def __init__(self, max_steps: int, eps_fraction: float, eps_end: float) -> None:
        if max_steps <= 0 or eps_fraction <= 0:
            raise ValueError(
                f"max_steps and eps_fraction must be positive, "
                f"got {max_steps} and {eps_fraction}"
            )
        self.max_steps = max_steps
        self.eps_fraction = eps_fraction
        self.eps_end = eps_end

    def epsilon(self, t: int) -> float:
        """Exploration rate at step ``t``."""
        decay_steps = self.eps_fraction * self.max_steps
        return max(self.eps_end, 1.0 - (1.0 - self.eps_end) * t / decay_steps)

    def __call__(
        self,
        policy,
        env,
        obs: np.ndarray,
        t: int,
        rng: np.random.Generator,
    ) -> Tuple[Any, float]:
        """
        Choose an action for ``obs`` at step ``t``.

        The policy is always queried first so that a recurrent policy
        advances its hidden state on every observation, explored or not.

        Returns
        -------
        action : Any
            An element of ``env.actions()``
        eps : float
            The exploration rate used
        """
        eps = self.epsilon(t)
        greedy = policy.action(obs)
        if rng.random() < eps:
            actions = env.actions()
            return actions[int(rng.integers(len(actions)))], eps
        return greedy, eps
