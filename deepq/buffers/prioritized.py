"""
Prioritized Experience Replay Buffer.

This module implements proportional PER (Schaul et al., 2016) over the
same preallocated arena as the uniform buffer.

Core Idea (核心思想)
====================
优先经验回放通过TD误差大小对样本进行优先采样，使得学习更加高效：

1. **重要性采样**: 高TD误差的样本包含更多学习信号
2. **偏差校正**: 使用重要性采样权重保持梯度无偏

Mathematical Foundation (数学基础)
==================================
Priority Definition:
    p_i = |δ_i| + ε

where δ_i is TD error and ε prevents zero priority.

Sampling Probability:
    P(i) = p_i^α / Σ_k p_k^α

- α = 0: Uniform sampling (ignores priorities)
- α = 1: Full prioritization

Importance Sampling Weights (unbias gradients):
    w_i = (n · P(i))^(-β) / max_{j ∈ batch} w_j

References:
    Schaul, T. et al. (2016). Prioritized Experience Replay. ICLR.
"""

from __future__ import annotations

from typing import Optional, Sequence, Union

import numpy as np

from deepq.buffers.base import ReplayBuffer
from deepq.core.types import Experience, FloatArray, IntArray, TransitionBatch


class PrioritizedReplayBuffer(ReplayBuffer):
    """
    Prioritized Experience Replay (PER) buffer.

    Core Idea (核心思想)
    --------------------
    每个槽位保存一个原始优先级 p_i (未取α次方)，采样时才计算 p_i^α，
    因此修改α不需要重建存储。新样本获得当前最大优先级，保证至少被采样一次。

    Implementation Details (实现细节)
    ---------------------------------
    - Raw priorities live in a float64 array index-aligned with the slots
    - Indices are drawn independently from ``P`` with replacement
    - Weights are normalised by the maximum weight in the batch, so the
      largest weight is exactly 1 and every weight lies in (0, 1]

    Complexity Analysis (复杂度分析)
    --------------------------------
    +------------------+------------+----------------------------------+
    | Operation        | Complexity | Notes                            |
    +==================+============+==================================+
    | push()           | O(1)       | Max priority assigned            |
    +------------------+------------+----------------------------------+
    | sample()         | O(n + B)   | Normalises over occupied slots   |
    +------------------+------------+----------------------------------+
    | update_priorities| O(B)       | Update B priorities              |
    +------------------+------------+----------------------------------+

    Parameters
    ----------
    capacity : int
        Maximum buffer size
    obs_dim : int or tuple of int
        Observation shape
    rng : numpy.random.Generator, optional
        Random source for sampling
    alpha : float, default=0.6
        Prioritization exponent. 0 = uniform.
    beta : float, default=0.4
        Importance sampling exponent in [0, 1]
    epsilon : float, default=1e-6
        Small constant preventing zero priority

    Raises
    ------
    ValueError
        If alpha is negative, beta not in [0, 1] or epsilon not positive

    Examples
    --------
    >>> buffer = PrioritizedReplayBuffer(capacity=1000, obs_dim=4)
    >>> buffer.push(Experience(np.zeros(4), 0, 1.0, np.zeros(4), False))
    0
    >>> batch = buffer.sample(16)
    >>> buffer.update_priorities(batch.indices, td_errors)

    References
    ----------
    Schaul, T. et al. (2016). Prioritized Experience Replay. ICLR.
    """

    def __init__(
        self,
        capacity: int,
        obs_dim: Union[int, Sequence[int]],
        rng: Optional[np.random.Generator] = None,
        alpha: float = 0.6,
        beta: float = 0.4,
        epsilon: float = 1e-6,
    ) -> None:
        super().__init__(capacity, obs_dim, rng)
        if alpha < 0:
            raise ValueError(f"alpha must be >= 0, got {alpha}")
        if not 0 <= beta <= 1:
            raise ValueError(f"beta must be in [0, 1], got {beta}")
        if epsilon <= 0:
            raise ValueError(f"epsilon must be positive, got {epsilon}")

        self._alpha = alpha
        self._beta = beta
        self._epsilon = epsilon
        self._priorities = np.zeros(self._capacity, dtype=np.float64)
        self._max_priority = 1.0

    @property
    def alpha(self) -> float:
        """Prioritization exponent."""
        return self._alpha

    @property
    def beta(self) -> float:
        """Importance sampling exponent."""
        return self._beta

    @property
    def max_priority(self) -> float:
        """Largest raw priority seen so far (1.0 initially)."""
        return self._max_priority

    @property
    def priorities(self) -> FloatArray:
        """Read-only view of the raw priorities of occupied slots."""
        view = self._priorities[: self._size]
        view.flags.writeable = False
        return view

    def push(self, experience: Experience) -> int:
        """
        Store experience with the running maximum priority.

        Returns
        -------
        int
            The slot the experience was written to
        """
        slot = super().push(experience)
        self._priorities[slot] = self._max_priority
        return slot

    def probabilities(self) -> FloatArray:
        """
        Sampling distribution P(i) over the occupied slots.

        Returns
        -------
        FloatArray
            Probabilities of shape ``(len(buffer),)`` summing to 1
        """
        scaled = self._priorities[: self._size] ** self._alpha
        return scaled / scaled.sum()

    def sample(self, batch_size: int) -> TransitionBatch:
        """
        Sample a batch proportionally to priority.

        Parameters
        ----------
        batch_size : int
            Number of transitions to sample

        Returns
        -------
        TransitionBatch
            Stacked arrays plus normalised importance weights and the
            sampled slot indices

        Raises
        ------
        ValueError
            If the buffer is empty or ``batch_size`` is not positive
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if self._size == 0:
            raise ValueError("cannot sample from an empty replay buffer")

        probs = self.probabilities()
        indices = self._rng.choice(self._size, size=batch_size, p=probs).astype(np.int64)

        weights = (self._size * probs[indices]) ** (-self._beta)
        weights = (weights / weights.max()).astype(np.float32)
        return self._gather(indices, weights)

    def update_priorities(self, indices: IntArray, td_errors: FloatArray) -> None:
        """
        Update priorities based on TD errors.

        Priority formula: p_i = |δ_i| + ε

        Parameters
        ----------
        indices : IntArray
            Slot indices from ``sample()``, shape (batch_size,)
        td_errors : FloatArray
            TD errors for each transition, shape (batch_size,)
        """
        indices = np.asarray(indices, dtype=np.int64)
        priorities = np.abs(np.asarray(td_errors, dtype=np.float64)).reshape(-1) + self._epsilon
        if indices.shape != priorities.shape:
            raise ValueError(
                f"indices {indices.shape} and td_errors {priorities.shape} differ in shape"
            )

        # Duplicate indices resolve to the last write.
        self._priorities[indices] = priorities
        self._max_priority = max(self._max_priority, float(priorities.max(initial=0.0)))

    def clear(self) -> None:
        """Forget all stored transitions and reset the running maximum."""
        super().clear()
        self._priorities[:] = 0.0
        self._max_priority = 1.0
