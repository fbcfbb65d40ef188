"""
Uniform Experience Replay Buffer.

This module implements a fixed-capacity replay buffer backed by
preallocated NumPy arrays with O(1) insertion.

Core Idea (核心思想)
====================
经验回放通过存储和随机采样历史交互数据，打破样本间的时序相关性，
使得神经网络训练更加稳定。所有存储在构造时一次性分配 (arena)，
通过显式的写指针与占用计数实现环形覆盖，运行过程中不再增长。

Mathematical Foundation (数学基础)
==================================
Uniform sampling probability:
    P(i) = 1/n, ∀i ∈ [0, n)

Expected gradient with replay buffer:
    ∇_θ L = E_{(s,a,r,s')~U(D)} [(Q(s,a;θ) - y)²]

Complexity Analysis (复杂度分析)
================================
+---------------------+------------+----------------------------------+
| Operation           | Complexity | Notes                            |
+=====================+============+==================================+
| push()              | O(1)       | Overwrites oldest slot when full |
+---------------------+------------+----------------------------------+
| sample()            | O(B)       | B = batch_size, with replacement |
+---------------------+------------+----------------------------------+
| update_priorities() | O(1)       | No-op for uniform replay         |
+---------------------+------------+----------------------------------+
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple, Union

import numpy as np

from deepq.core.types import Experience, FloatArray, IntArray, TransitionBatch


def _as_shape(obs_dim: Union[int, Sequence[int]]) -> Tuple[int, ...]:
    if isinstance(obs_dim, (int, np.integer)):
        shape: Tuple[int, ...] = (int(obs_dim),)
    else:
        shape = tuple(int(d) for d in obs_dim)
    if not shape or any(d <= 0 for d in shape):
        raise ValueError(f"obs_dim must be positive, got {obs_dim!r}")
    return shape


class ReplayBuffer:
    """
    Uniform experience replay buffer over a preallocated arena.

    Core Idea (核心思想)
    --------------------
    经验回放是DQN的核心创新之一，解决了两个关键问题：

    1. **打破时序相关性**: 连续采样的样本高度相关，违反SGD的i.i.d.假设。
       随机采样打破时序关联，提供更稳定的梯度估计。

    2. **提高数据效率**: 每个经验可被多次使用，而非"用后即弃"。

    Implementation Details (实现细节)
    ---------------------------------
    - Five arrays of length ``capacity`` hold the experience fields
    - ``cursor`` is the next slot to write; ``len()`` is the occupancy
    - Sampling draws indices independently **with replacement** from
      the injected ``numpy.random.Generator``
    - ``update_priorities`` is accepted and ignored so that every replay
      discipline can be driven through the same calls

    Parameters
    ----------
    capacity : int
        Maximum number of transitions to store. Must be positive.
        When full, the oldest transition is overwritten.
    obs_dim : int or tuple of int
        Observation shape
    rng : numpy.random.Generator, optional
        Random source for sampling. A fresh unseeded generator is used
        when omitted.

    Raises
    ------
    ValueError
        If ``capacity <= 0`` or ``obs_dim`` is not positive

    Examples
    --------
    >>> buffer = ReplayBuffer(capacity=100, obs_dim=4)
    >>> state = np.zeros(4)
    >>> buffer.push(Experience(state, 0, 1.0, state, False))
    >>> len(buffer)
    1
    >>> batch = buffer.sample(8)
    >>> batch.states.shape
    (8, 4)

    See Also
    --------
    PrioritizedReplayBuffer : Priority-based sampling
    EpisodeReplayBuffer : Whole-episode storage for recurrent networks
    """

    def __init__(
        self,
        capacity: int,
        obs_dim: Union[int, Sequence[int]],
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        if not isinstance(capacity, (int, np.integer)) or capacity <= 0:
            raise ValueError(
                f"capacity must be a positive integer, got {capacity!r} "
                f"(type: {type(capacity).__name__})"
            )
        self._capacity = int(capacity)
        self._obs_shape = _as_shape(obs_dim)
        self._rng = rng if rng is not None else np.random.default_rng()

        self._states = np.zeros((self._capacity, *self._obs_shape), dtype=np.float32)
        self._actions = np.zeros(self._capacity, dtype=np.int64)
        self._rewards = np.zeros(self._capacity, dtype=np.float32)
        self._next_states = np.zeros((self._capacity, *self._obs_shape), dtype=np.float32)
        self._dones = np.zeros(self._capacity, dtype=np.float32)

        self._cursor = 0
        self._size = 0

    @property
    def capacity(self) -> int:
        """Maximum buffer capacity (read-only)."""
        return self._capacity

    @property
    def cursor(self) -> int:
        """Slot the next ``push`` writes to."""
        return self._cursor

    @property
    def obs_shape(self) -> Tuple[int, ...]:
        """Shape of a single stored observation."""
        return self._obs_shape

    def __len__(self) -> int:
        """Return current number of stored transitions."""
        return self._size

    def __getitem__(self, slot: int) -> Experience:
        """
        Return the experience stored in ``slot``.

        Raises
        ------
        IndexError
            If ``slot`` is not an occupied slot
        """
        if not 0 <= slot < self._size:
            raise IndexError(f"slot {slot} out of range for {self._size} entries")
        return Experience(
            self._states[slot].copy(),
            int(self._actions[slot]),
            float(self._rewards[slot]),
            self._next_states[slot].copy(),
            bool(self._dones[slot]),
        )

    def _check_obs(self, obs: FloatArray, name: str) -> None:
        if np.shape(obs) != self._obs_shape:
            raise ValueError(
                f"{name} has shape {np.shape(obs)}, expected {self._obs_shape}"
            )

    def push(self, experience: Experience) -> int:
        """
        Store a single experience, overwriting the oldest when full.

        Parameters
        ----------
        experience : Experience
            The transition to store

        Returns
        -------
        int
            The slot the experience was written to

        Raises
        ------
        ValueError
            If an observation does not match ``obs_dim``
        """
        obs, action, reward, next_obs, done = experience
        self._check_obs(obs, "obs")
        self._check_obs(next_obs, "next_obs")

        slot = self._cursor
        self._states[slot] = obs
        self._actions[slot] = action
        self._rewards[slot] = reward
        self._next_states[slot] = next_obs
        self._dones[slot] = float(done)

        self._cursor = (self._cursor + 1) % self._capacity
        self._size = min(self._size + 1, self._capacity)
        return slot

    def _gather(self, indices: IntArray, weights: FloatArray) -> TransitionBatch:
        return TransitionBatch(
            states=self._states[indices],
            actions=self._actions[indices],
            rewards=self._rewards[indices],
            next_states=self._next_states[indices],
            dones=self._dones[indices],
            weights=weights,
            indices=indices,
        )

    def sample(self, batch_size: int) -> TransitionBatch:
        """
        Sample a uniform random mini-batch of transitions.

        Indices are drawn independently and uniformly from the occupied
        slots, with replacement, so ``batch_size`` may exceed ``len()``.

        Parameters
        ----------
        batch_size : int
            Number of transitions to sample

        Returns
        -------
        TransitionBatch
            Stacked arrays with leading dimension ``batch_size``;
            ``weights`` are all ones

        Raises
        ------
        ValueError
            If the buffer is empty or ``batch_size`` is not positive
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if self._size == 0:
            raise ValueError("cannot sample from an empty replay buffer")

        indices = self._rng.integers(0, self._size, size=batch_size).astype(np.int64)
        weights = np.ones(batch_size, dtype=np.float32)
        return self._gather(indices, weights)

    def update_priorities(self, indices: IntArray, td_errors: FloatArray) -> None:
        """Accept TD errors from an update; uniform replay ignores them."""

    def finish_episode(self) -> None:
        """Mark an episode boundary; transitions are stored independently."""

    def is_ready(self, min_size: int) -> bool:
        """
        Check if buffer has sufficient samples for training.

        Parameters
        ----------
        min_size : int
            Minimum required number of transitions

        Returns
        -------
        bool
            True if len(buffer) >= min_size
        """
        return self._size >= min_size

    def clear(self) -> None:
        """Forget all stored transitions. Arena memory is kept."""
        self._cursor = 0
        self._size = 0
