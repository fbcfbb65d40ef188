"""
Episodic Replay Buffer for recurrent Q-networks.

Core Idea (核心思想)
====================
循环网络需要按时间顺序展开，因此不能独立采样单步转移。本缓冲区存储
完整的episode，采样时从每个被选中的episode中截取长度为 L 的连续片段；
不足 L 步的episode在左侧补齐 (padding)，并用 trace_mask 标记补齐位置，
使其不产生梯度。

Sampling Procedure (采样过程)
=============================
For each of the B trace slots:

1. Choose a sealed episode e uniformly, with replacement
2. If |e| ≥ L, choose a start s ~ U{0, ..., |e| - L} and take e[s : s + L]
3. Otherwise left-pad with (zero observation, action 0, reward 0,
   done 1, mask 0) and place the |e| real steps at the end

The result is time-major: every field has shape (L, B, ...).
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Union

import numpy as np

from deepq.buffers.base import _as_shape
from deepq.core.types import Experience, FloatArray, IntArray, TraceBatch


class EpisodeReplayBuffer:
    """
    Ring buffer of whole episodes with fixed-length trace sampling.

    An episode is open while experiences are pushed and becomes sealed,
    and therefore sampleable, once an experience with ``done`` is pushed
    or it reaches ``max_episode_length`` steps. Sealing into a full ring
    overwrites the oldest episode.

    Parameters
    ----------
    capacity : int
        Maximum number of sealed episodes
    obs_dim : int or tuple of int
        Observation shape
    rng : numpy.random.Generator, optional
        Random source for sampling
    trace_length : int, default=40
        Length L of sampled traces
    max_episode_length : int, default=100
        Steps after which an open episode is sealed

    Raises
    ------
    ValueError
        If any size argument is not positive

    Examples
    --------
    >>> buffer = EpisodeReplayBuffer(capacity=10, obs_dim=2, trace_length=5)
    >>> for t in range(3):
    ...     buffer.push(Experience(np.ones(2), 1, 1.0, np.ones(2), t == 2))
    >>> len(buffer), buffer.num_experiences
    (1, 3)
    >>> batch = buffer.sample(4)
    >>> batch.trace_mask[:, 0]
    array([0., 0., 1., 1., 1.], dtype=float32)
    """

    def __init__(
        self,
        capacity: int,
        obs_dim: Union[int, Sequence[int]],
        rng: Optional[np.random.Generator] = None,
        trace_length: int = 40,
        max_episode_length: int = 100,
    ) -> None:
        if not isinstance(capacity, (int, np.integer)) or capacity <= 0:
            raise ValueError(f"capacity must be a positive integer, got {capacity!r}")
        if trace_length <= 0:
            raise ValueError(f"trace_length must be positive, got {trace_length}")
        if max_episode_length <= 0:
            raise ValueError(
                f"max_episode_length must be positive, got {max_episode_length}"
            )

        self._capacity = int(capacity)
        self._obs_shape = _as_shape(obs_dim)
        self._rng = rng if rng is not None else np.random.default_rng()
        self._trace_length = trace_length
        self._max_episode_length = max_episode_length

        shape = (self._capacity + 1, max_episode_length)
        # Row ``capacity`` is the open episode being written.
        self._states = np.zeros((*shape, *self._obs_shape), dtype=np.float32)
        self._actions = np.zeros(shape, dtype=np.int64)
        self._rewards = np.zeros(shape, dtype=np.float32)
        self._next_states = np.zeros((*shape, *self._obs_shape), dtype=np.float32)
        self._dones = np.zeros(shape, dtype=np.float32)
        self._lengths = np.zeros(self._capacity, dtype=np.int64)

        self._open_length = 0
        self._cursor = 0
        self._size = 0

    @property
    def capacity(self) -> int:
        """Maximum number of sealed episodes."""
        return self._capacity

    @property
    def cursor(self) -> int:
        """Episode slot the next sealed episode is written to."""
        return self._cursor

    @property
    def trace_length(self) -> int:
        return self._trace_length

    @property
    def num_experiences(self) -> int:
        """Number of transitions held by sealed episodes."""
        return int(self._lengths[: self._size].sum())

    @property
    def open_length(self) -> int:
        """Number of steps in the episode currently being written."""
        return self._open_length

    def __len__(self) -> int:
        """Return the number of sealed episodes."""
        return self._size

    def episode(self, slot: int) -> List[Experience]:
        """Return the experiences of the sealed episode in ``slot``."""
        if not 0 <= slot < self._size:
            raise IndexError(f"episode slot {slot} out of range for {self._size} episodes")
        return [
            Experience(
                self._states[slot, t].copy(),
                int(self._actions[slot, t]),
                float(self._rewards[slot, t]),
                self._next_states[slot, t].copy(),
                bool(self._dones[slot, t]),
            )
            for t in range(int(self._lengths[slot]))
        ]

    def push(self, experience: Experience) -> None:
        """
        Append an experience to the open episode.

        The episode is sealed when ``experience.done`` is set or when it
        reaches ``max_episode_length`` steps.

        Raises
        ------
        ValueError
            If an observation does not match ``obs_dim``
        """
        obs, action, reward, next_obs, done = experience
        for name, value in (("obs", obs), ("next_obs", next_obs)):
            if np.shape(value) != self._obs_shape:
                raise ValueError(
                    f"{name} has shape {np.shape(value)}, expected {self._obs_shape}"
                )

        row, t = self._capacity, self._open_length
        self._states[row, t] = obs
        self._actions[row, t] = action
        self._rewards[row, t] = reward
        self._next_states[row, t] = next_obs
        self._dones[row, t] = float(done)
        self._open_length += 1

        if done or self._open_length >= self._max_episode_length:
            self._seal()

    def _seal(self) -> None:
        row, slot, n = self._capacity, self._cursor, self._open_length
        for arr in (self._states, self._actions, self._rewards, self._next_states, self._dones):
            arr[slot, :n] = arr[row, :n]
        self._lengths[slot] = n

        self._open_length = 0
        self._cursor = (self._cursor + 1) % self._capacity
        self._size = min(self._size + 1, self._capacity)

    def sample(self, batch_size: int) -> TraceBatch:
        """
        Sample ``batch_size`` traces of length ``trace_length``.

        Returns
        -------
        TraceBatch
            Time-major arrays of shape ``(trace_length, batch_size, ...)``
            and the sampled episode slots

        Raises
        ------
        ValueError
            If no episode has been sealed yet or ``batch_size`` is not positive
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if self._size == 0:
            raise ValueError("cannot sample from an episode buffer with no sealed episode")

        L = self._trace_length
        states = np.zeros((L, batch_size, *self._obs_shape), dtype=np.float32)
        actions = np.zeros((L, batch_size), dtype=np.int64)
        rewards = np.zeros((L, batch_size), dtype=np.float32)
        next_states = np.zeros((L, batch_size, *self._obs_shape), dtype=np.float32)
        dones = np.ones((L, batch_size), dtype=np.float32)
        mask = np.zeros((L, batch_size), dtype=np.float32)

        slots = self._rng.integers(0, self._size, size=batch_size).astype(np.int64)
        for b, slot in enumerate(slots):
            length = int(self._lengths[slot])
            if length >= L:
                start = int(self._rng.integers(0, length - L + 1))
                src, dst = slice(start, start + L), slice(0, L)
            else:
                src, dst = slice(0, length), slice(L - length, L)
            states[dst, b] = self._states[slot, src]
            actions[dst, b] = self._actions[slot, src]
            rewards[dst, b] = self._rewards[slot, src]
            next_states[dst, b] = self._next_states[slot, src]
            dones[dst, b] = self._dones[slot, src]
            mask[dst, b] = 1.0

        return TraceBatch(states, actions, rewards, next_states, dones, mask, slots)

    def update_priorities(self, indices: IntArray, td_errors: FloatArray) -> None:
        """Accept TD errors from an update; episodic replay ignores them."""

    def finish_episode(self) -> None:
        """
        Seal the open episode early.

        Used when the environment is reset before the episode ended, so
        that experience of two episodes never shares a trace.
        """
        if self._open_length > 0:
            self._seal()

    def is_ready(self, min_size: int) -> bool:
        """
        Check if enough experience has been sealed to start training.

        Returns
        -------
        bool
            True if at least one episode is sealed and sealed episodes
            hold at least ``min_size`` transitions
        """
        return self._size > 0 and self.num_experiences >= min_size

    def clear(self) -> None:
        """Forget all episodes, including the open one."""
        self._lengths[:] = 0
        self._open_length = 0
        self._cursor = 0
        self._size = 0
