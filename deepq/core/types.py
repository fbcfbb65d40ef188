"""
Type Definitions for the Deep Q-Learning solver.

This module defines type aliases and the immutable records exchanged
between the replay stores, the update engines and the training loop.

Core Idea (核心思想)
====================
使用NamedTuple实现不可变的经验与批数据结构，结合NumPy类型别名
提供清晰的类型注解。

Mathematical Definition (数学定义)
==================================
An experience is one step of interaction:

    e_t = (o_t, a_t, r_t, o_{t+1}, d_t)

where a_t is an index into the environment's fixed action ordering.
"""

from __future__ import annotations

from typing import Any, NamedTuple

import numpy as np
from numpy.typing import NDArray


# Type Aliases
FloatArray = NDArray[np.floating[Any]]
"""Float-valued NumPy array for observations, rewards, etc."""

IntArray = NDArray[np.int64]
"""Integer-valued NumPy array for actions, indices, etc."""


class Experience(NamedTuple):
    """
    Single-step experience stored by every replay discipline.

    Attributes
    ----------
    obs : FloatArray
        Observation o_t, shape ``obs_dim``
    action : int
        Action index a_t into the environment's ordered action set
    reward : float
        Immediate reward r_t
    next_obs : FloatArray
        Observation o_{t+1}, shape ``obs_dim``
    done : bool
        True if the environment reported termination after this step

    Examples
    --------
    >>> obs = np.array([1.0, 0.0])
    >>> exp = Experience(obs, 1, 0.5, obs, False)
    >>> exp.action
    1
    """
    obs: FloatArray
    action: int
    reward: float
    next_obs: FloatArray
    done: bool


class TransitionBatch(NamedTuple):
    """
    Mini-batch of independent transitions.

    Every field has leading dimension ``batch_size``. ``weights`` are the
    importance-sampling weights (all ones for uniform replay) and
    ``indices`` the sampled slots, consumed by
    ``update_priorities``.
    """
    states: FloatArray
    actions: IntArray
    rewards: FloatArray
    next_states: FloatArray
    dones: FloatArray
    weights: FloatArray
    indices: IntArray


class TraceBatch(NamedTuple):
    """
    Mini-batch of fixed-length traces, time-major.

    Every field except ``indices`` has leading dimensions
    ``(trace_length, batch_size)``. ``trace_mask`` is 0 on padded
    timesteps and 1 on real ones; padded timesteps must not contribute
    gradient. ``indices`` are the sampled episode slots, shape
    ``(batch_size,)``.
    """
    states: FloatArray
    actions: IntArray
    rewards: FloatArray
    next_states: FloatArray
    dones: FloatArray
    trace_mask: FloatArray
    indices: IntArray


class UpdateResult(NamedTuple):
    """
    Outcome of one batch update.

    Attributes
    ----------
    loss : float
        Scalar loss value of the update
    td_errors : FloatArray
        Per-sample TD errors, shape ``(batch_size,)`` or
        ``(trace_length, batch_size)`` for traces
    grad_norm : float
        Global L2 norm of the gradient before clipping
    """
    loss: float
    td_errors: FloatArray
    grad_norm: float
