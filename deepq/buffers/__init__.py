"""
Replay Buffers Module.

This module provides the experience replay disciplines used by the solver:
    - ReplayBuffer: Uniform random sampling with replacement
    - PrioritizedReplayBuffer: TD-error weighted sampling with IS weights
    - EpisodeReplayBuffer: Whole episodes, padded fixed-length traces

All three share one contract (``push``, ``sample``, ``update_priorities``,
``finish_episode``, ``is_ready``) so the training loop never inspects
which one it holds.

Mathematical Foundation (数学基础)
==================================
Uniform sampling:
    P(i) = 1/n

Prioritized sampling:
    P(i) = p_i^α / Σ_k p_k^α
    where p_i = |δ_i| + ε (TD error + small constant)

Importance sampling correction:
    w_i = (n · P(i))^(-β) / max_j w_j

Example:
    >>> from deepq.buffers import initialize_replay_buffer, populate_replay_buffer
    >>> rng = np.random.default_rng(0)
    >>> replay = initialize_replay_buffer(config, env, rng)
    >>> populate_replay_buffer(replay, env, config.train_start, rng)

References:
    [1] Mnih et al. (2015). Human-level control through deep RL.
    [2] Schaul et al. (2016). Prioritized Experience Replay.
    [3] Hausknecht & Stone (2015). Deep Recurrent Q-Learning for POMDPs.
"""

from __future__ import annotations

import logging
from typing import Union

import numpy as np

from deepq.buffers.base import ReplayBuffer
from deepq.buffers.episodic import EpisodeReplayBuffer
from deepq.buffers.prioritized import PrioritizedReplayBuffer
from deepq.core.config import DeepQLearningConfig
from deepq.core.enums import ReplayDiscipline
from deepq.core.types import Experience

logger = logging.getLogger(__name__)

AnyReplayBuffer = Union[ReplayBuffer, PrioritizedReplayBuffer, EpisodeReplayBuffer]


def initialize_replay_buffer(
    config: DeepQLearningConfig,
    env,
    rng: np.random.Generator,
) -> AnyReplayBuffer:
    """
    Build the replay buffer implied by ``config.replay_discipline``.

    Parameters
    ----------
    config : DeepQLearningConfig
        Run configuration
    env : Environment
        Provides ``obs_dimensions()``
    rng : numpy.random.Generator
        Random source shared with the rest of the run

    Returns
    -------
    ReplayBuffer, PrioritizedReplayBuffer or EpisodeReplayBuffer
    """
    obs_dim = tuple(env.obs_dimensions())
    discipline = config.replay_discipline

    if discipline is ReplayDiscipline.EPISODIC:
        replay = EpisodeReplayBuffer(
            config.buffer_size,
            obs_dim,
            rng,
            trace_length=config.trace_length,
            max_episode_length=config.max_episode_length,
        )
    elif discipline is ReplayDiscipline.PRIORITIZED:
        replay = PrioritizedReplayBuffer(
            config.buffer_size,
            obs_dim,
            rng,
            alpha=config.prioritized_replay_alpha,
            beta=config.prioritized_replay_beta,
            epsilon=config.prioritized_replay_epsilon,
        )
    else:
        replay = ReplayBuffer(config.buffer_size, obs_dim, rng)

    logger.debug(f"{discipline} replay buffer, capacity {config.buffer_size}")
    return replay


def populate_replay_buffer(
    replay: AnyReplayBuffer,
    env,
    num_experiences: int,
    rng: np.random.Generator,
    max_episode_length: int = 100,
) -> None:
    """
    Fill ``replay`` with experience gathered by a uniformly random policy.

    The environment is reset first and again at every episode end
    (``done`` or ``max_episode_length`` steps). It is left mid-episode
    afterwards and the open episode is closed in the buffer; callers
    reset the environment before training.

    Parameters
    ----------
    replay : replay buffer
        Destination buffer
    env : Environment
        Environment to interact with
    num_experiences : int
        Number of experiences to push
    rng : numpy.random.Generator
        Random source for action choice
    max_episode_length : int, default=100
        Step cap of a warm-up episode
    """
    actions = list(env.actions())
    obs = env.reset()
    steps = 0
    for _ in range(num_experiences):
        action = actions[int(rng.integers(len(actions)))]
        next_obs, reward, done, _info = env.step(action)
        steps += 1
        replay.push(Experience(
            np.asarray(obs, dtype=np.float32),
            env.action_index(action),
            float(reward),
            np.asarray(next_obs, dtype=np.float32),
            bool(done),
        ))
        if done or steps >= max_episode_length:
            obs = env.reset()
            steps = 0
        else:
            obs = next_obs

    replay.finish_episode()
    logger.debug(f"Populated replay buffer with {num_experiences} random experiences")


__all__ = [
    "ReplayBuffer",
    "PrioritizedReplayBuffer",
    "EpisodeReplayBuffer",
    "initialize_replay_buffer",
    "populate_replay_buffer",
]
