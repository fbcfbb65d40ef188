"""
Policy evaluation.

The solver accepts any callable with the signature of ``basic_evaluation``:

    evaluate(policy, env, num_episodes, max_episode_length, verbose) -> float
"""

from __future__ import annotations

import logging

import numpy as np

logger = logging.getLogger(__name__)


def basic_evaluation(
    policy,
    env,
    num_episodes: int,
    max_episode_length: int,
    verbose: bool = False,
) -> float:
    """
    Mean undiscounted return of the greedy policy.

    Each episode starts from ``env.reset()`` with a cleared policy state
    and stops at ``done`` or after ``max_episode_length`` steps.

    Parameters
    ----------
    policy : NNPolicy
        Policy to evaluate
    env : Environment
        Environment to run the episodes in
    num_episodes : int
        Number of episodes
    max_episode_length : int
        Step cap of an episode
    verbose : bool, default=False
        Log the score at INFO level

    Returns
    -------
    float
        Mean return over the episodes

    Examples
    --------
    >>> score = basic_evaluation(policy, env, num_episodes=10, max_episode_length=100)
    """
    returns = []
    for _ in range(num_episodes):
        obs = env.reset()
        policy.reset()
        total = 0.0
        for _ in range(max_episode_length):
            obs, reward, done, _info = env.step(policy.action(obs))
            total += float(reward)
            if done:
                break
        returns.append(total)

    score = float(np.mean(returns))
    if verbose:
        logger.info(f"Evaluation over {num_episodes} episodes: {score:.3f}")
    return score
