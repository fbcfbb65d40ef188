"""
Training history and run state.

Core Idea (核心思想)
====================
训练循环的全部可变状态集中在一个显式的 ``RunContext`` 对象中
(随机数生成器、步数、episode计数、最近一次的损失/梯度范数/探索率/评估分数)，
并由 ``TrainingLogger`` 记录完整的训练历史，不使用任何进程级全局状态。
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np


@dataclass
class TrainingLogger:
    """
    Structured training history with statistics tracking.

    Attributes
    ----------
    episode_rewards : List[float]
        Undiscounted return of every finished training episode
    episode_lengths : List[int]
        Length of every finished training episode
    losses : List[float]
        Loss of every update
    grad_norms : List[float]
        Gradient norm of every update, before clipping
    eval_scores : List[Tuple[int, float]]
        ``(step, score)`` of every evaluation
    log_records : List[Dict[str, Any]]
        One record per log tick; ``loss`` and ``grad_norm`` are None
        before the first update
    window_size : int
        Window size for moving averages

    Examples
    --------
    >>> history = TrainingLogger(window_size=100)
    >>> history.log_episode(10.0, 20)
    >>> history.mean_reward
    10.0
    """

    window_size: int = 100
    episode_rewards: List[float] = field(default_factory=list)
    episode_lengths: List[int] = field(default_factory=list)
    losses: List[float] = field(default_factory=list)
    grad_norms: List[float] = field(default_factory=list)
    eval_scores: List[Tuple[int, float]] = field(default_factory=list)
    log_records: List[Dict[str, Any]] = field(default_factory=list)
    _start_time: Optional[float] = field(default=None, repr=False)

    def start(self) -> None:
        """Start timing."""
        self._start_time = time.time()

    @property
    def elapsed(self) -> float:
        """Seconds since ``start``; 0.0 if never started."""
        if self._start_time is None:
            return 0.0
        return time.time() - self._start_time

    def log_episode(self, reward: float, length: int) -> None:
        self.episode_rewards.append(float(reward))
        self.episode_lengths.append(int(length))

    def log_update(self, loss: float, grad_norm: float) -> None:
        self.losses.append(float(loss))
        self.grad_norms.append(float(grad_norm))

    def log_evaluation(self, step: int, score: float) -> None:
        self.eval_scores.append((int(step), float(score)))

    def log_tick(
        self,
        step: int,
        epsilon: float,
        loss: Optional[float],
        grad_norm: Optional[float],
    ) -> Dict[str, Any]:
        """Record the values reported at a log tick and return the record."""
        record = {
            "step": step,
            "epsilon": epsilon,
            "avg_reward": self.mean_reward,
            "loss": loss,
            "grad_norm": grad_norm,
        }
        self.log_records.append(record)
        return record

    @property
    def num_episodes(self) -> int:
        """Number of finished training episodes."""
        return len(self.episode_rewards)

    @property
    def epsilons(self) -> List[float]:
        """Exploration rate at each log tick."""
        return [record["epsilon"] for record in self.log_records]

    @property
    def mean_reward(self) -> float:
        """Mean reward over window."""
        if not self.episode_rewards:
            return 0.0
        window = self.episode_rewards[-self.window_size:]
        return float(np.mean(window))

    @property
    def mean_length(self) -> float:
        """Mean episode length over window."""
        if not self.episode_lengths:
            return 0.0
        window = self.episode_lengths[-self.window_size:]
        return float(np.mean(window))

    @property
    def best_eval_score(self) -> Optional[float]:
        if not self.eval_scores:
            return None
        return max(score for _, score in self.eval_scores)

    def get_summary(self) -> Dict[str, Any]:
        """
        Get training summary statistics.

        Returns
        -------
        Dict[str, Any]
            Summary with all statistics
        """
        return {
            "num_episodes": self.num_episodes,
            "num_updates": len(self.losses),
            "mean_reward": self.mean_reward,
            "mean_length": self.mean_length,
            "final_loss": self.losses[-1] if self.losses else None,
            "best_eval_score": self.best_eval_score,
            "total_time": self.elapsed,
        }

    def get_smoothed_rewards(self, window: Optional[int] = None) -> List[float]:
        """
        Get smoothed reward curve.

        Parameters
        ----------
        window : Optional[int]
            Smoothing window size

        Returns
        -------
        List[float]
            Trailing moving average of episode rewards
        """
        window = window or self.window_size
        if len(self.episode_rewards) < window:
            return self.episode_rewards.copy()

        smoothed = []
        for i in range(len(self.episode_rewards)):
            start = max(0, i - window + 1)
            smoothed.append(float(np.mean(self.episode_rewards[start:i + 1])))

        return smoothed


@dataclass
class RunContext:
    """
    Mutable state of one ``solve`` call.

    Attributes
    ----------
    rng : numpy.random.Generator
        Random source for exploration, replay sampling and warm-up
    step : int
        Environment steps taken so far
    episode : int
        Training episodes started so far
    episode_reward : float
        Undiscounted return of the current episode
    episode_length : int
        Steps taken in the current episode
    epsilon : float
        Exploration rate used at the latest step
    last_loss, last_grad_norm : Optional[float]
        Values of the latest update; None before the first update
    last_eval_score : Optional[float]
        Score of the latest evaluation
    best_score : float
        Best evaluation score so far
    history : TrainingLogger
        Complete training history
    """

    rng: np.random.Generator
    step: int = 0
    episode: int = 0
    episode_reward: float = 0.0
    episode_length: int = 0
    epsilon: float = 1.0
    last_loss: Optional[float] = None
    last_grad_norm: Optional[float] = None
    last_eval_score: Optional[float] = None
    best_score: float = float("-inf")
    history: TrainingLogger = field(default_factory=TrainingLogger)

    def start_episode(self) -> None:
        self.episode += 1
        self.episode_reward = 0.0
        self.episode_length = 0

    def finish_episode(self) -> None:
        """Record the current episode in the history and start a new tally."""
        self.history.log_episode(self.episode_reward, self.episode_length)
        self.start_episode()

    def record_update(self, loss: float, grad_norm: float) -> None:
        self.last_loss = loss
        self.last_grad_norm = grad_norm
        self.history.log_update(loss, grad_norm)
