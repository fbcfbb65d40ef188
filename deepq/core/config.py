"""
Configuration for the Deep Q-Learning solver.

This module provides centralized hyperparameter management with validation.

Core Idea (核心思想)
====================
使用dataclass集中管理所有超参数，通过__post_init__进行验证，
确保参数在有效范围内。配置错误在任何训练状态建立之前即被报告。

Hyperparameter Categories (超参数分类)
======================================
1. **Network**: qnetwork, dueling, recurrence, trace_length
2. **Learning**: learning_rate, batch_size, double_q, grad_clip, clip_val
3. **Schedule**: max_steps, train_freq, target_update_freq, eval_freq,
   log_freq, save_freq
4. **Exploration**: eps_fraction, eps_end
5. **Replay**: prioritized_replay, prioritized_replay_{alpha,beta,epsilon},
   buffer_size, train_start, max_episode_length
6. **Run**: num_ep_eval, seed, logdir, verbose, device

Example:
    >>> config = DeepQLearningConfig(qnetwork=DQNNetwork(2, 2), max_steps=200)
    >>> config.replay_discipline
    <ReplayDiscipline.PRIORITIZED: 'prioritized'>
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional

import torch
import torch.nn as nn

from deepq.core.enums import ReplayDiscipline
from deepq.core.errors import ConfigurationError


@dataclass
class DeepQLearningConfig:
    """
    Configuration of a Deep Q-Learning run.

    Mathematical Foundation (数学基础)
    ----------------------------------
    Key hyperparameters and their roles:

    - **ε schedule**: ε(t) = max(ε_end, 1 - (1 - ε_end) · t / (f · T))
      with f = ``eps_fraction`` and T = ``max_steps``

    - **PER**: P(i) = p_i^α / Σ_j p_j^α, w_i = (n · P(i))^(-β),
      p_i = |δ_i| + ε_p

    - **TD target**: y = r + (1 - d) · γ · Q_target(s', a*)

    Attributes
    ----------
    qnetwork : nn.Module
        Base value network mapping observations to one value per action.
        Not serialized by ``to_dict``.
    learning_rate : float, default=1e-4
        Adam learning rate
    max_steps : int, default=1000
        Total environment steps of the run
    batch_size : int, default=32
        Transitions (or traces) per update
    train_freq : int, default=4
        Environment steps between updates
    eval_freq : int, default=500
        Environment steps between evaluations
    target_update_freq : int, default=500
        Environment steps between target network syncs
    num_ep_eval : int, default=100
        Episodes per evaluation
    double_q : bool, default=True
        Select next actions with the active network, evaluate with target
    dueling : bool, default=True
        Transform the base network into a dueling architecture
    recurrence : bool, default=False
        Declare the network recurrent and use episodic replay
    trace_length : int, default=40
        Length of sampled traces for episodic replay
    eps_fraction : float, default=0.5
        Fraction of ``max_steps`` over which ε decays linearly
    eps_end : float, default=0.01
        Final exploration rate
    prioritized_replay : bool, default=True
        Use prioritized replay (ignored when ``recurrence`` is set)
    prioritized_replay_alpha : float, default=0.6
        Prioritization exponent α
    prioritized_replay_beta : float, default=0.4
        Importance-sampling exponent β
    prioritized_replay_epsilon : float, default=1e-6
        Priority floor ε_p added to |TD error|
    buffer_size : int, default=1000
        Replay capacity (transitions, or episodes for episodic replay)
    max_episode_length : int, default=100
        Step cap of a training or evaluation episode
    train_start : int, default=200
        Experiences collected before the first update
    grad_clip : bool, default=True
        Clip the global gradient norm to ``clip_val``
    clip_val : float, default=10.0
        Maximum global gradient norm
    seed : Optional[int], default=0
        Seed for the run RNG and torch
    logdir : Optional[str], default=None
        Directory for checkpoints; nothing is written when None
    save_freq : int, default=10000
        Environment steps between checkpoints
    log_freq : int, default=100
        Environment steps between progress log lines
    verbose : bool, default=True
        Emit progress through the ``deepq`` loggers
    device : str, default="cpu"
        Compute device ("auto", "cpu", "cuda", "mps")

    Raises
    ------
    ConfigurationError
        If any parameter is outside its valid range
    """

    qnetwork: Optional[nn.Module] = field(default=None, repr=False)
    learning_rate: float = 1e-4
    max_steps: int = 1000
    batch_size: int = 32
    train_freq: int = 4
    eval_freq: int = 500
    target_update_freq: int = 500
    num_ep_eval: int = 100
    double_q: bool = True
    dueling: bool = True
    recurrence: bool = False
    trace_length: int = 40
    eps_fraction: float = 0.5
    eps_end: float = 0.01
    prioritized_replay: bool = True
    prioritized_replay_alpha: float = 0.6
    prioritized_replay_beta: float = 0.4
    prioritized_replay_epsilon: float = 1e-6
    buffer_size: int = 1000
    max_episode_length: int = 100
    train_start: int = 200
    grad_clip: bool = True
    clip_val: float = 10.0
    seed: Optional[int] = 0
    logdir: Optional[str] = None
    save_freq: int = 10000
    log_freq: int = 100
    verbose: bool = True
    device: str = "cpu"

    def __post_init__(self) -> None:
        """
        Validate configuration parameters.

        Raises
        ------
        ConfigurationError
            If any parameter is invalid
        """
        # Learning validation
        if not 0 < self.learning_rate <= 1:
            raise ConfigurationError(
                f"learning_rate must be in (0, 1], got {self.learning_rate}"
            )
        if self.batch_size <= 0:
            raise ConfigurationError(
                f"batch_size must be positive, got {self.batch_size}"
            )
        if self.grad_clip and self.clip_val <= 0:
            raise ConfigurationError(
                f"clip_val must be positive, got {self.clip_val}"
            )

        # Schedule validation
        for name in (
            "max_steps", "train_freq", "eval_freq", "target_update_freq",
            "log_freq", "save_freq", "num_ep_eval", "max_episode_length",
        ):
            value = getattr(self, name)
            if value <= 0:
                raise ConfigurationError(
                    f"{name} must be positive, got {value}"
                )

        # Exploration validation
        if not 0 < self.eps_fraction <= 1:
            raise ConfigurationError(
                f"eps_fraction must be in (0, 1], got {self.eps_fraction}"
            )
        if not 0 <= self.eps_end <= 1:
            raise ConfigurationError(
                f"eps_end must be in [0, 1], got {self.eps_end}"
            )

        # Replay validation
        if self.buffer_size <= 0:
            raise ConfigurationError(
                f"buffer_size must be positive, got {self.buffer_size}"
            )
        if self.train_start <= 0:
            raise ConfigurationError(
                f"train_start must be positive, got {self.train_start}"
            )
        if not self.recurrence and self.train_start > self.buffer_size:
            raise ConfigurationError(
                f"train_start ({self.train_start}) exceeds buffer_size "
                f"({self.buffer_size}); training would never start"
            )
        if self.recurrence and self.train_start > self.buffer_size * self.max_episode_length:
            raise ConfigurationError(
                f"train_start ({self.train_start}) exceeds the transitions "
                f"{self.buffer_size} episodes of at most {self.max_episode_length} "
                "steps can hold; training would never start"
            )
        if self.trace_length <= 0:
            raise ConfigurationError(
                f"trace_length must be positive, got {self.trace_length}"
            )

        # PER validation
        if self.prioritized_replay_alpha < 0:
            raise ConfigurationError(
                f"prioritized_replay_alpha must be >= 0, "
                f"got {self.prioritized_replay_alpha}"
            )
        if not 0 <= self.prioritized_replay_beta <= 1:
            raise ConfigurationError(
                f"prioritized_replay_beta must be in [0, 1], "
                f"got {self.prioritized_replay_beta}"
            )
        if self.prioritized_replay_epsilon <= 0:
            raise ConfigurationError(
                f"prioritized_replay_epsilon must be positive, "
                f"got {self.prioritized_replay_epsilon}"
            )

    @property
    def replay_discipline(self) -> ReplayDiscipline:
        """
        Replay discipline implied by the configuration.

        Recurrence takes precedence over prioritization: recurrent networks
        need whole-episode traces.
        """
        if self.recurrence:
            return ReplayDiscipline.EPISODIC
        if self.prioritized_replay:
            return ReplayDiscipline.PRIORITIZED
        return ReplayDiscipline.UNIFORM

    def get_device(self) -> torch.device:
        """
        Get compute device based on configuration.

        Automatically detects available hardware if device="auto".

        Returns
        -------
        torch.device
            The compute device to use
        """
        if self.device == "auto":
            if torch.cuda.is_available():
                return torch.device("cuda")
            elif hasattr(torch.backends, "mps") and torch.backends.mps.is_available():
                return torch.device("mps")
            return torch.device("cpu")
        return torch.device(self.device)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to dictionary.

        The network reference is left out; everything else is a plain
        scalar suitable for JSON.

        Returns
        -------
        dict
            Configuration as dictionary for serialization
        """
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "qnetwork"
        }

    @classmethod
    def from_dict(
        cls,
        config_dict: Dict[str, Any],
        qnetwork: Optional[nn.Module] = None,
    ) -> "DeepQLearningConfig":
        """
        Create configuration from dictionary.

        Parameters
        ----------
        config_dict : dict
            Configuration dictionary, as produced by ``to_dict``
        qnetwork : Optional[nn.Module]
            Network to attach to the configuration

        Returns
        -------
        DeepQLearningConfig
            New configuration instance
        """
        return cls(qnetwork=qnetwork, **config_dict)
