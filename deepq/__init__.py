"""
Deep Q-Learning training core.

This package trains action-value networks with Deep Q-Learning:
repeated environment interaction, experience replay, and periodic
updates toward a bootstrapped target.

Features (功能)
===============
+--------------------+--------------------------------------------------+
| Feature            | Key Idea                                         |
+====================+==================================================+
| Uniform replay     | i.i.d. samples from a fixed-capacity ring        |
+--------------------+--------------------------------------------------+
| Prioritized replay | P(i) ∝ p_i^α with importance weights             |
+--------------------+--------------------------------------------------+
| Episodic replay    | Padded fixed-length traces for recurrent nets    |
+--------------------+--------------------------------------------------+
| Double Q-learning  | Decoupled action selection/evaluation            |
+--------------------+--------------------------------------------------+
| Dueling transform  | Value-advantage decomposition                    |
+--------------------+--------------------------------------------------+

Module Structure (模块结构)
===========================
::

    deepq/
    ├── core/       Configuration, enums, data records, errors
    ├── buffers/    ReplayBuffer, PrioritizedReplayBuffer, EpisodeReplayBuffer
    ├── networks/   DQNNetwork, RecurrentQNetwork, create_dueling_network
    ├── agents/     exploration, policy, target, update engines, solver
    ├── utils/      TrainingLogger, evaluation, plotting
    ├── envs/       Environment protocol, gymnasium adapter
    └── main.py     deepq-train command

Quick Start (快速开始)
======================
>>> from deepq import DeepQLearningConfig, DeepQLearningSolver, DQNNetwork
>>> from deepq import GymEnvironment
>>>
>>> env = GymEnvironment("CartPole-v1", seed=0)
>>> config = DeepQLearningConfig(qnetwork=DQNNetwork(4, 2), max_steps=20000)
>>> policy = DeepQLearningSolver(config).solve(env)

References
==========
[1] Mnih, V. et al. (2015). Human-level control through deep RL. Nature.
[2] van Hasselt, H. et al. (2016). Deep RL with Double Q-learning. AAAI.
[3] Wang, Z. et al. (2016). Dueling Network Architectures. ICML.
[4] Schaul, T. et al. (2016). Prioritized Experience Replay. ICLR.
[5] Hausknecht, M. & Stone, P. (2015). Deep Recurrent Q-Learning for POMDPs.
"""

# Core components
from deepq.core.config import DeepQLearningConfig
from deepq.core.enums import ReplayDiscipline
from deepq.core.errors import ConfigurationError, DeepQLearningError
from deepq.core.types import Experience, TraceBatch, TransitionBatch, UpdateResult

# Buffers
from deepq.buffers import (
    EpisodeReplayBuffer,
    PrioritizedReplayBuffer,
    ReplayBuffer,
    initialize_replay_buffer,
    populate_replay_buffer,
)

# Networks
from deepq.networks import (
    DQNNetwork,
    DuelingNetwork,
    RecurrentQNetwork,
    create_dueling_network,
)

# Agents
from deepq.agents import (
    BatchUpdateEngine,
    DeepQLearningSolver,
    LinearEpsilonGreedy,
    NNPolicy,
    RecurrentBatchUpdateEngine,
    TargetNetwork,
)

# Utilities
from deepq.envs import Environment, GymEnvironment
from deepq.utils import TrainingLogger, basic_evaluation, plot_training_curves

__version__ = "1.0.0"

__all__ = [
    "DeepQLearningConfig",
    "ReplayDiscipline",
    "DeepQLearningError",
    "ConfigurationError",
    "Experience",
    "TransitionBatch",
    "TraceBatch",
    "UpdateResult",
    "ReplayBuffer",
    "PrioritizedReplayBuffer",
    "EpisodeReplayBuffer",
    "initialize_replay_buffer",
    "populate_replay_buffer",
    "DQNNetwork",
    "DuelingNetwork",
    "RecurrentQNetwork",
    "create_dueling_network",
    "LinearEpsilonGreedy",
    "NNPolicy",
    "TargetNetwork",
    "BatchUpdateEngine",
    "RecurrentBatchUpdateEngine",
    "DeepQLearningSolver",
    "Environment",
    "GymEnvironment",
    "TrainingLogger",
    "basic_evaluation",
    "plot_training_curves",
]
