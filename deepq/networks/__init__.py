"""
Neural Network Architectures Module.

This module provides the Q-network collaborators of the solver:
    - DQNNetwork: Standard feed-forward Q-network
    - RecurrentQNetwork: Q-network with an internal LSTM state
    - DuelingNetwork / create_dueling_network: Value-advantage transform
    - Hidden-state helpers for recurrent networks

Core Idea (核心思想)
====================
- **DQNNetwork**: 标准全连接网络，映射 s → Q(s,·)
- **RecurrentQNetwork**: 隐藏状态累积历史信息，适用于部分可观测环境
- **DuelingNetwork**: 分离V(s)和A(s,a)，提升泛化能力

Mathematical Foundation (数学基础)
==================================
Standard Q-network:
    Q: S → ℝ^|A|

Dueling decomposition:
    Q(s,a) = V(s) + A(s,a) - mean_a A(s,a)

Example:
    >>> from deepq.networks import DQNNetwork, create_dueling_network
    >>> net = create_dueling_network(DQNNetwork(state_dim=4, action_dim=2))
    >>> q_values = net(torch.randn(1, 4))

References:
    [1] Mnih et al. (2015). Human-level control through deep RL.
    [2] Wang et al. (2016). Dueling Network Architectures.
    [3] Hausknecht & Stone (2015). Deep Recurrent Q-Learning for POMDPs.
"""

from deepq.networks.base import DQNNetwork, build_q_stack, orthogonal_init, split_q_stack
from deepq.networks.dueling import DuelingNetwork, create_dueling_network
from deepq.networks.recurrent import (
    RecurrentQNetwork,
    StatefulLSTM,
    hidden_states,
    is_recurrent,
    reset_hidden_states,
    set_hidden_states,
    truncate_hidden_states,
)

__all__ = [
    "DQNNetwork",
    "build_q_stack",
    "split_q_stack",
    "orthogonal_init",
    "DuelingNetwork",
    "create_dueling_network",
    "RecurrentQNetwork",
    "StatefulLSTM",
    "is_recurrent",
    "hidden_states",
    "set_hidden_states",
    "reset_hidden_states",
    "truncate_hidden_states",
]
