"""
Dueling Network Architecture.

This module implements the Dueling DQN architecture (Wang et al., 2016)
as a transform of an existing Q-network.

Core Idea (核心思想)
====================
将Q函数分解为状态价值V(s)和动作优势A(s,a)：

    Q(s, a) = V(s) + A(s, a) - mean_a A(s, a)

``create_dueling_network`` 复制基础网络除输出层以外的所有层作为共享
特征层，再接上价值头与优势头。基础网络本身不被修改。

Mathematical Foundation (数学基础)
==================================
Decomposition:
    Q(s, a) = V(s) + A(s, a) - (1/|A|) Σ_a' A(s, a')

Identifiability constraint:
    Σ_a A(s, a) = 0

References:
    Wang, Z. et al. (2016). Dueling Network Architectures for Deep
    Reinforcement Learning. ICML.
"""

from __future__ import annotations

import copy

import torch.nn as nn
from torch import Tensor

from deepq.networks.base import orthogonal_init, split_q_stack
from deepq.networks.recurrent import reset_hidden_states


class DuelingNetwork(nn.Module):
    """
    Dueling Q-network over a shared feature trunk.

    Intuition (直觉理解)
    --------------------
    - **V(s)**: 这个状态有多好？（与动作无关）
    - **A(s,a)**: 动作a比平均动作好多少？

    Network Architecture (网络架构)
    ------------------------------
    ::

        Input → Trunk → Value Head     → V(s) [1维]
                      ↘
                        Advantage Head → A(s,a) [|A|维]
                      ↘
                        聚合 → Q(s,a) = V + (A - mean(A))

    Parameters
    ----------
    trunk : nn.Module
        Shared feature layers, output size ``feature_dim``
    feature_dim : int
        Size of the trunk output
    action_dim : int
        Number of discrete actions

    Examples
    --------
    >>> net = create_dueling_network(DQNNetwork(state_dim=4, action_dim=2))
    >>> net(torch.randn(32, 4)).shape
    torch.Size([32, 2])
    """

    def __init__(self, trunk: nn.Module, feature_dim: int, action_dim: int) -> None:
        super().__init__()
        self.action_dim = action_dim
        self.trunk = trunk
        self.value_head = nn.Linear(feature_dim, 1)
        self.advantage_head = nn.Linear(feature_dim, action_dim)
        orthogonal_init(self.value_head, gain=1.0)
        orthogonal_init(self.advantage_head, gain=1.0)

    def forward(self, state: Tensor) -> Tensor:
        """
        Forward pass with value-advantage aggregation.

        Parameters
        ----------
        state : Tensor
            Batch of observations, shape (batch_size, state_dim)

        Returns
        -------
        Tensor
            Q-values for all actions, shape (batch_size, action_dim)
        """
        features = self.trunk(state)
        value = self.value_head(features)
        advantage = self.advantage_head(features)

        # Mean subtraction for identifiability
        return value + (advantage - advantage.mean(dim=-1, keepdim=True))


def create_dueling_network(base: nn.Module) -> DuelingNetwork:
    """
    Build a dueling network from ``base`` without modifying it.

    ``base`` must be an ``nn.Sequential``, or expose one as ``.network``,
    whose last layer is ``nn.Linear``. Every other layer is deep-copied
    into the shared trunk, so recurrent layers keep working.

    Parameters
    ----------
    base : nn.Module
        Q-network to transform

    Returns
    -------
    DuelingNetwork
        New network with its own parameters

    Raises
    ------
    ConfigurationError
        If the network cannot be split into trunk and output layer
    """
    layers, output = split_q_stack(base)
    trunk = copy.deepcopy(layers)
    reset_hidden_states(trunk)
    return DuelingNetwork(trunk, output.in_features, output.out_features)
