"""
Recurrent Q-network and hidden-state utilities.

Core Idea (核心思想)
====================
部分可观测环境中，单个观测不足以确定状态，循环网络通过隐藏状态
累积历史信息 (DRQN)。隐藏状态保存在网络模块内部 (``StatefulLSTM``)，
因此策略、训练与评估都必须显式地保存、恢复和重置它：

- **reset**: episode开始时清零
- **save / restore**: 训练与评估前后保存并恢复，避免干扰正在进行的episode
- **truncate**: 截断计算图 (detach)，防止梯度跨越更新步传播

A network is recurrent exactly when it contains at least one
``StatefulLSTM`` module.

References:
    Hausknecht, M. & Stone, P. (2015). Deep Recurrent Q-Learning for
    Partially Observable MDPs.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

import torch.nn as nn
from torch import Tensor

from deepq.networks.base import build_q_stack

HiddenState = Optional[Tuple[Tensor, Tensor]]


class StatefulLSTM(nn.Module):
    """
    LSTM cell that keeps its ``(h, c)`` state between calls.

    Each forward call advances one timestep for a batch of inputs. The
    state is re-initialized with zeros when it is unset or when the batch
    size changes.

    Parameters
    ----------
    input_dim : int
        Input feature size
    hidden_dim : int
        Hidden state size
    """

    def __init__(self, input_dim: int, hidden_dim: int) -> None:
        super().__init__()
        self.cell = nn.LSTMCell(input_dim, hidden_dim)
        self.hidden_dim = hidden_dim
        self.state: HiddenState = None

    def reset(self) -> None:
        self.state = None

    def forward(self, x: Tensor) -> Tensor:
        if self.state is None or self.state[0].shape[0] != x.shape[0]:
            zeros = x.new_zeros(x.shape[0], self.hidden_dim)
            self.state = (zeros, zeros.clone())
        h, c = self.cell(x, self.state)
        self.state = (h, c)
        return h


class RecurrentQNetwork(nn.Module):
    """
    Recurrent Q-network: Linear → ReLU → LSTM → Linear.

    Each call consumes one timestep; call ``reset_hidden_states`` at
    episode boundaries.

    Parameters
    ----------
    state_dim : int
        Dimension of the observation vector
    action_dim : int
        Number of discrete actions
    hidden_dim : int, default=32
        Size of the dense layer and of the LSTM state

    Examples
    --------
    >>> net = RecurrentQNetwork(state_dim=2, action_dim=2)
    >>> net(torch.zeros(1, 2)).shape
    torch.Size([1, 2])
    >>> is_recurrent(net)
    True
    """

    def __init__(self, state_dim: int, action_dim: int, hidden_dim: int = 32) -> None:
        super().__init__()
        self.state_dim = state_dim
        self.action_dim = action_dim
        self.network = build_q_stack(
            state_dim, action_dim, hidden_dim, num_layers=1,
            memory=StatefulLSTM(hidden_dim, hidden_dim),
        )

    def forward(self, state: Tensor) -> Tensor:
        return self.network(state)


def _stateful_modules(network: nn.Module) -> List[StatefulLSTM]:
    return [m for m in network.modules() if isinstance(m, StatefulLSTM)]


def is_recurrent(network: nn.Module) -> bool:
    """Check if ``network`` carries hidden state between calls."""
    return len(_stateful_modules(network)) > 0


def hidden_states(network: nn.Module) -> List[HiddenState]:
    """
    Snapshot the hidden state of every recurrent layer.

    The returned list is independent of later updates: the network
    replaces its state tuples rather than mutating them in place.

    Returns
    -------
    list
        One ``(h, c)`` tuple (or None) per recurrent layer, in module order;
        empty for feed-forward networks
    """
    return [m.state for m in _stateful_modules(network)]


def set_hidden_states(network: nn.Module, states: List[HiddenState]) -> None:
    """
    Restore a snapshot taken by ``hidden_states``.

    Raises
    ------
    ValueError
        If the snapshot does not match the network's recurrent layers
    """
    modules = _stateful_modules(network)
    if len(modules) != len(states):
        raise ValueError(
            f"expected {len(modules)} hidden states, got {len(states)}"
        )
    for module, state in zip(modules, states):
        module.state = state


def reset_hidden_states(network: nn.Module) -> None:
    """Clear the hidden state of every recurrent layer."""
    for module in _stateful_modules(network):
        module.reset()


def truncate_hidden_states(network: nn.Module) -> None:
    """Detach hidden states from the autograd graph, keeping their values."""
    for module in _stateful_modules(network):
        if module.state is not None:
            h, c = module.state
            module.state = (h.detach(), c.detach())

