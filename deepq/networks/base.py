"""
Layer stacks shared by the Q-networks.

Core Idea (核心思想)
====================
求解器对网络结构只做一个假设：网络的层保存在 ``.network`` (nn.Sequential)
中，且最后一层是线性输出层。前馈网络与循环网络都由同一个构建函数生成：

::

    obs → [Linear → ReLU] × num_layers → (StatefulLSTM) → Linear → Q(s,·)

dueling变换按这一约定把网络拆分为共享特征层 (trunk) 与输出层，
再用价值头与优势头替换输出层。

Initialization (初始化)
=======================
+----------------+--------------------------------------------------+
| Layer          | Scheme                                           |
+================+==================================================+
| nn.Linear      | orthogonal, gain √2 (ReLU); zero bias            |
+----------------+--------------------------------------------------+
| nn.LSTMCell    | orthogonal recurrent weights, forget-gate bias 1 |
+----------------+--------------------------------------------------+
"""

from __future__ import annotations

import math
from typing import List, Optional, Tuple

import torch
import torch.nn as nn
from torch import Tensor

from deepq.core.errors import ConfigurationError


def orthogonal_init(module: nn.Module, gain: float = math.sqrt(2)) -> None:
    """
    Initialize a linear or LSTM-cell layer in place; other modules are skipped.

    Parameters
    ----------
    module : nn.Module
        Layer to initialize, typically reached through ``Module.apply``
    gain : float, default=sqrt(2)
        Gain of the orthogonal matrices of ``nn.Linear`` layers
    """
    if isinstance(module, nn.Linear):
        nn.init.orthogonal_(module.weight, gain=gain)
        if module.bias is not None:
            nn.init.zeros_(module.bias)
    elif isinstance(module, nn.LSTMCell):
        nn.init.xavier_uniform_(module.weight_ih)
        nn.init.orthogonal_(module.weight_hh)
        with torch.no_grad():
            module.bias_ih.zero_()
            module.bias_hh.zero_()
            # Gate order is (input, forget, cell, output).
            hidden = module.hidden_size
            module.bias_ih[hidden:2 * hidden].fill_(1.0)


def build_q_stack(
    state_dim: int,
    action_dim: int,
    hidden_dim: int,
    num_layers: int,
    memory: Optional[nn.Module] = None,
) -> nn.Sequential:
    """
    Build the layer stack of a Q-network.

    Parameters
    ----------
    state_dim : int
        Dimension of the observation vector
    action_dim : int
        Number of discrete actions
    hidden_dim : int
        Width of every hidden layer
    num_layers : int
        Number of ``Linear → ReLU`` blocks
    memory : nn.Module, optional
        Layer mapping ``hidden_dim`` features to ``hidden_dim`` features,
        inserted just before the output layer (e.g. a ``StatefulLSTM``)

    Returns
    -------
    nn.Sequential
        The stack, ending in the ``nn.Linear`` output layer

    Raises
    ------
    ValueError
        If ``num_layers`` or a dimension is not positive
    """
    if min(state_dim, action_dim, hidden_dim, num_layers) <= 0:
        raise ValueError(
            f"dimensions and num_layers must be positive, got state_dim={state_dim}, "
            f"action_dim={action_dim}, hidden_dim={hidden_dim}, num_layers={num_layers}"
        )

    layers: List[nn.Module] = []
    in_dim = state_dim
    for _ in range(num_layers):
        layers += [nn.Linear(in_dim, hidden_dim), nn.ReLU()]
        in_dim = hidden_dim
    if memory is not None:
        layers.append(memory)
    layers.append(nn.Linear(hidden_dim, action_dim))

    stack = nn.Sequential(*layers)
    stack.apply(orthogonal_init)
    return stack


def split_q_stack(network: nn.Module) -> Tuple[nn.Sequential, nn.Linear]:
    """
    Split a Q-network into its feature layers and its output layer.

    ``network`` must be an ``nn.Sequential``, or expose one as
    ``.network``, whose last layer is ``nn.Linear``. The returned trunk
    shares modules with ``network``; copy it before training it separately.

    Raises
    ------
    ConfigurationError
        If the network does not follow this layout
    """
    layers = network if isinstance(network, nn.Sequential) else getattr(network, "network", None)
    if not isinstance(layers, nn.Sequential) or len(layers) < 2:
        raise ConfigurationError(
            f"cannot split {type(network).__name__} into feature and output layers: "
            "expected an nn.Sequential (or a .network attribute) with at "
            "least one layer before the output layer"
        )
    output = layers[-1]
    if not isinstance(output, nn.Linear):
        raise ConfigurationError(
            f"the last layer must be nn.Linear, got {type(output).__name__}"
        )
    return layers[:-1], output


class DQNNetwork(nn.Module):
    """
    Feed-forward Q-network, f_θ: ℝ^d → ℝ^{|A|}.

    Parameters
    ----------
    state_dim : int
        Dimension of the observation vector
    action_dim : int
        Number of discrete actions
    hidden_dim : int, default=64
        Width of the hidden layers
    num_layers : int, default=2
        Number of hidden layers

    Attributes
    ----------
    network : nn.Sequential
        Output of ``build_q_stack``

    Examples
    --------
    >>> net = DQNNetwork(state_dim=4, action_dim=2)
    >>> net(torch.randn(1, 4)).shape
    torch.Size([1, 2])
    """

    def __init__(
        self,
        state_dim: int,
        action_dim: int,
        hidden_dim: int = 64,
        num_layers: int = 2,
    ) -> None:
        super().__init__()
        self.state_dim = state_dim
        self.action_dim = action_dim
        self.network = build_q_stack(state_dim, action_dim, hidden_dim, num_layers)

    def forward(self, state: Tensor) -> Tensor:
        return self.network(state)
