"""
Target network management.

Core Idea (核心思想)
====================
目标网络是活动网络的独立深拷贝，只在同步时整体替换，
使TD目标在两次同步之间保持固定，稳定训练：

    y = r + γ · Q(s', a*; θ⁻),   θ⁻ ← θ every target_update_freq steps
"""

from __future__ import annotations

import copy

import torch.nn as nn
from torch import Tensor

from deepq.networks.recurrent import reset_hidden_states, truncate_hidden_states


def _frozen_copy(active: nn.Module) -> nn.Module:
    # Live autograd graphs cannot be deep-copied.
    truncate_hidden_states(active)
    network = copy.deepcopy(active)
    for param in network.parameters():
        param.requires_grad_(False)
    reset_hidden_states(network)
    return network.eval()


class TargetNetwork:
    """
    Frozen copy of the active network used to evaluate TD targets.

    Parameters
    ----------
    active : nn.Module
        The (already transformed) active network

    Examples
    --------
    >>> target = TargetNetwork(active)
    >>> q_next = target(next_states)
    >>> target.sync(active)
    """

    def __init__(self, active: nn.Module) -> None:
        self.network = _frozen_copy(active)
        self.sync_count = 0

    def __call__(self, states: Tensor) -> Tensor:
        return self.network(states)

    def sync(self, active: nn.Module) -> None:
        """Replace the copy wholesale with a fresh copy of ``active``."""
        self.network = _frozen_copy(active)
        self.sync_count += 1
