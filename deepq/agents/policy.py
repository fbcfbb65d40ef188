"""
Greedy policy backed by a Q-network.

Core Idea (核心思想)
====================
策略包装器持有网络、动作顺序与观测维度；对循环网络，隐藏状态存放在
网络内部，由策略负责在episode边界重置，并在训练与评估前后保存/恢复。
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Sequence, Tuple, Union

import numpy as np
import torch
import torch.nn as nn

from deepq.networks.recurrent import (
    HiddenState,
    hidden_states,
    reset_hidden_states,
    set_hidden_states,
)


class NNPolicy:
    """
    Greedy policy π(o) = argmax_a Q(o, a).

    Parameters
    ----------
    network : nn.Module
        Q-network mapping a batch of observations to action values
    actions : Sequence
        The environment's ordered action set; output ``i`` of the network
        is the value of ``actions[i]``
    obs_dim : tuple of int
        Observation shape
    device : torch.device or str, default="cpu"
        Device the network lives on

    Examples
    --------
    >>> policy = NNPolicy(DQNNetwork(2, 2), actions=[0, 1], obs_dim=(2,))
    >>> policy.action(np.zeros(2)) in (0, 1)
    True
    """

    def __init__(
        self,
        network: nn.Module,
        actions: Sequence[Any],
        obs_dim: Tuple[int, ...],
        device: Union[torch.device, str] = "cpu",
    ) -> None:
        self.network = network
        self.actions = list(actions)
        self.obs_dim = tuple(obs_dim)
        self.device = torch.device(device)

    @torch.no_grad()
    def values(self, obs: np.ndarray) -> np.ndarray:
        """
        Action values of a single observation.

        Advances the hidden state of a recurrent network by one step.

        Returns
        -------
        np.ndarray
            Shape ``(len(actions),)``
        """
        obs_t = torch.as_tensor(
            np.asarray(obs, dtype=np.float32), device=self.device
        ).reshape(1, *self.obs_dim)
        return self.network(obs_t).squeeze(0).cpu().numpy()

    def action_index(self, obs: np.ndarray) -> int:
        """Index of the greedy action for ``obs``."""
        return int(np.argmax(self.values(obs)))

    def action(self, obs: np.ndarray) -> Any:
        """Greedy action for ``obs``, an element of ``actions``."""
        return self.actions[self.action_index(obs)]

    def reset(self) -> None:
        """Start a new episode: clear the recurrent state."""
        reset_hidden_states(self.network)

    def hidden_state(self) -> List[HiddenState]:
        """Snapshot of the recurrent state; empty for feed-forward networks."""
        return hidden_states(self.network)

    def set_hidden_state(self, state: List[HiddenState]) -> None:
        set_hidden_states(self.network, state)

    def save(self, path: Union[str, Path]) -> None:
        """Save the network weights with ``torch.save``."""
        torch.save({"q_network": self.network.state_dict()}, path)

    def load(self, path: Union[str, Path]) -> None:
        checkpoint = torch.load(path, map_location=self.device, weights_only=False)
        self.network.load_state_dict(checkpoint["q_network"])
