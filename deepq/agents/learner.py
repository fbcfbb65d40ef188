"""
Batch update engines.

This module turns a sampled batch into one gradient step on the active
network.

Core Idea (核心思想)
====================
每次更新计算TD目标、TD误差与Huber损失，执行一次带梯度裁剪的优化步，
并返回TD误差供优先经验回放更新优先级。

Mathematical Foundation (数学基础)
==================================
Standard DQN target:
    y = r + (1 - d) · γ · max_a Q(s', a; θ⁻)

Double DQN target (decoupled selection / evaluation):
    a* = argmax_a Q(s', a; θ)
    y = r + (1 - d) · γ · Q(s', a*; θ⁻)

Loss with importance weights w:
    δ = Q(s, a; θ) - y
    L = mean(Huber_1(w ⊙ δ))

Recurrent variant over traces of length L with mask m:
    L = (1/L) Σ_t mean_b Huber_1(m_t ⊙ δ_t)

References:
    [1] van Hasselt et al. (2016). Deep RL with Double Q-learning.
    [2] Hausknecht & Stone (2015). Deep Recurrent Q-Learning for POMDPs.
"""

from __future__ import annotations

import math
from typing import Union

import torch
import torch.nn as nn
import torch.nn.functional as F
from torch import Tensor

from deepq.core.config import DeepQLearningConfig
from deepq.core.types import TraceBatch, TransitionBatch, UpdateResult
from deepq.networks.recurrent import reset_hidden_states


class BatchUpdateEngine:
    """
    One-step Q-learning update on independent transitions.

    Parameters
    ----------
    optimizer : torch.optim.Optimizer
        Optimizer over the active network's parameters
    discount : float
        Discount factor γ of the environment
    double_q : bool, default=True
        Select next actions with the active network, evaluate with target
    grad_clip : bool, default=True
        Clip the global gradient norm to ``clip_val``
    clip_val : float, default=10.0
        Maximum global gradient norm
    device : torch.device or str, default="cpu"
        Device the batch tensors are moved to

    Examples
    --------
    >>> engine = BatchUpdateEngine(optimizer, discount=0.99)
    >>> result = engine.train(active, target.network, replay.sample(32))
    >>> replay.update_priorities(batch.indices, result.td_errors)
    """

    def __init__(
        self,
        optimizer: torch.optim.Optimizer,
        discount: float,
        double_q: bool = True,
        grad_clip: bool = True,
        clip_val: float = 10.0,
        device: Union[torch.device, str] = "cpu",
    ) -> None:
        self.optimizer = optimizer
        self.discount = discount
        self.double_q = double_q
        self.grad_clip = grad_clip
        self.clip_val = clip_val
        self.device = torch.device(device)

    def _tensor(self, array, dtype=torch.float32) -> Tensor:
        return torch.as_tensor(array, dtype=dtype, device=self.device)

    def _next_values(
        self,
        active: nn.Module,
        target: nn.Module,
        next_states: Tensor,
    ) -> Tensor:
        """Bootstrapped value of ``next_states``; call under ``no_grad``."""
        target_values = target(next_states)
        if self.double_q:
            # Double DQN: select action with active, evaluate with target
            next_actions = active(next_states).argmax(dim=-1, keepdim=True)
            return target_values.gather(-1, next_actions).squeeze(-1)
        return target_values.max(dim=-1)[0]

    def _optimize(self, active: nn.Module, loss: Tensor) -> float:
        """Backward pass, gradient clipping and one optimizer step."""
        self.optimizer.zero_grad()
        loss.backward()

        max_norm = self.clip_val if self.grad_clip else math.inf
        grad_norm = nn.utils.clip_grad_norm_(active.parameters(), max_norm)

        self.optimizer.step()
        return float(grad_norm)

    def train(
        self,
        active: nn.Module,
        target: nn.Module,
        batch: TransitionBatch,
    ) -> UpdateResult:
        """
        Perform one gradient update on ``active``.

        Parameters
        ----------
        active : nn.Module
            Network being trained
        target : nn.Module
            Frozen network evaluating the bootstrap value
        batch : TransitionBatch
            Sampled transitions with importance weights

        Returns
        -------
        UpdateResult
            Loss, per-sample TD errors of shape (batch_size,) and the
            gradient norm measured before clipping
        """
        states = self._tensor(batch.states)
        actions = self._tensor(batch.actions, dtype=torch.long)
        rewards = self._tensor(batch.rewards)
        next_states = self._tensor(batch.next_states)
        dones = self._tensor(batch.dones)
        weights = self._tensor(batch.weights)

        q_sa = active(states).gather(1, actions.unsqueeze(1)).squeeze(1)

        with torch.no_grad():
            next_q = self._next_values(active, target, next_states)
            td_target = rewards + (1.0 - dones) * self.discount * next_q

        td_errors = q_sa - td_target
        weighted = weights * td_errors
        loss = F.huber_loss(weighted, torch.zeros_like(weighted), delta=1.0)

        grad_norm = self._optimize(active, loss)

        return UpdateResult(
            loss=loss.item(),
            td_errors=td_errors.detach().cpu().numpy(),
            grad_norm=grad_norm,
        )


class RecurrentBatchUpdateEngine(BatchUpdateEngine):
    """
    Q-learning update over time-major traces for recurrent networks.

    Both networks start each unroll from a cleared hidden state and carry
    it across the ``trace_length`` steps. Padded steps are masked out of
    the TD errors. Hidden state is cleared again after the update, so no
    autograd graph outlives it.
    """

    def _unroll(self, network: nn.Module, sequence: Tensor) -> Tensor:
        reset_hidden_states(network)
        return torch.stack([network(step) for step in sequence])

    def _next_values(
        self,
        active: nn.Module,
        target: nn.Module,
        next_states: Tensor,
    ) -> Tensor:
        target_values = self._unroll(target, next_states)
        if self.double_q:
            next_actions = self._unroll(active, next_states).argmax(dim=-1, keepdim=True)
            return target_values.gather(-1, next_actions).squeeze(-1)
        return target_values.max(dim=-1)[0]

    def train(
        self,
        active: nn.Module,
        target: nn.Module,
        batch: TraceBatch,
    ) -> UpdateResult:
        """
        Perform one gradient update on ``active`` from a trace batch.

        Returns
        -------
        UpdateResult
            TD errors have shape (trace_length, batch_size)
        """
        states = self._tensor(batch.states)
        actions = self._tensor(batch.actions, dtype=torch.long)
        rewards = self._tensor(batch.rewards)
        next_states = self._tensor(batch.next_states)
        dones = self._tensor(batch.dones)
        mask = self._tensor(batch.trace_mask)
        trace_length = states.shape[0]

        q_values = self._unroll(active, states)
        q_sa = q_values.gather(-1, actions.unsqueeze(-1)).squeeze(-1)

        with torch.no_grad():
            next_q = self._next_values(active, target, next_states)
            td_target = rewards + (1.0 - dones) * self.discount * next_q

        td_errors = mask * (q_sa - td_target)
        per_step = F.huber_loss(
            td_errors, torch.zeros_like(td_errors), delta=1.0, reduction="none"
        ).mean(dim=1)
        loss = per_step.sum() / trace_length

        grad_norm = self._optimize(active, loss)

        reset_hidden_states(active)
        reset_hidden_states(target)

        return UpdateResult(
            loss=loss.item(),
            td_errors=td_errors.detach().cpu().numpy(),
            grad_norm=grad_norm,
        )


def create_update_engine(
    config: DeepQLearningConfig,
    optimizer: torch.optim.Optimizer,
    discount: float,
) -> BatchUpdateEngine:
    """
    Pick the update engine matching the replay discipline of ``config``.

    Returns
    -------
    BatchUpdateEngine
        ``RecurrentBatchUpdateEngine`` when trace batches are sampled
    """
    engine_cls = (
        RecurrentBatchUpdateEngine
        if config.replay_discipline.samples_traces
        else BatchUpdateEngine
    )
    return engine_cls(
        optimizer,
        discount,
        double_q=config.double_q,
        grad_clip=config.grad_clip,
        clip_val=config.clip_val,
        device=config.get_device(),
    )
