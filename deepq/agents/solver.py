"""
Deep Q-Learning solver.

This module implements the training loop that ties the replay buffer,
update engine, target network and policy together.

Core Idea (核心思想)
====================
所有组件 (回放方式、更新引擎、dueling变换) 在启动时根据配置一次性选定，
训练循环中不做类型判断。配置错误在建立任何训练状态之前即被报告。

Training Loop (训练循环)
========================
Startup:
    check configuration → seed → build replay buffer → populate it with
    ``train_start`` random experiences → active network (dueling
    transform) → target copy → Adam → policy

For t = 1, ..., max_steps, strictly in this order:

1. **Act**: ε-greedy action from the exploration schedule
2. **Step**: advance the environment
3. **Store**: push the experience
4. **Episode boundary**: on ``done`` or ``max_episode_length`` steps,
   reset environment and policy state
5. **Train**: every ``train_freq`` steps once the buffer is ready; the
   policy hidden state is saved before and restored after the update
6. **Target sync**: every ``target_update_freq`` steps
7. **Evaluate**: every ``eval_freq`` steps; best model saved to ``logdir``
8. **Log**: every ``log_freq`` steps

Checkpoints are additionally written every ``save_freq`` steps when
``logdir`` is set.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional

import numpy as np
import torch
import torch.nn as nn
import torch.optim as optim

from deepq.agents.exploration import LinearEpsilonGreedy
from deepq.agents.learner import BatchUpdateEngine, create_update_engine
from deepq.agents.policy import NNPolicy
from deepq.agents.target import TargetNetwork
from deepq.buffers import initialize_replay_buffer, populate_replay_buffer
from deepq.core.config import DeepQLearningConfig
from deepq.core.errors import ConfigurationError
from deepq.core.types import Experience
from deepq.networks.dueling import create_dueling_network
from deepq.networks.recurrent import is_recurrent
from deepq.utils.evaluation import basic_evaluation
from deepq.utils.training import RunContext, TrainingLogger

logger = logging.getLogger(__name__)

EvaluationPolicy = Callable[..., float]


class DeepQLearningSolver:
    """
    Train a Q-network on an environment with Deep Q-Learning.

    Parameters
    ----------
    config : DeepQLearningConfig
        Run configuration, including the base network
    exploration_policy : callable, optional
        ``(policy, env, obs, t, rng) -> (action, eps)``; defaults to a
        ``LinearEpsilonGreedy`` built from the configuration
    evaluation_policy : callable, default=basic_evaluation
        ``(policy, env, num_episodes, max_episode_length, verbose) -> float``

    Attributes
    ----------
    history : Optional[TrainingLogger]
        History of the latest ``solve`` call
    context : Optional[RunContext]
        Final run state of the latest ``solve`` call

    Examples
    --------
    >>> config = DeepQLearningConfig(qnetwork=DQNNetwork(4, 2), max_steps=10000)
    >>> solver = DeepQLearningSolver(config)
    >>> policy = solver.solve(GymEnvironment("CartPole-v1"))
    >>> solver.history.mean_reward
    """

    def __init__(
        self,
        config: DeepQLearningConfig,
        exploration_policy: Optional[Callable[..., Any]] = None,
        evaluation_policy: EvaluationPolicy = basic_evaluation,
    ) -> None:
        self.config = config
        self.exploration_policy = exploration_policy
        self.evaluation_policy = evaluation_policy
        self.history: Optional[TrainingLogger] = None
        self.context: Optional[RunContext] = None

    def check_config(self) -> None:
        """
        Reject configurations that cannot be trained.

        Raises
        ------
        ConfigurationError
            If no network is configured, or the network is recurrent while
            ``recurrence`` is off
        """
        cfg = self.config
        if cfg.qnetwork is None:
            raise ConfigurationError("config.qnetwork must be set before solving")
        if is_recurrent(cfg.qnetwork) and not cfg.recurrence:
            raise ConfigurationError(
                "qnetwork is recurrent but recurrence=False; set recurrence=True "
                "so that experience is replayed as whole-episode traces"
            )
        if cfg.recurrence and not is_recurrent(cfg.qnetwork):
            logger.warning(
                "recurrence=True with a feed-forward qnetwork; "
                "traces will be replayed without hidden state"
            )

    def solve(self, env, eval_env=None) -> NNPolicy:
        """
        Run the training loop for ``max_steps`` environment steps.

        Parameters
        ----------
        env : Environment
            Training environment
        eval_env : Environment, optional
            Separate evaluation environment; the training environment is
            used (and its episode restarted after each evaluation) if None

        Returns
        -------
        NNPolicy
            Greedy policy over the trained active network

        Raises
        ------
        ConfigurationError
            Before any training state is built, if the configuration is
            inconsistent
        """
        self.check_config()
        cfg = self.config

        if cfg.seed is not None:
            torch.manual_seed(cfg.seed)
        rng = np.random.default_rng(cfg.seed)
        device = cfg.get_device()

        replay = initialize_replay_buffer(cfg, env, rng)
        populate_replay_buffer(replay, env, cfg.train_start, rng, cfg.max_episode_length)

        active = create_dueling_network(cfg.qnetwork) if cfg.dueling else cfg.qnetwork
        active = active.to(device)
        active.train()
        target = TargetNetwork(active)
        optimizer = optim.Adam(active.parameters(), lr=cfg.learning_rate)
        engine = create_update_engine(cfg, optimizer, env.discount())

        policy = NNPolicy(active, env.actions(), tuple(env.obs_dimensions()), device)
        exploration = self.exploration_policy or LinearEpsilonGreedy(
            cfg.max_steps, cfg.eps_fraction, cfg.eps_end
        )

        ctx = RunContext(rng=rng)
        ctx.history.start()
        self.context, self.history = ctx, ctx.history

        logdir = self._prepare_logdir()
        if cfg.verbose:
            logger.info(
                f"Training for {cfg.max_steps} steps | {cfg.replay_discipline} replay | "
                f"double_q={cfg.double_q} dueling={cfg.dueling} | device={device}"
            )

        obs = env.reset()
        policy.reset()
        ctx.start_episode()

        for t in range(1, cfg.max_steps + 1):
            ctx.step = t

            action, ctx.epsilon = exploration(policy, env, obs, t, rng)
            next_obs, reward, done, _info = env.step(action)
            replay.push(Experience(
                np.asarray(obs, dtype=np.float32),
                env.action_index(action),
                float(reward),
                np.asarray(next_obs, dtype=np.float32),
                bool(done),
            ))
            ctx.episode_reward += float(reward)
            ctx.episode_length += 1

            if done or ctx.episode_length >= cfg.max_episode_length:
                ctx.finish_episode()
                replay.finish_episode()
                obs = env.reset()
                policy.reset()
            else:
                obs = next_obs

            if t % cfg.train_freq == 0 and replay.is_ready(cfg.train_start):
                self._train_step(ctx, replay, engine, policy, active, target)

            if t % cfg.target_update_freq == 0:
                target.sync(active)

            if t % cfg.eval_freq == 0:
                restarted = self._evaluate(ctx, policy, env, eval_env, logdir)
                if restarted is not None:
                    replay.finish_episode()
                    obs = restarted

            if logdir is not None and t % cfg.save_freq == 0:
                self._save(active, logdir / f"checkpoint_{t}.pt", t, ctx.last_eval_score)

            if t % cfg.log_freq == 0:
                self._log(ctx)

        if cfg.verbose:
            summary = ctx.history.get_summary()
            logger.info(
                f"Training complete: {summary['num_episodes']} episodes, "
                f"{summary['num_updates']} updates, {summary['total_time']:.1f}s"
            )
        return policy

    def _train_step(
        self,
        ctx: RunContext,
        replay,
        engine: BatchUpdateEngine,
        policy: NNPolicy,
        active: nn.Module,
        target: TargetNetwork,
    ) -> None:
        saved = policy.hidden_state()
        batch = replay.sample(self.config.batch_size)
        result = engine.train(active, target.network, batch)
        policy.set_hidden_state(saved)

        replay.update_priorities(batch.indices, result.td_errors)
        ctx.record_update(result.loss, result.grad_norm)

    def _evaluate(
        self,
        ctx: RunContext,
        policy: NNPolicy,
        env,
        eval_env,
        logdir: Optional[Path],
    ) -> Optional[np.ndarray]:
        """
        Evaluate the policy and keep the best model.

        Returns
        -------
        Optional[np.ndarray]
            First observation of the restarted training episode when the
            evaluation ran on the training environment, otherwise None
        """
        cfg = self.config
        saved = policy.hidden_state()
        score = self.evaluation_policy(
            policy,
            eval_env if eval_env is not None else env,
            cfg.num_ep_eval,
            cfg.max_episode_length,
            cfg.verbose,
        )
        policy.set_hidden_state(saved)

        ctx.last_eval_score = score
        ctx.history.log_evaluation(ctx.step, score)

        if score > ctx.best_score:
            ctx.best_score = score
            if logdir is not None:
                if cfg.verbose:
                    logger.info(f"Saving new best model with evaluation score {score:.3f}")
                self._save(policy.network, logdir / "best_model.pt", ctx.step, score)

        if eval_env is not None:
            return None

        # The training episode was interrupted; its partial return is dropped.
        ctx.start_episode()
        policy.reset()
        return env.reset()

    def _log(self, ctx: RunContext) -> None:
        record = ctx.history.log_tick(
            ctx.step, ctx.epsilon, ctx.last_loss, ctx.last_grad_norm
        )
        if not self.config.verbose:
            return
        loss = "n/a" if record["loss"] is None else f"{record['loss']:.3e}"
        grad = "n/a" if record["grad_norm"] is None else f"{record['grad_norm']:.3e}"
        logger.info(
            f"{ctx.step:5d} / {self.config.max_steps:5d} eps {record['epsilon']:0.3f} | "
            f"avgR {record['avg_reward']:1.3f} | Loss {loss} | Grad {grad}"
        )

    def _prepare_logdir(self) -> Optional[Path]:
        if self.config.logdir is None:
            return None
        logdir = Path(self.config.logdir)
        logdir.mkdir(parents=True, exist_ok=True)
        with open(logdir / "config.json", "w") as f:
            json.dump(self.config.to_dict(), f, indent=2)
        return logdir

    def _save(
        self,
        network: nn.Module,
        path: Path,
        step: int,
        score: Optional[float],
    ) -> None:
        checkpoint = {
            "q_network": network.state_dict(),
            "step": step,
            "score": score,
            "config": self.config.to_dict(),
        }
        torch.save(checkpoint, path)
        logger.debug(f"Saved checkpoint: {path}")
