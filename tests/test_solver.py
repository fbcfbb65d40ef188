"""
End-to-end tests for the training loop on a deterministic toy MDP.
"""

from __future__ import annotations

import json
import math
import tempfile
import unittest
from pathlib import Path

import torch

from deepq.agents import DeepQLearningSolver, NNPolicy
from deepq.core.config import DeepQLearningConfig
from deepq.core.errors import ConfigurationError
from deepq.networks import DQNNetwork, RecurrentQNetwork
from tests.mocks import ToyMDP, one_hot


def smoke_config(**overrides) -> DeepQLearningConfig:
    params = dict(
        qnetwork=DQNNetwork(2, 2, hidden_dim=16),
        learning_rate=1e-3,
        max_steps=200,
        batch_size=8,
        train_freq=4,
        train_start=20,
        buffer_size=100,
        target_update_freq=50,
        eval_freq=100,
        num_ep_eval=2,
        max_episode_length=10,
        log_freq=50,
        dueling=False,
        prioritized_replay=False,
        verbose=False,
        seed=0,
    )
    params.update(overrides)
    return DeepQLearningConfig(**params)


class TestSolverSmoke(unittest.TestCase):
    """Short seeded runs of every pipeline."""

    def run_solver(self, config):
        env = ToyMDP()
        solver = DeepQLearningSolver(config)
        policy = solver.solve(env)
        return solver, policy, env

    def check_run(self, solver, policy, env, config):
        history = solver.history
        # Every train_freq steps once ready; the buffer is ready at t = 4
        self.assertEqual(len(history.losses), config.max_steps // config.train_freq)
        self.assertTrue(all(math.isfinite(loss) for loss in history.losses))
        self.assertTrue(all(math.isfinite(g) for g in history.grad_norms))
        self.assertTrue(set(env.taken) <= set(env.actions()))

        self.assertIsInstance(policy, NNPolicy)
        self.assertIn(policy.action(one_hot(0)), env.actions())
        self.assertIn(policy.action(one_hot(1)), env.actions())
        self.assertEqual(solver.context.step, config.max_steps)
        self.assertEqual(len(history.eval_scores), config.max_steps // config.eval_freq)

    def test_uniform(self):
        """Test the uniform replay pipeline."""
        config = smoke_config()
        self.check_run(*self.run_solver(config), config)

    def test_prioritized(self):
        """Test the prioritized replay pipeline."""
        config = smoke_config(prioritized_replay=True)
        self.check_run(*self.run_solver(config), config)

    def test_dueling(self):
        """Test the dueling pipeline and that the base network is untouched."""
        base = DQNNetwork(2, 2, hidden_dim=16)
        before = {k: v.clone() for k, v in base.state_dict().items()}
        config = smoke_config(qnetwork=base, dueling=True, prioritized_replay=True)

        solver, policy, env = self.run_solver(config)

        self.check_run(solver, policy, env, config)
        self.assertIsNot(policy.network, base)
        for key, value in base.state_dict().items():
            self.assertTrue(torch.equal(value, before[key]), key)

    def test_recurrent(self):
        """Test the recurrent pipeline with episodic replay."""
        config = smoke_config(
            qnetwork=RecurrentQNetwork(2, 2, hidden_dim=8),
            recurrence=True,
            trace_length=4,
            buffer_size=50,
        )
        solver, policy, env = self.run_solver(config)
        history = solver.history
        self.assertGreater(len(history.losses), 0)
        self.assertTrue(all(math.isfinite(loss) for loss in history.losses))
        self.assertTrue(set(env.taken) <= set(env.actions()))
        policy.reset()
        self.assertIn(policy.action(one_hot(0)), env.actions())
        self.assertIn(policy.action(one_hot(1)), env.actions())

    def test_seeded_runs_are_reproducible(self):
        """Test that the same seed gives the same losses."""
        torch.manual_seed(123)
        first, _, _ = self.run_solver(smoke_config(qnetwork=DQNNetwork(2, 2, hidden_dim=16)))
        torch.manual_seed(123)
        second, _, _ = self.run_solver(smoke_config(qnetwork=DQNNetwork(2, 2, hidden_dim=16)))
        self.assertEqual(first.history.losses, second.history.losses)


class TestSolverConfiguration(unittest.TestCase):
    """Fail-fast configuration checks."""

    def test_recurrent_network_requires_recurrence(self):
        """Test that the error is raised before the environment is touched."""
        env = ToyMDP()
        config = smoke_config(qnetwork=RecurrentQNetwork(2, 2), recurrence=False)
        with self.assertRaises(ConfigurationError):
            DeepQLearningSolver(config).solve(env)
        self.assertEqual(env.reset_count, 0)
        self.assertEqual(env.taken, [])

    def test_missing_network(self):
        """Test that a configuration without a network is rejected."""
        with self.assertRaises(ConfigurationError):
            DeepQLearningSolver(smoke_config(qnetwork=None)).solve(ToyMDP())


class TestSolverReporting(unittest.TestCase):
    """Logging, evaluation and checkpointing."""

    def test_log_reports_no_data_before_first_update(self):
        """Test that loss and grad norm are n/a until an update happened."""
        config = smoke_config(max_steps=12, log_freq=2, eval_freq=100, verbose=True)
        solver = DeepQLearningSolver(config)
        with self.assertLogs("deepq.agents.solver", level="INFO") as logs:
            solver.solve(ToyMDP())

        records = solver.history.log_records
        self.assertEqual([r["step"] for r in records], [2, 4, 6, 8, 10, 12])
        self.assertIsNone(records[0]["loss"])
        self.assertIsNone(records[0]["grad_norm"])
        self.assertIsNotNone(records[1]["loss"])
        self.assertEqual(records[1]["loss"], solver.history.losses[0])
        self.assertTrue(any("Loss n/a" in line for line in logs.output))

    def test_custom_evaluation_on_separate_env(self):
        """Test that evaluation runs on the evaluation environment."""
        calls = []

        def evaluation(policy, env, num_episodes, max_episode_length, verbose):
            calls.append((env, num_episodes, max_episode_length))
            return float(len(calls))

        env, eval_env = ToyMDP(), ToyMDP()
        config = smoke_config(eval_freq=50, num_ep_eval=3)
        solver = DeepQLearningSolver(config, evaluation_policy=evaluation)
        solver.solve(env, eval_env=eval_env)

        self.assertEqual(len(calls), 4)
        self.assertTrue(all(c == (eval_env, 3, 10) for c in calls))
        self.assertEqual(solver.context.best_score, 4.0)
        self.assertEqual(
            solver.history.eval_scores, [(50, 1.0), (100, 2.0), (150, 3.0), (200, 4.0)]
        )

    def test_checkpoints_written_to_logdir(self):
        """Test periodic checkpoints, best model and config dump."""
        with tempfile.TemporaryDirectory() as tmp:
            config = smoke_config(logdir=tmp, save_freq=100, eval_freq=100)
            DeepQLearningSolver(config).solve(ToyMDP())

            logdir = Path(tmp)
            self.assertTrue((logdir / "checkpoint_100.pt").exists())
            self.assertTrue((logdir / "checkpoint_200.pt").exists())
            self.assertTrue((logdir / "best_model.pt").exists())

            with open(logdir / "config.json") as f:
                self.assertEqual(json.load(f)["max_steps"], 200)

            checkpoint = torch.load(logdir / "checkpoint_200.pt", weights_only=False)
            self.assertEqual(checkpoint["step"], 200)
            self.assertIn("q_network", checkpoint)
            self.assertEqual(checkpoint["config"]["seed"], 0)

    def test_best_model_loads_into_policy(self):
        """Test that best_model.pt restores the evaluated weights into a policy."""
        with tempfile.TemporaryDirectory() as tmp:
            config = smoke_config(logdir=tmp)
            DeepQLearningSolver(config).solve(ToyMDP())
            path = Path(tmp) / "best_model.pt"
            saved = torch.load(path, weights_only=False)["q_network"]

            policy = NNPolicy(DQNNetwork(2, 2, hidden_dim=16), actions=[0, 1], obs_dim=(2,))
            policy.load(path)

        for key, value in policy.network.state_dict().items():
            self.assertTrue(torch.equal(value, saved[key]), key)
        self.assertIn(policy.action(one_hot(1)), [0, 1])


if __name__ == "__main__":
    unittest.main()
