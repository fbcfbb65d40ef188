"""
Unit Tests for training history, evaluation and plotting.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

import matplotlib
import numpy as np

matplotlib.use("Agg")

from deepq.utils import RunContext, TrainingLogger, basic_evaluation, plot_training_curves
from tests.mocks import FixedPolicy, ToyMDP


class TestTrainingLogger(unittest.TestCase):
    """Test cases for TrainingLogger."""

    def setUp(self):
        """Set up test fixtures."""
        self.history = TrainingLogger(window_size=3)

    def test_empty_history(self):
        """Test statistics before any episode finished."""
        self.assertEqual(self.history.mean_reward, 0.0)
        self.assertEqual(self.history.mean_length, 0.0)
        self.assertIsNone(self.history.best_eval_score)
        self.assertIsNone(self.history.get_summary()["final_loss"])

    def test_mean_reward_window(self):
        """Test that the moving average covers the last episodes only."""
        for reward in [10.0, 0.0, 1.0, 2.0]:
            self.history.log_episode(reward, 5)
        self.assertAlmostEqual(self.history.mean_reward, 1.0)
        self.assertEqual(self.history.num_episodes, 4)

    def test_smoothed_rewards(self):
        """Test the trailing moving average."""
        for reward in [3.0, 0.0, 3.0, 6.0]:
            self.history.log_episode(reward, 1)
        np.testing.assert_allclose(
            self.history.get_smoothed_rewards(2), [3.0, 1.5, 1.5, 4.5]
        )
        self.assertEqual(self.history.get_smoothed_rewards(10), [3.0, 0.0, 3.0, 6.0])

    def test_log_tick(self):
        """Test that log records carry the current statistics."""
        self.history.log_episode(4.0, 2)
        record = self.history.log_tick(100, 0.5, None, None)
        self.assertEqual(
            record,
            {"step": 100, "epsilon": 0.5, "avg_reward": 4.0, "loss": None, "grad_norm": None},
        )
        self.history.log_tick(200, 0.25, 0.1, 2.0)
        self.assertEqual(self.history.epsilons, [0.5, 0.25])

    def test_summary(self):
        """Test summary statistics."""
        self.history.log_update(0.5, 1.0)
        self.history.log_update(0.25, 2.0)
        self.history.log_evaluation(10, 1.0)
        self.history.log_evaluation(20, 3.0)
        summary = self.history.get_summary()
        self.assertEqual(summary["num_updates"], 2)
        self.assertEqual(summary["final_loss"], 0.25)
        self.assertEqual(summary["best_eval_score"], 3.0)
        self.assertEqual(summary["total_time"], 0.0)


class TestRunContext(unittest.TestCase):
    """Test cases for RunContext."""

    def test_episode_bookkeeping(self):
        """Test that finished episodes land in the history."""
        ctx = RunContext(rng=np.random.default_rng(0))
        ctx.start_episode()
        ctx.episode_reward, ctx.episode_length = 2.0, 7
        ctx.finish_episode()

        self.assertEqual(ctx.episode, 2)
        self.assertEqual(ctx.episode_reward, 0.0)
        self.assertEqual(ctx.episode_length, 0)
        self.assertEqual(ctx.history.episode_rewards, [2.0])
        self.assertEqual(ctx.history.episode_lengths, [7])

    def test_record_update(self):
        """Test that the latest update is tracked."""
        ctx = RunContext(rng=np.random.default_rng(0))
        self.assertIsNone(ctx.last_loss)
        ctx.record_update(0.3, 1.2)
        self.assertEqual((ctx.last_loss, ctx.last_grad_norm), (0.3, 1.2))
        self.assertEqual(ctx.history.losses, [0.3])


class TestBasicEvaluation(unittest.TestCase):
    """Test cases for basic_evaluation."""

    def test_optimal_policy(self):
        """Test that always advancing earns the terminal reward."""
        env = ToyMDP()
        policy = FixedPolicy("advance")
        score = basic_evaluation(policy, env, num_episodes=5, max_episode_length=10)
        self.assertEqual(score, 1.0)
        self.assertEqual(env.reset_count, 5)
        self.assertEqual(policy.resets, 5)
        self.assertEqual(len(env.taken), 10)

    def test_step_cap(self):
        """Test that episodes stop at max_episode_length."""
        env = ToyMDP()
        score = basic_evaluation(FixedPolicy("stay"), env, num_episodes=3, max_episode_length=4)
        self.assertEqual(score, 0.0)
        self.assertEqual(len(env.taken), 12)

    def test_verbose_logs(self):
        """Test that the score is logged when verbose."""
        with self.assertLogs("deepq.utils.evaluation", level="INFO") as logs:
            basic_evaluation(FixedPolicy("advance"), ToyMDP(), 2, 5, verbose=True)
        self.assertIn("1.000", logs.output[0])


class TestPlotTrainingCurves(unittest.TestCase):
    """Test cases for plot_training_curves."""

    def test_save_figure(self):
        """Test that the figure is written without being shown."""
        history = TrainingLogger()
        for i in range(20):
            history.log_episode(float(i), 10)
            history.log_update(1.0 / (i + 1), 0.5)
        history.log_evaluation(100, 5.0)

        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "curves.png"
            plot_training_curves(history, save_path=path, show=False)
            self.assertTrue(path.exists())

    def test_empty_history(self):
        """Test that an empty history still plots."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "empty.png"
            plot_training_curves(TrainingLogger(), save_path=path, show=False)
            self.assertTrue(path.exists())


if __name__ == "__main__":
    unittest.main()
