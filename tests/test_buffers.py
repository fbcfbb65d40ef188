"""
Unit Tests for Replay Buffers.

Tests all buffer implementations with mock data using small parameters.
"""

from __future__ import annotations

import unittest

import numpy as np
from scipy import stats

from deepq.buffers import (
    EpisodeReplayBuffer,
    PrioritizedReplayBuffer,
    ReplayBuffer,
    initialize_replay_buffer,
    populate_replay_buffer,
)
from deepq.core.config import DeepQLearningConfig
from deepq.core.types import Experience
from tests.mocks import ToyMDP


def make_experience(i: float, state_dim: int = 4, done: bool = False) -> Experience:
    return Experience(
        np.full(state_dim, i, dtype=np.float32),
        int(i) % 2,
        float(i),
        np.full(state_dim, i + 1, dtype=np.float32),
        done,
    )


class TestReplayBuffer(unittest.TestCase):
    """Test cases for uniform ReplayBuffer."""

    def setUp(self):
        """Set up test fixtures with mock parameters."""
        self.capacity = 5  # Small capacity for testing
        self.state_dim = 4
        self.buffer = ReplayBuffer(
            self.capacity, self.state_dim, np.random.default_rng(0)
        )

    def test_init(self):
        """Test buffer initialization."""
        self.assertEqual(len(self.buffer), 0)
        self.assertEqual(self.buffer.capacity, self.capacity)
        self.assertEqual(self.buffer.cursor, 0)

    def test_invalid_capacity(self):
        """Test that invalid capacity raises error."""
        with self.assertRaises(ValueError):
            ReplayBuffer(0, self.state_dim)
        with self.assertRaises(ValueError):
            ReplayBuffer(-1, self.state_dim)

    def test_push_overflow_is_fifo(self):
        """Test that the oldest slots are overwritten cyclically."""
        for i in range(self.capacity + 2):
            self.buffer.push(make_experience(i))

        self.assertEqual(len(self.buffer), self.capacity)
        self.assertEqual(self.buffer.cursor, 2)
        rewards = [self.buffer[slot].reward for slot in range(self.capacity)]
        self.assertEqual(rewards, [5.0, 6.0, 2.0, 3.0, 4.0])

    def test_getitem_roundtrips_fields(self):
        """Test that stored fields are returned unchanged."""
        self.buffer.push(make_experience(3, done=True))
        exp = self.buffer[0]
        np.testing.assert_array_equal(exp.obs, np.full(4, 3.0))
        np.testing.assert_array_equal(exp.next_obs, np.full(4, 4.0))
        self.assertEqual(exp.action, 1)
        self.assertTrue(exp.done)
        with self.assertRaises(IndexError):
            self.buffer[1]

    def test_sample_shape(self):
        """Test that sample returns correct shapes and unit weights."""
        for i in range(3):
            self.buffer.push(make_experience(i))

        # Sampling is with replacement, so the batch may exceed len()
        batch = self.buffer.sample(16)

        self.assertEqual(batch.states.shape, (16, self.state_dim))
        self.assertEqual(batch.actions.shape, (16,))
        self.assertEqual(batch.rewards.shape, (16,))
        self.assertEqual(batch.next_states.shape, (16, self.state_dim))
        self.assertEqual(batch.dones.shape, (16,))
        np.testing.assert_array_equal(batch.weights, np.ones(16))
        self.assertTrue(np.all(batch.indices < 3))
        np.testing.assert_array_equal(batch.rewards, batch.indices.astype(np.float32))

    def test_sample_empty_raises(self):
        """Test that sampling an empty buffer raises error."""
        with self.assertRaises(ValueError):
            self.buffer.sample(1)

    def test_wrong_observation_shape_raises(self):
        """Test that observations of the wrong shape are rejected."""
        with self.assertRaises(ValueError):
            self.buffer.push(make_experience(0, state_dim=3))

    def test_update_priorities_is_noop(self):
        """Test that uniform replay accepts priority updates."""
        self.buffer.push(make_experience(0))
        batch = self.buffer.sample(2)
        self.buffer.update_priorities(batch.indices, np.array([5.0, 1.0]))
        np.testing.assert_array_equal(self.buffer.sample(2).weights, np.ones(2))

    def test_is_ready(self):
        """Test is_ready method."""
        self.assertFalse(self.buffer.is_ready(3))
        for i in range(3):
            self.buffer.push(make_experience(i))
        self.assertTrue(self.buffer.is_ready(3))

    def test_clear(self):
        """Test buffer clearing."""
        for i in range(4):
            self.buffer.push(make_experience(i))
        self.buffer.clear()
        self.assertEqual(len(self.buffer), 0)
        self.assertEqual(self.buffer.cursor, 0)


class TestPrioritizedReplayBuffer(unittest.TestCase):
    """Test cases for PrioritizedReplayBuffer."""

    def setUp(self):
        """Set up test fixtures."""
        self.capacity = 8
        self.buffer = PrioritizedReplayBuffer(
            self.capacity, 4, np.random.default_rng(0),
            alpha=0.6, beta=0.4, epsilon=1e-6,
        )

    def test_invalid_params(self):
        """Test invalid parameter handling."""
        with self.assertRaises(ValueError):
            PrioritizedReplayBuffer(8, 4, alpha=-0.1)
        with self.assertRaises(ValueError):
            PrioritizedReplayBuffer(8, 4, beta=1.5)
        with self.assertRaises(ValueError):
            PrioritizedReplayBuffer(8, 4, epsilon=0.0)

    def test_new_entries_get_max_priority(self):
        """Test that pushes use the running maximum priority."""
        self.buffer.push(make_experience(0))
        self.assertEqual(self.buffer.priorities[0], 1.0)

        self.buffer.update_priorities(np.array([0]), np.array([-4.0]))
        self.buffer.push(make_experience(1))
        self.assertAlmostEqual(self.buffer.priorities[1], 4.0 + 1e-6)
        self.assertAlmostEqual(self.buffer.max_priority, 4.0 + 1e-6)

    def test_priority_update_exact(self):
        """Test that updated priorities equal |td| + epsilon."""
        for i in range(4):
            self.buffer.push(make_experience(i))
        td_errors = np.array([0.5, -2.0, 0.0, 3.25])
        self.buffer.update_priorities(np.arange(4), td_errors)

        np.testing.assert_allclose(
            self.buffer.priorities, np.abs(td_errors) + 1e-6, rtol=0, atol=1e-12
        )
        self.assertGreater(self.buffer.priorities.min(), 0.0)

    def test_priorities_view_is_read_only(self):
        """Test that the priorities view cannot be written."""
        self.buffer.push(make_experience(0))
        with self.assertRaises(ValueError):
            self.buffer.priorities[0] = 5.0

    def test_sampling_law(self):
        """Test P(i) ∝ p_i with a chi-square goodness-of-fit test."""
        buffer = PrioritizedReplayBuffer(
            3, 4, np.random.default_rng(1), alpha=1.0, beta=0.4, epsilon=1e-9
        )
        for i in range(3):
            buffer.push(make_experience(i))
        buffer.update_priorities(np.arange(3), np.array([1.0, 2.0, 3.0]))

        n_draws = 12000
        batch = buffer.sample(n_draws)
        counts = np.bincount(batch.indices, minlength=3)
        expected = n_draws * np.array([1.0, 2.0, 3.0]) / 6.0

        result = stats.chisquare(counts, expected)
        self.assertGreater(result.pvalue, 1e-3)

    def test_importance_weights_bounded(self):
        """Test that weights lie in (0, 1] with batch maximum exactly 1."""
        for i in range(self.capacity):
            self.buffer.push(make_experience(i))
        self.buffer.update_priorities(
            np.arange(self.capacity), np.linspace(0.1, 5.0, self.capacity)
        )

        batch = self.buffer.sample(32)

        self.assertEqual(batch.weights.shape, (32,))
        self.assertTrue(np.all(batch.weights > 0))
        self.assertTrue(np.all(batch.weights <= 1.0 + 1e-6))
        self.assertAlmostEqual(float(batch.weights.max()), 1.0, places=6)

    def test_importance_weights_formula(self):
        """Test w_i = (n P(i))^-β normalised by the batch max."""
        for i in range(self.capacity):
            self.buffer.push(make_experience(i))
        self.buffer.update_priorities(
            np.arange(self.capacity), np.arange(1, self.capacity + 1, dtype=float)
        )

        probs = self.buffer.probabilities()
        batch = self.buffer.sample(16)
        raw = (self.capacity * probs[batch.indices]) ** (-0.4)
        np.testing.assert_allclose(batch.weights, raw / raw.max(), rtol=1e-5)

    def test_alpha_zero_is_uniform(self):
        """Test that α = 0 ignores priorities."""
        buffer = PrioritizedReplayBuffer(4, 4, alpha=0.0)
        for i in range(4):
            buffer.push(make_experience(i))
        buffer.update_priorities(np.arange(4), np.array([0.1, 1.0, 10.0, 100.0]))
        np.testing.assert_allclose(buffer.probabilities(), np.full(4, 0.25))

    def test_sample_empty_raises(self):
        """Test that sampling an empty buffer raises error."""
        with self.assertRaises(ValueError):
            self.buffer.sample(4)

    def test_fifo_keeps_priority_alignment(self):
        """Test that an overwritten slot takes the new entry's priority."""
        buffer = PrioritizedReplayBuffer(2, 4)
        buffer.push(make_experience(0))
        buffer.push(make_experience(1))
        buffer.update_priorities(np.array([0, 1]), np.array([0.5, 7.0]))
        buffer.push(make_experience(2))

        self.assertEqual(len(buffer), 2)
        self.assertEqual(buffer[0].reward, 2.0)
        self.assertAlmostEqual(buffer.priorities[0], 7.0 + 1e-6)


class TestEpisodeReplayBuffer(unittest.TestCase):
    """Test cases for EpisodeReplayBuffer."""

    def setUp(self):
        """Set up test fixtures."""
        self.obs_dim = 2
        self.trace_length = 5
        self.buffer = EpisodeReplayBuffer(
            4, self.obs_dim, np.random.default_rng(0),
            trace_length=self.trace_length, max_episode_length=20,
        )

    def push_episode(self, buffer, length, start=0.0):
        for t in range(length):
            buffer.push(Experience(
                np.full(self.obs_dim, start + t + 1, dtype=np.float32),
                1,
                start + t + 1,
                np.full(self.obs_dim, start + t + 2, dtype=np.float32),
                t == length - 1,
            ))

    def test_seal_on_done(self):
        """Test that an episode becomes sampleable once done is pushed."""
        self.push_episode(self.buffer, 2)
        self.assertEqual(len(self.buffer), 1)
        self.assertEqual(self.buffer.num_experiences, 2)
        self.assertEqual(self.buffer.open_length, 0)

    def test_seal_on_max_episode_length(self):
        """Test that long episodes are sealed at the step cap."""
        buffer = EpisodeReplayBuffer(4, self.obs_dim, max_episode_length=4)
        for t in range(6):
            buffer.push(Experience(np.zeros(2), 0, 0.0, np.zeros(2), False))
        self.assertEqual(len(buffer), 1)
        self.assertEqual(buffer.num_experiences, 4)
        self.assertEqual(buffer.open_length, 2)

    def test_left_padding(self):
        """Test padding of a 3-step episode to a trace of length 5."""
        self.push_episode(self.buffer, 3)
        batch = self.buffer.sample(2)

        L, B = self.trace_length, 2
        self.assertEqual(batch.states.shape, (L, B, self.obs_dim))
        self.assertEqual(batch.trace_mask.shape, (L, B))
        np.testing.assert_array_equal(batch.indices, [0, 0])

        for b in range(B):
            np.testing.assert_array_equal(batch.trace_mask[:, b], [0, 0, 1, 1, 1])
            # Padded steps
            np.testing.assert_array_equal(batch.actions[:2, b], [0, 0])
            np.testing.assert_array_equal(batch.rewards[:2, b], [0, 0])
            np.testing.assert_array_equal(batch.dones[:2, b], [1, 1])
            np.testing.assert_array_equal(batch.states[:2, b], np.zeros((2, self.obs_dim)))
            # Real steps
            np.testing.assert_array_equal(batch.rewards[2:, b], [1, 2, 3])
            np.testing.assert_array_equal(batch.actions[2:, b], [1, 1, 1])
            np.testing.assert_array_equal(batch.dones[2:, b], [0, 0, 1])

    def test_window_is_contiguous(self):
        """Test that long episodes yield contiguous windows."""
        self.push_episode(self.buffer, 12)
        batch = self.buffer.sample(16)

        np.testing.assert_array_equal(batch.trace_mask, np.ones((5, 16)))
        steps = np.diff(batch.rewards, axis=0)
        np.testing.assert_array_equal(steps, np.ones((4, 16)))
        self.assertTrue(np.all(batch.rewards[0] >= 1))
        self.assertTrue(np.all(batch.rewards[-1] <= 12))

    def test_episode_fifo(self):
        """Test that the oldest episode is overwritten when full."""
        buffer = EpisodeReplayBuffer(2, self.obs_dim, trace_length=3)
        self.push_episode(buffer, 2, start=0)
        self.push_episode(buffer, 3, start=10)
        self.push_episode(buffer, 4, start=20)

        self.assertEqual(len(buffer), 2)
        self.assertEqual(buffer.num_experiences, 7)
        self.assertEqual([e.reward for e in buffer.episode(0)], [21, 22, 23, 24])
        self.assertEqual([e.reward for e in buffer.episode(1)], [11, 12, 13])

    def test_is_ready_requires_sealed_episode(self):
        """Test that open episodes do not count towards readiness."""
        for t in range(5):
            self.buffer.push(Experience(np.zeros(2), 0, 0.0, np.zeros(2), False))
        self.assertFalse(self.buffer.is_ready(1))
        with self.assertRaises(ValueError):
            self.buffer.sample(1)

        self.buffer.push(Experience(np.zeros(2), 0, 0.0, np.zeros(2), True))
        self.assertTrue(self.buffer.is_ready(6))
        self.assertFalse(self.buffer.is_ready(7))

    def test_finish_episode_seals_open_episode(self):
        """Test that an interrupted episode is sealed without done."""
        for t in range(3):
            self.buffer.push(Experience(np.zeros(2), 0, float(t), np.zeros(2), False))
        self.buffer.finish_episode()
        self.assertEqual(len(self.buffer), 1)
        self.assertEqual(self.buffer.open_length, 0)
        self.assertEqual([e.done for e in self.buffer.episode(0)], [False] * 3)

        self.buffer.finish_episode()
        self.assertEqual(len(self.buffer), 1)
        self.push_episode(self.buffer, 2, start=10)
        self.assertEqual([e.reward for e in self.buffer.episode(1)], [11, 12])


class TestReplayFactory(unittest.TestCase):
    """Test replay buffer selection and warm-up."""

    def test_discipline_selection(self):
        """Test that the configuration picks the buffer class."""
        env = ToyMDP()
        rng = np.random.default_rng(0)
        cases = [
            (dict(prioritized_replay=False), ReplayBuffer),
            (dict(prioritized_replay=True), PrioritizedReplayBuffer),
            (dict(recurrence=True), EpisodeReplayBuffer),
        ]
        for kwargs, expected in cases:
            config = DeepQLearningConfig(buffer_size=50, train_start=10, **kwargs)
            replay = initialize_replay_buffer(config, env, rng)
            self.assertIs(type(replay), expected)
            self.assertEqual(replay.capacity, 50)

    def test_populate(self):
        """Test that warm-up pushes exactly the requested experiences."""
        env = ToyMDP()
        rng = np.random.default_rng(0)
        replay = ReplayBuffer(100, 2, rng)

        populate_replay_buffer(replay, env, 30, rng, max_episode_length=5)

        self.assertEqual(len(replay), 30)
        self.assertEqual(len(env.taken), 30)
        self.assertTrue(set(env.taken) <= set(env.actions()))
        actions = {replay[i].action for i in range(30)}
        self.assertTrue(actions <= {0, 1})

    def test_populate_closes_open_episode(self):
        """Test that warm-up leaves no partial episode behind."""
        env = ToyMDP()
        rng = np.random.default_rng(0)
        replay = EpisodeReplayBuffer(20, 2, rng, trace_length=3, max_episode_length=4)

        populate_replay_buffer(replay, env, 9, rng, max_episode_length=4)

        self.assertEqual(replay.open_length, 0)
        self.assertEqual(replay.num_experiences, 9)


if __name__ == "__main__":
    unittest.main()
