"""
Unit Tests for the Deep Q-Learning package.

Components are tested on a deterministic two-state chain (``tests.mocks``)
where targets, losses and returns can be computed by hand.
"""

from tests.test_agents import (
    TestBatchUpdateEngine,
    TestCreateUpdateEngine,
    TestLinearEpsilonGreedy,
    TestNNPolicy,
    TestRecurrentBatchUpdateEngine,
    TestTargetNetwork,
)
from tests.test_buffers import (
    TestEpisodeReplayBuffer,
    TestPrioritizedReplayBuffer,
    TestReplayBuffer,
    TestReplayFactory,
)
from tests.test_config import TestDeepQLearningConfig
from tests.test_envs import TestGymEnvironment
from tests.test_networks import (
    TestDQNNetwork,
    TestDuelingTransform,
    TestQStackBuilder,
    TestRecurrentHelpers,
)
from tests.test_solver import TestSolverConfiguration, TestSolverReporting, TestSolverSmoke
from tests.test_utils import (
    TestBasicEvaluation,
    TestPlotTrainingCurves,
    TestRunContext,
    TestTrainingLogger,
)

__all__ = [
    "TestDeepQLearningConfig",
    "TestReplayBuffer",
    "TestPrioritizedReplayBuffer",
    "TestEpisodeReplayBuffer",
    "TestReplayFactory",
    "TestDQNNetwork",
    "TestQStackBuilder",
    "TestDuelingTransform",
    "TestRecurrentHelpers",
    "TestLinearEpsilonGreedy",
    "TestNNPolicy",
    "TestTargetNetwork",
    "TestBatchUpdateEngine",
    "TestRecurrentBatchUpdateEngine",
    "TestCreateUpdateEngine",
    "TestSolverSmoke",
    "TestSolverConfiguration",
    "TestSolverReporting",
    "TestTrainingLogger",
    "TestRunContext",
    "TestBasicEvaluation",
    "TestPlotTrainingCurves",
    "TestGymEnvironment",
]
