"""
Command-line entry point.

Trains a Q-network on a gymnasium environment with a discrete action space.

Usage:
    deepq-train [--env ENV] [--steps NUM] [--recurrent] [--no-dueling] ...

Examples:
    # Double + dueling DQN with prioritized replay on CartPole
    deepq-train --env CartPole-v1 --steps 20000

    # Recurrent network with episodic replay, plot the curves
    deepq-train --recurrent --steps 20000 --plot curves.png
"""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from deepq.agents.solver import DeepQLearningSolver
from deepq.core.config import DeepQLearningConfig
from deepq.envs.gym_adapter import GymEnvironment
from deepq.networks.base import DQNNetwork
from deepq.networks.recurrent import RecurrentQNetwork
from deepq.utils.evaluation import basic_evaluation
from deepq.utils.visualization import plot_training_curves

logger = logging.getLogger("deepq")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Train a Deep Q-Learning policy on a gymnasium environment",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--env",
        type=str,
        default="CartPole-v1",
        help="Gymnasium environment name (default: CartPole-v1)",
    )
    parser.add_argument(
        "--steps",
        type=int,
        default=20000,
        help="Number of environment steps (default: 20000)",
    )
    parser.add_argument(
        "--hidden-dim",
        type=int,
        default=64,
        help="Hidden layer size (default: 64)",
    )
    parser.add_argument(
        "--lr",
        type=float,
        default=1e-3,
        help="Learning rate (default: 1e-3)",
    )
    parser.add_argument(
        "--discount",
        type=float,
        default=0.99,
        help="Discount factor (default: 0.99)",
    )
    parser.add_argument(
        "--recurrent",
        action="store_true",
        help="Use a recurrent network with episodic replay",
    )
    parser.add_argument(
        "--no-dueling",
        action="store_true",
        help="Disable the dueling transform",
    )
    parser.add_argument(
        "--no-double-q",
        action="store_true",
        help="Disable double Q-learning",
    )
    parser.add_argument(
        "--uniform",
        action="store_true",
        help="Use uniform instead of prioritized replay",
    )
    parser.add_argument(
        "--logdir",
        type=str,
        default=None,
        help="Directory for checkpoints (default: none)",
    )
    parser.add_argument(
        "--plot",
        type=str,
        default=None,
        help="Save training curves to this file",
    )
    parser.add_argument(
        "--eval-episodes",
        type=int,
        default=20,
        help="Episodes of the final evaluation (default: 20)",
    )
    parser.add_argument(
        "--device",
        type=str,
        default="auto",
        help="Compute device: auto, cpu, cuda or mps (default: auto)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed (default: 42)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings",
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    env = GymEnvironment(args.env, discount=args.discount, seed=args.seed)
    eval_env = GymEnvironment(args.env, discount=args.discount, seed=args.seed + 1)
    state_dim = env.obs_dimensions()[0]
    action_dim = len(env.actions())

    if args.recurrent:
        qnetwork = RecurrentQNetwork(state_dim, action_dim, hidden_dim=args.hidden_dim)
    else:
        qnetwork = DQNNetwork(state_dim, action_dim, hidden_dim=args.hidden_dim)

    config = DeepQLearningConfig(
        qnetwork=qnetwork,
        learning_rate=args.lr,
        max_steps=args.steps,
        batch_size=64,
        # Episodic replay counts episodes, not transitions.
        buffer_size=500 if args.recurrent else 10000,
        train_start=500,
        target_update_freq=1000,
        eval_freq=max(1, args.steps // 10),
        num_ep_eval=5,
        max_episode_length=500,
        eps_fraction=0.3,
        double_q=not args.no_double_q,
        dueling=not args.no_dueling,
        recurrence=args.recurrent,
        trace_length=8,
        prioritized_replay=not args.uniform,
        logdir=args.logdir,
        seed=args.seed,
        verbose=not args.quiet,
        log_freq=1000,
        device=args.device,
    )

    logger.info(f"Training on {args.env} for {args.steps} steps")
    solver = DeepQLearningSolver(config)
    policy = solver.solve(env, eval_env=eval_env)

    score = basic_evaluation(
        policy, eval_env, args.eval_episodes, config.max_episode_length
    )
    logger.warning(f"Final evaluation over {args.eval_episodes} episodes: {score:.1f}")

    if args.plot is not None:
        plot_training_curves(
            solver.history,
            title=f"Deep Q-Learning on {args.env}",
            save_path=args.plot,
            show=False,
        )

    env.close()
    eval_env.close()


if __name__ == "__main__":
    main()
