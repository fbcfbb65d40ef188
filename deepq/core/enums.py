"""
Replay Discipline Enumeration.

This module defines the experience replay disciplines understood by the
solver.

Discipline Overview (回放方式概述)
=================================
+------------------+--------------------------------------------------+
| Discipline       | Sampling unit / distribution                     |
+==================+==================================================+
| UNIFORM          | Single transitions, P(i) = 1/n                   |
+------------------+--------------------------------------------------+
| PRIORITIZED      | Single transitions, P(i) ∝ p_i^α                 |
+------------------+--------------------------------------------------+
| EPISODIC         | Fixed-length traces cut from whole episodes      |
+------------------+--------------------------------------------------+
"""

from enum import Enum


class ReplayDiscipline(Enum):
    """
    Available replay buffer disciplines.

    Core Idea (核心思想)
    --------------------
    三种回放方式共享同一个采样接口 (push / sample / update_priorities)，
    在训练开始时根据配置选定一次，训练循环中不再做类型判断。

    - **UNIFORM**: 均匀采样单步转移
    - **PRIORITIZED**: 按TD误差优先级采样，并返回重要性采样权重
    - **EPISODIC**: 存储完整episode，采样固定长度的轨迹片段 (用于循环网络)

    Examples
    --------
    >>> ReplayDiscipline("episodic")
    <ReplayDiscipline.EPISODIC: 'episodic'>
    >>> ReplayDiscipline.EPISODIC.samples_traces
    True
    """

    UNIFORM = "uniform"
    """Uniform sampling with replacement over stored transitions."""

    PRIORITIZED = "prioritized"
    """Proportional prioritized replay (Schaul et al., 2016)."""

    EPISODIC = "episodic"
    """Whole-episode storage with padded fixed-length trace sampling."""

    def __str__(self) -> str:
        """Return human-readable discipline name."""
        return self.value.title()

    @property
    def samples_traces(self) -> bool:
        """Check if the discipline samples time-major traces."""
        return self is ReplayDiscipline.EPISODIC
