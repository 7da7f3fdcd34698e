"""
Environment Layer - Gymnasium 兼容环境

Modules:
    heartfive_env: 主环境类
    observation: 观测空间构建
"""
from .heartfive_env import (
    HeartFiveEnv,
    make_env,
)

from .observation import (
    Observation,
    ObservationBuilder,
)

__all__ = [
    # env
    "HeartFiveEnv",
    "make_env",
    # observation
    "Observation",
    "ObservationBuilder",
]
