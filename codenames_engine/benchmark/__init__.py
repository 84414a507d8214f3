# Simulation module
from .metrics import GameMetrics, TurnMetrics, BenchmarkMetrics
from .runner import GameRunner, BenchmarkRunner, RunnerConfig

__all__ = [
    "GameMetrics",
    "TurnMetrics",
    "BenchmarkMetrics",
    "GameRunner",
    "BenchmarkRunner",
    "RunnerConfig",
]
