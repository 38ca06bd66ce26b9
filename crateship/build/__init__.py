"""Local compilation: compiler driver, Android helpers, target-dir pruning."""

from .android import AndroidEnvironment
from .cleanup import prune
from .compiler import CargoCompiler, CompilerDriver

__all__ = [
    "AndroidEnvironment",
    "CargoCompiler",
    "CompilerDriver",
    "prune",
]
