"""Card counting systems."""

from bjsim.counting.base import CountingSystem
from bjsim.counting.hilo import HiLoSystem

__all__ = [
    "CountingSystem",
    "HiLoSystem",
]
