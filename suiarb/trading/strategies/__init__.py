from .arbitrage import Arbitrage, Hop
from .base import Strategy
from .trend import RideTheTrend

__all__ = [
    "Arbitrage",
    "Hop",
    "RideTheTrend",
    "Strategy",
]
