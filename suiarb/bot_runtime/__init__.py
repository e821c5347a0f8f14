from .logging import setup_logger
from .loop import run_cycle, run_trading_loop
from .loop_helpers import DelayController, ImbalanceGate, TradeStatistics, bootstrap_dependencies
from .settings import AppSettings

__all__ = [
    "AppSettings",
    "DelayController",
    "ImbalanceGate",
    "TradeStatistics",
    "bootstrap_dependencies",
    "run_cycle",
    "run_trading_loop",
    "setup_logger",
]
