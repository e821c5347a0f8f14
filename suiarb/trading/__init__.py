from .coins import DEFAULT_COINS, SUI, USDC, USDT, WBTC, Coin, CoinRegistry, is_native_coin, normalize_coin_type
from .engine import TradingBot
from .errors import (
    ConfigurationError,
    DataUnavailableError,
    GatingBlockedError,
    InsufficientBalanceError,
    SubmissionError,
    SubmissionFailedError,
    SubmissionRejectedError,
)
from .executors import BuiltSwap, DryRunSwapExecutor, LiveSwapExecutor, SwapExecutor, SwapVenue
from .payment import PaymentPlan, PaymentSelector, select_payment
from .strategies import Arbitrage, Hop, RideTheTrend, Strategy
from .transaction import Argument, TransactionBlock
from .types import (
    DataPoint,
    DataType,
    OwnedCoin,
    PriceSource,
    SubmissionResult,
    TradeOrder,
    TransactionSigner,
)

__all__ = [
    "Arbitrage",
    "Argument",
    "BuiltSwap",
    "Coin",
    "CoinRegistry",
    "ConfigurationError",
    "DEFAULT_COINS",
    "DataPoint",
    "DataType",
    "DataUnavailableError",
    "DryRunSwapExecutor",
    "GatingBlockedError",
    "Hop",
    "InsufficientBalanceError",
    "LiveSwapExecutor",
    "OwnedCoin",
    "PaymentPlan",
    "PaymentSelector",
    "PriceSource",
    "RideTheTrend",
    "SUI",
    "Strategy",
    "SubmissionError",
    "SubmissionFailedError",
    "SubmissionRejectedError",
    "SubmissionResult",
    "SwapExecutor",
    "SwapVenue",
    "TradeOrder",
    "TradingBot",
    "TransactionBlock",
    "TransactionSigner",
    "USDC",
    "USDT",
    "WBTC",
    "is_native_coin",
    "normalize_coin_type",
    "select_payment",
]
