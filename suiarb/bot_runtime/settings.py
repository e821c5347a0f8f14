from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from suiarb.trading import SUI, USDC, USDT, ConfigurationError

DEFAULT_CETUS_POOL = "0xcf994611fd4c48e277ce3ffd4d4364c914af2c3cbb05f7bf6facd371de688630"
DEFAULT_RAMM_POOL = "0x4ee5425220bc12f2ff633d37b1dc1eb56cc8fd96b1c72c49bd4ce6e895bd6cd7"
DEFAULT_CETUS_INTEGRATE_PACKAGE = "0x996c4d9480708fb8b92aa7acf819fb0497b5ec8e65ba06601cae2fb6db3312c3"
DEFAULT_CETUS_GLOBAL_CONFIG = "0xdaa46292632c3c4d8f31f23ea0f9b36a28ff3677e9684980e4438403a67a3d8f"
MIST_PER_SUI = 10**9


def to_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def to_int(value: Any, default: int) -> int:
    try:
        if value is None or str(value).strip() == "":
            return default
        return int(float(str(value).strip()))
    except (TypeError, ValueError):
        return default


def to_float(value: Any, default: float) -> float:
    try:
        if value is None or str(value).strip() == "":
            return default
        return float(str(value).strip())
    except (TypeError, ValueError):
        return default


def to_list(value: Any) -> tuple[str, ...]:
    return tuple(item.strip() for item in str(value or "").split(",") if item.strip())


def normalize_log_level(value: str) -> str:
    level = (value or "").strip().upper()
    if level in {"DEBUG", "INFO", "WARNING", "ERROR"}:
        return level
    return "INFO"


@dataclass(slots=True, frozen=True)
class AppSettings:
    sui_rpc_url: str
    rpc_timeout_seconds: float
    log_level: str
    run_duration_seconds: float
    base_delay_seconds: float
    max_delay_seconds: float
    backoff_factor: float
    arbitrage_relative_limit: float
    ride_the_trend_limit: float
    trend_enabled: bool
    trend_short_window: int
    trend_long_window: int
    trend_cooldown_rounds: int
    imbalance_threshold: float
    imbalance_cache_seconds: float
    gas_budget_mist: int
    swap_slippage: float
    dry_run: bool
    default_amount_sui: float
    default_amount_usdc: float
    default_amount_usdt: float
    cetus_pool_address: str
    cetus_integrate_package: str
    cetus_global_config_id: str
    ramm_pool_address: str
    ramm_package_id: str
    ramm_asset_types: tuple[str, ...]
    ramm_aggregator_ids: tuple[str, ...]
    cetus_signer_address: str
    ramm_signer_address: str
    signer_factory: str

    @property
    def default_amounts(self) -> dict[str, float]:
        return {
            SUI.coin_type: self.default_amount_sui,
            USDC.coin_type: self.default_amount_usdc,
            USDT.coin_type: self.default_amount_usdt,
        }

    def validate(self) -> None:
        missing = [
            name
            for name, value in (
                ("SUI_RPC_URL", self.sui_rpc_url),
                ("CETUS_SIGNER_ADDRESS", self.cetus_signer_address),
                ("RAMM_SIGNER_ADDRESS", self.ramm_signer_address),
                ("SIGNER_FACTORY", self.signer_factory),
                ("RAMM_PACKAGE_ID", self.ramm_package_id),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")
        if len(self.ramm_aggregator_ids) != len(self.ramm_asset_types):
            raise ConfigurationError(
                "RAMM_AGGREGATOR_IDS must list one aggregator per entry of RAMM_ASSET_TYPES "
                f"({len(self.ramm_aggregator_ids)} != {len(self.ramm_asset_types)})."
            )
        non_positive = [
            name
            for name, value in (
                ("DEFAULT_AMOUNT_SUI", self.default_amount_sui),
                ("DEFAULT_AMOUNT_USDC", self.default_amount_usdc),
                ("DEFAULT_AMOUNT_USDT", self.default_amount_usdt),
            )
            if value <= 0
        ]
        if non_positive:
            raise ConfigurationError(f"Trade amounts must be positive: {', '.join(non_positive)}")
        if self.trend_enabled and not 0 < self.trend_short_window < self.trend_long_window:
            raise ConfigurationError("TREND_SHORT_WINDOW must be positive and below TREND_LONG_WINDOW.")

    @classmethod
    def from_env(cls) -> "AppSettings":
        base_delay_seconds = max(0.05, to_float(os.getenv("BASE_DELAY_SECONDS"), 1.0))
        return cls(
            sui_rpc_url=os.getenv("SUI_RPC_URL", "https://fullnode.mainnet.sui.io:443").strip(),
            rpc_timeout_seconds=max(1.0, to_float(os.getenv("RPC_TIMEOUT_SECONDS"), 8.0)),
            log_level=normalize_log_level(os.getenv("LOG_LEVEL", "INFO")),
            run_duration_seconds=max(0.0, to_float(os.getenv("RUN_DURATION_SECONDS"), 3 * 3600.0)),
            base_delay_seconds=base_delay_seconds,
            max_delay_seconds=max(base_delay_seconds, to_float(os.getenv("MAX_DELAY_SECONDS"), 30.0)),
            backoff_factor=max(1.0, to_float(os.getenv("BACKOFF_FACTOR"), 10.0)),
            arbitrage_relative_limit=max(1.0, to_float(os.getenv("ARBITRAGE_RELATIVE_LIMIT"), 1.0005)),
            ride_the_trend_limit=max(1.0, to_float(os.getenv("RIDE_THE_TREND_LIMIT"), 1.000005)),
            trend_enabled=to_bool(os.getenv("TREND_ENABLED"), False),
            trend_short_window=max(1, to_int(os.getenv("TREND_SHORT_WINDOW"), 5)),
            trend_long_window=max(2, to_int(os.getenv("TREND_LONG_WINDOW"), 30)),
            trend_cooldown_rounds=max(0, to_int(os.getenv("TREND_COOLDOWN_ROUNDS"), 10)),
            imbalance_threshold=max(1.0, to_float(os.getenv("IMBALANCE_THRESHOLD"), 1.2)),
            imbalance_cache_seconds=max(0.0, to_float(os.getenv("IMBALANCE_CACHE_SECONDS"), 30.0)),
            gas_budget_mist=max(1, to_int(os.getenv("GAS_BUDGET_MIST"), MIST_PER_SUI // 2)),
            swap_slippage=min(0.5, max(0.0, to_float(os.getenv("SWAP_SLIPPAGE"), 0.01))),
            dry_run=to_bool(os.getenv("DRY_RUN"), True),
            default_amount_sui=max(0.0, to_float(os.getenv("DEFAULT_AMOUNT_SUI"), 0.05)),
            default_amount_usdc=max(0.0, to_float(os.getenv("DEFAULT_AMOUNT_USDC"), 0.1)),
            default_amount_usdt=max(0.0, to_float(os.getenv("DEFAULT_AMOUNT_USDT"), 0.1)),
            cetus_pool_address=os.getenv("CETUS_POOL_ADDRESS", DEFAULT_CETUS_POOL).strip(),
            cetus_integrate_package=os.getenv("CETUS_INTEGRATE_PACKAGE", DEFAULT_CETUS_INTEGRATE_PACKAGE).strip(),
            cetus_global_config_id=os.getenv("CETUS_GLOBAL_CONFIG_ID", DEFAULT_CETUS_GLOBAL_CONFIG).strip(),
            ramm_pool_address=os.getenv("RAMM_POOL_ADDRESS", DEFAULT_RAMM_POOL).strip(),
            ramm_package_id=os.getenv("RAMM_PACKAGE_ID", "").strip(),
            ramm_asset_types=to_list(
                os.getenv("RAMM_ASSET_TYPES", ",".join([SUI.coin_type, USDC.coin_type, USDT.coin_type]))
            ),
            ramm_aggregator_ids=to_list(os.getenv("RAMM_AGGREGATOR_IDS")),
            cetus_signer_address=os.getenv("CETUS_SIGNER_ADDRESS", "").strip(),
            ramm_signer_address=os.getenv("RAMM_SIGNER_ADDRESS", "").strip(),
            signer_factory=os.getenv("SIGNER_FACTORY", "").strip(),
        )
