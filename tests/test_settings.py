from __future__ import annotations

import os
import unittest
from unittest.mock import patch

from suiarb.bot_runtime.settings import AppSettings, to_bool, to_float, to_int, to_list
from suiarb.trading import SUI, USDC, USDT, ConfigurationError

REQUIRED_ENV = {
    "SUI_RPC_URL": "https://fullnode.testnet.sui.io:443",
    "CETUS_SIGNER_ADDRESS": "0xaa",
    "RAMM_SIGNER_ADDRESS": "0xbb",
    "SIGNER_FACTORY": "signers.local:build_signer",
    "RAMM_PACKAGE_ID": "0xramm",
    "RAMM_AGGREGATOR_IDS": "0xa0, 0xa1, 0xa2",
}


class ConversionTests(unittest.TestCase):
    def test_unparseable_values_fall_back_to_defaults(self) -> None:
        self.assertEqual(to_int("abc", 5), 5)
        self.assertEqual(to_int("7.9", 5), 7)
        self.assertEqual(to_float("", 1.5), 1.5)
        self.assertTrue(to_bool("YES", False))
        self.assertFalse(to_bool("nope", True))
        self.assertTrue(to_bool(None, True))

    def test_list_drops_blank_items(self) -> None:
        self.assertEqual(to_list(" a, ,b ,"), ("a", "b"))
        self.assertEqual(to_list(None), ())


class AppSettingsTests(unittest.TestCase):
    def test_defaults(self) -> None:
        with patch.dict(os.environ, REQUIRED_ENV, clear=True):
            settings = AppSettings.from_env()

        settings.validate()
        self.assertTrue(settings.dry_run)
        self.assertEqual(settings.base_delay_seconds, 1.0)
        self.assertEqual(settings.max_delay_seconds, 30.0)
        self.assertEqual(settings.backoff_factor, 10.0)
        self.assertEqual(settings.imbalance_threshold, 1.2)
        self.assertEqual(settings.ramm_asset_types, (SUI.coin_type, USDC.coin_type, USDT.coin_type))
        self.assertEqual(settings.ramm_aggregator_ids, ("0xa0", "0xa1", "0xa2"))
        self.assertEqual(settings.default_amounts[SUI.coin_type], 0.05)
        self.assertEqual(settings.log_level, "INFO")

    def test_values_are_clamped(self) -> None:
        env = {
            **REQUIRED_ENV,
            "BASE_DELAY_SECONDS": "0",
            "MAX_DELAY_SECONDS": "-3",
            "BACKOFF_FACTOR": "0.5",
            "SWAP_SLIPPAGE": "2",
            "IMBALANCE_THRESHOLD": "0.4",
            "LOG_LEVEL": "chatty",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = AppSettings.from_env()

        self.assertEqual(settings.base_delay_seconds, 0.05)
        self.assertEqual(settings.max_delay_seconds, 0.05)
        self.assertEqual(settings.backoff_factor, 1.0)
        self.assertEqual(settings.swap_slippage, 0.5)
        self.assertEqual(settings.imbalance_threshold, 1.0)
        self.assertEqual(settings.log_level, "INFO")

    def test_missing_required_settings_are_reported_together(self) -> None:
        with patch.dict(os.environ, {"RAMM_AGGREGATOR_IDS": "0xa0,0xa1,0xa2"}, clear=True):
            settings = AppSettings.from_env()

        with self.assertRaises(ConfigurationError) as context:
            settings.validate()

        message = str(context.exception)
        for name in ("CETUS_SIGNER_ADDRESS", "RAMM_SIGNER_ADDRESS", "SIGNER_FACTORY", "RAMM_PACKAGE_ID"):
            self.assertIn(name, message)
        self.assertNotIn("SUI_RPC_URL", message)

    def test_aggregator_count_must_match_assets(self) -> None:
        with patch.dict(os.environ, {**REQUIRED_ENV, "RAMM_AGGREGATOR_IDS": "0xa0"}, clear=True):
            settings = AppSettings.from_env()

        with self.assertRaises(ConfigurationError):
            settings.validate()

    def test_zero_or_negative_trade_amounts_are_rejected(self) -> None:
        env = {**REQUIRED_ENV, "DEFAULT_AMOUNT_USDC": "0", "DEFAULT_AMOUNT_USDT": "-1"}
        with patch.dict(os.environ, env, clear=True):
            settings = AppSettings.from_env()

        with self.assertRaises(ConfigurationError) as context:
            settings.validate()

        message = str(context.exception)
        self.assertIn("DEFAULT_AMOUNT_USDC", message)
        self.assertIn("DEFAULT_AMOUNT_USDT", message)
        self.assertNotIn("DEFAULT_AMOUNT_SUI", message)

    def test_trend_windows_checked_only_when_enabled(self) -> None:
        env = {**REQUIRED_ENV, "TREND_SHORT_WINDOW": "40", "TREND_LONG_WINDOW": "30"}
        with patch.dict(os.environ, env, clear=True):
            AppSettings.from_env().validate()

        with patch.dict(os.environ, {**env, "TREND_ENABLED": "true"}, clear=True):
            settings = AppSettings.from_env()
        with self.assertRaises(ConfigurationError):
            settings.validate()


if __name__ == "__main__":
    unittest.main()
