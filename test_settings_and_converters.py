#!/usr/bin/env python3
"""
Тесты настроек, валидаторов и конвертеров
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import unittest
from decimal import Decimal

from pydantic import ValidationError as PydanticValidationError

from config.constants import ZERO_ADDRESS
from config.settings import create_test_settings, get_settings
from core.clock import ManualClock
from core.pool_registry import PoolConfig
from utils.converters import TokenConverter, format_duration
from utils.validators import (
    ValidationError, AddressValidator, AmountValidator, TimeValidator, validate_identifier
)


class TestSettings(unittest.TestCase):

    def test_test_settings_defaults(self):
        settings = create_test_settings()
        self.assertEqual(settings.database_url, "sqlite:///:memory:")
        self.assertTrue(settings.is_debug())
        self.assertFalse(settings.has_custody_key())

    def test_custody_address_is_lowercased(self):
        settings = create_test_settings(custody_address="0x" + "AB" * 20, custody_private_key="0x01")
        self.assertEqual(settings.custody_address, "0x" + "ab" * 20)
        self.assertTrue(settings.has_custody_key())

    def test_invalid_values_rejected(self):
        bad_overrides = [
            {"custody_address": "0x123"},
            {"rpc_url": "ws://localhost:8546"},
            {"default_reward_interval": 0},
            {"token_decimals": 40},
            {"retry_attempts": 0},
        ]
        for overrides in bad_overrides:
            with self.subTest(overrides=overrides):
                with self.assertRaises(PydanticValidationError):
                    create_test_settings(**overrides)

    def test_pool_config_interval_defaults_to_setting(self):
        config = PoolConfig(reward_rate=1, stake_asset_id="STK", reward_asset_id="RWD", end_time=10)
        self.assertEqual(config.reward_interval, get_settings().default_reward_interval)
        self.assertEqual(config.lock_period, 0)


class TestValidators(unittest.TestCase):

    def test_addresses(self):
        self.assertTrue(AddressValidator.is_valid_address(ZERO_ADDRESS))
        self.assertFalse(AddressValidator.is_valid_address("0xabc"))
        self.assertFalse(AddressValidator.is_valid_address(None))
        self.assertTrue(AddressValidator.is_zero_address(ZERO_ADDRESS))

    def test_amounts(self):
        self.assertEqual(AmountValidator.validate_units(2 ** 255), 2 ** 255)
        self.assertEqual(AmountValidator.validate_units(0), 0)
        for bad in (-1, 1.0, "5", True):
            with self.subTest(amount=bad):
                with self.assertRaises(ValidationError):
                    AmountValidator.validate_units(bad)
        with self.assertRaises(ValidationError):
            AmountValidator.validate_units(0, allow_zero=False)

    def test_durations_and_identifiers(self):
        self.assertEqual(TimeValidator.validate_duration(0), 0)
        with self.assertRaises(ValidationError):
            TimeValidator.validate_duration(0, allow_zero=False)
        with self.assertRaises(ValidationError):
            TimeValidator.validate_timestamp(-5)
        with self.assertRaises(ValidationError):
            validate_identifier("   ", "asset")


class TestConverters(unittest.TestCase):

    def test_from_units_and_format(self):
        self.assertEqual(TokenConverter.from_units(1_500_000, 6), Decimal("1.5"))
        self.assertEqual(TokenConverter.format_units(1234_5678, 4, symbol="STK"), "1,234.5678 STK")

    def test_format_duration(self):
        self.assertEqual(format_duration(90061), "1d 1h 1m 1s")
        self.assertEqual(format_duration(3600), "1h")
        self.assertEqual(format_duration(0), "0s")


class TestManualClock(unittest.TestCase):

    def test_set_and_advance(self):
        clock = ManualClock(100)
        self.assertEqual(clock.advance(50), 150)
        clock.set(10)
        self.assertEqual(clock.now(), 10)
        with self.assertRaises(ValueError):
            clock.advance(-1)


if __name__ == "__main__":
    unittest.main()
