#!/usr/bin/env python3
"""
Тесты реестра пулов и реестра позиций
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import threading
import unittest

from config.constants import SECONDS_PER_DAY, NEVER_CLAIMED
from core.exceptions import PoolNotFound, InvalidConfig
from core.pool_registry import PoolConfig, PoolRegistry
from core.user_ledger import UserLedger, UserPosition

T0 = 1_700_000_000


def make_config(**overrides) -> PoolConfig:
    params = {
        "reward_rate": 100,
        "stake_asset_id": "STK",
        "reward_asset_id": "RWD",
        "reward_interval": SECONDS_PER_DAY,
        "lock_period": SECONDS_PER_DAY,
        "end_time": T0 + 30 * SECONDS_PER_DAY,
    }
    params.update(overrides)
    return PoolConfig(**params)


class TestPoolRegistry(unittest.TestCase):

    def setUp(self):
        self.registry = PoolRegistry()

    def test_create_pool_appends_in_order(self):
        first = self.registry.create_pool(make_config(), T0)
        second = self.registry.create_pool(make_config(reward_rate=5), T0 + 10)

        self.assertEqual((first, second), (0, 1))
        self.assertEqual(self.registry.pool_count(), 2)
        self.assertEqual(self.registry.pool_ids(), [0, 1])

        pool = self.registry.get_pool(second)
        self.assertEqual(pool.start_time, T0 + 10)
        self.assertEqual(pool.reward_rate, 5)
        self.assertEqual(pool.total_deposited, 0)
        self.assertEqual(pool.total_reward_distributed, 0)

    def test_zero_interval_rejected(self):
        with self.assertRaises(InvalidConfig):
            self.registry.create_pool(make_config(reward_interval=0), T0)
        self.assertEqual(self.registry.pool_count(), 0)

    def test_malformed_configs_rejected(self):
        bad_configs = [
            make_config(reward_rate=-1),
            make_config(lock_period=-1),
            make_config(stake_asset_id=""),
            make_config(reward_asset_id=None),
            make_config(reward_interval=1.5),
            make_config(end_time=T0 - 1),
        ]
        for config in bad_configs:
            with self.subTest(config=config):
                with self.assertRaises(InvalidConfig):
                    self.registry.create_pool(config, T0)

    def test_update_pool_keeps_counters_and_start(self):
        pool_id = self.registry.create_pool(make_config(), T0)
        self.registry.add_deposit(pool_id, 500)
        self.registry.add_reward_distributed(pool_id, 70)

        pool = self.registry.update_pool(pool_id, make_config(
            reward_rate=1,
            stake_asset_id="OTHER",
            reward_asset_id="RWD2",
            reward_interval=3600,
            lock_period=0,
            end_time=T0 + 60 * SECONDS_PER_DAY
        ))

        self.assertEqual(pool.reward_rate, 1)
        self.assertEqual(pool.reward_asset_id, "RWD2")
        self.assertEqual(pool.reward_interval, 3600)
        self.assertEqual(pool.lock_period, 0)
        self.assertEqual(pool.end_time, T0 + 60 * SECONDS_PER_DAY)
        self.assertEqual(pool.stake_asset_id, "STK")
        self.assertEqual(pool.start_time, T0)
        self.assertEqual(pool.total_deposited, 500)
        self.assertEqual(pool.total_reward_distributed, 70)

    def test_update_unknown_pool(self):
        with self.assertRaises(PoolNotFound):
            self.registry.update_pool(3, make_config())

    def test_update_rejects_zero_interval(self):
        pool_id = self.registry.create_pool(make_config(), T0)
        with self.assertRaises(InvalidConfig):
            self.registry.update_pool(pool_id, make_config(reward_interval=0))
        self.assertEqual(self.registry.get_pool(pool_id).reward_interval, SECONDS_PER_DAY)

    def test_get_pool_invalid_ids(self):
        self.registry.create_pool(make_config(), T0)
        for pool_id in (-1, 1, "0", True, None):
            with self.subTest(pool_id=pool_id):
                with self.assertRaises(PoolNotFound):
                    self.registry.get_pool(pool_id)

    def test_stake_deadline(self):
        pool_id = self.registry.create_pool(make_config(lock_period=2 * SECONDS_PER_DAY), T0)
        self.assertEqual(self.registry.get_pool(pool_id).stake_deadline, T0 + 28 * SECONDS_PER_DAY)

    def test_concurrent_counter_updates(self):
        pool_id = self.registry.create_pool(make_config(), T0)

        def worker():
            for _ in range(1000):
                self.registry.add_deposit(pool_id, 1)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(self.registry.get_pool(pool_id).total_deposited, 8000)


class TestUserLedger(unittest.TestCase):

    def setUp(self):
        self.ledger = UserLedger()

    def test_get_or_create_is_keyed_by_pool_and_depositor(self):
        a0 = self.ledger.get_or_create(0, "alice")
        a1 = self.ledger.get_or_create(1, "alice")
        again = self.ledger.get_or_create(0, "alice")

        self.assertIs(a0, again)
        self.assertIsNot(a0, a1)
        self.assertEqual(len(self.ledger), 2)
        self.assertIsNone(self.ledger.get(0, "bob"))

    def test_new_position_defaults(self):
        position = self.ledger.get_or_create(0, "alice")
        self.assertEqual(position, UserPosition(0, NEVER_CLAIMED, 0, 0))

    def test_views(self):
        self.ledger.get_or_create(0, "alice").deposited_amount = 10
        self.ledger.get_or_create(0, "bob").deposited_amount = 5
        self.ledger.get_or_create(1, "alice").deposited_amount = 7

        self.assertEqual(set(self.ledger.positions_for_pool(0)), {"alice", "bob"})
        self.assertEqual(set(self.ledger.positions_for_depositor("alice")), {0, 1})
        self.assertEqual(self.ledger.total_for_pool(0), 15)
        self.assertEqual(sorted(self.ledger), [(0, "alice"), (0, "bob"), (1, "alice")])

    def test_key_lock_is_reentrant_and_shared(self):
        lock = self.ledger.key_lock(0, "alice")
        self.assertIs(lock, self.ledger.key_lock(0, "alice"))
        self.assertIsNot(lock, self.ledger.key_lock(0, "bob"))
        with lock:
            with self.ledger.key_lock(0, "alice"):
                pass


if __name__ == "__main__":
    unittest.main()
