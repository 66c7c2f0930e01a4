#!/usr/bin/env python3
"""
Тесты claim_all, инварианта total_deposited и параллельной работы
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import random
import threading
import unittest

from config.constants import SECONDS_PER_DAY, SECONDS_PER_HOUR
from core.accounting_engine import AccountingEngine
from core.clock import ManualClock
from core.custody import InMemoryCustody
from core.exceptions import StakingError, TransferFailed
from core.pool_registry import PoolConfig

T0 = 1_700_000_000


def make_config(reward_asset_id="RWD", **overrides) -> PoolConfig:
    params = {
        "reward_rate": 10,
        "stake_asset_id": "STK",
        "reward_asset_id": reward_asset_id,
        "reward_interval": SECONDS_PER_DAY,
        "lock_period": SECONDS_PER_HOUR,
        "end_time": T0 + 365 * SECONDS_PER_DAY,
    }
    params.update(overrides)
    return PoolConfig(**params)


class TestClaimAll(unittest.TestCase):

    def setUp(self):
        self.clock = ManualClock(T0)
        self.custody = InMemoryCustody()
        self.custody.mint("STK", "alice", 10_000)
        self.custody.fund_reserve("RWD", 1_000_000)
        self.engine = AccountingEngine(self.custody, clock=self.clock)

        self.first = self.engine.create_pool(make_config())
        # Бюджет наград второго пула не пополнен
        self.unfunded = self.engine.create_pool(make_config(reward_asset_id="EMPTY"))
        self.third = self.engine.create_pool(make_config(reward_rate=20))
        self.untouched = self.engine.create_pool(make_config())

        for pool_id in (self.first, self.unfunded, self.third):
            self.engine.stake(pool_id, "alice", 100)
        self.clock.advance(SECONDS_PER_DAY)

    def test_partial_failure_does_not_block_other_pools(self):
        result = self.engine.claim_all("alice")

        self.assertFalse(result.ok)
        self.assertEqual([o.pool_id for o in result.outcomes], [0, 1, 2, 3])
        self.assertEqual([o.pool_id for o in result.failed], [self.unfunded])
        self.assertIsInstance(result.failed[0].error, TransferFailed)
        self.assertEqual([o.pool_id for o in result.claimed], [self.first, self.third])
        self.assertEqual(result.total_claimed, 100 * 10 + 100 * 20)

        self.assertEqual(self.engine.payout(self.first, "alice"), 0)
        self.assertEqual(self.engine.payout(self.third, "alice"), 0)
        self.assertEqual(self.engine.payout(self.unfunded, "alice"), 100 * 10)
        self.assertEqual(self.custody.balance_of("RWD", "alice"), 3000)

    def test_all_pools_succeed(self):
        self.custody.fund_reserve("EMPTY", 10_000)

        result = self.engine.claim_all("alice")

        self.assertTrue(result.ok)
        self.assertEqual(result.total_claimed, 1000 + 1000 + 2000)
        self.assertEqual(self.engine.pending_all("alice"), {0: 0, 1: 0, 2: 0})

    def test_depositor_without_positions(self):
        result = self.engine.claim_all("bob")
        self.assertTrue(result.ok)
        self.assertEqual(result.total_claimed, 0)
        self.assertEqual(result.claimed, [])


class TestLedgerInvariants(unittest.TestCase):
    """Случайные чередования операций разных пользователей"""

    USERS = [f"user{i}" for i in range(5)]

    def setUp(self):
        self.clock = ManualClock(T0)
        self.custody = InMemoryCustody()
        for user in self.USERS:
            self.custody.mint("STK", user, 1_000_000)
        self.custody.fund_reserve("RWD", 10 ** 12)
        self.engine = AccountingEngine(self.custody, clock=self.clock)
        self.pools = [
            self.engine.create_pool(make_config()),
            self.engine.create_pool(make_config(reward_rate=3, lock_period=0)),
        ]

    def test_randomized_interleavings_keep_totals(self):
        rng = random.Random(20241018)
        expected = {(p, u): 0 for p in self.pools for u in self.USERS}
        claimed = {(p, u): 0 for p in self.pools for u in self.USERS}

        for _ in range(400):
            pool_id = rng.choice(self.pools)
            user = rng.choice(self.USERS)
            action = rng.choice(["stake", "unstake", "claim", "wait"])

            try:
                if action == "stake":
                    amount = rng.randint(1, 500)
                    self.engine.stake(pool_id, user, amount)
                    expected[(pool_id, user)] += amount
                elif action == "unstake":
                    amount = rng.randint(1, 500)
                    self.engine.unstake(pool_id, user, amount)
                    expected[(pool_id, user)] -= amount
                elif action == "claim":
                    self.engine.claim(pool_id, user)
                else:
                    self.clock.advance(rng.randint(0, 2 * SECONDS_PER_HOUR))
            except StakingError:
                pass

            self.assertTrue(self.engine.check_invariants())
            position = self.engine.get_position(pool_id, user)
            if position is not None:
                self.assertEqual(position.deposited_amount, expected[(pool_id, user)])
                self.assertGreaterEqual(position.deposited_amount, 0)
                self.assertGreaterEqual(position.total_claimed, claimed[(pool_id, user)])
                claimed[(pool_id, user)] = position.total_claimed

        distributed = sum(self.engine.get_pool(p).total_reward_distributed for p in self.pools)
        self.assertEqual(distributed, sum(claimed.values()))


class TestConcurrency(unittest.TestCase):

    def setUp(self):
        self.clock = ManualClock(T0)
        self.custody = InMemoryCustody()
        self.custody.fund_reserve("RWD", 10 ** 12)
        self.engine = AccountingEngine(self.custody, clock=self.clock)
        self.pool_id = self.engine.create_pool(make_config(lock_period=0))

    def _run(self, workers):
        threads = [threading.Thread(target=w) for w in workers]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

    def test_distinct_users_in_parallel(self):
        users = [f"user{i}" for i in range(8)]
        for user in users:
            self.custody.mint("STK", user, 1000)

        def worker(user):
            def run():
                for _ in range(20):
                    self.engine.stake(self.pool_id, user, 5)
                    self.engine.claim(self.pool_id, user)
                for _ in range(10):
                    self.engine.unstake(self.pool_id, user, 5)
            return run

        self._run([worker(user) for user in users])

        self.assertEqual(self.engine.get_pool(self.pool_id).total_deposited, 8 * 50)
        self.assertTrue(self.engine.check_invariants())

    def test_same_user_is_serialized(self):
        self.custody.mint("STK", "alice", 10_000)

        def worker():
            for _ in range(50):
                self.engine.stake(self.pool_id, "alice", 3)

        self._run([worker for _ in range(4)])

        position = self.engine.get_position(self.pool_id, "alice")
        self.assertEqual(position.deposited_amount, 600)
        self.assertEqual(self.custody.balance_of("STK", "alice"), 10_000 - 600)
        self.assertTrue(self.engine.check_invariants())


if __name__ == "__main__":
    unittest.main()
