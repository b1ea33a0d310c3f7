"""
Failure injector trigger condition
"""

import unittest

from threepc.const3PC import COMMIT, PRECOMMIT, WAITING
from threepc.injector import FailureInjector


class TestFailureInjector(unittest.TestCase):

    def setUp(self):
        super().setUp()
        self.sleeps = []
        self.injector = FailureInjector(0, PRECOMMIT, 2.5,
                                        sleep=self.sleeps.append)

    def test_stalls_in_designated_state(self):
        self.assertTrue(self.injector.check(0, PRECOMMIT))
        self.assertEqual(self.sleeps, [2.5])

    def test_fires_only_once(self):
        self.injector.check(0, PRECOMMIT)
        self.assertFalse(self.injector.check(0, PRECOMMIT))
        self.assertEqual(self.sleeps, [2.5])

    def test_ignores_other_rank_and_state(self):
        self.assertFalse(self.injector.check(1, PRECOMMIT))
        self.assertFalse(self.injector.check(0, WAITING))
        self.assertEqual(self.sleeps, [])
        self.assertFalse(self.injector.fired)

    def test_terminal_state_rejected(self):
        with self.assertRaises(ValueError):
            FailureInjector(0, COMMIT, 1)

    def test_unknown_state_rejected(self):
        with self.assertRaises(ValueError):
            FailureInjector(0, 'CRASHED', 1)


if __name__ == '__main__':
    unittest.main()
