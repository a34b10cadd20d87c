"""Tests for the consecutive failure tracker."""

import unittest
from unittest.mock import MagicMock

from hn_duel.supply.error_tracker import ConsecutiveFailureTracker


class TestConsecutiveFailureTracker(unittest.TestCase):
    """Test cases for the ConsecutiveFailureTracker class."""

    def setUp(self):
        """Set up test environment."""
        self.threshold = 3
        self.exporter = MagicMock()
        self.tracker = ConsecutiveFailureTracker(self.threshold, self.exporter)

    def test_record_failure(self):
        self.tracker.record_failure()
        self.assertEqual(self.tracker.consecutive_failures, 1)

        self.tracker.record_failure()
        self.assertEqual(self.tracker.consecutive_failures, 2)
        self.exporter.set_consecutive_refill_failures.assert_called_with(2)

    def test_record_success(self):
        """Test recording a success resets the failure counter."""
        self.tracker.record_failure()
        self.tracker.record_failure()

        self.tracker.record_success()

        self.assertEqual(self.tracker.consecutive_failures, 0)
        self.exporter.set_consecutive_refill_failures.assert_called_with(0)

    def test_threshold_reached(self):
        for _ in range(self.threshold - 1):
            self.tracker.record_failure()
        self.assertFalse(self.tracker.threshold_reached())

        self.tracker.record_failure()
        self.assertTrue(self.tracker.threshold_reached())

        self.tracker.record_success()
        self.assertFalse(self.tracker.threshold_reached())


if __name__ == "__main__":
    unittest.main()
