"""Tracking of consecutive refill failures."""

import logging

logger = logging.getLogger(__name__)


class ConsecutiveFailureTracker:
    """Tracker for consecutive refill failures with threshold checking."""

    def __init__(self, threshold: int, prometheus_exporter=None):
        """
        Initialize the failure tracker.

        Args:
            threshold: Number of consecutive failures after which the source counts as unhealthy
            prometheus_exporter: Optional Prometheus exporter for metrics
        """
        self.threshold = threshold
        self.consecutive_failures = 0
        self.prometheus_exporter = prometheus_exporter

    def record_failure(self) -> None:
        """Record a failed refill and increment the counter."""
        self.consecutive_failures += 1
        logger.warning(f"Consecutive refill failures: {self.consecutive_failures}/{self.threshold}")

        if self.threshold_reached():
            logger.error(
                f"Story source unavailable for {self.consecutive_failures} consecutive refills"
            )

        if self.prometheus_exporter:
            self.prometheus_exporter.set_consecutive_refill_failures(self.consecutive_failures)

    def record_success(self) -> None:
        """Record a successful refill, resetting the consecutive failure count."""
        if self.consecutive_failures > 0:
            logger.info(f"Resetting consecutive refill failure counter (was {self.consecutive_failures})")
            self.consecutive_failures = 0

            if self.prometheus_exporter:
                self.prometheus_exporter.set_consecutive_refill_failures(0)

    def threshold_reached(self) -> bool:
        """
        Check whether the failure threshold has been reached.

        Returns:
            True if there were at least ``threshold`` failures in a row
        """
        return self.consecutive_failures >= self.threshold
