"""Prometheus metrics for monitoring Hacker News Duel."""

import logging
import time
from typing import Optional

from prometheus_client import Counter, Gauge, Histogram, start_http_server

logger = logging.getLogger(__name__)

# Define metrics
REFILLS = Counter(
    "hn_duel_refills_total",
    "Number of story buffer refills performed",
    ["outcome"],
)

STORIES_ADMITTED = Counter(
    "hn_duel_stories_admitted_total",
    "Total number of eligible stories admitted into the buffer",
)

SOURCE_ERRORS = Counter(
    "hn_duel_source_errors_total",
    "Number of upstream API errors encountered",
    ["operation"],
)

GUESSES = Counter(
    "hn_duel_guesses_total",
    "Number of guesses evaluated",
    ["result"],
)

BUFFER_SIZE = Gauge(
    "hn_duel_buffer_size",
    "Number of stories waiting in the buffer",
)

CONSECUTIVE_REFILL_FAILURES = Gauge(
    "hn_duel_consecutive_refill_failures",
    "Number of consecutive failed refills",
)

REQUEST_DURATION = Histogram(
    "hn_duel_request_duration_seconds",
    "Duration of upstream API requests in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
)


class PrometheusExporter:
    """Prometheus metrics exporter for Hacker News Duel."""

    def __init__(self, port: int = 8000):
        """
        Initialize the Prometheus exporter.

        Args:
            port: Port to expose metrics on
        """
        self.port = port
        self.server_started = False

    def start_server(self) -> None:
        """Start the Prometheus metrics server."""
        if not self.server_started:
            try:
                start_http_server(self.port)
                self.server_started = True
                logger.info(f"Started Prometheus metrics server on port {self.port}")
            except OSError as e:
                logger.error(f"Failed to start Prometheus metrics server: {str(e)}")

    def record_refill(self, outcome: str, admitted: int = 0) -> None:
        """
        Record a completed refill.

        Args:
            outcome: Refill outcome ('ok', 'empty', 'failed')
            admitted: Number of stories admitted by the refill
        """
        REFILLS.labels(outcome=outcome).inc()
        if admitted:
            STORIES_ADMITTED.inc(admitted)

    def record_source_error(self, operation: str) -> None:
        """
        Record an upstream API error.

        Args:
            operation: Failing operation ('list', 'item')
        """
        SOURCE_ERRORS.labels(operation=operation).inc()

    def record_guess(self, correct: bool) -> None:
        """Record an evaluated guess."""
        GUESSES.labels(result="correct" if correct else "incorrect").inc()

    def set_buffer_size(self, size: int) -> None:
        """Set the buffer size gauge."""
        BUFFER_SIZE.set(size)

    def set_consecutive_refill_failures(self, count: int) -> None:
        """Set the consecutive refill failures gauge."""
        CONSECUTIVE_REFILL_FAILURES.set(count)

    def time_request(self) -> "RequestTimer":
        """
        Create a context manager for timing API requests.

        Returns:
            RequestTimer context manager
        """
        return RequestTimer()


class RequestTimer:
    """Context manager for timing API requests."""

    def __init__(self):
        self.start_time: Optional[float] = None

    def __enter__(self) -> "RequestTimer":
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.start_time is not None:
            REQUEST_DURATION.observe(time.time() - self.start_time)
