"""Tests for the monitoring module."""

import unittest
from unittest.mock import patch

from hn_duel.monitoring.metrics import PrometheusExporter, RequestTimer


class TestPrometheusExporter(unittest.TestCase):
    """Test cases for the PrometheusExporter class."""

    def setUp(self):
        """Set up test environment."""
        self.exporter = PrometheusExporter()

    def test_init(self):
        self.assertEqual(self.exporter.port, 8000)
        self.assertFalse(self.exporter.server_started)

    def test_start_server(self):
        """Test starting the Prometheus server."""
        with patch("hn_duel.monitoring.metrics.start_http_server") as mock_start_server:
            self.exporter.start_server()
            self.exporter.start_server()

            mock_start_server.assert_called_once_with(8000)
            self.assertTrue(self.exporter.server_started)

    def test_start_server_port_in_use(self):
        """Test that a busy port is logged, not raised."""
        with patch(
            "hn_duel.monitoring.metrics.start_http_server",
            side_effect=OSError("Address already in use"),
        ):
            self.exporter.start_server()

        self.assertFalse(self.exporter.server_started)

    def test_record_refill(self):
        with patch("hn_duel.monitoring.metrics.REFILLS") as mock_refills, \
                patch("hn_duel.monitoring.metrics.STORIES_ADMITTED") as mock_admitted:
            self.exporter.record_refill("ok", 12)

            mock_refills.labels.assert_called_once_with(outcome="ok")
            mock_refills.labels.return_value.inc.assert_called_once()
            mock_admitted.inc.assert_called_once_with(12)

    def test_record_failed_refill_admits_nothing(self):
        with patch("hn_duel.monitoring.metrics.REFILLS") as mock_refills, \
                patch("hn_duel.monitoring.metrics.STORIES_ADMITTED") as mock_admitted:
            self.exporter.record_refill("failed")

            mock_refills.labels.assert_called_once_with(outcome="failed")
            mock_admitted.inc.assert_not_called()

    def test_record_source_error(self):
        with patch("hn_duel.monitoring.metrics.SOURCE_ERRORS") as mock_counter:
            self.exporter.record_source_error("item")

            mock_counter.labels.assert_called_once_with(operation="item")
            mock_counter.labels.return_value.inc.assert_called_once()

    def test_record_guess(self):
        with patch("hn_duel.monitoring.metrics.GUESSES") as mock_counter:
            self.exporter.record_guess(True)
            self.exporter.record_guess(False)

            mock_counter.labels.assert_any_call(result="correct")
            mock_counter.labels.assert_any_call(result="incorrect")

    def test_gauges(self):
        with patch("hn_duel.monitoring.metrics.BUFFER_SIZE") as mock_size, \
                patch("hn_duel.monitoring.metrics.CONSECUTIVE_REFILL_FAILURES") as mock_failures:
            self.exporter.set_buffer_size(7)
            self.exporter.set_consecutive_refill_failures(2)

            mock_size.set.assert_called_once_with(7)
            mock_failures.set.assert_called_once_with(2)

    def test_time_request(self):
        """Test timing an API request."""
        with patch("hn_duel.monitoring.metrics.REQUEST_DURATION") as mock_histogram:
            timer = self.exporter.time_request()
            self.assertIsInstance(timer, RequestTimer)

            with timer:
                pass

            mock_histogram.observe.assert_called_once()
            self.assertGreaterEqual(mock_histogram.observe.call_args[0][0], 0)


if __name__ == "__main__":
    unittest.main()
