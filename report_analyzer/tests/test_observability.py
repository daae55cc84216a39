import unittest
from unittest.mock import MagicMock, patch

from report_analyzer.observability import otel


class ObservabilityTests(unittest.TestCase):
    def test_helpers_are_no_ops_without_backends(self) -> None:
        with patch.object(otel, "_tracer", None):
            with otel.start_span("claude_report.test", {"file": "a.jsonl"}) as span:
                self.assertIsNone(span)
        otel.record_ingestion("session_file", "success", 1.5)
        otel.record_parser_failure("jsonl_line")

    def test_metrics_reach_both_backends_with_normalized_labels(self) -> None:
        otel_counter, otel_hist = MagicMock(), MagicMock()
        prom_counter = MagicMock()
        instruments = {
            "claude_report_files_total": otel_counter,
            "claude_report_file_latency_ms": otel_hist,
        }
        with patch.dict(otel._otel_instruments, instruments, clear=True), \
                patch.dict(otel._prom_instruments, {"claude_report_parser_failures_total": prom_counter}, clear=True):
            otel.record_ingestion("session_file", " ", -4.0)
            otel.record_parser_failure("")

        otel_counter.add.assert_called_once_with(1, {"entity": "session_file", "result": "unknown"})
        otel_hist.record.assert_called_once_with(0.0, {"entity": "session_file", "result": "unknown"})
        prom_counter.labels.assert_called_once_with(parser="unknown")
        prom_counter.labels.return_value.inc.assert_called_once_with(1)

    def test_otlp_url_appends_signal_path(self) -> None:
        for endpoint in ("http://collector:4318", "http://collector:4318/", "http://collector:4318/v1"):
            with self.subTest(endpoint=endpoint), patch.object(otel.config, "OTEL_ENDPOINT", endpoint):
                self.assertEqual(otel._otlp_url("traces"), "http://collector:4318/v1/traces")

    def test_disabled_initialize_creates_nothing(self) -> None:
        with patch.object(otel, "_initialized", False), \
                patch.object(otel.config, "OTEL_ENABLED", False), \
                patch.dict(otel._otel_instruments, {}, clear=True):
            with self.assertLogs("claude_report.observability", level="INFO"):
                otel.initialize(None)
            self.assertEqual(otel._otel_instruments, {})
            self.assertIsNone(otel._tracer)


if __name__ == "__main__":
    unittest.main()
