"""Tests for server metrics and stats logging."""

import logging

from tcp_server.monitoring import MetricsCollector, StatsLogger


class FakeServer:
    def get_status(self):
        return {'active_connections': 2, 'frames_received': 10}


def sample(collector, name, labels=None):
    return collector.registry.get_sample_value(name, labels or {})


def test_record_frame_counts_kinds_and_fallbacks():
    collector = MetricsCollector()
    collector.record_frame('login', fallback=False)
    collector.record_frame('unknown', fallback=True)
    collector.record_frame('unknown', fallback=True)

    assert sample(collector, 'gt06_tcp_frames_total', {'kind': 'login'}) == 1.0
    assert sample(collector, 'gt06_tcp_frames_total', {'kind': 'unknown'}) == 2.0
    assert sample(collector, 'gt06_tcp_decode_fallbacks_total') == 2.0


def test_record_response_labels_protocol():
    collector = MetricsCollector()
    collector.record_response(0x8A)
    assert sample(collector, 'gt06_tcp_responses_total', {'protocol': '0x8A'}) == 1.0


def test_active_connections_gauge():
    collector = MetricsCollector()
    collector.set_active_connections(3)
    assert sample(collector, 'gt06_tcp_active_connections') == 3.0


def test_collectors_do_not_share_registries():
    first, second = MetricsCollector(), MetricsCollector()
    first.record_response(0x01)
    assert sample(second, 'gt06_tcp_responses_total', {'protocol': '0x01'}) is None


def test_stats_logger_reports_after_interval(caplog):
    stats_logger = StatsLogger(FakeServer(), interval=0)
    with caplog.at_level(logging.INFO):
        stats = stats_logger.periodic_report()
    assert stats == {'active_connections': 2, 'frames_received': 10}
    assert "GT06 TCP Metrics" in caplog.text


def test_stats_logger_waits_for_interval():
    stats_logger = StatsLogger(FakeServer(), interval=3600)
    assert stats_logger.periodic_report() is None
