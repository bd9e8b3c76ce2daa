"""Unit tests for rate derivation."""

import pytest

from nfsstats.mountstats import parse_mountstats
from nfsstats.rates import MetricSample, derive_metrics, derive_samples, diff_counters
from tests.fixtures import (
    SAMPLE_CAPTURE_TIME,
    SAMPLE_MOUNTSTATS,
    SAMPLE_PREVIOUS_COUNTERS,
    SAMPLE_PREVIOUS_TIME,
    counters_for,
    snapshot_pair,
)

RATIO_CATEGORIES = ("bytes_ops", "retrans_rate", "rtt_ave", "execute_ave", "queue_ave")


class TestDiffCounters:
    """Tests for diff_counters."""

    def test_subtracts_previous_values(self):
        assert diff_counters({"a": 10.0, "b": 5.0}, {"a": 4.0, "b": 5.0}) == {"a": 6.0, "b": 0.0}

    def test_reset_counter_clamped_to_zero(self, mock_logger):
        diffs = diff_counters({"ops.mnt.read": 3.0, "ops.mnt.write": 9.0},
                              {"ops.mnt.read": 100.0, "ops.mnt.write": 4.0},
                              logger=mock_logger)
        assert diffs == {"ops.mnt.read": 0.0, "ops.mnt.write": 5.0}
        mock_logger.assert_logged("warning", "counter seems to be reset: ops.mnt.read")
        mock_logger.assert_not_logged("warning", "ops.mnt.write")

    def test_missing_baseline_skipped_not_zeroed(self, mock_logger):
        diffs = diff_counters({"ops.new.read": 7.0}, {}, logger=mock_logger)
        assert diffs == {}
        mock_logger.assert_logged("info", "ops.new.read does not exist at last fetch")

    def test_keys_only_in_previous_are_ignored(self):
        assert diff_counters({"a": 1.0}, {"a": 1.0, "gone": 3.0}) == {"a": 0.0}


class TestDeriveMetrics:
    """Tests for derive_metrics."""

    def test_end_to_end_sample(self):
        devices, current = parse_mountstats(SAMPLE_MOUNTSTATS)
        metrics = derive_metrics(devices, current, SAMPLE_PREVIOUS_COUNTERS,
                                 SAMPLE_CAPTURE_TIME, SAMPLE_PREVIOUS_TIME)
        assert metrics["ops.mnt.read"] == 2.0
        assert metrics["ops.mnt.write"] == 3.0

    def test_all_categories_from_sample(self):
        devices, current = parse_mountstats(SAMPLE_MOUNTSTATS)
        metrics = derive_metrics(devices, current, SAMPLE_PREVIOUS_COUNTERS,
                                 SAMPLE_CAPTURE_TIME, SAMPLE_PREVIOUS_TIME)
        assert metrics["throughput.mnt.read"] == pytest.approx((20160 + 7864320) / 60)
        assert metrics["bytes_ops.mnt.read"] == pytest.approx(65704.0)
        assert metrics["retrans_num.mnt.read"] == 0.0
        assert metrics["retrans_rate.mnt.read"] == 0.0
        assert metrics["queue_ave.mnt.read"] == pytest.approx(1.0)
        assert metrics["rtt_ave.mnt.read"] == pytest.approx(20.0)
        assert metrics["execute_ave.mnt.read"] == pytest.approx(21.0)

        assert metrics["throughput.mnt.write"] == pytest.approx(12648.0)
        assert metrics["bytes_ops.mnt.write"] == pytest.approx(4216.0)
        assert metrics["retrans_num.mnt.write"] == 2.0
        assert metrics["retrans_rate.mnt.write"] == pytest.approx(2 / 180)
        assert metrics["queue_ave.mnt.write"] == pytest.approx(5.0)
        assert metrics["rtt_ave.mnt.write"] == pytest.approx(10.0)
        assert metrics["execute_ave.mnt.write"] == pytest.approx(20.0)
        assert len(metrics) == 16

    def test_derived_values_for_synthetic_pair(self):
        current, previous, now, last = snapshot_pair()
        metrics = derive_metrics(["mnt"], current, previous, now, last)
        assert metrics["ops.mnt.read"] == pytest.approx(1.0)
        assert metrics["throughput.mnt.read"] == pytest.approx(110.0)
        assert metrics["bytes_ops.mnt.read"] == pytest.approx(110.0)
        assert metrics["retrans_num.mnt.read"] == 3.0
        assert metrics["retrans_rate.mnt.read"] == pytest.approx(0.05)
        assert metrics["rtt_ave.mnt.read"] == pytest.approx(10.0)
        assert metrics["execute_ave.mnt.read"] == pytest.approx(11.0)
        assert metrics["queue_ave.mnt.read"] == pytest.approx(1.0)

    def test_zero_ops_publishes_rates_but_not_ratios(self):
        current, previous, now, last = snapshot_pair()
        metrics = derive_metrics(["mnt"], current, previous, now, last)
        assert metrics["ops.mnt.write"] == 0.0
        assert metrics["throughput.mnt.write"] == 0.0
        assert metrics["retrans_num.mnt.write"] == 0.0
        for category in RATIO_CATEGORIES:
            assert f"{category}.mnt.write" not in metrics

    def test_zero_ops_with_bytes_still_reports_throughput(self):
        previous = counters_for("mnt", "read", [10, 10, 0, 100, 100, 0, 0, 0])
        current = counters_for("mnt", "read", [10, 10, 0, 160, 160, 0, 0, 0])
        metrics = derive_metrics(["mnt"], current, previous, 60.0, 0.0)
        assert metrics["throughput.mnt.read"] == pytest.approx(2.0)
        assert "bytes_ops.mnt.read" not in metrics

    def test_staleness_boundary_is_inclusive(self):
        current, previous, _, _ = snapshot_pair()
        assert derive_metrics(["mnt"], current, previous, 1600.0, 1000.0) is not None
        assert derive_metrics(["mnt"], current, previous, 1601.0, 1000.0) is None

    def test_stale_interval_logged(self, mock_logger):
        current, previous, _, _ = snapshot_pair()
        assert derive_metrics(["mnt"], current, previous, 5000.0, 1000.0, logger=mock_logger) is None
        mock_logger.assert_logged("warning", "too long duration")

    def test_non_positive_interval_returns_none(self):
        current, previous, _, _ = snapshot_pair()
        assert derive_metrics(["mnt"], current, previous, 1000.0, 1000.0) is None
        assert derive_metrics(["mnt"], current, previous, 900.0, 1000.0) is None

    def test_cold_start_produces_empty_set(self):
        current, _, _, _ = snapshot_pair()
        assert derive_metrics(["mnt"], current, {}, 1060.0, 1000.0) == {}

    def test_reset_does_not_blank_out_device(self):
        current, previous, now, last = snapshot_pair()
        previous["ops.mnt.read"] = 1000.0
        metrics = derive_metrics(["mnt"], current, previous, now, last)
        assert metrics["ops.mnt.read"] == 0.0
        assert metrics["throughput.mnt.read"] == pytest.approx(110.0)
        assert metrics["retrans_num.mnt.read"] == 163 - 100
        assert "rtt_ave.mnt.read" not in metrics

    def test_missing_baseline_for_single_counter_omits_dependent_metrics(self):
        current, previous, now, last = snapshot_pair()
        del previous["trans.mnt.read"]
        del previous["rtt.mnt.read"]
        metrics = derive_metrics(["mnt"], current, previous, now, last)
        assert "retrans_num.mnt.read" not in metrics
        assert "retrans_rate.mnt.read" not in metrics
        assert "rtt_ave.mnt.read" not in metrics
        assert metrics["execute_ave.mnt.read"] == pytest.approx(11.0)

    def test_device_without_counters_publishes_nothing(self):
        current, previous, now, last = snapshot_pair()
        metrics = derive_metrics(["mnt", "empty"], current, previous, now, last)
        assert not any(".empty." in name for name in metrics)


class TestDeriveSamples:
    """Tests for derive_samples."""

    def test_returns_metric_samples(self):
        current, previous, now, last = snapshot_pair()
        samples = derive_samples(["mnt"], current, previous, now, last)
        assert all(isinstance(s, MetricSample) for s in samples)
        ops = [s for s in samples if s.category == "ops" and s.operation == "read"]
        assert ops[0].name == "ops.mnt.read"
        assert ops[0].value == pytest.approx(1.0)
