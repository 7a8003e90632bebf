import pytest

from corpus_metrics.pipeline.progress import RateTracker, format_elapsed
from corpus_metrics.pipeline.stats import RunStats


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


class TestFormatElapsed:
    @pytest.mark.parametrize("seconds, text", [
        (None, "unknown"),
        (0, "0 seconds"),
        (1, "1 second"),
        (59.6, "1 minute"),
        (3723, "1 hour, 2 minutes and 3 seconds"),
        (90000, "1 day and 1 hour"),
    ])
    def test_format(self, seconds, text):
        assert format_elapsed(seconds) == text


class TestRateTracker:
    def test_zero_rate_has_no_estimate(self):
        clock = FakeClock()
        tracker = RateTracker(1000, clock=clock)
        assert tracker.rate == 0.0
        assert tracker.remaining is None
        assert tracker.format_remaining() == "unknown"
        clock.now += 5
        assert tracker.rate == 0.0

    def test_rate_and_remaining(self):
        clock = FakeClock()
        tracker = RateTracker(4096, clock=clock)
        tracker.advance(1024)
        clock.now += 2
        assert tracker.rate == 512.0
        assert tracker.remaining == 6.0

    def test_trace_line(self):
        clock = FakeClock()
        tracker = RateTracker(3 * 2048, clock=clock)
        tracker.advance(2048)
        clock.now += 1
        assert tracker.trace_line("abc", 2, 3) == "abc - 2 of 3 @ 2.0k/sec (2 seconds remaining)"


class TestRunStats:
    def test_summary(self):
        stats = RunStats(documents_found=3, commits=1)
        stats.record_plugin_failure("core")
        stats.record_plugin_failure("core")
        summary = stats.summary()
        assert summary.startswith("=== Metrics Run Summary ===")
        assert "Documents found: 3" in summary
        assert "Plugin failures: 2" in summary
        assert "  failures in core: 2" in summary
