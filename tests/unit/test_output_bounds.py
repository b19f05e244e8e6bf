"""
Output truncation and log ring-buffer tests.
"""

import pytest

from config.defaults import RunDefaults
from core.logic.output import OutputCollector, append_bounded, truncate_output


MARKER = RunDefaults.TRUNCATION_MARKER


class TestTruncateOutput:

    def test_none_becomes_empty(self):
        assert truncate_output(None) == ""

    def test_within_limit_unchanged(self):
        text = "x" * RunDefaults.STATUS_OUTPUT_LIMIT
        assert truncate_output(text) == text

    def test_over_limit_keeps_head_and_marker(self):
        text = "a" * RunDefaults.STATUS_OUTPUT_LIMIT + "tail"
        result = truncate_output(text)
        assert result == "a" * RunDefaults.STATUS_OUTPUT_LIMIT + MARKER
        assert "tail" not in result

    def test_custom_limit(self):
        assert truncate_output("abcdef", limit=3) == "abc" + MARKER


class TestOutputCollector:

    def test_collects_chunks(self):
        collector = OutputCollector(limit=100)
        collector.append("step 1/7 ")
        collector.append(None)
        collector.append("")
        collector.append("step 2/7")
        assert collector.text() == "step 1/7 step 2/7"
        assert collector.truncated is False

    def test_cuts_at_limit_and_discards_later_chunks(self):
        collector = OutputCollector(limit=10)
        collector.append("0123456")
        collector.append("789abc")
        collector.append("ignored")
        assert collector.text() == "0123456789" + MARKER
        assert collector.truncated is True

    def test_exact_fit_is_not_truncated(self):
        collector = OutputCollector(limit=4)
        collector.append("abcd")
        assert collector.truncated is False
        assert collector.text() == "abcd"


class TestAppendBounded:

    def test_appends_to_none(self):
        assert append_bounded(None, ["a", "b"]) == ["a", "b"]

    def test_keeps_most_recent_lines(self):
        lines = append_bounded([str(i) for i in range(5)], ["5", "6"], max_lines=3)
        assert lines == ["4", "5", "6"]

    def test_does_not_mutate_existing(self):
        existing = ["a"]
        append_bounded(existing, ["b"])
        assert existing == ["a"]

    @pytest.mark.parametrize("count", [0, 1, RunDefaults.MAX_LOG_LINES + 10])
    def test_default_cap(self, count):
        lines = append_bounded([], (f"line {i}" for i in range(count)))
        assert len(lines) == min(count, RunDefaults.MAX_LOG_LINES)
