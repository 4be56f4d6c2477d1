"""Tests for scenario assertion tracking."""
import json

import pytest

from tfe2e.errors import ApplyError, ContractViolation
from tfe2e.runner import ProcessResult
from tfe2e.scenario import Scenario, rand_string_with_upper, save_results


def failing_apply():
    raise ApplyError("/ws", ProcessResult(1, "", "Error: No value for required variable"))


class TestScenario:
    def test_counts_and_status(self):
        with Scenario("counting") as s:
            s.assert_true(True, "yes")
            s.assert_equal(1, 2, "numbers")
        assert (s.passed, s.failed) == (1, 1)
        assert s.status == "FAIL"
        assert "expected=2, actual=1" in s.assertions[1]["message"]

    def test_exception_is_recorded_and_suppressed(self):
        with Scenario("boom") as s:
            raise ContractViolation("out of order")
        assert s.status == "FAIL"
        assert s.assertions[-1] == {"message": "Exception: out of order", "passed": False}

    def test_keyboard_interrupt_propagates(self):
        with pytest.raises(KeyboardInterrupt):
            with Scenario("interrupted"):
                raise KeyboardInterrupt

    def test_assert_contains_carries_text_on_failure(self):
        with Scenario("contains") as s:
            s.assert_contains("abc", "zzz", "needle")
        assert "(text): abc" in s.assertions[0]["message"]

    def test_assert_raises_matches_diagnostic(self):
        with Scenario("raises") as s:
            assert s.assert_raises("No value for required variable", failing_apply)
        assert s.status == "PASS"

    def test_assert_raises_wrong_text_keeps_diagnostic(self):
        with Scenario("raises") as s:
            assert not s.assert_raises("attribute is required", failing_apply)
        assert "No value for required variable" in s.assertions[0]["message"]

    def test_assert_raises_when_call_succeeds(self):
        with Scenario("raises") as s:
            s.assert_raises("anything", lambda: None)
        assert "call succeeded" in s.assertions[0]["message"]


class TestResults:
    def test_save_results(self, tmp_path):
        with Scenario("one") as ok:
            ok.assert_true(True, "fine")
        with Scenario("two") as bad:
            bad.assert_true(False, "broken")
        path = tmp_path / "results.json"
        assert save_results([ok, bad], str(path)) is False
        data = json.loads(path.read_text())
        assert data["total_pass"] == 1
        assert data["total_fail"] == 1
        assert [s["status"] for s in data["scenarios"]] == ["PASS", "FAIL"]

    def test_all_passed(self, tmp_path):
        with Scenario("one") as ok:
            ok.assert_true(True, "fine")
        assert save_results([ok], str(tmp_path / "r.json")) is True


class TestRandString:
    @pytest.mark.parametrize("n", [1, 15, 30])
    def test_length_and_upper(self, n):
        value = rand_string_with_upper(n)
        assert len(value) == n
        assert any(c.isupper() for c in value)
        assert value.isalnum()

    def test_zero(self):
        assert rand_string_with_upper(0) == ""
