"""Assertion tracking for e2e scenarios."""
import json
import random
import string
import time
import traceback

from tfe2e.errors import HarnessError


class Scenario:
    """Tracks assertions and duration for a single test scenario."""

    def __init__(self, name):
        self.name = name
        self.assertions = []
        self.status = "PASS"
        self.start_time = None
        self.duration = 0

    def __enter__(self):
        self.start_time = time.time()
        print(f"\n{'=' * 60}")
        print(f"SCENARIO: {self.name}")
        print(f"{'=' * 60}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.time() - self.start_time
        if exc_type:
            self.status = "FAIL"
            self.assertions.append({
                "message": f"Exception: {exc_val}",
                "passed": False,
            })
            print(f"  [FAIL] Exception: {exc_val}")
            traceback.print_exception(exc_type, exc_val, exc_tb)
        print(f"\n  Result: [{self.status}] {self.passed} passed, {self.failed} failed ({self.duration:.0f}s)")
        return exc_type is None or issubclass(exc_type, Exception)

    @property
    def passed(self):
        return sum(1 for a in self.assertions if a["passed"])

    @property
    def failed(self):
        return sum(1 for a in self.assertions if not a["passed"])

    def step(self, message):
        print(f"\n  {message}")

    def _record(self, passed, message):
        self.assertions.append({"message": message, "passed": passed})
        tag = "PASS" if passed else "FAIL"
        print(f"  [{tag}] {message}")
        if not passed:
            self.status = "FAIL"
        return passed

    def assert_true(self, condition, message):
        return self._record(bool(condition), message)

    def assert_equal(self, actual, expected, message):
        return self._record(actual == expected,
                            f"{message} (expected={expected}, actual={actual})")

    def assert_contains(self, haystack, needle, message):
        passed = needle in haystack
        if not passed:
            message = f"{message}\n    (text): {haystack}"
        return self._record(passed, message)

    def assert_raises(self, substring, fn, *args, message=None):
        """Call fn and expect a harness error whose text contains substring.

        The failure message carries the raw diagnostic so it can be read
        from the results file alone.
        """
        message = message or f"fails with '{substring}'"
        try:
            fn(*args)
        except HarnessError as e:
            return self.assert_contains(str(e), substring, message)
        return self._record(False, f"{message} (call succeeded)")


def save_results(scenarios, path):
    """Write scenario results JSON. Returns True when nothing failed."""
    total_pass = sum(s.passed for s in scenarios)
    total_fail = sum(s.failed for s in scenarios)
    results = {
        "scenarios": [
            {
                "name": s.name,
                "status": s.status,
                "duration": s.duration,
                "assertions": s.assertions,
            }
            for s in scenarios
        ],
        "total_pass": total_pass,
        "total_fail": total_fail,
        "total_duration": sum(s.duration for s in scenarios),
    }
    with open(path, "w") as f:
        json.dump(results, f, indent=2)
    print(f"\nResults written to {path}")
    return total_fail == 0


def rand_string_with_upper(n):
    """Random alphanumeric string of length n with at least one upper-case letter."""
    if n < 1:
        return ""
    chars = [random.choice(string.ascii_letters + string.digits) for _ in range(n - 1)]
    chars.insert(random.randrange(n), random.choice(string.ascii_uppercase))
    return "".join(chars)
