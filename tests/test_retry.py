import logging

import pytest

from git_link_auth.retry import RetryHelper


class Flaky:
    def __init__(self, failures: int, result: str = "ok") -> None:
        self.failures = failures
        self.result = result
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError(f"attempt {self.calls} failed")
        return self.result


def test_returns_result_after_transient_failures(caplog):
    sleeps = []
    helper = RetryHelper(3, 1, 2, sleep=sleeps.append)
    action = Flaky(failures=2)

    with caplog.at_level(logging.INFO, logger="git_link_auth.retry"):
        assert helper.execute(action) == "ok"

    warnings = [record for record in caplog.records if record.levelno == logging.WARNING]
    assert [record.getMessage() for record in warnings] == ["attempt 1 failed", "attempt 2 failed"]
    assert action.calls == 3
    assert len(sleeps) == 2
    assert all(1 <= seconds <= 2 for seconds in sleeps)


def test_propagates_last_failure():
    helper = RetryHelper(3, 0, 0, sleep=lambda seconds: None)
    action = Flaky(failures=5)

    with pytest.raises(RuntimeError, match="attempt 3 failed"):
        helper.execute(action)
    assert action.calls == 3


def test_success_on_first_attempt_does_not_sleep():
    sleeps = []
    helper = RetryHelper(sleep=sleeps.append)

    assert helper.execute(Flaky(failures=0, result="done")) == "done"
    assert sleeps == []


def test_does_not_retry_unlisted_errors():
    helper = RetryHelper(3, 0, 0, retry_on=(KeyError,), sleep=lambda seconds: None)
    action = Flaky(failures=1)

    with pytest.raises(RuntimeError):
        helper.execute(action)
    assert action.calls == 1


@pytest.mark.parametrize("kwargs", [{"max_attempts": 0}, {"min_seconds": 5, "max_seconds": 1}])
def test_rejects_invalid_policy(kwargs):
    with pytest.raises(ValueError):
        RetryHelper(**kwargs)
