import pytest

from shmock import AtLeastOnce, ExactCount, FrequencyOverflow, FrequencyShortfall, Unbounded
from shmock._frequency import frequency_for


def test_exact_count_is_satisfied_by_exactly_n_calls() -> None:
    frequency = ExactCount(2, "add")
    frequency.record_call()
    frequency.record_call()

    frequency.verify()
    assert frequency.calls == 2


def test_exact_count_fails_fast_on_overflow() -> None:
    frequency = ExactCount(2, "add")
    frequency.record_call()
    frequency.record_call()

    with pytest.raises(FrequencyOverflow, match="Didn't expect add to be called more than 2 times"):
        frequency.record_call()


def test_exact_count_reports_shortfall_at_verify() -> None:
    frequency = ExactCount(2, "add")
    frequency.record_call()

    with pytest.raises(
        FrequencyShortfall, match="Expected add to be called exactly 2 times, called 1 times"
    ):
        frequency.verify()


def test_exact_count_zero_means_never() -> None:
    frequency = ExactCount(0, "add")
    frequency.verify()
    assert not frequency.has_capacity()
    assert not frequency.requires_call()

    with pytest.raises(FrequencyOverflow):
        frequency.record_call()


def test_exact_count_rejects_negative_counts() -> None:
    with pytest.raises(ValueError, match="cannot be negative"):
        ExactCount(-1, "add")


def test_unbounded_never_fails() -> None:
    frequency = Unbounded()
    frequency.verify()
    for _ in range(50):
        frequency.record_call()

    frequency.verify()
    assert frequency.calls == 50
    assert frequency.has_capacity()
    assert not frequency.requires_call()


def test_at_least_once() -> None:
    frequency = AtLeastOnce("add")
    assert frequency.requires_call()

    with pytest.raises(FrequencyShortfall, match="Expected add to be called at least once"):
        frequency.verify()

    frequency.record_call()
    frequency.record_call()
    frequency.verify()


def test_frequency_for() -> None:
    assert isinstance(frequency_for(None, "add"), Unbounded)

    exact = frequency_for(3, "add")
    assert isinstance(exact, ExactCount)
    assert exact.expected == 3
