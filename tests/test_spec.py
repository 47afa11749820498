import pytest

from shmock import (
    ArgumentMismatch,
    AtLeastOnce,
    ConfigurationError,
    ExactCount,
    FrequencyOverflow,
    Invocation,
    MethodInspector,
    Shmock,
    ShmockConfig,
    Spec,
    StrictMethodError,
    Unbounded,
    anything,
    greater_than,
)
from shmock._spec import STATIC, normalize_arguments


class Calculator:
    def add(self, a: int, b: int) -> int:
        return a + b

    def total(self, *values: int, **options: bool) -> int:
        return sum(values)

    def scale(self, value: int, factor: int = 1) -> int:
        return value * factor

    @staticmethod
    def pi() -> float:
        return 3.14

    def __round(self, value: float) -> int:
        return round(value)

    @staticmethod
    def __cached() -> int:
        return 1


class Dynamic:
    def __getattr__(self, name: str):
        return lambda *args: name


def invoke(spec: Spec, *args, **kwargs):
    return spec.do_invocation(
        Invocation(target="receiver", method_name=spec.method_name, args=args, kwargs=kwargs)
    )


def test_default_spec_expects_one_call_returning_none() -> None:
    spec = Spec(Shmock(), Calculator, "add", (1, 2))

    assert isinstance(spec.frequency, ExactCount)
    assert invoke(spec, 1, 2) is None
    spec.verify()
    with pytest.raises(FrequencyOverflow):
        invoke(spec, 1, 2)


def test_frequency_shortcuts() -> None:
    spec = Spec(Shmock(), Calculator, "add")

    assert spec.twice().frequency.expected == 2
    assert spec.never().frequency.expected == 0
    assert isinstance(spec.any().frequency, Unbounded)
    assert isinstance(spec.at_least_once().frequency, AtLeastOnce)
    assert spec.times(4).frequency.expected == 4


def test_arguments_match_by_parameter_name() -> None:
    spec = Spec(Shmock(), Calculator, "add", (1,), {"b": 2}).return_value(3)

    assert spec.arguments == (1,)
    assert spec.keyword_arguments == {"b": 2}
    assert invoke(spec, a=1, b=2) == 3


def test_argument_mismatch_names_the_argument() -> None:
    spec = Spec(Shmock(), Calculator, "add", (1, 2))

    with pytest.raises(
        ArgumentMismatch,
        match=r"Unexpected argument#1 \(b\) to method 'add': expected 2 \(int\), got 5 \(int\)",
    ):
        invoke(spec, 1, 5)


def test_arguments_beyond_the_expected_ones_are_rejected() -> None:
    spec = Spec(Shmock(), Calculator, "scale", (1,)).any()

    assert spec.accepts(Invocation("receiver", "scale", (1,)))
    assert not spec.accepts(Invocation("receiver", "scale", (1, 999)))
    with pytest.raises(ArgumentMismatch, match="Expected 1 arguments to scale, got 2"):
        invoke(spec, 1, 999)


def test_extra_arguments_are_rejected_without_a_signature() -> None:
    spec = Spec(Shmock(), Dynamic, "send", ("x",)).any()

    assert invoke(spec, "x") is None
    assert not spec.accepts(Invocation("receiver", "send", ("x", "y", "z")))
    with pytest.raises(ArgumentMismatch, match="Expected 1 arguments to send, got 3"):
        invoke(spec, "x", "y", "z")


def test_expectation_without_arguments_accepts_any_call() -> None:
    spec = Spec(Shmock(), Calculator, "scale").any()

    assert invoke(spec, 1, 999) is None


def test_constraints_in_expected_arguments() -> None:
    spec = Spec(Shmock(), Calculator, "add", (greater_than(0), anything())).any()

    assert invoke(spec, 5, "x") is None
    with pytest.raises(ArgumentMismatch, match="greater than 0"):
        invoke(spec, -1, "x")


def test_variadic_keyword_arguments_are_flattened() -> None:
    assert normalize_arguments(
        MethodInspector(Calculator, "total").call_signature(), (1, 2), {"strict": True}
    ) == {"values": (1, 2), "strict": True}
    assert normalize_arguments(None, (1, 2), {"key": 3}) == {0: 1, 1: 2, "key": 3}


def test_strict_equality_is_configurable() -> None:
    loose = Spec(Shmock(), Calculator, "add", (1, 2))
    strict = Spec(Shmock(ShmockConfig(strict_equality=True)), Calculator, "add", (1, 2))

    invoke(loose, 1.0, 2)
    with pytest.raises(ArgumentMismatch, match=r"expected 1 \(int\), got 1.0 \(float\)"):
        invoke(strict, 1.0, 2)


def test_return_consecutively() -> None:
    spec = Spec(Shmock(), Calculator, "add").return_consecutively([1, 2, 3])

    assert [invoke(spec), invoke(spec), invoke(spec)] == [1, 2, 3]
    spec.verify()
    with pytest.raises(FrequencyOverflow):
        invoke(spec)


def test_return_consecutively_keep_last() -> None:
    spec = Spec(Shmock(), Calculator, "add").return_consecutively([1, 2, 3], keep_last=True)

    assert isinstance(spec.frequency, Unbounded)
    assert [invoke(spec) for _ in range(5)] == [1, 2, 3, 3, 3]


def test_return_consecutively_keep_last_respects_a_chosen_count() -> None:
    spec = Spec(Shmock(), Calculator, "add").twice().return_consecutively([1], keep_last=True)

    assert [invoke(spec), invoke(spec)] == [1, 1]
    with pytest.raises(FrequencyOverflow):
        invoke(spec)


def test_return_consecutively_runs_out_even_when_frequency_allows_more() -> None:
    spec = Spec(Shmock(), Calculator, "add").return_consecutively([1]).any()

    assert invoke(spec) == 1
    with pytest.raises(FrequencyOverflow, match="no more consecutive return values"):
        invoke(spec)


def test_return_consecutively_needs_values() -> None:
    with pytest.raises(ConfigurationError):
        Spec(Shmock(), Calculator, "add").return_consecutively([])


def test_return_value_map() -> None:
    spec = Spec(Shmock(), Calculator, "add").return_value_map([[1, 2, 3], [4, 5, 9]])

    assert spec.frequency.expected == 2
    assert invoke(spec, 4, 5) == 9
    assert invoke(spec, 1, 2) == 3


def test_return_value_map_reports_the_closest_row() -> None:
    spec = Spec(Shmock(), Calculator, "add").any().return_value_map([[1, 2, 3], [4, 5, 9]])

    assert isinstance(spec.frequency, Unbounded)
    with pytest.raises(ArgumentMismatch, match="diff with closest match") as exc_info:
        invoke(spec, 1, 7)
    assert "-[1, 2]" in str(exc_info.value)


def test_return_value_map_needs_rows() -> None:
    with pytest.raises(ConfigurationError, match="at least one return value"):
        Spec(Shmock(), Calculator, "add").return_value_map([])


def test_throw_exception() -> None:
    spec = Spec(Shmock(), Calculator, "add").any().throw_exception(ValueError("boom"))

    with pytest.raises(ValueError, match="boom"):
        invoke(spec)
    spec.throw_exception(KeyError)
    with pytest.raises(KeyError):
        invoke(spec)
    spec.throw_exception()
    with pytest.raises(Exception):
        invoke(spec)


def test_will_receives_the_invocation() -> None:
    spec = Spec(Shmock(), Calculator, "add", (anything(), anything())).will(
        lambda invocation: invocation.call_with(lambda a, b: a * b)
    )

    assert invoke(spec, 3, 4) == 12


def test_last_behavior_wins() -> None:
    spec = Spec(Shmock(), Calculator, "add").return_value(1).return_true()

    assert invoke(spec) is True


def test_return_this_returns_the_receiver() -> None:
    spec = Spec(Shmock(), Calculator, "add").return_this()

    assert invoke(spec) == "receiver"


def test_return_this_conflicts_with_other_behaviors() -> None:
    with pytest.raises(ConfigurationError):
        Spec(Shmock(), Calculator, "add").return_value(1).return_this()
    with pytest.raises(ConfigurationError):
        Spec(Shmock(), Calculator, "add").return_this().return_value(1)


def test_strict_checks_reject_missing_methods() -> None:
    with pytest.raises(StrictMethodError, match="The method #subtract does not exist"):
        Spec(Shmock(), Calculator, "subtract")


def test_strict_checks_allow_catch_all_classes() -> None:
    Spec(Shmock(), Dynamic, "whatever")


def test_strict_checks_compare_staticness() -> None:
    with pytest.raises(StrictMethodError, match="#pi is a static method"):
        Spec(Shmock(), Calculator, "pi")
    with pytest.raises(StrictMethodError, match="#add is an instance method"):
        Spec(Shmock(), Calculator, "add", convention=STATIC)


def test_strict_checks_reject_private_methods() -> None:
    with pytest.raises(StrictMethodError, match="#__round is a private method"):
        Spec(Shmock(), Calculator, "__round")
    with pytest.raises(StrictMethodError):
        Spec(Shmock(), Calculator, "__cached", convention=STATIC)


def test_private_static_methods_can_be_allowed() -> None:
    session = Shmock(ShmockConfig(strict_static_method_checks=False))

    Spec(session, Calculator, "__cached", convention=STATIC)


def test_strict_checks_can_be_skipped() -> None:
    spec = Spec(Shmock(), Calculator, "subtract", (3, 1), strict=False).return_value(2)

    assert invoke(spec, 3, 1) == 2


def test_str_names_the_method() -> None:
    spec = Spec(Shmock(), Calculator, "add", (1, 2))

    assert str(spec) == "Expectations for add"
    assert repr(spec) == "<Spec instance Calculator.add(1, 2) ExactCount(1, calls=0)>"
