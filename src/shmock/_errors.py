from __future__ import annotations


class ShmockFailure(AssertionError):
    """Base of every failure raised by shmock.

    Deriving from AssertionError makes pytest and unittest report these as
    test failures rather than errors.
    """


class ConfigurationError(ShmockFailure):
    pass


class StrictMethodError(ShmockFailure):
    pass


class PolicyViolation(ShmockFailure):
    """Raise from a Policy hook to veto a mock configuration or call."""


class InvocationError(ShmockFailure):
    pass


class ArgumentMismatch(InvocationError):
    pass


class FrequencyOverflow(InvocationError):
    pass


class UnexpectedInvocation(InvocationError):
    pass


class VerificationError(ShmockFailure):
    def __init__(self, message: str, failures: tuple[AssertionError, ...] = ()) -> None:
        super().__init__(message)
        self.failures = failures


class FrequencyShortfall(VerificationError):
    pass


class OrderingShortfall(VerificationError):
    pass
