from shmock._builder import ClassBuilder, Method, MethodInspector
from shmock._config import ShmockConfig
from shmock._controller import MockClass, MockInstance
from shmock._errors import (
    ArgumentMismatch,
    ConfigurationError,
    FrequencyOverflow,
    FrequencyShortfall,
    InvocationError,
    OrderingShortfall,
    PolicyViolation,
    ShmockFailure,
    StrictMethodError,
    UnexpectedInvocation,
    VerificationError,
)
from shmock._frequency import AtLeastOnce, ExactCount, Frequency, Unbounded
from shmock._joinpoint import CallableDecorator, Decorator, Invocation, JoinPoint
from shmock._matchers import (
    ArgumentMatcher,
    Constraint,
    all_of,
    any_of,
    anything,
    callback,
    contains,
    equal_to,
    greater_than,
    identical_to,
    instance_of,
    less_than,
    matches_regex,
    not_,
)
from shmock._ordering import OrderingSelector, SequentialByName, Unordered
from shmock._policy import Policy
from shmock._session import Shmock, create_mock, create_mock_class
from shmock._spec import Spec

__all__ = [
    "ArgumentMatcher",
    "ArgumentMismatch",
    "AtLeastOnce",
    "CallableDecorator",
    "ClassBuilder",
    "ConfigurationError",
    "Constraint",
    "Decorator",
    "ExactCount",
    "Frequency",
    "FrequencyOverflow",
    "FrequencyShortfall",
    "Invocation",
    "InvocationError",
    "JoinPoint",
    "Method",
    "MethodInspector",
    "MockClass",
    "MockInstance",
    "OrderingSelector",
    "OrderingShortfall",
    "Policy",
    "PolicyViolation",
    "SequentialByName",
    "Shmock",
    "ShmockConfig",
    "ShmockFailure",
    "Spec",
    "StrictMethodError",
    "Unbounded",
    "UnexpectedInvocation",
    "Unordered",
    "VerificationError",
    "all_of",
    "any_of",
    "anything",
    "callback",
    "contains",
    "create_mock",
    "create_mock_class",
    "equal_to",
    "greater_than",
    "identical_to",
    "instance_of",
    "less_than",
    "matches_regex",
    "not_",
]
