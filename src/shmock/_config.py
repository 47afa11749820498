from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, final


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class ShmockConfig:
    # check that mocked methods exist with the right staticness
    strict_method_checks: bool = True
    # private static methods may still be mocked when this is False
    strict_static_method_checks: bool = True
    # literal arguments must also agree on type, so 1 does not match 1.0 or True
    strict_equality: bool = False
    # expected values rendering longer than this get a unified diff
    diff_threshold: int = 100

    def __post_init__(self) -> None:
        if self.diff_threshold < 0:
            raise ValueError(
                f"diff_threshold must be non-negative, got {self.diff_threshold}"
            )

    def with_overrides(self, **overrides: Any) -> ShmockConfig:
        return replace(self, **overrides)
