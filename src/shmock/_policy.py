from __future__ import annotations

from typing import Any


class Policy:
    """Rules that every mock built in a session must obey.

    Override the hooks you need; a hook vetoes by raising, ideally
    ``PolicyViolation``. Hooks run when a spec is configured and again, with
    the actual arguments, when the mocked method is called.
    """

    def check_method_parameters(
        self, target: type, method: str, parameters: list[Any], is_static: bool
    ) -> None:
        pass

    def check_method_return_value(
        self, target: type, method: str, return_value: Any, is_static: bool
    ) -> None:
        pass

    def check_method_throws(
        self, target: type, method: str, exception: BaseException, is_static: bool
    ) -> None:
        pass
