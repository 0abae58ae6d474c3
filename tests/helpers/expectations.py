"""Assertion helpers shared by the unit tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import ParamSpec, TypeVar

import pytest

P = ParamSpec("P")
E = TypeVar("E", bound=BaseException)


def expect_exception(
    func: Callable[P, object],
    exception_type: type[E],
    *args: P.args,
    **kwargs: P.kwargs,
) -> E:
    """Call ``func`` and return the ``exception_type`` it raised, for attribute checks."""
    with pytest.raises(exception_type) as exc_info:
        func(*args, **kwargs)
    return exc_info.value
