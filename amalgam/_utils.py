# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

import functools
import inspect
from collections.abc import Callable, Hashable
from functools import lru_cache
from types import FunctionType
from typing import Any

__all__ = (
    "is_coro_func",
    "is_dunder",
    "own_routines",
    "token_attr_name",
)


@lru_cache(maxsize=None)
def _is_coro_func(func: Callable[..., Any]) -> bool:
    if inspect.iscoroutinefunction(func):
        return True

    # callable objects with an async __call__
    call = getattr(func, "__call__", None)
    return call is not None and inspect.iscoroutinefunction(call)


def is_coro_func(func: Callable[..., Any]) -> bool:
    """Check if a function is a coroutine function, with caching."""
    try:
        return _is_coro_func(func)
    except TypeError:
        # unhashable callables skip the cache
        return _is_coro_func.__wrapped__(func)


def is_dunder(name: str) -> bool:
    return len(name) > 4 and name.startswith("__") and name.endswith("__")


def _static_adapter(func: Callable) -> Callable:
    @functools.wraps(func)
    def adapter(self, *args, **kwargs):
        return func(*args, **kwargs)

    return adapter


def _class_adapter(func: Callable) -> Callable:
    @functools.wraps(func)
    def adapter(self, *args, **kwargs):
        return func(type(self), *args, **kwargs)

    return adapter


def own_routines(source: type) -> list[tuple[str, Callable]]:
    """Return the routines a class defines itself, in definition order.

    Dunder members (constructor included) and inherited members are
    skipped. Staticmethods and classmethods are adapted to the
    ``(self, *args)`` calling convention so every entry can be bound to an
    instance the same way.
    """
    routines: list[tuple[str, Callable]] = []
    for name, member in vars(source).items():
        if is_dunder(name):
            continue
        if isinstance(member, staticmethod):
            routines.append((name, _static_adapter(member.__func__)))
        elif isinstance(member, classmethod):
            routines.append((name, _class_adapter(member.__func__)))
        elif isinstance(member, FunctionType):
            routines.append((name, member))
    return routines


def token_attr_name(token: Hashable) -> str:
    """Attribute name a dependency token is injected under."""
    if isinstance(token, str):
        return token
    name = getattr(token, "name", None)
    if isinstance(name, str) and name:
        return name
    return str(token)
