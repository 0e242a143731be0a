# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Method binder - wraps raw callables into guarded, chainable methods.

A bound method always returns the instance it was called on, so calls
chain. The true (post-hook) result of the most recent call is captured
per instance and per name, and read back with :func:`get_method_result`.

Call sequence of a bound method:

1. fold the positional arguments through ``before_call``
2. validate them against the contract for the requested name
3. call the original callable with the instance as first argument
4. fold the raw result through ``after_call``
5. capture the folded result
6. return the instance

Any failure in steps 1-4 is shown to the ``on_error`` hooks and re-raised.

Only positional arguments go through ``before_call``; keyword arguments
reach the callable as given and are validated by keyword.

When the callable returns an awaitable and an event loop is running, the
awaitable is scheduled as a task and the instance is returned right away;
the resolved value goes through steps 4-5 once it settles. A failure is
kept per name until :func:`settle` re-raises it. Without a running loop the
awaitable is driven to completion before returning.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import itertools
import logging
from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any

import anyio

from .._errors import DuplicateNameError
from .._sentinel import Unset
from ..config import settings
from ..types import CompositionOptions, ConflictPolicy
from .plugins import HookType, PluginPipeline, get_default_pipeline
from .validator import validate

logger = logging.getLogger(__name__)

__all__ = (
    "MethodBinder",
    "get_method_result",
    "settle",
)

_RESULTS = "_amalgam_results"
_PENDING = "_amalgam_pending"
_CALLS = "_amalgam_calls"
_FAILED = "_amalgam_failed"
_DEFERRED = object()

_rename_ids = itertools.count(1)


def _slot(instance: Any, key: str) -> dict:
    return vars(instance).setdefault(key, {})


def _begin_call(instance: Any, name: str) -> int:
    calls = _slot(instance, _CALLS)
    calls[name] = seq = calls.get(name, 0) + 1
    return seq


def _capture(instance: Any, name: str, value: Any, seq: int) -> None:
    # a late async result must not overwrite a newer call's result
    if _slot(instance, _CALLS).get(name, 0) == seq:
        _slot(instance, _RESULTS)[name] = value


def _report(pipeline: PluginPipeline, error: BaseException) -> None:
    try:
        pipeline.fold(HookType.ON_ERROR, error)
    except Exception:
        logger.exception("on_error hook failed")


def get_method_result(instance: Any, name: str, default: Any = Unset) -> Any:
    """Return the captured result of the last call to ``name`` on
    ``instance``, or ``default`` if there is none yet."""
    return vars(instance).get(_RESULTS, {}).get(name, default)


async def settle(instance: Any, name: str | None = None) -> Any:
    """Wait for background calls on ``instance`` to finish.

    Args:
        instance: Instance whose bound methods returned awaitables.
        name: Only wait for calls to this method. All methods if omitted.

    Returns:
        The captured result for ``name``, or None when ``name`` is omitted.

    Raises:
        Exception: Whatever a background call raised.
    """
    pending = vars(instance).get(_PENDING, {})
    names = [name] if name is not None else list(pending)
    for n in names:
        for task in list(pending.get(n, ())):
            await task

    failed = vars(instance).get(_FAILED, {})
    for n in [name] if name is not None else list(failed):
        if n in failed:
            raise failed.pop(n)
    return get_method_result(instance, name) if name is not None else None


async def _await(awaitable: Awaitable) -> Any:
    return await awaitable


class MethodBinder:
    """Installs wrapped callables into a behavior table.

    Args:
        options: Conflict policy, contracts and decorators of the
            composition call this binder serves.
        pipeline: Plugin pipeline whose call hooks wrap every invocation.
    """

    def __init__(
        self,
        options: CompositionOptions | None = None,
        pipeline: PluginPipeline | None = None,
    ):
        self.options = options or CompositionOptions()
        self.pipeline = get_default_pipeline() if pipeline is None else pipeline

    def bind(
        self,
        table: MutableMapping[str, Callable],
        name: str,
        func: Callable,
    ) -> str:
        """Wrap ``func`` and install it in ``table``.

        Returns:
            The name the method was installed under. Differs from ``name``
            only under the rename policy.

        Raises:
            DuplicateNameError: ``name`` is taken and the policy is ``fail``.
        """
        if decorator := self.options.decorators.get(name):
            func = decorator(func)

        installed = self.resolve(table, name)
        table[installed] = self.wrap(installed, func, contract=name)
        return installed

    def resolve(self, table: MutableMapping[str, Callable], name: str) -> str:
        """Apply the conflict policy to ``name`` and return the name to
        install under.

        Raises:
            DuplicateNameError: ``name`` is taken and the policy is ``fail``.
        """
        if name not in table:
            return name
        match self.options.conflict:
            case ConflictPolicy.FAIL:
                raise DuplicateNameError(name)
            case ConflictPolicy.RENAME:
                installed = self.alternate_name(table, name)
                logger.debug(f"Renamed conflicting {name!r} to {installed!r}")
                return installed
            case _:
                logger.debug(f"Overriding {name!r}")
                return name

    def relocate(self, table: MutableMapping[str, Callable], name: str) -> str:
        """Move the entry under ``name`` to a fresh alternate name.

        Wrapped entries are rewrapped so results are captured under the new
        name; they keep validating against the contract for ``name``.
        """
        entry = table.pop(name)
        installed = self.alternate_name(table, name)
        raw = getattr(entry, "__wrapped__", None)
        if raw is not None:
            entry = self.wrap(installed, raw, contract=name)
        table[installed] = entry
        logger.debug(f"Moved {name!r} to {installed!r}")
        return installed

    @staticmethod
    def alternate_name(table: MutableMapping[str, Callable], name: str) -> str:
        sep = settings.RENAME_SEPARATOR
        while True:
            candidate = f"{name}{sep}{next(_rename_ids)}"
            if candidate not in table:
                return candidate

    def wrap(
        self, name: str, func: Callable, *, contract: str | None = None
    ) -> Callable:
        """Build the chainable wrapper for ``func``.

        Args:
            name: Name the method is installed and captured under.
            func: Raw callable; receives the instance as first argument.
            contract: Contract key to validate against, ``name`` by default.
        """
        pipeline = self.pipeline
        contracts = self.options.contracts
        contract = contract or name

        @functools.wraps(func)
        def bound(instance, *args, **kwargs):
            seq = _begin_call(instance, name)
            try:
                call_args = args
                if pipeline.has_hooks(HookType.BEFORE_CALL):
                    call_args = pipeline.fold(
                        HookType.BEFORE_CALL, list(args), name
                    )
                    if not isinstance(call_args, (list, tuple)):
                        call_args = [call_args]
                validate(contract, call_args, contracts, kwargs)
                result = func(instance, *call_args, **kwargs)
                if inspect.isawaitable(result):
                    result = _defer(instance, name, result, pipeline, seq)
                    if result is _DEFERRED:
                        return instance
                result = pipeline.fold(HookType.AFTER_CALL, result, name)
            except Exception as e:
                logger.debug(f"Error in bound method {name!r}: {e}", exc_info=True)
                _report(pipeline, e)
                raise
            _capture(instance, name, result, seq)
            return instance

        bound.__name__ = name
        return bound


def _defer(
    instance: Any,
    name: str,
    awaitable: Awaitable,
    pipeline: PluginPipeline,
    seq: int,
) -> Any:
    """Schedule ``awaitable`` on the running loop, or run it to completion.

    Returns the resolved value when run inline, ``_DEFERRED`` when scheduled.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return anyio.run(_await, awaitable)

    task = loop.create_task(_settle_call(instance, name, awaitable, pipeline, seq))
    bucket = _slot(instance, _PENDING).setdefault(name, [])
    bucket.append(task)
    task.add_done_callback(bucket.remove)
    return _DEFERRED


async def _settle_call(
    instance: Any,
    name: str,
    awaitable: Awaitable,
    pipeline: PluginPipeline,
    seq: int,
) -> Any:
    try:
        value = await awaitable
        value = pipeline.fold(HookType.AFTER_CALL, value, name)
    except Exception as e:
        logger.error(f"Background call {name!r} failed: {e}", exc_info=True)
        _report(pipeline, e)
        _slot(instance, _FAILED)[name] = e
        return None
    _capture(instance, name, value, seq)
    return value
