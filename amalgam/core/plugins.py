# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Plugin pipeline - ordered hook bundles folded left to right."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from typing_extensions import TypedDict

from .._utils import is_coro_func

logger = logging.getLogger(__name__)

__all__ = (
    "HookType",
    "PluginBundle",
    "PluginPipeline",
    "get_default_pipeline",
)


class HookType(str, Enum):
    """Extension points of the composition engine."""

    BEFORE_ASSEMBLY = "before_assembly"  # elements -> elements
    AFTER_ASSEMBLY = "after_assembly"  # composed type -> composed type
    BEFORE_CALL = "before_call"  # (name, args) -> args
    AFTER_CALL = "after_call"  # (name, result) -> result
    ON_ERROR = "on_error"  # error -> None, observe only

    @classmethod
    def allowed(cls) -> set[str]:
        return {member.value for member in cls}

    @property
    def observational(self) -> bool:
        return self is HookType.ON_ERROR


class PluginBundle(TypedDict, total=False):
    before_assembly: Callable[[list], list]
    after_assembly: Callable[[type], type]
    before_call: Callable[[str, list], list]
    after_call: Callable[[str, Any], Any]
    on_error: Callable[[BaseException], None]


def _normalize(bundle: PluginBundle | Mapping | object) -> dict[HookType, Callable]:
    if isinstance(bundle, Mapping):
        unknown = set(bundle) - HookType.allowed()
        if unknown:
            raise ValueError(f"Unknown hook names: {sorted(unknown)}")
        items = bundle.items()
    else:
        items = (
            (hook.value, getattr(bundle, hook.value, None)) for hook in HookType
        )

    hooks: dict[HookType, Callable] = {}
    for key, fn in items:
        if fn is None:
            continue
        if not callable(fn):
            raise TypeError(f"Hook {key!r} must be callable")
        if is_coro_func(fn):
            raise ValueError(f"Hook {key!r} must be synchronous")
        hooks[HookType(key)] = fn
    return hooks


class PluginPipeline:
    """Ordered list of plugin bundles.

    Bundles are never removed; registration order is folding order. A bundle
    may be a mapping (see :class:`PluginBundle`) or any object exposing the
    hook names as attributes.
    """

    def __init__(self):
        self._bundles: list[dict[HookType, Callable]] = []

    def register(self, bundle: PluginBundle | Mapping | object) -> None:
        hooks = _normalize(bundle)
        self._bundles.append(hooks)
        logger.debug(
            f"Registered plugin #{len(self._bundles)} with hooks "
            f"{[h.value for h in hooks]}"
        )

    def fold(self, hook: HookType | str, initial: Any, *context: Any) -> Any:
        """Left-fold ``initial`` through every bundle defining ``hook``.

        Each hook is called as ``fn(*context, acc)`` and its return value
        becomes the new accumulator. Observational hooks (``on_error``) are
        called the same way but never change the accumulator. With no
        bundles defining ``hook`` this is the identity.
        """
        hook = HookType(hook)
        acc = initial
        for hooks in self._bundles:
            fn = hooks.get(hook)
            if fn is None:
                continue
            if hook.observational:
                fn(*context, acc)
            else:
                acc = fn(*context, acc)
        return acc

    def has_hooks(self, hook: HookType | str) -> bool:
        hook = HookType(hook)
        return any(hook in hooks for hooks in self._bundles)

    def __len__(self) -> int:
        return len(self._bundles)

    def clear(self) -> None:
        """Drop every bundle (mainly for testing)."""
        self._bundles.clear()


_default_pipeline = PluginPipeline()


def get_default_pipeline() -> PluginPipeline:
    """Get the process-wide plugin pipeline."""
    return _default_pipeline
