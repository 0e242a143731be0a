# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Dependency registry - token to resolved-value lookup.

Resolution is eager: a rule is resolved the moment it is registered, and
factory rules resolve their declared dependency tokens at that moment too.
A factory that depends on a token nobody registered yet fails right away
instead of on first use.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable
from typing import Any

from .._errors import DependencyNotFoundError
from .._sentinel import Unset
from ..types import DependencyRule

logger = logging.getLogger(__name__)

__all__ = (
    "DependencyRegistry",
    "get_default_registry",
)


class DependencyRegistry:
    """Maps dependency tokens to their resolved values.

    One registry is shared process-wide through :func:`get_default_registry`;
    embedding applications that need isolation construct their own and hand
    it to a :class:`~amalgam.core.composer.Composer`.
    """

    def __init__(self):
        self._resolved: dict[Hashable, Any] = {}

    def register(
        self,
        rule: DependencyRule | Hashable,
        /,
        *,
        use_value: Any = Unset,
        use_class: type | None = None,
        use_factory: Callable[..., Any] | None = None,
        deps: tuple[Hashable, ...] = (),
    ) -> Any:
        """Resolve a rule now and store the result under its token.

        A later registration for the same token replaces the earlier one.

        Returns:
            The resolved value.

        Raises:
            DependencyNotFoundError: A factory declared a dependency token
                that is not registered.
        """
        if not isinstance(rule, DependencyRule):
            rule = DependencyRule(
                token=rule,
                use_value=use_value,
                use_class=use_class,
                use_factory=use_factory,
                deps=tuple(deps),
            )

        if rule.use_class is not None:
            resolved = rule.use_class()
        elif rule.use_factory is not None:
            resolved = rule.use_factory(*(self.get(dep) for dep in rule.deps))
        else:
            resolved = rule.use_value

        if rule.token in self._resolved:
            logger.debug(f"Replacing dependency {rule.token!r}")
        self._resolved[rule.token] = resolved
        logger.debug(f"Registered dependency {rule.token!r}")
        return resolved

    def get(self, token: Hashable) -> Any:
        """Return the value registered under ``token``.

        Raises:
            DependencyNotFoundError: If the token was never registered.
        """
        try:
            return self._resolved[token]
        except KeyError:
            raise DependencyNotFoundError(token) from None

    def __contains__(self, token: Hashable) -> bool:
        return token in self._resolved

    def __len__(self) -> int:
        return len(self._resolved)

    def clear(self) -> None:
        """Drop every registration (mainly for testing)."""
        self._resolved.clear()


_default_registry = DependencyRegistry()


def get_default_registry() -> DependencyRegistry:
    """Get the process-wide dependency registry."""
    return _default_registry
