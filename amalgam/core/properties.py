# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, MutableMapping
from typing import Any

from .._sentinel import Unset
from ..types import CompositionOptions, TypeContract
from .validator import validate

logger = logging.getLogger(__name__)

__all__ = (
    "ContractProperty",
    "PropertyBinder",
)

_BACKING = "_amalgam_props"


def _backing(instance: Any) -> dict[str, Any]:
    return vars(instance).setdefault(_BACKING, {})


class ContractProperty:
    """Get/set accessor pair whose writes go through the type validator.

    The descriptor lives on the composed type; the value lives in a private
    per-instance store, so every instance has its own backing value. Reads
    before the first write return ``Unset``.
    """

    __slots__ = ("name", "contracts")

    def __init__(self, name: str, contracts: Mapping[str, TypeContract]):
        self.name = name
        self.contracts = contracts

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return _backing(instance).get(self.name, Unset)

    def __set__(self, instance: Any, value: Any) -> None:
        # validate first so a rejected write leaves the old value in place
        validate(self.name, [value], self.contracts)
        _backing(instance)[self.name] = value

    def __delete__(self, instance: Any) -> None:
        _backing(instance)[self.name] = Unset

    def __repr__(self) -> str:
        return f"ContractProperty({self.name!r})"


class PropertyBinder:
    """Builds the property table of one composition call."""

    def __init__(self, options: CompositionOptions | None = None):
        self.options = options or CompositionOptions()

    def define(
        self, table: MutableMapping[str, ContractProperty], name: str
    ) -> ContractProperty:
        if name in table:
            logger.debug(f"Property {name!r} declared more than once")
            return table[name]
        table[name] = prop = ContractProperty(name, self.options.contracts)
        return prop

    @staticmethod
    def install(instance: Any, names: Iterable[str]) -> None:
        """Give ``instance`` a fresh, unset backing value per property."""
        store = _backing(instance)
        for name in names:
            store.setdefault(name, Unset)
