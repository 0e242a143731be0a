# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from .._errors import MissingCapabilityError
from .._utils import own_routines

__all__ = ("Capability",)


@dataclass(slots=True, frozen=True)
class Capability:
    """A named, ordered set of member names a composed type must expose.

    Conformance is checked by name only. Two types whose members carry the
    same names but different signatures both satisfy the same capability.
    """

    name: str
    members: tuple[str, ...]

    @classmethod
    def from_source(cls, source: type) -> Capability:
        """Derive a capability from the routines a class defines itself."""
        return cls(
            name=source.__name__,
            members=tuple(name for name, _ in own_routines(source)),
        )

    @classmethod
    def coerce(cls, value: Any) -> Capability:
        if isinstance(value, cls):
            return value
        if isinstance(value, type):
            return cls.from_source(value)
        raise TypeError(
            f"Expected a class or Capability, got {type(value).__name__}"
        )

    def missing(self, names: Iterable[str]) -> list[str]:
        """Members absent from ``names``, in declaration order."""
        present = set(names)
        return [m for m in self.members if m not in present]

    def verify(self, type_name: str, table: Mapping[str, Any]) -> None:
        """Raise on the first member the behavior table does not provide."""
        if missing := self.missing(table):
            raise MissingCapabilityError(type_name, self.name, missing[0])
