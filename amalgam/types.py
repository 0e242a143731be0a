# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Value types consumed by a composition call.

Composable elements are plain frozen dataclasses; the option records are
frozen pydantic models so that loosely shaped caller input
(``{"greet": {"kind": "string"}}``) is validated and coerced once, at the
boundary.
"""

from __future__ import annotations

import itertools
import numbers
from collections.abc import Callable, Hashable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from ._sentinel import Unset, is_sentinel
from ._utils import token_attr_name
from .config import settings

__all__ = (
    "ComposableElement",
    "CompositionOptions",
    "ConflictPolicy",
    "DependencyRule",
    "GenericToken",
    "Kind",
    "NamedCallable",
    "Property",
    "Requirement",
    "SymbolicMarker",
    "TextualCallable",
    "TypeContract",
)


@dataclass(slots=True, frozen=True)
class NamedCallable:
    """A callable merged under an explicit name."""

    name: str
    func: Callable


@dataclass(slots=True, frozen=True)
class TextualCallable:
    """Source text that compiles to exactly one callable."""

    source: str


@dataclass(slots=True, frozen=True)
class SymbolicMarker:
    """A protocol key (``"__iter__"``) installed with a self-returning body."""

    key: str


@dataclass(slots=True, frozen=True)
class Property:
    """A validated accessor-pair property declaration."""

    name: str


ComposableElement = Union[
    type,
    Callable,
    NamedCallable,
    TextualCallable,
    SymbolicMarker,
    Property,
    str,
]


class ConflictPolicy(str, Enum):
    """What to do when a name being bound already exists."""

    FAIL = "fail"
    RENAME = "rename"
    OVERRIDE = "override"


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Number) and not isinstance(value, bool)


def _is_object(value: Any) -> bool:
    if value is None or callable(value):
        return False
    return not isinstance(value, (str, bytes, bool, numbers.Number))


class Kind(str, Enum):
    """Primitive kinds a type contract can require."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    CALLABLE = "callable"
    ANY = "any"

    def matches(self, value: Any) -> bool:
        match self:
            case Kind.STRING:
                return isinstance(value, str)
            case Kind.NUMBER:
                return _is_number(value)
            case Kind.BOOLEAN:
                return isinstance(value, bool)
            case Kind.OBJECT:
                return _is_object(value)
            case Kind.CALLABLE:
                return callable(value)
            case _:
                return True


class TypeContract(BaseModel):
    """Type/shape contract enforced on every argument bound to a name."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Kind = Field(
        default=Kind.ANY, validation_alias=AliasChoices("kind", "type")
    )
    is_array: bool = Field(
        default=False, validation_alias=AliasChoices("is_array", "array")
    )
    predicate: Callable[[Any], bool] | None = Field(
        default=None, validation_alias=AliasChoices("predicate", "validate")
    )

    def accepts(self, value: Any) -> bool:
        if self.is_array:
            if not isinstance(value, Sequence) or isinstance(
                value, (str, bytes, bytearray)
            ):
                return False
            ok = all(self.kind.matches(item) for item in value)
        else:
            ok = self.kind.matches(value)
        if ok and self.predicate is not None:
            return bool(self.predicate(value))
        return ok


class DependencyRule(BaseModel):
    """How a dependency token resolves: a value, a class, or a factory."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    token: Hashable
    use_value: Any = Unset
    use_class: type | None = None
    use_factory: Callable[..., Any] | None = None
    deps: tuple[Hashable, ...] = ()

    @model_validator(mode="after")
    def check_single_strategy(self):
        chosen = sum(
            (
                not is_sentinel(self.use_value),
                self.use_class is not None,
                self.use_factory is not None,
            )
        )
        if chosen != 1:
            raise ValueError(
                "Exactly one of use_value, use_class or use_factory must be set."
            )
        if self.deps and self.use_factory is None:
            raise ValueError("deps are only meaningful with use_factory.")
        return self


@dataclass(slots=True, frozen=True)
class Requirement:
    """A dependency a composed type injects into each new instance."""

    token: Hashable
    attr: str | None = None

    @property
    def attr_name(self) -> str:
        return self.attr or token_attr_name(self.token)


_generic_ids = itertools.count(1)


@dataclass(slots=True, frozen=True)
class GenericToken:
    """Opaque stand-in for a generic parameter. Never interpreted."""

    label: str
    uid: int = field(default_factory=lambda: next(_generic_ids))

    def __repr__(self) -> str:
        return f"GenericToken({self.label!r})"


class CompositionOptions(BaseModel):
    """Everything a composition call can be configured with."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    implements: tuple[Any, ...] = ()
    """Required capabilities: classes or ``Capability`` descriptors."""

    contracts: dict[str, TypeContract] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("contracts", "type_checking"),
    )
    dependencies: tuple[Any, ...] = ()
    """``Requirement`` entries; bare tokens are wrapped on validation."""

    conflict: ConflictPolicy = Field(
        default_factory=lambda: ConflictPolicy(settings.DEFAULT_CONFLICT_POLICY)
    )
    mixins: tuple[type, ...] = ()
    metadata: dict[str, Any] | None = None
    generics: dict[str, Any] = Field(default_factory=dict)
    decorators: dict[str, Callable[[Callable], Callable]] = Field(
        default_factory=dict
    )

    @field_validator("implements", mode="before")
    @classmethod
    def coerce_capabilities(cls, value: Any) -> tuple:
        from .core.capability import Capability

        return tuple(Capability.coerce(item) for item in _as_tuple(value))

    @field_validator("dependencies", mode="before")
    @classmethod
    def coerce_dependencies(cls, value: Any) -> tuple:
        out = []
        for item in _as_tuple(value):
            if isinstance(item, Requirement):
                out.append(item)
            elif isinstance(item, DependencyRule):
                out.append(Requirement(item.token))
            elif isinstance(item, Hashable):
                out.append(Requirement(item))
            else:
                raise ValueError(f"Unhashable dependency token: {item!r}")
        return tuple(out)

    @classmethod
    def coerce(cls, value: CompositionOptions | Mapping | None, **kw):
        """Build options from an instance, a mapping, or keyword arguments."""
        if isinstance(value, cls):
            if not kw:
                return value
            value = {k: getattr(value, k) for k in cls.model_fields}
        data = dict(value or {})
        data.update(kw)
        return cls.model_validate(data)


def _as_tuple(value: Any) -> tuple:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return (value,)
