# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Composition engine - assembles new types from composable elements.

A composition call runs, in order:

1. fold the element list through ``before_assembly``
2. bind every own routine of every mixin
3. classify and bind every element
4. build the type; its constructor installs the property table and
   injects declared dependencies
5. attach the behavior table as the type's shared, sealed method surface
6. verify required capabilities against the behavior table
7. attach metadata to the type (read-only, not on instances)
8. fold the type through ``after_assembly``

Any error aborts the call; no partially assembled type escapes.
"""

from __future__ import annotations

import logging
import weakref
from collections.abc import Callable, Hashable, Iterable, Mapping
from types import FunctionType, MappingProxyType
from typing import Any, ClassVar

from .._errors import DuplicateNameError
from .._utils import is_dunder, own_routines
from ..config import settings
from ..types import (
    ComposableElement,
    CompositionOptions,
    ConflictPolicy,
    DependencyRule,
    GenericToken,
    NamedCallable,
    Property,
    Requirement,
    SymbolicMarker,
    TextualCallable,
)
from .compiler import CallableCompiler, SourceCompiler, looks_like_source
from .methods import MethodBinder
from .plugins import HookType, PluginBundle, PluginPipeline, get_default_pipeline
from .properties import ContractProperty, PropertyBinder
from .registry import DependencyRegistry, get_default_registry

logger = logging.getLogger(__name__)

__all__ = (
    "ComposedBase",
    "ComposedType",
    "Composer",
    "compose",
    "compose_many",
    "create_generic",
    "get_default_composer",
    "mixin_many",
    "register_dependency",
    "register_plugin",
)

_METADATA: weakref.WeakKeyDictionary[type, Mapping[str, Any]] = (
    weakref.WeakKeyDictionary()
)


class ComposedType(type):
    """Metaclass of every composed type.

    Names listed in a type's ``__sealed__`` cannot be reassigned or deleted
    once the type exists. Metadata is served from here, so it is readable on
    the type but neither stored in its namespace nor visible on instances.
    """

    def __setattr__(cls, name: str, value: Any) -> None:
        if name in cls.__dict__.get("__sealed__", ()):
            raise AttributeError(
                f"Cannot reassign {name!r} on composed type {cls.__name__!r}"
            )
        super().__setattr__(name, value)

    def __delattr__(cls, name: str) -> None:
        if name in cls.__dict__.get("__sealed__", ()):
            raise AttributeError(
                f"Cannot delete {name!r} from composed type {cls.__name__!r}"
            )
        super().__delattr__(name)

    @property
    def metadata(cls) -> Mapping[str, Any]:
        try:
            return _METADATA[cls]
        except KeyError:
            raise AttributeError(
                f"Composed type {cls.__name__!r} declares no metadata"
            ) from None


class ComposedBase(metaclass=ComposedType):
    """Base of every composed type.

    Keyword arguments name declared properties and are assigned through
    their validating setters after dependencies are injected.
    """

    __behaviors__: ClassVar[Mapping[str, Callable]] = MappingProxyType({})
    __properties__: ClassVar[tuple[str, ...]] = ()
    __requirements__: ClassVar[tuple[Requirement, ...]] = ()
    __generics__: ClassVar[Mapping[str, Any]] = MappingProxyType({})
    __registry__: ClassVar[DependencyRegistry]

    def __init__(self, **initial: Any):
        cls = type(self)
        PropertyBinder.install(self, cls.__properties__)
        for req in cls.__requirements__:
            setattr(self, req.attr_name, cls.__registry__.get(req.token))
        for key, value in initial.items():
            if key not in cls.__properties__:
                raise TypeError(
                    f"{cls.__name__}() got an unexpected keyword argument {key!r}"
                )
            setattr(self, key, value)


def _self_returning(key: str) -> Callable:
    def marker(self):
        return self

    marker.__name__ = key
    return marker


def _fallback_name(func: Callable, index: int) -> str:
    name = getattr(func, "__name__", None)
    if not name or name == "<lambda>":
        return f"function_{index + 1}"
    return name


class Composer:
    """Assembles composed types.

    Args:
        pipeline: Plugin pipeline. The process-wide one by default.
        registry: Dependency registry instances resolve from. The
            process-wide one by default.
        compiler: Turns textual callables into callables.
    """

    def __init__(
        self,
        *,
        pipeline: PluginPipeline | None = None,
        registry: DependencyRegistry | None = None,
        compiler: CallableCompiler | None = None,
    ):
        # empty pipelines and registries are falsy
        self.pipeline = get_default_pipeline() if pipeline is None else pipeline
        self.registry = get_default_registry() if registry is None else registry
        self.compiler = SourceCompiler() if compiler is None else compiler

    def register_plugin(self, bundle: PluginBundle | Mapping | object) -> None:
        self.pipeline.register(bundle)

    def register_dependency(
        self, rule: DependencyRule | Hashable, /, **kw: Any
    ) -> Any:
        return self.registry.register(rule, **kw)

    def compose(
        self,
        name: str,
        elements: Iterable[ComposableElement] = (),
        options: CompositionOptions | Mapping | None = None,
        /,
        **kw: Any,
    ) -> type:
        """Assemble a new type named ``name``.

        Options may be given as a :class:`CompositionOptions`, a mapping,
        keyword arguments, or a mix (keywords win).

        Raises:
            DuplicateNameError: A name clashes under the ``fail`` policy.
            MissingCapabilityError: A required capability member is absent.
            CompilationError: A textual callable does not compile.
        """
        options = CompositionOptions.coerce(options, **kw)
        logger.debug(f"Composing {name!r} with conflict={options.conflict.value}")

        elements = self.pipeline.fold(HookType.BEFORE_ASSEMBLY, list(elements))

        methods = MethodBinder(options, self.pipeline)
        props = PropertyBinder(options)
        behaviors: dict[str, Callable] = {}
        properties: dict[str, ContractProperty] = {}

        for mixin in options.mixins:
            for member, func in own_routines(mixin):
                methods.bind(behaviors, member, func)

        for index, element in enumerate(elements):
            self._dispatch(element, index, behaviors, properties, methods, props)

        cls = self._build(name, behaviors, properties, methods)

        for capability in options.implements:
            capability.verify(name, cls.__behaviors__)

        if options.metadata is not None:
            _METADATA[cls] = MappingProxyType(dict(options.metadata))

        composed = self.pipeline.fold(HookType.AFTER_ASSEMBLY, cls)
        if not isinstance(composed, type):
            raise TypeError(
                f"after_assembly hook returned {type(composed).__name__}, "
                "expected a type"
            )
        return composed

    def compose_many(self, *sources: type, name: str | None = None) -> type:
        """Merge the routines of ``sources`` (later ones win) and require
        every source as a capability."""
        elements = [
            NamedCallable(member, func)
            for source in sources
            for member, func in own_routines(source)
        ]
        return self.compose(
            name or settings.DEFAULT_TYPE_NAME,
            elements,
            implements=sources,
            conflict=ConflictPolicy.OVERRIDE,
        )

    def mixin_many(self, *sources: type, name: str | None = None) -> type:
        """Compose nothing but ``sources`` as mixins, later ones winning."""
        return self.compose(
            name or settings.DEFAULT_MIXIN_NAME,
            (),
            mixins=sources,
            conflict=ConflictPolicy.OVERRIDE,
        )

    @staticmethod
    def create_generic(label: str = "T") -> GenericToken:
        return GenericToken(label)

    def _dispatch(
        self,
        element: ComposableElement,
        index: int,
        behaviors: dict[str, Callable],
        properties: dict[str, ContractProperty],
        methods: MethodBinder,
        props: PropertyBinder,
    ) -> None:
        match element:
            case NamedCallable(name=name, func=func):
                logger.debug(f"Element {index} is named callable {name!r}")
                methods.bind(behaviors, name, func)
            case TextualCallable(source=source):
                self._bind_source(source, index, behaviors, methods)
            case SymbolicMarker(key=key):
                self._install_marker(key, behaviors, methods)
            case Property(name=name):
                props.define(properties, name)
            case str() if is_dunder(element):
                self._install_marker(element, behaviors, methods)
            case str() if looks_like_source(element):
                self._bind_source(element, index, behaviors, methods)
            case str() if element.isidentifier():
                logger.debug(f"Element {index} is property {element!r}")
                props.define(properties, element)
            case str():
                raise ValueError(
                    f"String element {element!r} is neither source text "
                    "nor a property name"
                )
            case type():
                logger.debug(f"Element {index} is behavior source {element.__name__}")
                for member, func in own_routines(element):
                    methods.bind(behaviors, member, func)
            case _ if callable(element):
                name = _fallback_name(element, index)
                logger.debug(f"Element {index} is standalone callable {name!r}")
                methods.bind(behaviors, name, element)
            case _:
                raise TypeError(
                    f"Unsupported composable element: {type(element).__name__}"
                )

    def _bind_source(
        self,
        source: str,
        index: int,
        behaviors: dict[str, Callable],
        methods: MethodBinder,
    ) -> None:
        func = self.compiler.compile(source)
        name = _fallback_name(func, index)
        logger.debug(f"Element {index} is textual callable {name!r}")
        methods.bind(behaviors, name, func)

    @staticmethod
    def _install_marker(
        key: str, behaviors: dict[str, Callable], methods: MethodBinder
    ) -> None:
        installed = methods.resolve(behaviors, key)
        logger.debug(f"Installing symbolic marker {installed!r}")
        behaviors[installed] = _self_returning(installed)

    def _build(
        self,
        name: str,
        behaviors: dict[str, Callable],
        properties: dict[str, ContractProperty],
        methods: MethodBinder,
    ) -> type:
        options = methods.options
        for prop in properties:
            if prop not in behaviors:
                continue
            match options.conflict:
                case ConflictPolicy.FAIL:
                    raise DuplicateNameError(prop)
                case ConflictPolicy.RENAME:
                    moved = methods.relocate(behaviors, prop)
                    logger.warning(
                        f"Property {prop!r} displaced a method of {name!r} "
                        f"to {moved!r}"
                    )
                case _:
                    logger.warning(
                        f"Property {prop!r} shadows a method of {name!r}"
                    )
                    del behaviors[prop]

        for member, func in behaviors.items():
            if isinstance(func, FunctionType):
                func.__qualname__ = f"{name}.{member}"

        table = MappingProxyType(dict(behaviors))
        namespace = {
            "__qualname__": name,
            "__behaviors__": table,
            "__properties__": tuple(properties),
            "__requirements__": tuple(options.dependencies),
            "__generics__": MappingProxyType(dict(options.generics)),
            "__registry__": self.registry,
            **table,
            **properties,
        }
        namespace["__sealed__"] = frozenset(namespace) - {"__qualname__"}
        cls = ComposedType(name, (ComposedBase,), namespace)
        logger.debug(
            f"Built {name!r}: {len(table)} behaviors, {len(properties)} properties"
        )
        return cls


_default_composer = Composer()


def get_default_composer() -> Composer:
    """Get the composer bound to the process-wide pipeline and registry."""
    return _default_composer


def register_plugin(bundle: PluginBundle | Mapping | object) -> None:
    _default_composer.register_plugin(bundle)


def register_dependency(rule: DependencyRule | Hashable, /, **kw: Any) -> Any:
    return _default_composer.register_dependency(rule, **kw)


def compose(
    name: str,
    elements: Iterable[ComposableElement] = (),
    options: CompositionOptions | Mapping | None = None,
    /,
    **kw: Any,
) -> type:
    return _default_composer.compose(name, elements, options, **kw)


def compose_many(*sources: type, name: str | None = None) -> type:
    return _default_composer.compose_many(*sources, name=name)


def mixin_many(*sources: type, name: str | None = None) -> type:
    return _default_composer.mixin_many(*sources, name=name)


create_generic = Composer.create_generic
