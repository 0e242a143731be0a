# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

import logging

from ._errors import (
    AmalgamError,
    CompilationError,
    DependencyNotFoundError,
    DuplicateNameError,
    MissingCapabilityError,
    ValidationError,
)
from ._sentinel import Unset
from .config import AmalgamSettings, settings
from .core import (
    Capability,
    Composer,
    HookType,
    compose,
    compose_many,
    create_generic,
    get_method_result,
    mixin_many,
    register_dependency,
    register_plugin,
    settle,
)
from .types import (
    CompositionOptions,
    ConflictPolicy,
    DependencyRule,
    GenericToken,
    Kind,
    NamedCallable,
    Property,
    Requirement,
    SymbolicMarker,
    TextualCallable,
    TypeContract,
)
from .version import __version__

logger = logging.getLogger(__name__)

__all__ = (
    "__version__",
    "AmalgamError",
    "AmalgamSettings",
    "Capability",
    "CompilationError",
    "Composer",
    "CompositionOptions",
    "ConflictPolicy",
    "DependencyNotFoundError",
    "DependencyRule",
    "DuplicateNameError",
    "GenericToken",
    "HookType",
    "Kind",
    "MissingCapabilityError",
    "NamedCallable",
    "Property",
    "Requirement",
    "SymbolicMarker",
    "TextualCallable",
    "TypeContract",
    "Unset",
    "ValidationError",
    "compose",
    "compose_many",
    "create_generic",
    "get_method_result",
    "logger",
    "mixin_many",
    "register_dependency",
    "register_plugin",
    "settings",
    "settle",
)
