# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from .capability import Capability
from .compiler import CallableCompiler, SourceCompiler, looks_like_source
from .composer import (
    ComposedBase,
    ComposedType,
    Composer,
    compose,
    compose_many,
    create_generic,
    get_default_composer,
    mixin_many,
    register_dependency,
    register_plugin,
)
from .methods import MethodBinder, get_method_result, settle
from .plugins import HookType, PluginBundle, PluginPipeline, get_default_pipeline
from .properties import ContractProperty, PropertyBinder
from .registry import DependencyRegistry, get_default_registry
from .validator import validate

__all__ = (
    "CallableCompiler",
    "Capability",
    "ComposedBase",
    "ComposedType",
    "Composer",
    "ContractProperty",
    "DependencyRegistry",
    "HookType",
    "MethodBinder",
    "PluginBundle",
    "PluginPipeline",
    "PropertyBinder",
    "SourceCompiler",
    "compose",
    "compose_many",
    "create_generic",
    "get_default_composer",
    "get_default_pipeline",
    "get_default_registry",
    "get_method_result",
    "looks_like_source",
    "mixin_many",
    "register_dependency",
    "register_plugin",
    "settle",
    "validate",
)
