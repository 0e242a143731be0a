# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

import pytest

from amalgam.core import get_default_pipeline, get_default_registry
from amalgam.core.compiler import SourceCompiler
from amalgam.core.plugins import PluginPipeline
from amalgam.core.registry import DependencyRegistry


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def reset_process_state():
    """Give every test an empty process-wide pipeline and registry."""
    get_default_pipeline().clear()
    get_default_registry().clear()
    yield
    get_default_pipeline().clear()
    get_default_registry().clear()


@pytest.fixture
def pipeline():
    return PluginPipeline()


@pytest.fixture
def registry():
    return DependencyRegistry()


@pytest.fixture
def compiler():
    return SourceCompiler(enabled=True)
