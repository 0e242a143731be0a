# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Turning source text into callables.

The composer only depends on the :class:`CallableCompiler` interface; the
execution environment (globals, whether text is accepted at all) belongs to
the compiler an embedding application injects.
"""

from __future__ import annotations

import ast
import logging
import textwrap
from collections.abc import Callable, Mapping
from typing import Any, Protocol, runtime_checkable

from .._errors import CompilationError
from ..config import settings

logger = logging.getLogger(__name__)

__all__ = (
    "CallableCompiler",
    "SourceCompiler",
    "looks_like_source",
)

_SOURCE_PREFIXES = ("def ", "async def ", "lambda", "@")


def looks_like_source(text: str) -> bool:
    """Whether a bare string element should be compiled rather than
    treated as a property name."""
    return text.lstrip().startswith(_SOURCE_PREFIXES)


@runtime_checkable
class CallableCompiler(Protocol):
    def compile(self, source: str) -> Callable: ...


class SourceCompiler:
    """Compile a single ``def``/``async def`` or a ``lambda`` expression.

    Args:
        namespace: Globals visible to the compiled code. Copied per call,
            so compiled callables never leak names into each other.
        enabled: Overrides ``AMALGAM_ALLOW_TEXTUAL_CALLABLES``.
    """

    def __init__(
        self,
        namespace: Mapping[str, Any] | None = None,
        *,
        enabled: bool | None = None,
    ):
        self._namespace = dict(namespace or {})
        self._enabled = (
            settings.ALLOW_TEXTUAL_CALLABLES if enabled is None else enabled
        )

    def compile(self, source: str) -> Callable:
        if not self._enabled:
            raise CompilationError("Textual callables are disabled")

        text = textwrap.dedent(source).strip()
        try:
            tree = ast.parse(text, mode="exec")
        except SyntaxError as e:
            raise CompilationError(
                f"Invalid callable source: {e.msg}",
                details={"source": source},
            ) from e

        if len(tree.body) != 1:
            raise CompilationError(
                "Source must define exactly one function or lambda",
                details={"source": source},
            )

        node = tree.body[0]
        namespace = {"__builtins__": __builtins__, **self._namespace}

        if isinstance(node, ast.Expr) and isinstance(node.value, ast.Lambda):
            expr = ast.Expression(body=node.value)
            func = eval(compile(expr, "<amalgam>", "eval"), namespace)
        elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            exec(compile(tree, "<amalgam>", "exec"), namespace)
            func = namespace[node.name]
        else:
            raise CompilationError(
                "Source must define exactly one function or lambda",
                details={"source": source},
            )

        logger.debug(f"Compiled callable {getattr(func, '__name__', func)!r}")
        return func
