# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Error hierarchy for the composition engine.

Every error carries a machine-readable ``code``, a human message and a
``details`` mapping naming the offending entity, so callers and on-error
hooks can report failures without parsing messages.
"""

from __future__ import annotations

from typing import Any, ClassVar

__all__ = (
    "AmalgamError",
    "DuplicateNameError",
    "MissingCapabilityError",
    "ValidationError",
    "DependencyNotFoundError",
    "CompilationError",
)


class AmalgamError(Exception):
    """Base for all amalgam errors."""

    default_message: ClassVar[str] = "Amalgam error"
    code: ClassVar[str] = "amalgam_error"

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message or self.default_message)
        if cause:
            self.__cause__ = cause
        self.message = message or self.default_message
        self.details = details or {}
        self.context = context or {}

    def to_dict(self, *, include_cause: bool = False) -> dict[str, Any]:
        """Serialize error to a structured dictionary for logging."""
        data = {
            "error": self.__class__.__name__,
            "code": type(self).code,
            "message": self.message,
            **({"details": self.details} if self.details else {}),
            **({"context": self.context} if self.context else {}),
        }
        if include_cause and self.__cause__ is not None:
            data["cause"] = repr(self.__cause__)
        return data


class DuplicateNameError(AmalgamError):
    """A name is already bound and the conflict policy is ``fail``."""

    default_message = "Name already bound"
    code = "duplicate_name"

    def __init__(self, name: str, **kwargs: Any):
        super().__init__(
            f"Method {name!r} already exists",
            details={"name": name},
            **kwargs,
        )

    @property
    def name(self) -> str:
        return self.details["name"]


class MissingCapabilityError(AmalgamError):
    """The assembled type lacks a member a required capability declares."""

    default_message = "Capability not satisfied"
    code = "missing_capability"

    def __init__(
        self, type_name: str, capability: str, member: str, **kwargs: Any
    ):
        super().__init__(
            f"Type {type_name!r} does not implement {member!r} "
            f"from capability {capability!r}",
            details={
                "type_name": type_name,
                "capability": capability,
                "member": member,
            },
            **kwargs,
        )

    @property
    def capability(self) -> str:
        return self.details["capability"]

    @property
    def member(self) -> str:
        return self.details["member"]


class ValidationError(AmalgamError, TypeError):
    """A value violates the type contract declared for a name."""

    default_message = "Validation failed"
    code = "validation_failed"

    def __init__(self, contract: str, position: int | str, **kwargs: Any):
        super().__init__(
            f"Invalid type for argument {position} of {contract}",
            details={"contract": contract, "position": position},
            **kwargs,
        )

    @property
    def contract(self) -> str:
        return self.details["contract"]

    @property
    def position(self) -> int | str:
        return self.details["position"]


class DependencyNotFoundError(AmalgamError, LookupError):
    """A dependency token was looked up but never registered."""

    default_message = "Dependency not found"
    code = "dependency_not_found"

    def __init__(self, token: Any, **kwargs: Any):
        super().__init__(
            f"Dependency {token!s} not found",
            details={"token": token},
            **kwargs,
        )

    @property
    def token(self) -> Any:
        return self.details["token"]


class CompilationError(AmalgamError, ValueError):
    """Source text could not be turned into exactly one callable."""

    default_message = "Could not compile callable from source"
    code = "compilation_failed"
