# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ("AmalgamSettings", "settings")


class AmalgamSettings(BaseSettings, frozen=True):
    """Engine settings with environment variable support.

    Every field can be overridden with an ``AMALGAM_`` prefixed environment
    variable, e.g. ``AMALGAM_DEFAULT_CONFLICT_POLICY=fail``.
    """

    model_config = SettingsConfigDict(
        env_prefix="AMALGAM_",
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    DEFAULT_CONFLICT_POLICY: Literal["fail", "rename", "override"] = Field(
        default="override",
        description="Conflict policy used when composition options omit one",
    )
    RENAME_SEPARATOR: str = Field(
        default="_",
        min_length=1,
        description="Joins a conflicting name and its counter under rename",
    )
    ALLOW_TEXTUAL_CALLABLES: bool = Field(
        default=True,
        description="Whether the default compiler accepts source text",
    )
    DEFAULT_TYPE_NAME: str = "Composed"
    DEFAULT_MIXIN_NAME: str = "Mixed"


settings = AmalgamSettings()
