# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from .._errors import ValidationError
from ..types import TypeContract

__all__ = ("validate",)


def _check(name: str, position: int | str, value: Any, contract: TypeContract):
    try:
        ok = contract.accepts(value)
    except Exception as e:
        raise ValidationError(name, position) from e
    if not ok:
        raise ValidationError(name, position)


def validate(
    name: str,
    args: Sequence[Any],
    contracts: Mapping[str, TypeContract | Mapping] | None,
    kwargs: Mapping[str, Any] | None = None,
) -> None:
    """Check every argument against the contract registered for ``name``.

    No-op when ``contracts`` has no entry for ``name``. Positional arguments
    are reported by index, keyword arguments by keyword. A predicate that
    raises counts as a rejection.

    Raises:
        ValidationError: On the first argument the contract rejects.
    """
    if not contracts or name not in contracts:
        return

    contract = contracts[name]
    if not isinstance(contract, TypeContract):
        contract = TypeContract.model_validate(contract)

    for index, value in enumerate(args):
        _check(name, index, value, contract)
    for key, value in (kwargs or {}).items():
        _check(name, key, value, contract)
