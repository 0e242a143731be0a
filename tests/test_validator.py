# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Tests for amalgam/core/validator.py and TypeContract"""

import pytest

from amalgam import Kind, TypeContract, ValidationError
from amalgam.core.validator import validate


class TestKind:
    @pytest.mark.parametrize(
        "kind,value,expected",
        [
            (Kind.STRING, "a", True),
            (Kind.STRING, 1, False),
            (Kind.NUMBER, 1, True),
            (Kind.NUMBER, 1.5, True),
            (Kind.NUMBER, True, False),
            (Kind.BOOLEAN, False, True),
            (Kind.BOOLEAN, 0, False),
            (Kind.OBJECT, {"a": 1}, True),
            (Kind.OBJECT, None, False),
            (Kind.OBJECT, "a", False),
            (Kind.OBJECT, len, False),
            (Kind.CALLABLE, len, True),
            (Kind.CALLABLE, 1, False),
            (Kind.ANY, None, True),
        ],
    )
    def test_matches(self, kind, value, expected):
        assert kind.matches(value) is expected


class TestTypeContract:
    def test_aliases(self):
        contract = TypeContract.model_validate(
            {"type": "number", "array": True, "validate": lambda v: len(v) < 3}
        )
        assert contract.kind is Kind.NUMBER
        assert contract.is_array
        assert contract.predicate is not None

    def test_array_rejects_strings(self):
        contract = TypeContract(kind="string", is_array=True)
        assert contract.accepts(["a", "b"])
        assert contract.accepts(("a",))
        assert not contract.accepts("ab")
        assert not contract.accepts(["a", 1])

    def test_predicate_runs_after_kind(self):
        calls = []
        contract = TypeContract(
            kind="number", predicate=lambda v: calls.append(v) or v > 0
        )
        assert not contract.accepts("x")
        assert calls == []
        assert contract.accepts(3)
        assert not contract.accepts(-1)

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            TypeContract(kind="integer")


class TestValidate:
    """Test argument validation."""

    def test_no_contract_is_noop(self):
        validate("greet", [1, None], {})
        validate("greet", [1, None], None)
        validate("greet", [1], {"other": TypeContract(kind="string")})

    def test_accepts_matching_args(self):
        validate("greet", ["Alice"], {"greet": TypeContract(kind="string")})

    def test_reports_first_bad_position(self):
        contracts = {"greet": TypeContract(kind="string")}
        with pytest.raises(ValidationError) as exc:
            validate("greet", ["ok", 2, 3], contracts)
        assert exc.value.position == 1
        assert str(exc.value) == "Invalid type for argument 1 of greet"

    def test_keyword_position_is_keyword(self):
        contracts = {"greet": TypeContract(kind="string")}
        with pytest.raises(ValidationError) as exc:
            validate("greet", ["ok"], contracts, {"title": 5})
        assert exc.value.position == "title"

    def test_mapping_contract_is_coerced(self):
        with pytest.raises(ValidationError):
            validate("greet", [1], {"greet": {"type": "string"}})

    def test_raising_predicate_counts_as_rejection(self):
        def explode(value):
            raise KeyError(value)

        contracts = {"m": TypeContract(predicate=explode)}
        with pytest.raises(ValidationError) as exc:
            validate("m", ["x"], contracts)
        assert isinstance(exc.value.__cause__, KeyError)
