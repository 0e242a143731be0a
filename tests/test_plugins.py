# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Tests for amalgam/core/plugins.py"""

from types import SimpleNamespace

import pytest

from amalgam.core.plugins import HookType, PluginPipeline


class TestHookType:
    def test_allowed(self):
        assert HookType.allowed() == {
            "before_assembly",
            "after_assembly",
            "before_call",
            "after_call",
            "on_error",
        }

    def test_only_on_error_is_observational(self):
        assert HookType.ON_ERROR.observational
        assert not HookType.BEFORE_CALL.observational


class TestFold:
    """Test deterministic folding."""

    def test_no_bundles_is_identity(self, pipeline):
        acc = ["a"]
        assert pipeline.fold(HookType.BEFORE_ASSEMBLY, acc) is acc

    def test_registration_order(self, pipeline):
        pipeline.register({"before_assembly": lambda els: els + ["first"]})
        pipeline.register({"before_assembly": lambda els: els + ["second"]})
        assert pipeline.fold("before_assembly", []) == ["first", "second"]

    def test_each_bundle_applied_once(self, pipeline):
        calls = []
        for i in range(3):
            pipeline.register(
                {"after_call": lambda name, r, i=i: calls.append(i) or r + 1}
            )
        assert pipeline.fold(HookType.AFTER_CALL, 0, "m") == 3
        assert calls == [0, 1, 2]

    def test_context_precedes_accumulator(self, pipeline):
        seen = []
        pipeline.register(
            {"before_call": lambda name, args: seen.append(name) or args}
        )
        pipeline.fold(HookType.BEFORE_CALL, [1], "greet")
        assert seen == ["greet"]

    def test_bundles_without_the_hook_are_skipped(self, pipeline):
        pipeline.register({"after_call": lambda name, r: "changed"})
        assert pipeline.fold(HookType.BEFORE_CALL, [1], "m") == [1]

    def test_on_error_cannot_change_accumulator(self, pipeline):
        seen = []
        pipeline.register({"on_error": lambda e: seen.append(e) or "ignored"})
        err = RuntimeError("x")
        assert pipeline.fold(HookType.ON_ERROR, err) is err
        assert seen == [err]


class TestRegister:
    """Test bundle normalization."""

    def test_object_bundle(self, pipeline):
        class Upper:
            def after_call(self, name, result):
                return result.upper()

        pipeline.register(Upper())
        assert pipeline.fold(HookType.AFTER_CALL, "hi", "m") == "HI"

    def test_none_hooks_are_ignored(self, pipeline):
        pipeline.register(SimpleNamespace(before_call=None))
        assert not pipeline.has_hooks(HookType.BEFORE_CALL)
        assert len(pipeline) == 1

    def test_unknown_hook_name(self, pipeline):
        with pytest.raises(ValueError, match="Unknown hook names"):
            pipeline.register({"before_everything": lambda x: x})

    def test_non_callable_hook(self, pipeline):
        with pytest.raises(TypeError, match="must be callable"):
            pipeline.register({"after_call": "nope"})

    def test_async_hook_rejected(self, pipeline):
        async def hook(name, result):
            return result

        with pytest.raises(ValueError, match="synchronous"):
            pipeline.register({"after_call": hook})

    def test_has_hooks_and_clear(self, pipeline):
        pipeline.register({"on_error": lambda e: None})
        assert pipeline.has_hooks("on_error")
        pipeline.clear()
        assert len(pipeline) == 0
        assert not pipeline.has_hooks("on_error")
