"""Tests for plugin activation: state machine, dependencies and failure handling."""

from __future__ import annotations

import pytest

from fluxhost.core.activation import ALREADY_ACTIVATING, HOST_NOT_INITIALIZED
from fluxhost.core.events import PluginEventType
from fluxhost.plugins.base import PluginState


class TestActivation:
    @pytest.mark.asyncio
    async def test_activate_sets_active_and_reports_time(self, host, make_plugin):
        plugin = make_plugin("a")
        await host.register(plugin)

        result = await host.activate_plugin("a")

        assert result.success is True
        assert result.error is None
        assert result.activation_time_ms >= 0
        assert host.is_plugin_active("a")
        assert plugin.activate_calls == 1
        assert host.get_plugin_context("a") is plugin.contexts[0]

    @pytest.mark.asyncio
    async def test_activate_is_idempotent(self, host, make_plugin):
        plugin = make_plugin("a")
        await host.register(plugin)
        await host.activate_plugin("a")

        again = await host.activate_plugin("a")

        assert again.success is True
        assert again.activation_time_ms == 0
        assert plugin.activate_calls == 1

    @pytest.mark.asyncio
    async def test_activate_unknown_plugin(self, host):
        result = await host.activate_plugin("ghost")

        assert result.success is False
        assert result.error == "Plugin ghost not found"
        assert result.activation_time_ms == 0

    @pytest.mark.asyncio
    async def test_uninitialized_host_refuses(self, bare_host, make_plugin):
        plugin = make_plugin("a")
        await bare_host.register(plugin)

        result = await bare_host.activate_plugin("a")

        assert result.success is False
        assert result.error == HOST_NOT_INITIALIZED
        assert bare_host.get_plugin("a").state == PluginState.INACTIVE
        assert plugin.activate_calls == 0

    @pytest.mark.asyncio
    async def test_startup_plugin_on_uninitialized_host_stays_inactive(
        self, bare_host, make_plugin
    ):
        plugin = make_plugin("a", activation_events=("onStartup",))

        await bare_host.register(plugin)
        await bare_host.wait_idle()

        assert bare_host.get_plugin("a").state == PluginState.INACTIVE
        assert plugin.activate_calls == 0

    @pytest.mark.asyncio
    async def test_reentrant_activation_refused(self, host, make_plugin):
        results = []

        async def reenter(context):
            results.append(await host.activate_plugin("a"))

        plugin = make_plugin("a", on_activate=reenter)
        await host.register(plugin)

        outer = await host.activate_plugin("a")

        assert outer.success is True
        assert results[0].success is False
        assert results[0].error == ALREADY_ACTIVATING
        assert plugin.activate_calls == 1

    @pytest.mark.asyncio
    async def test_activate_failure_sets_error_state(self, host, make_plugin):
        plugin = make_plugin("a", activate_error=RuntimeError("boom"))
        await host.register(plugin)

        result = await host.activate_plugin("a")

        assert result.success is False
        assert result.error == "boom"
        record = host.get_plugin("a")
        assert record.state == PluginState.ERROR
        assert record.error == "boom"
        assert not host.is_plugin_active("a")

    @pytest.mark.asyncio
    async def test_activate_failure_emits_error_event(self, host, make_plugin):
        events = []
        host.on(PluginEventType.PLUGIN_ERROR, events.append)
        await host.register(make_plugin("a", activate_error=RuntimeError("boom")))

        await host.activate_plugin("a")

        assert len(events) == 1
        assert events[0].plugin_id == "a"
        assert events[0].data == {"error": "boom"}

    @pytest.mark.asyncio
    async def test_error_plugin_can_be_activated_again(self, host, make_plugin):
        plugin = make_plugin("a", activate_error=RuntimeError("boom"))
        await host.register(plugin)
        await host.activate_plugin("a")

        plugin._activate_error = None
        result = await host.activate_plugin("a")

        assert result.success is True
        assert host.get_plugin("a").error is None
        assert plugin.activate_calls == 2

    @pytest.mark.asyncio
    async def test_failed_activation_context_replaced_on_retry(self, host, make_plugin):
        disposed = []

        def register_something(context):
            context.subscriptions.append(_Recorder(disposed))

        plugin = make_plugin(
            "a", on_activate=register_something, activate_error=RuntimeError("boom")
        )
        await host.register(plugin)
        await host.activate_plugin("a")
        stale = host.get_plugin_context("a")

        plugin._activate_error = None
        await host.activate_plugin("a")

        assert disposed == [1]
        assert host.get_plugin_context("a") is not stale

    @pytest.mark.asyncio
    async def test_activated_event_carries_time(self, host, make_plugin):
        events = []
        host.on(PluginEventType.PLUGIN_ACTIVATED, events.append)
        await host.register(make_plugin("a"))

        await host.activate_plugin("a")

        assert len(events) == 1
        assert events[0].plugin_id == "a"
        assert events[0].data["activation_time_ms"] >= 0


class _Recorder:
    def __init__(self, sink):
        self._sink = sink

    def dispose(self):
        self._sink.append(1)


class TestDependencies:
    @pytest.mark.asyncio
    async def test_dependencies_activate_first(self, host, make_plugin):
        log = []
        await host.register(make_plugin("base", log=log))
        await host.register(make_plugin("mid", dependencies=("base",), log=log))
        await host.register(make_plugin("top", dependencies=("mid",), log=log))

        result = await host.activate_plugin("top")

        assert result.success is True
        assert log == ["activate:base", "activate:mid", "activate:top"]
        assert all(host.is_plugin_active(p) for p in ("base", "mid", "top"))

    @pytest.mark.asyncio
    async def test_active_dependency_not_reactivated(self, host, make_plugin):
        dep = make_plugin("dep")
        await host.register(dep)
        await host.register(make_plugin("a", dependencies=("dep",)))
        await host.activate_plugin("dep")

        await host.activate_plugin("a")

        assert dep.activate_calls == 1

    @pytest.mark.asyncio
    async def test_missing_dependency_fails_without_state_change(self, host, make_plugin):
        plugin = make_plugin("a", dependencies=("ghost",))
        await host.register(plugin)

        result = await host.activate_plugin("a")

        assert result.success is False
        assert result.error == "Failed to activate dependency ghost: Plugin ghost not found"
        assert host.get_plugin("a").state == PluginState.INACTIVE
        assert plugin.activate_calls == 0

    @pytest.mark.asyncio
    async def test_failing_dependency_propagates(self, host, make_plugin):
        await host.register(make_plugin("dep", activate_error=RuntimeError("boom")))
        plugin = make_plugin("a", dependencies=("dep",))
        await host.register(plugin)

        result = await host.activate_plugin("a")

        assert result.success is False
        assert result.error == "Failed to activate dependency dep: boom"
        assert host.get_plugin("dep").state == PluginState.ERROR
        assert host.get_plugin("a").state == PluginState.INACTIVE
        assert plugin.activate_calls == 0

    @pytest.mark.asyncio
    async def test_circular_dependency_fails_fast(self, host, make_plugin):
        a = make_plugin("a", dependencies=("b",))
        b = make_plugin("b", dependencies=("a",))
        await host.register(a)
        await host.register(b)

        result = await host.activate_plugin("a")

        assert result.success is False
        assert "Circular dependency: a -> b -> a" in result.error
        assert a.activate_calls == 0
        assert b.activate_calls == 0
        assert host.get_plugin("a").state == PluginState.INACTIVE
        assert host.get_plugin("b").state == PluginState.INACTIVE

    @pytest.mark.asyncio
    async def test_self_dependency_is_circular(self, host, make_plugin):
        await host.register(make_plugin("a", dependencies=("a",)))

        result = await host.activate_plugin("a")

        assert result.success is False
        assert "Circular dependency: a -> a" in result.error


class TestDeactivation:
    @pytest.mark.asyncio
    async def test_deactivate_runs_hook_and_disposes_context(
        self, host, runtime, make_plugin, make_hover_provider
    ):
        plugin = make_plugin(
            "a",
            on_activate=lambda ctx: ctx.register_hover_provider("csharp", make_hover_provider()),
        )
        await host.register(plugin)
        await host.activate_plugin("a")
        assert len(runtime.capabilities()) == 1

        await host.deactivate_plugin("a")

        assert plugin.deactivate_calls == 1
        assert runtime.capabilities() == []
        assert host.get_plugin("a").state == PluginState.INACTIVE
        assert host.get_plugin_context("a") is None

    @pytest.mark.asyncio
    async def test_deactivate_emits_event(self, host, make_plugin):
        events = []
        host.on(PluginEventType.PLUGIN_DEACTIVATED, events.append)
        await host.register(make_plugin("a"))
        await host.activate_plugin("a")

        await host.deactivate_plugin("a")

        assert [e.plugin_id for e in events] == ["a"]

    @pytest.mark.asyncio
    async def test_deactivate_inactive_is_noop(self, host, make_plugin):
        events = []
        host.on(PluginEventType.PLUGIN_DEACTIVATED, events.append)
        plugin = make_plugin("a")
        await host.register(plugin)

        await host.deactivate_plugin("a")
        await host.deactivate_plugin("ghost")

        assert plugin.deactivate_calls == 0
        assert events == []
        assert host.get_plugin("a").state == PluginState.INACTIVE

    @pytest.mark.asyncio
    async def test_deactivate_hook_failure_sets_error(self, host, make_plugin):
        await host.register(make_plugin("a", deactivate_error=RuntimeError("stuck")))
        await host.activate_plugin("a")

        await host.deactivate_plugin("a")

        record = host.get_plugin("a")
        assert record.state == PluginState.ERROR
        assert record.error == "stuck"

    @pytest.mark.asyncio
    async def test_reactivate_after_deactivate(self, host, make_plugin):
        plugin = make_plugin("a")
        await host.register(plugin)
        await host.activate_plugin("a")
        await host.deactivate_plugin("a")

        result = await host.activate_plugin("a")

        assert result.success is True
        assert plugin.activate_calls == 2
        assert plugin.contexts[0] is not plugin.contexts[1]


class TestMissingInstance:
    @pytest.mark.asyncio
    async def test_record_without_instance_lands_in_error(self, host, make_plugin):
        await host.register(make_plugin("a"))
        host.get_plugin("a").instance = None

        result = await host.activate_plugin("a")

        assert result.success is False
        assert result.error == "Plugin a has no instance to activate"
        assert host.get_plugin("a").state == PluginState.ERROR
