"""Tests for the dispatch coordinator."""

import asyncio

import httpx
import pytest

from pickllm.core.dispatch import DispatchCoordinator
from pickllm.core.models import ErrorKind, LifecycleState, RunOverrides
from pickllm.core.state import TargetStateStore
from pickllm.providers.base import TransportError
from pickllm.providers.http_forwarder import HTTPForwardingClient
from tests.helpers import ScriptedClient, fail, ok, spin


@pytest.fixture
def store():
    return TargetStateStore(["A", "B"])


class TestPreconditions:
    """Runs that must not dispatch anything."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "prompt, targets, credential",
        [
            ("   ", ["A"], "sk-test"),
            ("X", ["A"], ""),
            ("X", ["A"], None),
            ("X", [], "sk-test"),
        ],
    )
    async def test_noop(self, store, clock, prompt, targets, credential):
        client = ScriptedClient({"A": ok()})
        coordinator = DispatchCoordinator(client, store, clock=clock)

        summary = await coordinator.run(prompt, targets, credential=credential)

        assert summary is None
        assert client.requests == []
        assert store.get("A").lifecycle == LifecycleState.IDLE


class TestFanOut:
    """Tests for concurrent dispatch."""

    @pytest.mark.asyncio
    async def test_one_call_per_target_with_overrides(self, store, clock):
        client = ScriptedClient({"A": ok(), "B": ok()})
        coordinator = DispatchCoordinator(client, store, clock=clock)

        await coordinator.run(
            "X",
            ["A", "B"],
            RunOverrides(temperature=0.2),
            credential="sk-test",
        )

        assert sorted(r.target_id for r in client.requests) == ["A", "B"]
        for request in client.requests:
            assert request.prompt == "X"
            assert request.credential == "sk-test"
            assert request.to_wire()["temperature"] == 0.2
            assert "topP" not in request.to_wire()

    @pytest.mark.asyncio
    async def test_calls_issued_without_waiting_on_each_other(self, store, clock):
        gates = {"A": asyncio.Event(), "B": asyncio.Event()}
        client = ScriptedClient({"A": ok(), "B": ok()}, gates=gates)
        coordinator = DispatchCoordinator(client, store, clock=clock)

        run = asyncio.create_task(coordinator.run("X", ["A", "B"], credential="sk"))
        await spin()

        # Both calls are outstanding at once
        assert len(client.requests) == 2
        assert store.get("A").lifecycle == LifecycleState.LOADING
        assert store.get("B").lifecycle == LifecycleState.LOADING
        assert not run.done()

        gates["B"].set()
        await spin()
        assert store.get("B").lifecycle == LifecycleState.SUCCEEDED
        assert store.get("A").lifecycle == LifecycleState.LOADING
        assert not run.done()

        gates["A"].set()
        summary = await run
        assert summary.succeeded == 2

    @pytest.mark.asyncio
    async def test_elapsed_measured_per_target(self, store, clock):
        gates = {"A": asyncio.Event(), "B": asyncio.Event()}
        client = ScriptedClient({"A": ok(), "B": ok()}, gates=gates)
        coordinator = DispatchCoordinator(client, store, clock=clock)

        run = asyncio.create_task(coordinator.run("X", ["A", "B"], credential="sk"))
        await spin()
        clock.advance(1.5)
        gates["A"].set()
        await spin()
        clock.advance(2.0)
        gates["B"].set()
        await run

        assert store.get("A").result.elapsed_seconds == pytest.approx(1.5)
        assert store.get("B").result.elapsed_seconds == pytest.approx(3.5)


class TestWorkedExample:
    """The two-target example with one priced success and one auth failure."""

    @pytest.mark.asyncio
    async def test_worked_example(self, store, clock, worked_pricing):
        client = ScriptedClient({"A": ok("answer", 10, 5), "B": fail(401)})
        coordinator = DispatchCoordinator(client, store, clock=clock)

        summary = await coordinator.run(
            "X", ["A", "B"], credential="sk", pricing=worked_pricing
        )

        a = store.get("A")
        assert a.lifecycle == LifecycleState.SUCCEEDED
        assert a.result.input_cost == pytest.approx(0.0001)
        assert a.result.output_cost == pytest.approx(0.0001)
        assert a.result.total_cost == pytest.approx(0.0002)

        b = store.get("B")
        assert b.lifecycle == LifecycleState.FAILED
        assert b.result.error_kind == ErrorKind.INVALID_CREDENTIAL
        assert b.result.total_cost == 0.0

        assert summary.total_cost == pytest.approx(0.0002)
        assert summary.succeeded == 1
        assert summary.failed == 1


class TestFailureIsolation:
    """Failures stay in their own target's slot."""

    @pytest.mark.asyncio
    async def test_transport_failure_isolation(self, store, clock):
        client = ScriptedClient(
            {"A": ok(), "B": TransportError.network("connection refused", "B")}
        )
        coordinator = DispatchCoordinator(client, store, clock=clock)

        summary = await coordinator.run("X", ["A", "B"], credential="sk")

        assert store.get("A").lifecycle == LifecycleState.SUCCEEDED
        assert store.get("A").result.response_text == "Hello"
        assert store.get("B").lifecycle == LifecycleState.FAILED
        assert store.get("B").result.error_kind == ErrorKind.NETWORK_ERROR
        assert summary.target_ids == ("A", "B")

    @pytest.mark.asyncio
    async def test_any_exception_is_network_error(self, store, clock):
        client = ScriptedClient({"A": OSError("unreachable"), "B": ok()})
        coordinator = DispatchCoordinator(client, store, clock=clock)

        await coordinator.run("X", ["A", "B"], credential="sk")

        assert store.get("A").result.error_kind == ErrorKind.NETWORK_ERROR
        assert store.get("B").lifecycle == LifecycleState.SUCCEEDED

    @pytest.mark.asyncio
    async def test_undecodable_error_body_is_not_network_error(self, store, clock):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, content=b"\xff\xfe\xfa bad")

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = HTTPForwardingClient("https://forward.test/api", http_client=http_client)
        coordinator = DispatchCoordinator(client, store, clock=clock)

        await coordinator.run("X", ["A"], credential="sk")
        await http_client.aclose()

        result = store.get("A").result
        assert result.error_kind == ErrorKind.UPSTREAM_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_failed_results_cost_nothing(self, store, clock, worked_pricing):
        client = ScriptedClient({"A": fail(500), "B": fail(429)})
        coordinator = DispatchCoordinator(client, store, clock=clock)

        summary = await coordinator.run(
            "X", ["A", "B"], credential="sk", pricing=worked_pricing
        )

        for target_id in ("A", "B"):
            result = store.get(target_id).result
            assert result.error_kind is not None
            assert result.input_cost == result.output_cost == result.total_cost == 0.0
        assert summary.total_cost == 0.0
        assert summary.failed == 2


class TestSettleOrder:
    """The summary does not depend on the order targets settle in."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("order", [("A", "B", "C"), ("C", "B", "A"), ("B", "C", "A")])
    async def test_total_is_commutative(self, clock, worked_pricing, order):
        store = TargetStateStore(["A", "B", "C"])
        gates = {t: asyncio.Event() for t in order}
        client = ScriptedClient(
            {"A": ok("a", 10, 5), "B": fail(401), "C": ok("c", 7, 3)},
            gates=gates,
        )
        pricing = dict(worked_pricing)
        pricing["C"] = pricing["A"]
        coordinator = DispatchCoordinator(client, store, clock=clock)

        run = asyncio.create_task(
            coordinator.run("X", ["A", "B", "C"], credential="sk", pricing=pricing)
        )
        await spin()
        for target_id in order:
            gates[target_id].set()
            await spin()
        summary = await run

        expected = store.get("A").result.total_cost + store.get("C").result.total_cost
        assert summary.total_cost == pytest.approx(expected)
        assert summary.total_cost == pytest.approx(0.0002 + 0.00013)
