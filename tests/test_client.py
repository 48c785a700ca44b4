from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import pytest

from motorsync.client import MotorClient
from motorsync.config import MotorConfig
from motorsync.exceptions import ClientClosedError, CommandFailedError, MotorSyncError, MotorTransportError
from motorsync.models.state import ConnectionStatus, Direction, MotorState
from motorsync.poller import PollOutcome


@dataclass
class FakeDeviceBackend:
    """In-memory stand-in for the device's HTTP API."""

    state: dict[str, Any] = field(default_factory=lambda: {"power": "OFF", "direction": "Forward", "speed": 100})
    reachable: bool = True
    fail_commands_with: int | None = None
    echo_commands: bool = True
    gets: int = 0
    posts: list[tuple[str, Any]] = field(default_factory=list)

    async def get_json(self, endpoint: str) -> Any:
        assert endpoint == "/api/state"
        self.gets += 1
        if not self.reachable:
            raise MotorTransportError("Request to /api/state failed: connection refused", endpoint=endpoint)
        return dict(self.state)

    async def post_json(self, endpoint: str, payload: Any = None) -> Any:
        self.posts.append((endpoint, payload))
        if self.fail_commands_with is not None:
            raise MotorTransportError(
                f"{self.fail_commands_with} Internal Server Error",
                status_code=self.fail_commands_with,
                endpoint=endpoint,
            )
        self.state.update(payload or {})
        return dict(self.state) if self.echo_commands else None


@pytest.fixture
def backend(monkeypatch: pytest.MonkeyPatch) -> FakeDeviceBackend:
    fake = FakeDeviceBackend()

    async def fake_get_json(_self: Any, endpoint: str) -> Any:
        return await fake.get_json(endpoint)

    async def fake_post_json(_self: Any, endpoint: str, payload: Any = None) -> Any:
        return await fake.post_json(endpoint, payload)

    monkeypatch.setattr("motorsync._transport.HttpTransport.get_json", fake_get_json)
    monkeypatch.setattr("motorsync._transport.HttpTransport.post_json", fake_post_json)
    return fake


@pytest.fixture
def config() -> MotorConfig:
    return MotorConfig(base_url="http://device.test", autostart_polling=False)


async def _wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.005)


@pytest.mark.asyncio
async def test_slider_burst_sends_one_speed_command_with_final_value(
    config: MotorConfig, backend: FakeDeviceBackend
) -> None:
    async with MotorClient(config) as client:
        for value in (10, 40, 75):
            client.on_speed_input(value)
            assert client.state.speed == value
        assert backend.posts == []

        await asyncio.sleep(0.3)

    assert backend.posts == [("/api/speed", {"speed": 75})]


@pytest.mark.asyncio
async def test_slider_input_is_clamped_before_optimistic_update(
    config: MotorConfig, backend: FakeDeviceBackend
) -> None:
    async with MotorClient(config) as client:
        client.on_speed_input(130.4)
        assert client.state.speed == 100
        await _wait_until(lambda: len(backend.posts) == 1)

    assert backend.posts == [("/api/speed", {"speed": 100})]


@pytest.mark.asyncio
async def test_power_and_direction_commands(config: MotorConfig, backend: FakeDeviceBackend) -> None:
    async with MotorClient(config) as client:
        state = await client.set_power(True)
        assert state.power is True

        state = await client.toggle_direction()
        assert state.direction is Direction.REVERSE

        state = await client.set_direction("Forward")
        assert state.direction is Direction.FORWARD

        assert client.status.connected is True
        assert client.status.busy is False

    assert backend.posts == [
        ("/api/power", {"power": "ON"}),
        ("/api/direction", {"direction": "Reverse"}),
        ("/api/direction", {"direction": "Forward"}),
    ]


@pytest.mark.asyncio
async def test_failed_debounced_command_surfaces_error_without_rollback(
    config: MotorConfig, backend: FakeDeviceBackend
) -> None:
    backend.fail_commands_with = 500
    async with MotorClient(config) as client:
        client.on_speed_input(75)
        await _wait_until(lambda: client.status.last_error is not None)

        assert client.status.connected is False
        assert client.status.busy is False
        assert "500" in (client.status.last_error or "")
        assert client.state.speed == 75


@pytest.mark.asyncio
async def test_direct_command_failure_propagates(config: MotorConfig, backend: FakeDeviceBackend) -> None:
    backend.fail_commands_with = 503
    async with MotorClient(config) as client:
        with pytest.raises(CommandFailedError) as excinfo:
            await client.set_power(True)
        assert excinfo.value.status_code == 503
        # Command failures never pace the poll loop.
        assert client.backoff_delay == 0.0


@pytest.mark.asyncio
async def test_command_does_not_wait_for_outstanding_poll(
    config: MotorConfig, backend: FakeDeviceBackend, monkeypatch: pytest.MonkeyPatch
) -> None:
    poll_started = asyncio.Event()
    release_poll = asyncio.Event()

    async def slow_get_json(_self: Any, _endpoint: str) -> Any:
        poll_started.set()
        await release_poll.wait()
        return {"power": "ON", "speed": 20}

    monkeypatch.setattr("motorsync._transport.HttpTransport.get_json", slow_get_json)

    async with MotorClient(config) as client:
        poll = asyncio.create_task(client.refresh())
        await poll_started.wait()

        state = await client.set_speed(35)
        assert state.speed == 35

        release_poll.set()
        assert await poll is PollOutcome.SUCCESS
        assert client.state == MotorState(power=True, direction=Direction.FORWARD, speed=20)


@pytest.mark.asyncio
async def test_autostart_polls_immediately(backend: FakeDeviceBackend) -> None:
    backend.state = {"power": "ON", "direction": "Reverse", "speed": 45}
    config = MotorConfig(base_url="http://device.test", poll_interval=10.0)

    async with MotorClient(config) as client:
        await _wait_until(lambda: client.status.connected)
        assert client.state == MotorState(power=True, direction=Direction.REVERSE, speed=45)
        assert backend.gets == 1


@pytest.mark.asyncio
async def test_unreachable_device_shows_disconnected_within_one_interval(backend: FakeDeviceBackend) -> None:
    backend.reachable = False
    config = MotorConfig(base_url="http://device.test", poll_interval=0.2)

    async with MotorClient(config) as client:
        await asyncio.sleep(0.2)
        assert client.status.connected is False
        assert client.status.last_error is not None
        assert client.backoff_delay == 1.0

        backend.reachable = True
        client.retry_now()
        await _wait_until(lambda: client.status.connected)
        assert client.backoff_delay == 0.0


@pytest.mark.asyncio
async def test_hanging_device_shows_disconnected_within_one_interval(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = 0
    never = asyncio.Event()

    async def hanging_get_json(_self: Any, _endpoint: str) -> Any:
        nonlocal calls
        calls += 1
        if calls > 1:
            await never.wait()
        return {"power": "ON"}

    monkeypatch.setattr("motorsync._transport.HttpTransport.get_json", hanging_get_json)
    config = MotorConfig(base_url="http://device.test", poll_interval=0.1)

    async with MotorClient(config) as client:
        await _wait_until(lambda: client.status.connected)
        await _wait_until(lambda: not client.status.connected, timeout=0.5)

        assert "timed out" in (client.status.last_error or "")
        assert client.state.power is True
        assert client.backoff_delay == 1.0


@pytest.mark.asyncio
async def test_listener_receives_changes(config: MotorConfig, backend: FakeDeviceBackend) -> None:
    seen: list[tuple[MotorState, ConnectionStatus]] = []
    async with MotorClient(config, on_state_change=lambda s, st: seen.append((s, st))) as client:
        await client.refresh()

    assert seen
    assert seen[-1][1].connected is True


@pytest.mark.asyncio
async def test_close_cancels_pending_debounced_command(config: MotorConfig, backend: FakeDeviceBackend) -> None:
    client = MotorClient(config)
    async with client:
        client.on_speed_input(20)

    await asyncio.sleep(0.3)
    assert backend.posts == []
    with pytest.raises(ClientClosedError):
        await client.set_power(True)
    with pytest.raises(ClientClosedError):
        client.on_speed_input(30)


@pytest.mark.asyncio
async def test_commands_require_context(config: MotorConfig) -> None:
    client = MotorClient(config)
    with pytest.raises(MotorSyncError, match="not initialized"):
        await client.set_power(True)
