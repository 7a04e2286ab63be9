import asyncio
import json

import aiohttp
import pytest

from linux_ha_bridge.config import DockerConfig
from linux_ha_bridge.docker_api import DockerError, retry_with_backoff
from linux_ha_bridge.integrations.docker import DockerIntegration, container_attributes

from conftest import HOSTNAME


class FakeDockerAPI:
    def __init__(self, running):
        self.running = dict(running)
        self.calls = []
        self.closed = False
        self.queue = asyncio.Queue()

    async def inspect(self, name):
        if name not in self.running:
            raise DockerError(f"No such container: {name}")
        running = self.running[name]
        return {
            "Id": "0123456789abcdef",
            "State": {"Running": running, "Status": "running" if running else "exited"},
            "Config": {"Image": "postgres:16"},
        }

    async def start(self, name):
        self.calls.append(("start", name))
        self.running[name] = True

    async def stop(self, name):
        self.calls.append(("stop", name))
        self.running[name] = False

    async def events(self):
        while True:
            yield await self.queue.get()

    async def close_session(self):
        self.closed = True


async def until(predicate, timeout=1.0):
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_poll(), timeout)


@pytest.fixture
async def docker(context, transport):
    api = FakeDockerAPI({"db": True})
    integration = DockerIntegration(
        context, DockerConfig(containers=("db", "missing")), api=api
    )
    await integration.async_setup()
    transport.go_online()
    yield integration
    await integration.async_shutdown()


def attributes(transport, entity_id):
    return json.loads(transport.last(f"{HOSTNAME}/{entity_id}/attributes"))


async def test_state_and_attributes_published_on_connect(docker, transport):
    config = transport.discovery("switch", "docker_db")
    assert config["icon"] == "mdi:docker"
    assert config["name"] == "Docker db"

    assert transport.last(f"{HOSTNAME}/docker_db") == "true"
    assert attributes(transport, "docker_db") == {
        "status": "running",
        "id": "0123456789ab",
        "image": "postgres:16",
    }


async def test_missing_container_reported_unavailable(docker, transport):
    assert transport.last(f"{HOSTNAME}/docker_missing") == "false"
    assert attributes(transport, "docker_missing")["status"] == "unavailable"


async def test_switch_command_stops_container(docker, transport):
    transport.deliver(f"{HOSTNAME}/docker_db/set", "false")
    await until(lambda: transport.last(f"{HOSTNAME}/docker_db") == "false")

    assert docker.api.calls == [("stop", "db")]
    assert attributes(transport, "docker_db")["status"] == "exited"


async def test_events_refresh_state(docker, transport):
    docker.api.running["db"] = False
    docker.api.queue.put_nowait(
        {"Type": "container", "Action": "die", "Actor": {"Attributes": {"name": "db"}}}
    )

    await until(lambda: transport.last(f"{HOSTNAME}/docker_db") == "false")


async def test_unrelated_events_ignored(docker, transport):
    transport.clear()
    await docker.handle_event(
        {"Type": "container", "Action": "exec_start: sh", "Actor": {"Attributes": {"name": "db"}}}
    )
    await docker.handle_event(
        {"Type": "container", "Action": "start", "Actor": {"Attributes": {"name": "other"}}}
    )
    await docker.handle_event({"Type": "network", "Action": "connect"})

    assert transport.published == []


async def test_shutdown_closes_api(context, transport):
    api = FakeDockerAPI({})
    integration = DockerIntegration(context, DockerConfig(containers=()), api=api)
    await integration.async_setup()
    await integration.async_shutdown()

    assert api.closed


def test_container_attributes_tolerates_missing_fields():
    assert container_attributes({}) == {"status": "unknown", "id": "", "image": ""}


async def test_retry_with_backoff_retries_then_raises():
    attempts = []

    @retry_with_backoff(retries=2, delay=0)
    async def flaky():
        attempts.append(1)
        raise aiohttp.ClientConnectionError("socket gone")

    with pytest.raises(DockerError, match="socket gone"):
        await flaky()
    assert len(attempts) == 3


async def test_retry_with_backoff_returns_first_success():
    attempts = []

    @retry_with_backoff(retries=3, delay=0)
    async def eventually():
        attempts.append(1)
        if len(attempts) < 2:
            raise asyncio.TimeoutError()
        return "ok"

    assert await eventually() == "ok"
    assert len(attempts) == 2


async def test_retry_with_backoff_passes_other_errors_through():
    attempts = []

    @retry_with_backoff(retries=3, delay=0)
    async def broken():
        attempts.append(1)
        raise KeyError("State")

    with pytest.raises(KeyError):
        await broken()
    assert len(attempts) == 1
