import asyncio

import pytest

from linux_ha_bridge import __main__ as cli
from linux_ha_bridge.bridge import Bridge
from linux_ha_bridge.config import parse_config
from linux_ha_bridge.integrations.scripts import ScriptsIntegration

from conftest import HOSTNAME, RecordingTransport


@pytest.fixture
def bridge_config():
    return parse_config(
        {
            "mqtt": {"host": "broker.lan"},
            "hostname": HOSTNAME,
            "scripts": {"lock": {"exec": "loginctl lock-session"}},
        }
    )


async def test_start_registers_host_entity(bridge_config):
    transport = RecordingTransport()
    bridge = Bridge(bridge_config, transport=transport)

    await bridge.async_start()

    assert transport.is_connected
    config = transport.discovery("binary_sensor", "connected")
    assert config["device_class"] == "connectivity"
    assert config["state_topic"] == f"{HOSTNAME}/connected"
    assert "availability_topic" not in config
    assert transport.last(f"{HOSTNAME}/connected") == "on"
    assert transport.retained(f"{HOSTNAME}/connected")[-1] is False

    assert [type(i) for i in bridge.integrations] == [ScriptsIntegration]
    assert transport.discovery("button", "lock")["command_topic"] == f"{HOSTNAME}/lock/set"


async def test_no_integrations_without_config():
    config = parse_config({"mqtt": {"host": "broker.lan"}, "hostname": HOSTNAME})

    bridge = Bridge(config, transport=RecordingTransport())

    assert bridge.integrations == []


async def test_run_until_stopped(bridge_config):
    transport = RecordingTransport()
    bridge = Bridge(bridge_config, transport=transport)

    asyncio.get_running_loop().call_later(0.01, bridge.stop)
    await asyncio.wait_for(bridge.run(), 1)

    assert transport.disconnected
    assert not transport.is_connected
    assert bridge.integrations[0].entities == []


async def test_default_transport_uses_availability_topic(bridge_config):
    bridge = Bridge(bridge_config)

    assert bridge.transport.availability_topic == f"{HOSTNAME}/connected"
    assert bridge.transport.settings.host == "broker.lan"


def test_cli_exits_on_config_error(tmp_path):
    assert cli.main(["--config", str(tmp_path / "missing.yaml")]) == 1


def test_cli_arguments():
    args = cli.parse_args(["-c", "/etc/bridge.yaml", "--verbose"])

    assert args.config == "/etc/bridge.yaml"
    assert args.verbose is True
