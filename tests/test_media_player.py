import json
from datetime import datetime, timezone

import pytest

from linux_ha_bridge.media_player import COMMAND_TOPICS, MediaPlayer, parse_volume

from conftest import HOSTNAME


@pytest.fixture
def player(context, transport):
    entity = MediaPlayer(context, "media", "Media")
    transport.go_online()
    return entity


def test_discovery_lists_command_topics(player, transport):
    config = transport.discovery("media_player", "media")

    assert config["state_topic"] == f"{HOSTNAME}/media"
    for suffix, key in COMMAND_TOPICS.items():
        assert config[key] == f"{HOSTNAME}/media/{suffix}"


def test_state_map_published_as_json(player, transport):
    player.set_state({"title": "Song", "artist": "Band", "volume": 0.5, "state": "playing"})
    player.set_available_players(["spotify", "vlc"])

    document = json.loads(transport.last(f"{HOSTNAME}/media"))
    assert document == {
        "title": "Song",
        "artist": "Band",
        "volume": 0.5,
        "state": "playing",
        "available_players": ["spotify", "vlc"],
    }
    assert transport.retained(f"{HOSTNAME}/media")[-1] is True


@pytest.mark.parametrize(
    "suffix, signal_name",
    [
        ("play", "play_requested"),
        ("pause", "pause_requested"),
        ("playpause", "play_pause_requested"),
        ("stop", "stop_requested"),
        ("next", "next_requested"),
        ("previous", "previous_requested"),
    ],
)
def test_playback_commands(player, transport, received, suffix, signal_name):
    getattr(player, signal_name).connect(received)

    transport.deliver(f"{HOSTNAME}/media/{suffix}", "")

    assert received.calls == [()]


def test_volume_command(player, transport, received):
    player.volume_change_requested.connect(received)

    transport.deliver(f"{HOSTNAME}/media/volume", "0.25")
    transport.deliver(f"{HOSTNAME}/media/volume", "3")
    transport.deliver(f"{HOSTNAME}/media/volume", "loud")

    assert received.calls == [0.25, 1.0]


def test_play_media_passthrough(player, transport, received):
    player.play_media_requested.connect(received)

    transport.deliver(f"{HOSTNAME}/media/play_media", '{"media_content_id": "x"}')

    assert received.calls == ['{"media_content_id": "x"}']


@pytest.mark.parametrize(
    "payload, expected", [("0", 0.0), ("1", 1.0), ("-0.5", 0.0), ("0.7", 0.7), ("nan", None)]
)
def test_parse_volume(payload, expected):
    assert parse_volume(payload) == expected


def test_state_with_dates_is_encoded(player, transport):
    updated = datetime(2025, 1, 1, 12, 30, tzinfo=timezone.utc)

    player.set_state({"title": "x", "last_update": updated, "playing": True})

    document = json.loads(transport.last(f"{HOSTNAME}/media"))
    assert document["last_update"] == "2025-01-01T12:30:00+00:00"
    assert document["playing"] is True


def test_dates_in_state_keep_commands_after_reconnect(context, transport, received):
    player = MediaPlayer(context, "media")
    player.play_requested.connect(received)
    player.set_state({"title": "x", "last_update": datetime(2025, 1, 1)})

    transport.go_online()
    transport.go_offline()
    transport.go_online()

    assert f"{HOSTNAME}/media/play" in transport.subscribed
    assert json.loads(transport.last(f"{HOSTNAME}/media"))["last_update"] == "2025-01-01T00:00:00"

    transport.deliver(f"{HOSTNAME}/media/play", "")
    assert received.calls == [()]


def test_state_changed_emitted(player, received):
    player.state_changed.connect(received)

    player.set_state({"title": "Song"})

    assert received.calls == [{"title": "Song"}]


def test_local_controls_emit_requests(player, received):
    player.play_requested.connect(lambda: received("play"))
    player.pause_requested.connect(lambda: received("pause"))
    player.stop_requested.connect(lambda: received("stop"))
    player.next_requested.connect(lambda: received("next"))
    player.previous_requested.connect(lambda: received("previous"))
    player.volume_change_requested.connect(received)

    player.play()
    player.pause()
    player.stop()
    player.next()
    player.previous()
    player.set_volume(1.5)
    player.set_volume(0.3)

    assert received.calls == ["play", "pause", "stop", "next", "previous", 1.0, 0.3]
