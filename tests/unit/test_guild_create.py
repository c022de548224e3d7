"""Test GUILD_CREATE decoding and guild id stamping of nested channels."""

import copy
from datetime import datetime, timezone

import pytest

from gateway_events.core.errors import DecodeError
from gateway_events.core.events import GuildCreate
from gateway_events.core.ids import ChannelId, GuildId, ScheduledEventId
from gateway_events.decoding.decoder import decode_event

GUILD = GuildId("41771983423143937")


def _channel(n: int, **extra) -> dict:
    return {"id": str(290926798999357250 + n), "type": 0, "name": f"ch-{n}", **extra}


class TestGuildCreateDecoding:
    def test_guild_and_data(self, guild_create_payload):
        event = decode_event("GUILD_CREATE", guild_create_payload)
        assert isinstance(event, GuildCreate)
        assert event.guild.id == GUILD
        assert event.guild.name == "Discord Developers"
        assert event.guild.features == ("COMMUNITY", "NEWS")
        data = event.data
        assert data.joined_at == datetime(2021, 6, 1, 12, 0, tzinfo=timezone.utc)
        assert data.large is False
        assert data.unavailable is None
        assert data.member_count == 1
        assert data.members[0].user.username == "Nelly"
        assert data.presences[0].status == "online"

    def test_scheduled_events_read_from_wire_key(self, guild_create_payload):
        event = decode_event("GUILD_CREATE", guild_create_payload)
        (scheduled,) = event.data.scheduled_events
        assert scheduled.id == ScheduledEventId("941387010023002144")
        assert scheduled.name == "Office hours"

    def test_unavailable_flag(self, guild_create_payload):
        guild_create_payload["unavailable"] = False
        event = decode_event("GUILD_CREATE", guild_create_payload)
        assert event.data.unavailable is False


class TestGuildIdStamping:
    @pytest.mark.parametrize("count", [0, 1, 5])
    def test_every_channel_gets_guild_id(self, guild_create_payload, count):
        guild_create_payload["channels"] = [_channel(n) for n in range(count)]
        event = decode_event("GUILD_CREATE", guild_create_payload)
        assert len(event.data.channels) == count
        assert all(ch.guild_id == GUILD for ch in event.data.channels)

    @pytest.mark.parametrize("count", [0, 1, 3])
    def test_every_thread_gets_guild_id(self, guild_create_payload, count):
        guild_create_payload["threads"] = [_channel(100 + n, type=11) for n in range(count)]
        event = decode_event("GUILD_CREATE", guild_create_payload)
        assert len(event.data.threads) == count
        assert all(th.guild_id == GUILD for th in event.data.threads)

    def test_order_preserved(self, guild_create_payload):
        guild_create_payload["channels"] = [_channel(n) for n in (3, 1, 2)]
        event = decode_event("GUILD_CREATE", guild_create_payload)
        assert [ch.id for ch in event.data.channels] == [
            ChannelId(290926798999357253),
            ChannelId(290926798999357251),
            ChannelId(290926798999357252),
        ]

    def test_existing_guild_id_overwritten(self, guild_create_payload):
        guild_create_payload["channels"] = [_channel(0, guild_id="1")]
        event = decode_event("GUILD_CREATE", guild_create_payload)
        assert event.data.channels[0].guild_id == GUILD

    def test_payload_not_mutated(self, guild_create_payload):
        before = copy.deepcopy(guild_create_payload)
        decode_event("GUILD_CREATE", guild_create_payload)
        assert guild_create_payload == before
        assert "guild_id" not in guild_create_payload["channels"][0]
        assert "guild_id" not in guild_create_payload["threads"][0]


class TestGuildCreateErrors:
    @pytest.mark.parametrize("key", ["channels", "threads"])
    def test_missing_array(self, guild_create_payload, key):
        del guild_create_payload[key]
        with pytest.raises(DecodeError) as exc_info:
            decode_event("GUILD_CREATE", guild_create_payload)
        assert exc_info.value.path == key
        assert exc_info.value.reason == "Field required"

    def test_array_wrong_shape(self, guild_create_payload):
        guild_create_payload["channels"] = {"id": "1"}
        with pytest.raises(DecodeError) as exc_info:
            decode_event("GUILD_CREATE", guild_create_payload)
        assert exc_info.value.path == "channels"

    def test_element_wrong_shape(self, guild_create_payload):
        guild_create_payload["threads"] = [_channel(0, type=11), "oops"]
        with pytest.raises(DecodeError) as exc_info:
            decode_event("GUILD_CREATE", guild_create_payload)
        assert exc_info.value.path == "threads.1"

    def test_nested_channel_error_path(self, guild_create_payload):
        del guild_create_payload["channels"][1]["type"]
        with pytest.raises(DecodeError) as exc_info:
            decode_event("GUILD_CREATE", guild_create_payload)
        assert exc_info.value.path == "channels.1.type"

    def test_guild_object_error(self, guild_create_payload):
        del guild_create_payload["owner_id"]
        with pytest.raises(DecodeError) as exc_info:
            decode_event("GUILD_CREATE", guild_create_payload)
        assert exc_info.value.path == "owner_id"

    def test_missing_joined_at(self, guild_create_payload):
        del guild_create_payload["joined_at"]
        with pytest.raises(DecodeError) as exc_info:
            decode_event("GUILD_CREATE", guild_create_payload)
        assert exc_info.value.path == "joined_at"

    def test_missing_scheduled_events(self, guild_create_payload):
        del guild_create_payload["guild_scheduled_events"]
        with pytest.raises(DecodeError) as exc_info:
            decode_event("GUILD_CREATE", guild_create_payload)
        assert exc_info.value.path == "guild_scheduled_events"
