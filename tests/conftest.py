"""Shared fixtures for the gateway-events test suite.

Payloads are shaped like the documented gateway examples; ids are decimal
strings exactly as the service sends them.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from gateway_events.gateway.connection import QueueConnection

GUILD_ID = "41771983423143937"
USER_ID = "80351110224678912"
CHANNEL_ID = "290926798999357250"
MESSAGE_ID = "334385199974967042"
THREAD_ID = "41771983423143940"


# ---------------------------------------------------------------------------
# Users and members
# ---------------------------------------------------------------------------

@pytest.fixture
def user_payload() -> dict:
    return {
        "id": USER_ID,
        "username": "Nelly",
        "discriminator": "1337",
        "avatar": "8342729096ea3675442027381ff50dfe",
        "verified": True,
        "email": "nelly@example.com",
        "flags": 64,
        "premium_type": 1,
        "public_flags": 64,
    }


@pytest.fixture
def member_payload(user_payload) -> dict:
    return {
        "user": user_payload,
        "nick": "NOT API SUPPORT",
        "roles": [],
        "joined_at": "2015-04-26T06:26:56.936000+00:00",
        "deaf": False,
        "mute": False,
    }


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

@pytest.fixture
def ready_payload(user_payload) -> dict:
    return {
        "v": 10,
        "user": user_payload,
        "guilds": [{"id": GUILD_ID, "unavailable": True}],
        "session_id": "d1a5f1a2b3c4",
        "resume_gateway_url": "wss://gateway-us-east1-b.discord.gg",
        "shard": [0, 1],
        "application": {"id": "81384788765712384", "flags": 0},
    }


# ---------------------------------------------------------------------------
# Channels and threads
# ---------------------------------------------------------------------------

@pytest.fixture
def channel_payload() -> dict:
    return {
        "id": CHANNEL_ID,
        "guild_id": GUILD_ID,
        "type": 0,
        "name": "general",
        "position": 6,
        "nsfw": True,
        "topic": "24/7 chat about how to gank Mike #2",
        "last_message_id": "155117677105512449",
        "rate_limit_per_user": 2,
        "parent_id": "399942396007890945",
    }


@pytest.fixture
def thread_payload() -> dict:
    return {
        "id": THREAD_ID,
        "guild_id": GUILD_ID,
        "parent_id": CHANNEL_ID,
        "owner_id": USER_ID,
        "name": "don't buy dota-2",
        "type": 11,
        "last_message_id": "41771983423143940",
        "message_count": 1,
        "member_count": 5,
        "rate_limit_per_user": 2,
        "thread_metadata": {
            "archived": False,
            "auto_archive_duration": 1440,
            "archive_timestamp": "2021-04-12T23:40:39.855793+00:00",
            "locked": False,
        },
    }


# ---------------------------------------------------------------------------
# Guilds
# ---------------------------------------------------------------------------

@pytest.fixture
def guild_create_payload(member_payload) -> dict:
    """GUILD_CREATE as the gateway sends it: nested channels lack guild_id."""
    return {
        "id": GUILD_ID,
        "name": "Discord Developers",
        "icon": None,
        "owner_id": USER_ID,
        "afk_timeout": 300,
        "verification_level": 1,
        "roles": [
            {"id": GUILD_ID, "name": "@everyone", "permissions": "104320577"},
        ],
        "emojis": [],
        "features": ["COMMUNITY", "NEWS"],
        "joined_at": "2021-06-01T12:00:00.000000+00:00",
        "large": False,
        "member_count": 1,
        "members": [member_payload],
        "channels": [
            {"id": CHANNEL_ID, "type": 0, "name": "general", "position": 0},
            {"id": "290926798999357251", "type": 2, "name": "voice", "bitrate": 64000},
        ],
        "threads": [
            {
                "id": THREAD_ID,
                "type": 11,
                "parent_id": CHANNEL_ID,
                "name": "help",
                "thread_metadata": {"archived": False, "locked": False},
            },
        ],
        "presences": [
            {"user": {"id": USER_ID}, "status": "online", "activities": []},
        ],
        "guild_scheduled_events": [
            {
                "id": "941387010023002144",
                "guild_id": GUILD_ID,
                "name": "Office hours",
                "scheduled_start_time": "2022-03-01T18:00:00+00:00",
                "privacy_level": 2,
                "status": 1,
                "entity_type": 2,
                "channel_id": "290926798999357251",
            },
        ],
    }


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

@pytest.fixture
def message_payload(user_payload) -> dict:
    return {
        "id": MESSAGE_ID,
        "channel_id": CHANNEL_ID,
        "guild_id": GUILD_ID,
        "author": user_payload,
        "content": "Supa Hot",
        "timestamp": "2017-07-11T17:27:07.299000+00:00",
        "edited_timestamp": None,
        "tts": False,
        "mention_everyone": False,
        "mentions": [],
        "mention_roles": [],
        "pinned": False,
        "type": 0,
    }


# ---------------------------------------------------------------------------
# Auto moderation and interactions
# ---------------------------------------------------------------------------

@pytest.fixture
def automod_rule_payload() -> dict:
    return {
        "id": "969707018069872670",
        "guild_id": "613425648685547541",
        "name": "Keyword Filter 1",
        "creator_id": "423457898095789043",
        "trigger_type": 1,
        "event_type": 1,
        "actions": [
            {"type": 1, "metadata": {"custom_message": "Please keep it civil"}},
            {"type": 2, "metadata": {"channel_id": "123456789123456789"}},
            {"type": 3, "metadata": {"duration_seconds": 60}},
        ],
        "trigger_metadata": {"keyword_filter": ["cat*", "*dog"]},
        "enabled": True,
        "exempt_roles": ["323456789123456789", "423456789123456789"],
        "exempt_channels": ["523456789123456789"],
    }


@pytest.fixture
def interaction_payload(member_payload) -> dict:
    return {
        "id": "786008729715212338",
        "application_id": "775799577604522054",
        "type": 2,
        "token": "A_UNIQUE_TOKEN",
        "version": 1,
        "data": {"id": "771825006014889984", "name": "ping", "type": 1},
        "guild_id": GUILD_ID,
        "channel_id": CHANNEL_ID,
        "member": member_payload,
        "locale": "en-US",
    }


# ---------------------------------------------------------------------------
# Connections and captures
# ---------------------------------------------------------------------------

@pytest.fixture
def connection() -> QueueConnection:
    return QueueConnection()


@pytest.fixture
def write_capture(tmp_path):
    """Write gateway frames to a JSON Lines file and return its path."""

    def _write(frames: list, name: str = "capture.jsonl") -> Path:
        path = tmp_path / name
        lines = [f if isinstance(f, str) else json.dumps(f) for f in frames]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write
