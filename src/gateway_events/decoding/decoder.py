"""Gateway payload decoder.

Turns an ``(event name, payload)`` envelope into a ``GatewayEvent``.

Rule selection is a static table keyed by the exact, case-sensitive event
name (``EVENT_DECODERS``); adding a new kind is one model class plus one
table entry. Rules come in four shapes:

* projection: pick named top-level keys, validate each into its field;
* re-decode: validate the whole payload as one record;
* GUILD_CREATE: stamp the guild id onto nested channels/threads first;
* derived fields: resume URL → hostname, POSIX/ISO-8601 timestamps.

Unknown names never fail; they become ``UnknownEvent``. Decoding is a pure
function of its two arguments and never mutates the payload.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Collection, Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from gateway_events.core.coerce import extract_hostname, parse_iso8601
from gateway_events.core.errors import DecodeError
from gateway_events.core.events import (
    AutoModerationActionExecution,
    AutoModerationRuleCreate,
    AutoModerationRuleDelete,
    AutoModerationRuleUpdate,
    ChannelCreate,
    ChannelDelete,
    ChannelPinsUpdate,
    ChannelUpdate,
    GatewayEvent,
    GuildAuditLogEntryCreate,
    GuildBanAdd,
    GuildBanRemove,
    GuildCreate,
    GuildCreateData,
    GuildDelete,
    GuildEmojiUpdate,
    GuildIntegrationsUpdate,
    GuildMemberAdd,
    GuildMemberRemove,
    GuildMembersChunk,
    GuildMemberUpdate,
    GuildRoleCreate,
    GuildRoleDelete,
    GuildRoleUpdate,
    GuildUpdate,
    InteractionCreate,
    MessageCreate,
    MessageDelete,
    MessageDeleteBulk,
    MessageReactionAdd,
    MessageReactionRemove,
    MessageReactionRemoveAll,
    MessageReactionRemoveEmoji,
    MessageUpdate,
    PresenceUpdate,
    Ready,
    Resumed,
    ThreadCreate,
    ThreadDelete,
    ThreadListSync,
    ThreadMembersUpdate,
    ThreadMemberUpdate,
    ThreadUpdate,
    TypingStart,
    UnknownEvent,
    UserUpdate,
)
from gateway_events.core.ids import GuildId
from gateway_events.core.models import Guild

logger = logging.getLogger(__name__)

DecodeRule = Callable[[str, Mapping[str, Any]], GatewayEvent]
FieldConverter = Callable[[Any], Any]

_MISSING = "Field required"


# ---------------------------------------------------------------------------
# Validation plumbing
# ---------------------------------------------------------------------------

def _decode_error(
    event_name: str,
    exc: ValidationError,
    wire_keys: Mapping[str, str] | None = None,
) -> DecodeError:
    """Build a ``DecodeError`` from the first pydantic error.

    ``wire_keys`` maps model field names back to the payload keys they were
    read from, so the reported path is always relative to the raw payload.
    An empty wire key means the field held the whole payload.
    """
    errors = exc.errors()
    first = errors[0]
    loc = list(first["loc"])
    if wire_keys is not None and loc and loc[0] in wire_keys:
        head = wire_keys[loc[0]]
        loc = ([head] if head else []) + loc[1:]
    reason = first["msg"]
    if len(errors) > 1:
        reason = f"{reason} (+{len(errors) - 1} more)"
    return DecodeError(event_name, reason, ".".join(str(part) for part in loc))


def _validate(
    event_name: str,
    model: type[BaseModel],
    data: Any,
    wire_keys: Mapping[str, str] | None = None,
) -> Any:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise _decode_error(event_name, exc, wire_keys) from exc


def _extract(
    event_name: str,
    model: type[BaseModel],
    payload: Mapping[str, Any],
    fields: Mapping[str, str],
    *,
    optional: Collection[str] = (),
    whole: str | None = None,
    convert: Mapping[str, FieldConverter] | None = None,
) -> Any:
    """Project ``payload`` keys onto ``model`` fields and validate.

    ``fields`` maps field name → payload key. Fields listed in ``optional``
    fall back to the model default when their key is absent; any other
    missing key is a ``DecodeError``. ``whole`` names a field that receives
    the entire payload. ``convert`` holds per-field repairs that run before
    validation and may raise ``ValueError``.
    """
    data: dict[str, Any] = {}
    for field, key in fields.items():
        if key not in payload:
            if field in optional:
                continue
            raise DecodeError(event_name, _MISSING, key)
        value = payload[key]
        if convert and field in convert:
            try:
                value = convert[field](value)
            except ValueError as exc:
                raise DecodeError(event_name, str(exc), key) from exc
        data[field] = value

    wire_keys = dict(fields)
    if whole is not None:
        data[whole] = payload
        wire_keys[whole] = ""
    return _validate(event_name, model, data, wire_keys)


# ---------------------------------------------------------------------------
# Rule builders
# ---------------------------------------------------------------------------

def _project(
    model: type[GatewayEvent],
    fields: Mapping[str, str],
    *,
    optional: Collection[str] = (),
    whole: str | None = None,
    convert: Mapping[str, FieldConverter] | None = None,
) -> DecodeRule:
    def rule(event_name: str, payload: Mapping[str, Any]) -> GatewayEvent:
        return _extract(
            event_name, model, payload, fields,
            optional=optional, whole=whole, convert=convert,
        )

    return rule


def _reparse(model: type[GatewayEvent], field: str) -> DecodeRule:
    """Validate the whole payload as the record held in ``field``."""

    def rule(event_name: str, payload: Mapping[str, Any]) -> GatewayEvent:
        return _validate(event_name, model, {field: payload}, {field: ""})

    return rule


# ---------------------------------------------------------------------------
# Field repairs
# ---------------------------------------------------------------------------

def _resume_host(value: Any) -> Any:
    # Non-strings are left for validation to reject
    if isinstance(value, str):
        return extract_hostname(value)
    return value


def _lenient_timestamp(value: Any) -> Any:
    """Informational timestamp: unparsable text resolves to ``None``."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(
            f"expected an ISO-8601 string, got {type(value).__name__}"
        )
    parsed = parse_iso8601(value)
    if parsed is None:
        logger.debug("Ignoring unparsable timestamp %r", value)
    return parsed


# ---------------------------------------------------------------------------
# GUILD_CREATE
# ---------------------------------------------------------------------------

def _stamp_guild_id(
    event_name: str, payload: Mapping[str, Any], key: str, guild_id: GuildId
) -> list[dict[str, Any]]:
    """Copy each nested channel/thread with ``guild_id`` set.

    The gateway omits the id inside GUILD_CREATE because the envelope
    implies it; channel decoding expects it.
    """
    if key not in payload:
        raise DecodeError(event_name, _MISSING, key)
    values = payload[key]
    if not isinstance(values, list):
        raise DecodeError(event_name, "Input should be a valid list", key)

    stamped: list[dict[str, Any]] = []
    for index, value in enumerate(values):
        if not isinstance(value, Mapping):
            raise DecodeError(
                event_name, "Input should be a valid dictionary", f"{key}.{index}"
            )
        stamped.append({**value, "guild_id": guild_id})
    return stamped


_GUILD_CREATE_FIELDS = {
    "joined_at": "joined_at",
    "large": "large",
    "unavailable": "unavailable",
    "member_count": "member_count",
    "members": "members",
    "channels": "channels",
    "threads": "threads",
    "presences": "presences",
    "scheduled_events": "guild_scheduled_events",
}


def _decode_guild_create(event_name: str, payload: Mapping[str, Any]) -> GatewayEvent:
    guild: Guild = _validate(event_name, Guild, payload)
    repaired = {
        **payload,
        "channels": _stamp_guild_id(event_name, payload, "channels", guild.id),
        "threads": _stamp_guild_id(event_name, payload, "threads", guild.id),
    }
    data = _extract(
        event_name, GuildCreateData, repaired, _GUILD_CREATE_FIELDS,
        optional=("unavailable",),
    )
    return GuildCreate(guild=guild, data=data)


# ---------------------------------------------------------------------------
# Event table
# ---------------------------------------------------------------------------

_GUILD_USER = {"guild_id": "guild_id", "user": "user"}
_GUILD_ROLE = {"guild_id": "guild_id", "role": "role"}
_CHANNEL_MESSAGE = {"channel_id": "channel_id", "message_id": "id"}
_GUILD_EMOJIS = {"guild_id": "guild_id", "emojis": "emojis"}

EVENT_DECODERS: dict[str, DecodeRule] = {
    "READY": _project(
        Ready,
        {
            "version": "v",
            "user": "user",
            "guilds": "guilds",
            "session_id": "session_id",
            "resume_gateway_host": "resume_gateway_url",
            "shard": "shard",
            "application": "application",
        },
        optional=("shard",),
        convert={"resume_gateway_host": _resume_host},
    ),
    "RESUMED": _project(Resumed, {"trace": "_trace"}),
    "AUTO_MODERATION_RULE_CREATE": _reparse(AutoModerationRuleCreate, "rule"),
    "AUTO_MODERATION_RULE_UPDATE": _reparse(AutoModerationRuleUpdate, "rule"),
    "AUTO_MODERATION_RULE_DELETE": _reparse(AutoModerationRuleDelete, "rule"),
    "AUTO_MODERATION_ACTION_EXECUTION": _reparse(AutoModerationActionExecution, "info"),
    "CHANNEL_CREATE": _reparse(ChannelCreate, "channel"),
    "CHANNEL_UPDATE": _reparse(ChannelUpdate, "channel"),
    "CHANNEL_DELETE": _reparse(ChannelDelete, "channel"),
    "THREAD_CREATE": _reparse(ThreadCreate, "thread"),
    "THREAD_UPDATE": _reparse(ThreadUpdate, "thread"),
    "THREAD_MEMBER_UPDATE": _reparse(ThreadMemberUpdate, "member"),
    "THREAD_DELETE": _reparse(ThreadDelete, "thread"),
    "THREAD_LIST_SYNC": _reparse(ThreadListSync, "sync"),
    "THREAD_MEMBERS_UPDATE": _reparse(ThreadMembersUpdate, "update"),
    "CHANNEL_PINS_UPDATE": _project(
        ChannelPinsUpdate,
        {"channel_id": "channel_id", "last_pin_timestamp": "last_pin_timestamp"},
        optional=("last_pin_timestamp",),
        convert={"last_pin_timestamp": _lenient_timestamp},
    ),
    "GUILD_CREATE": _decode_guild_create,
    "GUILD_UPDATE": _reparse(GuildUpdate, "guild"),
    "GUILD_DELETE": _reparse(GuildDelete, "guild"),
    "GUILD_AUDIT_LOG_ENTRY_CREATE": _reparse(GuildAuditLogEntryCreate, "entry"),
    "GUILD_BAN_ADD": _project(GuildBanAdd, _GUILD_USER),
    "GUILD_BAN_REMOVE": _project(GuildBanRemove, _GUILD_USER),
    "GUILD_EMOJI_UPDATE": _project(GuildEmojiUpdate, _GUILD_EMOJIS),
    "GUILD_EMOJIS_UPDATE": _project(GuildEmojiUpdate, _GUILD_EMOJIS),
    "GUILD_INTEGRATIONS_UPDATE": _project(GuildIntegrationsUpdate, {"guild_id": "guild_id"}),
    "GUILD_MEMBER_ADD": _project(GuildMemberAdd, {"guild_id": "guild_id"}, whole="member"),
    "GUILD_MEMBER_REMOVE": _project(GuildMemberRemove, _GUILD_USER),
    "GUILD_MEMBER_UPDATE": _project(
        GuildMemberUpdate,
        {"guild_id": "guild_id", "roles": "roles", "user": "user", "nick": "nick"},
        optional=("nick",),
    ),
    "GUILD_MEMBERS_CHUNK": _project(
        GuildMembersChunk, {"guild_id": "guild_id", "members": "members"}
    ),
    "GUILD_ROLE_CREATE": _project(GuildRoleCreate, _GUILD_ROLE),
    "GUILD_ROLE_UPDATE": _project(GuildRoleUpdate, _GUILD_ROLE),
    "GUILD_ROLE_DELETE": _project(
        GuildRoleDelete, {"guild_id": "guild_id", "role_id": "role_id"}
    ),
    "MESSAGE_CREATE": _reparse(MessageCreate, "message"),
    "MESSAGE_UPDATE": _project(MessageUpdate, _CHANNEL_MESSAGE),
    "MESSAGE_DELETE": _project(MessageDelete, _CHANNEL_MESSAGE),
    "MESSAGE_DELETE_BULK": _project(
        MessageDeleteBulk, {"channel_id": "channel_id", "message_ids": "ids"}
    ),
    "MESSAGE_REACTION_ADD": _reparse(MessageReactionAdd, "reaction"),
    "MESSAGE_REACTION_REMOVE": _reparse(MessageReactionRemove, "reaction"),
    "MESSAGE_REACTION_REMOVE_ALL": _project(
        MessageReactionRemoveAll, {"channel_id": "channel_id", "message_id": "message_id"}
    ),
    "MESSAGE_REACTION_REMOVE_EMOJI": _reparse(MessageReactionRemoveEmoji, "reaction"),
    "PRESENCE_UPDATE": _reparse(PresenceUpdate, "presence"),
    "TYPING_START": _reparse(TypingStart, "typing"),
    "USER_UPDATE": _reparse(UserUpdate, "user"),
    "INTERACTION_CREATE": _reparse(InteractionCreate, "interaction"),
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def known_event_names() -> tuple[str, ...]:
    """Event names with a dedicated decoding rule, sorted."""
    return tuple(sorted(EVENT_DECODERS))


def decode_event(event_name: str, payload: Any) -> GatewayEvent:
    """Decode one gateway envelope.

    Raises:
        DecodeError: a recognised event is missing a required field or has
            a field of the wrong shape. Unrecognised names never raise.
    """
    rule = EVENT_DECODERS.get(event_name)
    if rule is None:
        logger.debug("Unrecognised gateway event %s kept as UnknownEvent", event_name)
        return UnknownEvent(name=event_name, payload=copy.deepcopy(payload))

    if not isinstance(payload, Mapping):
        raise DecodeError(
            event_name, f"payload must be an object, got {type(payload).__name__}"
        )
    return rule(event_name, payload)
