"""Gateway dispatch events.

Every notification the gateway can send decodes into exactly one of the
frozen models below. Each variant carries ``event_name``, the wire name it
is decoded from. Anything the decoder does not recognise becomes an
``UnknownEvent`` that keeps the original name and payload, so handlers
that match on ``Event`` stay exhaustive as the service adds new kinds.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Union

from pydantic import BaseModel, ConfigDict, field_validator

from .coerce import posix_to_utc
from .enums import AutoModerationTriggerType
from .ids import (
    ApplicationId,
    AutoModerationRuleId,
    ChannelId,
    GuildId,
    MessageId,
    RoleId,
    UserId,
)
from .models import (
    AuditLogEntry,
    AutoModerationRule,
    AutoModerationRuleAction,
    Channel,
    Emoji,
    Guild,
    GuildMember,
    GuildUnavailable,
    Interaction,
    Message,
    PresenceInfo,
    Role,
    ScheduledEvent,
    Shard,
    ThreadListSyncFields,
    ThreadMembersUpdateFields,
    ThreadMemberUpdateFields,
    User,
)


class GatewayEvent(BaseModel):
    """Base for all decoded events. Immutable once built.

    Events compare by value. They are not meant as set members or dict
    keys: variants holding raw JSON objects (``UnknownEvent.payload``,
    presence client status, audit log changes) raise ``TypeError`` from
    ``hash()``. Key on ids instead.
    """

    model_config = ConfigDict(frozen=True)

    event_name: ClassVar[str] = ""


# ===========================================================================
# Composite payload records
# ===========================================================================

class PartialApplication(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: ApplicationId
    flags: int


class ReactionInfo(BaseModel):
    """A user reacted to (or un-reacted from) a message."""

    model_config = ConfigDict(frozen=True)

    user_id: UserId
    guild_id: GuildId | None = None  # None for DMs
    channel_id: ChannelId
    message_id: MessageId
    emoji: Emoji


class ReactionRemoveInfo(BaseModel):
    """All reactions of one emoji were removed from a message."""

    model_config = ConfigDict(frozen=True)

    channel_id: ChannelId
    guild_id: GuildId
    message_id: MessageId
    emoji: Emoji


class TypingInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: UserId
    channel_id: ChannelId
    timestamp: datetime  # Sent as POSIX seconds

    @field_validator("timestamp", mode="before")
    @classmethod
    def _from_posix(cls, value: Any) -> datetime:
        if isinstance(value, datetime):
            return value
        return posix_to_utc(value)


class AutoModerationActionExecuteInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: GuildId
    action: AutoModerationRuleAction
    rule_id: AutoModerationRuleId
    rule_trigger_type: AutoModerationTriggerType
    user_id: UserId
    channel_id: ChannelId | None = None
    message_id: MessageId | None = None
    alert_system_message_id: MessageId | None = None
    content: str
    matched_keyword: str | None = None
    matched_content: str | None = None


class GuildCreateData(BaseModel):
    """The parts of GUILD_CREATE that are not the guild object itself."""

    model_config = ConfigDict(frozen=True)

    joined_at: datetime
    large: bool
    unavailable: bool | None = None
    member_count: int
    members: tuple[GuildMember, ...]
    channels: tuple[Channel, ...]
    threads: tuple[Channel, ...]
    presences: tuple[PresenceInfo, ...]
    scheduled_events: tuple[ScheduledEvent, ...]  # "guild_scheduled_events" on the wire


# ===========================================================================
# Session
# ===========================================================================

class Ready(GatewayEvent):
    """Initial state after IDENTIFY."""

    event_name: ClassVar[str] = "READY"
    version: int
    user: User
    guilds: tuple[GuildUnavailable, ...]
    session_id: str
    resume_gateway_host: str  # Bare hostname, scheme and slash stripped
    shard: Shard | None = None
    application: PartialApplication


class Resumed(GatewayEvent):
    event_name: ClassVar[str] = "RESUMED"
    trace: tuple[str, ...]


# ===========================================================================
# Auto moderation
# ===========================================================================

class AutoModerationRuleCreate(GatewayEvent):
    event_name: ClassVar[str] = "AUTO_MODERATION_RULE_CREATE"
    rule: AutoModerationRule


class AutoModerationRuleUpdate(GatewayEvent):
    event_name: ClassVar[str] = "AUTO_MODERATION_RULE_UPDATE"
    rule: AutoModerationRule


class AutoModerationRuleDelete(GatewayEvent):
    event_name: ClassVar[str] = "AUTO_MODERATION_RULE_DELETE"
    rule: AutoModerationRule


class AutoModerationActionExecution(GatewayEvent):
    event_name: ClassVar[str] = "AUTO_MODERATION_ACTION_EXECUTION"
    info: AutoModerationActionExecuteInfo


# ===========================================================================
# Channels and threads
# ===========================================================================

class ChannelCreate(GatewayEvent):
    event_name: ClassVar[str] = "CHANNEL_CREATE"
    channel: Channel


class ChannelUpdate(GatewayEvent):
    event_name: ClassVar[str] = "CHANNEL_UPDATE"
    channel: Channel


class ChannelDelete(GatewayEvent):
    event_name: ClassVar[str] = "CHANNEL_DELETE"
    channel: Channel


class ThreadCreate(GatewayEvent):
    """Also sent when the current user is added to a private thread."""

    event_name: ClassVar[str] = "THREAD_CREATE"
    thread: Channel


class ThreadUpdate(GatewayEvent):
    event_name: ClassVar[str] = "THREAD_UPDATE"
    thread: Channel


class ThreadDelete(GatewayEvent):
    event_name: ClassVar[str] = "THREAD_DELETE"
    thread: Channel


class ThreadMemberUpdate(GatewayEvent):
    event_name: ClassVar[str] = "THREAD_MEMBER_UPDATE"
    member: ThreadMemberUpdateFields


class ThreadListSync(GatewayEvent):
    event_name: ClassVar[str] = "THREAD_LIST_SYNC"
    sync: ThreadListSyncFields


class ThreadMembersUpdate(GatewayEvent):
    event_name: ClassVar[str] = "THREAD_MEMBERS_UPDATE"
    update: ThreadMembersUpdateFields


class ChannelPinsUpdate(GatewayEvent):
    event_name: ClassVar[str] = "CHANNEL_PINS_UPDATE"
    channel_id: ChannelId
    last_pin_timestamp: datetime | None = None


# ===========================================================================
# Guilds
# ===========================================================================

class GuildCreate(GatewayEvent):
    """Lazy load, guild became available, or the user joined a guild."""

    event_name: ClassVar[str] = "GUILD_CREATE"
    guild: Guild
    data: GuildCreateData


class GuildUpdate(GatewayEvent):
    event_name: ClassVar[str] = "GUILD_UPDATE"
    guild: Guild


class GuildDelete(GatewayEvent):
    event_name: ClassVar[str] = "GUILD_DELETE"
    guild: GuildUnavailable


class GuildAuditLogEntryCreate(GatewayEvent):
    event_name: ClassVar[str] = "GUILD_AUDIT_LOG_ENTRY_CREATE"
    entry: AuditLogEntry


class GuildBanAdd(GatewayEvent):
    event_name: ClassVar[str] = "GUILD_BAN_ADD"
    guild_id: GuildId
    user: User


class GuildBanRemove(GatewayEvent):
    event_name: ClassVar[str] = "GUILD_BAN_REMOVE"
    guild_id: GuildId
    user: User


class GuildEmojiUpdate(GatewayEvent):
    event_name: ClassVar[str] = "GUILD_EMOJI_UPDATE"
    guild_id: GuildId
    emojis: tuple[Emoji, ...]


class GuildIntegrationsUpdate(GatewayEvent):
    event_name: ClassVar[str] = "GUILD_INTEGRATIONS_UPDATE"
    guild_id: GuildId


class GuildMemberAdd(GatewayEvent):
    event_name: ClassVar[str] = "GUILD_MEMBER_ADD"
    guild_id: GuildId
    member: GuildMember


class GuildMemberRemove(GatewayEvent):
    event_name: ClassVar[str] = "GUILD_MEMBER_REMOVE"
    guild_id: GuildId
    user: User


class GuildMemberUpdate(GatewayEvent):
    event_name: ClassVar[str] = "GUILD_MEMBER_UPDATE"
    guild_id: GuildId
    roles: tuple[RoleId, ...]
    user: User
    nick: str | None = None


class GuildMembersChunk(GatewayEvent):
    """Response to a Request Guild Members command."""

    event_name: ClassVar[str] = "GUILD_MEMBERS_CHUNK"
    guild_id: GuildId
    members: tuple[GuildMember, ...]


class GuildRoleCreate(GatewayEvent):
    event_name: ClassVar[str] = "GUILD_ROLE_CREATE"
    guild_id: GuildId
    role: Role


class GuildRoleUpdate(GatewayEvent):
    event_name: ClassVar[str] = "GUILD_ROLE_UPDATE"
    guild_id: GuildId
    role: Role


class GuildRoleDelete(GatewayEvent):
    event_name: ClassVar[str] = "GUILD_ROLE_DELETE"
    guild_id: GuildId
    role_id: RoleId


# ===========================================================================
# Messages
# ===========================================================================

class MessageCreate(GatewayEvent):
    event_name: ClassVar[str] = "MESSAGE_CREATE"
    message: Message


class MessageUpdate(GatewayEvent):
    event_name: ClassVar[str] = "MESSAGE_UPDATE"
    channel_id: ChannelId
    message_id: MessageId


class MessageDelete(GatewayEvent):
    event_name: ClassVar[str] = "MESSAGE_DELETE"
    channel_id: ChannelId
    message_id: MessageId


class MessageDeleteBulk(GatewayEvent):
    event_name: ClassVar[str] = "MESSAGE_DELETE_BULK"
    channel_id: ChannelId
    message_ids: tuple[MessageId, ...]


class MessageReactionAdd(GatewayEvent):
    event_name: ClassVar[str] = "MESSAGE_REACTION_ADD"
    reaction: ReactionInfo


class MessageReactionRemove(GatewayEvent):
    event_name: ClassVar[str] = "MESSAGE_REACTION_REMOVE"
    reaction: ReactionInfo


class MessageReactionRemoveAll(GatewayEvent):
    event_name: ClassVar[str] = "MESSAGE_REACTION_REMOVE_ALL"
    channel_id: ChannelId
    message_id: MessageId


class MessageReactionRemoveEmoji(GatewayEvent):
    event_name: ClassVar[str] = "MESSAGE_REACTION_REMOVE_EMOJI"
    reaction: ReactionRemoveInfo


# ===========================================================================
# Users, presence, interactions
# ===========================================================================

class PresenceUpdate(GatewayEvent):
    event_name: ClassVar[str] = "PRESENCE_UPDATE"
    presence: PresenceInfo


class TypingStart(GatewayEvent):
    event_name: ClassVar[str] = "TYPING_START"
    typing: TypingInfo


class UserUpdate(GatewayEvent):
    event_name: ClassVar[str] = "USER_UPDATE"
    user: User


class InteractionCreate(GatewayEvent):
    event_name: ClassVar[str] = "INTERACTION_CREATE"
    interaction: Interaction


# ===========================================================================
# Fallback
# ===========================================================================

class UnknownEvent(GatewayEvent):
    """A notification this release does not know. Not an error."""

    name: str
    payload: Any


Event = Union[
    Ready,
    Resumed,
    AutoModerationRuleCreate,
    AutoModerationRuleUpdate,
    AutoModerationRuleDelete,
    AutoModerationActionExecution,
    ChannelCreate,
    ChannelUpdate,
    ChannelDelete,
    ThreadCreate,
    ThreadUpdate,
    ThreadDelete,
    ThreadMemberUpdate,
    ThreadListSync,
    ThreadMembersUpdate,
    ChannelPinsUpdate,
    GuildCreate,
    GuildUpdate,
    GuildDelete,
    GuildAuditLogEntryCreate,
    GuildBanAdd,
    GuildBanRemove,
    GuildEmojiUpdate,
    GuildIntegrationsUpdate,
    GuildMemberAdd,
    GuildMemberRemove,
    GuildMemberUpdate,
    GuildMembersChunk,
    GuildRoleCreate,
    GuildRoleUpdate,
    GuildRoleDelete,
    MessageCreate,
    MessageUpdate,
    MessageDelete,
    MessageDeleteBulk,
    MessageReactionAdd,
    MessageReactionRemove,
    MessageReactionRemoveAll,
    MessageReactionRemoveEmoji,
    PresenceUpdate,
    TypingStart,
    UserUpdate,
    InteractionCreate,
    UnknownEvent,
]
