"""Domain records carried inside gateway events.

These mirror the service's object schemas only as deeply as event decoding
needs. Keys the service adds later are ignored, so a schema change upstream
never turns into a decode failure here unless a required field disappears.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import (
    AutoModerationActionType,
    AutoModerationTriggerType,
    ChannelType,
    InteractionType,
)
from .ids import (
    ApplicationId,
    AuditLogEntryId,
    AutoModerationRuleId,
    ChannelId,
    EmojiId,
    GuildId,
    InteractionId,
    MessageId,
    RoleId,
    ScheduledEventId,
    UserId,
    WebhookId,
)


class Record(BaseModel):
    """Immutable base for every decoded record.

    Records holding raw JSON objects are not hashable.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")


# ---------------------------------------------------------------------------
# Users and members
# ---------------------------------------------------------------------------

class User(Record):
    id: UserId
    username: str
    discriminator: str | None = None  # "0" for migrated usernames
    global_name: str | None = None
    avatar: str | None = None
    bot: bool = False
    system: bool = False
    mfa_enabled: bool | None = None
    banner: str | None = None
    accent_color: int | None = None
    locale: str | None = None
    verified: bool | None = None
    email: str | None = None
    flags: int | None = None
    premium_type: int | None = None
    public_flags: int | None = None


class GuildMember(Record):
    user: User | None = None  # Absent in MESSAGE_CREATE member stubs
    nick: str | None = None
    avatar: str | None = None
    roles: tuple[RoleId, ...] = ()
    joined_at: datetime | None = None
    premium_since: datetime | None = None
    deaf: bool = False
    mute: bool = False
    pending: bool = False
    permissions: str | None = None
    communication_disabled_until: datetime | None = None


class Role(Record):
    id: RoleId
    name: str
    color: int = 0
    hoist: bool = False
    icon: str | None = None
    unicode_emoji: str | None = None
    position: int = 0
    permissions: str = "0"  # Bitset serialised as a decimal string
    managed: bool = False
    mentionable: bool = False


class Emoji(Record):
    id: EmojiId | None = None  # None for unicode emoji
    name: str | None = None
    roles: tuple[RoleId, ...] = ()
    user: User | None = None
    require_colons: bool | None = None
    managed: bool | None = None
    animated: bool | None = None
    available: bool | None = None


# ---------------------------------------------------------------------------
# Channels and threads
# ---------------------------------------------------------------------------

class ThreadMetadata(Record):
    archived: bool = False
    auto_archive_duration: int | None = None
    archive_timestamp: datetime | None = None
    locked: bool = False
    invitable: bool | None = None
    create_timestamp: datetime | None = None


class Channel(Record):
    """Guild channel, DM or thread."""

    id: ChannelId
    type: int  # Kept as int so new channel types still decode
    guild_id: GuildId | None = None
    position: int | None = None
    name: str | None = None
    topic: str | None = None
    nsfw: bool = False
    last_message_id: MessageId | None = None
    bitrate: int | None = None
    user_limit: int | None = None
    rate_limit_per_user: int | None = None
    parent_id: ChannelId | None = None
    owner_id: UserId | None = None
    last_pin_timestamp: datetime | None = None
    message_count: int | None = None
    member_count: int | None = None
    thread_metadata: ThreadMetadata | None = None
    flags: int | None = None

    @property
    def channel_type(self) -> ChannelType | None:
        """Known channel type, or ``None`` for a type added after this release."""
        try:
            return ChannelType(self.type)
        except ValueError:
            return None

    @property
    def is_thread(self) -> bool:
        return self.thread_metadata is not None or self.type in (
            ChannelType.ANNOUNCEMENT_THREAD,
            ChannelType.PUBLIC_THREAD,
            ChannelType.PRIVATE_THREAD,
        )


class ThreadMember(Record):
    id: ChannelId | None = None  # Omitted inside GUILD_CREATE
    user_id: UserId | None = None
    join_timestamp: datetime
    flags: int = 0


class ThreadMemberUpdateFields(ThreadMember):
    guild_id: GuildId


class ThreadListSyncFields(Record):
    guild_id: GuildId
    channel_ids: tuple[ChannelId, ...] | None = None
    threads: tuple[Channel, ...]
    members: tuple[ThreadMember, ...]


class ThreadMembersUpdateFields(Record):
    id: ChannelId
    guild_id: GuildId
    member_count: int
    added_members: tuple[ThreadMember, ...] = ()
    removed_member_ids: tuple[UserId, ...] = ()


# ---------------------------------------------------------------------------
# Guilds
# ---------------------------------------------------------------------------

class Guild(Record):
    id: GuildId
    name: str
    owner_id: UserId
    icon: str | None = None
    splash: str | None = None
    afk_channel_id: ChannelId | None = None
    afk_timeout: int = 0
    verification_level: int = 0
    default_message_notifications: int = 0
    explicit_content_filter: int = 0
    roles: tuple[Role, ...] = ()
    emojis: tuple[Emoji, ...] = ()
    features: tuple[str, ...] = ()
    mfa_level: int = 0
    application_id: ApplicationId | None = None
    system_channel_id: ChannelId | None = None
    rules_channel_id: ChannelId | None = None
    max_members: int | None = None
    vanity_url_code: str | None = None
    description: str | None = None
    banner: str | None = None
    premium_tier: int = 0
    premium_subscription_count: int | None = None
    preferred_locale: str = "en-US"
    nsfw_level: int = 0


class GuildUnavailable(Record):
    """Guild stub sent in READY and GUILD_DELETE."""

    id: GuildId
    unavailable: bool | None = None  # Missing means the bot left the guild


class ScheduledEvent(Record):
    id: ScheduledEventId
    guild_id: GuildId
    channel_id: ChannelId | None = None
    creator_id: UserId | None = None
    name: str
    description: str | None = None
    scheduled_start_time: datetime
    scheduled_end_time: datetime | None = None
    privacy_level: int = 2
    status: int
    entity_type: int
    entity_id: str | None = None
    user_count: int | None = None


class AuditLogEntry(Record):
    id: AuditLogEntryId
    guild_id: GuildId | None = None  # Only present in the gateway event
    target_id: str | None = None
    user_id: UserId | None = None
    action_type: int
    changes: tuple[dict[str, Any], ...] = ()
    options: dict[str, Any] | None = None
    reason: str | None = None


# ---------------------------------------------------------------------------
# Messages and presence
# ---------------------------------------------------------------------------

class Message(Record):
    id: MessageId
    channel_id: ChannelId
    guild_id: GuildId | None = None
    author: User
    member: GuildMember | None = None
    content: str = ""  # Empty without the message content intent
    timestamp: datetime
    edited_timestamp: datetime | None = None
    tts: bool = False
    mention_everyone: bool = False
    mentions: tuple[User, ...] = ()
    mention_roles: tuple[RoleId, ...] = ()
    pinned: bool = False
    webhook_id: WebhookId | None = None
    type: int = 0
    flags: int | None = None


class Activity(Record):
    name: str
    type: int
    url: str | None = None
    created_at: int | None = None  # Unix milliseconds
    state: str | None = None
    details: str | None = None


class PresenceUser(Record):
    """Presence updates only guarantee the user id."""

    id: UserId
    username: str | None = None


class PresenceInfo(Record):
    user: PresenceUser
    guild_id: GuildId | None = None
    status: str = "offline"
    activities: tuple[Activity, ...] = ()
    client_status: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Auto moderation
# ---------------------------------------------------------------------------

class AutoModerationRuleAction(Record):
    type: AutoModerationActionType
    metadata: dict[str, Any] | None = None


class AutoModerationRule(Record):
    id: AutoModerationRuleId
    guild_id: GuildId
    name: str
    creator_id: UserId
    event_type: int
    trigger_type: AutoModerationTriggerType
    trigger_metadata: dict[str, Any] = Field(default_factory=dict)
    actions: tuple[AutoModerationRuleAction, ...] = ()
    enabled: bool = False
    exempt_roles: tuple[RoleId, ...] = ()
    exempt_channels: tuple[ChannelId, ...] = ()


# ---------------------------------------------------------------------------
# Interactions and sharding
# ---------------------------------------------------------------------------

class Interaction(Record):
    id: InteractionId
    application_id: ApplicationId
    type: InteractionType
    token: str
    version: int = 1
    data: dict[str, Any] | None = None
    guild_id: GuildId | None = None
    channel_id: ChannelId | None = None
    member: GuildMember | None = None
    user: User | None = None
    locale: str | None = None
    guild_locale: str | None = None


class Shard(Record):
    """``[shard_id, shard_count]`` pair from READY."""

    shard_id: int
    shard_count: int

    @model_validator(mode="before")
    @classmethod
    def _from_pair(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            if len(value) != 2:
                raise ValueError("shard must be a [shard_id, shard_count] pair")
            return {"shard_id": value[0], "shard_count": value[1]}
        return value
