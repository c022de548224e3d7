"""Snowflake identifier types.

Every entity the gateway talks about is identified by a 64-bit snowflake.
Each entity kind gets its own ``int`` subclass so ids cannot be mixed up.

ID Rules
--------
1. Wire form is a decimal string (``"175928847299117063"``); plain ints are
   accepted too.
2. An id of one kind is never accepted where another kind is expected:
   ``GuildId(ChannelId(1))`` raises, and so does validating a ``ChannelId``
   into a ``GuildId`` model field.
3. Equality, hashing and ordering are those of the underlying integer.
4. JSON serialisation emits the decimal string form.

Timestamp Rule
--------------
``created_at`` is always a ``datetime`` with ``tzinfo=timezone.utc``.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

# First second of 2015, the snowflake epoch, in milliseconds.
DISCORD_EPOCH_MS = 1_420_070_400_000

_MAX_SNOWFLAKE = 2**64


class Snowflake(int):
    """Base for all typed snowflake identifiers."""

    __slots__ = ()

    def __new__(cls, value: Any) -> Snowflake:
        if isinstance(value, Snowflake) and not isinstance(value, cls):
            raise TypeError(
                f"{cls.__name__} cannot be built from {type(value).__name__}"
            )
        if isinstance(value, bool):
            raise TypeError(f"{cls.__name__} cannot be built from bool")
        if isinstance(value, str):
            if not value.isascii() or not value.isdigit():
                raise ValueError(f"{cls.__name__} expects decimal digits, got {value!r}")
            value = int(value)
        elif not isinstance(value, int):
            raise TypeError(
                f"{cls.__name__} expects int or str, got {type(value).__name__}"
            )
        if not 0 <= value < _MAX_SNOWFLAKE:
            raise ValueError(f"{cls.__name__} out of 64-bit range: {value}")
        return super().__new__(cls, value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({int(self)})"

    __str__ = int.__repr__

    @property
    def created_at(self) -> datetime:
        """Creation time encoded in the top 42 bits."""
        millis = (int(self) >> 22) + DISCORD_EPOCH_MS
        return datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(milliseconds=millis)

    @classmethod
    def _validate(cls, value: Any) -> Snowflake:
        try:
            return cls(value)
        except TypeError as exc:
            # pydantic only reports ValueError/AssertionError as validation errors
            raise ValueError(str(exc)) from exc

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda v: str(int(v)), when_used="json"
            ),
        )


class GuildId(Snowflake):
    __slots__ = ()


class ChannelId(Snowflake):
    __slots__ = ()


class MessageId(Snowflake):
    __slots__ = ()


class UserId(Snowflake):
    __slots__ = ()


class RoleId(Snowflake):
    __slots__ = ()


class ApplicationId(Snowflake):
    __slots__ = ()


class EmojiId(Snowflake):
    __slots__ = ()


class AutoModerationRuleId(Snowflake):
    __slots__ = ()


class InteractionId(Snowflake):
    __slots__ = ()


class ScheduledEventId(Snowflake):
    __slots__ = ()


class AuditLogEntryId(Snowflake):
    __slots__ = ()


class WebhookId(Snowflake):
    __slots__ = ()
