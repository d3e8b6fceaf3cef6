"""Context that abstracts over prefix and application command invocations."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from .commands import PrefixContext
from .edit_tracking import send_prefix_reply
from .reply import CreateReply, ReplyHandle
from .slash import ApplicationContext, send_application_reply

DISCORD_EPOCH_MS = 1420070400000
_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_U64_MASK = (1 << 64) - 1


async def _resolve(result: Any) -> Any:
    if inspect.isawaitable(result):
        result = await result
    return result


def _unix_millis(moment: datetime) -> int:
    return (moment - _UNIX_EPOCH) // timedelta(milliseconds=1)


@dataclass(frozen=True)
class Context:
    """Wraps a :class:`PrefixContext` or an :class:`ApplicationContext`."""

    inner: PrefixContext | ApplicationContext

    def __post_init__(self) -> None:
        if not isinstance(self.inner, (PrefixContext, ApplicationContext)):
            raise TypeError(
                f"expected a prefix or application context, got {type(self.inner).__name__}"
            )

    def is_prefix(self) -> bool:
        """Whether this is a prefix command invocation."""
        return isinstance(self.inner, PrefixContext)

    async def defer(self) -> None:
        """Defer an application command response publicly; a no-op for prefix commands."""
        if not self.is_prefix():
            await self.inner.defer_response(False)

    async def defer_ephemeral(self) -> None:
        """Defer an application command response ephemerally; a no-op for prefix commands."""
        if not self.is_prefix():
            await self.inner.defer_response(True)

    async def defer_or_broadcast(self) -> Any:
        """Defer an application command, or start a typing indicator for a prefix command.

        Returns the typing handle from ``discord.start_typing(channel_id)`` for prefix
        commands and ``None`` otherwise.
        """
        if not self.is_prefix():
            await self.inner.defer_response(False)
            return None
        return await _resolve(self.inner.discord.start_typing(self.inner.msg.channel_id))

    async def say(self, text: Any) -> ReplyHandle | None:
        """Send a text-only reply."""
        return await say_reply(self, text)

    async def send(self, builder: Callable[[CreateReply], Any] | None) -> ReplyHandle | None:
        """Send a reply built by ``builder``."""
        return await send_reply(self, builder)

    def discord(self) -> Any:
        return self.inner.discord

    def framework(self) -> Any:
        return self.inner.framework

    def data(self) -> Any:
        return self.inner.data

    def channel_id(self) -> Any:
        if self.is_prefix():
            return self.inner.msg.channel_id
        return self.inner.interaction.channel_id

    def guild_id(self) -> Any:
        """The guild ID, or ``None`` outside of guilds."""
        if self.is_prefix():
            return self.inner.msg.guild_id
        return self.inner.interaction.guild_id

    def guild(self) -> Any:
        """The cached guild (``discord.cache.guild(guild_id)``), or ``None`` outside guilds."""
        guild_id = self.guild_id()
        if guild_id is None:
            return None
        return self.discord().cache.guild(guild_id)

    def created_at(self) -> datetime:
        """When the invoking message or interaction was created."""
        if self.is_prefix():
            return self.inner.msg.timestamp
        millis = (int(self.inner.interaction.id) >> 22) + DISCORD_EPOCH_MS
        return _UNIX_EPOCH + timedelta(milliseconds=millis)

    def author(self) -> Any:
        if self.is_prefix():
            return self.inner.msg.author
        return self.inner.interaction.user

    def id(self) -> int:
        """An ID unique to this invocation, which changes when the message is edited."""
        if not self.is_prefix():
            return int(self.inner.interaction.id)
        msg = self.inner.msg
        invocation_id = int(msg.id)
        if msg.edited_timestamp is not None:
            # Replace the 42 datetime bits with the edit time
            invocation_id &= _U64_MASK >> 42
            edited = (_unix_millis(msg.edited_timestamp) - DISCORD_EPOCH_MS) & _U64_MASK
            invocation_id = (invocation_id | (edited << 22)) & _U64_MASK
        return invocation_id

    def command(self) -> Any:
        """The invoked command, or ``None`` for a prefix context without one."""
        return self.inner.command

    def prefix(self) -> str:
        """The prefix used, or ``"/"`` for application commands."""
        if self.is_prefix():
            return self.inner.prefix
        return "/"


def _as_context(ctx: Context | PrefixContext | ApplicationContext) -> Context:
    return ctx if isinstance(ctx, Context) else Context(ctx)


async def send_reply(
    ctx: Context | PrefixContext | ApplicationContext,
    builder: Callable[[CreateReply], Any] | None,
) -> ReplyHandle | None:
    """Send a normal message for prefix commands, an interaction response otherwise.

    Returns ``None`` for autocomplete interactions.
    """
    ctx = _as_context(ctx)
    inner = ctx.inner
    if ctx.is_prefix():
        return ReplyHandle(sent=await send_prefix_reply(inner, builder))
    await send_application_reply(inner, builder)
    if inner.interaction.is_autocomplete:
        return None
    return ReplyHandle(http=inner.discord, interaction=inner.interaction.interaction)


async def say_reply(
    ctx: Context | PrefixContext | ApplicationContext, text: Any
) -> ReplyHandle | None:
    """Send a reply that only has text content."""
    return await send_reply(ctx, lambda reply: reply.set_content(text))