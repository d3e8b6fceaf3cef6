"""Edit tracking: updating the bot's reply when a user edits their command message."""

from __future__ import annotations

import copy
import inspect
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from .commands import PrefixContext
from .reply import CreateReply, build_reply

_OPTIONAL_FIELDS = (
    "kind",
    "content",
    "tts",
    "pinned",
    "timestamp",
    "edited_timestamp",
    "author",
    "mention_everyone",
    "mentions",
    "mention_roles",
    "attachments",
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def _resolve(result: Any) -> Any:
    if inspect.isawaitable(result):
        result = await result
    return result


@dataclass
class Message:
    """A chat message as far as edit tracking is concerned."""

    id: int = 0
    channel_id: int = 0
    guild_id: int | None = None
    kind: int = 0
    content: str = ""
    tts: bool = False
    pinned: bool = False
    timestamp: datetime = field(default_factory=_now)
    edited_timestamp: datetime | None = None
    author: Any = None
    mention_everyone: bool = False
    mentions: list[Any] = field(default_factory=list)
    mention_roles: list[Any] = field(default_factory=list)
    attachments: list[Any] = field(default_factory=list)


@dataclass
class MessageUpdateEvent:
    """A message edit; fields left as ``None`` were not changed."""

    id: int
    channel_id: int
    guild_id: int | None = None
    kind: int | None = None
    content: str | None = None
    tts: bool | None = None
    pinned: bool | None = None
    timestamp: datetime | None = None
    edited_timestamp: datetime | None = None
    author: Any = None
    mention_everyone: bool | None = None
    mentions: list[Any] | None = None
    mention_roles: list[Any] | None = None
    attachments: list[Any] | None = None


def update_message(message: Message, update: MessageUpdateEvent) -> None:
    """Apply ``update`` to ``message`` in place."""
    message.id = update.id
    message.channel_id = update.channel_id
    message.guild_id = update.guild_id
    for name in _OPTIONAL_FIELDS:
        value = getattr(update, name)
        if value is not None:
            setattr(message, name, value)


class EditTracker:
    """Stores user messages and the bot responses to them for a limited time."""

    def __init__(self, max_duration: timedelta) -> None:
        self.max_duration = max_duration
        self._cache: list[list[Any]] = []

    @classmethod
    def for_timespan(cls, duration: timedelta | float) -> EditTracker:
        """Create a tracker that keeps messages for ``duration`` (a timedelta or seconds).

        Old messages are only forgotten when :meth:`purge` is called.
        """
        if not isinstance(duration, timedelta):
            duration = timedelta(seconds=duration)
        return cls(duration)

    def __len__(self) -> int:
        return len(self._cache)

    def _entry(self, user_msg_id: Any) -> list[Any] | None:
        return next((entry for entry in self._cache if entry[0].id == user_msg_id), None)

    def process_message_update(
        self, update: MessageUpdateEvent, ignore_edit_tracker_cache: bool
    ) -> tuple[Message, bool] | None:
        """Return the updated user message and whether it was tracked.

        Returns ``None`` if the command should not run again: the content was not
        touched, or the message is unknown and untracked edits are ignored.
        """
        entry = self._entry(update.id)
        if entry is not None:
            # An explicit edit reruns the command even if the content is unchanged
            if update.content is None:
                return None
            update_message(entry[0], update)
            return copy.copy(entry[0]), True
        if ignore_edit_tracker_cache:
            return None
        user_msg = Message()
        update_message(user_msg, update)
        return user_msg, False

    def purge(self, now: datetime | None = None) -> None:
        """Forget every message last changed longer ago than the tracked duration."""
        now = now or _now()

        def keep(user_msg: Message) -> bool:
            last_update = user_msg.edited_timestamp or user_msg.timestamp
            age = now - last_update
            return timedelta(0) <= age < self.max_duration

        self._cache = [entry for entry in self._cache if keep(entry[0])]

    def find_bot_response(self, user_msg_id: Any) -> Any:
        """Return the cached bot response to the given user message, or ``None``."""
        entry = self._entry(user_msg_id)
        return None if entry is None else entry[1]

    def register_response(self, user_msg: Message, bot_response: Any) -> None:
        """Associate ``user_msg`` with the bot's ``bot_response``."""
        self._cache.append([user_msg, bot_response])

    def set_bot_response(self, user_msg_id: Any, bot_response: Any) -> bool:
        """Replace the stored response to a user message; return whether it was tracked."""
        entry = self._entry(user_msg_id)
        if entry is None:
            return False
        entry[1] = bot_response
        return True


def _edit_tracker(ctx: PrefixContext) -> EditTracker | None:
    prefix_options = ctx.framework.options.prefix_options
    if ctx.command is not None and not (
        ctx.command.options.track_edits or prefix_options.execute_untracked_edits
    ):
        return None
    return prefix_options.edit_tracker


async def send_prefix_reply(
    ctx: PrefixContext, builder: Callable[[CreateReply], Any] | None
) -> Any:
    """Send a reply to a prefix command, editing the earlier response if one is tracked.

    ``ctx.discord`` provides ``send_message(channel_id, payload, files)`` and
    ``edit_message(message, payload, files)``; both return the resulting
    message and may be coroutine functions.
    """
    reply = build_reply(builder)
    tracker = _edit_tracker(ctx)
    existing = tracker.find_bot_response(ctx.msg.id) if tracker is not None else None

    if existing is not None:
        payload = {
            # An empty string resets the content, e.g. when text was replaced by an embed
            "content": reply.content or "",
            "embeds": [] if reply.embed is None else [reply.embed],
            "attachments": [],
            "components": [] if reply.components is None else reply.components,
        }
        edited = await _resolve(
            ctx.discord.edit_message(copy.copy(existing), payload, list(reply.attachments))
        )
        response = existing if edited is None else edited
        tracker = _edit_tracker(ctx)
        if tracker is not None:
            tracker.set_bot_response(ctx.msg.id, copy.copy(response))
        return response

    payload: dict[str, Any] = {}
    if reply.content is not None:
        payload["content"] = reply.content
    if reply.embed is not None:
        payload["embeds"] = [reply.embed]
    allowed_mentions = ctx.framework.options.allowed_mentions
    if allowed_mentions is not None:
        payload["allowed_mentions"] = copy.deepcopy(allowed_mentions)
    if reply.components is not None:
        payload["components"] = reply.components
    new_response = await _resolve(
        ctx.discord.send_message(ctx.msg.channel_id, payload, list(reply.attachments))
    )
    tracker = _edit_tracker(ctx)
    if tracker is not None:
        tracker.register_response(copy.copy(ctx.msg), copy.copy(new_response))
    return new_response