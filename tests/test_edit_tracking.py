from dataclasses import replace
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from discmd.commands import (
    CommandId,
    PrefixCommand,
    PrefixCommandOptions,
    PrefixContext,
    PrefixFrameworkOptions,
)
from discmd.edit_tracking import (
    EditTracker,
    Message,
    MessageUpdateEvent,
    send_prefix_reply,
    update_message,
)

NOW = datetime(2022, 6, 1, 12, 0, tzinfo=timezone.utc)


class FakeDiscord:
    def __init__(self):
        self.sent = []
        self.edits = []
        self._next_id = 500

    async def send_message(self, channel_id, payload, files):
        self.sent.append((channel_id, payload, files))
        self._next_id += 1
        return Message(id=self._next_id, channel_id=channel_id, content=payload.get("content", ""))

    async def edit_message(self, message, payload, files):
        self.edits.append((message.id, payload, files))
        return replace(message, content=payload["content"])


def make_ctx(tracker, command=None, execute_untracked_edits=True, msg_id=7):
    options = SimpleNamespace(
        prefix_options=PrefixFrameworkOptions(
            edit_tracker=tracker, execute_untracked_edits=execute_untracked_edits
        ),
        allowed_mentions={"parse": ["users"]},
    )
    discord = FakeDiscord()
    msg = Message(id=msg_id, channel_id=3, content="!ping", timestamp=NOW)
    ctx = PrefixContext(
        discord=discord,
        msg=msg,
        prefix="!",
        framework=SimpleNamespace(options=options),
        command=command,
    )
    return ctx, discord


def test_update_message_applies_only_set_fields():
    message = Message(id=1, channel_id=2, content="old", tts=True, timestamp=NOW)
    update = MessageUpdateEvent(id=9, channel_id=8, guild_id=4, content="new")
    update_message(message, update)
    assert (message.id, message.channel_id, message.guild_id) == (9, 8, 4)
    assert message.content == "new"
    assert message.tts is True
    assert message.timestamp == NOW


def test_update_message_sets_edited_timestamp():
    message = Message(id=1, timestamp=NOW)
    edited = NOW + timedelta(minutes=1)
    update_message(message, MessageUpdateEvent(id=1, channel_id=0, edited_timestamp=edited))
    assert message.edited_timestamp == edited


def test_untracked_update_builds_new_message():
    tracker = EditTracker.for_timespan(timedelta(minutes=1))
    result = tracker.process_message_update(
        MessageUpdateEvent(id=5, channel_id=6, content="!help"), False
    )
    assert result is not None
    msg, tracked = result
    assert tracked is False
    assert (msg.id, msg.channel_id, msg.content) == (5, 6, "!help")


def test_untracked_update_ignored_when_requested():
    tracker = EditTracker.for_timespan(60)
    update = MessageUpdateEvent(id=5, channel_id=6, content="!help")
    assert tracker.process_message_update(update, True) is None


def test_tracked_update_without_content_is_skipped():
    tracker = EditTracker.for_timespan(60)
    tracker.register_response(Message(id=5, content="a"), Message(id=50))
    update = MessageUpdateEvent(id=5, channel_id=6, pinned=True)
    assert tracker.process_message_update(update, False) is None


def test_tracked_update_returns_independent_copy():
    tracker = EditTracker.for_timespan(60)
    tracker.register_response(Message(id=5, content="a"), Message(id=50))
    msg, tracked = tracker.process_message_update(
        MessageUpdateEvent(id=5, channel_id=6, content="b"), True
    )
    assert tracked is True
    assert msg.content == "b"
    msg.content = "changed"
    again, _ = tracker.process_message_update(
        MessageUpdateEvent(id=5, channel_id=6, content="b"), True
    )
    assert again.content == "b"


def test_for_timespan_accepts_seconds():
    tracker = EditTracker.for_timespan(30)
    assert tracker.max_duration == timedelta(seconds=30)


def test_purge_drops_old_and_future_messages():
    tracker = EditTracker.for_timespan(timedelta(seconds=60))
    tracker.register_response(Message(id=1, timestamp=NOW - timedelta(seconds=30)), "r1")
    tracker.register_response(Message(id=2, timestamp=NOW - timedelta(seconds=120)), "r2")
    tracker.register_response(Message(id=3, timestamp=NOW + timedelta(seconds=10)), "r3")
    tracker.register_response(
        Message(
            id=4,
            timestamp=NOW - timedelta(seconds=120),
            edited_timestamp=NOW - timedelta(seconds=5),
        ),
        "r4",
    )
    tracker.purge(NOW)
    assert len(tracker) == 2
    assert tracker.find_bot_response(1) == "r1"
    assert tracker.find_bot_response(2) is None
    assert tracker.find_bot_response(3) is None
    assert tracker.find_bot_response(4) == "r4"


def test_set_bot_response():
    tracker = EditTracker.for_timespan(60)
    assert tracker.set_bot_response(1, "x") is False
    tracker.register_response(Message(id=1), "old")
    assert tracker.set_bot_response(1, "new") is True
    assert tracker.find_bot_response(1) == "new"


@pytest.mark.asyncio
async def test_send_then_edit_tracked_response():
    tracker = EditTracker.for_timespan(60)
    ctx, discord = make_ctx(tracker)

    first = await send_prefix_reply(ctx, lambda r: r.set_content("pong"))
    assert discord.sent[0][0] == 3
    assert discord.sent[0][1] == {"content": "pong", "allowed_mentions": {"parse": ["users"]}}
    assert tracker.find_bot_response(7) == first

    second = await send_prefix_reply(ctx, lambda r: r.set_embed({"title": "t"}))
    assert len(discord.sent) == 1
    edit_id, payload, files = discord.edits[0]
    assert edit_id == first.id
    assert payload == {
        "content": "",
        "embeds": [{"title": "t"}],
        "attachments": [],
        "components": [],
    }
    assert files == []
    assert second.id == first.id
    assert tracker.find_bot_response(7).content == ""


@pytest.mark.asyncio
async def test_send_without_tracker_always_sends():
    ctx, discord = make_ctx(None)
    await send_prefix_reply(ctx, lambda r: r.set_content("a").add_attachment("file"))
    await send_prefix_reply(ctx, lambda r: r.set_content("b"))
    assert [entry[1]["content"] for entry in discord.sent] == ["a", "b"]
    assert discord.sent[0][2] == ["file"]
    assert discord.edits == []


@pytest.mark.asyncio
async def test_untracked_command_is_not_registered():
    tracker = EditTracker.for_timespan(60)
    command = PrefixCommand(
        name="ping",
        action=lambda ctx, args: None,
        id=CommandId("ping"),
        options=PrefixCommandOptions(track_edits=False),
    )
    ctx, discord = make_ctx(tracker, command=command, execute_untracked_edits=False)
    await send_prefix_reply(ctx, lambda r: r.set_content("a"))
    await send_prefix_reply(ctx, lambda r: r.set_content("b"))
    assert len(discord.sent) == 2
    assert len(tracker) == 0