from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from discmd.commands import CommandId, PrefixContext, PrefixFrameworkOptions
from discmd.context import DISCORD_EPOCH_MS, Context, say_reply, send_reply
from discmd.edit_tracking import Message
from discmd.slash import (
    CHANNEL_MESSAGE_WITH_SOURCE,
    DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE,
    EPHEMERAL,
    ApplicationContext,
    ApplicationInteraction,
    InteractionKind,
    SlashCommand,
)

NOW = datetime(2022, 6, 1, 12, 0, tzinfo=timezone.utc)


class FakeCache:
    def __init__(self, guilds):
        self.guilds = guilds

    def guild(self, guild_id):
        return self.guilds.get(guild_id)


class FakeDiscord:
    def __init__(self):
        self.sent = []
        self.typing = []
        self.cache = FakeCache({11: "guild-eleven"})

    async def send_message(self, channel_id, payload, files):
        self.sent.append((channel_id, payload))
        return Message(id=99, channel_id=channel_id, content=payload.get("content", ""))

    async def edit_message(self, message, payload, files):
        return message

    def start_typing(self, channel_id):
        self.typing.append(channel_id)
        return ("typing", channel_id)


class FakeInteraction:
    def __init__(self, interaction_id=123, guild_id=None, channel_id=4, user="alice"):
        self.id = interaction_id
        self.guild_id = guild_id
        self.channel_id = channel_id
        self.user = user
        self.member = None
        self.data = {}
        self.responses = []
        self.followups = []

    async def create_interaction_response(self, http, payload):
        self.responses.append(payload)

    async def create_followup_message(self, http, payload, files):
        self.followups.append(payload)

    async def get_interaction_response(self, http):
        return ("response", http)


def framework():
    options = SimpleNamespace(
        prefix_options=PrefixFrameworkOptions(), allowed_mentions=None
    )
    return SimpleNamespace(options=options)


def prefix_ctx(msg=None, guild_id=None):
    discord = FakeDiscord()
    msg = msg or Message(
        id=77, channel_id=3, guild_id=guild_id, author="bob", timestamp=NOW
    )
    inner = PrefixContext(
        discord=discord, msg=msg, prefix="~", framework=framework(), data="user-data"
    )
    return Context(inner), discord


def app_ctx(kind=InteractionKind.APPLICATION_COMMAND, **interaction_args):
    interaction = FakeInteraction(**interaction_args)
    command = SlashCommand(
        name="ping", description="d", action=lambda ctx: None, id=CommandId("ping")
    )
    inner = ApplicationContext(
        discord="http-client",
        interaction=ApplicationInteraction(kind, interaction),
        framework=framework(),
        command=command,
    )
    return Context(inner), interaction


def test_context_rejects_other_types():
    with pytest.raises(TypeError):
        Context("not a context")


def test_prefix_accessors():
    ctx, discord = prefix_ctx(guild_id=11)
    assert ctx.is_prefix() is True
    assert ctx.prefix() == "~"
    assert ctx.channel_id() == 3
    assert ctx.guild_id() == 11
    assert ctx.guild() == "guild-eleven"
    assert ctx.author() == "bob"
    assert ctx.created_at() == NOW
    assert ctx.data() == "user-data"
    assert ctx.discord() is discord
    assert ctx.command() is None


def test_application_accessors():
    ctx, interaction = app_ctx(channel_id=8, guild_id=None, user="carol")
    assert ctx.is_prefix() is False
    assert ctx.prefix() == "/"
    assert ctx.channel_id() == 8
    assert ctx.guild_id() is None
    assert ctx.guild() is None
    assert ctx.author() == "carol"
    assert ctx.id() == interaction.id
    assert ctx.command().name == "ping"


def test_prefix_id_without_edit_is_message_id():
    ctx, _ = prefix_ctx()
    assert ctx.id() == 77


def test_prefix_id_after_edit_encodes_edit_time():
    edited = NOW + timedelta(seconds=3)
    msg = Message(id=(5 << 22) | 1234, channel_id=3, timestamp=NOW, edited_timestamp=edited)
    ctx, _ = prefix_ctx(msg=msg)
    invocation_id = ctx.id()
    assert invocation_id & ((1 << 22) - 1) == 1234
    edited_ms = (edited - datetime(1970, 1, 1, tzinfo=timezone.utc)) // timedelta(milliseconds=1)
    assert (invocation_id >> 22) + DISCORD_EPOCH_MS == edited_ms


def test_application_created_at_round_trips_prefix_id():
    edited = datetime(2021, 3, 4, 5, 6, 7, 890000, tzinfo=timezone.utc)
    msg = Message(id=42, channel_id=3, timestamp=NOW, edited_timestamp=edited)
    prefix, _ = prefix_ctx(msg=msg)
    application, _ = app_ctx(interaction_id=prefix.id())
    assert application.created_at() == edited


@pytest.mark.asyncio
async def test_defer_is_noop_for_prefix():
    ctx, discord = prefix_ctx()
    await ctx.defer()
    await ctx.defer_ephemeral()
    assert discord.sent == []


@pytest.mark.asyncio
async def test_defer_and_defer_ephemeral():
    ctx, interaction = app_ctx()
    await ctx.defer()
    assert interaction.responses[-1] == {
        "type": DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE,
        "data": {"flags": 0},
    }
    assert ctx.inner.has_sent_initial_response is True

    ctx2, interaction2 = app_ctx()
    await ctx2.defer_ephemeral()
    assert interaction2.responses[-1]["data"]["flags"] == EPHEMERAL


@pytest.mark.asyncio
async def test_defer_or_broadcast():
    ctx, discord = prefix_ctx()
    assert await ctx.defer_or_broadcast() == ("typing", 3)
    assert discord.typing == [3]

    app, interaction = app_ctx()
    assert await app.defer_or_broadcast() is None
    assert interaction.responses[0]["type"] == DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE


@pytest.mark.asyncio
async def test_say_prefix_returns_sent_message():
    ctx, discord = prefix_ctx()
    handle = await ctx.say("hello")
    message = await handle.message()
    assert message.content == "hello"
    assert discord.sent[0] == (3, {"content": "hello"})


@pytest.mark.asyncio
async def test_send_application_then_followup():
    ctx, interaction = app_ctx()
    handle = await ctx.send(lambda r: r.set_content("first"))
    assert interaction.responses[0]["type"] == CHANNEL_MESSAGE_WITH_SOURCE
    assert interaction.responses[0]["data"]["content"] == "first"
    assert await handle.message() == ("response", "http-client")

    await say_reply(ctx, "second")
    assert interaction.followups[0]["content"] == "second"


@pytest.mark.asyncio
async def test_send_reply_accepts_inner_context():
    ctx, discord = prefix_ctx()
    handle = await send_reply(ctx.inner, lambda r: r.set_content("raw"))
    assert (await handle.message()).content == "raw"


@pytest.mark.asyncio
async def test_autocomplete_reply_returns_none():
    ctx, interaction = app_ctx(kind=InteractionKind.AUTOCOMPLETE)
    assert await ctx.say("ignored") is None
    assert interaction.responses == []
    assert interaction.followups == []