"""Application command definitions, registration payloads and interaction replies."""

from __future__ import annotations

import copy
import enum
import inspect
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .commands import CommandErrorLocation, CommandId
from .reply import CreateReply, build_reply
from .slash_arguments import OptionType

# Interaction response types
CHANNEL_MESSAGE_WITH_SOURCE = 4
DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE = 5

# Interaction callback data flag that hides a response from everyone but the invoker
EPHEMERAL = 1 << 6


async def _resolve(result: Any) -> Any:
    if inspect.isawaitable(result):
        result = await result
    return result


class InteractionKind(enum.Enum):
    """Whether an interaction invokes an application command or asks for autocompletion."""

    APPLICATION_COMMAND = "application_command"
    AUTOCOMPLETE = "autocomplete"


@dataclass(frozen=True)
class ApplicationInteraction:
    """An application command or autocomplete interaction.

    ``interaction`` is the underlying interaction object. For application
    commands it provides ``create_interaction_response(http, payload)`` and
    ``create_followup_message(http, payload, files)``, either of which may be
    a coroutine function.
    """

    kind: InteractionKind
    interaction: Any

    @property
    def is_autocomplete(self) -> bool:
        return self.kind is InteractionKind.AUTOCOMPLETE

    @property
    def data(self) -> Any:
        return self.interaction.data

    @property
    def id(self) -> Any:
        return self.interaction.id

    @property
    def guild_id(self) -> Any:
        return self.interaction.guild_id

    @property
    def channel_id(self) -> Any:
        return self.interaction.channel_id

    @property
    def member(self) -> Any:
        return self.interaction.member

    @property
    def user(self) -> Any:
        return self.interaction.user


@dataclass
class ApplicationCommandOptions:
    """Application command specific configuration of a command."""

    on_error: Callable[..., Any] | None = None
    check: Callable[..., Any] | None = None
    ephemeral: bool = False


def _build_option(builder: Callable[[dict[str, Any]], Any]) -> dict[str, Any]:
    option: dict[str, Any] = {}
    result = builder(option)
    return option if result is None else result


@dataclass
class SlashCommandParameter:
    """One slash command parameter.

    ``builder`` fills in an empty option dict (or returns the option to use).
    ``autocomplete_callback`` is called for autocomplete interactions focusing
    this parameter.
    """

    builder: Callable[[dict[str, Any]], Any]
    autocomplete_callback: Callable[..., Any] | None = None


@dataclass
class SlashCommand:
    """A single slash command."""

    name: str
    description: str
    action: Callable[..., Any]
    id: CommandId
    parameters: list[SlashCommandParameter] = field(default_factory=list)
    options: ApplicationCommandOptions = field(default_factory=ApplicationCommandOptions)

    def _parameter_options(self) -> list[dict[str, Any]]:
        return [_build_option(param.builder) for param in self.parameters]

    def create(self) -> dict[str, Any]:
        """Return the payload that registers this command at the top level."""
        return {
            "name": self.name,
            "description": self.description,
            "options": self._parameter_options(),
        }

    def create_as_subcommand(self) -> dict[str, Any]:
        """Return the option that registers this command as a subcommand."""
        return {
            "type": int(OptionType.SUB_COMMAND),
            "name": self.name,
            "description": self.description,
            "options": self._parameter_options(),
        }


@dataclass
class SlashCommandGroup:
    """A slash command group holding subcommands and nested groups."""

    name: str
    description: str
    id: CommandId
    subcommands: list[SlashCommand | SlashCommandGroup] = field(default_factory=list)

    def create(self) -> dict[str, Any]:
        """Return the payload that registers this group at the top level."""
        return {
            "name": self.name,
            "description": self.description,
            "options": [sub.create_as_subcommand() for sub in self.subcommands],
        }

    def create_as_subcommand(self) -> dict[str, Any]:
        """Return the option that registers this group inside another group."""
        return {
            "type": int(OptionType.SUB_COMMAND_GROUP),
            "name": self.name,
            "description": self.description,
            "options": [sub.create_as_subcommand() for sub in self.subcommands],
        }


class ContextMenuTarget(enum.IntEnum):
    """What a context menu entry is attached to, as Discord's application command type."""

    USER = 2
    MESSAGE = 3


@dataclass(frozen=True)
class ContextMenuCommandAction:
    """The target and callback of a context menu entry."""

    target: ContextMenuTarget
    action: Callable[..., Any]

    @classmethod
    def for_user(cls, action: Callable[..., Any]) -> ContextMenuCommandAction:
        """Context menu entry on a user; ``action`` receives the context and the user."""
        return cls(ContextMenuTarget.USER, action)

    @classmethod
    def for_message(cls, action: Callable[..., Any]) -> ContextMenuCommandAction:
        """Context menu entry on a message; ``action`` receives the context and the message."""
        return cls(ContextMenuTarget.MESSAGE, action)


@dataclass
class ContextMenuCommand:
    """A context menu command."""

    name: str
    id: CommandId
    action: ContextMenuCommandAction
    options: ApplicationCommandOptions = field(default_factory=ApplicationCommandOptions)

    def create(self) -> dict[str, Any]:
        """Return the payload that registers this context menu entry."""
        return {"name": self.name, "type": int(self.action.target)}


@dataclass
class ApplicationContext:
    """Context passed to application command invocations.

    ``command`` is the invoked :class:`SlashCommand` or :class:`ContextMenuCommand`.
    ``has_sent_initial_response`` tracks whether further replies must be followups.
    """

    discord: Any
    interaction: ApplicationInteraction
    framework: Any
    command: SlashCommand | ContextMenuCommand
    data: Any = None
    has_sent_initial_response: bool = False

    async def defer_response(self, ephemeral: bool) -> None:
        """Defer the response; a no-op for autocomplete interactions."""
        if self.interaction.is_autocomplete:
            return
        flags = EPHEMERAL if ephemeral else 0
        payload = {
            "type": DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE,
            "data": {"flags": flags},
        }
        await _resolve(
            self.interaction.interaction.create_interaction_response(
                self.discord, payload
            )
        )
        self.has_sent_initial_response = True


@dataclass(frozen=True)
class ApplicationCommandErrorContext:
    """Context of an error raised in application command user code."""

    location: CommandErrorLocation
    ctx: ApplicationContext


def initial_response_payload(
    reply: CreateReply, allowed_mentions: Any = None
) -> dict[str, Any]:
    """Return the response data of an initial interaction response.

    Attachments are left out: initial responses cannot carry them.
    """
    data: dict[str, Any] = {}
    if reply.content is not None:
        data["content"] = reply.content
    if reply.embed is not None:
        data["embeds"] = [reply.embed]
    if allowed_mentions is not None:
        data["allowed_mentions"] = copy.deepcopy(allowed_mentions)
    if reply.components is not None:
        data["components"] = reply.components
    if reply.ephemeral:
        data["flags"] = EPHEMERAL
    return data


def followup_response_payload(
    reply: CreateReply, allowed_mentions: Any = None
) -> tuple[dict[str, Any], list[Any]]:
    """Return the payload of a followup message and the files to upload with it."""
    data: dict[str, Any] = {}
    if reply.content is not None:
        data["content"] = reply.content
    if reply.embed is not None:
        data["embeds"] = [reply.embed]
    if reply.components is not None:
        data["components"] = reply.components
    if allowed_mentions is not None:
        data["allowed_mentions"] = copy.deepcopy(allowed_mentions)
    if reply.ephemeral:
        data["flags"] = EPHEMERAL
    return data, list(reply.attachments)


def _allowed_mentions(framework: Any) -> Any:
    if framework is None:
        return None
    return framework.options.allowed_mentions


async def send_application_reply(
    ctx: ApplicationContext, builder: Callable[[CreateReply], Any] | None
) -> None:
    """Reply to an interaction, as a followup if an initial response was already sent.

    A no-op for autocomplete interactions.
    """
    if ctx.interaction.is_autocomplete:
        return
    interaction = ctx.interaction.interaction
    reply = build_reply(builder, ephemeral=ctx.command.options.ephemeral)
    allowed_mentions = _allowed_mentions(ctx.framework)

    if ctx.has_sent_initial_response:
        payload, files = followup_response_payload(reply, allowed_mentions)
        await _resolve(interaction.create_followup_message(ctx.discord, payload, files))
    else:
        payload = {
            "type": CHANNEL_MESSAGE_WITH_SOURCE,
            "data": initial_response_payload(reply, allowed_mentions),
        }
        await _resolve(interaction.create_interaction_response(ctx.discord, payload))
        ctx.has_sent_initial_response = True


async def _default_missing_permissions_handler(ctx: ApplicationContext) -> None:
    response = (
        f"You don't have the required permissions for `/{ctx.command.name}`"
    )
    try:
        await send_application_reply(
            ctx, lambda reply: reply.set_content(response).set_ephemeral(True)
        )
    except Exception:
        pass


@dataclass
class ApplicationFrameworkOptions:
    """Application command specific framework configuration.

    ``commands`` holds slash commands, slash command groups and context menu
    commands. ``missing_permissions_handler`` is awaited with the context when
    a user lacks the permissions a command requires.
    """

    commands: list[SlashCommand | SlashCommandGroup | ContextMenuCommand] = field(
        default_factory=list
    )
    missing_permissions_handler: Callable[[ApplicationContext], Any] = (
        _default_missing_permissions_handler
    )