"""Framework configuration and the builder that registers commands in it."""

from __future__ import annotations

import warnings
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

from .commands import (
    CommandDefinition,
    CommandErrorContext,
    CommandId,
    ErrorContext,
    ErrorKind,
    PrefixCommandMeta,
    PrefixFrameworkOptions,
)
from .context import send_reply
from .slash import (
    ApplicationFrameworkOptions,
    ContextMenuCommand,
    SlashCommand,
    SlashCommandGroup,
)

_CATEGORY_MESSAGE = 'Please use `category = "..."` on the command attribute instead'


class CommandBuilder:
    """Collects the implementations of one command while its metadata is filled in."""

    def __init__(
        self,
        prefix_command: PrefixCommandMeta | None,
        slash_command: SlashCommand | SlashCommandGroup | None,
        context_menu_command: ContextMenuCommand | None,
        id: CommandId,
    ) -> None:
        self.prefix_command = prefix_command
        self.slash_command = slash_command
        self.context_menu_command = context_menu_command
        self.id = id

    def category(self, category: str) -> CommandBuilder:
        """No longer supported: set the category on the command definition instead."""
        warnings.warn(_CATEGORY_MESSAGE, DeprecationWarning, stacklevel=2)
        raise RuntimeError(_CATEGORY_MESSAGE)

    def subcommand(
        self,
        definition: CommandDefinition,
        meta_builder: Callable[[CommandBuilder], Any] | None,
    ) -> CommandBuilder:
        """Add ``definition`` as a subcommand of this command.

        A plain slash command turns into a command group when it gets its first
        subcommand.
        """
        builder = _prepare_command_definition(definition, meta_builder)

        if self.prefix_command is not None and builder.prefix_command is not None:
            self.prefix_command.subcommands.append(builder.prefix_command)

        if self.slash_command is not None and builder.slash_command is not None:
            parent = self.slash_command
            if isinstance(parent, SlashCommandGroup):
                parent.subcommands.append(builder.slash_command)
            else:
                self.slash_command = SlashCommandGroup(
                    name=parent.name,
                    description=parent.description,
                    id=builder.id,
                    subcommands=[builder.slash_command],
                )

        return self


def _prepare_command_definition(
    definition: CommandDefinition,
    meta_builder: Callable[[CommandBuilder], Any] | None,
) -> CommandBuilder:
    command_id = definition.first_id()
    # Every implementation shares one CommandId, even if each came from elsewhere
    for implementation in (definition.prefix, definition.slash, definition.context_menu):
        if implementation is not None:
            implementation.id = command_id

    prefix_meta = (
        PrefixCommandMeta(command=definition.prefix)
        if definition.prefix is not None
        else None
    )
    builder = CommandBuilder(
        prefix_command=prefix_meta,
        slash_command=definition.slash,
        context_menu_command=definition.context_menu,
        id=command_id,
    )
    if meta_builder is not None:
        meta_builder(builder)
    return builder


def _application_command_line(command: Any, error: Any) -> str:
    if isinstance(command, ContextMenuCommand):
        return f'Error in context menu command "{command.name}": {error}'
    return f'Error in slash command "{command.name}": {error}'


async def default_error_handler(error: Any, ctx: ErrorContext) -> None:
    """Print a description of the error and where it happened."""
    if ctx.kind is ErrorKind.SETUP:
        print(f"Error in user data setup: {error}")
    elif ctx.kind is ErrorKind.LISTENER:
        name = ctx.event.name
        if callable(name):
            name = name()
        print(
            f"User event listener encountered an error on {name} event: {error}"
        )
    elif ctx.kind is ErrorKind.COMMAND:
        err_ctx: CommandErrorContext = ctx.context
        if err_ctx.is_prefix:
            print(
                f'Error in prefix command "{err_ctx.command.name}" '
                f'from message "{err_ctx.ctx.msg.content}": {error}'
            )
        else:
            print(_application_command_line(err_ctx.command, error))
    else:
        print(_application_command_line(ctx.context.ctx.command, error))


def default_allowed_mentions() -> dict[str, Any]:
    """Allowed mentions that only permit direct user pings."""
    return {"parse": ["users"]}


async def _send_ephemeral(ctx: Any, text: str) -> None:
    try:
        await send_reply(ctx, lambda reply: reply.set_content(text).set_ephemeral(True))
    except Exception:
        pass


async def _default_cooldown_hit(ctx: Any, cooldown_left: timedelta | float) -> None:
    seconds = (
        cooldown_left.total_seconds()
        if isinstance(cooldown_left, timedelta)
        else float(cooldown_left)
    )
    await _send_ephemeral(
        ctx,
        f"You're too fast. Please wait {int(seconds)} seconds before retrying",
    )


async def _default_missing_bot_permissions(ctx: Any, missing_permissions: Any) -> None:
    await _send_ephemeral(
        ctx,
        "Command cannot be executed because the bot is lacking permissions: "
        f"{missing_permissions}",
    )


@dataclass
class FrameworkOptions:
    """Framework configuration.

    ``on_error`` is awaited with the error and an :class:`ErrorContext`;
    ``pre_command`` and ``post_command`` run around every command, and
    ``listener`` sees every event; each of these three does nothing when None.
    ``command_check`` must return true for a command to run;
    ``cooldown_hit`` and ``missing_bot_permissions_handler`` reply to the user
    when a command cannot run.
    """

    on_error: Callable[..., Any] = default_error_handler
    pre_command: Callable[..., Any] | None = None
    post_command: Callable[..., Any] | None = None
    command_check: Callable[..., Any] | None = None
    cooldown_hit: Callable[..., Any] | None = _default_cooldown_hit
    missing_bot_permissions_handler: Callable[..., Any] = _default_missing_bot_permissions
    allowed_mentions: Any = field(default_factory=default_allowed_mentions)
    listener: Callable[..., Any] | None = None
    application_options: ApplicationFrameworkOptions = field(
        default_factory=ApplicationFrameworkOptions
    )
    prefix_options: PrefixFrameworkOptions = field(default_factory=PrefixFrameworkOptions)
    owners: set[Any] = field(default_factory=set)

    def command(
        self,
        definition: CommandDefinition,
        meta_builder: Callable[[CommandBuilder], Any] | None = None,
    ) -> None:
        """Register every implementation of ``definition``.

        ``meta_builder`` receives the :class:`CommandBuilder` to add subcommands.
        """
        builder = _prepare_command_definition(definition, meta_builder)
        if builder.prefix_command is not None:
            self.prefix_options.commands.append(builder.prefix_command)
        if builder.slash_command is not None:
            self.application_options.commands.append(builder.slash_command)
        if builder.context_menu_command is not None:
            self.application_options.commands.append(builder.context_menu_command)