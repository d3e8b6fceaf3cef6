"""Command definition and error context types shared by all command kinds."""

from __future__ import annotations

import enum
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any


class CommandErrorLocation(enum.Enum):
    """Where in a command's execution an error occurred."""

    BODY = "body"
    CHECK = "check"
    AUTOCOMPLETE = "autocomplete"
    COOLDOWN_CALLBACK = "cooldown_callback"
    MISSING_BOT_PERMISSIONS_CALLBACK = "missing_bot_permissions_callback"


@dataclass(eq=False)
class CommandId:
    """Data shared by every implementation (prefix, slash, context menu) of one command.

    Instances compare by identity, since implementations share the same object.
    """

    identifying_name: str
    category: str | None = None
    hide_in_help: bool = False
    inline_help: str | None = None
    cooldowns: Any = None
    required_permissions: int = 0
    required_bot_permissions: int = 0
    owners_only: bool = False


@dataclass
class PrefixCommandOptions:
    """Optional settings of a prefix command."""

    multiline_help: Callable[[], str] | None = None
    aliases: tuple[str, ...] = ()
    on_error: Callable[..., Any] | None = None
    check: Callable[..., Any] | None = None
    track_edits: bool = False
    broadcast_typing: bool = False


@dataclass
class PrefixCommand:
    """A single prefix command, without metadata such as subcommands."""

    name: str
    action: Callable[..., Any]
    id: CommandId
    options: PrefixCommandOptions = field(default_factory=PrefixCommandOptions)


@dataclass
class PrefixCommandMeta:
    """A prefix command together with its subcommands."""

    command: PrefixCommand
    subcommands: list[PrefixCommandMeta] = field(default_factory=list)


@dataclass(frozen=True)
class PrefixContext:
    """Context passed to prefix command invocations."""

    discord: Any
    msg: Any
    prefix: str
    framework: Any
    command: PrefixCommand | None = None
    data: Any = None


@dataclass(frozen=True)
class PrefixCommandErrorContext:
    """Context of an error raised while running a prefix command."""

    location: CommandErrorLocation
    command: PrefixCommand
    ctx: PrefixContext


@dataclass(frozen=True)
class CommandErrorContext:
    """Context of an error in a command, wrapping a prefix or application error context."""

    inner: Any

    @property
    def is_prefix(self) -> bool:
        return isinstance(self.inner, PrefixCommandErrorContext)

    @property
    def command(self) -> Any:
        """The command whose execution raised the error."""
        if self.is_prefix:
            return self.inner.command
        return self.inner.ctx.command

    @property
    def location(self) -> CommandErrorLocation:
        return self.inner.location

    @property
    def ctx(self) -> Any:
        return self.inner.ctx

    def command_name(self) -> str:
        """Name of the command, or the context menu label for context menu commands."""
        return self.command.name


class ErrorKind(enum.Enum):
    """Where an error in user code was raised."""

    SETUP = "setup"
    LISTENER = "listener"
    COMMAND = "command"
    AUTOCOMPLETE = "autocomplete"


@dataclass(frozen=True)
class ErrorContext:
    """Location of an error together with location-specific context.

    ``event`` is set for listener errors; ``context`` holds a
    :class:`CommandErrorContext` for command errors, or the application
    command error context for autocomplete errors.
    """

    kind: ErrorKind
    event: Any = None
    context: Any = None

    def __post_init__(self) -> None:
        if self.kind is ErrorKind.LISTENER and self.event is None:
            raise ValueError("listener errors need the event")
        if self.kind is ErrorKind.COMMAND and not isinstance(
            self.context, CommandErrorContext
        ):
            raise ValueError("command errors need a CommandErrorContext")
        if self.kind is ErrorKind.AUTOCOMPLETE and self.context is None:
            raise ValueError("autocomplete errors need an error context")


@dataclass
class CommandDefinition:
    """The prefix, slash and context menu implementations of one command."""

    prefix: PrefixCommand | None = None
    slash: Any = None
    context_menu: Any = None

    def first_id(self) -> CommandId:
        """Return the ID of the first present implementation: prefix, slash, context menu."""
        for implementation in (self.prefix, self.slash, self.context_menu):
            if implementation is not None:
                return implementation.id
        raise ValueError("Empty command definition (no implementations)")


@dataclass(frozen=True)
class CommandDefinitionRef:
    """A view into the registered implementations of one command."""

    id: CommandId
    prefix: PrefixCommandMeta | None = None
    slash: Any = None
    context_menu: Any = None


@dataclass(frozen=True)
class Prefix:
    """A command prefix: a case-sensitive literal or a regular expression."""

    text: str | None = None
    pattern: re.Pattern[str] | None = None

    def __post_init__(self) -> None:
        if (self.text is None) == (self.pattern is None):
            raise ValueError("a prefix is either a literal or a regex")

    @classmethod
    def literal(cls, text: str) -> Prefix:
        return cls(text=text)

    @classmethod
    def regex(cls, pattern: str | re.Pattern[str]) -> Prefix:
        compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
        return cls(pattern=compiled)

    def strip(self, text: str) -> tuple[str, str] | None:
        """Split ``text`` into the matched prefix and the rest, or ``None`` on no match."""
        if self.text is not None:
            if text.startswith(self.text):
                return self.text, text[len(self.text):]
            return None
        match = self.pattern.match(text)
        if match is None:
            return None
        return match.group(0), text[match.end():]


@dataclass
class PrefixFrameworkOptions:
    """Prefix-specific framework configuration."""

    prefix: str | None = None
    commands: list[PrefixCommandMeta] = field(default_factory=list)
    additional_prefixes: list[Prefix] = field(default_factory=list)
    dynamic_prefix: Callable[..., Any] | None = None
    stripped_dynamic_prefix: Callable[..., Any] | None = None
    mention_as_prefix: bool = True
    edit_tracker: Any = None
    execute_untracked_edits: bool = True
    ignore_edit_tracker_cache: bool = False
    execute_self_messages: bool = False
    case_insensitive_commands: bool = True