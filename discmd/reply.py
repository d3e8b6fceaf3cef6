"""Reply builder shared by prefix and application command responses."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any


def _build(value: Any, factory: Callable[[], Any]) -> Any:
    """Return ``value``, or run it as a builder on a fresh ``factory()`` object.

    A builder may mutate the object it is given and return nothing, or return
    the object it wants stored.
    """
    if callable(value) and not isinstance(value, (dict, list, tuple, str)):
        target = factory()
        result = value(target)
        return target if result is None else result
    return value


@dataclass
class CreateReply:
    """Message contents that work for both prefix and application commands.

    Every setter returns the reply itself so calls can be chained.
    """

    content: str | None = None
    embed: Any = None
    attachments: list[Any] = field(default_factory=list)
    ephemeral: bool = False
    components: Any = None

    def set_content(self, content: Any) -> CreateReply:
        """Set the message content."""
        self.content = str(content)
        return self

    def set_embed(self, embed: Any) -> CreateReply:
        """Set the embed, replacing any previous one.

        ``embed`` is either the embed itself or a builder called with an empty dict.
        """
        self.embed = _build(embed, dict)
        return self

    def set_components(self, components: Any) -> CreateReply:
        """Set the message components, replacing any previous ones.

        ``components`` is either the components themselves or a builder called
        with an empty list.
        """
        self.components = _build(components, list)
        return self

    def add_attachment(self, attachment: Any) -> CreateReply:
        """Add an attachment. It has no effect in a slash command's initial response."""
        self.attachments.append(attachment)
        return self

    def set_ephemeral(self, ephemeral: bool) -> CreateReply:
        """Make the reply visible only to the invoking user (application commands only).

        If the initial response was deferred, the defer decides its ephemerality.
        """
        self.ephemeral = bool(ephemeral)
        return self


def build_reply(
    builder: Callable[[CreateReply], Any] | None, ephemeral: bool = False
) -> CreateReply:
    """Create a reply with the given default ephemerality and run ``builder`` on it."""
    reply = CreateReply(ephemeral=ephemeral)
    if builder is not None:
        builder(reply)
    return reply


@dataclass(frozen=True)
class ReplyHandle:
    """Gives access to the message object of a sent reply.

    For prefix commands the sent message is known directly (``sent``). For
    application commands it has to be requested through ``interaction`` using
    ``http``.
    """

    sent: Any = None
    http: Any = None
    interaction: Any = None

    def __post_init__(self) -> None:
        if self.sent is None and self.interaction is None:
            raise ValueError("a reply handle needs a sent message or an interaction")

    async def message(self) -> Any:
        """Return the message object of the sent reply, fetching it if needed."""
        if self.interaction is None:
            return self.sent
        result = self.interaction.get_interaction_response(self.http)
        if inspect.isawaitable(result):
            result = await result
        return result