"""Autocomplete support: partial input extraction and choice serialisation."""

from __future__ import annotations

import math
from collections.abc import AsyncIterable, AsyncIterator, Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from .slash_arguments import (
    OptionType,
    extract_float,
    extract_integer,
    extract_string,
)

T = TypeVar("T")


@dataclass(frozen=True)
class AutocompleteChoice(Generic[T]):
    """A single autocomplete choice shown in the Discord UI."""

    name: str
    value: T

    @classmethod
    def from_value(cls, value: T) -> AutocompleteChoice[T]:
        """Build a choice whose displayed name is the value's string form."""
        return cls(name=str(value), value=value)


def extract_partial(value: Any, option_type: OptionType) -> Any:
    """Extract the partially typed input of an autocompleted option."""
    if option_type is OptionType.STRING:
        return extract_string(value)
    if option_type is OptionType.INTEGER:
        return extract_integer(value)
    if option_type is OptionType.NUMBER:
        return extract_float(value)
    raise ValueError(f"options of type {option_type.name} cannot be autocompleted")


def choice_to_json(value: Any) -> Any:
    """Serialise an autocomplete choice value as a JSON-compatible value.

    Integers stay integers, non-finite floats become 0 and everything else
    becomes its string form.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else 0
    return str(value)


async def _iterate(items: Iterable[T]) -> AsyncIterator[T]:
    for item in items:
        yield item


def into_stream(value: Iterable[T] | AsyncIterable[T]) -> AsyncIterable[T]:
    """Return ``value`` as an async iterable, wrapping plain iterables."""
    if isinstance(value, AsyncIterable):
        return value
    if not isinstance(value, Iterable):
        raise TypeError(f"{type(value).__name__!r} object is not iterable")
    return _iterate(value)