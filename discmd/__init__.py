"""Building blocks for chat bot command frameworks: argument parsing, command definitions, replies and edit tracking."""

__version__ = "0.1.0"

__all__ = [
    "arguments",
    "autocomplete",
    "commands",
    "context",
    "edit_tracking",
    "framework_options",
    "reply",
    "slash",
    "slash_arguments",
    "util",
]