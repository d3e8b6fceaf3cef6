# discmd

Building blocks for chat bot command frameworks aimed at Discord-style
bots, with prefix commands, slash commands and context menu commands.

- **Prefix argument parsing** (`discmd.arguments`): pop quoted words,
  code blocks and `key=value` pairs off the front of a message.
- **Slash command arguments** (`discmd.slash_arguments`,
  `discmd.autocomplete`): extract typed values from interaction options
  and turn autocomplete choices into JSON values.
- **Command definitions** (`discmd.commands`, `discmd.slash`,
  `discmd.framework_options`): prefix commands, slash commands and
  groups, context menu commands, and framework-wide options.
- **Replies** (`discmd.reply`, `discmd.context`): one reply builder that
  works for both prefix and application commands.
- **Edit tracking** (`discmd.edit_tracking`): remember the bot's
  response to a user message, so that an edited command message edits
  the earlier response instead of sending a new one.
- **Utilities** (`discmd.util`): `OrderedMap`, an insertion-ordered map
  whose keys only need to support equality.

## Installation

```
pip install discmd
```

The package has no runtime dependencies. To run the test suite:

```
pip install "discmd[test]"
pytest
```

## Parsing prefix arguments

Every parser takes the remaining argument string and returns a tuple of
the leftover string and the parsed value.

```python
from discmd.arguments import pop_string, pop_argument, CodeBlock, KeyValueArgs

rest, word = pop_string('"first arg" secondarg')
# word == "first arg", rest == " secondarg"

rest, block = CodeBlock.pop_from("```python\nprint('hi')\n```")
# block.code == "print('hi')", block.language == "python"

rest, kv = KeyValueArgs.pop_from('key1=value key2="value with spaces"')
# kv.get("key2") == "value with spaces"

rest, number = pop_argument(int, "42 more")
# number == 42, rest == "more"  (leading whitespace of the rest is stripped)
```

`pop_argument` accepts either a type with a `pop_from` classmethod or a
callable that converts one word.

Failures raise exceptions (all subclasses of `ValueError`): `EmptyArgs`
when there is nothing left to parse, and `CodeBlockMissing` or
`CodeBlockMalformed` (both `CodeBlockError`) for code blocks.
`TooManyArguments`, `ArgumentParseError` and `InvalidChoice` are
provided for command code to raise.

## Slash command arguments

```python
from discmd.slash_arguments import ParameterKind, SlashParam, parse_slash_args

options = [{"name": "count", "value": 3}]
params = [
    SlashParam("count", ParameterKind.INTEGER, minimum=0, maximum=10),
    SlashParam("note", optional=True),
]
count, note = parse_slash_args(options, params)
# count == 3, note is None
```

Errors are `SlashArgError` subclasses: `CommandStructureMismatch`,
`SlashParseError` and `IntegerOutOfBounds`. `SlashParam.create()` returns
the option type fields used to register the parameter.

For autocompletion, `discmd.autocomplete` offers `extract_partial`,
`choice_to_json`, `AutocompleteChoice.from_value` and `into_stream`,
which turns a plain iterable into an async iterable.

## Building a reply

```python
from discmd.reply import CreateReply

reply = CreateReply().set_content("Works for slash and prefix commands").set_ephemeral(True)
```

Inside a command, `Context.say(text)` and `Context.send(builder)` (from
`discmd.context`) send the reply the right way for the kind of command
that was invoked, and return a `ReplyHandle` (or `None` for autocomplete
interactions). `Context` also offers `defer`, `defer_ephemeral`,
`defer_or_broadcast`, `author`, `channel_id`, `guild_id`, `guild`,
`created_at`, `id`, `command` and `prefix`.

## Registering commands

```python
from discmd.framework_options import FrameworkOptions

options = FrameworkOptions()
options.command(definition, lambda builder: builder.subcommand(child_definition, None))
```

A `CommandDefinition` may carry a prefix, a slash and a context menu
implementation; all of them are made to share one `CommandId`. A slash
command turns into a `SlashCommandGroup` when it gets its first
subcommand. `SlashCommand.create()`, `SlashCommandGroup.create()` and
`ContextMenuCommand.create()` return the registration payloads as dicts.

By default, `FrameworkOptions` only allows direct user mentions, prints
errors through `default_error_handler`, and answers cooldown and missing
bot permission situations with an ephemeral message.

## Edit tracking

```python
from datetime import timedelta
from discmd.edit_tracking import EditTracker

tracker = EditTracker.for_timespan(timedelta(minutes=5))
```

Feed it `MessageUpdateEvent`s with `process_message_update`, which
returns the updated `Message` and whether it was tracked, or `None` if
the command should not run again. Call `purge` periodically to forget
old messages.

## What the package does not do

`discmd` does not connect to any chat service. It has no gateway
connection, no HTTP client, no event loop that receives messages and
dispatches them to commands, no cooldown bookkeeping and no permission
checks. Those come from the code that uses it, through plain objects:

- prefix replies call `discord.send_message(channel_id, payload, files)`
  and `discord.edit_message(message, payload, files)`;
- application replies call `create_interaction_response(http, payload)`
  and `create_followup_message(http, payload, files)` on the interaction;
- `ReplyHandle.message()` calls `get_interaction_response(http)`;
- `Context.defer_or_broadcast()` calls `discord.start_typing(channel_id)`,
  and `Context.guild()` calls `discord.cache.guild(guild_id)`;
- the framework object is read through `framework.options`, a
  `FrameworkOptions`.

Any of these methods may be plain functions or coroutine functions.