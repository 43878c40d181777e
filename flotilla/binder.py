"""
Token binder: turn a flat token stream into bound argument and option values.

The scan is a single left-to-right pass over a deque of tokens:

- "--" ends option parsing; every later token is positional.
- a token shaped like an option (-x, --name, --name=value) is resolved against
  the declared spellings; anything else (including "-" and "-5") is positional.
- positionals fill the next unfilled argument slot, whatever options sit
  between them; once every slot is filled they are kept, in order, as extras.
- options are last-write-wins across their long spelling and aliases.

Afterwards unfilled arguments take their default (MissingArgumentError when
required), and options that were not given take the preset value handed over
by an invoking group, else their default.

An undeclared lone -h/--help anywhere before "--" raises HelpRequested before
anything else is looked at.
"""
import difflib
import logging
import re
from collections import deque
from types import MappingProxyType
from typing import NamedTuple

from .arguments import ValueType
from .faults import *
from .utils import Unset, coalesce, ordinal

logger = logging.getLogger(__name__)

_SWITCH = re.compile(r"--?[^\W\d_]")
_TOKEN = re.compile(r"(?P<input>--?[^\W\d_](-?[^\W_]+)*)(=(?P<value>[^\r\n]*))?")
_HELPERS = ("-h", "--help")


class Bound(NamedTuple):
    """
    Values bound for one invocation.

    - arguments: argument name → coerced value (or default)
    - options: option name → coerced value, preset, default or None
    - extras: positional tokens left over once every argument was filled
    """
    arguments: MappingProxyType
    options: MappingProxyType
    extras: tuple


def _is_switch(token, /):
    return _SWITCH.match(token) is not None


def spellings(options, /):
    """
    Map every accepted spelling ("--third", "-t") to its option.
    """
    lookup = {}
    for option in options.values():
        for spelling in option.spellings:
            lookup[spelling] = option
    return lookup


def _unknown(input, lookup, index, label, /):
    suggestions = difflib.get_close_matches(input, [*lookup.keys(), *_HELPERS], 5)
    try:
        hint = "did you mean %r? you can also run '%s --help' to see all options" % (suggestions[0], label)
    except IndexError:
        hint = "try '%s --help' to see all available options" % label
    return UnknownOptionError(
        "unknown option %r at %s position" % (input, ordinal(index)),
        input=input,
        index=index,
        suggestions=suggestions,
        hint=hint,
        label=label,
    )


def _bind_switch(token, stream, lookup, index, label, /):
    """
    Resolve one option token, consuming its value token when needed.

    Returns (option, value, index) where index accounts for a consumed token.
    """
    if not (match := _TOKEN.fullmatch(token)):
        raise _unknown(token, lookup, index, label)

    input = match["input"]
    value = match["value"]  # None without '=...'; '' with a bare '='

    mode = None
    if input in lookup:
        option = lookup[input]
    elif input.startswith("--no-") and getattr(option := lookup.get("--" + input[5:]), "type", None) is ValueType.BOOLEAN:
        mode = "negated"
    elif input.startswith("--skip-") and (option := lookup.get("--" + input[7:])) is not None:
        mode = "skipped"
    else:
        raise _unknown(input, lookup, index, label)

    if mode:
        if value is not None:
            raise CoercionError(
                "option %r at %s position cannot take a value" % (input, ordinal(index)),
                input=input,
                index=index,
                hint="remove everything from '=' (for example: %s)" % input,
                label=label,
            )
        if mode == "negated" or option.type is ValueType.BOOLEAN:
            return option, False, index
        return option, None, index

    if option.type is ValueType.BOOLEAN and value is None:
        return option, True, index

    if value is not None:
        return option, option.coerce(value, spelling=input, index=index), index

    if not stream or stream[0] == "--" or _is_switch(stream[0]):
        raise OptionValueRequiredError(
            "option %r at %s position requires a value" % (input, ordinal(index)),
            input=input,
            index=index,
            hint="pass it after a space or inline (for example: %s=<value>)" % input,
            label=label,
        )
    index += 1
    return option, option.coerce(stream.popleft(), spelling=input, index=index), index


def bind(tokens, arguments, options, /, presets=None, *, label=Unset):
    """
    Bind tokens against effective arguments (a sequence) and options (a mapping
    name → Option).

    presets: option name → already coerced value, applied to options the
    tokens did not mention (used by the invocation bridge).
    label: group label used in fault hints.
    """
    label = coalesce(label, "flotilla")
    lookup = spellings(options)
    tokens = list(tokens)

    for token in tokens:
        if token == "--":
            break
        if token in _HELPERS and token not in lookup:
            logger.debug("help requested for %s by %r", label, token)
            raise HelpRequested(token)

    stream = deque(tokens)
    slots = deque(arguments)
    bound_arguments = {}
    bound_options = {}
    extras = []
    literal = False
    index = 0

    while stream:
        token = stream.popleft()
        index += 1

        if not literal and token == "--":
            literal = True
            continue

        if literal or not _is_switch(token):
            if slots:
                argument = slots.popleft()
                bound_arguments[argument.name] = argument.coerce(token, index=index)
            else:
                extras.append(token)
            continue

        option, value, index = _bind_switch(token, stream, lookup, index, label)
        bound_options[option.name] = value

    if missing := [argument.name for argument in slots if argument.required]:
        raise MissingArgumentError(
            "missing required %s %s" % (
                "argument" if len(missing) == 1 else "arguments",
                ", ".join(map(repr, missing)),
            ),
            missing=missing,
            hint="run '%s --help' to see the expected order" % label,
            label=label,
        )
    for argument in slots:
        bound_arguments[argument.name] = argument.default

    presets = dict(presets or {})
    for name in presets:
        if name not in options:
            raise UnknownOptionError(
                "%s does not declare option %r" % (label, name),
                input=name,
                hint="only options declared by %s can be passed to it" % label,
                label=label,
            )

    for name, option in options.items():
        if name in bound_options:
            continue
        if name in presets:
            bound_options[name] = presets[name]
        elif option.required:
            raise MissingOptionError(
                "missing required option %r" % option.long,
                input=option.long,
                hint="pass it as %s=<value>" % option.long,
                label=label,
            )
        else:
            bound_options[name] = option.default

    logger.debug(
        "bound %d tokens for %s: %d arguments, %d options, %d extras",
        len(tokens), label, len(bound_arguments), len(bound_options), len(extras)
    )
    return Bound(MappingProxyType(bound_arguments), MappingProxyType(bound_options), tuple(extras))


__all__ = (
    "Bound",
    "bind",
    "spellings",
)
