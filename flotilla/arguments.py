r"""
Flotilla argument specifications.

Overview
- ValueType: the closed set of value kinds ("string", "numeric", "boolean",
  "choice", "sequence") and their token coercion rules.
- Argument: positional, value-bearing declaration. Required when it has no
  default; ordered by declaration.
- Option: named declaration (--name, --name=value, aliases such as -t). Boolean
  options also answer to --no-name; every option answers to --skip-name.
- Fragment: a named, reusable set of options applied to groups explicitly.

Declaring
    class MyCounter(Group):
        first = Argument("numeric")
        second = Argument("numeric", 2)
        third = Option("numeric", 3, aliases=("-t",), metavar="THREE")

  The class attribute name becomes the declaration name (via __set_name__); the
  spec then acts as a descriptor so task bodies read bound values with
  self.first / self.third.

Validation highlights (raised as DeclarationError at definition time)
- Defaults must match the declared type ("numeric" → int/float, "choice" → one
  of the choices, …).
- "choice" needs a non-empty, duplicate-free collection of string choices.
- Alias spellings must match r"--?[^\W\d_](-?[^\W_]+)*".
- Options cannot be "sequence"; required options cannot carry a default.

Public API
- Classes: ValueType, Argument, Option, Fragment
"""
import builtins
import functools
import operator
import os
import re
from collections.abc import Iterable, Mapping
from enum import StrEnum
from types import MappingProxyType

from rich.text import Text

from .faults import CoercionError, DeclarationError
from .utils import *


_TRUTHY = frozenset({"true", "yes", "y", "on", "1"})
_FALSY = frozenset({"false", "no", "n", "off", "0"})


class ValueType(StrEnum):
    """
    Kinds of values an argument or option can carry.

    Each member knows how to coerce a raw token (coerce) and how to check a
    declared default (accepts).
    """
    STRING = "string"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    CHOICE = "choice"
    SEQUENCE = "sequence"

    def coerce(self, token, choices=(), /):
        """
        Convert a raw token into a value of this kind.

        Raises ValueError with a short reason when the token does not fit;
        callers turn it into a CoercionError with positional context.
        """
        match self:
            case ValueType.STRING:
                return token
            case ValueType.NUMERIC:
                if re.fullmatch(r"[-+]?\d+", token):
                    return int(token)
                if re.fullmatch(r"[-+]?(\d+\.\d*|\.\d+|\d+)([eE][-+]?\d+)?", token):
                    return float(token)
                raise ValueError("expected a number")
            case ValueType.BOOLEAN:
                if (lowered := token.strip().lower()) in _TRUTHY:
                    return True
                if lowered in _FALSY:
                    return False
                raise ValueError("expected one of %s" % ", ".join(sorted(_TRUTHY | _FALSY)))
            case ValueType.CHOICE:
                if token not in choices:
                    raise ValueError("expected one of %s" % ", ".join(map(repr, choices)))
                return token
            case ValueType.SEQUENCE:
                # Priority splitter char from most strong to less strong
                return tuple(token.split(os.pathsep if os.pathsep in token else ":" if ":" in token else ","))

    def accepts(self, value, choices=(), /):
        """
        Tell whether a declared default is a valid value of this kind.
        """
        match self:
            case ValueType.STRING:
                return isinstance(value, str)
            case ValueType.NUMERIC:
                return isinstance(value, int | float) and not isinstance(value, bool)
            case ValueType.BOOLEAN:
                return isinstance(value, bool)
            case ValueType.CHOICE:
                return value in choices
            case ValueType.SEQUENCE:
                return isinstance(value, Iterable) and not isinstance(value, str | bytes)


class SpecType(type):
    """
    Metaclass giving declaration specs stable representations and read-only
    properties for every name listed in __introspectable__.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate and normalize the fields shared by Argument and Option.

    - type: ValueType or its string value.
    - choices: required (and only allowed) for "choice"; strings, no duplicates.
    - descr/metavar: Unset or non-empty strings (descr may be a rich Text).
    - default: Unset/None or a value accepted by the type.
    """
    try:
        type = metadata["type"] = ValueType(metadata["type"])
    except ValueError:
        raise DeclarationError(
            "%s 'type' must be one of %s" % (cls.__typename__, ", ".join(repr(str(member)) for member in ValueType)),
            hint="use a value type such as 'string' or 'numeric'",
        ) from None

    if not isinstance(choices := metadata["choices"], Iterable) or isinstance(choices, str):
        raise DeclarationError("%s 'choices' must be an iterable of strings" % cls.__typename__)
    sanitized = []
    for choice in choices:
        if not isinstance(choice, str):
            raise DeclarationError("%s 'choices' must be strings" % cls.__typename__)
        if choice in sanitized:
            raise DeclarationError("%s 'choices' cannot contain duplicates" % cls.__typename__)
        sanitized.append(choice)
    metadata["choices"] = tuple(sanitized)

    if type is ValueType.CHOICE and not sanitized:
        raise DeclarationError("%s of type 'choice' must specify 'choices'" % cls.__typename__)
    if type is not ValueType.CHOICE and sanitized:
        raise DeclarationError("%s 'choices' require the 'choice' type" % cls.__typename__)

    for name in ("descr", "metavar"):
        if not isinstance(value := metadata[name], str | Text | Unset):
            raise DeclarationError("%s %r must be a string" % (cls.__typename__, name))
        elif isinstance(value, str) and not (value := value.strip()):
            raise DeclarationError("%s %r cannot be empty" % (cls.__typename__, name))
        metadata[name] = coalesce(value)

    default = metadata["default"]
    if default is not Unset and default is not None:
        if not type.accepts(default, metadata["choices"]):
            raise DeclarationError(
                "%s default %r does not match its %r type" % (cls.__typename__, default, str(type)),
                hint="give a default of the declared type or change the type",
            )
        if type is ValueType.SEQUENCE:
            metadata["default"] = tuple(default)


def _validate_name(spec, name, /):
    if not isinstance(name, str) or not name.isidentifier():
        raise DeclarationError("%s name must be an identifier, not %r" % (type(spec).__typename__, name))
    if spec._name is not Unset and spec._name != name:
        raise DeclarationError(
            "%s already declared as %r cannot be declared again as %r" % (type(spec).__typename__, spec._name, name),
            hint="create a separate %s for every name" % type(spec).__typename__,
        )


class Argument(metaclass=SpecType):
    """
    Positional, value-bearing declaration.

    Each argument consumes exactly one positional token, in declaration order,
    and coerces it to its type. An argument without a default is required;
    within a group's effective argument list no required argument may follow
    an optional one.

    Properties
    - name, type, default, choices, descr, metavar (read-only)
    - required: True when no default was declared
    - banner: label used by help (metavar, or derived from the type)
    """

    __introspectable__ = (
        "name",
        "type",
        "default",
        "choices",
        "descr",
        "metavar",
    )

    def __init__(
            self,
            type=ValueType.STRING,
            default=Unset,
            /,
            *,
            choices=(),
            descr=Unset,
            metavar=Unset,
    ):
        metadata = {
            "type": type,
            "default": default,
            "choices": choices,
            "descr": descr,
            "metavar": metavar,
        }
        _sanitize_metadata(Argument, metadata)

        self._name = Unset
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def required(self):
        return self._default is Unset

    @property
    def banner(self):
        if self.metavar:
            return self.metavar
        match self.type:
            case ValueType.NUMERIC:
                return "N"
            case ValueType.CHOICE:
                return "{%s}" % ",".join(self.choices)
            case ValueType.SEQUENCE:
                return "%s,..." % str(self.name).upper()
        return str(self.name).upper()

    def __set_name__(self, owner, name):
        _validate_name(self, name)
        self._name = name

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return instance.arguments[self._name]

    def coerce(self, token, /, *, index=Unset):
        """
        Coerce a positional token; index is its 1-based position in the stream.
        """
        try:
            return self.type.coerce(token, self.choices)
        except ValueError as error:
            where = " at %s position" % ordinal(index) if index else ""
            raise CoercionError(
                "invalid value %r for argument %r%s: %s" % (token, self.name, where, error),
                token=token,
                index=index,
                hint="pass a %s for %s" % (str(self.type), self.banner),
            ) from None


_SPELLING = re.compile(r"--?[^\W\d_](-?[^\W_]+)*")


class Option(metaclass=SpecType):
    """
    Named declaration bound from --name / --name=value / alias tokens.

    Highlights
    - Long spelling is "--" + name with underscores turned into hyphens.
    - Boolean options bind True on presence and False on --no-name.
    - --skip-name binds None (False for booleans) on any option.
    - invokes: declaration-time association used by option-selected
      invocation (a group for boolean options, a mapping value → group for
      string/choice options).
    - shared: forwarded to invoked groups under the "declared" sharing policy.

    Properties
    - name, type, default, aliases, descr, required, metavar, choices, group,
      shared, invokes (read-only)
    - long, spellings, banner
    """

    __introspectable__ = (
        "name",
        "type",
        "default",
        "aliases",
        "descr",
        "required",
        "metavar",
        "choices",
        "group",
        "shared",
        "invokes",
    )

    def __init__(
            self,
            type=ValueType.STRING,
            default=None,
            /,
            *,
            aliases=(),
            descr=Unset,
            required=False,
            metavar=Unset,
            choices=(),
            group=Unset,
            shared=False,
            invokes=Unset,
    ):
        metadata = {
            "type": type,
            "default": default,
            "choices": choices,
            "descr": descr,
            "metavar": metavar,
        }
        _sanitize_metadata(Option, metadata)

        if metadata["type"] is ValueType.SEQUENCE:
            raise DeclarationError("option cannot be of type 'sequence'", hint="declare a sequence argument instead")
        if metadata["default"] is Unset:
            metadata["default"] = None
        if required and metadata["default"] is not None:
            raise DeclarationError("required option cannot have a default")

        if isinstance(aliases, str):
            aliases = (aliases,)
        sanitized = []
        for alias in aliases:
            if not isinstance(alias, str) or not _SPELLING.fullmatch(alias := alias.strip()):
                raise DeclarationError(
                    "option alias %r must be a valid shell-style spelling" % (alias,),
                    hint="use forms like '-t' or '--three'",
                )
            if alias in sanitized:
                raise DeclarationError("option aliases cannot contain duplicates")
            sanitized.append(alias)

        if not isinstance(group, str | Unset) or (isinstance(group, str) and not group.strip()):
            raise DeclarationError("option 'group' must be a non-empty string")

        if invokes is not Unset:
            match metadata["type"]:
                case ValueType.BOOLEAN:
                    if not isinstance(invokes, str | builtins.type):
                        raise DeclarationError("boolean option 'invokes' must be a group or a group label")
                case ValueType.STRING | ValueType.CHOICE:
                    if not isinstance(invokes, Mapping) or not all(isinstance(key, str) for key in invokes):
                        raise DeclarationError("option 'invokes' must map option values to groups")
                    invokes = MappingProxyType(dict(invokes))
                case _:
                    raise DeclarationError("%s option cannot invoke groups" % str(metadata["type"]))

        self._name = Unset
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._aliases = tuple(sanitized)
        self._required = bool(required)
        self._group = coalesce(group, "options").strip()
        self._shared = bool(shared)
        self._invokes = invokes

    @property
    def long(self):
        return "--" + str(self.name).replace("_", "-")

    @property
    def spellings(self):
        return (self.long, *(alias for alias in self.aliases if alias != self.long))

    @property
    def banner(self):
        if self.type is ValueType.BOOLEAN:
            return None
        if self.metavar:
            return self.metavar
        match self.type:
            case ValueType.NUMERIC:
                return "N"
            case ValueType.CHOICE:
                return "{%s}" % ",".join(self.choices)
        return str(self.name).upper()

    def __set_name__(self, owner, name):
        _validate_name(self, name)
        self._name = name

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return instance.options[self._name]

    def coerce(self, token, /, *, spelling=Unset, index=Unset):
        """
        Coerce an option value; spelling is the token form the user typed.
        """
        try:
            return self.type.coerce(token, self.choices)
        except ValueError as error:
            where = " at %s position" % ordinal(index) if index else ""
            raise CoercionError(
                "invalid value %r for option %r%s: %s" % (token, coalesce(spelling, self.long), where, error),
                token=token,
                index=index,
                hint="pass a %s, for example %s=<value>" % (str(self.type), self.long),
            ) from None



class Fragment:
    """
    Named, reusable set of options.

    Fragments are applied explicitly through the fragments= class keyword:

        verbosity = Fragment("verbosity", verbose=Option("boolean"), quiet=Option("boolean"))

        class Tool(Group, fragments=(verbosity,)):
            ...
    """

    def __init__(self, name, /, **options):
        if not isinstance(name, str) or not name.strip():
            raise DeclarationError("fragment name must be a non-empty string")
        for key, option in options.items():
            if not isinstance(option, Option):
                raise DeclarationError("fragment %r member %r must be an option" % (name, key))
            option.__set_name__(Fragment, key)
        self.name = name.strip()
        self.options = MappingProxyType(options)

    def __repr__(self):
        return "fragment(name=%r, options=%r)" % (self.name, tuple(self.options))


__all__ = (
    "ValueType",
    "Argument",
    "Option",
    "Fragment",
)

# Keep the metaclass out of star-imports; it is not part of the public API.
del SpecType
