"""
Flotilla faults (errors and signals) and rendering.

Scope
- FaultCode: stable numeric identifiers for every user-facing fault, grouped by
  domain (declaration, binding, invocation).
- FlotillaError: base type carrying a message plus a read-only options mapping
  (title, hint, position, …) that knows how to render itself with rich.
- HelpRequested: the signal raised by the binder on a lone -h/--help token.

Propagation
- Declaration faults are raised while a group class is being defined and never
  reach run time.
- Binding faults abort a run before any task executes.
- TargetNotFound is raised by target resolution and absorbed by the invocation
  bridge, which reports it instead.
- Errors raised by task bodies are not faults: they propagate unchanged.

Styling
- The palette can be overridden with a __styles__ mapping in __main__, and the
  numeric codes remapped with a __codes__ mapping.
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - declarations (1110x): DECLARATION, ORDERING, TASK_ARITY
    - binding (1111x): UNKNOWN_OPTION, OPTION_VALUE_REQUIRED, COERCION,
      MISSING_ARGUMENT, MISSING_OPTION
    - invocation (1113x): TARGET_NOT_FOUND
    """
    # --- declaration errors (1110x) ---
    DECLARATION                 = 11101
    ORDERING                    = 11102
    TASK_ARITY                  = 11103

    # --- binding errors (1111x) ---
    UNKNOWN_OPTION              = 11111
    OPTION_VALUE_REQUIRED       = 11112
    COERCION                    = 11113
    MISSING_ARGUMENT            = 11114
    MISSING_OPTION              = 11115

    # --- invocation (1113x) ---
    TARGET_NOT_FOUND            = 11131

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class FlotillaError(Exception):
    """
    base class of every flotilla fault.

    the message is the one-sentence body; options carry rendering context
    (title, hint, label, token, index, …) and are exposed read-only.
    subclasses provide a default code and title.
    """
    code = FaultCode.DECLARATION
    title = "error"

    def __init__(self, message, /, **options):
        assert isinstance(message, str)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)

        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        } | getattr(main, "__styles__", {}))

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if colorful else "")

        header = Text.assemble(
            "[ ",
            text(coalesce(self.options.get("label", Unset), getattr(main, "__prog__", "flotilla")), "prog-name"),
            " — ",
            text(self.options.get("code", self.code).normalize(), "code"),
            " | ",
            text(self.options.get("title", self.title).title(), "error-title"),
            " ]"
        )
        message = text(self.message, "error-message")
        renders = [header, message]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

        if self.options.get("fancy", False):
            return Panel(Group(*renders[1:]), title=header, title_align="left")
        return Group(*renders)


class DeclarationError(FlotillaError):
    code = FaultCode.DECLARATION
    title = "invalid declaration"


class OrderingError(DeclarationError):
    code = FaultCode.ORDERING
    title = "required argument after optional"


class TaskArityError(DeclarationError):
    code = FaultCode.TASK_ARITY
    title = "task expects arguments"


class BindingError(FlotillaError):
    title = "bad input"


class UnknownOptionError(BindingError):
    code = FaultCode.UNKNOWN_OPTION
    title = "unknown option"


class OptionValueRequiredError(BindingError):
    code = FaultCode.OPTION_VALUE_REQUIRED
    title = "option value required"


class CoercionError(BindingError):
    code = FaultCode.COERCION
    title = "invalid value"


class MissingArgumentError(BindingError):
    code = FaultCode.MISSING_ARGUMENT
    title = "missing argument"


class MissingOptionError(MissingArgumentError):
    code = FaultCode.MISSING_OPTION
    title = "missing option"


class TargetNotFound(FlotillaError):
    code = FaultCode.TARGET_NOT_FOUND
    title = "target not found"


class HelpRequested(Exception):
    """
    signal raised by the binder when a lone -h/--help token is met.

    it is not an error: the pipeline answers it by rendering help and completing
    without running any task.
    """

    def __init__(self, token, /):
        super().__init__(token)
        self.token = token


__all__ = (
    "FaultCode",
    "FlotillaError",
    "DeclarationError",
    "OrderingError",
    "TaskArityError",
    "BindingError",
    "UnknownOptionError",
    "OptionValueRequiredError",
    "CoercionError",
    "MissingArgumentError",
    "MissingOptionError",
    "TargetNotFound",
    "HelpRequested",
)
