"""
Per-run context and the status/output collaborator.

Context
- Created once per top-level run (Group.start creates one when none is given)
  and threaded through every nested invocation. It owns the invocation record
  (the set of groups already run), so two concurrent runs never share state as
  long as each uses its own Context.
- Carries the collaborators the core talks to: the Reporter (status events and
  output) and the help renderer.
- share: option sharing policy for invocations.
  • "matching": forward every caller option whose name the target declares.
  • "declared": forward only caller options declared with shared=True.
- shell: when True, a binding fault of the top-level run is printed (with the
  help screen) instead of raised.

Reporter
- invoke_started(label) / invoke_finished(label) / invoke_not_found(label).
- say_status(status, message, style): right-aligned status column followed by
  the message, indented by the current invocation depth:

        invoke  Defined
      finished    counting

- Palette entries can be overridden with a __styles__ mapping in __main__.
"""
from collections import defaultdict

from rich.console import Console
from rich.text import Text

from .utils import Unset, coalesce


SHARING = ("matching", "declared")


class Reporter:
    """
    Rich-backed output and status reporting.

    Parameters
    - console: rich Console to print to (stdout console by default).
    - colorful: apply the palette; when False, plain text is printed.
    - quiet: swallow status lines (help and faults are still printed).
    """

    def __init__(self, console=Unset, /, *, colorful=True, quiet=False):
        if not isinstance(console, Console | Unset):
            raise TypeError("reporter 'console' must be a rich console")
        self.console = coalesce(console, Console(highlight=False))
        self.colorful = bool(colorful)
        self.quiet = bool(quiet)
        self.padding = 0
        self.styles = defaultdict(str, {
            "invoke": "bold #22C55E",
            "error": "bold #EF4444",
            "status": "bold #36C5F0",
        } | getattr(__import__("__main__"), "__styles__", {}))

    def say_status(self, status, message, /, style="status"):
        """
        Print one status line; style is a palette key or a rich style string.
        """
        if self.quiet:
            return
        style = self.styles.get(style, style) if self.colorful else ""
        self.console.print(Text.assemble(
            ("%12s" % status, style),
            "  ",
            "  " * self.padding,
            str(message),
        ))

    def invoke_started(self, label, /):
        self.say_status("invoke", label, "invoke")
        self.padding += 1

    def invoke_finished(self, label, /):
        self.padding = max(self.padding - 1, 0)

    def invoke_not_found(self, label, /):
        self.say_status("error", "%s [not found]" % label, "error")

    def print(self, *renderables):
        self.console.print(*renderables)

    def error(self, fault, /):
        """
        Print a fault (anything with __rich__) on the console.
        """
        self.console.print(fault)


class Context:
    """
    State and collaborators of one top-level run.

    Attributes
    - reporter: Reporter receiving status events and help/fault output.
    - helper: callable(descriptor, reporter) rendering help.
    - share: "matching" | "declared" (see module docs).
    - shell: print top-level binding faults instead of raising them.
    - invoked: groups already run in this run (dedup record).
    """

    def __init__(self, reporter=Unset, /, *, helper=Unset, share="matching", shell=False):
        if not isinstance(reporter, Reporter | Unset):
            raise TypeError("context 'reporter' must be a reporter")
        if share not in SHARING:
            raise ValueError("context 'share' must be one of %s" % ", ".join(map(repr, SHARING)))
        if helper is not Unset and not callable(helper):
            raise TypeError("context 'helper' must be callable")
        if helper is Unset:
            from .help import render as helper
        self.reporter = Reporter() if reporter is Unset else reporter
        self.helper = helper
        self.share = share
        self.shell = bool(shell)
        self.invoked = set()

    def __repr__(self):
        return "context(share=%r, shell=%r, invoked=%r)" % (
            self.share, self.shell, sorted(group.__name__ for group in self.invoked)
        )


__all__ = (
    "Context",
    "Reporter",
)
