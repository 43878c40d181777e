"""
Descriptor surface and the default help renderer.

describe(group)
- Snapshot of everything a help screen needs: label, description, usage line,
  effective arguments and options, and one (label, options) pair per
  statically known invocation target. Target pairs only list the options the
  host group does not already declare, since shared options are forwarded.
- Statically known targets come from invocation(...) tasks, from boolean
  options with an associated group, from string/choice options with an
  invokes mapping, and from option_invocation(...) tasks over a string option
  whose default names a group.

render(descriptor, reporter)
- Sectioned layout printed through the reporter console:

      usage: my_counter N [N] [options]

      Description:
        This generator runs three tasks: one, two and three.

      Options:
        -t, [--third=THREE]  # The third argument
                             # Default: 3

      Defined options:
        [--unused], [--no-unused]  # This option has no use

- Palette keys: usage-label, program-name, section, option-name, metavar,
  description. Override any of them with a __styles__ mapping in __main__.
"""
from collections import defaultdict
from typing import NamedTuple

from rich.console import Group
from rich.text import Text

from .arguments import ValueType
from .faults import TargetNotFound
from .targets import label_of, resolve
from .utils import Unset


class Descriptor(NamedTuple):
    label: str
    descr: str | Text | None
    usage: str
    arguments: tuple
    options: tuple
    invocations: tuple


def usage(label, arguments, options, /):
    """
    Usage line: label, argument banners (optional ones bracketed) and an
    [options] marker when any option is declared.
    """
    parts = [label]
    for argument in arguments:
        parts.append(argument.banner if argument.required else "[%s]" % argument.banner)
    if options:
        parts.append("[options]")
    return " ".join(parts)


def _targets(group, /):
    options = group.effective_options()
    for task in group.effective_tasks():
        if (target := getattr(task, "target", Unset)) is not Unset:
            yield label_of(target), target
        elif (name := getattr(task, "option", Unset)) in options:
            option = options[name]
            if option.invokes is Unset and isinstance(option.default, str):
                yield option.default, option.default

    for option in options.values():
        if option.invokes is Unset:
            continue
        if option.type is ValueType.BOOLEAN:
            yield option.name, option.invokes
        else:
            yield from option.invokes.items()


def _invocations(group, /):
    own = group.effective_options()
    seen = {group}
    for label, target in _targets(group):
        try:
            target = resolve(target)
        except TargetNotFound:
            continue
        if target in seen:
            continue
        seen.add(target)
        if options := tuple(option for name, option in target.effective_options().items() if name not in own):
            yield label, options


def describe(group, /):
    arguments = tuple(group.effective_arguments())
    options = tuple(group.effective_options().values())
    return Descriptor(
        group.label,
        group.descr,
        usage(group.label, arguments, options),
        arguments,
        options,
        tuple(_invocations(group)),
    )


def _option_name(option, /):
    aliases = [alias for alias in option.aliases if alias != option.long]
    if option.type is ValueType.BOOLEAN:
        spelled = "[%s], [--no-%s]" % (option.long, option.long[2:])
    elif option.required:
        spelled = "%s=%s" % (option.long, option.banner)
    else:
        spelled = "[%s=%s]" % (option.long, option.banner)
    return ", ".join([*aliases, spelled])


def _option_notes(option, /):
    notes = []
    if option.descr:
        notes.append(str(option.descr))
    if option.type is ValueType.CHOICE:
        notes.append("Possible values: %s" % ", ".join(option.choices))
    if option.default is not None and option.type is not ValueType.BOOLEAN:
        notes.append("Default: %s" % option.default)
    return notes


def render(descriptor, reporter, /):
    """
    Print the help screen for a Descriptor on the reporter console.
    """
    styles = defaultdict(str, {
        "usage-label": "bold #00E6FF",
        "program-name": "bold #FF4D94",
        "section": "bold #FFFFFF",
        "option-name": "bold #00E6FF",
        "metavar": "bold #FFD600",
        "description": "#9CA3AF",
    } | getattr(__import__("__main__"), "__styles__", {}))

    def text(fragment, style=""):
        if isinstance(fragment, Text):
            return fragment if reporter.colorful else Text(fragment.plain)
        return Text(str(fragment), styles[style] if reporter.colorful else "")

    def section(title, rows):
        # rows: (name column, [notes]); notes are aligned past the widest name
        body = Text.assemble(text(title, "section"), ":")
        indent = max(len(name) for name, _ in rows) + 2
        for name, notes in rows:
            body.append("\n  ").append(text(name, "option-name"))
            for index, note in enumerate(notes or [""]):
                if index:
                    body.append("\n  " + " " * indent)
                else:
                    body.append(" " * (indent - len(name)))
                if note:
                    body.append(text("# " + note, "description"))
        body.rstrip()
        return body

    label, descr, line, arguments, options, invocations = descriptor

    renders = [Text.assemble(
        text("usage:", "usage-label"),
        " ",
        text(label, "program-name"),
        text(line[len(label):], "metavar"),
    )]

    if descr:
        block = Text.assemble(text("Description", "section"), ":")
        for paragraph in str(descr).splitlines():
            block.append("\n")
            if paragraph.strip():
                block.append("  ").append(text(paragraph, "description"))
        renders.append(block)

    if rows := [(argument.name, [str(argument.descr)]) for argument in arguments if argument.descr]:
        renders.append(section("Arguments", rows))

    grouped = {}
    for option in options:
        grouped.setdefault(option.group, []).append((_option_name(option), _option_notes(option)))
    for group, rows in grouped.items():
        renders.append(section("Options" if group == "options" else "%s options" % group, rows))

    for target, members in invocations:
        renders.append(section(
            "%s options" % target,
            [(_option_name(option), _option_notes(option)) for option in members],
        ))

    # One blank line between sections
    spaced = []
    for index, chunk in enumerate(renders):
        if index:
            spaced.append(Text(""))
        spaced.append(chunk)
    reporter.print(Group(*spaced))


__all__ = (
    "Descriptor",
    "describe",
    "render",
    "usage",
)
