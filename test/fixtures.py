"""
Shared group fixtures for the behavioral tests.

Conventions
- Every fixture group has a unique class name, so label and class-name lookups
  through the target registry are unambiguous across test modules.
- capture() builds a Context whose reporter prints plain text into a buffer.
"""

from __future__ import annotations

import io

from rich.console import Console

from flotilla import (
    Argument,
    Context,
    Group,
    Option,
    Reporter,
    invocation,
    option_invocation,
    task,
)


def capture(**options):
    stream = io.StringIO()
    console = Console(file=stream, color_system=None, width=120, highlight=False)
    return Context(Reporter(console, colorful=False), **options), stream


class MyCounter(Group):
    """
    This generator runs three tasks: one, two and three.
    """

    first = Argument("numeric", descr="The first argument")
    second = Argument("numeric", 2, descr="The second argument")
    third = Option("numeric", 3, aliases=("-t",), descr="The third argument", metavar="THREE")

    @task
    def one(self):
        return self.first

    @task
    def two(self):
        return self.second

    @task
    def three(self):
        return self.third


class BrokenCounter(MyCounter):
    def one(self):
        return self.first * 10

    @task
    def four(self):
        return 4

    @task
    def five(self):
        return 5


class Defined(Group):
    """
    Counts once and says so.
    """

    unused = Option("boolean", descr="This option has no use")

    @task
    def counting(self):
        self.reporter.say_status("finished", "counting")
        return "counted"


class Umbrella(Group):
    defined = invocation(Defined)


class Switched(Group):
    invoked = Option("boolean", True, invokes=Defined, descr="Run the defined group")
    run = option_invocation("invoked")


class Selected(Group):
    target = Option("string", "defined", descr="Label of the group to run")
    run = option_invocation("target")


class Flavored(Group):
    flavor = Option(
        "choice",
        "counting",
        choices=("counting", "greeting", "missing"),
        invokes={"counting": Defined, "greeting": "Greeter", "missing": "nowhere"},
    )
    run = option_invocation("flavor")


class Greeter(Group):
    name = Option("string", "world")
    loud = Option("boolean", False)

    @task
    def greet(self):
        return ("HELLO %s" if self.loud else "hello %s") % self.name


class Host(Group):
    name = Option("string", "jose", shared=True)
    loud = Option("boolean", False)
    greeter = invocation(Greeter)


class Overlay(Group):
    name = Option("string", "jose")
    greeter = invocation(Greeter, {"name": "ana"})


class Twice(Group):
    @task
    def first(self):
        return self.invoke(Defined)

    @task
    def second(self):
        return self.invoke(Defined)


class Exploding(Group):
    calls = []
    error = RuntimeError("boom")

    @task
    def one(self):
        Exploding.calls.append("one")
        return 1

    @task
    def boom(self):
        Exploding.calls.append("boom")
        raise Exploding.error

    @task
    def never(self):
        Exploding.calls.append("never")
