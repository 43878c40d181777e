r"""
Flotilla groups: declarative, ordered task pipelines.

Overview
- A Group subclass declares positional Arguments, named Options and Tasks as
  class attributes. Running the group binds one token stream against them and
  executes every task, in declaration order, against a single instance.
- Subclassing composes declarations: inherited tasks run first, a task
  redeclared under an inherited name keeps the inherited slot, new tasks are
  appended. Arguments follow the same rule and must keep every required
  argument ahead of the optional ones.
- A task can invoke another group (invoke / invoke_from_option). Each group
  runs at most once per top-level run; bound caller options the target
  declares with the same type are forwarded to it.

Declaring
    class MyCounter(Group):
        "This generator runs three tasks: one, two and three."

        first = Argument("numeric")
        second = Argument("numeric", 2)
        third = Option("numeric", 3, aliases=("-t",), descr="The third argument")

        @task
        def one(self):
            return self.first

        @task
        def two(self):
            return self.second

        @task
        def three(self):
            return self.third

    MyCounter.start(["1", "2", "--third", "3"])  # [1, 2, 3]

Class keywords
- label: invocation/help label (default: snake_case of the class name).
- descr: description shown in help (default: the class docstring, else the
  inherited description).
- fragments: iterable of Fragment whose options are declared on the group.

Reserved names
- args, options, arguments, context, reporter, invoke, invoke_from_option and
  start cannot be used for declarations.

Public API
- Classes: Group, Task, Pipeline, State
- Functions: task, invocation, option_invocation, start
"""
import inspect
import logging
import shlex
import sys
from collections.abc import Iterable, Mapping
from enum import Enum
from types import FunctionType, MethodType

from rich.text import Text

from .arguments import Argument, Fragment, Option, ValueType
from .binder import bind
from .context import Context
from .faults import *
from .help import describe
from .registry import Registry
from .targets import label_of, register, resolve
from .utils import *

logger = logging.getLogger(__name__)

RESERVED = frozenset({
    "args",
    "options",
    "arguments",
    "context",
    "reporter",
    "invoke",
    "invoke_from_option",
    "start",
})


class Task:
    """
    Named, ordered unit of work.

    The body is called with the group instance only; a body that requires any
    other argument is rejected with TaskArityError when the task is created.

    Attributes
    - name: task name (the attribute name it was declared under by default)
    - target: group invoked by invocation(...) tasks, else Unset
    - option: option consulted by option_invocation(...) tasks, else Unset
    """

    def __init__(self, body, /, name=Unset):
        if not callable(body):
            raise DeclarationError("task body must be callable, not %r" % (body,))
        if not isinstance(name, str | Unset):
            raise DeclarationError("task name must be a string")
        self._body = body
        self._name = name
        self.target = Unset
        self.option = Unset
        _check_arity(body, coalesce(name, getattr(body, "__name__", repr(body))))

    @property
    def name(self):
        return self._name

    @property
    def body(self):
        return self._body

    def __set_name__(self, owner, name):
        if self._name is Unset:
            self._name = name

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return MethodType(self._body, instance)

    def __call__(self, instance, /):
        return self._body(instance)

    def __repr__(self):
        return "task(name=%r)" % (self._name,)


def _check_arity(body, name, /):
    try:
        parameters = list(inspect.signature(body).parameters.values())
    except (TypeError, ValueError):
        return

    positional = [
        parameter for parameter in parameters
        if parameter.kind in (parameter.POSITIONAL_ONLY, parameter.POSITIONAL_OR_KEYWORD)
    ]
    variadic = any(parameter.kind is parameter.VAR_POSITIONAL for parameter in parameters)
    if not positional and not variadic:
        raise TaskArityError(
            "task %r must accept the group instance" % name,
            hint="declare it as 'def %s(self): ...'" % name,
        )

    rest = positional[1:]
    keywords = [parameter for parameter in parameters if parameter.kind is parameter.KEYWORD_ONLY]
    if required := [parameter.name for parameter in [*rest, *keywords] if parameter.default is parameter.empty]:
        raise TaskArityError(
            "task %r requires %s, but tasks are called with the group instance only" % (
                name, ", ".join(map(repr, required))
            ),
            hint="read values through declared arguments and options instead",
        )


def task(body=Unset, /, *, name=Unset):
    """
    Declare a task.

    Forms
    - @task
    - @task(name="custom")
    """
    if body is Unset:
        return rename(lambda body: Task(body, name=name), "task")
    return Task(body, name=name)


def invocation(target, options=None, /, *, via=None):
    """
    Build a task that invokes target through the bridge.

        class Umbrella(Group):
            defined = invocation(Defined)
            counter = invocation("my_counter", {"third": 7})
    """
    @rename("invoke_%s" % label_of(target))
    def body(self):
        return self.invoke(target, options, via=via)

    declared = Task(body)
    declared.target = target
    return declared


def option_invocation(name, /):
    """
    Build a task that invokes the group selected by the option name.
    """
    if not isinstance(name, str):
        raise DeclarationError("option_invocation() argument must be an option name")

    @rename("invoke_from_%s" % name)
    def body(self):
        return self.invoke_from_option(name)

    declared = Task(body)
    declared.option = name
    return declared


def _reserved(cls, name, /):
    if name in RESERVED:
        raise DeclarationError(
            "%s cannot declare %r: the name is reserved" % (cls.__name__, name),
            label=cls.__name__,
            hint="pick another name; reserved names are %s" % ", ".join(sorted(RESERVED)),
        )


def _description(cls, descr, root, /):
    if descr is not Unset:
        if not isinstance(descr, str | Text) or not str(descr).strip():
            raise DeclarationError("%s 'descr' must be a non-empty string" % cls.__name__)
        return descr if isinstance(descr, Text) else inspect.cleandoc(descr)
    if not root and (doc := cls.__dict__.get("__doc__")):
        return inspect.cleandoc(doc)
    return None


def _check_spellings(cls, options, /):
    seen = {}
    for option in options.values():
        for spelling in option.spellings:
            if (other := seen.setdefault(spelling, option)) is not option:
                raise DeclarationError(
                    "%s options %r and %r share the spelling %r" % (cls.__name__, other.name, option.name, spelling),
                    label=cls.__name__,
                    hint="give every option its own aliases",
                )


def _check_names(cls, arguments, options, /):
    if clashing := [argument.name for argument in arguments if argument.name in options]:
        raise DeclarationError(
            "%s declares %s both as argument and option" % (cls.__name__, ", ".join(map(repr, clashing))),
            label=cls.__name__,
            hint="rename the argument or the option",
        )


class GroupType(type):
    """
    Metaclass of Group: turns class bodies into registry declarations.
    """

    def __new__(cls, name, bases, namespace, /, *, label=Unset, descr=Unset, fragments=(), **options):
        self = super().__new__(cls, name, bases, namespace, **options)

        root = not any(isinstance(base, GroupType) for base in bases)
        parent = next((base.__dict__["__registry__"] for base in self.__mro__[1:] if "__registry__" in base.__dict__), None)

        if not isinstance(label, str | Unset) or (isinstance(label, str) and not label.strip()):
            raise DeclarationError("%s 'label' must be a non-empty string" % name)
        self.__label__ = coalesce(label, underscore(name)).strip()

        registry = self.__registry__ = Registry(parent, owner=self)
        registry.description = _description(self, descr, root)

        if isinstance(fragments, Fragment) or not isinstance(fragments, Iterable):
            raise DeclarationError("%s 'fragments' must be an iterable of fragments" % name)
        for fragment in fragments:
            if not isinstance(fragment, Fragment):
                raise DeclarationError("%s fragments must be Fragment instances, not %r" % (name, fragment))
            for key, option in fragment.options.items():
                _reserved(self, key)
                registry.declare_option(option)
                if key not in namespace:
                    setattr(self, key, option)

        inherited = {declared.name for declared in (parent.effective_tasks() if parent else ())}
        for key, value in namespace.items():
            if isinstance(value, Argument | Option | Task):
                _reserved(self, key)
            match value:
                case Argument():
                    registry.declare_argument(value)
                case Option():
                    registry.declare_option(value)
                case Task():
                    registry.declare_task(value)
                case FunctionType() if key in inherited:
                    # Plain method overriding an inherited task keeps its slot
                    setattr(self, key, overriding := Task(value, name=key))
                    registry.declare_task(overriding)

        _check_spellings(self, self.effective_options())
        _check_names(self, self.effective_arguments(), self.effective_options())
        if not root:
            register(self)
        return self

    def __init__(cls, name, bases, namespace, /, **options):
        super().__init__(name, bases, namespace)

    @property
    def label(cls):
        return cls.__label__

    @property
    def descr(cls):
        return cls.__registry__.effective_description()

    def effective_arguments(cls):
        return cls.__registry__.effective_arguments()

    def effective_options(cls):
        return cls.__registry__.effective_options()

    def effective_tasks(cls):
        return cls.__registry__.effective_tasks()

    def declare_argument(cls, name, /, type="string", default=Unset, **metadata):
        """
        Declare an argument after class creation (same rules as the class body).
        """
        _reserved(cls, name)
        argument = Argument(type, default, **metadata)
        argument.__set_name__(cls, name)
        _check_names(cls, [argument], cls.effective_options())
        cls.__registry__.declare_argument(argument)
        setattr(cls, name, argument)
        return argument

    def declare_option(cls, name, /, type="string", default=None, **metadata):
        _reserved(cls, name)
        option = Option(type, default, **metadata)
        option.__set_name__(cls, name)
        _check_spellings(cls, cls.effective_options() | {name: option})
        _check_names(cls, cls.effective_arguments(), {name: option})
        cls.__registry__.declare_option(option)
        setattr(cls, name, option)
        return option

    def declare_task(cls, name, body, /):
        _reserved(cls, name)
        declared = body if isinstance(body, Task) else Task(body, name=name)
        declared.__set_name__(cls, name)
        cls.__registry__.declare_task(declared)
        setattr(cls, name, declared)
        return declared


class State(Enum):
    UNSTARTED = "unstarted"
    BINDING = "binding"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class Pipeline:
    """
    One run of one group: bind, then execute every effective task in order.

    States: UNSTARTED → BINDING → RUNNING → COMPLETED, or FAILED from any
    state when an error escapes. A help request completes the run without
    results after rendering the help screen through the context helper.
    """

    def __init__(self, group, context, /):
        self.group = group
        self.context = context
        self.state = State.UNSTARTED
        self.failed_at = None
        self.results = []

    def _advance(self, state, /):
        logger.debug("%s: %s -> %s", self.group.label, self.state.value, state.value)
        self.state = state

    def __call__(self, tokens=(), /, presets=None):
        if self.state is not State.UNSTARTED:
            raise RuntimeError("pipeline for %s already ran" % self.group.label)
        group = self.group

        self._advance(State.BINDING)
        try:
            bound = bind(tokens, group.effective_arguments(), group.effective_options(), presets, label=group.label)
        except HelpRequested:
            self.context.helper(describe(group), self.context.reporter)
            self._advance(State.COMPLETED)
            return []
        except BaseException:
            self._fail()
            raise

        self._advance(State.RUNNING)
        try:
            instance = group(bound, self.context)
            for declared in group.effective_tasks():
                logger.debug("%s: running task %r", group.label, declared.name)
                self.results.append(declared(instance))
        except BaseException:
            self._fail()
            raise

        self._advance(State.COMPLETED)
        return list(self.results)

    def _fail(self):
        self.failed_at = self.state
        self._advance(State.FAILED)


def _tokenize(prompt, /):
    if prompt is Unset:
        return sys.argv[1:]
    if isinstance(prompt, str):
        return shlex.split(prompt)
    if not isinstance(prompt, Iterable):
        raise TypeError("prompt must be a string or an iterable of strings")
    tokens = list(prompt)
    if not all(isinstance(token, str) for token in tokens):
        raise TypeError("prompt must be a string or an iterable of strings")
    return tokens


class Group(metaclass=GroupType):
    """
    Base class of every task group.

    Instances are created by the pipeline with the bound values of one run:
    - arguments / options: read-only mappings name → value
    - args: positional tokens left over after every argument was filled
    - context / reporter: per-run state and output collaborator
    Declared arguments and options are also readable as attributes.
    """

    def __init__(self, bound=Unset, /, context=Unset):
        cls = type(self)
        if bound is Unset:
            bound = bind((), cls.effective_arguments(), cls.effective_options(), label=cls.label)
        self.context = Context() if context is Unset else context
        self.arguments = bound.arguments
        self.options = bound.options
        self.args = bound.extras

    @property
    def reporter(self):
        return self.context.reporter

    def __repr__(self):
        return "%s(%s)" % (type(self).label, ", ".join(
            "%s=%r" % item for item in [*self.arguments.items(), *self.options.items()]
        ))

    @classmethod
    def start(cls, prompt=Unset, /, *, context=Unset):
        """
        Run this group as a top-level run and return its task results.

        prompt: Unset (sys.argv[1:]), a command string, or an iterable of tokens.
        """
        tokens = _tokenize(prompt)
        context = Context() if context is Unset else context
        # Each top-level run starts a fresh invocation record
        context.invoked = {cls}
        pipeline = Pipeline(cls, context)
        try:
            return pipeline(tokens)
        except BindingError as fault:
            if not context.shell or pipeline.failed_at is not State.BINDING:
                raise
            logger.debug("%s: binding failed in shell mode: %s", cls.label, fault)
            context.reporter.error(fault)
            context.helper(describe(cls), context.reporter)
            return None

    def invoke(self, target, options=None, /, *, via=None):
        """
        Run another group once per top-level run.

        target: group class, registered label or class name, or "module:Group".
        options: values overlaid on the forwarded caller options.
        via: callable(caller, target) run instead of the target pipeline.

        Returns the nested results, the via result, or None when the target
        was already invoked or cannot be found.
        """
        if options is not None and not isinstance(options, Mapping):
            raise TypeError("invoke() options must be a mapping")
        if via is not None and not callable(via):
            raise TypeError("invoke() 'via' must be callable")
        return self._invoke(target, label_of(target), options, via)

    def invoke_from_option(self, name, /):
        """
        Invoke the group selected by the bound value of option name.

        - None or False: nothing is invoked.
        - True (boolean option): the group associated through invokes=.
        - any other value: looked up in the invokes= mapping, or resolved as a
          group label when the option has no mapping.
        """
        cls = type(self)
        try:
            option = cls.effective_options()[name]
        except KeyError:
            raise ValueError("%s does not declare option %r" % (cls.label, name)) from None

        value = self.options[name]
        if value is None or value is False:
            logger.debug("%s: option %r is off, nothing to invoke", cls.label, name)
            return None

        if value is True:
            if option.invokes is Unset:
                raise ValueError("%s option %r has no group to invoke" % (cls.label, name))
            return self._invoke(option.invokes, name, None, None)

        label = str(value)
        if option.invokes is Unset:
            target = label
        else:
            target = option.invokes.get(label, Unset)
        return self._invoke(target, label, None, None)

    def _invoke(self, target, label, options, via, /):
        context = self.context
        try:
            group = resolve(target)
        except TargetNotFound as fault:
            logger.warning("%s: %s", type(self).label, fault)
            context.reporter.invoke_not_found(label)
            return None

        if group in context.invoked:
            logger.debug("%s: %s already ran, skipping", type(self).label, group.label)
            return None
        context.invoked.add(group)

        presets = self._shared_with(group) | dict(options or {})
        context.reporter.invoke_started(label)
        try:
            if via is not None:
                return via(self, group)
            return Pipeline(group, context)((), presets)
        finally:
            context.reporter.invoke_finished(label)

    def _shared_with(self, group, /):
        """
        Caller option values forwarded to group as presets.

        Only options bound to a value (not None) whose name and type the
        target also declares are forwarded; choice values must be valid
        target choices.
        """
        declared = group.effective_options()
        own = type(self).effective_options()
        shared = {}
        for name, value in self.options.items():
            if value is None or name not in declared:
                continue
            if self.context.share == "declared" and not own[name].shared:
                continue
            if own[name].type is not declared[name].type:
                continue
            if declared[name].type is ValueType.CHOICE and value not in declared[name].choices:
                continue
            shared[name] = value
        return shared


def start(group, prompt=Unset, /, context=Unset):
    """
    Run a group (or a plain function, wrapped in a one-task group).

        def hello(self):
            self.reporter.say_status("hello", "world")

        start(hello, [])
    """
    if not (isinstance(group, type) and issubclass(group, Group)):
        if not callable(group):
            raise TypeError("start() argument must be a group or a callable")
        name = getattr(group, "__name__", "main")
        key = name if name.isidentifier() and name not in RESERVED else "main"
        group = GroupType(key, (Group,), {key: Task(group, name=name)})
    return group.start(prompt, context=context)


__all__ = (
    "Group",
    "GroupType",
    "Task",
    "Pipeline",
    "State",
    "task",
    "invocation",
    "option_invocation",
    "start",
    "RESERVED",
)
