"""
Declaration registry: per-group arguments, options, tasks and description.

A Registry holds the declarations made by one group class (its own deltas) and
a reference to the registry of its nearest group ancestor. The effective views
are produced by pure merge functions, so a class never walks its hierarchy at
run time:

- arguments: ancestor arguments first; a redeclared name replaces the inherited
  slot, new names are appended. The merged list must keep every required
  argument ahead of the first optional one (OrderingError otherwise).
- options: merged by name, the subclass wins.
- tasks: ancestor tasks first, in declaration order; a redeclared name replaces
  the inherited slot in place; new names are appended in declaration order.
- description: own, else the nearest ancestor's.
"""
import logging

from .faults import OrderingError
from .utils import Unset

logger = logging.getLogger(__name__)


def merge_arguments(inherited, own, /):
    merged = list(inherited)
    for argument in own:
        for index, existing in enumerate(merged):
            if existing.name == argument.name:
                merged[index] = argument
                break
        else:
            merged.append(argument)
    return merged


def merge_options(inherited, own, /):
    return dict(inherited) | dict(own)


def merge_tasks(inherited, own, /):
    merged = list(inherited)
    for task in own:
        for index, existing in enumerate(merged):
            if existing.name == task.name:
                merged[index] = task
                break
        else:
            merged.append(task)
    return merged


def check_ordering(arguments, /, *, owner=Unset):
    """
    Raise OrderingError when a required argument follows an optional one.
    """
    optional = None
    for argument in arguments:
        if not argument.required:
            optional = optional or argument
        elif optional is not None:
            raise OrderingError(
                "cannot have %r as required argument after the non-required argument %r" % (
                    argument.name, optional.name
                ),
                label=getattr(owner, "__name__", Unset),
                hint="give %r a default or declare it before %r" % (argument.name, optional.name),
            )


class Registry:
    """
    Own declarations of one group plus a link to the inherited registry.
    """

    def __init__(self, parent=None, /, *, owner=Unset):
        self.parent = parent
        self.owner = owner
        self.description = None
        self._arguments = []
        self._options = {}
        self._tasks = []

    def declare_argument(self, argument, /):
        """
        Append (or redeclare) an argument, enforcing the ordering invariant
        over the whole effective list before accepting it.
        """
        own = merge_arguments(self._arguments, [argument])
        check_ordering(merge_arguments(self._inherited("effective_arguments", []), own), owner=self.owner)
        self._arguments = own
        logger.debug("declared argument %r on %r", argument.name, self.owner)
        return argument

    def declare_option(self, option, /):
        self._options[option.name] = option
        logger.debug("declared option %r on %r", option.name, self.owner)
        return option

    def declare_task(self, task, /):
        self._tasks = merge_tasks(self._tasks, [task])
        logger.debug("declared task %r on %r", task.name, self.owner)
        return task

    def effective_arguments(self):
        return merge_arguments(self._inherited("effective_arguments", []), self._arguments)

    def effective_options(self):
        return merge_options(self._inherited("effective_options", {}), self._options)

    def effective_tasks(self):
        return merge_tasks(self._inherited("effective_tasks", []), self._tasks)

    def effective_description(self):
        if self.description is not None:
            return self.description
        return self._inherited("effective_description", None)

    def _inherited(self, view, default, /):
        if self.parent is None:
            return default
        return getattr(self.parent, view)()

    def __repr__(self):
        return "registry(owner=%r, arguments=%r, options=%r, tasks=%r)" % (
            self.owner,
            [argument.name for argument in self._arguments],
            list(self._options),
            [task.name for task in self._tasks],
        )


__all__ = (
    "Registry",
    "merge_arguments",
    "merge_options",
    "merge_tasks",
    "check_ordering",
)
