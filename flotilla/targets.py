"""
Invocation target resolution.

Every concrete group class registers itself under its label and its class name
when it is defined. A target given to the invocation bridge can then be:

- a group class (used as-is),
- a registered label or class name ("defined", "Defined"),
- an importable path "package.module:ClassName".

Anything else raises TargetNotFound, which the bridge reports and absorbs.
The registry holds weak references and is only written at definition time.
"""
import importlib
import weakref

from .faults import TargetNotFound
from .registry import Registry

_groups = weakref.WeakValueDictionary()


def is_group(object, /):
    return isinstance(object, type) and isinstance(object.__dict__.get("__registry__"), Registry)


def register(group, /):
    for key in (group.__name__, group.label):
        _groups[key] = group
    return group


def label_of(target, /):
    """
    Label shown for a target in status lines and help sections.
    """
    if isinstance(target, type):
        return target.__name__
    return str(target)


def resolve(target, /):
    if is_group(target):
        return target

    if isinstance(target, str) and target:
        try:
            return _groups[target]
        except KeyError:
            pass

        module, colon, name = target.partition(":")
        if colon and module and name:
            try:
                group = getattr(importlib.import_module(module), name)
            except (ImportError, AttributeError):
                group = None
            if is_group(group):
                return group

    raise TargetNotFound(
        "no group found for %r" % (target,),
        target=target,
        hint="pass a group class, a group label, or a 'module:Group' path",
    )


__all__ = (
    "is_group",
    "register",
    "label_of",
    "resolve",
)
