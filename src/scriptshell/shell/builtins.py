"""Host functions exposed to scripts.

Provides the ``console`` object with ``console.log`` and ``console.help``.
"""

from __future__ import annotations

import functools
import logging
import sys
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, TextIO, TYPE_CHECKING

if TYPE_CHECKING:
    from scriptshell.runtime.base import ScriptRuntime

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass
class HostContext:
    """What a host function can reach: the runtime and the output stream."""
    runtime: Optional[ScriptRuntime] = None
    out: Optional[TextIO] = None

    @property
    def stream(self) -> TextIO:
        return self.out if self.out is not None else sys.stdout


class HostFunction:
    """A function callable from scripts."""

    def __init__(self, name: str, func: Callable):
        """Initialize host function.

        Args:
            name: Member name inside its namespace
            func: Implementation, called with a HostContext first
        """
        self.name = name
        self.func = func

    def bind(self, context: HostContext) -> Callable:
        """Return a script-callable function bound to context."""
        bound = functools.partial(self.func, context)
        functools.update_wrapper(bound, self.func)
        return bound


class HostObject:
    """Namespace object handed to scripts, e.g. ``console``."""

    def __init__(self, name: str, members: Dict[str, Callable]):
        self._name = name
        self._members = members
        for member, func in members.items():
            setattr(self, member, func)

    def __dir__(self) -> List[str]:
        return list(self._members)

    def __repr__(self) -> str:
        return f"[object {self._name}]"


class HostRegistry:
    """Registry of host namespaces and their functions."""

    def __init__(self):
        """Initialize registry."""
        self.namespaces: Dict[str, Dict[str, HostFunction]] = {}

    def register(self, namespace: str, name: str) -> Callable:
        """Decorator to register a host function.

        Args:
            namespace: Global object the function lives on
            name: Member name

        Returns:
            Decorator function
        """
        def decorator(func: Callable) -> Callable:
            fn = HostFunction(name, func)
            self.namespaces.setdefault(namespace, {})[fn.name] = fn
            logger.debug(f"Registered host function: {namespace}.{fn.name}")
            return func
        return decorator

    def namespace_names(self) -> List[str]:
        """List registered namespaces in registration order."""
        return list(self.namespaces)

    def member_names(self) -> List[str]:
        """List member names of all namespaces, first occurrence wins."""
        names: Dict[str, None] = {}
        for functions in self.namespaces.values():
            for name in functions:
                names.setdefault(name)
        return list(names)

    def bind(self, context: HostContext) -> Dict[str, HostObject]:
        """Build the script-visible objects for context.

        Args:
            context: Host context passed to every function

        Returns:
            Mapping of namespace name to object
        """
        return {
            namespace: HostObject(
                namespace,
                {name: fn.bind(context) for name, fn in functions.items()}
            )
            for namespace, functions in self.namespaces.items()
        }


_registry = HostRegistry()


def get_registry() -> HostRegistry:
    """Get the global host function registry.

    Returns:
        Registry instance
    """
    return _registry


@_registry.register("console", "log")
def console_log(context: HostContext, value: Any = _MISSING) -> None:
    """Write value and a newline.

    Args:
        context: Host context
        value: Value to write; nothing but the newline when omitted
    """
    message = "" if value is _MISSING else str(value)
    context.stream.write(message + "\n")


@_registry.register("console", "help")
def console_help(context: HostContext) -> None:
    """Write the built-in object names followed by the host namespaces.

    Args:
        context: Host context
    """
    out = context.stream
    out.write("VM built-in objects:\n")
    if context.runtime is not None:
        for name in context.runtime.builtin_object_names():
            out.write(f"  {name}\n")

    out.write("\nEmbedded objects:\n")
    for name in _registry.namespace_names():
        out.write(f"  {name}\n")

    out.write("\n")
