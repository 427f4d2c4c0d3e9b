"""Runtime collaborator interface.

The shell never evaluates code itself. It drives a runtime through the
small interface below: compile, execute, fetch the outcome, and answer
completion queries.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, List, Optional, TextIO, TYPE_CHECKING, Union

if TYPE_CHECKING:
    from scriptshell.shell.completion import CompletionSource


class ScriptError(Exception):
    """Raised by a runtime when the script itself fails."""
    pass


class CompileError(ScriptError):
    """Raised when source text cannot be compiled."""
    pass


class ScriptRuntimeError(ScriptError):
    """Raised when compiled code throws during execution."""
    pass


class RuntimeFault(Exception):
    """Raised when the runtime itself cannot continue."""
    pass


@dataclass(frozen=True)
class Frame:
    """One entry of a call-stack trace.

    A missing or zero line means the frame has no source position
    (for example a native function).
    """
    name: str
    line: Optional[int] = None

    @property
    def has_position(self) -> bool:
        return bool(self.line)


class ScriptRuntime(ABC):
    """Base class for runtimes the shell can drive."""

    @abstractmethod
    def compile(self, source: Union[bytes, memoryview]) -> None:
        """Compile UTF-8 source, as bytes or a read-only view of them.

        Raises:
            CompileError: If the source does not compile
        """
        pass

    @abstractmethod
    def execute(self) -> None:
        """Run the most recently compiled code.

        Raises:
            ScriptRuntimeError: If the code throws
        """
        pass

    @abstractmethod
    def fetch_return_value(self) -> str:
        """Return the value of the last run rendered as text.

        Raises:
            RuntimeFault: If the value cannot be rendered
        """
        pass

    @abstractmethod
    def fetch_exception(self) -> str:
        """Return the pending exception rendered as text."""
        pass

    @abstractmethod
    def fetch_backtrace(self) -> Optional[List[Frame]]:
        """Return the trace of the last failure, innermost frame first."""
        pass

    @abstractmethod
    def completion_source(self) -> CompletionSource:
        """Return global and property names offered for completion.

        Raises:
            RuntimeFault: If the names cannot be collected
        """
        pass

    @abstractmethod
    def scope_variables(self) -> Optional[Iterator[str]]:
        """Return a fresh iterator over visible variable names.

        Returns None when no parse scope is active.
        """
        pass

    @abstractmethod
    def disassemble(self, out: TextIO) -> None:
        """Write the compiled form of the last compiled code to out."""
        pass

    @abstractmethod
    def builtin_object_names(self) -> List[str]:
        """List the built-in constructors and objects of the runtime."""
        pass
