"""Script execution for the shell.

Compiles a script through the runtime, runs it, and normalizes the
outcome into an ExecutionResult.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, TextIO, Union

from scriptshell.lib.config_parser import ShellConfig
from scriptshell.lib.loader import ScriptBuffer
from scriptshell.runtime.base import (
    CompileError,
    Frame,
    RuntimeFault,
    ScriptRuntime,
    ScriptRuntimeError,
)
from scriptshell.shell.completion import Completer

logger = logging.getLogger(__name__)

Source = Union[ScriptBuffer, bytes, memoryview, str]


@dataclass(frozen=True)
class Value:
    """Successful run: the return value as text."""
    text: str


@dataclass(frozen=True)
class Failure:
    """Failed compile or run: the exception text and, if any, its trace."""
    text: str
    trace: Optional[List[Frame]] = None


ExecutionResult = Union[Value, Failure]


class OutputMode(Enum):
    """What the shell shows for a run."""
    SHOW_RESULT = "result"
    SHOW_DISASSEMBLY_ONLY = "disassembly"


def format_frame(frame: Frame) -> str:
    """Render one trace frame.

    Args:
        frame: Frame to render

    Returns:
        "at name (:line)", or "at name" without a source position
    """
    if frame.has_position:
        return f"at {frame.name} (:{frame.line})"
    return f"at {frame.name}"


def format_backtrace(trace: Optional[Sequence[Frame]]) -> List[str]:
    """Render trace frames in stored order, one line each."""
    if not trace:
        return []
    return [format_frame(frame) for frame in trace]


def format_result(result: ExecutionResult) -> str:
    """Render a result as the shell prints it.

    Args:
        result: Outcome of a run

    Returns:
        Result text followed by trace lines, if any
    """
    lines = [result.text]
    if isinstance(result, Failure):
        lines.extend(format_backtrace(result.trace))
    return "\n".join(lines)


class ScriptExecutor:
    """Runs scripts through a runtime.

    Script errors become Failure results; only RuntimeFault propagates.
    """

    def __init__(
        self,
        runtime: ScriptRuntime,
        output_mode: OutputMode = OutputMode.SHOW_RESULT,
        out: Optional[TextIO] = None
    ):
        """Initialize executor.

        Args:
            runtime: Runtime that compiles and runs scripts
            output_mode: Whether to disassemble before running
            out: Stream for disassembly, stdout by default
        """
        self.runtime = runtime
        self.output_mode = output_mode
        self.out = out

    @property
    def stream(self) -> TextIO:
        return self.out if self.out is not None else sys.stdout

    @property
    def shows_result(self) -> bool:
        return self.output_mode is OutputMode.SHOW_RESULT

    def run(self, source: Source) -> ExecutionResult:
        """Compile and run source.

        Args:
            source: Script bytes, buffer, or text

        Returns:
            Value on success, Failure on compile or runtime error

        Raises:
            RuntimeFault: If the runtime itself fails
        """
        if isinstance(source, str):
            data = source.encode('utf-8')
        elif isinstance(source, ScriptBuffer):
            # Loaded scripts are handed over without a copy
            data = source.view()
        else:
            data = source

        try:
            self.runtime.compile(data)
        except CompileError:
            return Failure(self.runtime.fetch_exception())

        if self.output_mode is OutputMode.SHOW_DISASSEMBLY_ONLY:
            self.runtime.disassemble(self.stream)
            self.stream.write("\n")

        try:
            self.runtime.execute()
        except ScriptRuntimeError:
            return Failure(
                self.runtime.fetch_exception(),
                self.runtime.fetch_backtrace()
            )

        return Value(self.runtime.fetch_return_value())


class ShellSession:
    """State of one interactive session.

    Holds the runtime, its executor, the completer, and the input history.
    """

    def __init__(
        self,
        runtime: ScriptRuntime,
        config: Optional[ShellConfig] = None,
        out: Optional[TextIO] = None
    ):
        """Initialize session.

        Args:
            runtime: Runtime kept for the whole session
            config: Shell settings
            out: Output stream, stdout by default

        Raises:
            RuntimeFault: If the completion names cannot be collected
        """
        self.runtime = runtime
        self.config = config or ShellConfig()
        self.executor = ScriptExecutor(runtime, OutputMode.SHOW_RESULT, out)
        self.completer = Completer(
            runtime.completion_source(), runtime.scope_variables
        )
        self.history: List[str] = []

    @classmethod
    def create(
        cls,
        config: Optional[ShellConfig] = None,
        out: Optional[TextIO] = None
    ) -> ShellSession:
        """Create a session backed by an accumulative Python runtime.

        Raises:
            RuntimeFault: If the runtime or its completions cannot be set up
        """
        from scriptshell.runtime.python_vm import PythonRuntime

        try:
            runtime = PythonRuntime(filename="shell", accumulative=True, out=out)
        except Exception as e:
            raise RuntimeFault("failed to create vm") from e
        return cls(runtime, config, out)

    def execute(self, line: str) -> ExecutionResult:
        """Record line in history and run it.

        Args:
            line: Non-empty input line

        Returns:
            Outcome of the run
        """
        self.history.append(line)
        return self.executor.run(line)

    def get_history(self) -> list[str]:
        """Get submitted lines.

        Returns:
            List of lines in submission order
        """
        return self.history.copy()
