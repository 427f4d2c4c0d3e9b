"""REPL (Read-Eval-Print Loop) and batch runner.

Interactive mode reads one line at a time and runs it in a persistent
session. Batch mode loads a whole script and runs it once.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Callable, Optional, TextIO, Union

from scriptshell.lib.config_parser import ShellConfig
from scriptshell.lib.loader import load_script
from scriptshell.runtime.base import RuntimeFault
from scriptshell.shell.interpreter import (
    ExecutionResult,
    OutputMode,
    ScriptExecutor,
    ShellSession,
    format_result,
)

logger = logging.getLogger(__name__)

try:
    import readline
    HAS_READLINE = True
except ImportError:
    HAS_READLINE = False
    logger.debug("readline not available - completion and history disabled")

BANNER = (
    "interactive scriptshell\n"
    "\n"
    "v<Tab> -> the properties of v object.\n"
    "v.<Tab> -> all the available prototype methods.\n"
    "type console.help() for more information\n"
)


class REPL:
    """Read-Eval-Print Loop for interactive scripting."""

    def __init__(
        self,
        session: Optional[ShellSession] = None,
        config: Optional[ShellConfig] = None,
        read_line: Optional[Callable[[str], str]] = None,
        out: Optional[TextIO] = None
    ):
        """Initialize REPL.

        Args:
            session: Shell session (creates new if None)
            config: Shell settings
            read_line: Line reader taking a prompt; input() with readline if None
            out: Output stream, stdout by default

        Raises:
            RuntimeFault: If a new session cannot be created
        """
        self.config = config or (session.config if session else ShellConfig())
        self.session = session or ShellSession.create(self.config, out)
        self.read_line = read_line or input
        self.use_readline = HAS_READLINE and read_line is None
        self.out = out

        if self.use_readline:
            self._setup_readline()

    @property
    def stream(self) -> TextIO:
        return self.out if self.out is not None else sys.stdout

    def _setup_readline(self) -> None:
        """Setup readline for completion and in-memory history."""
        readline.set_completer(self.session.completer.complete)
        readline.set_completer_delims(self.config.word_break_characters)
        if readline.__doc__ and 'libedit' in readline.__doc__:
            readline.parse_and_bind("bind ^I rl_complete")
        else:
            readline.parse_and_bind("tab: complete")

        # Only non-empty submitted lines are recorded
        readline.set_auto_history(False)
        readline.set_history_length(self.config.history_length)

    def run(self) -> None:
        """Run the REPL loop until end of input."""
        if self.config.banner:
            print(BANNER, file=self.stream)

        while True:
            try:
                line = self.read_line(self.config.prompt)
            except (EOFError, KeyboardInterrupt):
                print(file=self.stream)
                break

            if not line:
                continue

            if self.use_readline:
                readline.add_history(line)
            self._execute_line(line)

    def _execute_line(self, line: str) -> None:
        """Execute a single line of input.

        Args:
            line: Input line
        """
        try:
            result = self.session.execute(line)
        except RuntimeFault as e:
            logger.debug(f"Runtime fault: {e}")
            print("shell: failed to get retval from VM", file=self.stream)
            return

        print(format_result(result), file=self.stream)


def run_repl(
    config: Optional[ShellConfig] = None,
    read_line: Optional[Callable[[str], str]] = None,
    out: Optional[TextIO] = None
) -> None:
    """Run interactive REPL.

    Args:
        config: Optional shell settings
        read_line: Optional line reader
        out: Optional output stream

    Raises:
        RuntimeFault: If the session cannot be set up
    """
    repl = REPL(config=config, read_line=read_line, out=out)
    repl.run()


def run_script(
    script_path: Union[str, Path],
    output_mode: OutputMode = OutputMode.SHOW_RESULT,
    config: Optional[ShellConfig] = None,
    out: Optional[TextIO] = None
) -> ExecutionResult:
    """Run a script file, or standard input for "-", once.

    Args:
        script_path: Path to script file or "-"
        output_mode: Show the result, or only the disassembly
        config: Optional shell settings
        out: Output stream, stdout by default

    Returns:
        Outcome of the run

    Raises:
        ScriptLoadError: If the script cannot be read
        RuntimeFault: If the runtime fails
    """
    from scriptshell.runtime.python_vm import PythonRuntime

    config = config or ShellConfig()
    stream = out if out is not None else sys.stdout

    buffer = load_script(
        script_path,
        chunk_size=config.chunk_size,
        default_capacity=config.default_capacity
    )

    name = str(script_path)
    try:
        runtime = PythonRuntime(
            filename="<stdin>" if name == "-" else name,
            out=out
        )
    except Exception as e:
        raise RuntimeFault("failed to create vm") from e

    executor = ScriptExecutor(runtime, output_mode, out)
    logger.debug(f"Running {name} ({len(buffer)} bytes)")
    result = executor.run(buffer)

    if executor.shows_result:
        print(format_result(result), file=stream)

    return result
