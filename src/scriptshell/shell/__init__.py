"""Shell module for the interactive scripting CLI.

Provides the REPL, the batch script runner, tab completion, and the host
functions exposed to scripts.
"""

from __future__ import annotations

from scriptshell.shell.builtins import HostRegistry, get_registry
from scriptshell.shell.completion import Completer, CompletionSource
from scriptshell.shell.interpreter import (
    ExecutionResult,
    Failure,
    OutputMode,
    ScriptExecutor,
    ShellSession,
    Value,
    format_result,
)
from scriptshell.shell.repl import REPL, run_repl, run_script

__all__ = [
    "REPL",
    "ShellSession",
    "ScriptExecutor",
    "ExecutionResult",
    "Value",
    "Failure",
    "OutputMode",
    "Completer",
    "CompletionSource",
    "HostRegistry",
    "run_repl",
    "run_script",
    "format_result",
    "get_registry",
]
