"""Script runtimes driven by the shell."""

from __future__ import annotations

from scriptshell.runtime.base import (
    CompileError,
    Frame,
    RuntimeFault,
    ScriptError,
    ScriptRuntime,
    ScriptRuntimeError,
)
from scriptshell.runtime.python_vm import PythonRuntime

__all__ = [
    "ScriptRuntime",
    "PythonRuntime",
    "Frame",
    "ScriptError",
    "CompileError",
    "ScriptRuntimeError",
    "RuntimeFault",
]
