"""Runtime that evaluates Python source.

Like an interactive interpreter, a trailing expression statement becomes
the return value of the script.
"""

from __future__ import annotations

import ast
import builtins
import dis
import logging
import traceback
from types import CodeType
from typing import Any, Dict, Iterator, List, Optional, TextIO, Union

from scriptshell.runtime.base import (
    CompileError,
    Frame,
    RuntimeFault,
    ScriptRuntime,
    ScriptRuntimeError,
)
from scriptshell.shell.builtins import HostContext, HostRegistry, get_registry
from scriptshell.shell.completion import CompletionSource

logger = logging.getLogger(__name__)

PROPERTY_TYPES = (str, bytes, list, tuple, dict, set, int, float)


def _public(names) -> List[str]:
    return [name for name in names if not name.startswith('_')]


class PythonRuntime(ScriptRuntime):
    """Compile and run Python source in a private namespace."""

    def __init__(
        self,
        filename: str = "<shell>",
        accumulative: bool = False,
        registry: Optional[HostRegistry] = None,
        out: Optional[TextIO] = None
    ):
        """Initialize runtime.

        Args:
            filename: Name compiled code is attributed to
            accumulative: Keep one scope across compiles (interactive use)
            registry: Host functions to expose, the global registry by default
            out: Stream host functions write to, stdout by default
        """
        self.filename = filename
        self.accumulative = accumulative
        self.registry = registry or get_registry()
        self.host_objects = self.registry.bind(HostContext(runtime=self, out=out))
        self.namespace: Dict[str, Any] = {}
        self._reset_namespace()

        self._code: Optional[CodeType] = None
        self._result_code: Optional[CodeType] = None
        self._retval: Any = None
        self._exception: Optional[BaseException] = None
        self._scope_active = False

    def _reset_namespace(self) -> None:
        self.namespace.clear()
        self.namespace['__name__'] = '__main__'
        self.namespace['__builtins__'] = builtins
        self.namespace.update(self.host_objects)

    def compile(self, source: Union[bytes, memoryview]) -> None:
        self._code = None
        self._result_code = None
        self._exception = None

        try:
            text = bytes(source).decode('utf-8')
            tree = ast.parse(text, filename=self.filename, mode='exec')
            result_expr = None
            if tree.body and isinstance(tree.body[-1], ast.Expr):
                result_expr = ast.Expression(tree.body.pop().value)
            self._code = compile(tree, self.filename, 'exec')
            if result_expr is not None:
                self._result_code = compile(result_expr, self.filename, 'eval')
        except (SyntaxError, ValueError) as e:
            # UnicodeDecodeError is a ValueError
            self._exception = e
            logger.debug(f"Compile failed: {e}")
            raise CompileError(str(e)) from e

        if self.accumulative:
            self._scope_active = True

    def execute(self) -> None:
        if self._code is None:
            raise RuntimeFault("Nothing compiled")

        if not self.accumulative:
            self._reset_namespace()

        self._retval = None
        self._exception = None
        try:
            exec(self._code, self.namespace)
            if self._result_code is not None:
                self._retval = eval(self._result_code, self.namespace)
        except (Exception, SystemExit) as e:
            # exit() inside a script is a script outcome, not a shell exit
            self._exception = e
            logger.debug(f"Execution failed: {e!r}")
            raise ScriptRuntimeError(str(e)) from e

    def fetch_return_value(self) -> str:
        try:
            return repr(self._retval)
        except Exception as e:
            raise RuntimeFault("failed to get retval from VM") from e

    def fetch_exception(self) -> str:
        if self._exception is None:
            return ""
        exc = self._exception
        return "".join(traceback.format_exception_only(type(exc), exc)).rstrip("\n")

    def fetch_backtrace(self) -> Optional[List[Frame]]:
        exc = self._exception
        # No trace is meaningful for a compile error
        if exc is None or self._code is None:
            return None

        frames = []
        for summary in traceback.extract_tb(exc.__traceback__):
            if summary.filename == __file__:
                continue
            line = summary.lineno if summary.filename == self.filename else None
            frames.append(Frame(summary.name, line))

        if not frames:
            return None
        frames.reverse()
        return frames

    def completion_source(self) -> CompletionSource:
        try:
            global_names = self.registry.namespace_names()
            global_names += sorted(_public(dir(builtins)))

            property_names: Dict[str, None] = dict.fromkeys(self.registry.member_names())
            for cls in PROPERTY_TYPES:
                for name in _public(dir(cls)):
                    property_names.setdefault(name)
        except Exception as e:
            raise RuntimeFault("failed to init completions") from e

        return CompletionSource(
            tuple(dict.fromkeys(global_names)), tuple(property_names)
        )

    def scope_variables(self) -> Optional[Iterator[str]]:
        if not self._scope_active:
            return None
        hidden = set(self.host_objects)
        names = [
            name for name in self.namespace
            if not name.startswith('__') and name not in hidden
        ]
        return iter(names)

    def disassemble(self, out: TextIO) -> None:
        if self._code is not None:
            dis.dis(self._code, file=out)
        if self._result_code is not None:
            dis.dis(self._result_code, file=out)

    def builtin_object_names(self) -> List[str]:
        return sorted(
            name for name in _public(dir(builtins))
            if isinstance(getattr(builtins, name), type)
            and not issubclass(getattr(builtins, name), BaseException)
        )
