"""scriptshell - interactive shell and script runner for a scripting runtime.

Features:
- Batch execution of a file or standard input
- Interactive REPL with readline tab completion
- Completion of global names, live variables, and dotted property chains
- Call-stack traces for failing scripts
- Disassembly of compiled scripts
"""

__version__ = "1.0.0"
__license__ = "MIT"

from scriptshell.cli import main

__all__ = ["main", "__version__"]
