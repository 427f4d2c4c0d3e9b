from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

from scriptshell.lib.config_parser import ShellConfig, load_config
from scriptshell.lib.loader import ScriptLoadError

PROG = "scriptshell"
USAGE = f"Usage: {PROG} [<file>|-] [-d]"


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging.

    Args:
        verbose: Enable debug logging
        quiet: Only report errors
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser.

    Returns:
        Parser without argparse's own help handling
    """
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Run scripts or an interactive scripting shell",
        add_help=False
    )
    parser.add_argument(
        'file',
        nargs='?',
        default=None,
        help='Script to run, "-" for standard input (default: interactive shell)'
    )
    parser.add_argument(
        '-d',
        dest='disassemble',
        action='store_true',
        help='Print the compiled form instead of the result (batch mode only)'
    )
    parser.add_argument(
        '-h', '-?',
        dest='help',
        action='store_true',
        help='Show usage and exit'
    )
    parser.add_argument(
        '--config', '-c',
        type=Path,
        default=None,
        help='Path to a YAML settings file'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose (debug) logging'
    )
    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Only log errors'
    )
    return parser


def run_batch(path: str, disassemble: bool, config: ShellConfig) -> int:
    """Run one script and map fatal errors to an exit code.

    Args:
        path: Script path or "-"
        disassemble: Show only the compiled form
        config: Shell settings

    Returns:
        Exit code
    """
    from scriptshell.runtime.base import RuntimeFault
    from scriptshell.shell import OutputMode, run_script

    mode = OutputMode.SHOW_DISASSEMBLY_ONLY if disassemble else OutputMode.SHOW_RESULT
    try:
        run_script(path, mode, config)
    except ScriptLoadError as e:
        logger.error(str(e))
        return 1
    except MemoryError:
        logger.error(f"alloc failed while reading '{path}'")
        return 1
    except RuntimeFault as e:
        logger.error(str(e))
        return 1
    return 0


def run_interactive(config: ShellConfig) -> int:
    """Run the interactive shell and map fatal errors to an exit code.

    Args:
        config: Shell settings

    Returns:
        Exit code
    """
    from scriptshell.runtime.base import RuntimeFault
    from scriptshell.shell import run_repl

    logger.info("Starting interactive shell...")
    try:
        run_repl(config)
    except RuntimeFault as e:
        logger.error(str(e))
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Args:
        argv: Arguments without the program name, sys.argv[1:] if None

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = build_parser()
    args, unknown = parser.parse_known_args(argv)

    if unknown:
        print(f'Unknown argument: "{unknown[0]}"', file=sys.stderr)
        print(USAGE)
        return 1

    if args.help:
        print(USAGE)
        return 0

    setup_logging(args.verbose, args.quiet)

    try:
        config = load_config(args.config)
    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        if args.verbose:
            logger.exception("Configuration error details:")
        return 1

    if args.file is not None:
        return run_batch(args.file, args.disassemble, config)

    if args.disassemble:
        logger.warning("-d only applies when running a file; ignored")
    return run_interactive(config)


if __name__ == "__main__":
    sys.exit(main())
