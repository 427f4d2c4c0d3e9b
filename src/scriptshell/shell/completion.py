"""Tab completion for the interactive shell.

The completer follows the readline completer protocol: it is called with
the word being completed and a state counter, state 0 starting a new
request and every later call asking for the next candidate. It answers
one candidate per call and None once the request is exhausted.

A request runs in two phases. The GLOBAL phase offers global names, then
variables from the runtime's live scope. The SUFFIX phase applies to
dotted words such as ``console.h``: the part after the last dot is
matched against property names and the typed prefix is kept.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Iterator, Optional, Set, Tuple

logger = logging.getLogger(__name__)

SEPARATOR = "."

ScopeProvider = Callable[[], Optional[Iterator[str]]]


@dataclass(frozen=True)
class CompletionSource:
    """Names offered for completion.

    Property names are stored without their leading separator.
    """
    global_names: Tuple[str, ...] = ()
    property_names: Tuple[str, ...] = ()

    @classmethod
    def from_names(cls, names: Iterable[str]) -> CompletionSource:
        """Build a source from a flat list where property names start with a dot.

        Args:
            names: Names in source order, e.g. ["console", ".log", ".help"]

        Returns:
            Completion source with both namespaces split out
        """
        global_names = []
        property_names = []
        for name in names:
            if name.startswith(SEPARATOR):
                property_names.append(name[len(SEPARATOR):])
            else:
                global_names.append(name)
        return cls(tuple(global_names), tuple(property_names))


class CompletionPhase(Enum):
    """Phase of a completion request."""
    GLOBAL = "global"
    SUFFIX = "suffix"


@dataclass
class CompletionSession:
    """Cursor state of one completion request."""
    prefix_length: int = 0
    phase: CompletionPhase = CompletionPhase.GLOBAL
    global_cursor: int = 0
    property_cursor: int = 0
    scope_cursor: Optional[Iterator[str]] = field(default=None, repr=False)
    scope_opened: bool = False
    returned: Set[str] = field(default_factory=set, repr=False)
    # (prefix span, suffix span) of the word, or None when it has no separator
    suffix_split: Optional[Tuple[str, str]] = None


class Completer:
    """Stateful, pull-based completion generator."""

    def __init__(
        self,
        source: CompletionSource,
        scope_provider: Optional[ScopeProvider] = None
    ):
        """Initialize completer.

        Args:
            source: Global and property names, in match order
            scope_provider: Returns an iterator over live variable names,
                or None when no scope is active
        """
        self.source = source
        self.scope_provider = scope_provider
        self.session = CompletionSession()

    def complete(self, text: str, state: int) -> Optional[str]:
        """Readline completer entry point.

        Args:
            text: Word being completed
            state: 0 for a new request, incremented for each further call

        Returns:
            Next candidate, or None when exhausted
        """
        if state == 0:
            self.reset(text)
        return self.next(text)

    def reset(self, text: str) -> None:
        """Start a new completion request for text."""
        self.session = CompletionSession(prefix_length=len(text))
        logger.debug(f"Completion request for {text!r}")

    def next(self, text: str) -> Optional[str]:
        """Produce the next candidate of the current request.

        Args:
            text: Word being completed

        Returns:
            Next candidate, or None when exhausted
        """
        session = self.session
        prefix = text[:session.prefix_length]

        if session.phase is CompletionPhase.GLOBAL:
            candidate = self._next_global(prefix)
            if candidate is not None:
                return candidate

            # An empty word has nothing to anchor a suffix on
            if session.prefix_length == 0:
                return None

            session.phase = CompletionPhase.SUFFIX
            session.suffix_split = self._split_suffix(prefix)
            logger.debug(f"Completion of {prefix!r} entering suffix phase")

        return self._next_suffix()

    def _next_global(self, prefix: str) -> Optional[str]:
        session = self.session
        names = self.source.global_names

        while session.global_cursor < len(names):
            name = names[session.global_cursor]
            session.global_cursor += 1
            if name.startswith(prefix) and name not in session.returned:
                session.returned.add(name)
                return name

        scope = self._scope()
        if scope is None:
            return None

        for name in scope:
            if name.startswith(prefix) and name not in session.returned:
                session.returned.add(name)
                return name

        return None

    def _scope(self) -> Optional[Iterator[str]]:
        session = self.session
        if not session.scope_opened:
            session.scope_opened = True
            if self.scope_provider is not None:
                session.scope_cursor = self.scope_provider()
        return session.scope_cursor

    def _split_suffix(self, prefix: str) -> Optional[Tuple[str, str]]:
        position = len(prefix) - 1
        while position > 0 and prefix[position] != SEPARATOR:
            position -= 1

        if prefix[position] != SEPARATOR:
            return None

        return prefix[:position], prefix[position + len(SEPARATOR):]

    def _next_suffix(self) -> Optional[str]:
        session = self.session
        if session.suffix_split is None:
            return None

        head, partial = session.suffix_split
        names = self.source.property_names

        while session.property_cursor < len(names):
            name = names[session.property_cursor]
            session.property_cursor += 1
            if not name.startswith(partial):
                continue
            try:
                candidate = head + SEPARATOR + name
            except MemoryError:
                logger.debug(f"Dropped completion candidate {name!r}: out of memory")
                return None
            if candidate not in session.returned:
                session.returned.add(candidate)
                return candidate

        return None
