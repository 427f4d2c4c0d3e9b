"""Tests for tab completion."""

import io

import pytest

from scriptshell.shell.completion import (
    CompletionPhase,
    CompletionSource,
    Completer,
)


def collect(completer, text, limit=100):
    """Call the completer the way readline does until it is exhausted."""
    candidates = []
    for state in range(limit):
        candidate = completer.complete(text, state)
        if candidate is None:
            return candidates
        candidates.append(candidate)
    pytest.fail(f"completion for {text!r} never terminated")


@pytest.fixture
def console_source():
    return CompletionSource.from_names(["console", ".log", ".help"])


class TestCompletionSource:
    """Test splitting of completion names."""

    def test_from_names_splits_namespaces(self):
        """Test that dotted names become property names."""
        source = CompletionSource.from_names(
            ["console", ".log", "Math", ".help", ".length"]
        )
        assert source.global_names == ("console", "Math")
        assert source.property_names == ("log", "help", "length")

    def test_from_names_empty(self):
        """Test an empty name list."""
        source = CompletionSource.from_names([])
        assert source.global_names == ()
        assert source.property_names == ()


class TestGlobalPhase:
    """Test completion of global names and scope variables."""

    def test_prefix_match(self, console_source):
        """Test that a partial global name completes once."""
        completer = Completer(console_source)
        assert collect(completer, "con") == ["console"]

    def test_no_match(self, console_source):
        """Test a word nothing starts with."""
        completer = Completer(console_source)
        assert collect(completer, "xyz") == []

    def test_case_sensitive(self, console_source):
        """Test that matching is case-sensitive."""
        completer = Completer(console_source)
        assert collect(completer, "Con") == []

    def test_source_order(self):
        """Test that candidates come in source order."""
        source = CompletionSource(("parseInt", "print", "parseFloat"), ())
        completer = Completer(source)
        assert collect(completer, "p") == ["parseInt", "print", "parseFloat"]
        assert collect(completer, "pa") == ["parseInt", "parseFloat"]

    def test_scope_after_globals(self):
        """Test that scope variables follow global names."""
        source = CompletionSource(("value", "var"), ())
        completer = Completer(source, lambda: iter(["velocity", "x", "vx"]))
        assert collect(completer, "v") == ["value", "var", "velocity", "vx"]

    def test_scope_unavailable(self):
        """Test a provider reporting no active scope."""
        source = CompletionSource(("alpha",), ())
        completer = Completer(source, lambda: None)
        assert collect(completer, "a") == ["alpha"]

    def test_scope_is_fresh_per_request(self):
        """Test that each request asks for a new scope iterator."""
        calls = []

        def provider():
            calls.append(1)
            return iter(["abc"])

        completer = Completer(CompletionSource(), provider)
        assert collect(completer, "a") == ["abc"]
        assert collect(completer, "a") == ["abc"]
        assert len(calls) == 2

    def test_scope_not_opened_while_globals_match(self):
        """Test that the scope is only read once globals are exhausted."""
        calls = []

        def provider():
            calls.append(1)
            return iter([])

        completer = Completer(CompletionSource(("abc", "abd"), ()), provider)
        assert completer.complete("ab", 0) == "abc"
        assert calls == []

    def test_empty_word_lists_everything_then_stops(self, console_source):
        """Test that an empty word never reaches suffix scanning."""
        completer = Completer(console_source, lambda: iter(["x"]))
        assert collect(completer, "") == ["console", "x"]
        assert completer.session.phase is CompletionPhase.GLOBAL
        assert completer.complete("", 5) is None

    def test_no_duplicates(self):
        """Test that every eligible candidate appears exactly once."""
        source = CompletionSource(("a1", "b1", "a2", "a3"), ("a4",))
        completer = Completer(source, lambda: iter(["a5", "b2", "a6"]))
        result = collect(completer, "a")
        assert result == ["a1", "a2", "a3", "a5", "a6"]
        assert len(result) == len(set(result))

    def test_scope_name_shadowing_global(self):
        """Test that a variable shadowing a global name is offered once."""
        source = CompletionSource(("abc", "list"), ())
        completer = Completer(source, lambda: iter(["list", "abc", "lisp"]))
        assert collect(completer, "a") == ["abc"]
        assert collect(completer, "lis") == ["list", "lisp"]

    def test_shadowed_builtin_in_session(self):
        """Test a session variable named like a builtin."""
        from scriptshell.shell.interpreter import ShellSession

        session = ShellSession.create(out=io.StringIO())
        session.execute("list = [1]")
        assert collect(session.completer, "lis") == ["list"]


class TestSuffixPhase:
    """Test completion of dotted property chains."""

    def test_suffix_reconstruction(self, console_source):
        """Test that the typed prefix is kept before the property."""
        completer = Completer(console_source)
        assert completer.complete("console.h", 0) == "console.help"
        assert completer.complete("console.h", 1) is None

    def test_all_properties_after_dot(self, console_source):
        """Test completing right after the separator."""
        completer = Completer(console_source)
        assert collect(completer, "console.") == ["console.log", "console.help"]

    def test_no_separator_stops(self, console_source):
        """Test that a word without a dot has no suffix candidates."""
        completer = Completer(console_source)
        assert completer.complete("con", 0) == "console"
        assert completer.complete("con", 1) is None
        assert completer.session.suffix_split is None
        assert completer.complete("con", 2) is None

    def test_last_separator_wins(self):
        """Test that only the part after the last dot is matched."""
        source = CompletionSource((), ("length", "log"))
        completer = Completer(source)
        assert collect(completer, "a.b.le") == ["a.b.length"]

    def test_leading_separator(self):
        """Test a word that is only a dotted suffix."""
        source = CompletionSource((), ("log",))
        completer = Completer(source)
        assert collect(completer, ".l") == [".log"]

    def test_globals_then_properties(self):
        """Test that globals matching a dotted word come first."""
        source = CompletionSource(("a.b",), ("bar",))
        completer = Completer(source)
        assert collect(completer, "a.b") == ["a.b", "a.bar"]

    def test_property_scan_independent_of_global_cursor(self):
        """Test that property names are all scanned after the global pass."""
        source = CompletionSource.from_names([".log", "console", ".help"])
        completer = Completer(source)
        assert collect(completer, "console.") == ["console.log", "console.help"]

    def test_repeated_property_offered_once(self):
        """Test that a property listed twice yields one candidate."""
        source = CompletionSource((), ("log", "log"))
        completer = Completer(source)
        assert collect(completer, "console.l") == ["console.log"]

    def test_out_of_memory_yields_no_candidate(self):
        """Test that a candidate that cannot be built is dropped silently."""

        class Exhausted(str):
            def __radd__(self, other):
                raise MemoryError

        source = CompletionSource((), (Exhausted("help"), "hide"))
        completer = Completer(source)
        assert completer.complete("console.h", 0) is None
        assert completer.complete("console.h", 1) == "console.hide"
        assert completer.complete("console.h", 2) is None


class TestRequestReset:
    """Test that state 0 starts a new request."""

    def test_reset_restarts_enumeration(self, console_source):
        """Test that a new request yields candidates again."""
        completer = Completer(console_source)
        assert collect(completer, "c") == ["console"]
        assert collect(completer, "c") == ["console"]

    def test_reset_clears_suffix_phase(self, console_source):
        """Test that a request after a suffix request starts in GLOBAL."""
        completer = Completer(console_source)
        collect(completer, "console.l")
        assert completer.session.phase is CompletionPhase.SUFFIX

        completer.complete("co", 0)
        assert completer.session.phase is CompletionPhase.GLOBAL
        assert completer.session.prefix_length == 2
